from setuptools import setup, find_packages

setup(
    name = "tome",
    version = "0.1.0",
    packages = find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "aiofiles",
        "aiohttp",
        "loguru",
        "pydantic>=2.0",
        "PyYAML",
        "python-dotenv",
        "pdfplumber",
        "PyPDF2",
        "pypdfium2",
        "Pillow",
        "tqdm",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio==1.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "tome = tome.pipeline:cli",
        ],
    },
    python_requires = ">=3.9",
)
