import base64
import re
from pathlib import Path
from typing import List, Optional

import aiofiles

WHITESPACE_PATTERN = re.compile(r"\s+")


def find_format(file_path: Path):
    return file_path.suffix.lstrip('.').lower()


def collapse_whitespace(text: str) -> str:
    return WHITESPACE_PATTERN.sub(" ", text).strip()


async def read_file(file_path: Path, mode: str, encodings=None) -> Optional[str]:
    if "b" in mode: # binary mode doesnt take encoding
        async with aiofiles.open(file_path, mode) as f:
            return await f.read()
    if encodings is None:
        encodings = ['utf-8', 'latin-1', 'cp1252', 'iso-8859-1']

    for encoding in encodings:
        try:
            async with aiofiles.open(file_path, mode, encoding=encoding) as f:
                return await f.read()
        except UnicodeDecodeError:
            continue
    return None


async def read_base64(file_path: Path) -> Optional[str]:
    """Read a binary file and return its base64 text, None if it is empty."""
    raw = await read_file(file_path, "rb")
    if not raw:
        return None
    return base64.b64encode(raw).decode("ascii")


def list_files(root: Path, extension: str) -> List[Path]:
    """Recursive, case-insensitive listing of files with the given extension."""
    extension = extension.lower().lstrip(".")
    return sorted(
        f for f in Path(root).rglob("*")
        if f.is_file() and find_format(f) == extension
    )
