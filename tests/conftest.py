"""Pytest configuration and fixtures for tome tests."""

import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from tome.config import Settings
from tome.logging import set_log_level
from tome.model.document import Document
from tome.model.record import DocumentRecord


@pytest.fixture(scope="session", autouse=True)
def setup_test_logging():
    """Set up logging for tests."""
    set_log_level("DEBUG")


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep credentials from the developer shell out of the tests."""
    for name in (
        "SOURCE_DIR",
        "INVENTORY_PATH",
        "ANTHROPIC_API_KEY",
        "CLAUDE_API_KEY",
        "VISION_MODEL",
        "GOOGLE_API_KEY",
        "GOOGLE_CSE_ID",
        "ENABLE_WEB_VALIDATION",
        "LOG_LEVEL",
        "LOG_FILE",
        "TOME_CONFIG",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def settings(temp_dir) -> Settings:
    """Offline settings: no vision key, no web validation."""
    return Settings(
        source_dir=temp_dir / "comics",
        inventory_path=temp_dir / "inventory.csv",
        enable_web_validation=False,
    )


@pytest.fixture
def vision_settings(settings) -> Settings:
    return settings.model_copy(update={"anthropic_api_key": "sk-test"})


@pytest.fixture
def sample_document() -> Document:
    return Document.from_path(Path("/library/Goscinny - Asterix le Gaulois.pdf"))


@pytest.fixture
def resolved_record() -> DocumentRecord:
    return DocumentRecord(
        filename="asterix.pdf",
        title="Astérix le Gaulois",
        author="René Goscinny",
        series="Astérix",
        volume="1",
        isbn="978-2-01-210001-6",
        confidence=85,
        page_analyzed=2,
        analysis_timestamp="2024-01-15T10:00:00+00:00",
    )
