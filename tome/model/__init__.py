"""Data model shared by the extractors, the fusion engine and the inventory."""

from tome.model.document import Document
from tome.model.record import (
    COLUMNS,
    UNKNOWN_AUTHOR,
    DocumentRecord,
    ExtractionResult,
    PageAttempt,
)

__all__ = [
    "COLUMNS",
    "UNKNOWN_AUTHOR",
    "Document",
    "DocumentRecord",
    "ExtractionResult",
    "PageAttempt",
]
