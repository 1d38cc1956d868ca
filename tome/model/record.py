"""Inventory records and the per-strategy extraction results merged into them."""

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

UNKNOWN_AUTHOR = "Unknown"

# placeholder written by the first (French) version of the inventory
LEGACY_UNKNOWN_AUTHORS = ("Auteur Inconnu",)

COLUMNS = [
    "filename",
    "title",
    "author",
    "series",
    "volume",
    "isbn",
    "confidence",
    "page_analyzed",
    "analysis_timestamp",
]

TEXT_FIELDS = ("title", "author", "series", "volume", "isbn", "analysis_timestamp")

# headers written by the first (French) version of the inventory
LEGACY_COLUMNS = {
    "Nom du fichier": "filename",
    "Titre": "title",
    "Auteur": "author",
    "Série": "series",
    "Numéro": "volume",
    "ISBN": "isbn",
    "Confiance": "confidence",
    "Page": "page_analyzed",
    "Date d'analyse": "analysis_timestamp",
}


def clamp_confidence(value) -> Optional[int]:
    """Coerce a raw confidence value to an int in [0, 100], or None when unusable."""
    if value is None or value == "":
        return None
    try:
        # half-up, 72.5 -> 73
        number = math.floor(float(value) + 0.5)
    except (TypeError, ValueError, OverflowError):
        return None
    return max(0, min(100, number))


def is_unknown_author(author: str) -> bool:
    author = author.strip()
    return not author or author == UNKNOWN_AUTHOR or author in LEGACY_UNKNOWN_AUTHORS


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class PageAttempt(Enum):
    """Last page sent to visual analysis, as stored in the inventory."""

    NOT_TRIED = 0
    PAGE_2 = 2
    PAGE_1 = 1
    PAGE_3 = 3

    @classmethod
    def from_stored(cls, value) -> "PageAttempt":
        if value is None or value == "":
            return cls.NOT_TRIED
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            # unrecognised marker, start the rotation over
            return cls.NOT_TRIED

    def next_page(self) -> Optional[int]:
        """Page to analyze on the next attempt, None once every page was tried."""
        return _NEXT_PAGE[self]

    @property
    def exhausted(self) -> bool:
        return self.next_page() is None


_NEXT_PAGE = {
    PageAttempt.NOT_TRIED: 2,
    PageAttempt.PAGE_2: 1,
    PageAttempt.PAGE_1: 3,
    PageAttempt.PAGE_3: None,
}


@dataclass
class ExtractionResult:
    """Candidate fields produced by a single extraction strategy."""

    source: str
    title: str = ""
    author: str = ""
    series: str = ""
    volume: str = ""
    isbn: str = ""
    confidence: Optional[int] = None
    notes: str = ""

    def is_empty(self) -> bool:
        return not any([self.title, self.author, self.series, self.volume, self.isbn])

    def identified_fields(self) -> Dict[str, str]:
        """Non-empty bibliographic fields, keyed by record attribute name."""
        values = {
            "title": self.title,
            "author": self.author,
            "series": self.series,
            "volume": self.volume,
            "isbn": self.isbn,
        }
        return {key: value for key, value in values.items() if value}


@dataclass
class DocumentRecord:
    """One inventory row. Owned by the fusion engine while a run is in progress."""

    filename: str
    title: str = ""
    author: str = ""
    series: str = ""
    volume: str = ""
    isbn: str = ""
    confidence: Optional[int] = None
    page_analyzed: Optional[int] = None
    analysis_timestamp: str = ""
    sources: List[str] = field(default_factory=list, compare=False)

    def is_resolved(self) -> bool:
        return bool(self.title.strip()) and not is_unknown_author(self.author)

    def needs_visual_analysis(self) -> bool:
        return not self.is_resolved()

    def has_known_fields(self) -> bool:
        return bool(self.title or self.author or self.isbn)

    @property
    def page_attempt(self) -> PageAttempt:
        return PageAttempt.from_stored(self.page_analyzed)

    def raise_confidence(self, value) -> bool:
        """Set confidence to max(current, value). Returns True when the stored value changed."""
        value = clamp_confidence(value)
        if value is None:
            return False
        if self.confidence is None or value > self.confidence:
            self.confidence = value
            return True
        return False

    def fill_missing(self, result: ExtractionResult, keys=("title", "author", "isbn")) -> List[str]:
        """Copy fields from `result` only where this record is still empty."""
        filled = []
        for key in keys:
            value = getattr(result, key)
            if value and not getattr(self, key):
                setattr(self, key, value)
                filled.append(key)
        if filled:
            self.sources.append(result.source)
        return filled

    def overwrite_with(self, result: ExtractionResult) -> List[str]:
        """Write every non-empty field of `result` verbatim over the current values."""
        written = []
        for key, value in result.identified_fields().items():
            setattr(self, key, value)
            written.append(key)
        if written:
            self.sources.append(result.source)
        return written

    def copy(self) -> "DocumentRecord":
        return replace(self, sources=list(self.sources))

    def touch(self) -> None:
        self.analysis_timestamp = utc_timestamp()

    def to_row(self) -> List[str]:
        return [
            self.filename,
            self.title,
            self.author,
            self.series,
            self.volume,
            self.isbn,
            "" if self.confidence is None else str(self.confidence),
            "" if self.page_analyzed is None else str(self.page_analyzed),
            self.analysis_timestamp,
        ]

    @classmethod
    def from_row(cls, row: Dict[str, str]) -> "DocumentRecord":
        """Build a record from a header-keyed row. Legacy headers are accepted."""
        values = {}
        for header, value in row.items():
            if header is None:
                continue
            key = LEGACY_COLUMNS.get(header, header)
            values[key] = value if value is not None else ""

        page = values.get("page_analyzed", "")
        try:
            page_analyzed = int(page) if page != "" else None
        except ValueError:
            page_analyzed = None

        return cls(
            filename=values.get("filename", ""),
            confidence=clamp_confidence(values.get("confidence")),
            page_analyzed=page_analyzed,
            **{name: values.get(name, "") for name in TEXT_FIELDS},
        )
