"""Inventory persistence: one CSV row per document, keyed by filename."""
import csv
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from tome.logging import get_logger
from tome.model.record import COLUMNS, LEGACY_COLUMNS, DocumentRecord

logger = get_logger(__name__)

DELIMITER = ","
QUOTE = '"'


def serialize_field(value) -> str:
    """Quote-wrap values holding the delimiter, a quote or a line break."""
    text = "" if value is None else str(value)
    if any(char in text for char in (DELIMITER, QUOTE, "\n", "\r")):
        return QUOTE + text.replace(QUOTE, QUOTE * 2) + QUOTE
    return text


def serialize_row(values: Iterable) -> str:
    return DELIMITER.join(serialize_field(value) for value in values)


def parse_row(text: str) -> List[str]:
    """Inverse of `serialize_row` for a single row."""
    return next(csv.reader([text], delimiter=DELIMITER, quotechar=QUOTE), [])


class _LineRecorder:
    """Line iterator remembering the raw text consumed for the current row."""

    def __init__(self, lines: Iterable[str]):
        self._lines = iter(lines)
        self.consumed: List[str] = []

    def __iter__(self):
        return self

    def __next__(self) -> str:
        line = next(self._lines)
        self.consumed.append(line)
        return line

    def take(self) -> str:
        raw = "".join(self.consumed)
        self.consumed = []
        return raw.rstrip("\r\n")


@dataclass
class _Entry:
    loaded: Optional[DocumentRecord]
    current: DocumentRecord
    raw: Optional[str] = None

    @property
    def untouched(self) -> bool:
        return self.raw is not None and self.loaded == self.current


class InventoryStore:
    """Loads and rewrites the inventory CSV.

    The file is read once with `load()` and written once with `save()`. Rows
    whose record did not change are written back exactly as they were read;
    changed rows are replaced in place and new rows are appended.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._entries: Dict[str, _Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, filename: str) -> bool:
        return filename in self._entries

    def load(self) -> int:
        """Load existing rows. A missing or unreadable file yields an empty inventory."""
        self._entries = {}
        if not self.path.exists():
            return 0

        try:
            with open(self.path, "r", encoding="utf-8", newline="") as f:
                self._read(f)
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            logger.warning(f"Cannot read existing inventory {self.path}, starting a new one: {str(e)}")
            self._entries = {}

        logger.info(f"{len(self._entries)} existing entries found in {self.path}")
        return len(self._entries)

    def _read(self, lines: Iterable[str]) -> None:
        recorder = _LineRecorder(lines)
        reader = csv.reader(recorder, delimiter=DELIMITER, quotechar=QUOTE)

        header = next(reader, None)
        recorder.take()
        if not header:
            return
        header = [LEGACY_COLUMNS.get(name.strip(), name.strip()) for name in header]
        # raw rows can only be replayed under the canonical column order
        keep_raw = header == COLUMNS

        for values in reader:
            raw = recorder.take()
            if not any(value.strip() for value in values):
                continue
            record = DocumentRecord.from_row(dict(zip(header, values)))
            if not record.filename:
                continue
            self._entries[record.filename] = _Entry(
                loaded=record,
                current=record.copy(),
                raw=raw if keep_raw else None,
            )

    def get(self, filename: str) -> Optional[DocumentRecord]:
        """Copy of the stored record, safe to mutate."""
        entry = self._entries.get(filename)
        return entry.current.copy() if entry else None

    def upsert(self, record: DocumentRecord) -> None:
        entry = self._entries.get(record.filename)
        if entry:
            entry.current = record.copy()
        else:
            self._entries[record.filename] = _Entry(loaded=None, current=record.copy())

    def changed_count(self) -> int:
        return sum(1 for entry in self._entries.values() if not entry.untouched)

    def render(self) -> str:
        lines = [serialize_row(COLUMNS)]
        for entry in self._entries.values():
            lines.append(entry.raw if entry.untouched else serialize_row(entry.current.to_row()))
        return "\n".join(lines) + "\n"

    def save(self) -> bool:
        """Write the inventory. Failures are logged and reported, never raised."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8", newline="") as f:
                f.write(self.render())
        except OSError as e:
            logger.error(f"Failed to write inventory {self.path}: {str(e)}")
            return False

        logger.info(f"Inventory saved to {self.path}: {len(self)} entries ({self.changed_count()} new or modified)")
        return True
