"""Document handle passed between the extractors."""

from pathlib import Path
from typing import Dict, Any
from dataclasses import dataclass, field


@dataclass
class Document:
    """
    Handle on one scanned file found under the source directory.

    The extractors never hold the file open; they only receive this handle and
    open the file themselves when they need to.
    """

    file_path: Path
    file_format: str = "pdf"
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __hash__(self):
        return hash(self.file_path)

    def __eq__(self, other):
        return isinstance(other, Document) and self.file_path == other.file_path

    @property
    def filename(self) -> str:
        """Get the filename without path. Used as inventory key."""
        return self.file_path.name

    @property
    def stem(self) -> str:
        """Get the filename without path and extension."""
        return self.file_path.stem

    def add_metadata(self, key: str, value: Any) -> None:
        """Add a metadata entry."""
        self.metadata[key] = value

    def get_metadata(self, key: str, default: Any = None) -> Any:
        """Get a metadata value with optional default."""
        return self.metadata.get(key, default)

    @classmethod
    def from_path(cls, file_path: Path, **metadata) -> "Document":
        """Create a Document from a file path."""
        file_path = Path(file_path)
        return cls(
            file_path=file_path,
            file_format=file_path.suffix.lstrip(".").lower(),
            metadata=metadata,
        )

    def __str__(self) -> str:
        return f"Document({self.filename}, {self.file_format} format)"

    def __repr__(self) -> str:
        return f"Document(file_path={self.file_path}, format={self.file_format}, metadata_keys={list(self.metadata.keys())})"
