"""Search results and the validation analysis computed from them."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class SearchQuery:
    """Query text plus the candidate fields it was built from."""

    text: str
    title: str = ""
    author: str = ""
    isbn: str = ""


@dataclass
class SearchResult:
    title: str
    snippet: str
    link: str = ""
    source: str = ""


@dataclass
class SearchResponse:
    query: str
    results: List[SearchResult]
    source: str

    def corpus(self) -> str:
        """All result titles and snippets, lowercased, as one searchable text."""
        return " ".join(f"{r.title} {r.snippet}".lower() for r in self.results)


@dataclass
class ValidationAnalysis:
    title_match: bool = False
    author_match: bool = False
    isbn_match: bool = False
    confidence: int = 0
    suggestions: List[str] = field(default_factory=list)
    source: Optional[str] = None

    def add_suggestion(self, value: str) -> None:
        if value and value not in self.suggestions:
            self.suggestions.append(value)

    @property
    def matches(self) -> List[str]:
        names = []
        if self.title_match:
            names.append("title")
        if self.author_match:
            names.append("author")
        if self.isbn_match:
            names.append("isbn")
        return names
