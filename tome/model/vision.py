"""Schema of the JSON object the vision model is asked to return."""

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _blank_to_none(value):
    if isinstance(value, str):
        value = value.strip()
        if not value or value.lower() in {"null", "none", "n/a", "inconnu", "unknown"}:
            return None
    return value


def _text_or_none(value):
    """Numbers become text (300 -> "300", 1.0 -> "1"); blanks and placeholders become None."""
    if _is_number(value):
        value = str(int(value)) if float(value).is_integer() else str(value)
    return _blank_to_none(value)


def _number_or_none(value):
    """'85', '85%' and 85 are all 85.0; anything else non-numeric is dropped."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip().rstrip("%").strip().replace(",", ".")
        try:
            return float(text)
        except ValueError:
            return None
    return value


class _Block(BaseModel):
    model_config = ConfigDict(extra="ignore")


class TitleBlock(_Block):
    main: Optional[str] = None
    subtitle: Optional[str] = None
    series: Optional[str] = None
    volume: Optional[str] = None

    @field_validator("main", "subtitle", "series", "volume", mode="before")
    @classmethod
    def as_text(cls, v):
        return _text_or_none(v)


class Creator(_Block):
    name: Optional[str] = None
    role: Optional[str] = None

    @field_validator("name", "role", mode="before")
    @classmethod
    def as_text(cls, v):
        return _text_or_none(v)


class Creators(_Block):
    authors: List[Creator] = Field(default_factory=list)
    publisher: Optional[str] = None

    @field_validator("authors", mode="before")
    @classmethod
    def coerce_authors(cls, v):
        """Accept bare names and a single entry in place of a list."""
        if v is None:
            return []
        if isinstance(v, (str, dict)) or _is_number(v):
            v = [v]
        return [{"name": item} if isinstance(item, str) or _is_number(item) else item for item in v if item]

    @field_validator("publisher", mode="before")
    @classmethod
    def as_text(cls, v):
        return _text_or_none(v)


class PublicationInfo(_Block):
    language: Optional[str] = None
    isbn: Optional[str] = None
    price: Optional[str] = None

    @field_validator("language", "isbn", "price", mode="before")
    @classmethod
    def as_text(cls, v):
        return _text_or_none(v)


class ConfidenceBlock(_Block):
    title: Optional[float] = None
    authors: Optional[float] = None
    overall: Optional[float] = None

    @field_validator("title", "authors", "overall", mode="before")
    @classmethod
    def numeric(cls, v):
        return _number_or_none(v)


class VisionResponse(_Block):
    """
    Structured reply of the cover analysis prompt.

    `title` and `confidence` are normally nested objects but the model sometimes
    answers with the flat legacy shape ({"title": "...", "author": "...",
    "confidence": 80}); both shapes validate.
    """

    title: Optional[Union[TitleBlock, str]] = None
    author: Optional[str] = None
    creators: Creators = Field(default_factory=Creators)
    metadata: PublicationInfo = Field(default_factory=PublicationInfo)
    confidence: Optional[Union[float, ConfidenceBlock]] = None
    notes: Optional[str] = None

    @field_validator("title", "author", "notes", mode="before")
    @classmethod
    def as_text(cls, v):
        if isinstance(v, dict):
            return v
        return _text_or_none(v)

    @field_validator("confidence", mode="before")
    @classmethod
    def numeric_confidence(cls, v):
        if isinstance(v, dict):
            return v
        return _number_or_none(v)

    @field_validator("creators", "metadata", mode="before")
    @classmethod
    def null_block(cls, v, info):
        if v is None:
            return Creators() if info.field_name == "creators" else PublicationInfo()
        return v

    @property
    def title_block(self) -> TitleBlock:
        if isinstance(self.title, TitleBlock):
            return self.title
        return TitleBlock(main=self.title)
