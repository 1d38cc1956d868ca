"""
Filename heuristics for title and author.

The cleaned filename is tested against an ordered list of patterns, first match
wins. Each pattern reads its first capture group as the author and its second
as the title. For `title_par_author` and `title_paren_author` this is the
reverse of what their names suggest ("Asterix par Uderzo" gives author
"Asterix"); the order is kept as is until the intended reading is confirmed.
"""

from dataclasses import dataclass
from typing import Optional, Pattern, Tuple

from tome.common.regex_patterns import (
    AUTHOR_DASH_TITLE_PATTERN,
    AUTHOR_DASH_TITLE_TOME_PATTERN,
    FILENAME_JUNK_PATTERN,
    SPACED_DASH_PATTERN,
    TITLE_PAR_AUTHOR_PATTERN,
    TITLE_PAREN_AUTHOR_PATTERN,
)
from tome.model.document import Document
from tome.model.record import UNKNOWN_AUTHOR, ExtractionResult
from tome.steps.metadata.extractors.base_extractor import BaseMetadataExtractor
from tome.utils import collapse_whitespace


@dataclass(frozen=True)
class FilenamePattern:
    name: str
    pattern: Pattern[str]

    def match(self, clean_name: str) -> Optional[Tuple[str, str]]:
        """Return (author, title) from groups 1 and 2, or None."""
        found = self.pattern.match(clean_name)
        if not found:
            return None
        return found.group(1).strip(), found.group(2).strip()


FILENAME_PATTERNS = (
    FilenamePattern("author_dash_title", AUTHOR_DASH_TITLE_PATTERN),
    FilenamePattern("title_par_author", TITLE_PAR_AUTHOR_PATTERN),
    FilenamePattern("title_paren_author", TITLE_PAREN_AUTHOR_PATTERN),
    # shadowed by author_dash_title, which matches any dashed name first
    FilenamePattern("author_dash_title_tome", AUTHOR_DASH_TITLE_TOME_PATTERN),
)


def clean_filename(stem: str) -> str:
    """
    Normalize a filename stem.

    Underscores and hyphens become spaces, except a dash surrounded by
    whitespace which is kept as the " - " separator. Whitespace is collapsed.
    """
    parts = SPACED_DASH_PATTERN.split(stem.replace("_", " "))
    cleaned = " - ".join(FILENAME_JUNK_PATTERN.sub(" ", part) for part in parts)
    return collapse_whitespace(cleaned)


def parse_filename(stem: str) -> Tuple[str, str, Optional[str]]:
    """
    Guess author and title from a filename stem.

    Returns:
        (author, title, name of the matching pattern or None)
    """
    clean_name = clean_filename(stem)
    for rule in FILENAME_PATTERNS:
        matched = rule.match(clean_name)
        if matched:
            author, title = matched
            return author, title, rule.name
    return UNKNOWN_AUTHOR, clean_name, None


class FilenameMetadataExtractor(BaseMetadataExtractor):
    """Guesses title and author from the document filename. Never fails."""

    source = "filename"

    async def extract_metadata(self, document: Document) -> Optional[ExtractionResult]:
        author, title, rule = parse_filename(document.stem)
        if rule:
            self.logger.debug(f"Filename {document.filename} matched pattern {rule}")
        else:
            self.logger.debug(f"Filename {document.filename} matched no pattern")

        result = ExtractionResult(source=self.source, title=title, author=author)
        return self._finalize_metadata(result, document)
