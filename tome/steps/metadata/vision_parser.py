"""
Parsing of the free-text reply returned by the vision model.

The reply is expected to embed one JSON object but often wraps it in prose or
markdown fences. Parsing is split in two explicit branches:

1. `find_json_block` scans for the first balanced `{...}` block and
   `VisionResponse` validates it against the strict schema.
2. When there is no block, or it does not validate, `scrape_vision_reply`
   pulls bare `title`/`author` tokens with a fixed low confidence.

`resolve_vision_response` then turns the nested schema into flat record fields.
"""

from statistics import mean
from typing import Iterable, List, Optional

from pydantic import ValidationError

from tome.common.regex_patterns import SCRAPE_AUTHOR_PATTERN, SCRAPE_TITLE_PATTERN, WORD_PATTERN
from tome.logging import get_logger
from tome.model.record import ExtractionResult, clamp_confidence
from tome.model.vision import Creator, VisionResponse

logger = get_logger(__name__)

DEFAULT_CONFIDENCE = 50
SCRAPE_CONFIDENCE = 50

# substrings of a creator role that designate the author of the book
AUTHOR_ROLE_TERMS = (
    "scénar",
    "scenar",
    "dessin",
    "auteur",
    "author",
    "writer",
    "script",
    "artist",
    "illustr",
    "drawing",
    "story",
)
# whole words only, "art" would otherwise match "cartographe"
AUTHOR_ROLE_WORDS = ("art",)


def find_json_block(text: str) -> Optional[str]:
    """
    Return the first balanced `{...}` block of `text`, or None.

    Braces inside JSON strings are ignored. An unterminated block is not a
    match; scanning resumes after its opening brace.
    """
    if not text:
        return None

    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start:index + 1]
        start = text.find("{", start + 1)
    return None


def is_author_role(role: Optional[str]) -> bool:
    """Entries without a role count as authors."""
    if not role:
        return True
    lowered = role.lower()
    if any(term in lowered for term in AUTHOR_ROLE_TERMS):
        return True
    return any(word in AUTHOR_ROLE_WORDS for word in WORD_PATTERN.findall(lowered))


def join_author_names(creators: Iterable[Creator]) -> str:
    names: List[str] = []
    for creator in creators:
        if creator.name and is_author_role(creator.role) and creator.name not in names:
            names.append(creator.name)
    return ", ".join(names)


def resolve_confidence(response: VisionResponse) -> int:
    """numeric top-level value > overall > mean(title, authors) > default."""
    confidence = response.confidence
    if isinstance(confidence, (int, float)):
        return clamp_confidence(confidence)
    if confidence is not None:
        if confidence.overall is not None:
            return clamp_confidence(confidence.overall)
        partial = [value for value in (confidence.title, confidence.authors) if value is not None]
        if partial:
            return clamp_confidence(mean(partial))
    return DEFAULT_CONFIDENCE


def resolve_title(response: VisionResponse) -> str:
    block = response.title_block
    if block.main:
        title = block.main
        if block.subtitle:
            title += " - " + block.subtitle
        if block.volume:
            title += " (Tome " + block.volume + ")"
        return title
    return block.subtitle or block.series or ""


def fix_series_as_author(result: ExtractionResult) -> ExtractionResult:
    """The model sometimes puts the author's name in the series field."""
    if result.series and not result.author:
        logger.debug(f"Moving series '{result.series}' to author")
        result.author = result.series
        result.series = ""
    return result


def resolve_vision_response(response: VisionResponse, source: str = "vision") -> ExtractionResult:
    block = response.title_block
    author = join_author_names(response.creators.authors) or (response.author or "")
    result = ExtractionResult(
        source=source,
        title=resolve_title(response),
        author=author,
        series=block.series or "",
        volume=block.volume or "",
        isbn=response.metadata.isbn or "",
        confidence=resolve_confidence(response),
        notes=response.notes or "",
    )
    return fix_series_as_author(result)


def scrape_vision_reply(text: str, source: str = "vision_scrape") -> ExtractionResult:
    title = SCRAPE_TITLE_PATTERN.search(text)
    author = SCRAPE_AUTHOR_PATTERN.search(text)
    return ExtractionResult(
        source=source,
        title=title.group(1).strip() if title else "",
        author=author.group(1).strip() if author else "",
        confidence=SCRAPE_CONFIDENCE,
    )


def parse_vision_reply(text: str) -> ExtractionResult:
    """Parse a raw reply into flat fields, falling back to token scraping."""
    block = find_json_block(text)
    if block is not None:
        try:
            response = VisionResponse.model_validate_json(block)
        except ValidationError as e:
            logger.warning(f"Vision reply JSON does not match the expected schema: {e.error_count()} errors")
        else:
            return resolve_vision_response(response)
    else:
        logger.warning("No JSON object found in vision reply")

    return scrape_vision_reply(text)
