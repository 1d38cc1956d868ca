"""Scoring of search results against the candidate fields."""

import math
from typing import List

from tome.common.regex_patterns import AUTHOR_MENTION_PATTERN, ISBN_SEPARATOR_PATTERN, QUOTED_TITLE_PATTERN
from tome.logging import get_logger
from tome.model.search import SearchResponse, ValidationAnalysis

logger = get_logger(__name__)

TITLE_WEIGHT = 40
AUTHOR_WEIGHT = 40
ISBN_WEIGHT = 20


def significant_words(text: str) -> List[str]:
    return [word for word in text.lower().split() if len(word) > 2]


def words_match(text: str, corpus: str) -> bool:
    """True when at least half of the significant words (min. 1) occur in the corpus."""
    if not text:
        return False
    words = significant_words(text)
    found = sum(1 for word in words if word in corpus)
    return found >= max(1, math.ceil(0.5 * len(words)))


def isbn_matches(isbn: str, corpus: str) -> bool:
    if not isbn:
        return False
    isbn = isbn.lower()
    return ISBN_SEPARATOR_PATTERN.sub("", isbn) in corpus or isbn in corpus


def analyze_search_results(response: SearchResponse, title: str = "", author: str = "", isbn: str = "") -> ValidationAnalysis:
    """
    Score how well the search results corroborate the candidate fields.

    confidence = 40 * title_match + 40 * author_match + 20 * isbn_match
    """
    corpus = response.corpus()
    analysis = ValidationAnalysis(source=response.source)

    analysis.title_match = words_match(title, corpus)
    analysis.author_match = words_match(author, corpus)
    analysis.isbn_match = isbn_matches(isbn, corpus)
    analysis.confidence = (
        TITLE_WEIGHT * analysis.title_match
        + AUTHOR_WEIGHT * analysis.author_match
        + ISBN_WEIGHT * analysis.isbn_match
    )

    for result in response.results:
        text = f"{result.title} {result.snippet}"
        for quoted in QUOTED_TITLE_PATTERN.findall(text):
            if quoted != title:
                analysis.add_suggestion(quoted)
        for name in AUTHOR_MENTION_PATTERN.findall(text):
            if name != author:
                analysis.add_suggestion(name)

    return analysis


def log_validation_results(analysis: ValidationAnalysis, max_suggestions: int = 3) -> None:
    if analysis.matches:
        logger.info(f"Validation matches: {', '.join(analysis.matches)} (via {analysis.source})")
    else:
        logger.warning(f"No validation match (via {analysis.source})")

    if analysis.confidence >= 60:
        logger.success(f"Validation confidence: {analysis.confidence}%")
    elif analysis.confidence >= 30:
        logger.info(f"Validation confidence: {analysis.confidence}%")
    else:
        logger.warning(f"Validation confidence: {analysis.confidence}%")

    for suggestion in analysis.suggestions[:max_suggestions]:
        logger.info(f"Suggestion: {suggestion}")
