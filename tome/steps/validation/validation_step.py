"""
Web cross-validation step.

Builds one query from the known fields, walks the provider chain until one
returns results, and scores the results against the candidate fields. A `None`
outcome means validation was unavailable (no usable field, or every provider
failed), which is different from a validated-and-mismatched analysis with a
confidence of 0.
"""

from typing import List, Optional

from tome.base_step import PipelineStep
from tome.config import Settings
from tome.model.record import DocumentRecord, is_unknown_author
from tome.model.search import SearchQuery, SearchResponse, ValidationAnalysis
from tome.steps.validation.analysis import analyze_search_results, log_validation_results
from tome.steps.validation.providers import SearchProvider, default_providers


def build_search_query(title: str = "", author: str = "", isbn: str = "", suffix: str = "") -> Optional[SearchQuery]:
    """
    title+author, else title, else author, else isbn; None when nothing is known.
    """
    title = (title or "").strip()
    author = (author or "").strip()
    isbn = (isbn or "").strip()
    tail = f" {suffix}" if suffix else ""

    if title and author:
        text = f'"{title}" "{author}"{tail}'
    elif title:
        text = f'"{title}"{tail}'
    elif author:
        text = f'"{author}"{tail}'
    elif isbn:
        text = f"ISBN {isbn}{tail}"
    else:
        return None
    return SearchQuery(text=text, title=title, author=author, isbn=isbn)


class WebCrossValidator(PipelineStep):

    def __init__(self, settings: Optional[Settings] = None, providers: Optional[List[SearchProvider]] = None):
        super().__init__(settings)
        if providers is None:
            if not self.settings.google_enabled:
                self.logger.info("Google search not configured, skipping it")
            providers = default_providers(
                self.settings.google_api_key,
                self.settings.google_cse_id,
                include_google=self.settings.google_enabled,
            )
        self.providers = providers

    async def search(self, query: SearchQuery) -> Optional[SearchResponse]:
        """First non-empty provider response, None when the whole chain failed."""
        for provider in self.providers:
            if not provider.available:
                self.logger.debug(f"{provider.name} not configured, skipping")
                continue
            response = await provider.search(query)
            if response:
                return response
        self.logger.warning("No web search results found")
        return None

    async def validate(self, title: str = "", author: str = "", isbn: str = "") -> Optional[ValidationAnalysis]:
        # the placeholder author says nothing about the book
        if is_unknown_author(author):
            author = ""

        query = build_search_query(title, author, isbn, self.settings.search_suffix)
        if query is None:
            self.logger.warning("Not enough information for web search")
            return None

        self.logger.info(f"Web search for validation: {query.text}")
        response = await self.search(query)
        if response is None:
            return None

        analysis = analyze_search_results(response, title=title, author=author, isbn=isbn)
        log_validation_results(analysis)
        return analysis

    async def execute(self, record: DocumentRecord) -> Optional[ValidationAnalysis]:
        """Validate the fields of one record."""
        return await self.validate(record.title, record.author, record.isbn)
