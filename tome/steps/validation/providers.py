"""
Search providers used to corroborate extracted fields.

Every provider exposes the same capability, `search(query)`, returning a
`SearchResponse` with at least one result or None. A provider never raises:
errors are logged and reported as None so the next provider in the chain can
be tried.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from urllib.parse import quote

from tome.common.http_utils import get_request, head_status
from tome.logging import get_logger
from tome.model.search import SearchQuery, SearchResponse, SearchResult


class SearchProvider(ABC):
    name = "provider"
    timeout: Optional[float] = None

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

    @property
    def available(self) -> bool:
        return True

    @abstractmethod
    async def _search(self, query: SearchQuery) -> List[SearchResult]:
        pass

    async def search(self, query: SearchQuery) -> Optional[SearchResponse]:
        if not self.available:
            return None
        try:
            results = await self._search(query)
        except Exception as e:
            self.logger.warning(f"{self.name} search failed: {str(e)}")
            return None

        if not results:
            self.logger.debug(f"{self.name} returned no results")
            return None

        self.logger.info(f"{len(results)} {self.name} results found")
        return SearchResponse(query=query.text, results=results, source=self.name)


class GoogleSearchProvider(SearchProvider):
    """Google Custom Search JSON API. Needs an API key and a search engine id."""

    name = "Google"
    url = "https://www.googleapis.com/customsearch/v1"

    def __init__(self, api_key: Optional[str], cse_id: Optional[str]):
        super().__init__()
        self.api_key = api_key
        self.cse_id = cse_id

    @property
    def available(self) -> bool:
        return bool(self.api_key and self.cse_id)

    async def _search(self, query: SearchQuery) -> List[SearchResult]:
        params = {
            "key": self.api_key,
            "cx": self.cse_id,
            "q": query.text,
            "num": 5,
            "safe": "active",
        }
        data = await get_request(self.url, params, timeout=self.timeout)
        items = (data or {}).get("items") or []
        return [
            SearchResult(
                title=item.get("title", ""),
                snippet=item.get("snippet", ""),
                link=item.get("link", ""),
                source=self.name,
            )
            for item in items
        ]


class DuckDuckGoProvider(SearchProvider):
    """DuckDuckGo instant answer API: the abstract plus up to 3 related topics."""

    name = "DuckDuckGo"
    url = "https://api.duckduckgo.com/"
    timeout = 10
    max_related = 3

    async def _search(self, query: SearchQuery) -> List[SearchResult]:
        params = {
            "q": query.text,
            "format": "json",
            "no_html": "1",
            "skip_disambig": "1",
        }
        data = await get_request(self.url, params, timeout=self.timeout) or {}

        results = []
        if data.get("Abstract"):
            results.append(SearchResult(
                title=data.get("Heading") or "DuckDuckGo result",
                snippet=data["Abstract"],
                link=data.get("AbstractURL", ""),
                source=self.name,
            ))

        for topic in (data.get("RelatedTopics") or [])[:self.max_related]:
            text = topic.get("Text") if isinstance(topic, dict) else None
            if text:
                results.append(SearchResult(
                    title=text.split(" - ")[0] or "Related result",
                    snippet=text,
                    link=topic.get("FirstURL", ""),
                    source=self.name,
                ))
        return results


class SerpApiProvider(SearchProvider):
    """SerpAPI Google engine with the public demo key."""

    name = "SerpAPI"
    url = "https://serpapi.com/search"
    timeout = 15
    demo_key = "demo"

    async def _search(self, query: SearchQuery) -> List[SearchResult]:
        params = {
            "q": query.text,
            "engine": "google",
            "api_key": self.demo_key,
            "num": 5,
        }
        data = await get_request(self.url, params, timeout=self.timeout)
        items = (data or {}).get("organic_results") or []
        return [
            SearchResult(
                title=item.get("title", ""),
                snippet=item.get("snippet", ""),
                link=item.get("link", ""),
                source=self.name,
            )
            for item in items
        ]


CATALOG_SITES = (
    ("Bedetheque", "https://www.bedetheque.com/serie-{title}.html"),
    ("ComicVine", "https://comicvine.gamespot.com/search/?header=1&q={title}%20{author}"),
    ("Goodreads", "https://www.goodreads.com/search?q={title}%20{author}%20comic"),
)


class CatalogSiteProvider(SearchProvider):
    """
    Existence probe against comic cataloging sites.

    Sends a HEAD request per site and reports every page answering 200. This
    says nothing about the page content; the result title echoes the candidate
    title so a hit always counts as a title match.
    """

    name = "Catalog sites"
    timeout = 5

    def __init__(self, sites=CATALOG_SITES):
        super().__init__()
        self.sites = sites

    async def _search(self, query: SearchQuery) -> List[SearchResult]:
        if not (query.title or query.author):
            return []

        results = []
        for site_name, template in self.sites:
            url = template.format(title=quote(query.title), author=quote(query.author))
            status = await head_status(url, timeout=self.timeout)
            if status == 200:
                results.append(SearchResult(
                    title=f"{query.title} - {site_name}",
                    snippet=f"Page found on {site_name}",
                    link=url,
                    source=site_name,
                ))
        return results


def default_providers(
    google_api_key: Optional[str] = None,
    google_cse_id: Optional[str] = None,
    include_google: bool = True,
) -> List[SearchProvider]:
    """Providers in priority order."""
    providers: List[SearchProvider] = [DuckDuckGoProvider(), SerpApiProvider(), CatalogSiteProvider()]
    if include_google:
        providers.insert(0, GoogleSearchProvider(google_api_key, google_cse_id))
    return providers
