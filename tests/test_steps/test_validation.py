"""Tests for web cross-validation: providers, scoring and the provider chain."""

from typing import List
from unittest.mock import AsyncMock, patch

import pytest

from tome.model.search import SearchQuery, SearchResponse, SearchResult
from tome.steps.validation.analysis import analyze_search_results, words_match
from tome.steps.validation.providers import (
    CatalogSiteProvider,
    DuckDuckGoProvider,
    GoogleSearchProvider,
    SearchProvider,
    default_providers,
)
from tome.steps.validation.validation_step import WebCrossValidator, build_search_query


class FakeProvider(SearchProvider):

    def __init__(self, name, results=None, error=None, available=True):
        super().__init__()
        self.name = name
        self.results = results or []
        self.error = error
        self._available = available
        self.queries: List[SearchQuery] = []

    @property
    def available(self) -> bool:
        return self._available

    async def _search(self, query):
        self.queries.append(query)
        if self.error:
            raise self.error
        return self.results


def _result(title, snippet, source="fake"):
    return SearchResult(title=title, snippet=snippet, link="https://example.org", source=source)


class TestBuildSearchQuery:

    def test_title_and_author(self):
        query = build_search_query("Astérix", "René Goscinny", "978-2-86497-133-4", "bande dessinée")

        assert query.text == '"Astérix" "René Goscinny" bande dessinée'

    def test_title_only(self):
        assert build_search_query("Maus", "", "", "bande dessinée").text == '"Maus" bande dessinée'

    def test_author_only(self):
        assert build_search_query("", "Hergé").text == '"Hergé"'

    def test_isbn_only(self):
        assert build_search_query("", "", "978-2-203-00105-3", "bd").text == "ISBN 978-2-203-00105-3 bd"

    def test_nothing_known(self):
        assert build_search_query("  ", "", "") is None


class TestAnalyzeSearchResults:

    def test_title_and_author_match(self):
        response = SearchResponse(
            query="q",
            results=[_result("Astérix le Gaulois - Bedetheque", "Album de René Goscinny et Albert Uderzo")],
            source="Google",
        )

        analysis = analyze_search_results(
            response, title="Astérix le Gaulois", author="René Goscinny", isbn="978-2-86497-133-4"
        )

        assert analysis.title_match is True
        assert analysis.author_match is True
        assert analysis.isbn_match is False
        assert analysis.confidence == 80
        assert analysis.source == "Google"

    def test_isbn_without_separators(self):
        response = SearchResponse(query="q", results=[_result("Persepolis", "ISBN 9782203001053")], source="Google")

        analysis = analyze_search_results(response, isbn="978-2-203-00105-3")

        assert analysis.isbn_match is True
        assert analysis.confidence == 20

    def test_no_match(self):
        response = SearchResponse(query="q", results=[_result("Cooking recipes", "Pasta and sauces")], source="Google")

        analysis = analyze_search_results(response, title="Blacksad", author="Juan Diaz Canales")

        assert analysis.confidence == 0
        assert analysis.matches == []

    def test_suggestions(self):
        response = SearchResponse(
            query="q",
            results=[_result("Tintin", 'Le classique "Tintin au Tibet" par Herge')],
            source="Google",
        )

        analysis = analyze_search_results(response, title="Tintin", author="")

        assert "Tintin au Tibet" in analysis.suggestions
        assert "Herge" in analysis.suggestions

    def test_half_of_the_words_is_enough(self):
        assert words_match("Blake Mortimer Marque Jaune", "blake et mortimer")
        assert not words_match("Blake Mortimer Marque Jaune", "blake")
        assert not words_match("", "anything")


class TestProviders:

    @pytest.mark.asyncio
    async def test_google_needs_credentials(self):
        provider = GoogleSearchProvider(api_key=None, cse_id="cx")

        assert provider.available is False
        assert await provider.search(SearchQuery(text="q")) is None

    @pytest.mark.asyncio
    async def test_google_results(self):
        provider = GoogleSearchProvider(api_key="key", cse_id="cx")
        data = {"items": [{"title": "Maus", "snippet": "Art Spiegelman", "link": "https://example.org/maus"}]}

        with patch("tome.steps.validation.providers.get_request", new=AsyncMock(return_value=data)) as mock_get:
            response = await provider.search(SearchQuery(text='"Maus"'))

        assert response.source == "Google"
        assert response.results[0].snippet == "Art Spiegelman"
        params = mock_get.call_args[0][1]
        assert params["cx"] == "cx"
        assert params["num"] == 5
        assert params["safe"] == "active"

    @pytest.mark.asyncio
    async def test_duckduckgo_abstract_and_topics(self):
        data = {
            "Heading": "Persepolis",
            "Abstract": "Persepolis is a graphic novel by Marjane Satrapi.",
            "AbstractURL": "https://example.org/persepolis",
            "RelatedTopics": [
                {"Text": "Marjane Satrapi - Iranian author", "FirstURL": "https://example.org/1"},
                {"Name": "Category", "Topics": []},
                {"Text": "Persepolis (film) - 2007 film", "FirstURL": "https://example.org/2"},
                {"Text": "Chicken with Plums - novel", "FirstURL": "https://example.org/3"},
            ],
        }

        with patch("tome.steps.validation.providers.get_request", new=AsyncMock(return_value=data)) as mock_get:
            response = await DuckDuckGoProvider().search(SearchQuery(text="Persepolis"))

        assert [r.title for r in response.results] == ["Persepolis", "Marjane Satrapi", "Persepolis (film)"]
        assert mock_get.call_args.kwargs["timeout"] == 10

    @pytest.mark.asyncio
    async def test_duckduckgo_empty_answer(self):
        with patch("tome.steps.validation.providers.get_request", new=AsyncMock(return_value={"Abstract": ""})):
            assert await DuckDuckGoProvider().search(SearchQuery(text="q")) is None

    @pytest.mark.asyncio
    async def test_catalog_sites_report_found_pages(self):
        query = SearchQuery(text="q", title="Blacksad", author="Juan Diaz Canales")

        with patch(
            "tome.steps.validation.providers.head_status",
            new=AsyncMock(side_effect=[200, 404, None]),
        ):
            response = await CatalogSiteProvider().search(query)

        assert len(response.results) == 1
        assert response.results[0].title == "Blacksad - Bedetheque"
        assert response.results[0].snippet == "Page found on Bedetheque"

    @pytest.mark.asyncio
    async def test_catalog_sites_need_title_or_author(self):
        with patch("tome.steps.validation.providers.head_status", new=AsyncMock()) as mock_head:
            assert await CatalogSiteProvider().search(SearchQuery(text="ISBN 1", isbn="1")) is None

        mock_head.assert_not_called()

    def test_default_provider_order(self):
        names = [p.name for p in default_providers()]

        assert names == ["Google", "DuckDuckGo", "SerpAPI", "Catalog sites"]


class TestWebCrossValidator:

    def test_google_left_out_without_credentials(self, settings):
        names = [p.name for p in WebCrossValidator(settings).providers]

        assert names == ["DuckDuckGo", "SerpAPI", "Catalog sites"]

    def test_google_first_when_configured(self, settings):
        settings = settings.model_copy(update={"google_api_key": "key", "google_cse_id": "cx"})

        providers = WebCrossValidator(settings).providers

        assert providers[0].name == "Google"
        assert providers[0].available is True

    @pytest.mark.asyncio
    async def test_falls_through_failing_providers(self, settings):
        broken = FakeProvider("broken", error=RuntimeError("connection reset"))
        empty = FakeProvider("empty")
        working = FakeProvider("working", results=[_result("Tintin au Tibet", "Hergé, Casterman")])
        validator = WebCrossValidator(settings, providers=[broken, empty, working])

        analysis = await validator.validate("Tintin au Tibet", "Hergé")

        assert analysis.source == "working"
        assert analysis.confidence == 80
        assert len(broken.queries) == 1
        assert len(empty.queries) == 1

    @pytest.mark.asyncio
    async def test_unavailable_providers_are_skipped(self, settings):
        unconfigured = FakeProvider("unconfigured", results=[_result("x", "y")], available=False)
        working = FakeProvider("working", results=[_result("Maus", "Art Spiegelman")])
        validator = WebCrossValidator(settings, providers=[unconfigured, working])

        analysis = await validator.validate("Maus", "Art Spiegelman")

        assert analysis.source == "working"
        assert unconfigured.queries == []

    @pytest.mark.asyncio
    async def test_every_provider_failing(self, settings):
        validator = WebCrossValidator(settings, providers=[FakeProvider("a"), FakeProvider("b")])

        assert await validator.validate("Maus", "Art Spiegelman") is None

    @pytest.mark.asyncio
    async def test_unknown_author_is_left_out_of_the_query(self, settings):
        provider = FakeProvider("working", results=[_result("Tintin", "Hergé")])
        validator = WebCrossValidator(settings, providers=[provider])

        await validator.validate("Tintin", "Unknown")

        assert provider.queries[0].text == '"Tintin" bande dessinée'

    @pytest.mark.asyncio
    async def test_nothing_to_search(self, settings):
        provider = FakeProvider("working", results=[_result("x", "y")])
        validator = WebCrossValidator(settings, providers=[provider])

        assert await validator.validate("", "Unknown", "") is None
        assert provider.queries == []
