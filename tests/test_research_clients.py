"""
Tests for the web search client, the page fetcher and recommended sources.

HTTP is mocked at the requests.Session level.
"""

from unittest.mock import MagicMock

import pytest
import requests

from community_researcher.errors import NoResultsError, SearchUnconfiguredError
from community_researcher.research.fetch import MAX_CONTENT_CHARS, extract_page, fetch_page, fetch_pages
from community_researcher.research.search import (
    SEARCH_ENDPOINT,
    SourceTier,
    WebResearchClient,
    build_query_variants,
)
from community_researcher.research.sources import recommended_sources
from community_researcher.schemas.state import ResearchProgress


def _response(items=None, status_error=None):
    response = MagicMock()
    response.json.return_value = {"items": items} if items is not None else {}
    if status_error:
        response.raise_for_status.side_effect = status_error
    return response


def _items(prefix, count):
    return [
        {"title": f"{prefix} {i}", "link": f"https://{prefix}.example.org/{i}", "snippet": f"snippet {i}"}
        for i in range(count)
    ]


def _client(*responses):
    session = MagicMock()
    session.get.side_effect = list(responses)
    return WebResearchClient("key", "engine", session=session), session


# ═══════════════════════════════════════════════════════════════
# SEARCH
# ═══════════════════════════════════════════════════════════════

class TestSearch:

    def test_query_variants(self):
        variants = build_query_variants("power", "Kibera", "Kenya")
        assert [v.query for v in variants] == [
            '"Kibera" Kenya power',
            "Kibera Kenya power",
            "Kenya power statistics",
        ]
        assert [v.tier for v in variants] == [SourceTier.VILLAGE, SourceTier.REGIONAL, SourceTier.COUNTRY]

    def test_unconfigured_makes_no_request(self):
        session = MagicMock()
        client = WebResearchClient(None, "engine", session=session)
        with pytest.raises(SearchUnconfiguredError):
            client.search("power", "Kibera", "Kenya")
        session.get.assert_not_called()

    def test_stops_after_enough_village_results(self):
        client, session = _client(_response(_items("village", 4)))
        progress = []
        results = client.search("power", "Kibera", "Kenya", on_progress=progress.append)

        assert session.get.call_count == 1
        assert len(results) == 4
        assert all(r.source_tier == SourceTier.VILLAGE for r in results)
        assert progress == [ResearchProgress.SEARCHING]

        args, kwargs = session.get.call_args
        assert args[0] == SEARCH_ENDPOINT
        assert kwargs["params"]["q"] == '"Kibera" Kenya power'
        assert kwargs["params"]["key"] == "key"
        assert kwargs["params"]["cx"] == "engine"

    def test_falls_back_to_broader_variants(self):
        client, session = _client(
            _response(_items("village", 1)),
            _response(_items("regional", 1)),
            _response(_items("country", 2)),
        )
        results = client.search("food", "Kibera", "Kenya")

        assert session.get.call_count == 3
        assert [r.source_tier for r in results] == [
            SourceTier.VILLAGE, SourceTier.REGIONAL, SourceTier.COUNTRY, SourceTier.COUNTRY,
        ]
        assert results[0].to_dict()["confidence"] == "high"
        assert results[-1].to_dict()["confidence"] == "lower"

    def test_caps_at_five_and_dedupes(self):
        duplicate = _items("village", 2)
        client, _ = _client(
            _response(duplicate),
            _response(duplicate + _items("regional", 6)),
        )
        results = client.search("food", "Kibera", "Kenya")

        urls = [r.url for r in results]
        assert len(results) == 5
        assert len(set(urls)) == 5
        assert urls[:2] == [item["link"] for item in duplicate]

    def test_failed_variant_is_skipped(self):
        client, session = _client(
            _response(status_error=requests.HTTPError("429 Too Many Requests")),
            _response(_items("regional", 3)),
        )
        results = client.search("food", "Kibera", "Kenya")
        assert session.get.call_count == 2
        assert all(r.source_tier == SourceTier.REGIONAL for r in results)

    def test_no_results_raises(self):
        client, _ = _client(_response([]), _response(), _response([]))
        with pytest.raises(NoResultsError) as excinfo:
            client.search("food", "Kibera", "Kenya")
        assert excinfo.value.to_dict()["title"] == "Unable to research food"


# ═══════════════════════════════════════════════════════════════
# FETCH
# ═══════════════════════════════════════════════════════════════

PAGE = """
<html>
  <head><title> Kibera Water Survey </title><script>var x = 1;</script></head>
  <body>
    <nav>Home | About</nav>
    <main><p>Most households   buy water</p><p>from kiosks.</p></main>
    <footer>Copyright</footer>
  </body>
</html>
"""


def _html_session(html, content_type="text/html; charset=utf-8"):
    session = MagicMock()
    response = session.get.return_value
    response.headers = {"content-type": content_type}
    response.text = html
    return session


class TestFetch:

    def test_extracts_main_content(self):
        page = fetch_page("https://example.org/survey", session=_html_session(PAGE))

        assert page.ok
        assert page.title == "Kibera Water Survey"
        assert page.text_content == "Most households buy water from kiosks."
        assert "Copyright" not in page.text_content

    def test_title_falls_back_to_h1(self):
        title, text = extract_page("<body><h1>Report</h1><p>Body text</p></body>")
        assert title == "Report"
        assert text == "Report Body text"

    def test_content_is_capped(self):
        _, text = extract_page("<body><p>" + "a" * (MAX_CONTENT_CHARS + 500) + "</p></body>")
        assert len(text) == MAX_CONTENT_CHARS

    def test_non_html_is_refused(self):
        page = fetch_page("https://example.org/data.pdf", session=_html_session("%PDF", "application/pdf"))
        assert not page.ok
        assert page.unsupported_content
        assert "application/pdf" in page.error

    def test_network_error_is_recorded(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("connection refused")
        page = fetch_page("https://example.org", session=session)
        assert page.error == "connection refused"
        assert not page.unsupported_content

    def test_one_failure_does_not_abort_the_rest(self):
        session = _html_session(PAGE)
        good = session.get.return_value
        session.get.side_effect = [requests.Timeout("timed out"), good]
        pages = fetch_pages(["https://a.example.org", "https://b.example.org"], session=session)
        assert [p.ok for p in pages] == [False, True]


# ═══════════════════════════════════════════════════════════════
# RECOMMENDED SOURCES
# ═══════════════════════════════════════════════════════════════

class TestRecommendedSources:

    def test_country_specific_first(self):
        names = [s.name for s in recommended_sources("demographics", "Kenya")]
        assert names == [
            "Kenya Population and Housing Census",
            "Kenya National Bureau of Statistics",
            "UN Population Division",
            "World Bank Data",
            "UNICEF Data",
        ]

    def test_base_only_country(self):
        names = [s.name for s in recommended_sources("power", "Uganda")]
        assert names[0] == "Uganda Bureau of Statistics"
        assert len(names) == 4

    def test_unknown_country_gets_generic_sources(self):
        assert [s.name for s in recommended_sources("food", "Peru")] == [
            "WFP Hunger Map", "FAO Food Security Data", "FEWS NET",
        ]

    def test_unknown_topic(self):
        assert recommended_sources("astronomy", "Peru") == []

    def test_returns_fresh_list(self):
        first = recommended_sources("food", "Kenya")
        first.clear()
        assert recommended_sources("food", "Kenya")
