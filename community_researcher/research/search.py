"""
Web-Research Client

Google Custom Search over a ladder of query variants, from the most
village-specific to country-level, stopping early once enough results
have been collected.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

import requests

from ..errors import NoResultsError, SearchUnconfiguredError
from ..schemas.state import ResearchProgress

logger = logging.getLogger(__name__)

SEARCH_ENDPOINT = "https://www.googleapis.com/customsearch/v1"
MIN_RESULTS = 3
MAX_RESULTS = 5


class SourceTier(str, Enum):
    """How closely a result is tied to the village itself."""
    VILLAGE = "village"
    REGIONAL = "regional"
    COUNTRY = "country"

    @property
    def confidence(self) -> str:
        return {
            SourceTier.VILLAGE: "high",
            SourceTier.REGIONAL: "medium",
            SourceTier.COUNTRY: "lower",
        }[self]


@dataclass(frozen=True)
class SearchResult:
    title: str
    url: str
    snippet: str
    source_tier: SourceTier

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "url": self.url,
            "snippet": self.snippet,
            "sourceTier": self.source_tier.value,
            "confidence": self.source_tier.confidence,
        }


@dataclass(frozen=True)
class QueryVariant:
    query: str
    tier: SourceTier
    stage: ResearchProgress


def build_query_variants(topic: str, location_name: str, country_name: str) -> List[QueryVariant]:
    return [
        QueryVariant(f'"{location_name}" {country_name} {topic}', SourceTier.VILLAGE, ResearchProgress.SEARCHING),
        QueryVariant(f"{location_name} {country_name} {topic}", SourceTier.REGIONAL, ResearchProgress.REGIONAL_LOOKUP),
        QueryVariant(f"{country_name} {topic} statistics", SourceTier.COUNTRY, ResearchProgress.COUNTRY_LOOKUP),
    ]


ProgressCallback = Callable[[ResearchProgress], None]


class WebResearchClient:
    """
    Searches the web for topic snippets about a location.

    Usage:
        client = WebResearchClient(api_key, engine_id)
        results = client.search("agriculture", "Kibera", "Kenya")
    """

    def __init__(
        self,
        api_key: Optional[str],
        engine_id: Optional[str],
        session: Optional[requests.Session] = None,
        results_per_query: int = MAX_RESULTS,
        timeout: int = 15
    ):
        self.api_key = api_key
        self.engine_id = engine_id
        self.session = session or requests.Session()
        self.results_per_query = results_per_query
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.engine_id)

    def search(
        self,
        topic: str,
        location_name: str,
        country_name: str,
        on_progress: Optional[ProgressCallback] = None
    ) -> List[SearchResult]:
        """
        Run the query ladder and return up to five ranked results.

        Raises:
            SearchUnconfiguredError: key or engine id missing (no request made)
            NoResultsError: every variant came back empty
        """
        if not self.is_configured:
            raise SearchUnconfiguredError(topic)

        results: List[SearchResult] = []
        seen_urls = set()

        for index, variant in enumerate(build_query_variants(topic, location_name, country_name)):
            # Broader variants only run while the narrower ones came up short
            if index > 0 and len(results) >= MIN_RESULTS:
                break
            if on_progress:
                on_progress(variant.stage)

            try:
                items = self._query(variant.query)
            except (requests.RequestException, ValueError) as e:
                logger.warning("Search variant failed (%s): %s", variant.tier.value, e)
                continue

            logger.info("Search %r returned %d items", variant.query, len(items))
            for item in items:
                url = item.get("link", "")
                if not url or url in seen_urls:
                    continue
                seen_urls.add(url)
                results.append(SearchResult(
                    title=item.get("title", ""),
                    url=url,
                    snippet=item.get("snippet", "") or "",
                    source_tier=variant.tier,
                ))

        if not results:
            raise NoResultsError(topic, location_name, country_name)

        return results[:MAX_RESULTS]

    def _query(self, query: str) -> List[dict]:
        response = self.session.get(
            SEARCH_ENDPOINT,
            params={
                "key": self.api_key,
                "cx": self.engine_id,
                "q": query,
                "num": self.results_per_query,
            },
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json().get("items") or []
