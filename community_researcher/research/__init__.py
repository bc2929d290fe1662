"""
Web research: search client, page fetcher and recommended sources.
"""

from .fetch import FetchedPage, fetch_page, fetch_pages
from .search import SearchResult, SourceTier, WebResearchClient
from .sources import recommended_sources

__all__ = [
    "FetchedPage",
    "fetch_page",
    "fetch_pages",
    "SearchResult",
    "SourceTier",
    "WebResearchClient",
    "recommended_sources",
]
