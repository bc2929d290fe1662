"""
Page content fetcher.

Downloads a URL, refuses anything that is not HTML, and extracts the
readable text with BeautifulSoup.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

import requests
from bs4 import BeautifulSoup

from ..config import DEFAULT_FETCH_TIMEOUT
from ..errors import ContentTypeError

logger = logging.getLogger(__name__)

MAX_CONTENT_CHARS = 10000
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)
STRIP_SELECTORS = "script, style, nav, header, footer, .nav, .menu, .sidebar, .comments, .ad, .advertisement"
MAIN_SELECTORS = ["main", "article", ".content", ".main-content", "#content", "#main"]


@dataclass
class FetchedPage:
    url: str
    title: str = ""
    text_content: str = ""
    error: Optional[str] = None
    unsupported_content: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "title": self.title,
            "content": self.text_content,
            "error": self.error,
        }


def _normalize(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def extract_page(html: str) -> tuple:
    """Return (title, text) from an HTML document."""
    soup = BeautifulSoup(html or "", "html.parser")

    title = ""
    if soup.title:
        title = _normalize(soup.title.get_text())
    if not title:
        h1 = soup.find("h1")
        title = _normalize(h1.get_text(" ")) if h1 else ""

    for bad in soup.select(STRIP_SELECTORS):
        bad.decompose()

    content = ""
    for selector in MAIN_SELECTORS:
        nodes = soup.select(selector)
        if nodes:
            content = " ".join(node.get_text(" ") for node in nodes)
            break
    if not content:
        body = soup.body or soup
        content = body.get_text(" ")

    return title, _normalize(content)[:MAX_CONTENT_CHARS]


def download_html(url: str, session=None, timeout: float = DEFAULT_FETCH_TIMEOUT) -> str:
    """
    GET a page and return its HTML.

    Raises:
        ContentTypeError: the response is not text/html
        requests.RequestException: network failure, timeout or non-2xx
    """
    http = session or requests
    response = http.get(url, timeout=timeout, headers={"User-Agent": USER_AGENT})
    response.raise_for_status()
    content_type = response.headers.get("content-type", "")
    if "text/html" not in content_type:
        raise ContentTypeError(url, content_type)
    return response.text


def fetch_page(url: str, session=None, timeout: float = DEFAULT_FETCH_TIMEOUT) -> FetchedPage:
    """Fetch one page. Failures are recorded on the result, never raised."""
    try:
        html = download_html(url, session=session, timeout=timeout)
    except ContentTypeError as e:
        logger.info("Skipping non-HTML content at %s: %s", url, e.content_type)
        return FetchedPage(url=url, error=str(e), unsupported_content=True)
    except requests.RequestException as e:
        logger.warning("Error fetching page content from %s: %s", url, e)
        return FetchedPage(url=url, error=str(e))

    title, text = extract_page(html)
    return FetchedPage(url=url, title=title, text_content=text)


def fetch_pages(urls: Iterable[str], session=None, timeout: float = DEFAULT_FETCH_TIMEOUT) -> List[FetchedPage]:
    """Fetch several pages; one failure never aborts the rest."""
    return [fetch_page(url, session=session, timeout=timeout) for url in urls]
