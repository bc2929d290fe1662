"""
Error types for the Community Researcher.

Conversational flows recover from provider failures locally; research
failures are surfaced to the caller because no synthetic substitute exists.
"""


class CommunityResearchError(Exception):
    """Base class for all application errors."""


class ProviderError(CommunityResearchError):
    """The completion service failed (unavailable, non-2xx, malformed payload)."""


class ResearchError(CommunityResearchError):
    """Web research could not produce any data for a topic."""

    title = "Research failed"

    def __init__(self, message: str, topic: str = ""):
        super().__init__(message)
        self.topic = topic

    def to_dict(self) -> dict:
        """User-dismissable error payload for the UI."""
        title = f"Unable to research {self.topic}" if self.topic else self.title
        return {"title": title, "message": str(self)}


class NoResultsError(ResearchError):
    """Every search query variant came back empty."""

    def __init__(self, topic: str, location: str, country: str):
        super().__init__(
            f"No search results found for {topic} in {location}, {country}",
            topic=topic,
        )
        self.location = location
        self.country = country


class SearchUnconfiguredError(ResearchError):
    """The search API key or engine id is missing."""

    def __init__(self, topic: str = ""):
        super().__init__(
            "Search API key and engine ID must be configured for research functionality",
            topic=topic,
        )


class ValidationError(CommunityResearchError):
    """Rejected user input (blank message, no active topic)."""


class SessionBusyError(CommunityResearchError):
    """A reply for this topic is still in flight."""

    def __init__(self, key: str):
        super().__init__(f"A reply for '{key}' is still pending")
        self.key = key


class ContentTypeError(CommunityResearchError):
    """A fetched URL did not return HTML."""

    def __init__(self, url: str, content_type: str):
        super().__init__(f"Unsupported content type: {content_type}")
        self.url = url
        self.content_type = content_type
