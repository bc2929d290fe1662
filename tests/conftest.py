"""
Shared fixtures: in-memory fakes for the completion and search clients.

No test touches the network.
"""

import sys
import threading
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from community_researcher.errors import NoResultsError, ProviderError
from community_researcher.research.search import SearchResult, SourceTier
from community_researcher.schemas.state import AppState, ResearchProgress, StateStore, VillageInfo


class FakeLLM:
    """Stands in for LLMManager.generate; records every request."""

    def __init__(self, responses=None, fail=False):
        self.responses = list(responses or [])
        self.fail = fail
        self.calls = []

    def generate(self, prompt=None, messages=None, options=None, system_prompt=None):
        self.calls.append({
            "prompt": prompt,
            "messages": list(messages) if messages is not None else None,
            "options": options,
            "system_prompt": system_prompt,
        })
        if self.fail:
            raise ProviderError("Failed to get response from AI model")
        if self.responses:
            return self.responses.pop(0)
        return f"Generated reply {len(self.calls)}"


class BlockingLLM(FakeLLM):
    """Holds the next generate() call open until release is set."""

    def __init__(self):
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()
        self._block_next = True
        self._lock = threading.Lock()

    def generate(self, prompt=None, messages=None, options=None, system_prompt=None):
        with self._lock:
            block, self._block_next = self._block_next, False
        if block:
            self.entered.set()
            self.release.wait(5)
        return super().generate(prompt, messages, options, system_prompt)


class FakeSearch:
    """Stands in for WebResearchClient.search."""

    def __init__(self, results=None, error=None):
        self.results = list(results) if results is not None else default_results()
        self.error = error
        self.calls = []

    def search(self, topic, location_name, country_name, on_progress=None):
        self.calls.append((topic, location_name, country_name))
        if on_progress:
            on_progress(ResearchProgress.SEARCHING)
        if self.error:
            raise self.error
        if not self.results:
            raise NoResultsError(topic, location_name, country_name)
        return list(self.results)


def default_results():
    return [
        SearchResult("Kibera profile", "https://example.org/kibera", "About 250,000 residents.", SourceTier.VILLAGE),
        SearchResult("Nairobi county data", "https://example.org/nairobi", "County statistics.", SourceTier.REGIONAL),
    ]


@pytest.fixture
def village():
    return VillageInfo(name="Kibera", country="Kenya", role="Chief")


@pytest.fixture
def store(village):
    return StateStore(AppState(village=village))


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def failing_llm():
    return FakeLLM(fail=True)


@pytest.fixture
def blocking_llm():
    llm = BlockingLLM()
    yield llm
    llm.release.set()


@pytest.fixture
def search():
    return FakeSearch()


@pytest.fixture
def empty_search():
    return FakeSearch(results=[])
