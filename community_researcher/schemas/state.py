"""
Application state for one community research session.

The state is an explicit struct owned by the workflow and handed to each
phase. Updates never mutate in place: every `with_*` operation returns a
new AppState, and StateStore swaps the current value under a lock so that
independent topics can write concurrently.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Iterable, Mapping, Sequence, Union

ASPIRATIONS_SUFFIX = "_aspirations"


class Role(str, Enum):
    ASSISTANT = "assistant"
    USER = "user"
    SYSTEM = "system"  # outbound requests only, never stored in a log


class PhaseKind(str, Enum):
    """Data-collection stages that track per-topic completion."""
    CONVERSATION = "conversation"
    RESEARCH = "research"
    ASSETS = "assets"
    ASPIRATIONS = "aspirations"


class ResearchProgress(Enum):
    """Coarse stages of the search + synthesize pipeline."""
    SEARCHING = "searching"
    REGIONAL_LOOKUP = "regional_lookup"
    COUNTRY_LOOKUP = "country_lookup"
    SYNTHESIZING = "synthesizing"
    DONE = "done"

    @property
    def percent(self) -> int:
        return _PROGRESS_PERCENT[self]

    @property
    def label(self) -> str:
        return _PROGRESS_LABELS[self]


_PROGRESS_PERCENT = {
    ResearchProgress.SEARCHING: 10,
    ResearchProgress.REGIONAL_LOOKUP: 35,
    ResearchProgress.COUNTRY_LOOKUP: 55,
    ResearchProgress.SYNTHESIZING: 80,
    ResearchProgress.DONE: 100,
}

_PROGRESS_LABELS = {
    ResearchProgress.SEARCHING: "Searching for village-specific information...",
    ResearchProgress.REGIONAL_LOOKUP: "Searching for district/regional data...",
    ResearchProgress.COUNTRY_LOOKUP: "Gathering country-level statistics...",
    ResearchProgress.SYNTHESIZING: "Analyzing findings with AI model...",
    ResearchProgress.DONE: "Research complete",
}


@dataclass(frozen=True)
class ChatMessage:
    """One entry of a topic's message log."""
    role: Role
    content: str

    def to_dict(self) -> dict:
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def from_dict(cls, data: Mapping) -> "ChatMessage":
        return cls(role=Role(data["role"]), content=str(data.get("content", "")))


@dataclass(frozen=True)
class VillageInfo:
    """Who and where the interview is about."""
    name: str
    country: str
    role: str = "Community Expert"

    def to_dict(self) -> dict:
        return {"name": self.name, "country": self.country, "role": self.role}


@dataclass(frozen=True)
class DataSource:
    """A recommended statistics or reference source."""
    name: str
    url: str

    def to_dict(self) -> dict:
        return {"name": self.name, "url": self.url}


# =============================================================================
# ASPIRATION UPDATES
# =============================================================================

@dataclass(frozen=True)
class ConversationUpdate:
    """A new message log for an aspirations conversation."""
    topic_id: str
    messages: tuple[ChatMessage, ...]


@dataclass(frozen=True)
class DirectAnswerUpdate:
    """A final aspirations answer that bypasses the conversation."""
    topic_id: str
    text: str


AspirationUpdate = Union[ConversationUpdate, DirectAnswerUpdate]


# =============================================================================
# HELPERS
# =============================================================================

def user_message_count(messages: Iterable[ChatMessage]) -> int:
    return sum(1 for m in messages if m.role == Role.USER)


def aggregate_user_text(messages: Iterable[ChatMessage]) -> str:
    """AggregatedAnswer of a chat phase: user contents joined by spaces, in log order."""
    return " ".join(m.content for m in messages if m.role == Role.USER)


def base_topic_id(key: str) -> str:
    if key.endswith(ASPIRATIONS_SUFFIX):
        return key[: -len(ASPIRATIONS_SUFFIX)]
    return key


def aspiration_key(topic_id: str) -> str:
    return topic_id if topic_id.endswith(ASPIRATIONS_SUFFIX) else f"{topic_id}{ASPIRATIONS_SUFFIX}"


# =============================================================================
# APPLICATION STATE
# =============================================================================

@dataclass(frozen=True)
class AppState:
    """Everything gathered so far. Treat as immutable; use the with_* operations."""
    village: VillageInfo
    conversations: Mapping[str, tuple[ChatMessage, ...]] = field(default_factory=dict)
    completed: Mapping[str, Mapping[str, bool]] = field(default_factory=dict)
    answers: Mapping[str, Mapping[str, str]] = field(default_factory=dict)
    sources: Mapping[str, tuple[DataSource, ...]] = field(default_factory=dict)
    analysis: str = ""
    report: str = ""

    def with_conversation(self, key: str, messages: Sequence[ChatMessage]) -> "AppState":
        conversations = dict(self.conversations)
        conversations[key] = tuple(messages)
        return replace(self, conversations=conversations)

    def with_answer(self, phase: PhaseKind, topic_id: str, text: str) -> "AppState":
        answers = {k: dict(v) for k, v in self.answers.items()}
        answers.setdefault(phase.value, {})[topic_id] = text
        return replace(self, answers=answers)

    def mark_completed(self, phase: PhaseKind, topic_id: str) -> "AppState":
        # Latched: there is no operation that clears a completion flag
        if self.is_completed(phase, topic_id):
            return self
        completed = {k: dict(v) for k, v in self.completed.items()}
        completed.setdefault(phase.value, {})[topic_id] = True
        return replace(self, completed=completed)

    def with_sources(self, topic_id: str, sources: Sequence[DataSource]) -> "AppState":
        updated = dict(self.sources)
        updated[topic_id] = tuple(sources)
        return replace(self, sources=updated)

    def with_analysis(self, text: str) -> "AppState":
        return replace(self, analysis=text)

    def with_report(self, text: str) -> "AppState":
        return replace(self, report=text)

    def is_completed(self, phase: PhaseKind, topic_id: str) -> bool:
        return bool(self.completed.get(phase.value, {}).get(topic_id, False))

    def completion_map(self, phase: PhaseKind) -> dict[str, bool]:
        return dict(self.completed.get(phase.value, {}))

    def answers_for(self, phase: PhaseKind) -> dict[str, str]:
        return dict(self.answers.get(phase.value, {}))

    def conversation(self, key: str) -> tuple[ChatMessage, ...]:
        return self.conversations.get(key, ())


class StateStore:
    """Holds the current AppState and applies updates atomically."""

    def __init__(self, state: AppState):
        self._state = state
        self._lock = threading.Lock()

    @property
    def state(self) -> AppState:
        return self._state

    def apply(self, update: Callable[[AppState], AppState]) -> AppState:
        with self._lock:
            self._state = update(self._state)
            return self._state
