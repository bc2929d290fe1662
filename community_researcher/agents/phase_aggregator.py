"""
Phase Aggregator - one Topic Session per topic for a chat phase.

Tracks which topic is active, per-topic completion across the phase and
the AggregatedAnswer (space-joined user text) each topic publishes to the
report.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Optional, Sequence

from ..errors import ValidationError
from ..llm import LLMManager
from ..schemas.state import (
    AppState,
    AspirationUpdate,
    ChatMessage,
    ConversationUpdate,
    DirectAnswerUpdate,
    PhaseKind,
    StateStore,
    aggregate_user_text,
    aspiration_key,
    base_topic_id,
    user_message_count,
)
from ..schemas.topics import Topic, topics_for_phase
from .topic_session import TopicSession, is_completed

logger = logging.getLogger(__name__)


class PhaseAggregator:
    """
    Owns the Topic Sessions of the conversation or aspirations phase.

    Usage:
        conversation = PhaseAggregator(PhaseKind.CONVERSATION, llm, store)
        conversation.select_topic("agriculture")
        reply = conversation.submit("We grow maize and beans.")
    """

    def __init__(
        self,
        phase: PhaseKind,
        llm: LLMManager,
        store: StateStore,
        topics: Optional[Sequence[Topic]] = None
    ):
        self.phase = phase
        self.llm = llm
        self.store = store
        self.topics = tuple(topics) if topics is not None else topics_for_phase(phase)
        self.active_topic_id: Optional[str] = None
        self._sessions: Dict[str, TopicSession] = {}
        self._lock = threading.Lock()

    # =========================================================================
    # SESSIONS
    # =========================================================================

    def get_topic(self, topic_id: Optional[str]) -> Optional[Topic]:
        for topic in self.topics:
            if topic.id == topic_id:
                return topic
        return None

    def session_key(self, topic_id: str) -> str:
        return topic_id

    def session(self, topic_id: str) -> TopicSession:
        """The topic's session, created on first use."""
        topic = self.get_topic(topic_id)
        if topic is None:
            raise ValidationError(f"Unknown {self.phase.value} topic: {topic_id}")
        with self._lock:
            if topic_id not in self._sessions:
                self._sessions[topic_id] = TopicSession(
                    self.phase, topic, self.store, key=self.session_key(topic_id)
                )
            return self._sessions[topic_id]

    def messages(self, topic_id: str) -> tuple[ChatMessage, ...]:
        return self.store.state.conversation(self.session_key(topic_id))

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    def select_topic(self, topic_id: str) -> tuple[ChatMessage, ...]:
        """
        Make a topic active and seed its session if the log is empty.

        Raises:
            ValidationError: topic is not part of this phase
        """
        session = self.session(topic_id)
        self.active_topic_id = topic_id
        session.seed(self.store.state.village)
        return session.messages

    def submit(self, text: str) -> Optional[ChatMessage]:
        """Submit to the active topic."""
        return self.on_user_submit(self.active_topic_id, text)

    def on_user_submit(self, topic_id: Optional[str], text: str) -> Optional[ChatMessage]:
        """
        Append a user message, request the reply and publish the results.

        Blank text or a missing topic is ignored (returns None). A topic
        that was never selected is seeded first so its log opens with the
        assistant's question.

        Raises:
            SessionBusyError: a reply for this topic is still in flight
        """
        if not topic_id or self.get_topic(topic_id) is None:
            return None
        if not text or not text.strip():
            return None

        session = self.session(topic_id)
        session.seed(self.store.state.village)
        session.append_user_message(text)
        # The reply is applied to its own topic even if another topic became active meanwhile
        reply = session.request_assistant_reply(self.llm, self.store.state.village)
        self._publish(topic_id, session.messages)
        return reply

    def _publish(self, topic_id: str, messages: Sequence[ChatMessage]) -> AppState:
        answer = aggregate_user_text(messages)
        completed = is_completed(messages, self.phase)

        def update(state: AppState) -> AppState:
            state = state.with_answer(self.phase, topic_id, answer)
            if completed:
                state = state.mark_completed(self.phase, topic_id)
            return state

        return self.store.apply(update)

    # =========================================================================
    # VIEWS
    # =========================================================================

    def completion_map(self) -> Dict[str, bool]:
        return self.store.state.completion_map(self.phase)

    def answers(self) -> Dict[str, str]:
        return self.store.state.answers_for(self.phase)

    def is_pending(self, topic_id: str) -> bool:
        with self._lock:
            session = self._sessions.get(topic_id)
        return bool(session and session.pending)

    def to_dict(self, topic_id: Optional[str] = None) -> dict:
        topic_id = topic_id or self.active_topic_id
        return {
            "phase": self.phase.value,
            "activeTopic": self.active_topic_id,
            "topic": topic_id,
            "messages": [m.to_dict() for m in self.messages(topic_id)] if topic_id else [],
            "completed": self.completion_map(),
        }


class AspirationsAggregator(PhaseAggregator):
    """
    Aspirations phase: sessions are stored under "<topic>_aspirations" and
    results are published under the base topic id.
    """

    def __init__(self, llm: LLMManager, store: StateStore, topics: Optional[Sequence[Topic]] = None):
        super().__init__(PhaseKind.ASPIRATIONS, llm, store, topics)

    def session_key(self, topic_id: str) -> str:
        return aspiration_key(topic_id)

    def _publish(self, topic_id: str, messages: Sequence[ChatMessage]) -> AppState:
        return self.apply_update(ConversationUpdate(self.session_key(topic_id), tuple(messages)))

    def apply_update(self, update: AspirationUpdate) -> AppState:
        """
        Apply an aspirations update.

        ConversationUpdate stores the log and, once it holds a user message,
        publishes the joined user text and latches completion.
        DirectAnswerUpdate stores a final answer as-is and latches completion.
        A blank direct answer, or an update for a topic outside this phase,
        is ignored.
        """
        if not isinstance(update, (ConversationUpdate, DirectAnswerUpdate)):
            raise TypeError(f"Unsupported aspirations update: {type(update).__name__}")

        base = base_topic_id(update.topic_id)
        if self.get_topic(base) is None:
            logger.warning("Ignoring aspirations update for unknown topic %s", update.topic_id)
            return self.store.state

        if isinstance(update, ConversationUpdate):
            key = aspiration_key(base)
            has_user_input = user_message_count(update.messages) >= 1

            def change(state: AppState) -> AppState:
                state = state.with_conversation(key, update.messages)
                if has_user_input:
                    state = state.with_answer(self.phase, base, aggregate_user_text(update.messages))
                    state = state.mark_completed(self.phase, base)
                return state

        else:
            if not update.text or not update.text.strip():
                return self.store.state

            def change(state: AppState) -> AppState:
                return state.with_answer(self.phase, base, update.text).mark_completed(self.phase, base)

        return self.store.apply(change)
