"""
Topic Session - one topic's conversational exchange.

Lifecycle per topic:
    EMPTY -> SEEDED -> (USER_TURN <-> ASSISTANT_TURN)* -> COMPLETED

The message log itself lives in the StateStore under the session key;
the session owns the pending-reply guard and the fallback rules used when
the completion client fails.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, Sequence

from ..errors import ProviderError, SessionBusyError, ValidationError
from ..llm import CHAT_OPTIONS, LLMManager, Message
from ..prompts import create_aspirations_system_prompt, create_conversation_system_prompt
from ..schemas.state import (
    ChatMessage,
    PhaseKind,
    Role,
    StateStore,
    VillageInfo,
    user_message_count,
)
from ..schemas.topics import Topic, aspiration_question, conversation_starter

logger = logging.getLogger(__name__)

# User messages needed before a chat topic counts as covered
COMPLETION_THRESHOLDS = {
    PhaseKind.CONVERSATION: 3,
    PhaseKind.ASPIRATIONS: 1,
}

INCOMPLETE_RESULTS_NOTICE = "The AI research came back with incomplete results. Please try again."

REPETITION_MARKERS = ("already answered", "just told you", "i said")


def is_completed(messages: Sequence[ChatMessage], phase: PhaseKind) -> bool:
    """
    Whether a chat log has enough user input for its phase.

    Research and assets are completed by their aggregators after a
    successful generation, never by message count.
    """
    threshold = COMPLETION_THRESHOLDS.get(phase)
    if threshold is None:
        return False
    return user_message_count(messages) >= threshold


# =============================================================================
# FALLBACK RESPONSES
# =============================================================================

# Three follow-ups per topic, indexed by how many user messages exist (1, 2, 3+)
CONVERSATION_FALLBACKS = {
    "demographics": (
        "Thank you for sharing that information. Could you tell me about the age distribution in {village}? "
        "For example, is there a large proportion of children, working-age adults, or elderly people?",
        "That's helpful to understand. Have there been any significant changes in the population over the past "
        "few years? For example, are people moving away to cities or are new people moving in?",
        "Thank you for sharing these details about {village}. This helps me understand your community better. "
        "Is there anything else important about the people and families in your village that would be helpful "
        "for me to know?",
    ),
    "agriculture": (
        "Thank you for that information about agriculture. Do most families keep any livestock or animals? "
        "If so, what types and roughly what percentage of households have them?",
        "I see. Have you noticed any changes in agricultural productivity over recent years? Are harvests "
        "getting better, worse, or staying about the same?",
        "This information is very helpful. What would you say are the biggest challenges farmers in {village} "
        "face today?",
    ),
    "power": (
        "Thank you for explaining the power situation. Roughly what share of households in {village} have "
        "electricity, and where does it come from (grid, solar, generators)?",
        "That's useful. How reliable is the supply? How many hours a day is power usually available, and how "
        "often are there outages?",
        "Thank you. What do families and businesses in {village} use for cooking and lighting when there is "
        "no power, and what does that cost them?",
    ),
    "education": (
        "Thank you for describing the schools. How many primary and secondary schools can children in "
        "{village} reach, and how far do they usually travel to get there?",
        "That helps. Roughly how many children attend school regularly, and are there differences between "
        "boys and girls or between age groups?",
        "Thank you. What would you say are the main reasons some children in {village} stop going to school?",
    ),
    "livelihoods": (
        "Thank you for sharing how people earn a living. Roughly what share of households depend mainly on "
        "farming, and what share on trade, wages, or other work?",
        "I see. What opportunities are there for young people in {village} to find work, and do many leave to "
        "look for jobs elsewhere?",
        "That's helpful. Do people have access to savings groups, loans, or mobile money, and how do they use "
        "them?",
    ),
    "healthcare": (
        "Thank you for that information. How far is the nearest health facility from {village}, and how do "
        "people usually get there?",
        "That's helpful. What are the most common illnesses people face, and where do mothers usually give "
        "birth?",
        "Thank you. Where does the community get its drinking water, and how safe do people consider it to be?",
    ),
    "political": (
        "Thank you for describing the political situation. How are local leaders chosen in {village}, and how "
        "much say do community members have in decisions?",
        "I see. Have there been any conflicts or periods of unrest in recent years, and how did they affect "
        "daily life?",
        "Thank you. How well do local government services reach {village}, and how do people raise concerns "
        "with officials?",
    ),
    "food": (
        "Thank you for sharing that. Are there times of the year when families in {village} regularly run "
        "short of food? Which months are hardest?",
        "That's helpful to know. How many meals a day do most families eat, and what do those meals usually "
        "consist of?",
        "Thank you. When food runs short, what do families do to cope, and is any outside support available?",
    ),
    "leadership": (
        "Thank you for explaining leadership in your community. What roles do traditional leaders, elected "
        "officials, and religious leaders each play in {village}?",
        "I see. How are disagreements within the community usually resolved, and who is involved?",
        "Thank you. Are women and young people part of decision-making in {village}? How do their voices get "
        "heard?",
    ),
}

DEFAULT_CONVERSATION_FALLBACK = (
    "Thank you for sharing that information about {topic} in {village}. "
    "Could you tell me more about how this affects daily life in your community?"
)

REPETITION_FALLBACK = (
    "I apologize for any repetition. Thank you for that information. "
    "Would you like to tell me more about another aspect of {topic} in {village}?"
)

ASPIRATION_FALLBACKS = (
    "Thank you for sharing those aspirations. What would you say are the main obstacles or challenges that "
    "prevent your community from achieving these goals related to {topic}?",
    "I appreciate your insights about both the aspirations and challenges. Have there been any previous "
    "attempts to address these challenges? What worked or didn't work?",
    "Thank you for sharing these valuable perspectives. In your view, what would be the most important first "
    "step toward realizing your community's aspirations for {topic}?",
)

SEED_FALLBACKS = {
    PhaseKind.CONVERSATION: "I'd like to learn more about {topic} in {village}. Could you share some information about this?",
    PhaseKind.ASPIRATIONS: (
        "What are your community's hopes and aspirations regarding {topic}? "
        "What prevents these aspirations from being realized?"
    ),
}


def topic_label(topic: Topic) -> str:
    """Lower-case topic name for fallback text ("Education Aspirations" -> "education")."""
    label = topic.title.lower()
    suffix = " aspirations"
    return label[: -len(suffix)] if label.endswith(suffix) else label


def _step(messages: Sequence[ChatMessage]) -> int:
    """0, 1 or 2 for the first, second and third-or-later user turn."""
    return min(max(user_message_count(messages), 1), 3) - 1


def fallback_reply(phase: PhaseKind, topic: Topic, village: VillageInfo, messages: Sequence[ChatMessage]) -> str:
    """Deterministic assistant text for when the completion client fails."""
    topic_name = topic_label(topic)

    if phase == PhaseKind.CONVERSATION:
        last_user = next((m.content.lower() for m in reversed(messages) if m.role == Role.USER), "")
        if any(marker in last_user for marker in REPETITION_MARKERS):
            return REPETITION_FALLBACK.format(topic=topic_name, village=village.name)
        steps = CONVERSATION_FALLBACKS.get(topic.id)
        if steps is None:
            return DEFAULT_CONVERSATION_FALLBACK.format(topic=topic_name, village=village.name)
        return steps[_step(messages)].format(village=village.name)

    if phase == PhaseKind.ASPIRATIONS:
        return ASPIRATION_FALLBACKS[_step(messages)].format(topic=topic_name)

    return INCOMPLETE_RESULTS_NOTICE


# =============================================================================
# TOPIC SESSION
# =============================================================================

OPENERS: dict = {
    PhaseKind.CONVERSATION: conversation_starter,
    PhaseKind.ASPIRATIONS: aspiration_question,
}

SYSTEM_PROMPTS = {
    PhaseKind.CONVERSATION: create_conversation_system_prompt,
    PhaseKind.ASPIRATIONS: create_aspirations_system_prompt,
}


class TopicSession:
    """
    Conversational state for one (phase, topic) pair.

    At most one assistant reply may be in flight: append_user_message sets
    the pending flag and request_assistant_reply clears it once the reply
    (or fallback) has been appended.
    """

    def __init__(
        self,
        phase: PhaseKind,
        topic: Topic,
        store: StateStore,
        key: Optional[str] = None,
        opener: Optional[Callable[[str], str]] = None
    ):
        if phase not in SYSTEM_PROMPTS:
            raise ValueError(f"{phase.value} is not a conversational phase")
        self.phase = phase
        self.topic = topic
        self.store = store
        self.key = key or topic.id
        self._opener = opener or OPENERS[phase]
        self._lock = threading.Lock()
        self._pending = False

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return self.store.state.conversation(self.key)

    @property
    def pending(self) -> bool:
        return self._pending

    def _append(self, message: ChatMessage) -> tuple[ChatMessage, ...]:
        state = self.store.apply(
            lambda s: s.with_conversation(self.key, s.conversation(self.key) + (message,))
        )
        return state.conversation(self.key)

    def seed(self, village: VillageInfo) -> Optional[ChatMessage]:
        """Add the opening question. No-op (returns None) if the log already has entries."""
        with self._lock:
            if self.messages:
                return None
            try:
                text = self._opener(self.topic.id)
            except Exception as e:
                logger.warning("Opener failed for %s, using template: %s", self.key, e)
                text = SEED_FALLBACKS[self.phase].format(topic=topic_label(self.topic), village=village.name)

            message = ChatMessage(Role.ASSISTANT, text)
            self.store.apply(
                lambda s: s if s.conversation(self.key) else s.with_conversation(self.key, (message,))
            )
            return message

    def append_user_message(self, text: str) -> tuple[ChatMessage, ...]:
        """
        Append a user message and mark a reply as pending.

        Returns:
            The log snapshot including the new message

        Raises:
            ValidationError: blank text
            SessionBusyError: a reply for this topic is still in flight
        """
        if not text or not text.strip():
            raise ValidationError("Message text is empty")
        with self._lock:
            if self._pending:
                raise SessionBusyError(self.key)
            self._pending = True
            return self._append(ChatMessage(Role.USER, text))

    def build_request(self, village: VillageInfo) -> list[Message]:
        system_prompt = SYSTEM_PROMPTS[self.phase](village.name, village.country, self.topic.title)
        request = [Message(role="system", content=system_prompt)]
        request.extend(Message(role=m.role.value, content=m.content) for m in self.messages)
        return request

    def request_assistant_reply(self, llm: LLMManager, village: VillageInfo) -> ChatMessage:
        """
        Ask the completion client for the next assistant turn and append it.

        Never raises on provider failure: the phase fallback is appended
        instead. Completion is latched once the phase threshold is reached.
        """
        try:
            try:
                text = llm.generate(messages=self.build_request(village), options=CHAT_OPTIONS)
            except ProviderError as e:
                logger.warning("Reply generation failed for %s, using fallback: %s", self.key, e)
                text = fallback_reply(self.phase, self.topic, village, self.messages)

            reply = ChatMessage(Role.ASSISTANT, text)
            log = self._append(reply)
            if is_completed(log, self.phase):
                self.store.apply(lambda s: s.mark_completed(self.phase, self.topic.id))
            return reply
        finally:
            with self._lock:
                self._pending = False

    def is_completed(self) -> bool:
        return self.store.state.is_completed(self.phase, self.topic.id)
