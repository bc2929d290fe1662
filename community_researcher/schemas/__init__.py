"""
Schema definitions for the Community Researcher.
"""

from .state import (
    AppState,
    AspirationUpdate,
    ChatMessage,
    ConversationUpdate,
    DataSource,
    DirectAnswerUpdate,
    PhaseKind,
    ResearchProgress,
    Role,
    StateStore,
    VillageInfo,
    base_topic_id,
)
from .topics import (
    Topic,
    RESEARCH_TOPICS,
    ASSET_TOPICS,
    ASPIRATION_TOPICS,
    CONVERSATION_TOPICS,
    topics_for_phase,
    get_topic,
)

__all__ = [
    "AppState",
    "AspirationUpdate",
    "ChatMessage",
    "ConversationUpdate",
    "DataSource",
    "DirectAnswerUpdate",
    "PhaseKind",
    "ResearchProgress",
    "Role",
    "StateStore",
    "VillageInfo",
    "base_topic_id",
    "Topic",
    "RESEARCH_TOPICS",
    "ASSET_TOPICS",
    "ASPIRATION_TOPICS",
    "CONVERSATION_TOPICS",
    "topics_for_phase",
    "get_topic",
]
