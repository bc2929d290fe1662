"""
Topic registry for the interview phases.

Topics share identifiers across phases so that conversation, research,
asset and aspiration results can be cross-referenced by key.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .state import PhaseKind


@dataclass(frozen=True)
class Topic:
    """One fixed subject area tracked independently across phases."""
    id: str
    title: str


# =============================================================================
# TOPIC LISTS
# =============================================================================

RESEARCH_TOPICS: tuple[Topic, ...] = (
    Topic("demographics", "Demographics"),
    Topic("agriculture", "Agriculture & Animal Production"),
    Topic("power", "Power Availability"),
    Topic("education", "Education Access"),
    Topic("livelihoods", "Livelihoods & Jobs"),
    Topic("healthcare", "Healthcare Access"),
    Topic("political", "Political Stability"),
    Topic("food", "Food Stability"),
    Topic("leadership", "Leadership Structures"),
)

ASSET_TOPICS: tuple[Topic, ...] = (
    Topic("agriculture", "Agriculture Assets"),
    Topic("power", "Power Assets"),
    Topic("education", "Education Assets"),
    Topic("livelihoods", "Livelihood Assets"),
    Topic("healthcare", "Healthcare Assets"),
)

ASPIRATION_TOPICS: tuple[Topic, ...] = (
    Topic("demographics", "Demographics Aspirations"),
    Topic("agriculture", "Agriculture Aspirations"),
    Topic("power", "Power Aspirations"),
    Topic("education", "Education Aspirations"),
    Topic("livelihoods", "Livelihood Aspirations"),
    Topic("healthcare", "Healthcare Aspirations"),
    Topic("political", "Political Aspirations"),
    Topic("food", "Food Aspirations"),
    Topic("leadership", "Leadership Aspirations"),
)

# Conversations cover the same ground as research
CONVERSATION_TOPICS: tuple[Topic, ...] = RESEARCH_TOPICS

_PHASE_TOPICS = {
    PhaseKind.CONVERSATION: CONVERSATION_TOPICS,
    PhaseKind.RESEARCH: RESEARCH_TOPICS,
    PhaseKind.ASSETS: ASSET_TOPICS,
    PhaseKind.ASPIRATIONS: ASPIRATION_TOPICS,
}


def topics_for_phase(phase: PhaseKind) -> tuple[Topic, ...]:
    return _PHASE_TOPICS[phase]


def get_topic(phase: PhaseKind, topic_id: str) -> Optional[Topic]:
    """Look up a topic by id within a phase, None if the phase doesn't cover it."""
    for topic in _PHASE_TOPICS[phase]:
        if topic.id == topic_id:
            return topic
    return None


def topic_title(topic_id: str, phase: PhaseKind = PhaseKind.RESEARCH) -> str:
    topic = get_topic(phase, topic_id)
    return topic.title if topic else topic_id


# =============================================================================
# OPENING QUESTIONS
# =============================================================================

CONVERSATION_STARTERS = {
    "demographics": "Could you tell me about the population of your community? How many people live there?",
    "agriculture": "What are the main agricultural activities in your community? What crops do people grow?",
    "power": "What is the current situation regarding electricity and power in your community?",
    "education": "Could you describe the education system and schools in your community?",
    "livelihoods": "What are the main ways people earn a living in your community?",
    "healthcare": "How do people access healthcare in your community? What facilities are available?",
    "political": "Could you tell me about the political situation in your region? How stable is it?",
    "food": "What is the food situation in your community? Do people have consistent access to adequate nutrition?",
    "leadership": "Could you explain how leadership works in your community? Who makes decisions?",
}

ASPIRATION_QUESTIONS = {
    "demographics": "What are your community's hopes for population growth or stability? What challenges do you face in this area?",
    "agriculture": "What are your community's aspirations for agriculture and animal production? What prevents achieving these goals?",
    "power": "What are your hopes regarding electricity and power access? What obstacles prevent reaching these goals?",
    "education": "What are your community's aspirations for education? What barriers prevent achieving these educational goals?",
    "livelihoods": "What are your hopes for jobs and livelihoods in your community? What obstacles prevent economic development?",
    "healthcare": "What are your community's aspirations for healthcare? What prevents achieving better health outcomes?",
    "political": "What are your hopes regarding political stability and governance? What challenges exist in this area?",
    "food": "What are your community's aspirations for food security? What prevents achieving consistent access to nutrition?",
    "leadership": "What are your hopes for leadership development in your community? What challenges exist in this area?",
}

RESEARCH_FOCUS = {
    "demographics": "Focus on population size, age distribution, gender ratio, household composition, and migration patterns.",
    "agriculture": "Focus on crops grown, farming methods, irrigation, livestock, land use, and agricultural challenges.",
    "power": "Focus on electricity access, power sources, reliability, alternative energy adoption, and energy infrastructure.",
    "education": "Focus on schools, enrollment rates, educational quality, teacher availability, and educational challenges.",
    "livelihoods": "Focus on income sources, employment patterns, economic activities, youth employment, and financial inclusion.",
    "healthcare": "Focus on health facilities, disease burden, maternal and child health, water and sanitation, and healthcare access.",
    "political": "Focus on governance structures, political stability, civic participation, and local administration.",
    "food": "Focus on food availability, nutrition, dietary diversity, food production, and food security challenges.",
    "leadership": "Focus on traditional and formal leadership structures, decision-making processes, and community organization.",
}


def conversation_starter(topic_id: str) -> str:
    return CONVERSATION_STARTERS.get(
        topic_id, f"Could you tell me more about {topic_id} in your community?"
    )


def aspiration_question(topic_id: str) -> str:
    return ASPIRATION_QUESTIONS.get(
        topic_id,
        f"What are your community's hopes and aspirations regarding {topic_id}? "
        "What prevents these aspirations from being realized?",
    )


def research_focus(topic_id: str, village: str, country: str = "") -> str:
    """Research brief for one topic: what to look for in search results."""
    country_context = f" in {country}" if country else ""
    base = f"Provide detailed information about {topic_id} for {village}{country_context} based on search results."
    focus = RESEARCH_FOCUS.get(topic_id)
    return f"{base} {focus}" if focus else base
