"""
Interview phases for the Community Researcher.
"""

from .topic_session import TopicSession, fallback_reply, is_completed
from .phase_aggregator import AspirationsAggregator, PhaseAggregator
from .research_aggregator import (
    AssetsAggregator,
    ResearchAggregator,
    all_topics_researched,
    generate_comprehensive_analysis,
)
from .workflow import CommunityResearchWorkflow

__all__ = [
    "TopicSession",
    "fallback_reply",
    "is_completed",
    "AspirationsAggregator",
    "PhaseAggregator",
    "AssetsAggregator",
    "ResearchAggregator",
    "all_topics_researched",
    "generate_comprehensive_analysis",
    "CommunityResearchWorkflow",
]
