"""
Prompt templates for the Community Researcher.
"""

from .community_prompts import (
    RESEARCH_ASSISTANT_SYSTEM_PROMPT,
    REPORT_WRITER_SYSTEM_PROMPT,
    title_case,
    create_conversation_system_prompt,
    create_aspirations_system_prompt,
    create_research_synthesis_prompt,
    create_research_apology,
    create_analysis_prompt,
    create_analysis_apology,
    create_asset_prompt,
    create_report_prompt,
)

__all__ = [
    "RESEARCH_ASSISTANT_SYSTEM_PROMPT",
    "REPORT_WRITER_SYSTEM_PROMPT",
    "title_case",
    "create_conversation_system_prompt",
    "create_aspirations_system_prompt",
    "create_research_synthesis_prompt",
    "create_research_apology",
    "create_analysis_prompt",
    "create_analysis_apology",
    "create_asset_prompt",
    "create_report_prompt",
]
