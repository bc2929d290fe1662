"""
Completion providers for the Community Researcher.

- OpenAI (primary, gpt-4o)
- Groq (secondary, free tier)
"""

from .base import (
    LLMProvider,
    LLMResponse,
    LLMConfig,
    Message,
    CompletionOptions,
    CHAT_OPTIONS,
    RESEARCH_OPTIONS,
    ANALYSIS_OPTIONS,
    ASSETS_OPTIONS,
    REPORT_OPTIONS,
)
from .groq_provider import GroqProvider
from .openai_provider import OpenAIProvider
from .manager import LLMManager, LLMManagerConfig

__all__ = [
    "LLMProvider",
    "LLMResponse",
    "LLMConfig",
    "Message",
    "CompletionOptions",
    "CHAT_OPTIONS",
    "RESEARCH_OPTIONS",
    "ANALYSIS_OPTIONS",
    "ASSETS_OPTIONS",
    "REPORT_OPTIONS",
    "GroqProvider",
    "OpenAIProvider",
    "LLMManager",
    "LLMManagerConfig",
]
