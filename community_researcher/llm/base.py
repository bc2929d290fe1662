"""
Base classes for LLM providers.

Provides a unified interface for the completion backends so the
interview and research code never depends on a specific vendor.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from enum import Enum


class ProviderStatus(str, Enum):
    """Status of an LLM provider."""
    AVAILABLE = "available"
    RATE_LIMITED = "rate_limited"
    ERROR = "error"
    NOT_CONFIGURED = "not_configured"


@dataclass
class LLMConfig:
    """Configuration for an LLM provider."""
    provider_name: str
    model: str
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    temperature: float = 0.5
    max_tokens: int = 1500
    top_p: float = 0.95
    timeout: int = 60
    extra_params: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CompletionOptions:
    """Generation options accepted by every completion call."""
    max_output_tokens: int = 1500
    temperature: float = 0.5
    top_p: float = 0.95


# Presets used across the phases
CHAT_OPTIONS = CompletionOptions(max_output_tokens=800, temperature=0.5, top_p=0.95)
RESEARCH_OPTIONS = CompletionOptions(max_output_tokens=2500, temperature=0.3)
ANALYSIS_OPTIONS = CompletionOptions(max_output_tokens=3000, temperature=0.3)
ASSETS_OPTIONS = CompletionOptions(max_output_tokens=800, temperature=0.3)
REPORT_OPTIONS = CompletionOptions(max_output_tokens=4500, temperature=0.3, top_p=1.0)


@dataclass
class Message:
    """A single message in a request to the provider."""
    role: str  # "system", "user", "assistant"
    content: str


@dataclass
class LLMResponse:
    """Response from an LLM provider."""
    content: str
    model: str
    provider: str
    usage: Dict[str, int] = field(default_factory=dict)  # tokens used
    finish_reason: str = "stop"
    raw_response: Optional[Any] = None

    @property
    def tokens_used(self) -> int:
        """Total tokens used in this request."""
        return self.usage.get("total_tokens", 0)


class LLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    All providers (OpenAI, Groq) must implement this interface.
    """

    def __init__(self, config: LLMConfig):
        self.config = config
        self._status = ProviderStatus.NOT_CONFIGURED

    @property
    def name(self) -> str:
        """Provider name."""
        return self.config.provider_name

    @property
    def model(self) -> str:
        """Current model."""
        return self.config.model

    @property
    def status(self) -> ProviderStatus:
        """Current provider status."""
        return self._status

    def _resolve(self, temperature: Optional[float], max_tokens: Optional[int], top_p: Optional[float]) -> Dict[str, Any]:
        """Fill unset generation parameters from the provider config."""
        return {
            "temperature": self.config.temperature if temperature is None else temperature,
            "max_tokens": self.config.max_tokens if max_tokens is None else max_tokens,
            "top_p": self.config.top_p if top_p is None else top_p,
        }

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the provider is available and configured."""
        pass

    @abstractmethod
    def chat(
        self,
        messages: List[Message],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        top_p: Optional[float] = None,
        **kwargs
    ) -> LLMResponse:
        """
        Send a chat completion request.

        Args:
            messages: List of conversation messages
            temperature: Override default temperature
            max_tokens: Override default max tokens
            top_p: Override default nucleus sampling
            **kwargs: Provider-specific parameters

        Returns:
            LLMResponse with the model's response
        """
        pass

    def complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> LLMResponse:
        """
        Simple completion with a single prompt.

        Args:
            prompt: The user prompt
            system_prompt: Optional system prompt
            **kwargs: Additional parameters

        Returns:
            LLMResponse with the model's response
        """
        messages = []
        if system_prompt:
            messages.append(Message(role="system", content=system_prompt))
        messages.append(Message(role="user", content=prompt))
        return self.chat(messages, **kwargs)


@dataclass
class ProviderInfo:
    """Information about a provider for selection."""
    name: str
    priority: int  # Lower = higher priority
    rate_limit_requests_per_day: int
    models: List[str]
    requires_api_key: bool = True


PROVIDER_INFO = {
    "openai": ProviderInfo(
        name="openai",
        priority=0,
        rate_limit_requests_per_day=10000,
        models=["gpt-4o", "gpt-4o-mini", "gpt-4-turbo"],
    ),
    "groq": ProviderInfo(
        name="groq",
        priority=1,
        rate_limit_requests_per_day=1000,
        models=["llama-3.3-70b-versatile", "llama-3.1-8b-instant", "mixtral-8x7b-32768"],
    ),
}
