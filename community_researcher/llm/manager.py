"""
LLM Manager - the Completion Client used by every phase.

Handles provider selection, retry, failover and rate limit management,
and collapses every failure into a single ProviderError.
"""

import logging
import time
from typing import Optional, List, Dict, Any, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from ..config import AppConfig, DEFAULT_PROVIDER_PRIORITY
from ..errors import ProviderError
from .base import (
    CompletionOptions,
    LLMProvider,
    LLMResponse,
    Message,
    ProviderStatus,
    PROVIDER_INFO
)
from .groq_provider import create_groq_provider
from .openai_provider import create_openai_provider

logger = logging.getLogger(__name__)


@dataclass
class ProviderUsage:
    """Track usage for rate limit management."""
    requests_today: int = 0
    tokens_today: int = 0
    last_request: Optional[datetime] = None
    rate_limit_reset: Optional[datetime] = None
    errors: int = 0
    successes: int = 0
    last_error: Optional[str] = None


@dataclass
class LLMManagerConfig:
    """Configuration for the LLM Manager."""
    # Provider preferences (in order of preference)
    provider_priority: List[str] = field(default_factory=lambda: list(DEFAULT_PROVIDER_PRIORITY))

    # Auto-fallback when rate limited or failing
    auto_fallback: bool = True

    max_retries: int = 2
    retry_delay: float = 1.0  # seconds, doubled per retry

    # Rate limit buffer (don't use last 10% of quota)
    rate_limit_buffer: float = 0.1


class LLMManager:
    """
    Manages the completion providers with automatic selection and failover.

    Usage:
        manager = LLMManager.from_config(AppConfig.from_env())
        text = manager.generate("Summarize ...", options=RESEARCH_OPTIONS)

    The manager will:
    1. Try providers in priority order
    2. Retry transient errors with exponential backoff
    3. Switch providers on rate limits
    4. Raise ProviderError when nothing produced text
    """

    def __init__(
        self,
        providers: Optional[Dict[str, LLMProvider]] = None,
        config: Optional[LLMManagerConfig] = None
    ):
        self.config = config or LLMManagerConfig()
        self._providers: Dict[str, LLMProvider] = {}
        self._usage: Dict[str, ProviderUsage] = {}
        self._current_provider: Optional[str] = None

        for name, provider in (providers or {}).items():
            if provider.is_available():
                self._providers[name] = provider
                self._usage[name] = ProviderUsage()
                logger.info("%s provider initialized (%s)", name, provider.model)

        self._select_provider()

    @classmethod
    def from_config(cls, app_config: AppConfig) -> "LLMManager":
        """Build a manager with every provider that has credentials."""
        candidates = {
            "openai": create_openai_provider(app_config.openai_api_key, app_config.openai_model),
            "groq": create_groq_provider(app_config.groq_api_key, app_config.groq_model),
        }
        providers = {name: p for name, p in candidates.items() if p is not None}
        if not providers:
            logger.warning("No LLM provider configured; every phase will use fallback text")
        return cls(providers, LLMManagerConfig(provider_priority=app_config.provider_priority))

    def _select_provider(self) -> Optional[str]:
        """Select the best available provider."""
        for provider_name in self.config.provider_priority:
            if provider_name not in self._providers:
                continue
            provider = self._providers[provider_name]
            usage = self._usage.get(provider_name, ProviderUsage())

            if provider.status == ProviderStatus.RATE_LIMITED:
                if usage.rate_limit_reset and datetime.now() < usage.rate_limit_reset:
                    continue  # Still rate limited
                provider._status = ProviderStatus.AVAILABLE

            info = PROVIDER_INFO.get(provider_name)
            if info:
                limit = info.rate_limit_requests_per_day
                buffer = int(limit * self.config.rate_limit_buffer)
                if usage.requests_today >= (limit - buffer):
                    continue  # Approaching limit, skip

            self._current_provider = provider_name
            return provider_name

        self._current_provider = None
        return None

    @property
    def current_provider(self) -> Optional[LLMProvider]:
        """Get the currently selected provider."""
        if self._current_provider:
            return self._providers.get(self._current_provider)
        return None

    @property
    def available_providers(self) -> List[str]:
        """List of available provider names."""
        return list(self._providers.keys())

    @property
    def is_available(self) -> bool:
        """Check if any LLM provider is available."""
        return self._select_provider() is not None

    def get_status(self) -> Dict[str, Any]:
        """Get status of all providers."""
        status = {"current_provider": self._current_provider, "providers": {}}
        for name, provider in self._providers.items():
            usage = self._usage.get(name, ProviderUsage())
            status["providers"][name] = {
                "status": provider.status.value,
                "model": provider.model,
                "requests_today": usage.requests_today,
                "tokens_today": usage.tokens_today,
                "errors": usage.errors,
            }
        return status

    def _update_usage(self, provider_name: str, response: LLMResponse):
        """Update usage tracking after a request."""
        usage = self._usage.setdefault(provider_name, ProviderUsage())
        usage.requests_today += 1
        usage.tokens_today += response.tokens_used
        usage.last_request = datetime.now()
        usage.successes += 1

    def _handle_rate_limit(self, provider_name: str):
        """Mark a provider rate limited for an hour."""
        usage = self._usage.setdefault(provider_name, ProviderUsage())
        usage.rate_limit_reset = datetime.now() + timedelta(hours=1)
        if provider_name in self._providers:
            self._providers[provider_name]._status = ProviderStatus.RATE_LIMITED

    def chat(
        self,
        messages: List[Message],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        top_p: Optional[float] = None,
        provider: Optional[str] = None,
        _retry_count: int = 0,
        **kwargs
    ) -> LLMResponse:
        """
        Send a chat completion request with retry and fallback.

        Args:
            messages: List of conversation messages
            temperature: Override default temperature
            max_tokens: Override default max tokens
            top_p: Override default nucleus sampling
            provider: Force a specific provider (optional)

        Returns:
            LLMResponse with the model's response

        Raises:
            ProviderError: If no provider produced a response
        """
        if provider:
            if provider not in self._providers:
                raise ProviderError(f"Provider '{provider}' not available")
            target_provider = provider
        else:
            target_provider = self._select_provider()

        if not target_provider:
            raise ProviderError(
                "No LLM providers available. Set OPENAI_API_KEY or GROQ_API_KEY."
            )

        llm = self._providers[target_provider]

        try:
            response = llm.chat(
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                top_p=top_p,
                **kwargs
            )
            self._update_usage(target_provider, response)
            return response

        except Exception as e:
            error_msg = str(e).lower()
            usage = self._usage.setdefault(target_provider, ProviderUsage())
            usage.errors += 1
            usage.last_error = str(e)[:200]

            if "rate" in error_msg or "limit" in error_msg or "429" in error_msg:
                self._handle_rate_limit(target_provider)
                if self.config.auto_fallback and not provider:
                    new_provider = self._select_provider()
                    if new_provider and new_provider != target_provider:
                        logger.warning("Rate limited on %s, switching to %s", target_provider, new_provider)
                        return self.chat(
                            messages, temperature, max_tokens, top_p,
                            provider=new_provider, **kwargs
                        )

            if _retry_count < self.config.max_retries:
                wait = (2 ** _retry_count) * self.config.retry_delay
                logger.warning(
                    "Error on %s, retrying in %.1fs (%d/%d): %s",
                    target_provider, wait, _retry_count + 1, self.config.max_retries, e
                )
                time.sleep(wait)
                return self.chat(
                    messages, temperature, max_tokens, top_p,
                    provider=provider, _retry_count=_retry_count + 1, **kwargs
                )

            if self.config.auto_fallback and not provider:
                for fallback_name in self.config.provider_priority:
                    if fallback_name != target_provider and fallback_name in self._providers:
                        logger.warning("All retries failed on %s, falling back to %s", target_provider, fallback_name)
                        try:
                            return self.chat(
                                messages, temperature, max_tokens, top_p,
                                provider=fallback_name, _retry_count=self.config.max_retries, **kwargs
                            )
                        except ProviderError:
                            continue

            logger.error("Generation failed on %s: %s", target_provider, e)
            raise ProviderError("Failed to get response from AI model") from e

    def generate(
        self,
        prompt: Optional[str] = None,
        messages: Optional[Sequence[Message]] = None,
        options: Optional[CompletionOptions] = None,
        system_prompt: Optional[str] = None
    ) -> str:
        """
        Completion Client entry point: a free-text prompt or a role-tagged
        message list, plus options. Returns generated text.

        Raises:
            ProviderError: on any failure, including an empty response
        """
        options = options or CompletionOptions()
        if messages is None:
            if prompt is None:
                raise ValueError("generate() needs a prompt or a message list")
            request = []
            if system_prompt:
                request.append(Message(role="system", content=system_prompt))
            request.append(Message(role="user", content=prompt))
        else:
            request = list(messages)

        response = self.chat(
            request,
            temperature=options.temperature,
            max_tokens=options.max_output_tokens,
            top_p=options.top_p,
        )
        if not response.content or not response.content.strip():
            raise ProviderError("AI model returned an empty response")
        return response.content

    @property
    def session_stats(self) -> Dict[str, Any]:
        """Session-level request stats for the status endpoint."""
        total_success = sum(u.successes for u in self._usage.values())
        total_errors = sum(u.errors for u in self._usage.values())
        return {
            "providers_available": list(self._providers.keys()),
            "current_provider": self._current_provider,
            "total_requests": total_success + total_errors,
            "successful_requests": total_success,
            "failed_requests": total_errors,
        }
