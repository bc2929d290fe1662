"""
OpenAI provider.

The default completion backend: chat completions on gpt-4o.
"""

import logging
from typing import Optional, List

from openai import OpenAI

from .base import LLMProvider, LLMConfig, LLMResponse, Message, ProviderStatus

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """OpenAI chat completions via the official SDK."""

    DEFAULT_MODEL = "gpt-4o"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        base_url: Optional[str] = None,
        organization: Optional[str] = None,
        **kwargs
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Model to use (gpt-4o, gpt-4o-mini, ...)
            base_url: Custom base URL for compatible endpoints
            organization: OpenAI organization ID (optional)
        """
        self.api_key = api_key
        self.base_url = base_url
        self.organization = organization

        config = LLMConfig(
            provider_name="openai",
            model=model,
            api_key=self.api_key,
            base_url=self.base_url,
            **kwargs
        )
        super().__init__(config)

        self._client = None
        self._init_client()

    def _init_client(self):
        """Initialize the OpenAI client."""
        if not self.api_key:
            self._status = ProviderStatus.NOT_CONFIGURED
            return

        client_kwargs = {"api_key": self.api_key, "timeout": self.config.timeout}
        if self.base_url:
            client_kwargs["base_url"] = self.base_url
        if self.organization:
            client_kwargs["organization"] = self.organization

        self._client = OpenAI(**client_kwargs)
        self._status = ProviderStatus.AVAILABLE

    def is_available(self) -> bool:
        """Check if OpenAI is available and configured."""
        return self._client is not None and self._status != ProviderStatus.NOT_CONFIGURED

    def chat(
        self,
        messages: List[Message],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        top_p: Optional[float] = None,
        **kwargs
    ) -> LLMResponse:
        """Send a chat completion request to OpenAI."""
        if not self.is_available():
            raise RuntimeError("OpenAI provider is not available. Check OPENAI_API_KEY.")

        params = self._resolve(temperature, max_tokens, top_p)
        openai_messages = [{"role": msg.role, "content": msg.content} for msg in messages]

        try:
            response = self._client.chat.completions.create(
                model=self.config.model,
                messages=openai_messages,
                temperature=params["temperature"],
                max_completion_tokens=params["max_tokens"],
                top_p=params["top_p"],
                **kwargs
            )
        except Exception as e:
            error_str = str(e).lower()
            if "rate_limit" in error_str or "429" in error_str:
                self._status = ProviderStatus.RATE_LIMITED
            elif "insufficient_quota" in error_str or "quota" in error_str:
                self._status = ProviderStatus.RATE_LIMITED
                logger.warning("OpenAI quota exceeded")
            else:
                self._status = ProviderStatus.ERROR
            raise

        self._status = ProviderStatus.AVAILABLE
        usage = {
            "prompt_tokens": response.usage.prompt_tokens if response.usage else 0,
            "completion_tokens": response.usage.completion_tokens if response.usage else 0,
            "total_tokens": response.usage.total_tokens if response.usage else 0,
        }
        return LLMResponse(
            content=response.choices[0].message.content or "",
            model=response.model,
            provider="openai",
            usage=usage,
            finish_reason=response.choices[0].finish_reason or "stop",
            raw_response=response
        )


def create_openai_provider(api_key: Optional[str], model: str = OpenAIProvider.DEFAULT_MODEL) -> Optional[OpenAIProvider]:
    """
    Factory function to create an OpenAI provider if configured.

    Returns:
        OpenAIProvider if an API key is given, None otherwise
    """
    if not api_key:
        return None
    return OpenAIProvider(api_key=api_key, model=model)
