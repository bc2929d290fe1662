"""
Groq LLM Provider.

Secondary completion backend with a generous free tier:
- 1,000 requests/day
- 6,000 tokens/minute

Sign up at: https://console.groq.com
"""

from typing import Optional, List

from groq import Groq

from .base import (
    LLMProvider,
    LLMConfig,
    LLMResponse,
    Message,
    ProviderStatus
)


class GroqProvider(LLMProvider):
    """Groq LLM Provider using their Python SDK."""

    DEFAULT_MODEL = "llama-3.3-70b-versatile"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        **kwargs
    ):
        """
        Initialize Groq provider.

        Args:
            api_key: Groq API key
            model: Model to use (default: llama-3.3-70b-versatile)
            **kwargs: Additional config options
        """
        self.api_key = api_key

        config = LLMConfig(
            provider_name="groq",
            model=model,
            api_key=self.api_key,
            base_url="https://api.groq.com/openai/v1",
            temperature=kwargs.get("temperature", 0.5),
            max_tokens=kwargs.get("max_tokens", 1500),
            timeout=kwargs.get("timeout", 60)
        )
        super().__init__(config)

        self._client = None
        if self.api_key:
            self._client = Groq(api_key=self.api_key, timeout=self.config.timeout)
            self._status = ProviderStatus.AVAILABLE

    def is_available(self) -> bool:
        """Check if Groq is available."""
        return self._client is not None and self._status != ProviderStatus.NOT_CONFIGURED

    def chat(
        self,
        messages: List[Message],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        top_p: Optional[float] = None,
        **kwargs
    ) -> LLMResponse:
        """
        Send a chat completion request to Groq.

        Args:
            messages: List of conversation messages
            temperature: Override default temperature (0-2)
            max_tokens: Override default max tokens
            top_p: Override default nucleus sampling
            **kwargs: Additional parameters

        Returns:
            LLMResponse with the model's response
        """
        if not self.is_available():
            raise RuntimeError(
                "Groq not available. Set GROQ_API_KEY environment variable.\n"
                "Get your free API key at: https://console.groq.com"
            )

        params = self._resolve(temperature, max_tokens, top_p)
        msg_dicts = [{"role": m.role, "content": m.content} for m in messages]

        try:
            response = self._client.chat.completions.create(
                model=self.config.model,
                messages=msg_dicts,
                temperature=params["temperature"],
                max_tokens=params["max_tokens"],
                top_p=params["top_p"],
                **kwargs
            )
        except Exception as e:
            if "rate" in str(e).lower() or "429" in str(e):
                self._status = ProviderStatus.RATE_LIMITED
            else:
                self._status = ProviderStatus.ERROR
            raise

        self._status = ProviderStatus.AVAILABLE
        return LLMResponse(
            content=response.choices[0].message.content or "",
            model=response.model,
            provider="groq",
            usage={
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens
            },
            finish_reason=response.choices[0].finish_reason or "stop",
            raw_response=response
        )


def create_groq_provider(api_key: Optional[str], model: str = GroqProvider.DEFAULT_MODEL) -> Optional[GroqProvider]:
    """
    Factory function to create a Groq provider if configured.

    Returns:
        GroqProvider if an API key is given, None otherwise
    """
    if not api_key:
        return None
    return GroqProvider(api_key=api_key, model=model)
