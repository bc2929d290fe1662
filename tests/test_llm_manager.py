"""
Tests for LLMManager: request building, failover and error collapsing.

Providers are in-memory fakes; no SDK client is created.
"""

import re
from pathlib import Path

import pytest

from community_researcher.config import AppConfig
from community_researcher.errors import ProviderError
from community_researcher.llm import (
    CHAT_OPTIONS,
    REPORT_OPTIONS,
    LLMConfig,
    LLMManager,
    LLMManagerConfig,
    LLMProvider,
    LLMResponse,
    Message,
)
from community_researcher.llm.base import ProviderStatus


class FakeProvider(LLMProvider):

    def __init__(self, name, replies=None, error=None):
        super().__init__(LLMConfig(provider_name=name, model=f"{name}-model"))
        self._status = ProviderStatus.AVAILABLE
        self.replies = list(replies or [])
        self.error = error
        self.requests = []

    def is_available(self):
        return True

    def chat(self, messages, temperature=None, max_tokens=None, top_p=None, **kwargs):
        self.requests.append({
            "messages": list(messages),
            "temperature": temperature,
            "max_tokens": max_tokens,
            "top_p": top_p,
        })
        if self.error:
            raise self.error
        content = self.replies.pop(0) if self.replies else "ok"
        return LLMResponse(content=content, model=self.model, provider=self.name, usage={"total_tokens": 10})


def _manager(**providers):
    config = LLMManagerConfig(provider_priority=["openai", "groq"], max_retries=0, retry_delay=0)
    return LLMManager(providers, config)


class TestGenerate:

    def test_prompt_with_system_prompt(self):
        openai = FakeProvider("openai", replies=["Research summary"])
        manager = _manager(openai=openai)

        text = manager.generate(prompt="Summarize", system_prompt="You are a researcher.", options=REPORT_OPTIONS)

        assert text == "Research summary"
        request = openai.requests[0]
        assert [(m.role, m.content) for m in request["messages"]] == [
            ("system", "You are a researcher."),
            ("user", "Summarize"),
        ]
        assert request["max_tokens"] == 4500
        assert request["temperature"] == 0.3
        assert request["top_p"] == 1.0

    def test_message_list_is_sent_as_is(self):
        openai = FakeProvider("openai")
        messages = [Message("system", "s"), Message("assistant", "q"), Message("user", "a")]
        _manager(openai=openai).generate(messages=messages, options=CHAT_OPTIONS)

        assert openai.requests[0]["messages"] == messages
        assert openai.requests[0]["max_tokens"] == 800

    def test_needs_prompt_or_messages(self):
        with pytest.raises(ValueError):
            _manager(openai=FakeProvider("openai")).generate()

    @pytest.mark.parametrize("content", ["", "   \n"])
    def test_empty_response_is_provider_error(self, content):
        manager = _manager(openai=FakeProvider("openai", replies=[content]))
        with pytest.raises(ProviderError):
            manager.generate(prompt="hello")

    def test_no_providers(self):
        manager = _manager()
        assert not manager.is_available
        with pytest.raises(ProviderError):
            manager.generate(prompt="hello")


class TestFailover:

    def test_falls_back_to_next_provider(self):
        openai = FakeProvider("openai", error=RuntimeError("500 server error"))
        groq = FakeProvider("groq", replies=["from groq"])

        assert _manager(openai=openai, groq=groq).generate(prompt="hello") == "from groq"
        assert len(openai.requests) == 1
        assert len(groq.requests) == 1

    def test_rate_limit_switches_provider(self):
        openai = FakeProvider("openai", error=RuntimeError("429 Too Many Requests"))
        groq = FakeProvider("groq", replies=["from groq"])
        manager = _manager(openai=openai, groq=groq)

        assert manager.generate(prompt="hello") == "from groq"
        assert openai.status == ProviderStatus.RATE_LIMITED
        assert manager.get_status()["current_provider"] == "groq"

    def test_all_providers_failing(self):
        manager = _manager(
            openai=FakeProvider("openai", error=RuntimeError("boom")),
            groq=FakeProvider("groq", error=RuntimeError("boom")),
        )
        with pytest.raises(ProviderError, match="Failed to get response from AI model"):
            manager.generate(prompt="hello")

    def test_retries_before_giving_up(self):
        openai = FakeProvider("openai", error=RuntimeError("timeout"))
        config = LLMManagerConfig(provider_priority=["openai"], max_retries=2, retry_delay=0)
        manager = LLMManager({"openai": openai}, config)

        with pytest.raises(ProviderError):
            manager.generate(prompt="hello")
        assert len(openai.requests) == 3
        assert manager.session_stats["failed_requests"] == 3


class TestFromConfig:

    def test_without_keys_has_no_providers(self):
        manager = LLMManager.from_config(AppConfig())
        assert manager.available_providers == []


class TestPackaging:

    def test_openai_floor_supports_max_completion_tokens(self):
        pyproject = (Path(__file__).parent.parent / "pyproject.toml").read_text()
        match = re.search(r'"openai>=(\d+)\.(\d+)"', pyproject)
        assert match
        assert (int(match.group(1)), int(match.group(2))) >= (1, 45)
