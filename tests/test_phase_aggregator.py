"""
Tests for the conversation and aspirations phase aggregators.
"""

import pytest

from community_researcher.agents.phase_aggregator import AspirationsAggregator, PhaseAggregator
from community_researcher.errors import ValidationError
from community_researcher.report import ReportData
from community_researcher.schemas.state import (
    ChatMessage,
    ConversationUpdate,
    DirectAnswerUpdate,
    PhaseKind,
    Role,
    aggregate_user_text,
    base_topic_id,
)
from community_researcher.schemas.topics import aspiration_question, conversation_starter


@pytest.fixture
def conversation(llm, store):
    return PhaseAggregator(PhaseKind.CONVERSATION, llm, store)


@pytest.fixture
def aspirations(llm, store):
    return AspirationsAggregator(llm, store)


class TestConversationAggregator:

    def test_select_topic_seeds_once(self, conversation):
        first = conversation.select_topic("healthcare")
        second = conversation.select_topic("healthcare")
        assert len(first) == 1
        assert second == first
        assert conversation.active_topic_id == "healthcare"

    def test_select_unknown_topic(self, conversation):
        with pytest.raises(ValidationError):
            conversation.select_topic("astronomy")

    @pytest.mark.parametrize("text", ["", "   "])
    def test_blank_submit_is_ignored(self, conversation, llm, text):
        conversation.select_topic("power")
        assert conversation.submit(text) is None
        assert len(conversation.messages("power")) == 1
        assert llm.calls == []

    def test_submit_without_active_topic_is_ignored(self, conversation, llm):
        assert conversation.submit("hello") is None
        assert llm.calls == []

    def test_submit_to_unknown_topic_is_ignored(self, conversation, llm, store):
        assert conversation.on_user_submit("astronomy", "hello") is None
        assert store.state.conversations == {}

    @pytest.mark.parametrize("turns", [1, 2, 5])
    def test_aggregated_answer_joins_user_text(self, conversation, turns):
        conversation.select_topic("livelihoods")
        sent = [f"Answer number {i}." for i in range(turns)]
        for text in sent:
            conversation.submit(text)

        assert conversation.answers()["livelihoods"] == " ".join(sent)
        assert aggregate_user_text(conversation.messages("livelihoods")) == " ".join(sent)

    def test_completion_map_after_three_turns(self, conversation):
        conversation.select_topic("food")
        for i in range(2):
            conversation.submit(f"turn {i}")
        assert not conversation.completion_map().get("food")
        conversation.submit("turn 2")
        assert conversation.completion_map()["food"] is True

    def test_submit_to_unselected_topic_seeds_first(self, conversation):
        conversation.on_user_submit("healthcare", "The clinic is 10 km away")
        log = conversation.messages("healthcare")

        assert [m.role for m in log] == [Role.ASSISTANT, Role.USER, Role.ASSISTANT]
        assert log[0].content == conversation_starter("healthcare")
        assert conversation.select_topic("healthcare") == log

    def test_stale_reply_applies_to_its_own_topic(self, conversation):
        conversation.select_topic("power")
        conversation.select_topic("education")
        reply = conversation.on_user_submit("power", "We use solar lanterns")

        assert conversation.active_topic_id == "education"
        assert conversation.messages("power")[-1] == reply
        assert len(conversation.messages("education")) == 1

    def test_failure_in_one_topic_leaves_others_alone(self, failing_llm, store):
        aggregator = PhaseAggregator(PhaseKind.CONVERSATION, failing_llm, store)
        aggregator.select_topic("education")
        aggregator.select_topic("power")
        aggregator.submit("No grid connection")

        assert len(aggregator.messages("education")) == 1
        assert aggregator.messages("power")[-1].role == Role.ASSISTANT

    def test_to_dict(self, conversation):
        conversation.select_topic("political")
        payload = conversation.to_dict()
        assert payload["phase"] == "conversation"
        assert payload["topic"] == "political"
        assert payload["messages"][0]["role"] == "assistant"


class TestAspirationsAggregator:

    def test_session_key_has_suffix(self, aspirations, store):
        aspirations.select_topic("agriculture")
        assert "agriculture_aspirations" in store.state.conversations
        assert store.state.conversation("agriculture_aspirations")[0].content == aspiration_question("agriculture")

    def test_conversation_update_publishes_under_base_id(self, aspirations):
        messages = (
            ChatMessage(Role.ASSISTANT, "What are your hopes?"),
            ChatMessage(Role.USER, "Irrigation for every farm"),
            ChatMessage(Role.ASSISTANT, "What holds you back?"),
            ChatMessage(Role.USER, "no pumps"),
        )
        state = aspirations.apply_update(ConversationUpdate("agriculture_aspirations", messages))

        assert state.is_completed(PhaseKind.ASPIRATIONS, "agriculture")
        assert state.answers_for(PhaseKind.ASPIRATIONS) == {"agriculture": "Irrigation for every farm no pumps"}
        assert state.conversation("agriculture_aspirations") == messages

    def test_conversation_update_without_user_text(self, aspirations):
        messages = (ChatMessage(Role.ASSISTANT, "What are your hopes?"),)
        state = aspirations.apply_update(ConversationUpdate("power_aspirations", messages))

        assert not state.is_completed(PhaseKind.ASPIRATIONS, "power")
        assert "power" not in state.answers_for(PhaseKind.ASPIRATIONS)

    def test_direct_answer(self, aspirations):
        state = aspirations.apply_update(DirectAnswerUpdate("food_aspirations", "Two harvests a year"))
        assert state.answers_for(PhaseKind.ASPIRATIONS)["food"] == "Two harvests a year"
        assert state.is_completed(PhaseKind.ASPIRATIONS, "food")

    def test_blank_direct_answer_is_ignored(self, aspirations, store):
        before = store.state
        assert aspirations.apply_update(DirectAnswerUpdate("food", "  ")) is before

    def test_direct_answer_for_unknown_topic_is_ignored(self, aspirations, store):
        before = store.state
        state = aspirations.apply_update(DirectAnswerUpdate("astronomy", "We want a telescope"))

        assert state is before
        assert state.completion_map(PhaseKind.ASPIRATIONS) == {}
        assert ReportData.from_state(state).aspirations == {}

    def test_conversation_update_for_unknown_topic_is_ignored(self, aspirations, store):
        messages = (ChatMessage(Role.USER, "A telescope"),)
        state = aspirations.apply_update(ConversationUpdate("astronomy_aspirations", messages))

        assert state.conversation("astronomy_aspirations") == ()
        assert not state.is_completed(PhaseKind.ASPIRATIONS, "astronomy")

    def test_unknown_update_type(self, aspirations):
        with pytest.raises(TypeError):
            aspirations.apply_update("just a string")

    def test_completion_is_latched(self, aspirations):
        aspirations.apply_update(DirectAnswerUpdate("education", "A secondary school"))
        state = aspirations.apply_update(
            ConversationUpdate("education", (ChatMessage(Role.ASSISTANT, "Anything else?"),))
        )
        assert state.is_completed(PhaseKind.ASPIRATIONS, "education")

    def test_single_submit_completes_topic(self, aspirations):
        aspirations.select_topic("healthcare")
        aspirations.submit("A clinic within walking distance")

        assert aspirations.completion_map()["healthcare"] is True
        assert aspirations.answers()["healthcare"] == "A clinic within walking distance"

    def test_base_topic_id(self):
        assert base_topic_id("agriculture_aspirations") == "agriculture"
        assert base_topic_id("agriculture") == "agriculture"
