"""
Tests for the web API.

Uses Flask test client with fake completion and search clients; no
network access needed.
"""

from unittest.mock import patch

import pytest

from conftest import FakeLLM, FakeSearch
import web_app
from web_app import app
from community_researcher.agents import CommunityResearchWorkflow
from community_researcher.errors import SearchUnconfiguredError, SessionBusyError
from community_researcher.research import FetchedPage
from community_researcher.schemas.state import PhaseKind
from community_researcher.schemas.topics import RESEARCH_TOPICS


@pytest.fixture
def fakes():
    return {"llm": FakeLLM(), "search": FakeSearch()}


@pytest.fixture
def client(fakes):
    app.config["TESTING"] = True
    with web_app.workflows_lock:
        web_app.workflows.clear()

    def build(village):
        return CommunityResearchWorkflow(village, fakes["llm"], fakes["search"])

    with patch("web_app.build_workflow", side_effect=build):
        with app.test_client() as client:
            yield client


@pytest.fixture
def session_id(client):
    resp = client.post("/api/start", json={"name": "Kibera", "country": "Kenya", "role": "Chief"})
    return resp.get_json()["session_id"]


def _workflow(session_id):
    return web_app.workflows[session_id]


class TestStart:

    def test_creates_session(self, client):
        resp = client.post("/api/start", json={"name": " Kibera ", "country": "Kenya", "role": "Chief"})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["villageInfo"] == {"name": "Kibera", "country": "Kenya", "role": "Chief"}
        assert data["session_id"] in web_app.workflows

    @pytest.mark.parametrize("payload", [
        {},
        {"name": "Kibera", "country": "Kenya"},
        {"name": "  ", "country": "Kenya", "role": "Chief"},
    ])
    def test_requires_all_fields(self, client, payload):
        resp = client.post("/api/start", json=payload)
        assert resp.status_code == 400
        assert web_app.workflows == {}

    def test_topics(self, client):
        data = client.get("/api/topics").get_json()
        assert len(data["research"]) == 9
        assert data["assets"][0] == {"id": "agriculture", "title": "Agriculture Assets"}

    def test_invalid_session(self, client):
        resp = client.get("/api/status?session_id=nope")
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "Invalid session"}


class TestChatPhases:

    def test_select_seeds_topic(self, client, session_id):
        resp = client.post("/api/conversation/select", json={"session_id": session_id, "topic": "power"})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["topic"] == "power"
        assert len(data["messages"]) == 1
        assert data["messages"][0]["role"] == "assistant"

    def test_select_unknown_topic(self, client, session_id):
        resp = client.post("/api/conversation/select", json={"session_id": session_id, "topic": "astronomy"})
        assert resp.status_code == 400

    def test_unknown_phase(self, client, session_id):
        resp = client.post("/api/research/select", json={"session_id": session_id, "topic": "power"})
        assert resp.status_code == 404

    def test_respond_to_active_topic(self, client, session_id):
        client.post("/api/conversation/select", json={"session_id": session_id, "topic": "power"})
        resp = client.post("/api/conversation/respond", json={"session_id": session_id, "message": "Solar only"})

        data = resp.get_json()
        assert data["reply"] == {"role": "assistant", "content": "Generated reply 1"}
        assert [m["role"] for m in data["messages"]] == ["assistant", "user", "assistant"]

    def test_blank_message_is_ignored(self, client, session_id, fakes):
        client.post("/api/conversation/select", json={"session_id": session_id, "topic": "power"})
        resp = client.post("/api/conversation/respond", json={"session_id": session_id, "message": "  "})
        assert resp.status_code == 200
        assert resp.get_json()["reply"] is None
        assert fakes["llm"].calls == []

    def test_busy_topic_is_conflict(self, client, session_id):
        workflow = _workflow(session_id)
        with patch.object(workflow.conversation, "on_user_submit", side_effect=SessionBusyError("power")):
            resp = client.post(
                "/api/conversation/respond",
                json={"session_id": session_id, "topic": "power", "message": "again"},
            )
        assert resp.status_code == 409

    def test_aspirations_conversation_completes_base_topic(self, client, session_id):
        client.post("/api/aspirations/select", json={"session_id": session_id, "topic": "food"})
        client.post("/api/aspirations/respond", json={"session_id": session_id, "message": "No hunger season"})

        status = client.get(f"/api/status?session_id={session_id}").get_json()
        assert status["phases"]["aspirations"]["topics"]["food"] is True

    def test_direct_aspiration_answer(self, client, session_id):
        resp = client.post(
            "/api/aspirations/answer",
            json={"session_id": session_id, "topic": "education", "answer": "A secondary school"},
        )
        data = resp.get_json()
        assert data["completed"] == {"education": True}
        assert data["answers"] == {"education": "A secondary school"}

    def test_direct_answer_for_unknown_topic(self, client, session_id):
        resp = client.post(
            "/api/aspirations/answer",
            json={"session_id": session_id, "topic": "astronomy", "answer": "We want a telescope"},
        )
        assert resp.status_code == 400
        assert _workflow(session_id).state.answers_for(PhaseKind.ASPIRATIONS) == {}

    def test_respond_to_unselected_topic_opens_with_question(self, client, session_id):
        resp = client.post(
            "/api/conversation/respond",
            json={"session_id": session_id, "topic": "food", "message": "Two meals a day"},
        )
        assert [m["role"] for m in resp.get_json()["messages"]] == ["assistant", "user", "assistant"]

    def test_direct_answer_requires_topic(self, client, session_id):
        resp = client.post("/api/aspirations/answer", json={"session_id": session_id, "answer": "x"})
        assert resp.status_code == 400


class TestResearch:

    def test_research_topic(self, client, session_id):
        resp = client.post("/api/research", json={"session_id": session_id, "topic": "demographics"})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["document"].startswith("# Demographics in Kibera, Kenya")
        assert data["progress"] == 100
        assert data["sources"][0]["name"] == "Kenya Population and Housing Census"
        assert data["allTopicsResearched"] is False

    def test_no_results(self, client, session_id, fakes):
        fakes["search"].results = []
        resp = client.post("/api/research", json={"session_id": session_id, "topic": "power"})
        assert resp.status_code == 404
        assert resp.get_json()["title"] == "Unable to research power"

    def test_search_not_configured(self, client, session_id, fakes):
        fakes["search"].error = SearchUnconfiguredError("power")
        resp = client.post("/api/research", json={"session_id": session_id, "topic": "power"})
        assert resp.status_code == 503

    def test_unknown_topic(self, client, session_id):
        resp = client.post("/api/research", json={"session_id": session_id, "topic": "astronomy"})
        assert resp.status_code == 400

    def test_progress_before_research(self, client, session_id):
        data = client.get(f"/api/research/progress?session_id={session_id}&topic=power").get_json()
        assert data == {"topic": "power", "progress": 0, "stage": None, "label": None}

    def test_analysis_after_all_topics(self, client, session_id):
        first = client.get(f"/api/research/analysis?session_id={session_id}").get_json()
        assert first["generated"] is False

        for topic in RESEARCH_TOPICS:
            client.post("/api/research", json={"session_id": session_id, "topic": topic.id})

        second = client.get(f"/api/research/analysis?session_id={session_id}").get_json()
        third = client.get(f"/api/research/analysis?session_id={session_id}").get_json()
        assert second["generated"] is True
        assert second["analysis"]
        assert third["generated"] is False
        assert third["analysis"] == second["analysis"]


class TestAssetsAndReport:

    def test_assets(self, client, session_id):
        resp = client.post("/api/assets", json={"session_id": session_id, "topic": "power"})
        data = resp.get_json()
        assert data["content"] == "Generated reply 1"
        assert data["completed"] == {"power": True}

    def test_report_and_exports(self, client, session_id):
        report = client.post("/api/report", json={"session_id": session_id}).get_json()["report"]
        assert report == "Generated reply 1"

        doc = client.get(f"/api/export/report?session_id={session_id}")
        assert doc.mimetype == "application/msword"
        assert 'filename="Kibera_Final_Report.doc"' in doc.headers["Content-Disposition"]
        assert "Generated reply 1" in doc.get_data(as_text=True)

        raw = client.get(f"/api/export/data?session_id={session_id}")
        assert raw.mimetype == "application/json"
        assert 'filename="Kibera_raw_data.json"' in raw.headers["Content-Disposition"]
        assert raw.get_json()["villageInfo"]["name"] == "Kibera"

    def test_report_failure(self, client, session_id, fakes):
        fakes["llm"].fail = True
        report = client.post("/api/report", json={"session_id": session_id}).get_json()["report"]
        assert report == "Error generating report. Please try again later."


class TestFetchContent:

    def test_requires_url(self, client):
        assert client.post("/api/fetch-content", json={}).status_code == 400

    def test_success(self, client):
        page = FetchedPage(url="https://example.org", title="Survey", text_content="Body")
        with patch("web_app.fetch_page", return_value=page):
            resp = client.post("/api/fetch-content", json={"url": "https://example.org"})
        assert resp.get_json() == {"title": "Survey", "content": "Body", "url": "https://example.org"}

    def test_unsupported_content(self, client):
        page = FetchedPage(url="https://example.org/a.pdf", error="Unsupported content type: application/pdf",
                           unsupported_content=True)
        with patch("web_app.fetch_page", return_value=page):
            resp = client.post("/api/fetch-content", json={"url": "https://example.org/a.pdf"})
        assert resp.status_code == 400
        assert resp.get_json()["snippet"] == ""

    def test_network_failure(self, client):
        page = FetchedPage(url="https://example.org", error="timed out")
        with patch("web_app.fetch_page", return_value=page):
            resp = client.post("/api/fetch-content", json={"url": "https://example.org"})
        assert resp.status_code == 500
        assert "timed out" in resp.get_json()["error"]
