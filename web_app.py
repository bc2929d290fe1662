#!/usr/bin/env python3
"""
Community Researcher - web service.

JSON API for the guided interview: introduction, conversation, research,
assets, aspirations and the final report. One workflow per browser
session, kept in memory.

Run:
    python web_app.py
"""

import logging
import secrets
import threading
from typing import Optional

from flask import Flask, Response, jsonify, render_template_string, request

from community_researcher.agents import CommunityResearchWorkflow
from community_researcher.config import AppConfig, configure_logging
from community_researcher.errors import (
    NoResultsError,
    ResearchError,
    SearchUnconfiguredError,
    SessionBusyError,
    ValidationError,
)
from community_researcher.llm import LLMManager
from community_researcher.research import WebResearchClient, fetch_page
from community_researcher.schemas import (
    ASPIRATION_TOPICS,
    ASSET_TOPICS,
    CONVERSATION_TOPICS,
    RESEARCH_TOPICS,
    DirectAnswerUpdate,
    PhaseKind,
    VillageInfo,
    base_topic_id,
)

config = AppConfig.from_env()
configure_logging(config.log_level)
logger = logging.getLogger("web_app")

app = Flask(__name__)
app.secret_key = secrets.token_hex(16)

# Store workflows per session
workflows = {}
workflows_lock = threading.Lock()

# Clients are shared across sessions; built on first use
_services = {}
_services_lock = threading.Lock()

CHAT_PHASES = {PhaseKind.CONVERSATION.value, PhaseKind.ASPIRATIONS.value}

HTML_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <title>Community Researcher</title>
</head>
<body>
    <h1>Community Researcher</h1>
    <p>Guided interview about a community: conversation, web research, assets,
    aspirations and a final report.</p>
    <p>Start a session with <code>POST /api/start</code> and a JSON body of
    <code>{"name": ..., "country": ..., "role": ...}</code>.</p>
</body>
</html>
"""


def get_llm_manager() -> LLMManager:
    with _services_lock:
        if "llm" not in _services:
            _services["llm"] = LLMManager.from_config(config)
        return _services["llm"]


def get_search_client() -> WebResearchClient:
    with _services_lock:
        if "search" not in _services:
            _services["search"] = WebResearchClient(config.search_api_key, config.search_engine_id)
        return _services["search"]


def build_workflow(village: VillageInfo) -> CommunityResearchWorkflow:
    return CommunityResearchWorkflow(village, get_llm_manager(), get_search_client())


def _get_workflow(session_id: Optional[str]) -> Optional[CommunityResearchWorkflow]:
    with workflows_lock:
        return workflows.get(session_id)


def _invalid_session():
    return jsonify({'error': 'Invalid session'}), 400


def _payload() -> dict:
    return request.get_json(silent=True) or {}


def _topic_list(topics) -> list:
    return [{'id': t.id, 'title': t.title} for t in topics]


@app.route('/')
def index():
    return render_template_string(HTML_TEMPLATE)


# =============================================================================
# INTRODUCTION
# =============================================================================

@app.route('/api/start', methods=['POST'])
def start_session():
    data = _payload()
    name = (data.get('name') or '').strip()
    country = (data.get('country') or '').strip()
    role = (data.get('role') or '').strip()

    if not name or not country or not role:
        return jsonify({'error': 'Village name, country and role are required'}), 400

    village = VillageInfo(name=name, country=country, role=role)
    workflow = build_workflow(village)
    session_id = secrets.token_hex(8)
    with workflows_lock:
        workflows[session_id] = workflow

    return jsonify({
        'session_id': session_id,
        'villageInfo': village.to_dict()
    })


@app.route('/api/topics', methods=['GET'])
def get_topics():
    return jsonify({
        'conversation': _topic_list(CONVERSATION_TOPICS),
        'research': _topic_list(RESEARCH_TOPICS),
        'assets': _topic_list(ASSET_TOPICS),
        'aspirations': _topic_list(ASPIRATION_TOPICS)
    })


@app.route('/api/status', methods=['GET'])
def get_status():
    workflow = _get_workflow(request.args.get('session_id'))
    if workflow is None:
        return _invalid_session()
    return jsonify(workflow.status())


# =============================================================================
# CONVERSATION & ASPIRATIONS
# =============================================================================

@app.route('/api/<phase>/select', methods=['POST'])
def select_topic(phase):
    if phase not in CHAT_PHASES:
        return jsonify({'error': f'Unknown phase: {phase}'}), 404
    data = _payload()
    workflow = _get_workflow(data.get('session_id'))
    if workflow is None:
        return _invalid_session()

    aggregator = workflow.chat_phase(PhaseKind(phase))
    topic_id = data.get('topic')
    try:
        aggregator.select_topic(topic_id)
    except ValidationError as e:
        return jsonify({'error': str(e)}), 400

    return jsonify(aggregator.to_dict(topic_id))


@app.route('/api/<phase>/respond', methods=['POST'])
def respond(phase):
    if phase not in CHAT_PHASES:
        return jsonify({'error': f'Unknown phase: {phase}'}), 404
    data = _payload()
    workflow = _get_workflow(data.get('session_id'))
    if workflow is None:
        return _invalid_session()

    aggregator = workflow.chat_phase(PhaseKind(phase))
    topic_id = data.get('topic') or aggregator.active_topic_id
    try:
        reply = aggregator.on_user_submit(topic_id, data.get('message', ''))
    except SessionBusyError as e:
        return jsonify({'error': str(e)}), 409

    result = aggregator.to_dict(topic_id)
    result['reply'] = reply.to_dict() if reply else None
    return jsonify(result)


@app.route('/api/aspirations/answer', methods=['POST'])
def answer_aspiration():
    data = _payload()
    workflow = _get_workflow(data.get('session_id'))
    if workflow is None:
        return _invalid_session()

    topic_id = data.get('topic')
    if not topic_id:
        return jsonify({'error': 'Topic is required'}), 400
    if workflow.aspirations.get_topic(base_topic_id(topic_id)) is None:
        return jsonify({'error': f'Unknown aspirations topic: {topic_id}'}), 400

    state = workflow.aspirations.apply_update(DirectAnswerUpdate(topic_id, data.get('answer', '')))
    return jsonify({
        'topic': topic_id,
        'completed': state.completion_map(PhaseKind.ASPIRATIONS),
        'answers': state.answers_for(PhaseKind.ASPIRATIONS)
    })


# =============================================================================
# RESEARCH
# =============================================================================

@app.route('/api/research', methods=['POST'])
def conduct_research():
    data = _payload()
    workflow = _get_workflow(data.get('session_id'))
    if workflow is None:
        return _invalid_session()

    topic_id = data.get('topic')
    try:
        document = workflow.research.conduct_research(topic_id)
    except ValidationError as e:
        return jsonify({'error': str(e)}), 400
    except NoResultsError as e:
        return jsonify(e.to_dict()), 404
    except SearchUnconfiguredError as e:
        return jsonify(e.to_dict()), 503
    except ResearchError as e:
        return jsonify(e.to_dict()), 502

    return jsonify({
        'topic': topic_id,
        'document': document,
        'sources': workflow.research.sources(topic_id),
        'progress': workflow.research.progress(topic_id),
        'allTopicsResearched': workflow.research.all_topics_researched()
    })


@app.route('/api/research/progress', methods=['GET'])
def research_progress():
    workflow = _get_workflow(request.args.get('session_id'))
    if workflow is None:
        return _invalid_session()

    topic_id = request.args.get('topic', '')
    stage = workflow.research.stage(topic_id)
    return jsonify({
        'topic': topic_id,
        'progress': workflow.research.progress(topic_id),
        'stage': stage.value if stage else None,
        'label': stage.label if stage else None
    })


@app.route('/api/research/analysis', methods=['GET'])
def research_analysis():
    workflow = _get_workflow(request.args.get('session_id'))
    if workflow is None:
        return _invalid_session()

    generated = workflow.research.check_comprehensive_analysis()
    return jsonify({
        'analysis': workflow.research.analysis,
        'generated': generated is not None,
        'allTopicsResearched': workflow.research.all_topics_researched()
    })


# =============================================================================
# ASSETS
# =============================================================================

@app.route('/api/assets', methods=['POST'])
def conduct_assets():
    data = _payload()
    workflow = _get_workflow(data.get('session_id'))
    if workflow is None:
        return _invalid_session()

    topic_id = data.get('topic')
    try:
        content = workflow.assets.conduct_assets_research(topic_id)
    except ValidationError as e:
        return jsonify({'error': str(e)}), 400

    return jsonify({
        'topic': topic_id,
        'content': content,
        'completed': workflow.assets.completion_map()
    })


# =============================================================================
# REPORT & EXPORT
# =============================================================================

@app.route('/api/report', methods=['POST'])
def generate_report():
    workflow = _get_workflow(_payload().get('session_id'))
    if workflow is None:
        return _invalid_session()
    return jsonify({'report': workflow.compile_report()})


@app.route('/api/export/report', methods=['GET'])
def export_report():
    workflow = _get_workflow(request.args.get('session_id'))
    if workflow is None:
        return _invalid_session()

    filename, document = workflow.export_report()
    return Response(
        document,
        mimetype='application/msword',
        headers={'Content-Disposition': f'attachment; filename="{filename}"'}
    )


@app.route('/api/export/data', methods=['GET'])
def export_data():
    workflow = _get_workflow(request.args.get('session_id'))
    if workflow is None:
        return _invalid_session()

    filename, snapshot = workflow.export_snapshot()
    return Response(
        snapshot,
        mimetype='application/json',
        headers={'Content-Disposition': f'attachment; filename="{filename}"'}
    )


# =============================================================================
# CONTENT FETCH
# =============================================================================

@app.route('/api/fetch-content', methods=['POST'])
def fetch_content():
    url = (_payload().get('url') or '').strip()
    if not url:
        return jsonify({'error': 'URL is required'}), 400

    page = fetch_page(url, timeout=config.fetch_timeout)
    if page.unsupported_content:
        return jsonify({'error': page.error, 'snippet': ''}), 400
    if not page.ok:
        return jsonify({'error': f'Failed to fetch content: {page.error}'}), 500

    return jsonify({
        'title': page.title,
        'content': page.text_content,
        'url': page.url
    })


if __name__ == '__main__':
    logger.info("Starting Community Researcher on http://localhost:5001")
    app.run(debug=True, host='0.0.0.0', port=5001, threaded=True)
