"""
Research and Assets Aggregators - one-shot generation per topic.

Research runs recommended-sources lookup, web search and a cited
synthesis for a topic, then triggers the cross-topic comprehensive
analysis once every research topic has been covered.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Mapping, Optional, Sequence

from ..errors import ProviderError, ResearchError, ValidationError
from ..llm import ANALYSIS_OPTIONS, ASSETS_OPTIONS, RESEARCH_OPTIONS, LLMManager
from ..prompts import (
    RESEARCH_ASSISTANT_SYSTEM_PROMPT,
    create_analysis_apology,
    create_analysis_prompt,
    create_asset_prompt,
    create_research_apology,
    create_research_synthesis_prompt,
)
from ..report.formatting import clean_response_text, extract_report_content
from ..research.search import WebResearchClient
from ..research.sources import recommended_sources
from ..schemas.state import AppState, PhaseKind, ResearchProgress, StateStore, VillageInfo
from ..schemas.topics import ASSET_TOPICS, RESEARCH_TOPICS, Topic, research_focus
from .topic_session import INCOMPLETE_RESULTS_NOTICE

logger = logging.getLogger(__name__)

ANALYSIS_EXCERPT_CHARS = 1500
INSUFFICIENT_DATA_TEXT = (
    "Insufficient research data available for comprehensive analysis. "
    "Please conduct research on more topics."
)


def all_topics_researched(topics: Sequence[Topic], completion_map: Mapping[str, bool]) -> bool:
    """True iff there is at least one topic and every topic id has a true entry in the completion map."""
    return bool(topics) and all(completion_map.get(topic.id, False) for topic in topics)


def generate_comprehensive_analysis(
    llm: LLMManager,
    village: VillageInfo,
    results: Mapping[str, str]
) -> str:
    """
    Cross-topic synthesis over the per-topic research documents.

    Each topic contributes at most its first 1,500 characters. Never raises:
    no data yields a notice and a provider failure yields an apology document.
    """
    sections = [
        f"## {topic_id.upper()} RESEARCH:\n{text[:ANALYSIS_EXCERPT_CHARS]}..."
        for topic_id, text in results.items()
        if text and text.strip()
    ]
    if not sections:
        return INSUFFICIENT_DATA_TEXT

    prompt = create_analysis_prompt(village.name, village.country, "\n\n".join(sections))
    try:
        text = llm.generate(prompt=prompt, options=ANALYSIS_OPTIONS)
    except ProviderError as e:
        logger.error("Error generating comprehensive analysis: %s", e)
        return create_analysis_apology(village.name, str(e))
    return clean_response_text(text)


class ResearchAggregator:
    """
    Runs research per topic and owns the comprehensive-analysis trigger.

    Usage:
        research = ResearchAggregator(llm, search_client, store)
        document = research.conduct_research("agriculture")
        analysis = research.check_comprehensive_analysis()  # None until all topics are done
    """

    def __init__(
        self,
        llm: LLMManager,
        search_client: WebResearchClient,
        store: StateStore,
        topics: Sequence[Topic] = RESEARCH_TOPICS
    ):
        self.llm = llm
        self.search_client = search_client
        self.store = store
        self.topics = tuple(topics)
        self._progress: Dict[str, ResearchProgress] = {}
        self._analysis_current = False
        # Bumped on every stored research document
        self._generation = 0
        self._lock = threading.Lock()

    def _get_topic(self, topic_id: str) -> Topic:
        for topic in self.topics:
            if topic.id == topic_id:
                return topic
        raise ValidationError(f"Unknown research topic: {topic_id}")

    # =========================================================================
    # PROGRESS
    # =========================================================================

    def _advance(self, topic_id: str, stage: ResearchProgress) -> None:
        with self._lock:
            current = self._progress.get(topic_id)
            if current is None or stage.percent >= current.percent:
                self._progress[topic_id] = stage

    def _restart(self, topic_id: str) -> None:
        with self._lock:
            self._progress[topic_id] = ResearchProgress.SEARCHING

    def _clear(self, topic_id: str) -> None:
        with self._lock:
            self._progress.pop(topic_id, None)

    def stage(self, topic_id: str) -> Optional[ResearchProgress]:
        with self._lock:
            return self._progress.get(topic_id)

    def progress(self, topic_id: str) -> int:
        """0-100 estimate for the UI; 0 when no research has started."""
        stage = self.stage(topic_id)
        return stage.percent if stage else 0

    # =========================================================================
    # RESEARCH
    # =========================================================================

    def conduct_research(self, topic_id: str) -> str:
        """
        Research one topic and store the resulting document.

        Returns:
            The cited research document, or an apology document when the
            completion client fails after a successful search

        Raises:
            ValidationError: topic is not a research topic
            ResearchError: no search results, or search not configured;
                the topic is left uncompleted
        """
        topic = self._get_topic(topic_id)
        village = self.store.state.village

        sources = recommended_sources(topic.id, village.country)
        self.store.apply(lambda s: s.with_sources(topic.id, sources))

        self._restart(topic.id)
        try:
            results = self.search_client.search(
                topic.id, village.name, village.country,
                on_progress=lambda stage: self._advance(topic.id, stage)
            )
        except ResearchError as e:
            logger.warning("Research failed for %s: %s", topic.id, e)
            self._clear(topic.id)
            raise

        self._advance(topic.id, ResearchProgress.SYNTHESIZING)
        prompt = create_research_synthesis_prompt(
            topic.id,
            village.name,
            village.country,
            [r.to_dict() for r in results],
            focus=research_focus(topic.id, village.name, village.country),
        )
        try:
            text = self.llm.generate(
                prompt=prompt,
                options=RESEARCH_OPTIONS,
                system_prompt=RESEARCH_ASSISTANT_SYSTEM_PROMPT,
            )
            document = extract_report_content(text)
            if not document.startswith("# "):
                document = clean_response_text(text, topic.id, village.name, village.country)
        except ProviderError as e:
            logger.error("Synthesis failed for %s: %s", topic.id, e)
            document = create_research_apology(topic.id, village.name, village.country, str(e))

        def update(state: AppState) -> AppState:
            state = state.with_answer(PhaseKind.RESEARCH, topic.id, document)
            # New research makes any earlier comprehensive analysis stale
            return state.mark_completed(PhaseKind.RESEARCH, topic.id).with_analysis("")

        with self._lock:
            self.store.apply(update)
            self._analysis_current = False
            self._generation += 1
        self._advance(topic.id, ResearchProgress.DONE)
        logger.info("Research complete for %s (%d chars)", topic.id, len(document))
        return document

    def all_topics_researched(self) -> bool:
        return all_topics_researched(self.topics, self.store.state.completion_map(PhaseKind.RESEARCH))

    def check_comprehensive_analysis(self) -> Optional[str]:
        """
        Generate the comprehensive analysis if every topic is researched and
        it has not been generated since the last research.

        Returns the new analysis, or None when nothing was generated. An
        analysis whose inputs were refreshed while it was being generated is
        discarded and also yields None.
        """
        with self._lock:
            if self._analysis_current or not self.all_topics_researched():
                return None
            self._analysis_current = True
            generation = self._generation
            state = self.store.state

        logger.info("All research topics complete, generating comprehensive analysis")
        analysis = generate_comprehensive_analysis(
            self.llm, state.village, state.answers_for(PhaseKind.RESEARCH)
        )

        with self._lock:
            if generation != self._generation:
                logger.info("Research changed during analysis, discarding stale result")
                return None
            self.store.apply(lambda s: s.with_analysis(analysis))
        return analysis

    @property
    def analysis(self) -> str:
        return self.store.state.analysis

    def sources(self, topic_id: str) -> list:
        return [s.to_dict() for s in self.store.state.sources.get(topic_id, ())]


class AssetsAggregator:
    """One-shot asset analysis per asset topic."""

    def __init__(self, llm: LLMManager, store: StateStore, topics: Sequence[Topic] = ASSET_TOPICS):
        self.llm = llm
        self.store = store
        self.topics = tuple(topics)

    def conduct_assets_research(self, topic_id: str) -> str:
        """
        Generate the asset analysis for a topic.

        On provider failure the incomplete-results notice is stored and
        returned, and the topic stays uncompleted.

        Raises:
            ValidationError: topic is not an asset topic
        """
        topic = next((t for t in self.topics if t.id == topic_id), None)
        if topic is None:
            raise ValidationError(f"Unknown asset topic: {topic_id}")
        village = self.store.state.village

        prompt = create_asset_prompt(topic.id, village.name, village.country)
        try:
            text = self.llm.generate(
                prompt=prompt,
                options=ASSETS_OPTIONS,
                system_prompt=RESEARCH_ASSISTANT_SYSTEM_PROMPT,
            )
        except ProviderError as e:
            logger.warning("Asset analysis failed for %s: %s", topic.id, e)
            self.store.apply(lambda s: s.with_answer(PhaseKind.ASSETS, topic.id, INCOMPLETE_RESULTS_NOTICE))
            return INCOMPLETE_RESULTS_NOTICE

        self.store.apply(
            lambda s: s.with_answer(PhaseKind.ASSETS, topic.id, text).mark_completed(PhaseKind.ASSETS, topic.id)
        )
        return text

    def completion_map(self) -> Dict[str, bool]:
        return self.store.state.completion_map(PhaseKind.ASSETS)

    def answers(self) -> Dict[str, str]:
        return self.store.state.answers_for(PhaseKind.ASSETS)
