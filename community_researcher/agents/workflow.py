"""
Community research workflow - owns the application state for one session
and wires every phase to it.
"""

import logging
from typing import Optional, Tuple

from ..llm import LLMManager
from ..report.compiler import ReportCompiler, ReportData
from ..report.export import export_snapshot, render_word_document, report_filename, snapshot_filename
from ..research.search import WebResearchClient
from ..schemas.state import AppState, PhaseKind, StateStore, VillageInfo
from ..schemas.topics import topics_for_phase
from .phase_aggregator import AspirationsAggregator, PhaseAggregator
from .research_aggregator import AssetsAggregator, ResearchAggregator

logger = logging.getLogger(__name__)


class CommunityResearchWorkflow:
    """
    One interview session: introduction data plus every phase aggregator.

    Usage:
        workflow = CommunityResearchWorkflow(VillageInfo("Kibera", "Kenya", "Chief"), llm, search)
        workflow.conversation.select_topic("demographics")
        workflow.conversation.submit("About 2,000 people live here.")
        report = workflow.compile_report()
    """

    def __init__(
        self,
        village: VillageInfo,
        llm: LLMManager,
        search_client: Optional[WebResearchClient] = None
    ):
        self.llm = llm
        self.store = StateStore(AppState(village=village))
        self.search_client = search_client or WebResearchClient(None, None)

        self.conversation = PhaseAggregator(PhaseKind.CONVERSATION, llm, self.store)
        self.aspirations = AspirationsAggregator(llm, self.store)
        self.research = ResearchAggregator(llm, self.search_client, self.store)
        self.assets = AssetsAggregator(llm, self.store)
        self.compiler = ReportCompiler(llm)
        logger.info("Started research session for %s, %s", village.name, village.country)

    @property
    def state(self) -> AppState:
        return self.store.state

    @property
    def village(self) -> VillageInfo:
        return self.store.state.village

    def chat_phase(self, phase: PhaseKind) -> PhaseAggregator:
        if phase == PhaseKind.CONVERSATION:
            return self.conversation
        if phase == PhaseKind.ASPIRATIONS:
            return self.aspirations
        raise ValueError(f"{phase.value} is not a conversational phase")

    def report_data(self) -> ReportData:
        return ReportData.from_state(self.store.state)

    def compile_report(self) -> str:
        """Generate the final report from whatever has been gathered so far."""
        report = self.compiler.compile(self.report_data())
        self.store.apply(lambda s: s.with_report(report))
        return report

    def export_report(self) -> Tuple[str, str]:
        """(filename, Word-compatible HTML) for the last compiled report."""
        return report_filename(self.village), render_word_document(self.store.state.report, self.village)

    def export_snapshot(self) -> Tuple[str, str]:
        """(filename, JSON) of every phase's raw data."""
        return snapshot_filename(self.village), export_snapshot(self.report_data())

    def status(self) -> dict:
        """Per-phase completion counts for the UI."""
        state = self.store.state
        phases = {}
        for phase in PhaseKind:
            topics = topics_for_phase(phase)
            completion = state.completion_map(phase)
            phases[phase.value] = {
                "completed": sum(1 for t in topics if completion.get(t.id)),
                "total": len(topics),
                "topics": {t.id: bool(completion.get(t.id)) for t in topics},
            }
        return {
            "village": state.village.to_dict(),
            "phases": phases,
            "hasAnalysis": bool(state.analysis),
            "hasReport": bool(state.report),
        }
