"""
Report Compiler

Turns everything gathered in the earlier phases into one narrative
report with a single synthesis request.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List

from ..errors import ProviderError
from ..llm import REPORT_OPTIONS, LLMManager, Message
from ..prompts import REPORT_WRITER_SYSTEM_PROMPT, create_report_prompt
from ..schemas.state import ASPIRATIONS_SUFFIX, AppState, PhaseKind, VillageInfo
from ..schemas.topics import ASSET_TOPICS, RESEARCH_TOPICS

logger = logging.getLogger(__name__)

REPORT_ERROR_TEXT = "Error generating report. Please try again later."


@dataclass
class ReportData:
    """The union of all phase outputs, in the shape embedded in the prompt."""
    village: VillageInfo
    research: Dict[str, str] = field(default_factory=dict)
    conversations: Dict[str, List[dict]] = field(default_factory=dict)
    analysis: str = ""
    assets: Dict[str, str] = field(default_factory=dict)
    aspirations: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_state(cls, state: AppState) -> "ReportData":
        conversations = {
            key: [m.to_dict() for m in messages]
            for key, messages in state.conversations.items()
            if not key.endswith(ASPIRATIONS_SUFFIX)
        }
        return cls(
            village=state.village,
            research=state.answers_for(PhaseKind.RESEARCH),
            conversations=conversations,
            analysis=state.analysis,
            assets=state.answers_for(PhaseKind.ASSETS),
            aspirations=state.answers_for(PhaseKind.ASPIRATIONS),
        )

    def to_dict(self) -> dict:
        return {
            "villageInfo": self.village.to_dict(),
            "researchData": dict(self.research),
            "conversations": {k: list(v) for k, v in self.conversations.items()},
            "analysisData": self.analysis,
            "assetsData": dict(self.assets),
            "aspirationsData": dict(self.aspirations),
        }


class ReportCompiler:
    """
    Compiles the final report.

    Runs only when called; it does not wait for any phase to be complete.
    Each call issues a fresh request.
    """

    def __init__(self, llm: LLMManager):
        self.llm = llm

    def build_prompt(self, data: ReportData) -> str:
        return create_report_prompt(
            data.to_dict(),
            topic_titles={t.id: t.title for t in RESEARCH_TOPICS},
            asset_titles={t.id: t.title for t in ASSET_TOPICS},
        )

    def compile(self, data: ReportData) -> str:
        """Return the report text, or the fixed error string if generation fails."""
        messages = [
            Message(role="system", content=REPORT_WRITER_SYSTEM_PROMPT),
            Message(role="user", content=self.build_prompt(data)),
        ]
        try:
            return self.llm.generate(messages=messages, options=REPORT_OPTIONS)
        except ProviderError as e:
            logger.error("Error generating final report: %s", e)
            return REPORT_ERROR_TEXT
