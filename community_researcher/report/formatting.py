"""
Text formatting helpers for generated documents.

Pure functions: clean up model output and turn markdown-ish text into
structured blocks for whichever renderer sits on top (HTML, terminal).
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from ..prompts import title_case

PREAMBLE_PATTERNS = [
    re.compile(r"^I'll create a research report based on.*?\n\n", re.DOTALL),
    re.compile(r"^Here's a comprehensive research summary.*?\n\n", re.DOTALL),
    re.compile(r"^Based on the search results provided.*?\n\n", re.DOTALL),
    re.compile(r"^As a development researcher.*?\n\n", re.DOTALL),
]

CONFIDENCE_LEVELS = ("HIGH", "MEDIUM", "LOWER")
URL_PATTERN = re.compile(r"https?://\S+")
NUMBERED_PATTERN = re.compile(r"^\d+\.\s*")
SOURCE_HEADINGS = ("## Sources", "## References")


def clean_response_text(text: str, topic: str = "", village: str = "", country: str = "") -> str:
    """Strip echoed instruction preambles and make sure the text opens with a heading."""
    if not text:
        return ""

    cleaned = text
    for pattern in PREAMBLE_PATTERNS:
        cleaned = pattern.sub("", cleaned, count=1)
    cleaned = cleaned.strip()

    if cleaned.startswith("#"):
        return cleaned
    if topic:
        return f"# {title_case(topic)} in {village}, {country}\n\n{cleaned}"
    return f"# Research Report\n\n{cleaned}"


def extract_report_content(text: str) -> str:
    """Return the text from its first top-level heading on, or the text unchanged."""
    if not text:
        return ""
    match = re.search(r"(^|\n)# ", text)
    if not match:
        return text
    return text[match.start():].lstrip("\n")


# =============================================================================
# BLOCK PARSER
# =============================================================================

class BlockKind(str, Enum):
    HEADING = "heading"
    LIST_ITEM = "list_item"
    CONFIDENCE = "confidence"
    PARAGRAPH = "paragraph"
    SPACER = "spacer"


@dataclass
class Block:
    """
    One rendered line.

    level is the heading depth (1-3) or the list indent (1 or 2);
    confidence is HIGH / MEDIUM / LOWER for callouts;
    spans holds (text, bold) pairs for paragraphs with ** markup.
    """
    kind: BlockKind
    text: str = ""
    level: int = 0
    confidence: Optional[str] = None
    spans: List[Tuple[str, bool]] = field(default_factory=list)


def _bold_spans(line: str) -> List[Tuple[str, bool]]:
    parts = line.split("**")
    return [(part, i % 2 == 1) for i, part in enumerate(parts) if part]


def parse_line(line: str) -> Block:
    for level in (3, 2, 1):
        marker = "#" * level + " "
        if line.startswith(marker):
            return Block(BlockKind.HEADING, text=line[len(marker):].strip(), level=level)

    if line.startswith("  * ") or line.startswith("  - "):
        return Block(BlockKind.LIST_ITEM, text=line[4:].strip(), level=2)
    if line.startswith("* ") or line.startswith("- "):
        return Block(BlockKind.LIST_ITEM, text=line[2:].strip(), level=1)

    if "**" in line:
        for level in CONFIDENCE_LEVELS:
            marker = f"{level} CONFIDENCE"
            if marker in line:
                text = line.replace(f"**{marker}**", "").strip()
                return Block(BlockKind.CONFIDENCE, text=text, confidence=level)
        return Block(BlockKind.PARAGRAPH, text=line.replace("**", ""), spans=_bold_spans(line))

    if not line.strip():
        return Block(BlockKind.SPACER)

    return Block(BlockKind.PARAGRAPH, text=line, spans=[(line, False)])


def parse_blocks(text: str) -> List[Block]:
    """Split generated text into one Block per line."""
    if not text:
        return []
    return [parse_line(line) for line in text.split("\n")]


# =============================================================================
# SOURCES
# =============================================================================

@dataclass
class SourceLine:
    text: str
    url: Optional[str] = None


def extract_sources(text: str) -> List[SourceLine]:
    """
    Pull numbered or URL-bearing lines out of a Sources/References section.

    Returns an empty list when the text has no such section.
    """
    if not text:
        return []

    start = -1
    heading = ""
    for candidate in SOURCE_HEADINGS:
        start = text.find(candidate)
        if start != -1:
            heading = candidate
            break
    if start == -1:
        return []

    section = text[start + len(heading):]
    sources = []
    for raw in section.split("\n"):
        line = raw.strip()
        if not line:
            continue
        if line.startswith("#"):
            break
        if not (NUMBERED_PATTERN.match(line) or "http" in line or "www." in line):
            continue
        url_match = URL_PATTERN.search(line)
        url = url_match.group(0).rstrip(").,") if url_match else None
        sources.append(SourceLine(text=NUMBERED_PATTERN.sub("", line, count=1), url=url))
    return sources
