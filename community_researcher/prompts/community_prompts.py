"""
Prompt Templates

System instructions for the chat phases and the one-shot synthesis
prompts used by research, comprehensive analysis, assets and the final
report.
"""

import json
from typing import List, Mapping

RESEARCH_ASSISTANT_SYSTEM_PROMPT = "You are a helpful development research assistant."
REPORT_WRITER_SYSTEM_PROMPT = "You are a professional report writer."


def title_case(text: str) -> str:
    """Capitalise the first character only ("food security" -> "Food security")."""
    return text[:1].upper() + text[1:]


# =============================================================================
# CHAT PHASES
# =============================================================================

def create_conversation_system_prompt(village_name: str, country: str, topic_title: str) -> str:
    return (
        f"You are an empathetic conversation partner speaking with a leader from {village_name}, {country}.\n"
        f"Your goal is to gather specific information about {topic_title} in their community.\n"
        "Ask thoughtful follow-up questions to get quantitative data where possible.\n"
        "Be respectful, supportive, and a good listener. Do not tell the leader what their community needs.\n"
        "Keep your responses fairly concise, focused on one specific question at a time."
    )


def create_aspirations_system_prompt(village_name: str, country: str, topic_title: str) -> str:
    return (
        f"You are an empathetic conversation partner speaking with a leader from {village_name}, {country}.\n"
        "Your goal is to understand the community's hopes, aspirations, and the challenges they face "
        f"regarding {topic_title}.\n"
        "Ask thoughtful questions about what they want for their community's future and what prevents "
        "them from achieving these goals.\n"
        "Be supportive and educational about possibilities without being prescriptive.\n"
        "Keep your responses fairly concise, focused on one specific question at a time."
    )


# =============================================================================
# RESEARCH SYNTHESIS
# =============================================================================

def create_research_synthesis_prompt(
    topic: str,
    village_name: str,
    country: str,
    results: List[Mapping[str, str]],
    focus: str = "",
) -> str:
    """
    Build the cited-report prompt from ranked search results.

    Args:
        topic: Topic id or title being researched
        village_name: Community name
        country: Country name
        results: Dicts with title, url, snippet and confidence keys, best first
        focus: Optional per-topic research brief
    """
    blocks = []
    for index, result in enumerate(results, start=1):
        blocks.append(
            f"SOURCE {index}:\n"
            f"TITLE: {result['title']}\n"
            f"URL: {result['url']}\n"
            f"CONFIDENCE: {result.get('confidence', '')}\n"
            f"SNIPPET: {result['snippet']}"
        )
    sources_text = "\n\n".join(blocks)
    focus_text = f"\n{focus}\n" if focus else ""

    return f"""You are analyzing search result snippets about {topic} in {village_name}, {country}. Your task is to write a comprehensive, detailed research report.
{focus_text}
Search results:

{sources_text}

Create a detailed research report that:
1. Thoroughly analyzes all available information about {topic} in {village_name}
2. Extracts specific data, statistics, and facts from the snippets
3. Makes reasonable inferences where information is limited
4. Organizes findings into coherent sections with clear headings
5. Cites sources using [Source X] format

Your report MUST include:
- An overview section summarizing key findings
- 2-4 topic-specific sections analyzing different aspects
- A conclusion with implications or recommendations if possible
- Complete citations of all sources

FORMAT:
# {title_case(topic)} in {village_name}, {country}

## Overview
[Comprehensive overview]

## [First Aspect]
[Detailed analysis]

## [Second Aspect]
[Detailed analysis]

[Additional sections as needed]

## References
[Numbered list of sources]

The report should be written for development researchers who need comprehensive information. Make it substantive and informative."""


def create_research_apology(topic: str, village_name: str, country: str, reason: str) -> str:
    return (
        f"# {title_case(topic)} in {village_name}, {country}\n\n"
        "We were unable to generate detailed summaries due to technical issues.\n\n"
        f"Error: {reason}\n\n"
        "Please try again later or try with alternative search terms."
    )


# =============================================================================
# COMPREHENSIVE ANALYSIS
# =============================================================================

def create_analysis_prompt(village_name: str, country: str, consolidated_research: str) -> str:
    return f"""You are a development research specialist analyzing data about {village_name}, {country}. Generate a comprehensive analysis report based on the following research data:

{consolidated_research}

Your report should include:
- A title: # Comprehensive Analysis of {village_name}, {country}
- Executive summary with key findings across all research areas
- 3-5 cross-cutting themes that emerge from the research
- Analysis of how different aspects of community life interact
- 3-5 integrated recommendations that address multiple sectors
- Knowledge gaps and suggested approaches

Use markdown formatting with ## for section headers and * for bullet points.
Your response should ONLY include the final report content without repeating these instructions."""


def create_analysis_apology(village_name: str, reason: str) -> str:
    return (
        "# Comprehensive Analysis Error\n\n"
        "We apologize, but an error occurred while generating the comprehensive analysis "
        f"for {village_name}.\n\n"
        "Please try again later or contact support if the problem persists.\n\n"
        f"Error details: {reason}"
    )


# =============================================================================
# ASSETS
# =============================================================================

def create_asset_prompt(topic: str, village_name: str, country: str = "") -> str:
    location = f"{village_name}, {country}" if country else village_name
    return f"""Generate a detailed analysis of the assets related to {topic} in {location}.
Include information on:
- Local and national government programs,
- NGOs or community initiatives,
- Available funding or support mechanisms,
- Local resources and any unique assets.
The report should be structured with clear headings and be written for development researchers."""


# =============================================================================
# FINAL REPORT
# =============================================================================

REPORT_OUTLINE = """### 1. Introduction
- State the village name, country, and the local expert's role.
- Explain why this assessment is essential for the community's development.

### 2. Current State Analysis
For each area give a concise, structured analysis of the current state, drawing on
researchData.<topic> and conversations.<topic>:
{current_state_lines}

### 3. Research Findings and Comprehensive Analysis
- Cross-Cutting Themes: key patterns and dependencies across community areas (analysisData).
- Interaction of Community Aspects: how challenges in one area affect others.
- Knowledge Gaps: areas needing further research.

### 4. Assets and Available Resources
Give each asset area a dedicated subsection explaining its relevance (assetsData.<topic>):
{asset_lines}

### 5. Challenges and Community Aspirations
Define each aspiration and the obstacles the community named (aspirationsData.<topic>).

### 6. Recommendations
For each recommendation answer: what exactly is recommended, why it is essential
based on the research and aspirations, and how it can be implemented quickly.

### 7. Conclusion
Summarize how the recommendations work together toward community self-sufficiency."""


def create_report_prompt(
    report_data: Mapping,
    topic_titles: Mapping[str, str],
    asset_titles: Mapping[str, str],
) -> str:
    """
    Build the single fixed-outline instruction for the final report.

    The raw phase data is embedded as JSON so the model can cite it by key.
    """
    village = report_data.get("villageInfo", {})
    village_name = village.get("name") or "Unknown Village"
    country = village.get("country") or "Unknown Country"
    role = village.get("role") or "Community Expert"

    outline = REPORT_OUTLINE.format(
        current_state_lines="\n".join(f"- {title} ({tid})" for tid, title in topic_titles.items()),
        asset_lines="\n".join(f"- {title} ({tid})" for tid, title in asset_titles.items()),
    )
    data_json = json.dumps(report_data, indent=2, ensure_ascii=False)

    return f"""You are a professional and scholarly report writer with expertise in assessing needs in rural communities.

Below is a JSON document containing raw data from the different phases of community development research for {village_name}, {country}. The local expert is a {role}.

Synthesize the information into a professionally structured, highly detailed community development report.
Develop each section fully, with logical flow and explanatory context, in concise but informative paragraphs
with clear line breaks between sections. Where a phase has no data, say so briefly instead of inventing it.

REPORT STRUCTURE:
{outline}

RAW DATA:
```json
{data_json}
```

Now generate the final report in well-structured plain text."""
