"""
CLI Interface for the Community Researcher

Runs the conversation phase in the terminal, optionally researches every
topic on the web, then writes the final report and a JSON snapshot.
"""

import argparse
import sys
from pathlib import Path

from .agents import CommunityResearchWorkflow
from .config import AppConfig, configure_logging
from .errors import ResearchError
from .llm import LLMManager
from .research import WebResearchClient
from .schemas import CONVERSATION_TOPICS, RESEARCH_TOPICS, VillageInfo


def print_header():
    """Print CLI header."""
    print("""
╔═══════════════════════════════════════════════════════════════╗
║                                                               ║
║     COMMUNITY RESEARCHER - Guided Village Interview           ║
║                                                               ║
╚═══════════════════════════════════════════════════════════════╝
    """)


def ask(prompt: str, default: str = "") -> str:
    suffix = f" [{default}]" if default else ""
    answer = input(f"{prompt}{suffix}: ").strip()
    return answer or default


def run_conversation(workflow: CommunityResearchWorkflow) -> bool:
    """
    Walk through the conversation topics.

    Commands: 'skip' moves to the next topic, 'done' finishes the topic,
    'quit' ends the interview. Returns False if the user quit.
    """
    role = workflow.village.role
    for topic in CONVERSATION_TOPICS:
        print(f"\n=== {topic.title} ===")
        for message in workflow.conversation.select_topic(topic.id):
            print(f"\nAI Researcher: {message.content}")

        while True:
            text = input(f"\n{role}: ").strip()
            command = text.lower()
            if command == "quit":
                return False
            if command == "skip":
                break
            if command == "done":
                if not workflow.conversation.completion_map().get(topic.id):
                    print("(This topic is not complete yet; moving on anyway.)")
                break

            reply = workflow.conversation.submit(text)
            if reply is not None:
                print(f"\nAI Researcher: {reply.content}")
            if workflow.conversation.completion_map().get(topic.id):
                print(f"\n✓ {topic.title} covered. Keep talking or type 'done'.")
    return True


def run_research(workflow: CommunityResearchWorkflow):
    """Research every topic, then generate the comprehensive analysis."""
    for topic in RESEARCH_TOPICS:
        print(f"\nResearching {topic.title}...")
        try:
            document = workflow.research.conduct_research(topic.id)
        except ResearchError as e:
            print(f"  ✗ {e.to_dict()['title']}: {e}")
            continue
        first_line = document.splitlines()[0] if document else ""
        print(f"  ✓ {first_line}")

    analysis = workflow.research.check_comprehensive_analysis()
    if analysis:
        print("\nComprehensive analysis generated.")


def write_outputs(workflow: CommunityResearchWorkflow, output_dir: Path) -> list:
    output_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for filename, content in (workflow.export_report(), workflow.export_snapshot()):
        path = output_dir / filename
        path.write_text(content, encoding="utf-8")
        written.append(path)
    return written


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Community Researcher - guided village interview",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Interactive interview
  python -m community_researcher.cli --village "Kibera" --country "Kenya" --role "Chief"

  # Also research every topic on the web before writing the report
  python -m community_researcher.cli --village "Kibera" --country "Kenya" --research
        """
    )

    parser.add_argument("--village", "-v", help="Village or community name")
    parser.add_argument("--country", "-c", help="Country name")
    parser.add_argument("--role", "-r", default="Community Expert", help="Speaker's role in the community")
    parser.add_argument(
        "--research",
        action="store_true",
        help="Run web research for every topic (needs SEARCH_API_KEY and SEARCH_ENGINE_ID)"
    )
    parser.add_argument(
        "--output-dir", "-o",
        default="./outputs",
        help="Directory for the report and JSON snapshot (default: ./outputs)"
    )
    parser.add_argument(
        "--list-topics",
        action="store_true",
        help="List the conversation topics and exit"
    )

    args = parser.parse_args()
    config = AppConfig.from_env()
    configure_logging(config.log_level)

    print_header()

    if args.list_topics:
        for i, topic in enumerate(CONVERSATION_TOPICS, 1):
            print(f"  {i}. {topic.title} ({topic.id})")
        return

    village_name = args.village or ask("Village name")
    country = args.country or ask("Country")
    role = args.role or ask("Your role", "Community Expert")
    if not village_name or not country:
        print("\nError: village name and country are required")
        sys.exit(1)

    llm = LLMManager.from_config(config)
    search = WebResearchClient(config.search_api_key, config.search_engine_id)
    workflow = CommunityResearchWorkflow(VillageInfo(village_name, country, role), llm, search)

    print("Type 'skip' to move on, 'done' to finish a topic, 'quit' to stop.")
    finished = run_conversation(workflow)

    if args.research and finished:
        run_research(workflow)

    print("\nGenerating final report...")
    workflow.compile_report()
    for path in write_outputs(workflow, Path(args.output_dir)):
        print(f"  - {path}")


if __name__ == "__main__":
    main()
