"""
CLI for the policy analysis pipeline.

Usage:
    policy-analyze --title "Remote Work Guideline" --content-file policy.txt
    policy-analyze --title "..." --content-file policy.txt --mode quick
    policy-analyze --title "..." --content-file policy.txt --save \\
        --category "Security Policy" --department IT --author alice
    policy-analyze --stats 30d

Without OPENAI_API_KEY the pipeline still runs and reports the rule-based result.
"""
import argparse
import asyncio
import os
import sys

from dotenv import load_dotenv
from rich.console import Console

from policy_core.api import build_orchestrator
from policy_core.config import get_api_keys, load_config
from policy_core.db.store import init_database
from policy_core.db.usage_log import get_usage_statistics
from policy_core.exceptions import ValidationError
from policy_core.models import AnalysisMode, PolicyDraft
from policy_core.reports.display import display_analysis, display_usage_statistics
from policy_core.service import create_policy_with_analysis

console = Console()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Analyze a policy document with AI (rule-based fallback when unavailable)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    policy-analyze --title "Password Rules" --content-file rules.txt
    policy-analyze --title "Password Rules" --content-file rules.txt --mode summary
    policy-analyze --stats 7d
        """
    )
    parser.add_argument("--title", help="Policy title")
    parser.add_argument("--content-file", help="Path to policy text file")
    parser.add_argument("--mode", default="full", choices=[m.value for m in AnalysisMode],
                        help="Analysis mode (default: full)")
    parser.add_argument("--config", default="config.yaml", help="Config file (default: config.yaml)")
    parser.add_argument("--db", help="SQLite database (default: database.path from config)")
    parser.add_argument("--save", action="store_true", help="Store the policy with its analysis")
    parser.add_argument("--category", default="", help="Category for --save")
    parser.add_argument("--department", default="", help="Department for --save")
    parser.add_argument("--author", default="", help="Creator id for --save")
    parser.add_argument("--stats", nargs="?", const="7d", metavar="PERIOD",
                        help="Show AI usage statistics for 7d, 30d or 90d and exit")
    return parser


def main() -> None:
    """Main CLI entry point."""
    load_dotenv()
    args = _build_parser().parse_args()
    config = load_config(args.config)
    db_path = args.db or config["database"]["path"]

    if args.stats:
        conn = init_database(db_path)
        try:
            display_usage_statistics(get_usage_statistics(conn, args.stats))
        finally:
            conn.close()
        return

    if not args.title or not args.content_file:
        console.print("[red]Error: --title and --content-file are required[/red]")
        sys.exit(1)

    if not os.path.exists(args.content_file):
        console.print(f"[red]Error: Policy text file not found: {args.content_file}[/red]")
        sys.exit(1)

    with open(args.content_file, "r", encoding="utf-8") as f:
        content = f.read()

    api_key = get_api_keys()["openai"]
    if not api_key:
        console.print("[yellow]OPENAI_API_KEY not set, using rule-based analysis only[/yellow]")

    orchestrator = build_orchestrator(config=config, api_key=api_key, db_path=db_path)

    try:
        if args.save:
            draft = PolicyDraft(
                title=args.title,
                content=content,
                category=args.category,
                department=args.department,
                created_by=args.author,
            )
            conn = init_database(db_path)
            try:
                policy, outcome = asyncio.run(create_policy_with_analysis(conn, orchestrator, draft))
            finally:
                conn.close()
            console.print(f"[green]✓ Policy #{policy.id} saved[/green]")
        else:
            outcome = asyncio.run(orchestrator.process(content, args.title, args.mode))
    except ValidationError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    display_analysis(args.title, outcome)


if __name__ == "__main__":
    main()
