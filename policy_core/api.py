"""
Programmatic entry point for the policy analysis pipeline.

Usage:
    from policy_core import analyze_policy

    outcome = analyze_policy(
        content="Employees must use VPN...",
        title="Remote Work Guideline",
        mode="full",
    )
    print(outcome.payload())
"""
import asyncio
import os

from policy_core.analysis.llm import PolicyLLMClient
from policy_core.config import DEFAULT_CONFIG
from policy_core.db.usage_log import UsageLogger
from policy_core.models import AnalysisMode, AnalysisOutcome
from policy_core.orchestrator import AIOrchestrator
from policy_core.usage.quota import QuotaTracker


def build_orchestrator(
    config: dict | None = None,
    api_key: str | None = None,
    quota: QuotaTracker | None = None,
    db_path: str | None = None,
) -> AIOrchestrator:
    """
    Wire an orchestrator from configuration.

    Args:
        config: Configuration dict (default: DEFAULT_CONFIG)
        api_key: OpenAI API key (uses OPENAI_API_KEY env var if None)
        quota: Shared quota tracker; one is created from config if None
        db_path: Usage log database; None disables usage logging
    """
    config = config or DEFAULT_CONFIG
    api_key = api_key or os.getenv("OPENAI_API_KEY")
    llm_client = PolicyLLMClient.from_config(config, api_key=api_key, quota=quota)
    usage_logger = UsageLogger(db_path) if db_path else None
    return AIOrchestrator(llm_client=llm_client, usage_logger=usage_logger)


def analyze_policy(
    content: str,
    title: str,
    mode: AnalysisMode | str = AnalysisMode.FULL,
    api_key: str | None = None,
    db_path: str | None = None,
    config: dict | None = None,
) -> AnalysisOutcome:
    """
    Synchronous wrapper around AIOrchestrator.process for scripts.

    Not for use inside a running event loop; await process() there instead.
    """
    orchestrator = build_orchestrator(config=config, api_key=api_key, db_path=db_path)
    return asyncio.run(orchestrator.process(content, title, mode))
