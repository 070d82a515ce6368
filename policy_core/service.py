"""
Policy creation flow: validate the draft, enrich it with AI analysis, store it.

A policy is always stored, even when every LLM call failed; the outcome's
success flag is the only sign that enrichment was degraded.
"""
import logging
import sqlite3

from policy_core.db.store import create_policy, log_activity
from policy_core.exceptions import ValidationError
from policy_core.models import AnalysisMode, AnalysisOutcome, PolicyDraft, PolicyRecord
from policy_core.orchestrator import AIOrchestrator

logger = logging.getLogger(__name__)


async def create_policy_with_analysis(
    conn: sqlite3.Connection,
    orchestrator: AIOrchestrator,
    draft: PolicyDraft,
) -> tuple[PolicyRecord, AnalysisOutcome]:
    """
    Register a new policy with AI-derived structure attached.

    Args:
        conn: Policy store connection
        orchestrator: AI pipeline
        draft: User-submitted policy fields

    Returns:
        (stored policy, analysis outcome)

    Raises:
        ValidationError: Title, content, category, department or creator missing
    """
    missing = draft.missing_fields()
    if missing:
        raise ValidationError(f"Required fields are missing: {', '.join(missing)}")

    outcome = await orchestrator.process(draft.content, draft.title, AnalysisMode.FULL)
    if not outcome.success:
        logger.warning(f"Storing '{draft.title}' with rule-based analysis: {'; '.join(outcome.errors)}")

    policy = create_policy(conn, draft, ai_structured=outcome.result.to_dict())
    log_activity(
        conn,
        user_id=draft.created_by,
        action="create_policy",
        policy_id=policy.id,
        details={"title": draft.title, "category": draft.category},
    )
    return policy, outcome
