# policy_core/orchestrator.py
"""
AI Orchestrator - single entry point of the policy analysis pipeline.

Design Decisions:
- Full mode fans out structure / summarize / extract_tags concurrently and
  waits for all three to settle before merging
- Merge precedence per field: specialist task value (summary, tags) if
  non-empty, else the value the structuring call supplied, else the
  rule-based analyzer's value
- The rule-based result is computed for every call, so a degraded result is
  always at hand
- Only ValidationError escapes process(); everything else ends in a
  structurally valid result with success=False
- A usage record is written after every call; logger failures are swallowed

Pipeline Flow:
1. Validate request (blank title/content -> ValidationError)
2. Run the mode's LLM task(s) via PolicyLLMClient (never raises)
3. Merge task results with the rule-based result
4. Record usage, return AnalysisOutcome
"""
import asyncio
import logging
import time
from typing import Optional, Sequence, Tuple

from policy_core.analysis import text_analyzer
from policy_core.analysis.config import DEFAULT_CONFIG, AnalysisConfig
from policy_core.analysis.llm import PolicyLLMClient, TaskResult
from policy_core.db.usage_log import UsageSink
from policy_core.models import (
    AnalysisMode,
    AnalysisOutcome,
    Compliance,
    PolicyAnalysisRequest,
    PolicyAnalysisResult,
    UsageRecord,
)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def _supplied(result: Optional[PolicyAnalysisResult], field: str) -> bool:
    """True if the producer set this field to a non-empty value."""
    if result is None or field not in result.model_fields_set:
        return False
    value = getattr(result, field)
    if isinstance(value, Compliance):
        return True
    return bool(value)


def merge_full_results(
    structure: TaskResult,
    summary: TaskResult,
    tags: TaskResult,
    fallback: PolicyAnalysisResult,
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> PolicyAnalysisResult:
    """
    Fold the three full-mode task results into one record.

    Args:
        structure: Result of the structuring call
        summary: Result of the summarization call
        tags: Result of the tag extraction call
        fallback: Rule-based result for the same input
        config: Tag cap

    Returns:
        Merged PolicyAnalysisResult
    """
    structured = structure.value if structure.ok else None

    merged = {
        field: getattr(structured, field) if _supplied(structured, field) else getattr(fallback, field)
        for field in PolicyAnalysisResult.model_fields
    }
    if summary.ok and summary.value:
        merged["summary"] = summary.value
    if tags.ok and tags.value:
        merged["tags"] = tags.value
    merged["tags"] = list(merged["tags"])[:config.MAX_TAGS]

    return PolicyAnalysisResult.model_validate(merged)


def merge_quick_result(
    quick: TaskResult,
    fallback: PolicyAnalysisResult,
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> PolicyAnalysisResult:
    """Category and tags from the quick call, everything else rule-based."""
    classified = quick.value if quick.ok else None
    category = classified.category if _supplied(classified, "category") else fallback.category
    tags = classified.tags if _supplied(classified, "tags") else fallback.tags
    return fallback.model_copy(update={"category": category, "tags": list(tags)[:config.MAX_TAGS]})


def merge_summary_result(summary: TaskResult, fallback: PolicyAnalysisResult) -> PolicyAnalysisResult:
    if summary.ok and summary.value:
        return fallback.model_copy(update={"summary": summary.value})
    return fallback


def fallback_outcome(
    request: PolicyAnalysisRequest,
    start: float,
    error: BaseException,
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> AnalysisOutcome:
    """Convert an unexpected pipeline error into the rule-based result."""
    return AnalysisOutcome(
        mode=request.mode,
        result=text_analyzer.analyze(request.content, request.title, config),
        processing_time_ms=_elapsed_ms(start),
        tokens_used=0,
        success=False,
        errors=[f"pipeline: {error}"],
    )


class AIOrchestrator:
    """
    Runs the policy analysis pipeline for one request at a time.

    Usage:
        orchestrator = AIOrchestrator(
            llm_client=PolicyLLMClient(api_key=os.getenv("OPENAI_API_KEY")),
            usage_logger=UsageLogger("policies.db"),
        )
        outcome = await orchestrator.process(content, title, mode="full")
    """

    def __init__(
        self,
        llm_client: PolicyLLMClient,
        usage_logger: UsageSink | None = None,
        config: AnalysisConfig = DEFAULT_CONFIG,
    ) -> None:
        """
        Args:
            llm_client: Adapter used for every LLM task
            usage_logger: Sink for one UsageRecord per call (None disables logging)
            config: Caps and thresholds shared with the rule-based analyzer
        """
        self.logger = logging.getLogger(__name__)
        self.llm_client = llm_client
        self.usage_logger = usage_logger
        self.config = config

    async def process(
        self,
        content: str,
        title: str,
        mode: AnalysisMode | str = AnalysisMode.FULL,
    ) -> AnalysisOutcome:
        """
        Analyze one policy.

        Args:
            content: Policy body (non-empty)
            title: Policy title (non-empty)
            mode: "full", "quick" or "summary"; unknown values run full

        Returns:
            AnalysisOutcome whose result is always structurally valid

        Raises:
            ValidationError: Blank title or content
        """
        request = PolicyAnalysisRequest.create(title=title, content=content, mode=mode)
        start = time.perf_counter()
        self.logger.info(f"AI analysis started: {request.mode.value} - {request.title}")

        try:
            outcome = await self._run(request, start)
        except Exception as e:
            self.logger.error(f"AI pipeline error, using rule-based analysis: {e}", exc_info=True)
            outcome = fallback_outcome(request, start, e, self.config)

        self.logger.info(
            f"AI analysis finished: {request.title} "
            f"({outcome.processing_time_ms}ms, {outcome.tokens_used} tokens, success={outcome.success})"
        )
        await self._record_usage(request, outcome)
        return outcome

    async def _run(self, request: PolicyAnalysisRequest, start: float) -> AnalysisOutcome:
        fallback = text_analyzer.analyze(request.content, request.title, self.config)

        if request.mode == AnalysisMode.QUICK:
            result, tasks = await self._run_quick(request, fallback)
        elif request.mode == AnalysisMode.SUMMARY:
            result, tasks = await self._run_summary(request, fallback)
        else:
            result, tasks = await self._run_full(request, fallback)

        return AnalysisOutcome(
            mode=request.mode,
            result=result,
            processing_time_ms=_elapsed_ms(start),
            tokens_used=sum(t.tokens_used for t in tasks),
            success=any(t.ok for t in tasks),
            errors=[f"{t.task}: {t.error}" for t in tasks if not t.ok],
        )

    async def _run_full(
        self,
        request: PolicyAnalysisRequest,
        fallback: PolicyAnalysisResult,
    ) -> Tuple[PolicyAnalysisResult, Sequence[TaskResult]]:
        # Join-all: no partial result is used before every task has settled
        structure, summary, tags = await asyncio.gather(
            self.llm_client.structure(request.content, request.title),
            self.llm_client.summarize(request.content, request.title),
            self.llm_client.extract_tags(request.content, request.title),
        )
        result = merge_full_results(structure, summary, tags, fallback, self.config)
        return result, [structure, summary, tags]

    async def _run_quick(
        self,
        request: PolicyAnalysisRequest,
        fallback: PolicyAnalysisResult,
    ) -> Tuple[PolicyAnalysisResult, Sequence[TaskResult]]:
        quick = await self.llm_client.quick_classify(request.content, request.title)
        return merge_quick_result(quick, fallback, self.config), [quick]

    async def _run_summary(
        self,
        request: PolicyAnalysisRequest,
        fallback: PolicyAnalysisResult,
    ) -> Tuple[PolicyAnalysisResult, Sequence[TaskResult]]:
        summary = await self.llm_client.summarize(request.content, request.title)
        return merge_summary_result(summary, fallback), [summary]

    async def _record_usage(self, request: PolicyAnalysisRequest, outcome: AnalysisOutcome) -> None:
        if self.usage_logger is None:
            return
        entry = UsageRecord(
            analysis_type=request.mode.value,
            content_length=len(request.content),
            processing_time_ms=outcome.processing_time_ms,
            success=outcome.success,
            error_message="; ".join(outcome.errors) or None,
        )
        try:
            # sqlite writes run off the event loop
            await asyncio.to_thread(self.usage_logger.record, entry)
        except Exception as e:
            self.logger.warning(f"Usage log write failed, ignoring: {e}")
