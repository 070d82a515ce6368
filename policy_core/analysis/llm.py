# policy_core/analysis/llm.py
"""
LLM client adapter for policy structuring, summarization and tag extraction.

Design Decisions:
- One AsyncOpenAI chat completion per task, no retries; a failed call goes
  straight to the orchestrator's fallback
- Every public task returns a TaskResult and never raises. Exceptions are
  raised internally and turned into failures in one place: to_task_failure()
- Each call checks the daily quota first; the counter is bumped once the
  request has actually been sent to the provider
- Per-call timeout via asyncio.wait_for so a hung provider becomes a
  NETWORK failure instead of stalling the request
- Structured replies are located by the first balanced {...} span, since
  models often wrap JSON in prose
"""
import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

import openai
from pydantic import ValidationError as PydanticValidationError

from policy_core.analysis.config import DEFAULT_CONFIG as ANALYSIS_CONFIG
from policy_core.analysis.prompts import (
    QUICK_PROMPT,
    STRUCTURE_PROMPT,
    STRUCTURE_SYSTEM_PROMPT,
    SUMMARY_PROMPT,
    SUMMARY_SYSTEM_PROMPT,
    TAGS_PROMPT,
    TAGS_SYSTEM_PROMPT,
    build_messages,
)
from policy_core.analysis.text_analyzer import POLICY_CATEGORIES
from policy_core.exceptions import (
    APIKeyMissingError,
    EmptyReplyError,
    NetworkError,
    ParseError,
    QuotaExceededError,
)
from policy_core.models import PolicyAnalysisResult
from policy_core.usage.quota import QuotaTracker
from policy_core.utils import CostTracker

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_STRUCTURE_MODEL = "gpt-4"
DEFAULT_TIMEOUT = 20.0

DEFAULT_TEMPERATURES = {"structure": 0.1, "summary": 0.3, "tags": 0.2, "quick": 0.1}
MAX_TOKENS = {"structure": 800, "summary": 150, "tags": 100, "quick": 300}

_CATEGORY_LOOKUP = {category.lower(): category for category in POLICY_CATEGORIES}


class ErrorKind(str, Enum):
    """Why an LLM task failed. All kinds are recoverable via fallback."""
    QUOTA_EXCEEDED = "quota_exceeded"
    NETWORK = "network"
    PARSE = "parse"
    EMPTY_REPLY = "empty_reply"


@dataclass
class TaskResult(Generic[T]):
    """Outcome of a single LLM task: a value or a tagged failure."""
    task: str
    value: Optional[T] = None
    error_kind: Optional[ErrorKind] = None
    error: Optional[str] = None
    tokens_used: int = 0

    @property
    def ok(self) -> bool:
        return self.error_kind is None


def to_task_failure(task: str, exc: BaseException, tokens_used: int = 0) -> TaskResult:
    """Map any exception raised while running a task onto the failure taxonomy."""
    if isinstance(exc, QuotaExceededError):
        kind = ErrorKind.QUOTA_EXCEEDED
    elif isinstance(exc, (ParseError, json.JSONDecodeError, PydanticValidationError)):
        kind = ErrorKind.PARSE
    elif isinstance(exc, EmptyReplyError):
        kind = ErrorKind.EMPTY_REPLY
    else:
        # NetworkError, openai.APIError, timeouts and anything unexpected
        kind = ErrorKind.NETWORK

    if kind == ErrorKind.QUOTA_EXCEEDED:
        logger.info(f"LLM task '{task}' skipped: {exc}")
    else:
        logger.warning(f"LLM task '{task}' failed ({kind.value}): {exc}")
    return TaskResult(task=task, error_kind=kind, error=str(exc) or exc.__class__.__name__, tokens_used=tokens_used)


def extract_json_object(text: str) -> str:
    """
    Return the first balanced {...} span in text.

    Braces inside JSON strings are ignored. Leading and trailing prose
    around the object is tolerated, and an opening brace that never closes
    is skipped in favour of the earliest one that does. Single pass.

    Raises:
        ParseError: If text holds no balanced object
    """
    open_braces: List[int] = []
    best: Optional[Tuple[int, int]] = None
    in_string = False
    escaped = False
    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"' and open_braces:
            in_string = True
        elif ch == "{":
            open_braces.append(i)
        elif ch == "}" and open_braces:
            start = open_braces.pop()
            if not open_braces:
                return text[start:i + 1]
            # Enclosed by a brace that may never close; keep the outermost candidate
            if best is None or start < best[0]:
                best = (start, i)
    if best is not None:
        return text[best[0]:best[1] + 1]
    raise ParseError("No JSON object found in model reply")


def normalize_category(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Map a reply's category onto the known taxonomy, case-insensitively.

    A category outside the taxonomy is removed, so the field counts as not
    supplied and the merge uses the rule-based category.
    """
    if "category" not in data or data["category"] is None:
        return data
    canonical = _CATEGORY_LOOKUP.get(str(data["category"]).strip().lower())
    if canonical is None:
        logger.info(f"Ignoring category outside the taxonomy: {data['category']!r}")
        return {k: v for k, v in data.items() if k != "category"}
    return {**data, "category": canonical}


def parse_structured_reply(text: str) -> PolicyAnalysisResult:
    """Decode a structuring reply into a validated PolicyAnalysisResult."""
    try:
        data = json.loads(extract_json_object(text))
    except json.JSONDecodeError as e:
        raise ParseError(f"Model reply is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ParseError(f"Expected a JSON object, got {type(data).__name__}")
    try:
        return PolicyAnalysisResult.from_llm(normalize_category(data))
    except PydanticValidationError as e:
        raise ParseError(f"Model reply does not match the policy schema: {e.error_count()} error(s)") from e


def parse_tag_reply(text: str) -> List[str]:
    """Split a comma-separated tag reply; trims, drops empties and duplicates."""
    tags: List[str] = []
    for raw in text.split(","):
        tag = raw.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


class PolicyLLMClient:
    """
    Adapter over the OpenAI chat completions API for the three policy tasks.

    Usage:
        client = PolicyLLMClient(api_key=os.getenv("OPENAI_API_KEY"), quota=QuotaTracker())
        result = await client.structure(content, title)
        if result.ok:
            print(result.value.category)
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        structure_model: str = DEFAULT_STRUCTURE_MODEL,
        quota: QuotaTracker | None = None,
        cost_tracker: CostTracker | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        temperatures: Dict[str, float] | None = None,
        client: Any = None,
    ) -> None:
        """
        Args:
            api_key: OpenAI API key (no provider calls are possible without it)
            model: Model for summary, tags and quick classification
            structure_model: Model for full structuring
            quota: Daily call quota shared by every task of this client
            cost_tracker: Token/cost accumulator
            timeout: Per-call timeout in seconds
            temperatures: Per-task temperature overrides
            client: Pre-built AsyncOpenAI-compatible client (tests)
        """
        self.model = model
        self.structure_model = structure_model
        self.quota = quota or QuotaTracker()
        self.cost_tracker = cost_tracker or CostTracker()
        self.timeout = timeout
        self.temperatures = {**DEFAULT_TEMPERATURES, **(temperatures or {})}
        if client is not None:
            self.client = client
        else:
            # SDK retries are disabled: a failed call goes straight to the fallback
            self.client = openai.AsyncOpenAI(api_key=api_key, max_retries=0) if api_key else None

    @classmethod
    def from_config(
        cls,
        config: Dict[str, Any],
        api_key: str | None = None,
        quota: QuotaTracker | None = None,
    ) -> "PolicyLLMClient":
        llm = config.get("llm", {})
        daily_limit = config.get("quota", {}).get("daily_limit")
        if quota is None and daily_limit is not None:
            quota = QuotaTracker(daily_limit=daily_limit)
        return cls(
            api_key=api_key,
            model=llm.get("model", DEFAULT_MODEL),
            structure_model=llm.get("structure_model", DEFAULT_STRUCTURE_MODEL),
            quota=quota,
            timeout=llm.get("timeout", DEFAULT_TIMEOUT),
            temperatures=llm.get("temperature"),
        )

    def _ensure_client(self) -> Any:
        if not self.client:
            raise APIKeyMissingError(
                "PolicyLLMClient requires an API key. "
                "Pass api_key to constructor or set OPENAI_API_KEY environment variable."
            )
        return self.client

    async def _complete(
        self,
        task: str,
        model: str,
        messages: List[Dict[str, str]],
    ) -> Tuple[str, int]:
        """
        Run one chat completion.

        Returns:
            (reply text, total tokens used)

        Raises:
            QuotaExceededError: Quota exhausted, provider not contacted
            APIKeyMissingError: No client configured, provider not contacted
            NetworkError: Provider error or timeout
        """
        self.quota.check_and_reserve()
        client = self._ensure_client()

        try:
            response = await asyncio.wait_for(
                client.chat.completions.create(
                    model=model,
                    messages=messages,
                    temperature=self.temperatures[task],
                    max_tokens=MAX_TOKENS[task],
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            self.quota.record_usage()
            raise NetworkError(f"{model} did not respond within {self.timeout}s") from e
        except openai.APIError as e:
            self.quota.record_usage()
            raise NetworkError(f"{model} request failed: {e}") from e

        self.quota.record_usage()

        usage = getattr(response, "usage", None)
        prompt_tokens = int(getattr(usage, "prompt_tokens", 0) or 0)
        completion_tokens = int(getattr(usage, "completion_tokens", 0) or 0)
        total_tokens = int(getattr(usage, "total_tokens", 0) or 0) or prompt_tokens + completion_tokens
        self.cost_tracker.add(task, model, prompt_tokens, completion_tokens)

        choices = getattr(response, "choices", None) or []
        text = choices[0].message.content if choices else None
        return text or "", total_tokens

    async def structure(self, content: str, title: str) -> TaskResult[PolicyAnalysisResult]:
        """Full structuring of a policy into PolicyAnalysisResult."""
        tokens = 0
        try:
            messages = build_messages(
                STRUCTURE_SYSTEM_PROMPT,
                STRUCTURE_PROMPT.format(title=title, content=content),
            )
            reply, tokens = await self._complete("structure", self.structure_model, messages)
            if not reply.strip():
                raise EmptyReplyError("Model returned an empty structuring reply")
            result = parse_structured_reply(reply)
            return TaskResult(task="structure", value=result, tokens_used=tokens)
        except Exception as e:
            return to_task_failure("structure", e, tokens)

    async def summarize(self, content: str, title: str) -> TaskResult[str]:
        """Two to three sentence plain-text summary."""
        tokens = 0
        try:
            messages = build_messages(
                SUMMARY_SYSTEM_PROMPT,
                SUMMARY_PROMPT.format(title=title, content=content),
            )
            reply, tokens = await self._complete("summary", self.model, messages)
            summary = reply.strip()
            if not summary:
                raise EmptyReplyError("Model returned an empty summary")
            return TaskResult(task="summary", value=summary, tokens_used=tokens)
        except Exception as e:
            return to_task_failure("summary", e, tokens)

    async def extract_tags(self, content: str, title: str) -> TaskResult[List[str]]:
        """Search tags from a comma-separated reply. No cap is applied here."""
        tokens = 0
        try:
            messages = build_messages(
                TAGS_SYSTEM_PROMPT,
                TAGS_PROMPT.format(title=title, content=content),
            )
            reply, tokens = await self._complete("tags", self.model, messages)
            tags = parse_tag_reply(reply)
            if not tags:
                raise EmptyReplyError("Model returned no tags")
            return TaskResult(task="tags", value=tags, tokens_used=tokens)
        except Exception as e:
            return to_task_failure("tags", e, tokens)

    async def quick_classify(self, content: str, title: str) -> TaskResult[PolicyAnalysisResult]:
        """Cheap category + tags pass over the head of the document."""
        tokens = 0
        try:
            excerpt = content[:ANALYSIS_CONFIG.QUICK_CONTENT_CHARS]
            if len(content) > ANALYSIS_CONFIG.QUICK_CONTENT_CHARS:
                excerpt += "..."
            messages = build_messages(None, QUICK_PROMPT.format(title=title, content=excerpt))
            reply, tokens = await self._complete("quick", self.model, messages)
            if not reply.strip():
                raise EmptyReplyError("Model returned an empty classification")
            result = parse_structured_reply(reply)
            return TaskResult(task="quick", value=result, tokens_used=tokens)
        except Exception as e:
            return to_task_failure("quick", e, tokens)

    def usage_stats(self) -> Dict[str, Any]:
        """Quota window status plus token/cost summary."""
        return {
            "quota": self.quota.get_stats()._asdict(),
            "cost": self.cost_tracker.summary(),
        }
