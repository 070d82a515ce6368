from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List


# =============================================================================
# LLM COST TRACKING
# =============================================================================
#
# Advisory only: token counts come from the provider's usage block and are
# kept for observability. Nothing here blocks a call; the daily call quota
# lives in policy_core.usage.quota.
# =============================================================================

# USD per 1K tokens (prompt, completion)
LLM_COSTS = {
    "gpt-3.5-turbo": (0.002, 0.002),
    "gpt-4": (0.03, 0.06),
}
DEFAULT_COST = (0.002, 0.002)


@dataclass
class LLMUsage:
    """Tokens spent by one chat completion."""
    task: str
    model: str
    prompt_tokens: int
    completion_tokens: int
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    @property
    def estimated_cost(self) -> float:
        prompt_rate, completion_rate = LLM_COSTS.get(self.model, DEFAULT_COST)
        return (self.prompt_tokens * prompt_rate + self.completion_tokens * completion_rate) / 1000


@dataclass
class CostTracker:
    """Per-client ledger of completions, grouped by model and by pipeline task."""
    usages: List[LLMUsage] = field(default_factory=list)

    def add(self, task: str, model: str, prompt_tokens: int, completion_tokens: int) -> LLMUsage:
        usage = LLMUsage(task=task, model=model, prompt_tokens=prompt_tokens, completion_tokens=completion_tokens)
        self.usages.append(usage)
        return usage

    @property
    def total_cost(self) -> float:
        return sum(u.estimated_cost for u in self.usages)

    @property
    def total_tokens(self) -> int:
        return sum(u.total_tokens for u in self.usages)

    def summary(self) -> Dict[str, object]:
        return {
            "total_calls": len(self.usages),
            "total_tokens": self.total_tokens,
            "estimated_cost_usd": round(self.total_cost, 4),
            "by_model": self._group("model"),
            "by_task": self._group("task"),
        }

    def _group(self, attr: str) -> Dict[str, Dict[str, float]]:
        groups: Dict[str, Dict[str, float]] = {}
        for u in self.usages:
            entry = groups.setdefault(getattr(u, attr), {"calls": 0, "tokens": 0, "cost": 0.0})
            entry["calls"] += 1
            entry["tokens"] += u.total_tokens
            entry["cost"] += u.estimated_cost
        return groups


def estimate_tokens(text: str) -> int:
    """Rough token count for English text, about 4 characters per token."""
    return len(text or "") // 4


def estimate_cost(tokens_used: int, model: str = "gpt-3.5-turbo") -> float:
    """Blended USD estimate for a token total when the prompt/completion split is unknown."""
    prompt_rate, completion_rate = LLM_COSTS.get(model, DEFAULT_COST)
    return tokens_used * (prompt_rate + completion_rate) / 2 / 1000
