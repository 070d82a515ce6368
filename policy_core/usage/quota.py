"""
Daily LLM call quota.

Budget: DEFAULT_DAILY_LIMIT provider calls per process per calendar day.
The limit is advisory cost control: check and increment are separate steps,
so concurrent requests racing for the last slot can overshoot it slightly.
"""
import logging
import threading
from datetime import date, timedelta
from typing import Callable, NamedTuple, Optional

from policy_core.exceptions import QuotaExceededError

logger = logging.getLogger(__name__)

DEFAULT_DAILY_LIMIT = 100


class QuotaStats(NamedTuple):
    """Current quota window status."""

    used: int
    limit: int
    remaining: int
    reset_time: str


class QuotaTracker:
    """
    Counter of provider calls in the current day.

    Rollover is lazy: every public method compares the stored window date
    with today() and resets the counter when the day has changed.

    Usage:
        quota = QuotaTracker(daily_limit=100)
        quota.check_and_reserve()   # raises QuotaExceededError when exhausted
        ...issue the provider call...
        quota.record_usage()
    """

    def __init__(
        self,
        daily_limit: int = DEFAULT_DAILY_LIMIT,
        today: Callable[[], date] = date.today,
    ) -> None:
        """
        Args:
            daily_limit: Max provider calls per day
            today: Clock returning the current date (injectable for tests)
        """
        self.daily_limit = daily_limit
        self._today = today
        self._lock = threading.Lock()
        self._count = 0
        self._window_start = today()

    def _rollover(self) -> None:
        # Caller holds the lock
        current = self._today()
        if current != self._window_start:
            logger.info(f"Quota window rolled over from {self._window_start} to {current} ({self._count} calls used)")
            self._count = 0
            self._window_start = current

    @property
    def count(self) -> int:
        with self._lock:
            self._rollover()
            return self._count

    def check_and_reserve(self) -> None:
        """Raise QuotaExceededError if today's calls reached the limit. Does not increment."""
        with self._lock:
            self._rollover()
            if self._count >= self.daily_limit:
                raise QuotaExceededError(
                    f"Daily AI usage limit reached ({self._count}/{self.daily_limit}). Try again tomorrow."
                )

    def record_usage(self) -> None:
        with self._lock:
            self._rollover()
            self._count += 1

    def get_stats(self) -> QuotaStats:
        with self._lock:
            self._rollover()
            return QuotaStats(
                used=self._count,
                limit=self.daily_limit,
                remaining=max(self.daily_limit - self._count, 0),
                reset_time=(self._window_start + timedelta(days=1)).isoformat(),
            )

    def can_use_ai(self, api_key: Optional[str]) -> bool:
        """True when a provider key is configured and quota remains."""
        return bool(api_key) and self.get_stats().remaining > 0
