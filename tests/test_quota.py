"""Tests for the daily LLM call quota."""
from datetime import date

import pytest

from policy_core.exceptions import QuotaExceededError
from policy_core.usage.quota import QuotaTracker


def test_limit_enforced_after_recorded_calls(fixed_quota):
    for _ in range(10):
        fixed_quota.check_and_reserve()
        fixed_quota.record_usage()

    with pytest.raises(QuotaExceededError, match="10/10"):
        fixed_quota.check_and_reserve()


def test_check_does_not_increment(fixed_quota):
    fixed_quota.check_and_reserve()
    fixed_quota.check_and_reserve()
    assert fixed_quota.count == 0


def test_counter_resets_on_new_day(fixed_quota):
    for _ in range(10):
        fixed_quota.record_usage()

    fixed_quota.clock["today"] = date(2026, 3, 2)

    fixed_quota.check_and_reserve()
    assert fixed_quota.count == 0


def test_stats_report_remaining_and_reset(fixed_quota):
    fixed_quota.record_usage()
    fixed_quota.record_usage()

    stats = fixed_quota.get_stats()

    assert stats.used == 2
    assert stats.limit == 10
    assert stats.remaining == 8
    assert stats.reset_time == "2026-03-02"


def test_remaining_never_negative():
    quota = QuotaTracker(daily_limit=1)
    quota.record_usage()
    quota.record_usage()
    assert quota.get_stats().remaining == 0


@pytest.mark.parametrize("api_key,calls,expected", [
    ("sk-test", 0, True),
    ("", 0, False),
    (None, 0, False),
    ("sk-test", 10, False),
])
def test_can_use_ai(fixed_quota, api_key, calls, expected):
    for _ in range(calls):
        fixed_quota.record_usage()
    assert fixed_quota.can_use_ai(api_key) is expected
