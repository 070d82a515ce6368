from .quota import DEFAULT_DAILY_LIMIT, QuotaStats, QuotaTracker

__all__ = [
    "DEFAULT_DAILY_LIMIT",
    "QuotaStats",
    "QuotaTracker",
]
