from .store import (
    init_database,
    create_policy,
    get_policy,
    increment_views,
    search_policies,
    record_search,
    get_recent_searches,
    get_popular_searches,
    log_activity,
    get_dashboard_stats,
)
from .usage_log import (
    UsageLogger,
    UsageSink,
    insert_usage_record,
    get_usage_statistics,
)

__all__ = [
    "init_database",
    "create_policy",
    "get_policy",
    "increment_views",
    "search_policies",
    "record_search",
    "get_recent_searches",
    "get_popular_searches",
    "log_activity",
    "get_dashboard_stats",
    "UsageLogger",
    "UsageSink",
    "insert_usage_record",
    "get_usage_statistics",
]
