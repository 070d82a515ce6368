"""
AI usage log: one append-only row per orchestration call.

UsageLogger.record() is fire-and-forget from the pipeline's point of view;
write failures are logged and swallowed so they can never block or alter
policy creation.
"""
import logging
import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Protocol

from policy_core.db.store import init_database
from policy_core.models import UsageRecord

logger = logging.getLogger(__name__)

PERIOD_DAYS = {"7d": 7, "30d": 30, "90d": 90}

# Seconds to wait for a locked database before dropping the record
USAGE_LOG_TIMEOUT = 0.5


class UsageSink(Protocol):
    """Anything that accepts usage records (the orchestrator depends on this only)."""

    def record(self, entry: UsageRecord) -> None:
        ...


def insert_usage_record(conn: sqlite3.Connection, entry: UsageRecord) -> None:
    conn.execute('''
        INSERT INTO ai_usage_logs
        (analysis_type, content_length, processing_time, success, error_message, created_at)
        VALUES (?, ?, ?, ?, ?, ?)
    ''', (
        entry.analysis_type,
        entry.content_length,
        entry.processing_time_ms,
        1 if entry.success else 0,
        entry.error_message,
        entry.timestamp.isoformat()
    ))
    conn.commit()


class UsageLogger:
    """
    SQLite-backed usage sink.

    Opens a short-lived connection per write so it can be called from a
    worker thread while the event loop keeps serving other requests.
    A write that finds the database locked for longer than timeout seconds
    is dropped.
    """

    def __init__(self, db_path: str, timeout: float = USAGE_LOG_TIMEOUT):
        self.db_path = db_path
        self.timeout = timeout
        conn = init_database(db_path)
        conn.close()

    def record(self, entry: UsageRecord) -> None:
        try:
            conn = sqlite3.connect(self.db_path, timeout=self.timeout)
            try:
                insert_usage_record(conn, entry)
            finally:
                conn.close()
        except Exception as e:
            logger.warning(f"Failed to write AI usage log ({entry.analysis_type}): {e}")


def get_usage_statistics(
    conn: sqlite3.Connection,
    period: str = "7d",
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """
    Aggregate the usage log over a trailing period.

    Args:
        conn: Database connection
        period: "7d", "30d" or "90d" (unknown values use 7d)
        now: Reference time (defaults to current UTC time)

    Returns:
        Totals, success rate, average processing time, per-type and per-day
        counts, and the ten most recent rows
    """
    days = PERIOD_DAYS.get(period, 7)
    now = now or datetime.now(timezone.utc)
    since = (now - timedelta(days=days)).isoformat()

    cursor = conn.cursor()
    cursor.execute('''
        SELECT analysis_type, content_length, processing_time, success, error_message, created_at
        FROM ai_usage_logs
        WHERE created_at >= ?
        ORDER BY created_at DESC, log_id DESC
    ''', (since,))
    rows = cursor.fetchall()

    logs = [
        {
            "analysis_type": row[0],
            "content_length": row[1],
            "processing_time_ms": row[2],
            "success": bool(row[3]),
            "error_message": row[4],
            "created_at": row[5],
        }
        for row in rows
    ]

    total = len(logs)
    successful = sum(1 for log in logs if log["success"])
    success_rate = round(successful / total * 100, 1) if total else 0.0
    avg_time = round(sum(log["processing_time_ms"] or 0 for log in logs) / total) if total else 0

    by_type: dict[str, int] = {}
    daily: dict[str, int] = {}
    for log in logs:
        analysis_type = log["analysis_type"] or "unknown"
        by_type[analysis_type] = by_type.get(analysis_type, 0) + 1
        day = log["created_at"][:10]
        daily[day] = daily.get(day, 0) + 1

    return {
        "period": period if period in PERIOD_DAYS else "7d",
        "statistics": {
            "total_requests": total,
            "successful_requests": successful,
            "failed_requests": total - successful,
            "success_rate": success_rate,
            "avg_processing_time_ms": avg_time,
        },
        "analysis_type_stats": by_type,
        "daily_usage": daily,
        "recent_logs": logs[:10],
    }
