"""Tests for the AI usage log and its statistics."""
import sqlite3
import time
from datetime import datetime, timedelta, timezone

import pytest

from policy_core.db.usage_log import UsageLogger, get_usage_statistics, insert_usage_record
from policy_core.models import UsageRecord

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def _record(analysis_type="full", success=True, ms=100, days_ago=0, error=None) -> UsageRecord:
    return UsageRecord(
        analysis_type=analysis_type,
        content_length=250,
        processing_time_ms=ms,
        success=success,
        error_message=error,
        timestamp=NOW - timedelta(days=days_ago),
    )


@pytest.mark.integration
def test_logger_writes_one_row_per_record(db_path, db_conn):
    usage_logger = UsageLogger(db_path)

    usage_logger.record(_record())
    usage_logger.record(_record("quick", success=False, error="quick: timeout"))

    rows = db_conn.execute("SELECT analysis_type, success, error_message FROM ai_usage_logs ORDER BY log_id").fetchall()
    assert [tuple(r) for r in rows] == [("full", 1, None), ("quick", 0, "quick: timeout")]


@pytest.mark.integration
def test_logger_swallows_write_failures(tmp_path, caplog):
    usage_logger = UsageLogger(str(tmp_path / "usage.db"))
    usage_logger.db_path = str(tmp_path / "missing" / "usage.db")

    usage_logger.record(_record())

    assert "Failed to write AI usage log" in caplog.text


@pytest.mark.integration
def test_statistics_over_period(db_conn):
    for entry in [
        _record("full", ms=100),
        _record("full", ms=300, days_ago=1),
        _record("quick", success=False, ms=200, days_ago=2),
        _record("summary", ms=400, days_ago=20),
    ]:
        insert_usage_record(db_conn, entry)

    stats = get_usage_statistics(db_conn, "7d", now=NOW)

    assert stats["period"] == "7d"
    assert stats["statistics"] == {
        "total_requests": 3,
        "successful_requests": 2,
        "failed_requests": 1,
        "success_rate": 66.7,
        "avg_processing_time_ms": 200,
    }
    assert stats["analysis_type_stats"] == {"full": 2, "quick": 1}
    assert stats["daily_usage"] == {"2026-03-10": 1, "2026-03-09": 1, "2026-03-08": 1}
    assert stats["recent_logs"][0]["processing_time_ms"] == 100

    month = get_usage_statistics(db_conn, "30d", now=NOW)
    assert month["statistics"]["total_requests"] == 4


@pytest.mark.integration
def test_statistics_empty_and_unknown_period(db_conn):
    stats = get_usage_statistics(db_conn, "1y", now=NOW)

    assert stats["period"] == "7d"
    assert stats["statistics"]["total_requests"] == 0
    assert stats["statistics"]["success_rate"] == 0.0
    assert stats["recent_logs"] == []


@pytest.mark.integration
def test_recent_logs_capped_at_ten(db_conn):
    for i in range(12):
        insert_usage_record(db_conn, _record(ms=i))

    stats = get_usage_statistics(db_conn, now=NOW)

    assert stats["statistics"]["total_requests"] == 12
    assert len(stats["recent_logs"]) == 10


@pytest.mark.integration
def test_locked_database_drops_record_quickly(db_path, db_conn, caplog):
    usage_logger = UsageLogger(db_path, timeout=0.1)
    holder = sqlite3.connect(db_path, isolation_level=None)
    holder.execute("BEGIN EXCLUSIVE")
    try:
        started = time.monotonic()
        usage_logger.record(_record())
        elapsed = time.monotonic() - started
    finally:
        holder.execute("ROLLBACK")
        holder.close()

    assert elapsed < 2.0
    assert "Failed to write AI usage log" in caplog.text
