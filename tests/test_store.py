"""Tests for the SQLite policy store."""
import pytest

from policy_core.db.store import (
    create_policy,
    get_dashboard_stats,
    get_policy,
    get_popular_searches,
    get_recent_searches,
    increment_views,
    log_activity,
    record_search,
    search_policies,
)
from policy_core.models import PolicyDraft, PolicyQuery

pytestmark = pytest.mark.integration


def _draft(**overrides) -> PolicyDraft:
    fields = {
        "title": "Password Policy",
        "content": "Passwords must be rotated every 90 days.",
        "category": "Security Policy",
        "department": "IT",
        "created_by": "alice",
        "tags": ["password", "security"],
    }
    fields.update(overrides)
    return PolicyDraft(**fields)


@pytest.fixture
def seeded(db_conn):
    create_policy(db_conn, _draft())
    create_policy(db_conn, _draft(title="Vacation Rules", content="Annual leave requests.", category="HR Policy",
                                  department="HR", status="active", tags=["vacation"]))
    create_policy(db_conn, _draft(title="Expense Claims", content="Receipts are required.", category="Finance Policy",
                                  department="Finance", priority="high", status="active", tags=["expense", "security"]))
    return db_conn


def test_create_and_get_roundtrips_json_columns(db_conn):
    policy = create_policy(db_conn, _draft(), ai_structured={"category": "Security Policy", "riskLevel": "high"})

    fetched = get_policy(db_conn, policy.id)

    assert fetched.title == "Password Policy"
    assert fetched.tags == ["password", "security"]
    assert fetched.ai_structured == {"category": "Security Policy", "riskLevel": "high"}
    assert fetched.status == "draft"
    assert fetched.views == 0


def test_get_missing_or_deleted_returns_none(db_conn):
    policy = create_policy(db_conn, _draft())
    db_conn.execute("UPDATE policies SET is_deleted = 1 WHERE id = ?", (policy.id,))

    assert get_policy(db_conn, policy.id) is None
    assert get_policy(db_conn, 999) is None


def test_increment_views(db_conn):
    policy = create_policy(db_conn, _draft())
    increment_views(db_conn, policy.id)
    increment_views(db_conn, policy.id)
    assert get_policy(db_conn, policy.id).views == 2


def test_search_by_equality_filters(seeded):
    page = search_policies(seeded, PolicyQuery(status="active"))
    assert {p.title for p in page.policies} == {"Vacation Rules", "Expense Claims"}

    page = search_policies(seeded, PolicyQuery(department="Finance", priority="high"))
    assert [p.title for p in page.policies] == ["Expense Claims"]


def test_search_keyword_matches_title_content_and_tags(seeded):
    assert [p.title for p in search_policies(seeded, PolicyQuery(keyword="vacation")).policies] == ["Vacation Rules"]
    assert [p.title for p in search_policies(seeded, PolicyQuery(keyword="Receipts")).policies] == ["Expense Claims"]
    assert search_policies(seeded, PolicyQuery(keyword="secur")).total == 2


def test_search_tags_require_every_tag(seeded):
    page = search_policies(seeded, PolicyQuery(tags=["security", "expense"]))
    assert [p.title for p in page.policies] == ["Expense Claims"]


def test_search_newest_first_with_pagination(seeded):
    first = search_policies(seeded, PolicyQuery(limit=2))
    second = search_policies(seeded, PolicyQuery(limit=2, page=2))

    assert first.total == 3
    assert first.total_pages == 2
    assert [p.title for p in first.policies] == ["Expense Claims", "Vacation Rules"]
    assert [p.title for p in second.policies] == ["Password Policy"]


def test_search_excludes_deleted(seeded):
    seeded.execute("UPDATE policies SET is_deleted = 1 WHERE title = 'Password Policy'")
    assert search_policies(seeded, PolicyQuery()).total == 2


def test_search_history(db_conn):
    record_search(db_conn, "alice", PolicyQuery(keyword="vpn"), 3)
    record_search(db_conn, "alice", PolicyQuery(keyword="password"), 1)
    record_search(db_conn, "bob", PolicyQuery(keyword="vpn"), 3)
    record_search(db_conn, "bob", PolicyQuery(category="HR Policy"), 5)

    assert get_recent_searches(db_conn, "alice") == ["password", "vpn"]
    assert get_popular_searches(db_conn)[0] == "vpn"


def test_dashboard_stats(seeded):
    policy = search_policies(seeded, PolicyQuery(keyword="Vacation")).policies[0]
    increment_views(seeded, policy.id)
    log_activity(seeded, "alice", "view_policy", policy_id=policy.id)

    stats = get_dashboard_stats(seeded)

    assert stats["basic_stats"]["total_policies"] == 3
    assert stats["basic_stats"]["active_policies"] == 2
    assert stats["basic_stats"]["draft_policies"] == 1
    assert stats["category_stats"]["HR Policy"] == {"count": 1, "active": 1, "pending": 0}
    assert stats["department_stats"]["HR"] == {"count": 1, "total_views": 1}
    assert stats["priority_stats"] == {"medium": 2, "high": 1}
    assert stats["recent_activity"][0]["policy_title"] == "Vacation Rules"
