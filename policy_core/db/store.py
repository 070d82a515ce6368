import json
import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from policy_core.models import PolicyDraft, PolicyPage, PolicyQuery, PolicyRecord


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def init_database(db_path: str) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    cursor = conn.cursor()

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS policies (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            content TEXT NOT NULL,
            category TEXT,
            department TEXT,
            priority TEXT DEFAULT 'medium',
            status TEXT DEFAULT 'draft',
            effective_date TEXT,
            expiry_date TEXT,
            tags TEXT DEFAULT '[]',
            target_audience TEXT DEFAULT '[]',
            approvers TEXT DEFAULT '[]',
            created_by TEXT NOT NULL,
            ai_structured TEXT DEFAULT '{}',
            views INTEGER DEFAULT 0,
            is_deleted INTEGER DEFAULT 0,
            created_at TIMESTAMP NOT NULL,
            updated_at TIMESTAMP NOT NULL
        )
    ''')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS ai_usage_logs (
            log_id INTEGER PRIMARY KEY AUTOINCREMENT,
            analysis_type TEXT NOT NULL,
            content_length INTEGER DEFAULT 0,
            processing_time INTEGER DEFAULT 0,
            success INTEGER NOT NULL,
            error_message TEXT,
            created_at TIMESTAMP NOT NULL
        )
    ''')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS search_history (
            search_id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT,
            query TEXT,
            filters TEXT,
            results_count INTEGER DEFAULT 0,
            created_at TIMESTAMP NOT NULL
        )
    ''')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS activity_logs (
            activity_id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT,
            action TEXT NOT NULL,
            policy_id INTEGER,
            details TEXT,
            created_at TIMESTAMP NOT NULL,
            FOREIGN KEY (policy_id) REFERENCES policies(id)
        )
    ''')

    # Indexes
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_policies_category ON policies(category)')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_policies_status ON policies(status)')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_policies_created ON policies(created_at)')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_usage_created ON ai_usage_logs(created_at)')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_search_user ON search_history(user_id, created_at)')

    conn.commit()
    return conn


def _row_to_policy(row: sqlite3.Row) -> PolicyRecord:
    return PolicyRecord(
        id=row["id"],
        title=row["title"],
        content=row["content"],
        category=row["category"] or "",
        department=row["department"] or "",
        priority=row["priority"],
        status=row["status"],
        effective_date=row["effective_date"],
        expiry_date=row["expiry_date"],
        tags=json.loads(row["tags"] or "[]"),
        target_audience=json.loads(row["target_audience"] or "[]"),
        approvers=json.loads(row["approvers"] or "[]"),
        created_by=row["created_by"],
        ai_structured=json.loads(row["ai_structured"] or "{}"),
        views=row["views"],
        is_deleted=bool(row["is_deleted"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def create_policy(
    conn: sqlite3.Connection,
    draft: PolicyDraft,
    ai_structured: Optional[dict[str, Any]] = None,
) -> PolicyRecord:
    now = _now()
    cursor = conn.cursor()
    cursor.execute('''
        INSERT INTO policies
        (title, content, category, department, priority, status, effective_date, expiry_date,
         tags, target_audience, approvers, created_by, ai_structured, views, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0, ?, ?)
    ''', (
        draft.title,
        draft.content,
        draft.category,
        draft.department,
        draft.priority or 'medium',
        draft.status or 'draft',
        draft.effective_date,
        draft.expiry_date,
        json.dumps(draft.tags),
        json.dumps(draft.target_audience),
        json.dumps(draft.approvers),
        draft.created_by,
        json.dumps(ai_structured or {}),
        now,
        now
    ))
    conn.commit()
    return get_policy(conn, cursor.lastrowid)


def get_policy(conn: sqlite3.Connection, policy_id: int) -> Optional[PolicyRecord]:
    cursor = conn.cursor()
    cursor.execute('SELECT * FROM policies WHERE id = ? AND is_deleted = 0', (policy_id,))
    row = cursor.fetchone()
    return _row_to_policy(row) if row else None


def increment_views(conn: sqlite3.Connection, policy_id: int) -> None:
    conn.execute('UPDATE policies SET views = views + 1 WHERE id = ?', (policy_id,))
    conn.commit()


def search_policies(conn: sqlite3.Connection, query: PolicyQuery) -> PolicyPage:
    """
    Filtered, paginated policy search, newest first.

    Keyword matches title, content or any tag (substring, case-insensitive).
    Tag filter requires every given tag to be present.
    """
    clauses = ["is_deleted = 0"]
    params: list[Any] = []

    for column in ("category", "department", "status", "priority"):
        value = getattr(query, column)
        if value:
            clauses.append(f"{column} = ?")
            params.append(value)

    if query.keyword:
        pattern = f"%{query.keyword}%"
        clauses.append(
            "(title LIKE ? OR content LIKE ? OR "
            "EXISTS (SELECT 1 FROM json_each(policies.tags) WHERE json_each.value LIKE ?))"
        )
        params.extend([pattern, pattern, pattern])

    for tag in query.tags:
        clauses.append("EXISTS (SELECT 1 FROM json_each(policies.tags) WHERE json_each.value = ?)")
        params.append(tag)

    if query.created_from:
        clauses.append("created_at >= ?")
        params.append(query.created_from)
    if query.created_to:
        clauses.append("created_at <= ?")
        params.append(query.created_to)

    where = " AND ".join(clauses)
    cursor = conn.cursor()
    cursor.execute(f'SELECT COUNT(*) FROM policies WHERE {where}', params)
    total = cursor.fetchone()[0]

    offset = (query.page - 1) * query.limit
    cursor.execute(
        f'SELECT * FROM policies WHERE {where} ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?',
        [*params, query.limit, offset]
    )
    policies = [_row_to_policy(row) for row in cursor.fetchall()]

    return PolicyPage(policies=policies, page=query.page, limit=query.limit, total=total)


# =============================================================================
# SEARCH HISTORY
# =============================================================================

def record_search(
    conn: sqlite3.Connection,
    user_id: str,
    query: PolicyQuery,
    results_count: int,
) -> None:
    filters = query.model_dump(include={"category", "department", "status", "priority", "tags"})
    conn.execute('''
        INSERT INTO search_history (user_id, query, filters, results_count, created_at)
        VALUES (?, ?, ?, ?, ?)
    ''', (user_id, query.keyword, json.dumps(filters), results_count, _now()))
    conn.commit()


def get_recent_searches(conn: sqlite3.Connection, user_id: str, limit: int = 5) -> list[str]:
    cursor = conn.cursor()
    cursor.execute('''
        SELECT query FROM search_history
        WHERE user_id = ? AND query IS NOT NULL AND query != ''
        ORDER BY created_at DESC, search_id DESC
        LIMIT ?
    ''', (user_id, limit))
    return [row[0] for row in cursor.fetchall()]


def get_popular_searches(conn: sqlite3.Connection, days: int = 7, limit: int = 5) -> list[str]:
    since = (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()
    cursor = conn.cursor()
    cursor.execute('''
        SELECT query, COUNT(*) AS hits
        FROM search_history
        WHERE created_at >= ? AND query IS NOT NULL AND query != ''
        GROUP BY query
        ORDER BY hits DESC, MAX(created_at) DESC
        LIMIT ?
    ''', (since, limit))
    return [row[0] for row in cursor.fetchall()]


# =============================================================================
# ACTIVITY LOG AND DASHBOARD
# =============================================================================

def log_activity(
    conn: sqlite3.Connection,
    user_id: str,
    action: str,
    policy_id: Optional[int] = None,
    details: Optional[dict[str, Any]] = None,
) -> None:
    conn.execute('''
        INSERT INTO activity_logs (user_id, action, policy_id, details, created_at)
        VALUES (?, ?, ?, ?, ?)
    ''', (user_id, action, policy_id, json.dumps(details or {}), _now()))
    conn.commit()


def get_dashboard_stats(conn: sqlite3.Connection) -> dict[str, Any]:
    cursor = conn.cursor()
    cursor.execute('''
        SELECT status, priority, category, department, views
        FROM policies WHERE is_deleted = 0
    ''')
    rows = cursor.fetchall()

    basic_stats = {
        "total_policies": len(rows),
        "active_policies": sum(1 for r in rows if r["status"] == "active"),
        "pending_approval": sum(1 for r in rows if r["status"] == "pending"),
        "expiring_soon": sum(1 for r in rows if r["status"] == "expiring"),
        "draft_policies": sum(1 for r in rows if r["status"] == "draft"),
    }

    category_stats: dict[str, dict[str, int]] = {}
    department_stats: dict[str, dict[str, int]] = {}
    priority_stats: dict[str, int] = {}
    for r in rows:
        category = r["category"] or "Uncategorized"
        entry = category_stats.setdefault(category, {"count": 0, "active": 0, "pending": 0})
        entry["count"] += 1
        entry["active"] += 1 if r["status"] == "active" else 0
        entry["pending"] += 1 if r["status"] == "pending" else 0

        department = r["department"] or "Unassigned"
        dept = department_stats.setdefault(department, {"count": 0, "total_views": 0})
        dept["count"] += 1
        dept["total_views"] += r["views"] or 0

        priority = r["priority"] or "medium"
        priority_stats[priority] = priority_stats.get(priority, 0) + 1

    cursor.execute('''
        SELECT a.user_id, a.action, a.policy_id, a.details, a.created_at, p.title
        FROM activity_logs a
        LEFT JOIN policies p ON p.id = a.policy_id
        ORDER BY a.created_at DESC, a.activity_id DESC
        LIMIT 10
    ''')
    recent_activity = [
        {
            "user_id": row["user_id"],
            "action": row["action"],
            "policy_id": row["policy_id"],
            "policy_title": row["title"],
            "details": json.loads(row["details"] or "{}"),
            "created_at": row["created_at"],
        }
        for row in cursor.fetchall()
    ]

    return {
        "basic_stats": basic_stats,
        "category_stats": category_stats,
        "department_stats": department_stats,
        "priority_stats": priority_stats,
        "recent_activity": recent_activity,
        "updated_at": _now(),
    }
