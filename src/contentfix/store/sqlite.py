"""SQLite storage for sites, tracked issues, activity and backups.

The database lives at ``{project_root}/.contentfix/contentfix.db``.
Application passwords and backup payloads are Fernet-encrypted before they
hit disk and decrypted on read.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
import uuid
from dataclasses import asdict
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from contentfix.core.config import get_contentfix_dir
from contentfix.core.crypto import decrypt_text, encrypt_text
from contentfix.core.models import BackupItem, Issue, IssueStatus, Site
from contentfix.fix.issue_types import normalize_issue_type
from contentfix.store.interfaces import IssueFilter, StatusUpdate

logger = logging.getLogger(__name__)

_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS sites (
    id            TEXT PRIMARY KEY,
    user_id       TEXT NOT NULL,
    name          TEXT NOT NULL DEFAULT '',
    url           TEXT NOT NULL,
    username      TEXT NOT NULL DEFAULT '',
    secret        BLOB,
    seo_score     INTEGER NOT NULL DEFAULT 0,
    keywords      TEXT NOT NULL DEFAULT '[]',
    last_analyzed TEXT
);

CREATE TABLE IF NOT EXISTS issues (
    id                TEXT PRIMARY KEY,
    site_id           TEXT NOT NULL,
    user_id           TEXT NOT NULL,
    issue_type        TEXT NOT NULL,
    description       TEXT NOT NULL DEFAULT '',
    severity          TEXT NOT NULL DEFAULT 'warning',
    element_path      TEXT NOT NULL DEFAULT '',
    target_content_id INTEGER,
    auto_fixable      INTEGER NOT NULL DEFAULT 1,
    status            TEXT NOT NULL DEFAULT 'detected',
    fix_session_id    TEXT NOT NULL DEFAULT '',
    fix_method        TEXT NOT NULL DEFAULT '',
    notes             TEXT NOT NULL DEFAULT '',
    detected_at       TEXT NOT NULL,
    fixed_at          TEXT
);

CREATE TABLE IF NOT EXISTS activity (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id     TEXT NOT NULL,
    site_id     TEXT NOT NULL,
    type        TEXT NOT NULL,
    description TEXT NOT NULL,
    metadata    TEXT NOT NULL DEFAULT '{}',
    created_at  TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS backups (
    session_id  TEXT NOT NULL,
    content_id  INTEGER NOT NULL,
    kind        TEXT NOT NULL,
    payload     BLOB NOT NULL,
    created_at  TEXT NOT NULL,
    PRIMARY KEY (session_id, content_id)
);

CREATE INDEX IF NOT EXISTS idx_issues_site ON issues(site_id, user_id);
CREATE INDEX IF NOT EXISTS idx_issues_status ON issues(status);
CREATE INDEX IF NOT EXISTS idx_activity_site ON activity(site_id);
"""


class SQLiteStore:
    """Thread-safe SQLite store implementing every storage interface.

    Usage::

        store = SQLiteStore()                     # uses cwd-based .contentfix dir
        site = store.add_site("me", "https://example.com", "admin", "app-pass")
        store.import_issues(site.id, "me", auditor_issues)
    """

    def __init__(self, project_path: Path | None = None) -> None:
        self._dir = get_contentfix_dir(project_path)
        self._db_path = self._dir / "contentfix.db"
        self._lock = threading.Lock()
        self._init_db()

    # ------------------------------------------------------------------
    # Database bootstrap
    # ------------------------------------------------------------------

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.executescript(_SCHEMA_SQL)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=10)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.row_factory = sqlite3.Row
        return conn

    # ------------------------------------------------------------------
    # Sites
    # ------------------------------------------------------------------

    def add_site(
        self,
        user_id: str,
        url: str,
        username: str,
        application_password: str,
        name: str = "",
        keywords: list[str] | None = None,
    ) -> Site:
        site = Site(
            id=str(uuid.uuid4()),
            user_id=user_id,
            name=name or url,
            url=url.rstrip("/"),
            username=username,
            application_password=application_password,
            keywords=keywords or [],
        )
        secret = encrypt_text(application_password, self._dir) if application_password else None
        with self._lock, self._connect() as conn:
            conn.execute(
                "INSERT INTO sites (id, user_id, name, url, username, secret, keywords) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (site.id, user_id, site.name, site.url, username, secret,
                 json.dumps(site.keywords)),
            )
        return site

    def get_site(self, site_id: str, user_id: str) -> Site | None:
        with self._lock, self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM sites WHERE id = ? AND user_id = ?",
                (site_id, user_id),
            ).fetchone()
        if row is None:
            return None
        return Site(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            url=row["url"],
            username=row["username"],
            application_password=decrypt_text(row["secret"], self._dir) if row["secret"] else "",
            seo_score=row["seo_score"],
            keywords=json.loads(row["keywords"] or "[]"),
        )

    def update_site_score(self, site_id: str, score: int) -> None:
        with self._lock, self._connect() as conn:
            conn.execute(
                "UPDATE sites SET seo_score = ?, last_analyzed = ? WHERE id = ?",
                (score, datetime.now().isoformat(), site_id),
            )

    # ------------------------------------------------------------------
    # Issues
    # ------------------------------------------------------------------

    def import_issues(
        self, site_id: str, user_id: str, issues: list[dict[str, Any]]
    ) -> list[str]:
        """Record auditor issues and return their tracked ids.

        Types are normalized here, once.  An issue matching an existing row
        (same type, element path and target) keeps that row's id; if it had
        been fixed it becomes ``reappeared``.
        """
        ids: list[str] = []
        now = datetime.now().isoformat()
        with self._lock, self._connect() as conn:
            for raw in issues:
                raw_type = str(raw.get("type") or raw.get("issue_type") or "")
                if not raw_type:
                    logger.warning("Skipping issue without a type: %r", raw)
                    continue
                fix_type = normalize_issue_type(raw_type)
                issue_type = fix_type.value if fix_type else raw_type
                element_path = str(raw.get("element_path") or raw.get("elementPath") or "")
                target = raw.get("target_content_id", raw.get("targetContentId"))
                target = int(target) if target not in (None, "") else None

                existing = conn.execute(
                    "SELECT id, status FROM issues WHERE site_id = ? AND user_id = ? "
                    "AND issue_type = ? AND element_path = ? AND target_content_id IS ?",
                    (site_id, user_id, issue_type, element_path, target),
                ).fetchone()

                if existing:
                    status = existing["status"]
                    if status == IssueStatus.FIXED.value:
                        status = IssueStatus.REAPPEARED.value
                    conn.execute(
                        "UPDATE issues SET status = ?, description = ?, severity = ? WHERE id = ?",
                        (status, str(raw.get("description") or ""),
                         str(raw.get("severity") or "warning"), existing["id"]),
                    )
                    ids.append(existing["id"])
                    continue

                issue_id = str(uuid.uuid4())
                conn.execute(
                    "INSERT INTO issues (id, site_id, user_id, issue_type, description, severity, "
                    "element_path, target_content_id, auto_fixable, status, detected_at) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        issue_id,
                        site_id,
                        user_id,
                        issue_type,
                        str(raw.get("description") or ""),
                        str(raw.get("severity") or "warning"),
                        element_path,
                        target,
                        1 if raw.get("auto_fixable", True) else 0,
                        IssueStatus.DETECTED.value,
                        now,
                    ),
                )
                ids.append(issue_id)
        return ids

    def list_fixable_issues(
        self, site_id: str, user_id: str, issue_filter: IssueFilter
    ) -> list[Issue]:
        query = "SELECT * FROM issues WHERE site_id = ? AND user_id = ?"
        params: list[Any] = [site_id, user_id]
        if issue_filter.auto_fixable_only:
            query += " AND auto_fixable = 1"
        if issue_filter.statuses:
            query += " AND status IN (%s)" % ",".join("?" * len(issue_filter.statuses))
            params.extend(s.value for s in issue_filter.statuses)
        if issue_filter.exclude_fixed_within_days is not None:
            cutoff = datetime.now() - timedelta(days=issue_filter.exclude_fixed_within_days)
            query += " AND (fixed_at IS NULL OR fixed_at < ?)"
            params.append(cutoff.isoformat())
        query += " ORDER BY detected_at"

        with self._lock, self._connect() as conn:
            rows = conn.execute(query, params).fetchall()

        return [
            Issue(
                type=row["issue_type"],
                description=row["description"],
                severity=row["severity"],
                element_path=row["element_path"],
                tracked_issue_id=row["id"],
                target_content_id=row["target_content_id"],
                fix_type=normalize_issue_type(row["issue_type"]),
            )
            for row in rows
        ]

    def bulk_mark_fixing(self, issue_ids: list[str], session_id: str) -> None:
        if not issue_ids:
            return
        with self._lock, self._connect() as conn:
            conn.executemany(
                "UPDATE issues SET status = ?, fix_session_id = ? WHERE id = ?",
                [(IssueStatus.FIXING.value, session_id, i) for i in issue_ids],
            )

    def reset_fixing(
        self, site_id: str, user_id: str, session_id: str | None = None
    ) -> int:
        """Move issues stuck in ``fixing`` back to ``detected``.

        With ``session_id`` only that session's issues are reset.
        """
        query = (
            "UPDATE issues SET status = ? "
            "WHERE site_id = ? AND user_id = ? AND status = ?"
        )
        params: list[Any] = [
            IssueStatus.DETECTED.value, site_id, user_id, IssueStatus.FIXING.value,
        ]
        if session_id is not None:
            query += " AND fix_session_id = ?"
            params.append(session_id)
        with self._lock, self._connect() as conn:
            cursor = conn.execute(query, params)
        return cursor.rowcount

    def set_issue_status(
        self, issue_id: str, status: IssueStatus, update: StatusUpdate
    ) -> None:
        with self._lock, self._connect() as conn:
            conn.execute(
                "UPDATE issues SET status = ?, fix_method = ?, notes = ?, fixed_at = ?, "
                "fix_session_id = CASE WHEN ? != '' THEN ? ELSE fix_session_id END "
                "WHERE id = ?",
                (
                    status.value,
                    update.fix_method,
                    update.notes,
                    update.fixed_at.isoformat() if update.fixed_at else None,
                    update.fix_session_id,
                    update.fix_session_id,
                    issue_id,
                ),
            )

    def get_issue_status(self, issue_id: str) -> IssueStatus | None:
        with self._lock, self._connect() as conn:
            row = conn.execute("SELECT status FROM issues WHERE id = ?", (issue_id,)).fetchone()
        return IssueStatus(row["status"]) if row else None

    # ------------------------------------------------------------------
    # Activity
    # ------------------------------------------------------------------

    def record(
        self,
        *,
        user_id: str,
        site_id: str,
        type: str,
        description: str,
        metadata: dict[str, Any],
    ) -> None:
        with self._lock, self._connect() as conn:
            conn.execute(
                "INSERT INTO activity (user_id, site_id, type, description, metadata, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (user_id, site_id, type, description,
                 json.dumps(metadata, default=str), datetime.now().isoformat()),
            )

    def list_activity(self, site_id: str, limit: int = 20) -> list[dict[str, Any]]:
        with self._lock, self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM activity WHERE site_id = ? ORDER BY id DESC LIMIT ?",
                (site_id, limit),
            ).fetchall()
        return [
            {
                "type": row["type"],
                "description": row["description"],
                "metadata": json.loads(row["metadata"]),
                "created_at": row["created_at"],
            }
            for row in rows
        ]

    # ------------------------------------------------------------------
    # Backups
    # ------------------------------------------------------------------

    def save_backup(self, session_id: str, item: BackupItem) -> None:
        payload = encrypt_text(json.dumps(asdict(item)), self._dir)
        with self._lock, self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO backups (session_id, content_id, kind, payload, created_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (session_id, item.id, item.kind, payload, datetime.now().isoformat()),
            )

    def load_backup(self, session_id: str) -> list[BackupItem]:
        with self._lock, self._connect() as conn:
            rows = conn.execute(
                "SELECT payload FROM backups WHERE session_id = ? ORDER BY created_at",
                (session_id,),
            ).fetchall()
        return [BackupItem(**json.loads(decrypt_text(row["payload"], self._dir))) for row in rows]
