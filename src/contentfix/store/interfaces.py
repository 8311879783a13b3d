"""Narrow interfaces to the collaborators the remediation engine consumes.

The engine never talks to a database directly; anything that satisfies these
protocols can back it.  :class:`contentfix.store.sqlite.SQLiteStore` is the
bundled implementation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from contentfix.core.models import BackupItem, Issue, IssueStatus, Site


@dataclass
class IssueFilter:
    auto_fixable_only: bool = True
    statuses: list[IssueStatus] = field(
        default_factory=lambda: [IssueStatus.DETECTED, IssueStatus.REAPPEARED]
    )
    # Issues fixed within this many days are skipped; None disables the check.
    exclude_fixed_within_days: int | None = 7


@dataclass
class StatusUpdate:
    fix_method: str = ""
    notes: str = ""
    fixed_at: datetime | None = None
    fix_session_id: str = ""


class SiteStore(Protocol):
    def get_site(self, site_id: str, user_id: str) -> Site | None: ...

    def update_site_score(self, site_id: str, score: int) -> None: ...


class IssueTracker(Protocol):
    def list_fixable_issues(
        self, site_id: str, user_id: str, issue_filter: IssueFilter
    ) -> list[Issue]: ...

    def bulk_mark_fixing(self, issue_ids: list[str], session_id: str) -> None: ...

    def reset_fixing(
        self, site_id: str, user_id: str, session_id: str | None = None
    ) -> int: ...

    def set_issue_status(
        self, issue_id: str, status: IssueStatus, update: StatusUpdate
    ) -> None: ...


class ScoreReanalyzer(Protocol):
    def rescore(
        self,
        url: str,
        keywords: list[str],
        user_id: str,
        site_id: str,
        *,
        skip_tracking: bool = True,
        score_only: bool = True,
    ) -> dict[str, Any]: ...


class ActivityLog(Protocol):
    def record(
        self,
        *,
        user_id: str,
        site_id: str,
        type: str,
        description: str,
        metadata: dict[str, Any],
    ) -> None: ...


class BackupStore(Protocol):
    def save_backup(self, session_id: str, item: BackupItem) -> None: ...

    def load_backup(self, session_id: str) -> list[BackupItem]: ...
