"""Storage interfaces and the bundled SQLite implementation."""

from contentfix.store.interfaces import (
    ActivityLog,
    BackupStore,
    IssueFilter,
    IssueTracker,
    ScoreReanalyzer,
    SiteStore,
    StatusUpdate,
)
from contentfix.store.sqlite import SQLiteStore

__all__ = [
    "ActivityLog",
    "BackupStore",
    "IssueFilter",
    "IssueTracker",
    "SQLiteStore",
    "ScoreReanalyzer",
    "SiteStore",
    "StatusUpdate",
]
