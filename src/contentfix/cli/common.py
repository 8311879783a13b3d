"""Shared wiring for CLI commands."""

from __future__ import annotations

from pathlib import Path

from contentfix.core.config import load_config
from contentfix.fix.orchestrator import RemediationOrchestrator
from contentfix.store.sqlite import SQLiteStore

DEFAULT_USER = "local"


def open_store(project_path: Path | None = None) -> SQLiteStore:
    return SQLiteStore(project_path or Path.cwd())


def build_orchestrator(store: SQLiteStore, project_path: Path | None = None) -> RemediationOrchestrator:
    """An orchestrator backed by the local SQLite store.

    No re-scorer is wired in locally, so live runs skip re-analysis.
    """
    config = load_config(project_path or Path.cwd())
    return RemediationOrchestrator(
        sites=store,
        tracker=store,
        activity=store,
        backups=store,
        config=config,
    )
