"""Pre-fix snapshots and rollback for remediation sessions."""

from __future__ import annotations

import logging
from typing import Iterable

from contentfix.cms.client import AccessError, ContentStoreClient, ContentStoreError
from contentfix.core.models import BackupItem, RollbackResult
from contentfix.fix.context import RunContext
from contentfix.store.interfaces import BackupStore

logger = logging.getLogger(__name__)


class BackupManager:
    """Snapshots documents before a session touches them and restores them.

    Snapshots live in the session's :class:`RunContext`; when a
    :class:`BackupStore` is given each one is also recorded durably so a
    session can be rolled back from another process.
    """

    def __init__(self, store: BackupStore | None = None):
        self.store = store

    def snapshot(
        self, client: ContentStoreClient, content_ids: Iterable[int], ctx: RunContext
    ) -> int:
        """Back up every id not already backed up in this session.

        Returns the number of new snapshots.  Ids that cannot be fetched are
        logged and skipped.
        """
        taken = 0
        for content_id in dict.fromkeys(content_ids):
            if content_id in ctx.backups:
                continue
            try:
                doc = client.find_document(content_id)
            except AccessError:
                raise
            except ContentStoreError as exc:
                ctx.add_log(f"Backup skipped for content {content_id}: {exc}", "warning")
                continue

            item = BackupItem.from_document(doc)
            ctx.backups[content_id] = item
            if self.store is not None:
                self.store.save_backup(ctx.session_id, item)
            taken += 1

        if taken:
            ctx.add_log(f"Backed up {taken} content item(s)")
        return taken

    def load(self, session_id: str) -> list[BackupItem]:
        if self.store is None:
            return []
        return self.store.load_backup(session_id)

    def rollback(self, client: ContentStoreClient, ctx: RunContext) -> RollbackResult:
        """Restore title, content, excerpt and modified for every snapshot."""
        items = list(ctx.backups.values()) or self.load(ctx.session_id)
        if not items:
            return RollbackResult(success=False, errors=["No backup found for session"])

        restored = 0
        errors: list[str] = []
        for item in items:
            try:
                client.update_document(item.id, item.kind, item.restore_payload())
                restored += 1
                ctx.add_log(f"Restored {item.kind} {item.id} from backup")
            except ContentStoreError as exc:
                msg = f"Failed to restore {item.kind} {item.id}: {exc}"
                errors.append(msg)
                ctx.add_log(msg, "error")

        logger.info("Rollback of session %s restored %d/%d item(s)",
                    ctx.session_id, restored, len(items))
        return RollbackResult(success=restored > 0, restored=restored, errors=errors)

    def rollback_session(self, client: ContentStoreClient, session_id: str) -> RollbackResult:
        """Roll back a past session from the durable store."""
        return self.rollback(client, RunContext(session_id=session_id))
