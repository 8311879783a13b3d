"""Base class for all fix strategies."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any

from contentfix.cms.client import ContentStoreClient, ContentStoreError
from contentfix.core.config import RemediationConfig
from contentfix.core.models import Document, FixOutcome, FixType, Issue
from contentfix.fix.context import RunContext
from contentfix.fix.html import word_count
from contentfix.fix.writer import ContentWriter

logger = logging.getLogger(__name__)


class FixError(Exception):
    """A strategy could not produce an acceptable change for a document."""


class ContentLossError(FixError):
    """The stored content came back much shorter than what was written."""


@dataclass
class Transform:
    """What a strategy wants to change on one document.

    ``payload`` holds document fields to write, ``media`` maps media ids to
    new alt text.  Nothing is written unless ``updated`` is True.
    """

    updated: bool
    description: str = ""
    payload: dict[str, Any] = field(default_factory=dict)
    media: dict[int, str] = field(default_factory=dict)

    @classmethod
    def unchanged(cls, description: str) -> "Transform":
        return cls(updated=False, description=description)


@dataclass
class StrategyReport:
    applied: list[FixOutcome] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class FixStrategy(ABC):
    """Abstract base class for all fix strategies.

    Each concrete strategy must define:
      - fix_types  : the :class:`FixType` members it handles
      - name       : short human-readable name
      - transform(): the pure document change

    :meth:`run` is shared: it resolves the document for every issue, calls
    ``transform`` and writes the result back only when something changed.
    Re-running a strategy over already-fixed content is a no-op that still
    reports the issue as resolved.
    """

    fix_types: tuple[FixType, ...] = ()
    name: str = ""

    def __init__(
        self,
        writer: ContentWriter | None = None,
        config: RemediationConfig | None = None,
    ) -> None:
        self.writer = writer or ContentWriter(api_key="")
        self.config = config or RemediationConfig()

    @abstractmethod
    def transform(
        self, document: Document, issue: Issue, ctx: RunContext | None = None
    ) -> Transform:
        """Compute the change for one document.

        ``ctx`` carries whatever :meth:`prepare` built for this run.  Raise
        :class:`FixError` when the document needs a change that cannot be
        produced.
        """
        ...

    def prepare(self, client: ContentStoreClient, ctx: RunContext) -> None:
        """Hook run once per group before any document is touched.

        Anything built here belongs in ``ctx.resources`` under :attr:`name`,
        never on the strategy, which outlives the run.
        """

    # ------------------------------------------------------------------
    # Shared driver
    # ------------------------------------------------------------------

    def run(
        self,
        client: ContentStoreClient,
        issues: list[Issue],
        ctx: RunContext,
    ) -> StrategyReport:
        report = StrategyReport()
        self.prepare(client, ctx)

        recent: list[Document] | None = None
        claimed: set[int] = set()

        for issue in issues:
            base = FixOutcome.from_issue(issue)

            if issue.target_content_id is not None:
                try:
                    doc = client.find_document(issue.target_content_id)
                except ContentStoreError as exc:
                    msg = f"Could not load content {issue.target_content_id}: {exc}"
                    report.errors.append(msg)
                    report.applied.append(replace(base, success=False, error=msg))
                    continue
                claimed.add(doc.id)
                report.applied.append(self._attempt(client, doc, issue, base, ctx, report))
                continue

            if recent is None:
                try:
                    recent = client.recent_documents(self.config.recent_content_limit)
                except ContentStoreError as exc:
                    msg = f"Could not list recent content: {exc}"
                    report.errors.append(msg)
                    recent = []
                    report.applied.append(replace(base, success=False, error=msg))
                    continue

            report.applied.append(self._scan(client, recent, claimed, issue, base, ctx, report))

        return report

    def _scan(
        self,
        client: ContentStoreClient,
        recent: list[Document],
        claimed: set[int],
        issue: Issue,
        base: FixOutcome,
        ctx: RunContext,
        report: StrategyReport,
    ) -> FixOutcome:
        """Fix the first recent document that needs it; each issue claims one."""
        for doc in recent:
            if doc.id in claimed:
                continue
            try:
                change = self.transform(doc, issue, ctx)
            except FixError as exc:
                claimed.add(doc.id)
                return self._failed(base, doc, str(exc), ctx, report)
            if change.updated:
                claimed.add(doc.id)
                return self._attempt(client, doc, issue, base, ctx, report, change)

        ctx.add_log(f"No updates needed for {issue.type}: content already compliant")
        return replace(
            base,
            success=True,
            verified=True,
            already_optimal=True,
            description="Verified: content already meets requirements",
            verification_details="already optimal",
        )

    def _attempt(
        self,
        client: ContentStoreClient,
        doc: Document,
        issue: Issue,
        base: FixOutcome,
        ctx: RunContext,
        report: StrategyReport,
        change: Transform | None = None,
    ) -> FixOutcome:
        base = replace(base, post_id=doc.id, content_kind=doc.kind)
        try:
            if change is None:
                change = self.transform(doc, issue, ctx)
            if not change.updated:
                return replace(
                    base,
                    success=True,
                    verified=True,
                    already_optimal=True,
                    description=change.description or "Already optimal",
                    verification_details="already optimal",
                )
            self._write(client, doc, change)
        except FixError as exc:
            return self._failed(base, doc, str(exc), ctx, report)
        except ContentStoreError as exc:
            return self._failed(base, doc, f"Write failed: {exc}", ctx, report)

        ctx.add_log(f"{issue.type}: {change.description} ({doc.kind} {doc.id})", "success")
        return replace(base, success=True, description=change.description)

    def _failed(
        self,
        base: FixOutcome,
        doc: Document,
        message: str,
        ctx: RunContext,
        report: StrategyReport,
    ) -> FixOutcome:
        msg = f"{base.type} on {doc.kind} {doc.id}: {message}"
        report.errors.append(msg)
        ctx.add_log(msg, "error")
        return replace(
            base,
            success=False,
            error=message,
            post_id=doc.id,
            content_kind=doc.kind,
        )

    def _write(self, client: ContentStoreClient, doc: Document, change: Transform) -> None:
        if change.payload:
            client.update_document(doc.id, doc.kind, change.payload)
        for media_id, alt_text in change.media.items():
            client.update_media(media_id, alt_text)

        if "content" in change.payload:
            self._check_content_loss(client, doc, change.payload["content"])

    def _check_content_loss(
        self, client: ContentStoreClient, doc: Document, written: str
    ) -> None:
        expected = word_count(written)
        if expected == 0:
            return
        stored = word_count(client.fetch_document(doc.id, doc.kind, fresh=True).content)
        if stored < expected * self.config.content_loss_threshold:
            raise ContentLossError(
                f"Possible truncation: stored content has {stored} words, "
                f"{expected} were written"
            )
