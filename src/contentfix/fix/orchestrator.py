"""Remediation orchestrator: backup, fix, verify, roll back or record."""

from __future__ import annotations

import logging
import time
from collections import Counter
from dataclasses import replace
from datetime import datetime
from typing import Callable

from contentfix.backup.manager import BackupManager
from contentfix.cms.client import AccessError, ContentStoreClient, ContentStoreError
from contentfix.core.config import ContentFixConfig
from contentfix.core.models import (
    AvailableFixes,
    Credentials,
    FixOutcome,
    Issue,
    IssueStatus,
    ReanalysisResult,
    RemediationOptions,
    RemediationResult,
    Site,
    VerificationSummary,
)
from contentfix.fix.context import RunContext
from contentfix.fix.estimate import compute_stats, estimate_fix_time, estimate_score_improvement
from contentfix.fix.issue_types import matches_type
from contentfix.fix.strategies import StrategyRegistry
from contentfix.fix.writer import ContentWriter
from contentfix.store.interfaces import (
    ActivityLog,
    BackupStore,
    IssueFilter,
    IssueTracker,
    ScoreReanalyzer,
    SiteStore,
    StatusUpdate,
)
from contentfix.verify.engine import VerificationEngine

logger = logging.getLogger(__name__)

FIX_METHOD = "automatic"
ACTIVITY_APPLIED = "content_fixes_applied"
ACTIVITY_ROLLED_BACK = "content_fixes_rolled_back"


class RemediationOrchestrator:
    """Runs one remediation session for a site.

    Collaborators are injected: the storage protocols from
    :mod:`contentfix.store.interfaces`, an optional re-scorer, and a factory
    turning site credentials into a :class:`ContentStoreClient`.

    Usage::

        store = SQLiteStore()
        orchestrator = RemediationOrchestrator(store, store, store, backups=store)
        result = orchestrator.run_remediation(site_id, user_id, dry_run=False)
    """

    def __init__(
        self,
        sites: SiteStore,
        tracker: IssueTracker,
        activity: ActivityLog,
        backups: BackupStore | None = None,
        rescorer: ScoreReanalyzer | None = None,
        config: ContentFixConfig | None = None,
        client_factory: Callable[[Credentials], ContentStoreClient] | None = None,
        writer: ContentWriter | None = None,
        registry: StrategyRegistry | None = None,
        verifier: VerificationEngine | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.sites = sites
        self.tracker = tracker
        self.activity = activity
        self.rescorer = rescorer
        self.config = config or ContentFixConfig()
        self.client_factory = client_factory or (
            lambda creds: ContentStoreClient(creds, self.config.client)
        )
        self.writer = writer or ContentWriter(config=self.config.writer)
        self.registry = registry or StrategyRegistry.default(self.writer, self.config.remediation)
        self.verifier = verifier or VerificationEngine(self.config.verification, sleep=sleep)
        self.backup_manager = BackupManager(backups)
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def run_remediation(
        self,
        site_id: str,
        user_id: str,
        dry_run: bool = True,
        options: RemediationOptions | None = None,
    ) -> RemediationResult:
        options = options or RemediationOptions()
        ctx = RunContext()
        ctx.add_log(
            f"Starting remediation for site {site_id} "
            f"(dry run: {dry_run}, session: {ctx.session_id})"
        )

        try:
            site = self._load_site(site_id, user_id, ctx)
            issues = self._fixable_issues(site, user_id, ctx)
            if not issues:
                return self._nothing_to_fix(dry_run, ctx)

            selected = self.prioritize(
                issues,
                options.fix_types,
                options.max_changes or self.config.remediation.max_changes,
            )
            ctx.add_log(f"Will attempt to fix {len(selected)} issues")

            if dry_run:
                return self._dry_run(site, selected, len(issues), options, ctx)
            return self._apply(site, user_id, selected, len(issues), options, ctx)
        except ContentStoreError as exc:
            return self._error_result(exc, dry_run, ctx)
        except Exception as exc:
            logger.exception("Remediation session %s failed", ctx.session_id)
            return self._error_result(exc, dry_run, ctx)

    def available_fix_types(self, site_id: str, user_id: str) -> AvailableFixes:
        """What a live run would pick up right now, without touching anything."""
        issues = self.tracker.list_fixable_issues(site_id, user_id, self._issue_filter())
        breakdown = Counter(issue.type for issue in issues)
        unsupported = sorted(
            {issue.type for issue in issues if self.registry.get(issue.fix_type) is None}
        )
        return AvailableFixes(
            available_fixes=list(breakdown),
            total_fixable_issues=len(issues),
            estimated_time=estimate_fix_time(len(issues)),
            breakdown=dict(breakdown),
            unsupported=unsupported,
        )

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    @staticmethod
    def prioritize(
        issues: list[Issue], fix_types: list[str] | None, max_changes: int
    ) -> list[Issue]:
        """Filter by allowed types, order by impact (stable), cap the count."""
        selected = issues
        if fix_types:
            selected = [
                issue for issue in selected
                if any(matches_type(t, issue.fix_type, issue.type) for t in fix_types)
            ]
        selected = sorted(selected, key=lambda issue: issue.impact.priority, reverse=True)
        return selected[:max_changes]

    def _reanalysis_enabled(self, options: RemediationOptions) -> bool:
        return options.enable_reanalysis and self.config.remediation.enable_reanalysis

    def _issue_filter(self) -> IssueFilter:
        return IssueFilter(exclude_fixed_within_days=self.config.remediation.fixed_within_days)

    def _load_site(self, site_id: str, user_id: str, ctx: RunContext) -> Site:
        site = self.sites.get_site(site_id, user_id)
        if site is None:
            raise AccessError("Site not found or access denied")
        if not site.has_credentials:
            raise AccessError("Content store credentials not configured for this site")
        ctx.add_log(f"Loaded site: {site.name} ({site.url})")
        return site

    def _fixable_issues(self, site: Site, user_id: str, ctx: RunContext) -> list[Issue]:
        stale = self.tracker.reset_fixing(site.id, user_id)
        if stale:
            ctx.add_log(f"Reset {stale} issue(s) left in 'fixing' by an earlier run", "warning")
        issues = self.tracker.list_fixable_issues(site.id, user_id, self._issue_filter())
        ctx.add_log(f"Found {len(issues)} tracked fixable issues")
        return issues

    # ------------------------------------------------------------------
    # Dry run
    # ------------------------------------------------------------------

    def _dry_run(
        self,
        site: Site,
        selected: list[Issue],
        total: int,
        options: RemediationOptions,
        ctx: RunContext,
    ) -> RemediationResult:
        outcomes = [replace(FixOutcome.from_issue(issue), success=True) for issue in selected]

        reanalysis = None
        if outcomes and self._reanalysis_enabled(options):
            improvement = estimate_score_improvement(outcomes)
            reanalysis = ReanalysisResult(
                initial_score=site.seo_score,
                final_score=min(100, site.seo_score + improvement),
                score_improvement=improvement,
                success=True,
                simulated=True,
            )
            ctx.add_log(f"Estimated score improvement: +{improvement}")

        return RemediationResult(
            success=True,
            dry_run=True,
            fixes_applied=outcomes,
            stats=compute_stats(outcomes, total),
            message=f"Dry run complete. Found {len(outcomes)} fixable issues.",
            fix_session_id=ctx.session_id,
            reanalysis=reanalysis,
            detailed_log=ctx.log,
        )

    # ------------------------------------------------------------------
    # Live run
    # ------------------------------------------------------------------

    def _apply(
        self,
        site: Site,
        user_id: str,
        selected: list[Issue],
        total: int,
        options: RemediationOptions,
        ctx: RunContext,
    ) -> RemediationResult:
        client = self.client_factory(site.credentials())
        client.test_connection()
        ctx.add_log("Content store connection verified")

        tracked = [issue.tracked_issue_id for issue in selected if issue.tracked_issue_id]
        self.tracker.bulk_mark_fixing(tracked, ctx.session_id)
        try:
            if not options.skip_backup:
                self._backup(client, selected, ctx)

            try:
                outcomes, errors = self._run_strategies(client, selected, ctx)
                outcomes, summary, originally_successful = self._verify(
                    client, outcomes, errors, ctx
                )
            except Exception as exc:
                # Earlier groups may already have written; undo them.
                if not ctx.has_backups:
                    raise
                logger.exception("Remediation session %s aborted", ctx.session_id)
                return self._roll_back(
                    client, site, user_id, selected, total,
                    reason=f"run aborted: {exc}",
                    errors=[str(exc)],
                    ctx=ctx,
                    metadata={"aborted": type(exc).__name__},
                )

            failure_rate = (
                summary.total_failed / originally_successful if originally_successful else 0.0
            )
            threshold = self.config.remediation.rollback_threshold
            if failure_rate > threshold:
                if ctx.has_backups:
                    return self._roll_back(
                        client, site, user_id, selected, total,
                        reason=f"{failure_rate:.0%} of fixes failed verification",
                        errors=errors,
                        ctx=ctx,
                        summary=summary,
                        metadata={"failure_rate": round(failure_rate, 3)},
                    )
                ctx.add_log(
                    f"{failure_rate:.0%} of fixes failed verification but no backup "
                    "exists to roll back to",
                    "warning",
                )

            self._record_statuses(outcomes, ctx)
        finally:
            left = self.tracker.reset_fixing(site.id, user_id, ctx.session_id)
            if left:
                ctx.add_log(f"Reset {left} issue(s) still marked 'fixing'", "warning")

        reanalysis = None
        if self._reanalysis_enabled(options):
            reanalysis = self._reanalyze(site, user_id, options, ctx)

        self._record_activity(site, user_id, outcomes, reanalysis, ctx)

        stats = compute_stats(outcomes, total)
        message = f"Applied {stats.fixes_successful} fixes successfully."
        if reanalysis and reanalysis.success:
            message += (
                f" Score: {reanalysis.initial_score:g} -> {reanalysis.final_score:g} "
                f"({reanalysis.score_improvement:+g})"
            )

        return RemediationResult(
            success=True,
            dry_run=False,
            fixes_applied=outcomes,
            stats=stats,
            message=message,
            fix_session_id=ctx.session_id,
            errors=errors or None,
            reanalysis=reanalysis,
            verification=summary,
            detailed_log=ctx.log,
        )

    def _backup(self, client: ContentStoreClient, selected: list[Issue], ctx: RunContext) -> None:
        ids = [issue.target_content_id for issue in selected if issue.target_content_id is not None]
        if any(issue.target_content_id is None for issue in selected):
            # Untargeted issues are resolved against the most recent documents.
            recent = client.recent_documents(self.config.remediation.recent_content_limit)
            ids.extend(doc.id for doc in recent)
        self.backup_manager.snapshot(client, ids, ctx)

    def _run_strategies(
        self, client: ContentStoreClient, selected: list[Issue], ctx: RunContext
    ) -> tuple[list[FixOutcome], list[str]]:
        groups: dict[str, list[Issue]] = {}
        for issue in selected:
            key = issue.fix_type.value if issue.fix_type else issue.type
            groups.setdefault(key, []).append(issue)
        ctx.add_log(f"Processing fix types: {', '.join(groups)}")

        outcomes: list[FixOutcome] = []
        errors: list[str] = []
        for key, group in groups.items():
            strategy = self.registry.get(group[0].fix_type)
            if strategy is None:
                msg = f"Fix type '{group[0].type}' not implemented"
                ctx.add_log(msg, "warning")
                outcomes.extend(
                    replace(FixOutcome.from_issue(issue), success=False, error=msg)
                    for issue in group
                )
                errors.append(msg)
                continue

            ctx.add_log(f"Processing {len(group)} fix(es) of type {key} with {strategy.name}")
            try:
                report = strategy.run(client, group, ctx)
            except AccessError:
                raise
            except Exception as exc:
                logger.exception("Strategy %s failed", strategy.name)
                msg = f"{strategy.name} failed: {exc}"
                ctx.add_log(msg, "error")
                outcomes.extend(
                    replace(FixOutcome.from_issue(issue), success=False, error=msg)
                    for issue in group
                )
                errors.append(msg)
                continue
            outcomes.extend(report.applied)
            errors.extend(report.errors)

        return outcomes, errors

    def _verify(
        self,
        client: ContentStoreClient,
        outcomes: list[FixOutcome],
        errors: list[str],
        ctx: RunContext,
    ) -> tuple[list[FixOutcome], VerificationSummary, int]:
        """Verify every written mutation; only explicit failures flip success."""
        summary = VerificationSummary()
        originally_successful = sum(1 for o in outcomes if o.success)
        verified: list[FixOutcome] = []

        for outcome in outcomes:
            if not outcome.success or outcome.verified is not None or outcome.post_id is None:
                verified.append(outcome)
                continue

            result = self.verifier.verify(
                client, outcome.post_id, outcome.fix_type, outcome.content_kind
            )
            if not result.available:
                verified.append(replace(outcome, verification_details=result.details))
            elif result.verified:
                summary.total_verified += 1
                summary.details.append(f"{outcome.type} on {outcome.post_id}: {result.details}")
                verified.append(replace(
                    outcome, verified=True, verification_details=result.details
                ))
            else:
                summary.total_failed += 1
                msg = f"Verification failed for {outcome.type} on {outcome.post_id}: {result.details}"
                summary.details.append(msg)
                errors.append(msg)
                ctx.add_log(msg, "error")
                verified.append(replace(
                    outcome,
                    success=False,
                    verified=False,
                    verification_details=result.details,
                    error=msg,
                ))

        ctx.add_log(
            f"Verification: {summary.total_verified} verified, {summary.total_failed} failed"
        )
        return verified, summary, originally_successful

    def _roll_back(
        self,
        client: ContentStoreClient,
        site: Site,
        user_id: str,
        selected: list[Issue],
        total: int,
        reason: str,
        errors: list[str],
        ctx: RunContext,
        summary: VerificationSummary | None = None,
        metadata: dict | None = None,
    ) -> RemediationResult:
        """Restore every snapshot, reset the issues and report one failure."""
        ctx.add_log(f"{reason}; rolling back session", "error")
        rollback = self.backup_manager.rollback(client, ctx)

        note = f"Rolled back: {reason}"
        for issue in selected:
            if issue.tracked_issue_id:
                self.tracker.set_issue_status(
                    issue.tracked_issue_id,
                    IssueStatus.DETECTED,
                    StatusUpdate(fix_method=FIX_METHOD, notes=note, fix_session_id=ctx.session_id),
                )

        message = f"Rolled back {rollback.restored} item(s): {reason}."
        self.activity.record(
            user_id=user_id,
            site_id=site.id,
            type=ACTIVITY_ROLLED_BACK,
            description=message,
            metadata={
                "fix_session_id": ctx.session_id,
                "restored": rollback.restored,
                "rollback_errors": rollback.errors,
                **(metadata or {}),
            },
        )

        return RemediationResult(
            success=False,
            dry_run=False,
            fixes_applied=[],
            stats=compute_stats([], total),
            message=message,
            fix_session_id=ctx.session_id,
            errors=errors + rollback.errors,
            verification=summary,
            detailed_log=ctx.log,
        )

    def _record_statuses(self, outcomes: list[FixOutcome], ctx: RunContext) -> None:
        now = datetime.now()
        for outcome in outcomes:
            if not outcome.tracked_issue_id:
                continue
            if outcome.resolves_issue:
                status = IssueStatus.FIXED
                update = StatusUpdate(
                    fix_method=FIX_METHOD,
                    notes=f"Successfully applied: {outcome.description}",
                    fixed_at=now,
                    fix_session_id=ctx.session_id,
                )
            else:
                status = IssueStatus.DETECTED
                update = StatusUpdate(
                    fix_method=FIX_METHOD,
                    notes=f"Fix failed: {outcome.error or 'unknown error'}",
                    fix_session_id=ctx.session_id,
                )
            self.tracker.set_issue_status(outcome.tracked_issue_id, status, update)

    def _reanalyze(
        self, site: Site, user_id: str, options: RemediationOptions, ctx: RunContext
    ) -> ReanalysisResult | None:
        if self.rescorer is None:
            ctx.add_log("No re-scorer configured; skipping re-analysis")
            return None

        delay = options.reanalysis_delay
        if delay is None:
            delay = self.config.remediation.reanalysis_delay
        if delay > 0:
            ctx.add_log(f"Waiting {delay:g}s before re-analysis")
            self._sleep(delay)

        started = time.monotonic()
        try:
            data = self.rescorer.rescore(
                site.url, site.keywords, user_id, site.id,
                skip_tracking=True, score_only=True,
            )
            final = data["score"]
        except Exception as exc:
            logger.warning("Re-analysis failed for %s: %s", site.url, exc)
            ctx.add_log(f"Re-analysis failed: {exc}", "warning")
            return ReanalysisResult(
                initial_score=site.seo_score,
                final_score=site.seo_score,
                score_improvement=0,
                success=False,
                analysis_time=time.monotonic() - started,
                error=str(exc),
            )

        self.sites.update_site_score(site.id, final)
        ctx.add_log(f"Re-analysis complete: {site.seo_score} -> {final}", "success")
        return ReanalysisResult(
            initial_score=site.seo_score,
            final_score=final,
            score_improvement=final - site.seo_score,
            success=True,
            analysis_time=time.monotonic() - started,
        )

    def _record_activity(
        self,
        site: Site,
        user_id: str,
        outcomes: list[FixOutcome],
        reanalysis: ReanalysisResult | None,
        ctx: RunContext,
    ) -> None:
        successful = [o for o in outcomes if o.success]
        metadata = {
            "fix_session_id": ctx.session_id,
            "fixes_applied": len(outcomes),
            "fixes_successful": len(successful),
            "fix_types": sorted({o.type for o in successful}),
        }
        if reanalysis is not None:
            metadata["reanalysis"] = {
                "initial_score": reanalysis.initial_score,
                "final_score": reanalysis.final_score,
                "success": reanalysis.success,
            }
        self.activity.record(
            user_id=user_id,
            site_id=site.id,
            type=ACTIVITY_APPLIED,
            description=(
                f"Content fixes: {len(successful)} successful, "
                f"{len(outcomes) - len(successful)} failed"
            ),
            metadata=metadata,
        )

    # ------------------------------------------------------------------
    # Terminal results
    # ------------------------------------------------------------------

    def _nothing_to_fix(self, dry_run: bool, ctx: RunContext) -> RemediationResult:
        ctx.add_log("No fixable issues found")
        return RemediationResult(
            success=True,
            dry_run=dry_run,
            fixes_applied=[],
            stats=compute_stats([], 0),
            message="All fixable issues have already been addressed.",
            fix_session_id=ctx.session_id,
            detailed_log=ctx.log,
        )

    def _error_result(self, exc: Exception, dry_run: bool, ctx: RunContext) -> RemediationResult:
        ctx.add_log(f"Remediation failed: {exc}", "error")
        return RemediationResult(
            success=False,
            dry_run=dry_run,
            fixes_applied=[],
            stats=compute_stats([], 0),
            message=f"Remediation failed: {exc}",
            fix_session_id=ctx.session_id,
            errors=[str(exc)],
            detailed_log=ctx.log,
        )
