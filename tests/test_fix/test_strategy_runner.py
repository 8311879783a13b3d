"""Tests for the shared strategy driver: targeting, claiming, write guards."""

from __future__ import annotations

from contentfix.core.config import RemediationConfig
from contentfix.core.models import FixType, Issue
from contentfix.fix.strategies import ALL_STRATEGIES, StrategyRegistry
from contentfix.fix.strategies.metadata import MetaDescriptionStrategy
from contentfix.fix.strategies.navigation import ContentFreshnessStrategy
from contentfix.fix.strategies.structured import CanonicalUrlStrategy

from conftest import words_html


def _canonical_issue(target: int | None = None) -> Issue:
    return Issue(
        type="missing_canonical",
        description="No canonical link",
        fix_type=FixType.CANONICAL_URL,
        target_content_id=target,
    )


class TestTargetedIssues:
    def test_fix_written_to_target(self, client, cms, ctx):
        cms.add(3)
        report = CanonicalUrlStrategy().run(client, [_canonical_issue(3)], ctx)
        (outcome,) = report.applied
        assert outcome.success
        assert outcome.post_id == 3
        assert outcome.verified is None
        assert 'rel="canonical"' in cms.doc(3)["content"]

    def test_missing_target_fails_without_writes(self, client, cms, ctx):
        report = CanonicalUrlStrategy().run(client, [_canonical_issue(99)], ctx)
        (outcome,) = report.applied
        assert not outcome.success
        assert "Could not load content 99" in outcome.error
        assert cms.writes == []
        assert report.errors

    def test_already_optimal_target(self, client, cms, ctx):
        cms.add(3, content='<link rel="canonical" href="https://example.com/x"/><p>x</p>')
        (outcome,) = CanonicalUrlStrategy().run(client, [_canonical_issue(3)], ctx).applied
        assert outcome.success
        assert outcome.verified is True
        assert outcome.already_optimal
        assert cms.writes == []

    def test_write_failure_is_contained(self, client, cms, ctx):
        cms.add(2)
        cms.add(3)
        cms.fail_writes.add(3)
        report = CanonicalUrlStrategy().run(
            client, [_canonical_issue(3), _canonical_issue(2)], ctx
        )
        first, second = report.applied
        assert not first.success
        assert first.error.startswith("Write failed")
        assert second.success
        assert len(report.errors) == 1


class TestUntargetedIssues:
    def test_each_issue_claims_one_recent_document(self, client, cms, ctx):
        for i in (1, 2, 3):
            cms.add(i)
        report = CanonicalUrlStrategy().run(
            client, [_canonical_issue(), _canonical_issue()], ctx
        )
        assert [o.post_id for o in report.applied] == [3, 2]
        assert "canonical" not in cms.doc(1)["content"]

    def test_compliant_recent_content_is_already_optimal(self, client, cms, ctx):
        cms.add(1, content='<link rel="canonical" href="https://example.com/1"/><p>x</p>')
        (outcome,) = CanonicalUrlStrategy().run(client, [_canonical_issue()], ctx).applied
        assert outcome.success
        assert outcome.already_optimal
        assert outcome.verified is True
        assert cms.writes == []

    def test_only_recent_documents_are_scanned(self, client, cms, ctx):
        cms.add(1)
        for i in range(2, 6):
            cms.add(i, content='<link rel="canonical" href="https://example.com/"/>')
        strategy = CanonicalUrlStrategy(config=RemediationConfig(recent_content_limit=2))
        (outcome,) = strategy.run(client, [_canonical_issue()], ctx).applied
        assert outcome.already_optimal
        assert cms.writes == []


class TestContentLossGuard:
    def test_truncated_write_is_reported(self, client, cms, ctx):
        cms.add(1, content=words_html(200))
        cms.write_filters[1] = lambda doc: {**doc, "content": "<p>cut short</p>"}
        issue = Issue(
            type="outdated_content", description="", fix_type=FixType.CONTENT_FRESHNESS,
            target_content_id=1,
        )
        (outcome,) = ContentFreshnessStrategy().run(client, [issue], ctx).applied
        assert not outcome.success
        assert "truncation" in outcome.error

    def test_small_shrink_is_tolerated(self, client, cms, ctx):
        cms.add(1, content=words_html(200))
        cms.write_filters[1] = lambda doc: {**doc, "content": words_html(190)}
        issue = Issue(
            type="outdated_content", description="", fix_type=FixType.CONTENT_FRESHNESS,
            target_content_id=1,
        )
        (outcome,) = ContentFreshnessStrategy().run(client, [issue], ctx).applied
        assert outcome.success

    def test_metadata_only_write_skips_the_check(self, client, cms, ctx):
        cms.add(1, content=words_html(200), excerpt="Too short.")
        cms.write_filters[1] = lambda doc: {**doc, "content": ""}
        issue = Issue(
            type="missing_meta_description", description="", fix_type=FixType.META_DESCRIPTION,
            target_content_id=1,
        )
        (outcome,) = MetaDescriptionStrategy().run(client, [issue], ctx).applied
        assert outcome.success


class TestRegistry:
    def test_default_covers_every_fix_type(self):
        registry = StrategyRegistry.default()
        assert registry.supported_types() == list(FixType)
        assert len(ALL_STRATEGIES) == len(FixType)

    def test_get_unknown(self):
        registry = StrategyRegistry([CanonicalUrlStrategy()])
        assert registry.get(None) is None
        assert registry.get(FixType.THIN_CONTENT) is None
        assert FixType.CANONICAL_URL in registry
