"""Tests for score estimation and run statistics."""

from __future__ import annotations

import pytest

from contentfix.core.models import FixOutcome, FixType, Impact
from contentfix.fix.estimate import (
    compute_stats,
    detailed_breakdown,
    estimate_fix_time,
    estimate_score_improvement,
    estimated_impact,
    fix_weight,
)


def _outcome(
    fix_type: FixType,
    impact: Impact = Impact.HIGH,
    success: bool = True,
    verified: bool | None = None,
    raw_type: str | None = None,
) -> FixOutcome:
    return FixOutcome(
        type=raw_type or fix_type.value,
        description="",
        success=success,
        impact=impact,
        fix_type=fix_type,
        verified=verified,
    )


class TestWeights:
    def test_raw_type_weight_wins(self):
        assert fix_weight(_outcome(FixType.HEADING_STRUCTURE, raw_type="missing_h1")) == 4.5
        assert fix_weight(_outcome(FixType.HEADING_STRUCTURE)) == 3.5

    def test_default_weight(self):
        assert fix_weight(_outcome(FixType.CANONICAL_URL)) == 2.0


class TestScoreImprovement:
    def test_weighted_by_impact(self):
        outcomes = [
            _outcome(FixType.META_DESCRIPTION, Impact.HIGH),
            _outcome(FixType.MISSING_ALT_TEXT, Impact.LOW),
            _outcome(FixType.TITLE_TAG, Impact.MEDIUM),
        ]
        assert estimate_score_improvement(outcomes) == pytest.approx(5.0 + 1.0 + 3.5)

    def test_failures_do_not_count(self):
        outcomes = [_outcome(FixType.META_DESCRIPTION, success=False)]
        assert estimate_score_improvement(outcomes) == 0

    def test_capped_at_forty(self):
        outcomes = [_outcome(FixType.META_DESCRIPTION) for _ in range(10)]
        assert estimate_score_improvement(outcomes) == 40.0


class TestImpactLabel:
    @pytest.mark.parametrize("high, label", [(0, "low"), (1, "medium"), (3, "high"), (5, "very high")])
    def test_thresholds(self, high, label):
        outcomes = [_outcome(FixType.TITLE_TAG) for _ in range(high)]
        outcomes.append(_outcome(FixType.TITLE_TAG, Impact.LOW))
        assert estimated_impact(outcomes) == label


class TestStats:
    def test_counts(self):
        outcomes = [
            _outcome(FixType.MISSING_ALT_TEXT, verified=True),
            _outcome(FixType.MISSING_ALT_TEXT, verified=None),
            _outcome(FixType.META_DESCRIPTION, success=False, verified=False),
        ]
        stats = compute_stats(outcomes, total_issues=7)
        assert stats.total_issues_found == 7
        assert stats.fixes_attempted == 3
        assert stats.fixes_successful == 2
        assert stats.fixes_failed == 1
        assert stats.fixes_verified == 1
        assert stats.fixes_successful + stats.fixes_failed == stats.fixes_attempted
        assert stats.detailed_breakdown["alt_text_fixed"] == 2
        assert stats.detailed_breakdown["meta_descriptions_updated"] == 0

    def test_empty(self):
        stats = compute_stats([], total_issues=0)
        assert stats.fixes_attempted == 0
        assert stats.estimated_impact == "none"

    def test_breakdown_ignores_unlisted_types(self):
        breakdown = detailed_breakdown([_outcome(FixType.CANONICAL_URL)])
        assert sum(breakdown.values()) == 0


@pytest.mark.parametrize(
    "count, expected",
    [(0, "3 minutes"), (10, "20 minutes"), (30, "1h"), (31, "1h 2m")],
)
def test_estimate_fix_time(count, expected):
    assert estimate_fix_time(count) == expected
