"""Score-impact estimation and run statistics."""

from __future__ import annotations

from contentfix.core.models import FixOutcome, FixStats, FixType, Impact

MAX_ESTIMATED_IMPROVEMENT = 40.0
DEFAULT_WEIGHT = 2.0

# Raw auditor types with their own weight take precedence over the normalized type.
RAW_TYPE_WEIGHTS: dict[str, float] = {
    "missing_h1": 4.5,
}

WEIGHTS: dict[FixType, float] = {
    FixType.META_DESCRIPTION: 5.0,
    FixType.TITLE_TAG: 5.0,
    FixType.CONTENT_QUALITY: 4.0,
    FixType.HEADING_STRUCTURE: 3.5,
    FixType.KEYWORD_OPTIMIZATION: 3.5,
    FixType.MISSING_ALT_TEXT: 2.5,
}

IMPACT_MULTIPLIERS: dict[Impact, float] = {
    Impact.HIGH: 1.0,
    Impact.MEDIUM: 0.7,
    Impact.LOW: 0.4,
}

BREAKDOWN_KEYS: dict[FixType, str] = {
    FixType.MISSING_ALT_TEXT: "alt_text_fixed",
    FixType.META_DESCRIPTION: "meta_descriptions_updated",
    FixType.TITLE_TAG: "title_tags_improved",
    FixType.HEADING_STRUCTURE: "heading_structure_fixed",
    FixType.INTERNAL_LINKING: "internal_links_added",
    FixType.IMAGE_DIMENSIONS: "images_optimized",
    FixType.CONTENT_QUALITY: "content_quality_improved",
}

MINUTES_PER_FIX = 2
MIN_FIX_MINUTES = 3


def fix_weight(outcome: FixOutcome) -> float:
    if outcome.type in RAW_TYPE_WEIGHTS:
        return RAW_TYPE_WEIGHTS[outcome.type]
    return WEIGHTS.get(outcome.fix_type, DEFAULT_WEIGHT)


def estimate_score_improvement(outcomes: list[FixOutcome]) -> float:
    """Weighted sum over successful outcomes, capped at 40 points."""
    total = sum(
        fix_weight(o) * IMPACT_MULTIPLIERS[o.impact]
        for o in outcomes if o.success
    )
    return min(round(total, 2), MAX_ESTIMATED_IMPROVEMENT)


def estimated_impact(outcomes: list[FixOutcome]) -> str:
    high = sum(1 for o in outcomes if o.success and o.impact is Impact.HIGH)
    if high >= 5:
        return "very high"
    if high >= 3:
        return "high"
    if high >= 1:
        return "medium"
    return "low"


def detailed_breakdown(outcomes: list[FixOutcome]) -> dict[str, int]:
    breakdown = {key: 0 for key in BREAKDOWN_KEYS.values()}
    for outcome in outcomes:
        key = BREAKDOWN_KEYS.get(outcome.fix_type)
        if outcome.success and key:
            breakdown[key] += 1
    return breakdown


def compute_stats(outcomes: list[FixOutcome], total_issues: int) -> FixStats:
    successful = [o for o in outcomes if o.success]
    return FixStats(
        total_issues_found=total_issues,
        fixes_attempted=len(outcomes),
        fixes_successful=len(successful),
        fixes_failed=len(outcomes) - len(successful),
        fixes_verified=sum(1 for o in successful if o.verified is True),
        estimated_impact=estimated_impact(outcomes) if outcomes else "none",
        detailed_breakdown=detailed_breakdown(outcomes),
    )


def estimate_fix_time(fix_count: int) -> str:
    minutes = max(MIN_FIX_MINUTES, fix_count * MINUTES_PER_FIX)
    if minutes < 60:
        return f"{minutes} minutes"
    hours, rest = divmod(minutes, 60)
    return f"{hours}h {rest}m" if rest else f"{hours}h"
