"""Shared data models used across ContentFix modules."""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any


class Impact(enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def priority(self) -> int:
        return {"high": 3, "medium": 2, "low": 1}[self.value]

    @classmethod
    def from_severity(cls, severity: str) -> "Impact":
        if severity == "critical":
            return cls.HIGH
        if severity == "warning":
            return cls.MEDIUM
        return cls.LOW


class IssueStatus(enum.Enum):
    DETECTED = "detected"
    REAPPEARED = "reappeared"
    FIXING = "fixing"
    FIXED = "fixed"


class FixType(enum.Enum):
    MISSING_ALT_TEXT = "missing_alt_text"
    META_DESCRIPTION = "missing_meta_description"
    TITLE_TAG = "poor_title_tag"
    HEADING_STRUCTURE = "heading_structure"
    THIN_CONTENT = "thin_content"
    CONTENT_QUALITY = "low_content_quality"
    KEYWORD_OPTIMIZATION = "keyword_optimization"
    STRUCTURED_DATA = "missing_schema"
    CANONICAL_URL = "missing_canonical"
    SOCIAL_TAGS = "missing_og_tags"
    EXTERNAL_LINKS = "external_links_missing_rel"
    INTERNAL_LINKING = "internal_linking"
    IMAGE_DIMENSIONS = "missing_image_dimensions"
    TABLE_OF_CONTENTS = "missing_table_of_contents"
    CONTENT_FRESHNESS = "outdated_content"


@dataclass
class Credentials:
    """Connection details for one remote content store."""

    url: str
    username: str
    application_password: str


@dataclass
class Site:
    """A managed site as seen by the remediation engine."""

    id: str
    user_id: str
    name: str
    url: str
    username: str = ""
    application_password: str = ""
    seo_score: int = 0
    keywords: list[str] = field(default_factory=list)

    @property
    def has_credentials(self) -> bool:
        return bool(self.application_password)

    def credentials(self) -> Credentials:
        return Credentials(
            url=self.url,
            username=self.username or "admin",
            application_password=self.application_password,
        )


@dataclass(frozen=True)
class Issue:
    """A single content defect reported by the auditor."""

    type: str
    description: str
    severity: str = "warning"
    element_path: str = ""
    tracked_issue_id: str = ""
    target_content_id: int | None = None
    fix_type: FixType | None = None

    @property
    def impact(self) -> Impact:
        return Impact.from_severity(self.severity)


@dataclass(frozen=True)
class FixOutcome:
    """Result of attempting one fix.

    ``verified`` is tri-state: True / False once verification ran, None when
    no verification has run or none exists for the fix type.
    """

    type: str
    description: str
    success: bool
    impact: Impact
    fix_type: FixType | None = None
    verified: bool | None = None
    verification_details: str = ""
    post_id: int | None = None
    content_kind: str = ""
    error: str | None = None
    tracked_issue_id: str = ""
    element_path: str = ""
    already_optimal: bool = False

    @classmethod
    def from_issue(cls, issue: Issue) -> "FixOutcome":
        return cls(
            type=issue.type,
            description=issue.description,
            success=False,
            impact=issue.impact,
            fix_type=issue.fix_type,
            tracked_issue_id=issue.tracked_issue_id,
            element_path=issue.element_path,
            post_id=issue.target_content_id,
        )

    @property
    def resolves_issue(self) -> bool:
        """Whether this outcome moves its issue to ``fixed``."""
        return self.success and self.verified is not False

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["impact"] = self.impact.value
        data["fix_type"] = self.fix_type.value if self.fix_type else None
        return data


@dataclass
class Document:
    """A post or page fetched from the content store.

    Text fields hold the raw (unprocessed) value when the API exposes it and
    fall back to the rendered value otherwise.
    """

    id: int
    kind: str
    title: str = ""
    content: str = ""
    excerpt: str = ""
    modified: str = ""
    link: str = ""
    status: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any], kind: str) -> "Document":
        return cls(
            id=int(data.get("id", 0)),
            kind=kind,
            title=_field_text(data.get("title")),
            content=_field_text(data.get("content")),
            excerpt=_field_text(data.get("excerpt")),
            modified=str(data.get("modified") or ""),
            link=str(data.get("link") or ""),
            status=str(data.get("status") or ""),
        )


def _field_text(value: Any) -> str:
    if isinstance(value, dict):
        raw = value.get("raw")
        if raw is not None:
            return str(raw)
        return str(value.get("rendered") or "")
    if value is None:
        return ""
    return str(value)


@dataclass(frozen=True)
class BackupItem:
    """Pre-fix snapshot of one document."""

    id: int
    kind: str
    title: str
    content: str
    excerpt: str
    modified: str

    @classmethod
    def from_document(cls, doc: Document) -> "BackupItem":
        return cls(
            id=doc.id,
            kind=doc.kind,
            title=doc.title,
            content=doc.content,
            excerpt=doc.excerpt,
            modified=doc.modified,
        )

    def restore_payload(self) -> dict[str, str]:
        return {
            "title": self.title,
            "content": self.content,
            "excerpt": self.excerpt,
            "modified": self.modified,
        }


@dataclass
class RollbackResult:
    success: bool
    restored: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class VerificationResult:
    verified: bool
    details: str
    available: bool = True


@dataclass
class VerificationSummary:
    total_verified: int = 0
    total_failed: int = 0
    details: list[str] = field(default_factory=list)


@dataclass
class ReanalysisResult:
    initial_score: int
    final_score: float
    score_improvement: float
    success: bool
    simulated: bool = False
    analysis_time: float = 0.0
    error: str | None = None


@dataclass
class FixStats:
    """Aggregate counters, always derived from a list of outcomes."""

    total_issues_found: int = 0
    fixes_attempted: int = 0
    fixes_successful: int = 0
    fixes_failed: int = 0
    fixes_verified: int = 0
    estimated_impact: str = "none"
    detailed_breakdown: dict[str, int] = field(default_factory=dict)


@dataclass
class RemediationOptions:
    fix_types: list[str] | None = None
    max_changes: int | None = None
    skip_backup: bool = False
    enable_reanalysis: bool = True
    reanalysis_delay: float | None = None


@dataclass
class RemediationResult:
    """Complete result of one remediation run."""

    success: bool
    dry_run: bool
    fixes_applied: list[FixOutcome]
    stats: FixStats
    message: str
    fix_session_id: str
    errors: list[str] | None = None
    reanalysis: ReanalysisResult | None = None
    verification: VerificationSummary | None = None
    detailed_log: list[str] = field(default_factory=list)
    completed_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "dry_run": self.dry_run,
            "fixes_applied": [f.to_dict() for f in self.fixes_applied],
            "stats": asdict(self.stats),
            "message": self.message,
            "fix_session_id": self.fix_session_id,
            "errors": self.errors,
            "reanalysis": asdict(self.reanalysis) if self.reanalysis else None,
            "verification": asdict(self.verification) if self.verification else None,
            "detailed_log": list(self.detailed_log),
            "completed_at": self.completed_at.isoformat(),
        }


@dataclass
class AvailableFixes:
    """Summary of what a live run would attempt for a site."""

    available_fixes: list[str] = field(default_factory=list)
    total_fixable_issues: int = 0
    estimated_time: str = "0 minutes"
    breakdown: dict[str, int] = field(default_factory=dict)
    unsupported: list[str] = field(default_factory=list)
