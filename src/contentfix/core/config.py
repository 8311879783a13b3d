"""Configuration management for ContentFix (contentfix.toml parsing + defaults)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

try:
    import tomllib
except ImportError:
    try:
        import tomli as tomllib  # type: ignore[no-redef]
    except ImportError:
        tomllib = None  # type: ignore[assignment]


@dataclass
class RemediationConfig:
    # Share of verification failures above which the whole session is rolled back.
    rollback_threshold: float = 0.5
    # Minimum share of written words that must survive the round trip.
    content_loss_threshold: float = 0.8
    recent_content_limit: int = 10
    fixed_within_days: int = 7
    max_changes: int = 50
    enable_reanalysis: bool = True
    reanalysis_delay: float = 10.0


@dataclass
class VerificationConfig:
    settle_delay: float = 3.0


@dataclass
class ClientConfig:
    timeout: int = 30
    per_page: int = 50
    page_delay: float = 0.5
    max_pages: int = 20
    user_agent: str = "ContentFix/0.3"


@dataclass
class WriterConfig:
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 2000


@dataclass
class ContentFixConfig:
    """Complete ContentFix configuration."""

    remediation: RemediationConfig = field(default_factory=RemediationConfig)
    verification: VerificationConfig = field(default_factory=VerificationConfig)
    client: ClientConfig = field(default_factory=ClientConfig)
    writer: WriterConfig = field(default_factory=WriterConfig)


_SECTIONS = {
    "remediation": (
        "rollback_threshold",
        "content_loss_threshold",
        "recent_content_limit",
        "fixed_within_days",
        "max_changes",
        "enable_reanalysis",
        "reanalysis_delay",
    ),
    "verification": ("settle_delay",),
    "client": ("timeout", "per_page", "page_delay", "max_pages", "user_agent"),
    "writer": ("model", "max_tokens"),
}


def load_config(project_path: Path | None = None) -> ContentFixConfig:
    """Load configuration from contentfix.toml if present, otherwise return defaults."""
    config = ContentFixConfig()

    if project_path is None:
        project_path = Path.cwd()

    config_file = project_path / "contentfix.toml"
    if not config_file.exists():
        return config

    if tomllib is None:
        return config

    with open(config_file, "rb") as f:
        data = tomllib.load(f)

    for section, attrs in _SECTIONS.items():
        if section not in data:
            continue
        values = data[section]
        target = getattr(config, section)
        for attr in attrs:
            if attr in values:
                setattr(target, attr, values[attr])

    if not 0.0 <= config.remediation.rollback_threshold <= 1.0:
        raise ValueError("remediation.rollback_threshold must be between 0 and 1")
    if not 0.0 <= config.remediation.content_loss_threshold <= 1.0:
        raise ValueError("remediation.content_loss_threshold must be between 0 and 1")

    return config


def get_contentfix_dir(project_path: Path | None = None) -> Path:
    """Get or create the .contentfix directory."""
    if project_path is None:
        project_path = Path.cwd()
    contentfix_dir = project_path / ".contentfix"
    contentfix_dir.mkdir(exist_ok=True)
    return contentfix_dir
