"""Per-run context threaded through every remediation call."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from contentfix.core.models import BackupItem

logger = logging.getLogger("contentfix.remediation")

_LEVELS = {
    "info": logging.INFO,
    "success": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

_MARKS = {
    "info": "INFO",
    "success": "OK",
    "warning": "WARN",
    "error": "ERROR",
}


@dataclass
class RunContext:
    """State owned by exactly one remediation session.

    ``backups`` maps content id to its pre-fix snapshot; nothing outside the
    session reads or writes it.  ``resources`` holds what strategy
    ``prepare`` hooks build for their transforms, keyed by strategy name.
    """

    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    log: list[str] = field(default_factory=list)
    backups: dict[int, BackupItem] = field(default_factory=dict)
    resources: dict[str, Any] = field(default_factory=dict)

    def resource(self, name: str, default: Any = None) -> Any:
        return self.resources.get(name, default)

    def add_log(self, message: str, level: str = "info") -> None:
        timestamp = datetime.now().strftime("%H:%M:%S")
        self.log.append(f"[{timestamp}] {_MARKS.get(level, 'INFO')} {message}")
        logger.log(_LEVELS.get(level, logging.INFO), "[%s] %s", self.session_id[:8], message)

    @property
    def has_backups(self) -> bool:
        return bool(self.backups)
