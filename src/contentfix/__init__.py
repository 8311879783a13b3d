"""ContentFix - automated content-quality remediation with verification and rollback."""

from contentfix._version import __version__
from contentfix.core.models import RemediationOptions, RemediationResult
from contentfix.fix.orchestrator import RemediationOrchestrator

__all__ = [
    "__version__",
    "RemediationOptions",
    "RemediationOrchestrator",
    "RemediationResult",
]
