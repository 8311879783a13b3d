"""Post-fix verification."""

from contentfix.verify.engine import NOT_AVAILABLE, VerificationEngine

__all__ = ["NOT_AVAILABLE", "VerificationEngine"]
