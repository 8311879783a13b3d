"""Post-fix verification: re-read a document and check the fix stuck."""

from __future__ import annotations

import logging
import time
from typing import Callable

from contentfix.cms.client import ContentStoreClient, ContentStoreError
from contentfix.core.config import VerificationConfig
from contentfix.core.models import Document, FixType, VerificationResult
from contentfix.fix.html import heading_level, headings, hierarchy_ok, parse, text_of, word_count
from contentfix.fix.strategies.content import THIN_CONTENT_WORDS
from contentfix.fix.strategies.metadata import META_MAX, META_MIN, TITLE_MAX, TITLE_MIN

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "no verification available"


def check_alt_text(doc: Document) -> VerificationResult:
    images = parse(doc.content).find_all("img")
    missing = [img for img in images if not str(img.get("alt") or "").strip()]
    if missing:
        return VerificationResult(False, f"{len(missing)} of {len(images)} images still lack alt text")
    return VerificationResult(True, f"All {len(images)} images have alt text")


def check_meta_description(doc: Document) -> VerificationResult:
    length = len(text_of(doc.excerpt))
    ok = META_MIN <= length <= META_MAX
    return VerificationResult(
        ok, f"Meta description is {length} characters (expected {META_MIN}-{META_MAX})"
    )


def check_title(doc: Document) -> VerificationResult:
    length = len(text_of(doc.title))
    ok = TITLE_MIN <= length <= TITLE_MAX
    return VerificationResult(
        ok, f"Title is {length} characters (expected {TITLE_MIN}-{TITLE_MAX})"
    )


def check_headings(doc: Document) -> VerificationResult:
    levels = [heading_level(tag) for tag in headings(parse(doc.content))]
    h1_count = levels.count(1)
    if h1_count != 1:
        return VerificationResult(False, f"Found {h1_count} H1 headings (expected 1)")
    if not hierarchy_ok(levels):
        return VerificationResult(False, "Heading levels still skip a level")
    return VerificationResult(True, "One H1 and no skipped heading levels")


def check_word_count(doc: Document) -> VerificationResult:
    words = word_count(doc.content)
    return VerificationResult(
        words >= THIN_CONTENT_WORDS,
        f"Content has {words} words (minimum {THIN_CONTENT_WORDS})",
    )


CHECKS: dict[FixType, Callable[[Document], VerificationResult]] = {
    FixType.MISSING_ALT_TEXT: check_alt_text,
    FixType.META_DESCRIPTION: check_meta_description,
    FixType.TITLE_TAG: check_title,
    FixType.HEADING_STRUCTURE: check_headings,
    FixType.THIN_CONTENT: check_word_count,
}


class VerificationEngine:
    """Re-fetches a fixed document from origin and runs the type's check.

    Waits ``settle_delay`` seconds first so caches and write queues on the
    remote side have caught up.
    """

    def __init__(
        self,
        config: VerificationConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config or VerificationConfig()
        self._sleep = sleep

    def has_check(self, fix_type: FixType | None) -> bool:
        return fix_type in CHECKS

    def verify(
        self,
        client: ContentStoreClient,
        content_id: int,
        fix_type: FixType | None,
        content_kind: str = "posts",
    ) -> VerificationResult:
        check = CHECKS.get(fix_type) if fix_type else None
        if check is None:
            return VerificationResult(True, NOT_AVAILABLE, available=False)

        if self.config.settle_delay > 0:
            self._sleep(self.config.settle_delay)
        try:
            doc = client.fetch_document(content_id, content_kind or "posts", fresh=True)
        except ContentStoreError as exc:
            logger.warning("Verification fetch failed for %s %s: %s",
                           content_kind, content_id, exc)
            return VerificationResult(False, f"Verification failed: {exc}")

        result = check(doc)
        logger.debug("Verified %s on %s %s: %s", fix_type.value, content_kind,
                     content_id, result.details)
        return result
