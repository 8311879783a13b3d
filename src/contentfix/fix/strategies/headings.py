"""Heading hierarchy repair."""

from __future__ import annotations

from contentfix.core.models import Document, FixType, Issue
from contentfix.fix.context import RunContext
from contentfix.fix.html import first_block, heading_level, headings, parse, serialize, text_of
from contentfix.fix.strategies.base import FixError, FixStrategy, Transform


def fix_heading_structure(html: str, title: str) -> tuple[str, list[str]]:
    """Return ``(html, changes)`` with exactly one H1 and no skipped levels.

    Extra H1s become H2s, a missing H1 is synthesized from the title before
    the first block, and headings that skip a level are moved up to one
    level below their predecessor.
    """
    soup = parse(html)
    changes: list[str] = []

    h1s = soup.find_all("h1")
    for extra in h1s[1:]:
        extra.name = "h2"
    if len(h1s) > 1:
        changes.append(f"demoted {len(h1s) - 1} extra H1")

    if not h1s:
        if not title:
            raise FixError("No H1 and no title to build one from")
        h1 = soup.new_tag("h1")
        h1.string = title
        anchor = first_block(soup)
        if anchor is not None:
            anchor.insert_before(h1)
        else:
            soup.insert(0, h1)
        changes.append("added H1 from title")

    skipped = 0
    prev: int | None = None
    for tag in headings(soup):
        level = heading_level(tag)
        if prev is not None and level > prev + 1:
            level = prev + 1
            tag.name = f"h{level}"
            skipped += 1
        prev = level
    if skipped:
        changes.append(f"fixed {skipped} skipped heading level(s)")

    return serialize(soup), changes


class HeadingStructureStrategy(FixStrategy):
    fix_types = (FixType.HEADING_STRUCTURE,)
    name = "Heading structure"

    def transform(
        self, document: Document, issue: Issue, ctx: RunContext | None = None
    ) -> Transform:
        html, changes = fix_heading_structure(document.content, text_of(document.title))
        if not changes:
            return Transform.unchanged("Heading structure already valid")
        return Transform(
            updated=True,
            description="Heading structure: " + ", ".join(changes),
            payload={"content": html},
        )
