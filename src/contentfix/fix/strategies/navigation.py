"""Table of contents and "Last Updated" banner."""

from __future__ import annotations

import re
from datetime import date
from typing import Callable

from bs4 import BeautifulSoup

from contentfix.core.models import Document, FixType, Issue
from contentfix.fix.context import RunContext
from contentfix.fix.html import parse, serialize, slugify
from contentfix.fix.strategies.base import FixStrategy, Transform

TOC_CLASS = "table-of-contents"
MIN_TOC_HEADINGS = 3

FRESHNESS_CLASS = "last-updated"
_LAST_UPDATED = re.compile(r"last\s+updated", re.IGNORECASE)


def has_toc(soup: BeautifulSoup) -> bool:
    return soup.find(class_=TOC_CLASS) is not None or soup.find(id="toc") is not None


def _unique_id(base: str, taken: set[str]) -> str:
    candidate = base or "section"
    n = 2
    while candidate in taken:
        candidate = f"{base or 'section'}-{n}"
        n += 1
    taken.add(candidate)
    return candidate


class TableOfContentsStrategy(FixStrategy):
    fix_types = (FixType.TABLE_OF_CONTENTS,)
    name = "Table of contents"

    def transform(
        self, document: Document, issue: Issue, ctx: RunContext | None = None
    ) -> Transform:
        soup = parse(document.content)
        if has_toc(soup):
            return Transform.unchanged("Table of contents already present")

        sections = soup.find_all(["h2", "h3"])
        if len(sections) < MIN_TOC_HEADINGS:
            return Transform.unchanged(
                f"Only {len(sections)} section heading(s); no table of contents needed"
            )

        taken = {tag["id"] for tag in soup.find_all(id=True)}
        nav = soup.new_tag("nav", attrs={"class": TOC_CLASS})
        label = soup.new_tag("p")
        strong = soup.new_tag("strong")
        strong.string = "Table of Contents"
        label.append(strong)
        nav.append(label)
        items = soup.new_tag("ul")
        for heading in sections:
            if not heading.get("id"):
                heading["id"] = _unique_id(slugify(heading.get_text(" ", strip=True)), taken)
            li = soup.new_tag("li")
            if heading.name == "h3":
                li["class"] = "toc-sub"
            link = soup.new_tag("a", href=f"#{heading['id']}")
            link.string = heading.get_text(" ", strip=True)
            li.append(link)
            items.append(li)
        nav.append(items)
        sections[0].insert_before(nav)

        return Transform(
            updated=True,
            description=f"Added table of contents with {len(sections)} entries",
            payload={"content": serialize(soup)},
        )


def has_freshness_banner(soup: BeautifulSoup) -> bool:
    if soup.find(class_=FRESHNESS_CLASS) is not None:
        return True
    return soup.find(string=_LAST_UPDATED) is not None


class ContentFreshnessStrategy(FixStrategy):
    fix_types = (FixType.CONTENT_FRESHNESS,)
    name = "Freshness banner"

    def __init__(self, *args, today: Callable[[], date] = date.today, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._today = today

    def transform(
        self, document: Document, issue: Issue, ctx: RunContext | None = None
    ) -> Transform:
        soup = parse(document.content)
        if has_freshness_banner(soup):
            return Transform.unchanged("Last Updated banner already present")

        stamp = self._today()
        banner = soup.new_tag("p", attrs={"class": FRESHNESS_CLASS})
        em = soup.new_tag("em")
        em.string = f"Last Updated: {stamp.strftime('%B')} {stamp.day}, {stamp.year}"
        banner.append(em)
        soup.insert(0, banner)
        return Transform(
            updated=True,
            description="Added Last Updated banner",
            payload={"content": serialize(soup)},
        )
