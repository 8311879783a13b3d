"""HTML tree helpers shared by strategies, verification and indexing.

Content is parsed into a BeautifulSoup tree with the stdlib ``html.parser``
backend, which keeps fragments as fragments (no ``<html>``/``<body>``
wrapper is added on serialization).
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, Tag

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
BLOCK_TAGS = (
    "p", "div", "section", "article", "ul", "ol", "table", "blockquote",
    "figure", "pre", "h2", "h3", "h4", "h5", "h6", "nav", "header",
)

_WS = re.compile(r"\s+")


def parse(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def serialize(soup: BeautifulSoup) -> str:
    return str(soup)


def text_of(html: str) -> str:
    """Visible text with whitespace collapsed."""
    return _WS.sub(" ", parse(html).get_text(" ")).strip()


def strip_tags(html: str) -> str:
    return text_of(html)


def word_count(html: str) -> int:
    text = text_of(html)
    return len(text.split()) if text else 0


def heading_level(tag: Tag) -> int:
    return int(tag.name[1])


def headings(soup: BeautifulSoup) -> list[Tag]:
    return soup.find_all(HEADING_TAGS)


def hierarchy_ok(levels: list[int]) -> bool:
    """True when no heading is more than one level deeper than the previous one."""
    return all(cur <= prev + 1 for prev, cur in zip(levels, levels[1:]))


def truncate_at_word(text: str, limit: int, ellipsis: str = "...") -> str:
    """Cut ``text`` to at most ``limit`` characters at a word boundary.

    The ellipsis counts toward the limit.  Text already within the limit is
    returned unchanged.
    """
    text = text.strip()
    if len(text) <= limit:
        return text
    budget = limit - len(ellipsis)
    cut = text[:budget + 1]
    space = cut.rfind(" ")
    if space > 0:
        cut = cut[:space]
    else:
        cut = text[:budget]
    return cut.rstrip(" ,;:-.") + ellipsis


def first_block(soup: BeautifulSoup) -> Tag | None:
    for child in soup.children:
        if isinstance(child, Tag) and child.name in BLOCK_TAGS:
            return child
    return None


def slugify(text: str) -> str:
    slug = re.sub(r"[^\w\s-]", "", text.lower()).strip()
    slug = re.sub(r"[\s_]+", "-", slug)
    return re.sub(r"-+", "-", slug).strip("-")
