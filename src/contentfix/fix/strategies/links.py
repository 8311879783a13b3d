"""Link strategies: safe external links and internal link density."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from urllib.parse import urlparse

from bs4 import BeautifulSoup, NavigableString

from contentfix.cms.client import ContentStoreClient
from contentfix.core.models import Document, FixType, Issue
from contentfix.fix.context import RunContext
from contentfix.fix.html import HEADING_TAGS, parse, serialize, word_count
from contentfix.fix.strategies.base import FixError, FixStrategy, Transform
from contentfix.index.semantic import IndexEntry, SemanticIndexer

SAFE_REL = ("noopener", "noreferrer")

# One internal link is expected per this many words (at least one).
WORDS_PER_INTERNAL_LINK = 300

_NO_LINK_PARENTS = set(HEADING_TAGS) | {"a", "script", "style", "code", "pre", "button"}


def _host(url: str) -> str:
    return (urlparse(url).hostname or "").lower().removeprefix("www.")


def is_external(href: str, site_host: str) -> bool:
    parsed = urlparse(href)
    if parsed.scheme not in ("http", "https"):
        return False
    return _host(href) != site_host


def is_internal(href: str, site_host: str) -> bool:
    parsed = urlparse(href)
    if not parsed.scheme and not parsed.netloc:
        return bool(parsed.path)
    if parsed.scheme not in ("http", "https"):
        return False
    return _host(href) == site_host


class ExternalLinksStrategy(FixStrategy):
    fix_types = (FixType.EXTERNAL_LINKS,)
    name = "External link attributes"

    def transform(
        self, document: Document, issue: Issue, ctx: RunContext | None = None
    ) -> Transform:
        site_host = _host(document.link)
        soup = parse(document.content)

        fixed = 0
        for link in soup.find_all("a", href=True):
            if not is_external(link["href"], site_host):
                continue
            rel = link.get("rel") or []
            if isinstance(rel, str):
                rel = rel.split()
            lowered = [token.lower() for token in rel]
            missing = [token for token in SAFE_REL if token not in lowered]
            if missing:
                link["rel"] = list(rel) + missing
                fixed += 1

        if not fixed:
            return Transform.unchanged("External links already carry noopener noreferrer")
        return Transform(
            updated=True,
            description=f"Added rel=noopener noreferrer to {fixed} external link(s)",
            payload={"content": serialize(soup)},
        )


def required_internal_links(words: int) -> int:
    return max(1, words // WORDS_PER_INTERNAL_LINK)


def _link_anchor(soup: BeautifulSoup, anchor: str, href: str) -> bool:
    """Wrap the first free occurrence of ``anchor`` in body text with a link."""
    pattern = re.compile(rf"\b{re.escape(anchor)}\b", re.IGNORECASE)
    for text in soup.find_all(string=pattern):
        if any(parent.name in _NO_LINK_PARENTS for parent in text.parents):
            continue
        match = pattern.search(str(text))
        if match is None:
            continue
        value = str(text)
        link = soup.new_tag("a", href=href)
        link.string = match.group(0)
        text.replace_with(
            NavigableString(value[:match.start()]),
            link,
            NavigableString(value[match.end():]),
        )
        return True
    return False


@dataclass
class LinkTargets:
    """The keyword index built for one run, plus the site host it covers."""

    index: dict[int, IndexEntry] = field(default_factory=dict)
    site_host: str = ""


class InternalLinkingStrategy(FixStrategy):
    """Links related pages from the keyword index until density is met.

    Related pages whose anchor word does not occur in the body are listed in
    a single "Related reading" paragraph at the end.
    """

    fix_types = (FixType.INTERNAL_LINKING,)
    name = "Internal linking"

    def __init__(self, *args, indexer: SemanticIndexer | None = None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.indexer = indexer or SemanticIndexer()

    def prepare(self, client: ContentStoreClient, ctx: RunContext) -> None:
        targets = LinkTargets(self.indexer.build_index(client), _host(client.credentials.url))
        ctx.resources[self.name] = targets
        ctx.add_log(f"Built keyword index over {len(targets.index)} documents")

    def transform(
        self, document: Document, issue: Issue, ctx: RunContext | None = None
    ) -> Transform:
        targets = ctx.resource(self.name) if ctx is not None else None
        if targets is None:
            targets = LinkTargets()
        site_host = _host(document.link) or targets.site_host
        soup = parse(document.content)
        hrefs = [a["href"] for a in soup.find_all("a", href=True)]
        current = sum(1 for href in hrefs if is_internal(href, site_host))
        needed = required_internal_links(word_count(document.content)) - current
        if needed <= 0:
            return Transform.unchanged(f"Already has {current} internal link(s)")

        linked = {href.rstrip("/") for href in hrefs}
        candidates = [
            page for page in self.indexer.find_relevant_pages(document, targets.index)
            if page.entry.url.rstrip("/") not in linked
        ]
        if not candidates:
            if current:
                return Transform.unchanged(
                    f"Has {current} internal link(s); no further related pages"
                )
            raise FixError("No related pages found to link to")

        inline = 0
        related = []
        for page in candidates[:needed]:
            if _link_anchor(soup, page.anchor, page.entry.url):
                inline += 1
            else:
                related.append(page.entry)

        if related:
            para = soup.find("p", class_="related-reading")
            if para is None:
                para = soup.new_tag("p", attrs={"class": "related-reading"})
                para.append("Related reading: ")
                soup.append(para)
            elif para.find("a"):
                para.append(", ")
            for i, entry in enumerate(related):
                if i:
                    para.append(", ")
                link = soup.new_tag("a", href=entry.url)
                link.string = entry.title or entry.url
                para.append(link)

        added = inline + len(related)
        return Transform(
            updated=True,
            description=f"Added {added} internal link(s)",
            payload={"content": serialize(soup)},
        )
