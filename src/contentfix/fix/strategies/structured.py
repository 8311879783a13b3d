"""Head-style markup carried in the document body: JSON-LD, canonical, Open Graph."""

from __future__ import annotations

import json
import re

from bs4 import BeautifulSoup

from contentfix.core.models import Document, FixType, Issue
from contentfix.fix.context import RunContext
from contentfix.fix.html import parse, serialize, text_of, truncate_at_word
from contentfix.fix.strategies.base import FixError, FixStrategy, Transform

JSON_LD_TYPE = "application/ld+json"
_OG_PROPERTY = re.compile(r"^og:")


def json_ld_blocks(soup: BeautifulSoup) -> list[dict]:
    """Parsed JSON-LD objects; script tags that do not hold valid JSON are ignored."""
    blocks = []
    for script in soup.find_all("script", attrs={"type": JSON_LD_TYPE}):
        try:
            data = json.loads(script.string or "")
        except ValueError:
            continue
        if isinstance(data, dict):
            blocks.append(data)
        elif isinstance(data, list):
            blocks.extend(d for d in data if isinstance(d, dict))
    return blocks


def article_schema(document: Document) -> dict:
    schema = {
        "@context": "https://schema.org",
        "@type": "Article",
        "headline": truncate_at_word(text_of(document.title), 110),
    }
    if document.link:
        schema["url"] = document.link
        schema["mainEntityOfPage"] = document.link
    if document.modified:
        schema["dateModified"] = document.modified
    summary = text_of(document.excerpt)
    if summary:
        schema["description"] = summary
    return schema


class StructuredDataStrategy(FixStrategy):
    fix_types = (FixType.STRUCTURED_DATA,)
    name = "Structured data"

    def transform(
        self, document: Document, issue: Issue, ctx: RunContext | None = None
    ) -> Transform:
        soup = parse(document.content)
        if json_ld_blocks(soup):
            return Transform.unchanged("JSON-LD block already present")

        script = soup.new_tag("script", attrs={"type": JSON_LD_TYPE})
        script.string = json.dumps(article_schema(document), ensure_ascii=False)
        soup.append(script)
        return Transform(
            updated=True,
            description="Added Article JSON-LD block",
            payload={"content": serialize(soup)},
        )


def _rel_tokens(tag) -> list[str]:
    rel = tag.get("rel") or []
    if isinstance(rel, str):
        rel = rel.split()
    return [token.lower() for token in rel]


class CanonicalUrlStrategy(FixStrategy):
    fix_types = (FixType.CANONICAL_URL,)
    name = "Canonical URL"

    def transform(
        self, document: Document, issue: Issue, ctx: RunContext | None = None
    ) -> Transform:
        soup = parse(document.content)
        if any("canonical" in _rel_tokens(link) for link in soup.find_all("link")):
            return Transform.unchanged("Canonical link already present")
        if not document.link:
            raise FixError("Document has no permalink to use as canonical URL")

        link = soup.new_tag("link", attrs={"rel": "canonical", "href": document.link})
        soup.insert(0, link)
        return Transform(
            updated=True,
            description=f"Added canonical link to {document.link}",
            payload={"content": serialize(soup)},
        )


class SocialTagsStrategy(FixStrategy):
    fix_types = (FixType.SOCIAL_TAGS,)
    name = "Open Graph tags"

    def transform(
        self, document: Document, issue: Issue, ctx: RunContext | None = None
    ) -> Transform:
        soup = parse(document.content)
        present = {
            meta.get("property")
            for meta in soup.find_all("meta", attrs={"property": _OG_PROPERTY})
        }

        summary = text_of(document.excerpt) or text_of(document.content)
        wanted = {
            "og:title": text_of(document.title),
            "og:description": truncate_at_word(summary, 200) if summary else "",
            "og:type": "article",
            "og:url": document.link,
        }
        missing = [(prop, value) for prop, value in wanted.items()
                   if prop not in present and value]
        if not missing:
            return Transform.unchanged("Open Graph tags already present")

        for prop, value in reversed(missing):
            soup.insert(0, soup.new_tag("meta", attrs={"property": prop, "content": value}))
        return Transform(
            updated=True,
            description="Added " + ", ".join(prop for prop, _ in missing),
            payload={"content": serialize(soup)},
        )
