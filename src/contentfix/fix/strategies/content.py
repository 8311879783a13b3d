"""Body copy strategies: thin content, structure and keyword placement."""

from __future__ import annotations

import re

from bs4 import NavigableString, Tag

from contentfix.core.models import Document, FixType, Issue
from contentfix.fix.context import RunContext
from contentfix.fix.html import parse, serialize, text_of, word_count
from contentfix.fix.strategies.base import FixError, FixStrategy, Transform
from contentfix.index.semantic import title_keywords, tokenize

THIN_CONTENT_WORDS = 300
MIN_EXPANDED_WORDS = 400
EXPANSION_TARGETS = (600, 700, 800)

LONG_PARAGRAPH_CHARS = 500
LONG_LIST_ITEMS = 10

KEYWORD_DENSITY_MIN = 1.0
KEYWORD_DENSITY_MAX = 3.0

_SENTENCE = re.compile(r"[^.!?]+[.!?]+")


def expansion_acceptable(html: str | None, original_words: int) -> bool:
    """Whether a generated expansion may replace the original copy."""
    if not html:
        return False
    words = word_count(html)
    return words >= MIN_EXPANDED_WORDS and words > original_words


class ThinContentStrategy(FixStrategy):
    fix_types = (FixType.THIN_CONTENT,)
    name = "Thin content"

    def transform(
        self, document: Document, issue: Issue, ctx: RunContext | None = None
    ) -> Transform:
        words = word_count(document.content)
        if words >= THIN_CONTENT_WORDS:
            return Transform.unchanged(f"Content already has {words} words")
        if not self.writer.available:
            raise FixError(
                f"Content has {words} words; expansion needs a generation backend"
            )

        title = text_of(document.title)
        produced = 0
        for target in EXPANSION_TARGETS:
            expanded = self.writer.expand(title, document.content, target)
            if expansion_acceptable(expanded, words):
                new_words = word_count(expanded)
                return Transform(
                    updated=True,
                    description=f"Expanded content from {words} to {new_words} words",
                    payload={"content": expanded},
                )
            produced = word_count(expanded) if expanded else 0

        raise FixError(
            f"Expansion produced {produced} words after {len(EXPANSION_TARGETS)} attempts"
        )


def improve_structure(html: str) -> tuple[str, list[str]]:
    """Split long paragraphs and lists, add subheadings to flat long copy."""
    soup = parse(html)
    changes: list[str] = []

    split = 0
    for p in soup.find_all("p"):
        text = p.get_text()
        if len(text) <= LONG_PARAGRAPH_CHARS:
            continue
        sentences = _SENTENCE.findall(text)
        if len(sentences) <= 3:
            continue
        mid = len(sentences) // 2
        first = soup.new_tag("p")
        first.string = " ".join(s.strip() for s in sentences[:mid])
        second = soup.new_tag("p")
        second.string = " ".join(s.strip() for s in sentences[mid:])
        p.replace_with(first, second)
        split += 1
    if split:
        changes.append(f"split {split} long paragraph(s)")

    paragraphs = soup.find_all("p")
    if len(paragraphs) > 5 and not soup.find(["h2", "h3"]):
        key_points = soup.new_tag("h2")
        key_points.string = "Key Points"
        paragraphs[3].insert_before(key_points)
        added = 1
        if len(paragraphs) > 8:
            more = soup.new_tag("h2")
            more.string = "Additional Information"
            paragraphs[7].insert_before(more)
            added += 1
        changes.append(f"added {added} subheading(s)")

    lists = 0
    for lst in soup.find_all(["ul", "ol"]):
        items = lst.find_all("li", recursive=False)
        if len(items) <= LONG_LIST_ITEMS:
            continue
        tail = soup.new_tag(lst.name)
        for item in items[len(items) // 2:]:
            tail.append(item.extract())
        lst.insert_after(tail)
        lists += 1
    if lists:
        changes.append(f"split {lists} long list(s)")

    return serialize(soup), changes


class ContentQualityStrategy(FixStrategy):
    fix_types = (FixType.CONTENT_QUALITY,)
    name = "Content structure"

    def transform(
        self, document: Document, issue: Issue, ctx: RunContext | None = None
    ) -> Transform:
        html, changes = improve_structure(document.content)
        if not changes:
            return Transform.unchanged("Content structure already readable")
        return Transform(
            updated=True,
            description="Content structure: " + ", ".join(changes),
            payload={"content": html},
        )


def keyword_density(text: str, keywords: list[str]) -> float:
    words = tokenize(text)
    if not words:
        return 0.0
    hits = sum(1 for word in words if word in keywords)
    return hits / len(words) * 100


def _mentions(text: str, keywords: list[str]) -> bool:
    lowered = text.lower()
    return any(kw in lowered for kw in keywords)


def _prefix(tag: Tag, prefix: str) -> None:
    """Prepend text to a paragraph, lowercasing its first letter, keeping markup."""
    lead = tag.find(string=True)
    if isinstance(lead, NavigableString) and lead.strip():
        stripped = lead.lstrip()
        lead.replace_with(NavigableString(stripped[:1].lower() + stripped[1:]))
    tag.insert(0, NavigableString(prefix))


class KeywordOptimizationStrategy(FixStrategy):
    """Works the title's keywords into the opening and middle paragraphs."""

    fix_types = (FixType.KEYWORD_OPTIMIZATION,)
    name = "Keyword placement"

    def transform(
        self, document: Document, issue: Issue, ctx: RunContext | None = None
    ) -> Transform:
        keywords = title_keywords(text_of(document.title))
        if not keywords:
            raise FixError("Title has no usable keywords")

        density = keyword_density(text_of(document.content), keywords)
        if KEYWORD_DENSITY_MIN <= density <= KEYWORD_DENSITY_MAX:
            return Transform.unchanged(f"Keyword density already {density:.1f}%")

        soup = parse(document.content)
        paragraphs = [p for p in soup.find_all("p") if p.get_text(strip=True)]
        if not paragraphs:
            raise FixError("No paragraphs to place keywords in")

        changes: list[str] = []
        first = paragraphs[0]
        first_text = first.get_text(" ", strip=True)
        if not _mentions(first_text, keywords):
            _prefix(first, f"When it comes to {keywords[0]}, ")
            changes.append("opening paragraph")

        if density < KEYWORD_DENSITY_MIN and len(paragraphs) > 3:
            middle = paragraphs[len(paragraphs) // 2]
            if not _mentions(middle.get_text(" ", strip=True), keywords):
                keyword = keywords[1] if len(keywords) > 1 else keywords[0]
                middle.append(NavigableString(f" This relates directly to {keyword}."))
                changes.append("middle paragraph")

        if not changes:
            if density > KEYWORD_DENSITY_MAX:
                raise FixError(
                    f"Keyword density {density:.1f}% is above "
                    f"{KEYWORD_DENSITY_MAX:.0f}%; reduce it by hand"
                )
            return Transform.unchanged("Keywords already present in key paragraphs")

        return Transform(
            updated=True,
            description="Added keyword to " + " and ".join(changes),
            payload={"content": serialize(soup)},
        )
