"""Meta description and title strategies."""

from __future__ import annotations

import re

from contentfix.core.models import Document, FixType, Issue
from contentfix.fix.context import RunContext
from contentfix.fix.html import headings, parse, text_of, truncate_at_word
from contentfix.fix.strategies.base import FixError, FixStrategy, Transform
from contentfix.index.semantic import extract_keywords, title_keywords

META_MIN = 120
META_MAX = 160
META_BUDGET = 135

TITLE_MIN = 30
TITLE_MAX = 60

_SENTENCE = re.compile(r"[^.!?]+[.!?]*")


def _collapse(text: str) -> str:
    return " ".join(text.split())


def meta_fits(text: str) -> bool:
    return META_MIN <= len(_collapse(text)) <= META_MAX


def fit_meta_description(
    current: str, title: str, body_text: str, keyword: str = ""
) -> str:
    """Bring a description into the 120-160 character window.

    Long text is cut at a word boundary to the 135-character budget.  Short
    text is extended with the title and opening body sentences (and finally a
    generic closing sentence) before being cut to the same budget.
    """
    text = _collapse(current)
    if META_MIN <= len(text) <= META_MAX:
        return text
    if len(text) > META_MAX:
        return truncate_at_word(text, META_BUDGET)

    title = _collapse(title).rstrip(".")
    parts: list[str] = []
    if title and title.lower() not in text.lower():
        parts.append(f"{title}.")
    if text:
        parts.append(text if text.endswith((".", "!", "?")) else f"{text}.")
    if keyword and keyword.lower() not in " ".join(parts).lower():
        parts.insert(0, f"{keyword.capitalize()}:")

    candidate = " ".join(parts)
    for sentence in _SENTENCE.findall(_collapse(body_text)):
        if len(candidate) >= META_BUDGET:
            break
        sentence = sentence.strip()
        if sentence and sentence.lower() not in candidate.lower():
            candidate = f"{candidate} {sentence}".strip()

    subject = keyword or title or "this topic"
    closing = f"Read on for practical details and examples about {subject}."
    while len(candidate) < META_MIN:
        candidate = f"{candidate} {closing}".strip()

    if len(candidate) > META_BUDGET:
        candidate = truncate_at_word(candidate, META_BUDGET)
    return candidate


class MetaDescriptionStrategy(FixStrategy):
    """Keeps the document excerpt, used as the meta description, in range."""

    fix_types = (FixType.META_DESCRIPTION,)
    name = "Meta description"

    def transform(
        self, document: Document, issue: Issue, ctx: RunContext | None = None
    ) -> Transform:
        current = text_of(document.excerpt)
        if meta_fits(current):
            return Transform.unchanged(
                f"Meta description already {len(current)} characters"
            )

        title = text_of(document.title)
        body = text_of(document.content)
        keywords = title_keywords(title)
        keyword = keywords[0] if keywords else ""

        description = None
        generated = self.writer.meta_description(title, body, keyword, META_BUDGET)
        if generated:
            fitted = fit_meta_description(generated, title, body, keyword)
            if meta_fits(fitted):
                description = fitted
        if description is None:
            description = fit_meta_description(current, title, body, keyword)

        return Transform(
            updated=True,
            description=(
                f"Meta description {len(current)} -> {len(description)} characters"
            ),
            payload={"excerpt": description},
        )


def title_fits(text: str) -> bool:
    return TITLE_MIN <= len(_collapse(text)) <= TITLE_MAX


def _has_meaningful_word(text: str) -> bool:
    return any(len(word.strip(".,:;!?")) >= 3 for word in text.split())


def fit_title(current: str, extras: list[str]) -> str:
    """Bring a title into the 30-60 character window.

    Long titles are cut at a word boundary with an ellipsis.  Short titles
    are padded with the first extra (section heading or keyword phrase) that
    lands inside the window.  Raises :class:`FixError` when neither works.
    """
    text = _collapse(current)
    if TITLE_MIN <= len(text) <= TITLE_MAX:
        return text
    if len(text) > TITLE_MAX:
        return truncate_at_word(text, TITLE_MAX)

    if not _has_meaningful_word(text):
        raise FixError(f"Title {text!r} is too short to extend without rewriting it")

    for extra in extras:
        extra = _collapse(extra)
        if not extra or extra.lower() in text.lower():
            continue
        candidate = f"{text}: {extra}"
        if TITLE_MIN <= len(candidate) <= TITLE_MAX:
            return candidate
    raise FixError(f"Title {text!r} could not be extended to {TITLE_MIN} characters")


class TitleStrategy(FixStrategy):
    fix_types = (FixType.TITLE_TAG,)
    name = "Title"

    def transform(
        self, document: Document, issue: Issue, ctx: RunContext | None = None
    ) -> Transform:
        current = text_of(document.title)
        if title_fits(current):
            return Transform.unchanged(f"Title already {len(current)} characters")

        body = text_of(document.content)
        new_title = None
        if len(current) < TITLE_MIN and _has_meaningful_word(current):
            generated = self.writer.title(current, body)
            if generated and title_fits(generated):
                new_title = _collapse(generated)

        if new_title is None:
            soup = parse(document.content)
            extras = [h.get_text(" ", strip=True) for h in headings(soup) if h.name != "h1"]
            keywords = extract_keywords(body, limit=4)
            if keywords:
                extras.append(" ".join(w.capitalize() for w in keywords[:2]))
                extras.append(" ".join(w.capitalize() for w in keywords[:4]))
            new_title = fit_title(current, extras)

        return Transform(
            updated=True,
            description=f"Title {len(current)} -> {len(new_title)} characters",
            payload={"title": new_title},
        )
