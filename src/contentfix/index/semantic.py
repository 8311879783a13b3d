"""Lightweight keyword index over a site's published content.

Used by the internal-linking strategy to find pages worth linking to.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass, field

from contentfix.cms.client import CONTENT_KINDS, AccessError, ContentStoreClient, ContentStoreError
from contentfix.core.models import Document
from contentfix.fix.html import text_of

logger = logging.getLogger(__name__)

STOP_WORDS = frozenset("""
a about above after again against all also am an and any are as at be because
been before being below between both but by can could did do does doing down
during each even every few for from further had has have having he her here
hers him his how however i if in into is it its itself just like made make
many may me more most much must my need never new no nor not now of off often
on once one only or other our ours out over own same she should so some such
than that the their them then there these they this those through to too
under until up upon us use used using very was we well were what when where
which while who whom why will with within without would you your yours
""".split())

# Title keywords use a shorter list so that words like "guide" survive.
TITLE_STOP_WORDS = frozenset(
    ["the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for"]
)

_TOKEN = re.compile(r"[a-z0-9][a-z0-9'-]*")


def tokenize(text: str) -> list[str]:
    return _TOKEN.findall(text.lower())


def extract_keywords(text: str, limit: int = 15) -> list[str]:
    """Most frequent non-stop-word tokens longer than three characters."""
    counts = Counter(
        token for token in tokenize(text)
        if len(token) > 3 and token not in STOP_WORDS
    )
    # Ties keep first-seen order.
    return [word for word, _ in counts.most_common(limit)]


def title_keywords(title: str, limit: int = 3) -> list[str]:
    words = [w.strip(".,:;!?\"'()") for w in title.lower().split()]
    return [w for w in words if len(w) > 2 and w not in TITLE_STOP_WORDS][:limit]


@dataclass
class IndexEntry:
    id: int
    title: str
    url: str
    kind: str
    keywords: list[str] = field(default_factory=list)


@dataclass
class RelevantPage:
    entry: IndexEntry
    score: int
    anchor: str


class SemanticIndexer:
    """Builds ``{id: IndexEntry}`` over every published post and page."""

    def __init__(self, keyword_limit: int = 15, max_results: int = 5):
        self.keyword_limit = keyword_limit
        self.max_results = max_results

    def entry_for(self, doc: Document) -> IndexEntry:
        text = f"{doc.title} {text_of(doc.content)}"
        return IndexEntry(
            id=doc.id,
            title=text_of(doc.title),
            url=doc.link,
            kind=doc.kind,
            keywords=extract_keywords(text, self.keyword_limit),
        )

    def build_index(self, client: ContentStoreClient) -> dict[int, IndexEntry]:
        index: dict[int, IndexEntry] = {}
        for kind in CONTENT_KINDS:
            try:
                for doc in client.iter_documents(kind):
                    index[doc.id] = self.entry_for(doc)
            except AccessError:
                raise
            except ContentStoreError as exc:
                logger.warning("Indexing %s stopped early: %s", kind, exc)
        logger.debug("Indexed %d documents", len(index))
        return index

    def find_relevant_pages(
        self, doc: Document, index: dict[int, IndexEntry]
    ) -> list[RelevantPage]:
        """Other documents sharing keywords with ``doc``, best first.

        The anchor is the first keyword of ``doc`` that the candidate shares.
        """
        source = index.get(doc.id) or self.entry_for(doc)
        matches: list[RelevantPage] = []
        for entry in index.values():
            if entry.id == doc.id or not entry.url:
                continue
            candidate = set(entry.keywords)
            shared = [kw for kw in source.keywords if kw in candidate]
            if shared:
                matches.append(RelevantPage(entry=entry, score=len(shared), anchor=shared[0]))
        matches.sort(key=lambda m: m.score, reverse=True)
        return matches[: self.max_results]
