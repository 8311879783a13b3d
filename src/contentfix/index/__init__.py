"""Keyword index used for internal-link suggestions."""

from contentfix.index.semantic import (
    IndexEntry,
    RelevantPage,
    SemanticIndexer,
    extract_keywords,
    title_keywords,
)

__all__ = [
    "IndexEntry",
    "RelevantPage",
    "SemanticIndexer",
    "extract_keywords",
    "title_keywords",
]
