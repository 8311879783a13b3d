"""Normalization of auditor issue-type strings to :class:`FixType`.

Auditors have used several names for the same defect over time.  Every
alias is mapped once, when issues are ingested, so the rest of the engine
only deals with the closed enum.
"""

from __future__ import annotations

from contentfix.core.models import FixType

ALIASES: dict[str, FixType] = {
    # Images
    "missing_alt_text": FixType.MISSING_ALT_TEXT,
    "images_missing_alt": FixType.MISSING_ALT_TEXT,
    "image_alt_text": FixType.MISSING_ALT_TEXT,
    "missing_image_dimensions": FixType.IMAGE_DIMENSIONS,
    "image_optimization": FixType.IMAGE_DIMENSIONS,
    # Metadata
    "missing_meta_description": FixType.META_DESCRIPTION,
    "meta_description_too_long": FixType.META_DESCRIPTION,
    "meta_description_too_short": FixType.META_DESCRIPTION,
    "meta_description": FixType.META_DESCRIPTION,
    "poor_title_tag": FixType.TITLE_TAG,
    "title_too_long": FixType.TITLE_TAG,
    "title_too_short": FixType.TITLE_TAG,
    "missing_title": FixType.TITLE_TAG,
    # Structure
    "heading_structure": FixType.HEADING_STRUCTURE,
    "missing_h1": FixType.HEADING_STRUCTURE,
    "missing_h1_tag": FixType.HEADING_STRUCTURE,
    "multiple_h1": FixType.HEADING_STRUCTURE,
    "improper_heading_hierarchy": FixType.HEADING_STRUCTURE,
    "missing_table_of_contents": FixType.TABLE_OF_CONTENTS,
    "missing_toc": FixType.TABLE_OF_CONTENTS,
    # Content
    "thin_content": FixType.THIN_CONTENT,
    "content_too_short": FixType.THIN_CONTENT,
    "low_word_count": FixType.THIN_CONTENT,
    "content_quality": FixType.CONTENT_QUALITY,
    "low_content_quality": FixType.CONTENT_QUALITY,
    "poor_content_structure": FixType.CONTENT_QUALITY,
    "content_structure": FixType.CONTENT_QUALITY,
    "keyword_optimization": FixType.KEYWORD_OPTIMIZATION,
    "poor_keyword_distribution": FixType.KEYWORD_OPTIMIZATION,
    "outdated_content": FixType.CONTENT_FRESHNESS,
    "content_freshness": FixType.CONTENT_FRESHNESS,
    "missing_last_updated": FixType.CONTENT_FRESHNESS,
    # Technical
    "missing_schema": FixType.STRUCTURED_DATA,
    "missing_structured_data": FixType.STRUCTURED_DATA,
    "missing_canonical": FixType.CANONICAL_URL,
    "missing_canonical_url": FixType.CANONICAL_URL,
    "missing_og_tags": FixType.SOCIAL_TAGS,
    "missing_social_tags": FixType.SOCIAL_TAGS,
    "missing_open_graph": FixType.SOCIAL_TAGS,
    # Links
    "external_links_missing_rel": FixType.EXTERNAL_LINKS,
    "unsafe_external_links": FixType.EXTERNAL_LINKS,
    "internal_linking": FixType.INTERNAL_LINKING,
    "few_internal_links": FixType.INTERNAL_LINKING,
    "orphan_page": FixType.INTERNAL_LINKING,
}


def normalize_issue_type(raw: str) -> FixType | None:
    """Map a raw auditor type (any case, dashes or spaces) to a FixType."""
    key = raw.strip().lower().replace("-", "_").replace(" ", "_")
    if key in ALIASES:
        return ALIASES[key]
    for fix_type in FixType:
        if fix_type.value == key or fix_type.name.lower() == key:
            return fix_type
    return None


def matches_type(raw_or_name: str, fix_type: FixType | None, raw_type: str) -> bool:
    """Whether a user-supplied type filter selects an issue."""
    if raw_or_name == raw_type:
        return True
    normalized = normalize_issue_type(raw_or_name)
    return normalized is not None and normalized == fix_type
