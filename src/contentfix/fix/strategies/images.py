"""Image strategies: alt text and explicit dimensions."""

from __future__ import annotations

import logging
import re
from pathlib import PurePosixPath
from urllib.parse import urlparse

from bs4 import Tag

from contentfix.cms.client import ContentStoreClient, ContentStoreError
from contentfix.core.models import Document, FixType, Issue
from contentfix.fix.context import RunContext
from contentfix.fix.html import parse, serialize, text_of
from contentfix.fix.strategies.base import FixError, FixStrategy, Transform

logger = logging.getLogger(__name__)

ALT_TEXT_LIMIT = 100

_MEDIA_CLASS = re.compile(r"^wp-image-(\d+)$")
_SIZE_SUFFIX = re.compile(r"-(\d+)x(\d+)$")


def media_id(img: Tag) -> int | None:
    """The media library id encoded in a ``wp-image-N`` class, if any."""
    for cls in img.get("class") or []:
        match = _MEDIA_CLASS.match(cls)
        if match:
            return int(match.group(1))
    return None


def _stem(src: str) -> str:
    return PurePosixPath(urlparse(src).path).stem


def alt_from_filename(src: str, fallback: str = "") -> str:
    """Readable alt text from an image filename, e.g. ``red-bike_2-300x200.jpg``."""
    stem = _SIZE_SUFFIX.sub("", _stem(src))
    words = re.sub(r"[-_]+", " ", stem)
    words = " ".join(w for w in words.split() if not w.isdigit())
    text = words.strip().capitalize() if words.strip() else fallback.strip()
    return text[:ALT_TEXT_LIMIT].strip()


def size_from_filename(src: str) -> tuple[int, int] | None:
    match = _SIZE_SUFFIX.search(_stem(src))
    if match:
        return int(match.group(1)), int(match.group(2))
    return None


def _missing_alt(img: Tag) -> bool:
    alt = img.get("alt")
    return alt is None or not str(alt).strip()


class AltTextStrategy(FixStrategy):
    fix_types = (FixType.MISSING_ALT_TEXT,)
    name = "Image alt text"

    def transform(
        self, document: Document, issue: Issue, ctx: RunContext | None = None
    ) -> Transform:
        soup = parse(document.content)
        missing = [img for img in soup.find_all("img") if _missing_alt(img)]
        if not missing:
            return Transform.unchanged("All images already have alt text")

        title = text_of(document.title)
        media: dict[int, str] = {}
        for img in missing:
            alt = alt_from_filename(img.get("src", ""), fallback=title) or "Image"
            img["alt"] = alt
            mid = media_id(img)
            if mid is not None:
                media[mid] = alt

        return Transform(
            updated=True,
            description=f"Added alt text to {len(missing)} image(s)",
            payload={"content": serialize(soup)},
            media=media,
        )


class MediaSizes:
    """Width/height lookups against the media library, cached for one run."""

    def __init__(self, client: ContentStoreClient | None = None) -> None:
        self.client = client
        self._sizes: dict[int, tuple[int, int] | None] = {}

    def get(self, mid: int) -> tuple[int, int] | None:
        if mid in self._sizes:
            return self._sizes[mid]
        size = None
        if self.client is not None:
            try:
                details = self.client.fetch_media(mid).get("media_details") or {}
                if details.get("width") and details.get("height"):
                    size = int(details["width"]), int(details["height"])
            except ContentStoreError as exc:
                logger.debug("No media details for %d: %s", mid, exc)
        self._sizes[mid] = size
        return size


class ImageDimensionsStrategy(FixStrategy):
    """Adds width/height from the media library, or from ``-WxH`` filenames."""

    fix_types = (FixType.IMAGE_DIMENSIONS,)
    name = "Image dimensions"

    def prepare(self, client: ContentStoreClient, ctx: RunContext) -> None:
        ctx.resources[self.name] = MediaSizes(client)

    def transform(
        self, document: Document, issue: Issue, ctx: RunContext | None = None
    ) -> Transform:
        soup = parse(document.content)
        missing = [img for img in soup.find_all("img")
                   if not img.get("width") or not img.get("height")]
        if not missing:
            return Transform.unchanged("All images already have dimensions")

        sizes = ctx.resource(self.name) if ctx is not None else None
        if sizes is None:
            sizes = MediaSizes()
        sized = 0
        for img in missing:
            mid = media_id(img)
            size = sizes.get(mid) if mid is not None else None
            if size is None:
                size = size_from_filename(img.get("src", ""))
            if size is None:
                continue
            img["width"], img["height"] = str(size[0]), str(size[1])
            sized += 1

        if not sized:
            raise FixError(f"Could not determine dimensions for {len(missing)} image(s)")
        return Transform(
            updated=True,
            description=f"Added dimensions to {sized} of {len(missing)} image(s)",
            payload={"content": serialize(soup)},
        )
