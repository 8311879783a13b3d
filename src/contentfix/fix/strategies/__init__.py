"""Fix strategies: one per closed :class:`FixType`."""

from __future__ import annotations

from typing import Iterable

from contentfix.core.config import RemediationConfig
from contentfix.core.models import FixType
from contentfix.fix.strategies.base import (
    ContentLossError,
    FixError,
    FixStrategy,
    StrategyReport,
    Transform,
)
from contentfix.fix.strategies.content import (
    ContentQualityStrategy,
    KeywordOptimizationStrategy,
    ThinContentStrategy,
)
from contentfix.fix.strategies.headings import HeadingStructureStrategy
from contentfix.fix.strategies.images import AltTextStrategy, ImageDimensionsStrategy
from contentfix.fix.strategies.links import ExternalLinksStrategy, InternalLinkingStrategy
from contentfix.fix.strategies.metadata import MetaDescriptionStrategy, TitleStrategy
from contentfix.fix.strategies.navigation import (
    ContentFreshnessStrategy,
    TableOfContentsStrategy,
)
from contentfix.fix.strategies.structured import (
    CanonicalUrlStrategy,
    SocialTagsStrategy,
    StructuredDataStrategy,
)
from contentfix.fix.writer import ContentWriter

ALL_STRATEGIES: list[type[FixStrategy]] = [
    # Images
    AltTextStrategy,
    ImageDimensionsStrategy,
    # Metadata
    MetaDescriptionStrategy,
    TitleStrategy,
    # Structure
    HeadingStructureStrategy,
    TableOfContentsStrategy,
    # Content
    ThinContentStrategy,
    ContentQualityStrategy,
    KeywordOptimizationStrategy,
    ContentFreshnessStrategy,
    # Technical
    StructuredDataStrategy,
    CanonicalUrlStrategy,
    SocialTagsStrategy,
    # Links
    ExternalLinksStrategy,
    InternalLinkingStrategy,
]


class StrategyRegistry:
    """Maps each :class:`FixType` to the strategy instance that handles it."""

    def __init__(self, strategies: Iterable[FixStrategy] = ()) -> None:
        self._by_type: dict[FixType, FixStrategy] = {}
        for strategy in strategies:
            self.register(strategy)

    @classmethod
    def default(
        cls,
        writer: ContentWriter | None = None,
        config: RemediationConfig | None = None,
    ) -> "StrategyRegistry":
        return cls(strategy(writer=writer, config=config) for strategy in ALL_STRATEGIES)

    def register(self, strategy: FixStrategy) -> None:
        for fix_type in strategy.fix_types:
            self._by_type[fix_type] = strategy

    def get(self, fix_type: FixType | None) -> FixStrategy | None:
        if fix_type is None:
            return None
        return self._by_type.get(fix_type)

    def supported_types(self) -> list[FixType]:
        return [t for t in FixType if t in self._by_type]

    def __contains__(self, fix_type: object) -> bool:
        return fix_type in self._by_type


__all__ = [
    "ALL_STRATEGIES",
    "ContentLossError",
    "FixError",
    "FixStrategy",
    "StrategyRegistry",
    "StrategyReport",
    "Transform",
]
