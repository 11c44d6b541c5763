# PixelStag Filters - Pipeline
"""
FilterPipeline for chaining multiple filters.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterator

from .base import Filter, FilterContext, register_filter

if TYPE_CHECKING:
    from pixelstag import Image

logger = logging.getLogger(__name__)


@register_filter
@dataclass
class FilterPipeline(Filter):
    """Chain of filters applied in sequence.

    Every filter receives the previous filter's output and the pipeline's
    context. A context is created if none is passed.

    Example:
        pipeline = FilterPipeline.parse('grayscale|threshold 128|invert')
        result = pipeline.apply(image)
    """
    filters: list[Filter] = field(default_factory=list)

    def apply(self, image: 'Image', context: FilterContext | None = None) -> 'Image':
        """Apply all filters in sequence."""
        if context is None:
            context = FilterContext()
        result = image
        for index, f in enumerate(self.filters):
            logger.debug(f"Pipeline step {index + 1}/{len(self.filters)}: {f.to_string()} on {result}")
            result = f.apply(result, context)
        return result

    def append(self, filter: Filter) -> 'FilterPipeline':
        """Add filter to pipeline (chainable)."""
        self.filters.append(filter)
        return self

    def extend(self, filters: list[Filter]) -> 'FilterPipeline':
        """Add multiple filters to pipeline (chainable)."""
        self.filters.extend(filters)
        return self

    def __len__(self) -> int:
        return len(self.filters)

    def __iter__(self) -> Iterator[Filter]:
        return iter(self.filters)

    def __getitem__(self, index: int) -> Filter:
        return self.filters[index]

    def to_dict(self) -> dict[str, Any]:
        """Serialize pipeline to dictionary."""
        return {
            'type': 'FilterPipeline',
            'filters': [f.to_dict() for f in self.filters],
        }

    @classmethod
    def from_params(cls, params: dict[str, Any]) -> 'FilterPipeline':
        filters = [f if isinstance(f, Filter) else Filter.from_dict(f) for f in params.get('filters', [])]
        return cls(filters=filters)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'FilterPipeline':
        """Deserialize pipeline from dictionary."""
        return cls.from_params(data)

    @classmethod
    def parse(cls, text: str) -> 'FilterPipeline':
        """Parse filter string into pipeline.

        Examples:
            'grayscale|threshold 128|invert'
            'blur(5);sharpen'
        """
        if not text:
            return cls()
        filters = [Filter.parse(part) for part in re.split(r'[|;]', text) if part.strip()]
        return cls(filters=filters)

    def to_string(self) -> str:
        """Convert pipeline to compact string format."""
        return '|'.join(f.to_string() for f in self.filters)
