"""
Per-consumer data filter.

Restricts which top-level categories of a telemetry document reach a
consumer. Open by default: no allow-list means no filtering.
"""

from typing import Any, Iterable, Optional

from ..models.consumer import ConsumerConfig


class DataFilter:
    """Top-level category allow-list."""

    def __init__(self, categories: Optional[Iterable[str]] = None) -> None:
        self.categories = frozenset(categories) if categories is not None else None

    @classmethod
    def from_config(cls, config: ConsumerConfig) -> "DataFilter":
        return cls(config.categories)

    def apply(self, document: Any) -> Any:
        """Return the document restricted to the allowed top-level keys."""
        if self.categories is None or not isinstance(document, dict):
            return document
        return {key: value for key, value in document.items() if key in self.categories}
