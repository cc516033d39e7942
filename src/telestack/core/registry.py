"""
Consumer registry.

Builds consumer records from the declaration and hands out immutable
snapshots to the forwarder. Reloads swap the whole snapshot at once.
"""

from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import structlog
from pydantic import ValidationError

from ..config import TracerSettings, get_settings
from ..models.consumer import ConsumerConfig, ConsumerRecord
from .data_filter import DataFilter
from .exceptions import ConfigurationError
from .tracer import Tracer

logger = structlog.get_logger(__name__)


def build_tracer(
    name: str,
    config: ConsumerConfig,
    settings: TracerSettings,
) -> Optional[Tracer]:
    """Create the tracer requested by the consumer config, if any."""
    if not config.trace:
        return None

    if isinstance(config.trace, str):
        path: Optional[Path] = Path(config.trace)
    elif settings.directory is not None:
        path = settings.directory / f"{name}.json"
    else:
        path = None

    return Tracer(name=name, path=path, max_records=settings.max_records)


def build_record(
    name: str,
    raw: Mapping[str, Any],
    metadata: Optional[Dict[str, Any]] = None,
    tracer_settings: Optional[TracerSettings] = None,
) -> Optional[ConsumerRecord]:
    """
    Build a consumer record from its raw declaration.

    Returns None for disabled consumers. Raises ConfigurationError for
    invalid declarations and unknown consumer types.
    """
    # imported here, consumer modules depend on the core package
    from ..consumers import CONSUMER_TYPES

    try:
        config = ConsumerConfig.model_validate(dict(raw))
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration for consumer '{name}'",
            details={"errors": [err["msg"] for err in e.errors()]},
        ) from e

    if not config.enable:
        logger.info("Consumer disabled, skipping", consumer=name)
        return None

    deliver = CONSUMER_TYPES.get(config.type)
    if deliver is None:
        raise ConfigurationError(
            f"Unknown consumer type '{config.type}'",
            details={"consumer": name, "known_types": sorted(CONSUMER_TYPES)},
        )

    if not config.trace_name:
        config = config.model_copy(update={"trace_name": name})

    tracer_settings = tracer_settings or get_settings().tracer

    return ConsumerRecord(
        id=name,
        config=config,
        filter=DataFilter.from_config(config),
        deliver=deliver,
        tracer=build_tracer(name, config, tracer_settings),
        logger=structlog.get_logger("telestack.consumers").bind(consumer=config.trace_name),
        metadata=dict(metadata or {}),
    )


class ConsumerRegistry:
    """Holds the live set of consumer records."""

    def __init__(self) -> None:
        self._records: Tuple[ConsumerRecord, ...] = ()

    def load(
        self,
        declaration: Mapping[str, Mapping[str, Any]],
        metadata: Optional[Dict[str, Any]] = None,
        tracer_settings: Optional[TracerSettings] = None,
    ) -> List[ConsumerRecord]:
        """
        Replace the registered consumers with the ones declared.

        Invalid consumers are logged and skipped; the others still load.
        """
        records: List[ConsumerRecord] = []

        for name, raw in declaration.items():
            try:
                record = build_record(name, raw, metadata, tracer_settings)
            except ConfigurationError as e:
                logger.error(
                    "Failed to load consumer",
                    consumer=name,
                    error=str(e),
                    details=e.details,
                )
                continue
            if record is not None:
                records.append(record)

        self._records = tuple(records)
        logger.info("Consumers loaded", count=len(records), consumers=[r.id for r in records])
        return records

    def register(self, record: ConsumerRecord) -> None:
        """Add a record, replacing any record with the same id."""
        others = tuple(r for r in self._records if r.id != record.id)
        self._records = others + (record,)

    def get_consumers(self) -> Optional[Tuple[ConsumerRecord, ...]]:
        """Snapshot of the registered consumers, None when there are none."""
        return self._records or None

    def get(self, consumer_id: str) -> Optional[ConsumerRecord]:
        for record in self._records:
            if record.id == consumer_id:
                return record
        return None

    def clear(self) -> None:
        self._records = ()


# Global registry instance
_registry: Optional[ConsumerRegistry] = None


def get_registry() -> ConsumerRegistry:
    """Get or create global consumer registry instance."""
    global _registry

    if _registry is None:
        _registry = ConsumerRegistry()

    return _registry
