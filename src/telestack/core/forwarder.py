"""
Event forwarder.

Fans an event out to every registered consumer it is addressed to:
- Resolves targets from a registry snapshot
- Builds a private Context (filtered, deep-copied data) per consumer
- Runs the consumer's actions, then its delivery function
- Contains every per-consumer failure; forward() never raises
"""

import asyncio
import copy
import inspect
import time
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

import structlog

from ..config import get_settings
from ..models.consumer import ConsumerRecord
from ..models.event import Context, ContextEvent, Event
from .actions import process_actions
from .exceptions import DeliveryError
from .metrics import MetricsCollector
from .registry import ConsumerRegistry, get_registry

logger = structlog.get_logger(__name__)


@dataclass
class ForwardingResult:
    """Result of forwarding one event."""
    attempted: List[str] = field(default_factory=list)
    delivered: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    error_message: Optional[str] = None


class Forwarder:
    """
    Multi-consumer event forwarder.

    Consumers never share a document instance: each dispatch gets its own
    deep copy before any action runs, so dispatches may run concurrently.
    """

    def __init__(
        self,
        registry: Optional[ConsumerRegistry] = None,
        metrics: Optional[MetricsCollector] = None,
        concurrent: Optional[bool] = None,
    ) -> None:
        self.registry = registry if registry is not None else get_registry()
        self.metrics = metrics
        if concurrent is None:
            concurrent = get_settings().forwarder.concurrent_dispatch
        self.concurrent = concurrent

    @staticmethod
    def build_context(event: Event, record: ConsumerRecord) -> Context:
        """Build the consumer-private context for an event."""
        data = record.filter.apply(event.data) if record.filter is not None else event.data
        return Context(
            event=ContextEvent(type=event.type, data=copy.deepcopy(data)),
            config=record.config,
            metadata=copy.deepcopy(record.metadata),
            tracer=record.tracer,
            logger=record.logger,
            consumer_id=record.id,
        )

    def resolve(
        self,
        event: Event,
        consumers: Optional[Sequence[ConsumerRecord]] = None,
    ) -> List[ConsumerRecord]:
        """Consumers (in registry order) the event is addressed to."""
        snapshot = consumers if consumers is not None else self.registry.get_consumers()
        if not snapshot:
            return []
        return [record for record in snapshot if record.id in event.destination_ids]

    async def forward(
        self,
        event: Event,
        consumers: Optional[Sequence[ConsumerRecord]] = None,
    ) -> ForwardingResult:
        """
        Forward an event to its consumers.

        Args:
            event: Event to forward
            consumers: Explicit registry snapshot (live registry by default)

        Returns:
            ForwardingResult listing attempted, delivered and failed consumers
        """
        result = ForwardingResult()

        try:
            targets = self.resolve(event, consumers)
            if self.metrics:
                self.metrics.record_event(event.type)

            if not targets:
                logger.debug(
                    "No consumers matched event",
                    event_type=event.type,
                    destination_ids=sorted(event.destination_ids),
                )
                return result

            result.attempted = [record.id for record in targets]

            if self.concurrent:
                outcomes = await asyncio.gather(
                    *(self._dispatch(event, record) for record in targets)
                )
            else:
                outcomes = [await self._dispatch(event, record) for record in targets]

            for record, delivered in zip(targets, outcomes):
                (result.delivered if delivered else result.failed).append(record.id)

            logger.debug(
                "Forward operation completed",
                event_type=event.type,
                delivered=len(result.delivered),
                failed=len(result.failed),
            )

        except Exception as e:
            logger.error("Forward operation failed", event_type=event.type, error=str(e), exc_info=True)
            result.error_message = str(e)

        return result

    async def _dispatch(self, event: Event, record: ConsumerRecord) -> bool:
        """Run actions and delivery for one consumer. Returns True on success."""
        log = record.logger or logger
        start = time.perf_counter()
        success = False

        try:
            context = self.build_context(event, record)

            try:
                process_actions(context.event, record.config.actions, log)
            except Exception as e:
                log.error(
                    "Action processing failed, delivering data as is",
                    consumer_id=record.id,
                    error=str(e),
                    error_type=type(e).__name__,
                )

            outcome: Any = record.deliver(context)
            if inspect.isawaitable(outcome):
                await outcome
            success = True

        except Exception as e:
            error = e if isinstance(e, DeliveryError) else DeliveryError(str(e), consumer_id=record.id)
            log.error(
                "Consumer delivery failed",
                consumer_id=record.id,
                event_type=event.type,
                error=str(error),
                error_code=error.error_code,
                error_type=type(e).__name__,
                details=error.details,
            )

        if self.metrics:
            self.metrics.record_delivery(record.id, success, time.perf_counter() - start)

        return success


# Global forwarder instance
_forwarder: Optional[Forwarder] = None


def get_forwarder() -> Forwarder:
    """Get or create global forwarder instance."""
    global _forwarder

    if _forwarder is None:
        _forwarder = Forwarder()

    return _forwarder
