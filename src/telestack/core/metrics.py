"""
Prometheus metrics collection.

In-memory counters for forwarding, consumer delivery and transport
attempts; Prometheus handles storage.
"""

import time
from typing import Optional

import structlog
from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram, Info

logger = structlog.get_logger(__name__)


class MetricsCollector:
    """
    Centralized metrics collection for TeleStack.

    Pass a dedicated CollectorRegistry to keep instances independent
    (tests, embedded use).
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self.registry = registry if registry is not None else REGISTRY

        # Service info
        self.service_info = Info(
            "telestack_service",
            "TeleStack service information",
            registry=self.registry,
        )
        self.service_info.info({
            "version": "0.1.0",
            "service": "telestack",
        })

        # Forwarder metrics
        self.events_forwarded_total = Counter(
            "events_forwarded_total",
            "Total events handed to the forwarder",
            ["event_type"],
            registry=self.registry,
        )

        self.consumer_deliveries_total = Counter(
            "consumer_deliveries_total",
            "Total consumer dispatches by outcome",
            ["consumer", "outcome"],
            registry=self.registry,
        )

        self.consumer_delivery_duration = Histogram(
            "consumer_delivery_duration_seconds",
            "Consumer dispatch duration in seconds (actions + delivery)",
            ["consumer"],
            buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
            registry=self.registry,
        )

        # Transport metrics
        self.transport_attempts_total = Counter(
            "transport_attempts_total",
            "Total host attempts made by the host-fallback transport",
            ["outcome"],
            registry=self.registry,
        )

        # System metrics
        self.registered_consumers = Gauge(
            "registered_consumers",
            "Current number of registered consumers",
            registry=self.registry,
        )

        self.uptime_seconds = Gauge(
            "uptime_seconds",
            "Service uptime in seconds",
            registry=self.registry,
        )

        self._start_time = time.time()

    def record_event(self, event_type: str) -> None:
        """Record an event entering the forwarder."""
        self.events_forwarded_total.labels(event_type=event_type).inc()

    def record_delivery(self, consumer: str, success: bool, duration_seconds: float) -> None:
        """Record a consumer dispatch."""
        self.consumer_deliveries_total.labels(
            consumer=consumer,
            outcome="success" if success else "failure",
        ).inc()
        self.consumer_delivery_duration.labels(consumer=consumer).observe(duration_seconds)

    def record_transport_attempt(self, outcome: str) -> None:
        """Record a single host attempt ("success", "failure" or "error_status")."""
        self.transport_attempts_total.labels(outcome=outcome).inc()

    def update_system_metrics(self, consumers: int) -> None:
        """Update system-level metrics."""
        self.registered_consumers.set(consumers)
        self.uptime_seconds.set(time.time() - self._start_time)
