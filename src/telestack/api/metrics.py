"""
Prometheus metrics endpoint.

Exposes metrics in Prometheus text format for scraping.
"""

import structlog
from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="""
    Prometheus metrics endpoint in standard text format.

    **Key Metrics:**
    - events_forwarded_total{event_type} - Events handed to the forwarder
    - consumer_deliveries_total{consumer,outcome} - Consumer dispatches
    - consumer_delivery_duration_seconds{consumer} - Dispatch latency
    - transport_attempts_total{outcome} - Host attempts by outcome
    - registered_consumers - Consumers currently registered
    """,
)
async def get_metrics(request: Request) -> Response:
    """
    Prometheus metrics endpoint.
    """
    metrics_collector = getattr(request.app.state, 'metrics', None)

    if not metrics_collector:
        logger.warning("Metrics collector not initialized")
        return Response(
            content="# Metrics collector not initialized\n",
            media_type=CONTENT_TYPE_LATEST,
        )

    registry = getattr(request.app.state, 'registry', None)
    consumers = registry.get_consumers() if registry is not None else None
    metrics_collector.update_system_metrics(len(consumers or ()))

    metrics_data = generate_latest(metrics_collector.registry)
    logger.debug("Metrics scraped successfully", size_bytes=len(metrics_data))

    return Response(
        content=metrics_data,
        media_type=CONTENT_TYPE_LATEST,
    )
