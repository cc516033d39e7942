"""
Event ingestion API endpoints.

Main endpoint: POST /v1/events
"""

import uuid
from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, Request

from ..core.forwarder import Forwarder, get_forwarder
from ..models.event import ErrorResponse, Event, ForwardResponse

logger = structlog.get_logger(__name__)

router = APIRouter()


async def get_event_forwarder(request: Request) -> Forwarder:
    """Dependency to get the forwarder from app state."""
    forwarder = getattr(request.app.state, 'forwarder', None)
    return forwarder if forwarder is not None else get_forwarder()


@router.post(
    "/events",
    response_model=ForwardResponse,
    status_code=202,
    responses={
        422: {"description": "Invalid event"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
    summary="Forward a telemetry event",
    description="""
    Forward a telemetry event to the consumers named in `destinationIds`.

    **Per consumer:**
    1. Data filter (allowed top-level categories)
    2. Private deep copy of the event data
    3. Consumer actions (setTag, includeData, excludeData, JMESPath)
    4. Consumer delivery

    A failing consumer never affects the others; failures are reported in
    the `failed` list and in the service logs.
    """,
)
async def forward_event(
    event: Event,
    forwarder: Forwarder = Depends(get_event_forwarder),
) -> ForwardResponse:
    """
    Forward an event.

    """
    request_id = str(uuid.uuid4())
    start_time = datetime.now(timezone.utc)

    logger.info(
        "Forwarding event",
        request_id=request_id,
        event_type=event.type,
        destination_ids=sorted(event.destination_ids),
    )

    result = await forwarder.forward(event)

    logger.info(
        "Event forwarded",
        request_id=request_id,
        delivered=len(result.delivered),
        failed=len(result.failed),
        processing_time_ms=(datetime.now(timezone.utc) - start_time).total_seconds() * 1000,
    )

    return ForwardResponse(
        message="Event forwarded",
        event_type=event.type,
        attempted=result.attempted,
        delivered=result.delivered,
        failed=result.failed,
        request_id=request_id,
        timestamp=start_time,
    )
