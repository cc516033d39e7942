"""
Default consumer: writes events to the service log.
"""

import structlog

from ..models.event import Context

logger = structlog.get_logger(__name__)


async def deliver(context: Context) -> None:
    log = context.logger or logger
    log.info("Event received", event_type=context.event.type, data=context.event.data)

    if context.tracer is not None:
        await context.tracer.write(context.event.data)
