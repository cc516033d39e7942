"""
Pull consumer API endpoints.

GET /v1/pullconsumer/{name}: latest events buffered by a pull consumer
"""

from typing import Any, Dict, List

import structlog
from fastapi import APIRouter, HTTPException, Request, status

from ..consumers.default_pull import get_pull_store
from ..core.registry import get_registry

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get(
    "/pullconsumer/{name}",
    summary="Pull consumer data",
    description="""
    Returns the latest events (oldest first) delivered to a `default_pull`
    consumer. 404 when no such consumer is registered.
    """,
)
async def get_pull_consumer_data(name: str, request: Request) -> List[Dict[str, Any]]:
    registry = getattr(request.app.state, 'registry', None) or get_registry()
    record = registry.get(name)

    if record is None or record.config.type != "default_pull":
        logger.warning("Unknown pull consumer requested", consumer=name)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Pull consumer '{name}' not found",
        )

    return get_pull_store().get(record.id)
