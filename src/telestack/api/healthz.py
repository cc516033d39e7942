"""
Health check endpoints.

- /healthz: Liveness check (always 200 if service alive)
- /readyz: Readiness check (200 once consumers are loaded and the transport is open)
"""

from datetime import datetime, timezone
from typing import Any, Dict

import structlog
from fastapi import APIRouter, Request, Response, status

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get(
    "/healthz",
    status_code=200,
    summary="Liveness check",
)
async def liveness_check() -> Dict[str, Any]:
    """
    Liveness check - always returns 200 if service is alive.
    """
    return {
        "status": "alive",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "telestack",
        "version": "0.1.0",
    }


@router.get(
    "/readyz",
    summary="Readiness check",
)
async def readiness_check(request: Request, response: Response) -> Dict[str, Any]:
    """
    Readiness check - 503 until the registry and transport are initialized.
    """
    registry = getattr(request.app.state, 'registry', None)
    transport = getattr(request.app.state, 'transport', None)

    checks = {
        "registry": registry is not None,
        "transport": transport is not None and transport.session is not None,
    }
    consumers = registry.get_consumers() if registry is not None else None

    if all(checks.values()):
        response.status_code = status.HTTP_200_OK
        state = "ready"
    else:
        logger.warning("Service not ready", checks=checks)
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        state = "not_ready"

    return {
        "status": state,
        "checks": checks,
        "consumers": len(consumers or ()),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
