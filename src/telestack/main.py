"""
Main FastAPI application entry point.

This module sets up the FastAPI app with all middleware, routes, and lifecycle events.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import CollectorRegistry

from telestack.api import events_router, healthz_router, metrics_router, pull_router
from telestack.config import Settings, get_settings
from telestack.core.exceptions import TeleStackException
from telestack.core.forwarder import get_forwarder
from telestack.core.metrics import MetricsCollector
from telestack.core.registry import get_registry
from telestack.core.transport import get_transport


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structured logging for the application."""
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper()),
    )

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def create_lifespan_handler(settings: Settings) -> Any:
    """Create a lifespan handler with access to settings."""
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        FastAPI lifespan context manager.

        Loads the consumer declaration and opens the shared transport.
        """
        logger = structlog.get_logger(__name__)
        logger.info("Starting TeleStack service", version=app.version)

        metrics_collector = MetricsCollector(CollectorRegistry())
        app.state.metrics = metrics_collector

        registry = get_registry()
        registry.load(settings.consumers)
        app.state.registry = registry

        transport = get_transport()
        transport.metrics = metrics_collector
        await transport.start()
        app.state.transport = transport

        forwarder = get_forwarder()
        forwarder.registry = registry
        forwarder.metrics = metrics_collector
        app.state.forwarder = forwarder

        try:
            logger.info("TeleStack service started successfully")
            yield
        finally:
            logger.info("Shutting down TeleStack service")
            await transport.stop()
            logger.info("TeleStack service shutdown complete")

    return lifespan


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """
    settings = get_settings()

    configure_logging(settings.log_level)

    lifespan = create_lifespan_handler(settings)

    app = FastAPI(
        title="TeleStack",
        description="Telemetry forwarder with declarative per-consumer actions",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    @app.exception_handler(TeleStackException)
    async def telestack_exception_handler(request: Request, exc: TeleStackException) -> JSONResponse:
        """Handle custom TeleStack exceptions."""
        logger = structlog.get_logger(__name__)
        logger.error(
            "TeleStack exception occurred",
            error=str(exc),
            status_code=exc.status_code,
            path=request.url.path,
            method=request.method,
        )

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": exc.error_code,
                "message": str(exc),
                "details": exc.details,
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger = structlog.get_logger(__name__)
        logger.error(
            "Unexpected exception occurred",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
            method=request.method,
            exc_info=True,
        )

        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred",
            },
        )

    # Include routers
    app.include_router(events_router, prefix="/v1", tags=["events"])
    app.include_router(pull_router, prefix="/v1", tags=["pull"])
    app.include_router(metrics_router, tags=["metrics"])
    app.include_router(healthz_router, tags=["health"])

    @app.get("/", include_in_schema=False)
    async def root() -> Dict[str, str]:
        """Root endpoint with service information."""
        return {
            "service": "TeleStack",
            "version": app.version,
            "description": "Telemetry forwarder with declarative per-consumer actions",
            "docs": "/docs",
        }

    return app


# Create the app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "telestack.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=settings.debug,
    )
