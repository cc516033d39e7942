"""
Telemetry event models.

- Event: produced by the collector, consumed once by the forwarder
- ContextEvent / Context: the private per-consumer working copy
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from ..core.tracer import Tracer
    from .consumer import ConsumerConfig


class Event(BaseModel):
    """Telemetry event addressed to one or more consumers."""

    type: str = Field(min_length=1, description="Event type, e.g. systemInfo")
    data: Any = Field(default_factory=dict, description="Telemetry document")
    destination_ids: Set[str] = Field(
        default_factory=set,
        alias="destinationIds",
        description="Ids of the consumers that should receive the event",
    )

    model_config = ConfigDict(populate_by_name=True)


@dataclass
class ContextEvent:
    """Event view owned by a single consumer dispatch."""
    type: str
    data: Any


@dataclass
class Context:
    """Everything a consumer's delivery function receives."""
    event: ContextEvent
    config: "ConsumerConfig"
    metadata: Dict[str, Any] = field(default_factory=dict)
    tracer: Optional["Tracer"] = None
    logger: Any = None
    consumer_id: str = ""


class ForwardResponse(BaseModel):
    """
    Response from the event ingestion endpoint.

    202 Accepted: every addressed consumer was attempted.
    """

    message: str = Field(description="Response message")
    event_type: str = Field(description="Type of the forwarded event")
    attempted: List[str] = Field(default_factory=list, description="Consumers the event was addressed to")
    delivered: List[str] = Field(default_factory=list, description="Consumers that accepted the event")
    failed: List[str] = Field(default_factory=list, description="Consumers whose dispatch failed")
    request_id: str = Field(description="Unique request identifier")
    timestamp: datetime = Field(description="Processing timestamp")


class ErrorResponse(BaseModel):
    """
    Standard error response model.
    """

    error: str = Field(description="Error code")
    message: str = Field(description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Additional error details"
    )
