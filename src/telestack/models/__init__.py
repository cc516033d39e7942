"""
Data models package.

Contains the models shared by the pipeline:
- Telemetry events and per-consumer contexts
- Action declarations
- Consumer configuration and registry records
"""

from .actions import (
    Action,
    ExcludeDataAction,
    IncludeDataAction,
    JMESPathAction,
    SetTagAction,
    parse_action,
    parse_actions,
)
from .consumer import ConsumerConfig, ConsumerRecord
from .event import Context, ContextEvent, ErrorResponse, Event, ForwardResponse

__all__ = [
    # Event models
    "Event",
    "Context",
    "ContextEvent",
    "ForwardResponse",
    "ErrorResponse",

    # Action models
    "Action",
    "SetTagAction",
    "IncludeDataAction",
    "ExcludeDataAction",
    "JMESPathAction",
    "parse_action",
    "parse_actions",

    # Consumer models
    "ConsumerConfig",
    "ConsumerRecord",
]
