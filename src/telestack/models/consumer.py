"""
Consumer configuration and registry record models.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .actions import Action, parse_actions

if TYPE_CHECKING:
    from ..core.data_filter import DataFilter
    from ..core.tracer import Tracer
    from .event import Context


class ConsumerConfig(BaseModel):
    """
    Consumer configuration.

    Common fields are declared here; consumer specific fields (hosts,
    credentials, formats) are kept as extra attributes.
    """

    type: str = Field(min_length=1, description="Consumer type, e.g. Generic_HTTP")
    trace_name: str = Field(default="", alias="traceName", description="Name used in logs and traces")
    enable: bool = Field(default=True, description="Disabled consumers are not registered")
    trace: Union[bool, str] = Field(default=False, description="Enable tracing, or trace file path")
    categories: Optional[List[str]] = Field(
        default=None,
        description="Top-level categories allowed through to this consumer",
    )
    actions: List[Action] = Field(default_factory=list, description="Ordered consumer actions")

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        extra="allow",
        frozen=True,
        populate_by_name=True,
    )

    @field_validator("actions", mode="before")
    def parse_action_list(cls, v: Any) -> List[Action]:
        """Resolve each raw action into its typed variant."""
        if v is None:
            return []
        if not isinstance(v, list):
            raise ValueError("actions must be a list")
        return parse_actions(v)

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a declared or consumer specific field by name or alias."""
        extra = self.model_extra or {}
        if key in extra:
            return extra[key]
        for name, info in type(self).model_fields.items():
            if key in (name, info.alias):
                return getattr(self, name)
        return default


DeliverFn = Callable[["Context"], Union[Any, Awaitable[Any]]]


@dataclass
class ConsumerRecord:
    """A registered consumer as seen by the forwarder."""
    id: str
    config: ConsumerConfig
    filter: "DataFilter"
    deliver: DeliverFn
    tracer: Optional["Tracer"] = None
    logger: Any = None
    metadata: Dict[str, Any] = field(default_factory=dict)
