"""
Action declaration models.

Raw declarations are shape-tagged mappings:

    {"setTag": {"tenant": '`"T"`'}, "locations": {"system": true}}
    {"includeData": {}, "locations": {"system": true}}
    {"excludeData": {}, "locations": {"pools": {"^/Common/": true}}}
    {"JMESPath": {}, "expression": "{ message: @ }"}

parse_action() resolves the variant once, at load time.
"""

from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..core.exceptions import ConfigurationError
from ..core.locations import LocationSpec
from ..core.matching import ConditionMatcher


class BaseAction(BaseModel):
    """Fields shared by every action variant."""

    enable: bool = Field(default=True, description="Disabled actions are skipped")
    locations: Optional[LocationSpec] = Field(
        default=None,
        description="Locations the action applies to",
    )
    if_all_match: Optional[Dict[str, Any]] = Field(
        default=None,
        alias="ifAllMatch",
        description="Fire only when every declared path matches",
    )
    if_any_match: Optional[List[Dict[str, Any]]] = Field(
        default=None,
        alias="ifAnyMatch",
        description="Fire when at least one declared mapping matches",
    )

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        extra="forbid",
        frozen=True,
        populate_by_name=True,
    )

    @field_validator("locations", mode="before")
    def parse_locations(cls, v: Any) -> Optional[LocationSpec]:
        """Convert the declarative mapping into a LocationSpec."""
        if v is None:
            return None
        try:
            return LocationSpec.parse(v)
        except ConfigurationError as e:
            # pydantic only wraps ValueError
            raise ValueError(f"{e} ({e.details.get('path')})") from e

    @model_validator(mode="after")
    def check_conditions(self) -> "BaseAction":
        """ifAllMatch and ifAnyMatch are mutually exclusive."""
        if self.if_all_match is not None and self.if_any_match is not None:
            raise ValueError("ifAllMatch and ifAnyMatch can't be set at the same time")
        return self

    @property
    def action_type(self) -> str:
        raise NotImplementedError

    @property
    def condition(self) -> ConditionMatcher:
        return ConditionMatcher(self.if_all_match, self.if_any_match)


class SetTagAction(BaseAction):
    """Add tags to the selected locations (root by default)."""

    set_tag: Dict[str, Any] = Field(alias="setTag", description="Tag name -> value, quoted constant or quoted query")

    @property
    def action_type(self) -> str:
        return "setTag"


class IncludeDataAction(BaseAction):
    """Keep only the selected locations."""

    include_data: Dict[str, Any] = Field(alias="includeData")
    locations: LocationSpec

    @property
    def action_type(self) -> str:
        return "includeData"


class ExcludeDataAction(BaseAction):
    """Drop the selected locations."""

    exclude_data: Dict[str, Any] = Field(alias="excludeData")
    locations: LocationSpec

    @property
    def action_type(self) -> str:
        return "excludeData"


class JMESPathAction(BaseAction):
    """Replace the data with the result of a query expression."""

    jmespath: Dict[str, Any] = Field(alias="JMESPath")
    expression: str = Field(min_length=1)

    @property
    def action_type(self) -> str:
        return "JMESPath"


Action = Union[SetTagAction, IncludeDataAction, ExcludeDataAction, JMESPathAction]

ACTION_TYPES: Dict[str, type] = {
    "setTag": SetTagAction,
    "includeData": IncludeDataAction,
    "excludeData": ExcludeDataAction,
    "JMESPath": JMESPathAction,
}


def parse_action(raw: Any) -> Action:
    """
    Resolve a raw action declaration into its typed variant.

    Raises ConfigurationError for unknown or ambiguous shapes and for
    declarations the variant model rejects.
    """
    if isinstance(raw, BaseAction):
        return raw  # type: ignore[return-value]
    if not isinstance(raw, Mapping):
        raise ConfigurationError(
            "Action must be a mapping",
            details={"type": type(raw).__name__},
        )

    tags = [name for name in ACTION_TYPES if name in raw]
    if len(tags) != 1:
        raise ConfigurationError(
            "Action must declare exactly one of: " + ", ".join(ACTION_TYPES),
            details={"found": tags, "keys": sorted(str(k) for k in raw)},
        )

    model = ACTION_TYPES[tags[0]]
    try:
        return model.model_validate(dict(raw))
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid {tags[0]} action",
            details={"errors": [err["msg"] for err in e.errors()]},
        ) from e


def parse_actions(raw: Optional[List[Any]]) -> List[Action]:
    """Parse an ordered list of action declarations."""
    return [parse_action(item) for item in raw or []]
