"""
Action processor.

Applies a consumer's ordered actions to its private copy of the event:
- setTag:      add tags at the selected locations (root by default)
- includeData: keep only the selected locations
- excludeData: drop the selected locations
- JMESPath:    replace the data with a query result

A failing action is logged and skipped; nothing escapes process_actions().
"""

import copy
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

import structlog

from ..models.actions import (
    BaseAction,
    ExcludeDataAction,
    IncludeDataAction,
    JMESPathAction,
    SetTagAction,
    parse_action,
)
from .expressions import evaluate, resolve_tag_value
from .locations import remove, select, walk

logger = structlog.get_logger(__name__)


def merge_tags(target: Dict[str, Any], tags: Mapping[str, Any]) -> None:
    """
    Additively merge tags into a mapping.

    Mappings merge recursively and scalars replace scalars; a tag whose
    shape differs from the existing value leaves that value untouched.
    """
    for key, value in tags.items():
        if key not in target:
            target[key] = copy.deepcopy(value)
            continue

        current = target[key]
        if isinstance(current, dict) and isinstance(value, Mapping):
            merge_tags(current, value)
        elif not isinstance(current, (dict, list)) and not isinstance(value, (Mapping, list)):
            target[key] = copy.deepcopy(value)


def _set_tag(event: Any, action: SetTagAction) -> None:
    tags = {name: resolve_tag_value(value, event.data) for name, value in action.set_tag.items()}

    if action.locations is None:
        targets = [event.data]
    else:
        targets = list(walk(action.locations, event.data))

    for target in targets:
        if isinstance(target, dict):
            merge_tags(target, tags)


def _include_data(event: Any, action: IncludeDataAction) -> None:
    event.data = select(action.locations, event.data)


def _exclude_data(event: Any, action: ExcludeDataAction) -> None:
    event.data = remove(action.locations, event.data)


def _apply_expression(event: Any, action: JMESPathAction) -> None:
    event.data = evaluate(action.expression, event.data)


_HANDLERS: Dict[type, Callable[[Any, Any], None]] = {
    SetTagAction: _set_tag,
    IncludeDataAction: _include_data,
    ExcludeDataAction: _exclude_data,
    JMESPathAction: _apply_expression,
}


def process_actions(
    event: Any,
    actions: Optional[Sequence[Any]],
    log: Optional[Any] = None,
) -> None:
    """
    Run actions against event.data in declared order.

    Args:
        event: Object with a mutable ``data`` attribute (consumer private)
        actions: Typed actions or raw declarations
        log: Logger to report failures to (module logger by default)
    """
    log = log or logger

    for index, action in enumerate(actions or []):
        action_type = getattr(action, "action_type", None)
        try:
            if not isinstance(action, BaseAction):
                action = parse_action(action)
                action_type = action.action_type

            if not action.enable:
                continue

            if not action.condition.matches(event.data):
                log.debug("Action conditions not met", action_index=index, action_type=action_type)
                continue

            _HANDLERS[type(action)](event, action)

        except Exception as e:
            log.error(
                "Action failed, skipping",
                action_index=index,
                action_type=action_type,
                error=str(e),
                error_type=type(e).__name__,
            )
