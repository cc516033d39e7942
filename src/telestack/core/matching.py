"""
Condition matching for action gating.

- ifAllMatch: every declared path must exist and match
- ifAnyMatch: at least one declared mapping must fully match

Keys match literally or as regular expressions; string leaves match
literally or as regular expressions, other leaves by strict equality.
"""

import re
from typing import Any, List, Mapping, Optional, Sequence

from .locations import KeyPattern


def _value_matches(actual: Any, expected: Any) -> bool:
    # bool is an int subclass, keep True != 1
    if isinstance(actual, bool) or isinstance(expected, bool):
        return isinstance(actual, bool) and isinstance(expected, bool) and actual is expected

    if actual == expected:
        return True

    if isinstance(expected, str) and isinstance(actual, str):
        try:
            return re.search(expected, actual) is not None
        except re.error:
            return False
    return False


def match_all(data: Any, conditions: Mapping[str, Any]) -> bool:
    """True when data satisfies every condition declared in the mapping."""
    if not isinstance(data, Mapping):
        return False

    for cond_key, expected in conditions.items():
        pattern = KeyPattern(str(cond_key))
        matched_keys = [key for key in data if pattern.matches(key)]
        if not matched_keys:
            return False

        for key in matched_keys:
            actual = data[key]
            if isinstance(expected, Mapping):
                if not match_all(actual, expected):
                    return False
            elif not _value_matches(actual, expected):
                return False
    return True


def match_any(data: Any, conditions: Sequence[Mapping[str, Any]]) -> bool:
    """True when data satisfies at least one of the condition mappings."""
    return any(match_all(data, cond) for cond in conditions)


class ConditionMatcher:
    """Predicate built from an action's ifAllMatch / ifAnyMatch declaration."""

    def __init__(
        self,
        if_all_match: Optional[Mapping[str, Any]] = None,
        if_any_match: Optional[List[Mapping[str, Any]]] = None,
    ) -> None:
        self.if_all_match = if_all_match
        self.if_any_match = if_any_match

    def matches(self, data: Any) -> bool:
        if self.if_all_match is not None:
            return match_all(data, self.if_all_match)
        if self.if_any_match is not None:
            return match_any(data, self.if_any_match)
        return True
