"""
Location selection over nested telemetry documents.

A location spec is a tree whose keys are literal names or regular
expressions and whose leaves are ``true``:

    {"virtualServers": {"vs$": True}, "system": True}

- select(): keep only the matched locations (includeData)
- remove(): drop the matched locations (excludeData)
- walk():   yield every matched node (setTag)
"""

import copy
import re
from typing import Any, Dict, Iterator, List, Mapping, Optional, Pattern, Tuple, Union

from .exceptions import ConfigurationError


class KeyPattern:
    """A location key matched literally or as a regular expression."""

    __slots__ = ("key", "regex")

    def __init__(self, key: str) -> None:
        self.key = key
        try:
            self.regex: Optional[Pattern[str]] = re.compile(key)
        except re.error:
            # not a valid pattern, literal match only
            self.regex = None

    def matches(self, name: Any) -> bool:
        name = str(name)
        if name == self.key:
            return True
        return self.regex is not None and self.regex.search(name) is not None

    def __eq__(self, other: object) -> bool:
        return isinstance(other, KeyPattern) and other.key == self.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __repr__(self) -> str:
        return f"KeyPattern({self.key!r})"


LocationTarget = Union[bool, "LocationSpec"]


class LocationSpec:
    """Recursive location node: ordered (KeyPattern -> True | LocationSpec) entries."""

    __slots__ = ("entries",)

    def __init__(self, entries: Tuple[Tuple[KeyPattern, LocationTarget], ...] = ()) -> None:
        self.entries = tuple(entries)

    @classmethod
    def parse(cls, raw: Any, path: str = "") -> "LocationSpec":
        """
        Build a spec from its declarative mapping form.

        Raises ConfigurationError for anything but nested mappings with
        boolean ``true`` leaves.
        """
        if isinstance(raw, LocationSpec):
            return raw
        if not isinstance(raw, Mapping):
            raise ConfigurationError(
                "Locations must be a mapping",
                details={"path": path or "/", "type": type(raw).__name__},
            )

        entries: List[Tuple[KeyPattern, LocationTarget]] = []
        for key, value in raw.items():
            key = str(key)
            current_path = f"{path}/{key}"
            if value is True:
                entries.append((KeyPattern(key), True))
            elif isinstance(value, Mapping):
                entries.append((KeyPattern(key), cls.parse(value, current_path)))
            else:
                raise ConfigurationError(
                    "Location leaf must be boolean 'true' or a nested mapping",
                    details={"path": current_path, "type": type(value).__name__},
                )
        return cls(tuple(entries))

    def is_empty(self) -> bool:
        return not self.entries

    def __eq__(self, other: object) -> bool:
        return isinstance(other, LocationSpec) and other.entries == self.entries

    def __hash__(self) -> int:
        return hash(self.entries)

    def __repr__(self) -> str:
        return f"LocationSpec({self.as_dict()!r})"

    def match(self, name: Any) -> Optional[LocationTarget]:
        """
        Resolve a document key against this level.

        Returns None when nothing matches, True when any matching entry is a
        leaf, otherwise the (combined) nested spec.
        """
        nested: List[LocationSpec] = []
        for pattern, target in self.entries:
            if not pattern.matches(name):
                continue
            if target is True:
                return True
            nested.append(target)  # type: ignore[arg-type]

        if not nested:
            return None
        if len(nested) == 1:
            return nested[0]
        return LocationSpec(entries=tuple(e for spec in nested for e in spec.entries))

    def as_dict(self) -> Dict[str, Any]:
        return {
            pattern.key: True if target is True else target.as_dict()  # type: ignore[union-attr]
            for pattern, target in self.entries
        }


def select(spec: LocationSpec, document: Any) -> Dict[str, Any]:
    """Return a new document holding only the locations matched by spec."""
    if not isinstance(document, Mapping):
        return {}

    result: Dict[str, Any] = {}
    for key, value in document.items():
        target = spec.match(key)
        if target is None:
            continue
        if target is True:
            result[key] = copy.deepcopy(value)
        else:
            nested = select(target, value)  # type: ignore[arg-type]
            if nested:
                result[key] = nested
    return result


def remove(spec: LocationSpec, document: Any) -> Any:
    """Return a new document without the locations matched by spec."""
    if not isinstance(document, Mapping):
        return copy.deepcopy(document)

    result: Dict[str, Any] = {}
    for key, value in document.items():
        target = spec.match(key)
        if target is None:
            result[key] = copy.deepcopy(value)
        elif target is not True:
            result[key] = remove(target, value)  # type: ignore[arg-type]
    return result


def walk(spec: LocationSpec, document: Any) -> Iterator[Any]:
    """Yield every node of document selected by a ``true`` leaf (by reference)."""
    if not isinstance(document, Mapping):
        return

    for key, value in list(document.items()):
        target = spec.match(key)
        if target is None:
            continue
        if target is True:
            yield value
        else:
            yield from walk(target, value)  # type: ignore[arg-type]
