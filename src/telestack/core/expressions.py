"""
Query evaluation over telemetry documents.

Thin layer over JMESPath used for tag values and consumer-side projection:
- field/path extraction (``system.hostname``)
- object construction (``{ message: @, host: system.hostname }``)
- backtick-quoted tag values: JSON constants (`` `"value"` ``) or document
  queries (`` `system.hostname` ``)
"""

import copy
import json
from functools import lru_cache
from typing import Any

import jmespath
from jmespath.exceptions import JMESPathError
from jmespath.parser import ParsedResult

from .exceptions import ExpressionError


@lru_cache(maxsize=256)
def compile_expression(expression: str) -> ParsedResult:
    """Compile and cache a JMESPath expression."""
    try:
        return jmespath.compile(expression)
    except JMESPathError as e:
        raise ExpressionError(f"Invalid expression: {e}", expression=expression) from e


def evaluate(expression: str, document: Any) -> Any:
    """
    Evaluate an expression against a document.

    Returns None when the path does not resolve. Raises ExpressionError when
    the expression is malformed or fails at runtime (e.g. type errors in
    function calls).
    """
    if not isinstance(expression, str) or not expression.strip():
        raise ExpressionError("Expression must be a non-empty string", expression=str(expression))
    parsed = compile_expression(expression)
    try:
        return parsed.search(document)
    except JMESPathError as e:
        raise ExpressionError(f"Expression evaluation failed: {e}", expression=expression) from e


def is_quoted(value: Any) -> bool:
    """True for backtick-quoted tag values such as `` `system.hostname` ``."""
    return (
        isinstance(value, str)
        and len(value) >= 2
        and value.startswith("`")
        and value.endswith("`")
    )


def resolve_tag_value(value: Any, document: Any) -> Any:
    """
    Compute a tag value.

    - `` `"T"` ``, `` `3` ``, `` `[1, 2]` ``: quoted JSON, a constant
    - `` `system.hostname` ``: quoted query, evaluated against the document
      (None when the path does not resolve)
    - anything else is taken as-is

    The result never aliases the document.
    """
    if not is_quoted(value):
        return copy.deepcopy(value)

    body = value[1:-1]
    try:
        return json.loads(body)
    except json.JSONDecodeError:
        return copy.deepcopy(evaluate(body, document))
