"""
Built-in consumers.

Every consumer is a delivery function taking the per-consumer Context;
it may be sync or async.
"""

from typing import Dict

from ..models.consumer import DeliverFn
from . import default, default_pull, generic_http

CONSUMER_TYPES: Dict[str, DeliverFn] = {
    "default": default.deliver,
    "default_pull": default_pull.deliver,
    "Generic_HTTP": generic_http.deliver,
}

__all__ = ["CONSUMER_TYPES"]
