"""
Generic HTTP consumer.

Posts the event data as JSON to ``host`` and, on failure, to each of
``fallbackHosts`` in order.
"""

from typing import Any, Dict, List

import structlog

from ..core.exceptions import DeliveryError, TeleStackException
from ..core.transport import ProxySpec, RequestSpec, get_transport, process_headers
from ..models.event import Context

logger = structlog.get_logger(__name__)


def build_request(context: Context) -> RequestSpec:
    """Translate the consumer config into a transport request."""
    config = context.config

    headers = process_headers(config.get("headers"))
    headers.setdefault("Content-Type", "application/json")
    passphrase = config.get("passphrase")
    if passphrase and "Authorization" not in headers:
        headers["Authorization"] = passphrase

    return RequestSpec(
        uri=config.get("path") or "/",
        method=(config.get("method") or "POST").upper(),
        headers=headers,
        body=context.event.data,
        protocol=config.get("protocol") or "https",
        port=config.get("port"),
        proxy=ProxySpec.from_config(config.get("proxy")),
        allow_self_signed_cert=bool(config.get("allowSelfSignedCert", False)),
    )


def get_hosts(context: Context) -> List[str]:
    hosts = [context.config.get("host")] + list(context.config.get("fallbackHosts") or [])
    return [host for host in hosts if host]


async def deliver(context: Context) -> None:
    """
    Send the event through the host-fallback transport.

    Transport and status errors are logged and re-raised as DeliveryError so
    the forwarder records the dispatch as failed.
    """
    log = context.logger or logger
    hosts = get_hosts(context)
    request = build_request(context)

    if context.tracer is not None:
        trace: Dict[str, Any] = {
            "hosts": hosts,
            "uri": request.uri,
            "method": request.method,
            "headers": request.headers,
            "body": request.body,
        }
        await context.tracer.write([trace])

    try:
        response = await get_transport().deliver(hosts, request)
    except TeleStackException as e:
        log.error(
            "Error encountered while processing for Generic_HTTP",
            error=str(e),
            error_code=e.error_code,
            details=e.details,
        )
        raise DeliveryError(str(e), consumer_id=context.consumer_id, details=e.details) from e

    log.debug(
        "Generic_HTTP request completed",
        host=response.host,
        status=response.status,
        event_type=context.event.type,
    )
