"""
Host-fallback HTTP transport shared by network consumers.

Sends a request to the first host of an ordered list and falls back to
the next host on transport errors or 5xx responses. Other responses are
returned to the caller as they are.
"""

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Union

import aiohttp
import structlog

from ..config import TransportSettings, get_settings
from .exceptions import ConfigurationError, HTTPStatusError, TransportFailure
from .metrics import MetricsCollector

logger = structlog.get_logger(__name__)


def process_headers(headers: Any) -> Dict[str, str]:
    """
    Convert ``[{"name": ..., "value": ...}]`` into a header mapping.

    Anything but a list yields an empty mapping.
    """
    result: Dict[str, str] = {}
    if isinstance(headers, list):
        for header in headers:
            result[header["name"]] = header["value"]
    return result


@dataclass
class ProxySpec:
    """Proxy settings for a request."""
    host: str
    port: Optional[int] = None
    protocol: str = "https"
    username: Optional[str] = None
    passphrase: Optional[str] = None

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]]) -> Optional["ProxySpec"]:
        """Build from a consumer ``proxy`` declaration; empty means no proxy."""
        if not config:
            return None
        return cls(
            host=config["host"],
            port=config.get("port"),
            protocol=config.get("protocol") or "https",
            username=config.get("username"),
            passphrase=config.get("passphrase"),
        )

    @property
    def url(self) -> str:
        port = f":{self.port}" if self.port else ""
        return f"{self.protocol}://{self.host}{port}"

    @property
    def auth(self) -> Optional[aiohttp.BasicAuth]:
        if not self.username:
            return None
        return aiohttp.BasicAuth(self.username, self.passphrase or "")


@dataclass
class RequestSpec:
    """Everything but the host needed to send a request."""
    uri: str = "/"
    method: str = "POST"
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None
    protocol: str = "https"
    port: Optional[int] = None
    proxy: Optional[ProxySpec] = None
    allow_self_signed_cert: bool = False
    continue_on_error_code: Optional[bool] = None
    timeout_seconds: Optional[float] = None

    def url_for(self, host: str) -> str:
        port = f":{self.port}" if self.port else ""
        uri = self.uri if self.uri.startswith("/") else f"/{self.uri}"
        return f"{self.protocol}://{host}{port}{uri}"


@dataclass
class TransportResponse:
    """Response of the host that answered."""
    status: int
    reason: Optional[str]
    headers: Dict[str, str]
    body: Any
    host: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 400


class HostFallbackTransport:
    """
    Async HTTP client with ordered host fallback.

    Handles:
    - Host iteration (bounded by the host list)
    - 5xx / transport error failover
    - Proxy and self-signed certificate options
    - Session lifecycle
    """

    def __init__(
        self,
        settings: Optional[TransportSettings] = None,
        session: Optional[aiohttp.ClientSession] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self.settings = settings or get_settings().transport
        self.session = session
        self.metrics = metrics
        self._owns_session = session is None

    async def start(self) -> None:
        """Open the HTTP session."""
        if self.session is not None:
            return

        self.session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.settings.timeout_seconds),
            headers={"User-Agent": self.settings.user_agent},
        )
        self._owns_session = True
        logger.info("Host-fallback transport started")

    async def stop(self) -> None:
        """Close the HTTP session if this transport opened it."""
        if self.session is not None and self._owns_session:
            await self.session.close()
            logger.info("Host-fallback transport stopped")
        self.session = None

    async def __aenter__(self) -> "HostFallbackTransport":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    async def deliver(self, hosts: Sequence[str], request: RequestSpec) -> TransportResponse:
        """
        Send a request, falling back through hosts in order.

        Returns:
            The first response that is neither a transport error nor a 5xx

        Raises:
            ConfigurationError: empty host list
            HTTPStatusError: error status below 500 when error codes are not allowed
            TransportFailure: every host failed (the last failure is raised)
        """
        if not hosts:
            raise ConfigurationError("At least one host is required")

        if self.session is None:
            await self.start()

        continue_on_error_code = request.continue_on_error_code
        if continue_on_error_code is None:
            continue_on_error_code = self.settings.continue_on_error_code

        last_error: Optional[TransportFailure] = None

        for idx, host in enumerate(hosts):
            url = request.url_for(host)
            try:
                response = await self._send(host, url, request)
            except TransportFailure as e:
                last_error = e
                self._record_attempt("failure")
                logger.warning(
                    "Request to host failed",
                    url=url,
                    attempt=idx + 1,
                    hosts=len(hosts),
                    error=str(e),
                )
                if idx + 1 < len(hosts):
                    logger.info("Trying next host", host=hosts[idx + 1])
                continue

            logger.debug("Request returned", url=url, status=response.status, reason=response.reason)

            if not response.ok and not continue_on_error_code:
                self._record_attempt("error_status")
                raise HTTPStatusError(
                    f"Bad status code: {response.status} {response.reason} for '{host}'",
                    host=host,
                    status=response.status,
                )

            self._record_attempt("success")
            return response

        raise last_error  # type: ignore[misc]

    async def _send(self, host: str, url: str, request: RequestSpec) -> TransportResponse:
        """Single attempt against one host; failures surface as TransportFailure."""
        if self.session is None:
            raise TransportFailure(f"Transport is not started, cannot send to '{url}'", host=host)

        kwargs: Dict[str, Any] = {"headers": dict(request.headers)}
        if isinstance(request.body, (dict, list)):
            kwargs["json"] = request.body
        elif request.body is not None:
            kwargs["data"] = request.body
        if request.proxy is not None:
            kwargs["proxy"] = request.proxy.url
            kwargs["proxy_auth"] = request.proxy.auth
        if request.allow_self_signed_cert:
            kwargs["ssl"] = False
        if request.timeout_seconds is not None:
            kwargs["timeout"] = aiohttp.ClientTimeout(total=request.timeout_seconds)

        try:
            async with self.session.request(request.method, url, **kwargs) as response:
                body = await self._read_body(response)
                result = TransportResponse(
                    status=response.status,
                    reason=response.reason,
                    headers=dict(response.headers),
                    body=body,
                    host=host,
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportFailure(
                f"Error on attempt to send request to '{url}': {str(e) or type(e).__name__}",
                host=host,
            ) from e

        if result.status >= 500:
            raise TransportFailure(
                f"Bad status code: {result.status} {result.reason} for '{host}'",
                host=host,
                status=result.status,
            )
        return result

    @staticmethod
    async def _read_body(response: Any) -> Union[str, Any]:
        text = await response.text()
        if text and "json" in (response.content_type or ""):
            try:
                return json.loads(text)
            except json.JSONDecodeError:
                return text
        return text

    def _record_attempt(self, outcome: str) -> None:
        if self.metrics:
            self.metrics.record_transport_attempt(outcome)


# Global transport instance
_transport: Optional[HostFallbackTransport] = None


def get_transport() -> HostFallbackTransport:
    """Get or create global transport instance."""
    global _transport

    if _transport is None:
        _transport = HostFallbackTransport()

    return _transport
