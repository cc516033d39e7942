"""
Tests for the host-fallback transport.

Tests ordered fallback on 5xx and connection errors, error status
handling, request construction and header normalization.
"""

import aiohttp
import pytest

from telestack.config import TransportSettings
from telestack.core.exceptions import ConfigurationError, HTTPStatusError, TransportFailure
from telestack.core.transport import HostFallbackTransport, ProxySpec, RequestSpec, process_headers


def make_transport(session, metrics=None, continue_on_error_code=True):
    settings = TransportSettings(continue_on_error_code=continue_on_error_code)
    return HostFallbackTransport(settings=settings, session=session, metrics=metrics)


class TestFallback:
    """Test ordered host fallback."""

    @pytest.mark.asyncio
    async def test_first_host_succeeds(self, fake_session, fake_response):
        """Test later hosts are never tried after a success."""
        session = fake_session({
            "h1": fake_response(200, body='{"ok": true}'),
            "h2": fake_response(200),
        })

        response = await make_transport(session).deliver(["h1", "h2"], RequestSpec(body={"a": 1}))

        assert session.hosts_called == ["h1"]
        assert response.host == "h1"
        assert response.status == 200
        assert response.body == {"ok": True}

    @pytest.mark.asyncio
    async def test_5xx_falls_back(self, fake_session, fake_response):
        """Test a 5xx response moves on to the next host."""
        session = fake_session({
            "h1": fake_response(503, reason="Service Unavailable"),
            "h2": fake_response(200, body="accepted", content_type="text/plain"),
        })

        response = await make_transport(session).deliver(["h1", "h2"], RequestSpec())

        assert session.hosts_called == ["h1", "h2"]
        assert response.host == "h2"
        assert response.body == "accepted"

    @pytest.mark.asyncio
    async def test_connection_error_falls_back(self, fake_session, fake_response):
        """Test transport errors move on to the next host."""
        session = fake_session({
            "h1": aiohttp.ClientConnectionError("connection refused"),
            "h2": fake_response(200),
        })

        response = await make_transport(session).deliver(["h1", "h2"], RequestSpec())

        assert response.host == "h2"

    @pytest.mark.asyncio
    async def test_all_hosts_fail(self, fake_session, fake_response):
        """Test the last failure is raised when every host fails."""
        session = fake_session({
            "h1": aiohttp.ClientConnectionError("connection refused"),
            "h2": fake_response(500, reason="Internal Server Error"),
        })

        with pytest.raises(TransportFailure) as exc_info:
            await make_transport(session).deliver(["h1", "h2"], RequestSpec())

        assert exc_info.value.host == "h2"
        assert exc_info.value.status == 500
        assert session.hosts_called == ["h1", "h2"]

    @pytest.mark.asyncio
    async def test_each_host_tried_once(self, fake_session, fake_response):
        """Test attempts are bounded by the host list."""
        session = fake_session({"h1": fake_response(502)})

        with pytest.raises(TransportFailure):
            await make_transport(session).deliver(["h1"], RequestSpec())

        assert session.hosts_called == ["h1"]

    @pytest.mark.asyncio
    async def test_empty_host_list(self, fake_session):
        """Test an empty host list is a configuration error."""
        with pytest.raises(ConfigurationError):
            await make_transport(fake_session({})).deliver([], RequestSpec())

    @pytest.mark.asyncio
    async def test_send_without_session(self):
        """Test sending on a stopped transport raises TransportFailure."""
        transport = HostFallbackTransport(settings=TransportSettings())

        with pytest.raises(TransportFailure) as exc_info:
            await transport._send("h1", "https://h1/", RequestSpec())

        assert "not started" in str(exc_info.value)
        assert exc_info.value.host == "h1"


class TestErrorStatus:
    """Test responses below 500 that are not successful."""

    @pytest.mark.asyncio
    async def test_4xx_returned(self, fake_session, fake_response):
        """Test a 4xx response is returned without fallback."""
        session = fake_session({
            "h1": fake_response(404, reason="Not Found"),
            "h2": fake_response(200),
        })

        response = await make_transport(session).deliver(["h1", "h2"], RequestSpec())

        assert response.status == 404
        assert not response.ok
        assert session.hosts_called == ["h1"]

    @pytest.mark.asyncio
    async def test_4xx_raises_without_continue(self, fake_session, fake_response):
        """Test error codes raise when continue_on_error_code is off."""
        session = fake_session({
            "h1": fake_response(401, reason="Unauthorized"),
            "h2": fake_response(200),
        })
        transport = make_transport(session, continue_on_error_code=False)

        with pytest.raises(HTTPStatusError) as exc_info:
            await transport.deliver(["h1", "h2"], RequestSpec())

        assert exc_info.value.status == 401
        assert "401" in str(exc_info.value)
        assert session.hosts_called == ["h1"]

    @pytest.mark.asyncio
    async def test_request_overrides_settings(self, fake_session, fake_response):
        """Test the per-request flag wins over the transport default."""
        session = fake_session({"h1": fake_response(400, reason="Bad Request")})
        transport = make_transport(session, continue_on_error_code=True)

        with pytest.raises(HTTPStatusError):
            await transport.deliver(["h1"], RequestSpec(continue_on_error_code=False))


class TestRequest:
    """Test request construction."""

    @pytest.mark.asyncio
    async def test_url_and_json_body(self, fake_session, fake_response):
        """Test URL parts and JSON body."""
        session = fake_session({"collector.example.com": fake_response(200)})
        request = RequestSpec(
            uri="ingest",
            method="PUT",
            headers={"Content-Type": "application/json"},
            body={"a": 1},
            port=8443,
        )

        await make_transport(session).deliver(["collector.example.com"], request)

        method, url, kwargs = session.calls[0]
        assert method == "PUT"
        assert url == "https://collector.example.com:8443/ingest"
        assert kwargs["json"] == {"a": 1}
        assert kwargs["headers"] == {"Content-Type": "application/json"}
        assert "ssl" not in kwargs

    @pytest.mark.asyncio
    async def test_raw_body_proxy_and_self_signed(self, fake_session, fake_response):
        """Test raw bodies, proxy settings and certificate checks."""
        session = fake_session({"h1": fake_response(200)})
        request = RequestSpec(
            body="line one\nline two",
            protocol="http",
            proxy=ProxySpec(host="proxy.example.com", port=3128, username="user", passphrase="pass"),
            allow_self_signed_cert=True,
        )

        await make_transport(session).deliver(["h1"], request)

        _, url, kwargs = session.calls[0]
        assert url == "http://h1/"
        assert kwargs["data"] == "line one\nline two"
        assert kwargs["proxy"] == "https://proxy.example.com:3128"
        assert kwargs["proxy_auth"] == aiohttp.BasicAuth("user", "pass")
        assert kwargs["ssl"] is False

    @pytest.mark.asyncio
    async def test_attempts_recorded(self, fake_session, fake_response, metrics):
        """Test each host attempt is counted by outcome."""
        session = fake_session({"h1": fake_response(503), "h2": fake_response(200)})

        await make_transport(session, metrics=metrics).deliver(["h1", "h2"], RequestSpec())

        registry = metrics.registry
        assert registry.get_sample_value("transport_attempts_total", {"outcome": "failure"}) == 1.0
        assert registry.get_sample_value("transport_attempts_total", {"outcome": "success"}) == 1.0


class TestProxySpec:
    """Test proxy declarations."""

    def test_from_config(self):
        """Test defaults of a proxy declaration."""
        proxy = ProxySpec.from_config({"host": "proxy.example.com"})

        assert proxy.protocol == "https"
        assert proxy.url == "https://proxy.example.com"
        assert proxy.auth is None

    def test_empty_config(self):
        """Test no declaration means no proxy."""
        assert ProxySpec.from_config(None) is None
        assert ProxySpec.from_config({}) is None


class TestProcessHeaders:
    """Test header normalization."""

    def test_list_to_mapping(self):
        """Test name/value pairs become a mapping."""
        headers = [
            {"name": "Content-Type", "value": "application/json"},
            {"name": "x-api-key", "value": "secret"},
        ]
        assert process_headers(headers) == {
            "Content-Type": "application/json",
            "x-api-key": "secret",
        }

    def test_non_list(self):
        """Test anything but a list yields an empty mapping."""
        assert process_headers(None) == {}
        assert process_headers({"Content-Type": "application/json"}) == {}
        assert process_headers("header") == {}
