"""
Pytest configuration and shared fixtures.

Contains common test fixtures and setup for all test modules.
"""

import json
from typing import Any, Callable, Dict, Generator, List, Optional, Tuple, Union
from unittest.mock import patch
from urllib.parse import urlparse

import pytest
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry

from telestack.config import get_settings, reload_settings
from telestack.consumers.default_pull import get_pull_store
from telestack.core.data_filter import DataFilter
from telestack.core.metrics import MetricsCollector
from telestack.models.consumer import ConsumerConfig, ConsumerRecord


class FakeResponse:
    """Stand-in for aiohttp.ClientResponse used as an async context manager."""

    def __init__(
        self,
        status: int = 200,
        reason: str = "OK",
        body: str = "",
        content_type: str = "application/json",
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.status = status
        self.reason = reason
        self.content_type = content_type
        self.headers = headers or {"Content-Type": content_type}
        self._body = body

    async def text(self) -> str:
        return self._body

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, *exc_info: Any) -> bool:
        return False


class FakeSession:
    """Stand-in for aiohttp.ClientSession answering per host."""

    def __init__(self, responses: Dict[str, Union[FakeResponse, Exception]]) -> None:
        self.responses = responses
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []
        self.closed = False

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append((method, url, kwargs))
        outcome = self.responses[urlparse(url).hostname]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    @property
    def hosts_called(self) -> List[str]:
        return [urlparse(url).hostname for _, url, _ in self.calls]

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_session() -> Callable[..., FakeSession]:
    """Factory for fake HTTP sessions keyed by host name."""
    return FakeSession


@pytest.fixture
def fake_response() -> Callable[..., FakeResponse]:
    """Factory for fake HTTP responses."""
    return FakeResponse


@pytest.fixture
def metrics() -> MetricsCollector:
    """Metrics collector on its own registry."""
    return MetricsCollector(CollectorRegistry())


@pytest.fixture
def make_record() -> Callable[..., ConsumerRecord]:
    """Factory for consumer records with sensible defaults."""

    def _make(
        consumer_id: str,
        deliver: Callable[..., Any],
        actions: Optional[List[Dict[str, Any]]] = None,
        categories: Optional[List[str]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        **extra: Any,
    ) -> ConsumerRecord:
        config = ConsumerConfig(
            type="consumerType",
            traceName=consumer_id,
            actions=actions or [],
            categories=categories,
            **extra,
        )
        return ConsumerRecord(
            id=consumer_id,
            config=config,
            filter=DataFilter.from_config(config),
            deliver=deliver,
            metadata=metadata or {},
        )

    return _make


@pytest.fixture
def system_info() -> Dict[str, Any]:
    """Sample multi-category telemetry document."""
    return {
        "system": {
            "hostname": "bigip1.example.com",
            "version": "17.1.0",
            "cpu": 12,
        },
        "virtualServers": {
            "/Common/app_vs": {"availabilityState": "available", "clientside.curConns": 3},
            "/Common/web_vs": {"availabilityState": "offline", "clientside.curConns": 0},
            "/Common/Shared/telemetry": {"availabilityState": "available", "clientside.curConns": 1},
        },
        "pools": {
            "/Common/app_pool": {"members": 2},
            "/Common/Shared/telemetry_pool": {"members": 1},
        },
        "telemetryEventCategory": "systemInfo",
    }


@pytest.fixture
def test_config() -> Dict[str, Any]:
    """Consumer declaration used by the API tests."""
    return {
        "Pull_Consumer": {
            "type": "default_pull",
            "actions": [{"setTag": {"tag": "v"}}],
        },
        "Filtered_Pull": {
            "type": "default_pull",
            "categories": ["system"],
            "maxEvents": 2,
        },
        "Log_Consumer": {
            "type": "default",
            "actions": [{"includeData": {}, "locations": {"system": True}}],
        },
        "Broken_Consumer": {
            "type": "default",
            "actions": [{"includeData": {}}],
        },
    }


@pytest.fixture
def test_client(
    test_config: Dict[str, Any],
    monkeypatch: pytest.MonkeyPatch,
) -> Generator[TestClient, None, None]:
    """FastAPI test client with test configuration."""
    monkeypatch.setenv("TELESTACK_CONSUMERS", json.dumps(test_config))
    get_pull_store().clear()

    # Mock the config file so only the test declaration is used
    with patch('telestack.config.load_config_file') as mock_load:
        mock_load.return_value = {}
        reload_settings()

        from telestack.main import create_app

        with TestClient(create_app()) as client:
            yield client

    get_pull_store().clear()
    get_settings.cache_clear()
