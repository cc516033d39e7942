"""
Tests for the consumer registry.
"""

import pytest

from telestack.config import TracerSettings
from telestack.consumers import default, default_pull
from telestack.core.exceptions import ConfigurationError
from telestack.core.registry import ConsumerRegistry, build_record
from telestack.models.actions import SetTagAction


class TestBuildRecord:
    """Test building records from declarations."""

    def test_valid_declaration(self):
        """Test a declaration becomes a ready record."""
        record = build_record(
            "My_Consumer",
            {"type": "default", "actions": [{"setTag": {"tag": "v"}}], "categories": ["system"]},
            metadata={"hostname": "telemetry"},
            tracer_settings=TracerSettings(),
        )

        assert record.id == "My_Consumer"
        assert record.deliver is default.deliver
        assert record.config.trace_name == "My_Consumer"
        assert isinstance(record.config.actions[0], SetTagAction)
        assert record.filter.categories == frozenset({"system"})
        assert record.metadata == {"hostname": "telemetry"}
        assert record.tracer is None

    def test_trace_enabled(self, tmp_path):
        """Test trace=true writes into the tracer directory."""
        record = build_record(
            "My_Consumer",
            {"type": "default", "trace": True},
            tracer_settings=TracerSettings(directory=tmp_path),
        )

        assert record.tracer is not None
        assert record.tracer.path == tmp_path / "My_Consumer.json"

    def test_disabled(self):
        """Test disabled consumers are not built."""
        assert build_record("Off", {"type": "default", "enable": False}, tracer_settings=TracerSettings()) is None

    def test_unknown_type(self):
        """Test unknown consumer types are rejected."""
        with pytest.raises(ConfigurationError) as exc_info:
            build_record("Bad", {"type": "Nonexistent"}, tracer_settings=TracerSettings())

        assert "Nonexistent" in str(exc_info.value)

    def test_invalid_action(self):
        """Test invalid actions reject the whole consumer."""
        with pytest.raises(ConfigurationError):
            build_record(
                "Bad",
                {"type": "default", "actions": [{"includeData": {}}]},
                tracer_settings=TracerSettings(),
            )


class TestConsumerRegistry:
    """Test the registry snapshot."""

    def test_load_skips_invalid(self):
        """Test invalid and disabled consumers are skipped, the rest load."""
        registry = ConsumerRegistry()
        records = registry.load(
            {
                "Good": {"type": "default"},
                "Bad": {"type": "Nonexistent"},
                "Off": {"type": "default", "enable": False},
                "Pull": {"type": "default_pull"},
            },
            tracer_settings=TracerSettings(),
        )

        assert [r.id for r in records] == ["Good", "Pull"]
        assert registry.get("Pull").deliver is default_pull.deliver
        assert registry.get("Bad") is None

    def test_empty_registry(self):
        """Test an empty registry has no snapshot."""
        assert ConsumerRegistry().get_consumers() is None

    def test_snapshot_is_stable(self):
        """Test reloading does not change a snapshot already handed out."""
        registry = ConsumerRegistry()
        registry.load({"First": {"type": "default"}}, tracer_settings=TracerSettings())
        snapshot = registry.get_consumers()

        registry.load({"Second": {"type": "default"}}, tracer_settings=TracerSettings())

        assert [r.id for r in snapshot] == ["First"]
        assert [r.id for r in registry.get_consumers()] == ["Second"]

    def test_register_replaces(self):
        """Test registering an existing id replaces it."""
        registry = ConsumerRegistry()
        first = build_record("A", {"type": "default"}, tracer_settings=TracerSettings())
        second = build_record("A", {"type": "default_pull"}, tracer_settings=TracerSettings())

        registry.register(first)
        registry.register(second)

        assert registry.get_consumers() == (second,)
        registry.clear()
        assert registry.get_consumers() is None
