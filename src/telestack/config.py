"""
Configuration management with hot-reload capability.

Uses Pydantic Settings for environment variable handling and validation.
The consumer declaration is read from the same YAML file.
"""

import json
import os
import yaml
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


def load_config_file(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML file."""
    if config_path is None:
        config_path = os.environ.get("TELESTACK_CONFIG_FILE")

    if config_path is None:
        # Look for config.yaml in common locations
        possible_paths = [
            "config.yaml",  # Current directory
            "../../config.yaml",  # Project root from src/telestack
        ]

        for path in possible_paths:
            if os.path.exists(path):
                config_path = path
                break
        else:
            return {}

    if os.path.exists(config_path):
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f) or {}
            return config_data
    return {}


def _parse_json_value(v: Any, expected: type) -> Any:
    if isinstance(v, str):
        try:
            parsed = json.loads(v)
        except json.JSONDecodeError:
            return expected()
        return parsed if isinstance(parsed, expected) else expected()
    return v


class ForwarderSettings(BaseSettings):
    """Forwarder dispatch configuration."""

    concurrent_dispatch: bool = Field(default=True, description="Dispatch consumers concurrently")

    class Config:
        env_prefix = "TELESTACK_FORWARDER_"


class TransportSettings(BaseSettings):
    """Host-fallback transport configuration."""

    timeout_seconds: int = Field(default=30, description="Request timeout per host")
    user_agent: str = Field(default="telestack-transport/1.0", description="User-Agent header")
    continue_on_error_code: bool = Field(
        default=True,
        description="Return non-2xx/3xx responses below 500 instead of raising",
    )

    class Config:
        env_prefix = "TELESTACK_TRANSPORT_"


class MaskingSettings(BaseSettings):
    """Secret redaction configuration for traced output."""

    secret_keys: List[str] = Field(
        default=["passphrase", "password", "authorization", "secret", "api_key", "sharedkey"],
        description="Keys whose values are always redacted in traces"
    )
    placeholder: str = Field(default="*****", description="Replacement for redacted values")

    @field_validator("secret_keys", mode="before")
    def parse_secret_keys(cls, v: Any) -> Any:
        """Parse secret keys from JSON string if needed."""
        return _parse_json_value(v, list)

    class Config:
        env_prefix = "TELESTACK_MASKING_"


class TracerSettings(BaseSettings):
    """Tracer sink configuration."""

    directory: Optional[Path] = Field(default=None, description="Directory for trace files")
    max_records: int = Field(default=10, description="Snapshots kept per tracer")

    class Config:
        env_prefix = "TELESTACK_TRACER_"


class Settings(BaseSettings):
    """Main application settings."""

    # Server configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Log level")

    # Component settings
    forwarder: ForwarderSettings = Field(default_factory=ForwarderSettings)
    transport: TransportSettings = Field(default_factory=TransportSettings)
    masking: MaskingSettings = Field(default_factory=MaskingSettings)
    tracer: TracerSettings = Field(default_factory=TracerSettings)

    # Consumer declaration: name -> raw consumer config
    consumers: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    @field_validator("consumers", mode="before")
    def parse_consumers(cls, v: Any) -> Any:
        """Parse the consumer declaration from JSON string if needed."""
        return _parse_json_value(v, dict)

    class Config:
        env_prefix = "TELESTACK_"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance with config file and env support."""

    # Load config file data
    config_data = load_config_file()

    # Config file provides defaults, env vars override
    if config_data:
        _set_env_from_config(config_data)

    settings = Settings()
    return settings


def _set_env_from_config(config_data: Dict[str, Any]) -> None:
    """Set environment variables from config file if not already set."""
    mappings = {
        ("server", "host"): "TELESTACK_HOST",
        ("server", "port"): "TELESTACK_PORT",
        ("server", "debug"): "TELESTACK_DEBUG",
        ("server", "log_level"): "TELESTACK_LOG_LEVEL",
        ("forwarder", "concurrent_dispatch"): "TELESTACK_FORWARDER_CONCURRENT_DISPATCH",
        ("transport", "timeout_seconds"): "TELESTACK_TRANSPORT_TIMEOUT_SECONDS",
        ("transport", "user_agent"): "TELESTACK_TRANSPORT_USER_AGENT",
        ("transport", "continue_on_error_code"): "TELESTACK_TRANSPORT_CONTINUE_ON_ERROR_CODE",
        ("masking", "placeholder"): "TELESTACK_MASKING_PLACEHOLDER",
        ("tracer", "directory"): "TELESTACK_TRACER_DIRECTORY",
        ("tracer", "max_records"): "TELESTACK_TRACER_MAX_RECORDS",
    }

    for (section, key), env_var in mappings.items():
        if env_var not in os.environ:
            value = (config_data.get(section) or {}).get(key)
            if value is not None:
                os.environ[env_var] = str(value)

    # Structured values travel as JSON strings
    if "TELESTACK_MASKING_SECRET_KEYS" not in os.environ:
        secret_keys = (config_data.get("masking") or {}).get("secret_keys")
        if secret_keys:
            os.environ["TELESTACK_MASKING_SECRET_KEYS"] = json.dumps(secret_keys)

    if "TELESTACK_CONSUMERS" not in os.environ:
        consumers = config_data.get("consumers")
        if consumers:
            os.environ["TELESTACK_CONSUMERS"] = json.dumps(consumers)


def reload_settings() -> Settings:
    """Reload settings (clears cache)."""
    get_settings.cache_clear()
    return get_settings()
