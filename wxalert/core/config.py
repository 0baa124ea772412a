"""Pydantic settings loaded from YAML configuration with environment overrides."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, SecretStr

from wxalert.core.exceptions import ConfigurationError

_settings: Settings | None = None

_DEFAULT_CONFIG_PATH = Path("config/settings.yaml")

# Retry budget stamped on freshly produced messages.
DEFAULT_RETRY_BUDGET = 5

# Environment variable → (section, field).
_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "ACCUWEATHER_API_KEY": ("weather", "api_key"),
    "BIGPANDA_BEARER_TOKEN": ("alerting", "bearer_token"),
    "BIGPANDA_APP_KEY": ("alerting", "app_key"),
    "AWS_SQS_URL": ("queue", "primary_url"),
    "AWS_DLQ_URL": ("queue", "dead_letter_url"),
    "AWS_REGION": ("queue", "region"),
    "SQS_ENDPOINT_URL": ("queue", "endpoint_url"),
    "PORT": ("server", "port"),
    "LOG_LEVEL": ("logging", "level"),
}


class WeatherConfig(BaseModel):
    """AccuWeather current-conditions API configuration."""

    base_url: str = "https://dataservice.accuweather.com"
    api_key: SecretStr = SecretStr("")
    timeout_secs: float = 10.0


class AlertingConfig(BaseModel):
    """BigPanda alerts API configuration."""

    base_url: str = "https://api.bigpanda.io"
    bearer_token: SecretStr = SecretStr("")
    app_key: SecretStr = SecretStr("")
    timeout_secs: float = 10.0


class QueueConfig(BaseModel):
    """SQS queue configuration for the primary and dead-letter queues."""

    region: str = "us-east-2"
    primary_url: str = ""
    dead_letter_url: str = ""
    endpoint_url: str | None = None
    delay_secs: int = 10
    retry_budget: int = DEFAULT_RETRY_BUDGET
    wait_time_secs: int = 20
    max_messages: int = 10
    visibility_timeout_secs: int = 30
    consume_dead_letter: bool = False
    error_backoff_secs: float = 5.0


class ServerConfig(BaseModel):
    """Inbound HTTP listener configuration."""

    host: str = "0.0.0.0"
    port: int = 3000


class ProducerConfig(BaseModel):
    """Locations to poll, keyed by display name."""

    locations: dict[str, list[str]] = {}
    poll_interval_secs: float | None = None

    def pairs(self) -> list[tuple[str, str]]:
        """Flatten to ``(location_name, location_id)`` pairs."""
        return [
            (name, location_id)
            for name, location_ids in self.locations.items()
            for location_id in location_ids
        ]


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "json"


class Settings(BaseModel):
    """Root settings container."""

    weather: WeatherConfig = WeatherConfig()
    alerting: AlertingConfig = AlertingConfig()
    queue: QueueConfig = QueueConfig()
    server: ServerConfig = ServerConfig()
    producer: ProducerConfig = ProducerConfig()
    logging: LoggingConfig = LoggingConfig()


def _apply_env_overrides(data: dict[str, Any], environ: Mapping[str, str]) -> None:
    for var, (section, key) in _ENV_OVERRIDES.items():
        value = environ.get(var)
        if value is None or value.strip() == "":
            continue
        section_data = data.get(section)
        if not isinstance(section_data, dict):
            section_data = {}
            data[section] = section_data
        section_data[key] = value


def load_settings(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Load settings from a YAML file, overlay env vars, and cache globally.

    Args:
        path: Path to YAML config. Defaults to config/settings.yaml.
        environ: Environment mapping. Defaults to ``os.environ``.

    Returns:
        Parsed Settings instance.
    """
    global _settings  # noqa: PLW0603

    config_path = Path(path) if path else _DEFAULT_CONFIG_PATH

    data: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f)
            if isinstance(raw, dict):
                data = raw

    _apply_env_overrides(data, os.environ if environ is None else environ)

    _settings = Settings(**data)
    return _settings


def get_settings() -> Settings:
    """Return the cached settings, loading defaults if not yet loaded."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Reset the cached settings (useful for testing)."""
    global _settings  # noqa: PLW0603
    _settings = None


def require_settings(settings: Settings) -> Settings:
    """Fail fast when credentials or queue addresses are missing.

    Raises:
        ConfigurationError: naming every missing value.
    """
    required: dict[str, str] = {
        "weather.api_key (ACCUWEATHER_API_KEY)": settings.weather.api_key.get_secret_value(),
        "alerting.bearer_token (BIGPANDA_BEARER_TOKEN)": (
            settings.alerting.bearer_token.get_secret_value()
        ),
        "alerting.app_key (BIGPANDA_APP_KEY)": settings.alerting.app_key.get_secret_value(),
        "queue.primary_url (AWS_SQS_URL)": settings.queue.primary_url,
        "queue.dead_letter_url (AWS_DLQ_URL)": settings.queue.dead_letter_url,
    }
    missing = [name for name, value in required.items() if not value.strip()]
    if missing:
        raise ConfigurationError(
            "Missing required configuration: " + ", ".join(missing)
        )
    return settings
