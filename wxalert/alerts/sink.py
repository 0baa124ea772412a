"""Alert sinks — delivery of formatted alerts to the monitoring platform."""

from __future__ import annotations

import abc
import asyncio
from typing import Any

import aiohttp
import structlog

from wxalert.core.config import AlertingConfig
from wxalert.core.exceptions import (
    ConfigurationError,
    InvalidInput,
    UpstreamConnectionError,
    UpstreamHTTPError,
    parse_error_message,
)
from wxalert.core.types import AlertPayload

logger = structlog.get_logger(__name__)

SOURCE = "BigPanda API"

# Fields BigPanda rejects an alert without.
_REQUIRED_FIELDS = ("host", "status")


class AlertSink(abc.ABC):
    """Base class for alert delivery targets."""

    @abc.abstractmethod
    async def send(self, payload: AlertPayload) -> None:
        """Deliver one alert. Raises on failure."""

    @abc.abstractmethod
    async def close(self) -> None:
        """Release resources (HTTP sessions, etc.)."""


def _error_detail(body: Any) -> object:
    """BigPanda error bodies look like ``{"response": {"status": ...}}``."""
    if isinstance(body, dict):
        response = body.get("response")
        if isinstance(response, dict):
            return response.get("status")
    return None


class BigPandaSink(AlertSink):
    """Posts alerts to the BigPanda v2 alerts API."""

    def __init__(self, config: AlertingConfig) -> None:
        token = config.bearer_token.get_secret_value()
        app_key = config.app_key.get_secret_value()
        if not token.strip():
            raise ConfigurationError("A bearer token is required to use the BigPanda service")
        if not app_key.strip():
            raise ConfigurationError("An app key is required to use the BigPanda service")
        self._url = f"{config.base_url.rstrip('/')}/data/v2/alerts"
        self._token = token
        self._app_key = app_key
        self._timeout = aiohttp.ClientTimeout(total=config.timeout_secs)
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    def build_body(self, payload: AlertPayload) -> dict[str, Any]:
        """Validate required fields and attach the integration app key.

        Raises:
            InvalidInput: if ``host`` or ``status`` is blank.
        """
        body = payload.model_dump(mode="json")
        for name in _REQUIRED_FIELDS:
            value = body.get(name)
            if not isinstance(value, str) or not value.strip():
                raise InvalidInput(f'Alert JSON missing required field: "{name}"')
        body["app_key"] = self._app_key
        return body

    async def send(self, payload: AlertPayload) -> None:
        """POST *payload* to BigPanda.

        Raises:
            InvalidInput: required fields missing; nothing is sent.
            UpstreamHTTPError: BigPanda answered with a non-2xx status.
            UpstreamConnectionError: network failure or timeout.
        """
        body = self.build_body(payload)
        headers = {"Authorization": f"Bearer {self._token}"}

        try:
            session = self._get_session()
            async with session.post(self._url, json=body, headers=headers) as resp:
                if 200 <= resp.status < 300:
                    logger.info(
                        "bigpanda_alert_sent",
                        host=payload.host,
                        status=payload.status.value,
                        incident_identifier=payload.incident_identifier,
                    )
                    return
                text = await resp.text()
                try:
                    parsed: Any = await resp.json(content_type=None)
                except ValueError:
                    parsed = None
                message = parse_error_message(
                    SOURCE,
                    resp.status,
                    _error_detail(parsed),
                    body_text=text,
                    reason=resp.reason or "",
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise UpstreamConnectionError(SOURCE, f"{SOURCE} request failed: {exc!r}") from exc

        logger.warning(
            "bigpanda_send_failed",
            status=resp.status,
            message=message[:200],
            incident_identifier=payload.incident_identifier,
        )
        raise UpstreamHTTPError(SOURCE, resp.status, message)

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
