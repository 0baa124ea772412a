"""AccuWeather client — fetches current conditions for a location id."""

from __future__ import annotations

from types import TracebackType
from typing import Any

import httpx
import structlog

from wxalert.core.config import WeatherConfig
from wxalert.core.exceptions import (
    ConfigurationError,
    InvalidInput,
    UpstreamConnectionError,
    UpstreamHTTPError,
    parse_error_message,
)
from wxalert.core.types import Observation

logger = structlog.stdlib.get_logger()

SOURCE = "AccuWeather API"


def _error_detail(response: httpx.Response) -> object:
    """AccuWeather error bodies look like ``{"Code": ..., "Message": ...}``."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("Message")
    return None


class AccuWeatherClient:
    """Thin async wrapper around the current-conditions endpoint.

    Usage::

        async with AccuWeatherClient(settings.weather) as client:
            observation = await client.fetch_current_conditions("348308")
    """

    def __init__(self, config: WeatherConfig) -> None:
        api_key = config.api_key.get_secret_value()
        if not api_key.strip():
            raise ConfigurationError("An API key is required to use the AccuWeather service")
        self._config = config
        self._api_key = api_key
        self._http: httpx.AsyncClient | None = None

    @property
    def connected(self) -> bool:
        """Whether the HTTP client is active."""
        return self._http is not None and not self._http.is_closed

    async def connect(self) -> None:
        """Create the httpx async client."""
        if self.connected:
            return
        self._http = httpx.AsyncClient(
            base_url=self._config.base_url,
            timeout=httpx.Timeout(self._config.timeout_secs),
        )

    async def close(self) -> None:
        """Close the httpx async client."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def fetch_current_conditions(self, location_id: str) -> Observation:
        """GET current conditions for *location_id*.

        Raises:
            InvalidInput: blank location id, or an unusable response body.
            UpstreamHTTPError: non-2xx answer from AccuWeather.
            UpstreamConnectionError: network failure or timeout.
        """
        if not location_id or not location_id.strip():
            raise InvalidInput("Please provide a location ID to fetch weather conditions")
        if self._http is None:
            raise UpstreamConnectionError(SOURCE, "HTTP client not connected")

        try:
            response = await self._http.get(
                f"/currentconditions/v1/{location_id.strip()}",
                params={"apikey": self._api_key},
            )
        except httpx.HTTPError as exc:
            raise UpstreamConnectionError(SOURCE, f"{SOURCE} request failed: {exc!r}") from exc

        if response.is_error:
            message = parse_error_message(
                SOURCE,
                response.status_code,
                _error_detail(response),
                body_text=response.text,
                reason=response.reason_phrase,
            )
            logger.warning(
                "accuweather_http_error",
                location_id=location_id,
                status=response.status_code,
                message=message,
            )
            raise UpstreamHTTPError(SOURCE, response.status_code, message)

        try:
            body: Any = response.json()
        except ValueError as exc:
            raise InvalidInput(f"{SOURCE} returned invalid JSON") from exc

        return Observation.from_response(body)

    async def __aenter__(self) -> AccuWeatherClient:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
