"""Domain types for the weather alert pipeline."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, computed_field

from wxalert.core.exceptions import InvalidInput

# Severity thresholds on the Fahrenheit scale.
HEAT_THRESHOLD_F = 102.0
FREEZING_THRESHOLD_F = 32.0

# BigPanda ``check`` label shared by every weather alert.
WEATHER_CHECK = "Weather Check"


class Severity(StrEnum):
    """Alert status understood by the alerting platform."""

    OK = "ok"
    WARNING = "warning"
    CRITICAL = "critical"


def classify_severity(
    fahrenheit: float,
    has_precipitation: bool,
    condition: str | None,
) -> Severity:
    """Map an observation to a severity. First matching rule wins.

    1. Precipitation, heat at or above 102°F, or temperatures below freezing
       are ``critical`` regardless of the description.
    2. Any description mentioning "sunny" is ``ok``.
    3. Everything else is a ``warning``.
    """
    if has_precipitation or fahrenheit >= HEAT_THRESHOLD_F or fahrenheit < FREEZING_THRESHOLD_F:
        return Severity.CRITICAL
    if condition and "sunny" in condition.lower():
        return Severity.OK
    return Severity.WARNING


# ── Provider observation ────────────────────────────────────────


class Reading(BaseModel):
    """A single temperature value with its unit."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    value: float = Field(alias="Value")
    unit: str = Field(default="", alias="Unit")


class Temperature(BaseModel):
    """Temperature in both unit systems."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    metric: Reading = Field(alias="Metric")
    imperial: Reading = Field(alias="Imperial")


class Observation(BaseModel):
    """One AccuWeather current-conditions entry."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    weather_text: str = Field(default="", alias="WeatherText")
    has_precipitation: bool = Field(default=False, alias="HasPrecipitation")
    precipitation_type: str | None = Field(default=None, alias="PrecipitationType")
    link: str = Field(default="", alias="Link")
    observed_at: str | None = Field(default=None, alias="LocalObservationDateTime")
    epoch_time: int | None = Field(default=None, alias="EpochTime")
    temperature: Temperature = Field(alias="Temperature")

    @classmethod
    def from_response(cls, raw: Any) -> Observation:
        """Build an Observation from a current-conditions response body.

        The endpoint answers with a single-element array; only the first
        entry is used. A bare mapping is accepted as well.

        Raises:
            InvalidInput: if *raw* is absent, empty, or has no usable fields.
        """
        if isinstance(raw, Observation):
            return raw
        if isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
            if not raw:
                raise InvalidInput("Current conditions response is empty")
            raw = raw[0]
        if not raw or not isinstance(raw, Mapping):
            raise InvalidInput("Please provide a valid response from the current conditions endpoint")
        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            raise InvalidInput(f"Unrecognized current conditions payload: {exc.error_count()} error(s)") from exc


# ── Alert record & wire payload ─────────────────────────────────


class AlertRecord(BaseModel):
    """Normalised, location-tagged view of one observation.

    ``severity`` is derived from the readings and never stored.
    """

    model_config = ConfigDict(frozen=True)

    location_name: str = Field(min_length=1)
    location_id: str = Field(min_length=1)
    condition: str = ""
    precipitation: bool = False
    precipitation_type: str | None = None
    link: str = ""
    temperature_celsius: float
    temperature_fahrenheit: float

    @computed_field  # type: ignore[prop-decorator]
    @property
    def severity(self) -> Severity:
        return classify_severity(
            self.temperature_fahrenheit,
            self.precipitation,
            self.condition,
        )


class AlertPayload(BaseModel):
    """BigPanda alert body as carried on the queue."""

    host: str
    status: Severity
    check: str = WEATHER_CHECK
    incident_identifier: str
    condition: str = ""
    precipitation: bool = False
    precipitation_type: str | None = None
    link: str = ""
    temperature_celsius: float | None = None
    temperature_fahrenheit: float | None = None

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, body: str) -> AlertPayload:
        """Parse a queued message body.

        Raises:
            InvalidInput: if the body is not a valid alert payload.
        """
        try:
            return cls.model_validate_json(body)
        except ValidationError as exc:
            raise InvalidInput(f"Malformed alert payload: {exc.error_count()} error(s)") from exc


class BatchResult(BaseModel):
    """Outcome of producing one location's alert."""

    location_name: str
    location_id: str
    message_id: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
