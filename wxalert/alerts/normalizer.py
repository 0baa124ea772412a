"""Observation normalizer — raw current conditions into an AlertRecord."""

from __future__ import annotations

from typing import Any

from wxalert.core.exceptions import InvalidInput
from wxalert.core.types import AlertRecord, Observation


def require_text(value: str | None, what: str) -> str:
    """Return *value* stripped, or raise InvalidInput if it is blank."""
    if value is None or not isinstance(value, str) or value.strip() == "":
        raise InvalidInput(f"Please provide a valid {what}")
    return value.strip()


def normalize(location_name: str, location_id: str, observation: Any) -> AlertRecord:
    """Convert one observation into a severity-tagged AlertRecord.

    Args:
        location_name: Display name, used as the alert host. Cannot be blank.
        location_id: Provider location identifier. Cannot be blank.
        observation: An Observation, a raw current-conditions mapping, or the
            single-element array the endpoint returns.

    Raises:
        InvalidInput: on blank location fields or an unusable observation.
    """
    name = require_text(location_name, "location name")
    loc_id = require_text(location_id, "location ID")
    if observation is None:
        raise InvalidInput("Please provide a valid response from the current conditions endpoint")
    obs = Observation.from_response(observation)

    return AlertRecord(
        location_name=name,
        location_id=loc_id,
        condition=obs.weather_text,
        precipitation=obs.has_precipitation,
        precipitation_type=obs.precipitation_type,
        link=obs.link,
        temperature_celsius=obs.temperature.metric.value,
        temperature_fahrenheit=obs.temperature.imperial.value,
    )
