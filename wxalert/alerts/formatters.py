"""Pure functions that turn AlertRecords into BigPanda alert payloads."""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable

from wxalert.alerts.normalizer import require_text
from wxalert.core.exceptions import InvalidInput
from wxalert.core.types import WEATHER_CHECK, AlertPayload, AlertRecord

# Zero-argument callable producing the incident identifier suffix.
SuffixSource = Callable[[], str]


def random_suffix() -> str:
    """Eight hex characters from a fresh UUID4."""
    return uuid.uuid4().hex[:8]


def clock_suffix(clock: Callable[[], float] = time.time) -> SuffixSource:
    """Build a suffix source that stamps identifiers with *clock* in milliseconds."""

    def _suffix() -> str:
        return str(int(clock() * 1000))

    return _suffix


def format_alert(record: AlertRecord, suffix_source: SuffixSource) -> AlertPayload:
    """Build the wire payload for *record*.

    The incident identifier is ``{location_id}_{suffix}`` so that BigPanda
    does not fold observations taken at different times into one incident.

    Raises:
        InvalidInput: on a blank location name, location id, or suffix.
    """
    host = require_text(record.location_name, "location name")
    location_id = require_text(record.location_id, "location ID")
    suffix = suffix_source()
    if not suffix or not suffix.strip():
        raise InvalidInput("Incident identifier suffix must not be blank")

    return AlertPayload(
        host=host,
        status=record.severity,
        check=WEATHER_CHECK,
        incident_identifier=f"{location_id}_{suffix.strip()}",
        condition=record.condition,
        precipitation=record.precipitation,
        precipitation_type=record.precipitation_type,
        link=record.link,
        temperature_celsius=record.temperature_celsius,
        temperature_fahrenheit=record.temperature_fahrenheit,
    )
