"""AlertProducer — fetch → normalize → format → enqueue for each location."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Protocol

import structlog

from wxalert.alerts.formatters import SuffixSource, format_alert, random_suffix
from wxalert.alerts.normalizer import normalize, require_text
from wxalert.core.types import BatchResult, Observation

logger = structlog.stdlib.get_logger()

Location = tuple[str, str]


class WeatherSource(Protocol):
    async def fetch_current_conditions(self, location_id: str) -> Observation: ...


class AlertQueue(Protocol):
    async def enqueue(self, body: str, retries: int | None = None) -> str: ...


class AlertProducer:
    """Produces one queued alert per location.

    Fresh messages are enqueued without an explicit retry budget; the queue
    gateway stamps its configured default.

    Usage::

        producer = AlertProducer(weather, primary_queue)
        results = await producer.run_batch([("Chicago", "348308")])
    """

    def __init__(
        self,
        weather: WeatherSource,
        queue: AlertQueue,
        suffix_source: SuffixSource = random_suffix,
    ) -> None:
        self._weather = weather
        self._queue = queue
        self._suffix_source = suffix_source
        self._task: asyncio.Task[None] | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def submit(self, location_name: str, location_id: str) -> str:
        """Produce one alert and return the queue message id.

        Errors propagate to the caller.
        """
        name = require_text(location_name, "location name")
        loc_id = require_text(location_id, "location ID")

        observation = await self._weather.fetch_current_conditions(loc_id)
        record = normalize(name, loc_id, observation)
        payload = format_alert(record, self._suffix_source)
        message_id = await self._queue.enqueue(payload.to_json())

        logger.info(
            "alert_produced",
            location_name=name,
            location_id=loc_id,
            severity=record.severity.value,
            incident_identifier=payload.incident_identifier,
            message_id=message_id,
        )
        return message_id

    async def _produce_one(self, location_name: str, location_id: str) -> BatchResult:
        try:
            message_id = await self.submit(location_name, location_id)
        except Exception as exc:
            logger.exception(
                "producer_location_failed",
                location_name=location_name,
                location_id=location_id,
            )
            return BatchResult(
                location_name=location_name,
                location_id=location_id,
                error=str(exc) or type(exc).__name__,
            )
        return BatchResult(
            location_name=location_name,
            location_id=location_id,
            message_id=message_id,
        )

    async def run_batch(self, locations: Sequence[Location]) -> list[BatchResult]:
        """Produce alerts for every location concurrently.

        One failing location never stops the rest of the batch.
        """
        results = list(await asyncio.gather(
            *(self._produce_one(name, loc_id) for name, loc_id in locations)
        ))
        failed = sum(1 for r in results if not r.ok)
        logger.info(
            "producer_batch_complete",
            total=len(results),
            queued=len(results) - failed,
            failed=failed,
        )
        return results

    # ── Repeat polling ──────────────────────────────────────────

    async def start(self, locations: Sequence[Location], interval_secs: float) -> None:
        """Run :meth:`run_batch` every *interval_secs* in the background."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._poll_loop(list(locations), interval_secs))
        logger.info("producer_started", locations=len(locations), interval_secs=interval_secs)

    async def stop(self) -> None:
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("producer_stopped")

    async def _poll_loop(self, locations: list[Location], interval_secs: float) -> None:
        while self._running:
            try:
                await self.run_batch(locations)
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("producer_batch_error")

            try:
                await asyncio.sleep(interval_secs)
            except asyncio.CancelledError:
                break
