"""Convenience factory for wiring the alert pipeline from settings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from wxalert.alerts.formatters import SuffixSource, random_suffix
from wxalert.alerts.sink import BigPandaSink
from wxalert.core.config import Settings, require_settings
from wxalert.feeds.accuweather import AccuWeatherClient
from wxalert.pipeline.producer import AlertProducer
from wxalert.pipeline.worker import DeliveryWorker
from wxalert.queue.consumer import QueueConsumer
from wxalert.queue.gateway import QueueGateway
from wxalert.queue.retry import RetryPolicy


@dataclass
class Pipeline:
    """Every long-lived component, built once and shared by reference."""

    weather: AccuWeatherClient
    sink: BigPandaSink
    primary: QueueGateway
    dead_letter: QueueGateway
    producer: AlertProducer
    worker: DeliveryWorker
    consumers: list[QueueConsumer] = field(default_factory=list)

    async def connect(self) -> None:
        await self.weather.connect()
        await self.primary.connect()
        await self.dead_letter.connect()

    async def close(self) -> None:
        await self.sink.close()
        await self.weather.close()
        await self.primary.close()
        await self.dead_letter.close()


def create_pipeline(
    settings: Settings,
    suffix_source: SuffixSource = random_suffix,
    session: Any | None = None,
) -> Pipeline:
    """Build the producer, worker, and consumers from *settings*.

    Raises:
        ConfigurationError: if a required credential or queue URL is missing.
    """
    require_settings(settings)

    weather = AccuWeatherClient(settings.weather)
    sink = BigPandaSink(settings.alerting)
    primary = QueueGateway(
        "primary", settings.queue.primary_url, settings.queue, session=session,
    )
    dead_letter = QueueGateway(
        "dead_letter", settings.queue.dead_letter_url, settings.queue, session=session,
    )

    producer = AlertProducer(weather, primary, suffix_source=suffix_source)
    worker = DeliveryWorker(sink, RetryPolicy(primary=primary, dead_letter=dead_letter))

    consumers = [
        QueueConsumer(primary, worker.handle, settings.queue.error_backoff_secs),
    ]
    if settings.queue.consume_dead_letter:
        consumers.append(
            QueueConsumer(dead_letter, worker.handle, settings.queue.error_backoff_secs),
        )

    return Pipeline(
        weather=weather,
        sink=sink,
        primary=primary,
        dead_letter=dead_letter,
        producer=producer,
        worker=worker,
        consumers=consumers,
    )
