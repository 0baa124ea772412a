"""DeliveryWorker — consumer-side handler: deliver, acknowledge, or reroute."""

from __future__ import annotations

import structlog

from wxalert.alerts.sink import AlertSink
from wxalert.core.exceptions import InvalidInput
from wxalert.core.types import AlertPayload
from wxalert.queue.retry import RetryPolicy, RetryQueue
from wxalert.queue.types import QueuedMessage

logger = structlog.stdlib.get_logger()


class DeliveryWorker:
    """Delivers queued alerts to the sink.

    Success acknowledges the message on the queue it came from. HTTP errors
    and timeouts go through the retry policy, which requeues or dead-letters
    and then acknowledges. A malformed or incomplete payload can never be
    delivered and is dead-lettered without spending the budget.
    """

    def __init__(self, sink: AlertSink, policy: RetryPolicy) -> None:
        self._sink = sink
        self._policy = policy
        self._delivered = 0
        self._rerouted = 0

    @property
    def delivered(self) -> int:
        return self._delivered

    @property
    def rerouted(self) -> int:
        return self._rerouted

    async def handle(self, message: QueuedMessage, source: RetryQueue) -> None:
        try:
            payload = AlertPayload.from_json(message.body)
            await self._sink.send(payload)
        except InvalidInput as exc:
            await self._policy.handle_failure(message, source, exc, retryable=False)
            self._rerouted += 1
            return
        except Exception as exc:
            await self._policy.handle_failure(message, source, exc)
            self._rerouted += 1
            return

        await source.acknowledge(message)
        self._delivered += 1
        logger.info(
            "alert_delivered",
            message_id=message.message_id,
            queue=source.name,
            incident_identifier=payload.incident_identifier,
        )
