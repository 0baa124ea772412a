"""Delivery retry policy — requeue with a smaller budget or dead-letter.

The remaining budget travels on the message itself (``Retries`` attribute),
so any consumer instance can apply the policy without shared state.

    budget > 0   → primary queue, budget - 1
    budget <= 0  → dead-letter queue, budget 0
    absent/bad   → treated as 0
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, Protocol

import structlog

from wxalert.queue.exceptions import RerouteError
from wxalert.queue.types import RETRIES_ATTRIBUTE, Destination, QueuedMessage, RetryDecision

logger = structlog.stdlib.get_logger()


class RetryQueue(Protocol):
    """The slice of QueueGateway the policy needs."""

    @property
    def name(self) -> str: ...

    async def enqueue(self, body: str, retries: int | None = None) -> str: ...

    async def acknowledge(self, message: QueuedMessage) -> None: ...


def read_retry_budget(attributes: Mapping[str, Any] | None) -> int | None:
    """Parse the ``Retries`` attribute, or None when absent or unparseable."""
    if not attributes:
        return None
    attribute = attributes.get(RETRIES_ATTRIBUTE)
    if isinstance(attribute, Mapping):
        raw = attribute.get("StringValue")
    else:
        raw = attribute
    if raw is None or isinstance(raw, bool):
        return None
    # SQS Number values may carry a fractional part.
    try:
        value = float(str(raw).strip())
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return int(value)


def decide(budget: int | None) -> RetryDecision:
    """Pure routing decision for one failed delivery."""
    if budget is None or budget <= 0:
        return RetryDecision(destination=Destination.DEAD_LETTER, retries=0)
    return RetryDecision(destination=Destination.PRIMARY, retries=budget - 1)


class RetryPolicy:
    """Applies :func:`decide` and moves the failed message accordingly."""

    def __init__(self, primary: RetryQueue, dead_letter: RetryQueue) -> None:
        self._destinations: dict[Destination, RetryQueue] = {
            Destination.PRIMARY: primary,
            Destination.DEAD_LETTER: dead_letter,
        }

    async def handle_failure(
        self,
        message: QueuedMessage,
        source: RetryQueue,
        error: BaseException | None = None,
        retryable: bool = True,
    ) -> RetryDecision:
        """Reroute *message* after a failed delivery, then acknowledge it.

        The body is re-sent verbatim. The original is deleted from *source*
        only after the new copy is accepted.

        A non-retryable failure skips the budget and goes straight to the
        dead-letter queue.

        Raises:
            RerouteError: the re-enqueue or the acknowledgment failed. The
                message stays leased and the queue will redeliver it.
        """
        logger.warning(
            "delivery_failed",
            message_id=message.message_id,
            queue=source.name,
            error=repr(error) if error is not None else None,
            retryable=retryable,
        )

        budget = read_retry_budget(message.attributes)
        if budget is None and retryable:
            logger.info(
                "retry_budget_missing",
                message_id=message.message_id,
                queue=source.name,
            )

        decision = decide(budget if retryable else 0)
        target = self._destinations[decision.destination]

        try:
            new_id = await target.enqueue(message.body, retries=decision.retries)
        except Exception as exc:
            logger.exception(
                "reroute_enqueue_failed",
                message_id=message.message_id,
                destination=decision.destination.value,
            )
            raise RerouteError(
                f"Could not requeue {message.message_id} to {target.name}: {exc}"
            ) from exc

        try:
            await source.acknowledge(message)
        except Exception as exc:
            logger.exception(
                "reroute_ack_failed",
                message_id=message.message_id,
                requeued_as=new_id,
            )
            raise RerouteError(
                f"Requeued {message.message_id} as {new_id} but could not acknowledge it: {exc}"
            ) from exc

        logger.info(
            "message_rerouted",
            message_id=message.message_id,
            requeued_as=new_id,
            destination=decision.destination.value,
            retries=decision.retries,
        )
        return decision
