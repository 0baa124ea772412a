"""Queue layer — SQS gateway, receive loop, and the retry/dead-letter policy."""

from wxalert.queue.consumer import MessageHandler, QueueConsumer
from wxalert.queue.exceptions import QueueError, RerouteError, TransportError
from wxalert.queue.gateway import QueueGateway, retries_attribute
from wxalert.queue.retry import RetryPolicy, decide, read_retry_budget
from wxalert.queue.types import (
    RETRIES_ATTRIBUTE,
    Destination,
    QueuedMessage,
    RetryDecision,
)

__all__ = [
    "RETRIES_ATTRIBUTE",
    "Destination",
    "MessageHandler",
    "QueueConsumer",
    "QueueError",
    "QueueGateway",
    "QueuedMessage",
    "RerouteError",
    "RetryDecision",
    "RetryPolicy",
    "TransportError",
    "decide",
    "read_retry_budget",
    "retries_attribute",
]
