"""Queue message and routing types."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Message attribute carrying the remaining retry budget.
RETRIES_ATTRIBUTE = "Retries"


class Destination(StrEnum):
    """Where a failed message is sent next."""

    PRIMARY = "primary"
    DEAD_LETTER = "dead_letter"


class QueuedMessage(BaseModel):
    """A message leased from a queue. Never mutated; reroutes send a copy."""

    model_config = ConfigDict(frozen=True)

    message_id: str
    body: str
    receipt_handle: str
    attributes: dict[str, Any] = Field(default_factory=dict)
    queue_name: str = ""

    @classmethod
    def from_sqs(cls, raw: dict[str, Any], queue_name: str = "") -> QueuedMessage:
        """Build from one entry of an SQS ``ReceiveMessage`` response."""
        return cls(
            message_id=str(raw.get("MessageId", "")),
            body=str(raw.get("Body", "")),
            receipt_handle=str(raw.get("ReceiptHandle", "")),
            attributes=dict(raw.get("MessageAttributes") or {}),
            queue_name=queue_name,
        )


class RetryDecision(BaseModel):
    """Outcome of the retry policy for one failed delivery."""

    model_config = ConfigDict(frozen=True)

    destination: Destination
    retries: int = Field(ge=0)
