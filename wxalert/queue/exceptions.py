"""Exception hierarchy for the queue layer."""

from __future__ import annotations


class QueueError(Exception):
    """Base exception for all queue errors."""


class TransportError(QueueError):
    """The queue service could not be reached or rejected the call."""


class RerouteError(QueueError):
    """A failed message could not be requeued or acknowledged."""
