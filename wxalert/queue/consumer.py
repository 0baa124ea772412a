"""Queue consumer — long-poll receive loop with per-message dispatch."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from types import TracebackType

import structlog

from wxalert.queue.exceptions import TransportError
from wxalert.queue.gateway import QueueGateway
from wxalert.queue.types import QueuedMessage

logger = structlog.stdlib.get_logger()

# Handler receives the message and the gateway it came from. It owns the
# acknowledgment; an exception leaves the message leased for redelivery.
MessageHandler = Callable[[QueuedMessage, QueueGateway], Awaitable[None]]


class QueueConsumer:
    """Polls one queue and hands each message to *handler*.

    Messages from a single receive batch are handled concurrently. Handler
    exceptions are logged and the message is left to the queue's visibility
    timeout. Transport errors back off for ``error_backoff_secs``.

    Usage::

        consumer = QueueConsumer(primary, worker.handle)
        async with consumer:
            await stop_event.wait()
    """

    def __init__(
        self,
        gateway: QueueGateway,
        handler: MessageHandler,
        error_backoff_secs: float = 5.0,
    ) -> None:
        self._gateway = gateway
        self._handler = handler
        self._error_backoff_secs = error_backoff_secs
        self._task: asyncio.Task[None] | None = None
        self._running = False
        self._error_count = 0
        self._handled_count = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def error_count(self) -> int:
        return self._error_count

    @property
    def handled_count(self) -> int:
        return self._handled_count

    async def start(self) -> None:
        """Start the background receive loop."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._poll_loop())
        logger.info("consumer_started", queue=self._gateway.name)

    async def stop(self) -> None:
        """Stop polling. In-flight leases expire and are redelivered."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("consumer_stopped", queue=self._gateway.name)

    async def poll_once(self) -> int:
        """Receive one batch and handle every message in it.

        Returns the number of messages received.
        """
        messages = await self._gateway.receive()
        if messages:
            await asyncio.gather(*(self._dispatch(m) for m in messages))
        return len(messages)

    async def _dispatch(self, message: QueuedMessage) -> None:
        try:
            await self._handler(message, self._gateway)
            self._handled_count += 1
        except Exception:
            self._error_count += 1
            logger.exception(
                "consumer_handler_error",
                queue=self._gateway.name,
                message_id=message.message_id,
            )

    async def _poll_loop(self) -> None:
        while self._running:
            delay = 0.0
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                break
            except TransportError:
                self._error_count += 1
                logger.exception(
                    "consumer_receive_error",
                    queue=self._gateway.name,
                    error_count=self._error_count,
                )
                delay = self._error_backoff_secs
            except Exception:
                self._error_count += 1
                logger.exception("consumer_poll_error", queue=self._gateway.name)
                delay = self._error_backoff_secs

            # Always yield so stop() can interrupt a fast-returning receive.
            try:
                await asyncio.sleep(delay)
            except asyncio.CancelledError:
                break

    async def __aenter__(self) -> QueueConsumer:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.stop()
