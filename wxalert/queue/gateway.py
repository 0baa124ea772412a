"""SQS queue gateway — enqueue, receive, and acknowledge via aioboto3."""

from __future__ import annotations

import re
from types import TracebackType
from typing import Any

import aioboto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from wxalert.core.config import QueueConfig
from wxalert.core.exceptions import ConfigurationError, InvalidInput
from wxalert.queue.exceptions import TransportError
from wxalert.queue.types import RETRIES_ATTRIBUTE, QueuedMessage

logger = structlog.stdlib.get_logger()

# https://sqs.<region>.amazonaws.com/<account id>/<queue name>
_SQS_URL_RE = re.compile(r"^https://sqs\.[a-z]{2}(?:-[a-z]+)+-\d\.amazonaws\.com/\d+/\S+$")


def retries_attribute(retries: int) -> dict[str, dict[str, str]]:
    """SQS message attribute map carrying *retries*."""
    return {
        RETRIES_ATTRIBUTE: {
            "DataType": "Number",
            "StringValue": str(retries),
        }
    }


class QueueGateway:
    """One SQS queue, addressed by URL.

    Usage::

        async with QueueGateway("primary", url, settings.queue) as queue:
            message_id = await queue.enqueue(payload.to_json())
    """

    def __init__(
        self,
        name: str,
        url: str,
        config: QueueConfig,
        session: Any | None = None,
    ) -> None:
        if not url or not url.strip():
            raise ConfigurationError(f"A queue URL is required for the {name} queue")
        if not config.endpoint_url and not _SQS_URL_RE.match(url.strip()):
            raise ConfigurationError(f"Invalid SQS URL for the {name} queue: {url}")
        self._name = name
        self._url = url
        self._config = config
        self._session = session or aioboto3.Session()
        self._client: Any | None = None
        self._client_context: Any | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def url(self) -> str:
        return self._url

    @property
    def connected(self) -> bool:
        return self._client is not None

    # ── Lifecycle ───────────────────────────────────────────────

    async def connect(self) -> None:
        """Open the SQS client."""
        if self._client is not None:
            return
        client_kwargs: dict[str, Any] = {
            "region_name": self._config.region,
            "config": Config(
                connect_timeout=10,
                read_timeout=self._config.wait_time_secs + 10,
            ),
        }
        if self._config.endpoint_url:
            client_kwargs["endpoint_url"] = self._config.endpoint_url

        self._client_context = self._session.client("sqs", **client_kwargs)
        try:
            self._client = await self._client_context.__aenter__()
        except (BotoCoreError, ClientError) as exc:
            self._client_context = None
            raise TransportError(f"Failed to open SQS client for {self._name}: {exc}") from exc
        logger.info("queue_connected", queue=self._name)

    async def close(self) -> None:
        """Close the SQS client."""
        if self._client_context is None:
            return
        try:
            await self._client_context.__aexit__(None, None, None)
        except Exception:
            logger.exception("queue_close_error", queue=self._name)
        finally:
            self._client = None
            self._client_context = None

    def _ensure_client(self) -> Any:
        if self._client is None:
            raise TransportError(f"Queue {self._name} not connected")
        return self._client

    # ── Operations ──────────────────────────────────────────────

    async def enqueue(self, body: str, retries: int | None = None) -> str:
        """Send *body* with a ``Retries`` attribute.

        Args:
            body: Serialized alert payload.
            retries: Remaining retry budget. ``None`` stamps the configured
                default for fresh messages.

        Returns:
            The SQS message id.
        """
        if not body or not body.strip():
            raise InvalidInput("Please provide a valid message to send to SQS")
        budget = self._config.retry_budget if retries is None else retries
        client = self._ensure_client()

        try:
            response = await client.send_message(
                QueueUrl=self._url,
                MessageBody=body,
                DelaySeconds=self._config.delay_secs,
                MessageAttributes=retries_attribute(max(budget, 0)),
            )
        except (BotoCoreError, ClientError) as exc:
            raise TransportError(f"SendMessage to {self._name} failed: {exc}") from exc

        message_id = str(response.get("MessageId", ""))
        logger.info(
            "message_enqueued",
            queue=self._name,
            message_id=message_id,
            retries=max(budget, 0),
        )
        return message_id

    async def receive(self) -> list[QueuedMessage]:
        """Long-poll for up to ``max_messages`` messages."""
        client = self._ensure_client()
        try:
            response = await client.receive_message(
                QueueUrl=self._url,
                MaxNumberOfMessages=self._config.max_messages,
                WaitTimeSeconds=self._config.wait_time_secs,
                VisibilityTimeout=self._config.visibility_timeout_secs,
                MessageAttributeNames=[RETRIES_ATTRIBUTE],
            )
        except (BotoCoreError, ClientError) as exc:
            raise TransportError(f"ReceiveMessage from {self._name} failed: {exc}") from exc

        return [
            QueuedMessage.from_sqs(raw, queue_name=self._name)
            for raw in response.get("Messages", [])
        ]

    async def acknowledge(self, message: QueuedMessage) -> None:
        """Delete *message* so it is not redelivered."""
        client = self._ensure_client()
        try:
            await client.delete_message(
                QueueUrl=self._url,
                ReceiptHandle=message.receipt_handle,
            )
        except (BotoCoreError, ClientError) as exc:
            raise TransportError(
                f"DeleteMessage {message.message_id} on {self._name} failed: {exc}"
            ) from exc
        logger.debug("message_acknowledged", queue=self._name, message_id=message.message_id)

    async def __aenter__(self) -> QueueGateway:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
