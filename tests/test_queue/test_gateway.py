"""Tests for QueueGateway — SQS call shape, attribute stamping, error mapping."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from wxalert.core.config import QueueConfig
from wxalert.core.exceptions import ConfigurationError, InvalidInput
from wxalert.queue.exceptions import TransportError
from wxalert.queue.gateway import QueueGateway, retries_attribute
from wxalert.queue.types import QueuedMessage

_URL = "https://sqs.us-east-2.amazonaws.com/123456789012/alerts"


# ── Helpers ─────────────────────────────────────────────────────


def _cfg(**overrides: object) -> QueueConfig:
    defaults: dict[str, object] = {"primary_url": _URL, "dead_letter_url": _URL + "-dlq"}
    defaults.update(overrides)
    return QueueConfig(**defaults)  # type: ignore[arg-type]


def _session(client: AsyncMock) -> MagicMock:
    """aioboto3 session whose ``client()`` context yields *client*."""
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=client)
    context.__aexit__ = AsyncMock(return_value=False)
    session = MagicMock()
    session.client = MagicMock(return_value=context)
    return session


async def _connected(client: AsyncMock | None = None, **overrides: object) -> tuple[QueueGateway, AsyncMock]:
    client = client or AsyncMock()
    gateway = QueueGateway("primary", _URL, _cfg(**overrides), session=_session(client))
    await gateway.connect()
    return gateway, client


def _client_error(operation: str) -> ClientError:
    return ClientError(
        {"Error": {"Code": "AWS.SimpleQueueService.NonExistentQueue", "Message": "no such queue"}},
        operation,
    )


# ── Construction & lifecycle ───────────────────────────────────


class TestLifecycle:
    def test_blank_url_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="dead_letter"):
            QueueGateway("dead_letter", " ", _cfg(), session=MagicMock())

    @pytest.mark.parametrize(
        "url",
        [
            "https://sqs.us-east-2.amazonaws.com/abc/alerts",
            "http://sqs.us-east-2.amazonaws.com/123456789012/alerts",
            "https://sqs.amazonaws.com/123456789012/alerts",
            "https://sqs.us-east-2.amazonaws.com/123456789012/",
            "sqs-alerts",
        ],
    )
    def test_invalid_url_rejected(self, url: str) -> None:
        with pytest.raises(ConfigurationError, match="Invalid SQS URL"):
            QueueGateway("primary", url, _cfg(), session=MagicMock())

    @pytest.mark.parametrize(
        "url",
        [
            _URL,
            "https://sqs.eu-west-1.amazonaws.com/12345/test-queue",
            "https://sqs.ap-southeast-2.amazonaws.com/12345/alerts.fifo",
        ],
    )
    def test_valid_url_accepted(self, url: str) -> None:
        assert QueueGateway("primary", url, _cfg(), session=MagicMock()).url == url

    def test_local_endpoint_skips_url_check(self) -> None:
        cfg = _cfg(endpoint_url="http://localhost:4566")
        url = "http://localhost:4566/000000000000/alerts"
        assert QueueGateway("primary", url, cfg, session=MagicMock()).url == url

    async def test_connect_passes_region_and_endpoint(self) -> None:
        session = _session(AsyncMock())
        gateway = QueueGateway(
            "primary",
            _URL,
            _cfg(region="eu-west-1", endpoint_url="http://localhost:4566"),
            session=session,
        )
        await gateway.connect()

        assert gateway.connected is True
        args, kwargs = session.client.call_args
        assert args == ("sqs",)
        assert kwargs["region_name"] == "eu-west-1"
        assert kwargs["endpoint_url"] == "http://localhost:4566"

    async def test_connect_is_idempotent(self) -> None:
        session = _session(AsyncMock())
        gateway = QueueGateway("primary", _URL, _cfg(), session=session)
        await gateway.connect()
        await gateway.connect()
        session.client.assert_called_once()

    async def test_close(self) -> None:
        session = _session(AsyncMock())
        gateway = QueueGateway("primary", _URL, _cfg(), session=session)
        await gateway.connect()
        await gateway.close()
        assert gateway.connected is False
        session.client.return_value.__aexit__.assert_awaited_once()

    async def test_operations_require_connection(self) -> None:
        gateway = QueueGateway("primary", _URL, _cfg(), session=MagicMock())
        with pytest.raises(TransportError, match="not connected"):
            await gateway.enqueue("{}")


# ── enqueue ─────────────────────────────────────────────────────


class TestEnqueue:
    async def test_send_message_shape(self) -> None:
        client = AsyncMock()
        client.send_message = AsyncMock(return_value={"MessageId": "abc-123"})
        gateway, _ = await _connected(client)

        message_id = await gateway.enqueue('{"host":"Chicago"}', retries=3)

        assert message_id == "abc-123"
        client.send_message.assert_awaited_once_with(
            QueueUrl=_URL,
            MessageBody='{"host":"Chicago"}',
            DelaySeconds=10,
            MessageAttributes={"Retries": {"DataType": "Number", "StringValue": "3"}},
        )

    async def test_default_budget_stamped(self) -> None:
        client = AsyncMock()
        client.send_message = AsyncMock(return_value={"MessageId": "x"})
        gateway, _ = await _connected(client, retry_budget=7, delay_secs=0)

        await gateway.enqueue("{}")

        kwargs = client.send_message.call_args.kwargs
        assert kwargs["MessageAttributes"] == retries_attribute(7)
        assert kwargs["DelaySeconds"] == 0

    async def test_negative_budget_clamped(self) -> None:
        client = AsyncMock()
        client.send_message = AsyncMock(return_value={"MessageId": "x"})
        gateway, _ = await _connected(client)

        await gateway.enqueue("{}", retries=-4)

        kwargs = client.send_message.call_args.kwargs
        assert kwargs["MessageAttributes"]["Retries"]["StringValue"] == "0"

    @pytest.mark.parametrize("body", ["", "   "])
    async def test_blank_body_rejected(self, body: str) -> None:
        gateway, client = await _connected()
        with pytest.raises(InvalidInput):
            await gateway.enqueue(body)
        client.send_message.assert_not_called()

    async def test_client_error_becomes_transport_error(self) -> None:
        client = AsyncMock()
        client.send_message = AsyncMock(side_effect=_client_error("SendMessage"))
        gateway, _ = await _connected(client)

        with pytest.raises(TransportError, match="SendMessage"):
            await gateway.enqueue("{}")

    async def test_endpoint_error_becomes_transport_error(self) -> None:
        client = AsyncMock()
        client.send_message = AsyncMock(side_effect=EndpointConnectionError(endpoint_url=_URL))
        gateway, _ = await _connected(client)

        with pytest.raises(TransportError):
            await gateway.enqueue("{}")


# ── receive / acknowledge ──────────────────────────────────────


class TestReceive:
    async def test_receive_parses_messages(self) -> None:
        client = AsyncMock()
        client.receive_message = AsyncMock(
            return_value={
                "Messages": [
                    {
                        "MessageId": "m1",
                        "ReceiptHandle": "rh1",
                        "Body": '{"host":"Chicago"}',
                        "MessageAttributes": retries_attribute(2),
                    },
                    {"MessageId": "m2", "ReceiptHandle": "rh2", "Body": "{}"},
                ]
            }
        )
        gateway, _ = await _connected(client)

        messages = await gateway.receive()

        assert [m.message_id for m in messages] == ["m1", "m2"]
        assert messages[0].attributes["Retries"]["StringValue"] == "2"
        assert messages[1].attributes == {}
        assert all(m.queue_name == "primary" for m in messages)
        kwargs = client.receive_message.call_args.kwargs
        assert kwargs["QueueUrl"] == _URL
        assert kwargs["MaxNumberOfMessages"] == 10
        assert kwargs["WaitTimeSeconds"] == 20
        assert kwargs["MessageAttributeNames"] == ["Retries"]

    async def test_receive_empty(self) -> None:
        client = AsyncMock()
        client.receive_message = AsyncMock(return_value={})
        gateway, _ = await _connected(client)
        assert await gateway.receive() == []

    async def test_receive_error(self) -> None:
        client = AsyncMock()
        client.receive_message = AsyncMock(side_effect=_client_error("ReceiveMessage"))
        gateway, _ = await _connected(client)
        with pytest.raises(TransportError):
            await gateway.receive()

    async def test_acknowledge_deletes_by_receipt_handle(self) -> None:
        gateway, client = await _connected()
        msg = QueuedMessage(message_id="m1", body="{}", receipt_handle="rh-9")

        await gateway.acknowledge(msg)

        client.delete_message.assert_awaited_once_with(QueueUrl=_URL, ReceiptHandle="rh-9")

    async def test_acknowledge_error(self) -> None:
        client = AsyncMock()
        client.delete_message = AsyncMock(side_effect=_client_error("DeleteMessage"))
        gateway, _ = await _connected(client)
        with pytest.raises(TransportError, match="m1"):
            await gateway.acknowledge(QueuedMessage(message_id="m1", body="{}", receipt_handle="rh"))
