"""Tests for AlertProducer — single submission, batch isolation, repeat polling."""

from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from wxalert.core.exceptions import InvalidInput, UpstreamHTTPError
from wxalert.core.types import Observation
from wxalert.pipeline.producer import AlertProducer
from wxalert.queue.exceptions import TransportError

# ── Helpers ─────────────────────────────────────────────────────


def _observation(fahrenheit: float = 62.0, text: str = "Partly cloudy") -> Observation:
    return Observation.from_response(
        [
            {
                "WeatherText": text,
                "HasPrecipitation": False,
                "Temperature": {
                    "Metric": {"Value": round((fahrenheit - 32) * 5 / 9, 1), "Unit": "C"},
                    "Imperial": {"Value": fahrenheit, "Unit": "F"},
                },
                "Link": "http://www.accuweather.com/current-weather",
            }
        ]
    )


def _producer(
    weather: AsyncMock | None = None,
    queue: AsyncMock | None = None,
) -> tuple[AlertProducer, AsyncMock, AsyncMock]:
    if weather is None:
        weather = AsyncMock()
        weather.fetch_current_conditions = AsyncMock(return_value=_observation())
    if queue is None:
        queue = AsyncMock()
        queue.enqueue = AsyncMock(return_value="msg-1")
    return AlertProducer(weather, queue, suffix_source=lambda: "sfx"), weather, queue


# ── submit ──────────────────────────────────────────────────────


class TestSubmit:
    async def test_enqueues_formatted_payload(self) -> None:
        producer, weather, queue = _producer()

        message_id = await producer.submit("Chicago", "348308")

        assert message_id == "msg-1"
        weather.fetch_current_conditions.assert_awaited_once_with("348308")
        body = json.loads(queue.enqueue.call_args.args[0])
        assert body["host"] == "Chicago"
        assert body["status"] == "warning"
        assert body["check"] == "Weather Check"
        assert body["incident_identifier"] == "348308_sfx"
        assert body["temperature_fahrenheit"] == 62.0

    async def test_fresh_message_uses_default_budget(self) -> None:
        producer, _, queue = _producer()
        await producer.submit("Chicago", "348308")
        assert queue.enqueue.call_args.kwargs.get("retries") is None

    async def test_inputs_are_trimmed(self) -> None:
        producer, weather, queue = _producer()
        await producer.submit(" Chicago ", " 348308 ")
        weather.fetch_current_conditions.assert_awaited_once_with("348308")
        assert json.loads(queue.enqueue.call_args.args[0])["host"] == "Chicago"

    @pytest.mark.parametrize(("name", "location_id"), [("", "348308"), ("Chicago", " ")])
    async def test_blank_inputs_never_fetch(self, name: str, location_id: str) -> None:
        producer, weather, queue = _producer()
        with pytest.raises(InvalidInput):
            await producer.submit(name, location_id)
        weather.fetch_current_conditions.assert_not_called()
        queue.enqueue.assert_not_called()

    async def test_upstream_error_propagates(self) -> None:
        weather = AsyncMock()
        weather.fetch_current_conditions = AsyncMock(
            side_effect=UpstreamHTTPError("AccuWeather API", 401, "AccuWeather API Error (401): denied"),
        )
        producer, _, queue = _producer(weather=weather)
        with pytest.raises(UpstreamHTTPError):
            await producer.submit("Chicago", "348308")
        queue.enqueue.assert_not_called()


# ── run_batch ───────────────────────────────────────────────────


class TestRunBatch:
    async def test_all_locations_queued(self) -> None:
        producer, _, queue = _producer()
        locations = [("San Francisco", "347629"), ("New York", "349727"), ("Chicago", "348308")]

        results = await producer.run_batch(locations)

        assert [r.location_id for r in results] == ["347629", "349727", "348308"]
        assert all(r.ok and r.message_id == "msg-1" for r in results)
        assert queue.enqueue.await_count == 3

    async def test_failure_is_isolated(self) -> None:
        async def fetch(location_id: str) -> Observation:
            if location_id == "bad":
                raise UpstreamHTTPError("AccuWeather API", 500, "AccuWeather API Error (500): oops")
            return _observation()

        weather = AsyncMock()
        weather.fetch_current_conditions = AsyncMock(side_effect=fetch)
        producer, _, queue = _producer(weather=weather)

        results = await producer.run_batch([("A", "1"), ("B", "bad"), ("C", "3")])

        assert [r.ok for r in results] == [True, False, True]
        assert "oops" in (results[1].error or "")
        assert queue.enqueue.await_count == 2

    async def test_enqueue_failure_is_isolated(self) -> None:
        queue = AsyncMock()
        queue.enqueue = AsyncMock(side_effect=[TransportError("throttled"), "msg-2"])
        producer, _, _ = _producer(queue=queue)

        results = await producer.run_batch([("A", "1"), ("B", "2")])

        assert sum(1 for r in results if r.ok) == 1
        assert sum(1 for r in results if not r.ok) == 1

    async def test_empty_batch(self) -> None:
        producer, weather, _ = _producer()
        assert await producer.run_batch([]) == []
        weather.fetch_current_conditions.assert_not_called()


# ── Repeat polling ─────────────────────────────────────────────


class TestPolling:
    async def test_start_and_stop(self) -> None:
        producer, _, queue = _producer()

        await producer.start([("Chicago", "348308")], interval_secs=0.01)
        assert producer.running is True
        for _ in range(50):
            if queue.enqueue.await_count >= 2:
                break
            await asyncio.sleep(0.01)
        await producer.stop()

        assert producer.running is False
        assert queue.enqueue.await_count >= 2
