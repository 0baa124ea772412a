"""Inbound HTTP listener — ad-hoc alert requests over ``aiohttp``.

Exposes:
- ``POST /alert``  → ``{"locationName": ..., "locationID": ...}``; queues one alert
- ``GET /health``  → liveness probe
"""

from __future__ import annotations

from typing import Any, Protocol

import structlog
from aiohttp import web

from wxalert.core.exceptions import InvalidInput, UpstreamConnectionError, UpstreamHTTPError
from wxalert.queue.exceptions import TransportError

logger = structlog.stdlib.get_logger()

PRODUCER_KEY: web.AppKey[Any] = web.AppKey("producer", object)


class AlertSubmitter(Protocol):
    async def submit(self, location_name: str, location_id: str) -> str: ...


def _blank(value: Any) -> bool:
    return not isinstance(value, str) or value.strip() == ""


def _error(status: int, message: str) -> web.Response:
    return web.json_response({"error": message}, status=status)


async def _handle_alert(request: web.Request) -> web.Response:
    try:
        data = await request.json()
    except ValueError:
        return _error(400, "Request body must be JSON.")
    if not isinstance(data, dict):
        return _error(400, "Request body must be a JSON object.")

    location_name = data.get("locationName")
    location_id = data.get("locationID", data.get("locationId"))

    if _blank(location_name):
        return _error(400, "Please provide a valid location name.")
    if _blank(location_id):
        return _error(400, "Please provide a valid location ID.")

    producer: AlertSubmitter = request.app[PRODUCER_KEY]
    try:
        message_id = await producer.submit(location_name, location_id)
    except InvalidInput as exc:
        return _error(400, str(exc))
    except UpstreamHTTPError as exc:
        return _error(exc.status_code, exc.message)
    except UpstreamConnectionError as exc:
        logger.warning("alert_request_upstream_unreachable", location_id=location_id)
        return _error(502, exc.message)
    except TransportError as exc:
        logger.warning("alert_request_queue_unavailable", location_id=location_id)
        return _error(503, str(exc))
    except Exception as exc:
        logger.exception("alert_request_error", location_id=location_id)
        return _error(500, str(exc) or type(exc).__name__)

    return web.json_response({
        "message": "Message successfully queued.",
        "message_id": message_id,
    })


async def _handle_health(request: web.Request) -> web.Response:
    return web.json_response({"status": "ok"})


def create_web_app(producer: AlertSubmitter) -> web.Application:
    """Create the aiohttp web application."""
    app = web.Application()
    app[PRODUCER_KEY] = producer
    app.router.add_post("/alert", _handle_alert)
    app.router.add_get("/health", _handle_health)
    return app


async def start_server(
    producer: AlertSubmitter,
    host: str = "0.0.0.0",
    port: int = 3000,
) -> web.AppRunner:
    """Start the listener. Returns the runner for cleanup."""
    app = create_web_app(producer)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    logger.info("server_listening", host=host, port=port)
    return runner
