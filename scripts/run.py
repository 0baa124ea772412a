#!/usr/bin/env python3
"""Main entrypoint — listener, queue consumers, and the initial producer batch.

Usage::

    # Run with default config (config/settings.yaml + environment)
    python scripts/run.py

    # Custom config file
    python scripts/run.py --config config/settings.yaml

    # Also drain the dead-letter queue
    python scripts/run.py --consume-dead-letter
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys

import structlog
from aiohttp import web

from wxalert.api.server import start_server
from wxalert.core.config import load_settings
from wxalert.core.exceptions import ConfigurationError
from wxalert.core.logging import setup_logging
from wxalert.pipeline.factory import create_pipeline

logger = structlog.get_logger(__name__)


async def run(args: argparse.Namespace) -> int:
    """Start all components and run until interrupted."""
    settings = load_settings(args.config)
    if args.consume_dead_letter:
        settings.queue.consume_dead_letter = True
    setup_logging(level=args.log_level)

    try:
        pipeline = create_pipeline(settings)
    except ConfigurationError as exc:
        logger.error("configuration_invalid", error=str(exc))
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    runner: web.AppRunner | None = None
    try:
        await pipeline.connect()

        # ── Inbound listener ─────────────────────────────────────
        runner = await start_server(
            pipeline.producer,
            host=settings.server.host,
            port=settings.server.port,
        )

        # ── Queue consumers ──────────────────────────────────────
        for consumer in pipeline.consumers:
            await consumer.start()

        # ── Producer ─────────────────────────────────────────────
        locations = settings.producer.pairs()
        interval = settings.producer.poll_interval_secs
        if not locations:
            logger.warning("no_locations_configured")
        elif interval:
            await pipeline.producer.start(locations, interval)
        else:
            await pipeline.producer.run_batch(locations)

        logger.info(
            "service_running",
            port=settings.server.port,
            consumers=len(pipeline.consumers),
            locations=len(locations),
        )

        # ── Wait for shutdown signal ─────────────────────────────
        stop_event = asyncio.Event()

        def _signal_handler() -> None:
            logger.info("shutdown_signal_received")
            stop_event.set()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, _signal_handler)
            except NotImplementedError:
                # Windows: signal handlers not supported on ProactorEventLoop
                pass

        try:
            await stop_event.wait()
        except KeyboardInterrupt:
            logger.info("keyboard_interrupt")

    finally:
        # ── Graceful shutdown ────────────────────────────────────
        logger.info("service_shutting_down")

        await pipeline.producer.stop()
        for consumer in pipeline.consumers:
            try:
                await consumer.stop()
            except Exception:
                logger.exception("consumer_stop_error")

        if runner is not None:
            await runner.cleanup()
        await pipeline.close()

    logger.info(
        "service_stopped",
        delivered=pipeline.worker.delivered,
        rerouted=pipeline.worker.rerouted,
    )
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Forward AccuWeather conditions to BigPanda through SQS.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to settings YAML (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level override: DEBUG, INFO, WARNING, ERROR",
    )
    parser.add_argument(
        "--consume-dead-letter",
        action="store_true",
        help="Also start a consumer on the dead-letter queue",
    )
    args = parser.parse_args()

    code = asyncio.run(run(args))
    sys.exit(code)


if __name__ == "__main__":
    main()
