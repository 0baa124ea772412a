"""Inbound HTTP surface."""

from wxalert.api.server import create_web_app, start_server

__all__ = ["create_web_app", "start_server"]
