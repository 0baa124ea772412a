"""Core module — config, types, errors, logging."""

from wxalert.core.config import (
    DEFAULT_RETRY_BUDGET,
    Settings,
    get_settings,
    load_settings,
    require_settings,
    reset_settings,
)
from wxalert.core.exceptions import (
    AlertPipelineError,
    ConfigurationError,
    InvalidInput,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamHTTPError,
)
from wxalert.core.logging import setup_logging
from wxalert.core.types import (
    AlertPayload,
    AlertRecord,
    BatchResult,
    Observation,
    Severity,
    classify_severity,
)

__all__ = [
    "DEFAULT_RETRY_BUDGET",
    "AlertPayload",
    "AlertPipelineError",
    "AlertRecord",
    "BatchResult",
    "ConfigurationError",
    "InvalidInput",
    "Observation",
    "Settings",
    "Severity",
    "UpstreamConnectionError",
    "UpstreamError",
    "UpstreamHTTPError",
    "classify_severity",
    "get_settings",
    "load_settings",
    "require_settings",
    "reset_settings",
    "setup_logging",
]
