"""Exception hierarchy shared by the alert pipeline."""

from __future__ import annotations


class AlertPipelineError(Exception):
    """Base exception for all pipeline errors."""


class InvalidInput(AlertPipelineError):
    """A pure function received missing or malformed arguments."""


class ConfigurationError(AlertPipelineError):
    """Required configuration is absent or invalid."""


class UpstreamError(AlertPipelineError):
    """An external HTTP API could not serve the request."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(message)
        self.source = source
        self.message = message


class UpstreamHTTPError(UpstreamError):
    """An external API answered with a non-2xx status."""

    def __init__(self, source: str, status_code: int, message: str) -> None:
        super().__init__(source, message)
        self.status_code = status_code


class UpstreamConnectionError(UpstreamError):
    """An external API was unreachable or timed out."""


def parse_error_message(
    source: str,
    status_code: int,
    detail: object,
    body_text: str = "",
    reason: str = "",
) -> str:
    """Build a readable message for a failed upstream call.

    Prefers the API's own error detail, then a plain-text body, then the
    HTTP reason phrase.
    """
    prefix = f"{source} Error ({status_code}): "
    if isinstance(detail, str) and detail.strip():
        return prefix + detail.strip()
    if body_text.strip() and not body_text.lstrip().startswith(("{", "[")):
        return body_text.strip()
    return prefix + reason
