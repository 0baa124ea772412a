"""Alert normalization, formatting, and delivery."""

from wxalert.alerts.formatters import SuffixSource, clock_suffix, format_alert, random_suffix
from wxalert.alerts.normalizer import normalize
from wxalert.alerts.sink import AlertSink, BigPandaSink

__all__ = [
    "AlertSink",
    "BigPandaSink",
    "SuffixSource",
    "clock_suffix",
    "format_alert",
    "normalize",
    "random_suffix",
]
