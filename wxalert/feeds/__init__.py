"""Weather data connectors."""

from wxalert.feeds.accuweather import AccuWeatherClient

__all__ = ["AccuWeatherClient"]
