"""Weather alert pipeline — AccuWeather observations to BigPanda via SQS."""

__version__ = "1.0.0"
