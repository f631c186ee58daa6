"""Trade journal analytics: indicators, chart patterns, trade statistics and position lifecycles."""

__version__ = "0.1.0"
