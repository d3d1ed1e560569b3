"""Fleet metrics query service: rates, timelines and process rankings."""

__version__ = "0.1.0"
