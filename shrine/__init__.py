"""State stores, output resolution and deploy logging for a small container platform."""

__version__ = "0.1.0"