"""Feature flag management service."""

__version__ = "1.0.0"
