"""Management CLI for flag-service."""
