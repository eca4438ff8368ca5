"""Core: settings, exceptions, database primitives and shared dependencies."""
