"""Feature flags: storage, caching, evaluation and administration."""
