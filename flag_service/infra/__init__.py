"""Infrastructure adapters: database, cache, rate limiting, auth, logging, metrics."""
