"""FastAPI application layer: factory, lifespan, middleware and routing."""
