"""Metrics feature: the Prometheus scrape endpoint."""
