"""Trace correlation for metric exemplars."""

from __future__ import annotations

from opentelemetry import trace


def current_trace_exemplar() -> dict[str, str] | None:
    """Return ``{"trace_id": ...}`` for the active span, or None outside a trace.

    Exemplars link a Prometheus sample to the trace that produced it.
    """
    span = trace.get_current_span()
    if span and span.get_span_context().is_valid:
        return {"trace_id": format(span.get_span_context().trace_id, "032x")}
    return None
