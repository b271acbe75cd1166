"""Observability helpers: structured logging, tracing and metrics."""

from guide_search.observability.context import (
    get_query_generation,
    get_trace_context,
    set_query_generation,
    set_trace_context,
    trace_context,
)
from guide_search.observability.logging import JsonFormatter, configure_logging, configure_logging_from_settings
from guide_search.observability.metrics import (
    INDEX_POSTINGS,
    QUERY_COUNT,
    SEARCH_LATENCY,
    get_metrics,
    track_latency,
)
from guide_search.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "INDEX_POSTINGS",
    "QUERY_COUNT",
    "SEARCH_LATENCY",
    "JsonFormatter",
    "configure_logging",
    "configure_logging_from_settings",
    "create_span",
    "get_metrics",
    "get_query_generation",
    "get_trace_context",
    "get_tracer",
    "init_tracing",
    "set_query_generation",
    "set_trace_context",
    "trace_context",
    "track_latency",
]
