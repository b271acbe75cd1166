"""Per-task correlation data for log lines: trace ids and the query generation.

Each controller computation runs in its own asyncio task, so a ContextVar
gives every log line emitted while ranking a query the generation that
query was started for, without threading it through the search code.
"""

from __future__ import annotations

from contextvars import ContextVar
from uuid import uuid4


trace_context: ContextVar[dict | None] = ContextVar("trace_context", default=None)

_GENERATION_KEY = "generation"


def generate_trace_id() -> str:
    """Generate a 32-char hex trace ID."""
    return uuid4().hex


def generate_span_id() -> str:
    """Generate a 16-char hex span ID."""
    return uuid4().hex[:16]


def get_trace_context() -> dict:
    """Get current trace context, creating fresh ids on first use in a task."""
    ctx = trace_context.get()
    if ctx is None or not ctx.get("trace_id"):
        ctx = {"trace_id": generate_trace_id(), "span_id": generate_span_id()}
        trace_context.set(ctx)
    return ctx


def set_trace_context(trace_id: str, span_id: str) -> None:
    """Replace the trace ids for the current task, dropping any query generation."""
    trace_context.set({"trace_id": trace_id, "span_id": span_id})


def update_span_id(span_id: str) -> None:
    """Point at a new span, keeping the trace id and query generation."""
    ctx = trace_context.get() or {}
    trace_context.set({**ctx, "span_id": span_id})


def set_query_generation(generation: int) -> None:
    """Tag the current task with the generation of the query it is computing."""
    trace_context.set({**get_trace_context(), _GENERATION_KEY: generation})


def get_query_generation() -> int | None:
    ctx = trace_context.get() or {}
    return ctx.get(_GENERATION_KEY)
