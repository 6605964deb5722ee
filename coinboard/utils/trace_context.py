"""Trace context for following one refresh cycle through the logs."""

import contextvars
import uuid
from typing import Optional

_trace_id_context: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "trace_id", default=None
)
_cycle_seq_context: contextvars.ContextVar[Optional[int]] = contextvars.ContextVar(
    "cycle_seq", default=None
)


def create_trace(cycle_seq: int | None = None) -> str:
    """
    Start a new trace in the current context.

    Args:
        cycle_seq: Sequence number of the refresh cycle being traced, if any

    Returns:
        A unique trace ID string (UUID4 format)
    """
    trace_id = str(uuid.uuid4())
    set_trace(trace_id, cycle_seq)
    return trace_id


def get_current_trace() -> Optional[str]:
    """Return the current trace ID, or None outside a trace."""
    return _trace_id_context.get()


def get_current_cycle() -> Optional[int]:
    """Return the refresh cycle sequence number bound to the current trace."""
    return _cycle_seq_context.get()


def set_trace(trace_id: str, cycle_seq: int | None = None) -> None:
    """Bind a trace ID (and optionally a cycle number) to the current context."""
    _trace_id_context.set(trace_id)
    _cycle_seq_context.set(cycle_seq)


def trace_fields() -> dict:
    """Context fields identifying the current trace, for log entries."""
    fields = {"trace_id": get_current_trace()}
    cycle_seq = get_current_cycle()
    if cycle_seq is not None:
        fields["cycle_seq"] = cycle_seq
    return fields


def clear_trace() -> None:
    """Clear the trace from the current context."""
    _trace_id_context.set(None)
    _cycle_seq_context.set(None)
