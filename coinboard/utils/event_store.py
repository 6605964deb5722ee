"""In-memory event store for refresh cycle and fetch events."""

import threading
import uuid
from collections import deque
from dataclasses import asdict, dataclass
from datetime import UTC, datetime, timedelta
from typing import Any


@dataclass
class Event:
    """Represents a system event."""

    id: str
    timestamp: str
    trace_id: str | None
    event_type: str
    component: str
    message: str
    context: dict[str, Any]
    duration_ms: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert event to dictionary, excluding None values."""
        return {k: v for k, v in asdict(self).items() if v is not None}


class EventStore:
    """Bounded, thread-safe event log with age-based purging."""

    def __init__(self, max_size: int = 5000, max_age_seconds: int = 3600):
        """
        Initialize the event store.

        Args:
            max_size: Maximum number of events kept; oldest are evicted first
            max_age_seconds: Default age limit used by clear_old_events
        """
        self.max_size = max_size
        self.max_age_seconds = max_age_seconds
        self._events: deque[Event] = deque(maxlen=max_size)
        self._lock = threading.RLock()

    def add_event(
        self,
        trace_id: str | None,
        event_type: str,
        component: str,
        message: str,
        context: dict[str, Any] | None = None,
        duration_ms: float | None = None,
    ) -> Event:
        """Record an event and return it."""
        event = Event(
            id=str(uuid.uuid4()),
            timestamp=datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            trace_id=trace_id,
            event_type=event_type,
            component=component,
            message=message,
            context=dict(context or {}),
            duration_ms=duration_ms,
        )
        with self._lock:
            self._events.append(event)
        return event

    def get_recent_events(self, limit: int = 100) -> list[Event]:
        """
        Get the most recent events.

        Returns:
            Up to ``limit`` events, oldest first
        """
        with self._lock:
            if limit <= 0:
                return []
            return list(self._events)[-limit:]

    def get_events_by_trace(self, trace_id: str) -> list[Event]:
        """Get all events recorded under one trace, oldest first."""
        with self._lock:
            return [event for event in self._events if event.trace_id == trace_id]

    def get_events_by_type(self, event_type: str, limit: int = 100) -> list[Event]:
        """Get the most recent events of one type, oldest first."""
        with self._lock:
            matching = [event for event in self._events if event.event_type == event_type]
        return matching[-limit:] if limit > 0 else []

    def get_events_for_asset(self, asset_id: str, limit: int = 100) -> list[Event]:
        """Get the most recent events whose context names ``asset_id``."""
        with self._lock:
            matching = [e for e in self._events if e.context.get("asset_id") == asset_id]
        return matching[-limit:] if limit > 0 else []

    def clear_old_events(self, max_age_seconds: int | None = None) -> int:
        """
        Remove events older than the given age.

        Returns:
            Number of events removed
        """
        max_age = max_age_seconds or self.max_age_seconds
        cutoff_time = datetime.now(UTC) - timedelta(seconds=max_age)

        with self._lock:
            initial_count = len(self._events)
            kept = [
                event
                for event in self._events
                if datetime.fromisoformat(event.timestamp.replace("Z", "+00:00")) > cutoff_time
            ]
            self._events = deque(kept, maxlen=self.max_size)
            return initial_count - len(self._events)

    def clear(self) -> None:
        """Clear all events from the store."""
        with self._lock:
            self._events.clear()

    def size(self) -> int:
        """Get the current number of events in the store."""
        with self._lock:
            return len(self._events)

    def get_all_events(self) -> list[Event]:
        """Get all events, oldest first."""
        with self._lock:
            return list(self._events)
