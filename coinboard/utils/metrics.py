"""Metrics calculator for aggregating refresh cycle events."""

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from coinboard.utils.event_store import EventStore


@dataclass
class Metrics:
    """Aggregated refresh loop statistics."""

    total_cycles: int
    successful_cycles: int
    failed_cycles: int
    discarded_cycles: int
    success_rate: float
    average_cycle_duration_ms: float
    history_fetches: int
    history_failures: int
    history_failure_rate: float
    uptime_seconds: int

    def to_dict(self) -> dict[str, Any]:
        """Convert metrics to dictionary."""
        return asdict(self)


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


class MetricsCalculator:
    """Calculates metrics from event store data."""

    def __init__(self, event_store: EventStore, start_time: Optional[datetime] = None):
        """
        Initialize the metrics calculator.

        Args:
            event_store: The event store to calculate metrics from
            start_time: Start time for uptime calculation (defaults to now)
        """
        self.event_store = event_store
        self.start_time = start_time or datetime.now(timezone.utc)

    def calculate(self) -> Metrics:
        """Calculate metrics from the events currently in the store."""
        events = self.event_store.get_all_events()

        cycles = [e for e in events if e.event_type == "cycle_complete"]
        successful = [e for e in cycles if e.context.get("status") == "success"]
        failed = [e for e in cycles if e.context.get("status") == "failed"]
        discarded = [e for e in cycles if e.context.get("status") == "discarded"]

        # Discarded cycles were superseded, so they count toward neither outcome
        settled = len(successful) + len(failed)
        success_rate = (len(successful) / settled * 100) if settled > 0 else 0.0

        durations = [e.duration_ms for e in successful + failed if e.duration_ms is not None]

        history_ok = sum(1 for e in events if e.event_type == "history_fetched")
        history_failed = sum(1 for e in events if e.event_type == "history_failed")
        history_total = history_ok + history_failed
        history_failure_rate = (
            (history_failed / history_total * 100) if history_total > 0 else 0.0
        )

        uptime_seconds = int((datetime.now(timezone.utc) - self.start_time).total_seconds())

        return Metrics(
            total_cycles=len(cycles),
            successful_cycles=len(successful),
            failed_cycles=len(failed),
            discarded_cycles=len(discarded),
            success_rate=success_rate,
            average_cycle_duration_ms=_mean(durations),
            history_fetches=history_total,
            history_failures=history_failed,
            history_failure_rate=history_failure_rate,
            uptime_seconds=uptime_seconds,
        )
