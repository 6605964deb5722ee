"""Refresh loop state owned by the scheduler."""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from coinboard.models.market_data import EnrichedRecord, SortOrder, Timeframe


class SchedulerStatus(str, Enum):
    """Lifecycle states of the refresh loop."""

    IDLE = "idle"
    FETCHING = "fetching"
    ARMED_WAITING = "armed_waiting"
    STOPPED = "stopped"


class CycleOutcome(str, Enum):
    """How the most recent refresh cycle ended."""

    SUCCESS = "success"
    FAILED = "failed"
    DISCARDED = "discarded"


@dataclass
class RefreshCycleState:
    """
    Mutable state of the refresh loop.

    Only the scheduler writes to it, always under its lock. ``records`` is
    replaced whole by the cycle holding ``requested_seq``, never patched.
    """

    order: SortOrder = SortOrder.MARKET_CAP
    timeframe: Timeframe = Timeframe.THIRTY_DAYS
    records: tuple[EnrichedRecord, ...] = ()
    status: SchedulerStatus = SchedulerStatus.IDLE
    requested_seq: int = 0
    completed_seq: int = 0
    busy: bool = False
    follow_up: bool = False
    last_outcome: CycleOutcome | None = None
    last_error: str | None = None
    last_updated: datetime | None = None
    next_run_at: datetime | None = None

    def copy(self) -> "RefreshCycleState":
        return replace(self)
