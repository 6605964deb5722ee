"""Refresh scheduler: runs the snapshot and enrichment cycle on a timer."""

import threading
import time
from datetime import datetime, timedelta, timezone

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger

from coinboard.models.market_data import EnrichedRecord, SortOrder, Timeframe
from coinboard.models.refresh_state import CycleOutcome, RefreshCycleState, SchedulerStatus
from coinboard.services.enrichment_pipeline import EnrichmentPipeline
from coinboard.services.errors import TransportError
from coinboard.services.market_data_client import MarketDataClient
from coinboard.services.presentation import ERROR_MESSAGE, PresentationSink
from coinboard.utils.config import config
from coinboard.utils.event_store import EventStore
from coinboard.utils.logger import StructuredLogger
from coinboard.utils.trace_context import clear_trace, create_trace


class RefreshScheduler:
    """
    Drives refresh cycles and re-arms itself after each one.

    At most one cycle runs at a time. A request that arrives while a cycle
    is running queues a single follow-up and makes the running cycle stale:
    its results are dropped at write-back, because only the cycle holding
    the latest requested sequence number may replace the records.
    """

    TIMER_JOB_ID = "refresh_timer"

    def __init__(
        self,
        client: MarketDataClient,
        pipeline: EnrichmentPipeline,
        sink: PresentationSink,
        interval_seconds: float | None = None,
        page_size: int | None = None,
        event_store: EventStore | None = None,
        scheduler: BackgroundScheduler | None = None,
        order: SortOrder | str | None = None,
        timeframe: Timeframe | str | None = None,
    ):
        """
        Initialize the refresh scheduler.

        Args:
            client: Market data client used for the snapshot request
            pipeline: Enrichment pipeline applied to each snapshot
            sink: Receiver of loading, error and render notifications
            interval_seconds: Delay between the end of a cycle and the next one
            page_size: Number of assets per snapshot
            event_store: Optional event store for cycle events
            scheduler: APScheduler instance providing timers and worker threads
            order: Initial sort order
            timeframe: Initial chart timeframe
        """
        self.client = client
        self.pipeline = pipeline
        self.sink = sink
        self.interval_seconds = interval_seconds or config.refresh.interval_seconds
        self.page_size = page_size or config.market_data.page_size
        self.event_store = event_store
        self.scheduler = scheduler or BackgroundScheduler(timezone="UTC")
        self.state = RefreshCycleState(
            order=SortOrder(order or config.refresh.default_order),
            timeframe=Timeframe(timeframe or config.refresh.default_timeframe),
        )
        self.logger = StructuredLogger.from_config("RefreshScheduler")
        self._lock = threading.RLock()
        self._timer_token = 0

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self.state.status in (SchedulerStatus.FETCHING, SchedulerStatus.ARMED_WAITING)

    def snapshot_state(self) -> RefreshCycleState:
        """Return a copy of the current refresh state."""
        with self._lock:
            return self.state.copy()

    def records(self) -> tuple[EnrichedRecord, ...]:
        """Return the latest completed record set."""
        with self._lock:
            return self.state.records

    def start(self) -> bool:
        """
        Start the loop and run the first cycle immediately.

        Returns:
            True if the loop was started, False if it was already running or stopped
        """
        with self._lock:
            if self.state.status != SchedulerStatus.IDLE:
                self.logger.debug(
                    "Start ignored",
                    context={"status": self.state.status.value},
                )
                return False

            if not self.scheduler.running:
                self.scheduler.start()

            self.logger.info(
                "Refresh scheduler started",
                context={
                    "interval_seconds": self.interval_seconds,
                    "page_size": self.page_size,
                    "order": self.state.order.value,
                },
            )
            self._request_cycle("startup")
            return True

    def stop(self) -> bool:
        """
        Cancel the pending timer and stop the loop for good.

        A cycle already in flight finishes its current request, but its
        results are discarded. Calling stop again is a no-op.

        Returns:
            True if this call stopped the loop
        """
        with self._lock:
            if self.state.status == SchedulerStatus.STOPPED:
                return False
            self._cancel_timer()
            self.state.status = SchedulerStatus.STOPPED
            self.state.follow_up = False
            self.state.next_run_at = None

        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        self.logger.info("Refresh scheduler stopped")
        return True

    def set_order(self, order: SortOrder | str) -> bool:
        """
        Switch the snapshot sort order.

        A change triggers an immediate cycle, superseding any cycle in flight.

        Returns:
            True if the order changed

        Raises:
            ValueError: If order is not a known sort order
        """
        order = SortOrder(order)
        with self._lock:
            if self.state.status == SchedulerStatus.STOPPED or order == self.state.order:
                return False
            previous = self.state.order
            self.state.order = order
            self.logger.info(
                "Sort order changed",
                context={"from": previous.value, "to": order.value},
            )
            if self.state.status != SchedulerStatus.IDLE:
                self._request_cycle("order_change")
            return True

    def set_timeframe(self, timeframe: Timeframe | str) -> bool:
        """
        Switch the chart timeframe.

        Both series are already held in each record, so this only re-renders.

        Returns:
            True if the timeframe changed

        Raises:
            ValueError: If timeframe is not a known timeframe
        """
        timeframe = Timeframe(timeframe)
        with self._lock:
            if timeframe == self.state.timeframe:
                return False
            self.state.timeframe = timeframe
            self.logger.info("Chart timeframe changed", context={"timeframe": timeframe.value})
            if self.state.completed_seq and self.state.last_error is None:
                self.sink.render(self.state.records, self.state.order, timeframe)
            return True

    def refresh_now(self) -> bool:
        """
        Request an immediate cycle outside the timer.

        Returns:
            True if a cycle was started or queued
        """
        with self._lock:
            if self.state.status not in (SchedulerStatus.FETCHING, SchedulerStatus.ARMED_WAITING):
                return False
            self._request_cycle("manual")
            return True

    def _request_cycle(self, reason: str) -> None:
        # Caller holds the lock
        self.state.requested_seq += 1
        if self.state.busy:
            self.state.follow_up = True
            self.logger.debug(
                "Cycle in flight, follow-up queued",
                context={"reason": reason, "requested_seq": self.state.requested_seq},
            )
            return
        self._launch_cycle(reason)

    def _launch_cycle(self, reason: str) -> None:
        # Caller holds the lock
        self._cancel_timer()
        self.state.busy = True
        self.state.status = SchedulerStatus.FETCHING
        self.state.next_run_at = None
        self.scheduler.add_job(
            self._run_cycle,
            args=[reason],
            name="Market Data Refresh Cycle",
            misfire_grace_time=None,
        )

    def _run_cycle(self, reason: str) -> None:
        with self._lock:
            if self.state.status == SchedulerStatus.STOPPED:
                self.state.busy = False
                return
            seq = self.state.requested_seq
            order = self.state.order

        trace_id = create_trace(seq)
        start_time = time.time()
        records: list[EnrichedRecord] | None = None
        error: Exception | None = None

        try:
            self.logger.info(
                "Starting refresh cycle",
                context={
                    "trace_id": trace_id,
                    "cycle_seq": seq,
                    "reason": reason,
                    "order": order.value,
                },
            )
            if self.event_store:
                self.event_store.add_event(
                    trace_id=trace_id,
                    event_type="cycle_start",
                    component="RefreshScheduler",
                    message="Refresh cycle started",
                    context={"cycle_seq": seq, "reason": reason, "order": order.value},
                )
            self.sink.show_loading()

            try:
                snapshots = self.client.fetch_snapshot(order, self.page_size)
                if not self._is_stopped():
                    records = self.pipeline.enrich(snapshots)
            except TransportError as e:
                error = e
                self.logger.error(
                    "Market snapshot fetch failed",
                    context={"trace_id": trace_id, "cycle_seq": seq, "order": order.value},
                    exception=e,
                )
            except Exception as e:
                # The loop must survive anything a cycle throws
                error = e
                self.logger.error(
                    "Unexpected error during refresh cycle",
                    context={"trace_id": trace_id, "cycle_seq": seq},
                    exception=e,
                )

            duration_ms = (time.time() - start_time) * 1000
            self._complete_cycle(seq, records, error, trace_id, duration_ms)
        finally:
            clear_trace()

    def _complete_cycle(
        self,
        seq: int,
        records: list[EnrichedRecord] | None,
        error: Exception | None,
        trace_id: str,
        duration_ms: float,
    ) -> None:
        with self._lock:
            self.state.busy = False

            if self.state.status == SchedulerStatus.STOPPED or seq != self.state.requested_seq:
                outcome = CycleOutcome.DISCARDED
                self.logger.info(
                    "Discarding superseded refresh cycle",
                    context={
                        "trace_id": trace_id,
                        "cycle_seq": seq,
                        "requested_seq": self.state.requested_seq,
                        "status": self.state.status.value,
                    },
                )
            elif error is None:
                outcome = CycleOutcome.SUCCESS
                self.state.records = tuple(records or ())
                self.state.completed_seq = seq
                self.state.last_error = None
                self.state.last_updated = datetime.now(timezone.utc)
                self.sink.render(self.state.records, self.state.order, self.state.timeframe)
            else:
                outcome = CycleOutcome.FAILED
                self.state.last_error = str(error)
                self.sink.show_error(ERROR_MESSAGE)

            self.state.last_outcome = outcome
            self._record_cycle_complete(seq, outcome, trace_id, duration_ms)

            if self.state.status == SchedulerStatus.STOPPED:
                return
            if self.state.follow_up:
                self.state.follow_up = False
                self._launch_cycle("follow_up")
            else:
                self._arm_timer()

    def _record_cycle_complete(
        self, seq: int, outcome: CycleOutcome, trace_id: str, duration_ms: float
    ) -> None:
        context = {
            "cycle_seq": seq,
            "status": outcome.value,
            "order": self.state.order.value,
            "assets": len(self.state.records),
        }
        if outcome == CycleOutcome.SUCCESS:
            self.logger.info(
                "Refresh cycle completed",
                context={"trace_id": trace_id, **context, "duration_ms": duration_ms},
            )
        if self.event_store:
            self.event_store.add_event(
                trace_id=trace_id,
                event_type="cycle_complete",
                component="RefreshScheduler",
                message=f"Refresh cycle {outcome.value}",
                context=context,
                duration_ms=duration_ms,
            )

    def _arm_timer(self) -> None:
        # Caller holds the lock
        self._timer_token += 1
        run_at = datetime.now(timezone.utc) + timedelta(seconds=self.interval_seconds)
        self.scheduler.add_job(
            self._on_timer,
            trigger=DateTrigger(run_date=run_at),
            args=[self._timer_token],
            id=self.TIMER_JOB_ID,
            name="Market Data Refresh Timer",
            replace_existing=True,
            misfire_grace_time=None,
        )
        self.state.status = SchedulerStatus.ARMED_WAITING
        self.state.next_run_at = run_at

    def _cancel_timer(self) -> None:
        # Caller holds the lock; bumping the token voids a timer that already fired
        self._timer_token += 1
        try:
            self.scheduler.remove_job(self.TIMER_JOB_ID)
        except JobLookupError:
            pass

    def _on_timer(self, token: int) -> None:
        with self._lock:
            if token != self._timer_token or self.state.status != SchedulerStatus.ARMED_WAITING:
                return
            self._request_cycle("timer")

    def _is_stopped(self) -> bool:
        with self._lock:
            return self.state.status == SchedulerStatus.STOPPED
