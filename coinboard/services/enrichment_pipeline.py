"""Enrichment pipeline: per-asset history fetches merged into dashboard records."""

import time
from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor

from coinboard.models.market_data import AssetSnapshot, EnrichedRecord, IndicatorSet
from coinboard.services.errors import DataUnavailable, MarketDataError
from coinboard.services.indicators import compute_indicator_set
from coinboard.services.market_data_client import MarketDataClient
from coinboard.utils.config import config
from coinboard.utils.event_store import EventStore
from coinboard.utils.logger import StructuredLogger
from coinboard.utils.trace_context import trace_fields


class EnrichmentPipeline:
    """Fetches price history for every asset in parallel and attaches indicators."""

    def __init__(
        self,
        client: MarketDataClient,
        lookback_days: int | None = None,
        max_workers: int | None = None,
        event_store: EventStore | None = None,
    ):
        """
        Initialize the pipeline.

        Args:
            client: Market data client used for history requests
            lookback_days: Days of daily history requested per asset
            max_workers: Upper bound on concurrent history requests
            event_store: Optional event store for fetch events
        """
        self.client = client
        self.lookback_days = lookback_days or config.market_data.history_days
        self.max_workers = max_workers or config.market_data.history_workers
        self.event_store = event_store
        self.logger = StructuredLogger.from_config("EnrichmentPipeline")

    def enrich(self, snapshots: Iterable[AssetSnapshot]) -> list[EnrichedRecord]:
        """
        Attach indicators to every snapshot.

        History requests run concurrently. The result keeps the input order
        and is returned only once every request has settled. A failed or
        empty history yields a record with no indicators instead of an error.

        Args:
            snapshots: Assets in rank order

        Returns:
            One record per snapshot, in the same order
        """
        snapshots = list(snapshots)
        if not snapshots:
            return []

        trace = trace_fields()
        start_time = time.time()
        workers = min(self.max_workers, len(snapshots))

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="history") as executor:
            futures = [executor.submit(self._indicators_for, snapshot) for snapshot in snapshots]
            # Settle in submission order, not completion order
            records = [
                self._settle(position, snapshot, future, trace)
                for position, (snapshot, future) in enumerate(zip(snapshots, futures), start=1)
            ]

        failures = [r.snapshot.id for r in records if r.history_error]
        self.logger.info(
            "Enrichment completed",
            context={
                **trace,
                "assets": len(records),
                "history_failures": len(failures),
                "failed_assets": failures,
                "duration_ms": (time.time() - start_time) * 1000,
            },
        )
        return records

    def _indicators_for(self, snapshot: AssetSnapshot) -> tuple[IndicatorSet, float]:
        started = time.time()
        history = self.client.fetch_history(snapshot.id, self.lookback_days)
        if history.is_empty:
            raise DataUnavailable(snapshot.id)
        indicators = compute_indicator_set(
            history.prices, snapshot.total_volume, snapshot.market_cap
        )
        return indicators, (time.time() - started) * 1000

    def _settle(
        self,
        position: int,
        snapshot: AssetSnapshot,
        future: Future,
        trace: dict,
    ) -> EnrichedRecord:
        try:
            indicators, duration_ms = future.result()
        except MarketDataError as e:
            self.logger.warning(
                f"History unavailable for {snapshot.id}, indicators left empty",
                context={**trace, "asset_id": snapshot.id, "error_kind": e.kind, "error": str(e)},
            )
            self._record_failure(snapshot, e.kind, str(e), trace)
            return EnrichedRecord(
                snapshot=snapshot,
                indicators=IndicatorSet.empty(),
                position=position,
                history_error=e.kind,
            )
        except Exception as e:
            self.logger.error(
                f"Unexpected error enriching {snapshot.id}",
                context={**trace, "asset_id": snapshot.id},
                exception=e,
            )
            self._record_failure(snapshot, "unexpected_error", str(e), trace)
            return EnrichedRecord(
                snapshot=snapshot,
                indicators=IndicatorSet.empty(),
                position=position,
                history_error="unexpected_error",
            )

        if self.event_store:
            self.event_store.add_event(
                trace_id=trace.get("trace_id"),
                event_type="history_fetched",
                component="EnrichmentPipeline",
                message=f"History fetched for {snapshot.id}",
                context={"asset_id": snapshot.id, "status": "success"},
                duration_ms=duration_ms,
            )
        return EnrichedRecord(snapshot=snapshot, indicators=indicators, position=position)

    def _record_failure(
        self, snapshot: AssetSnapshot, kind: str, message: str, trace: dict
    ) -> None:
        if not self.event_store:
            return
        self.event_store.add_event(
            trace_id=trace.get("trace_id"),
            event_type="history_failed",
            component="EnrichmentPipeline",
            message=f"History fetch failed for {snapshot.id}",
            context={
                "asset_id": snapshot.id,
                "status": "failed",
                "error_kind": kind,
                "error": message,
            },
        )
