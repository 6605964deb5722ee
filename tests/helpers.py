"""Shared test doubles and builders."""

import threading
import time

from coinboard.models.market_data import AssetSnapshot, HistorySeries, SortOrder
from coinboard.services.errors import TransportError


def make_snapshot(asset_id: str = "bitcoin", rank: int | None = 1, **overrides) -> AssetSnapshot:
    """Build an AssetSnapshot with sensible defaults."""
    fields = {
        "id": asset_id,
        "name": asset_id.capitalize(),
        "symbol": asset_id[:3],
        "rank": rank,
        "current_price": 100.0,
        "market_cap": 1_000_000.0,
        "total_volume": 50_000.0,
        "price_change_percentage_24h": 1.5,
        "sparkline_7d": (95.0, 97.0, 99.0, 100.0),
        "image": f"https://img.example.com/{asset_id}.png",
    }
    fields.update(overrides)
    return AssetSnapshot(**fields)


def make_prices(count: int, start: float = 100.0, step: float = 1.0) -> list[float]:
    """Linear daily closes, oldest first."""
    return [start + i * step for i in range(count)]


def wait_for(predicate, timeout: float = 5.0, interval: float = 0.01) -> bool:
    """Poll ``predicate`` until it is truthy or ``timeout`` elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return bool(predicate())


class FakeMarketDataClient:
    """In-memory market data client recording every call."""

    def __init__(
        self,
        snapshots_by_order: dict[SortOrder, list[AssetSnapshot]] | None = None,
        histories: dict[str, list[float]] | None = None,
        failing_assets: set[str] | None = None,
    ):
        self.snapshots_by_order = snapshots_by_order or {}
        self.histories = histories or {}
        self.failing_assets = failing_assets or set()
        self.snapshot_error: Exception | None = None
        # When set, fetch_snapshot blocks until the event is released
        self.snapshot_gate: threading.Event | None = None
        self.snapshot_calls: list[SortOrder] = []
        self.history_calls: list[str] = []
        self.active_snapshot_calls = 0
        self.max_concurrent_snapshot_calls = 0
        self._lock = threading.Lock()

    def fetch_snapshot(self, order, page_size):
        with self._lock:
            self.snapshot_calls.append(SortOrder(order))
            self.active_snapshot_calls += 1
            self.max_concurrent_snapshot_calls = max(
                self.max_concurrent_snapshot_calls, self.active_snapshot_calls
            )
        try:
            gate = self.snapshot_gate
            if gate is not None:
                gate.wait(timeout=5)
            if self.snapshot_error is not None:
                raise self.snapshot_error
            return list(self.snapshots_by_order.get(SortOrder(order), []))[:page_size]
        finally:
            with self._lock:
                self.active_snapshot_calls -= 1

    def fetch_history(self, asset_id, lookback_days):
        with self._lock:
            self.history_calls.append(asset_id)
        if asset_id in self.failing_assets:
            raise TransportError(f"simulated failure for {asset_id}")
        prices = self.histories.get(asset_id, make_prices(200))
        return HistorySeries(asset_id=asset_id, prices=tuple(prices))

    @property
    def total_calls(self) -> int:
        with self._lock:
            return len(self.snapshot_calls) + len(self.history_calls)

