"""Market data models: snapshots, history series, indicators and records."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SortOrder(str, Enum):
    """Ranking metric for the market snapshot."""

    MARKET_CAP = "market_cap_desc"
    VOLUME = "volume_desc"


class Timeframe(str, Enum):
    """Trend chart window."""

    SEVEN_DAYS = "7d"
    THIRTY_DAYS = "30d"


def _to_float(value: Any, default: float | None = 0.0) -> float | None:
    if value is None:
        return default
    return float(value)


@dataclass(frozen=True)
class AssetSnapshot:
    """One row of the ranked market snapshot."""

    id: str
    name: str
    symbol: str
    rank: int | None
    current_price: float
    market_cap: float
    total_volume: float
    price_change_percentage_24h: float | None
    sparkline_7d: tuple[float, ...] = ()
    image: str = ""

    @classmethod
    def from_payload(cls, item: dict[str, Any]) -> "AssetSnapshot":
        """
        Build a snapshot from one ``coins/markets`` item.

        Raises:
            ValueError: If the item or its sparkline is not an object, or it has no ``id``
            TypeError: If a numeric field holds something non-numeric
        """
        if not isinstance(item, dict):
            raise ValueError(f"Expected an object per asset, got {type(item).__name__}")
        asset_id = item.get("id")
        if not asset_id:
            raise ValueError("Asset entry is missing 'id'")

        sparkline_block = item.get("sparkline_in_7d") or {}
        if not isinstance(sparkline_block, dict):
            raise ValueError(
                f"Expected an object for 'sparkline_in_7d', got {type(sparkline_block).__name__}"
            )
        sparkline = sparkline_block.get("price") or []
        rank = item.get("market_cap_rank")
        # Ranks start at 1, so 0 is treated like a missing rank
        if rank is not None and int(rank) <= 0:
            rank = None

        return cls(
            id=str(asset_id),
            name=str(item.get("name") or asset_id),
            symbol=str(item.get("symbol") or ""),
            rank=int(rank) if rank is not None else None,
            current_price=_to_float(item.get("current_price")),
            market_cap=_to_float(item.get("market_cap")),
            total_volume=_to_float(item.get("total_volume")),
            price_change_percentage_24h=_to_float(
                item.get("price_change_percentage_24h"), default=None
            ),
            sparkline_7d=tuple(float(p) for p in sparkline if p is not None),
            image=str(item.get("image") or ""),
        )


@dataclass(frozen=True)
class HistorySeries:
    """Daily closing prices for one asset, oldest first."""

    asset_id: str
    prices: tuple[float, ...] = ()
    timestamps: tuple[float, ...] = ()  # Seconds since epoch

    @property
    def is_empty(self) -> bool:
        return not self.prices


@dataclass(frozen=True)
class IndicatorSet:
    """Derived indicators; each field is independently absent."""

    ma_50: float | None = None
    ma_200: float | None = None
    rsi_14: float | None = None
    prices_30: tuple[float, ...] = ()
    volume_to_market_cap: float | None = None

    @classmethod
    def empty(cls) -> "IndicatorSet":
        return cls()

    @property
    def is_empty(self) -> bool:
        return (
            self.ma_50 is None
            and self.ma_200 is None
            and self.rsi_14 is None
            and not self.prices_30
            and self.volume_to_market_cap is None
        )


@dataclass(frozen=True)
class EnrichedRecord:
    """A snapshot merged with its indicators; what the dashboard renders."""

    snapshot: AssetSnapshot
    indicators: IndicatorSet = field(default_factory=IndicatorSet)
    position: int = 1  # 1-based position in the snapshot
    history_error: str | None = None  # Failure kind when history was unusable

    @property
    def display_rank(self) -> int:
        return self.snapshot.rank or self.position
