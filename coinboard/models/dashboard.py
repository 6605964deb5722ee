"""View models handed to the dashboard front end."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from coinboard.models.market_data import SortOrder, Timeframe

POSITIVE_COLOR = "#10b981"
NEGATIVE_COLOR = "#ef4444"


@dataclass(frozen=True)
class ChartSeries:
    """Numeric series and trend color for one embedded chart."""

    timeframe: Timeframe
    prices: list[float] = field(default_factory=list)
    color: str = POSITIVE_COLOR


@dataclass(frozen=True)
class DashboardRow:
    """One formatted table row."""

    id: str
    rank: int
    name: str
    symbol: str
    image: str
    price: str
    market_cap: str
    volume: str
    change_24h: str
    change_24h_class: str
    dma_50: str
    dma_50_class: str
    dma_200: str
    dma_200_class: str
    rsi_14: str
    rsi_class: str
    volume_to_market_cap: str
    chart: ChartSeries


@dataclass
class DashboardView:
    """Everything the dashboard needs to draw the current screen."""

    status: Literal["loading", "ready", "error"]
    order: SortOrder
    timeframe: Timeframe
    message: str | None = None
    rows: list[DashboardRow] = field(default_factory=list)
    updated_at: datetime | None = None
