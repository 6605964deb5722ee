"""Presentation sink: turns enriched records into dashboard view models."""

import threading
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Protocol

from coinboard.models.dashboard import (
    NEGATIVE_COLOR,
    POSITIVE_COLOR,
    ChartSeries,
    DashboardRow,
    DashboardView,
)
from coinboard.models.market_data import EnrichedRecord, SortOrder, Timeframe
from coinboard.services.formatting import (
    MISSING,
    format_currency,
    format_decimal,
    format_large_number,
    format_percent,
)

RSI_OVERSOLD = 30
RSI_OVERBOUGHT = 70
LOADING_MESSAGE = "Loading market data..."
ERROR_MESSAGE = "Error fetching data. Please try again later."


class PresentationSink(Protocol):
    """Receiver of refresh loop output."""

    def show_loading(self) -> None: ...

    def show_error(self, message: str) -> None: ...

    def render(
        self,
        records: Sequence[EnrichedRecord],
        order: SortOrder,
        timeframe: Timeframe,
    ) -> None: ...


def _sign_class(value: float | None) -> str:
    # Absent deltas read as flat, which the table shows as positive
    return "negative" if value is not None and value < 0 else "positive"


def build_chart(record: EnrichedRecord, timeframe: Timeframe) -> ChartSeries:
    """
    Pick the chart series for a record.

    The 30-day series is used when requested and available, colored by its
    own first-to-last trend. Otherwise the 7-day sparkline is used, colored
    by the 24h change.
    """
    prices_30 = record.indicators.prices_30
    if timeframe == Timeframe.THIRTY_DAYS and prices_30:
        trend = prices_30[-1] - prices_30[0]
        return ChartSeries(
            timeframe=Timeframe.THIRTY_DAYS,
            prices=list(prices_30),
            color=POSITIVE_COLOR if trend >= 0 else NEGATIVE_COLOR,
        )

    change = record.snapshot.price_change_percentage_24h
    return ChartSeries(
        timeframe=Timeframe.SEVEN_DAYS,
        prices=list(record.snapshot.sparkline_7d),
        color=NEGATIVE_COLOR if change is not None and change < 0 else POSITIVE_COLOR,
    )


def build_row(record: EnrichedRecord, timeframe: Timeframe) -> DashboardRow:
    """Format one enriched record as a table row."""
    snapshot = record.snapshot
    indicators = record.indicators
    price = snapshot.current_price

    dma_50, dma_50_class = MISSING, ""
    if indicators.ma_50:
        diff = (price - indicators.ma_50) / indicators.ma_50 * 100
        dma_50, dma_50_class = format_percent(diff, signed=True), _sign_class(diff)

    dma_200, dma_200_class = MISSING, ""
    if indicators.ma_200 is not None:
        above = price >= indicators.ma_200
        dma_200 = "Above" if above else "Below"
        dma_200_class = "positive" if above else "negative"

    rsi_class = ""
    if indicators.rsi_14 is not None:
        if indicators.rsi_14 < RSI_OVERSOLD:
            rsi_class = "positive"
        elif indicators.rsi_14 > RSI_OVERBOUGHT:
            rsi_class = "negative"

    change = snapshot.price_change_percentage_24h
    return DashboardRow(
        id=snapshot.id,
        rank=record.display_rank,
        name=snapshot.name,
        symbol=snapshot.symbol.upper(),
        image=snapshot.image,
        price=format_currency(price),
        market_cap=format_large_number(snapshot.market_cap),
        volume=format_large_number(snapshot.total_volume),
        change_24h=format_percent(change if change is not None else 0.0),
        change_24h_class=_sign_class(change),
        dma_50=dma_50,
        dma_50_class=dma_50_class,
        dma_200=dma_200,
        dma_200_class=dma_200_class,
        rsi_14=format_decimal(indicators.rsi_14, 2),
        rsi_class=rsi_class,
        volume_to_market_cap=format_decimal(indicators.volume_to_market_cap, 3),
        chart=build_chart(record, timeframe),
    )


class DashboardPresenter:
    """Keeps the latest dashboard view for the HTTP layer to serve."""

    def __init__(
        self,
        order: SortOrder = SortOrder.MARKET_CAP,
        timeframe: Timeframe = Timeframe.THIRTY_DAYS,
    ):
        self._lock = threading.Lock()
        self._view = DashboardView(
            status="loading", order=order, timeframe=timeframe, message=LOADING_MESSAGE
        )

    def show_loading(self) -> None:
        with self._lock:
            # Previous rows stay in the view until the refresh completes
            self._view.status = "loading"
            self._view.message = LOADING_MESSAGE

    def show_error(self, message: str = ERROR_MESSAGE) -> None:
        with self._lock:
            self._view.status = "error"
            self._view.message = message

    def render(
        self,
        records: Sequence[EnrichedRecord],
        order: SortOrder,
        timeframe: Timeframe,
    ) -> None:
        rows = [build_row(record, timeframe) for record in records]
        with self._lock:
            self._view = DashboardView(
                status="ready",
                order=order,
                timeframe=timeframe,
                rows=rows,
                updated_at=datetime.now(timezone.utc),
            )

    def current_view(self) -> DashboardView:
        with self._lock:
            view = self._view
            return DashboardView(
                status=view.status,
                order=view.order,
                timeframe=view.timeframe,
                message=view.message,
                rows=list(view.rows),
                updated_at=view.updated_at,
            )
