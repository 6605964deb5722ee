"""FastAPI dependencies wiring the dashboard services together."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from fastapi import HTTPException, Request, status

from coinboard.models.market_data import SortOrder, Timeframe
from coinboard.services.enrichment_pipeline import EnrichmentPipeline
from coinboard.services.market_data_client import MarketDataClient
from coinboard.services.preferences import PreferenceStore
from coinboard.services.presentation import DashboardPresenter
from coinboard.services.refresh_scheduler import RefreshScheduler
from coinboard.utils.config import Config, config
from coinboard.utils.event_store import EventStore
from coinboard.utils.metrics import MetricsCalculator


@dataclass
class DashboardServices:
    """The object graph behind the dashboard API."""

    scheduler: RefreshScheduler
    presenter: DashboardPresenter
    preferences: PreferenceStore
    event_store: EventStore
    metrics: MetricsCalculator
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def build_services(settings: Config = config) -> DashboardServices:
    """
    Build every dashboard service from configuration.

    Args:
        settings: Application configuration

    Returns:
        Wired services; the scheduler is not started yet
    """
    event_store = EventStore()
    client = MarketDataClient(
        base_url=settings.market_data.base_url,
        vs_currency=settings.market_data.vs_currency,
        timeout=settings.market_data.request_timeout,
    )
    pipeline = EnrichmentPipeline(
        client,
        lookback_days=settings.market_data.history_days,
        max_workers=settings.market_data.history_workers,
        event_store=event_store,
    )
    presenter = DashboardPresenter(
        order=SortOrder(settings.refresh.default_order),
        timeframe=Timeframe(settings.refresh.default_timeframe),
    )
    scheduler = RefreshScheduler(
        client,
        pipeline,
        presenter,
        interval_seconds=settings.refresh.interval_seconds,
        page_size=settings.market_data.page_size,
        event_store=event_store,
        order=settings.refresh.default_order,
        timeframe=settings.refresh.default_timeframe,
    )
    return DashboardServices(
        scheduler=scheduler,
        presenter=presenter,
        preferences=PreferenceStore(settings.preferences.path, settings.preferences.dark_mode_key),
        event_store=event_store,
        metrics=MetricsCalculator(event_store),
    )


def get_services(request: Request) -> DashboardServices:
    """
    FastAPI dependency returning the services attached at startup.

    Raises:
        HTTPException: 503 if the application has not finished starting
    """
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "SERVICE_UNAVAILABLE", "message": "Dashboard services are not ready"},
        )
    return services
