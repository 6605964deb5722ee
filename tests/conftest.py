"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient

from coinboard.api.dependencies import DashboardServices, get_services
from coinboard.models.market_data import SortOrder
from coinboard.services.enrichment_pipeline import EnrichmentPipeline
from coinboard.services.preferences import PreferenceStore
from coinboard.services.presentation import DashboardPresenter
from coinboard.services.refresh_scheduler import RefreshScheduler
from coinboard.utils.event_store import EventStore
from coinboard.utils.metrics import MetricsCalculator
from main import app
from tests.helpers import FakeMarketDataClient, make_snapshot


@pytest.fixture
def market_cap_snapshots():
    """Ten assets ranked by market cap."""
    return [make_snapshot(f"coin-{i}", rank=i) for i in range(1, 11)]


@pytest.fixture
def volume_snapshots():
    """Three assets ranked by volume."""
    return [make_snapshot(f"vol-{i}", rank=i + 20) for i in range(1, 4)]


@pytest.fixture
def fake_client(market_cap_snapshots, volume_snapshots):
    """Fake client serving both sort orders."""
    return FakeMarketDataClient(
        snapshots_by_order={
            SortOrder.MARKET_CAP: market_cap_snapshots,
            SortOrder.VOLUME: volume_snapshots,
        }
    )


@pytest.fixture
def dashboard_services(fake_client, tmp_path):
    """Fully wired services backed by the fake client; scheduler not started."""
    event_store = EventStore()
    pipeline = EnrichmentPipeline(
        fake_client, lookback_days=200, max_workers=4, event_store=event_store
    )
    presenter = DashboardPresenter()
    scheduler = RefreshScheduler(
        fake_client,
        pipeline,
        presenter,
        interval_seconds=60,
        page_size=10,
        event_store=event_store,
        order=SortOrder.MARKET_CAP,
        timeframe="30d",
    )
    services = DashboardServices(
        scheduler=scheduler,
        presenter=presenter,
        preferences=PreferenceStore(str(tmp_path / "preferences.json")),
        event_store=event_store,
        metrics=MetricsCalculator(event_store),
    )

    yield services

    scheduler.stop()


@pytest.fixture
def test_client(dashboard_services):
    """Test client whose routes use the fake-backed services."""
    app.dependency_overrides[get_services] = lambda: dashboard_services

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()
