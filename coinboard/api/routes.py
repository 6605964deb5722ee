"""API routes for the dashboard, user selections and debugging."""

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from coinboard.api.dependencies import DashboardServices, get_services
from coinboard.api.error_handlers import create_invalid_choice_error, handle_service_error
from coinboard.models.market_data import SortOrder, Timeframe

router = APIRouter()


class OrderUpdate(BaseModel):
    """Request model for changing the sort order."""

    order: str


class TimeframeUpdate(BaseModel):
    """Request model for changing the chart timeframe."""

    timeframe: str


def _parse_order(value: str) -> SortOrder:
    try:
        return SortOrder(value)
    except ValueError:
        raise create_invalid_choice_error(
            "order", value, [o.value for o in SortOrder]
        ).to_http_exception() from None


def _parse_timeframe(value: str) -> Timeframe:
    try:
        return Timeframe(value)
    except ValueError:
        raise create_invalid_choice_error(
            "timeframe", value, [t.value for t in Timeframe]
        ).to_http_exception() from None


def _modes(services: DashboardServices) -> dict:
    state = services.scheduler.snapshot_state()
    return {"order": state.order.value, "timeframe": state.timeframe.value}


@router.get("/dashboard")
async def get_dashboard(services: DashboardServices = Depends(get_services)):
    """
    Current dashboard view.

    Returns:
        Status, formatted rows with chart series, the active modes and
        the dark mode preference
    """
    view = services.presenter.current_view()
    state = services.scheduler.snapshot_state()
    return {
        "status": view.status,
        "message": view.message,
        "order": state.order.value,
        "timeframe": state.timeframe.value,
        "rows": view.rows,
        "updated_at": view.updated_at,
        "dark_mode": services.preferences.dark_mode(),
    }


@router.get("/records")
async def get_records(services: DashboardServices = Depends(get_services)):
    """Latest enriched records, unformatted, in rank order."""
    records = services.scheduler.records()
    return {
        "records": [
            {**asdict(record), "display_rank": record.display_rank} for record in records
        ],
        "count": len(records),
        **_modes(services),
    }


@router.put("/order")
async def update_order(
    body: OrderUpdate,
    services: DashboardServices = Depends(get_services),
):
    """
    Select the snapshot sort order.

    A change starts a fresh refresh cycle right away.
    """
    order = _parse_order(body.order)
    changed = services.scheduler.set_order(order)
    return {"changed": changed, **_modes(services)}


@router.put("/timeframe")
async def update_timeframe(
    body: TimeframeUpdate,
    services: DashboardServices = Depends(get_services),
):
    """Select the chart timeframe; no data is refetched."""
    timeframe = _parse_timeframe(body.timeframe)
    changed = services.scheduler.set_timeframe(timeframe)
    return {"changed": changed, **_modes(services)}


@router.post("/refresh")
async def refresh(services: DashboardServices = Depends(get_services)):
    """Request an immediate refresh cycle."""
    return {"scheduled": services.scheduler.refresh_now()}


@router.get("/preferences")
async def get_preferences(services: DashboardServices = Depends(get_services)):
    """Saved user preferences."""
    return {"dark_mode": services.preferences.dark_mode()}


@router.post("/preferences/dark-mode/toggle")
async def toggle_dark_mode(services: DashboardServices = Depends(get_services)):
    """Flip and persist the dark mode preference."""
    try:
        enabled = services.preferences.toggle_dark_mode()
    except OSError as e:
        error_response = handle_service_error(e, "dark mode toggle")
        raise error_response.to_http_exception() from e
    return {"dark_mode": enabled}


# Debug endpoints


@router.get("/debug/status")
async def debug_status(services: DashboardServices = Depends(get_services)):
    """Refresh loop state and timer."""
    state = services.scheduler.snapshot_state()
    return {
        "status": state.status.value,
        "busy": state.busy,
        "requested_seq": state.requested_seq,
        "completed_seq": state.completed_seq,
        "last_outcome": state.last_outcome.value if state.last_outcome else None,
        "last_error": state.last_error,
        "last_updated": state.last_updated,
        "next_run_at": state.next_run_at,
        "records": len(state.records),
        "order": state.order.value,
        "timeframe": state.timeframe.value,
    }


@router.get("/debug/events")
async def debug_events(
    limit: int = Query(100, ge=1, le=1000),
    event_type: Optional[str] = Query(None, description="Filter by event type"),
    trace_id: Optional[str] = Query(None, description="Filter by trace ID"),
    asset_id: Optional[str] = Query(None, description="Filter by asset ID"),
    services: DashboardServices = Depends(get_services),
):
    """Recent events, optionally filtered, oldest first."""
    store = services.event_store
    if trace_id:
        events = store.get_events_by_trace(trace_id)[-limit:]
    elif event_type:
        events = store.get_events_by_type(event_type, limit)
    elif asset_id:
        events = store.get_events_for_asset(asset_id, limit)
    else:
        events = store.get_recent_events(limit)
    return {"events": [e.to_dict() for e in events], "count": len(events)}


@router.get("/debug/metrics")
async def debug_metrics(services: DashboardServices = Depends(get_services)):
    """Aggregated refresh and fetch metrics."""
    return services.metrics.calculate().to_dict()
