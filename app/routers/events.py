from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, Query

from app.config import settings
from app.schemas import EventsOut
from app.services.event_store import EventStore, get_event_store

router = APIRouter(prefix="/api/events", tags=["events"])


@router.get("", response_model=EventsOut)
async def list_events(
    date_from: datetime | None = Query(None, alias="from"),
    date_to: datetime | None = Query(None, alias="to"),
    store: EventStore = Depends(get_event_store),
):
    """Stored events in a time window, earliest first.

    Defaults to now through ``events_window_days`` ahead. Naive datetimes
    are taken as UTC.
    """
    now = datetime.now(timezone.utc)
    start = _as_utc(date_from) if date_from else now
    end = _as_utc(date_to) if date_to else start + timedelta(days=settings.events_window_days)
    if start > end:
        raise HTTPException(400, "'from' must not be after 'to'")

    return EventsOut(events=await store.get_events(start, end))


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
