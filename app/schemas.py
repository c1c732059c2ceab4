from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, field_validator

from app.parsers.utils import has_valid_race_name
from app.subjects import SportCategory


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# --- Harvesting ---
class HarvestCandidate(BaseModel):
    """Unvalidated race entry pulled out of a page.

    ``name_text`` has already been through ``get_link_text`` so it is the
    cleaned race name; nothing else is checked yet.
    """

    date_text: str
    name_text: str
    link_href: str | None = None

    model_config = {"frozen": True}


class SportEvent(BaseModel):
    """Normalized event, the unit written to the event store."""

    id: str
    sport: SportCategory
    title: str
    competition: str
    start_time: datetime
    end_time: datetime | None = None
    location: str | None = None
    source_url: str | None = None
    fetched_at: datetime

    model_config = {"frozen": True, "from_attributes": True}

    @field_validator("competition")
    @classmethod
    def competition_is_race_name(cls, v: str) -> str:
        if not has_valid_race_name(v):
            raise ValueError(f"not a plausible race name: {v!r}")
        return v

    @field_validator("start_time", "fetched_at")
    @classmethod
    def required_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @field_validator("end_time")
    @classmethod
    def optional_utc(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v) if v is not None else None


# --- Refresh results ---
class SourceOutcome(BaseModel):
    key: str
    ok: bool
    found: int = 0
    persisted: int = 0
    replaced: int = 0
    error: str | None = None
    persistence_errors: list[str] = []


class RefreshSummary(BaseModel):
    outcomes: list[SourceOutcome]
    purged: int = 0
    purge_error: str | None = None

    @property
    def total(self) -> int:
        return sum(o.found for o in self.outcomes if o.ok)

    def report(self) -> dict[str, int | str]:
        """Per-source counts or error reasons, plus totals."""
        out: dict[str, int | str] = {}
        for o in self.outcomes:
            out[o.key] = o.found if o.ok else f"ERROR: {o.error}"
        out["total"] = self.total
        out["purged"] = self.purged
        if self.purge_error:
            out["purge_error"] = self.purge_error
        errors = sum(len(o.persistence_errors) for o in self.outcomes)
        if errors:
            out["persistence_errors"] = errors
        return out


# --- API ---
class EventsOut(BaseModel):
    events: list[SportEvent]


class PreferencesOut(BaseModel):
    sports: list[SportCategory]
    labels: dict[SportCategory, str]
    timezone: str
