from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Sequence

from app.config import settings
from app.metrics import (
    HARVEST_DURATION_SECONDS,
    HARVEST_EVENTS_FOUND,
    HARVEST_TOTAL,
    PERSISTENCE_ERRORS_TOTAL,
)
from app.parsers.base import BaseSource
from app.parsers.race_calendar import RaceCalendarSource
from app.schemas import RefreshSummary, SourceOutcome, SportEvent
from app.services.event_store import EventStore, PersistenceError
from app.services.fetcher import TransportError
from app.services.purge import purge_invalid_events
from app.subjects import TRACKED_SUBJECTS, TrackedSubject, low_confidence_categories

logger = logging.getLogger(__name__)


def default_sources(
    subjects: Sequence[TrackedSubject] = TRACKED_SUBJECTS,
) -> list[BaseSource]:
    """One scraping source per tracked subject."""
    return [RaceCalendarSource(subject) for subject in subjects]


async def run_refresh(
    store: EventStore,
    sources: Sequence[BaseSource] | None = None,
    subjects: Sequence[TrackedSubject] = TRACKED_SUBJECTS,
    now: datetime | None = None,
    retries: int | None = None,
) -> RefreshSummary:
    """Run one refresh cycle: harvest every source, persist, then purge.

    Sources run concurrently and independently; a failing source shows up
    as a failed outcome and never affects the others. Always returns a
    summary, even when every source failed.
    """
    now = now or datetime.now(timezone.utc)
    if sources is None:
        sources = default_sources(subjects)
    retries = settings.fetch_retries if retries is None else retries

    logger.info("Refresh starting for %d sources", len(sources))
    outcomes = await asyncio.gather(
        *(_refresh_source(store, source, now, retries) for source in sources)
    )

    summary = RefreshSummary(outcomes=list(outcomes))
    try:
        summary.purged = await purge_invalid_events(
            store, low_confidence_categories(tuple(subjects))
        )
    except PersistenceError as e:
        logger.error("Purge failed: %s", e)
        summary.purge_error = str(e)

    logger.info("Refresh complete: %s", summary.report())
    return summary


async def _refresh_source(
    store: EventStore, source: BaseSource, now: datetime, retries: int
) -> SourceOutcome:
    started = time.monotonic()
    try:
        events = await _harvest_with_retry(source, now, retries)
    except Exception as e:
        logger.exception("Harvest failed for source %s", source.key)
        HARVEST_TOTAL.labels(source=source.key, status="failed").inc()
        return SourceOutcome(key=source.key, ok=False, error=f"{type(e).__name__}: {e}")
    finally:
        HARVEST_DURATION_SECONDS.labels(source=source.key).observe(time.monotonic() - started)

    HARVEST_EVENTS_FOUND.labels(source=source.key).set(len(events))
    if not events:
        # Nothing to write, and nothing gets swept: an empty page is more
        # likely a scraping problem than a rider with no races left.
        logger.warning("Source %s returned no upcoming events", source.key)
        HARVEST_TOTAL.labels(source=source.key, status="empty").inc()
        return SourceOutcome(key=source.key, ok=True)

    HARVEST_TOTAL.labels(source=source.key, status="completed").inc()
    outcome = SourceOutcome(key=source.key, ok=True, found=len(events))

    if source.replace_on_success:
        try:
            outcome.replaced = await store.delete_all_for_categories(source.categories)
        except PersistenceError as e:
            logger.error("Replace sweep failed for %s: %s", source.key, e)
            outcome.persistence_errors.append(f"replace: {e}")

    await _persist(store, source.key, events, outcome)
    logger.info(
        "Source %s: %d events found, %d persisted, %d replaced",
        source.key, outcome.found, outcome.persisted, outcome.replaced,
    )
    return outcome


async def _harvest_with_retry(
    source: BaseSource, now: datetime, retries: int
) -> list[SportEvent]:
    """Fetch events from *source*, retrying transport failures only."""
    attempt = 0
    while True:
        try:
            return await source.fetch_events(now)
        except TransportError as e:
            attempt += 1
            if attempt > retries:
                raise
            logger.warning(
                "Source %s transport error (attempt %d/%d): %s",
                source.key, attempt, retries + 1, e,
            )
            await asyncio.sleep(0.5 * attempt)


async def _persist(
    store: EventStore, key: str, events: list[SportEvent], outcome: SourceOutcome
) -> None:
    for event in events:
        try:
            await store.upsert(event)
        except PersistenceError as e:
            logger.error("Failed to store event %s from %s: %s", event.id, key, e)
            PERSISTENCE_ERRORS_TOTAL.labels(source=key).inc()
            outcome.persistence_errors.append(f"{event.id}: {e}")
        else:
            outcome.persisted += 1
