from __future__ import annotations

import logging
from typing import Sequence

from app.metrics import EVENTS_PURGED
from app.parsers.utils import has_valid_race_name
from app.services.event_store import EventStore
from app.subjects import SportCategory

logger = logging.getLogger(__name__)


async def find_invalid_events(
    store: EventStore, categories: Sequence[SportCategory]
) -> dict[SportCategory, list[tuple[str, str]]]:
    """Stored (id, competition) pairs that fail today's race-name rule."""
    invalid: dict[SportCategory, list[tuple[str, str]]] = {}
    for category in categories:
        rows = await store.query_by_category(category)
        bad = [(event_id, comp) for event_id, comp in rows if not has_valid_race_name(comp)]
        if bad:
            invalid[category] = bad
    return invalid


async def purge_invalid_events(
    store: EventStore, categories: Sequence[SportCategory]
) -> int:
    """Delete stored events whose competition name is no longer acceptable.

    Cleans up rows written by older, less strict scrapes. Returns the number
    of events removed.
    """
    invalid = await find_invalid_events(store, categories)
    removed = 0
    for category, rows in invalid.items():
        for event_id, comp in rows:
            logger.info("Purging %s event %s: invalid competition %r", category.value, event_id, comp)
        count = await store.delete([event_id for event_id, _ in rows])
        EVENTS_PURGED.labels(category=category.value).inc(count)
        removed += count

    if removed:
        logger.info("Purge removed %d invalid events", removed)
    else:
        logger.info("Purge: all stored events valid")
    return removed
