"""Event store: the persistence collaborator of the harvester.

``EventStore`` is the interface the orchestrator and purge routine depend
on; ``SqlEventStore`` implements it on the application database.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Protocol, Sequence

from pydantic import ValidationError
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.database import async_session
from app.models import StoredEvent
from app.schemas import SportEvent
from app.subjects import SportCategory

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """A read or write against the event store failed."""


class EventStore(Protocol):
    async def upsert(self, event: SportEvent) -> None: ...

    async def delete_all_for_categories(
        self, categories: Sequence[SportCategory]
    ) -> int: ...

    async def query_by_category(
        self, category: SportCategory
    ) -> list[tuple[str, str]]: ...

    async def delete(self, ids: Iterable[str]) -> int: ...

    async def get_events(self, start: datetime, end: datetime) -> list[SportEvent]: ...


def _naive_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _to_row(event: SportEvent) -> StoredEvent:
    return StoredEvent(
        id=event.id,
        sport=event.sport.value,
        title=event.title,
        competition=event.competition,
        start_time=_naive_utc(event.start_time),
        end_time=_naive_utc(event.end_time),
        location=event.location,
        source_url=event.source_url,
        fetched_at=_naive_utc(event.fetched_at),
    )


class SqlEventStore:
    """EventStore on SQLAlchemy async sessions.

    Each call runs in its own session, so concurrent harvests never share
    one. Upsert is a primary-key merge: last write wins per id.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] = async_session) -> None:
        self._session_factory = session_factory

    async def upsert(self, event: SportEvent) -> None:
        try:
            async with self._session_factory() as session:
                await session.merge(_to_row(event))
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"upsert {event.id} failed: {e}") from e

    async def delete_all_for_categories(self, categories: Sequence[SportCategory]) -> int:
        values = [SportCategory(c).value for c in categories]
        if not values:
            return 0
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    delete(StoredEvent).where(StoredEvent.sport.in_(values))
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"delete for {values} failed: {e}") from e
        logger.info("Deleted %d stored events for %s", result.rowcount, ", ".join(values))
        return result.rowcount

    async def query_by_category(self, category: SportCategory) -> list[tuple[str, str]]:
        try:
            async with self._session_factory() as session:
                rows = await session.execute(
                    select(StoredEvent.id, StoredEvent.competition).where(
                        StoredEvent.sport == SportCategory(category).value
                    )
                )
                return [(row.id, row.competition) for row in rows]
        except SQLAlchemyError as e:
            raise PersistenceError(f"query for {category} failed: {e}") from e

    async def delete(self, ids: Iterable[str]) -> int:
        ids = list(ids)
        if not ids:
            return 0
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    delete(StoredEvent).where(StoredEvent.id.in_(ids))
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"delete of {len(ids)} events failed: {e}") from e
        return result.rowcount

    async def get_events(self, start: datetime, end: datetime) -> list[SportEvent]:
        """Events starting within [start, end], earliest first."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(StoredEvent)
                    .where(
                        StoredEvent.start_time >= _naive_utc(start),
                        StoredEvent.start_time <= _naive_utc(end),
                    )
                    .order_by(StoredEvent.start_time)
                )
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            raise PersistenceError(f"range query failed: {e}") from e
        events = []
        for row in rows:
            try:
                events.append(SportEvent.model_validate(row))
            except ValidationError as e:
                # Left over from an older scrape; the purge will remove it
                logger.warning("Skipping invalid stored event %s: %s", row.id, e)
        return events


def get_event_store() -> EventStore:
    """FastAPI dependency; overridden in tests."""
    return SqlEventStore()
