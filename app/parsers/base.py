from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from app.schemas import SportEvent
from app.subjects import SportCategory


class BaseSource(ABC):
    """Base class for everything the orchestrator harvests.

    A source owns a set of categories. When ``replace_on_success`` is set,
    a non-empty harvest replaces everything stored for those categories;
    otherwise events are only upserted.
    """

    key: str
    categories: tuple[SportCategory, ...] = ()
    replace_on_success: bool = False

    @abstractmethod
    async def fetch_events(self, now: datetime) -> list[SportEvent]:
        """Fetch and return normalized upcoming events.

        Raising is allowed; the orchestrator turns any exception into a
        failed outcome for this source only.
        """
        ...
