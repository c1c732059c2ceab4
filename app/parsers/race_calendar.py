"""Rider race calendars from the cycling statistics site.

Plain HTML scraping. Each rider page lists upcoming races in a dedicated
list; when that list is missing (the markup has changed more than once)
every table on the page is scanned for date/race rows instead.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Awaitable, Callable, Iterator

from app.config import settings
from app.parsers.base import BaseSource
from app.parsers.dom import Document
from app.parsers.utils import get_link_text, has_valid_race_name, looks_like_partial_date
from app.schemas import HarvestCandidate, SportEvent
from app.services.fetcher import fetch_page
from app.services.identity import dedup
from app.services.normaliser import normalise_candidates
from app.subjects import TrackedSubject

logger = logging.getLogger(__name__)

UPCOMING_ENTRY_SELECTOR = ".upcoming-races li"
DATE_SELECTOR = ".date"
TABLE_ROW_SELECTOR = "table tr"

MIN_ROW_CELLS = 3
# Race name sits in one of the cells after the date (rank/points cells vary)
NAME_CELL_WINDOW = 4

_STARTS_WITH_DIGIT_RE = re.compile(r"^\d")


def subject_url(slug: str) -> str:
    return f"{settings.race_site_url}/rider/{slug}"


def primary_candidates(doc: Document) -> Iterator[HarvestCandidate]:
    """Entries of the upcoming-races list."""
    for entry in doc.find_all(UPCOMING_ENTRY_SELECTOR):
        date_node = entry.find(DATE_SELECTOR)
        if date_node is not None:
            date_text = date_node.text
        else:
            texts = entry.child_text_nodes()
            date_text = texts[0] if texts else ""
        link = entry.find("a")
        if not date_text or link is None:
            continue
        name = get_link_text(link)
        if not has_valid_race_name(name):
            continue
        yield HarvestCandidate(
            date_text=date_text, name_text=name, link_href=link.attr("href")
        )


def fallback_candidates(doc: Document) -> Iterator[HarvestCandidate]:
    """Rows of any table: date in cell 0, race link in one of the next cells."""
    for row in doc.find_all(TABLE_ROW_SELECTOR):
        cells = row.cells()
        if len(cells) < MIN_ROW_CELLS:
            continue
        date_text = cells[0].text
        if not _STARTS_WITH_DIGIT_RE.match(date_text):
            continue

        for cell in cells[1 : 1 + NAME_CELL_WINDOW]:
            link = cell.find("a")
            if link is None:
                continue
            name = get_link_text(link)
            if has_valid_race_name(name):
                yield HarvestCandidate(
                    date_text=date_text, name_text=name, link_href=link.attr("href")
                )
                break


def _candidate_key(c: HarvestCandidate) -> tuple[str, str]:
    return (c.date_text, c.name_text)


def _gated_candidates(doc: Document) -> Iterator[HarvestCandidate]:
    dated = False
    found = False
    for candidate in primary_candidates(doc):
        dated = dated or looks_like_partial_date(candidate.date_text)
        found = True
        yield candidate
    if dated:
        return

    logger.info("No dated entries in the upcoming-races list, scanning tables")
    for candidate in fallback_candidates(doc):
        found = True
        yield candidate
    if not found:
        logger.warning("No race candidates found by either strategy")


def extract_candidates(doc: Document) -> Iterator[HarvestCandidate]:
    """Single pass over *doc*; the table scan only runs if the list has no
    entry with a usable date.

    Repeated (date, name) pairs, e.g. a stage race whose header is repeated
    on every stage row, are yielded once.
    """
    return dedup(_gated_candidates(doc), _candidate_key)


class RaceCalendarSource(BaseSource):
    """Harvests one tracked subject: fetch, extract, normalise."""

    def __init__(
        self,
        subject: TrackedSubject,
        fetch: Callable[[str], Awaitable[str]] = fetch_page,
    ) -> None:
        self.subject = subject
        self.key = subject.id_prefix
        self.categories = subject.categories
        self.replace_on_success = subject.replace_on_success
        self._fetch = fetch

    async def fetch_events(self, now: datetime) -> list[SportEvent]:
        url = subject_url(self.subject.source_slug)
        html = await self._fetch(url)
        doc = Document.parse(html)
        events, _rejected = normalise_candidates(
            extract_candidates(doc), self.subject, now, url
        )
        logger.info(
            "%s: %d upcoming events for %s",
            self.key, len(events), self.subject.display_name,
        )
        return events
