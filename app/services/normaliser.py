"""Turn extracted candidates into normalized events.

Validation, date resolution, classification and identity happen here, in
that order, before anything can reach the event store.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from typing import Iterable
from urllib.parse import urljoin

from app.config import settings
from app.metrics import CANDIDATES_REJECTED
from app.parsers.utils import has_valid_race_name, is_upcoming, parse_partial_date
from app.schemas import HarvestCandidate, SportEvent
from app.services.event_classifier import EventClassifier
from app.services.identity import identify
from app.subjects import TrackedSubject

logger = logging.getLogger(__name__)


class ValidationRejected(ValueError):
    """Candidate is not a usable upcoming race; it is dropped and counted."""

    def __init__(self, reason: str, candidate: HarvestCandidate) -> None:
        super().__init__(f"{reason}: {candidate.date_text!r} {candidate.name_text!r}")
        self.reason = reason
        self.candidate = candidate


def _race_url(href: str | None, page_url: str) -> str:
    """Race links on rider pages are relative to the site root."""
    if not href:
        return page_url
    return urljoin(f"{settings.race_site_url}/", href)


def normalise_candidate(
    candidate: HarvestCandidate,
    subject: TrackedSubject,
    now: datetime,
    page_url: str,
) -> SportEvent:
    name = candidate.name_text.strip()
    if not has_valid_race_name(name):
        raise ValidationRejected("invalid_name", candidate)

    start = parse_partial_date(candidate.date_text, now)
    if start is None:
        raise ValidationRejected("unparseable_date", candidate)
    if not is_upcoming(start, now):
        raise ValidationRejected("past", candidate)

    return SportEvent(
        id=identify(subject.id_prefix, candidate.date_text, name),
        sport=EventClassifier.classify(name, subject),
        title=f"{name} – {subject.display_name}",
        competition=name,
        start_time=start,
        source_url=_race_url(candidate.link_href, page_url),
        fetched_at=now,
    )


def normalise_candidates(
    candidates: Iterable[HarvestCandidate],
    subject: TrackedSubject,
    now: datetime,
    page_url: str,
) -> tuple[list[SportEvent], Counter[str]]:
    """Normalise a harvest, dropping rejected and repeated candidates.

    Returns the events in discovery order and a count of rejections per
    reason.
    """
    events: list[SportEvent] = []
    rejected: Counter[str] = Counter()
    seen_ids: set[str] = set()

    for candidate in candidates:
        try:
            event = normalise_candidate(candidate, subject, now, page_url)
        except ValidationRejected as e:
            rejected[e.reason] += 1
            logger.debug("%s: rejected %s", subject.id_prefix, e)
            continue
        if event.id in seen_ids:
            rejected["duplicate"] += 1
            continue
        seen_ids.add(event.id)
        events.append(event)

    for reason, count in rejected.items():
        CANDIDATES_REJECTED.labels(subject=subject.id_prefix, reason=reason).inc(count)
    if rejected:
        logger.info(
            "%s: %d upcoming events, rejected %s",
            subject.id_prefix, len(events), dict(rejected),
        )
    return events, rejected
