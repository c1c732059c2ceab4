"""Shared sanitizers for scraped race entries.

Name cleaning, race-name plausibility and partial-date resolution. The
plausibility rule is reused at extraction, normalisation and purge time,
so stored data and freshly scraped data are held to the same bar.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.parsers.dom import Node

MIN_RACE_NAME_LENGTH = 6

# Start times are not published; 10:00 UTC is a typical race start
NOMINAL_START_HOUR = 10

# Calendars for next season appear before New Year without a year
ROLLOVER_GRACE = timedelta(days=7)

# Stage badge such as "S1" or "S3 (ITT)" glued to the stage title
_STAGE_BADGE_RE = re.compile(
    r"^[A-Z]\d+(?:\s*\([^)]*\))?\s*(?=(?:Stage|Prologue|ITT|TTT)\b)"
)
_PARTIAL_DATE_RE = re.compile(r"^(\d{1,2})\.(\d{2})(?:\.(\d{4}))?$")
_WHITESPACE_RE = re.compile(r"\s+")


def clean_race_name(text: str) -> str:
    """Collapse whitespace and drop a leading stage badge.

    "S1 (ITT)Stage 1 (ITT) - Setting Out" -> "Stage 1 (ITT) - Setting Out".
    The badge is only removed when a stage word follows, so names such as
    "E3 Saxo Classic" are left alone.
    """
    text = _WHITESPACE_RE.sub(" ", text).strip()
    return _STAGE_BADGE_RE.sub("", text, count=1).strip()


def get_link_text(node: Node) -> str:
    """Readable text of a race link.

    Text nodes are joined with a space so a badge span and the title that
    follows it do not run together.
    """
    return clean_race_name(" ".join(node.child_text_nodes()))


def has_valid_race_name(name: str | None) -> bool:
    """Reject rankings, points, classification codes and badge leftovers."""
    if not name:
        return False
    name = name.strip()
    if len(name) < MIN_RACE_NAME_LENGTH:
        return False
    if not any(ch.isalpha() for ch in name):
        return False
    if name.startswith("(") or name.startswith("- "):
        return False
    return True


def _match_date(text: str) -> re.Match[str] | None:
    return _PARTIAL_DATE_RE.match(text.split("-")[0].strip())


def looks_like_partial_date(text: str | None) -> bool:
    """True for "DD.MM", "DD.MM.YYYY" or a range starting with one."""
    return bool(text) and _match_date(text) is not None


def parse_partial_date(text: str, now: datetime) -> datetime | None:
    """Resolve "DD.MM", "DD.MM.YYYY" or a "DD.MM-DD.MM" range to UTC.

    Ranges resolve to their start. Without a year the date is placed in
    the year of *now*, and moved to the next year when that lands more than
    ``ROLLOVER_GRACE`` before *now*. Returns None when unparseable.
    """
    if not text:
        return None
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    m = _match_date(text)
    if not m:
        return None

    day, month = int(m.group(1)), int(m.group(2))
    explicit_year = m.group(3)
    year = int(explicit_year) if explicit_year else now.year
    try:
        resolved = datetime(year, month, day, NOMINAL_START_HOUR, tzinfo=timezone.utc)
    except ValueError:
        return None

    if not explicit_year and resolved < now - ROLLOVER_GRACE:
        try:
            resolved = resolved.replace(year=year + 1)
        except ValueError:
            # 29.02 with no leap day next year
            return None
    return resolved


def is_upcoming(start: datetime, now: datetime) -> bool:
    return start >= now
