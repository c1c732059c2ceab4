"""Tracked subjects and the sport categories they feed.

This module is the one place the category list lives. The orchestrator,
the purge routine and the preferences responder all receive it from here.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SportCategory(str, Enum):
    F1 = "f1"
    AJAX = "ajax"
    AZ = "az"
    MVDP_ROAD = "mvdp_road"
    MVDP_CX = "mvdp_cx"
    MVDP_MTB = "mvdp_mtb"
    PP_ROAD = "pp_road"
    PP_CX = "pp_cx"


SPORT_LABELS: dict[SportCategory, str] = {
    SportCategory.F1: "Formula 1",
    SportCategory.AJAX: "Ajax",
    SportCategory.AZ: "AZ",
    SportCategory.MVDP_ROAD: "MvdP – Road",
    SportCategory.MVDP_CX: "MvdP – CX",
    SportCategory.MVDP_MTB: "MvdP – MTB",
    SportCategory.PP_ROAD: "PP – Road",
    SportCategory.PP_CX: "PP – CX",
}

# New members show up enabled for every user, see routers/preferences.py
ALL_SPORTS: list[SportCategory] = list(SportCategory)


class Discipline(str, Enum):
    ROAD = "road"
    CROSS = "cross"
    MOUNTAIN = "mountain"


@dataclass(frozen=True)
class CategoryMap:
    road: SportCategory
    cross: SportCategory
    mountain: SportCategory

    def for_discipline(self, discipline: Discipline) -> SportCategory:
        return getattr(self, discipline.value)

    def categories(self) -> tuple[SportCategory, ...]:
        """Distinct categories in road, cross, mountain order."""
        return tuple(dict.fromkeys((self.road, self.cross, self.mountain)))


# Keys RefreshSummary.report() writes next to the per-subject results
RESERVED_REPORT_KEYS = frozenset({"total", "purged", "purge_error", "persistence_errors"})


@dataclass(frozen=True)
class TrackedSubject:
    """One rider whose calendar is scraped from the statistics site.

    ``replace_on_success`` marks subjects whose stored events are swept
    before a fresh, non-empty batch is written.
    """

    source_slug: str
    display_name: str
    id_prefix: str
    category_map: CategoryMap
    replace_on_success: bool = True

    def __post_init__(self) -> None:
        if self.id_prefix in RESERVED_REPORT_KEYS:
            raise ValueError(f"id_prefix {self.id_prefix!r} clashes with a refresh report key")

    @property
    def categories(self) -> tuple[SportCategory, ...]:
        return self.category_map.categories()


TRACKED_SUBJECTS: tuple[TrackedSubject, ...] = (
    TrackedSubject(
        source_slug="mathieu-van-der-poel",
        display_name="Mathieu van der Poel",
        id_prefix="mvdp",
        category_map=CategoryMap(
            road=SportCategory.MVDP_ROAD,
            cross=SportCategory.MVDP_CX,
            mountain=SportCategory.MVDP_MTB,
        ),
    ),
    TrackedSubject(
        source_slug="puck-pieterse",
        display_name="Puck Pieterse",
        id_prefix="pp",
        # No separate MTB category: off-road racing is filed with cyclocross
        category_map=CategoryMap(
            road=SportCategory.PP_ROAD,
            cross=SportCategory.PP_CX,
            mountain=SportCategory.PP_CX,
        ),
    ),
)


def low_confidence_categories(
    subjects: tuple[TrackedSubject, ...] | list[TrackedSubject] = TRACKED_SUBJECTS,
) -> list[SportCategory]:
    """Categories fed by scraped subjects, i.e. the ones the purge sweeps."""
    seen: dict[SportCategory, None] = {}
    for subject in subjects:
        if subject.replace_on_success:
            for category in subject.categories:
                seen.setdefault(category, None)
    return list(seen)
