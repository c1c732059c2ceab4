"""Tests for the race calendar scraper: sanitizers and both extraction strategies.

Extraction tests run on synthetic HTML, either inline snippets or the
fixtures under tests/fixtures.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from app.parsers.dom import Document
from app.parsers.race_calendar import (
    extract_candidates,
    fallback_candidates,
    primary_candidates,
    subject_url,
)
from app.parsers.utils import (
    clean_race_name,
    get_link_text,
    has_valid_race_name,
    is_upcoming,
    looks_like_partial_date,
    parse_partial_date,
)

FIXTURES = Path(__file__).parent / "fixtures"


def _doc(name: str) -> Document:
    return Document.parse((FIXTURES / name).read_text())


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Name cleaning
# ---------------------------------------------------------------------------
class TestRaceNameCleaning:
    def test_strips_glued_stage_badge(self):
        assert clean_race_name("S1 (ITT)Stage 1 (ITT) - Setting Out") == "Stage 1 (ITT) - Setting Out"

    def test_strips_badge_before_prologue(self):
        assert clean_race_name("P1 Prologue - Lille") == "Prologue - Lille"

    def test_keeps_names_that_only_look_like_badges(self):
        assert clean_race_name("E3 Saxo Classic") == "E3 Saxo Classic"

    def test_collapses_whitespace(self):
        assert clean_race_name("  Tour   de\n France ") == "Tour de France"

    def test_link_text_joins_badge_and_title_with_space(self):
        doc = Document.parse(
            '<a href="#"><span class="badge">S1 (ITT)</span>Stage 1 (ITT) - Setting Out</a>'
        )
        link = doc.find("a")
        assert link.child_text_nodes() == ["S1 (ITT)", "Stage 1 (ITT) - Setting Out"]
        assert get_link_text(link) == "Stage 1 (ITT) - Setting Out"

    def test_link_text_does_not_mash_words(self):
        doc = Document.parse("<a><span>Ronde</span><span>van Vlaanderen</span></a>")
        assert get_link_text(doc.find("a")) == "Ronde van Vlaanderen"


# ---------------------------------------------------------------------------
# Race-name plausibility
# ---------------------------------------------------------------------------
class TestHasValidRaceName:
    @pytest.mark.parametrize("name", [
        "Tour de France",
        "Milano-Sanremo",
        "Stage 1 (ITT) - Setting Out",
        "E3 Saxo Classic",
    ])
    def test_accepts_race_names(self, name):
        assert has_valid_race_name(name) is True

    @pytest.mark.parametrize("name", [
        "",
        None,
        "UAE",  # too short
        "123456",  # ranking / points
        "1 345.5",
        "(1.UWT)",  # classification code
        "- Setting Out",  # badge leftover
    ])
    def test_rejects_garbage(self, name):
        assert has_valid_race_name(name) is False

    def test_length_boundary(self):
        assert has_valid_race_name("Gent 1") is True
        assert has_valid_race_name("Gent ") is False


# ---------------------------------------------------------------------------
# Partial dates
# ---------------------------------------------------------------------------
class TestParsePartialDate:
    NOW = _utc(2025, 3, 1, 8, 0)

    def test_day_month(self):
        assert parse_partial_date("22.03", self.NOW) == _utc(2025, 3, 22, 10, 0)

    def test_explicit_year(self):
        assert parse_partial_date("22.03.2026", self.NOW) == _utc(2026, 3, 22, 10, 0)

    def test_single_digit_day(self):
        assert parse_partial_date("5.04", self.NOW) == _utc(2025, 4, 5, 10, 0)

    @pytest.mark.parametrize("text", ["22.02-25.02", "05.07-27.07", "30.03.2025-06.04.2025"])
    def test_range_takes_start(self, text):
        left = text.split("-")[0]
        assert parse_partial_date(text, self.NOW) == parse_partial_date(left, self.NOW)

    @pytest.mark.parametrize("text", ["", "tbc", "2025-03-22", "22/03", "22.3", "31.02", "00.05", "22.13"])
    def test_unparseable(self, text):
        assert parse_partial_date(text, self.NOW) is None

    def test_rolls_over_to_next_year(self):
        now = _utc(2024, 12, 20, 12, 0)
        assert parse_partial_date("03.01", now) == _utc(2025, 1, 3, 10, 0)

    def test_near_future_not_rolled(self):
        now = _utc(2024, 1, 1, 12, 0)
        assert parse_partial_date("03.01", now) == _utc(2024, 1, 3, 10, 0)

    def test_recent_past_stays_this_year(self):
        now = _utc(2025, 1, 15, 8, 0)
        assert parse_partial_date("10.01", now) == _utc(2025, 1, 10, 10, 0)

    def test_exactly_seven_days_back_stays_this_year(self):
        now = _utc(2025, 5, 17, 10, 0)
        assert parse_partial_date("10.05", now) == _utc(2025, 5, 10, 10, 0)
        assert parse_partial_date("10.05", now + timedelta(seconds=1)) == _utc(2026, 5, 10, 10, 0)

    def test_explicit_year_never_rolled(self):
        now = _utc(2024, 12, 20, 12, 0)
        assert parse_partial_date("03.01.2024", now) == _utc(2024, 1, 3, 10, 0)

    def test_naive_now_treated_as_utc(self):
        assert parse_partial_date("22.03", datetime(2025, 3, 1, 8, 0)) == _utc(2025, 3, 22, 10, 0)

    @pytest.mark.parametrize("text,expected", [
        ("22.03", True),
        ("22.03.2025", True),
        ("05.07-27.07", True),
        ("tbc", False),
        ("", False),
        ("March 22", False),
    ])
    def test_looks_like_partial_date(self, text, expected):
        assert looks_like_partial_date(text) is expected

    def test_is_upcoming(self):
        assert is_upcoming(_utc(2025, 3, 1, 10, 0), self.NOW) is True
        assert is_upcoming(self.NOW, self.NOW) is True
        assert is_upcoming(_utc(2025, 2, 28, 10, 0), self.NOW) is False


# ---------------------------------------------------------------------------
# Extraction strategies
# ---------------------------------------------------------------------------
class TestPrimaryStrategy:
    def test_extracts_upcoming_list(self):
        result = list(primary_candidates(_doc("rider_upcoming.html")))

        names = [c.name_text for c in result]
        assert names[:4] == [
            "Exact Cross Zonhoven",
            "Omloop Nieuwsblad",
            "Milano-Sanremo",
            "Stage 1 (ITT) - Setting Out",
        ]
        assert "(2.UWT)" not in names
        assert result[0].date_text == "01.02"
        assert result[0].link_href == "race/exact-cross-zonhoven/2025"

    def test_date_from_first_text_when_no_date_node(self):
        doc = Document.parse(
            '<ul class="upcoming-races"><li>14.06 <a href="r">Dauphiné Libéré</a></li></ul>'
        )
        [candidate] = primary_candidates(doc)
        assert candidate.date_text == "14.06"
        assert candidate.name_text == "Dauphiné Libéré"

    def test_skips_entries_without_link(self):
        doc = Document.parse(
            '<ul class="upcoming-races"><li><span class="date">14.06</span> TBA</li></ul>'
        )
        assert list(primary_candidates(doc)) == []


class TestFallbackStrategy:
    def test_scans_table_rows(self):
        result = list(fallback_candidates(_doc("rider_table.html")))

        assert [(c.date_text, c.name_text) for c in result] == [
            ("08.02", "Superprestige Middelkerke"),
            ("15.03", "E3 Saxo Classic"),
            ("30.03-06.04", "Itzulia Basque Country"),
        ]

    def test_skips_numeric_link_for_later_cell(self):
        [first, *_] = fallback_candidates(_doc("rider_table.html"))
        assert first.link_href == "race/superprestige-middelkerke/2025"

    def test_name_beyond_window_is_ignored(self):
        names = [c.name_text for c in fallback_candidates(_doc("rider_table.html"))]
        assert "Amstel Gold Race" not in names

    def test_invalid_names_never_extracted(self):
        for candidate in fallback_candidates(_doc("rider_table.html")):
            assert has_valid_race_name(candidate.name_text)


class TestExtractCandidates:
    def test_primary_wins_when_present(self):
        names = [c.name_text for c in extract_candidates(_doc("rider_upcoming.html"))]
        assert "Strade Bianche" not in names

    def test_dedups_repeated_entries(self):
        result = list(extract_candidates(_doc("rider_upcoming.html")))
        keys = [(c.date_text, c.name_text) for c in result]
        assert keys.count(("05.07-27.07", "Tour de France")) == 1
        assert len(result) == 8

    def test_fallback_when_primary_empty(self):
        doc = _doc("rider_table.html")
        result = list(extract_candidates(doc))
        assert result
        assert result == list(fallback_candidates(_doc("rider_table.html")))

    def test_fallback_when_primary_has_only_garbage(self):
        doc = Document.parse(
            '<ul class="upcoming-races"><li><span class="date">01.05</span><a>12</a></li></ul>'
            "<table><tr><td>01.05</td><td>x</td><td><a>Eschborn-Frankfurt</a></td></tr></table>"
        )
        assert [c.name_text for c in extract_candidates(doc)] == ["Eschborn-Frankfurt"]

    def test_fallback_when_primary_dates_are_broken(self):
        doc = Document.parse(
            '<ul class="upcoming-races">'
            '<li><span class="date">tbc</span><a>Tour of Flanders</a></li>'
            '<li><span class="date">Apr</span><a>Paris-Roubaix</a></li>'
            "</ul>"
            "<table><tr><td>06.04</td><td>1</td><td><a>Tour of Flanders</a></td></tr>"
            "<tr><td>13.04</td><td>2</td><td><a>Paris-Roubaix</a></td></tr></table>"
        )
        result = [(c.date_text, c.name_text) for c in extract_candidates(doc)]

        assert ("06.04", "Tour of Flanders") in result
        assert ("13.04", "Paris-Roubaix") in result

    def test_one_dated_primary_entry_keeps_table_unscanned(self):
        doc = Document.parse(
            '<ul class="upcoming-races">'
            '<li><span class="date">tbc</span><a>Tour of Flanders</a></li>'
            '<li><span class="date">13.04</span><a>Paris-Roubaix</a></li>'
            "</ul>"
            "<table><tr><td>20.04</td><td>1</td><td><a>Amstel Gold Race</a></td></tr></table>"
        )
        names = [c.name_text for c in extract_candidates(doc)]
        assert names == ["Tour of Flanders", "Paris-Roubaix"]

    def test_stage_rows_repeating_header_count_once(self):
        doc = Document.parse(
            "<table>"
            "<tr><td>22.02-25.02</td><td>1</td><td><a>UAE Tour</a></td></tr>"
            "<tr><td>22.02-25.02</td><td>3</td><td><a>UAE Tour</a></td></tr>"
            "<tr><td>22.02-25.02</td><td>2</td><td><a>UAE Tour</a></td></tr>"
            "</table>"
        )
        assert len(list(fallback_candidates(doc))) == 3
        assert len(list(extract_candidates(doc))) == 1

    def test_empty_page(self):
        assert list(extract_candidates(Document.parse("<html><body></body></html>"))) == []


def test_subject_url(monkeypatch):
    from app.config import settings

    monkeypatch.setattr(settings, "race_site_url", "https://stats.example")
    assert subject_url("puck-pieterse") == "https://stats.example/rider/puck-pieterse"
