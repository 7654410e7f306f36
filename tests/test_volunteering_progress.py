"""Unit tests for volunteering progress summaries and the store port."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

import pytest

from analysis.progress import (
    dynamic_goal_hours,
    hours_per_week,
    motivational_message,
    needs_completion_prompt,
    progress_percent,
    summarize_participations,
)
from analysis.store import InMemoryStore

pytestmark = pytest.mark.unit

TODAY = date(2025, 3, 15)


@dataclass
class _Row:
    status: str
    total_hours: float
    verified: bool
    start_date: date


def test_summarize_participations_counts_by_status() -> None:
    """Cancelled rows are ignored; upcoming rows start after today."""

    summary = summarize_participations(
        [
            _Row("completed", 10, True, date(2025, 1, 1)),
            _Row("completed", 4, False, date(2025, 2, 1)),
            _Row("active", 2, False, date(2025, 3, 1)),
            _Row("active", 3, False, date(2025, 4, 1)),
            _Row("cancelled", 50, True, date(2025, 1, 1)),
        ],
        today=TODAY,
    )
    assert summary.total_hours == 19
    assert summary.verified_hours == 10
    assert summary.pending_verification == 1
    assert summary.completed == 2
    assert summary.active == 1
    assert summary.upcoming == 1


@pytest.mark.parametrize(
    ("total", "goal"),
    [(0, 100), (99, 100), (100, 100), (101, 150), (260, 300)],
)
def test_dynamic_goal_rounds_up_to_fifty(total: float, goal: int) -> None:
    """The default goal is the next multiple of 50, at least 100."""

    assert dynamic_goal_hours(total) == goal


def test_progress_percent_is_capped() -> None:
    """Progress never exceeds 100%."""

    assert progress_percent(25, 100) == 25
    assert progress_percent(250, 100) == 100


@pytest.mark.parametrize(
    ("total", "message"),
    [
        (0, "Start your impact journey"),
        (5, "Great start! Keep going"),
        (20, "Building momentum"),
        (75, "Making real impact"),
        (120, "Outstanding dedication!"),
    ],
)
def test_motivational_message_thresholds(total: float, message: str) -> None:
    """Captions follow the running total."""

    assert motivational_message(total) == message


def test_completion_prompt_for_ended_opportunity() -> None:
    """Active participations prompt once the opportunity end date passes."""

    assert needs_completion_prompt(
        status="active", start_date=date(2025, 3, 1), end_date=TODAY, is_ongoing=True, today=TODAY
    )
    assert not needs_completion_prompt(
        status="completed", start_date=date(2025, 3, 1), end_date=date(2025, 3, 2), is_ongoing=False, today=TODAY
    )


def test_completion_prompt_for_one_off_opportunity() -> None:
    """One-off opportunities prompt a day after they start; ongoing ones wait."""

    assert needs_completion_prompt(
        status="active", start_date=date(2025, 3, 14), end_date=None, is_ongoing=False, today=TODAY
    )
    assert not needs_completion_prompt(
        status="active", start_date=TODAY, end_date=None, is_ongoing=False, today=TODAY
    )
    assert not needs_completion_prompt(
        status="active", start_date=date(2025, 1, 1), end_date=None, is_ongoing=True, today=TODAY
    )


def test_hours_per_week_uses_one_day_minimum() -> None:
    """A single-day log counts as one seventh of a week."""

    assert hours_per_week(2, start_date=TODAY, end_date=None) == pytest.approx(14)
    assert hours_per_week(10, start_date=date(2025, 3, 1), end_date=date(2025, 3, 15)) == pytest.approx(5)


def test_in_memory_store_round_trips_values() -> None:
    """The in-memory store returns defaults for missing keys."""

    store: InMemoryStore[str] = InMemoryStore({"hours_chart_range": "6M"})
    assert store.get("hours_chart_range") == "6M"
    assert store.get("missing", "1M") == "1M"
    store.set("hours_chart_range", "1Y")
    assert store.get("hours_chart_range") == "1Y"
