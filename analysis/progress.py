"""Volunteering progress summaries for dashboards and widgets.

This module is intentionally pure (no Django imports) so summaries can be
unit-tested without database coupling. Inputs are duck-typed participation
objects exposing `status`, `total_hours`, `verified` and `start_date`.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Final, Protocol

STATUS_ACTIVE: Final[str] = "active"
STATUS_COMPLETED: Final[str] = "completed"
STATUS_CANCELLED: Final[str] = "cancelled"

MIN_DYNAMIC_GOAL_HOURS: Final[int] = 100
DYNAMIC_GOAL_STEP_HOURS: Final[int] = 50


class _ParticipationLike(Protocol):
    """Protocol for participation rows (duck-typed)."""

    status: str
    total_hours: float
    verified: bool
    start_date: date


@dataclass(frozen=True, slots=True)
class VolunteeringSummary:
    """Counts and totals shown on the volunteering dashboard widget.

    Attributes:
        total_hours: Hours across all non-cancelled participations.
        verified_hours: Hours on verified, non-cancelled participations.
        pending_verification: Completed participations awaiting verification.
        active: Participations currently in progress.
        completed: Completed participations.
        upcoming: Active participations starting after today.
    """

    total_hours: float
    verified_hours: float
    pending_verification: int
    active: int
    completed: int
    upcoming: int


def summarize_participations(items: Iterable[_ParticipationLike], *, today: date) -> VolunteeringSummary:
    """Aggregate participation rows into dashboard counts."""

    total_hours = 0.0
    verified_hours = 0.0
    pending = active = completed = upcoming = 0
    for item in items:
        if item.status == STATUS_CANCELLED:
            continue
        hours = max(0.0, float(item.total_hours or 0))
        total_hours += hours
        if item.verified:
            verified_hours += hours
        if item.status == STATUS_COMPLETED:
            completed += 1
            if not item.verified:
                pending += 1
        elif item.status == STATUS_ACTIVE:
            if item.start_date > today:
                upcoming += 1
            else:
                active += 1
    return VolunteeringSummary(
        total_hours=total_hours,
        verified_hours=verified_hours,
        pending_verification=pending,
        active=active,
        completed=completed,
        upcoming=upcoming,
    )


def dynamic_goal_hours(total_hours: float) -> int:
    """Return the default goal shown when a student has not set one.

    The goal rounds up to the next multiple of 50 hours, with a floor of 100.
    """

    return max(MIN_DYNAMIC_GOAL_HOURS, math.ceil(total_hours / DYNAMIC_GOAL_STEP_HOURS) * DYNAMIC_GOAL_STEP_HOURS)


def progress_percent(total_hours: float, goal_hours: float) -> float:
    """Return progress toward a goal as a percentage capped at 100."""

    if goal_hours <= 0:
        return 100.0
    return min(total_hours / goal_hours * 100.0, 100.0)


def motivational_message(total_hours: float) -> str:
    """Return the widget caption for a running total."""

    if total_hours == 0:
        return "Start your impact journey"
    if total_hours < 10:
        return "Great start! Keep going"
    if total_hours < 50:
        return "Building momentum"
    if total_hours < 100:
        return "Making real impact"
    return "Outstanding dedication!"


def needs_completion_prompt(
    *,
    status: str,
    start_date: date,
    end_date: date | None,
    is_ongoing: bool,
    today: date,
) -> bool:
    """Return True when an active participation should ask for completion.

    An opportunity counts as finished once its end date has passed, or, for a
    one-off opportunity, once it started at least a day ago.
    """

    if status != STATUS_ACTIVE:
        return False
    if end_date is not None and end_date <= today:
        return True
    return not is_ongoing and start_date <= today - timedelta(days=1)


def hours_per_week(total_hours: float, *, start_date: date, end_date: date | None) -> float:
    """Return the average weekly hours over a logged span (minimum one day)."""

    days = max(1, ((end_date or start_date) - start_date).days)
    return total_hours / (days / 7)
