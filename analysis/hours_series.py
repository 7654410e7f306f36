"""Cumulative volunteering hours series for the progress chart.

The engine works in date/value space only. It turns participation records and
an optional goal into one cumulative value per day of the display window, the
goal reference geometry, and the hover anchors for each completed record.
Pixel mapping belongs to whatever draws the chart.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace
from datetime import date
from typing import Final

from .dto import (
    ChartPoint,
    DisplayWindow,
    Goal,
    GoalGeometry,
    HoursSeries,
    ParticipationAnchor,
    ParticipationRecord,
    SeriesPoint,
)
from .windows import display_window_for_range, window_days

logger = logging.getLogger(__name__)

Y_AXIS_FLOOR: Final[float] = 20.0
Y_AXIS_HEADROOM: Final[float] = 1.3


def normalize_participations(records: Iterable[ParticipationRecord]) -> tuple[ParticipationRecord, ...]:
    """Return records that contribute to the series, with bad inputs repaired.

    Negative hours are clamped to zero and an end date before the start date is
    clamped to the start date. Records left with no hours are dropped.

    Args:
        records: Participation records as supplied by the caller.

    Returns:
        A tuple of contributing records in input order.
    """

    normalized: list[ParticipationRecord] = []
    for record in records:
        if record.total_hours < 0:
            logger.warning(
                "Clamping negative hours %s to 0 for participation %s.", record.total_hours, record.record_id
            )
            record = replace(record, total_hours=0.0)
        if record.end_date is not None and record.end_date < record.start_date:
            logger.warning(
                "Participation %s ends (%s) before it starts (%s); using the start date.",
                record.record_id,
                record.end_date,
                record.start_date,
            )
            record = replace(record, end_date=record.start_date)
        if record.total_hours <= 0:
            continue
        normalized.append(record)
    return tuple(normalized)


def contribution_on(record: ParticipationRecord, day: date) -> float:
    """Return the hours a record has credited by the end of `day`.

    Hours accrue evenly across a multi-day record: `k` days into an `N`-day span
    the record contributes `total_hours * k / N`.
    """

    if day < record.start_date:
        return 0.0
    end_date = record.completion_date
    if day >= end_date:
        return float(record.total_hours)
    duration_days = max(1, (end_date - record.start_date).days)
    elapsed_days = (day - record.start_date).days
    return record.total_hours * (elapsed_days / duration_days)


def cumulative_hours_on(records: Iterable[ParticipationRecord], day: date) -> float:
    """Sum every record's contribution for a single day."""

    return sum((contribution_on(record, day) for record in records), 0.0)


def y_axis_max(*, max_value: float, goal_hours: float | None) -> float:
    """Return the y-axis maximum with headroom over data, goal and floor."""

    return max(max_value, goal_hours or 0.0, Y_AXIS_FLOOR) * Y_AXIS_HEADROOM


def goal_geometry(goal: Goal, *, window: DisplayWindow) -> GoalGeometry:
    """Describe the goal reference lines for a window.

    The intersection marks the planned target, not a measured crossing, so it is
    present whenever the deadline falls inside the window.
    """

    intersection = None
    if goal.target_date is not None and window.contains(goal.target_date):
        intersection = ChartPoint(
            date=goal.target_date,
            day_index=window.day_index(goal.target_date),
            hours=float(goal.target_hours),
        )
    return GoalGeometry(
        target_hours=float(goal.target_hours),
        target_date=goal.target_date,
        description=goal.description,
        intersection=intersection,
    )


def participation_anchors(
    records: Iterable[ParticipationRecord], *, window: DisplayWindow
) -> tuple[ParticipationAnchor, ...]:
    """Return hover anchors for records completing inside the window.

    Each anchor's value is the total of all records completing on or before
    the anchor's date, so records sharing a completion date share a value.
    """

    ordered = sorted(records, key=lambda record: record.completion_date)
    anchors: list[ParticipationAnchor] = []
    for record in ordered:
        completed_on = record.completion_date
        if not window.contains(completed_on):
            continue
        hours_as_of = sum(
            (other.total_hours for other in ordered if other.completion_date <= completed_on),
            0.0,
        )
        anchors.append(
            ParticipationAnchor(
                record_id=record.record_id,
                label=record.label,
                total_hours=float(record.total_hours),
                point=ChartPoint(
                    date=completed_on,
                    day_index=window.day_index(completed_on),
                    hours=hours_as_of,
                ),
            )
        )
    return tuple(anchors)


def compute_hours_series(
    participations: Iterable[ParticipationRecord],
    *,
    goal: Goal | None,
    current_total_hours: float,
    range_key: str,
    today: date,
) -> HoursSeries:
    """Compute the cumulative hours series for a display window.

    Args:
        participations: Participation records for one student.
        goal: Optional goal; a future deadline extends the window.
        current_total_hours: Authoritative present-day total, plotted flat for
            every day after `today`.
        range_key: One of `analysis.windows.RANGE_CHOICES`.
        today: The current calendar day.

    Returns:
        HoursSeries with one point per day of the window.

    Raises:
        ValueError: When `range_key` is unknown.
    """

    records = normalize_participations(participations)
    if current_total_hours < 0:
        logger.warning("Clamping negative current total hours %s to 0.", current_total_hours)
        current_total_hours = 0.0

    earliest_start = min((record.start_date for record in records), default=None)
    window = display_window_for_range(
        range_key,
        today=today,
        goal_target_date=goal.target_date if goal is not None else None,
        earliest_start=earliest_start,
    )

    points: list[SeriesPoint] = []
    for day in window_days(window):
        if day > today:
            value = float(current_total_hours)
        else:
            value = cumulative_hours_on(records, day)
        points.append(SeriesPoint(date=day, cumulative_hours=value))

    max_value = max((point.cumulative_hours for point in points), default=0.0)
    return HoursSeries(
        window=window,
        points=tuple(points),
        y_axis_max=y_axis_max(max_value=max_value, goal_hours=goal.target_hours if goal is not None else None),
        goal=goal_geometry(goal, window=window) if goal is not None else None,
        anchors=participation_anchors(records, window=window),
        has_data=max_value > 0,
    )
