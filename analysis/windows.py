"""Display-window helpers for the hours chart.

Range keywords map to a fixed number of days ending today. A goal deadline in
the future stretches the window forward so the deadline marker stays visible.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Final

from .dto import DisplayWindow

RANGE_DAYS: Final[dict[str, int]] = {
    "1W": 7,
    "1M": 30,
    "6M": 180,
    "1Y": 365,
}
RANGE_ALL: Final[str] = "all"
RANGE_CHOICES: Final[tuple[str, ...]] = (*RANGE_DAYS, RANGE_ALL)
MIN_ALL_RANGE_DAYS: Final[int] = 30


def base_day_count(range_key: str, *, today: date, earliest_start: date | None = None) -> int:
    """Return the number of days a range keyword covers before goal extension.

    Args:
        range_key: One of `RANGE_CHOICES`.
        today: The current calendar day.
        earliest_start: Earliest participation start date, used by `all`.

    Returns:
        Day count for the range.

    Raises:
        ValueError: When `range_key` is not a known range.
    """

    if range_key in RANGE_DAYS:
        return RANGE_DAYS[range_key]
    if range_key != RANGE_ALL:
        raise ValueError(f"Unknown chart range {range_key!r}; expected one of {', '.join(RANGE_CHOICES)}.")
    if earliest_start is None:
        return MIN_ALL_RANGE_DAYS
    return max(MIN_ALL_RANGE_DAYS, (today - earliest_start).days)


def display_window_for_range(
    range_key: str,
    *,
    today: date,
    goal_target_date: date | None = None,
    earliest_start: date | None = None,
) -> DisplayWindow:
    """Compute the display window for a range keyword.

    Args:
        range_key: One of `RANGE_CHOICES`.
        today: The current calendar day.
        goal_target_date: Optional goal deadline; a future deadline extends the window.
        earliest_start: Earliest participation start date, used by `all`.

    Returns:
        DisplayWindow whose end is today or the future goal deadline.
    """

    day_count = base_day_count(range_key, today=today, earliest_start=earliest_start)
    end_date = today
    if goal_target_date is not None and goal_target_date > today:
        day_count += (goal_target_date - today).days
        end_date = goal_target_date
    start_date = end_date - timedelta(days=day_count)
    return DisplayWindow(range_key=range_key, start_date=start_date, end_date=end_date, day_count=day_count)


def window_days(window: DisplayWindow) -> tuple[date, ...]:
    """Return every calendar day in the window, in order."""

    return tuple(window.start_date + timedelta(days=offset) for offset in range(window.day_count + 1))
