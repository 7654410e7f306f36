"""DTO types used by the hours series engine.

DTOs are plain data containers used to transport analysis inputs and results
between the Django layer and the chart payload builder. They intentionally avoid
any Django/ORM dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True, slots=True)
class ParticipationRecord:
    """A logged or verified span of volunteering time.

    Attributes:
        start_date: Inclusive start of the activity.
        end_date: Optional completion date; None means the same day as `start_date`.
        total_hours: Hours credited once the record is complete.
        record_id: Optional identifier of the persisted participation.
        label: Optional display label used by tooltips.
    """

    start_date: date
    end_date: date | None
    total_hours: float
    record_id: int | None = None
    label: str = ""

    @property
    def completion_date(self) -> date:
        """Return the day on which the record is fully credited."""

        return self.end_date if self.end_date is not None else self.start_date


@dataclass(frozen=True, slots=True)
class Goal:
    """A target hours-by-date pair a student tracks progress against."""

    target_hours: float
    target_date: date | None = None
    description: str = ""


@dataclass(frozen=True, slots=True)
class DisplayWindow:
    """The inclusive date range rendered by the hours chart.

    Attributes:
        range_key: Requested range keyword (1W, 1M, 6M, 1Y, all).
        start_date: First day of the series.
        end_date: Last day of the series.
        day_count: Number of day offsets; the series has `day_count + 1` points.
    """

    range_key: str
    start_date: date
    end_date: date
    day_count: int

    def contains(self, day: date) -> bool:
        """Return True when `day` falls within the inclusive window."""

        return self.start_date <= day <= self.end_date

    def day_index(self, day: date) -> int:
        """Return the offset of `day` from the window start."""

        return (day - self.start_date).days


@dataclass(frozen=True, slots=True)
class SeriesPoint:
    """Cumulative hours credited as of a calendar day."""

    date: date
    cumulative_hours: float


@dataclass(frozen=True, slots=True)
class ChartPoint:
    """A location in date/value space, with the day offset used for x mapping."""

    date: date
    day_index: int
    hours: float


@dataclass(frozen=True, slots=True)
class GoalGeometry:
    """Goal reference lines for a rendered window.

    Attributes:
        target_hours: Y value of the horizontal goal reference.
        target_date: Goal deadline, if any.
        description: Opaque goal label passed through for display.
        intersection: Deadline marker at (target_date, target_hours) when the
            deadline falls within the window, otherwise None.
    """

    target_hours: float
    target_date: date | None
    description: str
    intersection: ChartPoint | None


@dataclass(frozen=True, slots=True)
class ParticipationAnchor:
    """Hover target placed where a participation completes."""

    record_id: int | None
    label: str
    total_hours: float
    point: ChartPoint


@dataclass(frozen=True)
class HoursSeries:
    """Result of the cumulative hours computation.

    Attributes:
        window: The display window the series covers.
        points: One point per day offset, ordered by date.
        y_axis_max: Suggested y-axis maximum with headroom.
        goal: Goal geometry, or None when no goal was supplied.
        anchors: Per-participation hover anchors ordered by date.
        has_data: False when every point is zero (a "no data" line).
    """

    window: DisplayWindow
    points: tuple[SeriesPoint, ...]
    y_axis_max: float
    goal: GoalGeometry | None = None
    anchors: tuple[ParticipationAnchor, ...] = ()
    has_data: bool = False

    def value_on(self, day: date) -> float | None:
        """Return the cumulative value plotted for `day`, or None outside the window."""

        if not self.window.contains(day):
            return None
        return self.points[self.window.day_index(day)].cumulative_hours
