"""Chart.js payload for the cumulative volunteering hours chart."""

from __future__ import annotations

from typing import TypedDict

from analysis.dto import ChartPoint, HoursSeries


class HoursDataset(TypedDict, total=False):
    """A Chart.js dataset payload for the hours chart."""

    label: str
    seriesKind: str
    data: list[float | None]
    borderColor: str
    borderDash: list[int]
    borderWidth: float
    pointRadius: int
    spanGaps: bool


class ChartPointPayload(TypedDict):
    """A date/value location with its x offset."""

    date: str
    dayIndex: int
    hours: float


class GoalPayload(TypedDict):
    """Goal reference lines for the chart panel."""

    targetHours: float
    targetDate: str | None
    description: str
    intersection: ChartPointPayload | None


class AnchorPayload(TypedDict):
    """Hover target for a completed participation."""

    participationId: int | None
    label: str
    totalHours: float
    point: ChartPointPayload


class HoursChartData(TypedDict):
    """The full chart payload (labels + datasets + hover metadata)."""

    range: str
    startDate: str
    endDate: str
    labels: list[str]
    datasets: list[HoursDataset]
    yAxisMax: float
    hasData: bool
    goal: GoalPayload | None
    anchors: list[AnchorPayload]


PRIMARY_COLOR = "#2563eb"
GOAL_COLOR = "#7c3aed"


def _point(point: ChartPoint) -> ChartPointPayload:
    return {"date": point.date.isoformat(), "dayIndex": point.day_index, "hours": round(point.hours, 2)}


def render_hours_chart(series: HoursSeries) -> HoursChartData:
    """Convert an HoursSeries into the chart payload consumed by the dashboard.

    An all-zero series is emitted as a dashed, thin "no data" line so the UI can
    tell missing history apart from zero progress.
    """

    labels = [point.date.isoformat() for point in series.points]
    hours_dataset: HoursDataset = {
        "label": "Cumulative hours",
        "seriesKind": "cumulative_hours",
        "data": [round(point.cumulative_hours, 2) for point in series.points],
        "borderColor": PRIMARY_COLOR,
        "borderWidth": 2.5,
        "pointRadius": 0,
        "spanGaps": True,
    }
    if not series.has_data:
        hours_dataset["borderDash"] = [3, 3]
        hours_dataset["borderWidth"] = 1.5
        hours_dataset["seriesKind"] = "no_data"
    datasets: list[HoursDataset] = [hours_dataset]

    goal_payload: GoalPayload | None = None
    if series.goal is not None:
        datasets.append(
            {
                "label": "Goal",
                "seriesKind": "goal",
                "data": [series.goal.target_hours] * len(labels),
                "borderColor": GOAL_COLOR,
                "borderDash": [4, 4],
                "borderWidth": 1.5,
                "pointRadius": 0,
            }
        )
        goal_payload = {
            "targetHours": series.goal.target_hours,
            "targetDate": series.goal.target_date.isoformat() if series.goal.target_date else None,
            "description": series.goal.description,
            "intersection": _point(series.goal.intersection) if series.goal.intersection else None,
        }

    return {
        "range": series.window.range_key,
        "startDate": series.window.start_date.isoformat(),
        "endDate": series.window.end_date.isoformat(),
        "labels": labels,
        "datasets": datasets,
        "yAxisMax": round(series.y_axis_max, 2),
        "hasData": series.has_data,
        "goal": goal_payload,
        "anchors": [
            {
                "participationId": anchor.record_id,
                "label": anchor.label,
                "totalHours": anchor.total_hours,
                "point": _point(anchor.point),
            }
            for anchor in series.anchors
        ],
    }
