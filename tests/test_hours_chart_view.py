"""Integration tests for the hours chart API."""

from __future__ import annotations

from datetime import timedelta

import pytest
from django.test import override_settings
from django.urls import reverse
from django.utils import timezone

from core.models import GoalStatus, ParticipationStatus, VolunteeringGoal, VolunteeringParticipation

pytestmark = pytest.mark.integration


def _participation(student, *, days_ago_start: int, days_ago_end: int | None, hours: float, **extra):
    today = timezone.localdate()
    return VolunteeringParticipation.objects.create(
        student=student,
        start_date=today - timedelta(days=days_ago_start),
        end_date=today - timedelta(days=days_ago_end) if days_ago_end is not None else None,
        total_hours=hours,
        status=extra.pop("status", ParticipationStatus.COMPLETED),
        activity_name=extra.pop("activity_name", "Food bank"),
        **extra,
    )


@pytest.mark.django_db
def test_hours_chart_requires_login(client) -> None:
    """Anonymous users are redirected to the login page."""

    response = client.get(reverse("core:hours_chart"))
    assert response.status_code == 302


@pytest.mark.django_db
def test_hours_chart_returns_cumulative_series(auth_client, user) -> None:
    """The chart payload carries one label per day and the interpolated values."""

    participation = _participation(user, days_ago_start=10, days_ago_end=0, hours=10)

    response = auth_client.get(reverse("core:hours_chart"), {"range": "1W"})
    assert response.status_code == 200
    payload = response.json()
    chart = payload["chart"]

    assert payload["ok"] is True
    assert chart["range"] == "1W"
    assert len(chart["labels"]) == 8
    values = chart["datasets"][0]["data"]
    assert values[0] == pytest.approx(3.0)
    assert values[-1] == pytest.approx(10.0)
    assert chart["hasData"] is True
    assert chart["yAxisMax"] == pytest.approx(26.0)
    assert chart["goal"] is None
    assert [anchor["participationId"] for anchor in chart["anchors"]] == [participation.pk]


@pytest.mark.django_db
def test_hours_chart_ignores_cancelled_participations(auth_client, user) -> None:
    """Cancelled participations neither plot nor count toward the total."""

    _participation(user, days_ago_start=3, days_ago_end=None, hours=5, status=ParticipationStatus.CANCELLED)

    chart = auth_client.get(reverse("core:hours_chart"), {"range": "1M"}).json()["chart"]
    assert chart["hasData"] is False
    assert chart["datasets"][0]["seriesKind"] == "no_data"
    assert chart["anchors"] == []


@pytest.mark.django_db
def test_hours_chart_extends_to_future_goal(auth_client, user) -> None:
    """An active goal with a future deadline adds a flat projection and a marker."""

    _participation(user, days_ago_start=2, days_ago_end=None, hours=6)
    target_date = timezone.localdate() + timedelta(days=5)
    VolunteeringGoal.objects.create(
        student=user, created_by=user, target_hours=40, target_date=target_date, status=GoalStatus.ACTIVE
    )

    chart = auth_client.get(reverse("core:hours_chart"), {"range": "1W"}).json()["chart"]

    assert chart["endDate"] == target_date.isoformat()
    assert len(chart["labels"]) == 13
    assert chart["datasets"][0]["data"][-5:] == [6.0] * 5
    assert chart["datasets"][1]["seriesKind"] == "goal"
    assert chart["goal"]["intersection"] == {"date": target_date.isoformat(), "dayIndex": 12, "hours": 40.0}
    assert chart["yAxisMax"] == pytest.approx(52.0)


@pytest.mark.django_db
def test_hours_chart_remembers_selected_range(auth_client) -> None:
    """A range chosen once is reused when the next request omits it."""

    auth_client.get(reverse("core:hours_chart"), {"range": "6M"})
    chart = auth_client.get(reverse("core:hours_chart")).json()["chart"]
    assert chart["range"] == "6M"
    assert len(chart["labels"]) == 181


@pytest.mark.django_db
@override_settings(ACTIFY_DEFAULT_CHART_RANGE="1Y")
def test_hours_chart_uses_configured_default_range(auth_client) -> None:
    """Without a stored choice the configured default range applies."""

    chart = auth_client.get(reverse("core:hours_chart")).json()["chart"]
    assert chart["range"] == "1Y"


@pytest.mark.django_db
def test_hours_chart_rejects_unknown_range(auth_client) -> None:
    """Unknown range keywords are validation errors."""

    response = auth_client.get(reverse("core:hours_chart"), {"range": "2W"})
    assert response.status_code == 400
    assert "range" in response.json()["errors"]


@pytest.mark.django_db
def test_students_cannot_chart_other_students(auth_client, other_user) -> None:
    """Only staff may target another student's chart."""

    response = auth_client.get(reverse("core:hours_chart"), {"student": other_user.pk})
    assert response.status_code == 403


@pytest.mark.django_db
def test_staff_can_chart_any_student(staff_client, user) -> None:
    """Staff select a student with the `student` parameter."""

    _participation(user, days_ago_start=1, days_ago_end=None, hours=3)
    response = staff_client.get(reverse("core:hours_chart"), {"student": user.pk, "range": "1W"})
    assert response.status_code == 200
    assert response.json()["studentId"] == user.pk
    assert response.json()["chart"]["datasets"][0]["data"][-1] == 3.0


@pytest.mark.django_db
def test_staff_chart_for_missing_student_is_404(staff_client) -> None:
    """Unknown student ids are reported as not found."""

    response = staff_client.get(reverse("core:hours_chart"), {"student": 999999})
    assert response.status_code == 404
