"""Integration tests for participation logging, status and verification."""

from __future__ import annotations

from datetime import date, timedelta

import pytest
from django.urls import reverse
from django.utils import timezone

from core.models import (
    OpportunityStatus,
    ParticipationStatus,
    VolunteeringOpportunity,
    VolunteeringParticipation,
)

pytestmark = pytest.mark.integration


def _log_payload(**overrides) -> dict[str, str]:
    payload = {
        "organization_name": "  City Library ",
        "activity_name": "Reading buddies",
        "activity_description": "Read with younger students.",
        "start_date": "2025-01-01",
        "end_date": "2025-01-15",
        "total_hours": "6",
    }
    payload.update(overrides)
    return payload


@pytest.mark.django_db
def test_log_hours_creates_completed_unverified_manual_log(auth_client, user) -> None:
    """Manual logs are completed, unverified and carry weekly hours."""

    response = auth_client.post(reverse("core:log_hours"), _log_payload())
    assert response.status_code == 201
    body = response.json()["participation"]
    assert body["status"] == "completed"
    assert body["verified"] is False
    assert body["isManualLog"] is True
    assert body["organizationName"] == "City Library"
    assert body["hoursPerWeek"] == pytest.approx(3.0)

    participation = VolunteeringParticipation.objects.get(pk=body["id"])
    assert participation.student == user
    assert participation.opportunity is None


@pytest.mark.django_db
def test_log_hours_rejects_non_positive_hours(auth_client) -> None:
    """Zero hours are a validation error."""

    response = auth_client.post(reverse("core:log_hours"), _log_payload(total_hours="0"))
    assert response.status_code == 400
    assert response.json()["errors"]["total_hours"] == ["Total hours must be greater than 0."]


@pytest.mark.django_db
def test_log_hours_rejects_inverted_dates(auth_client) -> None:
    """End dates before the start date are rejected at the form layer."""

    response = auth_client.post(reverse("core:log_hours"), _log_payload(end_date="2024-12-01"))
    assert response.status_code == 400
    assert "end_date" in response.json()["errors"]


@pytest.mark.django_db
def test_log_hours_is_student_only(staff_client) -> None:
    """Staff cannot log hours for themselves."""

    response = staff_client.post(reverse("core:log_hours"), _log_payload())
    assert response.status_code == 403


@pytest.mark.django_db
def test_log_hours_requires_post(auth_client) -> None:
    """GET is not allowed on the log endpoint."""

    assert auth_client.get(reverse("core:log_hours")).status_code == 405


@pytest.mark.django_db
def test_participation_list_is_scoped_to_student(auth_client, user, other_user) -> None:
    """Students only see their own participations."""

    VolunteeringParticipation.objects.create(student=user, start_date=date(2025, 1, 1), total_hours=2)
    VolunteeringParticipation.objects.create(student=other_user, start_date=date(2025, 1, 1), total_hours=9)

    rows = auth_client.get(reverse("core:participations")).json()["participations"]
    assert [row["studentId"] for row in rows] == [user.pk]


@pytest.mark.django_db
def test_staff_participation_list_filters_by_student(staff_client, user, other_user) -> None:
    """Staff see everyone, or one student when filtered."""

    VolunteeringParticipation.objects.create(student=user, start_date=date(2025, 1, 1), total_hours=2)
    VolunteeringParticipation.objects.create(student=other_user, start_date=date(2025, 1, 2), total_hours=9)

    assert len(staff_client.get(reverse("core:participations")).json()["participations"]) == 2
    rows = staff_client.get(reverse("core:participations"), {"student": other_user.pk}).json()["participations"]
    assert [row["totalHours"] for row in rows] == [9]


@pytest.mark.django_db
def test_student_marks_participation_completed(auth_client, user) -> None:
    """Owners can complete or cancel their participations."""

    participation = VolunteeringParticipation.objects.create(
        student=user, start_date=date(2025, 1, 1), total_hours=2, status=ParticipationStatus.ACTIVE
    )
    url = reverse("core:participation_status", args=[participation.pk])

    response = auth_client.post(url, {"status": "completed"})
    assert response.status_code == 200
    participation.refresh_from_db()
    assert participation.status == ParticipationStatus.COMPLETED

    assert auth_client.post(url, {"status": "active"}).status_code == 400


@pytest.mark.django_db
def test_student_cannot_update_other_participation(auth_client, other_user) -> None:
    """Updating someone else's participation is forbidden."""

    participation = VolunteeringParticipation.objects.create(
        student=other_user, start_date=date(2025, 1, 1), total_hours=2
    )
    response = auth_client.post(
        reverse("core:participation_status", args=[participation.pk]), {"status": "cancelled"}
    )
    assert response.status_code == 403


@pytest.mark.django_db
def test_staff_verifies_and_unverifies_participation(staff_client, staff_user, user) -> None:
    """Verification records the verifier and can be revoked."""

    participation = VolunteeringParticipation.objects.create(
        student=user, start_date=date(2025, 1, 1), total_hours=2, status=ParticipationStatus.COMPLETED
    )
    url = reverse("core:participation_verify", args=[participation.pk])

    response = staff_client.post(url, {"verification_notes": "Signed sheet received."})
    assert response.status_code == 200
    participation.refresh_from_db()
    assert participation.verified is True
    assert participation.verified_by == staff_user
    assert participation.verified_at is not None
    assert participation.verification_notes == "Signed sheet received."

    staff_client.post(url, {"verified": "false"})
    participation.refresh_from_db()
    assert participation.verified is False
    assert participation.verified_by is None


@pytest.mark.django_db
def test_students_cannot_verify(auth_client, user) -> None:
    """Verification is staff-only."""

    participation = VolunteeringParticipation.objects.create(student=user, start_date=date(2025, 1, 1), total_hours=2)
    response = auth_client.post(reverse("core:participation_verify", args=[participation.pk]))
    assert response.status_code == 403


@pytest.mark.django_db
def test_verify_missing_participation_is_404(staff_client) -> None:
    """Unknown participation ids are reported as not found."""

    assert staff_client.post(reverse("core:participation_verify", args=[424242])).status_code == 404


@pytest.mark.django_db
def test_check_completions_lists_ended_opportunities(auth_client, user) -> None:
    """Only active participations on finished opportunities are returned."""

    today = timezone.localdate()
    ended = VolunteeringOpportunity.objects.create(
        title="Beach cleanup",
        organization="Coast Trust",
        start_date=today - timedelta(days=10),
        end_date=today - timedelta(days=1),
        status=OpportunityStatus.APPROVED,
    )
    running = VolunteeringOpportunity.objects.create(
        title="Tutoring",
        organization="Library",
        start_date=today - timedelta(days=10),
        is_ongoing=True,
        status=OpportunityStatus.APPROVED,
    )
    due = VolunteeringParticipation.objects.create(
        student=user, opportunity=ended, start_date=ended.start_date, total_hours=4
    )
    VolunteeringParticipation.objects.create(
        student=user, opportunity=running, start_date=running.start_date, total_hours=4
    )

    rows = auth_client.get(reverse("core:check_completions")).json()["participations"]
    assert [row["id"] for row in rows] == [due.pk]
    assert rows[0]["label"] == "Beach cleanup"


@pytest.mark.django_db
def test_summary_reports_totals_and_dynamic_goal(auth_client, user) -> None:
    """Without a goal the summary falls back to the dynamic goal."""

    VolunteeringParticipation.objects.create(
        student=user, start_date=date(2025, 1, 1), total_hours=30, status=ParticipationStatus.COMPLETED, verified=True
    )
    VolunteeringParticipation.objects.create(
        student=user, start_date=date(2025, 1, 2), total_hours=15, status=ParticipationStatus.COMPLETED
    )

    body = auth_client.get(reverse("core:volunteering_summary")).json()
    assert body["totalHours"] == 45
    assert body["verifiedHours"] == 30
    assert body["pendingVerification"] == 1
    assert body["goalHours"] == 100
    assert body["goal"] is None
    assert body["progressPercent"] == 45.0
    assert body["message"] == "Building momentum"


@pytest.mark.django_db
def test_staff_participation_list_rejects_malformed_student(staff_client, user) -> None:
    """A non-numeric student filter returns 400 instead of every row."""

    VolunteeringParticipation.objects.create(student=user, start_date=date(2025, 1, 1), total_hours=2)
    response = staff_client.get(reverse("core:participations"), {"student": "abc"})
    assert response.status_code == 400
    assert "participations" not in response.json()


@pytest.mark.django_db
def test_summary_rejects_malformed_student(auth_client) -> None:
    """The summary validates the student filter too."""

    assert auth_client.get(reverse("core:volunteering_summary"), {"student": "-3"}).status_code == 400


@pytest.mark.django_db
def test_log_hours_accepts_sheet_url_without_scheme(auth_client) -> None:
    """Service sheet links without a scheme are stored as https."""

    response = auth_client.post(
        reverse("core:log_hours"), _log_payload(service_sheet_url="example.org/sheets/42")
    )
    assert response.status_code == 201
    participation = VolunteeringParticipation.objects.get(pk=response.json()["participation"]["id"])
    assert participation.service_sheet_url == "https://example.org/sheets/42"


@pytest.mark.django_db
def test_owner_edits_participation(auth_client, user) -> None:
    """Owners can change hours and dates; omitted fields are kept."""

    participation = VolunteeringParticipation.objects.create(
        student=user, start_date=date(2025, 1, 1), total_hours=2, activity_name="Tutoring"
    )
    url = reverse("core:participation_detail", args=[participation.pk])

    response = auth_client.post(url, {"total_hours": "5", "end_date": "2025-01-10"})
    assert response.status_code == 200
    participation.refresh_from_db()
    assert participation.total_hours == 5
    assert participation.end_date == date(2025, 1, 10)
    assert participation.activity_name == "Tutoring"

    assert auth_client.get(url).json()["participation"]["totalHours"] == 5


@pytest.mark.django_db
def test_participation_edit_rejects_end_before_start(auth_client, user) -> None:
    """Edits that would invert the dates are rejected."""

    participation = VolunteeringParticipation.objects.create(
        student=user, start_date=date(2025, 1, 10), total_hours=2
    )
    response = auth_client.post(
        reverse("core:participation_detail", args=[participation.pk]), {"end_date": "2025-01-01"}
    )
    assert response.status_code == 400
    assert "end_date" in response.json()["errors"]


@pytest.mark.django_db
def test_participation_detail_is_owner_only(auth_client, other_user) -> None:
    """Other students' participations are neither readable nor deletable."""

    participation = VolunteeringParticipation.objects.create(
        student=other_user, start_date=date(2025, 1, 1), total_hours=2
    )
    assert auth_client.get(reverse("core:participation_detail", args=[participation.pk])).status_code == 403
    assert auth_client.post(reverse("core:participation_delete", args=[participation.pk])).status_code == 403
    assert VolunteeringParticipation.objects.filter(pk=participation.pk).exists()


@pytest.mark.django_db
def test_owner_deletes_participation(auth_client, user) -> None:
    """Owners can remove a participation."""

    participation = VolunteeringParticipation.objects.create(student=user, start_date=date(2025, 1, 1), total_hours=2)
    assert auth_client.post(reverse("core:participation_delete", args=[participation.pk])).status_code == 200
    assert not VolunteeringParticipation.objects.filter(pk=participation.pk).exists()
