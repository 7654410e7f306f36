"""Database models for the core app.

Volunteering data is scoped to students (Django users). Staff users act as
school admins: they approve opportunities, verify logged hours and assign
goals.

- `VolunteeringOpportunity`: a posted opportunity students can join.
- `VolunteeringParticipation`: a student's hours, either for an opportunity or
  logged manually after the fact.
- `VolunteeringGoal`: a target hours-by-date pair tracked on the hours chart.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models


class OpportunityStatus(models.TextChoices):
    """Review state for posted opportunities."""

    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class ParticipationStatus(models.TextChoices):
    """Lifecycle state for a participation."""

    ACTIVE = "active", "Active"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class GoalStatus(models.TextChoices):
    """Lifecycle state for a goal."""

    ACTIVE = "active", "Active"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class GoalType(models.TextChoices):
    """Who set a goal."""

    PERSONAL = "personal", "Personal"
    ADMIN_ASSIGNED = "admin_assigned", "Admin assigned"


class VolunteeringOpportunity(models.Model):
    """An opportunity posted by an organization or staff member.

    Attributes:
        title: Short opportunity title.
        organization: Hosting organization name.
        category: Free-form category label (e.g. "Environment").
        start_date: First day of the opportunity.
        end_date: Last day, or None for open-ended opportunities.
        is_ongoing: True for recurring opportunities without a fixed end.
        total_hours: Expected hours credited on completion, if known.
        max_volunteers: Cap on active or completed participations, if any.
        status: Review state; only approved opportunities are listed to students.
        approved_by: Staff member who last approved or rejected the opportunity.
    """

    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    organization = models.CharField(max_length=200)
    category = models.CharField(max_length=80, blank=True)
    location = models.CharField(max_length=200, blank=True)
    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)
    is_ongoing = models.BooleanField(default=False)
    is_online = models.BooleanField(default=False)
    hours_per_session = models.FloatField(null=True, blank=True)
    total_hours = models.FloatField(null=True, blank=True)
    max_volunteers = models.PositiveIntegerField(null=True, blank=True)
    status = models.CharField(max_length=16, choices=OpportunityStatus.choices, default=OpportunityStatus.PENDING)
    posted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="posted_opportunities",
    )
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reviewed_opportunities",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["start_date", "title"]
        verbose_name_plural = "Volunteering opportunities"

    def __str__(self) -> str:
        """Return the opportunity title for display contexts."""

        return self.title


class VolunteeringParticipation(models.Model):
    """Hours a student contributed, linked to an opportunity or logged manually.

    Attributes:
        student: Owning student.
        opportunity: Linked opportunity; None for manual logs.
        start_date: First day of the participation.
        end_date: Completion day, or None for single-day participation.
        total_hours: Hours credited once the participation completes.
        hours_per_week: Average weekly hours derived from the span.
        status: Lifecycle state.
        verified: True once staff confirmed the hours.
        is_manual_log: True when the student logged past hours directly.
    """

    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="volunteering_participations",
    )
    opportunity = models.ForeignKey(
        VolunteeringOpportunity,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="participations",
    )
    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)
    total_hours = models.FloatField(default=0)
    hours_per_week = models.FloatField(null=True, blank=True)
    status = models.CharField(
        max_length=16, choices=ParticipationStatus.choices, default=ParticipationStatus.ACTIVE
    )
    verified = models.BooleanField(default=False)
    verified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="verified_participations",
    )
    verified_at = models.DateTimeField(null=True, blank=True)
    verification_notes = models.TextField(blank=True)
    is_manual_log = models.BooleanField(default=False)
    organization_name = models.CharField(max_length=200, blank=True)
    activity_name = models.CharField(max_length=200, blank=True)
    activity_description = models.TextField(blank=True)
    service_sheet_url = models.URLField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-start_date", "-id"]
        indexes = [
            models.Index(fields=["student", "status"], name="core_part_student_status_idx"),
        ]

    def __str__(self) -> str:
        """Return a concise display string for admin/debug usage."""

        return f"{self.display_label} ({self.total_hours:g}h)"

    @property
    def display_label(self) -> str:
        """Return the activity name, falling back to the opportunity title."""

        if self.activity_name:
            return self.activity_name
        if self.opportunity is not None:
            return self.opportunity.title
        return self.organization_name or "Volunteering"


class VolunteeringGoal(models.Model):
    """A target number of hours, optionally by a date, for one student."""

    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="volunteering_goals",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_volunteering_goals",
    )
    target_hours = models.FloatField()
    target_date = models.DateField(null=True, blank=True)
    description = models.CharField(max_length=240, blank=True)
    goal_type = models.CharField(max_length=20, choices=GoalType.choices, default=GoalType.PERSONAL)
    status = models.CharField(max_length=16, choices=GoalStatus.choices, default=GoalStatus.ACTIVE)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:
        """Return a concise display string for admin/debug usage."""

        suffix = f" by {self.target_date.isoformat()}" if self.target_date else ""
        return f"{self.target_hours:g}h{suffix}"
