"""Service-layer functions for the core app.

Services in `core` coordinate Django persistence concerns (ORM, transactions)
with the pure analysis modules.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from datetime import date

from django.contrib.auth.models import AbstractUser
from django.db import transaction
from django.db.models import Count, Q, QuerySet, Sum
from django.utils import timezone

from analysis.dto import Goal, ParticipationRecord
from analysis.hours_series import compute_hours_series
from analysis.progress import hours_per_week, needs_completion_prompt
from core.charting.hours import HoursChartData, render_hours_chart
from core.models import (
    GoalStatus,
    GoalType,
    OpportunityStatus,
    ParticipationStatus,
    VolunteeringGoal,
    VolunteeringOpportunity,
    VolunteeringParticipation,
)

logger = logging.getLogger(__name__)

SEAT_HOLDING_STATUSES = (ParticipationStatus.ACTIVE, ParticipationStatus.COMPLETED)
DEFAULT_REQUEST_CATEGORY = "Community Service"

EXPORT_COLUMNS = (
    "student",
    "email",
    "activity",
    "organization",
    "start_date",
    "end_date",
    "total_hours",
    "status",
    "verified",
    "manual_log",
)


def counted_participations(student: AbstractUser) -> QuerySet[VolunteeringParticipation]:
    """Return a student's participations that count toward their hours."""

    return (
        VolunteeringParticipation.objects.filter(student=student)
        .exclude(status=ParticipationStatus.CANCELLED)
        .select_related("opportunity")
    )


def participation_records_for(student: AbstractUser) -> tuple[ParticipationRecord, ...]:
    """Snapshot a student's participations as engine input records."""

    return tuple(
        ParticipationRecord(
            start_date=participation.start_date,
            end_date=participation.end_date,
            total_hours=participation.total_hours,
            record_id=participation.pk,
            label=participation.display_label,
        )
        for participation in counted_participations(student).order_by("start_date", "id")
    )


def current_total_hours_for(student: AbstractUser) -> float:
    """Return the running total of credited hours for a student."""

    total = counted_participations(student).aggregate(total=Sum("total_hours"))["total"]
    return float(total or 0.0)


def active_goal_for(student: AbstractUser) -> VolunteeringGoal | None:
    """Return the most recently created active goal, if any."""

    return VolunteeringGoal.objects.filter(student=student, status=GoalStatus.ACTIVE).order_by("-created_at", "-id").first()


def goal_input(goal: VolunteeringGoal | None) -> Goal | None:
    """Convert an optional goal row into the engine's Goal DTO."""

    if goal is None:
        return None
    return Goal(target_hours=goal.target_hours, target_date=goal.target_date, description=goal.description)


def build_hours_chart(student: AbstractUser, *, range_key: str, today: date) -> HoursChartData:
    """Compute the hours chart payload for one student.

    Args:
        student: Student whose participations are charted.
        range_key: Validated range keyword.
        today: Current local date.

    Returns:
        Chart payload with the cumulative series, goal geometry and anchors.
    """

    series = compute_hours_series(
        participation_records_for(student),
        goal=goal_input(active_goal_for(student)),
        current_total_hours=current_total_hours_for(student),
        range_key=range_key,
        today=today,
    )
    return render_hours_chart(series)


def log_manual_hours(
    student: AbstractUser,
    *,
    organization_name: str,
    activity_name: str,
    activity_description: str,
    start_date: date,
    end_date: date | None,
    total_hours: float,
    service_sheet_url: str = "",
) -> VolunteeringParticipation:
    """Record past volunteering hours logged by the student.

    Manual logs are created completed and unverified; staff verify them later.
    """

    participation = VolunteeringParticipation.objects.create(
        student=student,
        opportunity=None,
        start_date=start_date,
        end_date=end_date,
        total_hours=total_hours,
        hours_per_week=hours_per_week(total_hours, start_date=start_date, end_date=end_date),
        status=ParticipationStatus.COMPLETED,
        is_manual_log=True,
        organization_name=organization_name.strip(),
        activity_name=activity_name.strip(),
        activity_description=activity_description.strip(),
        service_sheet_url=service_sheet_url.strip(),
        verified=False,
    )
    logger.info("Student %s logged %s manual hours (participation %s).", student.pk, total_hours, participation.pk)
    return participation


def set_participation_status(participation: VolunteeringParticipation, *, status: str) -> VolunteeringParticipation:
    """Mark a participation completed or cancelled."""

    participation.status = status
    participation.save(update_fields=["status", "updated_at"])
    logger.info("Participation %s marked %s.", participation.pk, status)
    return participation


def verify_participation(
    participation: VolunteeringParticipation,
    *,
    verifier: AbstractUser,
    verified: bool = True,
    notes: str = "",
) -> VolunteeringParticipation:
    """Record a staff verification decision for a participation."""

    participation.verified = verified
    participation.verified_by = verifier if verified else None
    participation.verified_at = timezone.now() if verified else None
    participation.verification_notes = notes
    participation.save(
        update_fields=["verified", "verified_by", "verified_at", "verification_notes", "updated_at"]
    )
    logger.info("Participation %s verified=%s by user %s.", participation.pk, verified, verifier.pk)
    return participation


def create_goal(
    student: AbstractUser,
    *,
    created_by: AbstractUser,
    target_hours: float,
    target_date: date | None = None,
    description: str = "",
    goal_type: str | None = None,
) -> VolunteeringGoal:
    """Create an active goal for a student.

    The goal type defaults to admin-assigned when staff create the goal and
    personal otherwise.
    """

    if goal_type is None:
        goal_type = GoalType.ADMIN_ASSIGNED if created_by.is_staff else GoalType.PERSONAL
    goal = VolunteeringGoal.objects.create(
        student=student,
        created_by=created_by,
        target_hours=target_hours,
        target_date=target_date,
        description=description,
        goal_type=goal_type,
        status=GoalStatus.ACTIVE,
    )
    logger.info("Goal %s (%sh) created for student %s by user %s.", goal.pk, target_hours, student.pk, created_by.pk)
    return goal


def update_goal(goal: VolunteeringGoal, *, changes: dict[str, object]) -> VolunteeringGoal:
    """Apply partial updates to a goal.

    Moving a goal into completed stamps `completed_at`; moving it out clears it.
    Re-posting `completed` for a completed goal keeps the original timestamp.
    """

    update_fields = [name for name in ("target_hours", "target_date", "description", "status") if name in changes]
    if not update_fields:
        return goal

    with transaction.atomic():
        goal = VolunteeringGoal.objects.select_for_update().get(pk=goal.pk)
        was_completed = goal.status == GoalStatus.COMPLETED
        for field_name in update_fields:
            setattr(goal, field_name, changes[field_name])
        is_completed = goal.status == GoalStatus.COMPLETED
        if is_completed and not was_completed:
            goal.completed_at = timezone.now()
            update_fields.append("completed_at")
        elif was_completed and not is_completed:
            goal.completed_at = None
            update_fields.append("completed_at")
        goal.save(update_fields=update_fields)
    logger.info("Goal %s updated: %s.", goal.pk, ", ".join(update_fields))
    return goal


def visible_opportunities(
    user: AbstractUser,
    *,
    status: str | None = None,
    category: str | None = None,
    search: str | None = None,
) -> QuerySet[VolunteeringOpportunity]:
    """Return opportunities a user may browse, newest first.

    Non-staff users only ever see approved opportunities; staff see every
    status unless one is requested.
    """

    queryset = VolunteeringOpportunity.objects.annotate(
        participant_count=Count(
            "participations",
            filter=Q(participations__status__in=SEAT_HOLDING_STATUSES),
        )
    ).order_by("-created_at", "-id")
    if not user.is_staff:
        queryset = queryset.filter(status=OpportunityStatus.APPROVED)
    elif status:
        queryset = queryset.filter(status=status)
    if category:
        queryset = queryset.filter(category=category)
    if search:
        queryset = queryset.filter(
            Q(title__icontains=search) | Q(description__icontains=search) | Q(organization__icontains=search)
        )
    return queryset


def create_opportunity(posted_by: AbstractUser, *, fields: dict[str, object]) -> VolunteeringOpportunity:
    """Create an opportunity; staff postings are approved immediately."""

    approved = posted_by.is_staff
    opportunity = VolunteeringOpportunity.objects.create(
        **fields,
        posted_by=posted_by,
        status=OpportunityStatus.APPROVED if approved else OpportunityStatus.PENDING,
        approved_by=posted_by if approved else None,
    )
    logger.info("Opportunity %s posted by user %s (status=%s).", opportunity.pk, posted_by.pk, opportunity.status)
    return opportunity


def request_opportunity(
    posted_by: AbstractUser,
    *,
    title: str,
    description: str,
    on_date: date,
    is_recurring: bool,
    organization: str = "",
) -> VolunteeringOpportunity:
    """Submit a short opportunity request for staff review.

    One-off requests start and end on `on_date`; recurring ones are open-ended.
    """

    opportunity = VolunteeringOpportunity.objects.create(
        title=title,
        description=description,
        organization=organization or posted_by.get_full_name() or posted_by.get_username(),
        category=DEFAULT_REQUEST_CATEGORY,
        start_date=on_date,
        end_date=None if is_recurring else on_date,
        is_ongoing=is_recurring,
        status=OpportunityStatus.PENDING,
        posted_by=posted_by,
    )
    logger.info("Opportunity %s requested by user %s.", opportunity.pk, posted_by.pk)
    return opportunity


def review_opportunity(
    opportunity: VolunteeringOpportunity,
    *,
    reviewer: AbstractUser,
    approve: bool,
    reason: str = "",
) -> VolunteeringOpportunity:
    """Record a staff approval or rejection."""

    opportunity.status = OpportunityStatus.APPROVED if approve else OpportunityStatus.REJECTED
    opportunity.approved_by = reviewer
    opportunity.save(update_fields=["status", "approved_by"])
    if reason:
        logger.info("Opportunity %s %s by user %s: %s", opportunity.pk, opportunity.status, reviewer.pk, reason)
    else:
        logger.info("Opportunity %s %s by user %s.", opportunity.pk, opportunity.status, reviewer.pk)
    return opportunity


def update_opportunity(
    opportunity: VolunteeringOpportunity,
    *,
    editor: AbstractUser,
    changes: dict[str, object],
) -> VolunteeringOpportunity:
    """Apply partial updates to an opportunity.

    Status changes are only applied for staff editors. Approving through an
    update records the editor as reviewer when nobody reviewed it yet.
    """

    changes = dict(changes)
    status = changes.pop("status", None)
    update_fields = list(changes)
    for field_name, value in changes.items():
        setattr(opportunity, field_name, value)
    if status and editor.is_staff:
        opportunity.status = status
        update_fields.append("status")
        if status == OpportunityStatus.APPROVED and opportunity.approved_by_id is None:
            opportunity.approved_by = editor
            update_fields.append("approved_by")
    if update_fields:
        opportunity.save(update_fields=update_fields)
        logger.info("Opportunity %s updated: %s.", opportunity.pk, ", ".join(update_fields))
    return opportunity


def join_opportunity(
    student: AbstractUser,
    opportunity: VolunteeringOpportunity,
    *,
    start_date: date,
    total_hours: float,
    hours_per_week: float | None = None,
) -> VolunteeringParticipation:
    """Sign a student up for an approved opportunity.

    Raises:
        ValueError: When the opportunity is not approved, the student already
            holds a seat, or the volunteer cap is reached.
    """

    with transaction.atomic():
        opportunity = VolunteeringOpportunity.objects.select_for_update().get(pk=opportunity.pk)
        if opportunity.status != OpportunityStatus.APPROVED:
            raise ValueError("This opportunity is not available for participation.")
        seats = VolunteeringParticipation.objects.filter(
            opportunity=opportunity, status__in=SEAT_HOLDING_STATUSES
        )
        if seats.filter(student=student).exists():
            raise ValueError("You are already participating in this opportunity.")
        if opportunity.max_volunteers is not None and seats.count() >= opportunity.max_volunteers:
            raise ValueError("This opportunity has reached its maximum number of volunteers.")
        participation = VolunteeringParticipation.objects.create(
            student=student,
            opportunity=opportunity,
            start_date=start_date,
            end_date=None,
            total_hours=total_hours,
            hours_per_week=hours_per_week,
            status=ParticipationStatus.ACTIVE,
            verified=False,
        )
    logger.info("Student %s joined opportunity %s (participation %s).", student.pk, opportunity.pk, participation.pk)
    return participation


def update_participation(
    participation: VolunteeringParticipation, *, changes: dict[str, object]
) -> VolunteeringParticipation:
    """Apply partial updates to a participation.

    Raises:
        ValueError: When the resulting end date falls before the start date.
    """

    start_date = changes.get("start_date", participation.start_date)
    end_date = changes.get("end_date", participation.end_date)
    if end_date is not None and end_date < start_date:
        raise ValueError("End date cannot be before the start date.")
    for field_name, value in changes.items():
        setattr(participation, field_name, value)
    if changes:
        participation.save(update_fields=[*changes, "updated_at"])
        logger.info("Participation %s updated: %s.", participation.pk, ", ".join(changes))
    return participation


def completion_candidates_for(student: AbstractUser, *, today: date) -> list[VolunteeringParticipation]:
    """Return active opportunity participations that should ask for completion."""

    candidates = (
        VolunteeringParticipation.objects.filter(
            student=student,
            status=ParticipationStatus.ACTIVE,
            opportunity__isnull=False,
        )
        .select_related("opportunity")
        .order_by("-created_at")
    )
    return [
        participation
        for participation in candidates
        if needs_completion_prompt(
            status=participation.status,
            start_date=participation.opportunity.start_date,
            end_date=participation.opportunity.end_date,
            is_ongoing=participation.opportunity.is_ongoing,
            today=today,
        )
    ]


def export_rows(participations: Iterable[VolunteeringParticipation]) -> Iterator[list[str]]:
    """Yield CSV rows (without header) for participation export."""

    for participation in participations:
        student = participation.student
        yield [
            student.get_full_name() or student.get_username(),
            student.email,
            participation.display_label,
            participation.organization_name
            or (participation.opportunity.organization if participation.opportunity else ""),
            participation.start_date.isoformat(),
            participation.end_date.isoformat() if participation.end_date else "",
            f"{participation.total_hours:g}",
            participation.status,
            "yes" if participation.verified else "no",
            "yes" if participation.is_manual_log else "no",
        ]
