"""JSON API views for volunteering opportunities, hours, goals and exports.

Students see and edit their own data. Staff users act as school admins: they
may pass `student=<id>` to read another student's data, review opportunities,
verify participations, assign goals and export hours.
"""

from __future__ import annotations

import csv
import io
import logging
from typing import Any

from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.decorators import login_required
from django.contrib.auth.models import AbstractUser
from django.db.models import QuerySet
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.utils import timezone
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from analysis.progress import (
    dynamic_goal_hours,
    motivational_message,
    progress_percent,
    summarize_participations,
)
from analysis.windows import RANGE_CHOICES
from core.forms import (
    GoalCreateForm,
    GoalUpdateForm,
    HoursChartForm,
    JoinOpportunityForm,
    ManualHoursLogForm,
    OpportunityForm,
    OpportunityRequestForm,
    OpportunityReviewForm,
    OpportunityUpdateForm,
    ParticipationStatusForm,
    ParticipationUpdateForm,
    VerificationForm,
)
from core.models import OpportunityStatus, VolunteeringGoal, VolunteeringOpportunity, VolunteeringParticipation
from core.services import (
    EXPORT_COLUMNS,
    active_goal_for,
    build_hours_chart,
    completion_candidates_for,
    create_goal,
    create_opportunity,
    export_rows,
    join_opportunity,
    log_manual_hours,
    request_opportunity,
    review_opportunity,
    set_participation_status,
    update_goal,
    update_opportunity,
    update_participation,
    verify_participation,
    visible_opportunities,
)
from core.stores import SessionStore

logger = logging.getLogger(__name__)

CHART_RANGE_STORE_KEY = "hours_chart_range"


class _StudentLookupError(Exception):
    """Raised when a requested student cannot be resolved for the current user."""

    def __init__(self, message: str, *, status: int) -> None:
        super().__init__(message)
        self.status = status


def _error(message: str, *, status: int, errors: dict[str, list[str]] | None = None) -> JsonResponse:
    """Return a JSON error payload."""

    payload: dict[str, Any] = {"ok": False, "error": message}
    if errors:
        payload["errors"] = errors
    return JsonResponse(payload, status=status)


def _form_errors(form: Any) -> dict[str, list[str]]:
    """Flatten Django form errors into field -> messages."""

    return {field: [item["message"] for item in items] for field, items in form.errors.get_json_data().items()}


def _resolve_student(request: HttpRequest, student_id: int | None) -> AbstractUser:
    """Return the student whose data the request targets.

    Staff may target any user; everyone else may only target themselves.
    """

    user = request.user
    if student_id is None or student_id == user.pk:
        return user
    if not user.is_staff:
        raise _StudentLookupError("You can only view your own volunteering data.", status=403)
    student = get_user_model().objects.filter(pk=student_id).first()
    if student is None:
        raise _StudentLookupError("Student not found.", status=404)
    return student


def _student_id_param(request: HttpRequest) -> int | None:
    """Return the `student` query parameter, or None when absent.

    Raises:
        _StudentLookupError: When the parameter is present but not a positive id.
    """

    raw = (request.GET.get("student") or "").strip()
    if not raw:
        return None
    if not raw.isdigit() or int(raw) < 1:
        raise _StudentLookupError("student must be a positive integer id.", status=400)
    return int(raw)


def _target_student(request: HttpRequest) -> AbstractUser | None:
    """Return the student a list request targets.

    None means "every student" and is only returned for staff without a
    `student` parameter.
    """

    student_id = _student_id_param(request)
    if request.user.is_staff and student_id is None:
        return None
    return _resolve_student(request, student_id)


def _opportunity_json(opportunity: VolunteeringOpportunity) -> dict[str, Any]:
    """Serialize an opportunity for API responses."""

    return {
        "id": opportunity.pk,
        "title": opportunity.title,
        "description": opportunity.description,
        "organization": opportunity.organization,
        "category": opportunity.category,
        "location": opportunity.location,
        "isOnline": opportunity.is_online,
        "startDate": opportunity.start_date.isoformat(),
        "endDate": opportunity.end_date.isoformat() if opportunity.end_date else None,
        "isOngoing": opportunity.is_ongoing,
        "hoursPerSession": opportunity.hours_per_session,
        "totalHours": opportunity.total_hours,
        "maxVolunteers": opportunity.max_volunteers,
        "participantCount": getattr(opportunity, "participant_count", None),
        "status": opportunity.status,
        "postedById": opportunity.posted_by_id,
        "approvedById": opportunity.approved_by_id,
    }


def _participation_json(participation: VolunteeringParticipation) -> dict[str, Any]:
    """Serialize a participation for API responses."""

    return {
        "id": participation.pk,
        "studentId": participation.student_id,
        "opportunityId": participation.opportunity_id,
        "label": participation.display_label,
        "organizationName": participation.organization_name,
        "startDate": participation.start_date.isoformat(),
        "endDate": participation.end_date.isoformat() if participation.end_date else None,
        "totalHours": participation.total_hours,
        "hoursPerWeek": participation.hours_per_week,
        "status": participation.status,
        "verified": participation.verified,
        "verificationNotes": participation.verification_notes,
        "isManualLog": participation.is_manual_log,
    }


def _goal_json(goal: VolunteeringGoal) -> dict[str, Any]:
    """Serialize a goal for API responses."""

    return {
        "id": goal.pk,
        "studentId": goal.student_id,
        "createdById": goal.created_by_id,
        "targetHours": goal.target_hours,
        "targetDate": goal.target_date.isoformat() if goal.target_date else None,
        "description": goal.description,
        "goalType": goal.goal_type,
        "status": goal.status,
        "completedAt": goal.completed_at.isoformat() if goal.completed_at else None,
    }


def _can_edit(request: HttpRequest, owner_id: int | None) -> bool:
    return request.user.is_staff or request.user.pk == owner_id


@login_required
@require_GET
def hours_chart(request: HttpRequest) -> JsonResponse:
    """Return the cumulative hours chart payload.

    The selected range is remembered per session so the chart reopens on the
    user's last choice.
    """

    form = HoursChartForm(request.GET)
    if not form.is_valid():
        return _error("Invalid chart parameters.", status=400, errors=_form_errors(form))
    try:
        student = _resolve_student(request, form.cleaned_data.get("student"))
    except _StudentLookupError as exc:
        return _error(str(exc), status=exc.status)

    store = SessionStore(request)
    range_key = form.cleaned_data.get("range")
    if range_key:
        store.set(CHART_RANGE_STORE_KEY, range_key)
    else:
        range_key = store.get(CHART_RANGE_STORE_KEY) or settings.ACTIFY_DEFAULT_CHART_RANGE
    if range_key not in RANGE_CHOICES:
        logger.warning("Ignoring unknown chart range %r; falling back to 1M.", range_key)
        range_key = "1M"

    chart = build_hours_chart(student, range_key=range_key, today=timezone.localdate())
    return JsonResponse({"ok": True, "studentId": student.pk, "chart": chart})


@login_required
@require_GET
def volunteering_summary(request: HttpRequest) -> JsonResponse:
    """Return dashboard counts, goal progress and the widget caption."""

    try:
        student = _resolve_student(request, _student_id_param(request))
    except _StudentLookupError as exc:
        return _error(str(exc), status=exc.status)

    summary = summarize_participations(
        VolunteeringParticipation.objects.filter(student=student), today=timezone.localdate()
    )
    goal = active_goal_for(student)
    goal_hours = goal.target_hours if goal is not None else dynamic_goal_hours(summary.total_hours)
    return JsonResponse(
        {
            "ok": True,
            "studentId": student.pk,
            "totalHours": summary.total_hours,
            "verifiedHours": summary.verified_hours,
            "pendingVerification": summary.pending_verification,
            "active": summary.active,
            "completed": summary.completed,
            "upcoming": summary.upcoming,
            "goalHours": goal_hours,
            "goal": _goal_json(goal) if goal is not None else None,
            "progressPercent": round(progress_percent(summary.total_hours, goal_hours), 1),
            "message": motivational_message(summary.total_hours),
        }
    )


@login_required
@require_http_methods(["GET", "POST"])
def opportunities(request: HttpRequest) -> JsonResponse:
    """List opportunities (GET) or post one (POST).

    Students only see approved opportunities. Staff see every status and may
    filter with `status=`. Staff postings are approved on creation; everyone
    else's wait for review.
    """

    if request.method == "GET":
        status = (request.GET.get("status") or "").strip() or None
        if status is not None and status not in OpportunityStatus.values:
            return _error("Unknown opportunity status.", status=400)
        rows = visible_opportunities(
            request.user,
            status=status,
            category=(request.GET.get("category") or "").strip() or None,
            search=(request.GET.get("search") or "").strip() or None,
        )
        return JsonResponse({"ok": True, "opportunities": [_opportunity_json(row) for row in rows]})

    form = OpportunityForm(request.POST)
    if not form.is_valid():
        return _error("Invalid opportunity.", status=400, errors=_form_errors(form))
    opportunity = create_opportunity(request.user, fields=form.cleaned_data)
    return JsonResponse({"ok": True, "opportunity": _opportunity_json(opportunity)}, status=201)


@login_required
@require_POST
def opportunity_request(request: HttpRequest) -> JsonResponse:
    """Submit a short opportunity request for staff review."""

    form = OpportunityRequestForm(request.POST)
    if not form.is_valid():
        return _error("Invalid opportunity request.", status=400, errors=_form_errors(form))
    opportunity = request_opportunity(
        request.user,
        title=form.cleaned_data["title"],
        description=form.cleaned_data["description"],
        on_date=form.cleaned_data["date"],
        is_recurring=form.cleaned_data["is_recurring"],
        organization=form.cleaned_data.get("organization") or "",
    )
    return JsonResponse({"ok": True, "opportunity": _opportunity_json(opportunity)}, status=201)


@login_required
@require_GET
def opportunities_pending(request: HttpRequest) -> JsonResponse:
    """List opportunities awaiting review (staff only)."""

    if not request.user.is_staff:
        return _error("Only admins can review opportunities.", status=403)
    rows = visible_opportunities(request.user, status=OpportunityStatus.PENDING)
    return JsonResponse({"ok": True, "opportunities": [_opportunity_json(row) for row in rows]})


@login_required
@require_http_methods(["GET", "POST"])
def opportunity_detail(request: HttpRequest, opportunity_id: int) -> JsonResponse:
    """Show (GET) or partially update (POST) an opportunity.

    Unapproved opportunities are hidden from non-staff readers. Only the poster
    or staff may update, and only staff changes to `status` are applied.
    """

    opportunity = visible_opportunities(request.user).filter(pk=opportunity_id).first()
    if request.method == "POST" and opportunity is None:
        opportunity = VolunteeringOpportunity.objects.filter(pk=opportunity_id).first()
    if opportunity is None:
        return _error("Volunteering opportunity not found.", status=404)
    if request.method == "GET":
        return JsonResponse({"ok": True, "opportunity": _opportunity_json(opportunity)})

    if not _can_edit(request, opportunity.posted_by_id):
        return _error("You can only update your own opportunities.", status=403)
    form = OpportunityUpdateForm(request.POST)
    if not form.is_valid():
        return _error("Invalid opportunity update.", status=400, errors=_form_errors(form))
    changes = form.changes()
    start_date = changes.get("start_date", opportunity.start_date)
    end_date = changes.get("end_date", opportunity.end_date)
    if end_date is not None and end_date < start_date:
        return _error(
            "Invalid opportunity update.",
            status=400,
            errors={"end_date": ["End date cannot be before the start date."]},
        )
    opportunity = update_opportunity(opportunity, editor=request.user, changes=changes)
    return JsonResponse({"ok": True, "opportunity": _opportunity_json(opportunity)})


@login_required
@require_POST
def opportunity_delete(request: HttpRequest, opportunity_id: int) -> JsonResponse:
    """Delete an opportunity (poster or staff)."""

    opportunity = VolunteeringOpportunity.objects.filter(pk=opportunity_id).first()
    if opportunity is None:
        return _error("Volunteering opportunity not found.", status=404)
    if not _can_edit(request, opportunity.posted_by_id):
        return _error("You can only delete your own opportunities.", status=403)
    opportunity.delete()
    logger.info("Opportunity %s deleted by user %s.", opportunity_id, request.user.pk)
    return JsonResponse({"ok": True})


def _review(request: HttpRequest, opportunity_id: int, *, approve: bool) -> JsonResponse:
    if not request.user.is_staff:
        return _error("Only admins can review opportunities.", status=403)
    opportunity = VolunteeringOpportunity.objects.filter(pk=opportunity_id).first()
    if opportunity is None:
        return _error("Volunteering opportunity not found.", status=404)
    form = OpportunityReviewForm(request.POST)
    if not form.is_valid():
        return _error("Invalid review.", status=400, errors=_form_errors(form))
    opportunity = review_opportunity(
        opportunity, reviewer=request.user, approve=approve, reason=form.cleaned_data.get("reason") or ""
    )
    return JsonResponse({"ok": True, "opportunity": _opportunity_json(opportunity)})


@login_required
@require_POST
def opportunity_approve(request: HttpRequest, opportunity_id: int) -> JsonResponse:
    """Approve an opportunity so students can join it (staff only)."""

    return _review(request, opportunity_id, approve=True)


@login_required
@require_POST
def opportunity_reject(request: HttpRequest, opportunity_id: int) -> JsonResponse:
    """Reject an opportunity (staff only)."""

    return _review(request, opportunity_id, approve=False)


@login_required
@require_http_methods(["GET", "POST"])
def participations(request: HttpRequest) -> JsonResponse:
    """List participations (GET) or join an approved opportunity (POST).

    Students list their own participations; staff list everyone's or one
    student's with `student=`. Only students can join opportunities.
    """

    if request.method == "GET":
        try:
            student = _target_student(request)
        except _StudentLookupError as exc:
            return _error(str(exc), status=exc.status)
        queryset: QuerySet[VolunteeringParticipation] = VolunteeringParticipation.objects.select_related(
            "opportunity"
        )
        rows = queryset.all() if student is None else queryset.filter(student=student)
        return JsonResponse({"ok": True, "participations": [_participation_json(row) for row in rows]})

    if request.user.is_staff:
        return _error("Only students can participate in volunteering opportunities.", status=403)
    form = JoinOpportunityForm(request.POST)
    if not form.is_valid():
        return _error("Invalid participation.", status=400, errors=_form_errors(form))
    opportunity = VolunteeringOpportunity.objects.filter(pk=form.cleaned_data["opportunity"]).first()
    if opportunity is None:
        return _error("Volunteering opportunity not found.", status=404)
    try:
        participation = join_opportunity(
            request.user,
            opportunity,
            start_date=form.cleaned_data["start_date"],
            total_hours=form.cleaned_data["total_hours"],
            hours_per_week=form.cleaned_data.get("hours_per_week"),
        )
    except ValueError as exc:
        return _error(str(exc), status=400)
    return JsonResponse({"ok": True, "participation": _participation_json(participation)}, status=201)


@login_required
@require_POST
def log_hours(request: HttpRequest) -> JsonResponse:
    """Create a manual log of past volunteering hours (students only)."""

    if request.user.is_staff:
        return _error("Only students can log hours.", status=403)
    form = ManualHoursLogForm(request.POST)
    if not form.is_valid():
        return _error("Invalid hours log.", status=400, errors=_form_errors(form))
    participation = log_manual_hours(
        request.user,
        organization_name=form.cleaned_data["organization_name"],
        activity_name=form.cleaned_data["activity_name"],
        activity_description=form.cleaned_data["activity_description"],
        start_date=form.cleaned_data["start_date"],
        end_date=form.cleaned_data.get("end_date"),
        total_hours=form.cleaned_data["total_hours"],
        service_sheet_url=form.cleaned_data.get("service_sheet_url") or "",
    )
    return JsonResponse({"ok": True, "participation": _participation_json(participation)}, status=201)


def _editable_participation(
    request: HttpRequest, participation_id: int
) -> tuple[VolunteeringParticipation | None, JsonResponse | None]:
    participation = VolunteeringParticipation.objects.select_related("opportunity").filter(pk=participation_id).first()
    if participation is None:
        return None, _error("Participation not found.", status=404)
    if not _can_edit(request, participation.student_id):
        return None, _error("You can only update your own participations.", status=403)
    return participation, None


@login_required
@require_http_methods(["GET", "POST"])
def participation_detail(request: HttpRequest, participation_id: int) -> JsonResponse:
    """Show (GET) or partially update (POST) a participation."""

    participation, failure = _editable_participation(request, participation_id)
    if failure is not None:
        return failure
    if request.method == "GET":
        return JsonResponse({"ok": True, "participation": _participation_json(participation)})

    form = ParticipationUpdateForm(request.POST)
    if not form.is_valid():
        return _error("Invalid participation update.", status=400, errors=_form_errors(form))
    try:
        participation = update_participation(participation, changes=form.changes())
    except ValueError as exc:
        return _error(str(exc), status=400, errors={"end_date": [str(exc)]})
    return JsonResponse({"ok": True, "participation": _participation_json(participation)})


@login_required
@require_POST
def participation_delete(request: HttpRequest, participation_id: int) -> JsonResponse:
    """Delete a participation (owner or staff)."""

    participation, failure = _editable_participation(request, participation_id)
    if failure is not None:
        return failure
    participation.delete()
    logger.info("Participation %s deleted by user %s.", participation_id, request.user.pk)
    return JsonResponse({"ok": True})


@login_required
@require_POST
def participation_status(request: HttpRequest, participation_id: int) -> JsonResponse:
    """Mark a participation completed or cancelled."""

    participation, failure = _editable_participation(request, participation_id)
    if failure is not None:
        return failure
    form = ParticipationStatusForm(request.POST)
    if not form.is_valid():
        return _error("Invalid status.", status=400, errors=_form_errors(form))
    participation = set_participation_status(participation, status=form.cleaned_data["status"])
    return JsonResponse({"ok": True, "participation": _participation_json(participation)})


@login_required
@require_POST
def participation_verify(request: HttpRequest, participation_id: int) -> JsonResponse:
    """Record a staff verification decision."""

    if not request.user.is_staff:
        return _error("Only admins can verify participations.", status=403)
    participation = VolunteeringParticipation.objects.filter(pk=participation_id).first()
    if participation is None:
        return _error("Participation not found.", status=404)
    form = VerificationForm(request.POST)
    if not form.is_valid():
        return _error("Invalid verification.", status=400, errors=_form_errors(form))
    participation = verify_participation(
        participation,
        verifier=request.user,
        verified=form.cleaned_data["verified"],
        notes=form.cleaned_data.get("verification_notes") or "",
    )
    return JsonResponse({"ok": True, "participation": _participation_json(participation)})


@login_required
@require_GET
def check_completions(request: HttpRequest) -> JsonResponse:
    """List active participations whose opportunity has ended (students only)."""

    if request.user.is_staff:
        return _error("Only students can check for completion prompts.", status=403)
    candidates = completion_candidates_for(request.user, today=timezone.localdate())
    return JsonResponse({"ok": True, "participations": [_participation_json(row) for row in candidates]})


@login_required
@require_http_methods(["GET", "POST"])
def goals(request: HttpRequest) -> JsonResponse:
    """List goals (GET) or create one (POST)."""

    if request.method == "GET":
        try:
            student = _target_student(request)
        except _StudentLookupError as exc:
            return _error(str(exc), status=exc.status)
        queryset = VolunteeringGoal.objects.all()
        if student is not None:
            queryset = queryset.filter(student=student)
        return JsonResponse({"ok": True, "goals": [_goal_json(goal) for goal in queryset]})

    form = GoalCreateForm(request.POST)
    if not form.is_valid():
        return _error("Invalid goal.", status=400, errors=_form_errors(form))
    if request.user.is_staff:
        student = form.cleaned_data.get("student")
        if student is None:
            return _error("studentId is required.", status=400, errors={"student": ["This field is required."]})
    else:
        student = request.user
    goal = create_goal(
        student,
        created_by=request.user,
        target_hours=form.cleaned_data["target_hours"],
        target_date=form.cleaned_data.get("target_date"),
        description=form.cleaned_data.get("description") or "",
        goal_type=form.cleaned_data.get("goal_type") or None,
    )
    return JsonResponse({"ok": True, "goal": _goal_json(goal)}, status=201)


@login_required
@require_POST
def goal_detail(request: HttpRequest, goal_id: int) -> JsonResponse:
    """Apply a partial update to a goal."""

    goal = VolunteeringGoal.objects.filter(pk=goal_id).first()
    if goal is None:
        return _error("Goal not found.", status=404)
    if not _can_edit(request, goal.student_id):
        return _error("You can only update your own goals.", status=403)
    form = GoalUpdateForm(request.POST)
    if not form.is_valid():
        return _error("Invalid goal update.", status=400, errors=_form_errors(form))
    goal = update_goal(goal, changes=form.changes())
    return JsonResponse({"ok": True, "goal": _goal_json(goal)})


@login_required
@require_POST
def goal_delete(request: HttpRequest, goal_id: int) -> JsonResponse:
    """Delete a goal."""

    goal = VolunteeringGoal.objects.filter(pk=goal_id).first()
    if goal is None:
        return _error("Goal not found.", status=404)
    if not _can_edit(request, goal.student_id):
        return _error("You can only delete your own goals.", status=403)
    goal.delete()
    logger.info("Goal %s deleted by user %s.", goal_id, request.user.pk)
    return JsonResponse({"ok": True})


@login_required
@require_GET
def export_hours_csv(request: HttpRequest) -> HttpResponse:
    """Export participations as CSV (staff only).

    Pass `student=<id>` to limit the export to one student.
    """

    plain_text = "text/plain; charset=utf-8"
    if not request.user.is_staff:
        return HttpResponse("Only admins can export volunteering hours.\n", content_type=plain_text, status=403)
    try:
        student_id = _student_id_param(request)
    except _StudentLookupError as exc:
        return HttpResponse(f"{exc}\n", content_type=plain_text, status=exc.status)

    rows = VolunteeringParticipation.objects.select_related("student", "opportunity").order_by(
        "student__username", "start_date", "id"
    )
    if student_id is not None:
        rows = rows.filter(student_id=student_id)

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_COLUMNS)
    writer.writerows(export_rows(rows))

    response = HttpResponse(buffer.getvalue(), content_type="text/csv; charset=utf-8")
    response["Content-Disposition"] = 'attachment; filename="actify-volunteering-hours.csv"'
    return response
