"""Forms for core API workflows.

Forms validate request parameters before they reach the service layer:
- chart range selection for the hours chart,
- manual hours logging and opportunity sign-up,
- opportunity posting, requests and review,
- goal create/update,
- participation status, edits and verification.
"""

from __future__ import annotations

from django import forms
from django.contrib.auth import get_user_model

from analysis.windows import RANGE_CHOICES
from core.models import GoalStatus, GoalType, OpportunityStatus, ParticipationStatus


def _end_not_before_start(form: forms.Form, cleaned: dict[str, object]) -> None:
    start_date = cleaned.get("start_date")
    end_date = cleaned.get("end_date")
    if start_date and end_date and end_date < start_date:
        form.add_error("end_date", "End date cannot be before the start date.")


class PartialUpdateForm(forms.Form):
    """Base form for partial updates.

    Every field is optional, and `changes()` reports only the fields present in
    the submitted data. Fields listed in `non_nullable` are dropped from the
    changes when submitted blank.
    """

    non_nullable: tuple[str, ...] = ()

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        for field in self.fields.values():
            field.required = False

    def changes(self) -> dict[str, object]:
        """Return cleaned values for submitted fields only."""

        submitted = {name: value for name, value in self.cleaned_data.items() if name in self.data}
        for name in self.non_nullable:
            if submitted.get(name) in (None, ""):
                submitted.pop(name, None)
        return submitted


class HoursChartForm(forms.Form):
    """Validate the hours chart query string."""

    range = forms.ChoiceField(choices=[(key, key) for key in RANGE_CHOICES], required=False)
    student = forms.IntegerField(min_value=1, required=False)


class ManualHoursLogForm(forms.Form):
    """Validate a student's manual hours log."""

    organization_name = forms.CharField(max_length=200)
    activity_name = forms.CharField(max_length=200)
    activity_description = forms.CharField(widget=forms.Textarea)
    start_date = forms.DateField()
    end_date = forms.DateField(required=False)
    total_hours = forms.FloatField()
    service_sheet_url = forms.URLField(required=False, assume_scheme="https")

    def clean_total_hours(self) -> float:
        """Reject non-positive hour totals."""

        value = self.cleaned_data["total_hours"]
        if value <= 0:
            raise forms.ValidationError("Total hours must be greater than 0.")
        return value

    def clean(self) -> dict[str, object]:
        """Validate that the end date is not before the start date."""

        cleaned = super().clean()
        _end_not_before_start(self, cleaned)
        return cleaned


class JoinOpportunityForm(forms.Form):
    """Validate a student's sign-up for an opportunity."""

    opportunity = forms.IntegerField(min_value=1)
    start_date = forms.DateField()
    total_hours = forms.FloatField(min_value=0)
    hours_per_week = forms.FloatField(min_value=0, required=False)


class OpportunityForm(forms.Form):
    """Validate a full opportunity posting."""

    title = forms.CharField(max_length=200)
    description = forms.CharField(widget=forms.Textarea)
    organization = forms.CharField(max_length=200)
    category = forms.CharField(max_length=80)
    location = forms.CharField(max_length=200, required=False)
    is_online = forms.BooleanField(required=False)
    start_date = forms.DateField()
    end_date = forms.DateField(required=False)
    is_ongoing = forms.BooleanField(required=False)
    hours_per_session = forms.FloatField(min_value=0, required=False)
    total_hours = forms.FloatField(min_value=0, required=False)
    max_volunteers = forms.IntegerField(min_value=1, required=False)

    def clean(self) -> dict[str, object]:
        """Validate that the end date is not before the start date."""

        cleaned = super().clean()
        _end_not_before_start(self, cleaned)
        return cleaned


class OpportunityUpdateForm(PartialUpdateForm, OpportunityForm):
    """Validate partial opportunity updates, including a staff status change."""

    non_nullable = ("title", "organization", "start_date", "status")

    status = forms.ChoiceField(choices=OpportunityStatus.choices)


class OpportunityRequestForm(forms.Form):
    """Validate a short opportunity request submitted for review."""

    title = forms.CharField(max_length=200)
    description = forms.CharField(widget=forms.Textarea)
    date = forms.DateField()
    is_recurring = forms.BooleanField(required=False)
    organization = forms.CharField(max_length=200, required=False)


class OpportunityReviewForm(forms.Form):
    """Validate a staff review note."""

    reason = forms.CharField(required=False)


class GoalCreateForm(forms.Form):
    """Validate goal creation requests."""

    target_hours = forms.FloatField()
    target_date = forms.DateField(required=False)
    description = forms.CharField(max_length=240, required=False)
    goal_type = forms.ChoiceField(choices=GoalType.choices, required=False)
    student = forms.ModelChoiceField(queryset=get_user_model().objects.all(), required=False)

    def clean_target_hours(self) -> float:
        """Reject non-positive targets."""

        value = self.cleaned_data["target_hours"]
        if value <= 0:
            raise forms.ValidationError("Target hours must be greater than 0.")
        return value


class GoalUpdateForm(PartialUpdateForm):
    """Validate partial goal updates."""

    non_nullable = ("target_hours", "status")

    target_hours = forms.FloatField()
    target_date = forms.DateField()
    description = forms.CharField(max_length=240)
    status = forms.ChoiceField(choices=GoalStatus.choices)

    def clean_target_hours(self) -> float | None:
        """Reject non-positive targets when provided."""

        value = self.cleaned_data.get("target_hours")
        if value is not None and value <= 0:
            raise forms.ValidationError("Target hours must be greater than 0.")
        return value


class ParticipationUpdateForm(PartialUpdateForm):
    """Validate partial participation edits by the owner or staff."""

    non_nullable = ("start_date", "total_hours", "status")

    start_date = forms.DateField()
    end_date = forms.DateField()
    total_hours = forms.FloatField(min_value=0)
    hours_per_week = forms.FloatField(min_value=0)
    status = forms.ChoiceField(choices=ParticipationStatus.choices)
    organization_name = forms.CharField(max_length=200)
    activity_name = forms.CharField(max_length=200)
    activity_description = forms.CharField(widget=forms.Textarea)
    service_sheet_url = forms.URLField(assume_scheme="https")


class ParticipationStatusForm(forms.Form):
    """Validate a student's completion decision for a participation."""

    status = forms.ChoiceField(
        choices=[
            (ParticipationStatus.COMPLETED, ParticipationStatus.COMPLETED.label),
            (ParticipationStatus.CANCELLED, ParticipationStatus.CANCELLED.label),
        ]
    )


class VerificationForm(forms.Form):
    """Validate a staff verification decision."""

    verified = forms.TypedChoiceField(
        choices=[("true", "Verified"), ("false", "Not verified")],
        coerce=lambda value: value == "true",
        required=False,
        empty_value=True,
    )
    verification_notes = forms.CharField(required=False)
