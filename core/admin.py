"""Admin registrations for the core app."""

from __future__ import annotations

from django.contrib import admin

from core.models import VolunteeringGoal, VolunteeringOpportunity, VolunteeringParticipation


@admin.register(VolunteeringOpportunity)
class VolunteeringOpportunityAdmin(admin.ModelAdmin):
    """Admin configuration for VolunteeringOpportunity."""

    list_display = ("title", "organization", "category", "start_date", "end_date", "status")
    list_filter = ("status", "category", "is_ongoing", "is_online")
    search_fields = ("title", "organization")
    raw_id_fields = ("posted_by", "approved_by")


@admin.register(VolunteeringParticipation)
class VolunteeringParticipationAdmin(admin.ModelAdmin):
    """Admin configuration for VolunteeringParticipation."""

    list_display = ("student", "display_label", "start_date", "end_date", "total_hours", "status", "verified")
    list_filter = ("status", "verified", "is_manual_log")
    search_fields = ("student__username", "activity_name", "organization_name", "opportunity__title")
    raw_id_fields = ("student", "opportunity", "verified_by")


@admin.register(VolunteeringGoal)
class VolunteeringGoalAdmin(admin.ModelAdmin):
    """Admin configuration for VolunteeringGoal."""

    list_display = ("student", "target_hours", "target_date", "goal_type", "status")
    list_filter = ("goal_type", "status")
    search_fields = ("student__username", "description")
