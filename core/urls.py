"""URL configuration for core views."""

from __future__ import annotations

from django.urls import path

from core import views

app_name = "core"

urlpatterns = [
    path("api/hours-chart/", views.hours_chart, name="hours_chart"),
    path("api/summary/", views.volunteering_summary, name="volunteering_summary"),
    path("api/opportunities/", views.opportunities, name="opportunities"),
    path("api/opportunities/request/", views.opportunity_request, name="opportunity_request"),
    path("api/opportunities/pending/", views.opportunities_pending, name="opportunities_pending"),
    path("api/opportunities/<int:opportunity_id>/", views.opportunity_detail, name="opportunity_detail"),
    path(
        "api/opportunities/<int:opportunity_id>/delete/",
        views.opportunity_delete,
        name="opportunity_delete",
    ),
    path(
        "api/opportunities/<int:opportunity_id>/approve/",
        views.opportunity_approve,
        name="opportunity_approve",
    ),
    path(
        "api/opportunities/<int:opportunity_id>/reject/",
        views.opportunity_reject,
        name="opportunity_reject",
    ),
    path("api/participations/", views.participations, name="participations"),
    path("api/participations/log-hours/", views.log_hours, name="log_hours"),
    path("api/participations/check-completions/", views.check_completions, name="check_completions"),
    path(
        "api/participations/<int:participation_id>/",
        views.participation_detail,
        name="participation_detail",
    ),
    path(
        "api/participations/<int:participation_id>/delete/",
        views.participation_delete,
        name="participation_delete",
    ),
    path(
        "api/participations/<int:participation_id>/status/",
        views.participation_status,
        name="participation_status",
    ),
    path(
        "api/participations/<int:participation_id>/verify/",
        views.participation_verify,
        name="participation_verify",
    ),
    path("api/goals/", views.goals, name="goals"),
    path("api/goals/<int:goal_id>/", views.goal_detail, name="goal_detail"),
    path("api/goals/<int:goal_id>/delete/", views.goal_delete, name="goal_delete"),
    path("export/hours.csv", views.export_hours_csv, name="export_hours_csv"),
]
