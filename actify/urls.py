"""URL configuration for Actify.

Sign-in goes through the admin login page (`LOGIN_URL`); the project ships no
separate account templates.
"""

from __future__ import annotations

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("", include("core.urls")),
    path("admin/", admin.site.urls),
]
