"""Add volunteer caps and reviewer tracking to opportunities."""

from __future__ import annotations

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    """Add `max_volunteers` and `approved_by` to VolunteeringOpportunity."""

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("core", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="volunteeringopportunity",
            name="max_volunteers",
            field=models.PositiveIntegerField(blank=True, null=True),
        ),
        migrations.AddField(
            model_name="volunteeringopportunity",
            name="approved_by",
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="reviewed_opportunities",
                to=settings.AUTH_USER_MODEL,
            ),
        ),
    ]
