"""Create profiles and wikitext overrides, seeding the Default profile."""

from __future__ import annotations

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


def create_default_profile(apps, schema_editor) -> None:
    """Ensure the undeletable `Default` profile exists."""

    Profile = apps.get_model("profiles", "Profile")
    Profile.objects.get_or_create(name="Default")


class Migration(migrations.Migration):
    initial = True

    dependencies: list[tuple[str, str]] = []

    operations = [
        migrations.CreateModel(
            name="Profile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100, unique=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now, editable=False)),
            ],
            options={"ordering": ["created_at", "id"]},
        ),
        migrations.CreateModel(
            name="WikiOverride",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("tower_name", models.CharField(max_length=100)),
                ("wikitext", models.TextField()),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "profile",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="overrides",
                        to="profiles.profile",
                    ),
                ),
            ],
            options={"ordering": ["tower_name"]},
        ),
        migrations.AddConstraint(
            model_name="wikioverride",
            constraint=models.UniqueConstraint(fields=("profile", "tower_name"), name="uniq_override_per_tower"),
        ),
        migrations.RunPython(create_default_profile, migrations.RunPython.noop),
    ]
