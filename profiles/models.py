"""Database models for editor profiles.

A profile is a named workspace. Each profile keeps at most one wikitext
override per tower; towers without an override are read from the base
`.wiki` files.
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

DEFAULT_PROFILE_NAME = "Default"


class Profile(models.Model):
    """A named set of tower edits.

    The `Default` profile always exists and cannot be deleted.
    """

    name = models.CharField(max_length=100, unique=True)
    created_at = models.DateTimeField(default=timezone.now, editable=False)

    class Meta:
        ordering = ["created_at", "id"]

    @property
    def is_default(self) -> bool:
        return self.name == DEFAULT_PROFILE_NAME

    def __str__(self) -> str:
        return self.name


class WikiOverride(models.Model):
    """Edited wikitext for one tower within one profile."""

    profile = models.ForeignKey(Profile, on_delete=models.CASCADE, related_name="overrides")
    tower_name = models.CharField(max_length=100)
    wikitext = models.TextField()
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["profile", "tower_name"], name="uniq_override_per_tower"),
        ]
        ordering = ["tower_name"]

    def __str__(self) -> str:
        return f"WikiOverride(profile={self.profile.name}, tower={self.tower_name})"
