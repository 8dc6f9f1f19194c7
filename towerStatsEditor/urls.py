"""URL configuration for towerStatsEditor.

Editing happens through management commands; the only web surface is the
admin site for profiles and their wikitext overrides.
"""

from __future__ import annotations

from django.contrib import admin
from django.urls import path

urlpatterns = [
    path("admin/", admin.site.urls),
]
