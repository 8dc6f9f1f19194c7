"""Admin registrations for profile models."""

from __future__ import annotations

from django.contrib import admin

from profiles.models import Profile, WikiOverride


class WikiOverrideInline(admin.TabularInline):
    """Inline overrides on the profile change page."""

    model = WikiOverride
    extra = 0
    fields = ("tower_name", "updated_at")
    readonly_fields = ("updated_at",)
    show_change_link = True


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    """Admin configuration for Profile."""

    list_display = ("name", "created_at")
    search_fields = ("name",)
    inlines = (WikiOverrideInline,)

    def has_delete_permission(self, request, obj=None) -> bool:
        if obj is not None and obj.is_default:
            return False
        return super().has_delete_permission(request, obj)


@admin.register(WikiOverride)
class WikiOverrideAdmin(admin.ModelAdmin):
    """Admin configuration for WikiOverride."""

    list_display = ("tower_name", "profile", "updated_at")
    list_filter = ("profile",)
    search_fields = ("tower_name",)
