"""Integration tests for profiles and wikitext override storage."""

from __future__ import annotations

import pytest
from django.contrib import admin

from profiles.admin import ProfileAdmin
from profiles.models import Profile, WikiOverride
from profiles.services import (
    add_profile,
    clear_wiki_override,
    delete_profile,
    ensure_default_profile,
    get_wiki_override,
    has_wiki_override,
    list_profiles,
    load_effective_wikitext,
    set_wiki_override,
)

pytestmark = [pytest.mark.integration, pytest.mark.django_db]


def test_default_profile_always_exists() -> None:
    assert list_profiles() == ["Default"]


def test_add_profile_is_idempotent_and_rejects_blank_names() -> None:
    profile, created = add_profile("  Arena ")
    _again, created_again = add_profile("Arena")

    assert profile.name == "Arena"
    assert created and not created_again
    assert list_profiles() == ["Default", "Arena"]
    with pytest.raises(ValueError):
        add_profile("   ")


def test_delete_profile_removes_overrides_but_protects_default() -> None:
    add_profile("Arena")
    set_wiki_override("Arena", "Scout", "edited")

    assert delete_profile("Default") is False
    assert delete_profile("Arena") is True
    assert delete_profile("Arena") is False
    assert not WikiOverride.objects.exists()
    assert Profile.objects.filter(name="Default").exists()


def test_only_the_default_profile_reports_is_default() -> None:
    arena, _created = add_profile("Arena")

    assert ensure_default_profile().is_default
    assert not arena.is_default


def test_admin_refuses_to_delete_the_default_profile(rf, admin_user) -> None:
    request = rf.get("/admin/profiles/profile/")
    request.user = admin_user
    model_admin = ProfileAdmin(Profile, admin.site)
    arena, _created = add_profile("Arena")

    assert model_admin.has_delete_permission(request, arena)
    assert not model_admin.has_delete_permission(request, ensure_default_profile())


def test_set_wiki_override_trims_and_empty_text_clears() -> None:
    stored = set_wiki_override("Default", "Scout", "  edited text \n")

    assert stored == "edited text"
    assert get_wiki_override("Default", "Scout") == "edited text"
    assert has_wiki_override("Default", "Scout")

    assert set_wiki_override("Default", "Scout", "   ") is None
    assert get_wiki_override("Default", "Scout") is None
    assert not has_wiki_override("Default", "Scout")


def test_set_wiki_override_replaces_existing_text_and_creates_profiles() -> None:
    set_wiki_override("Solo", "Scout", "first")
    set_wiki_override("Solo", "Scout", "second")

    assert WikiOverride.objects.filter(profile__name="Solo").count() == 1
    assert get_wiki_override("Solo", "Scout") == "second"
    assert get_wiki_override("Default", "Scout") is None


def test_blank_stored_override_reads_as_missing() -> None:
    WikiOverride.objects.create(profile=Profile.objects.get(name="Default"), tower_name="Scout", wikitext="  ")

    assert get_wiki_override("Default", "Scout") is None


def test_clear_wiki_override() -> None:
    set_wiki_override("Default", "Scout", "edited")

    clear_wiki_override("Default", "Scout")
    clear_wiki_override("Default", "Scout")

    assert not has_wiki_override("Default", "Scout")


def test_load_effective_wikitext_prefers_override() -> None:
    calls: list[str] = []

    def load_base() -> str:
        calls.append("base")
        return "base text"

    base = load_effective_wikitext("Default", "Scout", load_base)
    set_wiki_override("Default", "Scout", "override text")
    override = load_effective_wikitext("Default", "Scout", load_base)

    assert (base.source, base.text) == ("base", "base text")
    assert (override.source, override.text) == ("override", "override text")
    assert calls == ["base"]
