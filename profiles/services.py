"""Service-layer functions for profiles and their wikitext overrides.

Overrides are plain strings keyed by (profile, tower). Blank overrides are
never stored: writing empty text clears the override instead.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

from django.db import transaction

from profiles.models import DEFAULT_PROFILE_NAME, Profile, WikiOverride

_log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EffectiveWikitext:
    """The wikitext a tower should be built from.

    Attributes:
        source: `override` when the profile has saved edits, otherwise `base`.
        text: The wikitext.
    """

    source: Literal["override", "base"]
    text: str


def ensure_default_profile() -> Profile:
    profile, _created = Profile.objects.get_or_create(name=DEFAULT_PROFILE_NAME)
    return profile


def list_profiles() -> list[str]:
    """Return profile names, `Default` first, then in creation order."""

    ensure_default_profile()
    names = list(Profile.objects.values_list("name", flat=True))
    names.remove(DEFAULT_PROFILE_NAME)
    return [DEFAULT_PROFILE_NAME, *names]


def add_profile(name: str) -> tuple[Profile, bool]:
    """Create a profile if it does not exist.

    Args:
        name: Profile name (surrounding whitespace is ignored).

    Returns:
        A tuple of (profile, created).

    Raises:
        ValueError: When the name is blank.
    """

    cleaned = name.strip()
    if not cleaned:
        raise ValueError("Profile name must not be blank.")
    profile, created = Profile.objects.get_or_create(name=cleaned)
    if created:
        _log.info("Created profile %r.", cleaned)
    return profile, created


def delete_profile(name: str) -> bool:
    """Delete a profile and all of its overrides.

    Returns:
        True when a profile was deleted. The `Default` profile is never
        deleted.
    """

    profile = Profile.objects.filter(name=name).first()
    if profile is None:
        return False
    if profile.is_default:
        _log.warning("Refusing to delete the %s profile.", DEFAULT_PROFILE_NAME)
        return False
    with transaction.atomic():
        profile.delete()
    _log.info("Deleted profile %r.", name)
    return True


def get_wiki_override(profile_name: str, tower_name: str) -> str | None:
    """Return the stored override text, or None when absent or blank."""

    override = (
        WikiOverride.objects.filter(profile__name=profile_name, tower_name=tower_name)
        .values_list("wikitext", flat=True)
        .first()
    )
    _log.debug(
        "get_wiki_override profile=%r tower=%r found=%s", profile_name, tower_name, override is not None
    )
    if override is None or not override.strip():
        return None
    return override


def set_wiki_override(profile_name: str, tower_name: str, wikitext: str | None) -> str | None:
    """Store (or clear) a tower override for a profile.

    Args:
        profile_name: Owning profile; created when it does not exist yet.
        tower_name: Tower the text belongs to.
        wikitext: New text. It is trimmed; empty text clears the override.

    Returns:
        The stored text, or None when the override was cleared.
    """

    content = (wikitext or "").strip()
    _log.debug(
        "set_wiki_override profile=%r tower=%r length=%s", profile_name, tower_name, len(content)
    )
    if not content:
        clear_wiki_override(profile_name, tower_name)
        return None

    with transaction.atomic():
        profile, _created = Profile.objects.get_or_create(name=profile_name)
        WikiOverride.objects.update_or_create(
            profile=profile, tower_name=tower_name, defaults={"wikitext": content}
        )
    return content


def has_wiki_override(profile_name: str, tower_name: str) -> bool:
    return get_wiki_override(profile_name, tower_name) is not None


def clear_wiki_override(profile_name: str, tower_name: str) -> None:
    deleted, _details = WikiOverride.objects.filter(
        profile__name=profile_name, tower_name=tower_name
    ).delete()
    if deleted:
        _log.info("Cleared override for %s in profile %r.", tower_name, profile_name)


def load_effective_wikitext(
    profile_name: str, tower_name: str, load_base: Callable[[], str]
) -> EffectiveWikitext:
    """Return the profile's override when present, otherwise the base text.

    Args:
        profile_name: Profile to read the override from.
        tower_name: Tower to load.
        load_base: Called only when there is no override.

    Returns:
        EffectiveWikitext describing where the text came from.
    """

    override = get_wiki_override(profile_name, tower_name)
    if override is not None:
        _log.debug("Loading override wikitext for %s (profile %r).", tower_name, profile_name)
        return EffectiveWikitext(source="override", text=override)
    _log.debug("Loading base wikitext for %s.", tower_name)
    return EffectiveWikitext(source="base", text=load_base())
