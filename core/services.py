"""Service-layer functions for the core app.

`TowerManager` coordinates profile persistence (ORM) with the pure wikitext
and tower modules: load the effective wikitext, build the model, apply edits,
patch, and store the result as the profile's override.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from django.conf import settings

from profiles.services import (
    clear_wiki_override,
    load_effective_wikitext,
    set_wiki_override,
)
from towers.builder import build_tower
from towers.formatting import parse_value_text
from towers.tower import Tower
from wikitext.parser import parse_wikitext
from wikitext.patcher import patch_wikitext

_log = logging.getLogger(__name__)

WIKI_SUFFIX = ".wiki"


class UnknownTowerError(LookupError):
    """Raised when no base `.wiki` file exists for a tower name."""


@dataclass(frozen=True, slots=True)
class TowerEdit:
    """One requested change to a tower.

    Attributes:
        skin: Skin the edit was made on (PVP edits stay on that skin, other
            edits apply to every non-PVP skin).
        level: 0 for defaults, otherwise the upgrade level.
        attribute: Attribute (or detection flag) name.
        value: New value.
        detection: Whether `attribute` is a detection flag.
    """

    skin: str
    level: int
    attribute: str
    value: Any
    detection: bool = False


def load_edits_yaml(text: str) -> list[TowerEdit]:
    """Parse a YAML list of edits.

    The document is either a list of mappings or a mapping with an `edits`
    list. Each entry needs `skin`, `level`, `attribute`, and `value`;
    `detection` is optional.

    Args:
        text: YAML source.

    Returns:
        Parsed edits in document order.

    Raises:
        ValueError: When the document or an entry is malformed.
    """

    data = yaml.safe_load(text) or []
    if isinstance(data, dict):
        data = data.get("edits") or []
    if not isinstance(data, list):
        raise ValueError("Edits YAML must be a list of edits (or a mapping with an `edits` list).")

    edits: list[TowerEdit] = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ValueError(f"Edit #{index} must be a mapping, got {type(entry).__name__}.")
        missing = [key for key in ("skin", "level", "attribute", "value") if key not in entry]
        if missing:
            raise ValueError(f"Edit #{index} is missing {', '.join(missing)}.")
        try:
            level = int(entry["level"])
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Edit #{index} has a non-integer level: {entry['level']!r}.") from exc
        detection = entry.get("detection", False)
        if not isinstance(detection, bool):
            detection = parse_value_text(str(detection)) is True
        value = entry["value"]
        if detection and not isinstance(value, bool):
            value = parse_value_text(str(value))
            if not isinstance(value, bool):
                raise ValueError(
                    f"Edit #{index} is a detection edit; value must be true or false, "
                    f"got {entry['value']!r}."
                )
        edits.append(
            TowerEdit(
                skin=str(entry["skin"]),
                level=level,
                attribute=str(entry["attribute"]),
                value=value,
                detection=detection,
            )
        )
    return edits


class TowerManager:
    """Load, edit, and save towers for one profile.

    Towers are cached per manager; the cache is dropped for a tower when it is
    reset.
    """

    def __init__(self, profile_name: str | None = None, wiki_dir: Path | str | None = None) -> None:
        self.profile_name = profile_name or settings.TOWER_EDITOR_DEFAULT_PROFILE
        self.wiki_dir = Path(wiki_dir if wiki_dir is not None else settings.TOWER_WIKI_DIR)
        self._towers: dict[str, Tower] = {}

    def tower_names(self) -> list[str]:
        """Return the names of every tower with a base `.wiki` file."""

        if not self.wiki_dir.is_dir():
            _log.warning("Wiki directory %s does not exist.", self.wiki_dir)
            return []
        return sorted(path.stem for path in self.wiki_dir.glob(f"*{WIKI_SUFFIX}"))

    def load_base_wikitext(self, name: str) -> str:
        """Read a tower's base wikitext.

        Raises:
            UnknownTowerError: When there is no `.wiki` file for `name`.
        """

        if name not in self.tower_names():
            raise UnknownTowerError(f"Unknown tower {name!r}.")
        return (self.wiki_dir / f"{name}{WIKI_SUFFIX}").read_text(encoding="utf-8")

    def get_tower(self, name: str) -> Tower:
        """Return the (cached) tower built from the profile's effective wikitext.

        Raises:
            UnknownTowerError: When the tower has neither an override nor a base file.
        """

        cached = self._towers.get(name)
        if cached is not None:
            return cached

        if name not in self.tower_names():
            raise UnknownTowerError(f"Unknown tower {name!r}.")
        effective = load_effective_wikitext(
            self.profile_name, name, lambda: self.load_base_wikitext(name)
        )
        tower = build_tower(
            name,
            parse_wikitext(effective.text),
            source_wikitext=effective.text,
            wikitext_source=effective.source,
        )
        _log.debug(
            "Built tower %s from %s wikitext (skins: %s).", name, effective.source, tower.skin_names
        )
        self._towers[name] = tower
        return tower

    def generate_wikitext(self, tower: Tower) -> str | None:
        """Patch the tower's source wikitext without saving it.

        Returns:
            The patched wikitext, or None when the tower has no source text or
            patching fails.
        """

        if not tower.source_wikitext:
            return None
        try:
            return patch_wikitext(tower.source_wikitext, tower)
        except Exception:
            _log.exception("Failed to generate wikitext for %s.", tower.name)
            return None

    def save_tower(self, tower: Tower) -> str | None:
        """Persist the patched wikitext as the profile's override.

        Returns:
            The stored wikitext, or None when nothing could be generated.
        """

        patched = self.generate_wikitext(tower)
        if patched is None:
            _log.warning("Nothing to save for %s.", tower.name)
            return None
        stored = set_wiki_override(self.profile_name, tower.name, patched)
        tower.mark_saved(stored or patched)
        _log.info("Saved %s for profile %r (%s chars).", tower.name, self.profile_name, len(patched))
        return stored

    def reset_tower(self, name: str) -> None:
        """Drop the profile's override and cached model for a tower."""

        clear_wiki_override(self.profile_name, name)
        self.clear_cache(name)

    def clear_cache(self, name: str | None = None) -> None:
        if name is None:
            self._towers.clear()
        else:
            self._towers.pop(name, None)

    def apply_edit(self, tower: Tower, edit: TowerEdit) -> int:
        """Apply one edit to every skin it targets.

        Returns:
            The number of skins that accepted the edit.

        Raises:
            UnsafeAttributeError: When the attribute name is unsafe. No skin is
                modified in that case.
        """

        targets = tower.target_skins(edit.skin)
        if not targets:
            _log.warning("Tower %s has no skin %r; edit ignored.", tower.name, edit.skin)
            return 0
        if edit.detection and not isinstance(edit.value, bool):
            _log.warning(
                "Detection %s on %s needs true or false, got %r; edit ignored.",
                edit.attribute,
                tower.name,
                edit.value,
            )
            return 0

        applied = 0
        for skin in targets:
            if edit.detection:
                accepted = tower.set_detection(skin.name, edit.level, edit.attribute, edit.value)
            else:
                accepted = tower.set_attribute(skin.name, edit.level, edit.attribute, edit.value)
            applied += int(accepted)
        return applied
