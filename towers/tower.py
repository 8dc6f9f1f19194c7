"""Tower model: a named, ordered set of skins built from one wikitext page."""

from __future__ import annotations

import logging
from typing import Any, Literal

from towers.skin import SkinData
from wikitext.serializer import format_cell

_log = logging.getLogger(__name__)

WikitextSource = Literal["base", "override", ""]


class Tower:
    """A tower and its skins.

    The skin set is fixed at construction; skin contents are mutable.

    Attributes:
        name: Tower name (the wiki page name).
        skins: Skin name -> SkinData, in document tab order.
        variables: Document variables, shared by every skin and kept current
            by token edits.
        source_wikitext: The wikitext this tower was built from, when known.
        wikitext_source: Where `source_wikitext` came from.
    """

    def __init__(
        self,
        name: str,
        skins: dict[str, SkinData],
        *,
        variables: dict[str, str] | None = None,
        source_wikitext: str | None = None,
        wikitext_source: WikitextSource = "",
    ) -> None:
        self.name = name
        self._skins = dict(skins)
        self.variables: dict[str, str] = variables if variables is not None else {}
        self.source_wikitext = source_wikitext
        self.wikitext_source: WikitextSource = wikitext_source

    @property
    def skins(self) -> dict[str, SkinData]:
        return dict(self._skins)

    @property
    def skin_names(self) -> list[str]:
        return list(self._skins)

    def get_skin(self, skin_name: str) -> SkinData | None:
        return self._skins.get(skin_name)

    def _require_skin(self, skin_name: str) -> SkinData | None:
        skin = self.get_skin(skin_name)
        if skin is None:
            _log.warning("Tower %s has no skin %r.", self.name, skin_name)
        return skin

    def set_attribute(self, skin_name: str, level: int, attribute: str, value: Any) -> bool:
        """Set one attribute on one skin level.

        A `Cost` or `Price` computed by `$FNC-TOTALPRICE$` is stored in the
        level's `$<level>Cost$` variable, which every skin reading it follows.

        Returns:
            True when the skin and level exist and the write was applied.

        Raises:
            UnsafeAttributeError: When the attribute path contains an unsafe key.
        """

        skin = self._require_skin(skin_name)
        if skin is None:
            return False
        token = skin.price_token(level, attribute)
        if token is not None:
            if skin.stats_for(level) is None:
                return False
            return self.set_formula_token(skin_name, token, format_cell(value))
        return skin.set(level, attribute, value)

    def set_detection(self, skin_name: str, level: int, flag: str, value: bool) -> bool:
        skin = self._require_skin(skin_name)
        return skin.set_detection(level, flag, value) if skin is not None else False

    def set_formula_token(self, skin_name: str, token: str, value: str) -> bool:
        """Replace a formula token on one skin.

        A change on a non-PVP skin is also applied to every other skin that
        reads the plain token: the other non-PVP skins, and PVP skins without
        their own `$PVP-...$` value.
        """

        skin = self._require_skin(skin_name)
        if skin is None:
            return False
        skin.set_formula_token(token, value)
        if skin.is_pvp:
            return True

        pvp_key = f"$PVP-{token[1:-1]}$"
        for other in self._skins.values():
            if other is skin or (other.is_pvp and pvp_key in other.variables):
                continue
            other.set_formula_token(token, value, inherited=True)
        return True

    def target_skins(self, skin_name: str) -> list[SkinData]:
        """Return the skins an edit made while viewing `skin_name` applies to.

        Edits on a PVP skin stay on that skin. Edits on any other skin apply
        to every non-PVP skin.
        """

        current = self.get_skin(skin_name)
        if current is None:
            return []
        if current.is_pvp:
            return [current]
        return [skin for skin in self._skins.values() if not skin.is_pvp]

    def mark_saved(self, wikitext: str) -> None:
        """Adopt `wikitext` as the new source after a successful save."""

        self.source_wikitext = wikitext
        self.wikitext_source = "override"
        for skin in self._skins.values():
            skin.mark_saved()
