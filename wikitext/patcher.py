"""Write an edited tower back into its source wikitext.

Only two regions of the source are ever rewritten:
- the `<var>...</var>` block, which is always regenerated from the document
  variables and the model,
- the table of each skin whose regenerated markup differs from the markup it
  was loaded (or last saved) with.

Everything else in the document is kept byte-for-byte.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

from towers.stats import DETECTION_TYPES
from wikitext.serializer import serialize_variables

if TYPE_CHECKING:
    from towers.skin import SkinData
    from towers.tower import Tower

_log = logging.getLogger(__name__)

VAR_OPEN = "<var>"
VAR_CLOSE = "</var>"
TABBER_OPEN = "<tabber>"
TABBER_CLOSE = "</tabber>"
TAB_DELIMITER = "|-|"

_LEVEL_DETECTION_RE = re.compile(r"^\$\d+(?:Lead|Hidden|Flying)\$$")
_LEVEL_LABEL_RE = re.compile(r"^\$\d+UpgradeI?\$$")


def _is_level_variable(key: str) -> bool:
    """Return True for per-level detection/title/image variables (rebuilt from the model)."""

    return bool(_LEVEL_DETECTION_RE.match(key) or _LEVEL_LABEL_RE.match(key))


def _quoted(value: Any) -> str:
    return f'"{value}"'


def _recorded_detection(value: str | None) -> bool | None:
    """Return the flag a detection variable sets, or None when it sets nothing."""

    if not value:
        return None
    return value == "true"


def _detection_key(skin: SkinData, level: int, flag: str) -> str | None:
    if not skin.is_pvp:
        return f"${level}{flag}$"
    if flag in skin.pvp_owned_detection_types:
        return f"$PVP-{level}{flag}$"
    return None


def _write_detections(
    variables: dict[str, str],
    skin: SkinData,
    level: int,
    state: dict[str, bool],
    current: dict[str, bool],
) -> None:
    """Reconcile the detection variables of one level with the running state.

    A variable that already agrees with the level's state is kept as written,
    even when it does not change the state. Otherwise a variable is written
    only where the flag changes, and a conflicting one is removed.
    """

    for flag in DETECTION_TYPES:
        if flag not in state:
            continue
        enabled = state[flag]
        key = _detection_key(skin, level, flag)
        if key is not None:
            recorded = _recorded_detection(variables.get(key))
            if recorded is None:
                if enabled != current[flag]:
                    variables[key] = str(enabled).lower()
            elif recorded != enabled:
                if enabled != current[flag]:
                    variables[key] = str(enabled).lower()
                else:
                    del variables[key]
        current[flag] = enabled


def _write_label(variables: dict[str, str], key: str, value: Any) -> None:
    """Write an upgrade title/image unless the variable already holds it."""

    if variables.get(key) != value:
        variables[key] = _quoted(value)


def build_variables_map(tower: Tower) -> dict[str, str]:
    """Rebuild the document variables from the tower model.

    Starts from the tower's document variables, so variables the model does
    not track (detections past the last table row, `$PVP-...$` values on a
    page without a PVP tab, redundant flags) are kept. The first pass records
    the non-PVP baseline (formula tokens, upgrade titles and images). The
    second pass writes every skin: non-PVP values verbatim, PVP values as
    `$PVP-...$` where the skin already owns them or they differ from the
    baseline. Detection flags are written only on the level where they
    change; PVP skins write only the flags they own.

    Args:
        tower: The tower to serialize.

    Returns:
        An ordered mapping of `$Token$` -> value.
    """

    baseline_tokens: dict[str, str] = {}
    baseline_titles: dict[int, Any] = {}
    baseline_images: dict[int, Any] = {}

    for skin in tower.skins.values():
        if skin.is_pvp:
            continue
        for key, value in skin.formula_tokens.items():
            if not _is_level_variable(key):
                baseline_tokens[key] = value
        for level, upgrade in enumerate(skin.upgrades_data, start=1):
            if upgrade.get("Title"):
                baseline_titles[level] = upgrade["Title"]
            if upgrade.get("Image"):
                baseline_images[level] = upgrade["Image"]

    variables: dict[str, str] = dict(tower.variables)
    for skin in tower.skins.values():
        for key, value in skin.formula_tokens.items():
            if _is_level_variable(key) or key.startswith("$PVP-"):
                continue
            pvp_key = f"$PVP-{key[1:-1]}$"
            if not skin.is_pvp:
                variables[key] = value
            elif pvp_key in variables or baseline_tokens.get(key) != value:
                variables[pvp_key] = value

        current = {flag: False for flag in DETECTION_TYPES}
        for level, state in enumerate(skin.detection_states()):
            _write_detections(variables, skin, level, state, current)

        for level, upgrade in enumerate(skin.upgrades_data, start=1):
            for suffix, field, baseline in (
                ("Upgrade", "Title", baseline_titles),
                ("UpgradeI", "Image", baseline_images),
            ):
                value = upgrade.get(field)
                if not skin.is_pvp:
                    key = f"${level}{suffix}$"
                    if value:
                        _write_label(variables, key, value)
                    elif variables.get(key):
                        del variables[key]
                    continue
                pvp_key = f"$PVP-{level}{suffix}$"
                if value and baseline.get(level) != value:
                    _write_label(variables, pvp_key, value)
                elif variables.get(pvp_key) and variables[pvp_key] != value:
                    del variables[pvp_key]

    return variables


def patch_variable_block(text: str, variables: dict[str, str]) -> str:
    """Replace the first `<var>` block, or prepend one when the text has none."""

    block = serialize_variables(variables)
    start = text.find(VAR_OPEN)
    end = text.find(VAR_CLOSE)
    if start == -1 or end == -1:
        return block + "\n\n" + text
    return text[:start] + block + text[end + len(VAR_CLOSE) :]


def patch_skin_table(text: str, skin_name: str, table: str) -> str:
    """Splice one skin's table markup into the document.

    Without a `<tabber>` the first `{| ... |}` table is replaced (or the table
    is appended when there is none). With a `<tabber>` only the segment of the
    tab named `skin_name` is replaced, up to the next `|-|` delimiter.

    Args:
        text: Current document text.
        skin_name: Tab name to patch.
        table: Regenerated table markup.

    Returns:
        The patched text. When the tab cannot be found the text is returned
        unchanged.
    """

    tabber_start = text.find(TABBER_OPEN)
    tabber_end = text.find(TABBER_CLOSE)

    if tabber_start == -1 or tabber_end == -1:
        table_start = text.find("{|")
        table_end = text.find("|}", table_start) if table_start != -1 else -1
        if table_start == -1 or table_end == -1:
            return text + "\n" + table
        return text[:table_start] + table.strip() + text[table_end + 2 :]

    content_start = tabber_start + len(TABBER_OPEN)
    content = text[content_start:tabber_end]
    header = re.search(rf"(^|\|-\|)\s*{re.escape(skin_name)}\s*=\s*", content)
    if header is None:
        _log.warning("Could not find tab for skin %r; its table was not patched.", skin_name)
        return text

    segment_start = header.end()
    delimiter = content.find(TAB_DELIMITER, segment_start)
    segment_end = len(content) if delimiter == -1 else delimiter

    patched = content[:segment_start] + "\n" + table + "\n" + content[segment_end:]
    return text[:content_start] + patched + text[tabber_end:]


def patch_wikitext(source: str, tower: Tower) -> str:
    """Regenerate the variable block and every changed skin table.

    Args:
        source: The wikitext the tower was built from.
        tower: The (possibly edited) tower.

    Returns:
        Patched wikitext. Skins whose tables did not change keep their source
        text exactly.
    """

    text = patch_variable_block(source, build_variables_map(tower))
    for skin_name, skin in tower.skins.items():
        if not skin.table_changed():
            continue
        _log.debug("Patching table for %s / %s.", tower.name, skin_name)
        text = patch_skin_table(text, skin_name, skin.table_markup())
    return text
