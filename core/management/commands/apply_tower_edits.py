"""Apply a YAML list of edits to a tower and patch its wikitext."""

from __future__ import annotations

from pathlib import Path

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from core.services import TowerManager, UnknownTowerError, load_edits_yaml
from towers.locator import UnsafeAttributeError


class Command(BaseCommand):
    """Apply many edits to one tower in a single save."""

    help = "Apply edits from a YAML file to a tower; print or save the patched wikitext."

    def add_arguments(self, parser) -> None:
        """Add command arguments."""

        parser.add_argument("name", help="Tower name (the .wiki file stem).")
        parser.add_argument("edits", help="Path to a YAML file listing the edits.")
        parser.add_argument(
            "--profile",
            default=settings.TOWER_EDITOR_DEFAULT_PROFILE,
            help="Profile the edits are saved to.",
        )
        parser.add_argument(
            "--check",
            action="store_true",
            help="Dry-run: print the patched wikitext without saving.",
        )
        parser.add_argument(
            "--write",
            action="store_true",
            help="Save the patched wikitext as the profile override.",
        )

    def handle(self, *args, **options) -> str | None:
        """Run the command."""

        check: bool = options["check"]
        write: bool = options["write"]
        if check and write:
            raise CommandError("Use either --check or --write, not both.")
        if not check and not write:
            raise CommandError("Refusing to write without explicit intent; pass --check or --write.")

        path = Path(options["edits"])
        if not path.is_file():
            raise CommandError(f"Edits file not found: {path}")
        try:
            edits = load_edits_yaml(path.read_text(encoding="utf-8"))
        except ValueError as exc:
            raise CommandError(f"Invalid edits file {path}: {exc}") from exc

        name: str = options["name"]
        manager = TowerManager(options["profile"])
        try:
            tower = manager.get_tower(name)
        except UnknownTowerError as exc:
            raise CommandError(str(exc)) from exc

        mode = "CHECK" if check else "WRITE"
        skipped = 0
        for edit in edits:
            try:
                applied = manager.apply_edit(tower, edit)
            except UnsafeAttributeError as exc:
                raise CommandError(str(exc)) from exc
            if not applied:
                skipped += 1
            self.stdout.write(
                f"[{mode}] {edit.skin} level={edit.level} {edit.attribute}={edit.value!r} skins={applied}"
            )
        self.stdout.write(f"[{mode}] edits={len(edits)} skipped={skipped}")

        if check:
            patched = manager.generate_wikitext(tower)
            if patched is None:
                raise CommandError(f"Could not generate wikitext for {name!r}.")
            self.stdout.write(patched)
            return None

        if manager.save_tower(tower) is None:
            raise CommandError(f"Could not save wikitext for {name!r}.")
        self.stdout.write(f"[WRITE] saved override for profile={manager.profile_name}")
        return None
