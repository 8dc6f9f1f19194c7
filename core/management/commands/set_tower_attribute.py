"""Set one attribute (or detection flag) on a tower and patch its wikitext."""

from __future__ import annotations

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from core.services import TowerEdit, TowerManager, UnknownTowerError
from towers.formatting import parse_value_text
from towers.locator import UnsafeAttributeError


class Command(BaseCommand):
    """Edit a single cell of a tower."""

    help = "Set an attribute at one level of a tower skin; print or save the patched wikitext."

    def add_arguments(self, parser) -> None:
        """Add command arguments."""

        parser.add_argument("name", help="Tower name (the .wiki file stem).")
        parser.add_argument("--skin", required=True, help="Skin the edit is made on.")
        parser.add_argument("--level", required=True, type=int, help="0 for defaults, else the upgrade level.")
        parser.add_argument("--attribute", required=True, help="Attribute name (dotted for nested values).")
        parser.add_argument("--value", required=True, help="New value (true/false, a number, or text).")
        parser.add_argument(
            "--detection",
            action="store_true",
            help="Treat --attribute as a detection flag (Hidden, Flying, Lead).",
        )
        parser.add_argument(
            "--profile",
            default=settings.TOWER_EDITOR_DEFAULT_PROFILE,
            help="Profile the edit is saved to.",
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

        name: str = options["name"]
        value = parse_value_text(options["value"])
        if options["detection"] and not isinstance(value, bool):
            raise CommandError(f"Detection values must be true or false, got {options['value']!r}.")

        manager = TowerManager(options["profile"])
        try:
            tower = manager.get_tower(name)
        except UnknownTowerError as exc:
            raise CommandError(str(exc)) from exc

        edit = TowerEdit(
            skin=options["skin"],
            level=options["level"],
            attribute=options["attribute"],
            value=value,
            detection=options["detection"],
        )
        try:
            applied = manager.apply_edit(tower, edit)
        except UnsafeAttributeError as exc:
            raise CommandError(str(exc)) from exc
        if not applied:
            raise CommandError(
                f"Edit was not applied: check skin {edit.skin!r} and level {edit.level} of {name!r}."
            )

        mode = "CHECK" if check else "WRITE"
        self.stdout.write(
            f"[{mode}] {name} {edit.skin} level={edit.level} {edit.attribute}={value!r} skins={applied}"
        )
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
