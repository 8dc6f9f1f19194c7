"""Print a tower's per-level projections."""

from __future__ import annotations

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from core.services import TowerManager, UnknownTowerError
from towers.formatting import format_value


class Command(BaseCommand):
    """Show every level of one tower, one table per skin."""

    help = "Print the inherited attribute values of each level of a tower."

    def add_arguments(self, parser) -> None:
        """Add command arguments."""

        parser.add_argument("name", help="Tower name (the .wiki file stem).")
        parser.add_argument("--skin", default=None, help="Only show this skin.")
        parser.add_argument(
            "--profile",
            default=settings.TOWER_EDITOR_DEFAULT_PROFILE,
            help="Profile whose overrides are applied.",
        )

    def handle(self, *args, **options) -> str | None:
        """Run the command."""

        name: str = options["name"]
        skin_name: str | None = options["skin"]
        manager = TowerManager(options["profile"])
        try:
            tower = manager.get_tower(name)
        except UnknownTowerError as exc:
            raise CommandError(str(exc)) from exc

        if skin_name is not None and tower.get_skin(skin_name) is None:
            raise CommandError(f"Tower {name!r} has no skin {skin_name!r} (skins: {tower.skin_names}).")
        selected = [skin_name] if skin_name is not None else tower.skin_names

        self.stdout.write(f"[SHOW] {name} source={tower.wikitext_source or 'unknown'}")
        for current in selected:
            skin = tower.get_skin(current)
            if skin is None:
                continue
            levels = skin.levels
            self.stdout.write(f"== {skin.name}{' (PVP)' if skin.is_pvp else ''} ==")
            self.stdout.write(" | ".join(levels.attributes))
            for level in levels.levels:
                cells = [format_value(level.get(attribute)) for attribute in levels.attributes]
                self.stdout.write(" | ".join(cells))
        return None
