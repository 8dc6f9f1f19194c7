"""Discard a profile's saved edits for a tower."""

from __future__ import annotations

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from core.services import TowerManager
from profiles.services import has_wiki_override


class Command(BaseCommand):
    """Reset a tower to its base wikitext for one profile."""

    help = "Delete the profile's wikitext override for a tower."

    def add_arguments(self, parser) -> None:
        """Add command arguments."""

        parser.add_argument("name", help="Tower name.")
        parser.add_argument(
            "--profile",
            default=settings.TOWER_EDITOR_DEFAULT_PROFILE,
            help="Profile whose override is removed.",
        )
        parser.add_argument(
            "--check",
            action="store_true",
            help="Dry-run: report whether an override exists.",
        )
        parser.add_argument(
            "--force",
            action="store_true",
            help="Required to actually delete the override.",
        )

    def handle(self, *args, **options) -> str | None:
        """Run the command."""

        check: bool = options["check"]
        force: bool = options["force"]
        if check and force:
            raise CommandError("Use either --check or --force, not both.")
        if not check and not force:
            raise CommandError("Refusing to delete without explicit intent; pass --check or --force.")

        name: str = options["name"]
        profile: str = options["profile"]
        mode = "CHECK" if check else "DELETE"
        exists = has_wiki_override(profile, name)
        self.stdout.write(f"[{mode}] {name} profile={profile} override={exists}")
        if check:
            return None

        TowerManager(profile).reset_tower(name)
        self.stdout.write("[DELETE] completed")
        return None
