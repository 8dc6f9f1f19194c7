"""List the towers available to the editor and where each one is loaded from."""

from __future__ import annotations

from django.conf import settings
from django.core.management.base import BaseCommand

from core.services import TowerManager
from profiles.services import has_wiki_override


class Command(BaseCommand):
    """List tower names with their effective wikitext source."""

    help = "List towers and whether each uses the base wikitext or a profile override."

    def add_arguments(self, parser) -> None:
        """Add command arguments."""

        parser.add_argument(
            "--profile",
            default=settings.TOWER_EDITOR_DEFAULT_PROFILE,
            help="Profile whose overrides are reported.",
        )

    def handle(self, *args, **options) -> str | None:
        """Run the command."""

        profile: str = options["profile"]
        manager = TowerManager(profile)
        names = manager.tower_names()
        self.stdout.write(f"[LIST] profile={profile} towers={len(names)}")
        for name in names:
            source = "override" if has_wiki_override(profile, name) else "base"
            self.stdout.write(f"{name} source={source}")
        return None
