"""List, create, or delete editor profiles."""

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from profiles.models import Profile
from profiles.services import add_profile, delete_profile, ensure_default_profile, list_profiles


class Command(BaseCommand):
    """Manage editor profiles."""

    help = "List profiles, or create/delete one."

    def add_arguments(self, parser) -> None:
        """Add command arguments."""

        group = parser.add_mutually_exclusive_group()
        group.add_argument("--create", metavar="NAME", help="Create a profile.")
        group.add_argument("--delete", metavar="NAME", help="Delete a profile and its overrides.")

    def handle(self, *args, **options) -> str | None:
        """Run the command."""

        create: str | None = options["create"]
        delete: str | None = options["delete"]

        if create is not None:
            try:
                profile, created = add_profile(create)
            except ValueError as exc:
                raise CommandError(str(exc)) from exc
            self.stdout.write(f"[CREATE] {profile.name} created={created}")
        elif delete is not None:
            ensure_default_profile()
            profile = Profile.objects.filter(name=delete).first()
            if profile is None:
                raise CommandError(f"Unknown profile {delete!r}.")
            if profile.is_default:
                raise CommandError(f"The {profile.name} profile cannot be deleted.")
            delete_profile(delete)
            self.stdout.write(f"[DELETE] {delete}")

        for name in list_profiles():
            self.stdout.write(name)
        return None
