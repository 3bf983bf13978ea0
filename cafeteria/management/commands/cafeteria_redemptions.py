"""Management command to list the loyalty rewards a balance can buy."""

from django.core.management.base import BaseCommand, CommandError

from cafeteria.system import CafeteriaSystem


class Command(BaseCommand):
    help = "List the loyalty redemption options available for a points balance"

    def add_arguments(self, parser):
        parser.add_argument(
            "--points",
            type=int,
            required=True,
            help="Points balance to check",
        )

    def handle(self, *args, **options):
        points = options["points"]
        if points < 0:
            raise CommandError("--points cannot be negative")

        options_available = CafeteriaSystem.from_settings().loyalty.get_available_redemptions(points)
        if not options_available:
            self.stdout.write(self.style.WARNING(f"No rewards available for {points} points."))
            return

        for option in options_available:
            self.stdout.write(option.description)
        self.stdout.write(
            self.style.SUCCESS(f"{len(options_available)} rewards available for {points} points.")
        )
