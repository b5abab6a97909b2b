from datetime import date

from django.core.management.base import BaseCommand, CommandError

from apps.goals.services import refresh_instances


class Command(BaseCommand):
    help = (
        "Open the current-period instance of every running assigned goal and "
        "mark instances whose period has ended unfinished as overdue."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--date",
            help="Reference day in YYYY-MM-DD format (defaults to today).",
        )

    def handle(self, *args, **options):
        today = None
        if options["date"]:
            try:
                today = date.fromisoformat(options["date"])
            except ValueError:
                raise CommandError(f"Invalid --date value: {options['date']}") from None

        counts = refresh_instances(today=today)
        if counts is None:
            raise CommandError("Refreshing goal instances failed; see the log for details.")

        self.stdout.write(
            self.style.SUCCESS(
                f"Completed: instances(opened={counts['opened']}), "
                f"instances(overdue={counts['overdue']})."
            )
        )
