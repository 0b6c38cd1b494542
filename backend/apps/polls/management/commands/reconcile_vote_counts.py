"""
Management command to rebuild cached option vote counts from the vote ledger.
"""

from django.core.management.base import BaseCommand

from apps.polls.services import reconcile_vote_counts


class Command(BaseCommand):
    """Command to reconcile cached vote counts."""

    help = "Rebuild cached option vote counts from the vote ledger"

    def add_arguments(self, parser):
        parser.add_argument("--poll", dest="poll_id", default=None, help="Only reconcile this poll id")

    def handle(self, *args, **options):
        """Execute the command."""
        corrections = reconcile_vote_counts(options["poll_id"])

        if corrections:
            for option_id, counts in sorted(corrections.items()):
                self.stdout.write(f"Option {option_id}: {counts['cached']} -> {counts['ledger']}")
            self.stdout.write(self.style.SUCCESS(f"Corrected {len(corrections)} option count(s)"))
        else:
            self.stdout.write("All vote counts match the ledger")
