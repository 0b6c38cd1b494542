"""
Vote ledger model for Livepoll.
"""

from apps.polls.models import Poll, PollOption
from django.db import models
from django.utils import timezone


class Vote(models.Model):
    """
    Immutable ledger row: one voter's vote for one option of a poll.

    Rows are never updated. A vote change deletes the voter's rows for the
    poll and inserts new ones inside the same transaction.
    """

    poll = models.ForeignKey(Poll, on_delete=models.CASCADE, related_name="votes")
    # Options are soft-deleted, never removed while ledger rows point at them
    option = models.ForeignKey(PollOption, on_delete=models.RESTRICT, related_name="votes")
    voter_key = models.CharField(max_length=300, db_index=True, help_text="Cookie id, fingerprint or account id")
    # Tracking fields
    ip_address = models.GenericIPAddressField(null=True, blank=True, help_text="IP address of voter")
    fingerprint = models.CharField(max_length=256, blank=True, help_text="Client device fingerprint")
    user_agent = models.TextField(blank=True, help_text="User agent string")
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["poll", "option", "voter_key"], name="unique_poll_option_voter"),
        ]
        indexes = [
            models.Index(fields=["poll", "voter_key"], name="vote_poll_voter_key_idx"),  # "has already voted" lookups
            models.Index(fields=["poll", "fingerprint"], name="vote_poll_fingerprint_idx"),  # Device cross-checks
            models.Index(fields=["poll", "ip_address", "created_at"], name="vote_poll_ip_created_idx"),  # Rate window
        ]

    def __str__(self):
        return f"{self.voter_key} voted for {self.option.text} in {self.poll.question}"
