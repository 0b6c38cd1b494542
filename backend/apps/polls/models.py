"""
Poll models for Livepoll.
"""

import uuid

from django.contrib.auth.models import User
from django.db import models


class Poll(models.Model):
    """Model representing a poll question, its type and its owner."""

    SINGLE = "single"
    MULTIPLE = "multiple"
    POLL_TYPE_CHOICES = [
        (SINGLE, "Single choice"),
        (MULTIPLE, "Multiple choice"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    question = models.CharField(max_length=500)
    poll_type = models.CharField(max_length=10, choices=POLL_TYPE_CHOICES, default=SINGLE)
    # Ownership: an account, or the anonymous creator's voter token
    owner_account = models.ForeignKey(
        User, on_delete=models.SET_NULL, related_name="polls", null=True, blank=True
    )
    owner_token = models.CharField(max_length=64, blank=True, db_index=True, help_text="Voter token of an anonymous creator")
    requires_account = models.BooleanField(default=False, help_text="Only signed-in accounts may vote")
    results_version = models.PositiveIntegerField(default=0, help_text="Bumped by every change to votes or options")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["created_at"], name="poll_created_at_idx"),
        ]

    def __str__(self):
        return self.question

    @property
    def allow_multiple(self):
        """Whether a voter may pick more than one option."""
        return self.poll_type == self.MULTIPLE

    @property
    def has_owner(self):
        return self.owner_account_id is not None or bool(self.owner_token)

    def is_owned_by(self, account_id=None, voter_token=None):
        """
        Check whether the given identity owns this poll.

        Account ownership wins when the poll was created by an account;
        otherwise the creator's anonymous voter token must match.
        """
        if self.owner_account_id is not None:
            return account_id is not None and str(self.owner_account_id) == str(account_id)
        if self.owner_token:
            return bool(voter_token) and voter_token == self.owner_token
        return False


class ActiveOptionManager(models.Manager):
    """Manager returning only options that have not been soft-deleted."""

    def get_queryset(self):
        return super().get_queryset().filter(is_deleted=False)


class PollOption(models.Model):
    """Model representing a voting option with a cached vote count."""

    poll = models.ForeignKey(Poll, on_delete=models.CASCADE, related_name="options")
    text = models.CharField(max_length=200)
    vote_count = models.IntegerField(default=0, help_text="Cached count of ledger rows for this option")
    # Soft delete keeps historical votes pointing at a valid row
    is_deleted = models.BooleanField(default=False, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = models.Manager()
    active = ActiveOptionManager()

    class Meta:
        ordering = ["id"]
        indexes = [
            models.Index(fields=["poll", "is_deleted"], name="option_poll_deleted_idx"),
        ]

    def __str__(self):
        return f"{self.poll.question} - {self.text}"
