"""
Tests for Poll and PollOption models.
"""

import uuid

import pytest
from apps.polls.models import Poll, PollOption


@pytest.mark.django_db
class TestPollModel:
    def test_uuid_primary_key(self, poll):
        assert isinstance(poll.id, uuid.UUID)

    def test_str(self, poll):
        assert str(poll) == "Lunch today?"

    def test_allow_multiple(self, poll, multi_poll):
        assert poll.allow_multiple is False
        assert multi_poll.allow_multiple is True

    def test_token_ownership(self, poll):
        assert poll.has_owner is True
        assert poll.is_owned_by(voter_token=poll.owner_token) is True
        assert poll.is_owned_by(voter_token="someone-else") is False
        assert poll.is_owned_by() is False

    def test_account_ownership(self, user):
        poll = Poll.objects.create(question="Q?", owner_account=user)
        assert poll.is_owned_by(account_id=str(user.pk)) is True
        assert poll.is_owned_by(account_id=user.pk) is True
        assert poll.is_owned_by(account_id="999") is False

    def test_poll_without_owner(self):
        poll = Poll.objects.create(question="Q?")
        assert poll.has_owner is False
        assert poll.is_owned_by(voter_token="anything") is False


@pytest.mark.django_db
class TestPollOptionModel:
    def test_active_manager_hides_deleted(self, poll, options):
        PollOption.objects.filter(id=options[0].id).update(is_deleted=True)

        assert PollOption.active.filter(poll=poll).count() == 2
        assert PollOption.objects.filter(poll=poll).count() == 3
        assert poll.options.count() == 3

    def test_str(self, poll, options):
        assert str(options[0]) == "Lunch today? - Pizza"
