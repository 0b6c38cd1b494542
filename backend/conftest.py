"""
Pytest configuration and fixtures for all tests.
This file makes fixtures available to all tests in backend/.
"""

import pytest
from apps.polls.models import Poll, PollOption
from core.utils.identity import IdentityContext
from core.utils.voter_policy import get_policy
from django.contrib.auth.models import User

OWNER_TOKEN = "ownertoken0000000000000000000001"


def make_identity(voter_token="votertoken00000000000000000000aa", fingerprint="", ip_address="10.0.0.1", account_id=None):
    """Build an IdentityContext for service-level tests."""
    return IdentityContext(
        voter_token=voter_token,
        fingerprint=fingerprint,
        account_id=account_id,
        ip_address=ip_address,
        user_agent="pytest",
    )


@pytest.fixture
def user(db):
    """Create a test user."""
    return User.objects.create_user(
        username="testuser",
        email="test@example.com",
        password="testpass123",
    )


@pytest.fixture
def other_user(db):
    return User.objects.create_user(username="otheruser", password="testpass123")


@pytest.fixture
def poll(db):
    """Single-choice poll created by an anonymous owner."""
    return Poll.objects.create(question="Lunch today?", owner_token=OWNER_TOKEN)


@pytest.fixture
def options(db, poll):
    """Three options for the single-choice poll."""
    return [
        PollOption.objects.create(poll=poll, text="Pizza"),
        PollOption.objects.create(poll=poll, text="Sushi"),
        PollOption.objects.create(poll=poll, text="Tacos"),
    ]


@pytest.fixture
def multi_poll(db):
    """Multiple-choice poll with three options."""
    poll = Poll.objects.create(question="Which languages do you use?", poll_type=Poll.MULTIPLE, owner_token=OWNER_TOKEN)
    for text in ["Python", "Go", "Rust"]:
        PollOption.objects.create(poll=poll, text=text)
    return poll


@pytest.fixture
def owner_identity():
    return make_identity(voter_token=OWNER_TOKEN)


@pytest.fixture
def simple_policy():
    return get_policy("simple")


@pytest.fixture
def cookie_policy():
    return get_policy("cookie")


@pytest.fixture
def fingerprint_policy():
    return get_policy("fingerprint")


@pytest.fixture
def account_policy():
    return get_policy("account")


@pytest.fixture
def api_client():
    """Create a DRF API client."""
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def authenticated_client(api_client, user):
    """Create an authenticated API client."""
    api_client.force_authenticate(user=user)
    return api_client
