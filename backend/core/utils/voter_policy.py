"""
Voter identity policies.

A policy selects which identity signal deduplicates votes, which signals are
mandatory or cross-checked against the ledger, and how many vote actions one
network may perform per window. One policy is active per deployment
(``settings.VOTER_IDENTITY_POLICY``).
"""

from dataclasses import dataclass, replace
from typing import Dict

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

COOKIE = "cookie"
FINGERPRINT = "fingerprint"
ACCOUNT = "account"

DEFAULT_WINDOW_SECONDS = 5 * 60


@dataclass(frozen=True)
class VoterPolicy:
    """Identity and rate-limit rules applied to every vote action."""

    name: str
    voter_key_source: str = COOKIE
    require_fingerprint: bool = False
    check_fingerprint: bool = False
    track_devices: bool = False
    require_account: bool = False
    enforce_ownership: bool = True
    max_new_votes_per_window: int = 5
    max_changes_per_window: int = 10
    window_seconds: int = DEFAULT_WINDOW_SECONDS

    def rate_ceiling(self, is_changing_vote: bool) -> int:
        """Maximum ledger rows from one IP per window for this kind of action."""
        if is_changing_vote:
            return self.max_changes_per_window
        return self.max_new_votes_per_window


POLICIES: Dict[str, VoterPolicy] = {
    # Cookie + IP only, the tightest network ceiling
    "simple": VoterPolicy(
        name="simple",
        voter_key_source=COOKIE,
        enforce_ownership=False,
        max_new_votes_per_window=3,
        max_changes_per_window=3,
    ),
    "cookie": VoterPolicy(
        name="cookie",
        voter_key_source=COOKIE,
    ),
    "fingerprint": VoterPolicy(
        name="fingerprint",
        voter_key_source=FINGERPRINT,
        require_fingerprint=True,
        track_devices=True,
    ),
    # Account id is the dedup key; the device is checked independently
    "account": VoterPolicy(
        name="account",
        voter_key_source=ACCOUNT,
        require_fingerprint=True,
        check_fingerprint=True,
        track_devices=True,
        require_account=True,
    ),
}


def get_policy(name: str) -> VoterPolicy:
    """
    Look up a policy preset and apply rate settings overrides.

    Raises:
        ImproperlyConfigured: If the name is not a known policy
    """
    try:
        policy = POLICIES[name]
    except KeyError:
        raise ImproperlyConfigured(
            f"Unknown VOTER_IDENTITY_POLICY {name!r}; expected one of {sorted(POLICIES)}"
        )

    overrides = {}
    new_limit = getattr(settings, "VOTE_RATE_LIMIT_NEW", None)
    change_limit = getattr(settings, "VOTE_RATE_LIMIT_CHANGE", None)
    window = getattr(settings, "VOTE_RATE_WINDOW_SECONDS", None)
    if new_limit is not None:
        overrides["max_new_votes_per_window"] = int(new_limit)
    if change_limit is not None:
        overrides["max_changes_per_window"] = int(change_limit)
    if window is not None:
        overrides["window_seconds"] = int(window)

    return replace(policy, **overrides) if overrides else policy


def get_active_policy() -> VoterPolicy:
    """Return the policy configured for this deployment."""
    return get_policy(getattr(settings, "VOTER_IDENTITY_POLICY", "cookie"))
