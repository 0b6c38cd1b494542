"""
Voter identity and eligibility resolution.

Decides, before any ledger mutation, which voter key represents the current
request under the active policy and whether that voter may cast a new vote
or change an existing one.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import List, Optional, Tuple, Type

from django.utils import timezone

from apps.votes.models import Vote
from core.exceptions import (
    AlreadyVotedError,
    AuthenticationRequiredError,
    InvalidInputError,
    MissingFingerprintError,
    RateLimitedError,
    VotingError,
)
from core.utils.fingerprint_validation import require_fingerprint, validate_fingerprint_format
from core.utils.identity import IdentityContext
from core.utils.voter_policy import ACCOUNT, FINGERPRINT, VoterPolicy, get_active_policy

logger = logging.getLogger(__name__)

ALREADY_VOTED_REASONS = {
    "voter_key": 'You have already voted in this poll. Click "Change My Vote" to update your vote.',
    "fingerprint": 'This device has already voted in this poll. Click "Change My Vote" to update your vote.',
}
RATE_LIMITED_REASON = "Too many vote actions from your network. Please try again later"


@dataclass(frozen=True)
class EligibilityDecision:
    """Outcome of an eligibility check: allowed, or denied with a reason."""

    allowed: bool
    reason: str = ""
    error_class: Optional[Type[VotingError]] = None

    @classmethod
    def allow(cls) -> "EligibilityDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str, error_class: Type[VotingError]) -> "EligibilityDecision":
        return cls(allowed=False, reason=reason, error_class=error_class)

    def raise_if_denied(self):
        if not self.allowed:
            raise self.error_class(self.reason)


class VoterEligibilityResolver:
    """
    Resolve voter keys and vote eligibility for one identity policy.

    Identity checks and the IP rate check are independent; both must pass.
    Changing a vote relaxes identity uniqueness but only raises the rate
    ceiling, never removes it.
    """

    def __init__(self, policy: Optional[VoterPolicy] = None):
        self.policy = policy or get_active_policy()

    def resolve_voter_key(self, identity: IdentityContext) -> str:
        """
        Produce the deduplication key for this request.

        Raises:
            MissingFingerprintError: Policy mandates a fingerprint and none was sent
            InvalidInputError: Fingerprint is malformed or no voter token is present
            AuthenticationRequiredError: Policy is account-based and nobody is signed in
        """
        return self._voter_key(identity, check_device=True)

    def peek_voter_key(self, identity: IdentityContext) -> Optional[str]:
        """
        Lenient variant of resolve_voter_key for read-only paths.

        The device signal is only consulted when it is the key itself, so a
        signed-in viewer is recognised by account without a fingerprint.
        """
        try:
            return self._voter_key(identity, check_device=self.policy.voter_key_source == FINGERPRINT)
        except VotingError:
            return None

    def _voter_key(self, identity: IdentityContext, check_device: bool) -> str:
        if check_device:
            is_present, error_message = require_fingerprint(self.policy.require_fingerprint, identity.fingerprint)
            if not is_present:
                raise MissingFingerprintError(error_message)

            if identity.fingerprint:
                is_valid, error_message = validate_fingerprint_format(identity.fingerprint)
                if not is_valid:
                    raise InvalidInputError(error_message)

        source = self.policy.voter_key_source
        if source == ACCOUNT:
            if not identity.has_account:
                raise AuthenticationRequiredError("Sign in to vote in this poll")
            return f"account:{identity.account_id}"
        if source == FINGERPRINT:
            return f"device:{identity.fingerprint}"

        if not identity.voter_token:
            raise InvalidInputError("Voter cookie missing. Enable cookies and reload the page")
        return f"cookie:{identity.voter_token}"

    def identity_keys(self, voter_key: str, identity: IdentityContext) -> List[Tuple[str, str]]:
        """Ledger (field, value) pairs that must not have voted yet, in check order."""
        keys = [("voter_key", voter_key)]
        if self.policy.check_fingerprint and identity.fingerprint:
            keys.append(("fingerprint", identity.fingerprint))
        return keys

    def count_recent_actions(self, poll, ip_address: Optional[str]) -> int:
        """Count ledger rows for (poll, ip) inside the trailing rate window."""
        window_start = timezone.now() - timedelta(seconds=self.policy.window_seconds)
        return Vote.objects.filter(
            poll=poll,
            ip_address=ip_address,
            created_at__gt=window_start,
        ).count()

    def can_vote(
        self,
        poll,
        voter_key: str,
        identity: IdentityContext,
        is_changing_vote: bool = False,
    ) -> EligibilityDecision:
        """
        Decide whether this vote action is permitted.

        Args:
            poll: Poll instance (existence is validated by the caller)
            voter_key: Key from resolve_voter_key()
            identity: Identity signals of the request
            is_changing_vote: Whether the voter key already has live votes

        Returns:
            EligibilityDecision
        """
        if not is_changing_vote:
            for field, value in self.identity_keys(voter_key, identity):
                if Vote.objects.filter(poll=poll, **{field: value}).exists():
                    logger.info(f"Vote denied for poll {poll.pk}: {field} has already voted")
                    return EligibilityDecision.deny(ALREADY_VOTED_REASONS[field], AlreadyVotedError)

        ceiling = self.policy.rate_ceiling(is_changing_vote)
        recent = self.count_recent_actions(poll, identity.ip_address)
        if recent >= ceiling:
            logger.warning(
                f"Vote rate limited for poll {poll.pk}: ip={identity.ip_address}, "
                f"recent={recent}, ceiling={ceiling}, changing={is_changing_vote}"
            )
            return EligibilityDecision.deny(RATE_LIMITED_REASON, RateLimitedError)

        return EligibilityDecision.allow()

    def check(self, poll, voter_key: str, identity: IdentityContext, is_changing_vote: bool = False):
        """Raise the denial error if the vote action is not permitted."""
        self.can_vote(poll, voter_key, identity, is_changing_vote).raise_if_denied()
