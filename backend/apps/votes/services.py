"""
Vote services: the atomic cast-or-change operation.

A vote action is validated completely (poll, account precondition, voter key,
eligibility, chosen options) before the ledger is touched. The replace itself
(delete old rows, decrement, insert new rows, increment) runs in one
transaction under a row lock on the poll, and the results-changed event is
published only after that transaction commits.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from apps.polls.models import Poll, PollOption
from apps.polls.services import (
    bump_results_version,
    calculate_poll_stats,
    get_poll,
    publish_results_changed,
    serialize_options,
)
from apps.votes.eligibility import VoterEligibilityResolver
from apps.votes.models import Vote
from core.exceptions import (
    AuthenticationRequiredError,
    InvalidVoteError,
    StorageFailureError,
)
from core.utils.identity import IdentityContext
from core.utils.voter_policy import VoterPolicy, get_active_policy
from django.db import DatabaseError, transaction
from django.db.models import F
from django.utils import timezone

logger = logging.getLogger(__name__)


@dataclass
class VoteResult:
    """Tally returned after a vote was recorded or changed."""

    poll_id: str
    voter_key: str
    is_change: bool
    voted_option_ids: List[int]
    options: List[Dict] = field(default_factory=list)
    stats: Dict = field(default_factory=dict)

    @property
    def message(self) -> str:
        return "Vote changed" if self.is_change else "Vote recorded"


def normalize_option_ids(poll: Poll, option_ids: Iterable) -> List[int]:
    """
    Validate the chosen option ids against the poll type and live options.

    Single-choice polls accept exactly one id. Multiple-choice polls accept
    any non-empty set; repeated ids collapse into one.

    Raises:
        InvalidVoteError
    """
    try:
        chosen = list(dict.fromkeys(int(option_id) for option_id in option_ids))
    except (TypeError, ValueError):
        raise InvalidVoteError("Option ids must be integers")

    if not chosen:
        raise InvalidVoteError("Select at least one option")

    if not poll.allow_multiple and len(chosen) != 1:
        raise InvalidVoteError("This poll accepts exactly one option")

    valid_ids = set(
        PollOption.active.filter(poll=poll, id__in=chosen).values_list("id", flat=True)
    )
    invalid_ids = [option_id for option_id in chosen if option_id not in valid_ids]
    if invalid_ids:
        raise InvalidVoteError(
            f"Option(s) {', '.join(str(i) for i in invalid_ids)} cannot be voted for in poll {poll.id}"
        )

    return chosen


def check_account_precondition(poll: Poll, identity: IdentityContext, policy: VoterPolicy):
    """Raise AuthenticationRequiredError when the poll or policy needs an account."""
    if (poll.requires_account or policy.require_account) and not identity.has_account:
        raise AuthenticationRequiredError("Sign in to vote in this poll")


def cast_or_change_vote(
    poll_id,
    option_ids: Iterable,
    identity: IdentityContext,
    policy: Optional[VoterPolicy] = None,
) -> VoteResult:
    """
    Record a new vote or replace the voter's existing vote on a poll.

    Args:
        poll_id: Poll ID
        option_ids: Chosen option ids (exactly one for single-choice polls)
        identity: Identity signals of the request
        policy: Identity policy (default: the deployment's active policy)

    Returns:
        VoteResult with the refreshed options and ledger statistics

    Raises:
        PollNotFoundError: Poll does not exist
        AuthenticationRequiredError: Poll or policy needs an account
        MissingFingerprintError: Policy needs a fingerprint the client omitted
        AlreadyVotedError: An identity key already voted on this poll
        RateLimitedError: Too many vote actions from this IP in the window
        InvalidVoteError: Chosen options are not valid for this poll
        StorageFailureError: The transaction failed and was rolled back
    """
    policy = policy or get_active_policy()
    resolver = VoterEligibilityResolver(policy)

    # Signal checks need no storage access
    voter_key = resolver.resolve_voter_key(identity)
    option_ids = list(option_ids or [])

    try:
        with transaction.atomic():
            # Serializes every vote action on this poll
            poll = get_poll(poll_id, lock=True)
            check_account_precondition(poll, identity, policy)

            previous_option_ids = list(
                Vote.objects.filter(poll=poll, voter_key=voter_key).values_list("option_id", flat=True)
            )
            is_changing_vote = bool(previous_option_ids)

            resolver.check(poll, voter_key, identity, is_changing_vote)
            chosen_option_ids = normalize_option_ids(poll, option_ids)

            # Every check passed; the ledger is only written from here on
            if is_changing_vote:
                Vote.objects.filter(poll=poll, voter_key=voter_key).delete()
                for option_id in previous_option_ids:
                    PollOption.objects.filter(id=option_id, vote_count__gt=0).update(
                        vote_count=F("vote_count") - 1
                    )

            voted_at = timezone.now()
            Vote.objects.bulk_create(
                [
                    Vote(
                        poll=poll,
                        option_id=option_id,
                        voter_key=voter_key,
                        ip_address=identity.ip_address,
                        fingerprint=identity.fingerprint,
                        user_agent=identity.user_agent,
                        created_at=voted_at,
                    )
                    for option_id in chosen_option_ids
                ]
            )
            PollOption.objects.filter(id__in=chosen_option_ids).update(vote_count=F("vote_count") + 1)
            bump_results_version(poll.id)

            result = VoteResult(
                poll_id=str(poll.id),
                voter_key=voter_key,
                is_change=is_changing_vote,
                voted_option_ids=sorted(chosen_option_ids),
                options=serialize_options(poll.id),
                stats=calculate_poll_stats(poll.id, policy),
            )

            transaction.on_commit(lambda: publish_results_changed(poll.id))
    except DatabaseError as e:
        logger.error(f"Storage failure while voting on poll {poll_id}: {e}")
        raise StorageFailureError() from e

    logger.info(
        f"Vote {'changed' if result.is_change else 'recorded'}: poll_id={result.poll_id}, "
        f"options={result.voted_option_ids}, policy={policy.name}"
    )
    return result
