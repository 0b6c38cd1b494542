"""
Poll services: creation, option management, snapshots and live results.

Option vote counts are a denormalized cache of the vote ledger. Statistics
are always derived from the ledger. Results that do not depend on the viewer
are cached under the poll's results version, which every change bumps inside
its own transaction, so an entry computed before a commit is never served
after it.
"""

import logging
from typing import Dict, Iterable, List, Optional

from django.core.cache import cache
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.db.models import Count, F, Q

from core.exceptions import (
    ForbiddenError,
    InvalidInputError,
    OptionNotFoundError,
    PollNotFoundError,
    StorageFailureError,
)
from core.utils.identity import IdentityContext
from core.utils.voter_policy import VoterPolicy, get_active_policy

from .models import Poll, PollOption

logger = logging.getLogger(__name__)

# Cache TTL for results (1 hour)
RESULTS_CACHE_TTL = 3600

MIN_OPTIONS = 2
MAX_OPTIONS = 100


def get_poll(poll_id, lock: bool = False) -> Poll:
    """
    Fetch a poll or raise PollNotFoundError.

    Args:
        poll_id: Poll id (UUID or its string form)
        lock: Take a row lock; only valid inside transaction.atomic()
    """
    queryset = Poll.objects.select_for_update() if lock else Poll.objects.all()
    try:
        return queryset.get(id=poll_id)
    except (Poll.DoesNotExist, ValidationError, ValueError, TypeError):
        # Malformed UUIDs are reported as missing polls
        raise PollNotFoundError(f"Poll {poll_id} not found")


def _clean_text(value, field_name: str, max_length: int) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(f"{field_name} is required")
    value = value.strip()
    if len(value) > max_length:
        raise InvalidInputError(f"{field_name} cannot be longer than {max_length} characters")
    return value


def create_poll(
    question: str,
    option_texts: Iterable[str],
    poll_type: str = Poll.SINGLE,
    owner_account=None,
    owner_token: str = "",
    requires_account: bool = False,
) -> Poll:
    """
    Create a poll with its initial options.

    Args:
        question: Poll question
        option_texts: At least two non-blank option texts
        poll_type: "single" or "multiple"
        owner_account: Creating user, if signed in
        owner_token: Creator's anonymous voter token
        requires_account: Only signed-in accounts may vote

    Returns:
        Poll

    Raises:
        InvalidInputError: Blank question, unknown type, or fewer than 2 options
    """
    question = _clean_text(question, "Question", Poll._meta.get_field("question").max_length)

    if poll_type not in (Poll.SINGLE, Poll.MULTIPLE):
        raise InvalidInputError(f"Unknown poll type {poll_type!r}; expected 'single' or 'multiple'")

    texts = [text.strip() for text in (option_texts or []) if isinstance(text, str) and text.strip()]
    if len(texts) < MIN_OPTIONS:
        raise InvalidInputError(f"Question and at least {MIN_OPTIONS} options are required")
    if len(texts) > MAX_OPTIONS:
        raise InvalidInputError(f"A poll cannot have more than {MAX_OPTIONS} options")
    option_max_length = PollOption._meta.get_field("text").max_length
    for text in texts:
        if len(text) > option_max_length:
            raise InvalidInputError(f"Option text cannot be longer than {option_max_length} characters")

    try:
        with transaction.atomic():
            poll = Poll.objects.create(
                question=question,
                poll_type=poll_type,
                owner_account=owner_account,
                owner_token=owner_token or "",
                requires_account=requires_account,
            )
            PollOption.objects.bulk_create([PollOption(poll=poll, text=text) for text in texts])
    except DatabaseError as e:
        logger.error(f"Error creating poll: {e}")
        raise StorageFailureError() from e

    logger.info(f"Poll created: poll_id={poll.id}, type={poll_type}, options={len(texts)}")
    return poll


def check_poll_owner(poll: Poll, requester: IdentityContext, policy: Optional[VoterPolicy] = None):
    """
    Raise ForbiddenError unless the requester owns the poll.

    Polls created without any owner stay open to everyone. Ownership is not
    checked at all when the active policy does not enforce it.
    """
    policy = policy or get_active_policy()
    if not policy.enforce_ownership or not poll.has_owner:
        return
    if not poll.is_owned_by(account_id=requester.account_id, voter_token=requester.voter_token):
        raise ForbiddenError()


def update_question(poll_id, question: str, requester: IdentityContext, policy: Optional[VoterPolicy] = None) -> Poll:
    """Edit the question text of a poll (owner only)."""
    question = _clean_text(question, "Question", Poll._meta.get_field("question").max_length)

    with transaction.atomic():
        poll = get_poll(poll_id, lock=True)
        check_poll_owner(poll, requester, policy)
        poll.question = question
        poll.save(update_fields=["question", "updated_at"])

    logger.info(f"Poll {poll.id} question updated")
    return poll


def add_option(poll_id, text: str, requester: IdentityContext, policy: Optional[VoterPolicy] = None) -> PollOption:
    """
    Add an option to an existing poll (owner only) and notify viewers.

    Raises:
        PollNotFoundError, ForbiddenError, InvalidInputError
    """
    text = _clean_text(text, "Option text", PollOption._meta.get_field("text").max_length)

    with transaction.atomic():
        poll = get_poll(poll_id, lock=True)
        check_poll_owner(poll, requester, policy)
        if PollOption.active.filter(poll=poll).count() >= MAX_OPTIONS:
            raise InvalidInputError(f"A poll cannot have more than {MAX_OPTIONS} options")
        option = PollOption.objects.create(poll=poll, text=text)
        bump_results_version(poll.id)
        transaction.on_commit(lambda: publish_options_changed(poll.id))

    logger.info(f"Option {option.id} added to poll {poll.id}")
    return option


def remove_option(poll_id, option_id, requester: IdentityContext, policy: Optional[VoterPolicy] = None) -> PollOption:
    """
    Soft-delete an option (owner only) and notify viewers.

    Historical votes keep pointing at the option row; it simply stops being
    shown or accepting new votes.

    Raises:
        PollNotFoundError, OptionNotFoundError, ForbiddenError
    """
    with transaction.atomic():
        poll = get_poll(poll_id, lock=True)
        check_poll_owner(poll, requester, policy)
        try:
            option = PollOption.active.get(id=option_id, poll=poll)
        except (PollOption.DoesNotExist, ValueError, TypeError):
            raise OptionNotFoundError(f"Option {option_id} not found in poll {poll.id}")
        option.is_deleted = True
        option.save(update_fields=["is_deleted"])
        bump_results_version(poll.id)
        transaction.on_commit(lambda: publish_options_changed(poll.id))

    logger.info(f"Option {option.id} removed from poll {poll.id}")
    return option


def serialize_options(poll_id) -> List[Dict]:
    """Active options of a poll in display order, as plain dictionaries."""
    return list(
        PollOption.active.filter(poll_id=poll_id)
        .order_by("id")
        .values("id", "text", "vote_count")
    )


def calculate_poll_stats(poll_id, policy: Optional[VoterPolicy] = None) -> Dict:
    """
    Derive poll statistics from the vote ledger.

    Returns:
        dict: {"unique_voters": int, "total_votes": int[, "unique_devices": int]}
    """
    from apps.votes.models import Vote

    policy = policy or get_active_policy()
    aggregates = {
        "total_votes": Count("id"),
        "unique_voters": Count("voter_key", distinct=True),
    }
    if policy.track_devices:
        aggregates["unique_devices"] = Count("fingerprint", distinct=True, filter=~Q(fingerprint=""))

    stats = Vote.objects.filter(poll_id=poll_id).aggregate(**aggregates)
    return {key: stats[key] or 0 for key in aggregates}


def get_results_cache_key(poll_id, version: int) -> str:
    """Generate cache key for one results version of a poll."""
    return f"poll_results:{poll_id}:v{version}"


def bump_results_version(poll_id):
    """
    Mark every cached result of a poll as outdated.

    Must run inside the transaction that changes votes or options, so the new
    version becomes visible together with the change.
    """
    Poll.objects.filter(id=poll_id).update(results_version=F("results_version") + 1)


def calculate_poll_results(poll_id, version: Optional[int] = None) -> Dict:
    """
    Options and statistics of a poll, independent of who is viewing.

    Args:
        poll_id: Poll ID
        version: Results version read together with the poll; cached results
            are only used and stored for this version (default: no caching)

    Returns:
        dict: {"options": [...], "stats": {...}}
    """
    cache_key = get_results_cache_key(poll_id, version) if version is not None else None

    if cache_key:
        cached_results = cache.get(cache_key)
        if cached_results:
            logger.debug(f"Returning cached results for poll {poll_id} (version {version})")
            return cached_results

    results = {
        "options": serialize_options(poll_id),
        "stats": calculate_poll_stats(poll_id),
    }

    if cache_key:
        try:
            cache.set(cache_key, results, RESULTS_CACHE_TTL)
        except Exception as e:
            logger.error(f"Error caching results for poll {poll_id}: {e}")

    return results


def serialize_poll(poll: Poll) -> Dict:
    return {
        "id": str(poll.id),
        "question": poll.question,
        "poll_type": poll.poll_type,
        "allow_multiple": poll.allow_multiple,
        "requires_account": poll.requires_account,
        "created_at": poll.created_at.isoformat(),
    }


def get_voted_option_ids(poll_id, voter_key: Optional[str]) -> List[int]:
    """Option ids of the live votes held by a voter key."""
    from apps.votes.models import Vote

    if not voter_key:
        return []
    return sorted(
        Vote.objects.filter(poll_id=poll_id, voter_key=voter_key).values_list("option_id", flat=True)
    )


def get_snapshot(poll_id, viewer_voter_key: Optional[str] = None) -> Dict:
    """
    Read-only view of a poll for one viewer.

    Args:
        poll_id: Poll ID
        viewer_voter_key: Voter key of the viewer, if one could be resolved

    Returns:
        dict: {poll, options, has_voted, voted_option_ids, stats}

    Raises:
        PollNotFoundError
    """
    poll = get_poll(poll_id)
    results = calculate_poll_results(poll.id, version=poll.results_version)
    voted_option_ids = get_voted_option_ids(poll.id, viewer_voter_key)

    return {
        "poll": serialize_poll(poll),
        "options": results["options"],
        "has_voted": bool(voted_option_ids),
        "voted_option_ids": voted_option_ids,
        "stats": results["stats"],
    }


def get_poll_group_name(poll_id) -> str:
    """Generate channel group name for a poll."""
    return f"poll_{poll_id}"


def _group_send(poll_id, message: Dict):
    from asgiref.sync import async_to_sync
    from channels.layers import get_channel_layer

    channel_layer = get_channel_layer()
    if not channel_layer:
        logger.warning("Channel layer not configured, skipping broadcast")
        return

    group_name = get_poll_group_name(poll_id)
    async_to_sync(channel_layer.group_send)(group_name, message)
    logger.debug(f"Broadcast {message['type']} for poll {poll_id} to group {group_name}")


def publish_results_changed(poll_id):
    """
    Tell every subscriber of a poll that its results changed.

    Must only run after the vote transaction committed. Delivery is best
    effort: failures are logged and never raised.
    """
    try:
        results = calculate_poll_results(poll_id)
        _group_send(
            poll_id,
            {
                "type": "vote.update",
                "poll_id": str(poll_id),
                "options": results["options"],
                "stats": results["stats"],
            },
        )
    except Exception as e:
        logger.error(f"Error broadcasting results update for poll {poll_id}: {e}")


def publish_options_changed(poll_id):
    """Tell every subscriber of a poll that its option set changed."""
    try:
        _group_send(
            poll_id,
            {
                "type": "options.update",
                "poll_id": str(poll_id),
                "options": serialize_options(poll_id),
            },
        )
    except Exception as e:
        logger.error(f"Error broadcasting options update for poll {poll_id}: {e}")


def reconcile_vote_counts(poll_id=None) -> Dict[int, Dict[str, int]]:
    """
    Rebuild cached option vote counts from the vote ledger.

    Args:
        poll_id: Only reconcile this poll (default: every poll)

    Returns:
        dict: {option_id: {"cached": old_count, "ledger": actual_count}} for
        every option whose cached count was wrong and has been corrected
    """
    poll_ids = [get_poll(poll_id).id] if poll_id is not None else list(Poll.objects.values_list("id", flat=True))
    corrections = {}

    for current_poll_id in poll_ids:
        poll_corrections = {}
        with transaction.atomic():
            # Same lock as vote changes so counts cannot move underneath us
            get_poll(current_poll_id, lock=True)
            options = PollOption.objects.filter(poll_id=current_poll_id).annotate(actual_count=Count("votes"))
            for option in options:
                if option.vote_count != option.actual_count:
                    poll_corrections[option.id] = {"cached": option.vote_count, "ledger": option.actual_count}
                    PollOption.objects.filter(id=option.id).update(vote_count=option.actual_count)
            if poll_corrections:
                bump_results_version(current_poll_id)

        if poll_corrections:
            logger.warning(f"Reconciled {len(poll_corrections)} option count(s) for poll {current_poll_id}")
            corrections.update(poll_corrections)

    return corrections
