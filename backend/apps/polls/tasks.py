"""
Celery tasks for polls app.
"""

import logging
from typing import Optional

from celery import shared_task

from .services import publish_results_changed, reconcile_vote_counts

logger = logging.getLogger(__name__)


@shared_task
def reconcile_vote_counts_task(poll_id: Optional[str] = None):
    """
    Periodic repair of cached option vote counts.

    Cached counts can only drift after a storage-level failure (for example a
    manual ledger edit); every corrected poll gets a fresh results broadcast.

    Args:
        poll_id: Only reconcile this poll (default: every poll)

    Returns:
        dict: {"corrected_options": n, "polls": [poll ids]}
    """
    corrections = reconcile_vote_counts(poll_id)
    if not corrections:
        return {"corrected_options": 0, "polls": []}

    from apps.polls.models import PollOption

    poll_ids = sorted(
        {str(pid) for pid in PollOption.objects.filter(id__in=corrections).values_list("poll_id", flat=True)}
    )
    for corrected_poll_id in poll_ids:
        publish_results_changed(corrected_poll_id)

    logger.warning(f"Reconciled {len(corrections)} option count(s) across {len(poll_ids)} poll(s)")
    return {"corrected_options": len(corrections), "polls": poll_ids}
