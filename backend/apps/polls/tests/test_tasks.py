"""
Tests for the reconciliation Celery task and management command.
"""

from io import StringIO
from unittest.mock import patch

import pytest
from apps.polls.models import PollOption
from apps.polls.tasks import reconcile_vote_counts_task
from apps.votes.services import cast_or_change_vote
from conftest import make_identity
from django.core.management import call_command


@pytest.mark.django_db
class TestReconcileTask:
    def test_no_drift(self, poll, options):
        assert reconcile_vote_counts_task() == {"corrected_options": 0, "polls": []}

    def test_repairs_and_rebroadcasts(self, poll, options, cookie_policy):
        cast_or_change_vote(poll.id, [options[0].id], make_identity(), cookie_policy)
        PollOption.objects.filter(id=options[0].id).update(vote_count=5)

        with patch("apps.polls.tasks.publish_results_changed") as mock_publish:
            result = reconcile_vote_counts_task(str(poll.id))

        assert result == {"corrected_options": 1, "polls": [str(poll.id)]}
        mock_publish.assert_called_once_with(str(poll.id))
        options[0].refresh_from_db()
        assert options[0].vote_count == 1


@pytest.mark.django_db
class TestReconcileCommand:
    def test_reports_clean_ledger(self, poll, options):
        out = StringIO()
        call_command("reconcile_vote_counts", stdout=out)
        assert "All vote counts match the ledger" in out.getvalue()

    def test_reports_corrections(self, poll, options):
        PollOption.objects.filter(id=options[1].id).update(vote_count=2)
        out = StringIO()

        call_command("reconcile_vote_counts", "--poll", str(poll.id), stdout=out)

        assert f"Option {options[1].id}: 2 -> 0" in out.getvalue()
        assert "Corrected 1 option count(s)" in out.getvalue()
