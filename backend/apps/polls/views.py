"""
Views for Polls app.

Domain errors raised by the services propagate to the project exception
handler, which renders them as ``{error, error_code, status_code}``.
"""

from apps.votes.eligibility import VoterEligibilityResolver
from core.utils.identity import IdentityContext
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from .serializers import OptionCreateSerializer, PollCreateSerializer, PollOptionSerializer, PollUpdateSerializer
from .services import (
    add_option,
    create_poll,
    get_snapshot,
    remove_option,
    serialize_options,
    update_question,
)


def _viewer_voter_key(request):
    """Voter key of the viewer, or None when it cannot be resolved yet."""
    identity = IdentityContext.from_request(request, fingerprint=request.query_params.get("fingerprint"))
    return VoterEligibilityResolver().peek_voter_key(identity)


class PollViewSet(viewsets.GenericViewSet):
    """
    ViewSet for polls and their options.

    Endpoints:
    - POST /api/v1/polls/ - Create poll
    - GET /api/v1/polls/{id}/ - Poll snapshot for the current viewer
    - PATCH /api/v1/polls/{id}/ - Edit question (owner only)
    - POST /api/v1/polls/{id}/options/ - Add option (owner only)
    - DELETE /api/v1/polls/{id}/options/{option_id}/ - Remove option (owner only)
    """

    permission_classes = [AllowAny]
    serializer_class = PollCreateSerializer

    def get_serializer_class(self):
        if self.action == "partial_update":
            return PollUpdateSerializer
        if self.action == "create_option":
            return OptionCreateSerializer
        return PollCreateSerializer

    def create(self, request, *args, **kwargs):
        """
        Create a poll.

        Request Body:
        {
            "question": "Lunch?",
            "options": ["Pizza", "Sushi"],
            "poll_type": "single"
        }

        Returns:
        - 201 Created: {success, poll_id, share_url}
        - 400 Bad Request: Blank question or fewer than 2 options
        """
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        identity = IdentityContext.from_request(request)
        poll = create_poll(
            question=serializer.validated_data["question"],
            option_texts=serializer.validated_data["options"],
            poll_type=serializer.validated_data["poll_type"],
            owner_account=request.user if request.user.is_authenticated else None,
            owner_token=identity.voter_token,
            requires_account=serializer.validated_data["requires_account"],
        )

        return Response(
            {
                "success": True,
                "poll_id": str(poll.id),
                "share_url": request.build_absolute_uri(f"/poll/{poll.id}"),
            },
            status=status.HTTP_201_CREATED,
        )

    def retrieve(self, request, pk=None):
        """
        Get the poll snapshot for the current viewer.

        An optional ``fingerprint`` query parameter lets fingerprint-keyed
        policies report whether this device has voted.
        """
        return Response(get_snapshot(pk, viewer_voter_key=_viewer_voter_key(request)))

    def partial_update(self, request, pk=None):
        """Edit the poll question. Returns the refreshed snapshot."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        poll = update_question(pk, serializer.validated_data["question"], IdentityContext.from_request(request))
        return Response(get_snapshot(poll.id, viewer_voter_key=_viewer_voter_key(request)))

    @action(detail=True, methods=["post"], url_path="options")
    def create_option(self, request, pk=None):
        """
        Add an option to a poll.

        Returns:
        - 201 Created: {success, option, options}
        - 400 Bad Request: Blank option text
        - 403 Forbidden: Requester does not own the poll
        - 404 Not Found: Poll not found
        """
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        option = add_option(pk, serializer.validated_data["text"], IdentityContext.from_request(request))
        return Response(
            {
                "success": True,
                "option": PollOptionSerializer(option).data,
                "options": serialize_options(option.poll_id),
            },
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=["delete"], url_path="options/(?P<option_id>[^/.]+)")
    def delete_option(self, request, pk=None, option_id=None):
        """
        Remove an option from a poll.

        Existing votes for the option stay in the ledger; the option is no
        longer listed or votable.
        """
        option = remove_option(pk, option_id, IdentityContext.from_request(request))
        return Response({"success": True, "options": serialize_options(option.poll_id)})
