"""
Views for Votes app.
"""

from core.utils.identity import IdentityContext
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import VoteSubmitSerializer
from .services import cast_or_change_vote


class VoteView(APIView):
    """
    Cast or change a vote.

    POST /api/v1/polls/{poll_id}/vote/

    Request Body:
    {
        "option_id": 2,                  (single-choice polls)
        "option_ids": [2, 3],            (multiple-choice polls)
        "device_fingerprint": "optional"
    }

    Returns:
    - 200 OK: {success, options, stats, voted_option_ids, message}
    - 400 Bad Request: Invalid options or missing fingerprint
    - 401 Unauthorized: Poll requires a signed-in account
    - 403 Forbidden: Already voted or rate limited
    - 404 Not Found: Poll not found
    """

    permission_classes = [AllowAny]
    serializer_class = VoteSubmitSerializer

    def post(self, request, poll_id=None):
        serializer = self.serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)

        identity = IdentityContext.from_request(
            request, fingerprint=serializer.validated_data.get("device_fingerprint")
        )
        result = cast_or_change_vote(poll_id, serializer.validated_data["option_ids"], identity)

        return Response(
            {
                "success": True,
                "options": result.options,
                "stats": result.stats,
                "voted_option_ids": result.voted_option_ids,
                "message": result.message,
            },
            status=status.HTTP_200_OK,
        )
