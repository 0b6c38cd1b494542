"""
Anonymous voter token middleware.
"""

import logging
import re

from django.conf import settings

from core.utils.identity import generate_voter_token

logger = logging.getLogger(__name__)

VOTER_TOKEN_PATTERN = re.compile(r"^[A-Za-z0-9_-]{8,64}$")


class VoterCookieMiddleware:
    """
    Give every browser a persistent anonymous voter token.

    The token is read from the ``voter_id`` cookie (name configurable via
    ``VOTER_COOKIE_NAME``) and exposed as ``request.voter_token``. First-time
    visitors, or visitors with a malformed cookie, get a fresh token that is
    set on the response.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        cookie_name = settings.VOTER_COOKIE_NAME
        token = request.COOKIES.get(cookie_name, "")
        is_new = not VOTER_TOKEN_PATTERN.match(token)
        if is_new:
            token = generate_voter_token()
        request.voter_token = token

        response = self.get_response(request)

        if is_new:
            response.set_cookie(
                cookie_name,
                token,
                max_age=settings.VOTER_COOKIE_MAX_AGE,
                httponly=True,
                samesite="Lax",
                secure=getattr(settings, "VOTER_COOKIE_SECURE", False),
            )
            logger.debug(f"Issued voter token cookie for {request.path}")
        return response
