"""
Voter identity extraction.

Every request's identity signals are gathered once into an ``IdentityContext``
value that is passed explicitly to the eligibility resolver and the vote
engine. Nothing downstream reads cookies, sessions or headers directly.
"""

import ipaddress
import logging
import secrets
from dataclasses import dataclass
from typing import Optional

from django.conf import settings

logger = logging.getLogger(__name__)

VOTER_TOKEN_BYTES = 16


@dataclass(frozen=True)
class IdentityContext:
    """Identity signals available for one request."""

    voter_token: str = ""
    fingerprint: str = ""
    account_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: str = ""

    @property
    def has_account(self) -> bool:
        return self.account_id is not None

    @classmethod
    def from_request(cls, request, fingerprint: Optional[str] = None) -> "IdentityContext":
        """
        Build the identity context for a Django/DRF request.

        Args:
            request: Request object (the voter token is set by VoterCookieMiddleware)
            fingerprint: Device fingerprint sent in the request body, if any

        Returns:
            IdentityContext
        """
        user = getattr(request, "user", None)
        account_id = str(user.pk) if user is not None and user.is_authenticated else None

        return cls(
            voter_token=get_request_voter_token(request),
            fingerprint=normalize_fingerprint(fingerprint),
            account_id=account_id,
            ip_address=extract_ip_address(request),
            user_agent=request.META.get("HTTP_USER_AGENT", "")[:1000],
        )


def generate_voter_token() -> str:
    """Generate a new opaque anonymous voter token."""
    return secrets.token_hex(VOTER_TOKEN_BYTES)


def get_request_voter_token(request) -> str:
    """Return the voter token attached by the cookie middleware, or the raw cookie."""
    token = getattr(request, "voter_token", None)
    if token:
        return token
    return request.COOKIES.get(settings.VOTER_COOKIE_NAME, "")


def normalize_fingerprint(fingerprint: Optional[str]) -> str:
    """Strip surrounding whitespace; missing fingerprints become an empty string."""
    if not fingerprint:
        return ""
    return str(fingerprint).strip()


def extract_ip_address(request) -> Optional[str]:
    """
    Get client IP address from request.

    Uses the first X-Forwarded-For entry, then X-Real-IP, then REMOTE_ADDR.
    Values that are not valid IP addresses are dropped.
    """
    x_forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
    if x_forwarded_for:
        candidate = x_forwarded_for.split(",")[0].strip()
    else:
        candidate = request.META.get("HTTP_X_REAL_IP") or request.META.get("REMOTE_ADDR")

    if not candidate:
        return None

    try:
        return str(ipaddress.ip_address(candidate))
    except ValueError:
        logger.warning(f"Ignoring malformed client IP address: {candidate!r}")
        return None
