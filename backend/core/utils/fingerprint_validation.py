"""
Fingerprint validation utilities.

Fingerprints are opaque client-computed tokens; the server only checks that
they are present when required and plausible in shape.
"""

import logging
import string
from typing import Optional

logger = logging.getLogger(__name__)

MAX_FINGERPRINT_LENGTH = 256
ALLOWED_FINGERPRINT_CHARS = frozenset(string.ascii_letters + string.digits + "-_.:+/=")


def validate_fingerprint_format(fingerprint: str) -> tuple[bool, Optional[str]]:
    """
    Validate fingerprint format.

    Args:
        fingerprint: Device fingerprint token to validate

    Returns:
        tuple: (is_valid: bool, error_message: Optional[str])
    """
    if not fingerprint:
        return False, "Fingerprint is required"

    if len(fingerprint) > MAX_FINGERPRINT_LENGTH:
        return False, (
            f"Invalid fingerprint format: at most {MAX_FINGERPRINT_LENGTH} characters, got {len(fingerprint)}"
        )

    if not set(fingerprint) <= ALLOWED_FINGERPRINT_CHARS:
        return False, "Invalid fingerprint format: unexpected characters"

    return True, None


def require_fingerprint(required: bool, fingerprint: Optional[str]) -> tuple[bool, Optional[str]]:
    """
    Check the fingerprint against a policy requirement.

    Args:
        required: Whether the active policy mandates a fingerprint
        fingerprint: Device fingerprint token (may be empty)

    Returns:
        tuple: (is_present: bool, error_message: Optional[str])
    """
    if not required:
        return True, None

    if not fingerprint:
        return False, "Device fingerprint required"

    return True, None
