"""
Request logging middleware for Livepoll.
"""

import logging

from core.utils.identity import extract_ip_address

logger = logging.getLogger("livepoll.audit")


class AuditLogMiddleware:
    """
    Log one line per API request: method, path, client IP and status.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)

        if request.path.startswith("/api/"):
            user = getattr(request, "user", None)
            logger.info(
                f"{request.method} {request.path} -> {response.status_code} "
                f"ip={extract_ip_address(request)} "
                f"account={user.pk if user is not None and user.is_authenticated else '-'}"
            )
        return response
