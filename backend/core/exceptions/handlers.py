"""
Custom exception handlers for Django REST Framework.
Provides consistent error formatting and proper HTTP status codes.
"""

import logging
import traceback

from django.http import JsonResponse
from rest_framework.exceptions import ValidationError
from rest_framework.views import exception_handler

from core.exceptions import InvalidInputError, StorageFailureError, VotingError

logger = logging.getLogger(__name__)


def custom_exception_handler(exc, context):
    """
    Custom exception handler for DRF that provides consistent error formatting.

    Args:
        exc: The exception that was raised
        context: Dictionary containing context information about the exception

    Returns:
        Response object with formatted error, or None to use default handler
    """
    # Storage faults never leak internal detail
    if isinstance(exc, StorageFailureError):
        logger.error(f"Storage failure: {exc.__cause__ or exc}")
        return JsonResponse(
            {
                "error": StorageFailureError.default_message,
                "error_code": "StorageFailure",
                "status_code": exc.status_code,
            },
            status=exc.status_code,
        )

    if isinstance(exc, VotingError):
        return JsonResponse(
            {
                "error": exc.message,
                "error_code": exc.__class__.__name__,
                "status_code": exc.status_code,
            },
            status=exc.status_code,
        )

    # Call REST framework's default exception handler
    response = exception_handler(exc, context)

    # If response is None, it's an unhandled exception (500 error)
    if response is None:
        logger.error(
            f"Unhandled exception: {exc.__class__.__name__}: {str(exc)}\n"
            f"Traceback:\n{traceback.format_exc()}"
        )

        return JsonResponse(
            {
                "error": "An internal server error occurred",
                "error_code": "InternalServerError",
                "status_code": 500,
            },
            status=500,
        )

    # Malformed payloads share the domain code for invalid input
    if isinstance(exc, ValidationError):
        error_code = InvalidInputError.__name__
    else:
        error_code = exc.__class__.__name__

    custom_response_data = {
        "error": str(exc),
        "error_code": error_code,
        "status_code": response.status_code,
    }

    # Add detail if it's a DRF ValidationError
    if hasattr(exc, "detail"):
        if isinstance(exc.detail, dict):
            custom_response_data["errors"] = exc.detail
        elif isinstance(exc.detail, list):
            custom_response_data["errors"] = {"detail": exc.detail}
        else:
            custom_response_data["error"] = str(exc.detail)

    response.data = custom_response_data

    return response
