"""
Tests for domain exceptions and the DRF exception handler.
"""

import json
import logging

import pytest
from core.exceptions import (
    AlreadyVotedError,
    AuthenticationRequiredError,
    ForbiddenError,
    InvalidInputError,
    InvalidVoteError,
    MissingFingerprintError,
    OptionNotFoundError,
    PollNotFoundError,
    RateLimitedError,
    StorageFailureError,
    VotingError,
)
from core.exceptions.handlers import custom_exception_handler
from django.test import RequestFactory


@pytest.fixture
def handler_context():
    request = RequestFactory().post("/api/v1/polls/")
    return {"request": request, "view": None}


@pytest.mark.unit
class TestCustomExceptions:
    """Test custom exception classes."""

    def test_voting_error_defaults(self):
        error = VotingError()
        assert error.message == "A voting error occurred"
        assert error.status_code == 400
        assert str(error) == "A voting error occurred"

    def test_voting_error_custom_message_and_status(self):
        error = VotingError("Error", status_code=422)
        assert error.message == "Error"
        assert error.status_code == 422

    @pytest.mark.parametrize(
        "exc_class, status_code",
        [
            (InvalidInputError, 400),
            (InvalidVoteError, 400),
            (MissingFingerprintError, 400),
            (AuthenticationRequiredError, 401),
            (ForbiddenError, 403),
            (AlreadyVotedError, 403),
            (RateLimitedError, 403),
            (PollNotFoundError, 404),
            (OptionNotFoundError, 404),
            (StorageFailureError, 500),
        ],
    )
    def test_default_status_codes(self, exc_class, status_code):
        assert exc_class().status_code == status_code
        assert issubclass(exc_class, VotingError)

    def test_invalid_vote_is_invalid_input(self):
        """Callers catching InvalidInputError also catch bad vote payloads."""
        with pytest.raises(InvalidInputError):
            raise InvalidVoteError("Option 9 cannot be voted for")

    def test_missing_fingerprint_message(self):
        assert MissingFingerprintError().message == "Device fingerprint required"


@pytest.mark.unit
class TestExceptionHandler:
    """Test custom exception handler."""

    def test_handler_formats_domain_error(self, handler_context):
        response = custom_exception_handler(AlreadyVotedError("This device has already voted"), handler_context)

        assert response.status_code == 403
        data = json.loads(response.content)
        assert data == {
            "error": "This device has already voted",
            "error_code": "AlreadyVotedError",
            "status_code": 403,
        }

    def test_handler_uses_exception_status(self, handler_context):
        for exc, expected_status in [
            (PollNotFoundError(), 404),
            (AuthenticationRequiredError(), 401),
            (RateLimitedError(), 403),
            (InvalidVoteError(), 400),
        ]:
            response = custom_exception_handler(exc, handler_context)
            assert response.status_code == expected_status

    def test_storage_failure_is_opaque(self, handler_context, caplog):
        try:
            try:
                raise RuntimeError("deadlock detected on relation polls_polloption")
            except RuntimeError as e:
                raise StorageFailureError() from e
        except StorageFailureError as exc:
            with caplog.at_level(logging.ERROR):
                response = custom_exception_handler(exc, handler_context)

        assert response.status_code == 500
        data = json.loads(response.content)
        assert data["error"] == "An internal server error occurred"
        assert data["error_code"] == "StorageFailure"
        assert "deadlock" not in response.content.decode()
        assert "deadlock" in caplog.text

    def test_handler_handles_unexpected_errors(self, handler_context, caplog):
        with caplog.at_level(logging.ERROR):
            response = custom_exception_handler(RuntimeError("Unexpected error"), handler_context)

        assert response.status_code == 500
        data = json.loads(response.content)
        assert data["error_code"] == "InternalServerError"
        assert "Unhandled exception" in caplog.text
        assert "RuntimeError" in caplog.text

    def test_handler_maps_drf_validation_error_to_invalid_input(self, handler_context):
        from rest_framework.exceptions import ValidationError

        response = custom_exception_handler(ValidationError({"question": ["This field is required."]}), handler_context)

        assert response.status_code == 400
        assert response.data["error_code"] == "InvalidInputError"
        assert "question" in response.data["errors"]

    def test_handler_keeps_other_drf_error_names(self, handler_context):
        from rest_framework.exceptions import MethodNotAllowed

        response = custom_exception_handler(MethodNotAllowed("PUT"), handler_context)

        assert response.status_code == 405
        assert response.data["error_code"] == "MethodNotAllowed"


@pytest.mark.django_db
class TestExceptionHandlerIntegration:
    """Domain errors raised inside views reach clients in the common format."""

    def test_unknown_poll_returns_404(self, api_client):
        response = api_client.get("/api/v1/polls/00000000-0000-0000-0000-000000000000/")

        assert response.status_code == 404
        data = response.json()
        assert data["error_code"] == "PollNotFoundError"
        assert data["status_code"] == 404

    def test_malformed_poll_id_returns_404(self, api_client):
        response = api_client.get("/api/v1/polls/not-a-uuid/")

        assert response.status_code == 404
        assert response.json()["error_code"] == "PollNotFoundError"
