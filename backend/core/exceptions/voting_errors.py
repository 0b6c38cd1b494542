"""
Custom exceptions for polling and voting functionality.
"""


class VotingError(Exception):
    """
    Base exception for poll and vote errors.

    All custom domain exceptions inherit from this. Each carries a
    caller-visible message and the HTTP status used at the API boundary.
    """

    default_status_code = 400
    default_message = "A voting error occurred"

    def __init__(self, message=None, status_code=None):
        """
        Initialize exception.

        Args:
            message: Error message (defaults to default_message)
            status_code: HTTP status code (defaults to default_status_code)
        """
        self.message = message or self.default_message
        self.status_code = status_code or self.default_status_code
        super().__init__(self.message)


class InvalidInputError(VotingError):
    """Raised when a poll creation or option payload is malformed."""

    default_status_code = 400
    default_message = "Invalid input"


class InvalidVoteError(InvalidInputError):
    """Raised when a vote payload names options that cannot be voted for."""

    default_message = "Invalid vote"


class PollNotFoundError(VotingError):
    """Raised when a poll is not found."""

    default_status_code = 404
    default_message = "Poll not found"


class OptionNotFoundError(VotingError):
    """Raised when an option is not found in a poll."""

    default_status_code = 404
    default_message = "Option not found"


class ForbiddenError(VotingError):
    """Raised when someone other than the poll owner mutates its options."""

    default_status_code = 403
    default_message = "Only the poll owner can modify this poll"


class AuthenticationRequiredError(VotingError):
    """Raised when the poll or the identity policy needs an account."""

    default_status_code = 401
    default_message = "Authentication required"


class AlreadyVotedError(VotingError):
    """Raised when an identity key has already voted on the poll."""

    default_status_code = 403
    default_message = (
        'You have already voted in this poll. Click "Change My Vote" to update your vote.'
    )


class RateLimitedError(VotingError):
    """Raised when too many vote actions came from one network."""

    default_status_code = 403
    default_message = "Too many vote actions from your network. Please try again later"


class MissingFingerprintError(VotingError):
    """Raised when the policy requires a device fingerprint the client omitted."""

    default_status_code = 400
    default_message = "Device fingerprint required"


class StorageFailureError(VotingError):
    """Raised when a transactional storage fault aborts an operation."""

    default_status_code = 500
    default_message = "An internal server error occurred"
