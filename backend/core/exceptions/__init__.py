from .voting_errors import (  # noqa: F401
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

__all__ = [
    "VotingError",
    "InvalidInputError",
    "InvalidVoteError",
    "PollNotFoundError",
    "OptionNotFoundError",
    "ForbiddenError",
    "AuthenticationRequiredError",
    "AlreadyVotedError",
    "RateLimitedError",
    "MissingFingerprintError",
    "StorageFailureError",
]
