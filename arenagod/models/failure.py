"""
Failure taxonomy for sync and API operations.

Every failure the tracker can surface is classified here. No failure is
fatal to the process: callers either skip the failed item (transient
upstream errors), end the current sync with a user-visible message
(identity lookup), or log and continue (storage writes).

Classification:
- NOT_FOUND: identity lookup found no such player
- RATE_LIMITED: upstream kept answering 429 after all retries
- EXTERNAL_API_ERROR: network, non-success status, or malformed payload
- STORAGE_FAILED: local persistence read or write failed
- SYNC_IN_PROGRESS: a sync is already running against the store
- INVALID_INPUT: request parameters could not be interpreted
"""

from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input validation failures
    INVALID_INPUT = "invalid_input"

    # Resource failures
    NOT_FOUND = "not_found"

    # Upstream failures
    RATE_LIMITED = "rate_limited"
    EXTERNAL_API_ERROR = "external_api_error"

    # Local failures
    STORAGE_FAILED = "storage_failed"
    SYNC_IN_PROGRESS = "sync_in_progress"


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )
    suggestion: str | None = Field(
        default=None,
        description="Suggested action for the user",
    )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code
        super().__init__(message)

    def to_detail(self) -> FailureDetail:
        """Convert to a FailureDetail for API responses."""
        return FailureDetail(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
        )


class PlayerNotFoundError(KnownError):
    """Raised when the upstream service has no player with the given Riot ID."""

    def __init__(self, game_name: str, tag_line: str):
        self.game_name = game_name
        self.tag_line = tag_line
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"Player {game_name}#{tag_line} was not found.",
            suggestion="Check the game name, tag line and region.",
            status_code=404,
        )


class TransientApiError(KnownError):
    """
    A single upstream request failed.

    Covers network errors, non-success statuses and payloads that fail
    validation. Callers skip the affected item and continue.
    """

    def __init__(
        self,
        message: str,
        detail: str | None = None,
        status: int | None = None,
    ):
        self.upstream_status = status
        super().__init__(
            kind=FailureKind.EXTERNAL_API_ERROR,
            message=message,
            detail=detail,
            suggestion="Try updating again in a few minutes.",
            status_code=502,
        )


class RateLimitedError(TransientApiError):
    """Raised when the upstream still answers 429 after every retry attempt."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            message="The match-data service is rate limiting requests.",
            detail=f"Still rate limited after {attempts} attempts",
            status=429,
        )
        self.kind = FailureKind.RATE_LIMITED
        self.status_code = 429


class StorageError(KnownError):
    """Raised when a write to the local persistence store fails."""

    def __init__(self, key: str, detail: str | None = None):
        self.key = key
        super().__init__(
            kind=FailureKind.STORAGE_FAILED,
            message="Could not save tracker data locally.",
            detail=detail or f"Write failed for {key}",
            status_code=503,
        )


class SyncInProgressError(KnownError):
    """Raised when an update is requested while another one is running."""

    def __init__(self) -> None:
        super().__init__(
            kind=FailureKind.SYNC_IN_PROGRESS,
            message="An update is already in progress.",
            suggestion="Wait for the current update to finish.",
            status_code=409,
        )


class InvalidRegionError(KnownError):
    """Raised for a region string outside the supported set."""

    def __init__(self, region: str):
        self.region = region
        super().__init__(
            kind=FailureKind.INVALID_INPUT,
            message=f"Unknown region: {region}",
            status_code=400,
        )


class StorageReadError(StorageError):
    """Raised when the local persistence store cannot be queried."""

    def __init__(self, key: str, detail: str | None = None):
        super().__init__(key, detail=detail or f"Read failed for {key}")
        self.message = "Could not load tracker data locally."
        self.suggestion = "Try again; nothing was changed."
