"""
Exception hierarchy for issuekeeper.

Every failure the reconciliation engine can surface derives from
IssueKeeperError. Remote and store failures are never retried inside an
invocation; they propagate to the work queue, which owns backoff.
"""

from typing import Optional


class IssueKeeperError(Exception):
    """Base exception for issuekeeper errors."""

    pass


class RecordNotFoundError(IssueKeeperError):
    """Raised when an intent record does not exist in the store."""

    def __init__(self, key: object) -> None:
        super().__init__(f"Record not found: {key}")
        self.key = key


class RecordExistsError(IssueKeeperError):
    """Raised when creating a record whose key is already taken."""

    def __init__(self, key: object) -> None:
        super().__init__(f"Record already exists: {key}")
        self.key = key


class PersistConflictError(IssueKeeperError):
    """Raised when a write is based on a stale resource version."""

    def __init__(
        self,
        key: object,
        expected_version: Optional[int] = None,
        actual_version: Optional[int] = None,
    ) -> None:
        super().__init__(
            f"Conflict writing {key}: expected resource version "
            f"{expected_version}, store has {actual_version}"
        )
        self.key = key
        self.expected_version = expected_version
        self.actual_version = actual_version


class TrackerError(IssueKeeperError):
    """Base exception for ticket service errors."""

    pass


class RemoteUnavailableError(TrackerError):
    """Raised on transport failures or non-success responses."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(RemoteUnavailableError):
    """Raised when the ticket service rejects the credential."""

    pass


class DecodeFailureError(TrackerError):
    """Raised when the ticket service returns a malformed payload."""

    pass


class CredentialError(IssueKeeperError):
    """Raised when the bearer credential cannot be resolved."""

    pass


class AdmissionError(IssueKeeperError):
    """Raised when admission rejects a record create or update."""

    def __init__(self, reasons: list[str]) -> None:
        super().__init__("; ".join(reasons) or "admission rejected")
        self.reasons = reasons


class ReconcileTimeoutError(IssueKeeperError):
    """Raised when an invocation exceeds its deadline."""

    def __init__(self, key: object, timeout: float) -> None:
        super().__init__(f"Reconcile of {key} exceeded {timeout}s deadline")
        self.key = key
        self.timeout = timeout
