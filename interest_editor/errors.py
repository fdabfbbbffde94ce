"""
Error types raised by the interest editor core.

SessionNotFoundError and UpstreamFetchError are recoverable by restarting or
retrying the flow. PersistenceCommitError leaves the session in place so the
commit can be retried. InvariantRejected is not a failure: it reports an edit
that was refused and must be shown to the user as a notice.
"""

from typing import Optional


class InterestEditorError(Exception):
    """Base class for all interest editor errors."""


class SessionNotFoundError(InterestEditorError):
    """No active edit session for the user (never started or expired)."""

    def __init__(self, user_id):
        self.user_id = user_id
        super().__init__(f"No active edit session for user {user_id}")


class UpstreamFetchError(InterestEditorError):
    """Reading the catalog or the durable selection snapshot failed."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        message = f"{operation} failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class PersistenceCommitError(InterestEditorError):
    """Writing the final selection set failed; the session was kept."""

    def __init__(self, user_id, cause: Optional[BaseException] = None):
        self.user_id = user_id
        self.cause = cause
        message = f"Failed to commit selections for user {user_id}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class InvariantRejected(InterestEditorError):
    """An edit was refused because it would break a selection invariant."""

    def __init__(self, reason: str, limit: int, current: int):
        self.reason = reason
        self.limit = limit
        self.current = current
        super().__init__(f"{reason} ({current} of {limit})")
