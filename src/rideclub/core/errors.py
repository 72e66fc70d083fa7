"""Error taxonomy shared by the relationship services.

Every failure raised on the request path carries a stable ``kind`` and the
HTTP status the API layer answers with. The message is the human-readable
reason returned to the caller.
"""

from __future__ import annotations


class RideClubError(RuntimeError):
    """Base exception for business-rule failures.

    This is the base class for all errors surfaced by the service layer.
    """

    kind = "error"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(RideClubError):
    """Raised when a referenced user, community or event does not exist."""

    kind = "not_found"
    status_code = 404


class ConflictError(RideClubError):
    """Raised on duplicate membership, registration, follow or unique field."""

    kind = "conflict"
    status_code = 409


class ConcurrentModificationError(ConflictError):
    """Raised when a concurrent writer changed the same document first."""

    kind = "concurrent_modification"


class InvalidOperationError(RideClubError):
    """Raised when a business rule forbids the operation."""

    kind = "invalid_operation"
    status_code = 400


class CapacityExceededError(RideClubError):
    """Raised when an event has no free places left."""

    kind = "capacity_exceeded"
    status_code = 409


class PermissionDeniedError(RideClubError):
    """Raised when the caller does not own the resource being changed."""

    kind = "permission_denied"
    status_code = 403


__all__ = [
    "CapacityExceededError",
    "ConcurrentModificationError",
    "ConflictError",
    "InvalidOperationError",
    "NotFoundError",
    "PermissionDeniedError",
    "RideClubError",
]
