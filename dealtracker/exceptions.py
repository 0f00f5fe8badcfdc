"""Exception hierarchy for Deal Tracker."""


class DealTrackerError(Exception):
    """Base exception for all Deal Tracker errors."""


class AuthenticationRequiredError(DealTrackerError):
    """Raised when no principal could be resolved for the request."""


class AccessDeniedError(DealTrackerError):
    """Raised when a principal lacks access to a tenant or an admin-only action."""


class StaleReferenceError(AccessDeniedError):
    """Raised when a token or id names something that no longer validates."""


class InvalidInputError(DealTrackerError):
    """Raised when input fails validation before any write is attempted."""


class RecordNotFoundError(DealTrackerError):
    """Raised when a record does not exist inside the caller's tenant."""


class BackendError(DealTrackerError):
    """Raised when the data or identity service call itself fails."""


class StorageError(BackendError):
    """Raised when object storage operations fail."""
