from __future__ import annotations


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class InvalidCoordinate(ValidationError):
    """Raised for NaN or out-of-range latitude/longitude."""


class OutsideGeofence(DomainError):
    """Raised when a check-in or confirmation is attempted off site."""

    def __init__(self, distance_meters: float, radius_meters: float):
        super().__init__(
            f"Location is {distance_meters:.0f} m from site (allowed {radius_meters:.0f} m)"
        )
        self.distance_meters = distance_meters
        self.radius_meters = radius_meters


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class Unauthenticated(AuthenticationError):
    """Raised when a protected operation is called without a valid session."""


class StoreUnavailable(DomainError):
    """Transient persistence failure; retried by the next scheduled run."""


class DocumentNotFound(DomainError):
    """Raised when a batch updates a document that does not exist."""


class BatchTooLarge(ValueError):
    """Raised when a write batch exceeds the store's atomic ceiling."""


class PartialStepFailure(DomainError):
    """Some items of a multi-item step failed while others succeeded."""

    def __init__(self, message: str, *, succeeded: int, failed: int):
        super().__init__(message)
        self.succeeded = succeeded
        self.failed = failed


class ResetFailed(DomainError):
    """Raised to a manual caller when the reset could not do any of its work."""
