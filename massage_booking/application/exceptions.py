from massage_booking.domain.entities.booking_draft import DraftValidationError
from massage_booking.domain.entities.step import BookingStep

__all__ = [
    "CommitFailedError",
    "CommitInProgressError",
    "DraftValidationError",
    "IntakeFormOwnershipError",
    "NotificationError",
    "PaymentError",
    "PersistenceError",
    "ServiceNotFoundError",
    "SessionNotFoundError",
    "VideoRoomError",
]


class PersistenceError(RuntimeError):
    """Raised when the hosted database rejects or fails a query/mutation."""
    pass


class PaymentError(RuntimeError):
    """Raised when the payment provider fails (network errors, declined requests)."""
    pass


class VideoRoomError(RuntimeError):
    """Raised when the video-room provider cannot provision a room."""
    pass


class NotificationError(RuntimeError):
    """Raised when a notification could not be handed to the delivery provider."""
    pass


class CommitFailedError(RuntimeError):
    """Raised when the appointment could not be created; the draft stays uncommitted."""

    def __init__(self, message: str, retryable: bool = True, retry_step: BookingStep = BookingStep.SERVICE) -> None:
        super().__init__(message)
        self.retryable = retryable
        self.retry_step = retry_step


class CommitInProgressError(RuntimeError):
    """Raised when a commit for the same draft is already running."""
    pass


class IntakeFormOwnershipError(PermissionError):
    """Raised when an intake form does not belong to the current client."""
    pass


class SessionNotFoundError(KeyError):
    """Raised when a booking session id is unknown or expired."""
    pass


class ServiceNotFoundError(KeyError):
    """Raised when a service id is unknown or no longer offered."""
    pass
