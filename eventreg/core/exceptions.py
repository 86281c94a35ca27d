"""Domain error codes for accounts, sessions and events.

Services raise these; the HTTP layer maps each category to a status code
and only ever exposes ``code`` and ``message`` to the client.
"""

from enum import Enum
from typing import Iterable


class ErrorCode(Enum):
    """Domain error codes."""

    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    DUPLICATE_EMAIL = "DUPLICATE_EMAIL"
    UNKNOWN_EMAIL = "UNKNOWN_EMAIL"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    ALREADY_REGISTERED = "ALREADY_REGISTERED"
    SOLD_OUT = "SOLD_OUT"
    HAS_ATTENDEES = "HAS_ATTENDEES"
    TOO_CLOSE_TO_CANCEL = "TOO_CLOSE_TO_CANCEL"
    NOT_ATTENDEE = "NOT_ATTENDEE"
    MISSING_TOKEN = "MISSING_TOKEN"
    INVALID_TOKEN = "INVALID_TOKEN"
    REVOKED_TOKEN = "REVOKED_TOKEN"
    FORBIDDEN = "FORBIDDEN"
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_CAPACITY = "INVALID_CAPACITY"
    INVALID_PRICE = "INVALID_PRICE"
    INVALID_DATE = "INVALID_DATE"
    INVALID_RATING = "INVALID_RATING"


class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    status_code: int = 400

    def __init__(self, code: ErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class NotFoundError(DomainError):
    status_code = 404


class ConflictError(DomainError):
    status_code = 400


class AuthenticationError(DomainError):
    status_code = 401


class ForbiddenError(DomainError):
    status_code = 401


class ValidationError(DomainError):
    status_code = 400


class EventNotFoundError(NotFoundError):
    """Raised when an event is not found."""

    def __init__(self, event_id: int) -> None:
        super().__init__(ErrorCode.EVENT_NOT_FOUND, "Event not found")
        self.event_id = event_id


class DuplicateEmailError(ConflictError):
    def __init__(self) -> None:
        super().__init__(
            ErrorCode.DUPLICATE_EMAIL,
            "This email is already registered, try to login",
        )


class UnknownEmailError(ConflictError):
    def __init__(self) -> None:
        super().__init__(
            ErrorCode.UNKNOWN_EMAIL,
            "This email is not registered, try to register first",
        )


class InvalidCredentialsError(ConflictError):
    def __init__(self) -> None:
        super().__init__(ErrorCode.INVALID_CREDENTIALS, "Incorrect email or password")


class AlreadyRegisteredError(ConflictError):
    def __init__(self) -> None:
        super().__init__(
            ErrorCode.ALREADY_REGISTERED, "User is already registered for the event"
        )


class SoldOutError(ConflictError):
    def __init__(self) -> None:
        super().__init__(ErrorCode.SOLD_OUT, "Event is sold out")


class HasAttendeesError(ConflictError):
    def __init__(self) -> None:
        super().__init__(
            ErrorCode.HAS_ATTENDEES, "Event can not be cancelled as it has attendees"
        )


class TooCloseToCancelError(ConflictError):
    def __init__(self, lockout_days: int) -> None:
        super().__init__(
            ErrorCode.TOO_CLOSE_TO_CANCEL,
            f"Event can not be cancelled within {lockout_days} days of its date",
        )
        self.lockout_days = lockout_days


class NotAttendeeError(ConflictError):
    def __init__(self) -> None:
        super().__init__(
            ErrorCode.NOT_ATTENDEE, "Only registered attendees can rate an event"
        )


class MissingTokenError(AuthenticationError):
    def __init__(self) -> None:
        super().__init__(ErrorCode.MISSING_TOKEN, "Authorization token is missing")


class InvalidTokenError(AuthenticationError):
    def __init__(self) -> None:
        super().__init__(ErrorCode.INVALID_TOKEN, "Could not validate credentials")


class RevokedTokenError(AuthenticationError):
    def __init__(self) -> None:
        super().__init__(ErrorCode.REVOKED_TOKEN, "Token has been revoked")


class PermissionDeniedError(ForbiddenError):
    def __init__(self, required_roles: Iterable[str] = ()) -> None:
        roles = ", ".join(sorted(required_roles))
        message = "You are not authorized"
        if roles:
            message = f"{message}, one of these roles required: {roles}"
        super().__init__(ErrorCode.FORBIDDEN, message)


class MissingFieldError(ValidationError):
    def __init__(self, field: str) -> None:
        super().__init__(ErrorCode.MISSING_FIELD, f"Missing required field: {field}")
        self.field = field


class InvalidCapacityError(ValidationError):
    def __init__(self) -> None:
        super().__init__(
            ErrorCode.INVALID_CAPACITY, "Capacity must be a positive integer"
        )


class InvalidPriceError(ValidationError):
    def __init__(self) -> None:
        super().__init__(
            ErrorCode.INVALID_PRICE, "Ticket price must be a non-negative number"
        )


class InvalidDateError(ValidationError):
    def __init__(self, value: object) -> None:
        super().__init__(
            ErrorCode.INVALID_DATE, "Date must be an ISO 8601 date or datetime"
        )
        self.value = value


class InvalidRatingError(ValidationError):
    def __init__(self, low: int, high: int) -> None:
        super().__init__(
            ErrorCode.INVALID_RATING, f"Rating must be between {low} and {high}"
        )
