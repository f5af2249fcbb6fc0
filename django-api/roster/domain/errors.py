"""Domain error codes for the roster module."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    EVENT_EXPIRED = "EVENT_EXPIRED"
    SIGNUP_WINDOW_CLOSED = "SIGNUP_WINDOW_CLOSED"
    PRIORITY_WINDOW_ACTIVE = "PRIORITY_WINDOW_ACTIVE"
    NOT_REGISTERED = "NOT_REGISTERED"
    CONFLICT = "CONFLICT"
    AMBIGUOUS_SELECTOR = "AMBIGUOUS_SELECTOR"
    INVALID_EVENT_ID = "INVALID_EVENT_ID"
    INVALID_QUANTITY = "INVALID_QUANTITY"
    NOT_A_MEMBER = "NOT_A_MEMBER"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class EventNotFoundError(DomainError):
    """Raised when a selector matches no event in scope."""

    def __init__(self, selector: str) -> None:
        super().__init__(
            code=ErrorCode.EVENT_NOT_FOUND,
            message="Event not found",
        )
        self.selector = selector


class EventExpiredError(DomainError):
    """Raised when a mutation targets an event whose window has ended."""

    def __init__(self, event_id: str) -> None:
        super().__init__(
            code=ErrorCode.EVENT_EXPIRED,
            message="Event has already ended",
        )
        self.event_id = event_id


class SignupWindowClosedError(DomainError):
    """Raised when admission is attempted after the signup cutoff."""

    def __init__(self, event_id: str) -> None:
        super().__init__(
            code=ErrorCode.SIGNUP_WINDOW_CLOSED,
            message="Signup for this event is closed",
        )
        self.event_id = event_id


class PriorityWindowActiveError(DomainError):
    """Raised when a non-member signs up during the priority window."""

    def __init__(self, event_id: str, subject: str) -> None:
        super().__init__(
            code=ErrorCode.PRIORITY_WINDOW_ACTIVE,
            message="Only core members may sign up at this time",
        )
        self.event_id = event_id
        self.subject = subject


class NotRegisteredError(DomainError):
    """Raised when withdrawing a subject holding no seats."""

    def __init__(self, event_id: str, subject: str) -> None:
        super().__init__(
            code=ErrorCode.NOT_REGISTERED,
            message="You are not registered for this event",
        )
        self.event_id = event_id
        self.subject = subject


class ConflictError(DomainError):
    """Raised by a store when a concurrent write was detected. Retryable.

    ``target`` is the event ID, or the scope for a listing read.
    """

    def __init__(self, target: str) -> None:
        super().__init__(
            code=ErrorCode.CONFLICT,
            message="Event was modified concurrently, please retry",
        )
        self.target = target


class AmbiguousSelectorError(DomainError):
    """Raised when no event was named and more than one is open."""

    def __init__(self, candidates: tuple) -> None:
        super().__init__(
            code=ErrorCode.AMBIGUOUS_SELECTOR,
            message="Several events are open, please pick a date",
        )
        self.candidates = candidates


class InvalidEventIdError(DomainError):
    """Raised when an event ID is invalid."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.INVALID_EVENT_ID,
            message="Invalid event ID format",
        )


class InvalidQuantityError(DomainError):
    """Raised when a requested quantity is not a positive integer."""

    def __init__(self, quantity: int) -> None:
        super().__init__(
            code=ErrorCode.INVALID_QUANTITY,
            message="Quantity must be at least 1",
        )
        self.quantity = quantity


class MemberNotFoundError(DomainError):
    """Raised when removing a subject that is not a core member."""

    def __init__(self, subject: str) -> None:
        super().__init__(
            code=ErrorCode.NOT_A_MEMBER,
            message="Subject is not a core member",
        )
        self.subject = subject
