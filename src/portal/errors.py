"""Portal error taxonomy and the Result type returned by network-facing calls.

ValidationError never reaches the network layer. NetworkError and
ServerRejection come from the transport. ReloadError is kept apart from a
mutation failure because the mutation may already be durable server-side.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")

GENERIC_FAILURE_MESSAGE = "Unable to update replacement request"
GENERIC_RELOAD_MESSAGE = "Failed to load order"
TIMEOUT_MESSAGE = "The request timed out. Please try again."


class PortalError(Exception):
    """Base class for every error surfaced to the acting user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PortalError):
    """Client-side guard failed. Recoverable by correcting the input."""

    def __init__(self, message: str, reason: str, field: str | None = None):
        super().__init__(message)
        self.reason = reason
        self.field = field


class NetworkError(PortalError):
    """The request never produced a server answer (connection failure, timeout)."""


class ServerRejection(PortalError):
    """The server answered and refused the request."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_conflict(self) -> bool:
        return self.status_code == 409


class ReloadError(PortalError):
    """Re-fetching the order failed. Any preceding mutation is not rolled back."""

    def __init__(self, message: str, cause: PortalError | None = None):
        super().__init__(message)
        self.cause = cause


@dataclass(frozen=True)
class StaleStateNotice:
    """The reloaded order no longer matches what the actor expected.

    Display-only: the reloaded state is authoritative.
    """

    expected: str
    actual: str

    @property
    def message(self) -> str:
        return (
            f"This request was updated elsewhere: it is now "
            f"{self.actual.replace('_', ' ')} (you submitted {self.expected.replace('_', ' ')})."
        )


@dataclass(frozen=True)
class Result(Generic[T]):
    value: T | None = None
    error: PortalError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: PortalError) -> "Result[T]":
        return cls(error=error)
