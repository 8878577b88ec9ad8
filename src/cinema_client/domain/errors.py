"""Failure values and client exceptions."""

from dataclasses import dataclass
from enum import StrEnum


class FailureKind(StrEnum):
    """Category of a failed operation."""

    TRANSPORT = "transport"
    AUTHORIZATION = "authorization"
    SERVER_REJECTED = "server_rejected"
    VALIDATION = "validation"
    STALE_SELECTION = "stale_selection"


@dataclass(frozen=True)
class Failure:
    """Failure value handed back to the presentation layer."""

    kind: FailureKind
    message: str
    field: str | None = None


class CinemaClientError(Exception):
    """Base error raised by the resource client."""

    kind = FailureKind.TRANSPORT

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_failure(self) -> Failure:
        """Convert the exception into a failure value."""
        return Failure(kind=self.kind, message=self.message)


class TransportError(CinemaClientError):
    """The request could not complete."""

    kind = FailureKind.TRANSPORT


class AuthorizationError(CinemaClientError):
    """The bearer credential is missing, invalid or expired."""

    kind = FailureKind.AUTHORIZATION


class ServerRejectedError(CinemaClientError):
    """The backend answered with an error status or an unusable body."""

    kind = FailureKind.SERVER_REJECTED

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
