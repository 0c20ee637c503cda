"""Exception hierarchy for the Marketo client."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ApiErrorDetail:
    """A single ``{code, message}`` entry from a response envelope."""

    code: str
    message: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ApiErrorDetail":
        return cls(code=str(data.get("code", "")), message=str(data.get("message", "")))


class MarketoError(Exception):
    """Base exception for Marketo API errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: dict | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.response = response
        super().__init__(self.message)


class AuthError(MarketoError):
    """Credentials rejected, or the API kept refusing a freshly issued token."""

    pass


class UnknownCommandError(MarketoError):
    """Command name not present in the command table."""

    def __init__(self, command: str):
        self.command = command
        super().__init__(f"Unknown command: {command!r}")


class ValidationError(MarketoError):
    """Caller-supplied arguments failed a local check before any request was made."""

    def __init__(self, message: str, problems: list[str] | None = None):
        self.problems = problems or [message]
        super().__init__(message)

    @classmethod
    def from_problems(cls, problems: list[str]) -> "ValidationError":
        return cls("; ".join(problems), problems=problems)


class InvalidArgumentError(ValidationError):
    """An identifier argument has the wrong type or range."""

    pass


class TransportError(MarketoError):
    """Network-level failure (connect, read, timeout). Never retried here."""

    pass


class MalformedResponseError(MarketoError):
    """Response body is not JSON or lacks the envelope shape."""

    pass


class ApiError(MarketoError):
    """The API answered, but reported failure."""

    def __init__(
        self,
        message: str,
        errors: list[ApiErrorDetail] | tuple[ApiErrorDetail, ...] = (),
        status_code: int | None = None,
        response: dict | None = None,
    ):
        self.errors = tuple(errors)
        super().__init__(message, status_code, response)

    @property
    def codes(self) -> list[str]:
        return [e.code for e in self.errors]
