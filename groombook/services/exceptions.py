from __future__ import annotations

from typing import Any, Dict


class ServiceError(Exception):
    """Base exception for service layer failures."""

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class DownstreamServiceError(ServiceError):
    """Raised when an external service returns an error response."""

    def __init__(self, message: str, status_code: int | None = None, *, cause: Exception | None = None):
        super().__init__(message, cause=cause)
        self.status_code = status_code


class BackendRPCError(DownstreamServiceError):
    """Structured error body returned by a table query or stored procedure."""

    def __init__(
        self,
        message: str,
        *,
        details: str | None = None,
        hint: str | None = None,
        code: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, status_code=status_code, cause=cause)
        self.details = details
        self.hint = hint
        self.code = code

    @classmethod
    def from_payload(
        cls, payload: Dict[str, Any], *, status_code: int | None = None
    ) -> "BackendRPCError":
        return cls(
            str(payload.get("message") or "Backend request failed"),
            details=payload.get("details"),
            hint=payload.get("hint"),
            code=payload.get("code"),
            status_code=status_code,
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "message": str(self),
            "details": self.details,
            "hint": self.hint,
            "code": self.code,
        }


class SlotValidationError(ServiceError):
    """Local rejection of a booking before anything is sent to the backend."""

    def __init__(self, message: str, *, code: str, user_message: str):
        super().__init__(message)
        self.code = code
        self.user_message = user_message


class BookingRejectedError(ServiceError):
    """The backend refused the booking."""

    def __init__(
        self,
        message: str,
        *,
        kind: str,
        user_message: str,
        error: BackendRPCError | None = None,
    ):
        super().__init__(message, cause=error)
        self.kind = kind
        self.user_message = user_message
        self.error = error
