"""Domain-level exception primitives with stable machine-readable codes."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(eq=False)
class DomainError(Exception):
    """Use-case level error with stable code and HTTP mapping."""

    code: str
    http_status: int
    message: str
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        return self.message


class ValidationFailed(DomainError):
    """Malformed or missing input, raised before any storage write."""

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(code=code, http_status=400, message=message, details=details)


class NotFound(DomainError):
    """Entity does not exist or lies outside the caller's scope."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(code=code, http_status=404, message=message)


class StateConflict(DomainError):
    """Request exists and is visible, but its status does not allow the action.

    Surfaced as 404 on the wire for client compatibility; the distinct code and
    the attached ``currentStatus`` let callers tell it apart from a missing row.
    """

    def __init__(self, *, current_status: str, required_status: str) -> None:
        super().__init__(
            code="REQUEST_INVALID_STATE",
            http_status=404,
            message=f"Request not found or not in {required_status} state",
            details={"currentStatus": current_status, "requiredStatus": required_status},
        )


class InvalidCredentials(DomainError):
    def __init__(self) -> None:
        super().__init__(code="INVALID_CREDENTIALS", http_status=401, message="Invalid email or password")


class AccessDenied(DomainError):
    def __init__(self, code: str, message: str) -> None:
        super().__init__(code=code, http_status=403, message=message)


class TransactionFailed(DomainError):
    """Storage failed mid-write; the whole operation was rolled back."""

    def __init__(self, message: str = "Operation failed, no changes were saved") -> None:
        super().__init__(code="TRANSACTION_FAILED", http_status=500, message=message)
