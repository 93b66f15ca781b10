"""Application error types shared by the service layer."""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base error carrying an HTTP-style status code and a stable code."""

    def __init__(
        self,
        status_code: int,
        message: str,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": False,
            "error": {"code": self.code, "message": self.message},
        }


class NotFoundError(AppError):
    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        else:
            message = f"{resource} not found"
        super().__init__(404, message, "NOT_FOUND")
        self.resource = resource
        self.resource_id = resource_id


class ValidationError(AppError):
    """Input rejected before anything is persisted.

    ``details`` maps a field name to the messages shown next to that field.
    """

    def __init__(
        self,
        message: str,
        details: dict[str, list[str]] | None = None,
    ) -> None:
        super().__init__(400, message, "VALIDATION_ERROR")
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        if self.details:
            payload["error"]["details"] = self.details
        return payload


class ConflictError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(409, message, "CONFLICT")


class BadRequestError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(400, message, "BAD_REQUEST")


class InvalidDomainError(ValueError):
    """Raised when a URL or host cannot be reduced to a normalized domain."""
