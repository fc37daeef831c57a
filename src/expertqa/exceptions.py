"""Custom exceptions for the ExpertQA application."""

from typing import Any


class ExpertQAException(Exception):
    """Base exception for all ExpertQA errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(message)


class NotFoundError(ExpertQAException):
    """Resource not found."""

    def __init__(
        self,
        resource: str,
        resource_id: Any,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=f"{resource} with id '{resource_id}' not found",
            error_code="NOT_FOUND",
            details={
                "resource": resource,
                "resource_id": str(resource_id),
                **(details or {}),
            },
        )


class DomainValidationError(ExpertQAException):
    """Input validation failed."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
        error_code: str = "VALIDATION_ERROR",
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details={"field": field, **(details or {})} if field else details,
        )


class WebhookSignatureError(DomainValidationError):
    """Payment event payload could not be authenticated."""

    def __init__(self, message: str = "Invalid webhook signature") -> None:
        super().__init__(message=message, error_code="INVALID_SIGNATURE")


class AuthenticationError(ExpertQAException):
    """Caller identity is missing."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message=message, error_code="AUTHENTICATION_REQUIRED")


class AuthorizationError(ExpertQAException):
    """Caller is not entitled to act on the resource."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, error_code="FORBIDDEN", details=details)


class StateConflictError(ExpertQAException):
    """A lifecycle guard failed because the question is in another state.

    ``reason`` lets callers tell "too late" apart from "already answered".
    """

    EXPIRED = "expired"
    ALREADY_ANSWERED = "already_answered"
    NOT_PAID = "not_paid"
    ALREADY_PAID = "already_paid"

    def __init__(
        self,
        message: str,
        reason: str,
        question_id: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.reason = reason
        super().__init__(
            message=message,
            error_code="STATE_CONFLICT",
            details={
                "reason": reason,
                "question_id": question_id,
                **(details or {}),
            },
        )


class UpstreamError(ExpertQAException):
    """External service (payment gateway, notifier) failed."""

    def __init__(
        self,
        service: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=f"{service} error: {message}",
            error_code="UPSTREAM_ERROR",
            details={"service": service, **(details or {})},
        )
