"""Custom exceptions for the deposit wizard.

This module provides a hierarchy of exception classes for consistent error
handling across the wizard. All exceptions inherit from DepositWizardError,
making it easy to catch all application-specific errors.

Example:
    try:
        deal = await service.deal_inquiry(deal_id, customer_key)
    except RemoteServiceError as e:
        if e.is_structured:
            errors.merge(map_remote_errors(e.errors))
        else:
            notice = "Service unavailable, please try again."
"""

from typing import Any, Optional

from deposit_core.models import RemoteFieldError


class DepositWizardError(Exception):
    """Base exception for all deposit wizard errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context.
        recoverable: Whether the error is potentially recoverable.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        """Return string representation of the error."""
        return self.message

    def __repr__(self) -> str:
        """Return detailed representation of the error."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"recoverable={self.recoverable!r})"
        )


class ValidationError(DepositWizardError):
    """Error raised when a form value cannot be accepted.

    Raised by the form state machine when a value cannot be coerced to the
    field's type (an unparseable date, an unknown maturity instruction).
    Rule violations such as "amount must be greater than 0" are not raised;
    they are reported by the validation engine as field errors.

    Attributes:
        field: The field that failed validation.
        value: The rejected value.
        constraint: The constraint that was violated.

    Example:
        >>> raise ValidationError(
        ...     "Invalid maturity date",
        ...     field="maturity_date",
        ...     value="2026-02-30",
        ...     constraint="ISO 8601 calendar date",
        ... )
        ValidationError: Invalid maturity date
    """

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        constraint: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = True,
    ) -> None:
        super().__init__(message, details=details, recoverable=recoverable)
        self.field = field
        self.value = value
        self.constraint = constraint

        if field:
            self.details["field"] = field
        if value is not None:
            self.details["value"] = value
        if constraint:
            self.details["constraint"] = constraint


class FormStateError(DepositWizardError):
    """Error raised when an action is not allowed in the current form state.

    Examples are merging a resolved deal while in ad-hoc mode, or editing
    the form after the wizard has completed.

    Attributes:
        action: Name of the rejected action.
        mode: The form mode at the time of the rejection.
    """

    def __init__(
        self,
        message: str,
        *,
        action: Optional[str] = None,
        mode: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message, details=details, recoverable=recoverable)
        self.action = action
        self.mode = mode

        if action:
            self.details["action"] = action
        if mode:
            self.details["mode"] = mode


class RemoteServiceError(DepositWizardError):
    """Error raised when a remote deposit service call fails.

    A structured failure carries the ordered list of field errors returned by
    the service; the first one is authoritative when a single message is
    surfaced. An unstructured failure (network error, unparseable body)
    carries an empty list.

    Attributes:
        operation: The remote operation that failed (e.g. "deal_inquiry").
        errors: Ordered structured field errors, possibly empty.
        status_code: HTTP status code when the failure came from a response.

    Example:
        >>> raise RemoteServiceError(
        ...     "Deposit validation rejected",
        ...     operation="validate_deposit",
        ...     errors=[RemoteFieldError(field="amount", code="deposit.amount.exceeds-balance")],
        ...     status_code=422,
        ... )
        RemoteServiceError: Deposit validation rejected
    """

    def __init__(
        self,
        message: str,
        *,
        operation: Optional[str] = None,
        errors: Optional[list[RemoteFieldError]] = None,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = True,
    ) -> None:
        super().__init__(message, details=details, recoverable=recoverable)
        self.operation = operation
        self.errors = list(errors or [])
        self.status_code = status_code

        if operation:
            self.details["operation"] = operation
        if status_code is not None:
            self.details["status_code"] = status_code

    @property
    def is_structured(self) -> bool:
        """True when the service returned at least one field-scoped error."""
        return len(self.errors) > 0

    @property
    def first_error(self) -> Optional[RemoteFieldError]:
        """The authoritative error, if any."""
        return self.errors[0] if self.errors else None


__all__ = [
    "DepositWizardError",
    "ValidationError",
    "FormStateError",
    "RemoteServiceError",
]
