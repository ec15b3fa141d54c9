"""Deposit Core - Form model, validation and account rules for term deposits."""

__version__ = "0.1.0"

from .accounts import eligible_accounts, repayment_candidates
from .form_state import (
    FieldErrorStore,
    FormSession,
    Reset,
    SetDealData,
    SetField,
    SetPreviewData,
    ToggleMode,
    reduce_form,
)
from .models import (
    Account,
    DealRecord,
    DepositMode,
    DepositPreview,
    FormModel,
    MaturityInstruction,
    RatePreview,
    RemoteFieldError,
)
from .validation import map_remote_errors, validate_field, validate_form

__all__ = [
    "Account",
    "DealRecord",
    "DepositMode",
    "DepositPreview",
    "FormModel",
    "MaturityInstruction",
    "RatePreview",
    "RemoteFieldError",
    "eligible_accounts",
    "repayment_candidates",
    "validate_field",
    "validate_form",
    "map_remote_errors",
    "FieldErrorStore",
    "FormSession",
    "SetField",
    "SetDealData",
    "SetPreviewData",
    "ToggleMode",
    "Reset",
    "reduce_form",
]
