"""Validation engine for the deposit form.

Rules are declared per field in ``VALIDATION_RULES`` and evaluated by
``validate_field``. ``validate_form`` selects the field set for the current
mode, and ``map_remote_errors`` turns structured errors returned by the
deposit services into the same field-scoped messages.

All functions are pure; callers merge the results into their error store.
"""

import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Mapping, Optional

from deposit_core.accounts import find_account, validate_account_selection
from deposit_core.models import Account, FormModel, RemoteFieldError

MIN_TENOR_DAYS = 7
MAX_TENOR_DAYS = 365

CustomRule = Callable[[Any, FormModel, date], Optional[str]]


@dataclass(frozen=True)
class FieldRule:
    """Declarative checks for one form field, applied in declaration order."""

    required: bool = False
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[re.Pattern] = None
    min_value: Optional[Decimal] = None
    max_value: Optional[Decimal] = None
    custom: Optional[CustomRule] = None


FIELD_LABELS: dict[str, str] = {
    "reference_number": "Reference number",
    "funding_account_id": "Funding account",
    "repayment_account_id": "Repayment account",
    "amount": "Amount",
    "start_date": "Start date",
    "maturity_date": "Maturity date",
    "maturity_instruction": "Maturity instruction",
    "remarks": "Remarks",
}


def _amount_rule(value: Any, model: FormModel, today: date) -> Optional[str]:
    number = _to_decimal(value)
    if number is None or number <= 0:
        return "Amount must be greater than 0"
    return None


def _maturity_rule(value: Any, model: FormModel, today: date) -> Optional[str]:
    if not value or not model.start_date:
        return None
    maturity = _to_date(value)
    if maturity is None:
        return "Maturity date is not a valid date"

    if maturity <= model.start_date:
        return "Maturity date must be after start date"

    # The tenor window is measured from today, not from the start date.
    days_from_today = (maturity - today).days
    if days_from_today < MIN_TENOR_DAYS:
        return f"Maturity date must be at least {MIN_TENOR_DAYS} days from today"
    if days_from_today > MAX_TENOR_DAYS:
        return f"Maturity date cannot exceed {MAX_TENOR_DAYS} days"
    return None


VALIDATION_RULES: dict[str, FieldRule] = {
    "reference_number": FieldRule(
        required=True,
        max_length=50,
        pattern=re.compile(r"^[a-zA-Z0-9]+$"),
    ),
    "funding_account_id": FieldRule(required=True),
    "repayment_account_id": FieldRule(required=True),
    "amount": FieldRule(required=True, custom=_amount_rule),
    "start_date": FieldRule(required=True),
    "maturity_date": FieldRule(required=True, custom=_maturity_rule),
    "maturity_instruction": FieldRule(required=True),
    "remarks": FieldRule(max_length=500),
}

DEAL_REFERENCED_FIELDS = (
    "reference_number",
    "funding_account_id",
    "repayment_account_id",
    "maturity_instruction",
)

AD_HOC_FIELDS = (
    "funding_account_id",
    "repayment_account_id",
    "amount",
    "start_date",
    "maturity_date",
    "maturity_instruction",
)


def _to_decimal(value: Any) -> Optional[Decimal]:
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return number if number.is_finite() else None


def _to_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        return None


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_field(
    field: str,
    value: Any,
    model: FormModel,
    *,
    today: Optional[date] = None,
    rules: Optional[Mapping[str, FieldRule]] = None,
) -> Optional[str]:
    """Validate a single field value in the context of the whole form.

    Args:
        field: Model field name, e.g. ``"maturity_date"``.
        value: The candidate value (need not be the one stored in ``model``).
        model: The form the value belongs to, for cross-field rules.
        today: Reference date for the tenor window; defaults to today.
        rules: Rule table override; defaults to ``VALIDATION_RULES``.

    Returns:
        The first failing rule's message, or None when the value is valid.
    """
    rule = (rules or VALIDATION_RULES).get(field)
    if rule is None:
        return None
    label = FIELD_LABELS.get(field, field)
    today = today or date.today()

    if _is_blank(value):
        return f"{label} is required" if rule.required else None

    text = value if isinstance(value, str) else str(value)
    if rule.min_length is not None and len(text) < rule.min_length:
        return f"{label} must be at least {rule.min_length} characters"
    if rule.max_length is not None and len(text) > rule.max_length:
        return f"{label} must be no more than {rule.max_length} characters"
    if rule.pattern is not None and not rule.pattern.match(text):
        return f"{label} format is invalid"

    if rule.min_value is not None or rule.max_value is not None:
        number = _to_decimal(value)
        if number is None:
            return f"{label} must be a number"
        if rule.min_value is not None and number < rule.min_value:
            return f"{label} must be at least {rule.min_value}"
        if rule.max_value is not None and number > rule.max_value:
            return f"{label} must be no more than {rule.max_value}"

    if rule.custom is not None:
        return rule.custom(value, model, today)
    return None


def _account_errors(model: FormModel, accounts: list[Account]) -> dict[str, str]:
    errors: dict[str, str] = {}
    if model.funding_account_id:
        message = validate_account_selection(accounts, model.funding_account_id)
        if message:
            errors["funding_account_id"] = message

    if model.repayment_account_id:
        repayment = find_account(accounts, model.repayment_account_id)
        funding = find_account(accounts, model.funding_account_id)
        if repayment is None:
            errors["repayment_account_id"] = "Selected account not found"
        elif funding is not None and repayment.currency_code != funding.currency_code:
            errors["repayment_account_id"] = (
                "Repayment account currency must match the funding account"
            )
    return errors


def validate_form(
    model: FormModel,
    *,
    today: Optional[date] = None,
    accounts: Optional[list[Account]] = None,
) -> dict[str, str]:
    """Validate every field relevant to the form's mode.

    DEAL_REFERENCED checks the reference, accounts and maturity instruction;
    amount and dates come from the deal and are not checked. AD_HOC checks
    accounts, amount, dates and maturity instruction. Remarks are checked
    only when present. When the account catalog is supplied, the selected
    accounts are also checked against it.

    Returns:
        Mapping of field name to message; empty iff the form is submittable.
    """
    fields = list(DEAL_REFERENCED_FIELDS if model.is_deal_referenced else AD_HOC_FIELDS)
    if model.remarks:
        fields.append("remarks")

    errors: dict[str, str] = {}
    for field in fields:
        message = validate_field(field, getattr(model, field), model, today=today)
        if message:
            errors[field] = message

    if accounts is not None:
        for field, message in _account_errors(model, accounts).items():
            errors.setdefault(field, message)
    return errors


# =============================================================================
# REMOTE ERROR TRANSLATION
# =============================================================================

GENERIC_ERROR_MESSAGE = "An error occurred. Please check your input."

ERROR_MESSAGES: dict[str, str] = {
    "deposit.amount.exceeds-balance": "Amount exceeds available balance",
    "deposit.maturityDate.exceeds-max-tenor": "Maturity date exceeds maximum allowed period",
    "Pattern": "Invalid format or special characters not allowed",
    "Invalid deal reference": "Deal reference number is invalid or expired",
    "deposit.duplicate-request": "A similar deposit request already exists",
}

# Wire field names used by the deposit API, mapped to form fields.
REMOTE_FIELD_NAMES: dict[str, str] = {
    "dealReference": "reference_number",
    "dealId": "reference_number",
    "referenceNumber": "reference_number",
    "fundingAccount": "funding_account_id",
    "fundingAccountId": "funding_account_id",
    "repaymentAccount": "repayment_account_id",
    "repaymentAccountId": "repayment_account_id",
    "amount": "amount",
    "depositAmount": "amount",
    "startDate": "start_date",
    "maturityDate": "maturity_date",
    "numberOfDays": "maturity_date",
    "maturityInstruction": "maturity_instruction",
    "remarks": "remarks",
}


def friendly_message(code: str) -> str:
    """Translate a remote error code, falling back to a generic message."""
    return ERROR_MESSAGES.get(code, GENERIC_ERROR_MESSAGE)


def map_remote_errors(api_errors: list[RemoteFieldError]) -> dict[str, str]:
    """Translate structured remote errors into field-scoped messages.

    The first error reported for a field wins.
    """
    errors: dict[str, str] = {}
    for error in api_errors:
        field = REMOTE_FIELD_NAMES.get(error.field, error.field)
        errors.setdefault(field, friendly_message(error.code))
    return errors


__all__ = [
    "MIN_TENOR_DAYS",
    "MAX_TENOR_DAYS",
    "FieldRule",
    "FIELD_LABELS",
    "VALIDATION_RULES",
    "DEAL_REFERENCED_FIELDS",
    "AD_HOC_FIELDS",
    "validate_field",
    "validate_form",
    "GENERIC_ERROR_MESSAGE",
    "ERROR_MESSAGES",
    "REMOTE_FIELD_NAMES",
    "friendly_message",
    "map_remote_errors",
]
