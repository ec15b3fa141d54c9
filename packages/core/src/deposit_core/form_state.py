"""Form state machine for the deposit wizard.

The form is edited only through a closed set of actions applied by
``reduce_form``. ``FormSession`` owns the current model and the field-error
store for one wizard invocation and serializes every mutation through
``dispatch``.

Example:
    session = FormSession(accounts=catalog)
    session.dispatch(SetField("funding_account_id", "A1"))
    session.dispatch(ToggleMode(DepositMode.DEAL_REFERENCED))
"""

import threading
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Optional, Union

import structlog
from pydantic import ValidationError as PydanticValidationError

from deposit_core.accounts import account_currency
from deposit_core.exceptions import FormStateError, ValidationError
from deposit_core.models import (
    Account,
    DealRecord,
    DepositMode,
    FormModel,
    RatePreview,
)

logger = structlog.get_logger()


# =============================================================================
# ACTIONS
# =============================================================================


@dataclass(frozen=True)
class SetField:
    """Replace one field. Does not run the validation rules."""

    field: str
    value: Any


@dataclass(frozen=True)
class SetDealData:
    """Merge a resolved deal's accounts, amount and dates into the form."""

    deal: DealRecord


@dataclass(frozen=True)
class SetPreviewData:
    """Store an ad-hoc rate preview without touching other fields."""

    preview: RatePreview


@dataclass(frozen=True)
class ToggleMode:
    """Hard reset to defaults under the given mode."""

    mode: DepositMode


@dataclass(frozen=True)
class Reset:
    """Hard reset to defaults."""


FormAction = Union[SetField, SetDealData, SetPreviewData, ToggleMode, Reset]

EDITABLE_FIELDS = frozenset(
    {
        "reference_number",
        "funding_account_id",
        "repayment_account_id",
        "amount",
        "maturity_date",
        "maturity_instruction",
        "remarks",
    }
)

# Fields owned by one mode; in the other mode they are read-only.
DEAL_ONLY_FIELDS = frozenset({"reference_number"})
AD_HOC_ONLY_FIELDS = frozenset({"amount", "maturity_date"})

# A rate preview quotes these terms; changing one discards the quote.
RATE_TERM_FIELDS = frozenset({"funding_account_id", "amount", "maturity_date"})


# =============================================================================
# REDUCER
# =============================================================================


def initial_form_model(
    mode: DepositMode = DepositMode.AD_HOC,
    *,
    today: Optional[date] = None,
) -> FormModel:
    """A fresh form with the start date stamped to today."""
    return FormModel(mode=mode, start_date=today or date.today())


def _set_field(
    model: FormModel,
    action: SetField,
    accounts: list[Account],
) -> FormModel:
    field = action.field
    if field not in EDITABLE_FIELDS:
        raise FormStateError(
            f"Field {field!r} cannot be set directly",
            action="set_field",
            mode=model.mode.value,
        )
    if model.is_deal_referenced and field in AD_HOC_ONLY_FIELDS:
        raise FormStateError(
            f"Field {field!r} is taken from the deal in deal-referenced mode",
            action="set_field",
            mode=model.mode.value,
        )
    if not model.is_deal_referenced and field in DEAL_ONLY_FIELDS:
        raise FormStateError(
            f"Field {field!r} is only used in deal-referenced mode",
            action="set_field",
            mode=model.mode.value,
        )

    data = model.model_dump()
    data[field] = action.value
    if field in RATE_TERM_FIELDS:
        data["rate_preview"] = None

    # Keep the repayment account in the funding account's currency.
    if field == "funding_account_id" and model.repayment_account_id:
        new_currency = account_currency(accounts, str(action.value or "").strip())
        repayment_currency = account_currency(accounts, model.repayment_account_id)
        if new_currency != repayment_currency:
            data["repayment_account_id"] = ""
            logger.debug(
                "repayment_account_cleared",
                funding_account=action.value,
                repayment_account=model.repayment_account_id,
            )

    try:
        return FormModel.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(
            f"Invalid value for {field}",
            field=field,
            value=action.value,
            constraint=e.errors()[0]["msg"],
        ) from e


def reduce_form(
    model: FormModel,
    action: FormAction,
    *,
    today: Optional[date] = None,
    accounts: Optional[list[Account]] = None,
) -> FormModel:
    """Apply one action to the form and return the new form.

    Args:
        model: The current form.
        action: One of the five form actions.
        today: Date used to re-stamp the start date on resets.
        accounts: Account catalog used to keep the repayment account in the
            funding account's currency when the funding account changes.

    Raises:
        FormStateError: The action is not allowed in the form's mode.
        ValidationError: A SetField value cannot be coerced to the field type.
    """
    if isinstance(action, SetField):
        return _set_field(model, action, accounts or [])

    if isinstance(action, SetDealData):
        if not model.is_deal_referenced:
            raise FormStateError(
                "Deal data can only be merged in deal-referenced mode",
                action="set_deal_data",
                mode=model.mode.value,
            )
        deal = action.deal
        return model.model_copy(
            update={
                "resolved_deal": deal,
                "funding_account_id": deal.funding_account_id,
                "repayment_account_id": deal.repayment_account_id or "",
                "amount": str(deal.amount),
                "start_date": deal.start_date,
                "maturity_date": deal.maturity_date,
            }
        )

    if isinstance(action, SetPreviewData):
        if model.is_deal_referenced:
            raise FormStateError(
                "Rate previews only apply in ad-hoc mode",
                action="set_preview_data",
                mode=model.mode.value,
            )
        return model.model_copy(update={"rate_preview": action.preview})

    if isinstance(action, ToggleMode):
        return initial_form_model(action.mode, today=today)

    if isinstance(action, Reset):
        return initial_form_model(today=today)

    raise FormStateError(f"Unknown form action: {action!r}")


# =============================================================================
# SESSION
# =============================================================================


class FieldErrorStore:
    """Field name to message mapping shared by local and remote validation."""

    def __init__(self) -> None:
        self._errors: dict[str, str] = {}

    def snapshot(self) -> dict[str, str]:
        return dict(self._errors)

    def get(self, field: str) -> Optional[str]:
        return self._errors.get(field)

    def replace(self, errors: dict[str, str]) -> None:
        self._errors = dict(errors)

    def merge(self, errors: dict[str, str]) -> None:
        """Add errors, overwriting any existing message for the same field."""
        self._errors.update(errors)

    def set(self, field: str, message: str) -> None:
        self._errors[field] = message

    def clear(self, field: Optional[str] = None) -> None:
        if field is None:
            self._errors.clear()
        else:
            self._errors.pop(field, None)

    def __bool__(self) -> bool:
        return bool(self._errors)

    def __len__(self) -> int:
        return len(self._errors)


class FormSession:
    """The form model and error store owned by one wizard invocation.

    All model mutations go through ``dispatch``, which holds a lock so that
    callers on other threads still observe one writer at a time.
    """

    def __init__(
        self,
        *,
        accounts: Optional[list[Account]] = None,
        clock: Callable[[], date] = date.today,
        mode: DepositMode = DepositMode.AD_HOC,
    ) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self.accounts: list[Account] = list(accounts or [])
        self.model = initial_form_model(mode, today=clock())
        self.errors = FieldErrorStore()

    def today(self) -> date:
        return self._clock()

    def dispatch(self, action: FormAction) -> FormModel:
        with self._lock:
            self.model = reduce_form(
                self.model,
                action,
                today=self._clock(),
                accounts=self.accounts,
            )
            if isinstance(action, (ToggleMode, Reset)):
                self.errors.clear()
        logger.debug("form_action_applied", action=type(action).__name__)
        return self.model


__all__ = [
    "SetField",
    "SetDealData",
    "SetPreviewData",
    "ToggleMode",
    "Reset",
    "FormAction",
    "EDITABLE_FIELDS",
    "initial_form_model",
    "reduce_form",
    "FieldErrorStore",
    "FormSession",
]
