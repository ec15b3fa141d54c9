"""Data models for the term deposit wizard.

This module defines the records exchanged with the remote deposit services
(accounts, resolved deals, rate previews, field errors) and the canonical
form model that the wizard edits. Remote records accept the camelCase wire
names used by the deposit API as well as their Python attribute names.

The form model is immutable: every edit goes through the form state machine
in ``deposit_core.form_state``, which returns a new instance.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMERATIONS
# =============================================================================


class DepositMode(str, Enum):
    """Mutually exclusive entry paths for a deposit request."""

    DEAL_REFERENCED = "deal_referenced"
    """Terms are pre-populated from a negotiated deal reference."""

    AD_HOC = "ad_hoc"
    """Amount and dates are typed directly by the customer."""


class MaturityInstruction(str, Enum):
    """Disposition of principal and profit at the end of the term."""

    PRINCIPAL_PLUS_PROFIT_ENCASHMENT = "PRINCIPAL_PLUS_PROFIT_ENCASHMENT"
    PRINCIPAL_ROLLOVER = "PRINCIPAL_ROLLOVER"
    PRINCIPAL = "PRINCIPAL"


class AccountStatus(str, Enum):
    """Account status values reported by the account catalog."""

    ACTIVE = "Active"
    INACTIVE = "Inactive"
    DORMANT = "Dormant"
    CLOSED = "Closed"


# =============================================================================
# REMOTE RECORDS
# =============================================================================


class _WireModel(BaseModel):
    """Base for records that travel over the deposit API."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Account(_WireModel):
    """A customer account from the externally supplied account catalog."""

    account_id: str = Field(description="Account identifier")
    name: str = Field(default="", description="Display name of the account")
    available_balance: Decimal = Field(
        default=Decimal("0"),
        description="Balance available for debit",
    )
    currency_code: str = Field(
        validation_alias=AliasChoices("currencyCode", "currencyID", "currency_code"),
        description="ISO 4217 currency code",
    )
    status: str = Field(
        default=AccountStatus.ACTIVE.value,
        description="Account status, e.g. Active",
    )
    product_code: str = Field(
        default="",
        validation_alias=AliasChoices("productCode", "productID", "product_code"),
        description="Product code of the account",
    )
    raw_product_id: Optional[str] = Field(
        default=None,
        description="Underlying product identifier, when distinct from the product code",
    )
    debit_frozen: bool = Field(default=False, description="Debits are blocked")
    credit_frozen: bool = Field(default=False, description="Credits are blocked")

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE.value


class DealRecord(_WireModel):
    """A pre-negotiated deal resolved from a customer's deal reference."""

    amount: Decimal
    currency: str
    funding_account_id: str = Field(
        validation_alias=AliasChoices("fundingAccountId", "fundingAccount", "funding_account_id"),
    )
    repayment_account_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "repaymentAccountId", "repaymentAccount", "repayment_account_id"
        ),
    )
    start_date: date
    maturity_date: date
    number_of_days: int = Field(ge=0)
    standard_rate: Optional[Decimal] = None
    special_rate: Optional[Decimal] = None
    maturity_amount: Decimal

    @property
    def applicable_rate(self) -> Optional[Decimal]:
        """The negotiated special rate when present, else the standard rate."""
        return self.special_rate if self.special_rate is not None else self.standard_rate


class RatePreview(_WireModel):
    """Result of a rate inquiry for an ad-hoc deposit."""

    interest_rate: Decimal
    maturity_amount: Decimal
    maturity_date: date


class RemoteFieldError(BaseModel):
    """A single structured error returned by a remote deposit service.

    The deposit API reports the machine code under ``code``; older endpoints
    use ``message`` for the same value.
    """

    model_config = ConfigDict(frozen=True)

    field: str = Field(default="", description="Wire name of the offending field")
    code: str = Field(
        validation_alias=AliasChoices("code", "message"),
        description="Machine-readable error code",
    )


# =============================================================================
# FORM MODEL
# =============================================================================


class FormModel(BaseModel):
    """Single source of truth for one wizard invocation.

    Which fields are meaningful depends on ``mode``: ``reference_number`` and
    ``resolved_deal`` belong to DEAL_REFERENCED, ``amount`` and
    ``rate_preview`` to AD_HOC. Everything else is shared.
    """

    model_config = ConfigDict(frozen=True)

    mode: DepositMode = DepositMode.AD_HOC
    reference_number: str = ""
    funding_account_id: str = ""
    repayment_account_id: str = ""
    amount: str = ""
    start_date: date = Field(default_factory=date.today)
    maturity_date: Optional[date] = None
    maturity_instruction: Optional[MaturityInstruction] = None
    remarks: str = ""
    resolved_deal: Optional[DealRecord] = None
    rate_preview: Optional[RatePreview] = None

    @field_validator("maturity_date", "maturity_instruction", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        """Treat an empty picker value as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("reference_number", "funding_account_id", "repayment_account_id", "amount")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    @property
    def is_deal_referenced(self) -> bool:
        return self.mode == DepositMode.DEAL_REFERENCED

    @property
    def number_of_days(self) -> int:
        """Tenor in whole days between start and maturity, 0 when unset."""
        if self.maturity_date is None:
            return 0
        return (self.maturity_date - self.start_date).days

    @property
    def parsed_amount(self) -> Optional[Decimal]:
        """The ad-hoc amount as a Decimal, or None when it does not parse."""
        try:
            value = Decimal(self.amount)
        except (InvalidOperation, ValueError):
            return None
        return value if value.is_finite() else None

    @property
    def effective_amount(self) -> Optional[Decimal]:
        if self.resolved_deal is not None:
            return self.resolved_deal.amount
        return self.parsed_amount

    @property
    def effective_maturity_amount(self) -> Optional[Decimal]:
        if self.resolved_deal is not None:
            return self.resolved_deal.maturity_amount
        if self.rate_preview is not None:
            return self.rate_preview.maturity_amount
        return None

    @property
    def effective_maturity_date(self) -> Optional[date]:
        if self.resolved_deal is not None:
            return self.resolved_deal.maturity_date
        return self.maturity_date


class DepositPreview(BaseModel):
    """Read-only summary shown to the customer before submission."""

    model_config = ConfigDict(frozen=True)

    mode: DepositMode
    reference_number: Optional[str] = None
    funding_account_id: str
    repayment_account_id: str
    currency: str
    amount: Decimal
    start_date: date
    maturity_date: Optional[date]
    number_of_days: int
    maturity_instruction: MaturityInstruction
    interest_rate: Optional[Decimal] = None
    maturity_amount: Optional[Decimal] = None
    remarks: Optional[str] = None


def effective_currency(
    model: FormModel,
    accounts: list[Account],
    default: str = "AED",
) -> str:
    """Currency of the request: the deal's, else the funding account's, else default."""
    if model.resolved_deal is not None:
        return model.resolved_deal.currency
    for account in accounts:
        if account.account_id == model.funding_account_id:
            return account.currency_code
    return default


def build_preview(model: FormModel, currency: str) -> DepositPreview:
    """Derive the pre-submission summary from the merged form state."""
    deal = model.resolved_deal
    if deal is not None:
        interest_rate = deal.applicable_rate
    elif model.rate_preview is not None:
        interest_rate = model.rate_preview.interest_rate
    else:
        interest_rate = None

    return DepositPreview(
        mode=model.mode,
        reference_number=model.reference_number if model.is_deal_referenced else None,
        funding_account_id=model.funding_account_id,
        repayment_account_id=model.repayment_account_id,
        currency=currency,
        amount=model.effective_amount or Decimal("0"),
        start_date=model.start_date,
        maturity_date=model.effective_maturity_date,
        number_of_days=model.number_of_days,
        maturity_instruction=model.maturity_instruction,
        interest_rate=interest_rate,
        maturity_amount=model.effective_maturity_amount,
        remarks=model.remarks or None,
    )


__all__ = [
    "DepositMode",
    "MaturityInstruction",
    "AccountStatus",
    "Account",
    "DealRecord",
    "RatePreview",
    "RemoteFieldError",
    "FormModel",
    "DepositPreview",
    "effective_currency",
    "build_preview",
]
