"""Request and response types exchanged with the deposit services.

Field names are Python attributes; ``model_dump(by_alias=True)`` produces
the camelCase names the deposit API expects.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from deposit_core.models import MaturityInstruction


class _ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class DealInquiryRequest(_ApiModel):
    """Look up a negotiated deal by its reference."""

    deal_id: str
    customer_key: str


class DepositPayload(_ApiModel):
    """Deposit request sent to both the validate and create operations.

    ``deal_reference`` is present only for deal-referenced requests and
    ``remarks`` only when the customer entered some.
    """

    deal_reference: Optional[str] = None
    funding_account: str
    repayment_account: str
    amount: Decimal = Field(ge=0)
    currency: str
    start_date: date
    number_of_days: int
    maturity_instruction: MaturityInstruction
    remarks: Optional[str] = None

    @field_serializer("amount", when_used="json")
    def serialize_amount(self, amount: Decimal) -> float:
        return float(amount)

    def to_wire(self) -> dict:
        """JSON body with absent optional fields omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RateInquiryRequest(_ApiModel):
    """Ask for the rate and maturity amount of an ad-hoc deposit."""

    deposit_amount: Decimal
    number_of_days: int
    currency: str
    start_date: date

    @field_serializer("deposit_amount", when_used="json")
    def serialize_amount(self, amount: Decimal) -> float:
        return float(amount)


class CreateDepositResponse(_ApiModel):
    """Acknowledgement of a created deposit request."""

    reference: str
    status: str


__all__ = [
    "DealInquiryRequest",
    "DepositPayload",
    "RateInquiryRequest",
    "CreateDepositResponse",
]
