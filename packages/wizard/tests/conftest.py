"""Shared fixtures for the deposit wizard tests."""

import asyncio
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Optional

import pytest

from deposit_core.exceptions import RemoteServiceError
from deposit_core.models import Account, DealRecord, RatePreview, RemoteFieldError
from deposit_wizard.config import DepositConfig, WizardConfig
from deposit_wizard.interfaces.types import (
    CreateDepositResponse,
    DepositPayload,
    RateInquiryRequest,
)

TODAY = date(2026, 10, 18)


class FakeDepositsService:
    """In-memory deposit services that record every call."""

    def __init__(self, accounts: list[Account]) -> None:
        self.accounts = accounts
        self.deals: dict[str, DealRecord] = {}
        self.deal_delays: dict[str, float] = {}
        self.accounts_error: Optional[RemoteServiceError] = None
        self.deal_errors: dict[str, RemoteServiceError] = {}
        self.validate_error: Optional[RemoteServiceError] = None
        self.rate_error: Optional[RemoteServiceError] = None
        self.create_error: Optional[RemoteServiceError] = None
        self.validate_gate: Optional[asyncio.Event] = None
        self.rate_gate: Optional[asyncio.Event] = None
        self.rate = RatePreview(
            interest_rate=Decimal("4.10"),
            maturity_amount=Decimal("1003.37"),
            maturity_date=TODAY + timedelta(days=30),
        )
        self.create_response = CreateDepositResponse(reference="DEP123", status="CREATED")
        self.calls: list[tuple[str, Any]] = []

    def calls_to(self, operation: str) -> list[Any]:
        return [arg for name, arg in self.calls if name == operation]

    @property
    def operations(self) -> list[str]:
        return [name for name, _ in self.calls]

    async def get_accounts(self) -> list[Account]:
        self.calls.append(("get_accounts", None))
        if self.accounts_error:
            raise self.accounts_error
        return list(self.accounts)

    async def deal_inquiry(self, deal_id: str, customer_key: str) -> DealRecord:
        self.calls.append(("deal_inquiry", deal_id))
        await asyncio.sleep(self.deal_delays.get(deal_id, 0))
        if deal_id in self.deal_errors:
            raise self.deal_errors[deal_id]
        if deal_id not in self.deals:
            raise RemoteServiceError(
                "deal not found",
                operation="deal_inquiry",
                errors=[RemoteFieldError(field="dealId", code="Invalid deal reference")],
            )
        return self.deals[deal_id]

    async def validate_deposit(self, payload: DepositPayload) -> None:
        self.calls.append(("validate_deposit", payload))
        if self.validate_gate is not None:
            await self.validate_gate.wait()
        if self.validate_error:
            raise self.validate_error

    async def rate_inquiry(self, request: RateInquiryRequest) -> RatePreview:
        self.calls.append(("rate_inquiry", request))
        if self.rate_gate is not None:
            await self.rate_gate.wait()
        if self.rate_error:
            raise self.rate_error
        return self.rate

    async def create_deposit(self, payload: DepositPayload) -> CreateDepositResponse:
        self.calls.append(("create_deposit", payload))
        if self.create_error:
            raise self.create_error
        return self.create_response


def make_deal(
    amount: str = "25000",
    currency: str = "USD",
    funding: str = "USD1",
    repayment: Optional[str] = "USD2",
    days: int = 91,
) -> DealRecord:
    return DealRecord(
        amount=Decimal(amount),
        currency=currency,
        funding_account_id=funding,
        repayment_account_id=repayment,
        start_date=TODAY,
        maturity_date=TODAY + timedelta(days=days),
        number_of_days=days,
        standard_rate=Decimal("3.25"),
        special_rate=Decimal("3.50"),
        maturity_amount=Decimal(amount) + Decimal("218.15"),
    )


@pytest.fixture
def accounts() -> list[Account]:
    return [
        Account(account_id="AED1", name="Salary", currency_code="AED", product_code="CCA01",
                available_balance=Decimal("50000")),
        Account(account_id="AED2", name="Savings", currency_code="AED", product_code="CCA01",
                available_balance=Decimal("1000")),
        Account(account_id="USD1", name="Dollar", currency_code="USD", product_code="CCA02",
                available_balance=Decimal("90000")),
        Account(account_id="USD2", name="Dollar 2", currency_code="USD", product_code="CCA02"),
        Account(account_id="OD1", name="Overdraft", currency_code="AED", product_code="CCA09",
                raw_product_id="ODAZA"),
    ]


@pytest.fixture
def service(accounts) -> FakeDepositsService:
    fake = FakeDepositsService(accounts)
    fake.deals["DEAL01"] = make_deal()
    fake.deals["DEAL02"] = make_deal(amount="40000", currency="AED", funding="AED1", repayment=None)
    return fake


@pytest.fixture
def config() -> DepositConfig:
    return DepositConfig(env="test", wizard=WizardConfig(debounce_ms=10, customer_key="CUST001"))
