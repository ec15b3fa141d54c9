"""Account eligibility rules for funding and repaying a term deposit.

Derives the funding and repayment account lists shown by the wizard from
the unfiltered account catalog. Everything here is pure: lists are
recomputed on each relevant state change rather than cached.
"""

from decimal import Decimal
from typing import Optional

from deposit_core.models import Account, AccountStatus

SUPPORTED_CURRENCIES: frozenset[str] = frozenset({"AED", "USD", "SAR", "EUR"})

# Current-account products carry this family code in their product id.
DEPOSIT_ELIGIBLE_PRODUCT_FAMILY = "CCA"

EXCLUDED_PRODUCTS: frozenset[str] = frozenset({"ODAZA"})


def is_eligible(account: Account) -> bool:
    """Check whether an account may fund or receive a term deposit."""
    product = account.raw_product_id or account.product_code
    return (
        account.status == AccountStatus.ACTIVE.value
        and account.currency_code in SUPPORTED_CURRENCIES
        and DEPOSIT_ELIGIBLE_PRODUCT_FAMILY in account.product_code
        and product not in EXCLUDED_PRODUCTS
        and not account.debit_frozen
    )


def sort_accounts(accounts: list[Account]) -> list[Account]:
    """Order accounts Active first, then by account identifier."""
    return sorted(accounts, key=lambda a: (not a.is_active, a.account_id))


def filter_by_currency(accounts: list[Account], currency: str) -> list[Account]:
    return [a for a in accounts if a.currency_code == currency]


def eligible_accounts(
    raw_accounts: list[Account],
    currency_constraint: Optional[str] = None,
) -> list[Account]:
    """Return the ordered list of accounts eligible to fund a deposit.

    Args:
        raw_accounts: The unfiltered account catalog.
        currency_constraint: When a deal fixes the currency, only accounts in
            that exact currency are eligible.

    Returns:
        Eligible accounts, Active first and then by account identifier.
    """
    eligible = [a for a in raw_accounts if is_eligible(a)]
    if currency_constraint:
        eligible = filter_by_currency(eligible, currency_constraint)
    return sort_accounts(eligible)


def find_account(accounts: list[Account], account_id: str) -> Optional[Account]:
    if not account_id:
        return None
    return next((a for a in accounts if a.account_id == account_id), None)


def account_currency(accounts: list[Account], account_id: str) -> str:
    """Currency of the given account, or an empty string when unknown."""
    account = find_account(accounts, account_id)
    return account.currency_code if account else ""


def account_balance(accounts: list[Account], account_id: str) -> Decimal:
    account = find_account(accounts, account_id)
    return account.available_balance if account else Decimal("0")


def repayment_candidates(
    funding_account_id: str,
    all_eligible: list[Account],
    raw_accounts: list[Account],
) -> list[Account]:
    """Accounts that may receive the matured deposit.

    The funding account's currency is resolved from the raw catalog and the
    eligible list is narrowed to that currency. Empty when the funding
    account is unset or unknown.
    """
    funding = find_account(raw_accounts, funding_account_id)
    if funding is None:
        return []
    return sort_accounts(filter_by_currency(all_eligible, funding.currency_code))


def format_account_display(account: Account) -> str:
    """Render an account as ``Name (id) - CUR 1,234.50`` for pickers."""
    return (
        f"{account.name} ({account.account_id}) - "
        f"{account.currency_code} {account.available_balance:,.2f}"
    )


def validate_account_selection(
    accounts: list[Account],
    account_id: str,
    check_debit_frozen: bool = True,
) -> Optional[str]:
    """Check a selected account against the catalog.

    Returns:
        An error message, or None when the selection is usable.
    """
    account = find_account(accounts, account_id)
    if account is None:
        return "Selected account not found"
    if not account.is_active:
        return "Selected account is not active"
    if check_debit_frozen and account.debit_frozen:
        return "Selected account is frozen for debits"
    return None


__all__ = [
    "SUPPORTED_CURRENCIES",
    "DEPOSIT_ELIGIBLE_PRODUCT_FAMILY",
    "EXCLUDED_PRODUCTS",
    "is_eligible",
    "sort_accounts",
    "filter_by_currency",
    "eligible_accounts",
    "find_account",
    "account_currency",
    "account_balance",
    "repayment_candidates",
    "format_account_display",
    "validate_account_selection",
]
