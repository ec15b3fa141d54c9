"""Tests for the form validation engine."""

import re
from datetime import date, timedelta
from decimal import Decimal

import pytest

from deposit_core.models import (
    Account,
    DealRecord,
    DepositMode,
    FormModel,
    MaturityInstruction,
    RemoteFieldError,
)
from deposit_core.validation import (
    GENERIC_ERROR_MESSAGE,
    FieldRule,
    map_remote_errors,
    validate_field,
    validate_form,
)

TODAY = date(2026, 10, 18)


@pytest.fixture
def ad_hoc_form() -> FormModel:
    """A complete, submittable ad-hoc form."""
    return FormModel(
        mode=DepositMode.AD_HOC,
        funding_account_id="A1",
        repayment_account_id="A3",
        amount="1000",
        start_date=TODAY,
        maturity_date=TODAY + timedelta(days=30),
        maturity_instruction=MaturityInstruction.PRINCIPAL_ROLLOVER,
    )


@pytest.fixture
def accounts() -> list[Account]:
    return [
        Account(account_id="A1", currency_code="AED", product_code="CCA01"),
        Account(account_id="A3", currency_code="AED", product_code="CCA01"),
        Account(account_id="U1", currency_code="USD", product_code="CCA01"),
        Account(account_id="F1", currency_code="AED", product_code="CCA01", debit_frozen=True),
    ]


class TestValidateField:
    """Test suite for single-field rules."""

    def test_required(self, ad_hoc_form):
        assert validate_field("funding_account_id", "", ad_hoc_form) == "Funding account is required"
        assert validate_field("maturity_instruction", None, ad_hoc_form) == (
            "Maturity instruction is required"
        )

    def test_reference_number_pattern(self, ad_hoc_form):
        assert validate_field("reference_number", "DEAL-01", ad_hoc_form) == (
            "Reference number format is invalid"
        )
        assert validate_field("reference_number", "DEAL01", ad_hoc_form) is None

    def test_reference_number_length(self, ad_hoc_form):
        assert validate_field("reference_number", "A" * 50, ad_hoc_form) is None
        assert validate_field("reference_number", "A" * 51, ad_hoc_form) == (
            "Reference number must be no more than 50 characters"
        )

    @pytest.mark.parametrize("value", ["0", "-5", "abc", "NaN"])
    def test_amount_must_be_positive(self, ad_hoc_form, value):
        assert validate_field("amount", value, ad_hoc_form) == "Amount must be greater than 0"

    def test_amount_fraction_is_valid(self, ad_hoc_form):
        assert validate_field("amount", "0.50", ad_hoc_form) is None

    def test_remarks_optional_with_max_length(self, ad_hoc_form):
        assert validate_field("remarks", "", ad_hoc_form) is None
        assert validate_field("remarks", "x" * 500, ad_hoc_form) is None
        assert validate_field("remarks", "x" * 501, ad_hoc_form) == (
            "Remarks must be no more than 500 characters"
        )

    def test_unknown_field_has_no_rules(self, ad_hoc_form):
        assert validate_field("colour", "blue", ad_hoc_form) is None

    def test_custom_rule_table_numeric_bounds(self, ad_hoc_form):
        rules = {
            "amount": FieldRule(
                required=True,
                min_value=Decimal("1000"),
                max_value=Decimal("50000"),
            )
        }
        assert validate_field("amount", "999", ad_hoc_form, rules=rules) == (
            "Amount must be at least 1000"
        )
        assert validate_field("amount", "50001", ad_hoc_form, rules=rules) == (
            "Amount must be no more than 50000"
        )
        assert validate_field("amount", "lots", ad_hoc_form, rules=rules) == (
            "Amount must be a number"
        )
        assert validate_field("amount", "1000", ad_hoc_form, rules=rules) is None

    def test_custom_rule_table_min_length(self, ad_hoc_form):
        rules = {"remarks": FieldRule(min_length=3, pattern=re.compile(r"^[a-z ]+$"))}
        assert validate_field("remarks", "ab", ad_hoc_form, rules=rules) == (
            "Remarks must be at least 3 characters"
        )
        assert validate_field("remarks", "ABC", ad_hoc_form, rules=rules) == (
            "Remarks format is invalid"
        )


class TestMaturityDate:
    """Test suite for the maturity date window."""

    def test_six_days_is_too_short(self, ad_hoc_form):
        result = validate_field(
            "maturity_date", TODAY + timedelta(days=6), ad_hoc_form, today=TODAY
        )
        assert result == "Maturity date must be at least 7 days from today"

    def test_seven_days_is_allowed(self, ad_hoc_form):
        result = validate_field(
            "maturity_date", TODAY + timedelta(days=7), ad_hoc_form, today=TODAY
        )
        assert result is None

    def test_365_days_is_allowed(self, ad_hoc_form):
        result = validate_field(
            "maturity_date", TODAY + timedelta(days=365), ad_hoc_form, today=TODAY
        )
        assert result is None

    def test_366_days_is_too_long(self, ad_hoc_form):
        result = validate_field(
            "maturity_date", TODAY + timedelta(days=366), ad_hoc_form, today=TODAY
        )
        assert result == "Maturity date cannot exceed 365 days"

    def test_not_after_start_date(self, ad_hoc_form):
        result = validate_field("maturity_date", TODAY, ad_hoc_form, today=TODAY)
        assert result == "Maturity date must be after start date"

    def test_window_measured_from_today_not_start(self):
        """A start date in the past does not widen the window."""
        form = FormModel(start_date=TODAY - timedelta(days=10))
        result = validate_field(
            "maturity_date", TODAY + timedelta(days=3), form, today=TODAY
        )
        assert result == "Maturity date must be at least 7 days from today"

    def test_month_boundary(self):
        form = FormModel(start_date=date(2026, 1, 25))
        today = date(2026, 1, 25)
        assert validate_field("maturity_date", date(2026, 2, 1), form, today=today) is None
        assert validate_field("maturity_date", date(2026, 1, 31), form, today=today) == (
            "Maturity date must be at least 7 days from today"
        )

    def test_iso_string_value(self, ad_hoc_form):
        value = (TODAY + timedelta(days=30)).isoformat()
        assert validate_field("maturity_date", value, ad_hoc_form, today=TODAY) is None

    def test_unparseable_string(self, ad_hoc_form):
        result = validate_field("maturity_date", "2026-02-30", ad_hoc_form, today=TODAY)
        assert result == "Maturity date is not a valid date"


class TestValidateForm:
    """Test suite for mode-aware form validation."""

    def test_valid_ad_hoc_form(self, ad_hoc_form):
        assert validate_form(ad_hoc_form, today=TODAY) == {}

    def test_empty_ad_hoc_form(self):
        errors = validate_form(FormModel(start_date=TODAY), today=TODAY)
        assert set(errors) == {
            "funding_account_id",
            "repayment_account_id",
            "amount",
            "maturity_date",
            "maturity_instruction",
        }

    def test_deal_mode_requires_reference_only(self):
        """Amount and dates are not checked in deal-referenced mode."""
        form = FormModel(mode=DepositMode.DEAL_REFERENCED, start_date=TODAY)
        errors = validate_form(form, today=TODAY)

        assert errors["reference_number"] == "Reference number is required"
        assert "amount" not in errors
        assert "start_date" not in errors
        assert "maturity_date" not in errors

    def test_valid_deal_form(self):
        deal = DealRecord(
            amount=Decimal("25000"),
            currency="AED",
            funding_account_id="A1",
            start_date=TODAY,
            maturity_date=TODAY + timedelta(days=90),
            number_of_days=90,
            maturity_amount=Decimal("25500"),
        )
        form = FormModel(
            mode=DepositMode.DEAL_REFERENCED,
            reference_number="DEAL01",
            funding_account_id="A1",
            repayment_account_id="A1",
            maturity_instruction=MaturityInstruction.PRINCIPAL,
            start_date=TODAY,
            resolved_deal=deal,
        )
        assert validate_form(form, today=TODAY) == {}

    def test_remarks_checked_when_present(self, ad_hoc_form):
        form = ad_hoc_form.model_copy(update={"remarks": "x" * 501})
        errors = validate_form(form, today=TODAY)
        assert list(errors) == ["remarks"]

    def test_account_checks_with_catalog(self, ad_hoc_form, accounts):
        assert validate_form(ad_hoc_form, today=TODAY, accounts=accounts) == {}

        mismatched = ad_hoc_form.model_copy(update={"repayment_account_id": "U1"})
        errors = validate_form(mismatched, today=TODAY, accounts=accounts)
        assert errors == {
            "repayment_account_id": "Repayment account currency must match the funding account"
        }

    def test_frozen_funding_account(self, ad_hoc_form, accounts):
        frozen = ad_hoc_form.model_copy(update={"funding_account_id": "F1"})
        errors = validate_form(frozen, today=TODAY, accounts=accounts)
        assert errors == {"funding_account_id": "Selected account is frozen for debits"}

    def test_rule_errors_take_precedence(self, accounts):
        form = FormModel(start_date=TODAY, repayment_account_id="missing")
        errors = validate_form(form, today=TODAY, accounts=accounts)
        assert errors["funding_account_id"] == "Funding account is required"
        assert errors["repayment_account_id"] == "Selected account not found"


class TestMapRemoteErrors:
    """Test suite for remote error translation."""

    def test_known_codes(self):
        errors = map_remote_errors(
            [
                RemoteFieldError(field="amount", code="deposit.amount.exceeds-balance"),
                RemoteFieldError(field="dealReference", code="Invalid deal reference"),
            ]
        )
        assert errors == {
            "amount": "Amount exceeds available balance",
            "reference_number": "Deal reference number is invalid or expired",
        }

    def test_unknown_code_is_generic(self):
        errors = map_remote_errors([RemoteFieldError(field="remarks", code="weird")])
        assert errors == {"remarks": GENERIC_ERROR_MESSAGE}

    def test_unknown_field_passes_through(self):
        errors = map_remote_errors([RemoteFieldError(field="branch", code="Pattern")])
        assert errors == {"branch": "Invalid format or special characters not allowed"}

    def test_first_error_per_field_wins(self):
        errors = map_remote_errors(
            [
                RemoteFieldError(field="maturityDate", code="deposit.maturityDate.exceeds-max-tenor"),
                RemoteFieldError(field="numberOfDays", code="weird"),
            ]
        )
        assert errors == {"maturity_date": "Maturity date exceeds maximum allowed period"}

    def test_message_key_accepted(self):
        error = RemoteFieldError.model_validate(
            {"field": "amount", "message": "deposit.duplicate-request"}
        )
        assert map_remote_errors([error]) == {
            "amount": "A similar deposit request already exists"
        }

    def test_empty(self):
        assert map_remote_errors([]) == {}
