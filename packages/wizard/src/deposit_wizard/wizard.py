"""The deposit wizard facade exposed to the UI layer.

``DepositWizard`` owns one form session, one deal reference resolver and one
submission orchestrator. The UI reads snapshots (form model, field errors,
busy flags, account lists) and calls the five form actions plus the two
phase triggers. Every action is applied on the event loop that owns the
wizard, so model mutations are always serialized.

Example:
    async with DepositsApiClient(config.api) as api:
        wizard = DepositWizard(api, config=config)
        await wizard.load_accounts()
        wizard.set_field("funding_account_id", "1001")
        result = await wizard.preview()
        if result.is_success:
            wizard.set_consent(True)
            await wizard.submit()
"""

from datetime import date
from typing import Any, Callable, Optional

import structlog

from deposit_core.accounts import eligible_accounts, repayment_candidates
from deposit_core.exceptions import FormStateError, RemoteServiceError
from deposit_core.form_state import (
    FormAction,
    FormSession,
    Reset,
    SetDealData,
    SetField,
    SetPreviewData,
    ToggleMode,
)
from deposit_core.models import (
    Account,
    DealRecord,
    DepositMode,
    FormModel,
    RatePreview,
)
from deposit_wizard.config import DepositConfig
from deposit_wizard.interfaces.base import (
    BusyFlags,
    DepositsServiceProtocol,
    PhaseResult,
    WizardPhase,
)
from deposit_wizard.interfaces.types import CreateDepositResponse, DepositPayload
from deposit_wizard.orchestrator import SubmissionOrchestrator
from deposit_wizard.resolver import DealReferenceResolver

logger = structlog.get_logger()

ACCOUNTS_UNAVAILABLE_NOTICE = "Your accounts could not be loaded. Please try again."


class DepositWizard:
    """One invocation of the new deposit wizard.

    Args:
        service: Remote deposit services.
        config: Wizard and API configuration. Defaults to ``DepositConfig()``.
        customer_key: Overrides ``config.wizard.customer_key``.
        clock: Source of "today", for start dates and the tenor window.

    Must be created and used from within a running event loop.
    """

    def __init__(
        self,
        service: DepositsServiceProtocol,
        *,
        config: Optional[DepositConfig] = None,
        customer_key: Optional[str] = None,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self.config = config or DepositConfig()
        self._service = service
        self.session = FormSession(clock=clock)
        self.resolver = DealReferenceResolver(
            service,
            customer_key if customer_key is not None else self.config.wizard.customer_key,
            debounce_seconds=self.config.wizard.debounce_seconds,
            on_resolved=self._deal_resolved,
            on_failed=self._deal_failed,
            on_cleared=self._deal_cleared,
        )
        self.orchestrator = SubmissionOrchestrator(
            service,
            self.session,
            self.resolver,
            default_currency=self.config.wizard.default_currency,
        )
        self.loading_accounts = False
        self.notice: Optional[str] = None

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    @property
    def model(self) -> FormModel:
        return self.session.model

    @property
    def errors(self) -> dict[str, str]:
        return self.session.errors.snapshot()

    @property
    def phase(self) -> WizardPhase:
        return self.orchestrator.phase

    @property
    def busy(self) -> BusyFlags:
        return BusyFlags(
            resolving_deal=self.resolver.is_busy,
            validating=self.orchestrator.validating,
            fetching_rate=self.orchestrator.fetching_rate,
            submitting=self.orchestrator.submitting,
            loading_accounts=self.loading_accounts,
        )

    @property
    def result(self) -> Optional[CreateDepositResponse]:
        return self.orchestrator.result

    @property
    def currency(self) -> str:
        return self.orchestrator.currency()

    def funding_accounts(self) -> list[Account]:
        deal = self.model.resolved_deal
        return eligible_accounts(self.session.accounts, deal.currency if deal else None)

    def repayment_accounts(self) -> list[Account]:
        return repayment_candidates(
            self.model.funding_account_id,
            self.funding_accounts(),
            self.session.accounts,
        )

    def build_payload(self) -> DepositPayload:
        return self.orchestrator.build_payload()

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    async def load_accounts(self) -> list[Account]:
        """Fetch the account catalog. A failure leaves the catalog empty."""
        self.loading_accounts = True
        try:
            accounts = await self._service.get_accounts()
        except RemoteServiceError as e:
            logger.warning("accounts_load_failed", error=str(e))
            self.notice = ACCOUNTS_UNAVAILABLE_NOTICE
            return []
        finally:
            self.loading_accounts = False
        self.session.accounts = list(accounts)
        logger.info("accounts_loaded", count=len(accounts))
        return self.session.accounts

    # -------------------------------------------------------------------------
    # Form actions
    # -------------------------------------------------------------------------

    def dispatch(self, action: FormAction) -> FormModel:
        if self.orchestrator.is_completed:
            raise FormStateError(
                "The deposit request has already been submitted",
                action=type(action).__name__,
                mode=self.model.mode.value,
            )
        model = self.session.dispatch(action)
        # The previewed terms no longer match the form.
        if self.orchestrator.phase == WizardPhase.PREVIEW:
            self.orchestrator.edit()
        return model

    def set_field(self, field: str, value: Any) -> FormModel:
        model = self.dispatch(SetField(field, value))
        if field == "reference_number":
            self.resolver.set_input(model.reference_number)
        return model

    def set_reference_number(self, value: str) -> FormModel:
        return self.set_field("reference_number", value)

    def set_deal_data(self, deal: DealRecord) -> FormModel:
        return self.dispatch(SetDealData(deal))

    def set_preview_data(self, preview: RatePreview) -> FormModel:
        return self.dispatch(SetPreviewData(preview))

    def toggle_mode(self, mode: DepositMode) -> FormModel:
        """Switch entry mode, discarding everything entered so far."""
        model = self.dispatch(ToggleMode(mode))
        self.resolver.reset()
        self.orchestrator.restart()
        self.notice = None
        return model

    def reset(self) -> FormModel:
        model = self.dispatch(Reset())
        self.resolver.reset()
        self.orchestrator.restart()
        self.notice = None
        return model

    # -------------------------------------------------------------------------
    # Phases
    # -------------------------------------------------------------------------

    async def preview(self) -> PhaseResult:
        result = await self.orchestrator.preview()
        self.notice = result.notice
        return result

    def edit(self) -> None:
        self.orchestrator.edit()

    def set_consent(self, accepted: bool) -> None:
        self.orchestrator.set_consent(accepted)

    async def submit(self) -> PhaseResult:
        result = await self.orchestrator.submit()
        self.notice = result.notice
        return result

    # -------------------------------------------------------------------------
    # Resolver callbacks
    # -------------------------------------------------------------------------

    def _deal_resolved(self, reference: str, deal: DealRecord) -> None:
        if not self.model.is_deal_referenced or self.orchestrator.is_completed:
            return
        self.session.dispatch(SetDealData(deal))
        self.session.errors.clear("reference_number")

    def _deal_failed(self, reference: str, message: str) -> None:
        self.session.errors.set("reference_number", message)

    def _deal_cleared(self) -> None:
        self.session.errors.clear("reference_number")


__all__ = [
    "DepositWizard",
]
