"""Preview and submit phases of the deposit wizard.

The orchestrator reads the merged form, sequences the remote calls of each
phase and writes results and errors back into the form session:

- preview: local validation, then validate, then (ad-hoc only) rate
  inquiry. Rate inquiry is issued only after validate succeeds.
- submit: requires the preview state and explicit consent, then create.

Remote failures never propagate out of a phase. Structured errors are
merged into the session's field errors; unstructured ones only produce a
notice. Either way the wizard is left in an editable state.

A preview whose form was edited, toggled or reset while a remote call was
outstanding is discarded, and submit only sends the payload that was
previewed.
"""

from typing import Optional

import structlog

from deposit_core.accounts import eligible_accounts
from deposit_core.exceptions import RemoteServiceError
from deposit_core.form_state import FormSession, SetPreviewData
from deposit_core.models import DepositPreview, build_preview, effective_currency
from deposit_core.validation import map_remote_errors, validate_form
from deposit_wizard.interfaces.base import (
    DepositsServiceProtocol,
    PhaseResult,
    WizardPhase,
)
from deposit_wizard.interfaces.types import (
    CreateDepositResponse,
    DepositPayload,
    RateInquiryRequest,
)
from deposit_wizard.resolver import DealReferenceResolver

logger = structlog.get_logger()

VALIDATION_NOTICE = "Please fix the errors before previewing."
DEAL_ERROR_NOTICE = "Please fix the deal reference error before previewing."
DEAL_PENDING_NOTICE = "Please wait for the deal reference to be verified."
DEAL_UNVERIFIED_MESSAGE = "Deal reference has not been verified"
PREVIEW_FAILED_NOTICE = "Please review and fix the highlighted errors."
SERVICE_UNAVAILABLE_NOTICE = "The deposit service is unavailable. Please try again."
PREVIEW_REQUIRED_NOTICE = "Please preview the deposit before submitting."
CONSENT_NOTICE = "Please accept the terms and conditions to proceed."
SUBMIT_FAILED_NOTICE = (
    "There was an error submitting your deposit request. Please review and try again."
)
BUSY_NOTICE = "Another request is in progress."
STALE_PREVIEW_NOTICE = "The form changed while the preview was loading. Please preview again."


class SubmissionOrchestrator:
    """Runs the preview and submit phases over a form session.

    Args:
        service: Remote deposit services.
        session: The wizard's form model and error store.
        resolver: Deal reference resolver, consulted in deal-referenced mode.
        default_currency: Currency used before a deal or funding account fixes it.
    """

    def __init__(
        self,
        service: DepositsServiceProtocol,
        session: FormSession,
        resolver: Optional[DealReferenceResolver] = None,
        *,
        default_currency: str = "AED",
    ) -> None:
        self._service = service
        self._session = session
        self._resolver = resolver
        self._default_currency = default_currency

        self.phase = WizardPhase.EDIT
        self.consent = False
        self.preview_data: Optional[DepositPreview] = None
        self.result: Optional[CreateDepositResponse] = None
        self._previewed_payload: Optional[DepositPayload] = None

        self.validating = False
        self.fetching_rate = False
        self.submitting = False

    @property
    def is_busy(self) -> bool:
        return self.validating or self.fetching_rate or self.submitting

    @property
    def is_completed(self) -> bool:
        return self.phase == WizardPhase.COMPLETED

    # -------------------------------------------------------------------------
    # Derived state
    # -------------------------------------------------------------------------

    def currency(self) -> str:
        model = self._session.model
        funding_accounts = eligible_accounts(
            self._session.accounts,
            model.resolved_deal.currency if model.resolved_deal else None,
        )
        return effective_currency(model, funding_accounts, self._default_currency)

    def build_payload(self) -> DepositPayload:
        """Build the request body shared by the validate and create calls."""
        model = self._session.model
        if model.is_deal_referenced:
            deal_reference = model.reference_number
            amount = model.resolved_deal.amount if model.resolved_deal else 0
        else:
            deal_reference = None
            amount = model.parsed_amount or 0

        return DepositPayload(
            deal_reference=deal_reference,
            funding_account=model.funding_account_id,
            repayment_account=model.repayment_account_id,
            amount=amount,
            currency=self.currency(),
            start_date=model.start_date,
            number_of_days=model.number_of_days,
            maturity_instruction=model.maturity_instruction,
            remarks=model.remarks or None,
        )

    # -------------------------------------------------------------------------
    # Gates
    # -------------------------------------------------------------------------

    def _check_local(self) -> Optional[PhaseResult]:
        session = self._session
        errors = validate_form(
            session.model,
            today=session.today(),
            accounts=session.accounts or None,
        )
        if errors:
            session.errors.replace(errors)
            logger.info("local_validation_failed", fields=sorted(errors))
            return PhaseResult.blocked(VALIDATION_NOTICE, field_errors=errors)

        if not session.model.is_deal_referenced:
            return None
        if self._resolver is not None:
            if self._resolver.has_error:
                return PhaseResult.blocked(DEAL_ERROR_NOTICE)
            if self._resolver.is_busy:
                return PhaseResult.blocked(DEAL_PENDING_NOTICE)
        if session.model.resolved_deal is None:
            unverified = {"reference_number": DEAL_UNVERIFIED_MESSAGE}
            session.errors.merge(unverified)
            return PhaseResult.blocked(DEAL_ERROR_NOTICE, field_errors=unverified)
        return None

    def _remote_failure(self, error: RemoteServiceError, notice: str) -> PhaseResult:
        if not error.is_structured:
            logger.warning("remote_call_unstructured_failure", operation=error.operation)
            return PhaseResult.error(SERVICE_UNAVAILABLE_NOTICE)
        mapped = map_remote_errors(error.errors)
        self._session.errors.merge(mapped)
        return PhaseResult.error(notice, field_errors=mapped)

    # -------------------------------------------------------------------------
    # Phases
    # -------------------------------------------------------------------------

    async def preview(self) -> PhaseResult:
        """Validate the request remotely and enter the preview state."""
        if self.is_completed:
            return PhaseResult.blocked("The deposit request has already been submitted.")
        if self.is_busy:
            return PhaseResult.blocked(BUSY_NOTICE)
        self.edit()
        blocked = self._check_local()
        if blocked is not None:
            return blocked

        session = self._session
        snapshot = session.model
        payload = self.build_payload()
        logger.info("preview_started", mode=snapshot.mode.value, currency=payload.currency)

        try:
            self.validating = True
            try:
                await self._service.validate_deposit(payload)
            finally:
                self.validating = False
            if session.model != snapshot:
                return self._stale_preview("validate_deposit")

            if not snapshot.is_deal_referenced:
                self.fetching_rate = True
                try:
                    rate = await self._service.rate_inquiry(
                        RateInquiryRequest(
                            deposit_amount=payload.amount,
                            number_of_days=payload.number_of_days,
                            currency=payload.currency,
                            start_date=payload.start_date,
                        )
                    )
                finally:
                    self.fetching_rate = False
                if session.model != snapshot:
                    return self._stale_preview("rate_inquiry")
                session.dispatch(SetPreviewData(rate))
        except RemoteServiceError as e:
            if session.model != snapshot:
                return self._stale_preview(e.operation or "preview")
            logger.info("preview_failed", operation=e.operation, error_count=len(e.errors))
            return self._remote_failure(e, PREVIEW_FAILED_NOTICE)

        preview_data = build_preview(session.model, payload.currency)
        session.errors.clear()
        self.preview_data = preview_data
        self._previewed_payload = payload
        self.consent = False
        self.phase = WizardPhase.PREVIEW
        logger.info("preview_ready", amount=str(payload.amount), days=payload.number_of_days)
        return PhaseResult.success(preview_data)

    def _stale_preview(self, operation: str) -> PhaseResult:
        # The form was edited, toggled or reset while the call was outstanding.
        logger.info("stale_preview_discarded", operation=operation)
        return PhaseResult.blocked(STALE_PREVIEW_NOTICE)

    def edit(self) -> None:
        """Leave the preview state; entered data is kept."""
        if self.phase == WizardPhase.PREVIEW:
            self.phase = WizardPhase.EDIT
        self.consent = False
        self.preview_data = None
        self._previewed_payload = None

    def set_consent(self, accepted: bool) -> None:
        self.consent = accepted

    def restart(self) -> None:
        """Back to a fresh edit state, e.g. after a mode toggle."""
        self.phase = WizardPhase.EDIT
        self.consent = False
        self.preview_data = None
        self._previewed_payload = None
        self.result = None

    async def submit(self) -> PhaseResult:
        """Create the deposit request. Requires preview state and consent."""
        if self.phase != WizardPhase.PREVIEW:
            return PhaseResult.blocked(PREVIEW_REQUIRED_NOTICE)
        if not self.consent:
            return PhaseResult.blocked(CONSENT_NOTICE)
        if self.is_busy:
            return PhaseResult.blocked(BUSY_NOTICE)
        blocked = self._check_local()
        if blocked is not None:
            self.edit()
            return blocked

        payload = self.build_payload()
        if payload != self._previewed_payload:
            logger.info("submit_payload_changed_since_preview")
            self.edit()
            return PhaseResult.blocked(PREVIEW_REQUIRED_NOTICE)
        logger.info("submit_started", mode=self._session.model.mode.value)
        self.submitting = True
        try:
            response = await self._service.create_deposit(payload)
        except RemoteServiceError as e:
            logger.info("submit_failed", error_count=len(e.errors))
            return self._remote_failure(e, SUBMIT_FAILED_NOTICE)
        finally:
            self.submitting = False

        self.phase = WizardPhase.COMPLETED
        self.result = response
        logger.info("deposit_created", reference=response.reference, status=response.status)
        return PhaseResult.success(response)


__all__ = [
    "SubmissionOrchestrator",
]
