"""Service protocol and result types for the deposit wizard.

The wizard never talks to a transport directly. It depends on
``DepositsServiceProtocol``, a structural interface satisfied by the
httpx-backed ``DepositsApiClient`` and by any test double with matching
async methods - no explicit inheritance required.

Example Usage:
    ```python
    class InMemoryDeposits:
        async def get_accounts(self) -> list[Account]: ...
        async def deal_inquiry(self, deal_id: str, customer_key: str) -> DealRecord: ...
        async def validate_deposit(self, payload: DepositPayload) -> None: ...
        async def rate_inquiry(self, request: RateInquiryRequest) -> RatePreview: ...
        async def create_deposit(self, payload: DepositPayload) -> CreateDepositResponse: ...

    assert isinstance(InMemoryDeposits(), DepositsServiceProtocol)
    ```
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Generic, Optional, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, Field

from deposit_core.models import Account, DealRecord, RatePreview
from deposit_wizard.interfaces.types import (
    CreateDepositResponse,
    DepositPayload,
    RateInquiryRequest,
)


# =============================================================================
# TYPE VARIABLES
# =============================================================================

ResultT = TypeVar("ResultT")
"""Type variable for result data types."""


# =============================================================================
# ENUMERATIONS
# =============================================================================

class PhaseStatus(str, Enum):
    """Outcome of a preview or submit phase."""

    SUCCESS = "success"
    """The phase completed and the wizard moved forward."""

    ERROR = "error"
    """A remote call failed; the wizard stayed in an editable state."""

    BLOCKED = "blocked"
    """A local gate (validation, consent, busy) stopped the phase before any remote call."""


class WizardPhase(str, Enum):
    """Where the customer is in the wizard."""

    EDIT = "edit"
    PREVIEW = "preview"
    COMPLETED = "completed"


# =============================================================================
# RESULT MODELS
# =============================================================================

class PhaseResult(BaseModel, Generic[ResultT]):
    """Standardized result of a wizard phase trigger.

    Phase triggers never raise for remote or validation failures; they
    return one of these with a user-facing notice instead.

    Attributes:
        status: SUCCESS, ERROR or BLOCKED
        data: The phase output (a DepositPreview or CreateDepositResponse)
        notice: Single user-facing message describing a failure
        field_errors: Field errors produced by this phase, if any
    """

    status: PhaseStatus = Field(
        default=PhaseStatus.SUCCESS,
        description="Outcome of the phase",
    )
    data: Optional[Any] = Field(
        default=None,
        description="The result data of the phase",
    )
    notice: Optional[str] = Field(
        default=None,
        description="User-facing notice when the phase did not succeed",
    )
    field_errors: dict[str, str] = Field(
        default_factory=dict,
        description="Field errors produced by the phase",
    )

    @property
    def is_success(self) -> bool:
        return self.status == PhaseStatus.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.status == PhaseStatus.ERROR

    @property
    def is_blocked(self) -> bool:
        return self.status == PhaseStatus.BLOCKED

    @classmethod
    def success(cls, data: Any) -> PhaseResult[Any]:
        return cls(status=PhaseStatus.SUCCESS, data=data)

    @classmethod
    def error(
        cls,
        notice: str,
        *,
        field_errors: Optional[dict[str, str]] = None,
    ) -> PhaseResult[Any]:
        return cls(
            status=PhaseStatus.ERROR,
            notice=notice,
            field_errors=field_errors or {},
        )

    @classmethod
    def blocked(
        cls,
        notice: str,
        *,
        field_errors: Optional[dict[str, str]] = None,
    ) -> PhaseResult[Any]:
        return cls(
            status=PhaseStatus.BLOCKED,
            notice=notice,
            field_errors=field_errors or {},
        )


class BusyFlags(BaseModel):
    """Which asynchronous operations are currently outstanding."""

    resolving_deal: bool = False
    validating: bool = False
    fetching_rate: bool = False
    submitting: bool = False
    loading_accounts: bool = False

    @property
    def is_busy(self) -> bool:
        return (
            self.resolving_deal
            or self.validating
            or self.fetching_rate
            or self.submitting
            or self.loading_accounts
        )


# =============================================================================
# SERVICE PROTOCOL
# =============================================================================

@runtime_checkable
class DepositsServiceProtocol(Protocol):
    """Contract for the remote deposit services used by the wizard.

    Every method is async. Failures are raised as
    ``deposit_core.exceptions.RemoteServiceError``, carrying the ordered
    structured field errors when the service returned any and an empty
    list for network or otherwise unstructured failures.
    """

    async def get_accounts(self) -> list[Account]:
        """Fetch the customer's unfiltered account catalog."""
        ...

    async def deal_inquiry(self, deal_id: str, customer_key: str) -> DealRecord:
        """Resolve a deal reference into its negotiated terms."""
        ...

    async def validate_deposit(self, payload: DepositPayload) -> None:
        """Check a deposit request without creating it."""
        ...

    async def rate_inquiry(self, request: RateInquiryRequest) -> RatePreview:
        """Quote the rate and maturity amount for an ad-hoc deposit."""
        ...

    async def create_deposit(self, payload: DepositPayload) -> CreateDepositResponse:
        """Create the deposit request. Irreversible."""
        ...


__all__ = [
    "ResultT",
    "PhaseStatus",
    "WizardPhase",
    "PhaseResult",
    "BusyFlags",
    "DepositsServiceProtocol",
]
