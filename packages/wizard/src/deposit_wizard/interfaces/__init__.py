"""Service protocol, phase results and wire types for the deposit wizard.

Available Interfaces:
    DepositsServiceProtocol: The remote deposit operations the wizard depends on
    PhaseResult: Standardized result of the preview and submit phases
    PhaseStatus: Enum for phase outcomes
    WizardPhase: Enum for the wizard's edit/preview/completed states
    BusyFlags: Outstanding asynchronous operations

Wire Types:
    DealInquiryRequest, DepositPayload, RateInquiryRequest, CreateDepositResponse
"""

from deposit_wizard.interfaces.base import (
    BusyFlags,
    DepositsServiceProtocol,
    PhaseResult,
    PhaseStatus,
    ResultT,
    WizardPhase,
)
from deposit_wizard.interfaces.types import (
    CreateDepositResponse,
    DealInquiryRequest,
    DepositPayload,
    RateInquiryRequest,
)

__all__ = [
    "ResultT",
    "PhaseStatus",
    "WizardPhase",
    "PhaseResult",
    "BusyFlags",
    "DepositsServiceProtocol",
    "DealInquiryRequest",
    "DepositPayload",
    "RateInquiryRequest",
    "CreateDepositResponse",
]
