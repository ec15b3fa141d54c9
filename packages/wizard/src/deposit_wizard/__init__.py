"""Deposit Wizard - Guided creation of fixed-term deposit requests."""

from deposit_wizard.client import DepositsApiClient
from deposit_wizard.config import (
    ApiConfig,
    DepositConfig,
    WizardConfig,
    configure_logging,
)
from deposit_wizard.orchestrator import SubmissionOrchestrator
from deposit_wizard.resolver import DealReferenceResolver, ResolverState
from deposit_wizard.wizard import DepositWizard

__version__ = "0.1.0"

__all__ = [
    "ApiConfig",
    "DepositConfig",
    "WizardConfig",
    "configure_logging",
    "DepositsApiClient",
    "DealReferenceResolver",
    "ResolverState",
    "SubmissionOrchestrator",
    "DepositWizard",
]
