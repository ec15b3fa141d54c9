"""Debounced deal reference lookup.

Turns the stream of values typed into the deal reference field into at most
one deal inquiry per pause in typing, and guarantees that the latest input
wins even when responses arrive out of order.

State machine:

    IDLE --input--> PENDING --timer fires--> IN_FLIGHT --> RESOLVED | FAILED
      ^                |
      +--empty input---+   (from any state)

Every dispatched request gets a number from a monotonic sequence. A response
is applied only if its number is still the latest and its originating input
still equals the current input; otherwise it is dropped without touching
any state. In-flight requests are never cancelled, only ignored.
"""

import asyncio
from enum import Enum
from typing import Callable, Optional

import structlog

from deposit_core.exceptions import RemoteServiceError
from deposit_core.models import DealRecord
from deposit_core.validation import ERROR_MESSAGES
from deposit_wizard.interfaces.base import DepositsServiceProtocol

logger = structlog.get_logger()

DEFAULT_DEBOUNCE_SECONDS = 0.5
INVALID_REFERENCE_MESSAGE = "Invalid deal reference"


class ResolverState(str, Enum):
    """Lifecycle of the deal reference input."""

    IDLE = "idle"
    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    RESOLVED = "resolved"
    FAILED = "failed"


def lookup_error_message(error: RemoteServiceError) -> str:
    """Message for a failed lookup, taken from the first structured error."""
    first = error.first_error
    if first is None or not first.code:
        return INVALID_REFERENCE_MESSAGE
    return ERROR_MESSAGES.get(first.code, first.code)


class DealReferenceResolver:
    """Resolves a typed deal reference into a deal record.

    Args:
        service: Remote deposit service used for deal inquiries.
        customer_key: Customer key sent with every inquiry.
        debounce_seconds: Quiet period after the last keystroke before a
            lookup is dispatched.
        on_resolved: Called with ``(reference, deal)`` when the current
            reference resolves.
        on_failed: Called with ``(reference, message)`` when it fails.
        on_cleared: Called when the input is emptied.

    Must be used from within a running event loop.
    """

    def __init__(
        self,
        service: DepositsServiceProtocol,
        customer_key: str,
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        on_resolved: Optional[Callable[[str, DealRecord], None]] = None,
        on_failed: Optional[Callable[[str, str], None]] = None,
        on_cleared: Optional[Callable[[], None]] = None,
    ) -> None:
        self._service = service
        self._customer_key = customer_key
        self._debounce_seconds = debounce_seconds
        self._on_resolved = on_resolved
        self._on_failed = on_failed
        self._on_cleared = on_cleared

        self.state = ResolverState.IDLE
        self.current_input = ""
        self.deal: Optional[DealRecord] = None
        self.error = ""
        self.dispatch_count = 0

        self._sequence = 0
        self._timer: Optional[asyncio.Task] = None
        self._in_flight: set[asyncio.Task] = set()

    @property
    def is_busy(self) -> bool:
        return self.state in (ResolverState.PENDING, ResolverState.IN_FLIGHT)

    @property
    def has_error(self) -> bool:
        return self.state == ResolverState.FAILED

    def set_input(self, value: str) -> None:
        """Record a keystroke and restart the debounce window."""
        self.current_input = value
        self._cancel_timer()

        if not value.strip():
            self._sequence += 1  # outstanding responses are now stale
            self.state = ResolverState.IDLE
            self.deal = None
            self.error = ""
            if self._on_cleared:
                self._on_cleared()
            return

        self.state = ResolverState.PENDING
        self._timer = asyncio.ensure_future(self._debounce(value))

    def resolve_now(self, value: str) -> asyncio.Task:
        """Skip the debounce window and dispatch a lookup for ``value``."""
        self.current_input = value
        self._cancel_timer()
        return self._dispatch(value)

    def reset(self) -> None:
        """Return to IDLE silently, ignoring any outstanding responses."""
        self._cancel_timer()
        self._sequence += 1
        self.current_input = ""
        self.state = ResolverState.IDLE
        self.deal = None
        self.error = ""

    async def wait_idle(self) -> None:
        """Wait until no debounce timer or lookup is outstanding."""
        while True:
            pending = [t for t in (self._timer, *self._in_flight) if t and not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def _debounce(self, value: str) -> None:
        await asyncio.sleep(self._debounce_seconds)
        self._timer = None
        if value == self.current_input:
            self._dispatch(value)

    def _dispatch(self, value: str) -> asyncio.Task:
        self._sequence += 1
        self.dispatch_count += 1
        self.state = ResolverState.IN_FLIGHT
        logger.info("deal_lookup_dispatched", reference=value, sequence=self._sequence)

        task = asyncio.ensure_future(self._lookup(self._sequence, value))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    def _is_current(self, sequence: int, value: str) -> bool:
        return sequence == self._sequence and value == self.current_input

    async def _lookup(self, sequence: int, value: str) -> None:
        try:
            deal = await self._service.deal_inquiry(value, self._customer_key)
        except RemoteServiceError as e:
            if not self._is_current(sequence, value):
                logger.debug("stale_deal_lookup_discarded", reference=value, sequence=sequence)
                return
            self.state = ResolverState.FAILED
            self.deal = None
            self.error = lookup_error_message(e)
            logger.info("deal_lookup_failed", reference=value, error=self.error)
            if self._on_failed:
                self._on_failed(value, self.error)
            return

        if not self._is_current(sequence, value):
            logger.debug("stale_deal_lookup_discarded", reference=value, sequence=sequence)
            return
        self.state = ResolverState.RESOLVED
        self.deal = deal
        self.error = ""
        logger.info("deal_lookup_resolved", reference=value, currency=deal.currency)
        if self._on_resolved:
            self._on_resolved(value, deal)


__all__ = [
    "ResolverState",
    "DealReferenceResolver",
    "lookup_error_message",
    "INVALID_REFERENCE_MESSAGE",
]
