"""Tests for the debounced deal reference resolver."""

import asyncio

from conftest import make_deal

from deposit_core.exceptions import RemoteServiceError
from deposit_core.models import RemoteFieldError
from deposit_wizard.resolver import (
    INVALID_REFERENCE_MESSAGE,
    DealReferenceResolver,
    ResolverState,
    lookup_error_message,
)

DEBOUNCE = 0.01


class Recorder:
    """Collects resolver callbacks."""

    def __init__(self) -> None:
        self.resolved: list[tuple[str, object]] = []
        self.failed: list[tuple[str, str]] = []
        self.cleared = 0

    def make(self, service) -> DealReferenceResolver:
        return DealReferenceResolver(
            service,
            "CUST001",
            debounce_seconds=DEBOUNCE,
            on_resolved=lambda ref, deal: self.resolved.append((ref, deal)),
            on_failed=lambda ref, msg: self.failed.append((ref, msg)),
            on_cleared=self._on_cleared,
        )

    def _on_cleared(self) -> None:
        self.cleared += 1


class TestDebounce:
    """Test suite for debouncing keystrokes."""

    def test_only_last_value_dispatched(self, service):
        service.deals["A"] = make_deal(amount="1")
        service.deals["AB"] = make_deal(amount="2")
        recorder = Recorder()

        async def scenario():
            resolver = recorder.make(service)
            resolver.set_input("A")
            resolver.set_input("AB")
            assert resolver.state == ResolverState.PENDING
            await resolver.wait_idle()
            return resolver

        resolver = asyncio.run(scenario())

        assert service.calls_to("deal_inquiry") == ["AB"]
        assert resolver.dispatch_count == 1
        assert resolver.state == ResolverState.RESOLVED
        assert resolver.deal == service.deals["AB"]
        assert [ref for ref, _ in recorder.resolved] == ["AB"]

    def test_no_request_before_timer_fires(self, service):
        async def scenario():
            resolver = Recorder().make(service)
            resolver.set_input("DEAL01")
            await asyncio.sleep(0)
            calls = list(service.calls_to("deal_inquiry"))
            await resolver.wait_idle()
            return calls

        assert asyncio.run(scenario()) == []
        assert service.calls_to("deal_inquiry") == ["DEAL01"]

    def test_empty_input_goes_idle(self, service):
        recorder = Recorder()

        async def scenario():
            resolver = recorder.make(service)
            resolver.set_input("BAD")
            await resolver.wait_idle()
            assert resolver.state == ResolverState.FAILED

            resolver.set_input("")
            await resolver.wait_idle()
            return resolver

        resolver = asyncio.run(scenario())

        assert resolver.state == ResolverState.IDLE
        assert resolver.error == ""
        assert resolver.deal is None
        assert recorder.cleared == 1
        assert service.calls_to("deal_inquiry") == ["BAD"]

    def test_typing_then_clearing_sends_nothing(self, service):
        async def scenario():
            resolver = Recorder().make(service)
            resolver.set_input("DEAL0")
            resolver.set_input("   ")
            await resolver.wait_idle()
            return resolver

        resolver = asyncio.run(scenario())
        assert resolver.state == ResolverState.IDLE
        assert service.calls_to("deal_inquiry") == []


class TestStaleness:
    """Test suite for the latest-input-wins guard."""

    def test_slow_earlier_response_is_discarded(self, service):
        service.deals["A"] = make_deal(amount="1")
        service.deals["AB"] = make_deal(amount="2")
        service.deal_delays["A"] = 0.05
        recorder = Recorder()

        async def scenario():
            resolver = recorder.make(service)
            resolver.set_input("A")
            await asyncio.sleep(DEBOUNCE * 3)
            assert resolver.state == ResolverState.IN_FLIGHT

            resolver.set_input("AB")
            await resolver.wait_idle()
            return resolver

        resolver = asyncio.run(scenario())

        assert service.calls_to("deal_inquiry") == ["A", "AB"]
        assert resolver.deal == service.deals["AB"]
        assert [ref for ref, _ in recorder.resolved] == ["AB"]

    def test_superseded_by_resolve_now(self, service):
        service.deals["A"] = make_deal(amount="1")
        service.deals["AB"] = make_deal(amount="2")
        service.deal_delays["A"] = 0.05
        recorder = Recorder()

        async def scenario():
            resolver = recorder.make(service)
            resolver.resolve_now("A")
            await asyncio.sleep(0)
            resolver.resolve_now("AB")
            await resolver.wait_idle()
            return resolver

        resolver = asyncio.run(scenario())
        assert resolver.deal == service.deals["AB"]
        assert len(recorder.resolved) == 1

    def test_stale_failure_is_discarded(self, service):
        service.deal_delays["BAD"] = 0.05
        recorder = Recorder()

        async def scenario():
            resolver = recorder.make(service)
            resolver.resolve_now("BAD")
            await asyncio.sleep(0)
            resolver.resolve_now("DEAL01")
            await resolver.wait_idle()
            return resolver

        resolver = asyncio.run(scenario())
        assert resolver.state == ResolverState.RESOLVED
        assert resolver.error == ""
        assert recorder.failed == []

    def test_reset_ignores_outstanding_response(self, service):
        service.deal_delays["DEAL01"] = 0.02
        recorder = Recorder()

        async def scenario():
            resolver = recorder.make(service)
            resolver.resolve_now("DEAL01")
            await asyncio.sleep(0)
            resolver.reset()
            await resolver.wait_idle()
            return resolver

        resolver = asyncio.run(scenario())
        assert resolver.state == ResolverState.IDLE
        assert resolver.deal is None
        assert recorder.resolved == []


class TestFailures:
    """Test suite for failed lookups."""

    def test_structured_error_is_translated(self, service):
        recorder = Recorder()

        async def scenario():
            resolver = recorder.make(service)
            resolver.set_input("UNKNOWN1")
            await resolver.wait_idle()
            return resolver

        resolver = asyncio.run(scenario())
        assert resolver.state == ResolverState.FAILED
        assert resolver.has_error is True
        assert resolver.error == "Deal reference number is invalid or expired"
        assert recorder.failed == [("UNKNOWN1", resolver.error)]

    def test_unstructured_error_defaults(self, service):
        service.deal_errors["DEAL01"] = RemoteServiceError("timeout", operation="deal_inquiry")

        async def scenario():
            resolver = Recorder().make(service)
            resolver.set_input("DEAL01")
            await resolver.wait_idle()
            return resolver

        resolver = asyncio.run(scenario())
        assert resolver.error == INVALID_REFERENCE_MESSAGE

    def test_lookup_error_message(self):
        first_only = RemoteServiceError(
            "x",
            errors=[
                RemoteFieldError(field="dealId", code="Deal expired on 2026-09-30"),
                RemoteFieldError(field="dealId", code="Invalid deal reference"),
            ],
        )
        assert lookup_error_message(first_only) == "Deal expired on 2026-09-30"
        assert lookup_error_message(RemoteServiceError("x")) == INVALID_REFERENCE_MESSAGE

    def test_retry_after_failure(self, service):
        async def scenario():
            resolver = Recorder().make(service)
            resolver.set_input("DEAL9")
            await resolver.wait_idle()
            assert resolver.state == ResolverState.FAILED
            resolver.set_input("DEAL01")
            assert resolver.is_busy is True
            await resolver.wait_idle()
            return resolver

        resolver = asyncio.run(scenario())
        assert resolver.state == ResolverState.RESOLVED
        assert resolver.error == ""
