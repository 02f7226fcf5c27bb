from __future__ import annotations

import asyncio
from collections.abc import Callable, Collection
from datetime import date, timedelta

import pytest

from pyaet.config import AetConfig
from pyaet.conflicts import LicenseConflictChecker
from pyaet.exceptions import AetTransportError
from pyaet.models.authorization import ActiveAuthorization
from pyaet.models.outcomes import LookupFailed
from pyaet.selection import JurisdictionSelectionOrchestrator, RevalidationReport, SelectionState

TODAY = date(2025, 3, 1)


def _auth(jurisdiction: str, days: int, plate: str) -> ActiveAuthorization:
    return ActiveAuthorization(
        jurisdiction=jurisdiction,
        expires_on=TODAY + timedelta(days=days),
        number=f"AET-{jurisdiction}-{plate}",
        plates=[plate],
    )


class _ControlledStore:
    """Authorization store whose answers can be held back or made to fail."""

    def __init__(self, *records: ActiveAuthorization) -> None:
        self.records = list(records)
        self.gate: asyncio.Event | None = None
        self.fail: Exception | None = None
        self.calls: list[tuple[list[str], list[str]]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def find_active(self, plates: Collection[str], jurisdictions: Collection[str]) -> list[ActiveAuthorization]:
        self.calls.append((list(plates), list(jurisdictions)))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.gate is not None:
                await self.gate.wait()
        finally:
            self.in_flight -= 1
        if self.fail is not None:
            raise self.fail
        wanted = set(plates)
        return [a for a in self.records if a.jurisdiction in jurisdictions and a.covers_any(wanted)]


def _orchestrator(
    store: _ControlledStore,
    plates: list[str] | None = None,
    **kwargs: object,
) -> JurisdictionSelectionOrchestrator:
    checker = LicenseConflictChecker(store, today=lambda: TODAY, timeout=1.0)
    kwargs.setdefault("debounce_seconds", 0.01)
    return JurisdictionSelectionOrchestrator(checker, plates=plates or (), **kwargs)  # type: ignore[arg-type]


async def _until(predicate: Callable[[], bool]) -> None:
    for _ in range(100):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


@pytest.mark.asyncio
async def test_select_without_plates_skips_check() -> None:
    store = _ControlledStore(_auth("SP", 90, "ABC1234"))
    orchestrator = _orchestrator(store)
    outcome = await orchestrator.select("sp")
    assert outcome.selected
    assert outcome.conflict is None
    assert orchestrator.selected == ("SP",)
    assert store.calls == []


@pytest.mark.asyncio
async def test_select_eligible_jurisdiction() -> None:
    store = _ControlledStore(_auth("SP", 30, "ABC1234"))
    orchestrator = _orchestrator(store, ["ABC1234"])
    outcome = await orchestrator.select("SP")
    assert outcome.state is SelectionState.SELECTED
    assert outcome.conflict is not None
    assert outcome.conflict.days_remaining == 30
    assert orchestrator.state("SP") is SelectionState.SELECTED


@pytest.mark.asyncio
async def test_select_blocked_jurisdiction_is_rejected() -> None:
    store = _ControlledStore(_auth("SP", 90, "ABC1234"))
    orchestrator = _orchestrator(store, ["ABC1234"])
    outcome = await orchestrator.select("SP")
    assert outcome.state is SelectionState.BLOCKED_REJECTED
    assert outcome.conflict is not None
    assert outcome.conflict.license_number == "AET-SP-ABC1234"
    assert orchestrator.selected == ()
    blocked = orchestrator.blocked("SP")
    assert blocked is not None and blocked.days_remaining == 90


@pytest.mark.asyncio
async def test_lookup_failure_leaves_jurisdiction_unselected() -> None:
    store = _ControlledStore()
    store.fail = AetTransportError("HTTP 502", status_code=502)
    orchestrator = _orchestrator(store, ["ABC1234"])
    outcome = await orchestrator.select("SP")
    assert outcome.state is SelectionState.UNSELECTED
    assert isinstance(outcome.failure, LookupFailed)
    assert outcome.failure.retryable
    assert outcome.failure.jurisdictions == ("SP",)
    assert orchestrator.selected == ()

    store.fail = None
    retry = await orchestrator.select("SP")
    assert retry.selected


@pytest.mark.asyncio
async def test_second_select_while_checking_is_ignored() -> None:
    store = _ControlledStore()
    store.gate = asyncio.Event()
    orchestrator = _orchestrator(store, ["ABC1234"])

    first = asyncio.create_task(orchestrator.select("SP"))
    await _until(lambda: len(store.calls) == 1)
    assert orchestrator.state("SP") is SelectionState.CHECKING

    second = await orchestrator.select("SP")
    assert second.ignored
    assert second.state is SelectionState.CHECKING

    store.gate.set()
    outcome = await first
    assert outcome.selected
    assert len(store.calls) == 1


@pytest.mark.asyncio
async def test_deselect_during_check_discards_result() -> None:
    store = _ControlledStore()
    store.gate = asyncio.Event()
    orchestrator = _orchestrator(store, ["ABC1234"])

    pending = asyncio.create_task(orchestrator.select("SP"))
    await _until(lambda: len(store.calls) == 1)
    orchestrator.deselect("SP")
    store.gate.set()

    outcome = await pending
    assert outcome.superseded
    assert outcome.state is SelectionState.UNSELECTED
    assert orchestrator.state("SP") is SelectionState.UNSELECTED
    assert orchestrator.selected == ()
    assert store.in_flight == 0


@pytest.mark.asyncio
async def test_reselect_after_deselect_never_overlaps_lookups() -> None:
    store = _ControlledStore(_auth("SP", 90, "ABC1234"))
    store.gate = asyncio.Event()
    orchestrator = _orchestrator(store, ["ABC1234"])

    first = asyncio.create_task(orchestrator.select("SP"))
    await _until(lambda: len(store.calls) == 1)
    orchestrator.deselect("SP")
    second = asyncio.create_task(orchestrator.select("SP"))
    await _until(lambda: len(store.calls) == 2)
    assert orchestrator.state("SP") is SelectionState.CHECKING

    store.gate.set()
    first_outcome = await first
    second_outcome = await second

    assert store.max_in_flight == 1
    assert first_outcome.superseded
    assert first_outcome.state is SelectionState.UNSELECTED
    assert second_outcome.state is SelectionState.BLOCKED_REJECTED
    assert orchestrator.state("SP") is SelectionState.BLOCKED_REJECTED


@pytest.mark.asyncio
async def test_unexpected_store_error_does_not_leave_jurisdiction_checking() -> None:
    store = _ControlledStore()
    store.fail = RuntimeError("Session is closed")
    orchestrator = _orchestrator(store, ["ABC1234"])

    with pytest.raises(RuntimeError):
        await orchestrator.select("SP")
    assert orchestrator.state("SP") is SelectionState.UNSELECTED

    store.fail = None
    retry = await orchestrator.select("SP")
    assert not retry.ignored
    assert retry.selected
    assert len(store.calls) == 2


@pytest.mark.asyncio
async def test_cancelled_select_resets_state() -> None:
    store = _ControlledStore()
    store.gate = asyncio.Event()
    orchestrator = _orchestrator(store, ["ABC1234"])

    pending = asyncio.create_task(orchestrator.select("SP"))
    await _until(lambda: len(store.calls) == 1)
    pending.cancel()
    with pytest.raises(asyncio.CancelledError):
        await pending
    assert orchestrator.state("SP") is SelectionState.UNSELECTED


@pytest.mark.asyncio
async def test_plate_change_during_check_rechecks_new_plates() -> None:
    store = _ControlledStore(_auth("SP", 90, "XYZ9876"))
    store.gate = asyncio.Event()
    orchestrator = _orchestrator(store, ["ABC1234"])

    pending = asyncio.create_task(orchestrator.select("SP"))
    await _until(lambda: len(store.calls) == 1)
    orchestrator.set_plates(["XYZ9876"])
    store.gate.set()

    outcome = await pending
    assert outcome.state is SelectionState.BLOCKED_REJECTED
    assert [plates for plates, _ in store.calls] == [["ABC1234"], ["XYZ9876"]]


@pytest.mark.asyncio
async def test_toggle() -> None:
    orchestrator = _orchestrator(_ControlledStore(), ["ABC1234"])
    assert (await orchestrator.toggle("RJ")).selected
    assert (await orchestrator.toggle("RJ")).state is SelectionState.UNSELECTED
    assert orchestrator.selected == ()


@pytest.mark.asyncio
async def test_selection_order_is_kept() -> None:
    orchestrator = _orchestrator(_ControlledStore(), ["ABC1234"])
    for code in ("RJ", "SP", "DNIT"):
        await orchestrator.select(code)
    assert orchestrator.selected == ("RJ", "SP", "DNIT")


@pytest.mark.asyncio
async def test_from_config_uses_configured_debounce() -> None:
    store = _ControlledStore()
    checker = LicenseConflictChecker(store, today=lambda: TODAY)
    orchestrator = JurisdictionSelectionOrchestrator.from_config(
        checker, AetConfig(debounce_seconds=0.0), plates=["ABC1234"]
    )
    await orchestrator.select("SP")
    orchestrator.set_plates(["XYZ9876"])
    report = await orchestrator.flush()
    assert report is not None
    assert report.checked == ("SP",)


@pytest.mark.asyncio
async def test_unknown_jurisdiction_rejected() -> None:
    orchestrator = _orchestrator(_ControlledStore())
    with pytest.raises(ValueError):
        await orchestrator.select("XX")
    with pytest.raises(ValueError):
        orchestrator.state("")


class TestPlateChanges:
    @pytest.mark.asyncio
    async def test_newly_blocked_jurisdictions_are_removed(self) -> None:
        reports: list[RevalidationReport] = []
        store = _ControlledStore(_auth("SP", 120, "XYZ9876"))
        orchestrator = _orchestrator(store, ["ABC1234"], on_revalidated=reports.append)
        await orchestrator.select("SP")
        await orchestrator.select("RJ")

        orchestrator.set_plates(["ABC1234", "xyz-9876"])
        report = await orchestrator.flush()

        assert report is not None
        assert report.removed_jurisdictions == ("SP",)
        assert report.checked == ("SP", "RJ")
        assert report.removed["SP"].days_remaining == 120
        assert orchestrator.selected == ("RJ",)
        assert orchestrator.state("SP") is SelectionState.UNSELECTED
        assert orchestrator.blocked("SP") is not None
        assert reports == [report]

    @pytest.mark.asyncio
    async def test_rapid_changes_collapse_into_one_batch(self) -> None:
        store = _ControlledStore()
        orchestrator = _orchestrator(store, ["ABC1234"], debounce_seconds=0.05)
        await orchestrator.select("SP")
        await orchestrator.select("MG")
        before = len(store.calls)

        orchestrator.set_plates(["ABC1234", "A"])
        orchestrator.set_plates(["ABC1234", "AB"])
        orchestrator.set_plates(["ABC1234", "ABC"])
        report = await orchestrator.flush()

        assert report is not None
        assert report.plates == frozenset({"ABC1234", "ABC"})
        assert len(store.calls) == before + 1
        assert store.calls[-1] == (["ABC", "ABC1234"], ["SP", "MG"])

    @pytest.mark.asyncio
    async def test_results_for_superseded_plates_are_discarded(self) -> None:
        store = _ControlledStore(_auth("SP", 120, "OLD0001"))
        orchestrator = _orchestrator(store, ["ABC1234"])
        await orchestrator.select("SP")

        store.gate = asyncio.Event()
        orchestrator.set_plates(["OLD0001"])
        in_flight = asyncio.create_task(orchestrator.revalidate())
        await _until(lambda: store.calls[-1][0] == ["OLD0001"])

        orchestrator.set_plates(["NEW0001"])
        store.gate.set()

        assert await in_flight is None
        assert orchestrator.selected == ("SP",)
        report = await orchestrator.flush()
        assert report is not None
        assert report.removed == {}
        assert orchestrator.selected == ("SP",)

    @pytest.mark.asyncio
    async def test_lookup_failure_keeps_selection(self) -> None:
        reports: list[RevalidationReport] = []
        store = _ControlledStore()
        orchestrator = _orchestrator(store, ["ABC1234"], on_revalidated=reports.append)
        await orchestrator.select("SP")

        store.fail = OSError("connection reset")
        orchestrator.set_plates(["XYZ9876"])
        report = await orchestrator.flush()

        assert report is not None
        assert isinstance(report.failure, LookupFailed)
        assert report.failure.jurisdictions == ("SP",)
        assert orchestrator.selected == ("SP",)
        assert reports == [report]

    @pytest.mark.asyncio
    async def test_plate_change_clears_rejections(self) -> None:
        store = _ControlledStore(_auth("SP", 90, "ABC1234"))
        orchestrator = _orchestrator(store, ["ABC1234"])
        await orchestrator.select("SP")
        assert orchestrator.state("SP") is SelectionState.BLOCKED_REJECTED

        orchestrator.set_plates(["XYZ9876"])
        assert orchestrator.state("SP") is SelectionState.UNSELECTED
        assert orchestrator.blocked("SP") is None
        assert await orchestrator.flush() is None

    @pytest.mark.asyncio
    async def test_same_plates_do_not_schedule(self) -> None:
        store = _ControlledStore()
        orchestrator = _orchestrator(store, ["ABC1234"])
        await orchestrator.select("SP")
        orchestrator.set_plates(["abc 1234"])
        assert await orchestrator.flush() is None
        assert len(store.calls) == 1

    @pytest.mark.asyncio
    async def test_aclose_cancels_pending_recheck(self) -> None:
        store = _ControlledStore()
        orchestrator = _orchestrator(store, ["ABC1234"], debounce_seconds=10)
        await orchestrator.select("SP")
        orchestrator.set_plates(["XYZ9876"])
        await orchestrator.aclose()
        assert await orchestrator.flush() is None
        assert len(store.calls) == 1

    @pytest.mark.asyncio
    async def test_revalidate_now(self) -> None:
        store = _ControlledStore()
        orchestrator = _orchestrator(store, ["ABC1234"])
        await orchestrator.select("SP")
        store.records.append(_auth("SP", 200, "ABC1234"))
        report = await orchestrator.revalidate()
        assert report is not None
        assert report.removed_jurisdictions == ("SP",)
        assert orchestrator.selected == ()
