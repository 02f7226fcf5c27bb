"""Jurisdiction selection orchestrator.

Owns the externally visible set of selected jurisdictions and the
per-jurisdiction state machine::

    unselected -> checking -> selected | blocked_rejected

Only this class mutates the selection.  Concurrency rules:

* at most one conflict check per jurisdiction is in flight; a second
  select while ``checking`` is ignored;
* a deselect during ``checking`` invalidates the check's token and
  cancels its lookup; a re-select waits for that lookup to unwind;
* a check that ends without a result (lookup failure, cancellation or an
  unexpected store error) returns the jurisdiction to ``unselected``;
* plate changes are debounced into a single batched re-check; results
  computed for a superseded plate set are discarded.
"""

from __future__ import annotations

import asyncio
import contextlib
import itertools
import logging
from collections.abc import Callable, Collection, Iterable

from pyaet._constants import JURISDICTIONS
from pyaet.config import AetConfig
from pyaet.conflicts import LicenseConflictChecker
from pyaet.exceptions import AetLookupError
from pyaet.ingestion.normalize import normalize_jurisdiction, plate_list
from pyaet.models.authorization import ConflictResult
from pyaet.models.outcomes import LookupFailed
from pyaet.selection.events import RevalidationReport, SelectionOutcome, SelectionState

_logger = logging.getLogger(__name__)


class JurisdictionSelectionOrchestrator:
    """Coordinate jurisdiction selection with license conflict checks.

    Usage::

        orchestrator = JurisdictionSelectionOrchestrator(checker, plates=["ABC1234"])
        outcome = await orchestrator.select("SP")
        orchestrator.set_plates(["ABC1234", "XYZ9876"])
        report = await orchestrator.flush()

    Must be driven from a single event loop.
    """

    def __init__(
        self,
        checker: LicenseConflictChecker,
        *,
        plates: Iterable[str] = (),
        debounce_seconds: float = 0.5,
        known_jurisdictions: Collection[str] | None = JURISDICTIONS,
        on_revalidated: Callable[[RevalidationReport], None] | None = None,
    ) -> None:
        self._checker = checker
        self._debounce_seconds = debounce_seconds
        self._known = frozenset(known_jurisdictions) if known_jurisdictions is not None else None
        self._on_revalidated = on_revalidated

        self._plates: frozenset[str] = frozenset(plate_list(plates))
        self._plates_version = 0
        self._states: dict[str, SelectionState] = {}
        self._order: list[str] = []
        self._blocked: dict[str, ConflictResult] = {}
        self._tokens: dict[str, int] = {}
        self._token_seq = itertools.count(1)
        self._lookups: dict[str, asyncio.Task[ConflictResult]] = {}
        self._pending: asyncio.Task[RevalidationReport | None] | None = None

    @classmethod
    def from_config(
        cls,
        checker: LicenseConflictChecker,
        config: AetConfig,
        *,
        plates: Iterable[str] = (),
        on_revalidated: Callable[[RevalidationReport], None] | None = None,
    ) -> JurisdictionSelectionOrchestrator:
        return cls(
            checker,
            plates=plates,
            debounce_seconds=config.debounce_seconds,
            on_revalidated=on_revalidated,
        )

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def plates(self) -> frozenset[str]:
        return self._plates

    @property
    def selected(self) -> tuple[str, ...]:
        """Selected jurisdictions in selection order."""
        return tuple(code for code in self._order if self._states.get(code) is SelectionState.SELECTED)

    def state(self, jurisdiction: str) -> SelectionState:
        return self._states.get(self._code(jurisdiction), SelectionState.UNSELECTED)

    def blocked(self, jurisdiction: str) -> ConflictResult | None:
        """Blocking result that last rejected or removed *jurisdiction*."""
        return self._blocked.get(self._code(jurisdiction))

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def select(self, jurisdiction: str) -> SelectionOutcome:
        """Try to add *jurisdiction* to the selection."""
        code = self._code(jurisdiction)
        current = self._states.get(code, SelectionState.UNSELECTED)
        if current is SelectionState.CHECKING:
            _logger.debug("Ignoring select of %s: check already in flight", code)
            return SelectionOutcome(jurisdiction=code, state=current, ignored=True)
        if current is SelectionState.SELECTED:
            return SelectionOutcome(jurisdiction=code, state=current)

        self._blocked.pop(code, None)
        if not self._plates:
            self._mark_selected(code)
            return SelectionOutcome(jurisdiction=code, state=SelectionState.SELECTED)

        token = next(self._token_seq)
        self._tokens[code] = token
        self._states[code] = SelectionState.CHECKING
        _logger.debug("%s -> checking", code)

        settled = False
        try:
            previous = self._lookups.get(code)
            if previous is not None:
                # A deselected lookup is still unwinding; never overlap it.
                await asyncio.wait([previous])
            while True:
                version = self._plates_version
                lookup = asyncio.get_running_loop().create_task(
                    self._checker.check_jurisdiction(self._plates, code)
                )
                self._lookups[code] = lookup
                try:
                    result = await lookup
                except AetLookupError as exc:
                    if self._tokens.get(code) != token:
                        return self._superseded(code)
                    failure = LookupFailed(jurisdictions=(code,), reason=str(exc))
                    _logger.warning("%s", failure.message)
                    return SelectionOutcome(jurisdiction=code, state=SelectionState.UNSELECTED, failure=failure)
                except asyncio.CancelledError:
                    task = asyncio.current_task()
                    outer_cancelled = task is not None and task.cancelling() > 0
                    if lookup.cancelled() and not outer_cancelled and self._tokens.get(code) != token:
                        return self._superseded(code)
                    raise
                finally:
                    if self._lookups.get(code) is lookup:
                        del self._lookups[code]

                if self._tokens.get(code) != token:
                    return self._superseded(code)
                if version == self._plates_version:
                    break
                # Plates changed while the check ran; its answer is for the old set.
                if not self._plates:
                    self._release(code, token)
                    self._mark_selected(code)
                    settled = True
                    return SelectionOutcome(jurisdiction=code, state=SelectionState.SELECTED)
                _logger.debug("Re-checking %s after a plate change", code)
            settled = True
        finally:
            # Lookup failures, cancellation and unexpected store errors all
            # leave the jurisdiction selectable again.
            if not settled and self._tokens.get(code) == token:
                self._release(code, token)
                self._states[code] = SelectionState.UNSELECTED
                _logger.debug("%s -> unselected (check did not complete)", code)

        self._release(code, token)
        if result.is_blocked:
            self._states[code] = SelectionState.BLOCKED_REJECTED
            self._blocked[code] = result
            _logger.info("%s -> blocked_rejected (%s)", code, result.license_number)
            return SelectionOutcome(jurisdiction=code, state=SelectionState.BLOCKED_REJECTED, conflict=result)

        self._mark_selected(code)
        return SelectionOutcome(jurisdiction=code, state=SelectionState.SELECTED, conflict=result)

    def deselect(self, jurisdiction: str) -> SelectionOutcome:
        """Remove *jurisdiction*; no check needed.  Cancels any in-flight check."""
        code = self._code(jurisdiction)
        self._tokens.pop(code, None)
        lookup = self._lookups.get(code)
        if lookup is not None and not lookup.done():
            lookup.cancel()
        self._blocked.pop(code, None)
        self._states[code] = SelectionState.UNSELECTED
        if code in self._order:
            self._order.remove(code)
        _logger.debug("%s -> unselected", code)
        return SelectionOutcome(jurisdiction=code, state=SelectionState.UNSELECTED)

    async def toggle(self, jurisdiction: str) -> SelectionOutcome:
        if self.state(jurisdiction) is SelectionState.SELECTED:
            return self.deselect(jurisdiction)
        return await self.select(jurisdiction)

    # ------------------------------------------------------------------
    # Plate changes
    # ------------------------------------------------------------------

    def set_plates(self, plates: Iterable[str]) -> None:
        """Replace the plate set and schedule the debounced re-check.

        Must be called from the running event loop.  Rejections made for
        the previous plate set are cleared.
        """
        new_plates = frozenset(plate_list(plates))
        if new_plates == self._plates:
            return
        self._plates = new_plates
        self._plates_version += 1
        for code, state in list(self._states.items()):
            if state is SelectionState.BLOCKED_REJECTED:
                self._states[code] = SelectionState.UNSELECTED
                self._blocked.pop(code, None)

        self._cancel_pending()
        if not self.selected or not new_plates:
            return
        task = asyncio.get_running_loop().create_task(self._debounced_revalidate(self._plates_version))
        task.add_done_callback(self._log_task_failure)
        self._pending = task

    async def revalidate(self) -> RevalidationReport | None:
        """Re-check all selected jurisdictions now, skipping the debounce."""
        self._cancel_pending()
        return await self._revalidate(self._plates_version)

    async def flush(self) -> RevalidationReport | None:
        """Wait for the pending debounced re-check, following supersessions."""
        while self._pending is not None:
            task = self._pending
            try:
                report = await task
            except asyncio.CancelledError:
                current = asyncio.current_task()
                if current is not None and current.cancelling():
                    raise
                if task is self._pending:
                    self._pending = None
                    return None
                continue
            if task is self._pending:
                self._pending = None
                return report
        return None

    async def aclose(self) -> None:
        """Cancel the pending re-check, if any."""
        task = self._pending
        self._pending = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _code(self, jurisdiction: str) -> str:
        code = normalize_jurisdiction(jurisdiction)
        if code is None:
            raise ValueError("jurisdiction must be non-empty")
        if self._known is not None and code not in self._known:
            raise ValueError(f"unknown jurisdiction {code!r}")
        return code

    def _mark_selected(self, code: str) -> None:
        self._states[code] = SelectionState.SELECTED
        if code not in self._order:
            self._order.append(code)
        _logger.debug("%s -> selected", code)

    def _release(self, code: str, token: int) -> None:
        if self._tokens.get(code) == token:
            del self._tokens[code]

    def _superseded(self, code: str) -> SelectionOutcome:
        # The attempt was deselected; a newer check may own the live state.
        _logger.debug("Discarding superseded check result for %s", code)
        return SelectionOutcome(jurisdiction=code, state=SelectionState.UNSELECTED, superseded=True)

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()

    @staticmethod
    def _log_task_failure(task: asyncio.Task[RevalidationReport | None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.error("Jurisdiction re-check failed", exc_info=exc)

    async def _debounced_revalidate(self, version: int) -> RevalidationReport | None:
        await asyncio.sleep(self._debounce_seconds)
        if version != self._plates_version:
            return None
        return await self._revalidate(version)

    async def _revalidate(self, version: int) -> RevalidationReport | None:
        plates = self._plates
        targets = self.selected
        if not targets or not plates:
            return RevalidationReport(plates=plates)

        try:
            results = await self._checker.check_jurisdictions(plates, targets)
        except AetLookupError as exc:
            if version != self._plates_version:
                return None
            failure = LookupFailed(jurisdictions=targets, reason=str(exc))
            _logger.warning("%s", failure.message)
            report = RevalidationReport(plates=plates, checked=targets, failure=failure)
            self._notify(report)
            return report

        if version != self._plates_version:
            _logger.debug("Discarding re-check results for superseded plate set")
            return None

        removed: dict[str, ConflictResult] = {}
        for code in targets:
            result = results.get(code)
            if result is None or not result.is_blocked:
                continue
            if self._states.get(code) is not SelectionState.SELECTED:
                # Deselected while the batch was in flight.
                continue
            self._states[code] = SelectionState.UNSELECTED
            self._blocked[code] = result
            self._order.remove(code)
            removed[code] = result

        if removed:
            _logger.info("Removed newly blocked jurisdictions: %s", ", ".join(removed))
        report = RevalidationReport(plates=plates, checked=targets, removed=removed)
        self._notify(report)
        return report

    def _notify(self, report: RevalidationReport) -> None:
        if self._on_revalidated is not None:
            self._on_revalidated(report)
