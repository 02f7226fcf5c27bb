"""License conflict checking.

A jurisdiction may not be requested again while an existing authorization
for any of the same plates still has more than the renewal window left.
Inside the window a renewal is allowed.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from datetime import date

from pyaet._constants import RENEWAL_WINDOW_DAYS
from pyaet.catalog import AuthorizationStore
from pyaet.config import AetConfig
from pyaet.exceptions import AetError, AetLookupError
from pyaet.ingestion.normalize import normalize_jurisdiction, plate_list
from pyaet.models.authorization import ActiveAuthorization, ConflictResult, ConflictStatus

_logger = logging.getLogger(__name__)


def _today() -> date:
    return date.today()


def _jurisdiction_list(jurisdictions: Iterable[str]) -> list[str]:
    seen: dict[str, None] = {}
    for value in jurisdictions:
        code = normalize_jurisdiction(value)
        if code is not None:
            seen.setdefault(code, None)
    return list(seen)


def classify(
    jurisdiction: str,
    matches: Iterable[ActiveAuthorization],
    *,
    today: date,
    renewal_window_days: int = RENEWAL_WINDOW_DAYS,
) -> ConflictResult:
    """Decide one jurisdiction from its matching authorizations.

    The record with the greatest ``days_remaining`` is surfaced; the
    jurisdiction is blocked when that exceeds the renewal window.
    """
    best: ActiveAuthorization | None = None
    best_days = 0
    for auth in matches:
        days = auth.days_remaining(today)
        if best is None or days > best_days:
            best, best_days = auth, days

    if best is None:
        return ConflictResult(jurisdiction=jurisdiction, status=ConflictStatus.ELIGIBLE)
    status = ConflictStatus.BLOCKED if best_days > renewal_window_days else ConflictStatus.ELIGIBLE
    return ConflictResult(jurisdiction=jurisdiction, status=status, authorization=best, days_remaining=best_days)


class LicenseConflictChecker:
    """Classify requested jurisdictions as eligible or blocked.

    Parameters
    ----------
    store : AuthorizationStore
        Source of currently active authorizations.
    renewal_window_days : int
        Blocked while the most restrictive match has more days left.
    timeout : float or None
        Seconds before a lookup counts as failed; ``None`` or ``0``
        disables it.
    today : callable
        Clock returning the current date.
    """

    def __init__(
        self,
        store: AuthorizationStore,
        *,
        renewal_window_days: int = RENEWAL_WINDOW_DAYS,
        timeout: float | None = 10.0,
        today: Callable[[], date] = _today,
    ) -> None:
        self._store = store
        self._renewal_window_days = renewal_window_days
        self._timeout = timeout or None
        self._today = today

    @classmethod
    def from_config(
        cls,
        store: AuthorizationStore,
        config: AetConfig,
        *,
        today: Callable[[], date] = _today,
    ) -> LicenseConflictChecker:
        return cls(
            store,
            renewal_window_days=config.renewal_window_days,
            timeout=config.lookup_timeout,
            today=today,
        )

    @property
    def renewal_window_days(self) -> int:
        return self._renewal_window_days

    async def check_jurisdictions(
        self,
        plates: Iterable[str],
        jurisdictions: Iterable[str],
    ) -> dict[str, ConflictResult]:
        """Return a result for every requested jurisdiction.

        Raises
        ------
        AetLookupError
            The store failed or did not answer within the timeout.
        """
        plate_set = frozenset(plate_list(plates))
        codes = _jurisdiction_list(jurisdictions)
        if not codes:
            return {}
        if not plate_set:
            return {code: ConflictResult(jurisdiction=code, status=ConflictStatus.ELIGIBLE) for code in codes}

        found = await self._lookup(plate_set, codes)

        today = self._today()
        by_state: dict[str, list[ActiveAuthorization]] = {code: [] for code in codes}
        for auth in found:
            # Stores may answer coarser than asked.
            if auth.jurisdiction in by_state and auth.covers_any(plate_set):
                by_state[auth.jurisdiction].append(auth)

        results: dict[str, ConflictResult] = {}
        for code in codes:
            result = classify(code, by_state[code], today=today, renewal_window_days=self._renewal_window_days)
            if result.is_blocked:
                _logger.info("%s", result.message)
            results[code] = result
        return results

    async def check_jurisdiction(self, plates: Iterable[str], jurisdiction: str) -> ConflictResult:
        """Single-jurisdiction convenience wrapper."""
        code = normalize_jurisdiction(jurisdiction)
        if code is None:
            raise ValueError("jurisdiction must be non-empty")
        results = await self.check_jurisdictions(plates, [code])
        return results[code]

    async def _lookup(self, plates: frozenset[str], codes: list[str]) -> list[ActiveAuthorization]:
        _logger.debug("Looking up active authorizations for %d plates in %s", len(plates), ",".join(codes))
        try:
            async with asyncio.timeout(self._timeout):
                return await self._store.find_active(sorted(plates), codes)
        except TimeoutError as exc:
            _logger.warning("Authorization lookup timed out after %ss", self._timeout)
            raise AetLookupError(
                f"authorization lookup timed out after {self._timeout}s",
                jurisdictions=codes,
            ) from exc
        except AetLookupError:
            raise
        except (AetError, OSError) as exc:
            _logger.warning("Authorization lookup failed: %s", exc)
            raise AetLookupError(f"authorization lookup failed: {exc}", jurisdictions=codes) from exc
