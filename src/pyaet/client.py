"""High-level async client for the AET backend."""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection
from datetime import date
from typing import Any

import aiohttp

from pyaet._api.composition_types import fetch_composition_types
from pyaet._api.licenses import fetch_active_authorizations
from pyaet._api.vehicles import fetch_vehicle_by_plate, fetch_vehicle_list
from pyaet._transport import JsonTransport
from pyaet.catalog import VehicleFilter
from pyaet.config import AetConfig
from pyaet.conflicts import LicenseConflictChecker
from pyaet.exceptions import AetError
from pyaet.models.authorization import ActiveAuthorization
from pyaet.models.composition import CompositionTypeConfig
from pyaet.models.vehicle import Vehicle

_logger = logging.getLogger(__name__)


def _today() -> date:
    return date.today()


class AetClient:
    """Async client for the backend collaborators of the validation engine.

    Implements the ``VehicleCatalog``, ``AuthorizationStore`` and
    ``CompositionTypeSource`` protocols.

    Usage::

        async with AetClient(AetConfig.from_env()) as client:
            checker = client.conflict_checker()
            results = await checker.check_jurisdictions(["ABC1234"], ["SP"])
    """

    def __init__(
        self,
        config: AetConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        today: Callable[[], date] = _today,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: JsonTransport | None = None
        self._today = today

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> AetClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = JsonTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None

    @property
    def config(self) -> AetConfig:
        return self._config

    def _require_transport(self) -> JsonTransport:
        if self._transport is None:
            raise AetError("Client not initialized. Use 'async with AetClient(...) as client:'")
        return self._transport

    # ------------------------------------------------------------------
    # VehicleCatalog
    # ------------------------------------------------------------------

    async def get_vehicle(self, plate: str) -> Vehicle | None:
        return await fetch_vehicle_by_plate(self._require_transport(), plate)

    async def list_vehicles(self, vehicle_filter: VehicleFilter | None = None) -> list[Vehicle]:
        vehicles = await fetch_vehicle_list(self._require_transport())
        if vehicle_filter is None:
            return vehicles
        return [vehicle for vehicle in vehicles if vehicle_filter.matches(vehicle)]

    # ------------------------------------------------------------------
    # AuthorizationStore
    # ------------------------------------------------------------------

    async def find_active(
        self,
        plates: Collection[str],
        jurisdictions: Collection[str],
    ) -> list[ActiveAuthorization]:
        found = await fetch_active_authorizations(
            self._require_transport(),
            plates,
            jurisdictions,
            today=self._today(),
        )
        _logger.debug("Found %d active authorizations", len(found))
        return found

    # ------------------------------------------------------------------
    # CompositionTypeSource
    # ------------------------------------------------------------------

    async def list_configured_types(self) -> list[CompositionTypeConfig]:
        return await fetch_composition_types(self._require_transport())

    # ------------------------------------------------------------------
    # Engine wiring
    # ------------------------------------------------------------------

    def conflict_checker(self) -> LicenseConflictChecker:
        """Conflict checker backed by this client and its configuration."""
        return LicenseConflictChecker.from_config(self, self._config, today=self._today)
