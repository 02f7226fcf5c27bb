"""External collaborator interfaces and in-memory implementations.

The engine never owns vehicles, authorizations or administered
composition types; it reads them through these structural protocols.
:class:`pyaet.client.AetClient` implements all three against the REST
backend; the in-memory classes serve embedding and tests.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, field_validator

from pyaet.ingestion.normalize import normalize_jurisdiction, normalize_plate, plate_list
from pyaet.models.authorization import ActiveAuthorization
from pyaet.models.composition import CompositionTypeConfig
from pyaet.models.vehicle import Vehicle, VehicleType
from pyaet.registry import CompositionTypeSource

__all__ = [
    "AuthorizationStore",
    "CompositionTypeSource",
    "InMemoryAuthorizationStore",
    "InMemoryVehicleCatalog",
    "StaticCompositionTypeSource",
    "VehicleCatalog",
    "VehicleFilter",
]


class VehicleFilter(BaseModel):
    """Criteria for :meth:`VehicleCatalog.list_vehicles`; unset fields match anything."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: VehicleType | None = None
    status: str | None = None
    axle_count: int | None = None
    plates: frozenset[str] | None = None

    @field_validator("plates", mode="before")
    @classmethod
    def _normalize_plates(cls, value: Any) -> frozenset[str] | None:
        if value is None:
            return None
        return frozenset(plate_list(value))

    def matches(self, vehicle: Vehicle) -> bool:
        if self.type is not None and vehicle.type is not self.type:
            return False
        if self.status is not None and vehicle.status != self.status.strip().lower():
            return False
        if self.axle_count is not None and vehicle.axle_count != self.axle_count:
            return False
        return self.plates is None or vehicle.plate in self.plates


class VehicleCatalog(Protocol):
    async def get_vehicle(self, plate: str) -> Vehicle | None: ...

    async def list_vehicles(self, vehicle_filter: VehicleFilter | None = None) -> list[Vehicle]: ...


class AuthorizationStore(Protocol):
    async def find_active(
        self,
        plates: Collection[str],
        jurisdictions: Collection[str],
    ) -> list[ActiveAuthorization]: ...


class InMemoryVehicleCatalog:
    """Vehicle catalog backed by a dict keyed by normalized plate."""

    def __init__(self, vehicles: Iterable[Vehicle] = ()) -> None:
        self._vehicles: dict[str, Vehicle] = {}
        for vehicle in vehicles:
            self.add(vehicle)

    def add(self, vehicle: Vehicle) -> None:
        self._vehicles[vehicle.plate] = vehicle

    async def get_vehicle(self, plate: str) -> Vehicle | None:
        key = normalize_plate(plate)
        return self._vehicles.get(key) if key else None

    async def list_vehicles(self, vehicle_filter: VehicleFilter | None = None) -> list[Vehicle]:
        vehicles = list(self._vehicles.values())
        if vehicle_filter is None:
            return vehicles
        return [vehicle for vehicle in vehicles if vehicle_filter.matches(vehicle)]


class InMemoryAuthorizationStore:
    """Authorization store over a fixed list of records."""

    def __init__(self, authorizations: Iterable[ActiveAuthorization] = ()) -> None:
        self._authorizations: list[ActiveAuthorization] = list(authorizations)
        self.calls: int = 0

    def add(self, authorization: ActiveAuthorization) -> None:
        self._authorizations.append(authorization)

    async def find_active(
        self,
        plates: Collection[str],
        jurisdictions: Collection[str],
    ) -> list[ActiveAuthorization]:
        self.calls += 1
        wanted_plates = set(plate_list(plates))
        wanted_states = {code for code in (normalize_jurisdiction(j) for j in jurisdictions) if code}
        return [
            auth
            for auth in self._authorizations
            if auth.jurisdiction in wanted_states and auth.covers_any(wanted_plates)
        ]


class StaticCompositionTypeSource:
    """Composition type source returning a fixed list."""

    def __init__(self, configs: Iterable[CompositionTypeConfig] = ()) -> None:
        self._configs = list(configs)

    async def list_configured_types(self) -> list[CompositionTypeConfig]:
        return list(self._configs)
