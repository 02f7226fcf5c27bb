"""Composition type and assignment models."""

from __future__ import annotations

from collections.abc import Iterator
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pyaet._constants import DEFAULT_DOLLY_AXLES
from pyaet.models._base import AetBaseModel
from pyaet.models.vehicle import Vehicle, VehicleType


class Slot(StrEnum):
    """Named position in a composition."""

    TRACTOR = "tractor"
    FIRST_TRAILER = "first_trailer"
    SECOND_TRAILER = "second_trailer"
    DOLLY = "dolly"


SLOT_DEFAULT_TYPES: dict[Slot, VehicleType] = {
    Slot.TRACTOR: VehicleType.TRACTOR_UNIT,
    Slot.FIRST_TRAILER: VehicleType.SEMI_TRAILER,
    Slot.SECOND_TRAILER: VehicleType.SEMI_TRAILER,
    Slot.DOLLY: VehicleType.DOLLY,
}

TRAILER_SLOTS: frozenset[Slot] = frozenset({Slot.FIRST_TRAILER, Slot.SECOND_TRAILER})

# Backend spells slot keys in camelCase inside ``vehicleTypes``.
_SLOT_KEYS: dict[str, Slot] = {
    "tractor": Slot.TRACTOR,
    "firstTrailer": Slot.FIRST_TRAILER,
    "first_trailer": Slot.FIRST_TRAILER,
    "secondTrailer": Slot.SECOND_TRAILER,
    "second_trailer": Slot.SECOND_TRAILER,
    "dolly": Slot.DOLLY,
}


class DimensionLimits(AetBaseModel):
    """Length/width/height limits in metres (``None`` = unrestricted)."""

    min_length: float | None = None
    max_length: float | None = None
    max_width: float | None = None
    max_height: float | None = None


class CompositionTypeConfig(AetBaseModel):
    """Expected axle layout of one composition type.

    Built-in types come from :mod:`pyaet.registry`; administered types
    arrive from the backend with the axle fields nested under
    ``axleConfiguration``, which is flattened here.
    """

    id: str
    label: str = ""
    description: str = ""
    tractor_axles: int = 0
    first_trailer_axles: int = 0
    second_trailer_axles: int = 0
    dolly_axles: int | None = None
    total_axles: int = 0
    requires_dolly: bool = False
    is_flexible: bool = False
    vehicle_types: dict[Slot, tuple[VehicleType, ...]] = Field(default_factory=dict)
    """Accepted vehicle types per slot; a missing/empty entry means the slot default."""
    dimension_limits: DimensionLimits = Field(default_factory=DimensionLimits)
    is_active: bool = True

    @model_validator(mode="before")
    @classmethod
    def _flatten_axle_configuration(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        nested = values.get("axleConfiguration") or values.get("axle_configuration")
        if not isinstance(nested, dict):
            return values
        merged = {k: v for k, v in values.items() if k not in ("axleConfiguration", "axle_configuration")}
        for key, value in nested.items():
            if value is not None:
                merged.setdefault(key, value)
        merged.setdefault("raw", dict(values))
        return merged

    @field_validator("id")
    @classmethod
    def _id_non_empty(cls, value: str) -> str:
        type_id = value.strip()
        if not type_id:
            raise ValueError("composition type id must be non-empty")
        return type_id

    @field_validator("vehicle_types", mode="before")
    @classmethod
    def _parse_vehicle_types(cls, value: Any) -> dict[Slot, tuple[VehicleType, ...]]:
        if not isinstance(value, dict):
            return {}
        parsed: dict[Slot, tuple[VehicleType, ...]] = {}
        for key, types in value.items():
            slot = key if isinstance(key, Slot) else _SLOT_KEYS.get(str(key))
            if slot is None or not types:
                continue
            if isinstance(types, str):
                types = [types]
            parsed[slot] = tuple(VehicleType(t) for t in types)
        return parsed

    def expected_axles(self, slot: Slot) -> int:
        if slot is Slot.TRACTOR:
            return self.tractor_axles
        if slot is Slot.FIRST_TRAILER:
            return self.first_trailer_axles
        if slot is Slot.SECOND_TRAILER:
            return self.second_trailer_axles
        return self.dolly_axles if self.dolly_axles is not None else DEFAULT_DOLLY_AXLES

    def accepted_types(self, slot: Slot) -> tuple[VehicleType, ...]:
        configured = self.vehicle_types.get(slot)
        if configured:
            return configured
        return (SLOT_DEFAULT_TYPES[slot],)

    @property
    def slot_axle_sum(self) -> int:
        """Sum of the per-slot expectations (dolly only when required)."""
        total = self.tractor_axles + self.first_trailer_axles + self.second_trailer_axles
        if self.requires_dolly:
            total += self.expected_axles(Slot.DOLLY)
        return total

    @property
    def display_name(self) -> str:
        return self.label or self.id


class CompositionAssignment(BaseModel):
    """Vehicles assembled into one composition; any slot may be empty."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    tractor: Vehicle | None = None
    first_trailer: Vehicle | None = None
    second_trailer: Vehicle | None = None
    dolly: Vehicle | None = None

    def get(self, slot: Slot) -> Vehicle | None:
        vehicle: Vehicle | None = getattr(self, slot.value)
        return vehicle

    def occupied(self) -> Iterator[tuple[Slot, Vehicle]]:
        """Yield ``(slot, vehicle)`` for filled slots in composition order."""
        for slot in Slot:
            vehicle = self.get(slot)
            if vehicle is not None:
                yield slot, vehicle

    @property
    def plates(self) -> list[str]:
        return [vehicle.plate for _, vehicle in self.occupied()]
