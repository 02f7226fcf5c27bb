"""Vehicle model."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from pyaet.ingestion.normalize import normalize_plate, safe_int
from pyaet.models._base import AetBaseModel, AetEnum


class VehicleType(AetEnum):
    """Vehicle category as registered in the vehicle catalog."""

    UNKNOWN = "unknown"
    TRACTOR_UNIT = "tractor_unit"
    SEMI_TRAILER = "semi_trailer"
    TRAILER = "trailer"
    DOLLY = "dolly"
    FLATBED = "flatbed"
    TRUCK = "truck"


class Vehicle(AetBaseModel):
    """A vehicle from the catalog.

    Fields are mapped from the backend ``/api/vehicles`` records.  The
    validation engine only reads ``type`` and ``axle_count``.
    """

    plate: str
    """Normalized licence plate (upper case, no separators)."""
    type: VehicleType = VehicleType.UNKNOWN
    axle_count: int | None = None
    """Registered axle count; ``None`` when the catalog has no data."""
    id: int | None = None
    status: str = "active"

    @field_validator("plate", mode="before")
    @classmethod
    def _normalize_plate(cls, value: Any) -> str:
        plate = normalize_plate(value)
        if plate is None:
            raise ValueError("plate must be non-empty")
        return plate

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> VehicleType:
        return VehicleType(value)

    @field_validator("axle_count", "id", mode="before")
    @classmethod
    def _coerce_ints(cls, value: Any) -> int | None:
        return safe_int(value)

    @field_validator("status", mode="before")
    @classmethod
    def _lower_status(cls, value: Any) -> str:
        return str(value).strip().lower()

    @property
    def is_active(self) -> bool:
        return self.status == "active"
