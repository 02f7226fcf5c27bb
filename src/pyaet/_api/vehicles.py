"""Vehicle catalog endpoints."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from pydantic import ValidationError

from pyaet._api._common import expect_list
from pyaet._transport import Transport
from pyaet.exceptions import AetApiError, AetTransportError
from pyaet.ingestion.normalize import normalize_plate
from pyaet.models.vehicle import Vehicle

_logger = logging.getLogger(__name__)

VEHICLES_ENDPOINT = "/api/vehicles"
VEHICLE_BY_PLATE_ENDPOINT = "/api/vehicles/by-plate/{plate}"


def parse_vehicle(item: Any, *, endpoint: str) -> Vehicle:
    try:
        return Vehicle.model_validate(item)
    except ValidationError as exc:
        raise AetApiError(f"Invalid vehicle record from {endpoint}: {exc}", code="invalid_vehicle", endpoint=endpoint) from exc


async def fetch_vehicle_by_plate(transport: Transport, plate: str) -> Vehicle | None:
    """Fetch one vehicle; ``None`` when the backend does not know the plate."""
    normalized = normalize_plate(plate)
    if normalized is None:
        return None
    endpoint = VEHICLE_BY_PLATE_ENDPOINT.format(plate=quote(normalized, safe=""))
    try:
        payload = await transport.get_json(endpoint)
    except AetTransportError as exc:
        if exc.status_code == 404:
            return None
        raise
    return parse_vehicle(payload, endpoint=endpoint)


async def fetch_vehicle_list(transport: Transport) -> list[Vehicle]:
    """Fetch every vehicle visible to the session; malformed records are skipped."""
    payload = await transport.get_json(VEHICLES_ENDPOINT)
    vehicles: list[Vehicle] = []
    for item in expect_list(payload, endpoint=VEHICLES_ENDPOINT):
        try:
            vehicles.append(Vehicle.model_validate(item))
        except ValidationError as exc:
            _logger.debug("Skipping invalid vehicle record: %s", exc)
    return vehicles
