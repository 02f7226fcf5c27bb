"""Administered composition type (vehicle set type) endpoint."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from pyaet._api._common import expect_list
from pyaet._transport import Transport
from pyaet.models.composition import CompositionTypeConfig

_logger = logging.getLogger(__name__)

VEHICLE_SET_TYPES_ENDPOINT = "/api/admin/vehicle-set-types"


async def fetch_composition_types(transport: Transport) -> list[CompositionTypeConfig]:
    """Fetch administered types; records that fail validation are skipped."""
    payload = await transport.get_json(VEHICLE_SET_TYPES_ENDPOINT)
    configs: list[CompositionTypeConfig] = []
    for item in expect_list(payload, endpoint=VEHICLE_SET_TYPES_ENDPOINT):
        try:
            configs.append(CompositionTypeConfig.model_validate(item))
        except ValidationError as exc:
            _logger.warning("Skipping invalid composition type record: %s", exc)
    return configs
