"""Convert issued license requests into active authorizations.

One backend license request covers several jurisdictions; each approved
``stateStatuses`` entry becomes one :class:`ActiveAuthorization`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any

from pyaet._constants import APPROVED_STATUS
from pyaet.ingestion.normalize import parse_date, plate_list, safe_int, safe_str, split_state_reference
from pyaet.models.authorization import ActiveAuthorization, JurisdictionStatus

_logger = logging.getLogger(__name__)


def _state_numbers(values: Any) -> dict[str, str]:
    numbers: dict[str, str] = {}
    if not isinstance(values, list):
        return numbers
    for item in values:
        parsed = split_state_reference(item)
        if parsed is not None:
            numbers.setdefault(parsed[0], parsed[1])
    return numbers


def license_plates(record: Mapping[str, Any]) -> list[str]:
    """Main plate followed by any additional plates, normalized."""
    plates: list[Any] = [record.get("mainVehiclePlate")]
    additional = record.get("additionalPlates")
    if isinstance(additional, list):
        plates.extend(additional)
    return plate_list([p for p in plates if p is not None])


def authorizations_from_license(
    record: Mapping[str, Any],
    *,
    today: date | None = None,
) -> list[ActiveAuthorization]:
    """Expand one license request into per-jurisdiction authorizations.

    Only approved entries count.  The expiry comes from the status entry
    and falls back to the request's ``validUntil``; entries with no expiry
    or one before *today* are dropped.
    """
    if record.get("isDraft"):
        return []
    statuses = record.get("stateStatuses")
    if not isinstance(statuses, list):
        return []

    plates = license_plates(record)
    numbers = _state_numbers(record.get("stateAETNumbers"))
    fallback_number = safe_str(record.get("aetNumber")) or safe_str(record.get("requestNumber")) or ""
    fallback_expiry = parse_date(record.get("validUntil"))
    license_id = safe_int(record.get("id"))
    request_number = safe_str(record.get("requestNumber")) or ""

    result: list[ActiveAuthorization] = []
    for entry in statuses:
        status = JurisdictionStatus.parse(entry)
        if status is None:
            _logger.debug("Skipping malformed state status %r on license %s", entry, license_id)
            continue
        if status.status != APPROVED_STATUS:
            continue
        expires_on = status.expires_on or fallback_expiry
        if expires_on is None or (today is not None and expires_on < today):
            continue
        result.append(
            ActiveAuthorization(
                number=numbers.get(status.jurisdiction, fallback_number),
                jurisdiction=status.jurisdiction,
                expires_on=expires_on,
                plates=frozenset(plates),
                license_id=license_id,
                request_number=request_number,
                raw=dict(record),
            )
        )
    return result


def authorizations_from_licenses(
    records: Iterable[Mapping[str, Any]],
    *,
    today: date | None = None,
) -> list[ActiveAuthorization]:
    authorizations: list[ActiveAuthorization] = []
    for record in records:
        if isinstance(record, Mapping):
            authorizations.extend(authorizations_from_license(record, today=today))
    return authorizations
