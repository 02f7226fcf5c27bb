"""Issued license endpoint."""

from __future__ import annotations

from collections.abc import Collection
from datetime import date

from pyaet._api._common import expect_list
from pyaet._transport import Transport
from pyaet.ingestion.licenses import authorizations_from_licenses
from pyaet.ingestion.normalize import normalize_jurisdiction, plate_list
from pyaet.models.authorization import ActiveAuthorization

ISSUED_LICENSES_ENDPOINT = "/api/licenses/issued"


async def fetch_active_authorizations(
    transport: Transport,
    plates: Collection[str],
    jurisdictions: Collection[str],
    *,
    today: date,
) -> list[ActiveAuthorization]:
    """Active authorizations for any of *plates* in any of *jurisdictions*.

    The backend has no server-side filter, so the issued list is fetched
    and filtered here.
    """
    payload = await transport.get_json(ISSUED_LICENSES_ENDPOINT)
    records = expect_list(payload, endpoint=ISSUED_LICENSES_ENDPOINT)
    wanted_plates = set(plate_list(plates))
    wanted_states = {code for code in (normalize_jurisdiction(j) for j in jurisdictions) if code}
    return [
        auth
        for auth in authorizations_from_licenses(records, today=today)
        if auth.jurisdiction in wanted_states and auth.covers_any(wanted_plates)
    ]
