"""Active authorization and license-conflict models."""

from __future__ import annotations

from datetime import date
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pyaet.ingestion.normalize import normalize_jurisdiction, parse_date, plate_list, split_state_status
from pyaet.models._base import AetBaseModel


class JurisdictionStatus(BaseModel):
    """Tagged form of a ``"STATE:status:date"`` entry."""

    model_config = ConfigDict(frozen=True)

    jurisdiction: str
    status: str
    expires_on: date | None = None

    @classmethod
    def parse(cls, value: Any) -> JurisdictionStatus | None:
        """Parse one encoded entry; ``None`` when it is malformed."""
        parts = split_state_status(value)
        if parts is None:
            return None
        jurisdiction, status, expires_on = parts
        return cls(jurisdiction=jurisdiction, status=status, expires_on=expires_on)


class ActiveAuthorization(AetBaseModel):
    """A currently valid authorization for one jurisdiction."""

    jurisdiction: str
    expires_on: date
    number: str = ""
    """AET number issued by the jurisdiction."""
    plates: frozenset[str] = Field(default_factory=frozenset)
    license_id: int | None = None
    request_number: str = ""

    @field_validator("jurisdiction", mode="before")
    @classmethod
    def _normalize_jurisdiction(cls, value: Any) -> str:
        code = normalize_jurisdiction(value)
        if code is None:
            raise ValueError("jurisdiction must be non-empty")
        return code

    @field_validator("expires_on", mode="before")
    @classmethod
    def _parse_expiry(cls, value: Any) -> date:
        parsed = parse_date(value)
        if parsed is None:
            raise ValueError(f"invalid expiry date: {value!r}")
        return parsed

    @field_validator("plates", mode="before")
    @classmethod
    def _normalize_plates(cls, value: Any) -> frozenset[str]:
        return frozenset(plate_list(value))

    def days_remaining(self, today: date) -> int:
        """Whole days from *today* until expiry (negative once expired)."""
        return (self.expires_on - today).days

    def covers_any(self, plates: frozenset[str] | set[str]) -> bool:
        return not self.plates.isdisjoint(plates)


class ConflictStatus(StrEnum):
    ELIGIBLE = "eligible"
    BLOCKED = "blocked"


class ConflictResult(BaseModel):
    """Per-jurisdiction answer of the license conflict check.

    ``authorization`` is the most restrictive matching record (greatest
    ``days_remaining``), present for blocked results and for eligible
    results inside the renewal window.
    """

    model_config = ConfigDict(frozen=True)

    jurisdiction: str
    status: ConflictStatus
    authorization: ActiveAuthorization | None = None
    days_remaining: int | None = None

    @property
    def is_blocked(self) -> bool:
        return self.status is ConflictStatus.BLOCKED

    @property
    def license_number(self) -> str | None:
        return self.authorization.number if self.authorization is not None else None

    @property
    def expires_on(self) -> date | None:
        return self.authorization.expires_on if self.authorization is not None else None

    @property
    def message(self) -> str:
        if not self.is_blocked:
            return f"{self.jurisdiction}: eligible"
        return (
            f"{self.jurisdiction}: blocked by authorization {self.license_number} "
            f"valid until {self.expires_on.isoformat() if self.expires_on else '?'} "
            f"({self.days_remaining} days remaining)"
        )
