"""Validation outcomes.

Validators return one of these models instead of raising: ``Ok`` or a
single typed issue carrying both the expected and the actual value.  The
``kind`` field discriminates the union so outcomes survive a JSON round
trip through :data:`ValidationOutcome`.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from pyaet._constants import vehicle_type_label


class _Outcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    @property
    def ok(self) -> bool:
        return False

    @property
    def message(self) -> str:
        return self.__class__.__name__


class Ok(_Outcome):
    kind: Literal["ok"] = "ok"

    @property
    def ok(self) -> bool:
        return True

    @property
    def message(self) -> str:
        return "ok"


class ConfigNotFound(_Outcome):
    kind: Literal["config_not_found"] = "config_not_found"
    type_id: str

    @property
    def message(self) -> str:
        return f"Unknown composition type {self.type_id!r}"


class InvalidConfiguration(_Outcome):
    """Per-slot axle expectations do not add up to the configured total."""

    kind: Literal["invalid_configuration"] = "invalid_configuration"
    type_id: str
    expected_total: int
    slot_sum: int

    @property
    def message(self) -> str:
        return (
            f"Composition type {self.type_id!r} is misconfigured: slot axles add up to "
            f"{self.slot_sum} but the total is {self.expected_total}"
        )


class MissingAxleData(_Outcome):
    kind: Literal["missing_axle_data"] = "missing_axle_data"
    plate: str
    slot: str

    @property
    def message(self) -> str:
        return f"Vehicle {self.plate} has no registered axle count"


class TypeMismatch(_Outcome):
    kind: Literal["type_mismatch"] = "type_mismatch"
    plate: str
    slot: str
    actual_type: str
    expected_type: str
    accepted_types: tuple[str, ...] = ()

    @property
    def message(self) -> str:
        expected = " or ".join(vehicle_type_label(t) for t in (self.accepted_types or (self.expected_type,)))
        return (
            f"Vehicle {self.plate} is a {vehicle_type_label(self.actual_type)}, "
            f"but the {self.slot.replace('_', ' ')} position requires a {expected}"
        )


class AxleCountMismatch(_Outcome):
    kind: Literal["axle_count_mismatch"] = "axle_count_mismatch"
    plate: str
    slot: str
    type_id: str
    expected: int
    actual: int

    @property
    def message(self) -> str:
        return (
            f"Vehicle {self.plate} has {self.actual} axles, but {self.type_id} requires "
            f"{self.expected} axles in the {self.slot.replace('_', ' ')} position"
        )


class DollyRequired(_Outcome):
    kind: Literal["dolly_required"] = "dolly_required"
    type_id: str

    @property
    def message(self) -> str:
        return f"{self.type_id} requires a dolly"


class DollyNotAllowed(_Outcome):
    kind: Literal["dolly_not_allowed"] = "dolly_not_allowed"
    type_id: str
    plate: str

    @property
    def message(self) -> str:
        return f"{self.type_id} does not use a dolly (got {self.plate})"


class TotalAxleMismatch(_Outcome):
    kind: Literal["total_axle_mismatch"] = "total_axle_mismatch"
    type_id: str
    expected: int
    actual: int

    @property
    def message(self) -> str:
        return f"The composition has {self.actual} axles, but {self.type_id} requires exactly {self.expected}"


class DimensionOutOfRange(_Outcome):
    kind: Literal["dimension_out_of_range"] = "dimension_out_of_range"
    type_id: str
    dimension: Literal["length", "width", "height"]
    bound: Literal["min", "max"]
    limit: float
    actual: float

    @property
    def message(self) -> str:
        relation = "at least" if self.bound == "min" else "at most"
        return f"{self.type_id} {self.dimension} must be {relation} {self.limit:.2f} m (got {self.actual:.2f} m)"


class LookupFailed(_Outcome):
    """Authorization lookup could not be completed; ask the user to retry."""

    kind: Literal["lookup_failed"] = "lookup_failed"
    jurisdictions: tuple[str, ...] = ()
    reason: str = ""
    retryable: bool = True

    @property
    def message(self) -> str:
        scope = ", ".join(self.jurisdictions) or "the selected jurisdictions"
        return f"Could not check existing authorizations for {scope}: {self.reason}. Please retry."


ValidationIssue = (
    ConfigNotFound
    | InvalidConfiguration
    | MissingAxleData
    | TypeMismatch
    | AxleCountMismatch
    | DollyRequired
    | DollyNotAllowed
    | TotalAxleMismatch
    | DimensionOutOfRange
)

ValidationOutcome = Annotated[Ok | ValidationIssue, Field(discriminator="kind")]
"""Discriminated union of every validator result."""

validation_outcome_adapter: TypeAdapter[Ok | ValidationIssue] = TypeAdapter(ValidationOutcome)
