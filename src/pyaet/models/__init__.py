"""Data models for the validation engine."""

from pyaet.models._base import AetBaseModel, AetEnum
from pyaet.models.authorization import ActiveAuthorization, ConflictResult, ConflictStatus, JurisdictionStatus
from pyaet.models.composition import (
    SLOT_DEFAULT_TYPES,
    TRAILER_SLOTS,
    CompositionAssignment,
    CompositionTypeConfig,
    DimensionLimits,
    Slot,
)
from pyaet.models.outcomes import (
    AxleCountMismatch,
    ConfigNotFound,
    DimensionOutOfRange,
    DollyNotAllowed,
    DollyRequired,
    InvalidConfiguration,
    LookupFailed,
    MissingAxleData,
    Ok,
    TotalAxleMismatch,
    TypeMismatch,
    ValidationIssue,
    ValidationOutcome,
    validation_outcome_adapter,
)
from pyaet.models.vehicle import Vehicle, VehicleType

__all__ = [
    "ActiveAuthorization",
    "AetBaseModel",
    "AetEnum",
    "AxleCountMismatch",
    "CompositionAssignment",
    "CompositionTypeConfig",
    "ConfigNotFound",
    "ConflictResult",
    "ConflictStatus",
    "DimensionLimits",
    "DimensionOutOfRange",
    "DollyNotAllowed",
    "DollyRequired",
    "InvalidConfiguration",
    "JurisdictionStatus",
    "LookupFailed",
    "MissingAxleData",
    "Ok",
    "SLOT_DEFAULT_TYPES",
    "Slot",
    "TRAILER_SLOTS",
    "TotalAxleMismatch",
    "TypeMismatch",
    "ValidationIssue",
    "ValidationOutcome",
    "Vehicle",
    "VehicleType",
    "validation_outcome_adapter",
]
