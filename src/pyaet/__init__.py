"""pyaet - Composition and license-conflict validation for special-transport authorizations."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyaet")
except PackageNotFoundError:
    __version__ = "0+local"
from pyaet.catalog import (
    AuthorizationStore,
    CompositionTypeSource,
    InMemoryAuthorizationStore,
    InMemoryVehicleCatalog,
    StaticCompositionTypeSource,
    VehicleCatalog,
    VehicleFilter,
)
from pyaet.client import AetClient
from pyaet.config import AetConfig
from pyaet.conflicts import LicenseConflictChecker
from pyaet.exceptions import (
    AetApiError,
    AetConfigError,
    AetError,
    AetLookupError,
    AetTransportError,
)
from pyaet.models import (
    ActiveAuthorization,
    AxleCountMismatch,
    CompositionAssignment,
    CompositionTypeConfig,
    ConfigNotFound,
    ConflictResult,
    ConflictStatus,
    DimensionOutOfRange,
    DollyNotAllowed,
    DollyRequired,
    InvalidConfiguration,
    LookupFailed,
    MissingAxleData,
    Ok,
    Slot,
    TotalAxleMismatch,
    TypeMismatch,
    ValidationIssue,
    Vehicle,
    VehicleType,
)
from pyaet.registry import BUILTIN_COMPOSITION_TYPES, CompositionTypeRegistry, resolve
from pyaet.selection import (
    JurisdictionSelectionOrchestrator,
    RevalidationReport,
    SelectionOutcome,
    SelectionState,
)
from pyaet.validation import (
    axle_specification_summary,
    filter_vehicles_for_slot,
    validate_assignment,
    validate_composition,
    validate_dimensions,
    validate_slot,
)

__all__ = [
    "__version__",
    "ActiveAuthorization",
    "AetApiError",
    "AetClient",
    "AetConfig",
    "AetConfigError",
    "AetError",
    "AetLookupError",
    "AetTransportError",
    "AuthorizationStore",
    "AxleCountMismatch",
    "BUILTIN_COMPOSITION_TYPES",
    "CompositionAssignment",
    "CompositionTypeConfig",
    "CompositionTypeRegistry",
    "CompositionTypeSource",
    "ConfigNotFound",
    "ConflictResult",
    "ConflictStatus",
    "DimensionOutOfRange",
    "DollyNotAllowed",
    "DollyRequired",
    "InMemoryAuthorizationStore",
    "InMemoryVehicleCatalog",
    "InvalidConfiguration",
    "JurisdictionSelectionOrchestrator",
    "LicenseConflictChecker",
    "LookupFailed",
    "MissingAxleData",
    "Ok",
    "RevalidationReport",
    "SelectionOutcome",
    "SelectionState",
    "Slot",
    "StaticCompositionTypeSource",
    "TotalAxleMismatch",
    "TypeMismatch",
    "ValidationIssue",
    "Vehicle",
    "VehicleCatalog",
    "VehicleFilter",
    "VehicleType",
    "axle_specification_summary",
    "filter_vehicles_for_slot",
    "resolve",
    "validate_assignment",
    "validate_composition",
    "validate_dimensions",
    "validate_slot",
]
