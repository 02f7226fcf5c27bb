"""Internal constants shared across the library."""

BASE_URL = "http://localhost:5000"
USER_AGENT = "pyaet/1"

# ------------------------------------------------------------------
# License conflict rules
# ------------------------------------------------------------------

#: A jurisdiction stays blocked while an existing authorization has more
#: than this many days left.  Inside the window a renewal may be requested.
RENEWAL_WINDOW_DAYS = 60

#: Status tag of an approved jurisdiction inside ``stateStatuses``.
APPROVED_STATUS = "approved"

JURISDICTIONS: tuple[str, ...] = (
    "AC", "AL", "AP", "AM", "BA", "CE", "DF", "ES", "GO", "MA",
    "MT", "MS", "MG", "PA", "PB", "PR", "PE", "PI", "RJ", "RN",
    "RS", "RO", "RR", "SC", "SP", "SE", "TO", "DNIT",
)  # fmt: skip

# ------------------------------------------------------------------
# Composition rules
# ------------------------------------------------------------------

DEFAULT_DOLLY_AXLES = 2

#: Composition types treated as flexible regardless of their flag.
#: Kept for types configured before ``isFlexible`` existed; new types
#: must set the flag instead of being added here.
LEGACY_FLEXIBLE_TYPE_IDS: frozenset[str] = frozenset({"flatbed", "romeo_and_juliet"})

#: Exact semi-trailer axle count required by specific composition types.
#: Applies to both trailer slots and replaces the per-slot expectation.
SEMI_TRAILER_AXLE_OVERRIDES: dict[str, int] = {
    "bitrain_6_axles": 2,
    "bitrain_7_axles": 2,
    "bitrain_9_axles": 3,
    "roadtrain_9_axles": 2,
}

VEHICLE_TYPE_LABELS: dict[str, str] = {
    "tractor_unit": "tractor unit",
    "semi_trailer": "semi-trailer",
    "trailer": "trailer",
    "dolly": "dolly",
    "truck": "truck",
    "flatbed": "flatbed",
}


def vehicle_type_label(value: str) -> str:
    """Human-readable label for a vehicle type value."""
    return VEHICLE_TYPE_LABELS.get(value, value)
