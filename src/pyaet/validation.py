"""Vehicle composition validation.

Pure, synchronous rules deciding whether vehicles fit a composition type:

* :func:`validate_slot` checks one vehicle against one slot.
* :func:`validate_composition` checks dolly presence and the axle total.

The two catch different defects (wrong vehicle in a slot versus right
vehicles with the wrong grand total), so callers run both;
:func:`validate_assignment` does exactly that for form submission.
"""

from __future__ import annotations

from collections.abc import Iterable

from pyaet._constants import SEMI_TRAILER_AXLE_OVERRIDES
from pyaet.models.composition import TRAILER_SLOTS, CompositionAssignment, CompositionTypeConfig, Slot
from pyaet.models.outcomes import (
    AxleCountMismatch,
    ConfigNotFound,
    DimensionOutOfRange,
    DollyNotAllowed,
    DollyRequired,
    InvalidConfiguration,
    MissingAxleData,
    Ok,
    TotalAxleMismatch,
    TypeMismatch,
    ValidationIssue,
)
from pyaet.models.vehicle import Vehicle
from pyaet.registry import DEFAULT_REGISTRY, CompositionTypeRegistry, Overrides, check_invariant


def _resolve_checked(
    type_id: str,
    overrides: Overrides | None,
    registry: CompositionTypeRegistry,
) -> CompositionTypeConfig | ConfigNotFound | InvalidConfiguration:
    config = registry.resolve(type_id, overrides)
    if isinstance(config, ConfigNotFound):
        return config
    return check_invariant(config) or config


def validate_slot(
    vehicle: Vehicle,
    slot: Slot,
    type_id: str,
    overrides: Overrides | None = None,
    *,
    registry: CompositionTypeRegistry | None = None,
) -> Ok | ValidationIssue:
    """Check that *vehicle* may occupy *slot* in a *type_id* composition."""
    reg = registry or DEFAULT_REGISTRY
    config = _resolve_checked(type_id, overrides, reg)
    if not isinstance(config, CompositionTypeConfig):
        return config

    # Required even for flexible types.
    if not vehicle.axle_count:
        return MissingAxleData(plate=vehicle.plate, slot=slot.value)

    accepted = config.accepted_types(slot)
    if vehicle.type not in accepted:
        return TypeMismatch(
            plate=vehicle.plate,
            slot=slot.value,
            actual_type=vehicle.type.value,
            expected_type=accepted[0].value,
            accepted_types=tuple(t.value for t in accepted),
        )

    if reg.is_flexible(config):
        return Ok()

    expected = config.expected_axles(slot)
    override = SEMI_TRAILER_AXLE_OVERRIDES.get(config.id)
    if override is not None and slot in TRAILER_SLOTS:
        expected = override
    elif expected == 0:
        return Ok()

    if vehicle.axle_count != expected:
        return AxleCountMismatch(
            plate=vehicle.plate,
            slot=slot.value,
            type_id=config.id,
            expected=expected,
            actual=vehicle.axle_count,
        )
    return Ok()


def validate_composition(
    type_id: str,
    assignment: CompositionAssignment,
    overrides: Overrides | None = None,
    *,
    registry: CompositionTypeRegistry | None = None,
) -> Ok | ValidationIssue:
    """Check dolly presence and the total axle count of *assignment*.

    Slot-level correctness is not re-checked here.
    """
    reg = registry or DEFAULT_REGISTRY
    config = _resolve_checked(type_id, overrides, reg)
    if not isinstance(config, CompositionTypeConfig):
        return config

    dolly = assignment.dolly
    if config.requires_dolly and dolly is None:
        return DollyRequired(type_id=config.id)
    if not config.requires_dolly and dolly is not None:
        return DollyNotAllowed(type_id=config.id, plate=dolly.plate)

    total = sum(vehicle.axle_count or 0 for _, vehicle in assignment.occupied())

    if reg.is_flexible(config):
        return Ok()
    if total != config.total_axles:
        return TotalAxleMismatch(type_id=config.id, expected=config.total_axles, actual=total)
    return Ok()


def validate_assignment(
    type_id: str,
    assignment: CompositionAssignment,
    overrides: Overrides | None = None,
    *,
    registry: CompositionTypeRegistry | None = None,
) -> list[ValidationIssue]:
    """Run every slot check and the aggregate check; empty list means valid.

    A type that cannot be resolved (or is misconfigured) is reported once.
    """
    reg = registry or DEFAULT_REGISTRY
    config = _resolve_checked(type_id, overrides, reg)
    if not isinstance(config, CompositionTypeConfig):
        return [config]

    issues: list[ValidationIssue] = []
    for slot, vehicle in assignment.occupied():
        if slot is Slot.DOLLY and not config.requires_dolly:
            # Reported once by the aggregate check as DollyNotAllowed.
            continue
        outcome = validate_slot(vehicle, slot, type_id, overrides, registry=reg)
        if not isinstance(outcome, Ok):
            issues.append(outcome)

    aggregate = validate_composition(type_id, assignment, overrides, registry=reg)
    if not isinstance(aggregate, Ok):
        issues.append(aggregate)
    return issues


def filter_vehicles_for_slot(
    vehicles: Iterable[Vehicle],
    slot: Slot,
    type_id: str,
    overrides: Overrides | None = None,
    *,
    registry: CompositionTypeRegistry | None = None,
) -> list[Vehicle]:
    """Active vehicles that would pass :func:`validate_slot` for *slot*."""
    return [
        vehicle
        for vehicle in vehicles
        if vehicle.is_active
        and isinstance(validate_slot(vehicle, slot, type_id, overrides, registry=registry), Ok)
    ]


def validate_dimensions(
    type_id: str,
    *,
    length: float,
    width: float,
    height: float,
    overrides: Overrides | None = None,
    registry: CompositionTypeRegistry | None = None,
) -> Ok | ConfigNotFound | DimensionOutOfRange:
    """Check requested cargo dimensions (metres) against the type's limits."""
    config = (registry or DEFAULT_REGISTRY).resolve(type_id, overrides)
    if isinstance(config, ConfigNotFound):
        return config
    limits = config.dimension_limits
    checks = (
        ("length", "min", limits.min_length, length),
        ("length", "max", limits.max_length, length),
        ("width", "max", limits.max_width, width),
        ("height", "max", limits.max_height, height),
    )
    for dimension, bound, limit, actual in checks:
        if limit is None:
            continue
        if (bound == "min" and actual < limit) or (bound == "max" and actual > limit):
            return DimensionOutOfRange(
                type_id=config.id,
                dimension=dimension,
                bound=bound,
                limit=limit,
                actual=actual,
            )
    return Ok()


def axle_specification_summary(
    type_id: str,
    overrides: Overrides | None = None,
    *,
    registry: CompositionTypeRegistry | None = None,
) -> str:
    """Multi-line description of the expected axle layout of *type_id*."""
    reg = registry or DEFAULT_REGISTRY
    config = reg.resolve(type_id, overrides)
    if isinstance(config, ConfigNotFound):
        return config.message
    lines = [f"{config.display_name}:"]
    if reg.is_flexible(config):
        lines.append("- Flexible: axle counts are not enforced")
        return "\n".join(lines)
    lines.append(f"- Tractor: {config.tractor_axles} axles")
    lines.append(f"- First trailer: {config.first_trailer_axles} axles")
    if config.second_trailer_axles > 0:
        lines.append(f"- Second trailer: {config.second_trailer_axles} axles")
    if config.requires_dolly:
        lines.append(f"- Dolly: {config.expected_axles(Slot.DOLLY)} axles")
    lines.append(f"- Total: {config.total_axles} axles")
    return "\n".join(lines)
