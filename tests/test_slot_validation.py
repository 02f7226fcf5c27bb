from __future__ import annotations

import logging

import pytest

from pyaet.models.composition import CompositionTypeConfig, Slot
from pyaet.models.outcomes import (
    AxleCountMismatch,
    ConfigNotFound,
    InvalidConfiguration,
    MissingAxleData,
    Ok,
    TypeMismatch,
)
from pyaet.models.vehicle import Vehicle, VehicleType
from pyaet.registry import CompositionTypeRegistry
from pyaet.validation import filter_vehicles_for_slot, validate_slot


def _vehicle(plate: str, vehicle_type: VehicleType, axles: int | None, **kwargs: object) -> Vehicle:
    return Vehicle(plate=plate, type=vehicle_type, axle_count=axles, **kwargs)


def test_matching_slot_is_ok() -> None:
    tractor = _vehicle("TRC3000", VehicleType.TRACTOR_UNIT, 3)
    assert validate_slot(tractor, Slot.TRACTOR, "bitrain_9_axles") == Ok()


def test_semi_trailer_with_wrong_axles_reports_expected_and_actual() -> None:
    trailer = _vehicle("SMR2000", VehicleType.SEMI_TRAILER, 2)
    outcome = validate_slot(trailer, Slot.FIRST_TRAILER, "bitrain_9_axles")
    assert isinstance(outcome, AxleCountMismatch)
    assert outcome.expected == 3
    assert outcome.actual == 2
    assert outcome.plate == "SMR2000"
    assert outcome.slot == "first_trailer"
    assert "requires 3 axles" in outcome.message


def test_wrong_vehicle_type_is_rejected() -> None:
    truck = _vehicle("TRK1000", VehicleType.TRUCK, 3)
    outcome = validate_slot(truck, Slot.TRACTOR, "bitrain_9_axles")
    assert isinstance(outcome, TypeMismatch)
    assert outcome.actual_type == "truck"
    assert outcome.expected_type == "tractor_unit"
    assert outcome.message == "Vehicle TRK1000 is a truck, but the tractor position requires a tractor unit"


def test_type_is_checked_before_axles() -> None:
    truck = _vehicle("TRK1000", VehicleType.TRUCK, 7)
    assert isinstance(validate_slot(truck, Slot.FIRST_TRAILER, "bitrain_9_axles"), TypeMismatch)


@pytest.mark.parametrize("axles", [None, 0])
def test_missing_axle_count(axles: int | None) -> None:
    tractor = _vehicle("TRC3000", VehicleType.TRACTOR_UNIT, axles)
    outcome = validate_slot(tractor, Slot.TRACTOR, "bitrain_9_axles")
    assert outcome == MissingAxleData(plate="TRC3000", slot="tractor")


def test_missing_axle_count_is_required_for_flexible_types() -> None:
    tractor = _vehicle("TRC3000", VehicleType.TRACTOR_UNIT, None)
    assert isinstance(validate_slot(tractor, Slot.TRACTOR, "flatbed"), MissingAxleData)


def test_unknown_type_id() -> None:
    tractor = _vehicle("TRC3000", VehicleType.TRACTOR_UNIT, 3)
    outcome = validate_slot(tractor, Slot.TRACTOR, "nope")
    assert outcome == ConfigNotFound(type_id="nope")


def test_flexible_type_accepts_any_axle_count() -> None:
    tractor = _vehicle("TRC3000", VehicleType.TRACTOR_UNIT, 5)
    flatbed = _vehicle("PRC1111", VehicleType.FLATBED, 11)
    semi = _vehicle("SMR9999", VehicleType.SEMI_TRAILER, 1)
    assert validate_slot(tractor, Slot.TRACTOR, "flatbed") == Ok()
    assert validate_slot(flatbed, Slot.FIRST_TRAILER, "flatbed") == Ok()
    assert validate_slot(semi, Slot.FIRST_TRAILER, "flatbed") == Ok()


def test_flexible_type_still_checks_vehicle_type() -> None:
    dolly = _vehicle("DLY2222", VehicleType.DOLLY, 2)
    assert isinstance(validate_slot(dolly, Slot.FIRST_TRAILER, "flatbed"), TypeMismatch)


def test_dolly_slot_uses_default_dolly_axles() -> None:
    config = CompositionTypeConfig(
        id="dolly_default",
        tractor_axles=3,
        first_trailer_axles=2,
        second_trailer_axles=2,
        requires_dolly=True,
        total_axles=9,
    )
    dolly = _vehicle("DLY2222", VehicleType.DOLLY, 2)
    assert validate_slot(dolly, Slot.DOLLY, "dolly_default", [config]) == Ok()
    heavy = _vehicle("DLY3333", VehicleType.DOLLY, 3)
    outcome = validate_slot(heavy, Slot.DOLLY, "dolly_default", [config])
    assert isinstance(outcome, AxleCountMismatch)
    assert outcome.expected == 2


def test_zero_expected_axles_skips_count() -> None:
    config = CompositionTypeConfig(
        id="single_trailer",
        tractor_axles=3,
        first_trailer_axles=3,
        total_axles=6,
    )
    trailer = _vehicle("SMR4444", VehicleType.SEMI_TRAILER, 4)
    assert validate_slot(trailer, Slot.SECOND_TRAILER, "single_trailer", [config]) == Ok()


def test_override_changes_expectation() -> None:
    override = CompositionTypeConfig(
        id="custom_axles",
        tractor_axles=2,
        first_trailer_axles=4,
        second_trailer_axles=4,
        total_axles=10,
        vehicle_types={"tractor": ["truck"]},
    )
    truck = _vehicle("TRK1000", VehicleType.TRUCK, 2)
    trailer = _vehicle("SMR4444", VehicleType.SEMI_TRAILER, 4)
    assert validate_slot(truck, Slot.TRACTOR, "custom_axles", [override]) == Ok()
    assert validate_slot(trailer, Slot.FIRST_TRAILER, "custom_axles", [override]) == Ok()


def test_semi_trailer_override_wins_for_builtin_ids() -> None:
    # Admin override declares 4-axle trailers, the regulatory count for the id still applies.
    override = CompositionTypeConfig(
        id="bitrain_6_axles",
        tractor_axles=2,
        first_trailer_axles=4,
        second_trailer_axles=4,
        total_axles=10,
    )
    trailer = _vehicle("SMR2000", VehicleType.SEMI_TRAILER, 2)
    assert validate_slot(trailer, Slot.FIRST_TRAILER, "bitrain_6_axles", [override]) == Ok()


def test_misconfigured_type_is_reported() -> None:
    broken = CompositionTypeConfig(
        id="broken",
        tractor_axles=3,
        first_trailer_axles=3,
        second_trailer_axles=3,
        total_axles=8,
    )
    tractor = _vehicle("TRC3000", VehicleType.TRACTOR_UNIT, 3)
    outcome = validate_slot(tractor, Slot.TRACTOR, "broken", [broken])
    assert isinstance(outcome, InvalidConfiguration)
    assert outcome.slot_sum == 9


def test_legacy_flexible_id_without_flag(caplog: pytest.LogCaptureFixture) -> None:
    legacy = CompositionTypeConfig(
        id="romeo_and_juliet",
        tractor_axles=3,
        first_trailer_axles=2,
        total_axles=5,
    )
    trailer = _vehicle("SMR7777", VehicleType.SEMI_TRAILER, 6)
    with caplog.at_level(logging.WARNING, logger="pyaet.registry"):
        outcome = validate_slot(trailer, Slot.FIRST_TRAILER, "romeo_and_juliet", [legacy])
    assert outcome == Ok()
    assert "romeo_and_juliet" in caplog.text


def test_validation_does_not_mutate_inputs() -> None:
    trailer = _vehicle("SMR2000", VehicleType.SEMI_TRAILER, 2)
    first = validate_slot(trailer, Slot.FIRST_TRAILER, "bitrain_9_axles")
    second = validate_slot(trailer, Slot.FIRST_TRAILER, "bitrain_9_axles")
    assert first == second
    assert trailer.axle_count == 2


def test_custom_registry() -> None:
    only = CompositionTypeConfig(id="solo", tractor_axles=2, total_axles=2)
    registry = CompositionTypeRegistry({"solo": only})
    tractor = _vehicle("TRC2000", VehicleType.TRACTOR_UNIT, 2)
    assert validate_slot(tractor, Slot.TRACTOR, "solo", registry=registry) == Ok()
    assert isinstance(validate_slot(tractor, Slot.TRACTOR, "bitrain_9_axles", registry=registry), ConfigNotFound)


class TestFilterVehiclesForSlot:
    def test_keeps_active_matching_vehicles(self) -> None:
        vehicles = [
            _vehicle("SMR3000", VehicleType.SEMI_TRAILER, 3),
            _vehicle("SMR2000", VehicleType.SEMI_TRAILER, 2),
            _vehicle("TRC3000", VehicleType.TRACTOR_UNIT, 3),
            _vehicle("SMR3001", VehicleType.SEMI_TRAILER, 3, status="inactive"),
        ]
        kept = filter_vehicles_for_slot(vehicles, Slot.FIRST_TRAILER, "bitrain_9_axles")
        assert [v.plate for v in kept] == ["SMR3000"]

    def test_unknown_type_keeps_nothing(self) -> None:
        vehicles = [_vehicle("TRC3000", VehicleType.TRACTOR_UNIT, 3)]
        assert filter_vehicles_for_slot(vehicles, Slot.TRACTOR, "nope") == []
