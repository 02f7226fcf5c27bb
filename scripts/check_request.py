#!/usr/bin/env python3
"""Check a license request against the live backend.

Fetches the vehicles of a composition by plate, validates them against a
composition type (administered types included) and runs the license
conflict check for the requested jurisdictions.

Usage
-----
Set environment variables and run::

    export AET_BASE_URL="https://aet.example.com"
    export AET_SESSION_COOKIE="connect.sid=..."
    python scripts/check_request.py bitrain_9_axles \\
        --tractor ABC1D23 --first-trailer SMR3000 --second-trailer SMR3001 \\
        --states SP RJ DNIT

Options::

    --dolly PLATE        Dolly plate for road-train compositions
    --length/--width/--height METRES
                         Also check cargo dimensions
    --json               Output as machine-readable JSON
    --verbose, -v        Enable debug logging
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyaet import (  # noqa: E402
    AetClient,
    AetConfig,
    AetError,
    CompositionAssignment,
    CompositionTypeRegistry,
    DimensionOutOfRange,
    Slot,
    Vehicle,
    axle_specification_summary,
    validate_assignment,
    validate_dimensions,
)

_SLOT_ARGS: dict[Slot, str] = {
    Slot.TRACTOR: "tractor",
    Slot.FIRST_TRAILER: "first_trailer",
    Slot.SECOND_TRAILER: "second_trailer",
    Slot.DOLLY: "dolly",
}


def _section(title: str) -> str:
    return f"\n{'=' * 60}\n  {title}\n{'=' * 60}"


async def _fetch_assignment(
    client: AetClient,
    args: argparse.Namespace,
    out: list[str],
) -> CompositionAssignment:
    vehicles: dict[str, Vehicle] = {}
    for slot, attr in _SLOT_ARGS.items():
        plate = getattr(args, attr)
        if not plate:
            continue
        vehicle = await client.get_vehicle(plate)
        if vehicle is None:
            out.append(f"  {slot.value:<15}: {plate} NOT FOUND")
            continue
        out.append(
            f"  {slot.value:<15}: {vehicle.plate} type={vehicle.type.value} "
            f"axles={vehicle.axle_count} status={vehicle.status}"
        )
        vehicles[slot.value] = vehicle
    return CompositionAssignment(**vehicles)


async def run(args: argparse.Namespace) -> int:
    config = AetConfig.from_env()
    registry = CompositionTypeRegistry()
    result: dict[str, Any] = {"type_id": args.type_id, "base_url": config.base_url}
    out: list[str] = [_section(f"pyaet check_request ({config.base_url})")]

    async with AetClient(config) as client:
        overrides = await registry.load_overrides(client)
        out.append(axle_specification_summary(args.type_id, overrides, registry=registry))

        out.append(_section("VEHICLES"))
        assignment = await _fetch_assignment(client, args, out)
        result["plates"] = assignment.plates

        out.append(_section("COMPOSITION"))
        issues = validate_assignment(args.type_id, assignment, overrides, registry=registry)
        if args.length is not None and args.width is not None and args.height is not None:
            dims = validate_dimensions(
                args.type_id,
                length=args.length,
                width=args.width,
                height=args.height,
                overrides=overrides,
                registry=registry,
            )
            # An unknown type is already reported above.
            if isinstance(dims, DimensionOutOfRange):
                issues.append(dims)
        result["issues"] = [issue.model_dump(mode="json") for issue in issues]
        out.extend(f"  ✗ {issue.message}" for issue in issues)
        if not issues:
            out.append("  ✓ composition is valid")

        out.append(_section("JURISDICTIONS"))
        checker = client.conflict_checker()
        conflicts = await checker.check_jurisdictions(assignment.plates, args.states)
        result["jurisdictions"] = {
            code: {"status": r.status.value, "days_remaining": r.days_remaining, "license_number": r.license_number}
            for code, r in conflicts.items()
        }
        for conflict in conflicts.values():
            marker = "✗" if conflict.is_blocked else "✓"
            out.append(f"  {marker} {conflict.message}")

    if args.json_mode:
        print(json.dumps(result, indent=2, default=str, ensure_ascii=False))
    else:
        print("\n".join(out))

    blocked = any(conflict.is_blocked for conflict in conflicts.values())
    return 1 if issues or blocked else 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Validate a composition and check license conflicts.")
    parser.add_argument("type_id", help="Composition type id (e.g. bitrain_9_axles)")
    parser.add_argument("--tractor", help="Tractor unit plate")
    parser.add_argument("--first-trailer", dest="first_trailer", help="First trailer plate")
    parser.add_argument("--second-trailer", dest="second_trailer", help="Second trailer plate")
    parser.add_argument("--dolly", help="Dolly plate")
    parser.add_argument("--states", nargs="*", default=[], help="Jurisdictions to check (e.g. SP RJ DNIT)")
    parser.add_argument("--length", type=float, help="Cargo length in metres")
    parser.add_argument("--width", type=float, help="Cargo width in metres")
    parser.add_argument("--height", type=float, help="Cargo height in metres")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        code = asyncio.run(run(args))
    except AetError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        code = 2
    sys.exit(code)


if __name__ == "__main__":
    main()
