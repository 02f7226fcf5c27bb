"""Composition type registry.

Two-tier resolution: an injected override collection (types administered
at runtime) is consulted first, then the fixed built-in table.  Nothing
here mutates shared state, so one registry can serve concurrent callers.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Protocol

from pyaet._constants import LEGACY_FLEXIBLE_TYPE_IDS
from pyaet.models.composition import CompositionTypeConfig, DimensionLimits, Slot
from pyaet.models.outcomes import ConfigNotFound, InvalidConfiguration
from pyaet.models.vehicle import VehicleType

_logger = logging.getLogger(__name__)

Overrides = Mapping[str, CompositionTypeConfig] | Iterable[CompositionTypeConfig]


class CompositionTypeSource(Protocol):
    """Provider of administered (dynamic) composition types."""

    async def list_configured_types(self) -> list[CompositionTypeConfig]: ...


_ROAD_LIMITS = DimensionLimits(min_length=19.8, max_length=30.0, max_width=2.6, max_height=4.4)
_OVERSIZE_LIMITS = DimensionLimits(max_width=3.2, max_height=4.95)

BUILTIN_COMPOSITION_TYPES: dict[str, CompositionTypeConfig] = {
    config.id: config
    for config in (
        CompositionTypeConfig(
            id="bitrain_6_axles",
            label="Bitrain 6 axles",
            tractor_axles=2,
            first_trailer_axles=2,
            second_trailer_axles=2,
            total_axles=6,
            dimension_limits=_ROAD_LIMITS,
        ),
        CompositionTypeConfig(
            id="bitrain_7_axles",
            label="Bitrain 7 axles",
            tractor_axles=3,
            first_trailer_axles=2,
            second_trailer_axles=2,
            total_axles=7,
            dimension_limits=_ROAD_LIMITS,
        ),
        CompositionTypeConfig(
            id="bitrain_9_axles",
            label="Bitrain 9 axles",
            tractor_axles=3,
            first_trailer_axles=3,
            second_trailer_axles=3,
            total_axles=9,
            dimension_limits=_ROAD_LIMITS,
        ),
        CompositionTypeConfig(
            id="roadtrain_9_axles",
            label="Road-train 9 axles",
            tractor_axles=3,
            first_trailer_axles=2,
            second_trailer_axles=2,
            dolly_axles=2,
            total_axles=9,
            requires_dolly=True,
            dimension_limits=_ROAD_LIMITS,
        ),
        CompositionTypeConfig(
            id="flatbed",
            label="Flatbed",
            is_flexible=True,
            vehicle_types={
                Slot.TRACTOR: (VehicleType.TRACTOR_UNIT,),
                Slot.FIRST_TRAILER: (VehicleType.FLATBED, VehicleType.SEMI_TRAILER),
            },
            dimension_limits=_OVERSIZE_LIMITS,
        ),
        CompositionTypeConfig(
            id="romeo_and_juliet",
            label="Romeo and Juliet",
            is_flexible=True,
            dimension_limits=_ROAD_LIMITS,
        ),
    )
}


def overrides_from(configs: Overrides | None) -> dict[str, CompositionTypeConfig]:
    """Index an override collection by type id (later entries win)."""
    if configs is None:
        return {}
    if isinstance(configs, Mapping):
        return dict(configs)
    return {config.id: config for config in configs}


def check_invariant(config: CompositionTypeConfig) -> InvalidConfiguration | None:
    """Return an issue when a fixed-axle type's slots do not add up to its total."""
    if config.is_flexible:
        return None
    slot_sum = config.slot_axle_sum
    if slot_sum == config.total_axles:
        return None
    return InvalidConfiguration(type_id=config.id, expected_total=config.total_axles, slot_sum=slot_sum)


class CompositionTypeRegistry:
    """Resolve composition type ids against overrides, then built-ins."""

    def __init__(self, builtin: Mapping[str, CompositionTypeConfig] | None = None) -> None:
        self._builtin: dict[str, CompositionTypeConfig] = dict(
            BUILTIN_COMPOSITION_TYPES if builtin is None else builtin
        )

    @property
    def builtin(self) -> Mapping[str, CompositionTypeConfig]:
        return dict(self._builtin)

    def resolve(
        self,
        type_id: str,
        overrides: Overrides | None = None,
    ) -> CompositionTypeConfig | ConfigNotFound:
        """Resolve *type_id*; never falls back to a permissive default.

        An inactive override hides the identifier entirely, including a
        built-in entry of the same id.
        """
        key = type_id.strip()
        dynamic = overrides_from(overrides)
        config = dynamic.get(key)
        if config is not None:
            if not config.is_active:
                _logger.debug("Composition type %s is disabled by its override", key)
                return ConfigNotFound(type_id=key)
            return config
        config = self._builtin.get(key)
        if config is None:
            return ConfigNotFound(type_id=key)
        return config

    def type_ids(self, overrides: Overrides | None = None) -> list[str]:
        """Every resolvable type id, built-ins first."""
        dynamic = overrides_from(overrides)
        ids = dict.fromkeys(self._builtin)
        ids.update(dict.fromkeys(dynamic))
        return [type_id for type_id in ids if not isinstance(self.resolve(type_id, dynamic), ConfigNotFound)]

    def is_flexible(self, config: CompositionTypeConfig) -> bool:
        """Whether axle counts are ignored for *config*.

        The flag is authoritative.  Ids in the legacy list are still
        treated as flexible, but that path is logged so such types can be
        migrated to the flag.
        """
        if config.is_flexible:
            return True
        if config.id in LEGACY_FLEXIBLE_TYPE_IDS:
            _logger.warning(
                "Composition type %s is flexible only through the legacy id list; set isFlexible instead",
                config.id,
            )
            return True
        return False

    async def load_overrides(self, source: CompositionTypeSource) -> dict[str, CompositionTypeConfig]:
        """Fetch administered types and index them for :meth:`resolve`."""
        configs = await source.list_configured_types()
        dynamic = overrides_from(configs)
        for config in dynamic.values():
            issue = check_invariant(config)
            if issue is not None:
                _logger.warning("%s", issue.message)
        _logger.debug("Loaded %d administered composition types", len(dynamic))
        return dynamic


DEFAULT_REGISTRY = CompositionTypeRegistry()


def resolve(type_id: str, overrides: Overrides | None = None) -> CompositionTypeConfig | ConfigNotFound:
    """Resolve against :data:`DEFAULT_REGISTRY`."""
    return DEFAULT_REGISTRY.resolve(type_id, overrides)
