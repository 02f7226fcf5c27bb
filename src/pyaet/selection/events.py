"""Selection states and the outcomes reported to callers."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from pyaet.models.authorization import ConflictResult
from pyaet.models.outcomes import LookupFailed


class SelectionState(StrEnum):
    UNSELECTED = "unselected"
    CHECKING = "checking"
    SELECTED = "selected"
    BLOCKED_REJECTED = "blocked_rejected"


class SelectionOutcome(BaseModel):
    """Result of a select/deselect attempt on one jurisdiction."""

    model_config = ConfigDict(frozen=True)

    jurisdiction: str
    state: SelectionState
    conflict: ConflictResult | None = None
    """Conflict check result, when one was run."""
    failure: LookupFailed | None = None
    """Set when the lookup failed; the jurisdiction stays unselected."""
    ignored: bool = False
    """A check for this jurisdiction was already in flight."""
    superseded: bool = False
    """The check finished after a deselect; its result was discarded."""

    @property
    def selected(self) -> bool:
        return self.state is SelectionState.SELECTED


class RevalidationReport(BaseModel):
    """Outcome of the batched re-check that follows a plate change."""

    model_config = ConfigDict(frozen=True)

    plates: frozenset[str] = Field(default_factory=frozenset)
    checked: tuple[str, ...] = ()
    removed: dict[str, ConflictResult] = Field(default_factory=dict)
    """Jurisdictions forced out of the selection, with the blocking result."""
    failure: LookupFailed | None = None

    @property
    def removed_jurisdictions(self) -> tuple[str, ...]:
        return tuple(self.removed)
