"""Jurisdiction selection layer.

The orchestrator here is the single owner of which jurisdictions a
request currently targets; UI code reads its state and forwards clicks
and plate edits to it.
"""

from pyaet.selection.events import RevalidationReport, SelectionOutcome, SelectionState
from pyaet.selection.orchestrator import JurisdictionSelectionOrchestrator

__all__ = [
    "JurisdictionSelectionOrchestrator",
    "RevalidationReport",
    "SelectionOutcome",
    "SelectionState",
]
