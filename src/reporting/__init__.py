"""Voyage reporting core: report state machine, bunker ledger and review workflow."""

from .bunker_ledger import BunkerLedger, LedgerDiscrepancy, compute_next_rob
from .distance_tracker import initial_distance_to_go, leg_progress, updated_distance_to_go
from .errors import (
    ConflictError,
    DataIntegrityError,
    InvalidInputError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    ReportingError,
)
from .locking import VesselLockRegistry
from .review import ReviewWorkflow
from .state_machine import ReportStateMachine
from .store import InMemoryReportStore, ReportStore
from .types import (
    SUBSTANCES,
    BunkerQuantities,
    BunkerRecord,
    CargoStatus,
    PassageState,
    Report,
    ReportStatus,
    ReportType,
    Vessel,
    Voyage,
)

__all__ = [
    "BunkerLedger",
    "BunkerQuantities",
    "BunkerRecord",
    "CargoStatus",
    "ConflictError",
    "DataIntegrityError",
    "InMemoryReportStore",
    "InvalidInputError",
    "InvalidStateError",
    "InvalidTransitionError",
    "LedgerDiscrepancy",
    "NotFoundError",
    "PassageState",
    "Report",
    "ReportStateMachine",
    "ReportStatus",
    "ReportStore",
    "ReportType",
    "ReportingError",
    "ReviewWorkflow",
    "SUBSTANCES",
    "Vessel",
    "VesselLockRegistry",
    "Voyage",
    "compute_next_rob",
    "initial_distance_to_go",
    "leg_progress",
    "updated_distance_to_go",
]
