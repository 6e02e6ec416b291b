"""
Domain records for voyage reporting.

Vessels, voyages, reports and bunker snapshots as plain dataclasses. The
store implementations (in-memory and SQLAlchemy) translate these to and from
their own representation, so the reporting core never sees ORM objects.
"""

from dataclasses import dataclass, field, fields
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional

# Tracked fuels and lubricants, in ledger column order
SUBSTANCES = ("lsifo", "lsmgo", "cyl_oil", "me_oil", "ae_oil", "vol_oil")


class ReportType(str, Enum):
    DEPARTURE = "departure"
    NOON = "noon"
    ARRIVAL = "arrival"
    BERTH = "berth"


class ReportStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PassageState(str, Enum):
    """Noon report sub-state: normal steaming, stop of sea passage, resumption."""
    NOON = "noon"
    SOSP = "sosp"
    ROSP = "rosp"


class CargoStatus(str, Enum):
    LOADED = "loaded"
    BALLAST = "ballast"


@dataclass
class BunkerQuantities:
    """Per-substance quantities (MT): a ROB level, a consumption or a supply."""
    lsifo: float = 0.0
    lsmgo: float = 0.0
    cyl_oil: float = 0.0
    me_oil: float = 0.0
    ae_oil: float = 0.0
    vol_oil: float = 0.0

    def get(self, substance: str) -> float:
        return getattr(self, substance)

    def is_empty(self) -> bool:
        return all(self.get(s) == 0 for s in SUBSTANCES)

    def to_dict(self) -> Dict[str, float]:
        return {s: self.get(s) for s in SUBSTANCES}

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> 'BunkerQuantities':
        """Create from a substance-keyed dict, treating missing/None as 0."""
        d = d or {}
        return cls(**{s: float(d.get(s) or 0.0) for s in SUBSTANCES})


@dataclass
class Vessel:
    """Vessel master data. Created out of band, read-only to the reporting core."""
    id: int
    name: str
    flag: Optional[str] = None
    current_captain: Optional[str] = None
    bls: float = 0.0  # Cargo capacity limit (bill of lading quantity)


@dataclass
class Voyage:
    """One leg between a departure and the next departure."""
    id: int = 0
    voyage_number: str = ""
    vessel_id: int = 0
    departure_port: str = ""
    destination_port: str = ""
    cargo_status: str = CargoStatus.BALLAST.value
    cargo_type: Optional[str] = None
    cargo_quantity: float = 0.0
    total_distance: float = 0.0
    active: bool = True
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    starting_report_id: Optional[int] = None
    ending_report_id: Optional[int] = None


@dataclass
class Report:
    """A submitted departure/noon/arrival/berth report.

    Derived fields (sequence_number, distance_traveled, distance_to_go) are
    fixed when the report is created and never recomputed.
    """
    id: int = 0
    type: ReportType = ReportType.NOON
    vessel_id: int = 0
    voyage_id: Optional[int] = None
    sequence_number: int = 1
    submitted_by: str = ""
    submitted_at: Optional[datetime] = None
    status: ReportStatus = ReportStatus.PENDING
    reviewer: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    report_date: Optional[date] = None
    distance_traveled: float = 0.0
    distance_to_go: float = 0.0
    report_data: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_pending(self) -> bool:
        return self.status == ReportStatus.PENDING

    @property
    def is_approved(self) -> bool:
        return self.status == ReportStatus.APPROVED

    @property
    def passage_state(self) -> Optional[PassageState]:
        """Noon sub-state, None for other report types."""
        if self.type != ReportType.NOON:
            return None
        raw = self.report_data.get("passage_state") or PassageState.NOON.value
        return PassageState(str(raw).lower())

    @property
    def state_label(self) -> str:
        """Label used in transition checks: report type, or passage state for noon."""
        if self.type == ReportType.NOON:
            return self.passage_state.value
        return self.type.value


@dataclass
class BunkerRecord:
    """ROB snapshot taken when a report is submitted.

    rob = previous rob - consumed + supplied, per substance.
    """
    id: int = 0
    vessel_id: int = 0
    report_id: int = 0
    report_date: Optional[date] = None
    rob: BunkerQuantities = field(default_factory=BunkerQuantities)
    consumed: BunkerQuantities = field(default_factory=BunkerQuantities)
    supplied: BunkerQuantities = field(default_factory=BunkerQuantities)

    def to_columns(self) -> Dict[str, float]:
        """Flatten to `<substance>_rob/_consumed/_supplied` columns."""
        cols = {}
        for s in SUBSTANCES:
            cols[f"{s}_rob"] = self.rob.get(s)
            cols[f"{s}_consumed"] = self.consumed.get(s)
            cols[f"{s}_supplied"] = self.supplied.get(s)
        return cols

    @classmethod
    def from_columns(cls, id: int, vessel_id: int, report_id: int,
                     report_date: Optional[date], cols: Dict[str, Any]) -> 'BunkerRecord':
        def pick(suffix: str) -> BunkerQuantities:
            return BunkerQuantities.from_dict({s: cols.get(f"{s}_{suffix}") for s in SUBSTANCES})

        return cls(
            id=id,
            vessel_id=vessel_id,
            report_id=report_id,
            report_date=report_date,
            rob=pick("rob"),
            consumed=pick("consumed"),
            supplied=pick("supplied"),
        )


def copy_record(record):
    """Shallow-copy a record dataclass, duplicating its dict/quantity members."""
    values = {}
    for f in fields(record):
        value = getattr(record, f.name)
        if isinstance(value, dict):
            value = dict(value)
        elif isinstance(value, BunkerQuantities):
            value = BunkerQuantities(**value.to_dict())
        values[f.name] = value
    return type(record)(**values)
