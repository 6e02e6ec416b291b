"""
Report store: keyed collections of vessels, voyages, reports and bunker
records, plus the per-vessel baseline index.

ReportStore is the contract the reporting core works against. Two
implementations exist: InMemoryReportStore below (arena of dicts, for
embedding and unit tests) and api.store.SqlReportStore (SQLAlchemy).

Records handed out are copies; callers persist changes with update_*().
"""

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from .types import (
    BunkerRecord,
    Report,
    ReportStatus,
    ReportType,
    Vessel,
    Voyage,
    copy_record,
)

logger = logging.getLogger(__name__)


class ReportStore(ABC):
    """Persistence contract for the reporting core."""

    # ---- transactions -------------------------------------------------------

    @abstractmethod
    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Commit everything written inside the block, or nothing on error."""

    def lock_vessel(self, vessel_id: int) -> None:
        """Take a backend-level lock on the vessel row for the current transaction."""

    # ---- vessels ------------------------------------------------------------

    @abstractmethod
    def get_vessel(self, vessel_id: int) -> Optional[Vessel]: ...

    @abstractmethod
    def list_vessels(self) -> List[Vessel]: ...

    # ---- voyages ------------------------------------------------------------

    @abstractmethod
    def get_voyage(self, voyage_id: int) -> Optional[Voyage]: ...

    @abstractmethod
    def get_active_voyage(self, vessel_id: int) -> Optional[Voyage]: ...

    @abstractmethod
    def list_voyages(self, vessel_id: Optional[int] = None,
                     active: Optional[bool] = None) -> List[Voyage]: ...

    @abstractmethod
    def add_voyage(self, voyage: Voyage) -> Voyage:
        """Assign the next voyage id and persist."""

    @abstractmethod
    def update_voyage(self, voyage: Voyage) -> None: ...

    # ---- reports ------------------------------------------------------------

    @abstractmethod
    def get_report(self, report_id: int) -> Optional[Report]: ...

    @abstractmethod
    def list_reports(self, vessel_id: Optional[int] = None, voyage_id: Optional[int] = None,
                     status: Optional[ReportStatus] = None,
                     report_type: Optional[ReportType] = None) -> List[Report]:
        """Reports matching all given filters, ordered by id."""

    @abstractmethod
    def latest_report_in_voyage(self, voyage_id: int) -> Optional[Report]:
        """Highest sequence number in the voyage, ties broken by highest id."""

    @abstractmethod
    def add_report(self, report: Report) -> Report:
        """Assign the next report id and persist."""

    @abstractmethod
    def update_report(self, report: Report) -> None: ...

    # ---- baseline index -----------------------------------------------------

    @abstractmethod
    def get_baseline(self, vessel_id: int) -> Optional[Report]:
        """The vessel's most recently approved report, or None."""

    @abstractmethod
    def set_baseline(self, vessel_id: int, report_id: int) -> None: ...

    # ---- bunker records -----------------------------------------------------

    @abstractmethod
    def add_bunker_record(self, record: BunkerRecord) -> BunkerRecord:
        """Assign the next record id and persist."""

    @abstractmethod
    def list_bunker_records(self, vessel_id: Optional[int] = None) -> List[BunkerRecord]:
        """Records ordered by id."""

    @abstractmethod
    def delete_bunker_records_for_report(self, report_id: int) -> int:
        """Delete every record owned by the report; returns how many were removed."""

    def find_bunker_record(self, report_id: int, vessel_id: int) -> Optional[BunkerRecord]:
        matches = [r for r in self.list_bunker_records(vessel_id) if r.report_id == report_id]
        return matches[-1] if matches else None

    def latest_bunker_record(self, vessel_id: int) -> Optional[BunkerRecord]:
        records = self.list_bunker_records(vessel_id)
        return records[-1] if records else None


class InMemoryReportStore(ReportStore):
    """
    Arena store: dicts keyed by id, with a per-vessel baseline pointer.

    transaction() snapshots the arena and restores it if the block raises.
    The snapshot covers every vessel, so transactions hold the store lock
    from snapshot to commit or restore and run one at a time, whichever
    vessels they touch. Nesting depth is tracked per thread.
    """

    def __init__(self, vessels: Optional[List[Vessel]] = None):
        self._vessels: Dict[int, Vessel] = {}
        self._voyages: Dict[int, Voyage] = {}
        self._reports: Dict[int, Report] = {}
        self._bunker: Dict[int, BunkerRecord] = {}
        self._baselines: Dict[int, int] = {}
        self._lock = threading.RLock()
        self._local = threading.local()
        for vessel in vessels or []:
            self.add_vessel(vessel)

    @property
    def _depth(self) -> int:
        return getattr(self._local, "depth", 0)

    @_depth.setter
    def _depth(self, value: int) -> None:
        self._local.depth = value

    @staticmethod
    def _next_id(table: Dict[int, object]) -> int:
        return max(table) + 1 if table else 1

    def _snapshot(self):
        return (
            {k: copy_record(v) for k, v in self._vessels.items()},
            {k: copy_record(v) for k, v in self._voyages.items()},
            {k: copy_record(v) for k, v in self._reports.items()},
            {k: copy_record(v) for k, v in self._bunker.items()},
            dict(self._baselines),
        )

    @contextmanager
    def transaction(self):
        if self._depth:
            # Nested block joins the outer transaction
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        with self._lock:
            snapshot = self._snapshot()
            self._depth = 1
            try:
                yield
            except Exception:
                (self._vessels, self._voyages, self._reports,
                 self._bunker, self._baselines) = snapshot
                logger.debug("In-memory transaction rolled back")
                raise
            finally:
                self._depth = 0

    # ---- vessels ------------------------------------------------------------

    def add_vessel(self, vessel: Vessel) -> Vessel:
        with self._lock:
            if not vessel.id:
                vessel.id = self._next_id(self._vessels)
            self._vessels[vessel.id] = copy_record(vessel)
        return copy_record(vessel)

    def get_vessel(self, vessel_id):
        vessel = self._vessels.get(vessel_id)
        return copy_record(vessel) if vessel else None

    def list_vessels(self):
        return [copy_record(v) for _, v in sorted(self._vessels.items())]

    # ---- voyages ------------------------------------------------------------

    def get_voyage(self, voyage_id):
        voyage = self._voyages.get(voyage_id)
        return copy_record(voyage) if voyage else None

    def get_active_voyage(self, vessel_id):
        for voyage in self._voyages.values():
            if voyage.vessel_id == vessel_id and voyage.active:
                return copy_record(voyage)
        return None

    def list_voyages(self, vessel_id=None, active=None):
        return [
            copy_record(v) for _, v in sorted(self._voyages.items())
            if (vessel_id is None or v.vessel_id == vessel_id)
            and (active is None or v.active == active)
        ]

    def add_voyage(self, voyage):
        with self._lock:
            voyage.id = self._next_id(self._voyages)
            self._voyages[voyage.id] = copy_record(voyage)
        return copy_record(voyage)

    def update_voyage(self, voyage):
        self._voyages[voyage.id] = copy_record(voyage)

    # ---- reports ------------------------------------------------------------

    def get_report(self, report_id):
        report = self._reports.get(report_id)
        return copy_record(report) if report else None

    def list_reports(self, vessel_id=None, voyage_id=None, status=None, report_type=None):
        return [
            copy_record(r) for _, r in sorted(self._reports.items())
            if (vessel_id is None or r.vessel_id == vessel_id)
            and (voyage_id is None or r.voyage_id == voyage_id)
            and (status is None or r.status == status)
            and (report_type is None or r.type == report_type)
        ]

    def latest_report_in_voyage(self, voyage_id):
        in_voyage = [r for r in self._reports.values() if r.voyage_id == voyage_id]
        if not in_voyage:
            return None
        return copy_record(max(in_voyage, key=lambda r: (r.sequence_number, r.id)))

    def add_report(self, report):
        with self._lock:
            report.id = self._next_id(self._reports)
            self._reports[report.id] = copy_record(report)
        return copy_record(report)

    def update_report(self, report):
        self._reports[report.id] = copy_record(report)

    # ---- baseline index -----------------------------------------------------

    def get_baseline(self, vessel_id):
        report_id = self._baselines.get(vessel_id)
        return self.get_report(report_id) if report_id is not None else None

    def set_baseline(self, vessel_id, report_id):
        self._baselines[vessel_id] = report_id

    # ---- bunker records -----------------------------------------------------

    def add_bunker_record(self, record):
        with self._lock:
            record.id = self._next_id(self._bunker)
            self._bunker[record.id] = copy_record(record)
        return copy_record(record)

    def list_bunker_records(self, vessel_id=None):
        return [
            copy_record(r) for _, r in sorted(self._bunker.items())
            if vessel_id is None or r.vessel_id == vessel_id
        ]

    def delete_bunker_records_for_report(self, report_id):
        doomed = [k for k, r in self._bunker.items() if r.report_id == report_id]
        for key in doomed:
            del self._bunker[key]
        return len(doomed)
