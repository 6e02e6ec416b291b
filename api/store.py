"""
SQLAlchemy implementation of the reporting store.

Wraps one Session. transaction() commits on success and rolls back on any
exception, so a submission or review either lands completely or not at all.
Rows are converted to the reporting dataclasses at this boundary.
"""
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from api import models
from src.reporting.store import ReportStore
from src.reporting.types import (
    BunkerRecord,
    Report,
    ReportStatus,
    ReportType,
    Vessel,
    Voyage,
)

logger = logging.getLogger(__name__)


def _to_db_time(value: Optional[datetime]) -> Optional[datetime]:
    """Store timestamps as naive UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _from_db_time(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


# ============================================================================
# Row <-> record conversion
# ============================================================================

def vessel_from_row(row: models.Vessel) -> Vessel:
    return Vessel(
        id=row.id,
        name=row.name,
        flag=row.flag,
        current_captain=row.current_captain,
        bls=row.bls or 0.0,
    )


def voyage_from_row(row: models.Voyage) -> Voyage:
    return Voyage(
        id=row.id,
        voyage_number=row.voyage_number,
        vessel_id=row.vessel_id,
        departure_port=row.departure_port,
        destination_port=row.destination_port,
        cargo_status=row.cargo_status,
        cargo_type=row.cargo_type,
        cargo_quantity=row.cargo_quantity or 0.0,
        total_distance=row.total_distance or 0.0,
        active=bool(row.active),
        start_date=_from_db_time(row.start_date),
        end_date=_from_db_time(row.end_date),
        starting_report_id=row.starting_report_id,
        ending_report_id=row.ending_report_id,
    )


def report_from_row(row: models.Report) -> Report:
    return Report(
        id=row.id,
        type=ReportType(row.report_type),
        vessel_id=row.vessel_id,
        voyage_id=row.voyage_id,
        sequence_number=row.sequence_number,
        submitted_by=row.submitted_by,
        submitted_at=_from_db_time(row.submitted_at),
        status=ReportStatus(row.status),
        reviewer=row.reviewer,
        reviewed_at=_from_db_time(row.reviewed_at),
        rejection_reason=row.rejection_reason,
        report_date=row.report_date,
        distance_traveled=row.distance_traveled or 0.0,
        distance_to_go=row.distance_to_go or 0.0,
        report_data=dict(row.report_data or {}),
    )


def bunker_from_row(row: models.BunkerRecord) -> BunkerRecord:
    return BunkerRecord.from_columns(
        row.id, row.vessel_id, row.report_id, row.report_date, row.columns()
    )


def _voyage_columns(voyage: Voyage) -> dict:
    return {
        "voyage_number": voyage.voyage_number,
        "vessel_id": voyage.vessel_id,
        "departure_port": voyage.departure_port,
        "destination_port": voyage.destination_port,
        "cargo_status": voyage.cargo_status,
        "cargo_type": voyage.cargo_type,
        "cargo_quantity": voyage.cargo_quantity,
        "total_distance": voyage.total_distance,
        "active": voyage.active,
        "start_date": _to_db_time(voyage.start_date),
        "end_date": _to_db_time(voyage.end_date),
        "starting_report_id": voyage.starting_report_id,
        "ending_report_id": voyage.ending_report_id,
    }


def _report_columns(report: Report) -> dict:
    return {
        "report_type": ReportType(report.type).value,
        "vessel_id": report.vessel_id,
        "voyage_id": report.voyage_id,
        "sequence_number": report.sequence_number,
        "submitted_by": report.submitted_by,
        "submitted_at": _to_db_time(report.submitted_at),
        "status": ReportStatus(report.status).value,
        "reviewer": report.reviewer,
        "reviewed_at": _to_db_time(report.reviewed_at),
        "rejection_reason": report.rejection_reason,
        "report_date": report.report_date,
        "distance_traveled": report.distance_traveled,
        "distance_to_go": report.distance_to_go,
        "report_data": dict(report.report_data),
    }


class SqlReportStore(ReportStore):
    """ReportStore over a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db
        self._depth = 0

    @contextmanager
    def transaction(self):
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        self._depth = 1
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        finally:
            self._depth = 0

    def lock_vessel(self, vessel_id):
        if self.db.get_bind().dialect.name == "sqlite":
            return
        (
            self.db.query(models.Vessel.id)
            .filter(models.Vessel.id == vessel_id)
            .with_for_update()
            .first()
        )

    # ---- vessels ------------------------------------------------------------

    def add_vessel(self, vessel: Vessel) -> Vessel:
        row = models.Vessel(
            name=vessel.name,
            flag=vessel.flag,
            current_captain=vessel.current_captain,
            bls=vessel.bls,
        )
        if vessel.id:
            row.id = vessel.id
        self.db.add(row)
        self.db.flush()
        return vessel_from_row(row)

    def get_vessel(self, vessel_id):
        row = self.db.get(models.Vessel, vessel_id)
        return vessel_from_row(row) if row else None

    def list_vessels(self):
        return [vessel_from_row(r) for r in self.db.query(models.Vessel).order_by(models.Vessel.id)]

    # ---- voyages ------------------------------------------------------------

    def get_voyage(self, voyage_id):
        row = self.db.get(models.Voyage, voyage_id)
        return voyage_from_row(row) if row else None

    def get_active_voyage(self, vessel_id):
        row = (
            self.db.query(models.Voyage)
            .filter(models.Voyage.vessel_id == vessel_id, models.Voyage.active.is_(True))
            .order_by(models.Voyage.id.desc())
            .first()
        )
        return voyage_from_row(row) if row else None

    def list_voyages(self, vessel_id=None, active=None):
        query = self.db.query(models.Voyage)
        if vessel_id is not None:
            query = query.filter(models.Voyage.vessel_id == vessel_id)
        if active is not None:
            query = query.filter(models.Voyage.active.is_(active))
        return [voyage_from_row(r) for r in query.order_by(models.Voyage.id)]

    def add_voyage(self, voyage):
        row = models.Voyage(**_voyage_columns(voyage))
        self.db.add(row)
        self.db.flush()
        voyage.id = row.id
        return voyage_from_row(row)

    def update_voyage(self, voyage):
        row = self.db.get(models.Voyage, voyage.id)
        for key, value in _voyage_columns(voyage).items():
            setattr(row, key, value)
        self.db.flush()

    # ---- reports ------------------------------------------------------------

    def get_report(self, report_id):
        row = self.db.get(models.Report, report_id)
        return report_from_row(row) if row else None

    def list_reports(self, vessel_id=None, voyage_id=None, status=None, report_type=None):
        query = self.db.query(models.Report)
        if vessel_id is not None:
            query = query.filter(models.Report.vessel_id == vessel_id)
        if voyage_id is not None:
            query = query.filter(models.Report.voyage_id == voyage_id)
        if status is not None:
            query = query.filter(models.Report.status == ReportStatus(status).value)
        if report_type is not None:
            query = query.filter(models.Report.report_type == ReportType(report_type).value)
        return [report_from_row(r) for r in query.order_by(models.Report.id)]

    def latest_report_in_voyage(self, voyage_id):
        row = (
            self.db.query(models.Report)
            .filter(models.Report.voyage_id == voyage_id)
            .order_by(models.Report.sequence_number.desc(), models.Report.id.desc())
            .first()
        )
        return report_from_row(row) if row else None

    def add_report(self, report):
        row = models.Report(**_report_columns(report))
        self.db.add(row)
        self.db.flush()
        report.id = row.id
        return report_from_row(row)

    def update_report(self, report):
        row = self.db.get(models.Report, report.id)
        for key, value in _report_columns(report).items():
            setattr(row, key, value)
        self.db.flush()

    # ---- baseline index -----------------------------------------------------

    def get_baseline(self, vessel_id):
        pointer = self.db.get(models.VesselBaseline, vessel_id)
        return self.get_report(pointer.report_id) if pointer else None

    def set_baseline(self, vessel_id, report_id):
        pointer = self.db.get(models.VesselBaseline, vessel_id)
        if pointer is None:
            pointer = models.VesselBaseline(vessel_id=vessel_id, report_id=report_id)
            self.db.add(pointer)
        else:
            pointer.report_id = report_id
        self.db.flush()

    # ---- bunker records -----------------------------------------------------

    def add_bunker_record(self, record):
        row = models.BunkerRecord(
            vessel_id=record.vessel_id,
            report_id=record.report_id,
            report_date=record.report_date,
            **record.to_columns(),
        )
        self.db.add(row)
        self.db.flush()
        record.id = row.id
        return bunker_from_row(row)

    def list_bunker_records(self, vessel_id=None) -> List[BunkerRecord]:
        query = self.db.query(models.BunkerRecord)
        if vessel_id is not None:
            query = query.filter(models.BunkerRecord.vessel_id == vessel_id)
        return [bunker_from_row(r) for r in query.order_by(models.BunkerRecord.id)]

    def find_bunker_record(self, report_id, vessel_id):
        row = (
            self.db.query(models.BunkerRecord)
            .filter(
                models.BunkerRecord.report_id == report_id,
                models.BunkerRecord.vessel_id == vessel_id,
            )
            .order_by(models.BunkerRecord.id.desc())
            .first()
        )
        return bunker_from_row(row) if row else None

    def latest_bunker_record(self, vessel_id):
        row = (
            self.db.query(models.BunkerRecord)
            .filter(models.BunkerRecord.vessel_id == vessel_id)
            .order_by(models.BunkerRecord.id.desc())
            .first()
        )
        return bunker_from_row(row) if row else None

    def delete_bunker_records_for_report(self, report_id):
        removed = (
            self.db.query(models.BunkerRecord)
            .filter(models.BunkerRecord.report_id == report_id)
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return removed
