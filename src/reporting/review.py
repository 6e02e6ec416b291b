"""
Shore-side review of submitted reports.

Approval promotes a report to the vessel's baseline. Rejection leaves the
previous baseline in place; only a rejected voyage-starting departure is
compensated (voyage deactivated, its bunker record removed). Rejecting any
other report leaves its bunker record behind as an orphan, which the next
submission skips because it derives from the baseline.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from .errors import InvalidInputError, InvalidStateError, NotFoundError
from .locking import VesselLockRegistry
from .store import ReportStore
from .types import Report, ReportStatus, ReportType

logger = logging.getLogger(__name__)


class ReviewWorkflow:
    """Approve or reject pending reports."""

    def __init__(
        self,
        store: ReportStore,
        locks: Optional[VesselLockRegistry] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.locks = locks or VesselLockRegistry()
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def approve(self, report_id: int, reviewer: str) -> Report:
        """Approve a pending report and make it the vessel's baseline."""
        reviewer = self._require(reviewer, "reviewer")
        vessel_id = self._vessel_of(report_id)

        with self.locks.hold(vessel_id), self.store.transaction():
            self.store.lock_vessel(vessel_id)
            report = self._pending(report_id, "approve")
            report.status = ReportStatus.APPROVED
            report.reviewer = reviewer
            report.reviewed_at = self.clock()
            report.rejection_reason = None
            self.store.update_report(report)
            self.store.set_baseline(report.vessel_id, report.id)

        logger.info(f"Report {report.id} ({report.state_label}) approved by {reviewer}")
        return report

    def reject(self, report_id: int, reviewer: str, rejection_reason: str) -> Report:
        """Reject a pending report, rolling back a voyage-starting departure."""
        reviewer = self._require(reviewer, "reviewer")
        rejection_reason = self._require(rejection_reason, "rejection_reason")
        vessel_id = self._vessel_of(report_id)

        with self.locks.hold(vessel_id), self.store.transaction():
            self.store.lock_vessel(vessel_id)
            report = self._pending(report_id, "reject")
            report.status = ReportStatus.REJECTED
            report.reviewer = reviewer
            report.reviewed_at = self.clock()
            report.rejection_reason = rejection_reason
            self.store.update_report(report)
            self._roll_back_voyage_start(report)

        logger.info(f"Report {report.id} ({report.state_label}) rejected by {reviewer}: {rejection_reason}")
        return report

    def _roll_back_voyage_start(self, report: Report) -> None:
        if report.type != ReportType.DEPARTURE or report.sequence_number != 1:
            return
        voyage = self.store.get_voyage(report.voyage_id) if report.voyage_id else None
        if voyage is None or voyage.starting_report_id != report.id:
            return

        voyage.active = False
        self.store.update_voyage(voyage)
        removed = self.store.delete_bunker_records_for_report(report.id)
        logger.info(
            f"Voyage {voyage.voyage_number} deactivated after departure {report.id} was rejected; "
            f"{removed} bunker record(s) removed"
        )

    def _pending(self, report_id: int, action: str) -> Report:
        report = self.store.get_report(report_id)
        if report is None:
            raise NotFoundError("Report", report_id)
        if report.status != ReportStatus.PENDING:
            raise InvalidStateError(
                f"Cannot {action} report {report_id}: it is already {report.status.value}"
            )
        return report

    def _vessel_of(self, report_id: int) -> int:
        report = self.store.get_report(report_id)
        if report is None:
            raise NotFoundError("Report", report_id)
        return report.vessel_id

    @staticmethod
    def _require(value: Optional[str], name: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise InvalidInputError(f"{name} is required", fields=[name])
        return value.strip()
