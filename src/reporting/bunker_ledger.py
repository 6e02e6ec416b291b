"""
Bunker ledger: remaining-on-board (ROB) snapshots per vessel.

Every report gets exactly one BunkerRecord. Its ROB is derived from the
record of the last approved report (the baseline), not from the last
submitted one, so a rejected report's record is simply skipped by the next
submission:

    rob[n] = rob[baseline] - consumed[n] + supplied[n]

ROB is never clamped. A negative level means the crew reported more
consumption than was on board; it is kept as reported and logged so that
shore staff can reject the report.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from .store import ReportStore
from .types import SUBSTANCES, BunkerQuantities, BunkerRecord, ReportStatus

logger = logging.getLogger(__name__)

# Tolerance for float drift when re-checking the chain
CHAIN_TOLERANCE = 1e-6


def compute_next_rob(
    previous: Optional[BunkerQuantities],
    consumed: Optional[BunkerQuantities],
    supplied: Optional[BunkerQuantities],
) -> BunkerQuantities:
    """
    Next ROB level per substance: previous - consumed + supplied.

    Missing inputs count as zero. No clamping.
    """
    previous = previous or BunkerQuantities()
    consumed = consumed or BunkerQuantities()
    supplied = supplied or BunkerQuantities()
    return BunkerQuantities(**{
        s: previous.get(s) - consumed.get(s) + supplied.get(s) for s in SUBSTANCES
    })


@dataclass
class LedgerDiscrepancy:
    """A place where the approved chain does not conserve."""
    report_id: int
    substance: Optional[str]
    expected: Optional[float]
    actual: Optional[float]
    message: str

    def to_dict(self) -> dict:
        return {
            "report_id": self.report_id,
            "substance": self.substance,
            "expected": self.expected,
            "actual": self.actual,
            "message": self.message,
        }


class BunkerLedger:
    """Append and look up BunkerRecords in a ReportStore."""

    def __init__(self, store: ReportStore):
        self.store = store

    def append_record(
        self,
        vessel_id: int,
        report_id: int,
        report_date: Optional[date],
        baseline_record: Optional[BunkerRecord],
        consumption: BunkerQuantities,
        supply: BunkerQuantities,
        initial_rob: Optional[BunkerQuantities] = None,
    ) -> BunkerRecord:
        """
        Derive and persist the BunkerRecord for a new report.

        The starting level is taken from, in order: the baseline record,
        the initial ROB declared on the vessel's first departure, the
        vessel's latest record of any status. With none of those the record
        is all zeros (consumption and supply included) and a warning is
        logged.
        """
        if baseline_record is not None:
            previous = baseline_record.rob
        elif initial_rob is not None:
            previous = initial_rob
        else:
            latest = self.find_latest(vessel_id)
            if latest is not None:
                logger.info(
                    f"No baseline for report {report_id}, continuing from bunker record {latest.id}"
                )
                previous = latest.rob
            else:
                logger.warning(
                    f"No previous bunker record or initial ROB for vessel {vessel_id}; "
                    f"report {report_id} starts from zero"
                )
                previous = None
                consumption = BunkerQuantities()
                supply = BunkerQuantities()

        rob = compute_next_rob(previous, consumption, supply)
        negative = [s for s in SUBSTANCES if rob.get(s) < 0]
        if negative:
            logger.warning(
                f"Negative ROB for vessel {vessel_id} report {report_id}: "
                + ", ".join(f"{s}={rob.get(s):.2f}" for s in negative)
            )

        record = BunkerRecord(
            vessel_id=vessel_id,
            report_id=report_id,
            report_date=report_date,
            rob=rob,
            consumed=consumption,
            supplied=supply,
        )
        record = self.store.add_bunker_record(record)
        logger.debug(f"Bunker record {record.id} appended for report {report_id}")
        return record

    def find_latest(self, vessel_id: int) -> Optional[BunkerRecord]:
        """The vessel's record with the highest id, whatever its report's status."""
        return self.store.latest_bunker_record(vessel_id)

    def find_by_report(self, report_id: int, vessel_id: int) -> Optional[BunkerRecord]:
        """Record owned by the report; the highest id wins if duplicates exist."""
        if not report_id:
            return None
        return self.store.find_bunker_record(report_id, vessel_id)

    def has_approved_records(self, vessel_id: int) -> bool:
        """True if any of the vessel's records belongs to one of its approved reports."""
        approved = {
            r.id for r in self.store.list_reports(vessel_id=vessel_id, status=ReportStatus.APPROVED)
        }
        return any(rec.report_id in approved for rec in self.store.list_bunker_records(vessel_id))

    def verify_chain(self, vessel_id: int) -> List[LedgerDiscrepancy]:
        """
        Re-check conservation along the vessel's approved reports.

        Approved reports, in id order, form the chain each new record was
        derived from. The first record's opening level (initial ROB) is not
        stored, so checking starts at the second.

        Returns:
            List of discrepancies, empty when the ledger conserves
        """
        issues: List[LedgerDiscrepancy] = []
        previous: Optional[BunkerRecord] = None
        approved = self.store.list_reports(vessel_id=vessel_id, status=ReportStatus.APPROVED)

        for report in approved:
            record = self.find_by_report(report.id, vessel_id)
            if record is None:
                issues.append(LedgerDiscrepancy(
                    report.id, None, None, None, "approved report has no bunker record"
                ))
                previous = None
                continue

            if previous is not None:
                expected = compute_next_rob(previous.rob, record.consumed, record.supplied)
                for s in SUBSTANCES:
                    if abs(expected.get(s) - record.rob.get(s)) > CHAIN_TOLERANCE:
                        issues.append(LedgerDiscrepancy(
                            report.id, s, expected.get(s), record.rob.get(s),
                            f"{s} ROB does not follow from report {previous.report_id}",
                        ))
            previous = record

        if issues:
            logger.warning(f"Ledger check for vessel {vessel_id}: {len(issues)} discrepancies")
        return issues
