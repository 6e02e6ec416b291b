"""
Report state machine.

Decides whether a report may be submitted and materialises it: sequence
number, distance fields, voyage activation and the bunker ledger entry.

Every decision is taken against the vessel's *baseline*, its most recently
approved report. Pending and rejected reports never become a baseline, so a
rejected noon report is effectively replaced by the next submission.

Transition table (baseline state -> allowed next states), where a noon
report is represented by its passage state:

    none       -> departure
    departure  -> noon, arrival
    noon/rosp  -> noon, sosp, arrival
    sosp       -> rosp
    arrival    -> departure, berth
    berth      -> departure, berth

A voyage also admits only one report in review at a time: while its latest
report is pending, nothing else can be submitted for it.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from .bunker_ledger import BunkerLedger
from .distance_tracker import initial_distance_to_go, leg_progress
from .errors import (
    ConflictError,
    DataIntegrityError,
    InvalidInputError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
)
from .locking import VesselLockRegistry
from .payloads import (
    ArrivalPayload,
    BerthPayload,
    DeparturePayload,
    NoonPayload,
    ReportPayload,
    parse_payload,
    parse_report_type,
)
from .store import ReportStore
from .types import (
    BunkerRecord,
    PassageState,
    Report,
    ReportStatus,
    ReportType,
    Vessel,
    Voyage,
)

logger = logging.getLogger(__name__)


TRANSITIONS: Dict[Optional[str], tuple] = {
    None: ("departure",),
    "departure": ("noon", "arrival"),
    "noon": ("noon", "sosp", "arrival"),
    "rosp": ("noon", "sosp", "arrival"),
    "sosp": ("rosp",),
    "arrival": ("departure", "berth"),
    "berth": ("departure", "berth"),
}

_TRANSITION_HINTS = {
    "departure": "a new departure requires the previous voyage to end with an arrival or berth report",
    "noon": "a stopped vessel (SOSP) must report ROSP before normal noon reports",
    "sosp": "SOSP may only follow a noon or ROSP report",
    "rosp": "ROSP may only follow an SOSP report",
    "arrival": "arrival may only follow a departure, noon or ROSP report",
    "berth": "berth reports require an arrival first",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _attempted_state(report_type: ReportType, payload: ReportPayload) -> str:
    if isinstance(payload, NoonPayload):
        return payload.passage_state.value
    return report_type.value


@dataclass
class ReportOptions:
    """What the vessel may submit right now."""
    vessel_id: int
    baseline_report_id: Optional[int] = None
    baseline_state: Optional[str] = None
    pending_report_id: Optional[int] = None
    allowed: List[str] = field(default_factory=list)


@dataclass
class PreviousDeparture:
    has_previous_departure: bool = False
    last_destination_port: Optional[str] = None
    voyage_id: Optional[int] = None


class ReportStateMachine:
    """
    Validates and records report submissions for vessels.

    Args:
        store: ReportStore holding vessels, voyages, reports and bunker records
        locks: shared VesselLockRegistry; one is created when omitted
        clock: returns the current UTC datetime (injectable for tests)
        enforce_bls_limit: reject cargo quantities above the vessel's BLS
    """

    def __init__(
        self,
        store: ReportStore,
        locks: Optional[VesselLockRegistry] = None,
        clock: Optional[Callable[[], datetime]] = None,
        enforce_bls_limit: bool = True,
    ):
        self.store = store
        self.locks = locks or VesselLockRegistry()
        self.clock = clock or _utcnow
        self.enforce_bls_limit = enforce_bls_limit
        self.ledger = BunkerLedger(store)

    # =========================================================================
    # Submission
    # =========================================================================

    def submit(
        self,
        vessel_id: int,
        submitted_by: str,
        report_type: Any,
        report_data: Optional[Mapping[str, Any]],
    ) -> Report:
        """
        Submit a report for review.

        Returns:
            The created Report (status pending)

        Raises:
            InvalidInputError: bad type, submitter or payload
            NotFoundError: unknown vessel
            ConflictError: the voyage already has a report pending review
            InvalidStateError: noon/arrival/berth with no approved report yet
            InvalidTransitionError: report type not allowed after the baseline
            DataIntegrityError: baseline report has no bunker record
        """
        report_type = parse_report_type(report_type)
        if not isinstance(submitted_by, str) or not submitted_by.strip():
            raise InvalidInputError("submitted_by is required", fields=["submitted_by"])
        payload = parse_payload(report_type, report_data)
        # Unknown vessels never get a registry entry
        self._get_vessel(vessel_id)

        with self.locks.hold(vessel_id), self.store.transaction():
            self.store.lock_vessel(vessel_id)
            vessel = self._get_vessel(vessel_id)
            baseline = self.store.get_baseline(vessel_id)
            active = self.store.get_active_voyage(vessel_id)

            self._check_admission(baseline, active)
            self._check_transition(vessel_id, baseline, report_type, payload)

            data = dict(report_data)
            if isinstance(payload, DeparturePayload):
                report = self._submit_departure(vessel, baseline, active, submitted_by.strip(), payload, data)
            elif isinstance(payload, BerthPayload):
                report = self._submit_berth(vessel, baseline, submitted_by.strip(), payload, data)
            else:
                report = self._submit_passage(vessel, baseline, submitted_by.strip(), payload, data)

        logger.info(
            f"Report {report.id} ({report.state_label}) submitted for vessel {vessel_id} "
            f"voyage {report.voyage_id} seq {report.sequence_number} by {report.submitted_by}"
        )
        return report

    def _submit_departure(self, vessel: Vessel, baseline: Optional[Report], active: Optional[Voyage],
                          submitted_by: str, payload: DeparturePayload, data: Dict[str, Any]) -> Report:
        self._check_cargo_limit(vessel, payload.cargo_quantity)
        baseline_record = self._baseline_record(baseline) if baseline else None
        if baseline is not None and payload.initial_rob is not None:
            logger.info(
                f"Ignoring initial ROB on departure for vessel {vessel.id}: "
                f"continuing from report {baseline.id}"
            )
        now = self.clock()

        if active is not None:
            active.active = False
            active.end_date = now
            self.store.update_voyage(active)

        voyage = self.store.add_voyage(Voyage(
            vessel_id=vessel.id,
            departure_port=payload.departure_port,
            destination_port=payload.destination_port,
            cargo_status=payload.cargo_status.value,
            cargo_type=payload.cargo_type,
            cargo_quantity=payload.cargo_quantity,
            total_distance=payload.voyage_distance,
            active=True,
            start_date=now,
        ))
        voyage.voyage_number = f"VOY-{''.join(vessel.name.split())}-{voyage.id}"

        data["cargo_status"] = payload.cargo_status.value
        data["bls_quantity"] = vessel.bls
        report = self.store.add_report(self._new_report(
            vessel.id, voyage.id, ReportType.DEPARTURE, 1, submitted_by, payload, data, now,
            distance_traveled=payload.harbour_distance,
            distance_to_go=initial_distance_to_go(payload.voyage_distance, payload.harbour_distance),
        ))

        voyage.starting_report_id = report.id
        self.store.update_voyage(voyage)
        if active is not None:
            active.ending_report_id = report.id
            self.store.update_voyage(active)
            logger.info(f"Voyage {active.voyage_number} closed by departure report {report.id}")

        self.ledger.append_record(
            vessel.id, report.id, report.report_date, baseline_record,
            payload.consumption(), payload.supply,
            initial_rob=payload.initial_rob if baseline is None else None,
        )
        logger.info(f"Voyage {voyage.voyage_number} started for vessel {vessel.id}")
        return report

    def _submit_passage(self, vessel: Vessel, baseline: Report, submitted_by: str,
                        payload: ReportPayload, data: Dict[str, Any]) -> Report:
        """Noon and arrival reports: distance carried forward from the baseline."""
        baseline_record = self._baseline_record(baseline)
        if isinstance(payload, NoonPayload):
            data["passage_state"] = payload.passage_state.value
        stopped = isinstance(payload, NoonPayload) and payload.passage_state == PassageState.SOSP
        traveled, distance_to_go = leg_progress(
            baseline.distance_to_go, payload.distance_since_last_report, stopped=stopped
        )
        report = self.store.add_report(self._new_report(
            vessel.id, baseline.voyage_id, payload.report_type, baseline.sequence_number + 1,
            submitted_by, payload, data, self.clock(),
            distance_traveled=traveled,
            distance_to_go=distance_to_go,
        ))
        self.ledger.append_record(
            vessel.id, report.id, report.report_date, baseline_record,
            payload.consumption(), payload.supply,
        )
        return report

    def _submit_berth(self, vessel: Vessel, baseline: Report, submitted_by: str,
                      payload: BerthPayload, data: Dict[str, Any]) -> Report:
        baseline_record = self._baseline_record(baseline)
        voyage = self.store.get_voyage(baseline.voyage_id)
        if voyage is None:
            raise DataIntegrityError(
                f"Voyage {baseline.voyage_id} of approved report {baseline.id} does not exist"
            )

        if payload.cargo_loaded or payload.cargo_unloaded:
            quantity = voyage.cargo_quantity + payload.cargo_loaded
            if payload.cargo_loaded:
                self._check_cargo_limit(vessel, quantity)
            voyage.cargo_quantity = max(0.0, quantity - payload.cargo_unloaded)
            self.store.update_voyage(voyage)
            logger.info(
                f"Voyage {voyage.voyage_number} cargo now {voyage.cargo_quantity:.1f} "
                f"(+{payload.cargo_loaded:.1f} / -{payload.cargo_unloaded:.1f})"
            )

        report = self.store.add_report(self._new_report(
            vessel.id, voyage.id, ReportType.BERTH, baseline.sequence_number + 1,
            submitted_by, payload, data, self.clock(),
            distance_traveled=0.0,
            distance_to_go=baseline.distance_to_go,
        ))
        self.ledger.append_record(
            vessel.id, report.id, report.report_date, baseline_record,
            payload.consumption(), payload.supply,
        )
        return report

    # =========================================================================
    # Checks
    # =========================================================================

    def _get_vessel(self, vessel_id: int) -> Vessel:
        vessel = self.store.get_vessel(vessel_id)
        if vessel is None:
            raise NotFoundError("Vessel", vessel_id)
        return vessel

    def _pending_report(self, baseline: Optional[Report], active: Optional[Voyage]) -> Optional[Report]:
        """Latest report of the active or baseline voyage, if it is still pending."""
        voyage_ids = []
        if active is not None:
            voyage_ids.append(active.id)
        if baseline is not None and baseline.voyage_id not in voyage_ids:
            voyage_ids.append(baseline.voyage_id)

        for voyage_id in voyage_ids:
            latest = self.store.latest_report_in_voyage(voyage_id)
            if latest is not None and latest.is_pending:
                return latest
        return None

    def _check_admission(self, baseline: Optional[Report], active: Optional[Voyage]) -> None:
        pending = self._pending_report(baseline, active)
        if pending is not None:
            raise ConflictError(pending.id, pending.state_label)

    def _check_transition(self, vessel_id: int, baseline: Optional[Report],
                          report_type: ReportType, payload: ReportPayload) -> None:
        attempted = _attempted_state(report_type, payload)
        previous = baseline.state_label if baseline is not None else None
        if attempted in TRANSITIONS[previous]:
            return
        if previous is None:
            raise InvalidStateError(
                f"Vessel {vessel_id} has no approved report; "
                f"a departure must be submitted and approved before a {attempted} report"
            )
        raise InvalidTransitionError(attempted, previous, _TRANSITION_HINTS.get(attempted))

    def _check_cargo_limit(self, vessel: Vessel, quantity: float) -> None:
        if self.enforce_bls_limit and vessel.bls and vessel.bls > 0 and quantity > vessel.bls:
            raise InvalidInputError(
                f"Cargo quantity {quantity:.1f} exceeds BLS limit {vessel.bls:.1f} of vessel {vessel.name}",
                fields=["cargo_quantity"],
            )

    def _baseline_record(self, baseline: Report) -> BunkerRecord:
        record = self.ledger.find_by_report(baseline.id, baseline.vessel_id)
        if record is None:
            raise DataIntegrityError(f"Approved report {baseline.id} has no bunker record")
        return record

    def _new_report(self, vessel_id: int, voyage_id: int, report_type: ReportType,
                    sequence_number: int, submitted_by: str, payload: ReportPayload,
                    data: Dict[str, Any], now: datetime,
                    distance_traveled: float, distance_to_go: float) -> Report:
        return Report(
            type=report_type,
            vessel_id=vessel_id,
            voyage_id=voyage_id,
            sequence_number=sequence_number,
            submitted_by=submitted_by,
            submitted_at=now,
            status=ReportStatus.PENDING,
            report_date=payload.report_date or now.date(),
            distance_traveled=distance_traveled,
            distance_to_go=distance_to_go,
            report_data=data,
        )

    # =========================================================================
    # Queries
    # =========================================================================

    def allowed_report_types(self, vessel_id: int) -> ReportOptions:
        """Report states the vessel may submit now (empty while one is pending)."""
        self._get_vessel(vessel_id)
        baseline = self.store.get_baseline(vessel_id)
        active = self.store.get_active_voyage(vessel_id)
        options = ReportOptions(vessel_id=vessel_id)
        if baseline is not None:
            options.baseline_report_id = baseline.id
            options.baseline_state = baseline.state_label

        pending = self._pending_report(baseline, active)
        if pending is not None:
            options.pending_report_id = pending.id
            return options

        options.allowed = list(TRANSITIONS[options.baseline_state])
        return options

    def previous_departure(self, vessel_id: int) -> PreviousDeparture:
        """Destination of the voyage started by the vessel's last approved departure."""
        self._get_vessel(vessel_id)
        departures = self.store.list_reports(
            vessel_id=vessel_id, status=ReportStatus.APPROVED, report_type=ReportType.DEPARTURE
        )
        if not departures:
            return PreviousDeparture()
        voyage = self.store.get_voyage(departures[-1].voyage_id)
        return PreviousDeparture(
            has_previous_departure=True,
            last_destination_port=voyage.destination_port if voyage else None,
            voyage_id=voyage.id if voyage else None,
        )
