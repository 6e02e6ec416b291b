"""
Unit tests for the bunker ledger (ROB snapshots).

Covers the ROB recurrence, the baseline / initial ROB / fallback order used
when appending records, lookups and the chain conservation check.
"""

from datetime import date

import pytest

from src.reporting import (
    BunkerLedger,
    BunkerQuantities,
    BunkerRecord,
    InMemoryReportStore,
    Report,
    ReportStatus,
    ReportType,
    Vessel,
    compute_next_rob,
)


@pytest.fixture
def store():
    return InMemoryReportStore(vessels=[Vessel(id=1, name="Ocean Star", bls=50000.0)])


@pytest.fixture
def ledger(store):
    return BunkerLedger(store)


# ============================================================================
# compute_next_rob
# ============================================================================


class TestComputeNextRob:
    """previous - consumed + supplied, per substance."""

    def test_recurrence(self):
        rob = compute_next_rob(
            BunkerQuantities(lsifo=500, lsmgo=100),
            BunkerQuantities(lsifo=10, lsmgo=2),
            BunkerQuantities(lsmgo=50),
        )
        assert rob.lsifo == 490
        assert rob.lsmgo == 148
        assert rob.cyl_oil == 0

    def test_missing_inputs_count_as_zero(self):
        rob = compute_next_rob(None, None, BunkerQuantities(me_oil=3))
        assert rob.to_dict() == {
            "lsifo": 0.0, "lsmgo": 0.0, "cyl_oil": 0.0,
            "me_oil": 3.0, "ae_oil": 0.0, "vol_oil": 0.0,
        }

    def test_negative_rob_is_not_clamped(self):
        rob = compute_next_rob(BunkerQuantities(lsifo=5), BunkerQuantities(lsifo=8), None)
        assert rob.lsifo == -3


# ============================================================================
# append_record
# ============================================================================


class TestAppendRecord:
    """Starting level selection and id assignment."""

    def test_first_record_from_initial_rob(self, ledger):
        record = ledger.append_record(
            1, 1, date(2026, 3, 1), None,
            BunkerQuantities(lsifo=10), BunkerQuantities(),
            initial_rob=BunkerQuantities(lsifo=500),
        )
        assert record.id == 1
        assert record.rob.lsifo == 490
        assert record.consumed.lsifo == 10

    def test_baseline_record_wins_over_initial_rob(self, ledger):
        baseline = ledger.append_record(
            1, 1, None, None, BunkerQuantities(), BunkerQuantities(),
            initial_rob=BunkerQuantities(lsifo=400),
        )
        record = ledger.append_record(
            1, 2, None, baseline, BunkerQuantities(lsifo=4), BunkerQuantities(lsifo=20),
            initial_rob=BunkerQuantities(lsifo=9999),
        )
        assert record.id == 2
        assert record.rob.lsifo == 416

    def test_without_baseline_or_initial_rob_starts_from_zero(self, ledger, caplog):
        record = ledger.append_record(
            1, 7, None, None, BunkerQuantities(lsifo=10), BunkerQuantities(lsifo=3),
        )
        assert record.rob.is_empty()
        assert record.consumed.is_empty()
        assert record.supplied.is_empty()
        assert "starts from zero" in caplog.text

    def test_without_baseline_falls_back_to_latest_record(self, ledger):
        ledger.append_record(
            1, 1, None, None, BunkerQuantities(), BunkerQuantities(),
            initial_rob=BunkerQuantities(lsifo=300),
        )
        record = ledger.append_record(
            1, 2, None, None, BunkerQuantities(lsifo=5), BunkerQuantities(),
        )
        assert record.rob.lsifo == 295

    def test_negative_rob_is_logged(self, ledger, caplog):
        record = ledger.append_record(
            1, 1, None, None, BunkerQuantities(lsifo=20), BunkerQuantities(),
            initial_rob=BunkerQuantities(lsifo=10),
        )
        assert record.rob.lsifo == -10
        assert "Negative ROB" in caplog.text


# ============================================================================
# Lookups
# ============================================================================


class TestLookups:

    def test_find_latest_returns_highest_id(self, ledger, store):
        store.add_bunker_record(BunkerRecord(vessel_id=1, report_id=1))
        store.add_bunker_record(BunkerRecord(vessel_id=1, report_id=2))
        store.add_bunker_record(BunkerRecord(vessel_id=2, report_id=3))
        assert ledger.find_latest(1).report_id == 2
        assert ledger.find_latest(3) is None

    def test_find_by_report_prefers_highest_id(self, ledger, store):
        store.add_bunker_record(BunkerRecord(vessel_id=1, report_id=4, rob=BunkerQuantities(lsifo=1)))
        store.add_bunker_record(BunkerRecord(vessel_id=1, report_id=4, rob=BunkerQuantities(lsifo=2)))
        assert ledger.find_by_report(4, 1).rob.lsifo == 2

    def test_find_by_report_checks_vessel(self, ledger, store):
        store.add_bunker_record(BunkerRecord(vessel_id=1, report_id=4))
        assert ledger.find_by_report(4, 2) is None

    def test_report_id_zero_has_no_record(self, ledger, store):
        store.add_bunker_record(BunkerRecord(vessel_id=1, report_id=0))
        assert ledger.find_by_report(0, 1) is None

    def test_has_approved_records(self, ledger, store):
        report = store.add_report(Report(type=ReportType.DEPARTURE, vessel_id=1))
        store.add_bunker_record(BunkerRecord(vessel_id=1, report_id=report.id))
        assert ledger.has_approved_records(1) is False

        report.status = ReportStatus.APPROVED
        store.update_report(report)
        assert ledger.has_approved_records(1) is True
        assert ledger.has_approved_records(2) is False


# ============================================================================
# Chain verification
# ============================================================================


class TestVerifyChain:

    def _approved(self, store, report_type=ReportType.NOON):
        return store.add_report(Report(type=report_type, vessel_id=1, status=ReportStatus.APPROVED))

    def test_conserving_chain_has_no_discrepancies(self, ledger, store):
        first = self._approved(store, ReportType.DEPARTURE)
        rec = ledger.append_record(1, first.id, None, None, BunkerQuantities(lsifo=10),
                                   BunkerQuantities(), initial_rob=BunkerQuantities(lsifo=500))
        second = self._approved(store)
        ledger.append_record(1, second.id, None, rec, BunkerQuantities(lsifo=5), BunkerQuantities(lsifo=1))
        assert ledger.verify_chain(1) == []

    def test_tampered_record_is_reported(self, ledger, store):
        first = self._approved(store, ReportType.DEPARTURE)
        ledger.append_record(1, first.id, None, None, BunkerQuantities(), BunkerQuantities(),
                             initial_rob=BunkerQuantities(lsifo=500))
        second = self._approved(store)
        store.add_bunker_record(BunkerRecord(
            vessel_id=1, report_id=second.id,
            rob=BunkerQuantities(lsifo=480), consumed=BunkerQuantities(lsifo=5),
        ))

        issues = ledger.verify_chain(1)
        assert len(issues) == 1
        assert issues[0].report_id == second.id
        assert issues[0].substance == "lsifo"
        assert issues[0].expected == 495
        assert issues[0].actual == 480

    def test_missing_record_is_reported(self, ledger, store):
        report = self._approved(store, ReportType.DEPARTURE)
        issues = ledger.verify_chain(1)
        assert [i.report_id for i in issues] == [report.id]
        assert issues[0].substance is None
