"""
Report submission and review API router.

Write endpoints are plain `def` handlers: they run in the threadpool, where
the per-vessel lock held by the state machine serialises concurrent
submissions for the same vessel.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.schemas import (
    ApproveReportRequest,
    BunkerQuantitiesModel,
    BunkerRecordResponse,
    ErrorResponse,
    RejectReportRequest,
    ReportListResponse,
    ReportResponse,
    SubmitReportRequest,
)
from api.state import get_report_store, get_review_workflow, get_state_machine
from src.reporting import (
    BunkerRecord,
    InvalidInputError,
    NotFoundError,
    Report,
    ReportStatus,
    ReportType,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Reports"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}

REQUIRED_SUBMIT_FIELDS = ("vessel_id", "submitted_by", "report_type", "report_data")


def report_to_response(report: Report) -> ReportResponse:
    return ReportResponse(
        id=report.id,
        type=report.type.value,
        vessel_id=report.vessel_id,
        voyage_id=report.voyage_id,
        sequence_number=report.sequence_number,
        submitted_by=report.submitted_by,
        submitted_at=report.submitted_at,
        status=report.status.value,
        reviewer=report.reviewer,
        reviewed_at=report.reviewed_at,
        rejection_reason=report.rejection_reason,
        report_date=report.report_date,
        distance_traveled=report.distance_traveled,
        distance_to_go=report.distance_to_go,
        report_data=report.report_data,
    )


def _bunker_to_response(record: BunkerRecord) -> BunkerRecordResponse:
    return BunkerRecordResponse(
        id=record.id,
        vessel_id=record.vessel_id,
        report_id=record.report_id,
        report_date=record.report_date,
        rob=BunkerQuantitiesModel(**record.rob.to_dict()),
        consumed=BunkerQuantitiesModel(**record.consumed.to_dict()),
        supplied=BunkerQuantitiesModel(**record.supplied.to_dict()),
    )


# =============================================================================
# Submission
# =============================================================================


@router.post(
    "/api/reports",
    response_model=ReportResponse,
    status_code=201,
    responses=ERROR_RESPONSES,
)
def submit_report(body: SubmitReportRequest, machine=Depends(get_state_machine)):
    """Submit a departure, noon, arrival or berth report for review."""
    missing = [
        name for name in REQUIRED_SUBMIT_FIELDS
        if getattr(body, name) is None or getattr(body, name) == ""
    ]
    if missing:
        raise InvalidInputError("Missing required fields: " + ", ".join(missing), fields=missing)

    report = machine.submit(body.vessel_id, body.submitted_by, body.report_type, body.report_data)
    return report_to_response(report)


# =============================================================================
# Queries
# =============================================================================


@router.get("/api/reports", response_model=ReportListResponse)
def list_reports(
    vessel_id: Optional[int] = Query(None, description="Only reports of this vessel"),
    voyage_id: Optional[int] = Query(None, description="Only reports of this voyage"),
    status: Optional[ReportStatus] = Query(None, description="pending, approved or rejected"),
    report_type: Optional[ReportType] = Query(None, description="departure, noon, arrival or berth"),
    store=Depends(get_report_store),
):
    """List reports, oldest first."""
    reports = store.list_reports(
        vessel_id=vessel_id, voyage_id=voyage_id, status=status, report_type=report_type
    )
    return ReportListResponse(
        reports=[report_to_response(r) for r in reports],
        total=len(reports),
    )


@router.get("/api/reports/{report_id}", response_model=ReportResponse, responses=ERROR_RESPONSES)
def get_report(report_id: int, store=Depends(get_report_store)):
    report = store.get_report(report_id)
    if report is None:
        raise NotFoundError("Report", report_id)
    return report_to_response(report)


@router.get(
    "/api/reports/{report_id}/bunker-record",
    response_model=BunkerRecordResponse,
    responses=ERROR_RESPONSES,
)
def get_report_bunker_record(report_id: int, store=Depends(get_report_store)):
    """ROB snapshot created with the report."""
    report = store.get_report(report_id)
    if report is None:
        raise NotFoundError("Report", report_id)
    record = store.find_bunker_record(report.id, report.vessel_id)
    if record is None:
        raise NotFoundError("Bunker record for report", report_id)
    return _bunker_to_response(record)


# =============================================================================
# Review
# =============================================================================


@router.post(
    "/api/reports/{report_id}/approve",
    response_model=ReportResponse,
    responses=ERROR_RESPONSES,
)
def approve_report(report_id: int, body: ApproveReportRequest, workflow=Depends(get_review_workflow)):
    """Approve a pending report; it becomes the baseline for the vessel's next report."""
    report = workflow.approve(report_id, body.reviewer)
    return report_to_response(report)


@router.post(
    "/api/reports/{report_id}/reject",
    response_model=ReportResponse,
    responses=ERROR_RESPONSES,
)
def reject_report(report_id: int, body: RejectReportRequest, workflow=Depends(get_review_workflow)):
    """Reject a pending report. A rejected voyage-starting departure also cancels its voyage."""
    report = workflow.reject(report_id, body.reviewer, body.rejection_reason)
    return report_to_response(report)
