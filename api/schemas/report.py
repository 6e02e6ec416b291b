"""Report submission, review and bunker ledger schemas."""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .common import BunkerQuantitiesModel


# =============================================================================
# Requests
# =============================================================================


class SubmitReportRequest(BaseModel):
    """Report submission.

    Fields are optional at the schema level so that a missing field produces
    the same 400 "Missing required fields" error as a blank one.
    """
    vessel_id: Optional[int] = None
    submitted_by: Optional[str] = None
    report_type: Optional[str] = None
    report_data: Optional[Dict[str, Any]] = None


class ApproveReportRequest(BaseModel):
    reviewer: Optional[str] = None


class RejectReportRequest(BaseModel):
    reviewer: Optional[str] = None
    rejection_reason: Optional[str] = None


# =============================================================================
# Responses
# =============================================================================


class ReportResponse(BaseModel):
    """A submitted report with its derived fields."""
    id: int
    type: str
    vessel_id: int
    voyage_id: Optional[int] = None
    sequence_number: int
    submitted_by: str
    submitted_at: Optional[datetime] = None
    status: str
    reviewer: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    report_date: Optional[date] = None
    distance_traveled: float
    distance_to_go: float
    report_data: Dict[str, Any] = Field(default_factory=dict)


class ReportListResponse(BaseModel):
    reports: List[ReportResponse]
    total: int


class BunkerRecordResponse(BaseModel):
    """ROB snapshot created with a report."""
    id: int
    vessel_id: int
    report_id: int
    report_date: Optional[date] = None
    rob: BunkerQuantitiesModel
    consumed: BunkerQuantitiesModel
    supplied: BunkerQuantitiesModel
