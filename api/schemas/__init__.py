"""
Voyage reporting API Pydantic schemas.

Re-exports all schema classes:
    from api.schemas import ReportResponse, SubmitReportRequest, ...
"""

# Common
from .common import ErrorResponse, BunkerQuantitiesModel  # noqa: F401

# Reports
from .report import (  # noqa: F401
    SubmitReportRequest,
    ApproveReportRequest,
    RejectReportRequest,
    ReportResponse,
    ReportListResponse,
    BunkerRecordResponse,
)

# Vessels
from .vessel import (  # noqa: F401
    VesselResponse,
    VesselListResponse,
    BunkerStatusResponse,
    PreviousDepartureResponse,
    ReportOptionsResponse,
)

# Voyages
from .voyage import VoyageResponse, VoyageListResponse  # noqa: F401
