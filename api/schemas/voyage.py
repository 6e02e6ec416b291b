"""Voyage schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class VoyageResponse(BaseModel):
    """Voyage opened by a departure report."""
    id: int
    voyage_number: str
    vessel_id: int
    departure_port: str
    destination_port: str
    cargo_status: str
    cargo_type: Optional[str] = None
    cargo_quantity: float
    total_distance: float
    active: bool
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    starting_report_id: Optional[int] = None
    ending_report_id: Optional[int] = None


class VoyageListResponse(BaseModel):
    voyages: List[VoyageResponse]
    total: int
