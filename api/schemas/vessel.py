"""Vessel schemas."""

from typing import List, Optional

from pydantic import BaseModel


class VesselResponse(BaseModel):
    id: int
    name: str
    flag: Optional[str] = None
    current_captain: Optional[str] = None
    bls: float


class VesselListResponse(BaseModel):
    vessels: List[VesselResponse]
    total: int


class BunkerStatusResponse(BaseModel):
    """Whether the vessel already has ledger history (initial ROB no longer asked for)."""
    has_bunker_records: bool


class PreviousDepartureResponse(BaseModel):
    """Last approved departure, used to prefill the next departure port."""
    has_previous_departure: bool
    last_destination_port: Optional[str] = None
    voyage_id: Optional[int] = None


class ReportOptionsResponse(BaseModel):
    """Report states the vessel may submit now."""
    vessel_id: int
    baseline_report_id: Optional[int] = None
    baseline_state: Optional[str] = None
    pending_report_id: Optional[int] = None
    allowed: List[str]
