"""
Vessel API router.

Vessels are read-only here; they are created with `python -m api.cli add-vessel`.
"""

import logging

from fastapi import APIRouter, Depends

from api.schemas import (
    BunkerStatusResponse,
    PreviousDepartureResponse,
    ReportOptionsResponse,
    VesselListResponse,
    VesselResponse,
)
from api.state import get_report_store, get_state_machine
from src.reporting import BunkerLedger, NotFoundError, Vessel

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Vessels"])


def _vessel_to_response(vessel: Vessel) -> VesselResponse:
    return VesselResponse(
        id=vessel.id,
        name=vessel.name,
        flag=vessel.flag,
        current_captain=vessel.current_captain,
        bls=vessel.bls,
    )


@router.get("/api/vessels", response_model=VesselListResponse)
def list_vessels(store=Depends(get_report_store)):
    vessels = store.list_vessels()
    return VesselListResponse(
        vessels=[_vessel_to_response(v) for v in vessels],
        total=len(vessels),
    )


@router.get("/api/vessels/{vessel_id}", response_model=VesselResponse)
def get_vessel(vessel_id: int, store=Depends(get_report_store)):
    vessel = store.get_vessel(vessel_id)
    if vessel is None:
        raise NotFoundError("Vessel", vessel_id)
    return _vessel_to_response(vessel)


@router.get("/api/vessels/{vessel_id}/has-bunker-records", response_model=BunkerStatusResponse)
def vessel_has_bunker_records(vessel_id: int, store=Depends(get_report_store)):
    """True once any of the vessel's approved reports has a bunker record."""
    return BunkerStatusResponse(
        has_bunker_records=BunkerLedger(store).has_approved_records(vessel_id)
    )


@router.get("/api/vessels/{vessel_id}/previous-departure", response_model=PreviousDepartureResponse)
def vessel_previous_departure(vessel_id: int, machine=Depends(get_state_machine)):
    """Destination of the last approved departure (the next departure port)."""
    previous = machine.previous_departure(vessel_id)
    return PreviousDepartureResponse(
        has_previous_departure=previous.has_previous_departure,
        last_destination_port=previous.last_destination_port,
        voyage_id=previous.voyage_id,
    )


@router.get("/api/vessels/{vessel_id}/report-options", response_model=ReportOptionsResponse)
def vessel_report_options(vessel_id: int, machine=Depends(get_state_machine)):
    """Report types (noon reports by passage state) the vessel may submit now."""
    options = machine.allowed_report_types(vessel_id)
    return ReportOptionsResponse(
        vessel_id=options.vessel_id,
        baseline_report_id=options.baseline_report_id,
        baseline_state=options.baseline_state,
        pending_report_id=options.pending_report_id,
        allowed=options.allowed,
    )
