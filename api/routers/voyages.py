"""Voyage API router (voyages are created by departure reports)."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.schemas import VoyageListResponse, VoyageResponse
from api.state import get_report_store
from src.reporting import NotFoundError, Voyage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Voyages"])


def _voyage_to_response(voyage: Voyage) -> VoyageResponse:
    return VoyageResponse(
        id=voyage.id,
        voyage_number=voyage.voyage_number,
        vessel_id=voyage.vessel_id,
        departure_port=voyage.departure_port,
        destination_port=voyage.destination_port,
        cargo_status=voyage.cargo_status,
        cargo_type=voyage.cargo_type,
        cargo_quantity=voyage.cargo_quantity,
        total_distance=voyage.total_distance,
        active=voyage.active,
        start_date=voyage.start_date,
        end_date=voyage.end_date,
        starting_report_id=voyage.starting_report_id,
        ending_report_id=voyage.ending_report_id,
    )


@router.get("/api/voyages", response_model=VoyageListResponse)
def list_voyages(
    vessel_id: Optional[int] = Query(None, description="Only voyages of this vessel"),
    active: Optional[bool] = Query(None, description="Filter on the active flag"),
    store=Depends(get_report_store),
):
    voyages = store.list_voyages(vessel_id=vessel_id, active=active)
    return VoyageListResponse(
        voyages=[_voyage_to_response(v) for v in voyages],
        total=len(voyages),
    )


@router.get("/api/voyages/{voyage_id}", response_model=VoyageResponse)
def get_voyage(voyage_id: int, store=Depends(get_report_store)):
    voyage = store.get_voyage(voyage_id)
    if voyage is None:
        raise NotFoundError("Voyage", voyage_id)
    return _voyage_to_response(voyage)
