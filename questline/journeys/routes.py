from typing import List, Optional

from fastapi import APIRouter, Depends, Response

from questline.core.deps import get_journey_repository
from questline.journeys.repository import JourneyRepository
from questline.journeys.schemas import (
    CheckInCreate,
    CheckInOut,
    JourneyCreate,
    JourneyOut,
    JourneyUpdate,
    JourneyView,
    ReflectionGateComplete,
    ReflectionGateOut,
)
from questline.journeys.views import build_journey_view

router = APIRouter(prefix="/journeys", tags=["journeys"])


# ======================================================
# JOURNEYS
# ======================================================
@router.get("", response_model=List[JourneyOut])
def list_journeys(repo: JourneyRepository = Depends(get_journey_repository)):
    return repo.list_journeys()


@router.post("", response_model=JourneyView, status_code=201)
def create_journey(
    payload: JourneyCreate,
    repo: JourneyRepository = Depends(get_journey_repository),
):
    journey = repo.create_journey(payload.model_dump())
    return build_journey_view(repo.load_journey(journey.id))


@router.get("/active", response_model=Optional[JourneyView])
def get_active_journey(repo: JourneyRepository = Depends(get_journey_repository)):
    """The journey the home page continues; null when there is none."""
    snapshot = repo.load_active_journey()
    if snapshot is None:
        return None
    return build_journey_view(snapshot)


@router.get("/{journey_id}", response_model=JourneyView)
def get_journey(
    journey_id: int,
    repo: JourneyRepository = Depends(get_journey_repository),
):
    return build_journey_view(repo.load_journey(journey_id))


@router.patch("/{journey_id}", response_model=JourneyOut)
def update_journey(
    journey_id: int,
    payload: JourneyUpdate,
    repo: JourneyRepository = Depends(get_journey_repository),
):
    return repo.update_journey(journey_id, payload.model_dump(exclude_unset=True))


@router.delete("/{journey_id}", status_code=204)
def delete_journey(
    journey_id: int,
    repo: JourneyRepository = Depends(get_journey_repository),
):
    repo.delete_journey(journey_id)
    return Response(status_code=204)


@router.post("/{journey_id}/start", response_model=JourneyView)
def start_journey(
    journey_id: int,
    repo: JourneyRepository = Depends(get_journey_repository),
):
    repo.start_journey(journey_id)
    return build_journey_view(repo.load_journey(journey_id))


@router.post("/{journey_id}/complete", response_model=JourneyView)
def complete_journey(
    journey_id: int,
    repo: JourneyRepository = Depends(get_journey_repository),
):
    repo.complete_journey(journey_id)
    return build_journey_view(repo.load_journey(journey_id))


# ======================================================
# CHECK-INS & REFLECTION GATES
# ======================================================
@router.post("/{journey_id}/check-ins", response_model=CheckInOut, status_code=201)
def create_check_in(
    journey_id: int,
    payload: CheckInCreate,
    repo: JourneyRepository = Depends(get_journey_repository),
):
    fields = payload.model_dump()
    fields["journey_id"] = journey_id
    return repo.create_check_in(fields)


@router.post("/{journey_id}/gates/{gate_id}/complete", response_model=ReflectionGateOut)
def complete_reflection_gate(
    journey_id: int,
    gate_id: int,
    payload: ReflectionGateComplete,
    repo: JourneyRepository = Depends(get_journey_repository),
):
    return repo.complete_reflection_gate(gate_id, payload.response, journey_id=journey_id)
