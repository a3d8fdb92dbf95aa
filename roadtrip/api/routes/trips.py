"""Trip planning endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from roadtrip.api.deps import get_orchestrator
from roadtrip.models.trip import TripPlan, TripRequest
from roadtrip.planning.errors import GeocodeError, PlanningAborted
from roadtrip.planning.orchestrator import PlanningStage, TripPlanningOrchestrator

router = APIRouter(prefix="/trips", tags=["trips"])


@router.post("/plan", response_model=TripPlan)
async def plan_trip(
    request: TripRequest,
    orchestrator: Annotated[TripPlanningOrchestrator, Depends(get_orchestrator)],
) -> TripPlan:
    """Plan a multi-city road trip.

    Raises:
        HTTPException: 422 if an endpoint could not be geocoded,
            502 if any other stage failed
    """
    try:
        return await orchestrator.plan_trip(request)
    except PlanningAborted as e:
        if e.stage == PlanningStage.GEOCODING.value and isinstance(e.cause, GeocodeError):
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail={"stage": e.stage, "error": str(e.cause)},
            ) from e
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"stage": e.stage, "error": str(e)},
        ) from e
