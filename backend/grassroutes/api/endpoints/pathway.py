# backend/grassroutes/api/endpoints/pathway.py
from typing import Literal, Optional
from fastapi import APIRouter, Depends, HTTPException, Path, Query

from grassroutes.config.dependency_injection import get_optional_progress_tracker
from grassroutes.schemas.pathway import PathwayView
from grassroutes.schemas.response import StandardResponse
from grassroutes.services.pathway import build_pathway
from grassroutes.services.progress_tracker import ProgressTracker

router = APIRouter()


@router.get("/{unit_id}", response_model=StandardResponse[PathwayView])
def get_pathway(
    unit_id: int = Path(..., ge=1),
    payment: Optional[Literal["success", "cancelled"]] = Query(None, description="Checkout return status"),
    tracker: ProgressTracker = Depends(get_optional_progress_tracker),
):
    """
    Pathway of a unit.

    Signed-in learners get sequential gating and completion flags; visitors
    get the first section open and the rest as previews.
    """
    try:
        return StandardResponse(data=build_pathway(unit_id, tracker=tracker, payment=payment))
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")
