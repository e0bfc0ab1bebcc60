# backend/grassroutes/api/endpoints/counter.py
import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from grassroutes.config.dependency_injection import get_db
from grassroutes.core.auth import AuthenticatedUser, require_email_verification
from grassroutes.schemas.counter import CounterCountResponse, CounterIncrementRequest, CounterIncrementResponse
from grassroutes.services.counter_service import get_global_count, increment_global_counter

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/count", response_model=CounterCountResponse)
def get_count(db: Session = Depends(get_db)):
    """Total questions answered across all learners."""
    try:
        return CounterCountResponse(count=get_global_count(db))
    except Exception as e:
        logger.error(f"Error getting counter: {e}")
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@router.post("/increment", response_model=CounterIncrementResponse)
def increment(
    body: CounterIncrementRequest,
    user: AuthenticatedUser = Depends(require_email_verification),
    db: Session = Depends(get_db),
):
    """
    Add the questions of a finished lesson to the global counter.

    Learners need a verified email and can only report their own
    completions.
    """
    if body.user_id != user.uid:
        raise HTTPException(status_code=403, detail="userId does not match the authenticated user")
    try:
        return increment_global_counter(db, body.user_id, body.lesson_id, body.question_count)
    except Exception as e:
        logger.error(f"Error incrementing counter: {e}")
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")
