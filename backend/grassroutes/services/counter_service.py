# backend/grassroutes/services/counter_service.py
import logging
import time
from typing import Optional

from sqlalchemy.orm import Session

from grassroutes.crud.crud_counter import counter as crud_counter
from grassroutes.schemas.counter import CounterIncrementResponse

logger = logging.getLogger(__name__)


def completion_id_for(user_id: str, lesson_id, now: Optional[float] = None) -> str:
    """Deduplication key of a counter increment: '<user>_<lesson>_<epoch seconds>'."""
    seconds = int(time.time() if now is None else now)
    return f"{user_id}_{lesson_id}_{seconds}"


def get_global_count(db: Session) -> int:
    return crud_counter.get_total(db)


def increment_global_counter(db: Session, user_id: str, lesson_id, question_count: int) -> CounterIncrementResponse:
    """
    Add the questions of a finished lesson to the global counter.

    A second increment for the same user and lesson within the same second
    is reported as already processed and leaves the counter untouched.
    """
    completion_id = completion_id_for(user_id, lesson_id)
    new_count = crud_counter.increment_deduplicated(
        db,
        completion_id=completion_id,
        user_id=user_id,
        lesson_id=str(lesson_id),
        question_count=question_count,
    )
    if new_count is None:
        logger.info(f"Completion already processed, skipping: {completion_id}")
        return CounterIncrementResponse(success=True, message="Already processed", count=None)

    logger.info(f"Counter incremented by {question_count} to {new_count}")
    return CounterIncrementResponse(success=True, count=new_count)
