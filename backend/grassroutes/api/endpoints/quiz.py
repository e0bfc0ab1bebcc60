# backend/grassroutes/api/endpoints/quiz.py
import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from grassroutes.config.dependency_injection import (
    get_db,
    get_optional_progress_tracker,
    get_quiz_session_manager,
)
from grassroutes.schemas.quiz import (
    AnswerSubmission,
    LessonCompletionSummary,
    OptionSelection,
    QuizSessionCreate,
    QuizSessionState,
)
from grassroutes.schemas.response import StandardResponse
from grassroutes.services import content_loader
from grassroutes.services.counter_service import increment_global_counter
from grassroutes.services.lesson_renderer import render_lesson_info
from grassroutes.services.pathway import can_open_lesson
from grassroutes.services.progress_tracker import ProgressTracker
from grassroutes.services.quiz_engine import LessonRun, QuizError, QuizSessionManager

logger = logging.getLogger(__name__)

router = APIRouter()


def _quiz_error(e: QuizError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=str(e))


def _finish_lesson(run: LessonRun, tracker: ProgressTracker, db: Session) -> LessonCompletionSummary:
    """Record a finished lesson for a signed-in learner."""
    summary = LessonCompletionSummary(
        questions_completed=run.total_questions,
        time_spent_seconds=run.time_spent_seconds,
    )
    if not tracker.user_id or tracker.user_id != run.user_id:
        return summary

    summary.progress_saved = tracker.mark_lesson_complete(run.lesson_id)
    try:
        result = increment_global_counter(db, tracker.user_id, run.lesson_id, run.total_questions)
        summary.global_count = result.count
    except Exception as e:
        # the counter is best effort; the lesson itself is already recorded
        logger.error(f"Failed to update global counter for lesson {run.lesson_id}: {e}")
    return summary


@router.post("/sessions", response_model=StandardResponse[QuizSessionState])
def create_session(
    body: QuizSessionCreate,
    db: Session = Depends(get_db),
    tracker: ProgressTracker = Depends(get_optional_progress_tracker),
    manager: QuizSessionManager = Depends(get_quiz_session_manager),
):
    """
    Start a lesson quiz.

    The session carries the lesson's questions and its reading material
    rendered to HTML. Lessons the pathway shows as locked answer 403.
    """
    try:
        lesson = content_loader.get_lesson(body.lesson_id)
        if not can_open_lesson(lesson, tracker):
            raise HTTPException(status_code=403, detail=f"Lesson {body.lesson_id} is locked")
        questions = content_loader.load_lesson_questions(db, body.lesson_id)
        lesson_html = render_lesson_info(content_loader.load_lesson_content(db, body.lesson_id))
        run = manager.create(
            lesson_id=body.lesson_id,
            questions=questions,
            user_id=tracker.user_id,
            lesson_info_html=lesson_html,
        )
        return StandardResponse(data=run.state())
    except QuizError as e:
        raise _quiz_error(e)
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@router.get("/sessions/{session_id}", response_model=StandardResponse[QuizSessionState])
def get_session(
    session_id: str,
    tracker: ProgressTracker = Depends(get_optional_progress_tracker),
    manager: QuizSessionManager = Depends(get_quiz_session_manager),
):
    try:
        run = manager.get(session_id, user_id=tracker.user_id)
        return StandardResponse(data=run.state())
    except QuizError as e:
        raise _quiz_error(e)
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@router.post("/sessions/{session_id}/select", response_model=StandardResponse[QuizSessionState])
def select_option(
    session_id: str,
    body: OptionSelection,
    tracker: ProgressTracker = Depends(get_optional_progress_tracker),
    manager: QuizSessionManager = Depends(get_quiz_session_manager),
):
    """
    Select an option: grades multiple choice and true/false questions,
    toggles the option of a select-all question.
    """
    try:
        run = manager.get(session_id, user_id=tracker.user_id)
        result = run.select(body.option)
        return StandardResponse(data=run.state(last_result=result))
    except QuizError as e:
        raise _quiz_error(e)
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@router.post("/sessions/{session_id}/submit", response_model=StandardResponse[QuizSessionState])
def submit_answer(
    session_id: str,
    body: AnswerSubmission,
    tracker: ProgressTracker = Depends(get_optional_progress_tracker),
    manager: QuizSessionManager = Depends(get_quiz_session_manager),
):
    try:
        run = manager.get(session_id, user_id=tracker.user_id)
        result = run.submit(body.answer)
        return StandardResponse(data=run.state(last_result=result))
    except QuizError as e:
        raise _quiz_error(e)
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@router.post("/sessions/{session_id}/retry", response_model=StandardResponse[QuizSessionState])
def retry_question(
    session_id: str,
    tracker: ProgressTracker = Depends(get_optional_progress_tracker),
    manager: QuizSessionManager = Depends(get_quiz_session_manager),
):
    try:
        run = manager.get(session_id, user_id=tracker.user_id)
        run.retry()
        return StandardResponse(data=run.state())
    except QuizError as e:
        raise _quiz_error(e)
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@router.post("/sessions/{session_id}/next", response_model=StandardResponse[QuizSessionState])
def next_question(
    session_id: str,
    db: Session = Depends(get_db),
    tracker: ProgressTracker = Depends(get_optional_progress_tracker),
    manager: QuizSessionManager = Depends(get_quiz_session_manager),
):
    """
    Advance to the next question, or finish the lesson after the last one.
    """
    try:
        run = manager.get(session_id, user_id=tracker.user_id)
        finished = run.next()
        state = run.state()
        if finished:
            state.completion = _finish_lesson(run, tracker, db)
        return StandardResponse(data=state)
    except QuizError as e:
        raise _quiz_error(e)
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@router.delete("/sessions/{session_id}", response_model=StandardResponse[bool])
def discard_session(
    session_id: str,
    tracker: ProgressTracker = Depends(get_optional_progress_tracker),
    manager: QuizSessionManager = Depends(get_quiz_session_manager),
):
    try:
        manager.get(session_id, user_id=tracker.user_id)
        return StandardResponse(data=manager.discard(session_id))
    except QuizError as e:
        raise _quiz_error(e)
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")
