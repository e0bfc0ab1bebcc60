from fastapi import APIRouter, Depends, HTTPException, Path
from grassroutes.config.dependency_injection import get_progress_tracker
from grassroutes.schemas.response import StandardResponse
from grassroutes.schemas.user_progress import LessonProgressResponse, UserProgressResponse
from grassroutes.services import content_loader
from grassroutes.services.progress_tracker import ProgressTracker
router = APIRouter()


@router.get("", response_model=StandardResponse[UserProgressResponse])
def get_user_progress(tracker: ProgressTracker = Depends(get_progress_tracker)):
    try:
        completed = tracker.load_progress()
        response_data = UserProgressResponse(
            user_id=tracker.user_id,
            completed_lessons=completed,
            stats=tracker.get_progress_stats(),
        )
        return StandardResponse(data=response_data)
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@router.get("/lessons/{lesson_id}", response_model=StandardResponse[LessonProgressResponse])
def get_lesson_progress(lesson_id: int = Path(..., ge=1), tracker: ProgressTracker = Depends(get_progress_tracker)):
    try:
        return StandardResponse(data=LessonProgressResponse(
            lesson_id=str(lesson_id),
            is_complete=tracker.is_lesson_completed(lesson_id),
        ))
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@router.post("/lessons/{lesson_id}/complete", response_model=StandardResponse[LessonProgressResponse])
def mark_lesson_complete(lesson_id: int = Path(..., ge=1), tracker: ProgressTracker = Depends(get_progress_tracker)):
    """Mark a lesson complete; the durable write happens in the background."""
    try:
        content_loader.get_lesson(lesson_id)
        success = tracker.mark_lesson_complete(lesson_id)
        return StandardResponse(data=LessonProgressResponse(
            lesson_id=str(lesson_id),
            is_complete=tracker.is_lesson_completed(lesson_id),
            success=success,
            stats=tracker.get_progress_stats(),
        ))
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@router.post("/lessons/{lesson_id}/toggle", response_model=StandardResponse[LessonProgressResponse])
def toggle_lesson_completion(lesson_id: int = Path(..., ge=1), tracker: ProgressTracker = Depends(get_progress_tracker)):
    """
    Flip the completion state of a lesson.

    A failed durable write leaves the state unchanged and reports
    ``success: false``.
    """
    try:
        content_loader.get_lesson(lesson_id)
        success = tracker.toggle_lesson_completion(lesson_id)
        return StandardResponse(
            message="success" if success else "Progress could not be saved",
            data=LessonProgressResponse(
                lesson_id=str(lesson_id),
                is_complete=tracker.is_lesson_completed(lesson_id),
                success=success,
                stats=tracker.get_progress_stats(),
            ),
        )
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")
