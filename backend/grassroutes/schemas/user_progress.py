from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class LessonCompletion(BaseModel):
    """Completion record as seen by the progress tracker.

    Used for records from both stores: the remote table and the local cache.

    Attributes:
        lesson_id: lesson id, string-normalised
        is_complete: completion flag
        updated_at: time of the write, None when unknown
    """
    lesson_id: str
    is_complete: bool = True
    updated_at: Optional[datetime] = None


# Common fields
class UserProgressBase(BaseModel):
    """Completion record fields shared by the write models.

    Attributes:
        user_id: Firebase uid
        lesson_id: lesson id
        is_complete: completion flag
    """
    user_id: str
    lesson_id: str
    is_complete: bool = True


# Input model for create / upsert
class UserProgressCreate(UserProgressBase):
    """``updated_at`` is when the learner made the change; unset means now."""
    updated_at: Optional[datetime] = None


# Input model for update
class UserProgressUpdate(BaseModel):
    is_complete: Optional[bool] = None
    updated_at: Optional[datetime] = None


class ProgressStats(BaseModel):
    """Completion summary

    Attributes:
        total_completed: number of completed lessons
        completed_lesson_ids: ids of the completed lessons
    """
    total_completed: int = 0
    completed_lesson_ids: List[str] = []


class UserProgressResponse(BaseModel):
    """Progress of the signed-in user"""
    user_id: str
    completed_lessons: List[LessonCompletion]
    stats: ProgressStats


class LessonProgressResponse(BaseModel):
    """Completion state of a single lesson after a query or a write"""
    lesson_id: str
    is_complete: bool
    success: bool = True
    stats: Optional[ProgressStats] = None
