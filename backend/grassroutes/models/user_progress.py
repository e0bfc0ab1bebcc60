from sqlalchemy import Boolean, Column, DateTime, Integer, String, UniqueConstraint
from datetime import datetime, UTC
from grassroutes.db.base_class import Base


class UserProgress(Base):
    """Lesson completion record.

    One row per (user, lesson) pair; writes overwrite the previous state
    (last write wins).

    Attributes:
        id: auto-increment id
        user_id: Firebase uid of the learner
        lesson_id: lesson id, stored as a string
        is_complete: whether the lesson is currently marked complete
        updated_at: time of the last write
    """
    __tablename__ = "user_progress"
    __table_args__ = (UniqueConstraint("user_id", "lesson_id", name="uq_user_progress_user_lesson"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, index=True, nullable=False)
    lesson_id = Column(String, index=True, nullable=False)
    is_complete = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime, default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC))
