from sqlalchemy import Column, DateTime, Integer, String
from datetime import datetime, UTC
from grassroutes.db.base_class import Base


class GlobalQuestionsCounter(Base):
    """Single-row counter of questions answered across all users."""
    __tablename__ = "global_questions_counter"

    id = Column(Integer, primary_key=True, autoincrement=True)
    count = Column(Integer, nullable=False, default=0)
    last_updated = Column(DateTime, default=lambda: datetime.now(UTC))


class QuestionCompletion(Base):
    """Processed counter increment, keyed by its deduplication id.

    Attributes:
        completion_id: '<user_id>_<lesson_id>_<epoch seconds>'
        user_id: user who completed the lesson
        lesson_id: completed lesson
        question_count: questions added to the counter
    """
    __tablename__ = "question_completions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    completion_id = Column(String, unique=True, index=True, nullable=False)
    user_id = Column(String, index=True, nullable=False)
    lesson_id = Column(String, nullable=False)
    question_count = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC))
