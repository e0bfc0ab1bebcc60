from sqlalchemy import Column, DateTime, Integer, String, Text
from datetime import datetime, UTC
from grassroutes.db.base_class import Base


class LessonContent(Base):
    """Reading material block attached to a lesson.

    Attributes:
        id: auto-increment id
        lesson_id: lesson the block belongs to
        content_type: 'header', 'paragraph', 'tip' or 'list'
        content_order: position of the block inside the lesson
        title: optional block title
        content: block body; list blocks hold one item per line
    """
    __tablename__ = "lesson_content"

    id = Column(Integer, primary_key=True, autoincrement=True)
    lesson_id = Column(Integer, index=True, nullable=False)
    content_type = Column(String, nullable=False, default="paragraph")
    content_order = Column(Integer, nullable=False, default=1)
    title = Column(Text, nullable=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC))
    updated_at = Column(DateTime, default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC))
