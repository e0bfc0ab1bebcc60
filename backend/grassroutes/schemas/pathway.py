from pydantic import BaseModel
from typing import List, Literal, Optional

from grassroutes.schemas.content import Lesson, Unit
from grassroutes.schemas.user_progress import ProgressStats


class PathwayLesson(Lesson):
    """Lesson as shown on the pathway.

    Attributes:
        accessible: the learner may open the lesson
        completed: the signed-in learner completed the lesson
        preview: shown disabled to visitors who are not signed in
    """
    accessible: bool = True
    completed: bool = False
    preview: bool = False


class PathwaySection(BaseModel):
    id: int
    section_number: int
    title: str
    description: str = ""
    lessons: List[PathwayLesson] = []


class PaymentNotice(BaseModel):
    status: Literal["success", "cancelled"]
    message: str


class PathwayView(BaseModel):
    """Unit pathway with per-lesson gating"""
    unit: Unit
    logged_in: bool = False
    sections: List[PathwaySection] = []
    stats: Optional[ProgressStats] = None
    notice: Optional[PaymentNotice] = None
