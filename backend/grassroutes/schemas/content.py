from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Optional
from enum import Enum


# stored question types that may come without answers
OPTIONAL_ANSWER_TYPES = ("tf", "fill_in")


class ContentType(str, Enum):
    """Lesson content block types"""
    HEADER = "header"
    PARAGRAPH = "paragraph"
    TIP = "tip"
    LIST = "list"


class Unit(BaseModel):
    """Top level of the pathway.

    Attributes:
        id: unit number, 1..7
        title: unit title
        description: one-paragraph pitch shown on the unit map
        color: accent colour used by the client
    """
    id: int = Field(..., ge=1, description="Unit number")
    title: str = Field(..., min_length=1)
    description: str = ""
    color: str = "#22c55e"


class Section(BaseModel):
    """Section of a unit.

    ``id`` is unique across units: ``(unit_id - 1) * 7 + section_number``.
    """
    id: int = Field(..., ge=1)
    unit_id: int = Field(..., ge=1)
    section_number: int = Field(..., ge=1, description="Position inside the unit")
    section_letter: str = Field(..., description="'a'..'g', used by question modules")
    title: str
    description: str = ""


class Lesson(BaseModel):
    """Lesson of a section.

    ``id`` is unique across the catalog: ``(section_id - 1) * 6 + order_index``.
    """
    id: int = Field(..., ge=1)
    section_id: int = Field(..., ge=1)
    unit_id: int = Field(..., ge=1)
    section_number: int = Field(..., ge=1)
    section_letter: str
    section_title: str = ""
    lesson_letter: str = Field(..., pattern=r"^[A-F]$")
    title: str
    description: str = ""
    duration_minutes: int = Field(15, ge=1)
    order_index: int = Field(..., ge=1)


class LessonContentItem(BaseModel):
    """One block of lesson reading material."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    lesson_id: int
    content_type: ContentType = ContentType.PARAGRAPH
    content_order: int = 1
    title: Optional[str] = None
    content: str


class LessonContentCreate(BaseModel):
    """Input model for adding a lesson content block"""
    lesson_id: int = Field(..., ge=1)
    content_type: ContentType = ContentType.PARAGRAPH
    content_order: int = Field(1, ge=1)
    title: Optional[str] = None
    content: str = Field(..., min_length=1)


class LessonContentUpdate(BaseModel):
    """Input model for editing a lesson content block"""
    content_type: Optional[ContentType] = None
    content_order: Optional[int] = Field(None, ge=1)
    title: Optional[str] = None
    content: Optional[str] = None


class QuestionCreate(BaseModel):
    """Input model for a question in the authoring format.

    ``answers`` holds the option texts; ``correct_answer`` holds the option
    text (or a JSON list of texts for select-all questions).
    """
    text: str = Field(..., min_length=1)
    type: str = Field("mc", description="'mc', 'tf', 'fill_in', 'select' or 'select_all'")
    difficulty: Optional[str] = None
    location_tag: Optional[str] = None
    answers: Optional[List[str]] = None
    correct_answer: str
    module: str = Field(..., pattern=r"^\d+-[a-g]-[1-6]$")
    source: Optional[str] = None
    comments: Optional[str] = None

    @model_validator(mode="after")
    def check_answers(self) -> "QuestionCreate":
        # unknown types are served as multiple choice
        if self.type not in OPTIONAL_ANSWER_TYPES and not self.answers:
            raise ValueError(f"'{self.type}' questions need answers")
        return self


class QuestionUpdate(BaseModel):
    """Input model for editing a question"""
    text: Optional[str] = None
    type: Optional[str] = None
    answers: Optional[List[str]] = None
    correct_answer: Optional[str] = None
    module: Optional[str] = None
    source: Optional[str] = None
    comments: Optional[str] = None
