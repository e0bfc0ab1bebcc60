from pydantic import BaseModel, Field, model_validator
from typing import List, Optional, Union
from enum import Enum


class QuestionType(str, Enum):
    """Question types understood by the quiz engine"""
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    SELECT_ALL = "select_all"
    FILL_BLANK = "fill_blank"


CHOICE_TYPES = (QuestionType.MULTIPLE_CHOICE, QuestionType.SELECT_ALL)
TRUE_FALSE_OPTIONS = ["True", "False"]


class AttemptStatus(str, Enum):
    """State of the question currently on screen"""
    UNANSWERED = "unanswered"
    INCORRECT = "incorrect"
    CORRECT = "correct"


class QuizQuestion(BaseModel):
    """Question in the shape the quiz engine grades.

    ``correct_answer`` is an option key for multiple choice ('A', 'B', ...),
    a comma-joined set of keys for select-all, 'True'/'False' for true/false
    and free text for fill-in-the-blank.

    Attributes:
        id: question position inside its lesson, starting at 1
        lesson_id: lesson the question belongs to
        question_text: prompt
        question_type: one of QuestionType
        options: option texts for choice questions, None for fill-in-the-blank
        correct_answer: see above
        explanation: shown once the question is answered correctly
        source: citation shown with the explanation
        order_index: display order
    """
    id: int
    lesson_id: int
    question_text: str
    question_type: QuestionType
    options: Optional[List[str]] = None
    correct_answer: str
    explanation: str = "No explanation available."
    source: str = "No source available."
    order_index: int = 1

    @model_validator(mode="after")
    def check_options(self) -> "QuizQuestion":
        if self.question_type in CHOICE_TYPES and not self.options:
            raise ValueError(f"{self.question_type.value} question {self.id} needs options")
        if self.question_type == QuestionType.TRUE_FALSE and not self.options:
            self.options = list(TRUE_FALSE_OPTIONS)
        if self.question_type == QuestionType.FILL_BLANK and self.options:
            raise ValueError(f"fill_blank question {self.id} must not carry options")
        return self


class AnswerResult(BaseModel):
    """Result emitted to the caller after every graded attempt"""
    question_id: int = Field(..., serialization_alias="questionId")
    user_answer: Union[str, List[str]] = Field(..., serialization_alias="userAnswer")
    is_correct: bool = Field(..., serialization_alias="isCorrect")
    question_type: QuestionType = Field(..., serialization_alias="questionType")


class QuizOption(BaseModel):
    """Option as rendered: key used to answer, text shown to the learner"""
    key: str
    text: str


class QuestionView(BaseModel):
    """Question as sent to the client.

    The correct answer is never included; explanation and source are only
    filled in once the question has been answered correctly.
    """
    id: int
    question_text: str
    question_type: QuestionType
    options: List[QuizOption] = []
    status: AttemptStatus = AttemptStatus.UNANSWERED
    selected_answer: Optional[str] = None
    selected_answers: List[str] = []
    fill_blank_answer: Optional[str] = None
    shake: bool = False
    explanation: Optional[str] = None
    source: Optional[str] = None


class LessonCompletionSummary(BaseModel):
    """Outcome of finishing a lesson"""
    questions_completed: int
    time_spent_seconds: int
    progress_saved: bool = False
    global_count: Optional[int] = None


class QuizSessionState(BaseModel):
    """Snapshot of a lesson quiz session"""
    session_id: str
    lesson_id: int
    question_number: int
    total_questions: int
    is_last_question: bool
    completed: bool = False
    time_spent_seconds: int = 0
    question: Optional[QuestionView] = None
    lesson_info_html: Optional[str] = None
    last_result: Optional[AnswerResult] = None
    completion: Optional[LessonCompletionSummary] = None


# --- request bodies ---

class QuizSessionCreate(BaseModel):
    lesson_id: int = Field(..., ge=1, description="Lesson to start")


class OptionSelection(BaseModel):
    option: str = Field(..., min_length=1, description="Option key")


class AnswerSubmission(BaseModel):
    """Submit body; select-all questions submit their current selection when ``answer`` is omitted"""
    answer: Optional[Union[str, List[str]]] = None
