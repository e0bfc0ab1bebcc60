from .question import Question
from .lesson_content import LessonContent
from .user_progress import UserProgress
from .global_counter import GlobalQuestionsCounter, QuestionCompletion

__all__ = [
    "Question",
    "LessonContent",
    "UserProgress",
    "GlobalQuestionsCounter",
    "QuestionCompletion",
]
