# backend/grassroutes/services/__init__.py
from .quiz_engine import LessonRun, QuizSessionManager
from .progress_tracker import ProgressTracker
