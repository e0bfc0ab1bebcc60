# backend/grassroutes/services/quiz_engine.py
import logging
import threading
import time
import uuid
from datetime import datetime, timedelta, UTC
from typing import Dict, List, Optional, Union

from grassroutes.core.config import settings
from grassroutes.schemas.quiz import (
    AnswerResult,
    AttemptStatus,
    QuestionType,
    QuestionView,
    QuizOption,
    QuizQuestion,
    QuizSessionState,
)

logger = logging.getLogger(__name__)

Answer = Union[str, List[str]]


class QuizError(Exception):
    """Base class for quiz rule violations; ``status_code`` is the HTTP status routes answer with."""
    status_code = 400


class InvalidAnswerError(QuizError):
    pass


class EmptyAnswerError(QuizError):
    pass


class AnswerLockedError(QuizError):
    status_code = 409


class QuestionNotAnsweredError(QuizError):
    status_code = 409


class SessionCompletedError(QuizError):
    status_code = 409


class SessionNotFoundError(QuizError):
    status_code = 404


class NoQuestionsError(QuizError):
    status_code = 404


def option_keys(question: QuizQuestion) -> List[str]:
    """
    Keys used to answer a choice question.

    Multiple choice and select-all options are keyed 'A', 'B', ... by
    position; true/false options are keyed by their own text.
    """
    if question.question_type == QuestionType.TRUE_FALSE:
        return list(question.options or [])
    if question.question_type in (QuestionType.MULTIPLE_CHOICE, QuestionType.SELECT_ALL):
        return [chr(ord("A") + i) for i in range(len(question.options or []))]
    return []


def _as_key_set(answer: Answer) -> set:
    if isinstance(answer, str):
        answer = answer.split(",")
    return {a.strip() for a in answer if a and a.strip()}


def grade_answer(question: QuizQuestion, answer: Answer) -> bool:
    """
    Grade an answer against the question's correct answer.

    - multiple choice / true-false: exact match of the selected key
    - select-all: the chosen keys and the correct keys are the same set
    - fill-in-the-blank: match ignoring case and surrounding whitespace
    """
    question_type = question.question_type
    if question_type in (QuestionType.MULTIPLE_CHOICE, QuestionType.TRUE_FALSE):
        return isinstance(answer, str) and answer == question.correct_answer
    if question_type == QuestionType.SELECT_ALL:
        return _as_key_set(answer) == _as_key_set(question.correct_answer)
    if question_type == QuestionType.FILL_BLANK:
        return isinstance(answer, str) and answer.strip().lower() == question.correct_answer.strip().lower()
    return False


class QuestionAttempt:
    """
    Answer state of the question currently on screen.

    An attempt is unanswered until it is graded; a graded attempt ignores
    further answers until ``retry``. Incorrect answers raise a one-shot
    ``shake`` flag; correct answers reveal the explanation and source.
    """

    def __init__(self, question: QuizQuestion):
        self.question = question
        self.keys = option_keys(question)
        self.retry()

    def retry(self):
        self.status = AttemptStatus.UNANSWERED
        self.selected_answer: Optional[str] = None
        self.selected_answers: List[str] = []
        self.fill_blank_answer: Optional[str] = None
        self.shake = False
        self.result: Optional[AnswerResult] = None

    @property
    def is_graded(self) -> bool:
        return self.status != AttemptStatus.UNANSWERED

    @property
    def is_correct(self) -> bool:
        return self.status == AttemptStatus.CORRECT

    def _ensure_open(self):
        if self.is_graded:
            raise AnswerLockedError("Question already answered; retry before answering again")

    def _check_key(self, option: str):
        if option not in self.keys:
            raise InvalidAnswerError(f"'{option}' is not an option of question {self.question.id}")

    def select(self, option: str) -> Optional[AnswerResult]:
        """
        Select an option.

        Multiple choice and true/false questions are graded at once;
        select-all questions toggle the option and wait for ``submit``.
        """
        self._ensure_open()
        if self.question.question_type == QuestionType.FILL_BLANK:
            raise InvalidAnswerError("Fill in the blank questions take a text answer")
        self._check_key(option)

        if self.question.question_type == QuestionType.SELECT_ALL:
            if option in self.selected_answers:
                self.selected_answers.remove(option)
            else:
                self.selected_answers.append(option)
            return None

        self.selected_answer = option
        return self._grade(option)

    def submit(self, answer: Optional[Answer] = None) -> AnswerResult:
        """
        Submit an answer for grading.

        Select-all questions submit the current selection, or ``answer``
        (a list of keys or a comma-joined string) when given. Empty answers
        are rejected without grading.
        """
        self._ensure_open()
        question_type = self.question.question_type

        if question_type == QuestionType.SELECT_ALL:
            if answer is not None:
                chosen = sorted(_as_key_set(answer))
                for key in chosen:
                    self._check_key(key)
                self.selected_answers = chosen
            if not self.selected_answers:
                raise EmptyAnswerError("Select at least one option")
            return self._grade(list(self.selected_answers))

        if not isinstance(answer, str) or not answer.strip():
            raise EmptyAnswerError("Answer must not be empty")

        if question_type == QuestionType.FILL_BLANK:
            self.fill_blank_answer = answer
            return self._grade(answer)

        self._check_key(answer)
        self.selected_answer = answer
        return self._grade(answer)

    def _grade(self, answer: Answer) -> AnswerResult:
        correct = grade_answer(self.question, answer)
        self.status = AttemptStatus.CORRECT if correct else AttemptStatus.INCORRECT
        self.shake = not correct
        self.result = AnswerResult(
            question_id=self.question.id,
            user_answer=answer,
            is_correct=correct,
            question_type=self.question.question_type,
        )
        return self.result

    def view(self) -> QuestionView:
        """Client view of the attempt; the shake flag is reported once."""
        question = self.question
        if question.question_type == QuestionType.TRUE_FALSE:
            options = [QuizOption(key=o, text=o) for o in question.options or []]
        else:
            options = [QuizOption(key=k, text=t) for k, t in zip(self.keys, question.options or [])]

        view = QuestionView(
            id=question.id,
            question_text=question.question_text,
            question_type=question.question_type,
            options=options,
            status=self.status,
            selected_answer=self.selected_answer,
            selected_answers=list(self.selected_answers),
            fill_blank_answer=self.fill_blank_answer,
            shake=self.shake,
            explanation=question.explanation if self.is_correct else None,
            source=question.source if self.is_correct else None,
        )
        self.shake = False
        return view


class LessonRun:
    """
    A learner working through the questions of one lesson.

    Attributes:
        session_id: opaque id handed to the client
        lesson_id: lesson being run
        user_id: signed-in user, None for anonymous runs
        attempts: one QuestionAttempt per question, in order
        current_index: position of the question on screen
        answers: every graded attempt, in order
        completed: True once the last question was passed

    select, submit, retry and next hold a per-run lock; sync routes run in
    a threadpool and may reach the same run concurrently.
    """

    def __init__(
        self,
        session_id: str,
        lesson_id: int,
        questions: List[QuizQuestion],
        user_id: Optional[str] = None,
        lesson_info_html: Optional[str] = None,
    ):
        if not questions:
            raise NoQuestionsError(f"There are no questions available for lesson {lesson_id}")
        self.session_id = session_id
        self.lesson_id = lesson_id
        self.user_id = user_id
        self.lesson_info_html = lesson_info_html
        self.attempts = [QuestionAttempt(q) for q in sorted(questions, key=lambda q: q.order_index)]
        self.current_index = 0
        self.answers: List[AnswerResult] = []
        self.completed = False
        self.started_at = time.monotonic()
        self.finished_at: Optional[float] = None
        self.last_active = datetime.now(UTC)
        self._lock = threading.Lock()

    @property
    def current(self) -> QuestionAttempt:
        return self.attempts[self.current_index]

    @property
    def total_questions(self) -> int:
        return len(self.attempts)

    @property
    def is_last_question(self) -> bool:
        return self.current_index == self.total_questions - 1

    @property
    def time_spent_seconds(self) -> int:
        end = self.finished_at if self.finished_at is not None else time.monotonic()
        return int(end - self.started_at)

    def _touch(self):
        if self.completed:
            raise SessionCompletedError("Lesson already completed")
        self.last_active = datetime.now(UTC)

    def _record(self, result: Optional[AnswerResult]) -> Optional[AnswerResult]:
        if result is not None:
            self.answers.append(result)
        return result

    def select(self, option: str) -> Optional[AnswerResult]:
        with self._lock:
            self._touch()
            return self._record(self.current.select(option))

    def submit(self, answer: Optional[Answer] = None) -> AnswerResult:
        with self._lock:
            self._touch()
            return self._record(self.current.submit(answer))

    def retry(self):
        with self._lock:
            self._touch()
            self.current.retry()

    def next(self) -> bool:
        """
        Move past the current question.

        Returns:
            bool: True when this finished the lesson

        Raises:
            QuestionNotAnsweredError: the current question is not answered correctly
            SessionCompletedError: the lesson was already finished, so only
                one caller ever gets True
        """
        with self._lock:
            self._touch()
            if not self.current.is_correct:
                raise QuestionNotAnsweredError("Answer the current question correctly before moving on")
            if self.is_last_question:
                self.completed = True
                self.finished_at = time.monotonic()
                logger.info(
                    f"Lesson {self.lesson_id} completed in session {self.session_id} "
                    f"({self.total_questions} questions, {self.time_spent_seconds}s)"
                )
                return True
            self.current_index += 1
            return False

    def state(self, last_result: Optional[AnswerResult] = None) -> QuizSessionState:
        return QuizSessionState(
            session_id=self.session_id,
            lesson_id=self.lesson_id,
            question_number=self.current_index + 1,
            total_questions=self.total_questions,
            is_last_question=self.is_last_question,
            completed=self.completed,
            time_spent_seconds=self.time_spent_seconds,
            question=None if self.completed else self.current.view(),
            lesson_info_html=self.lesson_info_html,
            last_result=last_result,
        )


class QuizSessionManager:
    """
    In-process store of lesson runs.

    Runs are never persisted; they expire after ``timeout_minutes`` without
    activity and are dropped when the client discards them.
    """

    def __init__(self, timeout_minutes: int = settings.QUIZ_SESSION_TIMEOUT_MINUTES):
        self.timeout = timedelta(minutes=timeout_minutes)
        self._sessions: Dict[str, LessonRun] = {}
        self._lock = threading.Lock()

    def create(
        self,
        lesson_id: int,
        questions: List[QuizQuestion],
        user_id: Optional[str] = None,
        lesson_info_html: Optional[str] = None,
    ) -> LessonRun:
        self.purge_expired()
        run = LessonRun(
            session_id=uuid.uuid4().hex,
            lesson_id=lesson_id,
            questions=questions,
            user_id=user_id,
            lesson_info_html=lesson_info_html,
        )
        with self._lock:
            self._sessions[run.session_id] = run
        logger.debug(f"Quiz session {run.session_id} started for lesson {lesson_id}")
        return run

    def get(self, session_id: str, user_id: Optional[str] = None) -> LessonRun:
        """
        Look up a live run.

        A run started by a signed-in user is only visible to that user.

        Raises:
            SessionNotFoundError: unknown, expired or foreign session
        """
        with self._lock:
            run = self._sessions.get(session_id)
            if run is not None and self._expired(run):
                del self._sessions[session_id]
                run = None
        if run is None or (run.user_id is not None and run.user_id != user_id):
            raise SessionNotFoundError(f"Quiz session '{session_id}' not found")
        return run

    def discard(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def purge_expired(self) -> int:
        with self._lock:
            expired = [sid for sid, run in self._sessions.items() if self._expired(run)]
            for sid in expired:
                del self._sessions[sid]
        if expired:
            logger.info(f"Dropped {len(expired)} expired quiz sessions")
        return len(expired)

    def _expired(self, run: LessonRun) -> bool:
        return datetime.now(UTC) - run.last_active > self.timeout

    def __len__(self) -> int:
        return len(self._sessions)
