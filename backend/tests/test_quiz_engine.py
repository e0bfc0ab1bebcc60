#!/usr/bin/env python3
"""
Quiz engine tests

Grading per question type, the answer state machine of a single question,
lesson runs and the in-memory session store.
"""

import threading
import pytest
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, UTC

from grassroutes.schemas.quiz import AttemptStatus, QuestionType, QuizQuestion
from grassroutes.services.quiz_engine import (
    AnswerLockedError,
    EmptyAnswerError,
    InvalidAnswerError,
    LessonRun,
    NoQuestionsError,
    QuestionAttempt,
    QuestionNotAnsweredError,
    QuizSessionManager,
    SessionCompletedError,
    SessionNotFoundError,
    grade_answer,
    option_keys,
)


def make_question(question_type: QuestionType, correct: str, options=None, qid: int = 1) -> QuizQuestion:
    return QuizQuestion(
        id=qid,
        lesson_id=1,
        question_text=f"Question {qid}",
        question_type=question_type,
        options=options,
        correct_answer=correct,
        explanation="Because.",
        source="Somewhere",
        order_index=qid,
    )


@pytest.fixture
def mc_question() -> QuizQuestion:
    return make_question(QuestionType.MULTIPLE_CHOICE, "B", ["A", "B", "C"])


@pytest.fixture
def select_all_question() -> QuizQuestion:
    return make_question(QuestionType.SELECT_ALL, "A, C", ["A", "B", "C", "D"])


class TestGrading:
    """Per-type grading rules"""

    def test_multiple_choice_exact_match(self, mc_question):
        assert grade_answer(mc_question, "B") is True
        assert grade_answer(mc_question, "A") is False
        assert grade_answer(mc_question, "b") is False

    def test_true_false_uses_option_text(self):
        question = make_question(QuestionType.TRUE_FALSE, "True")
        assert question.options == ["True", "False"]
        assert option_keys(question) == ["True", "False"]
        assert grade_answer(question, "True") is True
        assert grade_answer(question, "False") is False

    def test_select_all_is_order_independent(self, select_all_question):
        assert grade_answer(select_all_question, ["A", "C"]) is True
        assert grade_answer(select_all_question, ["C", "A"]) is True
        assert grade_answer(select_all_question, "C,A") is True

    def test_select_all_requires_exact_set(self, select_all_question):
        assert grade_answer(select_all_question, ["A"]) is False
        assert grade_answer(select_all_question, ["A", "B", "C"]) is False

    @pytest.mark.parametrize("answer", ["zip", "ZIP", "  Zip  ", "zIp\n"])
    def test_fill_blank_ignores_case_and_whitespace(self, answer):
        question = make_question(QuestionType.FILL_BLANK, "Zip")
        assert grade_answer(question, answer) is True

    def test_fill_blank_wrong_text(self):
        question = make_question(QuestionType.FILL_BLANK, "zip")
        assert grade_answer(question, "area") is False

    def test_choice_question_without_options_is_rejected(self):
        with pytest.raises(ValueError):
            make_question(QuestionType.MULTIPLE_CHOICE, "A", None)

    def test_fill_blank_with_options_is_rejected(self):
        with pytest.raises(ValueError):
            make_question(QuestionType.FILL_BLANK, "x", ["x", "y"])


class TestQuestionAttempt:
    """Answer state of a single question"""

    def test_selecting_correct_option_reveals_explanation(self, mc_question):
        attempt = QuestionAttempt(mc_question)
        result = attempt.select("B")

        assert result.is_correct is True
        assert result.model_dump(by_alias=True) == {
            "questionId": 1,
            "userAnswer": "B",
            "isCorrect": True,
            "questionType": QuestionType.MULTIPLE_CHOICE,
        }
        view = attempt.view()
        assert view.status == AttemptStatus.CORRECT
        assert view.explanation == "Because."
        assert view.source == "Somewhere"
        assert view.shake is False

    def test_incorrect_answer_shakes_once_and_hides_explanation(self, mc_question):
        attempt = QuestionAttempt(mc_question)
        result = attempt.select("A")

        assert result.is_correct is False
        first = attempt.view()
        assert first.status == AttemptStatus.INCORRECT
        assert first.shake is True
        assert first.explanation is None
        assert attempt.view().shake is False

    def test_graded_attempt_rejects_answers_until_retry(self, mc_question):
        attempt = QuestionAttempt(mc_question)
        attempt.select("A")
        with pytest.raises(AnswerLockedError):
            attempt.select("B")

        attempt.retry()
        assert attempt.status == AttemptStatus.UNANSWERED
        assert attempt.selected_answer is None
        assert attempt.select("B").is_correct is True

    def test_unknown_option_is_invalid(self, mc_question):
        attempt = QuestionAttempt(mc_question)
        with pytest.raises(InvalidAnswerError):
            attempt.select("Z")
        assert attempt.status == AttemptStatus.UNANSWERED

    def test_select_all_toggles_then_submits(self, select_all_question):
        attempt = QuestionAttempt(select_all_question)
        assert attempt.select("A") is None
        assert attempt.select("B") is None
        assert attempt.select("B") is None
        assert attempt.select("C") is None
        assert attempt.selected_answers == ["A", "C"]
        assert attempt.status == AttemptStatus.UNANSWERED

        result = attempt.submit()
        assert result.is_correct is True
        assert result.user_answer == ["A", "C"]

    def test_select_all_partial_selection_is_incorrect(self, select_all_question):
        attempt = QuestionAttempt(select_all_question)
        attempt.select("A")
        assert attempt.submit().is_correct is False

        attempt.retry()
        assert attempt.selected_answers == []
        assert attempt.submit(["A", "B", "C"]).is_correct is False

    def test_select_all_empty_selection_cannot_be_submitted(self, select_all_question):
        attempt = QuestionAttempt(select_all_question)
        with pytest.raises(EmptyAnswerError):
            attempt.submit()
        assert attempt.status == AttemptStatus.UNANSWERED

    def test_fill_blank_submit(self):
        attempt = QuestionAttempt(make_question(QuestionType.FILL_BLANK, "zip"))
        with pytest.raises(EmptyAnswerError):
            attempt.submit("   ")
        with pytest.raises(InvalidAnswerError):
            attempt.select("A")
        result = attempt.submit(" ZIP ")
        assert result.is_correct is True
        assert attempt.fill_blank_answer == " ZIP "

    def test_view_never_contains_correct_answer(self, mc_question):
        view = QuestionAttempt(mc_question).view()
        assert "correct_answer" not in view.model_dump()
        assert [o.key for o in view.options] == ["A", "B", "C"]


class TestLessonRun:
    """A learner working through a lesson"""

    def make_run(self) -> LessonRun:
        questions = [
            make_question(QuestionType.MULTIPLE_CHOICE, "A", ["x", "y"], qid=1),
            make_question(QuestionType.TRUE_FALSE, "False", qid=2),
        ]
        return LessonRun(session_id="s1", lesson_id=1, questions=questions, user_id="u1")

    def test_next_requires_correct_answer(self):
        run = self.make_run()
        with pytest.raises(QuestionNotAnsweredError):
            run.next()
        run.select("B")
        with pytest.raises(QuestionNotAnsweredError):
            run.next()

    def test_full_run_completes_lesson(self):
        run = self.make_run()
        run.select("B")
        run.retry()
        run.select("A")
        assert run.next() is False
        assert run.is_last_question is True

        run.select("False")
        assert run.next() is True
        assert run.completed is True
        assert len(run.answers) == 3
        assert [a.is_correct for a in run.answers] == [False, True, True]

        state = run.state()
        assert state.completed is True
        assert state.question is None
        assert state.total_questions == 2

        with pytest.raises(SessionCompletedError):
            run.select("True")

    def test_concurrent_next_finishes_once(self):
        run = LessonRun(
            session_id="s2", lesson_id=1, user_id="u1",
            questions=[make_question(QuestionType.MULTIPLE_CHOICE, "A", ["x", "y"])],
        )
        run.select("A")
        barrier = threading.Barrier(8)

        def advance():
            barrier.wait()
            try:
                return run.next()
            except SessionCompletedError:
                return None

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: advance(), range(8)))

        assert results.count(True) == 1
        assert results.count(None) == 7

    def test_empty_lesson_is_rejected(self):
        with pytest.raises(NoQuestionsError):
            LessonRun(session_id="s", lesson_id=1, questions=[])


class TestQuizSessionManager:
    """In-memory session store"""

    def test_create_get_discard(self, mc_question):
        manager = QuizSessionManager(timeout_minutes=5)
        run = manager.create(lesson_id=1, questions=[mc_question])
        assert manager.get(run.session_id) is run
        assert manager.discard(run.session_id) is True
        with pytest.raises(SessionNotFoundError):
            manager.get(run.session_id)

    def test_session_of_user_is_private(self, mc_question):
        manager = QuizSessionManager()
        run = manager.create(lesson_id=1, questions=[mc_question], user_id="owner")
        assert manager.get(run.session_id, user_id="owner") is run
        with pytest.raises(SessionNotFoundError):
            manager.get(run.session_id, user_id="someone-else")
        with pytest.raises(SessionNotFoundError):
            manager.get(run.session_id)

    def test_expired_sessions_are_dropped(self, mc_question):
        manager = QuizSessionManager(timeout_minutes=1)
        run = manager.create(lesson_id=1, questions=[mc_question])
        run.last_active = datetime.now(UTC) - timedelta(minutes=5)
        with pytest.raises(SessionNotFoundError):
            manager.get(run.session_id)
        assert len(manager) == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
