# backend/grassroutes/services/content_loader.py
import json
import logging
import re
from pathlib import Path
from fastapi import HTTPException
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError
from sqlalchemy.orm import Session

from grassroutes.core.config import settings
from grassroutes.crud.crud_lesson_content import lesson_content as crud_lesson_content
from grassroutes.crud.crud_question import question as crud_question
from grassroutes.schemas.content import Unit, Section, Lesson, LessonContentItem
from grassroutes.schemas.quiz import QuizQuestion, QuestionType

logger = logging.getLogger(__name__)

# Data directory from settings
DATA_DIR = Path(settings.DATA_DIR)

SECTIONS_PER_UNIT = 7
LESSONS_PER_SECTION = 6
SECTION_LETTERS = "abcdefg"
LESSON_LETTERS = "ABCDEF"

NO_EXPLANATION = "No explanation available."
NO_SOURCE = "No source available."

QUESTION_TYPE_MAP = {
    "tf": QuestionType.TRUE_FALSE,
    "mc": QuestionType.MULTIPLE_CHOICE,
    "fill_in": QuestionType.FILL_BLANK,
    "select": QuestionType.SELECT_ALL,
    "select_all": QuestionType.SELECT_ALL,
}

MODULE_PATTERN = re.compile(r"^(\d+)-([a-g])-([1-6])$")


# Cache the catalog so the file is read once per process
@lru_cache(maxsize=1)
def load_catalog() -> Dict[str, Any]:
    """
    Load the static unit/section/lesson catalog from the data directory.
    """
    catalog_file = DATA_DIR / settings.CATALOG_FILENAME
    if not catalog_file.exists():
        raise HTTPException(status_code=500, detail=f"Catalog file '{catalog_file.name}' not found.")

    with open(catalog_file, "r", encoding="utf-8") as f:
        return json.load(f)


def section_id_for(unit_id: int, section_number: int) -> int:
    return (unit_id - 1) * SECTIONS_PER_UNIT + section_number


def lesson_id_for(section_id: int, order_index: int) -> int:
    return (section_id - 1) * LESSONS_PER_SECTION + order_index


def split_section_id(section_id: int) -> Tuple[int, int]:
    """Global section id -> (unit_id, section_number)"""
    return (section_id - 1) // SECTIONS_PER_UNIT + 1, (section_id - 1) % SECTIONS_PER_UNIT + 1


def split_lesson_id(lesson_id: int) -> Tuple[int, int]:
    """Global lesson id -> (section_id, order_index)"""
    return (lesson_id - 1) // LESSONS_PER_SECTION + 1, (lesson_id - 1) % LESSONS_PER_SECTION + 1


def module_for_lesson(lesson_id: int) -> str:
    """
    Question module of a lesson, '<unit>-<section letter>-<lesson index>'.

    Lesson 1 is '1-a-1', lesson 7 is '1-b-1', lesson 43 is '2-a-1'.
    """
    section_id, order_index = split_lesson_id(lesson_id)
    unit_id, section_number = split_section_id(section_id)
    return f"{unit_id}-{SECTION_LETTERS[section_number - 1]}-{order_index}"


def parse_module(module: str) -> Optional[Tuple[str, str, str]]:
    """'1-a-3' -> ('1', 'a', '3'); None for anything that is not a module"""
    if not module:
        return None
    match = MODULE_PATTERN.match(module.strip())
    if not match:
        return None
    return match.group(1), match.group(2), match.group(3)


def _unit_data(unit_id: int) -> Dict[str, Any]:
    for unit in load_catalog()["units"]:
        if unit["id"] == unit_id:
            return unit
    raise HTTPException(status_code=404, detail=f"Unit {unit_id} not found.")


def get_units() -> List[Unit]:
    return [
        Unit(id=u["id"], title=u["title"], description=u.get("description", ""), color=u.get("color", "#22c55e"))
        for u in load_catalog()["units"]
    ]


def get_unit(unit_id: int) -> Unit:
    u = _unit_data(unit_id)
    return Unit(id=u["id"], title=u["title"], description=u.get("description", ""), color=u.get("color", "#22c55e"))


def get_sections(unit_id: int) -> List[Section]:
    unit = _unit_data(unit_id)
    return [
        Section(
            id=section_id_for(unit_id, s["section_number"]),
            unit_id=unit_id,
            section_number=s["section_number"],
            section_letter=SECTION_LETTERS[s["section_number"] - 1],
            title=s["title"],
            description=s.get("description", ""),
        )
        for s in unit["sections"]
    ]


def get_lessons(section_id: int) -> List[Lesson]:
    """
    Lessons of a section in letter order.

    Raises:
        HTTPException: 404 when the section does not exist
    """
    unit_id, section_number = split_section_id(section_id)
    unit = _unit_data(unit_id)
    section = next((s for s in unit["sections"] if s["section_number"] == section_number), None)
    if section is None:
        raise HTTPException(status_code=404, detail=f"Section {section_id} not found.")

    lessons = []
    for lesson in section["lessons"]:
        order_index = LESSON_LETTERS.index(lesson["lesson_letter"]) + 1
        lessons.append(Lesson(
            id=lesson_id_for(section_id, order_index),
            section_id=section_id,
            unit_id=unit_id,
            section_number=section_number,
            section_letter=SECTION_LETTERS[section_number - 1],
            section_title=section["title"],
            lesson_letter=lesson["lesson_letter"],
            title=lesson["title"],
            description=lesson.get("description", ""),
            duration_minutes=lesson.get("duration_minutes", 15),
            order_index=order_index,
        ))
    return lessons


def get_lesson(lesson_id: int) -> Lesson:
    section_id, _ = split_lesson_id(lesson_id)
    for lesson in get_lessons(section_id):
        if lesson.id == lesson_id:
            return lesson
    raise HTTPException(status_code=404, detail=f"Lesson {lesson_id} not found.")


# --- question transformation ---

def strip_quotes(value: Optional[str]) -> str:
    """Drop one leading and one trailing double quote, as left by CSV imports."""
    if not value:
        return ""
    return re.sub(r'^"|"$', "", value)


def parse_answers(raw: Any) -> List[str]:
    """
    Option texts of a stored question.

    Rows hold either a list or a JSON string. Broken JSON strings get one
    repair pass for stray whitespace around separators, then a plain split
    of the bracketed part.
    """
    if raw is None or raw == "":
        return []
    if isinstance(raw, list):
        return [str(option) for option in raw]

    try:
        parsed = json.loads(raw)
        if isinstance(parsed, list):
            return [str(option) for option in parsed]
        return []
    except (TypeError, ValueError) as e:
        logger.warning(f"Could not parse answers {raw!r}: {e}")

    try:
        fixed = re.sub(r'",\s*"', '","', raw)
        fixed = re.sub(r'\[\s*"', '["', fixed)
        fixed = re.sub(r'"\s*\]', '"]', fixed)
        parsed = json.loads(fixed)
        if isinstance(parsed, list):
            return [str(option) for option in parsed]
    except (TypeError, ValueError) as e:
        logger.warning(f"Repaired answers still invalid: {e}")

    match = re.search(r"\[(.*?)\]", raw)
    if not match:
        return []
    return [re.sub(r'^"|"$', "", option.strip()) for option in match.group(1).split(",")]


def option_key(index: int) -> str:
    return chr(ord("A") + index)


def correct_answer_to_keys(correct_answer: str, options: List[str], question_type: QuestionType) -> str:
    """
    Convert the stored correct answer text into option keys.

    Multiple choice answers become a single key; select-all answers (a JSON
    list of texts, or one text) become comma-joined keys. Texts that match no
    option, and answers of the other types, are returned unchanged.
    """
    if question_type == QuestionType.MULTIPLE_CHOICE and options:
        if correct_answer in options:
            return option_key(options.index(correct_answer))
    elif question_type == QuestionType.SELECT_ALL and options:
        try:
            answers = json.loads(correct_answer)
        except (TypeError, ValueError):
            answers = None
        if isinstance(answers, list):
            return ",".join(
                option_key(options.index(a)) if a in options else str(a)
                for a in answers
            )
        if correct_answer in options:
            return option_key(options.index(correct_answer))
    return correct_answer


def transform_question(row: Any, position: int, lesson_id: int) -> QuizQuestion:
    """
    Stored question row -> QuizQuestion.

    Args:
        row: ``models.Question`` (or anything with the same attributes)
        position: 1-based position inside the lesson, used as id and order
        lesson_id: lesson the question is served for
    """
    question_type = QUESTION_TYPE_MAP.get((row.type or "").strip(), QuestionType.MULTIPLE_CHOICE)
    options: Optional[List[str]] = parse_answers(row.answers) or None
    if question_type == QuestionType.FILL_BLANK:
        options = None

    correct = strip_quotes(row.correct_answer)
    return QuizQuestion(
        id=position,
        lesson_id=lesson_id,
        question_text=strip_quotes(row.text),
        question_type=question_type,
        options=options,
        correct_answer=correct_answer_to_keys(correct, options or [], question_type),
        explanation=strip_quotes(row.comments) or NO_EXPLANATION,
        source=strip_quotes(row.source) or NO_SOURCE,
        order_index=position,
    )


def load_lesson_questions(db: Session, lesson_id: int) -> List[QuizQuestion]:
    """
    Questions of a lesson in the shape the quiz engine grades.

    Rows that cannot be turned into a gradable question are logged and
    skipped; the remaining questions are numbered without gaps.
    """
    questions: List[QuizQuestion] = []
    for row in crud_question.get_by_module(db, module=module_for_lesson(lesson_id)):
        try:
            questions.append(transform_question(row, len(questions) + 1, lesson_id))
        except ValidationError as e:
            logger.warning(f"Skipping question {row.id} of lesson {lesson_id}: {e.errors()[0]['msg']}")
    return questions


def load_lesson_content(db: Session, lesson_id: int) -> List[LessonContentItem]:
    return [LessonContentItem.model_validate(row) for row in crud_lesson_content.get_by_lesson(db, lesson_id=lesson_id)]


def group_sources(pairs: List[Tuple[str, str]]) -> Dict[str, Dict[str, Dict[str, List[str]]]]:
    """
    Group (module, source) pairs as {unit: {section letter: {lesson index: [sources]}}}.

    Placeholder and empty sources are skipped, as are malformed modules.
    """
    grouped: Dict[str, Dict[str, Dict[str, List[str]]]] = {}
    for module, source in pairs:
        clean = strip_quotes(source).strip()
        if not clean or clean == NO_SOURCE:
            continue
        parts = parse_module(module)
        if parts is None:
            logger.debug(f"Skipping source with malformed module {module!r}")
            continue
        unit, letter, index = parts
        lesson_sources = grouped.setdefault(unit, {}).setdefault(letter, {}).setdefault(index, [])
        if clean not in lesson_sources:
            lesson_sources.append(clean)
    return grouped
