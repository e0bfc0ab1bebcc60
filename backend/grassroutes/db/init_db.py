import json
import logging
from pathlib import Path
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from grassroutes.core.config import settings
from grassroutes.crud.crud_counter import counter as crud_counter
from grassroutes.crud.crud_lesson_content import lesson_content as crud_lesson_content
from grassroutes.crud.crud_question import question as crud_question
from grassroutes.db.base_class import Base
from grassroutes.db.database import SessionLocal, engine
from grassroutes.schemas.content import LessonContentCreate, QuestionCreate

# Import all models so they are registered on Base.metadata
from grassroutes import models  # noqa: F401

logger = logging.getLogger(__name__)


def seed_content(db: Session, path: Path) -> Tuple[int, int]:
    """
    Load lesson content and questions from a JSON file.

    The file holds ``{"lesson_content": [...], "questions": [...]}`` in the
    shape of LessonContentCreate and QuestionCreate. Each list is only
    loaded into an empty table.

    Returns:
        Tuple[int, int]: number of content blocks and questions added
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    added_content = added_questions = 0
    if crud_lesson_content.get_count(db) == 0:
        for item in data.get("lesson_content", []):
            crud_lesson_content.create(db, obj_in=LessonContentCreate(**item))
            added_content += 1
    if crud_question.get_count(db) == 0:
        for item in data.get("questions", []):
            crud_question.create(db, obj_in=QuestionCreate(**item))
            added_questions += 1
    return added_content, added_questions


def init_db(seed: bool = False, seed_path: Optional[Path] = None) -> None:
    """Create all tables and the counter row; optionally load the seed content."""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        crud_counter.ensure_counter(db)
        if seed:
            path = seed_path or Path(settings.DATA_DIR) / settings.SEED_CONTENT_FILENAME
            if path.exists():
                added = seed_content(db, path)
                logger.info(f"Seeded {added[0]} lesson content blocks and {added[1]} questions from {path.name}")
            else:
                logger.warning(f"Seed file {path} not found, skipping")
    finally:
        db.close()
