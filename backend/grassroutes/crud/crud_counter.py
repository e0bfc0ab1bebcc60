import logging
from typing import Optional
from datetime import datetime, UTC
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from grassroutes.crud.base import CRUDBase
from grassroutes.models.global_counter import GlobalQuestionsCounter, QuestionCompletion

logger = logging.getLogger(__name__)


class CRUDCounter(CRUDBase[GlobalQuestionsCounter, BaseModel, BaseModel]):
    def get_counter(self, db: Session) -> Optional[GlobalQuestionsCounter]:
        return db.query(self.model).order_by(self.model.id).first()

    def get_total(self, db: Session) -> int:
        """Questions answered across all learners; 0 before the row exists."""
        counter = self.get_counter(db)
        return counter.count if counter else 0

    def ensure_counter(self, db: Session) -> GlobalQuestionsCounter:
        """Create the counter row with a zero count if it does not exist yet."""
        counter = self.get_counter(db)
        if counter is None:
            counter = self.model(count=0)
            db.add(counter)
            db.commit()
            db.refresh(counter)
        return counter

    def increment_deduplicated(
        self,
        db: Session,
        *,
        completion_id: str,
        user_id: str,
        lesson_id: str,
        question_count: int
    ) -> Optional[int]:
        """
        Add ``question_count`` to the counter once per ``completion_id``.

        The completion marker and the counter change are committed in the
        same transaction.

        Returns:
            Optional[int]: the new count, or None when ``completion_id`` was
            already processed
        """
        try:
            already = (
                db.query(QuestionCompletion)
                .filter(QuestionCompletion.completion_id == completion_id)
                .first()
            )
            if already is not None:
                return None

            counter = (
                db.query(self.model)
                .order_by(self.model.id)
                .with_for_update()
                .first()
            )
            if counter is None:
                counter = self.model(count=0)
                db.add(counter)

            counter.count = (counter.count or 0) + question_count
            counter.last_updated = datetime.now(UTC)
            db.add(QuestionCompletion(
                completion_id=completion_id,
                user_id=user_id,
                lesson_id=str(lesson_id),
                question_count=question_count,
            ))
            db.commit()
        except IntegrityError:
            # a concurrent request stored the same completion id first
            db.rollback()
            logger.info(f"Counter increment {completion_id} already processed")
            return None
        except Exception:
            db.rollback()
            raise

        db.refresh(counter)
        return counter.count


counter = CRUDCounter(GlobalQuestionsCounter)
