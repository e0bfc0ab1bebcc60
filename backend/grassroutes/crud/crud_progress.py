from typing import List, Optional
from datetime import datetime, UTC
from sqlalchemy.orm import Session
from grassroutes.crud.base import CRUDBase
from grassroutes.models.user_progress import UserProgress
from grassroutes.schemas.user_progress import UserProgressCreate, UserProgressUpdate


class CRUDProgress(CRUDBase[UserProgress, UserProgressCreate, UserProgressUpdate]):
    def get_by_user_and_lesson(self, db: Session, *, user_id: str, lesson_id: str) -> Optional[UserProgress]:
        return (
            db.query(self.model)
            .filter(self.model.user_id == user_id, self.model.lesson_id == str(lesson_id))
            .first()
        )

    def get_records_by_user(self, db: Session, *, user_id: str) -> List[UserProgress]:
        """
        All completion records of a user, complete or not.
        """
        return (
            db.query(self.model)
            .filter(self.model.user_id == user_id)
            .order_by(self.model.id)
            .all()
        )

    def upsert(self, db: Session, *, obj_in: UserProgressCreate) -> UserProgress:
        """
        Write the completion state of (user, lesson); the last write wins.

        Writes are ordered by ``obj_in.updated_at``. A write older than the
        stored row, such as a queued or retried background write that lands
        after a later toggle, is dropped and the stored row is returned.
        """
        written_at = _as_utc(obj_in.updated_at) if obj_in.updated_at else datetime.now(UTC)
        existing = self.get_by_user_and_lesson(db, user_id=obj_in.user_id, lesson_id=obj_in.lesson_id)
        if existing is None:
            return self.create(db, obj_in=obj_in.model_copy(update={"updated_at": written_at}))
        if existing.updated_at is not None and written_at < _as_utc(existing.updated_at):
            return existing
        return self.update(
            db,
            db_obj=existing,
            obj_in={"is_complete": obj_in.is_complete, "updated_at": written_at},
        )


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; stored values are UTC
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


# Instantiate and expose to the API layer
progress = CRUDProgress(UserProgress)
