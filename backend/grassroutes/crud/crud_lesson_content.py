from typing import List
from sqlalchemy.orm import Session
from grassroutes.crud.base import CRUDBase
from grassroutes.models.lesson_content import LessonContent
from grassroutes.schemas.content import LessonContentCreate, LessonContentUpdate


class CRUDLessonContent(CRUDBase[LessonContent, LessonContentCreate, LessonContentUpdate]):
    def get_by_lesson(self, db: Session, *, lesson_id: int) -> List[LessonContent]:
        """Reading material of a lesson, ordered by ``content_order``."""
        return (
            db.query(self.model)
            .filter(self.model.lesson_id == lesson_id)
            .order_by(self.model.content_order, self.model.id)
            .all()
        )

    def remove_by_lesson(self, db: Session, *, lesson_id: int) -> int:
        deleted = db.query(self.model).filter(self.model.lesson_id == lesson_id).delete()
        db.commit()
        return deleted


lesson_content = CRUDLessonContent(LessonContent)
