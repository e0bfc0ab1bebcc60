from typing import List, Tuple
from sqlalchemy.orm import Session
from grassroutes.crud.base import CRUDBase
from grassroutes.models.question import Question
from grassroutes.schemas.content import QuestionCreate, QuestionUpdate


class CRUDQuestion(CRUDBase[Question, QuestionCreate, QuestionUpdate]):
    def get_by_module(self, db: Session, *, module: str) -> List[Question]:
        """
        Questions of one lesson, in authoring order.

        Args:
            db: database session
            module: '<unit>-<section letter>-<lesson index>'
        """
        return (
            db.query(self.model)
            .filter(self.model.module == module)
            .order_by(self.model.id)
            .all()
        )

    def get_module_sources(self, db: Session) -> List[Tuple[str, str]]:
        """
        Distinct (module, source) pairs of questions that cite a source.
        """
        rows = (
            db.query(self.model.module, self.model.source)
            .filter(self.model.source.isnot(None), self.model.source != "", self.model.module.isnot(None))
            .distinct()
            .order_by(self.model.module, self.model.source)
            .all()
        )
        return [(module, source) for module, source in rows]


question = CRUDQuestion(Question)
