from enum import Enum
from typing import Any, Dict, Generic, Iterable, List, Optional, Sequence, Tuple, Type, TypeVar, Union

from pydantic import BaseModel
from sqlalchemy import asc, desc
from sqlalchemy.orm import Query, Session

from grassroutes.db.base_class import Base

ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


SortSpec = Union[str, Sequence[Tuple[str, SortDirection]]]


class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    def __init__(self, model: Type[ModelType]):
        """
        Shared create / read / update / delete operations for one model.

        **Parameters**

        * `model`: SQLAlchemy model class
        """
        self.model = model

    def get(self, db: Session, obj_id: Any) -> Optional[ModelType]:
        """
        Look up a row by primary key.

        Args:
            db: database session
            obj_id: primary key; None never matches

        Returns:
            Optional[ModelType]: the row, or None
        """
        if obj_id is None:
            return None
        return db.get(self.model, obj_id)

    def _query(self, db: Session, filter_conditions: Optional[Dict[str, Any]]) -> Query:
        query = db.query(self.model)
        for field, value in (filter_conditions or {}).items():
            # unknown fields are ignored rather than failing the whole query
            if hasattr(self.model, field):
                query = query.filter(getattr(self.model, field) == value)
        return query

    def _ordered(self, query: Query, sort_by: Optional[SortSpec]) -> Query:
        if not sort_by:
            return query
        if isinstance(sort_by, str):
            return query.order_by(asc(getattr(self.model, sort_by)))
        for field, direction in sort_by:
            if not hasattr(self.model, field):
                continue
            order = desc if direction == SortDirection.DESC else asc
            query = query.order_by(order(getattr(self.model, field)))
        return query

    def get_multi(
        self,
        db: Session,
        *,
        skip: int = 0,
        limit: int = 100,
        filter_conditions: Optional[Dict[str, Any]] = None,
        sort_by: Optional[SortSpec] = None
    ) -> List[ModelType]:
        """
        Page through rows with equality filters and ordering.

        Args:
            db: database session
            skip: offset
            limit: page size
            filter_conditions: column equality filters, e.g. {"user_id": "abc"}
            sort_by: one column name (ascending) or (column, direction) pairs

        Returns:
            List[ModelType]: the page
        """
        query = self._ordered(self._query(db, filter_conditions), sort_by)
        return query.offset(skip).limit(limit).all()

    def get_count(self, db: Session, *, filter_conditions: Optional[Dict[str, Any]] = None) -> int:
        return self._query(db, filter_conditions).count()

    def create(self, db: Session, *, obj_in: CreateSchemaType) -> ModelType:
        """Insert a row built from ``obj_in`` and return it refreshed."""
        db_obj = self.model(**obj_in.model_dump())
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    @staticmethod
    def _columns(db_obj: ModelType) -> Iterable[str]:
        return (column.key for column in db_obj.__table__.columns)

    @classmethod
    def update(
        cls,
        db: Session,
        *,
        db_obj: ModelType,
        obj_in: Union[UpdateSchemaType, Dict[str, Any]]
    ) -> ModelType:
        """
        Apply the fields of ``obj_in`` to an existing row.

        Schemas contribute only the fields the caller set explicitly; keys
        that are not columns of the model are ignored.

        Returns:
            ModelType: the updated row
        """
        changes = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_unset=True)
        for column in cls._columns(db_obj):
            if column in changes:
                setattr(db_obj, column, changes[column])
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def remove(self, db: Session, *, obj_id: int) -> Optional[ModelType]:
        """Delete a row by primary key; returns the deleted row or None."""
        obj = self.get(db, obj_id)
        if obj is not None:
            db.delete(obj)
            db.commit()
        return obj
