import logging
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from errors import DuplicateKey, InternalError, NotFound

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


class RecordStore(Generic[ModelT]):
    """
    Thin CRUD layer over one table.

    duplicate_message is what DuplicateKey carries when a unique column is
    violated, label is used in NotFound messages ("Menu item not found").
    """

    def __init__(self, db: Session, model: Type[ModelT], label: str, duplicate_message: str = "Record already exists"):
        self.db = db
        self.model = model
        self.label = label
        self.duplicate_message = duplicate_message

    def find_all(self, newest_first: bool = True, **filters) -> List[ModelT]:
        query = self.db.query(self.model)
        if filters:
            query = query.filter_by(**filters)
        order = self.model.created_at.desc() if newest_first else self.model.created_at.asc()
        return query.order_by(order, self.model.id.desc() if newest_first else self.model.id.asc()).all()

    def find_by_id(self, record_id: int) -> Optional[ModelT]:
        return self.db.get(self.model, record_id)

    def get(self, record_id: int) -> ModelT:
        record = self.find_by_id(record_id)
        if record is None:
            raise NotFound(f"{self.label} not found")
        return record

    def insert(self, values: Dict[str, Any]) -> ModelT:
        record = self.model(**values)
        self.db.add(record)
        self.commit()
        self.db.refresh(record)
        return record

    def update(self, record_id: int, values: Dict[str, Any]) -> ModelT:
        record = self.get(record_id)
        for key, value in values.items():
            setattr(record, key, value)
        self.commit()
        self.db.refresh(record)
        return record

    def delete(self, record_id: int) -> None:
        record = self.get(record_id)
        self.db.delete(record)
        self.commit()

    def commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.info("Unique constraint violated on %s: %s", self.model.__tablename__, e.orig)
            raise DuplicateKey(self.duplicate_message)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Store failure on %s", self.model.__tablename__)
            raise InternalError(f"Error saving {self.label.lower()}")
