# learnsphere/core/repository.py
"""
Generic persistence helpers used by the services.

Plain writes are last-write-wins. Counters and aggregates go through
``atomic_update``, which issues a single UPDATE whose SET clause may refer to
the row's current column values, so concurrent writers never lose updates.
"""

import logging
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy import update
from sqlalchemy.orm import Session

from learnsphere.core.database import Base
from learnsphere.core.decorator import db_exception

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class Repository(Generic[ModelType]):
    def __init__(self, db: Session, model: Type[ModelType]):
        self.db = db
        self.model = model

    @db_exception
    def create(self, commit: bool = True, **fields: Any) -> ModelType:
        obj = self.model(**fields)
        self.db.add(obj)
        if commit:
            self.db.commit()
            self.db.refresh(obj)
        else:
            self.db.flush()
        return obj

    def get(self, obj_id: int) -> Optional[ModelType]:
        return self.db.get(self.model, obj_id)

    def query(self, order_by=None, **filters: Any) -> List[ModelType]:
        q = self.db.query(self.model).filter_by(**filters)
        if order_by is not None:
            q = q.order_by(order_by)
        return q.all()

    def first(self, **filters: Any) -> Optional[ModelType]:
        return self.db.query(self.model).filter_by(**filters).first()

    @db_exception
    def update(self, obj: ModelType, commit: bool = True, **partial: Any) -> ModelType:
        for key, value in partial.items():
            setattr(obj, key, value)
        if commit:
            self.db.commit()
            self.db.refresh(obj)
        return obj

    @db_exception
    def delete(self, obj: ModelType, commit: bool = True) -> None:
        self.db.delete(obj)
        if commit:
            self.db.commit()

    @db_exception
    def atomic_update(
        self, obj_id: int, values: Dict[str, Any], commit: bool = True
    ) -> int:
        """
        Apply ``values`` in one UPDATE statement and return the affected row count.

        Values may be SQL expressions over the model's columns, e.g.
        ``{"views_count": Course.views_count + 1}``.
        """
        result = self.db.execute(
            update(self.model)
            .where(self.model.id == obj_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if commit:
            self.db.commit()
        return result.rowcount
