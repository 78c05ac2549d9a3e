from abc import ABC
from typing import Any, Dict, Generic, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy.orm import Query, Session

T = TypeVar("T")
SchemaType = TypeVar("SchemaType", bound=BaseModel)


class BaseRepository(Generic[T, SchemaType], ABC):
    """Base class for every repository - public methods return pydantic schemas"""

    def __init__(
        self, model_class: Type[T], schema_class: Type[SchemaType], db: Session
    ):
        self.model_class = model_class
        self.schema_class = schema_class
        self.db = db

    def _to_schema(self, model_instance: Any) -> Optional[SchemaType]:
        if model_instance is None:
            return None
        return self.schema_class.model_validate(model_instance)

    def _ensure_clean_session(self) -> None:
        """Roll back a session left in a failed state by an earlier error.

        Open transactions are left alone: services flush several writes and
        commit them together.
        """
        if not self.db.is_active:
            self.db.rollback()

    def _apply_filters(self, query: Query, filters: Optional[Dict[str, Any]]) -> Query:
        if filters:
            for key, value in filters.items():
                if value is not None and hasattr(self.model_class, key):
                    query = query.filter(getattr(self.model_class, key) == value)
        return query

    def get_model(self, id: Any) -> Optional[T]:
        """ORM instance by primary key, for services that mutate it"""
        self._ensure_clean_session()
        return self.db.get(self.model_class, id)

    def get_by_id(self, id: Any) -> Optional[SchemaType]:
        return self._to_schema(self.get_model(id))

    def get_by_field(self, field_name: str, value: Any) -> Optional[SchemaType]:
        self._ensure_clean_session()
        model_instance = (
            self.db.query(self.model_class)
            .filter(getattr(self.model_class, field_name) == value)
            .first()
        )
        return self._to_schema(model_instance)

    def add(self, instance: T, commit: bool = True) -> T:
        """Persist a new ORM instance; with commit=False it is only flushed"""
        self._ensure_clean_session()
        self.db.add(instance)
        try:
            self.db.flush()
            self.db.refresh(instance)
            if commit:
                self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return instance

    def create(self, commit: bool = True, **kwargs) -> Optional[SchemaType]:
        instance = self.add(self.model_class(**kwargs), commit=commit)
        return self._to_schema(instance)

    def save(self, instance: T, commit: bool = True) -> T:
        """Flush (and optionally commit) changes made to a loaded instance"""
        try:
            self.db.flush()
            self.db.refresh(instance)
            if commit:
                self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return instance

    def paginate(
        self, query: Query, page: int, limit: int
    ) -> Tuple[List[SchemaType], int]:
        """page is 1-based; returns (items, total)"""
        total = query.order_by(None).count()
        rows = query.limit(limit).offset((page - 1) * limit).all()
        return [self._to_schema(row) for row in rows], total
