# backend/carenow/repositories/base_repository.py
"""
Generic data access for one CareNow collection.

Each repository wraps a single table (the relational stand-in for a
document-store collection): services, partners, bookings, reviews, users,
notifications and notification preferences.

Repositories never commit; services own the transaction boundary through
``BaseService.transaction()``. Every SQLAlchemy failure surfaces as
``RepositoryException`` so services can map it to a domain error.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
import logging
from typing import Any, Dict, Generic, Iterator, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.constants import DEFAULT_QUERY_LIMIT
from ..core.exceptions import RepositoryException

T = TypeVar("T")

logger = logging.getLogger(__name__)


class IRepository(ABC, Generic[T]):
    """Operations every collection supports."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Document by id, or None."""

    @abstractmethod
    def get_all(self, skip: int = 0, limit: int = DEFAULT_QUERY_LIMIT) -> List[T]:
        """One page of documents."""

    @abstractmethod
    def create(self, **fields: Any) -> T:
        """Insert a document and return it with its generated fields."""

    @abstractmethod
    def update(self, id: str, **fields: Any) -> Optional[T]:
        """Merge ``fields`` into a document; None when it does not exist."""

    @abstractmethod
    def delete(self, id: str) -> bool:
        """Remove a document; False when it does not exist."""

    @abstractmethod
    def exists(self, **criteria: Any) -> bool:
        ...

    @abstractmethod
    def count(self, **criteria: Any) -> int:
        ...


class BaseRepository(IRepository[T]):
    """
    SQLAlchemy implementation of ``IRepository``.

    Subclasses add collection-specific queries built from ``_build_query``
    and run through ``_execute_query`` / ``_execute_scalar``.
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.collection = getattr(model, "__tablename__", model.__name__)
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    @contextmanager
    def _guard(self, action: str, rollback: bool = False) -> Iterator[None]:
        """Translate SQLAlchemy errors raised while performing ``action``."""
        try:
            yield
        except IntegrityError as exc:
            self.logger.error("Integrity error during %s on %s: %s", action, self.collection, exc)
            if rollback:
                self.db.rollback()
            raise RepositoryException(
                f"Integrity constraint violated in {self.collection}: {exc.orig}"
            ) from exc
        except SQLAlchemyError as exc:
            self.logger.error("Failed to %s on %s: %s", action, self.collection, exc)
            if rollback:
                self.db.rollback()
            raise RepositoryException(f"Failed to {action} {self.collection}: {exc}") from exc

    # Reads

    def get_by_id(self, id: str) -> Optional[T]:
        with self._guard("get"):
            return self.db.get(self.model, id)

    def get_many(self, ids: Sequence[str]) -> List[T]:
        """Documents for ``ids``; unknown ids are skipped."""
        if not ids:
            return []
        with self._guard("get many"):
            key = inspect(self.model).primary_key[0]
            return self._build_query().filter(key.in_(list(ids))).all()

    def get_all(self, skip: int = 0, limit: int = DEFAULT_QUERY_LIMIT) -> List[T]:
        with self._guard("list"):
            return self._build_query().offset(skip).limit(limit).all()

    def find_by(self, **criteria: Any) -> List[T]:
        with self._guard("find"):
            return self._build_query().filter_by(**criteria).all()

    def find_one_by(self, **criteria: Any) -> Optional[T]:
        with self._guard("find one"):
            return self._build_query().filter_by(**criteria).first()

    def exists(self, **criteria: Any) -> bool:
        return self.find_one_by(**criteria) is not None

    def count(self, **criteria: Any) -> int:
        with self._guard("count"):
            return self._build_query().filter_by(**criteria).count()

    # Writes (flush only)

    def create(self, **fields: Any) -> T:
        with self._guard("create", rollback=True):
            entity = self.model(**fields)
            self.db.add(entity)
            self.db.flush()
            return entity

    def bulk_create(self, documents: List[Dict[str, Any]]) -> List[T]:
        """Insert several documents in a single flush."""
        with self._guard("bulk create", rollback=True):
            entities = [self.model(**fields) for fields in documents]
            self.db.add_all(entities)
            self.db.flush()
            return entities

    def update(self, id: str, **fields: Any) -> Optional[T]:
        entity = self.get_by_id(id)
        if entity is None:
            return None
        with self._guard("update", rollback=True):
            for key, value in fields.items():
                # unknown keys are ignored, like a partial document merge
                if hasattr(entity, key):
                    setattr(entity, key, value)
            self.db.flush()
            return entity

    def delete(self, id: str) -> bool:
        entity = self.get_by_id(id)
        if entity is None:
            return False
        with self._guard("delete", rollback=True):
            self.db.delete(entity)
            self.db.flush()
        return True

    def flush(self) -> None:
        with self._guard("flush", rollback=True):
            self.db.flush()

    def refresh(self, instance: T) -> None:
        self.db.refresh(instance)

    # Helpers for subclasses

    def _build_query(self) -> Query:
        return self.db.query(self.model)

    def _execute_query(self, query: Query) -> List[T]:
        with self._guard("query"):
            return query.all()

    def _execute_scalar(self, query: Query) -> Any:
        with self._guard("aggregate"):
            return query.scalar()
