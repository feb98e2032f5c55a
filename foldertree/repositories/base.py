"""Base repository with shared lookup, filtering and transaction patterns.

Subclasses specify ``model_class``, ``not_found_error`` and ``entity_name``,
override ``_base_query()`` to exclude soft-deleted rows, and implement
``_to_entities()``, ``_apply_filters()`` and ``_ordering()``. The base
provides the common read operations plus two context managers:
``_reading`` wraps store errors with operation context and ``_writing``
additionally commits on success and rolls back on any failure.
"""

import logging
from contextlib import contextmanager
from typing import Dict, Generic, Iterator, List, Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..database import Base
from ..exceptions import DuplicateNameError, NotFoundError, PersistenceError
from ..schemas.common import Page

RecordT = TypeVar("RecordT", bound=Base)
EntityT = TypeVar("EntityT")

logger = logging.getLogger(__name__)


def like_pattern(query: str) -> str:
    """Substring LIKE pattern with the wildcards in ``query`` escaped."""
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class SessionRepository:
    """Holds the injected session and the transaction helpers."""

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _reading(self, operation: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            logger.error("Read failed", extra={"operation": operation, "error": str(e)})
            raise PersistenceError(operation, e) from e

    @contextmanager
    def _writing(self, operation: str) -> Iterator[None]:
        try:
            yield
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Write failed", extra={"operation": operation, "error": str(e)})
            raise PersistenceError(operation, e) from e
        except Exception:
            self.db.rollback()
            raise


class BaseRepository(SessionRepository, Generic[RecordT, EntityT]):
    """Shared repository logic for SQLAlchemy models.

    Class variables to set in subclasses:
        model_class:     The SQLAlchemy model (e.g., FolderRecord)
        not_found_error: Exception class raised by get_by_id
        entity_name:     Noun used in error and log messages
    """

    model_class: Type[RecordT]
    not_found_error: Type[NotFoundError]
    entity_name: str = "entity"

    # -- hooks ------------------------------------------------------------

    def _base_query(self) -> Query:
        """Query over live rows. Override to exclude soft-deleted rows."""
        return self.db.query(self.model_class)

    def _to_entities(self, records: List[RecordT]) -> List[EntityT]:
        raise NotImplementedError

    def _apply_filters(self, query: Query, filters: Optional[BaseModel]) -> Query:
        return query

    def _ordering(self) -> list:
        return []

    def _soft_delete(self, record: RecordT) -> None:
        raise NotImplementedError

    # -- reads ------------------------------------------------------------

    def _to_entity(self, record: RecordT) -> EntityT:
        return self._to_entities([record])[0]

    def _get_record(self, entity_id: str) -> Optional[RecordT]:
        return self._base_query().filter(self.model_class.id == entity_id).first()

    def _require_record(self, entity_id: str) -> RecordT:
        record = self._get_record(entity_id)
        if record is None:
            raise self.not_found_error(entity_id)
        return record

    def find_by_id(self, entity_id: str) -> Optional[EntityT]:
        """Get entity by primary key, or None if it has no live row."""
        with self._reading(f"find {self.entity_name} {entity_id}"):
            record = self._get_record(entity_id)
            return self._to_entity(record) if record is not None else None

    def get_by_id(self, entity_id: str) -> EntityT:
        """Get entity by primary key. Raises not_found_error if missing."""
        entity = self.find_by_id(entity_id)
        if entity is None:
            raise self.not_found_error(entity_id)
        return entity

    def exists(self, entity_id: str) -> bool:
        with self._reading(f"check {self.entity_name} {entity_id}"):
            return self._get_record(entity_id) is not None

    def count(self, filters: Optional[BaseModel] = None) -> int:
        with self._reading(f"count {self.entity_name} rows"):
            return self._apply_filters(self._base_query(), filters).count()

    def _select(self, query: Query, filters: Optional[BaseModel]) -> List[EntityT]:
        query = self._apply_filters(query, filters).order_by(*self._ordering())
        if filters is not None and getattr(filters, "offset", 0):
            query = query.offset(filters.offset)
        if filters is not None and getattr(filters, "limit", None):
            query = query.limit(filters.limit)
        return self._to_entities(query.all())

    def find_all(self, filters: Optional[BaseModel] = None) -> List[EntityT]:
        with self._reading(f"list {self.entity_name} rows"):
            return self._select(self._base_query(), filters)

    def find_page(self, filters: Optional[BaseModel] = None) -> Page[EntityT]:
        """One page of ``find_all`` plus the unpaginated total."""
        with self._reading(f"page {self.entity_name} rows"):
            total = self._apply_filters(self._base_query(), filters).count()
            items = self._select(self._base_query(), filters)
        return Page(
            items=items,
            total=total,
            limit=getattr(filters, "limit", None),
            offset=getattr(filters, "offset", 0),
        )

    def search(self, query: str, filters: Optional[BaseModel] = None) -> List[EntityT]:
        """Case-insensitive substring match over name and description."""
        pattern = like_pattern(query.strip())
        with self._reading(f"search {self.entity_name} rows"):
            q = self._base_query().filter(or_(
                self.model_class.name.ilike(pattern, escape="\\"),
                self.model_class.description.ilike(pattern, escape="\\"),
            ))
            return self._select(q, filters)

    # -- writes -----------------------------------------------------------

    def ensure_paths_free(self, moves: Dict[str, str]) -> None:
        """Raise DuplicateNameError if a live row outside ``moves`` holds one of its paths.

        ``moves`` maps row ids to the paths they are about to take. Callers
        with pending path changes run this under ``no_autoflush`` so the
        live-path index is checked before anything is written.
        """
        if not moves:
            return
        taken = (
            self._base_query()
            .with_entities(self.model_class.path)
            .filter(
                self.model_class.path.in_(list(moves.values())),
                self.model_class.id.notin_(list(moves)),
            )
            .first()
        )
        if taken is not None:
            raise DuplicateNameError(taken.path, self.entity_name)

    def delete(self, entity_id: str) -> None:
        """Soft delete: flip the row's status marker. No emptiness check, no cascade."""
        with self._writing(f"delete {self.entity_name} {entity_id}"):
            record = self._require_record(entity_id)
            self._soft_delete(record)
        logger.debug("Soft-deleted %s", self.entity_name, extra={"entity_id": entity_id})
