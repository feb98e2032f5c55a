"""Shared entity plumbing: data wrapping, timestamps, identifiers, paths."""

import uuid
from datetime import datetime, timezone
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel

from ..exceptions import ValidationFailedError
from .validation import FieldError

DataT = TypeVar("DataT", bound=BaseModel)

PATH_SEPARATOR = "/"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex}"


def join_path(parent_path: Optional[str], name: str) -> str:
    return f"{parent_path}{PATH_SEPARATOR}{name}" if parent_path else name


def path_depth(parent_path: Optional[str]) -> int:
    """Level of a child placed under ``parent_path`` (0 at the root)."""
    return len(parent_path.split(PATH_SEPARATOR)) if parent_path else 0


def parent_path_of(path: str) -> Optional[str]:
    """``"Docs/Sub"`` -> ``"Docs"``; a root path gives None."""
    head, sep, _ = path.rpartition(PATH_SEPARATOR)
    return head if sep else None


class BaseEntity(Generic[DataT]):
    """Wraps a private copy of an entity's data.

    Subclasses expose typed getters and mutators; every mutator refreshes
    ``updated_at``. ``validate()`` reports rule violations as a list and
    never raises.
    """

    def __init__(self, data: DataT):
        self._data = data.model_copy(deep=True)

    @property
    def id(self) -> str:
        return self._data.id

    @property
    def created_at(self) -> datetime:
        return self._data.created_at

    @property
    def updated_at(self) -> datetime:
        return self._data.updated_at

    def to_data(self) -> DataT:
        return self._data.model_copy(deep=True)

    def clone(self):
        return type(self)(self._data)

    def _touch(self) -> None:
        self._data.updated_at = utcnow()

    def validate(self) -> List[FieldError]:
        raise NotImplementedError

    def is_valid(self) -> bool:
        return not self.validate()

    def ensure_valid(self) -> None:
        errors = self.validate()
        if errors:
            raise ValidationFailedError(errors)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id}>"
