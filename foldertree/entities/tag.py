"""Tag entity and factory."""

from datetime import datetime
from typing import List, Optional

from ..exceptions import ProtectedResourceError, ValidationFailedError
from ..schemas.common import ColorInfo
from ..schemas.tag import TagCreate, TagData, TagPriority, TagType
from .base import BaseEntity, new_id, utcnow
from .validation import FieldError, ValidationUtils, collect

NAME_MIN_LENGTH = 1
NAME_MAX_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 200


class Tag(BaseEntity[TagData]):
    """A label with a colour, optional parent tag and usage counter."""

    @property
    def name(self) -> str:
        return self._data.name

    @property
    def description(self) -> Optional[str]:
        return self._data.description

    @property
    def color(self) -> ColorInfo:
        return self._data.color.model_copy()

    @property
    def type(self) -> TagType:
        return self._data.type

    @property
    def priority(self) -> TagPriority:
        return self._data.priority

    @property
    def is_active(self) -> bool:
        return self._data.is_active

    @property
    def usage_count(self) -> int:
        return self._data.usage_count

    @property
    def last_used_at(self) -> Optional[datetime]:
        return self._data.last_used_at

    @property
    def parent_id(self) -> Optional[str]:
        return self._data.parent_id

    @property
    def is_system_tag(self) -> bool:
        return self._data.type == TagType.SYSTEM

    def set_name(self, name: str) -> None:
        trimmed = (name or "").strip()
        if not trimmed:
            raise ValidationFailedError.single("name", "Tag name is required", ValidationUtils.REQUIRED)
        self._data.name = trimmed
        self._touch()

    def set_description(self, description: Optional[str]) -> None:
        self._data.description = (description or "").strip() or None
        self._touch()

    def set_color(self, color: ColorInfo) -> None:
        if color is None:
            raise ValidationFailedError.single("color", "Tag colour is required", ValidationUtils.REQUIRED)
        self._data.color = color.model_copy()
        self._touch()

    def set_priority(self, priority: TagPriority) -> None:
        self._data.priority = priority
        self._touch()

    def set_parent(self, parent_id: Optional[str]) -> None:
        if parent_id is not None and parent_id == self._data.id:
            raise ValidationFailedError.single("parent_id", "A tag cannot be its own parent", "INVALID_PARENT")
        self._data.parent_id = parent_id
        self._touch()

    def activate(self) -> None:
        self._data.is_active = True
        self._touch()

    def deactivate(self) -> None:
        if self.is_system_tag:
            raise ProtectedResourceError(f"System tag '{self.name}' cannot be deactivated", self.id)
        self._data.is_active = False
        self._touch()

    def apply(self, changes: dict) -> None:
        if changes.get("name") is not None:
            self.set_name(changes["name"])
        if "description" in changes:
            self.set_description(changes["description"])
        if "color" in changes:
            self.set_color(changes["color"])
        if changes.get("priority") is not None:
            self.set_priority(changes["priority"])
        if "parent_id" in changes:
            self.set_parent(changes["parent_id"])
        if changes.get("is_active") is True:
            self.activate()
        elif changes.get("is_active") is False:
            self.deactivate()

    def validate(self) -> List[FieldError]:
        name = self._data.name
        return collect(
            ValidationUtils.required(name, "name"),
            ValidationUtils.min_length(name.strip() if name else name, NAME_MIN_LENGTH, "name"),
            ValidationUtils.max_length(name, NAME_MAX_LENGTH, "name"),
            ValidationUtils.max_length(self._data.description, DESCRIPTION_MAX_LENGTH, "description"),
            ValidationUtils.in_range(self._data.usage_count, "usage_count", minimum=0),
        )


class TagFactory:
    """Builds new tags with a fresh id and zeroed usage."""

    @staticmethod
    def create(data: TagCreate) -> Tag:
        now = utcnow()
        return Tag(TagData(
            id=new_id("tag"),
            name=data.name.strip(),
            description=(data.description or "").strip() or None,
            color=data.color,
            type=data.type,
            priority=data.priority,
            parent_id=data.parent_id,
            created_at=now,
            updated_at=now,
        ))

    @staticmethod
    def from_data(data: TagData) -> Tag:
        return Tag(data)
