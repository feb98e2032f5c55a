"""Folder entity and factory."""

from datetime import datetime
from typing import List, Optional, Tuple

from ..exceptions import InvalidStateError, ProtectedResourceError, ValidationFailedError
from ..schemas.common import ColorInfo, Visibility
from ..schemas.folder import (
    FolderCreate,
    FolderData,
    FolderStatus,
    FolderType,
    ViewSettings,
    ViewSettingsUpdate,
)
from .base import BaseEntity, join_path, new_id, path_depth, utcnow
from .validation import FieldError, ValidationUtils, collect

NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
FORBIDDEN_NAME_CHARACTERS = '<>:"/\\|?*'


class Folder(BaseEntity[FolderData]):
    """A node of the folder forest.

    Name and parent changes take the parent's current path so that
    ``path`` and ``level`` are re-derived on every rename or move.
    """

    @property
    def name(self) -> str:
        return self._data.name

    @property
    def description(self) -> Optional[str]:
        return self._data.description

    @property
    def parent_id(self) -> Optional[str]:
        return self._data.parent_id

    @property
    def path(self) -> str:
        return self._data.path

    @property
    def level(self) -> int:
        return self._data.level

    @property
    def status(self) -> FolderStatus:
        return self._data.status

    @property
    def type(self) -> FolderType:
        return self._data.type

    @property
    def visibility(self) -> Visibility:
        return self._data.visibility

    @property
    def color(self) -> Optional[ColorInfo]:
        return self._data.color.model_copy() if self._data.color else None

    @property
    def icon(self) -> Optional[str]:
        return self._data.icon

    @property
    def tag_ids(self) -> Tuple[str, ...]:
        return tuple(self._data.tag_ids)

    @property
    def view_settings(self) -> ViewSettings:
        return self._data.view_settings.model_copy()

    @property
    def is_favorite(self) -> bool:
        return self._data.is_favorite

    @property
    def is_protected(self) -> bool:
        return self._data.is_protected

    @property
    def is_system_folder(self) -> bool:
        return self._data.is_system_folder

    @property
    def last_accessed_at(self) -> Optional[datetime]:
        return self._data.last_accessed_at

    @property
    def archived_at(self) -> Optional[datetime]:
        return self._data.archived_at

    @property
    def is_root(self) -> bool:
        return self._data.parent_id is None

    @property
    def can_be_deleted(self) -> bool:
        return not (self._data.is_protected or self._data.is_system_folder)

    # -- mutators ---------------------------------------------------------

    def set_name(self, name: str, parent_path: Optional[str] = None) -> None:
        trimmed = (name or "").strip()
        if not trimmed:
            raise ValidationFailedError.single("name", "Folder name is required", ValidationUtils.REQUIRED)
        self._data.name = trimmed
        self._data.path = join_path(parent_path, trimmed)
        self._touch()

    def set_parent(self, parent_id: Optional[str], parent_path: Optional[str] = None) -> None:
        if parent_id is not None and parent_id == self._data.id:
            raise ValidationFailedError.single("parent_id", "A folder cannot be its own parent", "INVALID_PARENT")
        self._data.parent_id = parent_id
        self._data.path = join_path(parent_path, self._data.name)
        self._data.level = path_depth(parent_path)
        self._touch()

    def set_description(self, description: Optional[str]) -> None:
        self._data.description = (description or "").strip() or None
        self._touch()

    def set_status(self, status: FolderStatus) -> None:
        if status == FolderStatus.DELETED and not self.can_be_deleted:
            raise ProtectedResourceError(f"Folder '{self.name}' is protected and cannot be deleted", self.id)
        if status == FolderStatus.ARCHIVED and self._data.status != FolderStatus.ARCHIVED:
            self._data.archived_at = utcnow()
        elif status == FolderStatus.ACTIVE:
            self._data.archived_at = None
        self._data.status = status
        self._touch()

    def set_visibility(self, visibility: Visibility) -> None:
        self._data.visibility = visibility
        self._touch()

    def set_color(self, color: Optional[ColorInfo]) -> None:
        self._data.color = color.model_copy() if color else None
        self._touch()

    def set_icon(self, icon: Optional[str]) -> None:
        self._data.icon = icon
        self._touch()

    def set_view_settings(self, settings: ViewSettingsUpdate) -> None:
        merged = self._data.view_settings.model_dump()
        merged.update(settings.model_dump(exclude_none=True))
        self._data.view_settings = ViewSettings(**merged)
        self._touch()

    def set_favorite(self, favorite: bool) -> None:
        self._data.is_favorite = favorite
        self._touch()

    def protect(self) -> None:
        self._data.is_protected = True
        self._touch()

    def unprotect(self) -> None:
        if self._data.is_system_folder:
            raise InvalidStateError(f"System folder '{self.name}' cannot be unprotected", self.id)
        self._data.is_protected = False
        self._touch()

    def set_tag_ids(self, tag_ids: List[str]) -> None:
        self._data.tag_ids = list(dict.fromkeys(tag_ids))
        self._touch()

    def mark_accessed(self) -> None:
        self._data.last_accessed_at = utcnow()

    def apply(self, changes: dict, parent_path: Optional[str] = None) -> None:
        """Apply a partial update through the mutators.

        ``parent_path`` must be the path of the folder's parent after the
        change (the current parent when ``parent_id`` is not in ``changes``).
        """
        if "parent_id" in changes:
            self.set_parent(changes["parent_id"], parent_path)
        if changes.get("name") is not None:
            self.set_name(changes["name"], parent_path)
        if "description" in changes:
            self.set_description(changes["description"])
        if changes.get("status") is not None:
            self.set_status(changes["status"])
        if changes.get("visibility") is not None:
            self.set_visibility(changes["visibility"])
        if "color" in changes:
            self.set_color(changes["color"])
        if "icon" in changes:
            self.set_icon(changes["icon"])
        if changes.get("view_settings") is not None:
            self.set_view_settings(changes["view_settings"])
        if changes.get("is_favorite") is not None:
            self.set_favorite(changes["is_favorite"])
        if changes.get("is_protected") is True:
            self.protect()
        elif changes.get("is_protected") is False:
            self.unprotect()
        if changes.get("tag_ids") is not None:
            self.set_tag_ids(changes["tag_ids"])

    def validate(self) -> List[FieldError]:
        name = self._data.name
        return collect(
            ValidationUtils.required(name, "name"),
            ValidationUtils.min_length(name, 1, "name"),
            ValidationUtils.max_length(name, NAME_MAX_LENGTH, "name"),
            ValidationUtils.invalid_characters(name, FORBIDDEN_NAME_CHARACTERS, "name"),
            ValidationUtils.max_length(self._data.description, DESCRIPTION_MAX_LENGTH, "description"),
            ValidationUtils.in_range(self._data.level, "level", minimum=0),
            ValidationUtils.required(self._data.path, "path"),
        )


class FolderFactory:
    """Builds new folders with defaults and derived fields filled in."""

    @staticmethod
    def create(data: FolderCreate, parent_path: Optional[str] = None) -> Folder:
        now = utcnow()
        name = data.name.strip()
        is_system = data.type == FolderType.SYSTEM
        return Folder(FolderData(
            id=new_id("folder"),
            name=name,
            description=(data.description or "").strip() or None,
            parent_id=data.parent_id,
            path=join_path(parent_path, name),
            level=path_depth(parent_path),
            type=data.type,
            visibility=data.visibility,
            color=data.color,
            icon=data.icon,
            tag_ids=list(dict.fromkeys(data.tag_ids)),
            view_settings=data.view_settings or ViewSettings(),
            is_favorite=data.is_favorite or data.type == FolderType.FAVORITE,
            is_protected=data.is_protected or is_system,
            is_system_folder=is_system,
            created_at=now,
            updated_at=now,
        ))

    @staticmethod
    def create_system_folder(
        name: str,
        icon: Optional[str] = None,
        parent_id: Optional[str] = None,
        parent_path: Optional[str] = None,
    ) -> Folder:
        data = FolderCreate(
            name=name,
            icon=icon,
            parent_id=parent_id,
            type=FolderType.SYSTEM,
            is_protected=True,
        )
        return FolderFactory.create(data, parent_path)

    @staticmethod
    def from_data(data: FolderData) -> Folder:
        return Folder(data)
