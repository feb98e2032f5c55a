"""File entity and factory."""

from datetime import datetime
from typing import List, Optional, Tuple

from ..core.config import settings
from ..exceptions import ValidationFailedError
from ..schemas.common import ColorInfo, Visibility
from ..schemas.file import FileCategory, FileCreate, FileData, FileMetadata, FileStatus
from .base import BaseEntity, join_path, new_id, utcnow
from .extensions import category_for_extension, split_extension
from .validation import FieldError, ValidationUtils, collect

NAME_MAX_LENGTH = 255
FORBIDDEN_NAME_CHARACTERS = "/\\"


class File(BaseEntity[FileData]):
    """A stored file, optionally placed in a folder."""

    @property
    def name(self) -> str:
        return self._data.name

    @property
    def original_name(self) -> str:
        return self._data.original_name

    @property
    def extension(self) -> str:
        return self._data.extension

    @property
    def category(self) -> FileCategory:
        return self._data.category

    @property
    def folder_id(self) -> Optional[str]:
        return self._data.folder_id

    @property
    def path(self) -> str:
        return self._data.path

    @property
    def status(self) -> FileStatus:
        return self._data.status

    @property
    def visibility(self) -> Visibility:
        return self._data.visibility

    @property
    def metadata(self) -> FileMetadata:
        return self._data.metadata.model_copy(deep=True)

    @property
    def size(self) -> int:
        return self._data.metadata.size

    @property
    def color(self) -> Optional[ColorInfo]:
        return self._data.color.model_copy() if self._data.color else None

    @property
    def description(self) -> Optional[str]:
        return self._data.description

    @property
    def tag_ids(self) -> Tuple[str, ...]:
        return tuple(self._data.tag_ids)

    @property
    def storage_url(self) -> Optional[str]:
        return self._data.storage_url

    @property
    def thumbnail_url(self) -> Optional[str]:
        return self._data.thumbnail_url

    @property
    def last_accessed_at(self) -> Optional[datetime]:
        return self._data.last_accessed_at

    @property
    def archived_at(self) -> Optional[datetime]:
        return self._data.archived_at

    # -- mutators ---------------------------------------------------------

    def set_name(self, name: str, folder_path: Optional[str] = None) -> None:
        """Rename; a new suffix also re-derives extension and category."""
        trimmed = (name or "").strip()
        if not trimmed:
            raise ValidationFailedError.single("name", "File name is required", ValidationUtils.REQUIRED)
        _, extension = split_extension(trimmed)
        if extension:
            self._data.extension = extension
            self._data.category = category_for_extension(extension)
        self._data.name = trimmed
        self._data.path = join_path(folder_path, trimmed)
        self._touch()

    def set_folder(self, folder_id: Optional[str], folder_path: Optional[str] = None) -> None:
        self._data.folder_id = folder_id
        self._data.path = join_path(folder_path, self._data.name)
        self._touch()

    def set_status(self, status: FileStatus) -> None:
        if status == FileStatus.ARCHIVED and self._data.status != FileStatus.ARCHIVED:
            self._data.archived_at = utcnow()
        elif status == FileStatus.ACTIVE:
            self._data.archived_at = None
        self._data.status = status
        self._touch()

    def set_visibility(self, visibility: Visibility) -> None:
        self._data.visibility = visibility
        self._touch()

    def set_metadata(self, metadata: FileMetadata) -> None:
        self._data.metadata = metadata.model_copy(deep=True)
        self._touch()

    def set_color(self, color: Optional[ColorInfo]) -> None:
        self._data.color = color.model_copy() if color else None
        self._touch()

    def set_description(self, description: Optional[str]) -> None:
        self._data.description = (description or "").strip() or None
        self._touch()

    def set_tag_ids(self, tag_ids: List[str]) -> None:
        self._data.tag_ids = list(dict.fromkeys(tag_ids))
        self._touch()

    def set_storage_url(self, url: Optional[str]) -> None:
        self._data.storage_url = url
        self._touch()

    def set_thumbnail_url(self, url: Optional[str]) -> None:
        self._data.thumbnail_url = url
        self._touch()

    def mark_accessed(self) -> None:
        self._data.last_accessed_at = utcnow()

    def apply(self, changes: dict, folder_path: Optional[str] = None) -> None:
        """Apply a partial update; ``folder_path`` is the target folder's path."""
        if "folder_id" in changes:
            self.set_folder(changes["folder_id"], folder_path)
        if changes.get("name") is not None:
            self.set_name(changes["name"], folder_path)
        if changes.get("status") is not None:
            self.set_status(changes["status"])
        if changes.get("visibility") is not None:
            self.set_visibility(changes["visibility"])
        if changes.get("metadata") is not None:
            self.set_metadata(changes["metadata"])
        if "color" in changes:
            self.set_color(changes["color"])
        if "description" in changes:
            self.set_description(changes["description"])
        if changes.get("tag_ids") is not None:
            self.set_tag_ids(changes["tag_ids"])
        if "storage_url" in changes:
            self.set_storage_url(changes["storage_url"])
        if "thumbnail_url" in changes:
            self.set_thumbnail_url(changes["thumbnail_url"])

    def validate(self, max_size: Optional[int] = None) -> List[FieldError]:
        limit = max_size if max_size is not None else settings.max_file_size_bytes
        meta = self._data.metadata
        errors = collect(
            ValidationUtils.required(self._data.name, "name"),
            ValidationUtils.max_length(self._data.name, NAME_MAX_LENGTH, "name"),
            ValidationUtils.invalid_characters(self._data.name, FORBIDDEN_NAME_CHARACTERS, "name"),
            ValidationUtils.required(self._data.extension, "extension"),
            ValidationUtils.in_range(meta.size, "metadata.size", minimum=0),
            ValidationUtils.file_size(meta.size, limit),
        )
        if meta.image:
            errors += collect(
                ValidationUtils.in_range(meta.image.width, "metadata.image.width", minimum=1),
                ValidationUtils.in_range(meta.image.height, "metadata.image.height", minimum=1),
            )
        if meta.video:
            errors += collect(
                ValidationUtils.in_range(meta.video.duration, "metadata.video.duration", minimum=0),
                ValidationUtils.in_range(meta.video.width, "metadata.video.width", minimum=1),
                ValidationUtils.in_range(meta.video.height, "metadata.video.height", minimum=1),
            )
        if meta.audio:
            errors += collect(
                ValidationUtils.in_range(meta.audio.duration, "metadata.audio.duration", minimum=0),
            )
        return errors


class FileFactory:
    """Builds new files with extension, category and path derived from the name."""

    @staticmethod
    def create(data: FileCreate, folder_path: Optional[str] = None) -> File:
        now = utcnow()
        name = data.name.strip()
        extension = data.extension if data.extension is not None else split_extension(name)[1]
        return File(FileData(
            id=new_id("file"),
            name=name,
            original_name=(data.original_name or name).strip(),
            extension=extension,
            category=category_for_extension(extension),
            folder_id=data.folder_id,
            path=join_path(folder_path, name),
            status=data.status,
            visibility=data.visibility,
            metadata=data.metadata,
            color=data.color,
            description=(data.description or "").strip() or None,
            tag_ids=list(dict.fromkeys(data.tag_ids)),
            created_at=now,
            updated_at=now,
            storage_url=data.storage_url,
            thumbnail_url=data.thumbnail_url,
        ))

    @staticmethod
    def from_data(data: FileData) -> File:
        return File(data)
