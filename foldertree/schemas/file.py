"""File schemas."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .common import ColorInfo, PageParams, Visibility


class FileStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"
    DELETED = "deleted"
    PROCESSING = "processing"


class FileCategory(str, Enum):
    DOCUMENT = "document"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    CODE = "code"
    ARCHIVE = "archive"
    SPREADSHEET = "spreadsheet"
    OTHER = "other"


class Orientation(str, Enum):
    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    SQUARE = "square"


class ImageMetadata(BaseModel):
    width: int
    height: int
    orientation: Optional[Orientation] = None


class VideoMetadata(BaseModel):
    duration: float
    width: int
    height: int
    framerate: Optional[float] = None


class AudioMetadata(BaseModel):
    duration: float
    bitrate: Optional[int] = None
    sample_rate: Optional[int] = None


class FileMetadata(BaseModel):
    """Size plus optional media groups; a group is either complete or absent."""
    size: int = 0
    mime_type: Optional[str] = None
    checksum: Optional[str] = None
    image: Optional[ImageMetadata] = None
    video: Optional[VideoMetadata] = None
    audio: Optional[AudioMetadata] = None


def _normalize_extension(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    return v.strip().lstrip(".").lower()


class FileData(BaseModel):
    """Full file state as held by the entity and persisted by the repository."""
    id: str
    name: str
    original_name: str
    extension: str
    category: FileCategory = FileCategory.OTHER
    folder_id: Optional[str] = None
    path: str
    status: FileStatus = FileStatus.ACTIVE
    visibility: Visibility = Visibility.PRIVATE
    metadata: FileMetadata = Field(default_factory=FileMetadata)
    color: Optional[ColorInfo] = None
    description: Optional[str] = None
    tag_ids: List[str] = []
    created_at: datetime
    updated_at: datetime
    last_accessed_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None
    storage_url: Optional[str] = None
    thumbnail_url: Optional[str] = None


class FileCreate(BaseModel):
    """Input for creating a file.

    ``extension`` defaults to the suffix of ``name``; ``original_name``
    defaults to ``name``.
    """
    name: str
    original_name: Optional[str] = None
    extension: Optional[str] = None
    folder_id: Optional[str] = None
    status: FileStatus = FileStatus.ACTIVE
    visibility: Visibility = Visibility.PRIVATE
    metadata: FileMetadata = Field(default_factory=FileMetadata)
    color: Optional[ColorInfo] = None
    description: Optional[str] = None
    tag_ids: List[str] = []
    storage_url: Optional[str] = None
    thumbnail_url: Optional[str] = None

    @field_validator('extension')
    @classmethod
    def normalize_extension(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_extension(v)


class FileUpdate(BaseModel):
    """Partial file update; ``folder_id=None`` moves the file to the root."""
    name: Optional[str] = None
    folder_id: Optional[str] = None
    status: Optional[FileStatus] = None
    visibility: Optional[Visibility] = None
    metadata: Optional[FileMetadata] = None
    color: Optional[ColorInfo] = None
    description: Optional[str] = None
    tag_ids: Optional[List[str]] = None
    storage_url: Optional[str] = None
    thumbnail_url: Optional[str] = None

    def changes(self) -> dict:
        return {name: getattr(self, name) for name in self.model_fields_set}


class FileFilter(PageParams):
    """Filters for file reads. ``root_only`` selects files outside any folder."""
    folder_id: Optional[str] = None
    root_only: bool = False
    status: Optional[FileStatus] = None
    extensions: Optional[List[str]] = None
    category: Optional[FileCategory] = None

    @field_validator('extensions')
    @classmethod
    def normalize_extensions(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return None
        return [_normalize_extension(ext) for ext in v]
