"""Folder schemas."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from .common import ColorInfo, PageParams, Visibility


class FolderStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"
    DELETED = "deleted"


class FolderType(str, Enum):
    REGULAR = "regular"
    SYSTEM = "system"
    SHARED = "shared"
    FAVORITE = "favorite"


class SortBy(str, Enum):
    NAME = "name"
    DATE = "date"
    SIZE = "size"
    TYPE = "type"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class ViewMode(str, Enum):
    GRID = "grid"
    LIST = "list"
    DETAILS = "details"


class ViewSettings(BaseModel):
    """How a folder's contents are presented."""
    sort_by: SortBy = SortBy.NAME
    sort_order: SortOrder = SortOrder.ASC
    view_mode: ViewMode = ViewMode.GRID
    show_hidden_files: bool = False


class ViewSettingsUpdate(BaseModel):
    """Partial view settings; unset fields keep their current value."""
    sort_by: Optional[SortBy] = None
    sort_order: Optional[SortOrder] = None
    view_mode: Optional[ViewMode] = None
    show_hidden_files: Optional[bool] = None


class FolderData(BaseModel):
    """Full folder state as held by the entity and persisted by the repository."""
    id: str
    name: str
    description: Optional[str] = None
    parent_id: Optional[str] = None
    path: str
    level: int = 0
    status: FolderStatus = FolderStatus.ACTIVE
    type: FolderType = FolderType.REGULAR
    visibility: Visibility = Visibility.PRIVATE
    color: Optional[ColorInfo] = None
    icon: Optional[str] = None
    tag_ids: List[str] = []
    view_settings: ViewSettings = Field(default_factory=ViewSettings)
    is_favorite: bool = False
    is_protected: bool = False
    is_system_folder: bool = False
    created_at: datetime
    updated_at: datetime
    last_accessed_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None


class FolderCreate(BaseModel):
    """Input for creating a folder."""
    name: str
    description: Optional[str] = None
    parent_id: Optional[str] = None
    type: FolderType = FolderType.REGULAR
    visibility: Visibility = Visibility.PRIVATE
    color: Optional[ColorInfo] = None
    icon: Optional[str] = None
    tag_ids: List[str] = []
    view_settings: Optional[ViewSettings] = None
    is_favorite: bool = False
    is_protected: bool = False


class FolderUpdate(BaseModel):
    """Partial folder update.

    Only fields that were explicitly set are applied, so ``parent_id=None``
    moves the folder to the root while an omitted ``parent_id`` leaves it
    where it is.
    """
    name: Optional[str] = None
    description: Optional[str] = None
    parent_id: Optional[str] = None
    status: Optional[FolderStatus] = None
    visibility: Optional[Visibility] = None
    color: Optional[ColorInfo] = None
    icon: Optional[str] = None
    tag_ids: Optional[List[str]] = None
    view_settings: Optional[ViewSettingsUpdate] = None
    is_favorite: Optional[bool] = None
    is_protected: Optional[bool] = None

    def changes(self) -> dict:
        return {name: getattr(self, name) for name in self.model_fields_set}


class FolderFilter(PageParams):
    """Filters for folder reads. ``root_only`` selects parentless folders."""
    parent_id: Optional[str] = None
    root_only: bool = False
    status: Optional[FolderStatus] = None
    visibility: Optional[Visibility] = None
    type: Optional[FolderType] = None
    level: Optional[int] = Field(None, ge=0)
    is_system_folder: Optional[bool] = None


class FolderContentCount(BaseModel):
    files: int
    folders: int

    @property
    def total(self) -> int:
        return self.files + self.folders


class FolderTreeNode(BaseModel):
    """A folder with its nested subfolders and direct file count."""
    folder: FolderData
    children: List["FolderTreeNode"] = []
    file_count: int = 0


FolderTreeNode.model_rebuild()
