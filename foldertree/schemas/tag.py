"""Tag and tag assignment schemas."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from .common import ColorInfo, PageParams


class TagType(str, Enum):
    SYSTEM = "system"
    USER = "user"
    AUTOMATIC = "automatic"


class TagPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    CRITICAL = "critical"


class SubjectType(str, Enum):
    """Kinds of entity a tag can be assigned to."""
    FILE = "file"
    FOLDER = "folder"


class TagData(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    color: ColorInfo
    type: TagType = TagType.USER
    priority: TagPriority = TagPriority.NORMAL
    is_active: bool = True
    usage_count: int = 0
    last_used_at: Optional[datetime] = None
    parent_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class TagCreate(BaseModel):
    name: str
    description: Optional[str] = None
    color: ColorInfo
    type: TagType = TagType.USER
    priority: TagPriority = TagPriority.NORMAL
    parent_id: Optional[str] = None


class TagUpdate(BaseModel):
    """Partial tag update; ``parent_id=None`` detaches the tag from its parent."""
    name: Optional[str] = None
    description: Optional[str] = None
    color: Optional[ColorInfo] = None
    priority: Optional[TagPriority] = None
    parent_id: Optional[str] = None
    is_active: Optional[bool] = None

    def changes(self) -> dict:
        return {name: getattr(self, name) for name in self.model_fields_set}


class TagFilter(PageParams):
    type: Optional[TagType] = None
    priority: Optional[TagPriority] = None
    parent_id: Optional[str] = None
    root_only: bool = False
    min_usage: Optional[int] = Field(None, ge=0)


class TagTreeNode(BaseModel):
    """A tag with its active children; ``total_usage`` sums the subtree."""
    tag: TagData
    children: List["TagTreeNode"] = []
    total_usage: int = 0
    depth: int = 0


TagTreeNode.model_rebuild()


class TagAssignmentStats(BaseModel):
    tag_id: str
    files_count: int
    folders_count: int
    total_usage: int
    last_used: Optional[datetime] = None
    most_used_in_files: bool
    most_used_in_folders: bool


class TagWithUsage(BaseModel):
    tag: TagData
    usage: int
    usage_percentage: float


class SeedSkip(BaseModel):
    """A seed item that could not be created, and why."""
    name: str
    reason: str


class SeedResult(BaseModel):
    created: List[TagData] = []
    skipped: List[SeedSkip] = []
