"""Folder table."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text, CheckConstraint, text

from ..database import Base
from ..schemas.common import Visibility
from ..schemas.folder import FolderStatus, FolderType, SortBy, SortOrder, ViewMode
from .columns import COLOR_COLUMNS, ColorColumns, TimestampColumns, all_or_nothing, one_of


class FolderRecord(TimestampColumns, ColorColumns, Base):
    """One folder row. ``path`` and ``level`` are stored denormalisations."""

    __tablename__ = "folders"
    __table_args__ = (
        CheckConstraint("level >= 0", name="ck_folders_level"),
        CheckConstraint("length(name) > 0", name="ck_folders_name"),
        CheckConstraint("parent_id IS NULL OR parent_id != id", name="ck_folders_not_own_parent"),
        one_of("status", FolderStatus, "ck_folders_status"),
        one_of("type", FolderType, "ck_folders_type"),
        one_of("visibility", Visibility, "ck_folders_visibility"),
        one_of("view_settings_sort_by", SortBy, "ck_folders_sort_by"),
        one_of("view_settings_sort_order", SortOrder, "ck_folders_sort_order"),
        one_of("view_settings_view_mode", ViewMode, "ck_folders_view_mode"),
        all_or_nothing("ck_folders_color", *COLOR_COLUMNS),
        Index("ix_folders_parent_id", "parent_id"),
        Index("ix_folders_status", "status"),
        # Live paths are unique; soft-deleted rows keep theirs without blocking reuse.
        Index(
            "uq_folders_live_path", "path", unique=True,
            sqlite_where=text("status != 'deleted'"),
            postgresql_where=text("status != 'deleted'"),
        ),
    )

    id = Column(String(64), primary_key=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    parent_id = Column(String(64), ForeignKey("folders.id", ondelete="CASCADE"), nullable=True)
    path = Column(Text, nullable=False)
    level = Column(Integer, nullable=False, default=0)
    status = Column(String(16), nullable=False, default=FolderStatus.ACTIVE.value)
    type = Column(String(16), nullable=False, default=FolderType.REGULAR.value)
    visibility = Column(String(16), nullable=False, default=Visibility.PRIVATE.value)
    icon = Column(String(100), nullable=True)

    view_settings_sort_by = Column(String(16), nullable=False, default=SortBy.NAME.value)
    view_settings_sort_order = Column(String(8), nullable=False, default=SortOrder.ASC.value)
    view_settings_view_mode = Column(String(16), nullable=False, default=ViewMode.GRID.value)
    view_settings_show_hidden_files = Column(Boolean, nullable=False, default=False)

    last_accessed_at = Column(DateTime(timezone=True), nullable=True)
    archived_at = Column(DateTime(timezone=True), nullable=True)
    is_favorite = Column(Boolean, nullable=False, default=False)
    is_protected = Column(Boolean, nullable=False, default=False)
    is_system_folder = Column(Boolean, nullable=False, default=False)
