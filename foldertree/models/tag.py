"""Tag table and the two assignment relations."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text, CheckConstraint, text
from sqlalchemy.sql import func

from ..database import Base
from ..schemas.tag import TagPriority, TagType
from .columns import COLOR_COLUMNS, ColorColumns, TimestampColumns, one_of


class TagRecord(TimestampColumns, ColorColumns, Base):
    """One tag row. ``usage_count`` mirrors the number of assignment rows."""

    __tablename__ = "tags"
    __table_args__ = (
        CheckConstraint("length(trim(name)) > 0", name="ck_tags_name"),
        CheckConstraint("usage_count >= 0", name="ck_tags_usage_count"),
        CheckConstraint("parent_id IS NULL OR parent_id != id", name="ck_tags_not_own_parent"),
        CheckConstraint(" AND ".join(f"{c} IS NOT NULL" for c in COLOR_COLUMNS), name="ck_tags_color"),
        one_of("type", TagType, "ck_tags_type"),
        one_of("priority", TagPriority, "ck_tags_priority"),
        Index("ix_tags_parent_id", "parent_id"),
        Index("ix_tags_usage_count", "usage_count"),
        # Names are unique among active tags; deactivated names may be reused.
        Index(
            "uq_tags_active_name", "name", unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
    )

    id = Column(String(64), primary_key=True)
    name = Column(String(50), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(16), nullable=False, default=TagType.USER.value)
    priority = Column(String(16), nullable=False, default=TagPriority.NORMAL.value)
    is_active = Column(Boolean, nullable=False, default=True)
    usage_count = Column(Integer, nullable=False, default=0)
    last_used_at = Column(DateTime(timezone=True), nullable=True)
    parent_id = Column(String(64), ForeignKey("tags.id", ondelete="SET NULL"), nullable=True)


class FileTag(Base):
    """Assignment of a tag to a file."""

    __tablename__ = "file_tags"
    __table_args__ = (
        Index("ix_file_tags_tag_id", "tag_id"),
    )

    file_id = Column(String(64), ForeignKey("files.id", ondelete="CASCADE"), primary_key=True)
    tag_id = Column(String(64), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class FolderTag(Base):
    """Assignment of a tag to a folder."""

    __tablename__ = "folder_tags"
    __table_args__ = (
        Index("ix_folder_tags_tag_id", "tag_id"),
    )

    folder_id = Column(String(64), ForeignKey("folders.id", ondelete="CASCADE"), primary_key=True)
    tag_id = Column(String(64), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
