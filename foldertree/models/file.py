"""File table."""

from sqlalchemy import BigInteger, Column, DateTime, Float, ForeignKey, Index, Integer, String, Text, CheckConstraint, text

from ..database import Base
from ..schemas.common import Visibility
from ..schemas.file import FileCategory, FileStatus
from .columns import COLOR_COLUMNS, ColorColumns, TimestampColumns, all_or_nothing, one_of


class FileRecord(TimestampColumns, ColorColumns, Base):
    """One file row with its metadata groups flattened into columns."""

    __tablename__ = "files"
    __table_args__ = (
        CheckConstraint("length(name) > 0", name="ck_files_name"),
        CheckConstraint("length(extension) > 0", name="ck_files_extension"),
        CheckConstraint("metadata_size >= 0", name="ck_files_size"),
        one_of("status", FileStatus, "ck_files_status"),
        one_of("category", FileCategory, "ck_files_category"),
        one_of("visibility", Visibility, "ck_files_visibility"),
        all_or_nothing("ck_files_color", *COLOR_COLUMNS),
        all_or_nothing("ck_files_image", "metadata_image_width", "metadata_image_height"),
        all_or_nothing("ck_files_video", "metadata_video_duration", "metadata_video_width", "metadata_video_height"),
        CheckConstraint(
            "metadata_image_orientation IS NULL OR metadata_image_width IS NOT NULL",
            name="ck_files_image_orientation",
        ),
        CheckConstraint(
            "metadata_video_framerate IS NULL OR metadata_video_duration IS NOT NULL",
            name="ck_files_video_framerate",
        ),
        CheckConstraint(
            "(metadata_audio_bitrate IS NULL AND metadata_audio_sample_rate IS NULL) "
            "OR metadata_audio_duration IS NOT NULL",
            name="ck_files_audio",
        ),
        Index("ix_files_folder_id", "folder_id"),
        Index("ix_files_status", "status"),
        Index("ix_files_extension", "extension"),
        Index(
            "uq_files_live_path", "path", unique=True,
            sqlite_where=text("status != 'deleted'"),
            postgresql_where=text("status != 'deleted'"),
        ),
    )

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    original_name = Column(String(255), nullable=False)
    extension = Column(String(16), nullable=False)
    category = Column(String(16), nullable=False, default=FileCategory.OTHER.value)
    description = Column(Text, nullable=True)
    folder_id = Column(String(64), ForeignKey("folders.id", ondelete="CASCADE"), nullable=True)
    path = Column(Text, nullable=False)
    status = Column(String(16), nullable=False, default=FileStatus.ACTIVE.value)
    visibility = Column(String(16), nullable=False, default=Visibility.PRIVATE.value)

    metadata_size = Column(BigInteger, nullable=False, default=0)
    metadata_mime_type = Column(String(255), nullable=True)
    metadata_checksum = Column(String(128), nullable=True)
    metadata_image_width = Column(Integer, nullable=True)
    metadata_image_height = Column(Integer, nullable=True)
    metadata_image_orientation = Column(String(16), nullable=True)
    metadata_video_duration = Column(Float, nullable=True)
    metadata_video_width = Column(Integer, nullable=True)
    metadata_video_height = Column(Integer, nullable=True)
    metadata_video_framerate = Column(Float, nullable=True)
    metadata_audio_duration = Column(Float, nullable=True)
    metadata_audio_bitrate = Column(Integer, nullable=True)
    metadata_audio_sample_rate = Column(Integer, nullable=True)

    last_accessed_at = Column(DateTime(timezone=True), nullable=True)
    archived_at = Column(DateTime(timezone=True), nullable=True)
    storage_url = Column(Text, nullable=True)
    thumbnail_url = Column(Text, nullable=True)
