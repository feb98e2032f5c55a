"""Translation between table rows and entity data."""

from typing import List, Optional

from ..entities.base import ensure_utc
from ..models import FileRecord, FolderRecord, TagRecord
from ..schemas.common import ColorInfo, RGB
from ..schemas.file import AudioMetadata, FileData, FileMetadata, ImageMetadata, VideoMetadata
from ..schemas.folder import FolderData, ViewSettings
from ..schemas.tag import TagData


def _read_color(record) -> Optional[ColorInfo]:
    if record.color_hex is None:
        return None
    return ColorInfo(
        hex=record.color_hex,
        rgb=RGB(r=record.color_rgb_r, g=record.color_rgb_g, b=record.color_rgb_b),
        name=record.color_name,
    )


def _write_color(record, color: Optional[ColorInfo]) -> None:
    record.color_hex = color.hex if color else None
    record.color_rgb_r = color.rgb.r if color else None
    record.color_rgb_g = color.rgb.g if color else None
    record.color_rgb_b = color.rgb.b if color else None
    record.color_name = color.name if color else None


def folder_to_data(record: FolderRecord, tag_ids: List[str]) -> FolderData:
    return FolderData(
        id=record.id,
        name=record.name,
        description=record.description,
        parent_id=record.parent_id,
        path=record.path,
        level=record.level,
        status=record.status,
        type=record.type,
        visibility=record.visibility,
        color=_read_color(record),
        icon=record.icon,
        tag_ids=tag_ids,
        view_settings=ViewSettings(
            sort_by=record.view_settings_sort_by,
            sort_order=record.view_settings_sort_order,
            view_mode=record.view_settings_view_mode,
            show_hidden_files=record.view_settings_show_hidden_files,
        ),
        is_favorite=record.is_favorite,
        is_protected=record.is_protected,
        is_system_folder=record.is_system_folder,
        created_at=ensure_utc(record.created_at),
        updated_at=ensure_utc(record.updated_at),
        last_accessed_at=ensure_utc(record.last_accessed_at),
        archived_at=ensure_utc(record.archived_at),
    )


def write_folder(record: FolderRecord, data: FolderData) -> None:
    """Copy every column of ``data`` onto ``record`` (tag ids excluded)."""
    record.id = data.id
    record.name = data.name
    record.description = data.description
    record.parent_id = data.parent_id
    record.path = data.path
    record.level = data.level
    record.status = data.status.value
    record.type = data.type.value
    record.visibility = data.visibility.value
    _write_color(record, data.color)
    record.icon = data.icon
    record.view_settings_sort_by = data.view_settings.sort_by.value
    record.view_settings_sort_order = data.view_settings.sort_order.value
    record.view_settings_view_mode = data.view_settings.view_mode.value
    record.view_settings_show_hidden_files = data.view_settings.show_hidden_files
    record.is_favorite = data.is_favorite
    record.is_protected = data.is_protected
    record.is_system_folder = data.is_system_folder
    record.created_at = data.created_at
    record.updated_at = data.updated_at
    record.last_accessed_at = data.last_accessed_at
    record.archived_at = data.archived_at


def file_to_data(record: FileRecord, tag_ids: List[str]) -> FileData:
    image = video = audio = None
    if record.metadata_image_width is not None:
        image = ImageMetadata(
            width=record.metadata_image_width,
            height=record.metadata_image_height,
            orientation=record.metadata_image_orientation,
        )
    if record.metadata_video_duration is not None:
        video = VideoMetadata(
            duration=record.metadata_video_duration,
            width=record.metadata_video_width,
            height=record.metadata_video_height,
            framerate=record.metadata_video_framerate,
        )
    if record.metadata_audio_duration is not None:
        audio = AudioMetadata(
            duration=record.metadata_audio_duration,
            bitrate=record.metadata_audio_bitrate,
            sample_rate=record.metadata_audio_sample_rate,
        )
    return FileData(
        id=record.id,
        name=record.name,
        original_name=record.original_name,
        extension=record.extension,
        category=record.category,
        folder_id=record.folder_id,
        path=record.path,
        status=record.status,
        visibility=record.visibility,
        metadata=FileMetadata(
            size=record.metadata_size,
            mime_type=record.metadata_mime_type,
            checksum=record.metadata_checksum,
            image=image,
            video=video,
            audio=audio,
        ),
        color=_read_color(record),
        description=record.description,
        tag_ids=tag_ids,
        created_at=ensure_utc(record.created_at),
        updated_at=ensure_utc(record.updated_at),
        last_accessed_at=ensure_utc(record.last_accessed_at),
        archived_at=ensure_utc(record.archived_at),
        storage_url=record.storage_url,
        thumbnail_url=record.thumbnail_url,
    )


def write_file(record: FileRecord, data: FileData) -> None:
    meta = data.metadata
    record.id = data.id
    record.name = data.name
    record.original_name = data.original_name
    record.extension = data.extension
    record.category = data.category.value
    record.description = data.description
    record.folder_id = data.folder_id
    record.path = data.path
    record.status = data.status.value
    record.visibility = data.visibility.value
    record.metadata_size = meta.size
    record.metadata_mime_type = meta.mime_type
    record.metadata_checksum = meta.checksum
    record.metadata_image_width = meta.image.width if meta.image else None
    record.metadata_image_height = meta.image.height if meta.image else None
    record.metadata_image_orientation = (
        meta.image.orientation.value if meta.image and meta.image.orientation else None
    )
    record.metadata_video_duration = meta.video.duration if meta.video else None
    record.metadata_video_width = meta.video.width if meta.video else None
    record.metadata_video_height = meta.video.height if meta.video else None
    record.metadata_video_framerate = meta.video.framerate if meta.video else None
    record.metadata_audio_duration = meta.audio.duration if meta.audio else None
    record.metadata_audio_bitrate = meta.audio.bitrate if meta.audio else None
    record.metadata_audio_sample_rate = meta.audio.sample_rate if meta.audio else None
    _write_color(record, data.color)
    record.created_at = data.created_at
    record.updated_at = data.updated_at
    record.last_accessed_at = data.last_accessed_at
    record.archived_at = data.archived_at
    record.storage_url = data.storage_url
    record.thumbnail_url = data.thumbnail_url


def tag_to_data(record: TagRecord) -> TagData:
    return TagData(
        id=record.id,
        name=record.name,
        description=record.description,
        color=_read_color(record),
        type=record.type,
        priority=record.priority,
        is_active=record.is_active,
        usage_count=record.usage_count,
        last_used_at=ensure_utc(record.last_used_at),
        parent_id=record.parent_id,
        created_at=ensure_utc(record.created_at),
        updated_at=ensure_utc(record.updated_at),
    )


def write_tag(record: TagRecord, data: TagData) -> None:
    """Copy tag columns; the usage counter is owned by the assignment writes."""
    record.id = data.id
    record.name = data.name
    record.description = data.description
    _write_color(record, data.color)
    record.type = data.type.value
    record.priority = data.priority.value
    record.is_active = data.is_active
    record.parent_id = data.parent_id
    record.created_at = data.created_at
    record.updated_at = data.updated_at
