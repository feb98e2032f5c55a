"""Database models."""

from .folder import FolderRecord
from .file import FileRecord
from .tag import TagRecord, FileTag, FolderTag

__all__ = [
    "FolderRecord", "FileRecord",
    "TagRecord", "FileTag", "FolderTag",
]
