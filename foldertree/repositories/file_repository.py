"""File repository for database operations."""

from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Query

from ..entities.base import parent_path_of
from ..entities.file import File, FileFactory
from ..exceptions import FileEntryNotFoundError, FolderNotFoundError
from ..models import FileRecord, FileTag, FolderRecord
from ..schemas.file import FileCategory, FileFilter, FileStatus, FileUpdate
from ..schemas.folder import FolderStatus
from ..schemas.tag import SubjectType
from .base import BaseRepository
from .mappers import file_to_data, write_file
from .tag_assignment_repository import TagAssignmentRepository


class FileRepository(BaseRepository[FileRecord, File]):
    """Data access for files. Deleted files are invisible to every read."""

    model_class = FileRecord
    not_found_error = FileEntryNotFoundError
    entity_name = "file"

    def __init__(self, db):
        super().__init__(db)
        self.assignments = TagAssignmentRepository(db)

    def _base_query(self) -> Query:
        return self.db.query(FileRecord).filter(FileRecord.status != FileStatus.DELETED.value)

    def _to_entities(self, records: List[FileRecord]) -> List[File]:
        tag_ids = self.assignments.tag_ids_for(SubjectType.FILE, [r.id for r in records])
        return [FileFactory.from_data(file_to_data(r, tag_ids[r.id])) for r in records]

    def _apply_filters(self, query: Query, filters: Optional[FileFilter]) -> Query:
        if filters is None:
            return query
        if filters.root_only:
            query = query.filter(FileRecord.folder_id.is_(None))
        elif filters.folder_id is not None:
            query = query.filter(FileRecord.folder_id == filters.folder_id)
        if filters.status is not None:
            query = query.filter(FileRecord.status == filters.status.value)
        if filters.extensions:
            query = query.filter(FileRecord.extension.in_(filters.extensions))
        if filters.category is not None:
            query = query.filter(FileRecord.category == filters.category.value)
        return query

    def _ordering(self) -> list:
        return [FileRecord.created_at.desc(), FileRecord.id.asc()]

    def _soft_delete(self, record: FileRecord) -> None:
        file = self._to_entity(record)
        file.set_status(FileStatus.DELETED)
        record.status = file.status.value
        record.updated_at = file.updated_at

    def _folder_path(self, folder_id: Optional[str]) -> Optional[str]:
        if folder_id is None:
            return None
        row = (
            self.db.query(FolderRecord.path)
            .filter(FolderRecord.id == folder_id, FolderRecord.status != FolderStatus.DELETED.value)
            .first()
        )
        if row is None:
            raise FolderNotFoundError(folder_id)
        return row.path

    # -- finders ----------------------------------------------------------

    def find_by_folder(self, folder_id: Optional[str]) -> List[File]:
        """Files directly inside ``folder_id``; root-level files when it is None."""
        if folder_id is None:
            return self.find_all(FileFilter(root_only=True))
        return self.find_all(FileFilter(folder_id=folder_id))

    def find_by_extension(self, extension: str) -> List[File]:
        return self.find_all(FileFilter(extensions=[extension]))

    def find_by_category(self, category: FileCategory) -> List[File]:
        return self.find_all(FileFilter(category=category))

    def find_by_status(self, status: FileStatus) -> List[File]:
        return self.find_all(FileFilter(status=status))

    def find_by_tag_ids(self, tag_ids: List[str], match_all: bool = False) -> List[File]:
        """Files carrying any (or, with ``match_all``, every) of ``tag_ids``."""
        wanted = list(dict.fromkeys(tag_ids))
        if not wanted:
            return []
        tagged = select(FileTag.file_id).where(FileTag.tag_id.in_(wanted))
        if match_all:
            tagged = tagged.group_by(FileTag.file_id).having(func.count(FileTag.tag_id) == len(wanted))
        with self._reading("find files by tags"):
            return self._select(self._base_query().filter(FileRecord.id.in_(tagged)), None)

    def find_by_name_in_folder(self, folder_id: Optional[str], name: str,
                               exclude_id: Optional[str] = None) -> Optional[File]:
        with self._reading("find file by name"):
            query = self._base_query().filter(FileRecord.name == name)
            if folder_id is None:
                query = query.filter(FileRecord.folder_id.is_(None))
            else:
                query = query.filter(FileRecord.folder_id == folder_id)
            if exclude_id is not None:
                query = query.filter(FileRecord.id != exclude_id)
            record = query.first()
            return self._to_entity(record) if record is not None else None

    def count_by_folder(self) -> Dict[Optional[str], int]:
        """Live file count per folder id (None for root-level files)."""
        with self._reading("count files per folder"):
            rows = (
                self._base_query()
                .with_entities(FileRecord.folder_id, func.count(FileRecord.id))
                .group_by(FileRecord.folder_id)
                .all()
            )
        return {folder_id: count for folder_id, count in rows}

    # -- writes -----------------------------------------------------------

    def create(self, file: File) -> File:
        """Insert the file and its initial tag assignments atomically."""
        file.ensure_valid()
        data = file.to_data()
        with self._writing(f"create file '{data.name}'"):
            self.ensure_paths_free({data.id: data.path})
            record = FileRecord()
            write_file(record, data)
            self.db.add(record)
            self.db.flush()
            self.assignments.link_tags(SubjectType.FILE, record.id, data.tag_ids, now=data.created_at)
        return self.get_by_id(data.id)

    def update(self, file_id: str, patch: FileUpdate) -> File:
        """Re-load, apply ``patch`` through the entity, validate, write back."""
        changes = patch.changes()
        with self._writing(f"update file {file_id}"):
            record = self._require_record(file_id)
            file = self._to_entity(record)
            file.apply(changes, self._target_folder_path(file, changes))
            file.ensure_valid()

            data = file.to_data()
            if data.status != FileStatus.DELETED:
                self.ensure_paths_free({file_id: data.path})
            write_file(record, data)
            if "tag_ids" in changes and changes["tag_ids"] is not None:
                self.assignments.replace_tags(SubjectType.FILE, file_id, data.tag_ids)
        with self._reading(f"read file {file_id}"):
            return self._to_entity(record)

    def _target_folder_path(self, file: File, changes: dict) -> Optional[str]:
        """Path of the folder the file ends up in; an unchanged folder is read
        off the file's own stored path, so files in a deleted folder stay editable."""
        if "folder_id" in changes and changes["folder_id"] != file.folder_id:
            return self._folder_path(changes["folder_id"])
        return parent_path_of(file.path)

    def update_tags(self, file_id: str, tag_ids: List[str]) -> File:
        with self._writing(f"update tags of file {file_id}"):
            self._require_record(file_id)
            self.assignments.replace_tags(SubjectType.FILE, file_id, tag_ids)
        return self.get_by_id(file_id)
