"""Folder repository for database operations."""

import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Query

from ..entities.base import join_path, parent_path_of
from ..entities.folder import Folder, FolderFactory
from ..exceptions import FolderNotFoundError
from ..models import FileRecord, FolderRecord, FolderTag
from ..schemas.folder import FolderFilter, FolderStatus, FolderUpdate
from ..schemas.common import Visibility
from ..schemas.file import FileStatus
from ..schemas.tag import SubjectType
from .base import BaseRepository
from .file_repository import FileRepository
from .mappers import folder_to_data, write_folder
from .tag_assignment_repository import TagAssignmentRepository

logger = logging.getLogger(__name__)


class FolderRepository(BaseRepository[FolderRecord, Folder]):
    """Data access for folders. Deleted folders are invisible to every read."""

    model_class = FolderRecord
    not_found_error = FolderNotFoundError
    entity_name = "folder"

    def __init__(self, db):
        super().__init__(db)
        self.assignments = TagAssignmentRepository(db)
        self.files = FileRepository(db)

    def _base_query(self) -> Query:
        return self.db.query(FolderRecord).filter(FolderRecord.status != FolderStatus.DELETED.value)

    def _to_entities(self, records: List[FolderRecord]) -> List[Folder]:
        tag_ids = self.assignments.tag_ids_for(SubjectType.FOLDER, [r.id for r in records])
        return [FolderFactory.from_data(folder_to_data(r, tag_ids[r.id])) for r in records]

    def _apply_filters(self, query: Query, filters: Optional[FolderFilter]) -> Query:
        if filters is None:
            return query
        if filters.root_only:
            query = query.filter(FolderRecord.parent_id.is_(None))
        elif filters.parent_id is not None:
            query = query.filter(FolderRecord.parent_id == filters.parent_id)
        if filters.status is not None:
            query = query.filter(FolderRecord.status == filters.status.value)
        if filters.visibility is not None:
            query = query.filter(FolderRecord.visibility == filters.visibility.value)
        if filters.type is not None:
            query = query.filter(FolderRecord.type == filters.type.value)
        if filters.level is not None:
            query = query.filter(FolderRecord.level == filters.level)
        if filters.is_system_folder is not None:
            query = query.filter(FolderRecord.is_system_folder == filters.is_system_folder)
        return query

    def _ordering(self) -> list:
        return [FolderRecord.name.asc(), FolderRecord.id.asc()]

    def _soft_delete(self, record: FolderRecord) -> None:
        folder = self._to_entity(record)
        folder.set_status(FolderStatus.DELETED)
        record.status = folder.status.value
        record.updated_at = folder.updated_at

    def _parent_path(self, parent_id: Optional[str]) -> Optional[str]:
        if parent_id is None:
            return None
        return self._require_record(parent_id).path

    # -- finders ----------------------------------------------------------

    def find_by_parent(self, parent_id: Optional[str]) -> List[Folder]:
        """Direct children of ``parent_id``; root folders when it is None."""
        if parent_id is None:
            return self.find_all(FolderFilter(root_only=True))
        return self.find_all(FolderFilter(parent_id=parent_id))

    def find_by_level(self, level: int) -> List[Folder]:
        return self.find_all(FolderFilter(level=level))

    def find_by_visibility(self, visibility: Visibility) -> List[Folder]:
        return self.find_all(FolderFilter(visibility=visibility))

    def find_by_status(self, status: FolderStatus) -> List[Folder]:
        return self.find_all(FolderFilter(status=status))

    def find_by_tag_ids(self, tag_ids: List[str], match_all: bool = False) -> List[Folder]:
        """Folders carrying any (or, with ``match_all``, every) of ``tag_ids``."""
        wanted = list(dict.fromkeys(tag_ids))
        if not wanted:
            return []
        tagged = select(FolderTag.folder_id).where(FolderTag.tag_id.in_(wanted))
        if match_all:
            tagged = tagged.group_by(FolderTag.folder_id).having(
                func.count(FolderTag.tag_id) == len(wanted)
            )
        with self._reading("find folders by tags"):
            return self._select(self._base_query().filter(FolderRecord.id.in_(tagged)), None)

    def find_sibling_by_name(self, parent_id: Optional[str], name: str,
                             exclude_id: Optional[str] = None) -> Optional[Folder]:
        """Live folder called ``name`` under ``parent_id`` (root when None)."""
        with self._reading("find sibling folder"):
            query = self._base_query().filter(FolderRecord.name == name)
            if parent_id is None:
                query = query.filter(FolderRecord.parent_id.is_(None))
            else:
                query = query.filter(FolderRecord.parent_id == parent_id)
            if exclude_id is not None:
                query = query.filter(FolderRecord.id != exclude_id)
            record = query.first()
            return self._to_entity(record) if record is not None else None

    def get_parent_id(self, folder_id: str) -> Optional[str]:
        """Parent of a live folder; None at the root or when the row is missing."""
        with self._reading(f"read parent of folder {folder_id}"):
            row = self._base_query().with_entities(FolderRecord.parent_id).filter(
                FolderRecord.id == folder_id
            ).first()
            return row.parent_id if row is not None else None

    # -- writes -----------------------------------------------------------

    def create(self, folder: Folder) -> Folder:
        """Insert the folder and its initial tag assignments atomically."""
        folder.ensure_valid()
        data = folder.to_data()
        with self._writing(f"create folder '{data.name}'"):
            self.ensure_paths_free({data.id: data.path})
            record = FolderRecord()
            write_folder(record, data)
            self.db.add(record)
            self.db.flush()
            self.assignments.link_tags(SubjectType.FOLDER, record.id, data.tag_ids, now=data.created_at)
        return self.get_by_id(data.id)

    def update(self, folder_id: str, patch: FolderUpdate) -> Folder:
        """Re-load, apply ``patch`` through the entity, validate, write back.

        A change of name or parent re-derives the paths and levels of every
        descendant folder and the paths of their files in the same transaction.
        Raises DuplicateNameError, before anything is written, when one of
        the new paths is already held by a live row outside the subtree.
        """
        changes = patch.changes()
        with self._writing(f"update folder {folder_id}"):
            record = self._require_record(folder_id)
            folder = self._to_entity(record)
            old_path = folder.path
            folder.apply(changes, self._target_parent_path(folder, changes))
            folder.ensure_valid()

            data = folder.to_data()
            with self.db.no_autoflush:
                write_folder(record, data)
                if data.path != old_path:
                    moved = self._cascade_paths(record)
                    logger.debug("Re-pathed descendants", extra={"folder_id": folder_id, "count": moved})
            if "tag_ids" in changes and changes["tag_ids"] is not None:
                self.assignments.replace_tags(SubjectType.FOLDER, folder_id, data.tag_ids)
        with self._reading(f"read folder {folder_id}"):
            return self._to_entity(record)

    def update_tags(self, folder_id: str, tag_ids: List[str]) -> Folder:
        with self._writing(f"update tags of folder {folder_id}"):
            self._require_record(folder_id)
            self.assignments.replace_tags(SubjectType.FOLDER, folder_id, tag_ids)
        return self.get_by_id(folder_id)

    def _target_parent_path(self, folder: Folder, changes: dict) -> Optional[str]:
        """Path of the parent the folder ends up under.

        An unchanged parent is read off the folder's own stored path, so a
        folder whose parent has been deleted stays editable.
        """
        if "parent_id" in changes and changes["parent_id"] != folder.parent_id:
            return self._parent_path(changes["parent_id"])
        return parent_path_of(folder.path)

    def _cascade_paths(self, root: FolderRecord) -> int:
        """Recompute path/level below ``root``; returns the number of rows touched.

        Must run under ``no_autoflush``: every new live path is checked
        against the rest of the store before any row changes.
        """
        folder_moves = []
        file_moves = []
        frontier = [(root.id, root.path, root.level)]
        seen = {root.id}
        while frontier:
            parent_id, parent_path, parent_level = frontier.pop()
            for file in self.db.query(FileRecord).filter(FileRecord.folder_id == parent_id):
                file_moves.append((file, join_path(parent_path, file.name)))
            for child in self.db.query(FolderRecord).filter(FolderRecord.parent_id == parent_id):
                if child.id in seen:
                    continue
                seen.add(child.id)
                path = join_path(parent_path, child.name)
                folder_moves.append((child, path, parent_level + 1))
                frontier.append((child.id, path, parent_level + 1))

        live_folders = {r.id: path for r, path, _ in folder_moves if r.status != FolderStatus.DELETED.value}
        if root.status != FolderStatus.DELETED.value:
            live_folders[root.id] = root.path
        self.ensure_paths_free(live_folders)
        self.files.ensure_paths_free(
            {r.id: path for r, path in file_moves if r.status != FileStatus.DELETED.value}
        )

        for record, path, level in folder_moves:
            record.path = path
            record.level = level
        for record, path in file_moves:
            record.path = path
        return len(folder_moves) + len(file_moves)
