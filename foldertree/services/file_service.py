"""Service for file operations."""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..entities.file import File, FileFactory
from ..entities.tag import Tag
from ..exceptions import DuplicateNameError, ValidationFailedError
from ..repositories.file_repository import FileRepository
from ..repositories.folder_repository import FolderRepository
from ..repositories.tag_assignment_repository import TagAssignmentRepository
from ..repositories.tag_repository import TagRepository
from ..schemas.file import FileCreate, FileFilter, FileStatus, FileUpdate
from ..schemas.tag import SubjectType

logger = logging.getLogger(__name__)


class FileService:
    """Business logic for files.

    Public methods:
        create_file           -- create a file in a live folder (or at the root)
        get_file              -- fetch a live file by id
        get_files_in_folder   -- files directly inside a folder (root-level files for None)
        rename_file           -- rename, keeping names unique within the folder
        move_file             -- move to another folder
        update_file           -- partial update with the same checks as rename/move
        delete_file           -- soft delete
        add_tags_to_file      -- assign tags (already-assigned ones are skipped)
        remove_tags_from_file -- unassign tags
        get_file_tags         -- active tags assigned to a file
        search_files          -- substring search over name and description
    """

    def __init__(self, db: Session):
        self.db = db
        self.files = FileRepository(db)
        self.folders = FolderRepository(db)
        self.tags = TagRepository(db)
        self.assignments = TagAssignmentRepository(db)

    def _ensure_unique_name(self, name: str, folder_id: Optional[str], exclude_id: Optional[str] = None) -> None:
        if self.files.find_by_name_in_folder(folder_id, name, exclude_id=exclude_id) is not None:
            raise DuplicateNameError(name, "file", folder_id)

    def _ensure_tags_exist(self, tag_ids: List[str]) -> None:
        for tag_id in tag_ids:
            self.tags.get_by_id(tag_id)

    def get_file(self, file_id: str) -> File:
        return self.files.get_by_id(file_id)

    def get_files_in_folder(self, folder_id: Optional[str], filters: Optional[FileFilter] = None) -> List[File]:
        if folder_id is not None:
            self.folders.get_by_id(folder_id)
        scoped = (filters or FileFilter()).model_copy(update={
            "folder_id": folder_id,
            "root_only": folder_id is None,
        })
        return self.files.find_all(scoped)

    def search_files(self, query: str, filters: Optional[FileFilter] = None) -> List[File]:
        return self.files.search(query, filters)

    def create_file(self, data: FileCreate) -> File:
        folder_path = None
        if data.folder_id is not None:
            folder_path = self.folders.get_by_id(data.folder_id).path

        file = FileFactory.create(data, folder_path)
        file.ensure_valid()
        self._ensure_unique_name(file.name, file.folder_id)
        self._ensure_tags_exist(list(file.tag_ids))

        created = self.files.create(file)
        logger.info("Created file", extra={"file_id": created.id, "path": created.path})
        return created

    def update_file(self, file_id: str, patch: FileUpdate) -> File:
        file = self.files.get_by_id(file_id)
        changes = patch.changes()
        if changes.get("status") == FileStatus.DELETED:
            raise ValidationFailedError.single("status", "Use delete_file to delete a file", "INVALID_STATUS")

        target_folder = changes["folder_id"] if "folder_id" in changes else file.folder_id
        new_name = (changes.get("name") or file.name).strip()

        if target_folder is not None and target_folder != file.folder_id:
            self.folders.get_by_id(target_folder)
        if target_folder != file.folder_id or new_name != file.name:
            self._ensure_unique_name(new_name, target_folder, exclude_id=file_id)
        if changes.get("tag_ids") is not None:
            self._ensure_tags_exist(changes["tag_ids"])

        return self.files.update(file_id, patch)

    def rename_file(self, file_id: str, new_name: str) -> File:
        return self.update_file(file_id, FileUpdate(name=new_name))

    def move_file(self, file_id: str, target_folder_id: Optional[str]) -> File:
        """Move to ``target_folder_id`` (the root when None)."""
        file = self.files.get_by_id(file_id)
        if file.folder_id == target_folder_id:
            raise ValidationFailedError.single("folder_id", "File is already in this folder", "SAME_FOLDER")
        moved = self.update_file(file_id, FileUpdate(folder_id=target_folder_id))
        logger.info("Moved file", extra={"file_id": file_id, "from": file.folder_id, "to": target_folder_id})
        return moved

    def delete_file(self, file_id: str) -> None:
        self.files.delete(file_id)
        logger.info("Deleted file", extra={"file_id": file_id})

    def add_tags_to_file(self, file_id: str, tag_ids: List[str]) -> File:
        self.files.get_by_id(file_id)
        self._ensure_tags_exist(tag_ids)
        self.assignments.assign(SubjectType.FILE, file_id, tag_ids)
        return self.files.get_by_id(file_id)

    def remove_tags_from_file(self, file_id: str, tag_ids: List[str]) -> File:
        self.files.get_by_id(file_id)
        self.assignments.unassign(SubjectType.FILE, file_id, tag_ids)
        return self.files.get_by_id(file_id)

    def get_file_tags(self, file_id: str) -> List[Tag]:
        self.files.get_by_id(file_id)
        return self.assignments.get_tags(SubjectType.FILE, file_id)
