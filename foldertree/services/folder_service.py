"""Service for folder operations: creation, moves, renames, deletion, tree building."""

import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ..entities.folder import Folder, FolderFactory
from ..exceptions import (
    DuplicateNameError,
    NonEmptyFolderError,
    ProtectedResourceError,
    ValidationFailedError,
)
from ..repositories.file_repository import FileRepository
from ..repositories.folder_repository import FolderRepository
from ..repositories.tag_repository import TagRepository
from ..schemas.file import FileFilter
from ..schemas.folder import (
    FolderContentCount,
    FolderCreate,
    FolderFilter,
    FolderStatus,
    FolderTreeNode,
    FolderType,
    FolderUpdate,
)
from .hierarchy import ensure_no_cycle

logger = logging.getLogger(__name__)


class FolderService:
    """Business logic for the folder forest.

    Public methods:
        create_folder            -- create a folder under an existing parent (or at the root)
        create_system_folder     -- create a protected system folder
        get_folder               -- fetch a live folder by id
        get_subfolders           -- direct children of a folder (root folders for None)
        get_folder_path          -- names from the root down to the folder
        get_folder_content_count -- number of direct files and subfolders
        get_tree                 -- nested tree of every live folder with file counts
        update_folder            -- partial update; name/parent changes run the same checks as rename/move
        rename_folder            -- rename, keeping sibling names unique
        move_folder              -- re-parent, refusing moves that would create a cycle
        delete_folder            -- soft delete; non-empty folders need force=True
        set_folder_tags          -- replace the folder's tag set
        search_folders           -- substring search over name and description
    """

    def __init__(self, db: Session):
        self.db = db
        self.folders = FolderRepository(db)
        self.files = FileRepository(db)
        self.tags = TagRepository(db)

    # -- checks -----------------------------------------------------------

    def _ensure_unique_name(self, name: str, parent_id: Optional[str], exclude_id: Optional[str] = None) -> None:
        if self.folders.find_sibling_by_name(parent_id, name, exclude_id=exclude_id) is not None:
            raise DuplicateNameError(name, "folder", parent_id)

    def _ensure_tags_exist(self, tag_ids: List[str]) -> None:
        for tag_id in tag_ids:
            self.tags.get_by_id(tag_id)

    # -- reads ------------------------------------------------------------

    def get_folder(self, folder_id: str) -> Folder:
        return self.folders.get_by_id(folder_id)

    def get_subfolders(self, parent_id: Optional[str] = None) -> List[Folder]:
        if parent_id is not None:
            self.folders.get_by_id(parent_id)
        return self.folders.find_by_parent(parent_id)

    def get_folder_path(self, folder_id: str) -> List[str]:
        """Folder names from the root down to ``folder_id``.

        The walk stops at the first parent that has no live row.
        """
        names: List[str] = []
        current = self.folders.find_by_id(folder_id)
        if current is None:
            return names
        seen = set()
        while current is not None and current.id not in seen:
            seen.add(current.id)
            names.append(current.name)
            current = self.folders.find_by_id(current.parent_id) if current.parent_id else None
        names.reverse()
        return names

    def get_folder_content_count(self, folder_id: str) -> FolderContentCount:
        self.folders.get_by_id(folder_id)
        return FolderContentCount(
            files=self.files.count(FileFilter(folder_id=folder_id)),
            folders=self.folders.count(FolderFilter(parent_id=folder_id)),
        )

    def get_tree(self) -> List[FolderTreeNode]:
        """Build the full folder tree from one read of every live folder."""
        folders = self.folders.find_all()
        file_counts = self.files.count_by_folder()

        children_by_parent: Dict[Optional[str], List[Folder]] = {}
        live_ids = {f.id for f in folders}
        for folder in folders:
            # Children of a deleted folder have no live parent; surface them at the root.
            parent = folder.parent_id if folder.parent_id in live_ids else None
            children_by_parent.setdefault(parent, []).append(folder)

        def build_children(parent_id: Optional[str]) -> List[FolderTreeNode]:
            return [
                FolderTreeNode(
                    folder=folder.to_data(),
                    children=build_children(folder.id),
                    file_count=file_counts.get(folder.id, 0),
                )
                for folder in children_by_parent.get(parent_id, [])
            ]

        return build_children(None)

    def search_folders(self, query: str, filters: Optional[FolderFilter] = None) -> List[Folder]:
        return self.folders.search(query, filters)

    # -- writes -----------------------------------------------------------

    def create_folder(self, data: FolderCreate) -> Folder:
        parent_path = None
        if data.parent_id is not None:
            parent_path = self.folders.get_by_id(data.parent_id).path

        folder = FolderFactory.create(data, parent_path)
        folder.ensure_valid()
        self._ensure_unique_name(folder.name, folder.parent_id)
        self._ensure_tags_exist(list(folder.tag_ids))

        created = self.folders.create(folder)
        logger.info("Created folder", extra={"folder_id": created.id, "path": created.path})
        return created

    def create_system_folder(self, name: str, icon: Optional[str] = None,
                             parent_id: Optional[str] = None) -> Folder:
        return self.create_folder(FolderCreate(
            name=name,
            icon=icon,
            parent_id=parent_id,
            type=FolderType.SYSTEM,
            is_protected=True,
        ))

    def update_folder(self, folder_id: str, patch: FolderUpdate) -> Folder:
        """Partial update. Deletion goes through ``delete_folder`` so its guards apply."""
        folder = self.folders.get_by_id(folder_id)
        changes = patch.changes()
        if changes.get("status") == FolderStatus.DELETED:
            raise ValidationFailedError.single(
                "status", "Use delete_folder to delete a folder", "INVALID_STATUS"
            )

        new_parent = changes["parent_id"] if "parent_id" in changes else folder.parent_id
        new_name = (changes.get("name") or folder.name).strip()

        if "parent_id" in changes and new_parent != folder.parent_id:
            if new_parent is not None:
                self.folders.get_by_id(new_parent)
            ensure_no_cycle(folder_id, new_parent, self.folders.get_parent_id)
        if new_parent != folder.parent_id or new_name != folder.name:
            self._ensure_unique_name(new_name, new_parent, exclude_id=folder_id)
        if changes.get("tag_ids") is not None:
            self._ensure_tags_exist(changes["tag_ids"])

        updated = self.folders.update(folder_id, patch)
        if updated.path != folder.path:
            logger.info("Folder re-pathed", extra={
                "folder_id": folder_id, "old_path": folder.path, "new_path": updated.path,
            })
        return updated

    def rename_folder(self, folder_id: str, new_name: str) -> Folder:
        return self.update_folder(folder_id, FolderUpdate(name=new_name))

    def move_folder(self, folder_id: str, new_parent_id: Optional[str]) -> Folder:
        """Move under ``new_parent_id`` (the root when None).

        Raises CycleDetectedError when the target is the folder itself or
        one of its descendants.
        """
        return self.update_folder(folder_id, FolderUpdate(parent_id=new_parent_id))

    def delete_folder(self, folder_id: str, force: bool = False) -> None:
        """Soft-delete a folder.

        Protected and system folders are refused. Without ``force`` the
        folder must have no live files or subfolders; with it, deletion
        proceeds and the contents are left untouched.
        """
        folder = self.folders.get_by_id(folder_id)
        if not folder.can_be_deleted:
            raise ProtectedResourceError(f"Folder '{folder.name}' is protected and cannot be deleted", folder_id)
        if not force:
            content = self.get_folder_content_count(folder_id)
            if content.total:
                raise NonEmptyFolderError(folder_id, content.files, content.folders)
        self.folders.delete(folder_id)
        logger.info("Deleted folder", extra={"folder_id": folder_id, "force": force})

    def set_folder_tags(self, folder_id: str, tag_ids: List[str]) -> Folder:
        self._ensure_tags_exist(tag_ids)
        return self.folders.update_tags(folder_id, tag_ids)
