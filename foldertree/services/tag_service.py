"""Service for tag operations: naming rules, hierarchy, assignment statistics, seeding."""

import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..entities.file import File
from ..entities.folder import Folder
from ..entities.tag import Tag, TagFactory
from ..exceptions import DuplicateNameError, FolderTreeException, ProtectedResourceError
from ..repositories.file_repository import FileRepository
from ..repositories.folder_repository import FolderRepository
from ..repositories.tag_assignment_repository import TagAssignmentRepository
from ..repositories.tag_repository import TagRepository
from ..schemas.tag import (
    SeedResult,
    SeedSkip,
    TagAssignmentStats,
    TagCreate,
    TagFilter,
    TagTreeNode,
    TagType,
    TagUpdate,
    TagWithUsage,
)
from .hierarchy import ensure_no_cycle

logger = logging.getLogger(__name__)


class TagService:
    """Business logic for tags.

    Public methods:
        create_tag            -- create a tag with a unique active name
        get_tag / get_all_tags / search_tags
        rename_tag            -- rename, excluding the tag itself from the uniqueness check
        update_tag            -- partial update; parent changes are checked for cycles
        set_parent            -- attach under another tag (None detaches)
        attach_children       -- re-parent several tags under one parent
        delete_tag            -- deactivate; system tags are refused
        bulk_create_tags      -- strict: every tag is created or none is
        bulk_delete_tags      -- strict: every tag is deactivated or none is
        create_system_tags    -- best effort: failures are skipped and reported
        get_popular_tags      -- ranking by assignment count
        get_tag_tree          -- nested tree with subtree usage totals
        get_tag_stats         -- assignment statistics for one tag
        get_files_with_tag / get_folders_with_tag
        cleanup_unused_tags   -- deactivate user tags nothing refers to
    """

    def __init__(self, db: Session):
        self.db = db
        self.tags = TagRepository(db)
        self.assignments = TagAssignmentRepository(db)
        self.files = FileRepository(db)
        self.folders = FolderRepository(db)

    def _ensure_unique_name(self, name: str, exclude_id: Optional[str] = None) -> None:
        if self.tags.exists_by_name(name, exclude_id=exclude_id):
            raise DuplicateNameError(name.strip(), "tag")

    def _ensure_parent(self, tag_id: str, parent_id: Optional[str]) -> None:
        if parent_id is None:
            return
        self.tags.get_by_id(parent_id)
        ensure_no_cycle(tag_id, parent_id, self.tags.get_parent_id)

    # -- reads ------------------------------------------------------------

    def get_tag(self, tag_id: str) -> Tag:
        return self.tags.get_by_id(tag_id)

    def get_all_tags(self, filters: Optional[TagFilter] = None) -> List[Tag]:
        return self.tags.find_all(filters)

    def search_tags(self, query: str, filters: Optional[TagFilter] = None) -> List[Tag]:
        return self.tags.search(query, filters)

    def get_popular_tags(self, limit: Optional[int] = None) -> List[TagWithUsage]:
        return self.assignments.get_popular_tags(limit or settings.popular_tags_limit)

    def get_tag_tree(self) -> List[TagTreeNode]:
        return self.assignments.get_tag_tree(settings.tag_tree_max_depth)

    def get_tag_stats(self, tag_id: str) -> TagAssignmentStats:
        self.tags.get_by_id(tag_id)
        return self.assignments.get_tag_assignment_stats(tag_id)

    def get_files_with_tag(self, tag_id: str) -> List[File]:
        self.tags.get_by_id(tag_id)
        return self.files.find_by_tag_ids([tag_id])

    def get_folders_with_tag(self, tag_id: str) -> List[Folder]:
        self.tags.get_by_id(tag_id)
        return self.folders.find_by_tag_ids([tag_id])

    # -- writes -----------------------------------------------------------

    def create_tag(self, data: TagCreate) -> Tag:
        tag = TagFactory.create(data)
        tag.ensure_valid()
        self._ensure_unique_name(tag.name)
        if tag.parent_id is not None:
            self.tags.get_by_id(tag.parent_id)

        created = self.tags.create(tag)
        logger.info("Created tag", extra={"tag_id": created.id, "tag_name": created.name})
        return created

    def update_tag(self, tag_id: str, patch: TagUpdate) -> Tag:
        tag = self.tags.get_by_id(tag_id)
        changes = patch.changes()
        if changes.get("name") is not None:
            self._ensure_unique_name(changes["name"], exclude_id=tag_id)
        if "parent_id" in changes and changes["parent_id"] != tag.parent_id:
            self._ensure_parent(tag_id, changes["parent_id"])
        return self.tags.update(tag_id, patch)

    def rename_tag(self, tag_id: str, new_name: str) -> Tag:
        return self.update_tag(tag_id, TagUpdate(name=new_name))

    def set_parent(self, tag_id: str, parent_id: Optional[str]) -> Tag:
        return self.update_tag(tag_id, TagUpdate(parent_id=parent_id))

    def attach_children(self, parent_id: str, child_ids: List[str]) -> List[Tag]:
        for child_id in child_ids:
            self.tags.get_by_id(child_id)
            ensure_no_cycle(child_id, parent_id, self.tags.get_parent_id)
        return self.tags.create_hierarchy(parent_id, child_ids)

    def delete_tag(self, tag_id: str) -> None:
        tag = self.tags.get_by_id(tag_id)
        if tag.is_system_tag:
            raise ProtectedResourceError(f"System tag '{tag.name}' cannot be deleted", tag_id)
        self.tags.delete(tag_id)
        logger.info("Deleted tag", extra={"tag_id": tag_id})

    def bulk_create_tags(self, items: List[TagCreate]) -> List[Tag]:
        """Create all tags in one transaction; any invalid or duplicate name fails the batch."""
        tags = [TagFactory.create(item) for item in items]
        seen = set()
        for tag in tags:
            if tag.name in seen:
                raise DuplicateNameError(tag.name, "tag")
            seen.add(tag.name)
            self._ensure_unique_name(tag.name)
            if tag.parent_id is not None:
                self.tags.get_by_id(tag.parent_id)
        return self.tags.bulk_create(tags)

    def bulk_delete_tags(self, tag_ids: List[str]) -> None:
        for tag_id in tag_ids:
            tag = self.tags.get_by_id(tag_id)
            if tag.is_system_tag:
                raise ProtectedResourceError(f"System tag '{tag.name}' cannot be deleted", tag_id)
        self.tags.bulk_delete(tag_ids)
        logger.info("Bulk-deleted tags", extra={"count": len(tag_ids)})

    def create_system_tags(self, definitions: Iterable[TagCreate]) -> SeedResult:
        """Create system tags one by one, skipping (and reporting) failures."""
        result = SeedResult()
        for definition in definitions:
            item = definition.model_copy(update={"type": TagType.SYSTEM})
            try:
                result.created.append(self.create_tag(item).to_data())
            except FolderTreeException as e:
                logger.warning("Skipped system tag", extra={"tag_name": item.name, "reason": e.message})
                result.skipped.append(SeedSkip(name=item.name, reason=e.message))
        logger.info("Seeded system tags", extra={
            "created_count": len(result.created), "skipped_count": len(result.skipped),
        })
        return result

    def cleanup_unused_tags(self) -> List[str]:
        return self.assignments.cleanup_unused_tags()
