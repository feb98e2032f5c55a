"""Tag assignment repository: the file/folder <-> tag relations.

Every insert into or delete from ``file_tags``/``folder_tags`` goes through
``link_tags``/``unlink_tags`` here, which adjust ``tags.usage_count`` and
``tags.last_used_at`` in the same transaction. Those two helpers do not
commit; the public operations and the folder/file repositories wrap them
in their own write transaction.
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy import case, func, select

from ..entities.base import ensure_utc, utcnow
from ..entities.tag import Tag, TagFactory
from ..exceptions import CycleDetectedError
from ..models import FileTag, FolderTag, TagRecord
from ..schemas.tag import (
    SubjectType,
    TagAssignmentStats,
    TagTreeNode,
    TagType,
    TagWithUsage,
)
from .base import SessionRepository
from .mappers import tag_to_data

logger = logging.getLogger(__name__)

_RELATIONS = {
    SubjectType.FILE: (FileTag, FileTag.file_id),
    SubjectType.FOLDER: (FolderTag, FolderTag.folder_id),
}


class TagAssignmentRepository(SessionRepository):
    """Maintains tag assignments and the usage counters derived from them."""

    # -- low-level relation writes (caller commits) -----------------------

    def link_tags(self, subject: SubjectType, subject_id: str, tag_ids: Iterable[str],
                  now: Optional[datetime] = None) -> List[str]:
        """Insert missing pairs and bump their counters. Returns the ids inserted."""
        relation, subject_col = _RELATIONS[subject]
        wanted = list(dict.fromkeys(tag_ids))
        if not wanted:
            return []
        existing = {
            row.tag_id for row in
            self.db.query(relation.tag_id).filter(subject_col == subject_id, relation.tag_id.in_(wanted))
        }
        new_ids = [tag_id for tag_id in wanted if tag_id not in existing]
        if not new_ids:
            return []

        now = now or utcnow()
        for tag_id in new_ids:
            self.db.add(relation(**{subject_col.key: subject_id, "tag_id": tag_id, "created_at": now}))
        self.db.flush()
        self.db.query(TagRecord).filter(TagRecord.id.in_(new_ids)).update(
            {TagRecord.usage_count: TagRecord.usage_count + 1, TagRecord.last_used_at: now},
            synchronize_session="fetch",
        )
        return new_ids

    def unlink_tags(self, subject: SubjectType, subject_id: str,
                    tag_ids: Optional[Iterable[str]] = None) -> List[str]:
        """Delete pairs (all of the subject's when ``tag_ids`` is None) and
        decrement their counters, floored at zero. Returns the ids removed."""
        relation, subject_col = _RELATIONS[subject]
        query = self.db.query(relation.tag_id).filter(subject_col == subject_id)
        if tag_ids is not None:
            wanted = list(dict.fromkeys(tag_ids))
            if not wanted:
                return []
            query = query.filter(relation.tag_id.in_(wanted))
        removed = [row.tag_id for row in query]
        if not removed:
            return []

        self.db.query(relation).filter(
            subject_col == subject_id, relation.tag_id.in_(removed)
        ).delete(synchronize_session="fetch")
        self.db.query(TagRecord).filter(TagRecord.id.in_(removed)).update(
            {TagRecord.usage_count: case((TagRecord.usage_count > 0, TagRecord.usage_count - 1), else_=0)},
            synchronize_session="fetch",
        )
        return removed

    def tag_ids_for(self, subject: SubjectType, subject_ids: List[str]) -> Dict[str, List[str]]:
        """Assigned tag ids per subject, oldest assignment first."""
        relation, subject_col = _RELATIONS[subject]
        result: Dict[str, List[str]] = {subject_id: [] for subject_id in subject_ids}
        if not subject_ids:
            return result
        rows = (
            self.db.query(subject_col, relation.tag_id)
            .filter(subject_col.in_(subject_ids))
            .order_by(relation.created_at, relation.tag_id)
            .all()
        )
        for owner_id, tag_id in rows:
            result[owner_id].append(tag_id)
        return result

    # -- public operations ------------------------------------------------

    def assign(self, subject: SubjectType, subject_id: str, tag_ids: Iterable[str]) -> List[str]:
        """Assign tags; already-assigned ids are skipped. Returns the ids added."""
        with self._writing(f"assign tags to {subject.value} {subject_id}"):
            added = self.link_tags(subject, subject_id, tag_ids)
        return added

    def unassign(self, subject: SubjectType, subject_id: str, tag_ids: Iterable[str]) -> List[str]:
        with self._writing(f"unassign tags from {subject.value} {subject_id}"):
            removed = self.unlink_tags(subject, subject_id, list(tag_ids))
        return removed

    def replace(self, subject: SubjectType, subject_id: str, tag_ids: Iterable[str]) -> None:
        """Delete-then-insert the subject's whole tag set in one transaction."""
        with self._writing(f"replace tags of {subject.value} {subject_id}"):
            self.replace_tags(subject, subject_id, tag_ids)

    def replace_tags(self, subject: SubjectType, subject_id: str, tag_ids: Iterable[str]) -> None:
        """Body of ``replace`` without the commit."""
        self.unlink_tags(subject, subject_id)
        self.link_tags(subject, subject_id, tag_ids)

    def get_tag_ids(self, subject: SubjectType, subject_id: str) -> List[str]:
        with self._reading(f"read tags of {subject.value} {subject_id}"):
            return self.tag_ids_for(subject, [subject_id])[subject_id]

    def get_tags(self, subject: SubjectType, subject_id: str) -> List[Tag]:
        """Active tags assigned to the subject, ordered by name."""
        relation, subject_col = _RELATIONS[subject]
        with self._reading(f"read tags of {subject.value} {subject_id}"):
            records = (
                self.db.query(TagRecord)
                .join(relation, relation.tag_id == TagRecord.id)
                .filter(subject_col == subject_id, TagRecord.is_active.is_(True))
                .order_by(TagRecord.name)
                .all()
            )
            return [TagFactory.from_data(tag_to_data(r)) for r in records]

    def cleanup_unused_tags(self) -> List[str]:
        """Deactivate active non-system tags with no assignment rows. Returns their ids."""
        with self._writing("clean up unused tags"):
            records = (
                self.db.query(TagRecord)
                .filter(
                    TagRecord.is_active.is_(True),
                    TagRecord.type != TagType.SYSTEM.value,
                    ~TagRecord.id.in_(select(FileTag.tag_id)),
                    ~TagRecord.id.in_(select(FolderTag.tag_id)),
                )
                .all()
            )
            now = utcnow()
            for record in records:
                record.is_active = False
                record.updated_at = now
            removed = [r.id for r in records]
        if removed:
            logger.info("Deactivated unused tags", extra={"count": len(removed)})
        return removed

    def get_tag_tree(self, max_depth: int) -> List[TagTreeNode]:
        """Forest of active tags rooted at parentless tags.

        ``total_usage`` of a node is its own usage count plus the total of
        its children. Raises CycleDetectedError if a tag reappears on its
        own branch or the nesting exceeds ``max_depth``.
        """
        with self._reading("build tag tree"):
            records = (
                self.db.query(TagRecord)
                .filter(TagRecord.is_active.is_(True))
                .order_by(TagRecord.name)
                .all()
            )
        children: Dict[Optional[str], List[TagRecord]] = {}
        for record in records:
            children.setdefault(record.parent_id, []).append(record)

        def build(record: TagRecord, depth: int, branch: Set[str]) -> TagTreeNode:
            if depth > max_depth:
                logger.warning("Tag tree depth guard tripped", extra={"tag_id": record.id, "max_depth": max_depth})
                raise CycleDetectedError(
                    record.id, record.parent_id,
                    message=f"Tag hierarchy under {record.id} is deeper than {max_depth} levels",
                )
            nodes = []
            for child in children.get(record.id, []):
                if child.id in branch:
                    raise CycleDetectedError(child.id, record.id)
                nodes.append(build(child, depth + 1, branch | {child.id}))
            return TagTreeNode(
                tag=tag_to_data(record),
                children=nodes,
                total_usage=record.usage_count + sum(n.total_usage for n in nodes),
                depth=depth,
            )

        return [build(root, 0, {root.id}) for root in children.get(None, [])]

    def get_tag_assignment_stats(self, tag_id: str) -> TagAssignmentStats:
        with self._reading(f"compute stats for tag {tag_id}"):
            files_count = self.db.query(func.count()).select_from(FileTag).filter(FileTag.tag_id == tag_id).scalar()
            folders_count = (
                self.db.query(func.count()).select_from(FolderTag).filter(FolderTag.tag_id == tag_id).scalar()
            )
            last_file = self.db.query(func.max(FileTag.created_at)).filter(FileTag.tag_id == tag_id).scalar()
            last_folder = self.db.query(func.max(FolderTag.created_at)).filter(FolderTag.tag_id == tag_id).scalar()
            top_files = self._max_per_tag(FileTag)
            top_folders = self._max_per_tag(FolderTag)

        stamps = [ensure_utc(s) for s in (last_file, last_folder) if s is not None]
        return TagAssignmentStats(
            tag_id=tag_id,
            files_count=files_count,
            folders_count=folders_count,
            total_usage=files_count + folders_count,
            last_used=max(stamps) if stamps else None,
            most_used_in_files=files_count == top_files,
            most_used_in_folders=folders_count == top_folders,
        )

    def _max_per_tag(self, relation) -> int:
        per_tag = (
            self.db.query(func.count().label("n"))
            .select_from(relation)
            .group_by(relation.tag_id)
            .subquery()
        )
        return self.db.query(func.max(per_tag.c.n)).scalar() or 0

    def get_popular_tags(self, limit: int) -> List[TagWithUsage]:
        """Active tags ranked by assignment count desc, then name asc.

        ``usage_percentage`` is relative to the summed usage of the rows
        returned, and 0 when that sum is 0.
        """
        with self._reading("rank popular tags"):
            file_counts = (
                self.db.query(FileTag.tag_id.label("tag_id"), func.count().label("n"))
                .group_by(FileTag.tag_id)
                .subquery()
            )
            folder_counts = (
                self.db.query(FolderTag.tag_id.label("tag_id"), func.count().label("n"))
                .group_by(FolderTag.tag_id)
                .subquery()
            )
            usage = (func.coalesce(file_counts.c.n, 0) + func.coalesce(folder_counts.c.n, 0)).label("usage")
            rows = (
                self.db.query(TagRecord, usage)
                .outerjoin(file_counts, file_counts.c.tag_id == TagRecord.id)
                .outerjoin(folder_counts, folder_counts.c.tag_id == TagRecord.id)
                .filter(TagRecord.is_active.is_(True))
                .order_by(usage.desc(), TagRecord.name.asc())
                .limit(limit)
                .all()
            )

        total = sum(count for _, count in rows)
        return [
            TagWithUsage(
                tag=tag_to_data(record),
                usage=count,
                usage_percentage=(count / total * 100) if total else 0.0,
            )
            for record, count in rows
        ]
