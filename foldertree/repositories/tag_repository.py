"""Tag repository for database operations."""

import logging
from typing import List, Optional

from sqlalchemy.orm import Query

from ..entities.base import utcnow
from ..entities.tag import Tag, TagFactory
from ..exceptions import TagNotFoundError, ValidationFailedError
from ..entities.validation import FieldError
from ..models import TagRecord
from ..schemas.tag import TagFilter, TagPriority, TagType, TagUpdate
from .base import BaseRepository
from .mappers import tag_to_data, write_tag

logger = logging.getLogger(__name__)


class TagRepository(BaseRepository[TagRecord, Tag]):
    """Data access for tags. Inactive tags are invisible to every read."""

    model_class = TagRecord
    not_found_error = TagNotFoundError
    entity_name = "tag"

    def _base_query(self) -> Query:
        return self.db.query(TagRecord).filter(TagRecord.is_active.is_(True))

    def _to_entities(self, records: List[TagRecord]) -> List[Tag]:
        return [TagFactory.from_data(tag_to_data(r)) for r in records]

    def _apply_filters(self, query: Query, filters: Optional[TagFilter]) -> Query:
        if filters is None:
            return query
        if filters.type is not None:
            query = query.filter(TagRecord.type == filters.type.value)
        if filters.priority is not None:
            query = query.filter(TagRecord.priority == filters.priority.value)
        if filters.root_only:
            query = query.filter(TagRecord.parent_id.is_(None))
        elif filters.parent_id is not None:
            query = query.filter(TagRecord.parent_id == filters.parent_id)
        if filters.min_usage is not None:
            query = query.filter(TagRecord.usage_count >= filters.min_usage)
        return query

    def _ordering(self) -> list:
        return [TagRecord.usage_count.desc(), TagRecord.name.asc()]

    def _soft_delete(self, record: TagRecord) -> None:
        record.is_active = False
        record.updated_at = utcnow()

    # -- finders ----------------------------------------------------------

    def find_by_name(self, name: str) -> Optional[Tag]:
        """Active tag with exactly this (trimmed) name."""
        with self._reading("find tag by name"):
            record = self._base_query().filter(TagRecord.name == name.strip()).first()
            return self._to_entity(record) if record is not None else None

    def exists_by_name(self, name: str, exclude_id: Optional[str] = None) -> bool:
        with self._reading("check tag name"):
            query = self._base_query().filter(TagRecord.name == name.strip())
            if exclude_id is not None:
                query = query.filter(TagRecord.id != exclude_id)
            return query.first() is not None

    def find_by_type(self, tag_type: TagType) -> List[Tag]:
        return self.find_all(TagFilter(type=tag_type))

    def find_by_priority(self, priority: TagPriority) -> List[Tag]:
        return self.find_all(TagFilter(priority=priority))

    def find_by_parent(self, parent_id: Optional[str]) -> List[Tag]:
        if parent_id is None:
            return self.find_all(TagFilter(root_only=True))
        return self.find_all(TagFilter(parent_id=parent_id))

    def find_by_usage_count(self, min_usage: int) -> List[Tag]:
        return self.find_all(TagFilter(min_usage=min_usage))

    def find_most_used(self, limit: int = 10) -> List[Tag]:
        return self.find_all(TagFilter(limit=limit))

    def find_system_tags(self) -> List[Tag]:
        return self.find_by_type(TagType.SYSTEM)

    def get_parent_id(self, tag_id: str) -> Optional[str]:
        """Parent of an active tag; None at the root or when the row is missing."""
        with self._reading(f"read parent of tag {tag_id}"):
            row = self._base_query().with_entities(TagRecord.parent_id).filter(TagRecord.id == tag_id).first()
            return row.parent_id if row is not None else None

    def get_hierarchy(self, tag_id: str) -> List[Tag]:
        """The tag followed by all of its active descendants, breadth first."""
        with self._reading(f"read hierarchy of tag {tag_id}"):
            root = self._require_record(tag_id)
            ordered = [root]
            seen = {root.id}
            frontier = [root.id]
            while frontier:
                children = (
                    self._base_query()
                    .filter(TagRecord.parent_id.in_(frontier))
                    .order_by(TagRecord.name)
                    .all()
                )
                frontier = []
                for child in children:
                    if child.id not in seen:
                        seen.add(child.id)
                        ordered.append(child)
                        frontier.append(child.id)
            return self._to_entities(ordered)

    # -- writes -----------------------------------------------------------

    def create(self, tag: Tag) -> Tag:
        tag.ensure_valid()
        data = tag.to_data()
        with self._writing(f"create tag '{data.name}'"):
            record = TagRecord()
            write_tag(record, data)
            self.db.add(record)
        return self.get_by_id(data.id)

    def update(self, tag_id: str, patch: TagUpdate) -> Tag:
        """Re-load, apply ``patch`` through the entity, validate, write back.

        Deactivating through ``is_active=False`` hides the tag from later
        reads, so the returned entity is built from the written state.
        """
        with self._writing(f"update tag {tag_id}"):
            record = self._require_record(tag_id)
            tag = self._to_entity(record)
            tag.apply(patch.changes())
            tag.ensure_valid()
            write_tag(record, tag.to_data())
        return tag

    def bulk_create(self, tags: List[Tag]) -> List[Tag]:
        """Insert every tag or none: one invalid item fails the whole batch."""
        errors: List[FieldError] = []
        for index, tag in enumerate(tags):
            for error in tag.validate():
                errors.append(FieldError(field=f"tags[{index}].{error.field}", message=error.message, code=error.code))
        if errors:
            raise ValidationFailedError(errors)

        with self._writing(f"bulk create {len(tags)} tags"):
            for tag in tags:
                record = TagRecord()
                write_tag(record, tag.to_data())
                self.db.add(record)
        logger.info("Bulk-created tags", extra={"count": len(tags)})
        return [self.get_by_id(tag.id) for tag in tags]

    def bulk_delete(self, tag_ids: List[str]) -> None:
        """Deactivate every tag or none: a missing id fails the whole batch."""
        with self._writing(f"bulk delete {len(tag_ids)} tags"):
            for tag_id in dict.fromkeys(tag_ids):
                self._soft_delete(self._require_record(tag_id))

    def create_hierarchy(self, parent_id: str, child_ids: List[str]) -> List[Tag]:
        """Re-parent ``child_ids`` under ``parent_id`` in one transaction."""
        with self._writing(f"attach {len(child_ids)} tags under {parent_id}"):
            self._require_record(parent_id)
            records = []
            for child_id in dict.fromkeys(child_ids):
                record = self._require_record(child_id)
                tag = self._to_entity(record)
                tag.set_parent(parent_id)
                write_tag(record, tag.to_data())
                records.append(record)
            children = self._to_entities(records)
        return children
