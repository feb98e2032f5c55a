"""Unit tests for TagService, system tag seeding and store bootstrap."""

import json

import pytest

from conftest import make_tag
from foldertree.bootstrap import bootstrap
from foldertree.core.seeder import seed_system_tags
from foldertree.exceptions import (
    CycleDetectedError,
    DuplicateNameError,
    ProtectedResourceError,
    TagNotFoundError,
    ValidationFailedError,
)
from foldertree.schemas.common import ColorInfo
from foldertree.schemas.tag import TagCreate, TagFilter, TagPriority, TagType
from foldertree.services.tag_service import TagService


def _create(name, **kw):
    return TagCreate(name=name, color=ColorInfo.from_hex("#123456"), **kw)


class TestTagNames:

    def test_rename_to_own_name(self, tags):
        work = make_tag(tags, "Work")
        assert tags.rename_tag(work.id, "Work").name == "Work"

    def test_rename_onto_existing(self, tags):
        make_tag(tags, "Work")
        life = make_tag(tags, "Life")
        with pytest.raises(DuplicateNameError):
            tags.rename_tag(life.id, "Work")

    def test_deactivated_name_is_free(self, tags):
        work = make_tag(tags, "Work")
        tags.delete_tag(work.id)
        assert make_tag(tags, "Work").id != work.id

    def test_blank_name(self, tags):
        with pytest.raises(ValidationFailedError):
            make_tag(tags, "  ")


class TestTagLifecycle:

    def test_system_tag_cannot_be_deleted(self, tags):
        system = make_tag(tags, "Important", type=TagType.SYSTEM)
        with pytest.raises(ProtectedResourceError):
            tags.delete_tag(system.id)
        assert tags.get_tag(system.id).is_active

    def test_deleted_tag_not_found(self, tags):
        work = make_tag(tags)
        tags.delete_tag(work.id)
        with pytest.raises(TagNotFoundError):
            tags.get_tag(work.id)

    def test_filter_by_priority(self, tags):
        make_tag(tags, "Urgent", priority=TagPriority.HIGH)
        make_tag(tags, "Later")
        found = tags.get_all_tags(TagFilter(priority=TagPriority.HIGH))
        assert [t.name for t in found] == ["Urgent"]


class TestTagHierarchy:

    def test_set_parent_cycle(self, tags):
        a = make_tag(tags, "a")
        b = make_tag(tags, "b", parent_id=a.id)
        c = make_tag(tags, "c", parent_id=b.id)
        with pytest.raises(CycleDetectedError):
            tags.set_parent(a.id, c.id)
        with pytest.raises(CycleDetectedError):
            tags.set_parent(a.id, a.id)

    def test_detach(self, tags):
        a = make_tag(tags, "a")
        b = make_tag(tags, "b", parent_id=a.id)
        assert tags.set_parent(b.id, None).parent_id is None

    def test_attach_children(self, tags):
        parent = make_tag(tags, "parent")
        kids = [make_tag(tags, name) for name in ("x", "y")]
        attached = tags.attach_children(parent.id, [k.id for k in kids])
        assert {t.parent_id for t in attached} == {parent.id}

    def test_unknown_parent(self, tags):
        with pytest.raises(TagNotFoundError):
            make_tag(tags, "orphan", parent_id="tag-missing")


class TestBulkOperations:

    def test_bulk_create_all_or_nothing(self, tags):
        with pytest.raises(DuplicateNameError):
            tags.bulk_create_tags([_create("one"), _create("two"), _create("one")])
        assert tags.get_all_tags() == []

        created = tags.bulk_create_tags([_create("one"), _create("two")])
        assert sorted(t.name for t in created) == ["one", "two"]

    def test_bulk_delete_refuses_system(self, tags):
        user = make_tag(tags, "user")
        system = make_tag(tags, "system", type=TagType.SYSTEM)
        with pytest.raises(ProtectedResourceError):
            tags.bulk_delete_tags([user.id, system.id])
        assert tags.get_tag(user.id).is_active

        tags.bulk_delete_tags([user.id])
        assert [t.id for t in tags.get_all_tags()] == [system.id]


class TestSystemTags:

    def test_best_effort_creation(self, tags):
        make_tag(tags, "Work")
        result = tags.create_system_tags([_create("Important"), _create("Work")])
        assert [t.name for t in result.created] == ["Important"]
        assert result.created[0].type == TagType.SYSTEM
        assert [s.name for s in result.skipped] == ["Work"]

    def test_seed_from_packaged_fixture(self, db):
        result = seed_system_tags(db)
        assert len(result.created) == 6
        assert result.skipped == []
        assert all(t.type == TagType.SYSTEM for t in result.created)

        again = seed_system_tags(db)
        assert again.created == [] and again.skipped == []

    def test_seed_skips_invalid_items(self, db, tmp_path):
        fixture = tmp_path / "tags.json"
        fixture.write_text(json.dumps({"tags": [
            {"name": "Good", "color": {"hex": "#00ff00"}},
            {"name": "Bad", "color": {"hex": "green"}},
        ]}))

        result = seed_system_tags(db, fixture)

        assert [t.name for t in result.created] == ["Good"]
        assert [s.name for s in result.skipped] == ["Bad"]


class TestBootstrap:

    def test_bootstrap_seeds_in_memory_store(self):
        session_factory = bootstrap("sqlite://", configure_logging=False)
        db = session_factory()
        try:
            names = {t.name for t in TagService(db).get_all_tags()}
        finally:
            db.close()
        assert {"Important", "Work", "Favorite"} <= names
        assert len(names) == 6
