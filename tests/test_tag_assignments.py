"""Tag assignment tests: usage counters, cleanup, statistics, ranking and trees."""

import pytest
from sqlalchemy import func

from conftest import make_file, make_folder, make_tag
from foldertree.exceptions import CycleDetectedError
from foldertree.models import FileTag, FolderTag
from foldertree.repositories.tag_assignment_repository import TagAssignmentRepository
from foldertree.schemas.tag import SubjectType, TagType


def _usage(tags, tag_id):
    return tags.get_tag(tag_id).usage_count


def _relation_rows(db, tag_id):
    files = db.query(func.count()).select_from(FileTag).filter(FileTag.tag_id == tag_id).scalar()
    folders = db.query(func.count()).select_from(FolderTag).filter(FolderTag.tag_id == tag_id).scalar()
    return files + folders


class TestUsageCounting:
    """usage_count always equals the number of assignment rows."""

    def test_assign_then_unassign_scenario(self, db, folders, files, tags):
        x = make_folder(folders, "X")
        pdf = make_file(files, "a.pdf", folder_id=x.id)
        t1 = make_tag(tags, "t1")
        t2 = make_tag(tags, "t2")

        files.add_tags_to_file(pdf.id, [t1.id, t2.id])
        assert _usage(tags, t1.id) == 1
        assert _usage(tags, t2.id) == 1

        files.remove_tags_from_file(pdf.id, [t1.id])
        assert _usage(tags, t1.id) == 0
        assert _usage(tags, t2.id) == 1
        assert files.get_file(pdf.id).tag_ids == (t2.id,)

    def test_assign_is_idempotent(self, db, files, tags):
        pdf = make_file(files)
        t1 = make_tag(tags, "t1")
        repo = TagAssignmentRepository(db)
        assert repo.assign(SubjectType.FILE, pdf.id, [t1.id, t1.id]) == [t1.id]
        assert repo.assign(SubjectType.FILE, pdf.id, [t1.id]) == []
        assert _usage(tags, t1.id) == 1
        assert _relation_rows(db, t1.id) == 1

    def test_assign_sets_last_used(self, db, files, tags):
        pdf = make_file(files)
        t1 = make_tag(tags, "t1")
        assert tags.get_tag(t1.id).last_used_at is None
        files.add_tags_to_file(pdf.id, [t1.id])
        assert tags.get_tag(t1.id).last_used_at is not None

    def test_round_trip_restores_count(self, db, folders, files, tags):
        docs = make_folder(folders, "Docs")
        pdf = make_file(files)
        t1 = make_tag(tags, "t1")
        folders.set_folder_tags(docs.id, [t1.id])
        before = _usage(tags, t1.id)

        repo = TagAssignmentRepository(db)
        repo.assign(SubjectType.FILE, pdf.id, [t1.id])
        repo.unassign(SubjectType.FILE, pdf.id, [t1.id])

        assert _usage(tags, t1.id) == before == 1

    def test_unassign_missing_pair_leaves_count(self, db, files, tags):
        pdf = make_file(files)
        t1 = make_tag(tags, "t1")
        repo = TagAssignmentRepository(db)
        assert repo.unassign(SubjectType.FILE, pdf.id, [t1.id]) == []
        assert _usage(tags, t1.id) == 0

    def test_create_with_tags_counts(self, db, folders, files, tags):
        t1 = make_tag(tags, "t1")
        docs = make_folder(folders, "Docs", tag_ids=[t1.id])
        make_file(files, "a.pdf", folder_id=docs.id, tag_ids=[t1.id])
        assert _usage(tags, t1.id) == 2 == _relation_rows(db, t1.id)

    def test_replace_tag_set(self, db, folders, tags):
        t1 = make_tag(tags, "t1")
        t2 = make_tag(tags, "t2")
        docs = make_folder(folders, "Docs", tag_ids=[t1.id])

        updated = folders.set_folder_tags(docs.id, [t2.id])

        assert updated.tag_ids == (t2.id,)
        assert _usage(tags, t1.id) == 0 == _relation_rows(db, t1.id)
        assert _usage(tags, t2.id) == 1 == _relation_rows(db, t2.id)

    def test_get_tags_for_subject(self, db, files, tags):
        pdf = make_file(files)
        t1 = make_tag(tags, "beta")
        t2 = make_tag(tags, "alpha")
        files.add_tags_to_file(pdf.id, [t1.id, t2.id])
        assert [t.name for t in files.get_file_tags(pdf.id)] == ["alpha", "beta"]


class TestCleanup:

    def test_deactivates_only_unused_user_tags(self, db, folders, tags):
        used = make_tag(tags, "used")
        unused = make_tag(tags, "unused")
        system = make_tag(tags, "system", type=TagType.SYSTEM)
        make_folder(folders, "Docs", tag_ids=[used.id])

        removed = tags.cleanup_unused_tags()

        assert removed == [unused.id]
        assert {t.id for t in tags.get_all_tags()} == {used.id, system.id}


class TestAssignmentStats:

    def test_counts_and_most_used(self, db, folders, files, tags):
        t1 = make_tag(tags, "t1")
        t2 = make_tag(tags, "t2")
        make_folder(folders, "Docs", tag_ids=[t1.id])
        make_file(files, "a.pdf", tag_ids=[t1.id, t2.id])
        make_file(files, "b.pdf", tag_ids=[t2.id])

        s1 = tags.get_tag_stats(t1.id)
        assert (s1.files_count, s1.folders_count, s1.total_usage) == (1, 1, 2)
        assert s1.most_used_in_folders
        assert not s1.most_used_in_files
        assert s1.last_used is not None

        s2 = tags.get_tag_stats(t2.id)
        assert (s2.files_count, s2.folders_count) == (2, 0)
        assert s2.most_used_in_files
        assert not s2.most_used_in_folders

    def test_unused_tag_ties_at_zero(self, db, tags):
        t1 = make_tag(tags, "t1")
        stats = tags.get_tag_stats(t1.id)
        assert stats.total_usage == 0
        assert stats.last_used is None
        assert stats.most_used_in_files and stats.most_used_in_folders


class TestPopularTags:

    def test_ranking_with_name_tie_break(self, db, folders, tags):
        t1 = make_tag(tags, "t1")
        t3 = make_tag(tags, "t3")
        t2 = make_tag(tags, "t2")
        for i in range(5):
            tag_ids = [t1.id]
            if i < 3:
                tag_ids += [t2.id, t3.id]
            make_folder(folders, f"f{i}", tag_ids=tag_ids)

        popular = tags.get_popular_tags(2)

        assert [p.tag.id for p in popular] == [t1.id, t2.id]
        assert popular[0].usage == 5
        assert popular[0].usage_percentage == pytest.approx(5 / 8 * 100)
        assert popular[1].usage_percentage == pytest.approx(3 / 8 * 100)

    def test_zero_usage_gives_zero_percentage(self, db, tags):
        make_tag(tags, "t1")
        popular = tags.get_popular_tags()
        assert popular[0].usage == 0
        assert popular[0].usage_percentage == 0.0


class TestTagTree:

    def test_total_usage_sums_subtree(self, db, folders, tags):
        root = make_tag(tags, "root")
        child = make_tag(tags, "child", parent_id=root.id)
        leaf = make_tag(tags, "leaf", parent_id=child.id)
        other = make_tag(tags, "other")
        make_folder(folders, "A", tag_ids=[root.id, leaf.id])
        make_folder(folders, "B", tag_ids=[leaf.id, child.id])

        tree = tags.get_tag_tree()

        assert [n.tag.name for n in tree] == ["other", "root"]
        root_node = tree[1]
        assert root_node.total_usage == 1 + 1 + 2
        assert root_node.children[0].total_usage == 1 + 2
        assert root_node.children[0].children[0].tag.id == leaf.id
        assert root_node.children[0].children[0].depth == 2
        assert tree[0].tag.id == other.id

    def test_depth_guard(self, db, tags):
        parent = make_tag(tags, "l0")
        for level in range(1, 4):
            parent = make_tag(tags, f"l{level}", parent_id=parent.id)
        repo = TagAssignmentRepository(db)
        with pytest.raises(CycleDetectedError):
            repo.get_tag_tree(max_depth=2)
        assert len(repo.get_tag_tree(max_depth=3)) == 1
