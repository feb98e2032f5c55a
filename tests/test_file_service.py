"""Unit tests for FileService."""

import pytest

from conftest import make_file, make_folder, make_tag
from foldertree.core.config import settings
from foldertree.exceptions import (
    DuplicateNameError,
    FileEntryNotFoundError,
    FolderNotFoundError,
    TagNotFoundError,
    ValidationFailedError,
)
from foldertree.schemas.file import FileCategory, FileStatus, FileUpdate


class TestCreateFile:

    def test_tagged_file_in_folder(self, folders, files, tags):
        x = make_folder(folders, "X")
        t1 = make_tag(tags, "t1")
        t2 = make_tag(tags, "t2")

        pdf = make_file(files, "a.pdf", folder_id=x.id, tag_ids=[t1.id, t2.id])

        assert pdf.extension == "pdf"
        assert pdf.category == FileCategory.DOCUMENT
        assert pdf.path == "X/a.pdf"
        assert set(pdf.tag_ids) == {t1.id, t2.id}
        assert tags.get_tag(t1.id).usage_count == 1
        assert [f.id for f in files.get_files_in_folder(x.id)] == [pdf.id]

    def test_duplicate_name_in_folder(self, folders, files):
        x = make_folder(folders, "X")
        make_file(files, "a.pdf", folder_id=x.id)
        with pytest.raises(DuplicateNameError):
            make_file(files, "a.pdf", folder_id=x.id)
        # same name elsewhere is fine
        make_file(files, "a.pdf")

    def test_unknown_tag(self, files):
        with pytest.raises(TagNotFoundError):
            make_file(files, tag_ids=["tag-missing"])

    def test_unknown_folder(self, files):
        with pytest.raises(FolderNotFoundError):
            make_file(files, folder_id="folder-missing")

    def test_size_limit(self, files, monkeypatch):
        monkeypatch.setattr(settings, "max_file_size_bytes", 2048)
        make_file(files, "ok.pdf", size=2048)
        with pytest.raises(ValidationFailedError) as exc:
            make_file(files, "big.pdf", size=2049)
        assert exc.value.errors[0].field == "metadata.size"
        assert exc.value.errors[0].code == "FILE_TOO_LARGE"

    def test_root_files_listing(self, folders, files):
        x = make_folder(folders, "X")
        make_file(files, "inside.pdf", folder_id=x.id)
        loose = make_file(files, "loose.pdf")
        assert [f.id for f in files.get_files_in_folder(None)] == [loose.id]


class TestMoveAndRename:

    def test_move_to_same_folder_fails(self, folders, files):
        x = make_folder(folders, "X")
        pdf = make_file(files, "a.pdf", folder_id=x.id)
        with pytest.raises(ValidationFailedError) as exc:
            files.move_file(pdf.id, x.id)
        assert exc.value.errors[0].code == "SAME_FOLDER"

    def test_move_updates_path(self, folders, files):
        x = make_folder(folders, "X")
        y = make_folder(folders, "Y")
        pdf = make_file(files, "a.pdf", folder_id=x.id)
        moved = files.move_file(pdf.id, y.id)
        assert moved.folder_id == y.id
        assert moved.path == "Y/a.pdf"
        assert files.move_file(pdf.id, None).path == "a.pdf"

    def test_move_onto_name_clash(self, folders, files):
        x = make_folder(folders, "X")
        y = make_folder(folders, "Y")
        make_file(files, "a.pdf", folder_id=y.id)
        pdf = make_file(files, "a.pdf", folder_id=x.id)
        with pytest.raises(DuplicateNameError):
            files.move_file(pdf.id, y.id)

    def test_rename_rederives_extension(self, files):
        pdf = make_file(files, "a.pdf")
        renamed = files.rename_file(pdf.id, "a.png")
        assert renamed.extension == "png"
        assert renamed.category == FileCategory.IMAGE

    def test_folder_rename_moves_file_paths(self, folders, files):
        x = make_folder(folders, "X")
        sub = make_folder(folders, "Sub", x.id)
        pdf = make_file(files, "a.pdf", folder_id=sub.id)
        folders.rename_folder(x.id, "Renamed")
        assert files.get_file(pdf.id).path == "Renamed/Sub/a.pdf"


class TestFileTags:

    def test_add_unknown_tag(self, files):
        pdf = make_file(files)
        with pytest.raises(TagNotFoundError):
            files.add_tags_to_file(pdf.id, ["tag-missing"])

    def test_update_replaces_tag_set(self, files, tags):
        t1 = make_tag(tags, "t1")
        t2 = make_tag(tags, "t2")
        pdf = make_file(files, tag_ids=[t1.id])
        updated = files.update_file(pdf.id, FileUpdate(tag_ids=[t2.id]))
        assert updated.tag_ids == (t2.id,)
        assert tags.get_tag(t1.id).usage_count == 0


class TestDeleteFile:

    def test_deleted_file_is_gone(self, files):
        pdf = make_file(files)
        files.delete_file(pdf.id)
        with pytest.raises(FileEntryNotFoundError):
            files.get_file(pdf.id)
        make_file(files)


class TestFilesOfDeletedFolder:

    @pytest.fixture()
    def stranded(self, folders, files):
        x = make_folder(folders, "X")
        pdf = make_file(files, "a.pdf", folder_id=x.id)
        folders.delete_folder(x.id, force=True)
        return pdf

    def test_rename_keeps_folder_path(self, files, stranded):
        renamed = files.rename_file(stranded.id, "b.pdf")
        assert renamed.path == "X/b.pdf"
        assert files.update_file(stranded.id, FileUpdate(description="kept")).description == "kept"

    def test_recreated_folder_cannot_reuse_path(self, folders, files, stranded):
        x = make_folder(folders, "X")
        with pytest.raises(DuplicateNameError):
            make_file(files, "a.pdf", folder_id=x.id)
        assert files.get_files_in_folder(x.id) == []

    def test_move_out_of_deleted_folder(self, folders, files, stranded):
        y = make_folder(folders, "Y")
        assert files.move_file(stranded.id, y.id).path == "Y/a.pdf"


class TestFileStatusUpdates:

    def test_delete_through_update_refused(self, files):
        pdf = make_file(files)
        with pytest.raises(ValidationFailedError) as exc:
            files.update_file(pdf.id, FileUpdate(status=FileStatus.DELETED))
        assert exc.value.errors[0].code == "INVALID_STATUS"
        assert files.get_file(pdf.id).status == FileStatus.ACTIVE

    def test_archive_returns_file(self, files):
        pdf = make_file(files)
        assert files.update_file(pdf.id, FileUpdate(status=FileStatus.ARCHIVED)).status == FileStatus.ARCHIVED
