"""Unit tests for the entity models and validation utilities.

No database involved: covers factories, derived path/level fields,
mutator rules, self-validation and clone independence.
"""

import pytest

from foldertree.entities.extensions import category_for_extension, split_extension
from foldertree.entities.file import FileFactory
from foldertree.entities.folder import FolderFactory
from foldertree.entities.tag import TagFactory
from foldertree.entities.validation import ValidationUtils
from foldertree.exceptions import InvalidStateError, ProtectedResourceError, ValidationFailedError
from foldertree.schemas.common import ColorInfo
from foldertree.schemas.file import FileCategory, FileCreate, FileMetadata, FileStatus, ImageMetadata
from foldertree.schemas.folder import FolderCreate, FolderStatus, FolderType, ViewMode, ViewSettingsUpdate
from foldertree.schemas.tag import TagCreate, TagType


class TestValidationUtils:

    def test_required_rejects_blank_strings(self):
        assert ValidationUtils.required("  ", "name").code == "REQUIRED"
        assert ValidationUtils.required(None, "name").code == "REQUIRED"
        assert ValidationUtils.required("x", "name") is None

    def test_length_bounds(self):
        assert ValidationUtils.min_length("", 1, "name").code == "MIN_LENGTH"
        assert ValidationUtils.max_length("abcd", 3, "name").code == "MAX_LENGTH"
        assert ValidationUtils.max_length(None, 3, "name") is None

    def test_numeric_bounds(self):
        assert ValidationUtils.in_range(-1, "size", minimum=0).code == "OUT_OF_RANGE"
        assert ValidationUtils.in_range(5, "size", minimum=0, maximum=5) is None

    def test_file_size_limit(self):
        error = ValidationUtils.file_size(11, 10)
        assert error.code == "FILE_TOO_LARGE"
        assert error.field == "metadata.size"

    def test_invalid_characters_lists_offenders(self):
        error = ValidationUtils.invalid_characters("a/b:c", '<>:"/\\|?*', "name")
        assert error.code == "INVALID_CHARACTERS"
        assert "/" in error.message and ":" in error.message


class TestColorInfo:

    def test_rgb_derived_from_hex(self):
        color = ColorInfo.from_hex("#FF4444")
        assert color.hex == "#ff4444"
        assert (color.rgb.r, color.rgb.g, color.rgb.b) == (255, 68, 68)

    def test_rejects_malformed_hex(self):
        with pytest.raises(ValueError):
            ColorInfo(hex="red")


class TestFolderEntity:

    def test_root_folder_has_level_zero_and_bare_path(self):
        folder = FolderFactory.create(FolderCreate(name="  Docs "))
        assert folder.name == "Docs"
        assert folder.path == "Docs"
        assert folder.level == 0
        assert folder.is_root

    def test_child_path_and_level_follow_parent(self):
        folder = FolderFactory.create(FolderCreate(name="Q1", parent_id="folder-x"), parent_path="Docs/2024")
        assert folder.path == "Docs/2024/Q1"
        assert folder.level == 2

    def test_set_parent_recomputes_path_and_level(self):
        folder = FolderFactory.create(FolderCreate(name="Q1"))
        folder.set_parent("folder-y", "Archive")
        assert folder.path == "Archive/Q1"
        assert folder.level == 1
        folder.set_parent(None)
        assert folder.path == "Q1"
        assert folder.level == 0

    def test_set_name_uses_supplied_parent_path(self):
        folder = FolderFactory.create(FolderCreate(name="Q1", parent_id="p"), parent_path="Docs")
        folder.set_name("Q2", "Docs")
        assert folder.path == "Docs/Q2"

    def test_cannot_be_own_parent(self):
        folder = FolderFactory.create(FolderCreate(name="Loop"))
        with pytest.raises(ValidationFailedError) as exc:
            folder.set_parent(folder.id, "Loop")
        assert exc.value.errors[0].field == "parent_id"

    def test_blank_rename_rejected(self):
        folder = FolderFactory.create(FolderCreate(name="Docs"))
        with pytest.raises(ValidationFailedError):
            folder.set_name("   ")

    def test_validate_reports_without_raising(self):
        folder = FolderFactory.create(FolderCreate(name="bad/name" + "x" * 100, description="d" * 501))
        codes = {(e.field, e.code) for e in folder.validate()}
        assert ("name", "MAX_LENGTH") in codes
        assert ("name", "INVALID_CHARACTERS") in codes
        assert ("description", "MAX_LENGTH") in codes

    def test_system_folder_is_protected(self):
        folder = FolderFactory.create_system_folder("Inbox")
        assert folder.type == FolderType.SYSTEM
        assert folder.is_system_folder
        assert folder.is_protected
        assert not folder.can_be_deleted

    def test_unprotect_system_folder_is_invalid_state(self):
        folder = FolderFactory.create_system_folder("Inbox")
        with pytest.raises(InvalidStateError):
            folder.unprotect()

    def test_unprotect_regular_folder(self):
        folder = FolderFactory.create(FolderCreate(name="Docs", is_protected=True))
        folder.unprotect()
        assert folder.can_be_deleted

    def test_deleting_protected_folder_refused(self):
        folder = FolderFactory.create(FolderCreate(name="Docs", is_protected=True))
        with pytest.raises(ProtectedResourceError):
            folder.set_status(FolderStatus.DELETED)

    def test_archiving_stamps_archived_at(self):
        folder = FolderFactory.create(FolderCreate(name="Docs"))
        folder.set_status(FolderStatus.ARCHIVED)
        assert folder.archived_at is not None
        folder.set_status(FolderStatus.ACTIVE)
        assert folder.archived_at is None

    def test_mutators_refresh_updated_at(self):
        folder = FolderFactory.create(FolderCreate(name="Docs"))
        before = folder.updated_at
        folder.set_favorite(True)
        assert folder.updated_at >= before
        assert folder.is_favorite

    def test_view_settings_merge(self):
        folder = FolderFactory.create(FolderCreate(name="Docs"))
        folder.set_view_settings(ViewSettingsUpdate(view_mode=ViewMode.LIST))
        settings = folder.view_settings
        assert settings.view_mode == ViewMode.LIST
        assert settings.sort_by.value == "name"

    def test_clone_is_independent(self):
        folder = FolderFactory.create(FolderCreate(name="Docs", tag_ids=["t1"]))
        copy = folder.clone()
        copy.set_name("Other")
        copy.set_tag_ids(["t2"])
        assert folder.name == "Docs"
        assert folder.tag_ids == ("t1",)
        assert copy.id == folder.id


class TestFileEntity:

    def test_extension_and_category_derived_from_name(self):
        file = FileFactory.create(FileCreate(name="Report.PDF"))
        assert file.extension == "pdf"
        assert file.category == FileCategory.DOCUMENT
        assert file.original_name == "Report.PDF"

    def test_path_in_folder(self):
        file = FileFactory.create(FileCreate(name="a.pdf", folder_id="f1"), folder_path="Docs/2024")
        assert file.path == "Docs/2024/a.pdf"

    def test_root_file_has_bare_path(self):
        file = FileFactory.create(FileCreate(name="a.pdf"))
        assert file.path == "a.pdf"

    def test_missing_extension_fails_validation(self):
        file = FileFactory.create(FileCreate(name="README"))
        assert any(e.field == "extension" and e.code == "REQUIRED" for e in file.validate())

    def test_size_bounds(self):
        file = FileFactory.create(FileCreate(name="a.bin", metadata=FileMetadata(size=11)))
        assert [e.code for e in file.validate(max_size=10)] == ["FILE_TOO_LARGE"]
        negative = FileFactory.create(FileCreate(name="a.bin", metadata=FileMetadata(size=-1)))
        assert [e.code for e in negative.validate()] == ["OUT_OF_RANGE"]

    def test_image_dimensions_must_be_positive(self):
        file = FileFactory.create(FileCreate(
            name="a.png",
            metadata=FileMetadata(size=1, image=ImageMetadata(width=0, height=10)),
        ))
        assert [e.field for e in file.validate()] == ["metadata.image.width"]

    def test_rename_with_new_suffix_updates_category(self):
        file = FileFactory.create(FileCreate(name="notes.txt"))
        file.set_name("notes.py")
        assert file.category == FileCategory.CODE

    def test_archive_status(self):
        file = FileFactory.create(FileCreate(name="a.pdf"))
        file.set_status(FileStatus.ARCHIVED)
        assert file.archived_at is not None


class TestTagEntity:

    def test_name_trimmed(self):
        tag = TagFactory.create(TagCreate(name="  Work  ", color=ColorInfo.from_hex("#4444ff")))
        assert tag.name == "Work"
        assert tag.usage_count == 0
        assert tag.is_active

    def test_name_length_limits(self):
        tag = TagFactory.create(TagCreate(name="x" * 51, color=ColorInfo.from_hex("#000000")))
        assert [e.code for e in tag.validate()] == ["MAX_LENGTH"]

    def test_description_limit(self):
        tag = TagFactory.create(TagCreate(name="ok", description="d" * 201, color=ColorInfo.from_hex("#000000")))
        assert [e.field for e in tag.validate()] == ["description"]

    def test_system_tag_cannot_be_deactivated(self):
        tag = TagFactory.create(TagCreate(name="Core", type=TagType.SYSTEM, color=ColorInfo.from_hex("#000000")))
        with pytest.raises(ProtectedResourceError):
            tag.deactivate()

    def test_cannot_be_own_parent(self):
        tag = TagFactory.create(TagCreate(name="Loop", color=ColorInfo.from_hex("#000000")))
        with pytest.raises(ValidationFailedError):
            tag.set_parent(tag.id)


class TestExtensions:

    @pytest.mark.parametrize("extension, category", [
        ("pdf", FileCategory.DOCUMENT),
        ("JPG", FileCategory.IMAGE),
        ("mkv", FileCategory.VIDEO),
        ("flac", FileCategory.AUDIO),
        ("rs", FileCategory.CODE),
        ("7z", FileCategory.ARCHIVE),
        ("xlsx", FileCategory.SPREADSHEET),
        ("json", FileCategory.OTHER),
        ("unknown", FileCategory.OTHER),
    ])
    def test_category_table(self, extension, category):
        assert category_for_extension(extension) == category

    def test_split_extension(self):
        assert split_extension("archive.tar.GZ") == ("archive.tar", "gz")
        assert split_extension(".bashrc") == (".bashrc", "")
        assert split_extension("README") == ("README", "")
