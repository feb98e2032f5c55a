"""Shared test fixtures for the foldertree test suite.

Every test gets a fresh in-memory SQLite database with foreign keys
enabled, so tests are isolated and need no external services.
"""

import os

os.environ["LOG_FORMAT"] = "text"
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest

from foldertree.database import build_engine, create_session_factory, init_database
from foldertree.schemas.common import ColorInfo
from foldertree.schemas.file import FileCreate, FileMetadata
from foldertree.schemas.folder import FolderCreate
from foldertree.schemas.tag import TagCreate
from foldertree.services.file_service import FileService
from foldertree.services.folder_service import FolderService
from foldertree.services.tag_service import TagService


@pytest.fixture()
def engine():
    engine = build_engine("sqlite://")
    init_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def db(engine):
    """Per-test database session."""
    session = create_session_factory(engine)()
    yield session
    session.close()


@pytest.fixture()
def folders(db):
    return FolderService(db)


@pytest.fixture()
def files(db):
    return FileService(db)


@pytest.fixture()
def tags(db):
    return TagService(db)


def make_folder(svc: FolderService, name: str = "Docs", parent_id=None, **overrides):
    return svc.create_folder(FolderCreate(name=name, parent_id=parent_id, **overrides))


def make_file(svc: FileService, name: str = "a.pdf", folder_id=None, size: int = 1024, **overrides):
    return svc.create_file(FileCreate(
        name=name,
        folder_id=folder_id,
        metadata=FileMetadata(size=size),
        **overrides,
    ))


def make_tag(svc: TagService, name: str = "Work", color: str = "#4444ff", **overrides):
    return svc.create_tag(TagCreate(name=name, color=ColorInfo.from_hex(color), **overrides))
