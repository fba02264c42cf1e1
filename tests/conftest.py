"""Shared pytest fixtures and test helpers for Noters tests."""

import logging

import pytest

from noters.backends import FilesystemBackend, SqliteBackend
from noters.log import LOGGER_NAME
from noters.models import Note
from noters.service import NoteService


@pytest.fixture(autouse=True)
def reset_noters_logger():
    """Undo any logging setup a test performed."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def fs_backend(tmp_path):
    """Create a filesystem backend in a temporary directory."""
    return FilesystemBackend(tmp_path / "notes")


@pytest.fixture
def sqlite_backend(tmp_path):
    """Create a SQLite backend in a temporary database."""
    backend = SqliteBackend(tmp_path / "notes.db")
    yield backend
    backend.close()


@pytest.fixture(params=["filesystem", "sqlite"])
def backend(request, tmp_path):
    """Create each backend in turn."""
    if request.param == "filesystem":
        yield FilesystemBackend(tmp_path / "notes")
    else:
        sqlite = SqliteBackend(tmp_path / "notes.db")
        yield sqlite
        sqlite.close()


@pytest.fixture
def make_service(backend):
    """Build note services sharing the test backend."""

    def _make(
        user="alice",
        max_name_size=32,
        max_content_size=1024,
        max_note_count=100,
        flag=None,
    ):
        return NoteService(
            backend,
            user,
            max_name_size,
            max_content_size,
            max_note_count,
            flag=flag,
        )

    return _make


@pytest.fixture
def service(make_service):
    """A note service acting as ``alice``."""
    return make_service()


@pytest.fixture
def other_service(make_service):
    """A note service acting as ``bob``, on the same backend."""
    return make_service(user="bob")


# Test helper functions (not fixtures, but available for import)


def store_note(backend, note_id, owner="alice", name="Note", content="Some content"):
    """
    Helper to write a note straight to a backend, skipping every service rule.

    Args:
        backend: The backend to write to
        note_id: Note ID
        owner: Note owner
        name: Note name
        content: Note content

    Returns:
        The stored Note
    """
    note = Note(id=note_id, owner=owner, name=name, content=content)
    backend.create(note)
    return note
