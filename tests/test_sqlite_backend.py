"""Unit tests for the SQLite note backend."""

import sqlite3

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError, OperationalError

from noters.backends import SqliteBackend
from noters.backends.sqlite import map_sqlalchemy_error
from noters.exc import (
    DuplicateRecord,
    NotADatabase,
    OtherBackendError,
    RecordCorrupted,
    RecordNotFound,
    SchemaMismatch,
    StorageBusy,
    StorageCorrupted,
    StorageIOError,
    StoragePermissionDenied,
)
from noters.models import Note, PartialNote


def make_note(note_id=0, owner="alice", name="Name", content="Content"):
    """Build a note with sensible defaults."""
    return Note(id=note_id, owner=owner, name=name, content=content)


def sqlite_error(cls, message, error_name=None):
    """Build a sqlite3 error, optionally tagged with its result code name."""
    error = cls(message)
    if error_name is not None:
        error.sqlite_errorname = error_name
    return error


class TestSqliteBackendInit:
    """Test cases for SqliteBackend construction."""

    def test_creates_notes_table(self, sqlite_backend):
        """Test the notes table exists with every column."""
        columns = {
            column["name"]
            for column in inspect(sqlite_backend.engine).get_columns("notes")
        }
        assert columns == {"id", "name", "owner", "content"}

    def test_reopens_existing_database(self, tmp_path):
        """Test notes survive closing and reopening the database."""
        path = tmp_path / "notes.db"
        with SqliteBackend(path) as backend:
            backend.create(make_note(3))
        with SqliteBackend(path) as backend:
            assert backend.read(3) == make_note(3)

    def test_wrong_schema(self, tmp_path):
        """Test a notes table missing columns raises SchemaMismatch."""
        path = tmp_path / "notes.db"
        conn = sqlite3.connect(path)
        conn.execute("CREATE TABLE notes (id INTEGER PRIMARY KEY, title TEXT)")
        conn.commit()
        conn.close()
        with pytest.raises(SchemaMismatch) as exc_info:
            SqliteBackend(path)
        assert "content" in exc_info.value.detail

    def test_not_a_database(self, tmp_path):
        """Test a file that isn't a database raises NotADatabase."""
        path = tmp_path / "notes.db"
        path.write_bytes(b"this is not a database" * 64)
        with pytest.raises(NotADatabase):
            SqliteBackend(path)


class TestSqliteBackendOperations:
    """Test cases for create/read/update/delete/list."""

    def test_round_trip(self, sqlite_backend):
        """Test a created note reads back unchanged."""
        note = make_note(5, name="Ünïcode", content="multi\nline\r\ncontent")
        assert sqlite_backend.create(note) == 5
        assert sqlite_backend.read(5) == note

    def test_create_duplicate(self, sqlite_backend):
        """Test creating an existing ID raises DuplicateRecord."""
        sqlite_backend.create(make_note(1))
        with pytest.raises(DuplicateRecord) as exc_info:
            sqlite_backend.create(make_note(1, name="Other"))
        assert exc_info.value.note_id == 1
        assert sqlite_backend.read(1).name == "Name"

    def test_usable_after_failed_write(self, sqlite_backend):
        """Test the session is rolled back after a failed write."""
        sqlite_backend.create(make_note(1))
        with pytest.raises(DuplicateRecord):
            sqlite_backend.create(make_note(1))
        sqlite_backend.create(make_note(2))
        assert [note.id for note in sqlite_backend.list()] == [1, 2]

    def test_read_missing(self, sqlite_backend):
        """Test reading an unknown ID raises RecordNotFound."""
        with pytest.raises(RecordNotFound) as exc_info:
            sqlite_backend.read(9)
        assert exc_info.value.note_id == 9

    def test_read_partial(self, sqlite_backend):
        """Test read_partial returns ID, owner and name."""
        sqlite_backend.create(make_note(3, owner="bob", name="Title"))
        assert sqlite_backend.read_partial(3) == PartialNote(
            id=3, owner="bob", name="Title"
        )

    def test_read_partial_missing(self, sqlite_backend):
        """Test read_partial of an unknown ID raises RecordNotFound."""
        with pytest.raises(RecordNotFound):
            sqlite_backend.read_partial(3)

    def test_update(self, sqlite_backend):
        """Test update replaces every field."""
        sqlite_backend.create(make_note(4))
        sqlite_backend.update(make_note(4, owner="bob", name="New", content="Fresh"))
        assert sqlite_backend.read(4) == make_note(
            4, owner="bob", name="New", content="Fresh"
        )

    def test_update_missing(self, sqlite_backend):
        """Test updating an unknown ID raises RecordNotFound and inserts nothing."""
        with pytest.raises(RecordNotFound):
            sqlite_backend.update(make_note(4))
        assert sqlite_backend.list() == []

    def test_delete(self, sqlite_backend):
        """Test delete removes the row."""
        sqlite_backend.create(make_note(4))
        sqlite_backend.delete(4)
        with pytest.raises(RecordNotFound):
            sqlite_backend.read(4)

    def test_delete_missing(self, sqlite_backend):
        """Test deleting an unknown ID raises RecordNotFound."""
        with pytest.raises(RecordNotFound):
            sqlite_backend.delete(4)

    def test_list_sorted_by_id(self, sqlite_backend):
        """Test list returns every note ordered by ID."""
        for note_id in (10, 2, 7):
            sqlite_backend.create(make_note(note_id, name=f"Note {note_id}"))
        assert sqlite_backend.list() == [
            PartialNote(id=2, owner="alice", name="Note 2"),
            PartialNote(id=7, owner="alice", name="Note 7"),
            PartialNote(id=10, owner="alice", name="Note 10"),
        ]

    def test_corrupted_row(self, tmp_path):
        """Test a row with a non-text name is skipped by list and fails read."""
        path = tmp_path / "notes.db"
        with SqliteBackend(path) as backend:
            backend.create(make_note(1))
        conn = sqlite3.connect(path)
        conn.execute(
            "INSERT INTO notes (id, name, owner, content) "
            "VALUES (2, X'4142', 'alice', 'Content')"
        )
        conn.commit()
        conn.close()
        with SqliteBackend(path) as backend:
            assert [note.id for note in backend.list()] == [1]
            with pytest.raises(RecordCorrupted):
                backend.read(2)

    def test_list_skips_notes_that_cannot_be_read(self, sqlite_backend):
        """Test a row with blank content is left out, like read rejects it."""
        sqlite_backend.create(make_note(1))
        sqlite_backend.create(make_note(2, content="  "))
        with pytest.raises(RecordCorrupted):
            sqlite_backend.read(2)
        assert [note.id for note in sqlite_backend.list()] == [1]


class TestMapSqlalchemyError:
    """Test cases for map_sqlalchemy_error()."""

    @pytest.mark.parametrize(
        ("error_name", "expected"),
        [
            ("SQLITE_BUSY", StorageBusy),
            ("SQLITE_BUSY_SNAPSHOT", StorageBusy),
            ("SQLITE_LOCKED", StorageBusy),
            ("SQLITE_PERM", StoragePermissionDenied),
            ("SQLITE_READONLY_DBMOVED", StoragePermissionDenied),
            ("SQLITE_AUTH", StoragePermissionDenied),
            ("SQLITE_CORRUPT", StorageCorrupted),
            ("SQLITE_NOTADB", NotADatabase),
            ("SQLITE_IOERR_WRITE", StorageIOError),
            ("SQLITE_CANTOPEN", StorageIOError),
            ("SQLITE_FULL", StorageIOError),
            ("SQLITE_SCHEMA", SchemaMismatch),
            ("SQLITE_MISMATCH", OtherBackendError),
        ],
    )
    def test_by_error_name(self, error_name, expected):
        """Test errors are classified by their SQLite result code."""
        orig = sqlite_error(sqlite3.OperationalError, "boom", error_name)
        error = OperationalError("SELECT 1", {}, orig)
        assert isinstance(map_sqlalchemy_error(error), expected)

    @pytest.mark.parametrize(
        ("message", "expected"),
        [
            ("database is locked", StorageBusy),
            ("file is not a database", NotADatabase),
            ("attempt to write a readonly database", StoragePermissionDenied),
            ("database disk image is malformed", StorageCorrupted),
            ("no such table: notes", SchemaMismatch),
            ("table notes has no column named owner", SchemaMismatch),
            ("something else entirely", OtherBackendError),
        ],
    )
    def test_by_message(self, message, expected):
        """Test errors without a result code are classified by message."""
        orig = sqlite_error(sqlite3.OperationalError, message)
        error = OperationalError("SELECT 1", {}, orig)
        assert isinstance(map_sqlalchemy_error(error), expected)

    def test_primary_key_violation(self):
        """Test a primary key violation becomes DuplicateRecord."""
        orig = sqlite_error(
            sqlite3.IntegrityError,
            "UNIQUE constraint failed: notes.id",
            "SQLITE_CONSTRAINT_PRIMARYKEY",
        )
        error = IntegrityError("INSERT", {}, orig)
        mapped = map_sqlalchemy_error(error, note_id=8)
        assert isinstance(mapped, DuplicateRecord)
        assert mapped.note_id == 8

    def test_other_constraint_violation(self):
        """Test other constraint violations are not mistaken for duplicates."""
        orig = sqlite_error(
            sqlite3.IntegrityError,
            "NOT NULL constraint failed: notes.name",
            "SQLITE_CONSTRAINT_NOTNULL",
        )
        error = IntegrityError("INSERT", {}, orig)
        assert isinstance(map_sqlalchemy_error(error, note_id=8), OtherBackendError)
