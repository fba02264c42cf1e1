"""Relational note backend: one ``notes`` table in a SQLite database."""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Final

from sqlalchemy import delete, insert, inspect, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from noters.backends.base import NoteBackend
from noters.db import (
    NOTES_COLUMNS,
    NOTES_TABLE,
    Base,
    NoteRow,
    create_engine_with_path,
)
from noters.exc import (
    BackendError,
    DuplicateRecord,
    NotADatabase,
    OtherBackendError,
    RecordCorrupted,
    RecordNotFound,
    SchemaMismatch,
    StorageBusy,
    StorageCorrupted,
    StorageInitFailed,
    StorageIOError,
    StoragePermissionDenied,
)
from noters.models import Note, PartialNote, is_valid_note_id

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import Engine, Row

logger = logging.getLogger(__name__)

#: Primary SQLite result codes mapped to the backend error they signal.
SQLITE_ERROR_MAP: Final[dict[str, type[BackendError]]] = {
    "SQLITE_BUSY": StorageBusy,
    "SQLITE_LOCKED": StorageBusy,
    "SQLITE_PERM": StoragePermissionDenied,
    "SQLITE_READONLY": StoragePermissionDenied,
    "SQLITE_AUTH": StoragePermissionDenied,
    "SQLITE_CORRUPT": StorageCorrupted,
    "SQLITE_NOTADB": NotADatabase,
}

#: Primary SQLite result codes that signal a failure of the underlying file.
SQLITE_IO_ERRORS: Final[frozenset[str]] = frozenset(
    {"SQLITE_IOERR", "SQLITE_CANTOPEN", "SQLITE_FULL"}
)

#: Message fragments that mean the schema isn't what we expect.
SCHEMA_ERROR_MESSAGES: Final[tuple[str, ...]] = (
    "no such table",
    "no such column",
    "has no column named",
)


def _primary_code(error_name: str) -> str:
    """
    Strip the extended part of an SQLite error name.

    ``SQLITE_BUSY_SNAPSHOT`` becomes ``SQLITE_BUSY``.
    """
    parts = error_name.split("_")
    return "_".join(parts[:2])


def map_sqlalchemy_error(
    error: SQLAlchemyError, note_id: int | None = None
) -> BackendError:
    """
    Classify a SQLAlchemy error as a :class:`~noters.exc.BackendError`.

    Args:
        error: The error raised by SQLAlchemy

    Keyword Args:
        note_id: The ID of the note being written, if any

    Returns:
        The matching backend error

    """
    orig = getattr(error, "orig", None)
    error_name = getattr(orig, "sqlite_errorname", None) or ""
    code = _primary_code(error_name)
    message = str(orig if orig is not None else error).lower()

    if isinstance(error, IntegrityError) and note_id is not None:
        if error_name == "SQLITE_CONSTRAINT_PRIMARYKEY" or (
            "unique constraint failed" in message and "notes.id" in message
        ):
            return DuplicateRecord(note_id)
    if code == "SQLITE_SCHEMA" or any(m in message for m in SCHEMA_ERROR_MESSAGES):
        return SchemaMismatch(str(orig if orig is not None else error))
    if code in SQLITE_ERROR_MAP:
        return SQLITE_ERROR_MAP[code]()
    if code in SQLITE_IO_ERRORS:
        return StorageIOError(error)
    # Older sqlite3 modules don't expose the error name
    if "database is locked" in message or "database table is locked" in message:
        return StorageBusy()
    if "file is not a database" in message:
        return NotADatabase()
    if "readonly database" in message:
        return StoragePermissionDenied()
    if "malformed" in message:
        return StorageCorrupted()
    return OtherBackendError(error)


class SqliteBackend(NoteBackend):
    """
    Stores notes in the ``notes`` table of a SQLite database.

    The backend owns a single session for its whole lifetime.  Every write is
    committed immediately, and rolled back if it fails.
    """

    def __init__(self, path: str | Path) -> None:
        #: The path to the SQLite database file.
        self.db_path = Path(path)
        try:
            #: The SQLAlchemy engine.
            self.engine: "Engine" = create_engine_with_path(self.db_path)
        except OSError as e:
            raise StorageInitFailed(str(self.db_path), e) from e
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise map_sqlalchemy_error(e) from e
        self._check_schema()
        #: The session every operation runs in.
        self.session: Session = sessionmaker(
            bind=self.engine, autoflush=False, expire_on_commit=False
        )()
        logger.debug(f"Using notes database: {self.db_path}")

    def _check_schema(self) -> None:
        """
        Make sure an existing notes table has every column we need.

        Raises:
            SchemaMismatch: a column is missing

        """
        try:
            found = inspect(self.engine).get_columns(NOTES_TABLE)
        except SQLAlchemyError as e:
            raise map_sqlalchemy_error(e) from e
        missing = NOTES_COLUMNS - {column["name"] for column in found}
        if missing:
            msg = f"{NOTES_TABLE} is missing columns: {', '.join(sorted(missing))}"
            raise SchemaMismatch(msg)

    @contextmanager
    def _transaction(self, note_id: int | None = None) -> "Iterator[Session]":
        """
        Run a unit of work, committing on success and mapping failures.

        Keyword Args:
            note_id: The ID of the note being written, if any

        Yields:
            The backend session

        """
        try:
            yield self.session
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise map_sqlalchemy_error(e, note_id=note_id) from e
        except BackendError:
            self.session.rollback()
            raise

    @staticmethod
    def _row_to_partial(note_id: int, row: "Row") -> PartialNote:
        if not is_valid_note_id(row.id) or not all(
            isinstance(value, str) for value in (row.name, row.owner)
        ):
            raise RecordCorrupted(note_id, "unexpected column values")
        return PartialNote(id=row.id, owner=row.owner, name=row.name)

    @classmethod
    def _row_to_note(cls, note_id: int, row: "Row") -> Note:
        partial = cls._row_to_partial(note_id, row)
        if not isinstance(row.content, str) or not row.content.strip():
            raise RecordCorrupted(note_id, "content is empty")
        return Note(
            id=partial.id, owner=partial.owner, name=partial.name, content=row.content
        )

    # ===============================
    # NoteBackend
    # ===============================

    def create(self, note: Note) -> int:
        with self._transaction(note_id=note.id) as session:
            session.execute(
                insert(NoteRow).values(
                    id=note.id, name=note.name, owner=note.owner, content=note.content
                )
            )
        logger.debug(f"Inserted note #{note.id}")
        return note.id

    def read(self, note_id: int) -> Note:
        with self._transaction(note_id=note_id) as session:
            row = session.execute(
                select(NoteRow.id, NoteRow.name, NoteRow.owner, NoteRow.content).where(
                    NoteRow.id == note_id
                )
            ).one_or_none()
        if row is None:
            raise RecordNotFound(note_id)
        return self._row_to_note(note_id, row)

    def read_partial(self, note_id: int) -> PartialNote:
        with self._transaction(note_id=note_id) as session:
            row = session.execute(
                select(NoteRow.id, NoteRow.name, NoteRow.owner).where(
                    NoteRow.id == note_id
                )
            ).one_or_none()
        if row is None:
            raise RecordNotFound(note_id)
        return self._row_to_partial(note_id, row)

    def update(self, note: Note) -> None:
        with self._transaction(note_id=note.id) as session:
            result = session.execute(
                update(NoteRow)
                .where(NoteRow.id == note.id)
                .values(name=note.name, owner=note.owner, content=note.content)
            )
            if result.rowcount == 0:
                raise RecordNotFound(note.id)
        logger.debug(f"Updated note #{note.id}")

    def delete(self, note_id: int) -> None:
        with self._transaction(note_id=note_id) as session:
            result = session.execute(delete(NoteRow).where(NoteRow.id == note_id))
            if result.rowcount == 0:
                raise RecordNotFound(note_id)
        logger.debug(f"Deleted note #{note_id}")

    def list(self) -> "list[PartialNote]":
        with self._transaction() as session:
            rows = session.execute(
                select(
                    NoteRow.id, NoteRow.name, NoteRow.owner, NoteRow.content
                ).order_by(NoteRow.id)
            ).all()
        notes: list[PartialNote] = []
        for row in rows:
            try:
                # Checked like a full read, so listed notes are exactly the
                # readable ones
                notes.append(self._row_to_note(row.id, row).to_partial())
            except RecordCorrupted as e:
                logger.warning(f"Skipping unreadable note row: {e}")
        return notes

    def close(self) -> None:
        self.session.close()
        self.engine.dispose()
