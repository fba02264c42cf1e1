"""SQLAlchemy database setup for Noters."""

from pathlib import Path
from typing import TYPE_CHECKING, Any, Final, cast

from sqlalchemy import Engine, Integer, Text, create_engine, event
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

if TYPE_CHECKING:
    import sqlite3

#: The name of the notes table.
NOTES_TABLE: Final[str] = "notes"
#: The columns the notes table must have.
NOTES_COLUMNS: Final[frozenset[str]] = frozenset({"id", "name", "owner", "content"})


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""


class NoteRow(Base):
    """
    A stored note.
    """

    __tablename__ = NOTES_TABLE

    #: The note ID.  Allocated by the note service, never by the database.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    #: The note name.
    name: Mapped[str] = mapped_column(Text, nullable=False)
    #: The user that created the note.
    owner: Mapped[str] = mapped_column(Text, nullable=False)
    #: The note content.
    content: Mapped[str] = mapped_column(Text, nullable=False)


def create_engine_with_path(db_path: Path) -> Engine:
    """
    Create SQLAlchemy engine with proper SQLite settings.

    Args:
        db_path: Path to the database file.  Created if it doesn't exist.

    Returns:
        SQLAlchemy engine

    """
    # Create the file if it doesn't exist
    db_path.touch(exist_ok=True)

    engine = create_engine(
        f"sqlite:///{db_path}",
        echo=False,  # Set to True for SQL debugging
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(
        dbapi_conn: "sqlite3.Connection | Any", _connection_record: Any
    ) -> None:
        """Set SQLite pragmas on connection."""
        cursor = cast("sqlite3.Cursor", dbapi_conn.cursor())
        # Catch corrupted pages on read rather than returning garbage rows
        cursor.execute("PRAGMA cell_size_check=ON")
        cursor.close()

    return engine
