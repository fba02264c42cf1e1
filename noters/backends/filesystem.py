"""File-based note backend: one file per note."""

import logging
import os
from contextlib import suppress
from pathlib import Path
from typing import Final

from noters.backends.base import NoteBackend
from noters.exc import (
    BackendError,
    DuplicateRecord,
    OtherBackendError,
    RecordCorrupted,
    RecordNotFound,
    StorageInitFailed,
    StorageIOError,
    StoragePermissionDenied,
    UnsafeField,
)
from noters.models import Note, PartialNote, is_valid_note_id

logger = logging.getLogger(__name__)


class FilesystemBackend(NoteBackend):
    """
    Stores each note as a file named after its zero-padded ID.

    A note file holds three newline-joined fields: the name line, the owner
    line, and then the content, which may span any number of lines.
    """

    #: The extension of note files.
    SUFFIX: Final[str] = ".note"
    #: The text encoding of note files.
    ENCODING: Final[str] = "utf-8"

    def __init__(self, path: str | Path) -> None:
        #: The directory holding the note files.
        self.base_path = Path(path)
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageInitFailed(str(self.base_path), e) from e
        logger.debug(f"Using notes directory: {self.base_path}")

    def note_path(self, note_id: int) -> Path:
        """
        Build the path of the file holding note ``note_id``.

        Args:
            note_id: Note ID

        Returns:
            Path to the note file

        """
        return self.base_path / f"{note_id:05d}{self.SUFFIX}"

    # ===============================
    # Serialization
    # ===============================

    @staticmethod
    def serialize(note: Note) -> str:
        """
        Render ``note`` in the note file format.

        Args:
            note: The note to render

        Raises:
            UnsafeField: the name or owner contains a line break

        Returns:
            The file body

        """
        for field in ("name", "owner"):
            value = getattr(note, field)
            if "\n" in value or "\r" in value:
                raise UnsafeField(field)
        return f"{note.name}\n{note.owner}\n{note.content}"

    @staticmethod
    def parse(note_id: int, data: str) -> Note:
        """
        Parse a note file body.

        Args:
            note_id: The ID the file belongs to
            data: The file body

        Raises:
            RecordCorrupted: the body lacks a name, an owner or content

        Returns:
            The parsed note

        """
        fields = data.split("\n", 2)
        if len(fields) < 3:  # noqa: PLR2004
            raise RecordCorrupted(note_id, "expected name, owner and content")
        name, owner, content = fields
        if not content.strip():
            raise RecordCorrupted(note_id, "content is empty")
        return Note(id=note_id, owner=owner, name=name, content=content)

    # ===============================
    # File access
    # ===============================

    def _read_text(self, note_id: int) -> str:
        path = self.note_path(note_id)
        try:
            with path.open(encoding=self.ENCODING, newline="\n") as f:
                return f.read()
        except (FileNotFoundError, IsADirectoryError) as e:
            raise RecordNotFound(note_id) from e
        except UnicodeDecodeError as e:
            raise RecordCorrupted(note_id, "not valid UTF-8") from e
        except PermissionError as e:
            raise StoragePermissionDenied from e
        except OSError as e:
            raise StorageIOError(e) from e

    def _write_text(self, path: Path, data: str) -> None:
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            with tmp_path.open("w", encoding=self.ENCODING, newline="") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            tmp_path.replace(path)
        except OSError as e:
            with suppress(OSError):
                tmp_path.unlink(missing_ok=True)
            if isinstance(e, PermissionError):
                raise StoragePermissionDenied from e
            raise StorageIOError(e) from e

    # ===============================
    # NoteBackend
    # ===============================

    def create(self, note: Note) -> int:
        data = self.serialize(note)
        path = self.note_path(note.id)
        try:
            # "x" fails if the file already exists
            with path.open("x", encoding=self.ENCODING, newline="") as f:
                f.write(data)
        except FileExistsError as e:
            raise DuplicateRecord(note.id) from e
        except PermissionError as e:
            raise StoragePermissionDenied from e
        except OSError as e:
            raise StorageIOError(e) from e
        logger.debug(f"Created note file: {path}")
        return note.id

    def read(self, note_id: int) -> Note:
        note = self.parse(note_id, self._read_text(note_id))
        logger.debug(f"Read note #{note_id} from {self.note_path(note_id)}")
        return note

    def read_partial(self, note_id: int) -> PartialNote:
        path = self.note_path(note_id)
        try:
            with path.open(encoding=self.ENCODING, newline="\n") as f:
                name = f.readline()
                owner = f.readline()
        except (FileNotFoundError, IsADirectoryError) as e:
            raise RecordNotFound(note_id) from e
        except UnicodeDecodeError as e:
            raise RecordCorrupted(note_id, "not valid UTF-8") from e
        except PermissionError as e:
            raise StoragePermissionDenied from e
        except OSError as e:
            raise StorageIOError(e) from e
        if not name.endswith("\n") or not owner.endswith("\n"):
            raise RecordCorrupted(note_id, "expected name, owner and content")
        return PartialNote(id=note_id, owner=owner[:-1], name=name[:-1])

    def update(self, note: Note) -> None:
        data = self.serialize(note)
        path = self.note_path(note.id)
        if not path.is_file():
            raise RecordNotFound(note.id)
        self._write_text(path, data)
        logger.debug(f"Updated note file: {path}")

    def delete(self, note_id: int) -> None:
        path = self.note_path(note_id)
        try:
            path.unlink()
        except PermissionError as e:
            raise StoragePermissionDenied from e
        except (FileNotFoundError, IsADirectoryError) as e:
            raise RecordNotFound(note_id) from e
        except OSError as e:
            raise OtherBackendError(e) from e
        logger.debug(f"Deleted note file: {path}")

    def list(self) -> "list[PartialNote]":
        try:
            paths = [p for p in self.base_path.iterdir() if p.is_file()]
        except OSError as e:
            raise StorageIOError(e) from e

        notes: list[PartialNote] = []
        for path in paths:
            stem = path.stem
            if path.suffix != self.SUFFIX or not (stem.isascii() and stem.isdigit()):
                continue
            note_id = int(stem)
            if not is_valid_note_id(note_id) or path != self.note_path(note_id):
                continue
            try:
                # A full read, so listed notes are exactly the readable ones
                notes.append(self.read(note_id).to_partial())
            except BackendError as e:
                logger.warning(f"Skipping unreadable note file {path}: {e}")
        notes.sort(key=lambda note: note.id)
        return notes
