"""The storage contract every note backend implements."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types import TracebackType

    from noters.models import Note, PartialNote


class NoteBackend(ABC):
    """
    Durable keyed storage of notes.

    Backends only persist and retrieve records; every business rule lives in
    :class:`~noters.service.NoteService`.  Every method raises a
    :class:`~noters.exc.BackendError` subclass on failure.
    """

    @abstractmethod
    def create(self, note: "Note") -> int:
        """
        Store a new note under ``note.id``.

        Args:
            note: The note to store

        Raises:
            DuplicateRecord: a note with that ID is already stored

        Returns:
            The ID of the stored note

        """

    @abstractmethod
    def read(self, note_id: int) -> "Note":
        """
        Fetch a full note.

        Args:
            note_id: Note ID

        Raises:
            RecordNotFound: no note with that ID is stored
            RecordCorrupted: the stored record is malformed

        Returns:
            The stored note

        """

    @abstractmethod
    def read_partial(self, note_id: int) -> "PartialNote":
        """
        Fetch the ID, owner and name of a note.

        Args:
            note_id: Note ID

        Raises:
            RecordNotFound: no note with that ID is stored
            RecordCorrupted: the stored record is malformed

        Returns:
            The stored note without its content

        """

    @abstractmethod
    def update(self, note: "Note") -> None:
        """
        Replace the name, owner and content of the note stored under ``note.id``.

        Args:
            note: The new version of the note

        Raises:
            RecordNotFound: no note with that ID is stored

        """

    @abstractmethod
    def delete(self, note_id: int) -> None:
        """
        Remove a note.

        Args:
            note_id: Note ID

        Raises:
            RecordNotFound: no note with that ID is stored
            StoragePermissionDenied: the medium refused the deletion

        """

    @abstractmethod
    def list(self) -> "list[PartialNote]":
        """
        List every stored note, ordered by ascending ID.

        Records that cannot be read are skipped.

        Returns:
            List of notes without their content

        """

    def close(self) -> None:  # noqa: B027
        """
        Release the storage handle.
        """

    def __enter__(self) -> "NoteBackend":
        return self

    def __exit__(
        self,
        exc_type: "type[BaseException] | None",
        exc: "BaseException | None",
        tb: "TracebackType | None",
    ) -> None:
        self.close()
