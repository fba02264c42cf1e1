"""The note service: every business rule about notes and their references."""

import logging
from typing import TYPE_CHECKING, Final

from noters.exc import (
    BackendError,
    ContentEmpty,
    ContentTooLarge,
    NameEmpty,
    NameHasLineBreak,
    NameTooLarge,
    NoteCountRateLimit,
    NoteIdsExhausted,
    NoteIsReferenced,
    NoteNotFound,
    PermissionDenied,
    ReferenceNotFound,
)
from noters.models import Note
from noters.references import expand_references, extract_references, quote_note

if TYPE_CHECKING:
    from collections.abc import Iterable

    from noters.backends import NoteBackend
    from noters.models import PartialNote

logger = logging.getLogger(__name__)

#: The owner of the flag note.  Not a user anybody can log in as.
FLAG_OWNER: Final[str] = "Norske Nøkkelsnikere"
#: The name of the flag note.
FLAG_NAME: Final[str] = "flag"
#: The flag note content used when no secret is configured.
FLAG_PLACEHOLDER: Final[str] = "NNSCTF{placeholder}"


class NoteService:
    """
    Creates, reads, updates and deletes notes on behalf of a single user.

    The service validates input, keeps references between notes intact and
    enforces ownership.  Persistence is delegated to a
    :class:`~noters.backends.NoteBackend`.

    Args:
        backend: Where notes are stored
        user: The acting user
        max_name_size: The maximum note name length
        max_content_size: The maximum note content length
        max_note_count: The maximum number of notes

    Keyword Args:
        flag: The secret content of the flag note

    """

    def __init__(  # noqa: PLR0913
        self,
        backend: "NoteBackend",
        user: str,
        max_name_size: int,
        max_content_size: int,
        max_note_count: int,
        flag: str | None = None,
    ) -> None:
        #: Where notes are stored.
        self.backend = backend
        #: The acting user.
        self.user = user
        #: The maximum note name length.
        self.max_name_size = max_name_size
        #: The maximum note content length.
        self.max_content_size = max_content_size
        #: The maximum number of notes.
        self.max_note_count = max_note_count
        #: The secret content of the flag note.
        self.flag = flag

    # ===============================
    # Operations
    # ===============================

    def list_notes(self) -> "list[PartialNote]":
        """
        List every stored note, without content.

        Returns:
            Notes ordered by ascending ID

        """
        return self.backend.list()

    def create_note(self, name: str, content: str) -> int:
        """
        Create a note owned by the acting user.

        Args:
            name: The note name
            content: The note content

        Raises:
            NoteValidationError: the name or content is invalid, there are too
                many notes, or a reference is dangling or not owned by the user
            BackendError: the note could not be stored

        Returns:
            The ID of the new note

        """
        self.validate_name(name, self.max_name_size)
        self.validate_content(content, self.max_content_size)

        notes = self.list_notes()
        self._check_note_count(notes)
        used_ids = {partial.id for partial in notes}
        note_id = self._allocate_id(used_ids)
        self._check_references(content, used_ids)

        note_id = self.backend.create(
            Note(id=note_id, owner=self.user, name=name, content=content)
        )
        logger.info(f"Created note #{note_id}")
        return note_id

    def read_note(self, note_id: int) -> Note:
        """
        Read a note with every reference in its content expanded.

        Each ``[[id]]`` token is replaced with a quoted block holding the
        referenced note's name and content.

        Args:
            note_id: Note ID

        Raises:
            PermissionDenied: the acting user does not own the note
            ReferenceNotFound: a referenced note could not be read
            BackendError: the note could not be read

        Returns:
            The note, with its content expanded

        """
        note = self.backend.read(note_id)
        if note.owner != self.user:
            raise PermissionDenied(note_id)

        expansions: dict[int, str] = {}
        for ref_id in extract_references(note.content):
            if ref_id in expansions:
                continue
            try:
                referenced = self.backend.read(ref_id)
            except BackendError as e:
                raise ReferenceNotFound(ref_id) from e
            expansions[ref_id] = quote_note(referenced)

        note.content = expand_references(note.content, expansions)
        return note

    def update_note(self, note: Note) -> None:
        """
        Replace the name and content of an existing note.

        The stored owner is kept whatever ``note.owner`` says.

        Args:
            note: The note ID with its new name and content

        Raises:
            NoteValidationError: the name or content is invalid, a reference
                is dangling or not owned by the user, the note doesn't exist
                or the acting user doesn't own it
            BackendError: the note could not be stored

        """
        self.validate_name(note.name, self.max_name_size)
        self.validate_content(note.content, self.max_content_size)

        used_ids = {partial.id for partial in self.list_notes()}
        self._check_references(note.content, used_ids)
        if note.id not in used_ids:
            raise NoteNotFound(note.id)

        stored = self.backend.read_partial(note.id)
        if stored.owner != self.user:
            raise PermissionDenied(note.id)

        self.backend.update(
            Note(id=note.id, owner=stored.owner, name=note.name, content=note.content)
        )
        logger.info(f"Updated note #{note.id}")

    def delete_note(self, note_id: int) -> None:
        """
        Delete a note, unless another note references it.

        A note that only references itself can always be deleted.

        Args:
            note_id: Note ID

        Raises:
            PermissionDenied: the acting user does not own the note
            NoteIsReferenced: other notes reference the note
            BackendError: a note could not be read, or the note could not be
                deleted

        """
        backlinks: list[int] = []
        for partial in self.list_notes():
            if partial.id == note_id:
                if partial.owner != self.user:
                    raise PermissionDenied(note_id)
                continue
            content = self.backend.read(partial.id).content
            if note_id in extract_references(content):
                backlinks.append(partial.id)

        logger.debug(f"Found {len(backlinks)} backlinks to note #{note_id}")
        if backlinks:
            raise NoteIsReferenced(backlinks)
        self.backend.delete(note_id)
        logger.info(f"Deleted note #{note_id}")

    def create_flag_note(self) -> int:
        """
        Create the flag note.

        The flag note skips name, content and reference validation.  It is
        owned by :data:`FLAG_OWNER` and holds the configured secret, or
        :data:`FLAG_PLACEHOLDER` when the secret is unset or blank.

        Raises:
            NoteCountRateLimit: there are too many notes
            BackendError: the note could not be stored

        Returns:
            The ID of the flag note

        """
        flag = self.flag
        if not flag or not flag.strip():
            logger.debug("No flag configured. Using placeholder value.")
            flag = FLAG_PLACEHOLDER

        notes = self.list_notes()
        self._check_note_count(notes)
        note_id = self._allocate_id(partial.id for partial in notes)
        note_id = self.backend.create(
            Note(id=note_id, owner=FLAG_OWNER, name=FLAG_NAME, content=flag)
        )
        logger.info(f"Created flag note #{note_id}")
        return note_id

    # ===============================
    # Validation
    # ===============================

    @staticmethod
    def validate_name(name: str, max: int) -> None:  # noqa: A002
        """
        Check a note name.

        Args:
            name: The note name
            max: The maximum name length

        Raises:
            NameEmpty: the name is blank
            NameTooLarge: the name is longer than ``max``
            NameHasLineBreak: the name spans more than one line

        """
        if not name.strip():
            raise NameEmpty()
        if len(name) > max:
            raise NameTooLarge(max=max, got=len(name))
        if "\n" in name or "\r" in name:
            raise NameHasLineBreak()

    @staticmethod
    def validate_content(content: str, max: int) -> None:  # noqa: A002
        """
        Check note content.

        Args:
            content: The note content
            max: The maximum content length

        Raises:
            ContentEmpty: the content is blank
            ContentTooLarge: the content is longer than ``max``

        """
        if not content.strip():
            raise ContentEmpty()
        if len(content) > max:
            raise ContentTooLarge(max=max, got=len(content))

    # ===============================
    # Helpers
    # ===============================

    def _check_note_count(self, notes: "list[PartialNote]") -> None:
        """
        Refuse to add notes once more than :attr:`max_note_count` are stored.

        Raises:
            NoteCountRateLimit: too many notes are stored

        """
        # Blocks only once the cap has been exceeded, not when it is reached
        if len(notes) > self.max_note_count:
            raise NoteCountRateLimit(max=self.max_note_count)

    def _allocate_id(self, used_ids: "Iterable[int]") -> int:
        """
        Find the lowest ID below :attr:`max_note_count` that isn't in use.

        Raises:
            NoteIdsExhausted: every ID below the cap is taken

        """
        used = set(used_ids)
        for note_id in range(self.max_note_count):
            if note_id not in used:
                return note_id
        logger.error(
            f"No free note ID below {self.max_note_count} "
            f"with {len(used)} notes stored"
        )
        raise NoteIdsExhausted(max=self.max_note_count)

    def _check_references(self, content: str, used_ids: set[int]) -> None:
        """
        Make sure every note referenced in ``content`` exists and is owned by
        the acting user.

        Raises:
            ReferenceNotFound: a referenced note does not exist
            PermissionDenied: a referenced note belongs to another user

        """
        for ref_id in extract_references(content):
            if ref_id not in used_ids:
                raise ReferenceNotFound(ref_id)
            if self.backend.read_partial(ref_id).owner != self.user:
                raise PermissionDenied(ref_id)
