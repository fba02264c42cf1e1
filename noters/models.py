"""Note records."""

from dataclasses import dataclass
from typing import Final

#: The smallest valid note ID.
MIN_NOTE_ID: Final[int] = 0
#: The largest valid note ID (IDs are unsigned 16-bit integers).
MAX_NOTE_ID: Final[int] = 0xFFFF


def is_valid_note_id(value: int) -> bool:
    """
    Check whether ``value`` fits the note ID type.

    Args:
        value: Candidate note ID

    Returns:
        True if ``value`` is an integer between :data:`MIN_NOTE_ID` and
        :data:`MAX_NOTE_ID` inclusive

    """
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and MIN_NOTE_ID <= value <= MAX_NOTE_ID
    )


@dataclass(frozen=True)
class PartialNote:
    """
    A note without its content.  Used for listings and ownership checks.
    """

    #: The note ID.
    id: int
    #: The user that created the note.
    owner: str
    #: The note name.
    name: str


@dataclass
class Note:
    """
    A full note, including its content.
    """

    #: The note ID.
    id: int
    #: The user that created the note.
    owner: str
    #: The note name.
    name: str
    #: The note content, possibly containing ``[[id]]`` references.
    content: str

    def to_partial(self) -> PartialNote:
        """
        Project this note onto its ID, owner and name.

        Returns:
            The matching :class:`PartialNote`

        """
        return PartialNote(id=self.id, owner=self.owner, name=self.name)
