"""Note references: ``[[id]]`` tokens embedded in note content."""

import re
from typing import TYPE_CHECKING, Final

from noters.models import is_valid_note_id

if TYPE_CHECKING:
    from collections.abc import Mapping

    from noters.models import Note

#: Opens a reference token.
REFERENCE_PREFIX: Final[str] = "[["
#: Closes a reference token.
REFERENCE_SUFFIX: Final[str] = "]]"

#: What may appear between the brackets of a reference token.
_ID_RE: Final[re.Pattern[str]] = re.compile(r"\+?[0-9]+")


def parse_reference(token: str) -> int | None:
    """
    Parse a single whitespace-free token as a reference.

    Args:
        token: The token to parse

    Returns:
        The referenced note ID, or None if ``token`` is not a well-formed
        reference to an ID that fits the note ID type

    """
    if not (
        token.startswith(REFERENCE_PREFIX)
        and token.endswith(REFERENCE_SUFFIX)
        and len(token) >= len(REFERENCE_PREFIX) + len(REFERENCE_SUFFIX)
    ):
        return None
    inner = token[len(REFERENCE_PREFIX) : len(token) - len(REFERENCE_SUFFIX)]
    if not _ID_RE.fullmatch(inner):
        return None
    note_id = int(inner)
    if not is_valid_note_id(note_id):
        return None
    return note_id


def extract_references(text: str) -> list[int]:
    """
    Extract the IDs of every note referenced in ``text``.

    The text is split on whitespace and each token of the form ``[[<id>]]``
    is a reference.  Malformed tokens are skipped.  IDs come back in the
    order they appear, duplicates included.

    Args:
        text: Note content

    Returns:
        List of referenced note IDs

    """
    return [
        note_id
        for note_id in (parse_reference(token) for token in text.split())
        if note_id is not None
    ]


def placeholder(note_id: int) -> str:
    """
    Build the reference token for ``note_id``.

    Args:
        note_id: Note ID

    Returns:
        The ``[[id]]`` token

    """
    return f"{REFERENCE_PREFIX}{note_id}{REFERENCE_SUFFIX}"


def quote_note(note: "Note") -> str:
    """
    Render ``note`` as the quoted block a reference to it expands to.

    Args:
        note: The referenced note

    Returns:
        A ``>>> #<id> <name>`` header, a blank quote line, and the note content
        with every line quoted

    """
    body = note.content.replace("\n", "\n> ")
    return f">>> #{note.id} {note.name}\n>\n> {body}"


def expand_references(text: str, expansions: "Mapping[int, str]") -> str:
    """
    Replace every placeholder in ``text`` with its expansion.

    Replacement is literal and done in one pass, so text inserted by an
    expansion is never expanded again.

    Args:
        text: Note content
        expansions: Map of referenced note ID to replacement text

    Returns:
        The expanded text

    """
    if not expansions:
        return text
    by_placeholder = {placeholder(note_id): exp for note_id, exp in expansions.items()}
    pattern = re.compile(
        "|".join(
            re.escape(ph)
            for ph in sorted(by_placeholder, key=len, reverse=True)
        )
    )
    return pattern.sub(lambda m: by_placeholder[m.group(0)], text)
