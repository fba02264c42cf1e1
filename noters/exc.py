class NoteError(Exception):
    """Base class for every error raised by Noters."""


# ===============================
# Validation errors
# ===============================


class NoteValidationError(NoteError):
    """Raised when caller input or a business rule is violated."""


class NameEmpty(NoteValidationError):  # noqa: N818
    """Raised when a note name is blank."""

    def __init__(self) -> None:
        super().__init__("Name is empty")


class ContentEmpty(NoteValidationError):  # noqa: N818
    """Raised when a note's content is blank."""

    def __init__(self) -> None:
        super().__init__("Content is empty")


class NameTooLarge(NoteValidationError):  # noqa: N818
    """Raised when a note name exceeds the configured maximum length."""

    def __init__(self, max: int, got: int):  # noqa: A002
        self.max = max
        self.got = got
        super().__init__(f"Name is too large. Max: {max}, Got: {got}")


class ContentTooLarge(NoteValidationError):  # noqa: N818
    """Raised when note content exceeds the configured maximum length."""

    def __init__(self, max: int, got: int):  # noqa: A002
        self.max = max
        self.got = got
        super().__init__(f"Content is too large. Max: {max}, Got: {got}")


class NameHasLineBreak(NoteValidationError):  # noqa: N818
    """Raised when a note name contains a line break."""

    def __init__(self) -> None:
        super().__init__("Name must be a single line")


class NoteCountRateLimit(NoteValidationError):  # noqa: N818
    """Raised when the number of stored notes exceeds the configured cap."""

    def __init__(self, max: int):  # noqa: A002
        self.max = max
        super().__init__(f"Note count rate limit exceeded. Max: {max}")


class NoteIdsExhausted(NoteCountRateLimit):  # noqa: N818
    """
    Raised when every ID below the note cap is taken even though the note
    count check passed.
    """

    def __init__(self, max: int):  # noqa: A002
        super().__init__(max)
        self.args = (f"No free note ID below {max}",)


class PermissionDenied(NoteValidationError):  # noqa: N818
    """Raised when the acting user does not own a note."""

    def __init__(self, note_id: int):
        self.note_id = note_id
        super().__init__(f"Sorry! You're not the owner of the note with ID: {note_id}")


class NoteNotFound(NoteValidationError):  # noqa: N818
    """Raised when the note being updated does not exist."""

    def __init__(self, note_id: int):
        self.note_id = note_id
        super().__init__(f"Note not found with ID: {note_id}")


class NoteIsReferenced(NoteValidationError):  # noqa: N818
    """Raised when deleting a note that other notes still reference."""

    def __init__(self, backlinks: list[int]):
        self.backlinks = list(backlinks)
        super().__init__(f"Note is referenced by: {self.backlinks}")


class ReferenceNotFound(NoteValidationError):  # noqa: N818
    """Raised when note content references a note that does not exist."""

    def __init__(self, note_id: int):
        self.note_id = note_id
        super().__init__(f"Reference not found with ID: {note_id}")


# ===============================
# Backend errors
# ===============================


class BackendError(NoteError):
    """Raised when the storage medium fails."""


class RecordNotFound(BackendError):  # noqa: N818
    """Raised when no record with the given ID is stored."""

    def __init__(self, note_id: int):
        self.note_id = note_id
        super().__init__(f"Didn't find any notes with ID: {note_id}")


class DuplicateRecord(BackendError):  # noqa: N818
    """Raised when creating a record whose ID is already stored."""

    def __init__(self, note_id: int):
        self.note_id = note_id
        super().__init__(f"A note with ID {note_id} already exists")


class RecordCorrupted(BackendError):  # noqa: N818
    """Raised when a stored record cannot be parsed into a note."""

    def __init__(self, note_id: int, reason: str):
        self.note_id = note_id
        self.reason = reason
        super().__init__(f"Note with ID {note_id} is corrupted: {reason}")


class UnsafeField(BackendError):  # noqa: N818
    """Raised when a field cannot be stored without breaking the record format."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Refusing to store {field} containing a line break")


class StorageInitFailed(BackendError):  # noqa: N818
    """Raised when a backend cannot set up its storage at startup."""

    def __init__(self, path: str, error: Exception):
        self.path = path
        self.error = error
        super().__init__(f"Failed to initialize storage at {path}: {error}")


class StorageIOError(BackendError):
    """Raised when reading from or writing to the medium fails."""

    def __init__(self, error: Exception):
        self.error = error
        super().__init__(f"Storage I/O error: {error}")


class StorageBusy(BackendError):  # noqa: N818
    """Raised when the medium is locked or busy."""

    def __init__(self) -> None:
        super().__init__("Database is locked or busy")


class StoragePermissionDenied(BackendError):  # noqa: N818
    """Raised when the medium refuses an operation for access-control reasons."""

    def __init__(self) -> None:
        super().__init__("Insufficient permissions")


class StorageCorrupted(BackendError):  # noqa: N818
    """Raised when the medium itself reports corruption."""

    def __init__(self) -> None:
        super().__init__("Database corruption or file I/O error")


class NotADatabase(BackendError):  # noqa: N818
    """Raised when the database file is not a valid SQLite database."""

    def __init__(self) -> None:
        super().__init__("Database file is not a valid SQLite database")


class SchemaMismatch(BackendError):  # noqa: N818
    """Raised when the stored schema does not match what the backend expects."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Database schema mismatch: {detail}")


class OtherBackendError(BackendError):  # noqa: N818
    """Raised for medium errors that no other error kind describes."""

    def __init__(self, error: Exception):
        self.error = error
        super().__init__(f"Unexpected backend error: {error}")


# ===============================
# Menu errors
# ===============================


class MenuError(NoteError):
    """Raised when interactive input or output fails."""


class InputReadFailed(MenuError):  # noqa: N818
    """Raised when reading from the input stream fails."""

    def __init__(self, error: Exception):
        self.error = error
        super().__init__(f"Failed to read from stdin: {error}")


class OutputWriteFailed(MenuError):  # noqa: N818
    """Raised when writing to the output stream fails."""

    def __init__(self, error: Exception):
        self.error = error
        super().__init__(f"Failed writing to stdout: {error}")


class NotANumber(MenuError):  # noqa: N818
    """Raised when menu input is not a number."""

    def __init__(self, text: str):
        self.text = text
        super().__init__(
            f"Couldn't convert '{text}' to a number. Please enter a number 1-6"
        )


class InvalidOption(MenuError):  # noqa: N818
    """Raised when menu input is a number with no matching option."""

    def __init__(self, number: int):
        self.number = number
        super().__init__(f"No menu option {number}. Please enter a number 1-6")


# ===============================
# Configuration errors
# ===============================


class ConfigurationError(NoteError):
    """Raised when the resolved settings are unusable."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)
