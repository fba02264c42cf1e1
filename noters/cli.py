"""Command line entry point and interactive menu for Noters."""

import argparse
import logging
import os
import sys
from enum import IntEnum
from typing import TYPE_CHECKING, Final, TextIO

from noters import __version__
from noters.backends import BACKENDS, create_backend
from noters.exc import (
    BackendError,
    ConfigurationError,
    InputReadFailed,
    InvalidOption,
    MenuError,
    NoteError,
    NotANumber,
    OutputWriteFailed,
)
from noters.log import setup_logging
from noters.models import MAX_NOTE_ID, Note
from noters.service import NoteService
from noters.settings import (
    DEFAULT_MAX_CONTENT_SIZE,
    DEFAULT_MAX_NAME_SIZE,
    DEFAULT_MAX_NOTE_COUNT,
    LOG_LEVELS,
    Settings,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from noters.models import PartialNote

logger = logging.getLogger(__name__)

#: A line holding only this ends multi-line content input.
END_OF_CONTENT: Final[str] = "."
#: Separates a note from the surrounding output.
RULE: Final[str] = "-" * 31


class MenuOption(IntEnum):
    """The options of the main menu."""

    CREATE = 1
    READ = 2
    UPDATE = 3
    DELETE = 4
    LIST = 5
    ADD_FLAG = 6

    @property
    def label(self) -> str:
        """The text shown for this option in the menu."""
        return {
            MenuOption.CREATE: "Create note",
            MenuOption.READ: "Read note",
            MenuOption.UPDATE: "Update note",
            MenuOption.DELETE: "Delete note",
            MenuOption.LIST: "List notes",
            MenuOption.ADD_FLAG: "Add note with flag",
        }[self]

    def __str__(self) -> str:
        return f"({self.value}) {self.label}"


class Console:
    """
    Line-based terminal input and output.

    Keyword Args:
        stdin: Where input is read from.  Defaults to ``sys.stdin``.
        stdout: Where output is written to.  Defaults to ``sys.stdout``.

    """

    def __init__(
        self, stdin: TextIO | None = None, stdout: TextIO | None = None
    ) -> None:
        #: The input stream.
        self.stdin = stdin or sys.stdin
        #: The output stream.
        self.stdout = stdout or sys.stdout

    def write(self, text: str = "") -> None:
        """
        Write a line of text.

        Raises:
            OutputWriteFailed: the output stream refused the write

        """
        try:
            self.stdout.write(f"{text}\n")
            self.stdout.flush()
        except OSError as e:
            raise OutputWriteFailed(e) from e

    def read_line(self) -> str:
        """
        Prompt for and read one line, without its line ending.

        Raises:
            InputReadFailed: the input stream could not be read
            EOFError: the input stream is exhausted

        """
        try:
            self.stdout.write("> ")
            self.stdout.flush()
        except OSError as e:
            raise OutputWriteFailed(e) from e
        try:
            line = self.stdin.readline()
        except (OSError, UnicodeDecodeError) as e:
            raise InputReadFailed(e) from e
        if not line:
            raise EOFError
        logger.debug(f"Got input: {line.rstrip()}")
        return line.rstrip("\r\n")

    def get_input(self) -> str:
        """
        Read lines until one is not blank.

        Returns:
            The line, trimmed

        """
        while True:
            line = self.read_line().strip()
            if line:
                return line

    def get_input_until(self, stop_at: str) -> str:
        """
        Read lines until one holds only ``stop_at``.

        Args:
            stop_at: The terminating line

        Returns:
            Every line before the terminating one, joined and trimmed

        """
        lines: list[str] = []
        while True:
            line = self.read_line()
            if line.strip() == stop_at:
                return "\n".join(lines).strip()
            lines.append(line)

    def show_title(self, title: str) -> None:
        self.write(f"{title}\n")

    def show_menu(self, options: "Sequence[MenuOption]") -> None:
        self.write("Please choose an option:")
        for option in options:
            self.write(str(option))
        self.write()

    def show_table(self, notes: "Sequence[PartialNote]") -> None:
        """
        Render notes as a table with ``id``, ``owner`` and ``name`` columns.

        Args:
            notes: The notes to show

        """
        headers = ("id", "owner", "name")
        rows = [(str(note.id), note.owner, note.name) for note in notes]
        widths = [
            max([len(headers[i])] + [len(row[i]) for row in rows])
            for i in range(len(headers))
        ]

        def render(cells: "Sequence[str]") -> str:
            return " | ".join(
                cell.ljust(width) for cell, width in zip(cells, widths, strict=True)
            ).rstrip()

        self.write(f" {render(headers)}")
        self.write("-" + "-+-".join("-" * width for width in widths) + "-")
        for row in rows:
            self.write(f" {render(row)}")


# ===============================
# Menu handlers
# ===============================


def read_id(console: Console) -> int:
    """
    Prompt until the user enters a valid note ID.

    Returns:
        The note ID

    """
    while True:
        console.write("ID:")
        text = console.get_input()
        try:
            note_id = int(text)
        except ValueError:
            logger.error(f"Got invalid ID: {text}")
            continue
        if 0 <= note_id <= MAX_NOTE_ID:
            return note_id
        logger.error(f"Got invalid ID: {text}")


def read_name(console: Console, service: NoteService) -> str:
    """
    Prompt until the user enters a valid note name.

    Returns:
        The note name

    """
    while True:
        console.write("Name:")
        name = console.get_input()
        try:
            service.validate_name(name, service.max_name_size)
        except NoteError as e:
            logger.error(f"Got invalid name: {e}")
            continue
        return name


def read_content(console: Console, service: NoteService) -> str:
    """
    Prompt until the user enters valid note content.

    Returns:
        The note content

    """
    while True:
        console.write(f"Content (end with '{END_OF_CONTENT}' on last line):")
        content = console.get_input_until(END_OF_CONTENT)
        try:
            service.validate_content(content, service.max_content_size)
        except NoteError as e:
            logger.error(f"Got invalid content: {e}")
            continue
        return content


def show_note(console: Console, note: Note) -> None:
    console.write(RULE)
    console.write(f"#{note.id}: {note.name}\n")
    console.write(note.content)
    console.write(RULE)


def handle_create(console: Console, service: NoteService) -> None:
    console.show_title("Create note")
    name = read_name(console, service)
    content = read_content(console, service)
    note_id = service.create_note(name, content)
    logger.info(f"Note saved with ID: {note_id}")


def handle_read(console: Console, service: NoteService) -> None:
    console.show_title("Read note")
    note = service.read_note(read_id(console))
    show_note(console, note)


def handle_update(console: Console, service: NoteService) -> None:
    console.show_title("Update note")
    note = service.read_note(read_id(console))
    show_note(console, note)
    name = read_name(console, service)
    content = read_content(console, service)
    service.update_note(Note(id=note.id, owner=note.owner, name=name, content=content))
    logger.info(f"Note #{note.id} updated")


def handle_delete(console: Console, service: NoteService) -> None:
    console.show_title("Delete note")
    note_id = read_id(console)
    service.delete_note(note_id)
    logger.info(f"Note #{note_id} deleted")


def handle_list(console: Console, service: NoteService) -> None:
    console.show_title("List notes")
    console.show_table(service.list_notes())


def handle_add_flag(console: Console, service: NoteService) -> None:
    console.show_title("Add note with flag")
    note_id = service.create_flag_note()
    logger.info(f"Flag note saved with ID: {note_id}")


#: The handler for each menu option.
HANDLERS: Final[dict[MenuOption, "Callable[[Console, NoteService], None]"]] = {
    MenuOption.CREATE: handle_create,
    MenuOption.READ: handle_read,
    MenuOption.UPDATE: handle_update,
    MenuOption.DELETE: handle_delete,
    MenuOption.LIST: handle_list,
    MenuOption.ADD_FLAG: handle_add_flag,
}


def parse_menu_option(text: str) -> MenuOption:
    """
    Turn menu input into a :class:`MenuOption`.

    Args:
        text: The user's input

    Raises:
        NotANumber: the input is not a number
        InvalidOption: no option has that number

    Returns:
        The chosen option

    """
    try:
        number = int(text)
    except ValueError as e:
        raise NotANumber(text) from e
    try:
        return MenuOption(number)
    except ValueError as e:
        raise InvalidOption(number) from e


def get_menu_option(console: Console) -> MenuOption:
    """
    Prompt until the user picks a valid menu option.

    Returns:
        The chosen option

    """
    while True:
        console.show_title("Choose option:")
        try:
            return parse_menu_option(console.get_input())
        except (NotANumber, InvalidOption) as e:
            logger.error(str(e))


def run(service: NoteService, console: Console) -> None:
    """
    Run the menu loop until the input is exhausted.

    Service errors are reported and the loop carries on.

    Args:
        service: The note service to drive
        console: Where to read input and write output

    """
    while True:
        try:
            console.show_menu(list(MenuOption))
            option = get_menu_option(console)
            HANDLERS[option](console, service)
        except EOFError:
            logger.debug("End of input")
            return
        except MenuError as e:
            logger.error(str(e))
            return
        except BackendError as e:
            logger.error(f"Backend error: {e}")
        except NoteError as e:
            logger.error(str(e))


# ===============================
# Entry point
# ===============================


def build_parser() -> argparse.ArgumentParser:
    """
    Build the command line parser.

    Returns:
        The argument parser

    """
    parser = argparse.ArgumentParser(
        prog="noters", description="Terminal note manager with note references"
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument("-u", "--user", required=True, help="The acting user")
    parser.add_argument(
        "--max-name-size",
        type=int,
        default=DEFAULT_MAX_NAME_SIZE,
        help="Maximum note name length",
    )
    parser.add_argument(
        "--max-content-size",
        type=int,
        default=DEFAULT_MAX_CONTENT_SIZE,
        help="Maximum note content length",
    )
    parser.add_argument(
        "--max-note-count",
        type=int,
        default=DEFAULT_MAX_NOTE_COUNT,
        help="Maximum number of notes",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=None,
        help="Log level (default: $NOTERS_LOG_LEVEL or INFO)",
    )
    backends = parser.add_subparsers(dest="backend", required=True)
    for name in BACKENDS:
        sub = backends.add_parser(name, help=f"Store notes with the {name} backend")
        sub.add_argument("-p", "--path", required=True, help="Storage location")
    return parser


def main(
    argv: "Sequence[str] | None" = None,
    environ: "Mapping[str, str] | None" = None,
    console: Console | None = None,
) -> int:
    """
    Run Noters.

    Keyword Args:
        argv: Command line arguments.  Defaults to ``sys.argv[1:]``.
        environ: Environment variables.  Defaults to ``os.environ``.
        console: Terminal to use.  Defaults to standard input and output.

    Returns:
        The process exit status

    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = Settings.from_args(args, os.environ if environ is None else environ)
    except ConfigurationError as e:
        parser.error(str(e))

    setup_logging(settings.log_level)
    try:
        backend = create_backend(settings)
    except NoteError as e:
        logger.critical(f"Failed to set up {settings.backend} backend: {e}")
        return 1

    with backend:
        service = NoteService(
            backend,
            settings.user,
            settings.max_name_size,
            settings.max_content_size,
            settings.max_note_count,
            flag=settings.flag,
        )
        run(service, console or Console())
    return 0


if __name__ == "__main__":
    sys.exit(main())
