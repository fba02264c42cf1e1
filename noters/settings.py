"""Configuration for a Noters session."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from noters.exc import ConfigurationError
from noters.models import MAX_NOTE_ID

if TYPE_CHECKING:
    import argparse
    from collections.abc import Mapping

#: The default maximum note name length.
DEFAULT_MAX_NAME_SIZE: Final[int] = 32
#: The default maximum note content length.
DEFAULT_MAX_CONTENT_SIZE: Final[int] = 1024
#: The default maximum number of notes.
DEFAULT_MAX_NOTE_COUNT: Final[int] = 100
#: The default log level.
DEFAULT_LOG_LEVEL: Final[str] = "INFO"

#: The longest user name allowed.
MAX_USER_SIZE: Final[int] = 32
#: The upper bound of ``max_name_size``.
MAX_NAME_SIZE_LIMIT: Final[int] = 0xFF
#: The upper bound of ``max_content_size``.
MAX_CONTENT_SIZE_LIMIT: Final[int] = 0xFFFF

#: Environment variable holding the flag note secret.
FLAG_ENV_VAR: Final[str] = "FLAG"
#: Environment variable holding the default log level.
LOG_LEVEL_ENV_VAR: Final[str] = "NOTERS_LOG_LEVEL"

#: Log levels accepted in settings.
LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Settings:
    """
    Everything a session needs, resolved once at startup.
    """

    #: The acting user.
    user: str
    #: The storage backend name: ``filesystem`` or ``sqlite``.
    backend: str
    #: The notes directory or database file.
    path: str
    #: The maximum note name length.
    max_name_size: int = DEFAULT_MAX_NAME_SIZE
    #: The maximum note content length.
    max_content_size: int = DEFAULT_MAX_CONTENT_SIZE
    #: The maximum number of notes.
    max_note_count: int = DEFAULT_MAX_NOTE_COUNT
    #: The flag note secret, if configured.
    flag: str | None = None
    #: The log level name.
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_args(
        cls, args: "argparse.Namespace", environ: "Mapping[str, str]"
    ) -> "Settings":
        """
        Resolve settings from parsed command line arguments and the environment.

        Args:
            args: Parsed arguments
            environ: Environment variables

        Raises:
            ConfigurationError: a setting is invalid

        Returns:
            Validated settings

        """
        log_level = (
            args.log_level or environ.get(LOG_LEVEL_ENV_VAR) or DEFAULT_LOG_LEVEL
        )
        settings = cls(
            user=args.user,
            backend=args.backend,
            path=args.path,
            max_name_size=args.max_name_size,
            max_content_size=args.max_content_size,
            max_note_count=args.max_note_count,
            flag=environ.get(FLAG_ENV_VAR),
            log_level=log_level.upper(),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        """
        Check every setting.

        Raises:
            ConfigurationError: a setting is invalid

        """
        if not self.user.strip():
            msg = "User must not be empty"
            raise ConfigurationError(msg)
        if "\n" in self.user or "\r" in self.user:
            msg = "User must be a single line"
            raise ConfigurationError(msg)
        if len(self.user) > MAX_USER_SIZE:
            msg = f"User is too long. Max: {MAX_USER_SIZE}, Got: {len(self.user)}"
            raise ConfigurationError(msg)
        for name, value, upper in (
            ("max_name_size", self.max_name_size, MAX_NAME_SIZE_LIMIT),
            ("max_content_size", self.max_content_size, MAX_CONTENT_SIZE_LIMIT),
            ("max_note_count", self.max_note_count, MAX_NOTE_ID),
        ):
            if not 1 <= value <= upper:
                msg = f"{name} must be between 1 and {upper}, got {value}"
                raise ConfigurationError(msg)
        if not self.path:
            msg = "Storage path must not be empty"
            raise ConfigurationError(msg)
        if self.log_level not in LOG_LEVELS:
            msg = f"Unknown log level: {self.log_level}"
            raise ConfigurationError(msg)
