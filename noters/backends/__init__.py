"""Note storage backends."""

from typing import TYPE_CHECKING, Final

from noters.backends.base import NoteBackend
from noters.backends.filesystem import FilesystemBackend
from noters.backends.sqlite import SqliteBackend
from noters.exc import ConfigurationError

if TYPE_CHECKING:
    from noters.settings import Settings

#: Backend implementations by the name used to select them.
BACKENDS: Final[dict[str, type[NoteBackend]]] = {
    "filesystem": FilesystemBackend,
    "sqlite": SqliteBackend,
}


def create_backend(settings: "Settings") -> NoteBackend:
    """
    Construct the backend selected in ``settings``.

    Args:
        settings: Resolved settings

    Raises:
        ConfigurationError: the backend name is unknown
        BackendError: the backend could not set up its storage

    Returns:
        The backend, ready for use

    """
    try:
        backend_class = BACKENDS[settings.backend]
    except KeyError as e:
        msg = f"Unknown backend: {settings.backend}"
        raise ConfigurationError(msg) from e
    return backend_class(settings.path)


__all__ = [
    "BACKENDS",
    "FilesystemBackend",
    "NoteBackend",
    "SqliteBackend",
    "create_backend",
]
