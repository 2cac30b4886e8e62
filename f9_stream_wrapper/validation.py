"""Validation helpers shared by the storage backends.

The helpers work with any entry object exposing ``is_dir``: local paths via
the :class:`LocalPathEntry` adapter and :class:`~.interfaces.Metadata`
records from the in-memory backend.

Example:
    >>> from pathlib import Path
    >>> entry = LocalPathEntry.from_path(Path("file.txt"))
    >>> validate_entry_exists(entry, "file.txt")  # Raises if doesn't exist
    >>> validate_is_file(entry, "file.txt")  # Raises if is a directory

"""

from __future__ import annotations

from typing import Any, Protocol

from .interfaces import (
    AlreadyExistsError,
    InvalidOperationError,
    NotFoundError,
)


class PathEntry(Protocol):
    """Protocol for path entry objects used in validation."""

    @property
    def is_dir(self) -> bool:
        """Whether the entry is a directory."""
        ...


class LocalPathEntry:
    """Adapter to make Path objects compatible with PathEntry protocol."""

    def __init__(self, path: Any) -> None:
        """Initialize the adapter with a Path object."""
        self._path = path

    @property
    def is_dir(self) -> bool:
        """Return True if the path is a directory."""
        return self._path.is_dir()

    @classmethod
    def from_path(cls, path: Any) -> LocalPathEntry | None:
        """Create entry if path exists, else return None."""
        return cls(path) if path.exists() else None


def validate_entry_exists(
    entry: PathEntry | None,
    path: Any,
) -> PathEntry:
    """Validate that an entry exists.

    Raises:
        NotFoundError: If entry is None.

    """
    if entry is None:
        raise NotFoundError(path)
    return entry


def validate_entry_not_exists(entry: PathEntry | None, path: Any) -> None:
    """Validate that an entry does not exist.

    Raises:
        AlreadyExistsError: If entry exists.

    """
    if entry is not None:
        raise AlreadyExistsError(path)


def validate_is_file(entry: PathEntry, path: Any) -> None:
    """Validate that an entry is a file, not a directory.

    Raises:
        InvalidOperationError: If entry is a directory.

    """
    if entry.is_dir:
        raise InvalidOperationError.cannot_read_directory(path)


def validate_is_directory(entry: PathEntry, path: Any) -> None:
    """Validate that an entry is a directory.

    Raises:
        InvalidOperationError: If entry is a file.

    """
    if not entry.is_dir:
        raise InvalidOperationError.not_a_directory(path)


def validate_not_overwriting_directory_with_file(
    entry: PathEntry | None,
    path: Any,
) -> None:
    """Validate that we're not trying to overwrite a directory with a file.

    Raises:
        InvalidOperationError: If entry exists and is a directory.

    """
    if entry is not None and entry.is_dir:
        raise InvalidOperationError.is_a_directory(path)
