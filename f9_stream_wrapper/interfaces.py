"""Backend port and data structures consumed by the stream wrapper."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any, BinaryIO, Literal, Union

from .errors import ErrorKind

if TYPE_CHECKING:
    from collections.abc import Iterable

PathLike = Union[str, Path]

DEFAULT_CHUNK_SIZE = 8192

VISIBILITY_PUBLIC = "public"
VISIBILITY_PRIVATE = "private"

Visibility = Literal["public", "private"]
EntryType = Literal["file", "dir"]


class BackendError(RuntimeError):
    """Base exception for backend operations.

    Subclasses set ``kind`` so the wrapper can classify failures without
    inspecting exception types. A plain ``BackendError`` is an opaque backend
    failure and is always propagated to the caller unchanged.
    """

    kind: ErrorKind = ErrorKind.BACKEND_FAILURE

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        kind: ErrorKind | None = None,
    ) -> None:
        """Initialise the error with an optional backend path context."""
        path_str = str(path) if path is not None else None
        detail = message if path_str is None else ": ".join((message, path_str))
        super().__init__(detail)
        self.message = message
        self.path = path_str
        if kind is not None:
            self.kind = kind


class NotFoundError(BackendError):
    """Raised when an expected file or directory is missing."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, path: str) -> None:
        """Create a not-found error for the provided path."""
        super().__init__("Path not found", path=path)


class AlreadyExistsError(BackendError):
    """Raised when attempting to create a resource that already exists."""

    kind = ErrorKind.ALREADY_EXISTS

    def __init__(self, path: str, *, reason: str | None = None) -> None:
        """Create an already-exists error with an optional reason."""
        super().__init__(reason or "Path already exists", path=path)


class RootViolationError(BackendError):
    """Raised when an operation would remove the backend root."""

    kind = ErrorKind.ROOT_VIOLATION

    def __init__(self, path: str = "") -> None:
        """Create a root violation error."""
        super().__init__("Root directories can not be deleted", path=path)


class UnsupportedOperationError(BackendError):
    """Raised when a backend lacks an optional capability."""

    kind = ErrorKind.UNSUPPORTED

    def __init__(self, operation: str, *, path: str | None = None) -> None:
        """Create an error naming the unsupported ``operation``."""
        super().__init__(f"Backend does not support {operation}", path=path)
        self.operation = operation


class InvalidOperationError(BackendError):
    """Raised when an operation is not allowed for the given path."""

    @classmethod
    def cannot_read_directory(cls, path: str) -> InvalidOperationError:
        """Return an error indicating directories cannot be read as files."""
        return cls("Cannot read directory", path=path, kind=ErrorKind.IS_A_DIRECTORY)

    @classmethod
    def is_a_directory(cls, path: str) -> InvalidOperationError:
        """Return an error for a file operation that targeted a directory."""
        return cls("Is a directory", path=path, kind=ErrorKind.IS_A_DIRECTORY)

    @classmethod
    def not_a_directory(cls, path: str) -> InvalidOperationError:
        """Return an error for a directory operation that targeted a file."""
        return cls("Not a directory", path=path, kind=ErrorKind.NOT_A_DIRECTORY)

    @classmethod
    def directory_not_empty(cls, path: str) -> InvalidOperationError:
        """Return an error indicating recursive deletion is required."""
        return cls(
            "Directory not empty",
            path=path,
            kind=ErrorKind.DIRECTORY_NOT_EMPTY,
        )

    @classmethod
    def into_own_subtree(cls, path: str) -> InvalidOperationError:
        """Return an error for moving a directory below itself."""
        return cls(
            "Cannot move a directory into itself",
            path=path,
            kind=ErrorKind.INVALID_ARGUMENT,
        )

    @classmethod
    def path_outside_root(cls, path: str) -> InvalidOperationError:
        """Return an error showing the path escapes the backend root."""
        return cls(
            "Path escapes backend root",
            path=path,
            kind=ErrorKind.PERMISSION_DENIED,
        )


@dataclass(frozen=True)
class Metadata:
    """Backend description of one object.

    Only ``path`` and ``type`` are mandatory; backends leave anything they
    cannot supply as ``None``.
    """

    path: str
    type: EntryType
    size: int | None = None
    timestamp: int | None = None
    visibility: Visibility | None = None
    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def is_dir(self) -> bool:
        """Whether the entry is a directory."""
        return self.type == "dir"

    def missing(self, keys: Iterable[str]) -> list[str]:
        """Return the subset of ``keys`` this record has no value for."""
        return [key for key in keys if getattr(self, key, None) is None]

    def with_values(self, **values: Any) -> Metadata:
        """Return a copy with the given fields filled in."""
        return replace(self, **values)

    def as_dict(self) -> dict:
        """Return a JSON-serialisable representation."""
        result = {"path": self.path, "type": self.type}
        for key in ("size", "timestamp", "visibility"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result


class StorageBackend(ABC):
    """Whole-object storage contract the stream wrapper is built on.

    Paths are normalised, ``/``-separated and relative to the backend root;
    the root itself is the empty string. Backends only need to read and
    write complete objects; positional I/O is emulated by the wrapper.
    """

    #: True when ``rename`` onto an existing destination replaces it in one
    #: step. Otherwise the wrapper deletes the destination first.
    supports_atomic_replace: bool = False

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Return True if a file or directory exists at ``path``."""

    @abstractmethod
    def read_stream(self, path: str) -> BinaryIO:
        """Return a binary stream positioned at the start of the object.

        Raises:
            NotFoundError: If the object does not exist.

        """

    @abstractmethod
    def write_stream(self, path: str, stream: BinaryIO) -> bool:
        """Replace the object at ``path`` with the remaining bytes of ``stream``.

        Missing parent directories are created. The stream is left open.
        """

    @abstractmethod
    def delete(self, path: str) -> bool:
        """Delete a file.

        Raises:
            NotFoundError: If the object does not exist.

        """

    @abstractmethod
    def rename(self, source: str, destination: str) -> bool:
        """Move ``source`` to ``destination``.

        Raises:
            NotFoundError: If ``source`` does not exist.
            AlreadyExistsError: If ``destination`` exists and the backend
                cannot replace it atomically.

        """

    @abstractmethod
    def create_dir(self, path: str) -> bool:
        """Create a directory, including missing parents."""

    @abstractmethod
    def delete_dir(self, path: str) -> bool:
        """Delete a directory and everything below it.

        Raises:
            RootViolationError: If ``path`` is the backend root.

        """

    @abstractmethod
    def list_contents(self, path: str) -> list[Metadata]:
        """Return the direct children of ``path`` in backend order."""

    @abstractmethod
    def get_metadata(self, path: str) -> Metadata:
        """Return whatever metadata the backend has for ``path``.

        Raises:
            NotFoundError: If the object does not exist.

        """

    def get_size(self, path: str) -> int:
        """Return the object size when ``get_metadata`` leaves it out."""
        raise UnsupportedOperationError("get_size", path=path)

    def get_timestamp(self, path: str) -> int:
        """Return the modification time when ``get_metadata`` leaves it out."""
        raise UnsupportedOperationError("get_timestamp", path=path)

    def get_visibility(self, path: str) -> Visibility:
        """Return the visibility when ``get_metadata`` leaves it out."""
        raise UnsupportedOperationError("get_visibility", path=path)

    def set_visibility(self, path: str, visibility: Visibility) -> bool:
        """Change the visibility of ``path``."""
        raise UnsupportedOperationError("set_visibility", path=path)
