"""Turn an open mode and a backend object into a local buffer.

Backends only hand out whole-object streams, so every open decides up front
what the handle's buffer starts as:

=============  ======================  ===================================
Mode           Object missing          Object present
=============  ======================  ===================================
``r``          ``NotFoundError``       backend stream, borrowed read-only;
                                       copied if it cannot seek
``r+``         ``NotFoundError``       backend stream, copy-on-write unless
                                       the stream is writable and seekable
``w``          empty buffer, dirty     empty buffer, dirty
``a``          empty buffer, dirty     like ``c``, positioned at the end
``x``          empty buffer, dirty     ``AlreadyExistsError``
``c``          empty buffer, dirty     backend stream, copy-on-write unless
                                       the stream is writable and seekable
=============  ======================  ===================================

Without ``+`` the ``w``, ``a``, ``x`` and ``c`` modes are write-only.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, BinaryIO, Callable

from .buffers import BorrowedBuffer, OwnedBuffer
from .config import DEFAULT_MEMORY_LIMIT
from .interfaces import AlreadyExistsError, InvalidOperationError, NotFoundError
from .utils import is_seekable, is_writable

if TYPE_CHECKING:
    from .interfaces import StorageBackend

logger = logging.getLogger(__name__)


class OpenIntent(str, Enum):
    """The five canonical open intents, keyed by their mode letter."""

    READ = "r"
    WRITE_TRUNCATE = "w"
    APPEND = "a"
    CREATE_EXCLUSIVE = "x"
    WRITE_OR_CREATE = "c"


@dataclass(frozen=True)
class OpenMode:
    """A parsed mode string such as ``"rb"``, ``"a+"`` or ``"c+b"``."""

    intent: OpenIntent
    plus: bool
    raw: str

    @classmethod
    def parse(cls, mode: str) -> OpenMode:
        """Parse a mode string.

        Raises:
            ValueError: If the mode is malformed.

        """
        if not isinstance(mode, str) or not mode:
            message = f"invalid mode: {mode!r}"
            raise ValueError(message)

        try:
            intent = OpenIntent(mode[0])
        except ValueError:
            message = f"invalid mode: {mode!r}"
            raise ValueError(message) from None

        modifiers = mode[1:]
        if (
            any(char not in "+bt" for char in modifiers)
            or len(set(modifiers)) != len(modifiers)
            or ("b" in modifiers and "t" in modifiers)
        ):
            message = f"invalid mode: {mode!r}"
            raise ValueError(message)

        return cls(intent=intent, plus="+" in modifiers, raw=mode)

    @property
    def read_only(self) -> bool:
        return self.intent is OpenIntent.READ and not self.plus

    @property
    def write_only(self) -> bool:
        return self.intent is not OpenIntent.READ and not self.plus

    @property
    def append_only(self) -> bool:
        return self.intent is OpenIntent.APPEND

    def __str__(self) -> str:
        return self.raw


@dataclass
class Materialized:
    """Initial state of a handle: its buffer and whether it must be committed."""

    buffer: BorrowedBuffer | OwnedBuffer
    dirty: bool = False

    @property
    def copy_on_write(self) -> bool:
        return self.buffer.borrowed


def materialize(
    backend: StorageBackend,
    path: str,
    mode: OpenMode,
    *,
    memory_limit: int = DEFAULT_MEMORY_LIMIT,
) -> Materialized:
    """Build the initial buffer for opening ``path`` with ``mode``.

    Raises:
        NotFoundError: Read modes on a missing object.
        AlreadyExistsError: Exclusive create on an existing object.
        InvalidOperationError: Write modes on a directory.

    """
    strategy = _STRATEGIES[mode.intent]
    return strategy(backend, path, mode, memory_limit)


def adopt_stream(
    stream: BinaryIO,
    memory_limit: int = DEFAULT_MEMORY_LIMIT,
) -> BorrowedBuffer | OwnedBuffer:
    """Wrap a backend stream for a handle that may write.

    A writable, seekable stream is used directly. A read-only but seekable
    stream is borrowed and copied on first mutation. Anything else is copied
    right away, since copy-on-write has to rewind the source.
    """
    seekable = is_seekable(stream)
    if seekable and is_writable(stream):
        return OwnedBuffer(stream)
    if seekable:
        return BorrowedBuffer(stream)
    buffer = OwnedBuffer.copy_of(stream, memory_limit)
    stream.close()
    return buffer


def _open_read(
    backend: StorageBackend,
    path: str,
    mode: OpenMode,
    memory_limit: int,
) -> Materialized:
    stream = backend.read_stream(path)
    if mode.read_only:
        if is_seekable(stream):
            return Materialized(BorrowedBuffer(stream))
        # Handles must be able to seek even when they never write.
        buffer = OwnedBuffer.copy_of(stream, memory_limit)
        stream.close()
        return Materialized(buffer)
    return Materialized(adopt_stream(stream, memory_limit))


def _open_truncate(
    backend: StorageBackend,
    path: str,
    mode: OpenMode,
    memory_limit: int,
) -> Materialized:
    # Existing content is dropped unread, but a directory cannot become a file.
    if path == "" or (backend.exists(path) and backend.get_metadata(path).is_dir):
        raise InvalidOperationError.is_a_directory(path)
    return Materialized(OwnedBuffer.empty(memory_limit), dirty=True)


def _open_or_create(
    backend: StorageBackend,
    path: str,
    mode: OpenMode,
    memory_limit: int,
) -> Materialized:
    try:
        stream = backend.read_stream(path)
    except NotFoundError:
        logger.debug("Creating %s on first commit", path)
        return Materialized(OwnedBuffer.empty(memory_limit), dirty=True)
    return Materialized(adopt_stream(stream, memory_limit))


def _open_append(
    backend: StorageBackend,
    path: str,
    mode: OpenMode,
    memory_limit: int,
) -> Materialized:
    materialized = _open_or_create(backend, path, mode, memory_limit)
    materialized.buffer.seek(0, io.SEEK_END)
    return materialized


def _open_exclusive(
    backend: StorageBackend,
    path: str,
    mode: OpenMode,
    memory_limit: int,
) -> Materialized:
    if backend.exists(path):
        raise AlreadyExistsError(path)
    return Materialized(OwnedBuffer.empty(memory_limit), dirty=True)


_STRATEGIES: dict[
    OpenIntent,
    Callable[[StorageBackend, str, OpenMode, int], Materialized],
] = {
    OpenIntent.READ: _open_read,
    OpenIntent.WRITE_TRUNCATE: _open_truncate,
    OpenIntent.APPEND: _open_append,
    OpenIntent.CREATE_EXCLUSIVE: _open_exclusive,
    OpenIntent.WRITE_OR_CREATE: _open_or_create,
}
