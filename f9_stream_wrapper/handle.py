"""Open file sessions over whole-object backends.

A :class:`StreamHandle` gives positional, mutable access to one backend
object. Reads and writes go to a local buffer that was materialised when the
handle was opened; the buffer is written back to the backend as a whole on
:meth:`StreamHandle.flush` and :meth:`StreamHandle.close`.

Handles follow native file API conventions rather than raising on refused
operations:

- writes on a read-only handle return 0 and truncation returns False
- reads on a write-only handle return ``b""``
- ``seek`` returns False instead of raising on an invalid offset

Example:

    >>> with wrapper.open("mem://a.txt", "c+") as handle:
    ...     handle.write(b"hello")
    ...     handle.seek(0)
    ...     handle.read(5)
    5
    True
    b'hello'

"""

from __future__ import annotations

import io
import logging
from enum import IntEnum
from typing import TYPE_CHECKING, Any, BinaryIO

from .commit import CommitCoordinator
from .interfaces import NotFoundError
from .locking import AdvisoryLock
from .metadata import StatResult, stat_path
from .utils import coerce_to_bytes

if TYPE_CHECKING:
    from types import TracebackType

    from .buffers import BorrowedBuffer, OwnedBuffer
    from .config import WrapperConfig
    from .interfaces import StorageBackend
    from .materialize import Materialized, OpenMode
    from .path_utils import ResolvedReference

logger = logging.getLogger(__name__)


class StreamOption(IntEnum):
    """Stream options that are relayed to the underlying stream."""

    BLOCKING = 1
    READ_TIMEOUT = 4
    WRITE_BUFFER = 3


_OPTION_METHODS = {
    StreamOption.BLOCKING: "setblocking",
    StreamOption.READ_TIMEOUT: "settimeout",
    StreamOption.WRITE_BUFFER: "set_write_buffer",
}


class StreamHandle:
    """One open session on a backend object.

    Handles are not thread-safe; each one is meant to be used by the code
    that opened it. Use them as context managers so buffered writes are
    committed and the buffer released.
    """

    def __init__(
        self,
        reference: ResolvedReference,
        backend: StorageBackend,
        config: WrapperConfig,
        mode: OpenMode,
        materialized: Materialized,
    ) -> None:
        self._reference = reference
        self._backend = backend
        self._config = config
        self._mode = mode
        self._buffer: BorrowedBuffer | OwnedBuffer = materialized.buffer
        self._commit = CommitCoordinator(
            backend,
            reference.path,
            dirty=materialized.dirty,
        )
        self._lock: AdvisoryLock | None = None
        self._closed = False

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<StreamHandle {self._reference.reference!r} mode={self._mode} {state}>"

    def __enter__(self) -> StreamHandle:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def reference(self) -> ResolvedReference:
        return self._reference

    @property
    def mode(self) -> OpenMode:
        return self._mode

    @property
    def read_only(self) -> bool:
        return self._mode.read_only

    @property
    def write_only(self) -> bool:
        return self._mode.write_only

    @property
    def append_only(self) -> bool:
        return self._mode.append_only

    @property
    def copy_on_write(self) -> bool:
        """Whether the buffer is still the backend's stream awaiting a copy."""
        return self._buffer.borrowed and not self._mode.read_only

    @property
    def needs_flush(self) -> bool:
        return self._commit.dirty

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def raw(self) -> BinaryIO:
        """The stream currently backing the handle."""
        self._check_open()
        return self._buffer.stream

    def readable(self) -> bool:
        return not self._mode.write_only

    def writable(self) -> bool:
        return not self._mode.read_only

    def read(self, count: int = -1) -> bytes:
        """Read up to ``count`` bytes (everything when negative)."""
        self._check_open()
        if self._mode.write_only:
            return b""
        return self._buffer.read(count)

    def write(self, data: bytes | bytearray | memoryview | str) -> int:
        """Write ``data`` at the cursor, or at the end in append mode.

        Returns:
            Number of bytes accepted; 0 on read-only handles.

        """
        self._check_open()
        if self._mode.read_only:
            return 0
        payload = coerce_to_bytes(data)
        buffer = self._owned_buffer()
        if self._mode.append_only:
            buffer.seek(0, io.SEEK_END)
        written = buffer.write(payload)
        self._commit.mark_dirty()
        return written

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> bool:
        """Move the cursor. Returns False if the target is invalid."""
        self._check_open()
        try:
            if whence == io.SEEK_SET:
                target = offset
            elif whence == io.SEEK_CUR:
                target = self._buffer.tell() + offset
            elif whence == io.SEEK_END:
                target = self._buffer.size() + offset
            else:
                return False
            if target < 0:
                return False
            self._buffer.seek(target, io.SEEK_SET)
        except (OSError, ValueError):
            return False
        return True

    def tell(self) -> int:
        """Return the cursor position."""
        self._check_open()
        return self._buffer.tell()

    def eof(self) -> bool:
        """Whether the cursor is at or past the end of the content."""
        self._check_open()
        return self._buffer.tell() >= self._buffer.size()

    def truncate(self, size: int) -> bool:
        """Resize the content to ``size`` bytes without moving the cursor.

        Returns:
            False on read-only handles and for negative sizes.

        """
        self._check_open()
        if self._mode.read_only or size < 0:
            return False
        self._owned_buffer().truncate(size)
        self._commit.mark_dirty()
        return True

    def flush(self) -> bool:
        """Commit pending writes to the backend, keeping the cursor."""
        self._check_open()
        return self._commit.flush(self._buffer)

    def close(self) -> None:
        """Commit pending writes and release the buffer and any lock.

        Closing twice is a no-op.
        """
        if self._closed:
            return
        try:
            if not self._commit.flush(self._buffer):
                logger.warning(
                    "Discarding unsaved changes to %s",
                    self._reference.reference,
                )
        finally:
            self._closed = True
            self._buffer.close()
            if self._lock is not None:
                self._lock.release()

    def stat(self) -> StatResult:
        """Return stat data, with the size of the local buffer.

        Objects that do not exist on the backend yet are reported as public
        files.
        """
        self._check_open()
        try:
            record = stat_path(
                self._backend,
                self._reference.path,
                self._config,
                ignore_size=True,
            )
        except NotFoundError:
            record = StatResult(st_mode=self._config.file_mode())
        return record.with_size(self._buffer.size())

    def lock(self, operation: int) -> bool:
        """Apply an advisory lock operation (``LOCK_SH``/``LOCK_EX``/``LOCK_UN``).

        The lock is keyed by the normalised reference and is released when
        the handle is closed.
        """
        self._check_open()
        if self._lock is None:
            self._lock = AdvisoryLock.for_reference(
                self._reference.normalized,
                self._config,
            )
        return self._lock.apply(operation)

    def set_option(self, option: int, value: Any) -> bool:
        """Relay a stream option to the underlying stream if it supports it."""
        self._check_open()
        try:
            method_name = _OPTION_METHODS[StreamOption(option)]
        except ValueError:
            return False
        method = getattr(self._buffer.stream, method_name, None)
        if method is None:
            return False
        method(value)
        return True

    def _owned_buffer(self) -> OwnedBuffer:
        buffer = self._buffer.to_owned(self._config.memory_limit)
        self._buffer = buffer
        return buffer

    def _check_open(self) -> None:
        if self._closed:
            message = "I/O operation on closed handle"
            raise ValueError(message)
