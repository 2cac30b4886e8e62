"""Local buffers backing open stream handles.

A handle's buffer is either *borrowed* (the stream the backend handed back,
which may be shared or read-only) or *owned* (a private spooled temporary
file). Only :class:`OwnedBuffer` exposes mutating methods; a borrowed buffer
must be promoted with :meth:`BorrowedBuffer.to_owned` first, which copies the
content and keeps the cursor where it was.
"""

from __future__ import annotations

import io
import logging
import tempfile
from typing import BinaryIO

from .config import DEFAULT_MEMORY_LIMIT
from .utils import copy_stream, is_seekable, stream_size

logger = logging.getLogger(__name__)


def new_spool(memory_limit: int = DEFAULT_MEMORY_LIMIT) -> BinaryIO:
    """Return an empty read/write buffer that spills to disk past the limit."""
    return tempfile.SpooledTemporaryFile(max_size=memory_limit, mode="w+b")  # type: ignore[return-value]  # noqa: SIM115


class _Buffer:
    """Read-side operations shared by both buffer kinds."""

    borrowed: bool

    def __init__(self, stream: BinaryIO) -> None:
        self.stream = stream

    def read(self, count: int = -1) -> bytes:
        return self.stream.read(count)

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        return self.stream.seek(offset, whence)

    def tell(self) -> int:
        return self.stream.tell()

    def size(self) -> int:
        return stream_size(self.stream)

    @property
    def closed(self) -> bool:
        return bool(getattr(self.stream, "closed", False))

    def close(self) -> None:
        self.stream.close()


class OwnedBuffer(_Buffer):
    """A private buffer that only its handle can see."""

    borrowed = False

    @classmethod
    def empty(cls, memory_limit: int = DEFAULT_MEMORY_LIMIT) -> OwnedBuffer:
        """Return a new empty buffer."""
        return cls(new_spool(memory_limit))

    @classmethod
    def copy_of(
        cls,
        source: BinaryIO,
        memory_limit: int = DEFAULT_MEMORY_LIMIT,
    ) -> OwnedBuffer:
        """Copy the whole of ``source`` into a new buffer.

        Seekable sources are copied from offset zero and the new buffer is
        positioned where the source was. Other sources are copied from their
        current position and the new buffer starts at zero.
        """
        target = new_spool(memory_limit)
        position = 0
        if is_seekable(source):
            position = source.tell()
            source.seek(0)
        copy_stream(source, target)
        target.seek(position)
        return cls(target)

    def to_owned(self, memory_limit: int = DEFAULT_MEMORY_LIMIT) -> OwnedBuffer:
        return self

    def write(self, data: bytes) -> int:
        return self.stream.write(data)

    def truncate(self, size: int) -> None:
        """Resize to ``size`` bytes without moving the cursor.

        Growing pads with zero bytes.
        """
        current = self.size()
        if size <= current:
            self.stream.truncate(size)
            return
        position = self.stream.tell()
        self.stream.seek(0, io.SEEK_END)
        self.stream.write(b"\0" * (size - current))
        self.stream.seek(position)


class BorrowedBuffer(_Buffer):
    """The backend's own stream, used as-is until the first mutation."""

    borrowed = True

    def to_owned(self, memory_limit: int = DEFAULT_MEMORY_LIMIT) -> OwnedBuffer:
        """Copy the content into a private buffer and release the stream."""
        owned = OwnedBuffer.copy_of(self.stream, memory_limit)
        self.stream.close()
        logger.debug("Copied borrowed stream into a private buffer")
        return owned
