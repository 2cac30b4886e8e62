"""Dirty tracking and whole-object commits for open handles."""

from __future__ import annotations

import io
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .buffers import BorrowedBuffer, OwnedBuffer
    from .interfaces import StorageBackend

logger = logging.getLogger(__name__)


class CommitCoordinator:
    """Decides when a handle's buffer has to be written back, and writes it.

    The backend only accepts complete objects, so a commit always sends the
    whole buffer from offset zero. The caller-visible cursor is restored
    afterwards.
    """

    def __init__(
        self,
        backend: StorageBackend,
        path: str,
        *,
        dirty: bool = False,
    ) -> None:
        self._backend = backend
        self._path = path
        self._dirty = dirty

    @property
    def dirty(self) -> bool:
        """Whether the buffer holds changes the backend has not seen."""
        return self._dirty

    def mark_dirty(self) -> None:
        self._dirty = True

    def flush(self, buffer: BorrowedBuffer | OwnedBuffer) -> bool:
        """Commit ``buffer`` if it has pending changes.

        Returns:
            True if nothing was pending or the backend accepted the write,
            False if the backend reported failure. Backend exceptions
            propagate.

        """
        if not self._dirty:
            return True

        position = buffer.tell()
        buffer.seek(0, io.SEEK_SET)
        try:
            success = bool(self._backend.write_stream(self._path, buffer.stream))
        finally:
            buffer.seek(position, io.SEEK_SET)

        if success:
            self._dirty = False
            logger.debug("Committed %s (%d bytes)", self._path, buffer.size())
        else:
            logger.warning("Backend rejected write of %s", self._path)
        return success
