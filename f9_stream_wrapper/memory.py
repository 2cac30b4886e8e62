"""In-memory implementation of the storage backend port.

Objects are kept in a single insertion-ordered index, so directory listings
come back in the order entries were first created. Parent directories are
created implicitly when a file is written.

Example:

    >>> import io
    >>> from f9_stream_wrapper import MemoryStorageBackend
    >>> backend = MemoryStorageBackend()
    >>> backend.write_stream("docs/a.txt", io.BytesIO(b"hello"))
    True
    >>> [entry.path for entry in backend.list_contents("docs")]
    ['docs/a.txt']
    >>> backend.read_stream("docs/a.txt").read()
    b'hello'

"""

from __future__ import annotations

import io
import threading
import time
from dataclasses import dataclass
from typing import BinaryIO

from .interfaces import (
    VISIBILITY_PUBLIC,
    EntryType,
    InvalidOperationError,
    Metadata,
    RootViolationError,
    StorageBackend,
    Visibility,
)
from .path_utils import dirname
from .utils import accumulate_chunks
from .validation import (
    validate_entry_exists,
    validate_entry_not_exists,
    validate_is_directory,
    validate_is_file,
    validate_not_overwriting_directory_with_file,
)


@dataclass
class _MemoryEntry:
    """Internal representation of a stored object."""

    type: EntryType
    content: bytes
    timestamp: int
    visibility: Visibility

    @property
    def is_dir(self) -> bool:
        return self.type == "dir"


class MemoryStorageBackend(StorageBackend):
    """Backend that keeps every object in process memory."""

    def __init__(self, *, atomic_replace: bool = True) -> None:
        """Create an empty store.

        Args:
            atomic_replace: Whether ``rename`` may replace an existing
                destination. When False the backend refuses with
                ``AlreadyExistsError`` and the wrapper deletes first.

        """
        self.supports_atomic_replace = atomic_replace
        self._entries: dict[str, _MemoryEntry] = {}
        self._root = self._new_dir()
        self._lock = threading.RLock()

    def __repr__(self) -> str:
        return f"MemoryStorageBackend(entries={len(self._entries)})"

    def exists(self, path: str) -> bool:
        """Return True for the root and for stored entries."""
        with self._lock:
            return path == "" or path in self._entries

    def read_stream(self, path: str) -> BinaryIO:
        """Return a private, writable copy of the object content."""
        with self._lock:
            entry = validate_entry_exists(self._entry(path), path)
            validate_is_file(entry, path)
            return io.BytesIO(entry.content)

    def write_stream(self, path: str, stream: BinaryIO) -> bool:
        """Store the remaining content of ``stream`` at ``path``."""
        payload = accumulate_chunks(stream)
        with self._lock:
            existing = self._entry(path)
            validate_not_overwriting_directory_with_file(existing, path)
            self._ensure_parents(path)
            self._entries[path] = _MemoryEntry(
                type="file",
                content=payload,
                timestamp=int(time.time()),
                visibility=existing.visibility if existing else VISIBILITY_PUBLIC,
            )
        return True

    def delete(self, path: str) -> bool:
        """Delete a file."""
        with self._lock:
            entry = validate_entry_exists(self._entry(path), path)
            if entry.is_dir:
                raise InvalidOperationError.is_a_directory(path)
            del self._entries[path]
        return True

    def rename(self, source: str, destination: str) -> bool:
        """Move an entry, and everything below it for directories."""
        with self._lock:
            validate_entry_exists(self._entry(source), source)
            if not self.supports_atomic_replace:
                validate_entry_not_exists(self._entry(destination), destination)
            self._ensure_parents(destination)
            moved = {
                key: entry
                for key, entry in self._entries.items()
                if key == source or key.startswith(source + "/")
            }
            for key in moved:
                del self._entries[key]
            self._drop_tree(destination)
            for key, entry in moved.items():
                self._entries[destination + key[len(source) :]] = entry
        return True

    def create_dir(self, path: str) -> bool:
        """Create a directory and any missing parents."""
        with self._lock:
            existing = self._entry(path)
            if existing is not None:
                validate_is_directory(existing, path)
                return True
            self._ensure_parents(path)
            if path:
                self._entries[path] = self._new_dir()
        return True

    def delete_dir(self, path: str) -> bool:
        """Delete a directory and its descendants."""
        with self._lock:
            if path == "":
                raise RootViolationError(path)
            entry = validate_entry_exists(self._entry(path), path)
            validate_is_directory(entry, path)
            self._drop_tree(path)
        return True

    def list_contents(self, path: str) -> list[Metadata]:
        """Return the direct children of ``path`` in insertion order."""
        with self._lock:
            if path:
                entry = validate_entry_exists(self._entry(path), path)
                validate_is_directory(entry, path)
            return [
                self._metadata(key, entry)
                for key, entry in self._entries.items()
                if dirname(key) == path
            ]

    def get_metadata(self, path: str) -> Metadata:
        """Return the stored metadata for ``path``."""
        with self._lock:
            if path == "":
                return Metadata(path="", type="dir", visibility=VISIBILITY_PUBLIC)
            entry = validate_entry_exists(self._entry(path), path)
            return self._metadata(path, entry)

    def set_visibility(self, path: str, visibility: Visibility) -> bool:
        """Record a new visibility for ``path``."""
        with self._lock:
            entry = validate_entry_exists(self._entry(path), path)
            entry.visibility = visibility
        return True

    def _entry(self, path: str) -> _MemoryEntry | None:
        if path == "":
            return self._root
        return self._entries.get(path)

    def _new_dir(self) -> _MemoryEntry:
        return _MemoryEntry(
            type="dir",
            content=b"",
            timestamp=int(time.time()),
            visibility=VISIBILITY_PUBLIC,
        )

    def _ensure_parents(self, path: str) -> None:
        parent = dirname(path)
        missing: list[str] = []
        while parent:
            entry = self._entry(parent)
            if entry is not None:
                validate_is_directory(entry, parent)
                break
            missing.append(parent)
            parent = dirname(parent)
        for directory in reversed(missing):
            self._entries[directory] = self._new_dir()

    def _drop_tree(self, path: str) -> None:
        doomed = [
            key
            for key in self._entries
            if key == path or key.startswith(path + "/")
        ]
        for key in doomed:
            del self._entries[key]

    @staticmethod
    def _metadata(path: str, entry: _MemoryEntry) -> Metadata:
        return Metadata(
            path=path,
            type=entry.type,
            size=None if entry.is_dir else len(entry.content),
            timestamp=entry.timestamp,
            visibility=entry.visibility,
        )
