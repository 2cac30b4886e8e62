"""Directory handles over a snapshot of one backend listing."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .path_utils import strip_directory_prefix

if TYPE_CHECKING:
    from collections.abc import Iterator
    from types import TracebackType

    from .interfaces import StorageBackend
    from .path_utils import ResolvedReference


class DirectoryHandle:
    """Ordered entry names of one directory, captured when it was opened.

    The snapshot is not refreshed when the backend changes. ``rewind`` moves
    the cursor back to the first entry without querying the backend again.

    Example:

        >>> with wrapper.opendir("mem://docs") as entries:
        ...     list(entries)
        ['a.txt', 'sub']

    """

    def __init__(self, reference: ResolvedReference, entries: list[str]) -> None:
        self._reference = reference
        self._entries: list[str] | None = list(entries)
        self._position = 0

    @classmethod
    def snapshot(
        cls,
        backend: StorageBackend,
        reference: ResolvedReference,
    ) -> DirectoryHandle:
        """List ``reference`` once and keep the names relative to it."""
        listing = backend.list_contents(reference.path)
        names = [
            strip_directory_prefix(entry.path, reference.path) for entry in listing
        ]
        return cls(reference, names)

    @property
    def reference(self) -> ResolvedReference:
        return self._reference

    @property
    def closed(self) -> bool:
        return self._entries is None

    @property
    def entries(self) -> list[str]:
        """A copy of the full snapshot (empty once closed)."""
        return list(self._entries or [])

    def read(self) -> str | None:
        """Return the next entry name, or None at the end."""
        if self._entries is None or self._position >= len(self._entries):
            return None
        name = self._entries[self._position]
        self._position += 1
        return name

    def rewind(self) -> bool:
        if self._entries is None:
            return False
        self._position = 0
        return True

    def close(self) -> None:
        self._entries = None
        self._position = 0

    def __iter__(self) -> Iterator[str]:
        while True:
            name = self.read()
            if name is None:
                return
            yield name

    def __len__(self) -> int:
        return len(self._entries or [])

    def __enter__(self) -> DirectoryHandle:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<DirectoryHandle {self._reference.reference!r} entries={len(self)}>"
