"""Tests covering MemoryStorageBackend operations."""

from __future__ import annotations

import io

import pytest

from f9_stream_wrapper import (
    AlreadyExistsError,
    InvalidOperationError,
    MemoryStorageBackend,
    NotFoundError,
    RootViolationError,
)


@pytest.fixture
def backend() -> MemoryStorageBackend:
    """Provide an empty in-memory backend."""
    return MemoryStorageBackend()


def _put(backend: MemoryStorageBackend, path: str, data: bytes) -> None:
    backend.write_stream(path, io.BytesIO(data))


class TestObjects:
    """Tests for file objects."""

    def test_write_creates_parents(self, backend: MemoryStorageBackend) -> None:
        """Parents are created implicitly."""
        _put(backend, "a/b/c.txt", b"data")
        assert backend.get_metadata("a").is_dir
        assert backend.get_metadata("a/b").is_dir
        assert backend.read_stream("a/b/c.txt").read() == b"data"

    def test_read_stream_is_private_copy(self, backend: MemoryStorageBackend) -> None:
        """Streams are writable copies that never touch the stored object."""
        _put(backend, "a.txt", b"data")
        stream = backend.read_stream("a.txt")
        assert stream.writable()
        stream.write(b"XX")
        assert backend.read_stream("a.txt").read() == b"data"

    def test_read_stream_root(self, backend: MemoryStorageBackend) -> None:
        """The root is a directory, not a file."""
        with pytest.raises(InvalidOperationError):
            backend.read_stream("")

    def test_write_keeps_visibility(self, backend: MemoryStorageBackend) -> None:
        """Rewriting an object keeps its visibility."""
        _put(backend, "a.txt", b"one")
        backend.set_visibility("a.txt", "private")
        _put(backend, "a.txt", b"two")
        assert backend.get_metadata("a.txt").visibility == "private"

    def test_write_under_file(self, backend: MemoryStorageBackend) -> None:
        """Files cannot act as parents."""
        _put(backend, "a.txt", b"x")
        with pytest.raises(InvalidOperationError):
            _put(backend, "a.txt/b.txt", b"y")

    def test_delete(self, backend: MemoryStorageBackend) -> None:
        """Files are deleted, directories are refused."""
        _put(backend, "dir/a.txt", b"x")
        assert backend.delete("dir/a.txt")
        assert not backend.exists("dir/a.txt")
        with pytest.raises(InvalidOperationError):
            backend.delete("dir")
        with pytest.raises(NotFoundError):
            backend.delete("dir/a.txt")


class TestRename:
    """Tests for rename."""

    def test_rename_file(self, backend: MemoryStorageBackend) -> None:
        """Files move to the new path, creating parents."""
        _put(backend, "a.txt", b"x")
        backend.rename("a.txt", "new/b.txt")
        assert not backend.exists("a.txt")
        assert backend.read_stream("new/b.txt").read() == b"x"

    def test_rename_directory_moves_tree(self, backend: MemoryStorageBackend) -> None:
        """Descendants move along with a directory."""
        _put(backend, "src/a.txt", b"a")
        _put(backend, "src/sub/b.txt", b"b")
        backend.rename("src", "dst")
        assert not backend.exists("src")
        assert backend.read_stream("dst/a.txt").read() == b"a"
        assert backend.read_stream("dst/sub/b.txt").read() == b"b"

    def test_rename_replaces_when_atomic(self, backend: MemoryStorageBackend) -> None:
        """Atomic backends replace an existing destination."""
        _put(backend, "a.txt", b"new")
        _put(backend, "b.txt", b"old")
        backend.rename("a.txt", "b.txt")
        assert backend.read_stream("b.txt").read() == b"new"

    def test_rename_refuses_when_not_atomic(self) -> None:
        """Non-atomic backends refuse to overwrite."""
        backend = MemoryStorageBackend(atomic_replace=False)
        _put(backend, "a.txt", b"new")
        _put(backend, "b.txt", b"old")
        assert not backend.supports_atomic_replace
        with pytest.raises(AlreadyExistsError):
            backend.rename("a.txt", "b.txt")

    def test_rename_missing(self, backend: MemoryStorageBackend) -> None:
        """Missing sources raise NotFoundError."""
        with pytest.raises(NotFoundError):
            backend.rename("missing.txt", "b.txt")


class TestDirectories:
    """Tests for directory operations."""

    def test_create_dir(self, backend: MemoryStorageBackend) -> None:
        """Directories are created with parents and creation is idempotent."""
        assert backend.create_dir("a/b")
        assert backend.create_dir("a/b")
        assert backend.get_metadata("a").is_dir

    def test_create_dir_over_file(self, backend: MemoryStorageBackend) -> None:
        """A file cannot become a directory."""
        _put(backend, "a", b"x")
        with pytest.raises(InvalidOperationError):
            backend.create_dir("a")

    def test_delete_dir(self, backend: MemoryStorageBackend) -> None:
        """Deleting a directory removes its descendants only."""
        _put(backend, "a/b.txt", b"x")
        _put(backend, "ab.txt", b"y")
        backend.delete_dir("a")
        assert not backend.exists("a/b.txt")
        assert backend.exists("ab.txt")

    def test_delete_root(self, backend: MemoryStorageBackend) -> None:
        """The root cannot be deleted."""
        with pytest.raises(RootViolationError):
            backend.delete_dir("")

    def test_list_contents_order(self, backend: MemoryStorageBackend) -> None:
        """Listings are one level deep in insertion order."""
        _put(backend, "docs/z.txt", b"z")
        _put(backend, "docs/a.txt", b"a")
        _put(backend, "docs/sub/deep.txt", b"d")
        listing = backend.list_contents("docs")
        assert [entry.path for entry in listing] == [
            "docs/z.txt",
            "docs/a.txt",
            "docs/sub",
        ]

    def test_list_root(self, backend: MemoryStorageBackend) -> None:
        """The root lists top-level entries."""
        _put(backend, "a.txt", b"a")
        _put(backend, "dir/b.txt", b"b")
        assert [entry.path for entry in backend.list_contents("")] == ["a.txt", "dir"]

    def test_get_metadata(self, backend: MemoryStorageBackend) -> None:
        """Metadata carries size, timestamp and visibility."""
        _put(backend, "a.txt", b"hello")
        metadata = backend.get_metadata("a.txt")
        assert metadata.size == 5
        assert metadata.timestamp is not None
        assert metadata.visibility == "public"
        assert backend.get_metadata("").is_dir
