"""Tests covering LocalStorageBackend operations."""

from __future__ import annotations

import io
import os
import stat
import sys
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from pathlib import Path

from f9_stream_wrapper import (
    InvalidOperationError,
    LocalStorageBackend,
    NotFoundError,
    RootViolationError,
)


@pytest.fixture
def backend(tmp_path: Path) -> LocalStorageBackend:
    """Provide a backend instance scoped to a temporary directory."""
    return LocalStorageBackend(root=tmp_path)


def test_write_and_read_stream(backend: LocalStorageBackend) -> None:
    """Whole-object writes create parents and can be read back."""
    assert backend.write_stream("docs/a.txt", io.BytesIO(b"hello"))
    assert backend.exists("docs")
    with backend.read_stream("docs/a.txt") as stream:
        assert stream.read() == b"hello"


def test_write_stream_uses_remaining_bytes(backend: LocalStorageBackend) -> None:
    """Only the bytes after the stream position are written."""
    source = io.BytesIO(b"skip-keep")
    source.seek(5)
    backend.write_stream("a.txt", source)
    assert (backend.root / "a.txt").read_bytes() == b"keep"


def test_read_stream_is_read_only(backend: LocalStorageBackend) -> None:
    """Streams handed out by the local backend do not accept writes."""
    backend.write_stream("a.txt", io.BytesIO(b"data"))
    with backend.read_stream("a.txt") as stream:
        assert stream.seekable()
        assert not stream.writable()


def test_read_stream_missing(backend: LocalStorageBackend) -> None:
    """Reading a missing file raises NotFoundError."""
    with pytest.raises(NotFoundError):
        backend.read_stream("missing.txt")


def test_read_stream_directory(backend: LocalStorageBackend) -> None:
    """Directories cannot be read as files."""
    backend.create_dir("dir")
    with pytest.raises(InvalidOperationError):
        backend.read_stream("dir")


def test_write_stream_over_directory(backend: LocalStorageBackend) -> None:
    """A file cannot replace a directory."""
    backend.create_dir("dir")
    with pytest.raises(InvalidOperationError):
        backend.write_stream("dir", io.BytesIO(b"x"))


def test_write_stream_keeps_permissions(backend: LocalStorageBackend) -> None:
    """Rewriting a file keeps its permission bits."""
    backend.write_stream("a.txt", io.BytesIO(b"one"))
    backend.set_visibility("a.txt", "private")
    backend.write_stream("a.txt", io.BytesIO(b"two"))
    assert backend.get_visibility("a.txt") == "private"
    assert not list(backend.root.glob(".tmp-*"))


def test_delete(backend: LocalStorageBackend) -> None:
    """Files can be deleted, directories and missing paths cannot."""
    backend.write_stream("a.txt", io.BytesIO(b"x"))
    backend.create_dir("dir")
    assert backend.delete("a.txt")
    assert not backend.exists("a.txt")
    with pytest.raises(NotFoundError):
        backend.delete("a.txt")
    with pytest.raises(InvalidOperationError):
        backend.delete("dir")


def test_rename_replaces_destination(backend: LocalStorageBackend) -> None:
    """Rename replaces an existing destination in one step."""
    backend.write_stream("a.txt", io.BytesIO(b"new"))
    backend.write_stream("b.txt", io.BytesIO(b"old"))
    assert backend.supports_atomic_replace
    assert backend.rename("a.txt", "b.txt")
    assert not backend.exists("a.txt")
    assert (backend.root / "b.txt").read_bytes() == b"new"


def test_rename_missing_source(backend: LocalStorageBackend) -> None:
    """Renaming a missing source raises NotFoundError."""
    with pytest.raises(NotFoundError):
        backend.rename("missing.txt", "b.txt")


def test_create_and_delete_dir(backend: LocalStorageBackend) -> None:
    """Directories are created with parents and deleted recursively."""
    assert backend.create_dir("a/b/c")
    backend.write_stream("a/b/c/file.txt", io.BytesIO(b"x"))
    assert backend.delete_dir("a")
    assert not backend.exists("a")


def test_create_dir_over_file(backend: LocalStorageBackend) -> None:
    """A directory cannot replace a file."""
    backend.write_stream("a.txt", io.BytesIO(b"x"))
    with pytest.raises(InvalidOperationError):
        backend.create_dir("a.txt")


def test_delete_root(backend: LocalStorageBackend) -> None:
    """The root directory cannot be deleted."""
    with pytest.raises(RootViolationError):
        backend.delete_dir("")


def test_list_contents(backend: LocalStorageBackend) -> None:
    """Listings are one level deep and sorted by name."""
    backend.write_stream("docs/b.txt", io.BytesIO(b"b"))
    backend.write_stream("docs/a.txt", io.BytesIO(b"a"))
    backend.write_stream("docs/sub/c.txt", io.BytesIO(b"c"))
    listing = backend.list_contents("docs")
    assert [entry.path for entry in listing] == ["docs/a.txt", "docs/b.txt", "docs/sub"]
    assert [entry.type for entry in listing] == ["file", "file", "dir"]


def test_list_contents_of_file(backend: LocalStorageBackend) -> None:
    """Only directories can be listed."""
    backend.write_stream("a.txt", io.BytesIO(b"x"))
    with pytest.raises(InvalidOperationError):
        backend.list_contents("a.txt")


def test_get_metadata(backend: LocalStorageBackend) -> None:
    """Metadata carries size, timestamp and visibility."""
    backend.write_stream("a.txt", io.BytesIO(b"hello"))
    metadata = backend.get_metadata("a.txt")
    assert metadata.path == "a.txt"
    assert metadata.type == "file"
    assert metadata.size == 5
    assert metadata.timestamp == int(os.stat(backend.root / "a.txt").st_mtime)
    assert metadata.visibility == "public"
    assert backend.get_size("a.txt") == 5


def test_get_metadata_root(backend: LocalStorageBackend) -> None:
    """The root is reported as a directory with an empty path."""
    metadata = backend.get_metadata("")
    assert metadata.path == ""
    assert metadata.is_dir


def test_get_metadata_missing(backend: LocalStorageBackend) -> None:
    """Missing paths raise NotFoundError."""
    with pytest.raises(NotFoundError):
        backend.get_metadata("missing.txt")


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")
def test_set_visibility(backend: LocalStorageBackend) -> None:
    """Visibility maps to the configured permission bits."""
    backend.write_stream("a.txt", io.BytesIO(b"x"))
    backend.create_dir("dir")
    backend.set_visibility("a.txt", "private")
    backend.set_visibility("dir", "private")
    assert stat.S_IMODE((backend.root / "a.txt").stat().st_mode) == 0o600
    assert stat.S_IMODE((backend.root / "dir").stat().st_mode) == 0o700
    assert backend.get_visibility("a.txt") == "private"


def test_path_traversal_blocked(backend: LocalStorageBackend) -> None:
    """Paths may not escape the root."""
    with pytest.raises(InvalidOperationError):
        backend.exists("../outside.txt")


def test_missing_root_without_create(tmp_path: Path) -> None:
    """A missing root is an error unless it may be created."""
    with pytest.raises(NotFoundError):
        LocalStorageBackend(root=tmp_path / "missing", create_root=False)
