"""Integration tests for StreamWrapper over a real filesystem root."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

import pytest

from f9_stream_wrapper import (
    LOCK_EX,
    LOCK_NB,
    LOCK_SH,
    LOCK_UN,
    InvalidOperationError,
    LocalStorageBackend,
    SchemeRegistry,
    StreamWrapper,
)

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def integration_root(tmp_path_factory: pytest.TempPathFactory) -> Path:
    """Create a dedicated temporary root directory for the backend."""
    return tmp_path_factory.mktemp("wrapper-integration")


@pytest.fixture
def wrapper(
    integration_root: Path,
    tmp_path_factory: pytest.TempPathFactory,
) -> StreamWrapper:
    """Provide a wrapper with the integration root mounted as ``disk``."""
    registry = SchemeRegistry()
    registry.register(
        "disk",
        LocalStorageBackend(root=integration_root),
        options={
            "lock_dir": tmp_path_factory.mktemp("locks"),
            "memory_limit": 16,
        },
    )
    return StreamWrapper(registry)


def test_full_file_directory_workflow(
    wrapper: StreamWrapper,
    integration_root: Path,
) -> None:
    """Exercise creation, appends, listing, renames and removal."""
    assert wrapper.mkdir("disk://docs")
    with wrapper.open("disk://docs/report.txt", "w") as handle:
        handle.write("draft v1")
    with wrapper.open("disk://docs/report.txt", "a") as handle:
        handle.write("\nrevision")

    report = integration_root / "docs" / "report.txt"
    assert report.read_text(encoding="utf-8") == "draft v1\nrevision"
    assert wrapper.stat("disk://docs/report.txt").st_size == report.stat().st_size

    assert wrapper.rename("disk://docs/report.txt", "disk://docs/final.txt")
    assert list(wrapper.opendir("disk://docs")) == ["final.txt"]

    assert wrapper.rmdir("disk://docs", recursive=True)
    assert not (integration_root / "docs").exists()


def test_copy_on_write_leaves_file_until_close(
    wrapper: StreamWrapper,
    integration_root: Path,
) -> None:
    """Writes stay local until the handle commits."""
    seed = integration_root / "seed.txt"
    seed.write_bytes(b"seed content")

    handle = wrapper.open("disk://seed.txt", "r+")
    assert handle.read(4) == b"seed"
    handle.write(b"-")
    assert seed.read_bytes() == b"seed content"
    handle.close()
    assert seed.read_bytes() == b"seed-content"


def test_large_writes_spill_to_disk(
    wrapper: StreamWrapper,
    integration_root: Path,
) -> None:
    """Buffers above the memory limit keep their content intact."""
    payload = b"0123456789" * 100
    with wrapper.open("disk://big.bin", "w") as handle:
        handle.write(payload)
        assert handle.stat().st_size == len(payload)
    assert (integration_root / "big.bin").read_bytes() == payload


def test_prevents_escape_and_preserves_external_files(
    wrapper: StreamWrapper,
    integration_root: Path,
) -> None:
    """Traversal outside the root is never softened into a warning."""
    external_file = integration_root.parent / "outside.txt"
    external_file.write_text("external resource", encoding="utf-8")

    with pytest.raises(InvalidOperationError):
        wrapper.open("disk://../outside.txt", "w")

    assert external_file.read_text(encoding="utf-8") == "external resource"


@pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges")
def test_prevents_symlink_escape(
    wrapper: StreamWrapper,
    integration_root: Path,
) -> None:
    """Symlinks pointing outside the root are rejected."""
    outside = integration_root.parent / "outside-dir"
    outside.mkdir()
    (integration_root / "link").symlink_to(outside, target_is_directory=True)

    with pytest.raises(InvalidOperationError):
        wrapper.stat("disk://link/secret.txt")


@pytest.mark.skipif(sys.platform == "win32", reason="shared locks need flock")
def test_advisory_locks_between_handles(wrapper: StreamWrapper) -> None:
    """Handles on the same reference contend for the lock file."""
    first = wrapper.open("disk://shared.txt", "c")
    second = wrapper.open("disk://./shared.txt", "c")

    assert first.lock(LOCK_EX | LOCK_NB)
    assert not second.lock(LOCK_SH | LOCK_NB)
    assert first.lock(LOCK_UN)
    assert second.lock(LOCK_SH | LOCK_NB)

    second.close()
    assert first.lock(LOCK_EX | LOCK_NB)
    first.close()
