"""Local filesystem implementation of the storage backend port.

All objects live below a root directory with path traversal protection.

Key Features:
    - Streams are served straight from disk (read-only handles, so the
      wrapper copies on first write)
    - Whole-object writes go through a temporary file and ``os.replace``
    - ``rename`` replaces existing destinations atomically
    - Visibility maps to permission bits

Example:

    >>> from f9_stream_wrapper import LocalStorageBackend
    >>> backend = LocalStorageBackend(root="/data/files")
    >>> with open("notes.txt", "rb") as fh:
    ...     backend.write_stream("docs/notes.txt", fh)
    True
    >>> backend.get_metadata("docs/notes.txt").size
    13

"""

from __future__ import annotations

import os
import shutil
import stat
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

from .config import DEFAULT_PERMISSIONS
from .interfaces import (
    VISIBILITY_PRIVATE,
    VISIBILITY_PUBLIC,
    InvalidOperationError,
    Metadata,
    NotFoundError,
    RootViolationError,
    StorageBackend,
    Visibility,
)
from .utils import copy_stream
from .validation import (
    LocalPathEntry,
    validate_entry_exists,
    validate_is_directory,
    validate_is_file,
    validate_not_overwriting_directory_with_file,
)

if TYPE_CHECKING:
    from .interfaces import PathLike


class LocalStorageBackend(StorageBackend):
    """Backend implementation backed by the local filesystem."""

    supports_atomic_replace = True

    def __init__(
        self,
        root: PathLike | None = None,
        *,
        create_root: bool = True,
        permissions: dict[str, dict[str, int]] | None = None,
    ) -> None:
        """Initialise the backend rooted at the given filesystem path."""
        base = Path(root or Path.cwd()).expanduser()
        self._root = base.resolve(strict=False)
        if create_root:
            self._root.mkdir(parents=True, exist_ok=True)
        elif not self._root.exists():
            raise NotFoundError(str(self._root))
        self._permissions = permissions or DEFAULT_PERMISSIONS

    @property
    def root(self) -> Path:
        """Absolute path used as the backend root."""
        return self._root

    def __repr__(self) -> str:
        return f"LocalStorageBackend(root={str(self._root)!r})"

    def exists(self, path: str) -> bool:
        """Return True if ``path`` exists below the root."""
        return self._ensure_within_root(path).exists()

    def read_stream(self, path: str) -> BinaryIO:
        """Open the file for reading."""
        target = self._ensure_within_root(path)
        entry = validate_entry_exists(LocalPathEntry.from_path(target), path)
        validate_is_file(entry, path)
        return target.open("rb")

    def write_stream(self, path: str, stream: BinaryIO) -> bool:
        """Replace the file with the remaining content of ``stream``."""
        target = self._ensure_within_root(path)
        validate_not_overwriting_directory_with_file(
            LocalPathEntry.from_path(target),
            path,
        )
        target.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=".tmp-")
        try:
            with os.fdopen(fd, "wb") as fh:
                copy_stream(stream, fh)
            if target.exists():
                shutil.copymode(target, tmp_name)
            else:
                os.chmod(tmp_name, self._permissions["file"][VISIBILITY_PUBLIC])
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        return True

    def delete(self, path: str) -> bool:
        """Delete a file."""
        target = self._ensure_within_root(path)
        if not target.exists():
            raise NotFoundError(path)
        if target.is_dir():
            raise InvalidOperationError.is_a_directory(path)
        target.unlink()
        return True

    def rename(self, source: str, destination: str) -> bool:
        """Move ``source`` to ``destination``, replacing it if present."""
        src = self._ensure_within_root(source)
        dst = self._ensure_within_root(destination)
        if not src.exists():
            raise NotFoundError(source)
        dst.parent.mkdir(parents=True, exist_ok=True)
        os.replace(src, dst)
        return True

    def create_dir(self, path: str) -> bool:
        """Create a directory and any missing parents."""
        target = self._ensure_within_root(path)
        if target.exists() and not target.is_dir():
            raise InvalidOperationError.not_a_directory(path)
        target.mkdir(parents=True, exist_ok=True)
        return True

    def delete_dir(self, path: str) -> bool:
        """Delete a directory recursively."""
        target = self._ensure_within_root(path)
        if target == self._root:
            raise RootViolationError(path)
        entry = validate_entry_exists(LocalPathEntry.from_path(target), path)
        validate_is_directory(entry, path)
        shutil.rmtree(target)
        return True

    def list_contents(self, path: str) -> list[Metadata]:
        """List the direct children of a directory in name order."""
        target = self._ensure_within_root(path)
        entry = validate_entry_exists(LocalPathEntry.from_path(target), path)
        validate_is_directory(entry, path)
        return [
            self._metadata_for(child)
            for child in sorted(target.iterdir(), key=lambda item: item.name)
        ]

    def get_metadata(self, path: str) -> Metadata:
        """Return metadata derived from ``os.stat``."""
        target = self._ensure_within_root(path)
        if not target.exists():
            raise NotFoundError(path)
        return self._metadata_for(target)

    def get_size(self, path: str) -> int:
        """Return the size of a file in bytes."""
        return self.get_metadata(path).size or 0

    def get_timestamp(self, path: str) -> int:
        """Return the modification time as a POSIX timestamp."""
        return self.get_metadata(path).timestamp or 0

    def get_visibility(self, path: str) -> Visibility:
        """Return the visibility derived from the world-read bit."""
        return self.get_metadata(path).visibility or VISIBILITY_PUBLIC

    def set_visibility(self, path: str, visibility: Visibility) -> bool:
        """Apply the permission bits for ``visibility``."""
        target = self._ensure_within_root(path)
        if not target.exists():
            raise NotFoundError(path)
        kind = "dir" if target.is_dir() else "file"
        target.chmod(self._permissions[kind][visibility])
        return True

    def _metadata_for(self, target: Path) -> Metadata:
        stat_result = target.stat()
        is_dir = stat.S_ISDIR(stat_result.st_mode)
        visibility = (
            VISIBILITY_PUBLIC
            if stat_result.st_mode & stat.S_IROTH
            else VISIBILITY_PRIVATE
        )
        relative = target.relative_to(self._root).as_posix()
        return Metadata(
            path="" if relative == "." else relative,
            type="dir" if is_dir else "file",
            size=None if is_dir else stat_result.st_size,
            timestamp=int(stat_result.st_mtime),
            visibility=visibility,
        )

    def _ensure_within_root(self, path: PathLike) -> Path:
        """Validate path stays within root directory with symlink resolution.

        The wrapper hands over normalised relative paths, but backends are
        also used directly, so leading slashes are treated as root-relative,
        symlinks are followed and the result must remain below the root.

        Raises:
            InvalidOperationError: If path escapes root (including via symlinks)

        """
        path_str = str(path).lstrip("/") or "."
        candidate = (self._root / Path(path_str)).resolve(strict=False)

        try:
            candidate.relative_to(self._root)
        except ValueError as exc:
            raise InvalidOperationError.path_outside_root(str(path)) from exc

        return candidate
