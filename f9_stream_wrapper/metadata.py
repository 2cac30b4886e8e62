"""Translate backend metadata into fixed-shape stat records.

Backends report whatever subset of metadata they have. The translator tops
it up through the backend's dedicated getters for the keys listed in
``WrapperConfig.metadata`` and then fills the rest with fixed defaults:

- ``st_mode``: type bits plus the permission bits for the visibility
  (public when unknown)
- ``st_size``: 0 when unknown
- ``st_atime``/``st_mtime``/``st_ctime``: the backend timestamp, 0 when
  unknown
- ``st_ino``, ``st_dev``, ``st_nlink``, ``st_uid``, ``st_gid``,
  ``st_rdev``: 0
- ``st_blksize``, ``st_blocks``: -1

Example:

    >>> from f9_stream_wrapper.config import WrapperConfig
    >>> record = translate(Metadata(path="a.txt", type="file", size=5),
    ...                    WrapperConfig())
    >>> oct(record.st_mode), record.st_size, record.st_mtime
    ('0o100644', 5, 0)

"""

from __future__ import annotations

import os
import stat
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any, Callable

from .interfaces import VISIBILITY_PUBLIC, Metadata, UnsupportedOperationError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .config import WrapperConfig
    from .interfaces import StorageBackend


@dataclass(frozen=True)
class StatResult:
    """Stat record in the shape ``os.stat`` consumers expect."""

    st_mode: int = 0
    st_ino: int = 0
    st_dev: int = 0
    st_nlink: int = 0
    st_uid: int = 0
    st_gid: int = 0
    st_rdev: int = 0
    st_size: int = 0
    st_atime: int = 0
    st_mtime: int = 0
    st_ctime: int = 0
    st_blksize: int = -1
    st_blocks: int = -1

    @property
    def is_dir(self) -> bool:
        return stat.S_ISDIR(self.st_mode)

    @property
    def is_file(self) -> bool:
        return stat.S_ISREG(self.st_mode)

    @property
    def permissions(self) -> int:
        """Permission bits without the file type."""
        return stat.S_IMODE(self.st_mode)

    def with_size(self, size: int) -> StatResult:
        values = asdict(self)
        values["st_size"] = size
        return StatResult(**values)

    def with_mode(self, mode: int) -> StatResult:
        values = asdict(self)
        values["st_mode"] = mode
        return StatResult(**values)

    def as_dict(self) -> dict[str, int]:
        """Return the record keyed by field name without the ``st_`` prefix."""
        return {key[3:]: value for key, value in asdict(self).items()}

    def to_os_stat(self) -> os.stat_result:
        """Return an ``os.stat_result`` with the same values."""
        return os.stat_result(
            (
                self.st_mode,
                self.st_ino,
                self.st_dev,
                self.st_nlink,
                self.st_uid,
                self.st_gid,
                self.st_size,
                self.st_atime,
                self.st_mtime,
                self.st_ctime,
            ),
        )


_GETTERS: dict[str, Callable[[StorageBackend, str], Any]] = {
    "size": lambda backend, path: backend.get_size(path),
    "timestamp": lambda backend, path: backend.get_timestamp(path),
    "visibility": lambda backend, path: backend.get_visibility(path),
}


def collect_metadata(
    backend: StorageBackend,
    path: str,
    required: Iterable[str],
    *,
    ignore: Iterable[str] = (),
) -> Metadata:
    """Fetch metadata and fill the ``required`` keys the backend left out.

    Getters the backend does not support are skipped.

    Raises:
        NotFoundError: If the object does not exist.

    """
    metadata = backend.get_metadata(path)
    skipped = set(ignore)
    for key in metadata.missing(key for key in required if key not in skipped):
        getter = _GETTERS.get(key)
        if getter is None:
            continue
        try:
            value = getter(backend, path)
        except UnsupportedOperationError:
            # Some backends don't support every kind of metadata.
            continue
        metadata = metadata.with_values(**{key: value})
    return metadata


def translate(metadata: Metadata, config: WrapperConfig) -> StatResult:
    """Build a stat record from (possibly partial) metadata."""
    visibility = metadata.visibility or VISIBILITY_PUBLIC
    if metadata.is_dir:
        mode = config.dir_mode(visibility)
    else:
        mode = config.file_mode(visibility)

    timestamp = int(metadata.timestamp) if metadata.timestamp is not None else 0
    return StatResult(
        st_mode=mode,
        st_size=int(metadata.size) if metadata.size is not None else 0,
        st_atime=timestamp,
        st_mtime=timestamp,
        st_ctime=timestamp,
    )


def stat_path(
    backend: StorageBackend,
    path: str,
    config: WrapperConfig,
    *,
    ignore_size: bool = False,
) -> StatResult:
    """Return the stat record for a backend path.

    The backend root is always reported as a public directory.

    Raises:
        NotFoundError: If the object does not exist.

    """
    if path == "":
        root = Metadata(path="", type="dir", visibility=VISIBILITY_PUBLIC)
        return translate(root, config)

    ignore = ("size",) if ignore_size else ()
    metadata = collect_metadata(backend, path, config.metadata, ignore=ignore)
    return translate(metadata, config)
