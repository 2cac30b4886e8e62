"""Per-scheme configuration for the stream wrapper.

Options are passed to the registry as a plain mapping, the same way vault
options are, and turned into a :class:`WrapperConfig` when the scheme is
registered:

    >>> config = WrapperConfig.from_options({"public_mask": 0o004})
    >>> config.file_mode("private")
    33152

"""

from __future__ import annotations

import tempfile
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any

from .interfaces import VISIBILITY_PUBLIC

DEFAULT_PERMISSIONS: dict[str, dict[str, int]] = {
    "dir": {"private": 0o700, "public": 0o755},
    "file": {"private": 0o600, "public": 0o644},
}

DEFAULT_METADATA: tuple[str, ...] = ("timestamp", "size", "visibility")

# Local buffers keep 2 MiB in memory before spilling to a temporary file.
DEFAULT_MEMORY_LIMIT = 2 * 1024 * 1024

DEFAULT_LOCK_PREFIX = "f9-stream-wrapper-"

S_IFDIR = 0o040000
S_IFREG = 0o100000


def _default_permissions() -> dict[str, dict[str, int]]:
    return {kind: dict(table) for kind, table in DEFAULT_PERMISSIONS.items()}


@dataclass(frozen=True)
class WrapperConfig:
    """Settings that shape how one scheme is presented.

    Attributes:
        permissions: Permission bits per entry type and visibility.
        metadata: Metadata keys the stat translator always tries to fill.
        public_mask: Bits that mark a chmod() mode as public.
        memory_limit: Bytes a local buffer keeps in memory before spilling.
        lock_dir: Directory holding advisory lock files.
        lock_prefix: File name prefix for advisory lock files.
        lock_hash: Hash algorithm used to name lock files.

    """

    permissions: dict[str, dict[str, int]] = field(
        default_factory=_default_permissions,
    )
    metadata: tuple[str, ...] = DEFAULT_METADATA
    public_mask: int = 0o044
    memory_limit: int = DEFAULT_MEMORY_LIMIT
    lock_dir: str = field(default_factory=tempfile.gettempdir)
    lock_prefix: str = DEFAULT_LOCK_PREFIX
    lock_hash: str = "sha1"

    @classmethod
    def from_options(cls, options: Mapping[str, Any] | None) -> WrapperConfig:
        """Build a configuration from a registry options mapping.

        Unknown keys are ignored so the same mapping can carry options meant
        for other consumers.

        Raises:
            TypeError: If ``options`` is not a mapping.

        """
        if options is None:
            return cls()
        if not isinstance(options, Mapping):
            message = "options must be a mapping"
            raise TypeError(message)

        known = {item.name for item in fields(cls)}
        values = {key: value for key, value in options.items() if key in known}
        if "permissions" in values:
            merged = _default_permissions()
            for kind, table in values["permissions"].items():
                merged.setdefault(kind, {}).update(table)
            values["permissions"] = merged
        if "metadata" in values:
            values["metadata"] = tuple(values["metadata"])
        if "lock_dir" in values:
            values["lock_dir"] = str(values["lock_dir"])
        return cls(**values)

    def permission_bits(self, entry_type: str, visibility: str | None) -> int:
        """Return the permission bits for an entry type and visibility."""
        return self.permissions[entry_type][visibility or VISIBILITY_PUBLIC]

    def file_mode(self, visibility: str | None = None) -> int:
        """Return the full ``st_mode`` for a regular file."""
        return S_IFREG + self.permission_bits("file", visibility)

    def dir_mode(self, visibility: str | None = None) -> int:
        """Return the full ``st_mode`` for a directory."""
        return S_IFDIR + self.permission_bits("dir", visibility)
