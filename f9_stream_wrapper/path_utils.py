"""Logical reference parsing and path normalisation.

A logical reference has the form ``scheme://path``. The scheme selects a
registered backend and the path is normalised textually before it reaches
the backend:

- Windows backslashes become forward slashes
- redundant separators and ``.`` segments are dropped
- ``..`` removes the previous segment and may not climb above the root
- leading and trailing separators are stripped, so the root is ``""``

Example:

    >>> split_reference("mem://docs//./a.txt")
    ('mem', 'docs//./a.txt')
    >>> normalize_path("docs//./a.txt")
    'docs/a.txt'

"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass

from .errors import UnregisteredSchemeError
from .interfaces import InvalidOperationError

SCHEME_DELIMITER = "://"


def normalize_windows_path(path_str: str) -> str:
    """Normalize Windows backslashes to forward slashes.

    Example:

        >>> normalize_windows_path("dir\\subdir\\file.txt")
        'dir/subdir/file.txt'

    """
    return path_str.replace("\\", "/")


def normalize_path(path: str) -> str:
    """Return the backend-relative form of ``path``.

    Raises:
        InvalidOperationError: If ``..`` segments climb above the root.

    """
    parts: list[str] = []
    for part in normalize_windows_path(path).split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if not parts:
                raise InvalidOperationError.path_outside_root(path)
            parts.pop()
            continue
        parts.append(part)
    return "/".join(parts)


def split_reference(reference: str) -> tuple[str, str]:
    """Split a logical reference into ``(scheme, target)``.

    The split happens at the first ``://``. The target is returned as given.

    Raises:
        UnregisteredSchemeError: If the reference has no scheme delimiter.

    """
    scheme, delimiter, target = reference.partition(SCHEME_DELIMITER)
    if not delimiter or not scheme:
        raise UnregisteredSchemeError(scheme if delimiter else "")
    return scheme, target


def dirname(path: str) -> str:
    """Return the parent of a normalised path (``""`` for top-level entries)."""
    return posixpath.dirname(path)


def strip_directory_prefix(entry_path: str, directory: str) -> str:
    """Return ``entry_path`` relative to ``directory``.

    Entries that do not live under ``directory`` are returned unchanged.
    """
    entry_path = normalize_windows_path(entry_path).strip("/")
    if not directory:
        return entry_path
    prefix = directory + "/"
    if entry_path.startswith(prefix):
        return entry_path[len(prefix) :]
    return entry_path


@dataclass(frozen=True)
class ResolvedReference:
    """A logical reference split into its scheme and normalised path."""

    scheme: str
    path: str
    reference: str

    @classmethod
    def parse(cls, reference: str) -> ResolvedReference:
        """Split and normalise ``reference``."""
        scheme, target = split_reference(reference)
        return cls(scheme=scheme, path=normalize_path(target), reference=reference)

    @property
    def normalized(self) -> str:
        """Return the canonical ``scheme://path`` form used for lock keys."""
        return f"{self.scheme}{SCHEME_DELIMITER}{self.path}"

    @property
    def is_root(self) -> bool:
        """Whether the reference targets the backend root."""
        return self.path == ""

    def __str__(self) -> str:
        return self.reference
