"""Namespace operations built from the backend's primitive calls.

These give directory and rename calls the semantics callers expect from a
local filesystem:

- ``forced_rename`` replaces an existing destination of the same type
- ``make_directory`` refuses existing paths and, unless recursive, missing
  parents
- ``remove_directory`` refuses the root and, unless recursive, non-empty
  directories
- ``touch`` creates an empty object only if nothing exists yet

All functions take normalised backend paths and raise backend exceptions.
"""

from __future__ import annotations

import io
import logging
from typing import TYPE_CHECKING

from .interfaces import (
    VISIBILITY_PRIVATE,
    VISIBILITY_PUBLIC,
    AlreadyExistsError,
    InvalidOperationError,
    NotFoundError,
    RootViolationError,
    UnsupportedOperationError,
)
from .path_utils import dirname

if TYPE_CHECKING:
    from .config import WrapperConfig
    from .interfaces import StorageBackend

logger = logging.getLogger(__name__)


def forced_rename(backend: StorageBackend, source: str, destination: str) -> bool:
    """Move ``source`` to ``destination``, replacing a compatible destination.

    Raises:
        NotFoundError: If the source or the destination's parent is missing.
        InvalidOperationError: If the destination has a different type, is a
            non-empty directory, or lies below the source.

    """
    if source == destination:
        return True
    if source == "" or destination.startswith(source + "/"):
        raise InvalidOperationError.into_own_subtree(destination)

    source_meta = backend.get_metadata(source)

    parent = dirname(destination)
    if parent and not backend.exists(parent):
        raise NotFoundError(parent)

    if backend.exists(destination):
        target_meta = backend.get_metadata(destination)
        if target_meta.is_dir and not source_meta.is_dir:
            raise InvalidOperationError.is_a_directory(destination)
        if source_meta.is_dir and not target_meta.is_dir:
            raise InvalidOperationError.not_a_directory(destination)
        if target_meta.is_dir and backend.list_contents(destination):
            raise InvalidOperationError.directory_not_empty(destination)

        if not backend.supports_atomic_replace:
            logger.debug("Removing %s before rename", destination)
            if target_meta.is_dir:
                backend.delete_dir(destination)
            else:
                backend.delete(destination)

    return bool(backend.rename(source, destination))


def make_directory(
    backend: StorageBackend,
    path: str,
    *,
    recursive: bool = False,
) -> bool:
    """Create a directory.

    Raises:
        AlreadyExistsError: If anything already exists at ``path``.
        NotFoundError: If the parent is missing and ``recursive`` is False.

    """
    if path == "" or backend.exists(path):
        raise AlreadyExistsError(path)

    if not recursive:
        parent = dirname(path)
        if parent and not backend.exists(parent):
            raise NotFoundError(parent)

    return bool(backend.create_dir(path))


def remove_directory(
    backend: StorageBackend,
    path: str,
    *,
    recursive: bool = False,
) -> bool:
    """Delete a directory.

    Raises:
        RootViolationError: If ``path`` is the backend root.
        NotFoundError: If nothing exists at ``path``.
        InvalidOperationError: If ``path`` is a file, or a non-empty
            directory and ``recursive`` is False.

    """
    if path == "":
        raise RootViolationError(path)

    metadata = backend.get_metadata(path)
    if not metadata.is_dir:
        raise InvalidOperationError.not_a_directory(path)
    if not recursive and backend.list_contents(path):
        raise InvalidOperationError.directory_not_empty(path)

    return bool(backend.delete_dir(path))


def touch(backend: StorageBackend, path: str) -> bool:
    """Create an empty object at ``path`` unless something is there already."""
    if backend.exists(path):
        return True
    return bool(backend.write_stream(path, io.BytesIO(b"")))


def apply_permissions(
    backend: StorageBackend,
    path: str,
    permissions: int,
    config: WrapperConfig,
) -> bool:
    """Map chmod-style ``permissions`` to a visibility and apply it.

    Any bit of ``config.public_mask`` makes the object public. Backends that
    cannot change visibility are left alone and the call still succeeds.
    """
    if permissions & config.public_mask:
        visibility = VISIBILITY_PUBLIC
    else:
        visibility = VISIBILITY_PRIVATE

    try:
        return bool(backend.set_visibility(path, visibility))  # type: ignore[arg-type]
    except UnsupportedOperationError:
        logger.debug("Backend cannot change visibility of %s; ignoring", path)
        return True
