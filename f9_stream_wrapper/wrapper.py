"""File-style access to registered storage backends.

:class:`StreamWrapper` is the adapter surface. It resolves logical
references through a :class:`~.registry.SchemeRegistry` and turns each call
into backend operations.

Failures the wrapper anticipates (missing objects, existing targets,
unregistered schemes, type mismatches) are reported the way native file
functions report them: in the default soft mode a warning is logged and the
call returns ``None`` or ``False``; with ``strict=True`` the matching
``OSError`` subclass is raised instead. Any other backend failure propagates
unchanged.

Example:

    >>> from f9_stream_wrapper import MemoryStorageBackend, SchemeRegistry
    >>> registry = SchemeRegistry()
    >>> registry.register("mem", MemoryStorageBackend())
    True
    >>> wrapper = StreamWrapper(registry)
    >>> with wrapper.open("mem://notes/a.txt", "w") as handle:
    ...     handle.write(b"hello")
    5
    >>> wrapper.stat("mem://notes/a.txt").st_size
    5
    >>> wrapper.unlink("mem://missing.txt")
    False

"""

from __future__ import annotations

import logging
import threading
from enum import IntEnum
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from .compat import translate_wrapper_error
from .directory import DirectoryHandle
from .errors import ANTICIPATED_KINDS, ErrorKind, UnregisteredSchemeError, WrapperError
from .handle import StreamHandle
from .interfaces import BackendError
from .materialize import OpenMode, materialize
from .metadata import stat_path
from .operations import (
    apply_permissions,
    forced_rename,
    make_directory,
    remove_directory,
    touch,
)
from .path_utils import ResolvedReference
from .registry import default_registry

if TYPE_CHECKING:
    from collections.abc import Collection

    from .interfaces import StorageBackend
    from .metadata import StatResult
    from .registry import SchemeBinding, SchemeRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MetadataOption(IntEnum):
    """Metadata changes accepted by :meth:`StreamWrapper.set_metadata`."""

    TOUCH = 1
    OWNER_NAME = 2
    OWNER = 3
    GROUP_NAME = 4
    GROUP = 5
    ACCESS = 6


class StreamWrapper:
    """Adapter exposing registered backends through file-style calls.

    Args:
        registry: Scheme registry to resolve references with. Defaults to the
            process-wide registry.
        strict: Raise ``OSError`` subclasses for anticipated failures instead
            of logging warnings.

    """

    def __init__(
        self,
        registry: SchemeRegistry | None = None,
        *,
        strict: bool = False,
    ) -> None:
        self._registry = registry if registry is not None else default_registry()
        self._strict = strict
        self._state = threading.local()

    def __repr__(self) -> str:
        return f"StreamWrapper(schemes={self._registry.list()!r}, strict={self._strict})"

    @property
    def registry(self) -> SchemeRegistry:
        return self._registry

    @property
    def strict(self) -> bool:
        return self._strict

    @property
    def last_error(self) -> WrapperError | None:
        """The failure reported by the last call made from this thread."""
        return getattr(self._state, "error", None)

    def register(
        self,
        scheme: str,
        backend: StorageBackend,
        options: dict[str, Any] | None = None,
    ) -> bool:
        """Bind ``backend`` to ``scheme`` in the wrapper's registry."""
        return self._registry.register(scheme, backend, options=options)

    def unregister(self, scheme: str) -> bool:
        """Drop the binding for ``scheme``; open handles are unaffected."""
        return self._registry.unregister(scheme)

    def open(self, reference: str, mode: str = "r") -> StreamHandle | None:
        """Open ``reference`` and return a handle.

        Args:
            reference: Logical reference, e.g. ``"mem://docs/a.txt"``.
            mode: One of ``r``, ``w``, ``a``, ``x`` or ``c``, optionally
                followed by ``+`` and ``b``/``t``.

        Returns:
            The open handle, or None after a reported failure.

        Raises:
            ValueError: If ``mode`` is malformed.

        """
        open_mode = OpenMode.parse(mode)

        def _open() -> StreamHandle:
            resolved, binding = self._resolve(reference)
            materialized = materialize(
                binding.backend,
                resolved.path,
                open_mode,
                memory_limit=binding.config.memory_limit,
            )
            logger.debug("Opened %s with mode %s", reference, mode)
            return StreamHandle(
                resolved,
                binding.backend,
                binding.config,
                open_mode,
                materialized,
            )

        return self._call("fopen", (reference, mode), _open, None)

    def stat(self, reference: str, *, quiet: bool = False) -> StatResult | None:
        """Return the stat record for ``reference``.

        With ``quiet=True`` failures return None without a diagnostic, even
        in strict mode.
        """

        def _stat() -> StatResult:
            resolved, binding = self._resolve(reference)
            return stat_path(binding.backend, resolved.path, binding.config)

        quiet_kinds = ANTICIPATED_KINDS if quiet else frozenset()
        return self._call("url_stat", (reference,), _stat, None, quiet_kinds)

    def exists(self, reference: str) -> bool:
        """Return True if anything exists at ``reference``."""
        return self.stat(reference, quiet=True) is not None

    def opendir(self, reference: str) -> DirectoryHandle | None:
        """Open a directory and snapshot its entry names."""

        def _opendir() -> DirectoryHandle:
            resolved, binding = self._resolve(reference)
            return DirectoryHandle.snapshot(binding.backend, resolved)

        return self._call("opendir", (reference,), _opendir, None)

    def unlink(self, reference: str) -> bool:
        """Delete the file at ``reference``."""

        def _unlink() -> bool:
            resolved, binding = self._resolve(reference)
            return bool(binding.backend.delete(resolved.path))

        return self._call("unlink", (reference,), _unlink, False)

    def mkdir(self, reference: str, *, recursive: bool = False) -> bool:
        """Create a directory, and its missing parents when ``recursive``."""

        def _mkdir() -> bool:
            resolved, binding = self._resolve(reference)
            return make_directory(binding.backend, resolved.path, recursive=recursive)

        return self._call("mkdir", (reference,), _mkdir, False)

    def rmdir(self, reference: str, *, recursive: bool = False) -> bool:
        """Remove a directory, and its contents when ``recursive``."""

        def _rmdir() -> bool:
            resolved, binding = self._resolve(reference)
            return remove_directory(
                binding.backend,
                resolved.path,
                recursive=recursive,
            )

        return self._call("rmdir", (reference,), _rmdir, False)

    def rename(self, source: str, destination: str) -> bool:
        """Move ``source`` to ``destination``, replacing a compatible target.

        Both references must resolve to the same backend.
        """

        def _rename() -> bool:
            from_ref, from_binding = self._resolve(source)
            to_ref, to_binding = self._resolve(destination)
            if from_binding.backend is not to_binding.backend:
                message = "Cannot rename across backends"
                raise BackendError(
                    message,
                    path=to_ref.path,
                    kind=ErrorKind.CROSS_DEVICE,
                )
            return forced_rename(from_binding.backend, from_ref.path, to_ref.path)

        return self._call("rename", (source, destination), _rename, False)

    def set_metadata(self, reference: str, option: int, value: Any = None) -> bool:
        """Apply a metadata change to ``reference``.

        ``MetadataOption.TOUCH`` creates a missing object and
        ``MetadataOption.ACCESS`` maps chmod-style permission bits to a
        visibility. Ownership changes are not supported and return False.
        """
        try:
            option = MetadataOption(option)
        except ValueError:
            return False

        if option is MetadataOption.TOUCH:

            def _touch() -> bool:
                resolved, binding = self._resolve(reference)
                return touch(binding.backend, resolved.path)

            return self._call("touch", (reference,), _touch, False)

        if option is MetadataOption.ACCESS:
            if value is None:
                logger.debug("Ignoring chmod without a mode for %s", reference)
                return False

            def _chmod() -> bool:
                resolved, binding = self._resolve(reference)
                return apply_permissions(
                    binding.backend,
                    resolved.path,
                    int(value),
                    binding.config,
                )

            return self._call("chmod", (reference, oct(int(value))), _chmod, False)

        logger.debug("Ignoring unsupported metadata option %s", option.name)
        return False

    def _resolve(self, reference: str) -> tuple[ResolvedReference, SchemeBinding]:
        resolved = ResolvedReference.parse(reference)
        return resolved, self._registry.get(resolved.scheme)

    def _call(
        self,
        operation: str,
        args: tuple[str, ...],
        func: Callable[[], T],
        default: Any,
        quiet_kinds: Collection[ErrorKind] = frozenset(),
    ) -> Any:
        """Run ``func`` and report anticipated failures as ``operation(args)``."""
        self._state.error = None
        try:
            return func()
        except (BackendError, UnregisteredSchemeError) as exc:
            error = WrapperError(exc.kind, operation, args)
            if not error.anticipated:
                raise
            self._state.error = error
            if error.kind in quiet_kinds:
                return default
            if self._strict:
                raise translate_wrapper_error(error) from exc
            logger.warning("%s", error.format())
            return default
