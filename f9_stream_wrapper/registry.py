"""Scheme registry binding logical reference schemes to backends.

The registry is an explicit object handed to :class:`StreamWrapper`; a
module-level default instance backs the convenience functions for callers
that want a single process-wide table.

Example:
    >>> from f9_stream_wrapper import MemoryStorageBackend, SchemeRegistry
    >>>
    >>> registry = SchemeRegistry()
    >>> registry.register("mem", MemoryStorageBackend())
    True
    >>> registry.register("mem", MemoryStorageBackend())
    False
    >>> registry.list()
    ['mem']

"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .config import WrapperConfig
from .errors import UnregisteredSchemeError

if TYPE_CHECKING:
    from .interfaces import StorageBackend

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchemeBinding:
    """A backend bound to a scheme together with its configuration."""

    scheme: str
    backend: StorageBackend
    config: WrapperConfig


class SchemeRegistry:
    """Thread-safe registry of scheme bindings.

    Each scheme can be bound once. Registering an already bound scheme is a
    no-op that reports failure; unregistering drops the binding without
    affecting handles that were opened through it.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._bindings: dict[str, SchemeBinding] = {}
        self._options: dict[str, dict[str, Any]] = {}
        self._lock = threading.RLock()

    def register(
        self,
        scheme: str,
        backend: StorageBackend,
        *,
        options: dict[str, Any] | None = None,
    ) -> bool:
        """Bind ``backend`` to ``scheme``.

        Args:
            scheme: Scheme name, without the ``://`` delimiter.
            backend: Backend serving references with this scheme.
            options: Optional configuration options, see
                :meth:`WrapperConfig.from_options`.

        Returns:
            True if the scheme was bound, False if it was already taken.

        Raises:
            ValueError: If the scheme is empty or contains the delimiter.

        """
        if not scheme or "://" in scheme:
            msg = f"Invalid scheme: '{scheme}'"
            raise ValueError(msg)

        config = WrapperConfig.from_options(options)
        with self._lock:
            if scheme in self._bindings:
                logger.debug("Scheme %s already registered", scheme)
                return False
            self._bindings[scheme] = SchemeBinding(scheme, backend, config)
            self._options[scheme] = dict(options or {})
        logger.debug("Registered scheme %s -> %r", scheme, backend)
        return True

    def unregister(self, scheme: str) -> bool:
        """Remove the binding for ``scheme``.

        Returns:
            True if a binding was removed, False if none existed.

        """
        with self._lock:
            if scheme not in self._bindings:
                return False
            del self._bindings[scheme]
            del self._options[scheme]
        logger.debug("Unregistered scheme %s", scheme)
        return True

    def get(self, scheme: str) -> SchemeBinding:
        """Return the binding for ``scheme``.

        Raises:
            UnregisteredSchemeError: If no backend is bound to the scheme.

        """
        with self._lock:
            try:
                return self._bindings[scheme]
            except KeyError:
                raise UnregisteredSchemeError(scheme) from None

    def get_backend(self, scheme: str) -> StorageBackend:
        """Return the backend bound to ``scheme``."""
        return self.get(scheme).backend

    def get_options(self, scheme: str) -> dict[str, Any]:
        """Return a copy of the options the scheme was registered with."""
        with self._lock:
            if scheme not in self._options:
                raise UnregisteredSchemeError(scheme)
            return self._options[scheme].copy()

    def list(self) -> list[str]:
        """List registered schemes in registration order."""
        with self._lock:
            return list(self._bindings.keys())

    def exists(self, scheme: str) -> bool:
        """Check if a scheme is registered."""
        with self._lock:
            return scheme in self._bindings

    def clear(self) -> None:
        """Remove every binding."""
        with self._lock:
            self._bindings.clear()
            self._options.clear()


# Global registry instance
_default_registry = SchemeRegistry()


def default_registry() -> SchemeRegistry:
    """Return the process-wide registry used by the convenience functions."""
    return _default_registry


def register_scheme(
    scheme: str,
    backend: StorageBackend,
    *,
    options: dict[str, Any] | None = None,
) -> bool:
    """Register a backend with the default registry.

    Example:
        >>> from f9_stream_wrapper import LocalStorageBackend, register_scheme
        >>> register_scheme("data", LocalStorageBackend(root="/data"))
        True

    """
    return _default_registry.register(scheme, backend, options=options)


def unregister_scheme(scheme: str) -> bool:
    """Remove a scheme from the default registry."""
    return _default_registry.unregister(scheme)


def scheme_exists(scheme: str) -> bool:
    """Check if a scheme is bound in the default registry."""
    return _default_registry.exists(scheme)


def list_schemes() -> list[str]:
    """List the schemes bound in the default registry."""
    return _default_registry.list()
