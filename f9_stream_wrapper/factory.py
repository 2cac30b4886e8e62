"""Backend factory for URI-based backend construction.

Backends can be described by a URI and bound to a scheme in one step, which
is convenient for configuration strings.

Supported URI Schemes:
    - file://path - LocalStorageBackend rooted at ``path``
    - memory:// - MemoryStorageBackend

Query parameters:
    - file: ``create_root`` (default true)
    - memory: ``atomic_replace`` (default true)

Example:
    >>> from f9_stream_wrapper.factory import resolve_backend
    >>> backend = resolve_backend("file:///data/files?create_root=false")
    >>> backend = resolve_backend("memory://?atomic_replace=false")

"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable
from urllib.parse import parse_qs, urlparse

from .registry import default_registry

if TYPE_CHECKING:
    from typing import TypeAlias

    from .interfaces import StorageBackend
    from .registry import SchemeRegistry

    # Type alias for backend factory functions
    BackendFactoryFunc: TypeAlias = Callable[[str, dict[str, Any]], StorageBackend]

_TRUE_VALUES = ("1", "true", "yes", "on")


def _flag(params: dict[str, Any], name: str, *, default: bool) -> bool:
    value = params.get(name)
    if value is None:
        return default
    return str(value).lower() in _TRUE_VALUES


class BackendFactory:
    """Factory for creating backends from URI strings."""

    def __init__(self) -> None:
        """Initialize the factory with built-in URI scheme handlers."""
        self._factories: dict[str, Callable[[str, dict[str, Any]], Any]] = {
            "file": self._create_file_backend,
            "memory": self._create_memory_backend,
        }

    def parse_uri(self, uri: str) -> tuple[str, str, dict[str, str]]:
        """Parse a URI into scheme, path, and query parameters.

        Args:
            uri: URI string to parse

        Returns:
            Tuple of (scheme, path, params) where params is a dict of query parameters

        Raises:
            ValueError: If URI format is invalid

        """
        parsed = urlparse(uri)

        if not parsed.scheme:
            msg = f"Invalid URI: missing scheme in '{uri}'"
            raise ValueError(msg)

        # file://relative/dir keeps "relative" in netloc
        path = parsed.netloc + (parsed.path or "")

        params: dict[str, str] = {}
        if parsed.query:
            parsed_params = parse_qs(parsed.query)
            # Take the first value of repeated parameters
            params = {key: values[0] for key, values in parsed_params.items()}

        return parsed.scheme, path, params

    def resolve(self, uri: str) -> StorageBackend:
        """Create a backend instance from a URI string.

        Raises:
            ValueError: If URI scheme is unsupported
            BackendError: If backend creation fails

        """
        scheme, path, params = self.parse_uri(uri)

        if scheme not in self._factories:
            supported = ", ".join(sorted(self._factories.keys()))
            msg = (
                f"Unsupported URI scheme: '{scheme}'. "
                f"Supported schemes: {supported}"
            )
            raise ValueError(msg)

        factory_func = self._factories[scheme]
        return factory_func(path, params)

    def register(
        self,
        scheme: str,
        factory_func: Callable[[str, dict[str, Any]], Any],
    ) -> None:
        """Register a custom backend factory for a URI scheme.

        Args:
            scheme: URI scheme to register (e.g., "s3", "azure")
            factory_func: Callable that takes (path, params) and returns a
                StorageBackend

        """
        if not callable(factory_func):
            msg = "factory_func must be callable"
            raise TypeError(msg)
        self._factories[scheme] = factory_func

    def _create_file_backend(
        self,
        path: str,
        params: dict[str, Any],
    ) -> StorageBackend:
        from .local import LocalStorageBackend

        if not path:
            msg = "Invalid URI: file backends need a root path"
            raise ValueError(msg)
        create_root = _flag(params, "create_root", default=True)
        return LocalStorageBackend(root=path, create_root=create_root)

    def _create_memory_backend(
        self,
        path: str,
        params: dict[str, Any],
    ) -> StorageBackend:
        from .memory import MemoryStorageBackend

        atomic_replace = _flag(params, "atomic_replace", default=True)
        return MemoryStorageBackend(atomic_replace=atomic_replace)


# Global default factory instance
_default_factory = BackendFactory()


def resolve_backend(uri: str) -> StorageBackend:
    """Resolve a backend from a URI using the default factory."""
    return _default_factory.resolve(uri)


def register_backend_factory(
    scheme: str,
    factory_func: Callable[[str, dict[str, Any]], Any],
) -> None:
    """Register a custom backend factory for a URI scheme.

    Example:
        >>> def my_s3_factory(path: str, params: dict) -> StorageBackend:
        ...     return S3Backend(bucket=path, **params)
        >>> register_backend_factory("s3", my_s3_factory)

    """
    _default_factory.register(scheme, factory_func)


def mount(
    scheme: str,
    uri: str,
    *,
    registry: SchemeRegistry | None = None,
    options: dict[str, Any] | None = None,
) -> bool:
    """Build a backend from ``uri`` and bind it to ``scheme``.

    Uses the default registry unless one is given.

    Example:
        >>> mount("data", "file:///srv/data")
        True

    """
    target = registry if registry is not None else default_registry()
    return target.register(scheme, resolve_backend(uri), options=options)
