"""Stream wrapper exposing whole-object storage backends as files.

This package maps logical references of the form ``scheme://path`` onto
registered storage backends and gives callers positional file handles over
them, even though backends only read and write complete objects.

Core Components:
    - StorageBackend: Abstract whole-object contract backends implement
    - LocalStorageBackend: Direct filesystem storage
    - MemoryStorageBackend: In-process storage
    - SchemeRegistry: Binds schemes to backends and their configuration
    - StreamWrapper: File-style operations on logical references

Quick Start:

    >>> from f9_stream_wrapper import (
    ...     MemoryStorageBackend, SchemeRegistry, StreamWrapper,
    ... )
    >>> registry = SchemeRegistry()
    >>> registry.register("mem", MemoryStorageBackend())
    True
    >>> wrapper = StreamWrapper(registry)
    >>> with wrapper.open("mem://a.txt", "c+") as handle:
    ...     handle.write(b"hello")
    ...     handle.seek(0)
    ...     handle.read()
    5
    True
    b'hello'

Exception Handling:

    Anticipated failures are logged and reported through the return value by
    default. Pass ``strict=True`` to get standard ``OSError`` subclasses:

    >>> strict = StreamWrapper(registry, strict=True)
    >>> try:
    ...     strict.open("mem://missing.txt", "r")
    ... except FileNotFoundError:
    ...     print("File not found")
    File not found

Supported Operations:
    - open() - Open a handle (modes r, w, a, x, c with optional +)
    - stat() / exists() - Inspect a reference
    - opendir() - Snapshot a directory listing
    - unlink() - Remove files
    - mkdir() / rmdir() - Manage directories
    - rename() - Move files and directories, replacing compatible targets
    - set_metadata() - Touch or change visibility

"""

from .compat import translate_exceptions, translate_wrapper_error
from .config import WrapperConfig
from .directory import DirectoryHandle
from .errors import ErrorKind, UnregisteredSchemeError, WrapperError
from .factory import BackendFactory, mount, register_backend_factory, resolve_backend
from .handle import StreamHandle, StreamOption
from .interfaces import (
    DEFAULT_CHUNK_SIZE,
    VISIBILITY_PRIVATE,
    VISIBILITY_PUBLIC,
    AlreadyExistsError,
    BackendError,
    InvalidOperationError,
    Metadata,
    NotFoundError,
    PathLike,
    RootViolationError,
    StorageBackend,
    UnsupportedOperationError,
)
from .local import LocalStorageBackend
from .locking import LOCK_EX, LOCK_NB, LOCK_SH, LOCK_UN, AdvisoryLock, LockError
from .memory import MemoryStorageBackend
from .metadata import StatResult
from .registry import (
    SchemeRegistry,
    default_registry,
    list_schemes,
    register_scheme,
    scheme_exists,
    unregister_scheme,
)
from .wrapper import MetadataOption, StreamWrapper

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "LOCK_EX",
    "LOCK_NB",
    "LOCK_SH",
    "LOCK_UN",
    "VISIBILITY_PRIVATE",
    "VISIBILITY_PUBLIC",
    "AdvisoryLock",
    "AlreadyExistsError",
    "BackendError",
    "BackendFactory",
    "DirectoryHandle",
    "ErrorKind",
    "InvalidOperationError",
    "LocalStorageBackend",
    "LockError",
    "MemoryStorageBackend",
    "Metadata",
    "MetadataOption",
    "NotFoundError",
    "PathLike",
    "RootViolationError",
    "SchemeRegistry",
    "StatResult",
    "StorageBackend",
    "StreamHandle",
    "StreamOption",
    "StreamWrapper",
    "UnregisteredSchemeError",
    "UnsupportedOperationError",
    "WrapperConfig",
    "WrapperError",
    "default_registry",
    "list_schemes",
    "mount",
    "register_backend_factory",
    "register_scheme",
    "resolve_backend",
    "scheme_exists",
    "translate_exceptions",
    "translate_wrapper_error",
    "unregister_scheme",
]
