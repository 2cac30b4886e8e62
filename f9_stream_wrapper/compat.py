"""Exception translation for standard Python compatibility.

Strict-mode wrappers raise standard ``OSError`` subclasses instead of
logging warnings. The mapping is driven by :class:`~.errors.ErrorKind` only:

===========================  ===========================================
Kind                         Exception
===========================  ===========================================
``NOT_FOUND``                ``FileNotFoundError`` (``ENOENT``)
``ALREADY_EXISTS``           ``FileExistsError`` (``EEXIST``)
``IS_A_DIRECTORY``           ``IsADirectoryError`` (``EISDIR``)
``NOT_A_DIRECTORY``          ``NotADirectoryError`` (``ENOTDIR``)
``PERMISSION_DENIED``        ``PermissionError`` (``EACCES``)
``ROOT_VIOLATION``           ``PermissionError`` (``EPERM``)
``DIRECTORY_NOT_EMPTY``      ``OSError`` (``ENOTEMPTY``)
``CROSS_DEVICE``             ``OSError`` (``EXDEV``)
``INVALID_ARGUMENT``         ``OSError`` (``EINVAL``)
``UNREGISTERED_SCHEME``      ``OSError`` (``EPROTONOSUPPORT``)
``UNSUPPORTED``              ``OSError`` (``EOPNOTSUPP``)
``BACKEND_FAILURE``          ``OSError`` (``EIO``)
===========================  ===========================================
"""

from __future__ import annotations

import errno
from contextlib import contextmanager
from typing import TYPE_CHECKING

from .errors import ErrorKind, UnregisteredSchemeError, WrapperError
from .interfaces import BackendError

if TYPE_CHECKING:
    from collections.abc import Iterator

_ERRNO: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: errno.ENOENT,
    ErrorKind.ALREADY_EXISTS: errno.EEXIST,
    ErrorKind.IS_A_DIRECTORY: errno.EISDIR,
    ErrorKind.NOT_A_DIRECTORY: errno.ENOTDIR,
    ErrorKind.PERMISSION_DENIED: errno.EACCES,
    ErrorKind.ROOT_VIOLATION: errno.EPERM,
    ErrorKind.DIRECTORY_NOT_EMPTY: errno.ENOTEMPTY,
    ErrorKind.CROSS_DEVICE: errno.EXDEV,
    ErrorKind.INVALID_ARGUMENT: errno.EINVAL,
    ErrorKind.UNREGISTERED_SCHEME: errno.EPROTONOSUPPORT,
    ErrorKind.UNSUPPORTED: errno.EOPNOTSUPP,
    ErrorKind.BACKEND_FAILURE: errno.EIO,
}


def errno_for(kind: ErrorKind) -> int:
    """Return the ``errno`` value reported for ``kind``."""
    return _ERRNO[kind]


def translate_kind(kind: ErrorKind, message: str, filename: str | None = None) -> OSError:
    """Build the ``OSError`` for ``kind``.

    ``OSError`` picks the subclass from the errno, so ``ENOENT`` comes back
    as ``FileNotFoundError`` and so on.
    """
    code = errno_for(kind)
    if filename is None:
        return OSError(code, message)
    return OSError(code, message, filename)


def translate_wrapper_error(error: WrapperError) -> OSError:
    """Convert a :class:`WrapperError` to the matching ``OSError``.

    The first argument of the failed operation becomes ``filename``.
    """
    filename = error.args_repr[0] if error.args_repr else None
    return translate_kind(error.kind, error.format(), filename)


def translate_backend_exception(exc: BackendError | UnregisteredSchemeError) -> OSError:
    """Convert a backend exception to the matching ``OSError``."""
    if isinstance(exc, UnregisteredSchemeError):
        return translate_kind(exc.kind, str(exc), exc.scheme)
    return translate_kind(exc.kind, exc.message, exc.path)


@contextmanager
def translate_exceptions() -> Iterator[None]:
    """Context manager translating backend and wrapper errors to ``OSError``.

    Example:
        ```python
        with translate_exceptions():
            backend.read_stream("missing.txt")  # Raises FileNotFoundError
        ```

    """
    try:
        yield
    except WrapperError as exc:
        raise translate_wrapper_error(exc) from exc
    except (BackendError, UnregisteredSchemeError) as exc:
        raise translate_backend_exception(exc) from exc
