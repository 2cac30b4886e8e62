"""Error model shared by the stream wrapper and its backends.

Every failure the wrapper anticipates is described by an :class:`ErrorKind`.
Backend exceptions carry their kind as an attribute, and the wrapper turns
them into a :class:`WrapperError` that records the operation and arguments
that failed. The presentation layer (logging in soft mode, ``OSError``
translation in strict mode) matches on the kind only.

Example:

    >>> err = WrapperError(ErrorKind.NOT_FOUND, "unlink", ("mem://a.txt",))
    >>> str(err)
    'unlink(mem://a.txt): No such file or directory'

"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of failure categories known to the wrapper."""

    UNREGISTERED_SCHEME = "unregistered_scheme"
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    ROOT_VIOLATION = "root_violation"
    PERMISSION_DENIED = "permission_denied"
    BACKEND_FAILURE = "backend_failure"
    UNSUPPORTED = "unsupported"
    IS_A_DIRECTORY = "is_a_directory"
    NOT_A_DIRECTORY = "not_a_directory"
    DIRECTORY_NOT_EMPTY = "directory_not_empty"
    CROSS_DEVICE = "cross_device"
    INVALID_ARGUMENT = "invalid_argument"


_DESCRIPTIONS: dict[ErrorKind, str] = {
    ErrorKind.UNREGISTERED_SCHEME: "No such protocol",
    ErrorKind.NOT_FOUND: "No such file or directory",
    ErrorKind.ALREADY_EXISTS: "File exists",
    ErrorKind.ROOT_VIOLATION: "Cannot remove the root directory",
    ErrorKind.PERMISSION_DENIED: "Permission denied",
    ErrorKind.BACKEND_FAILURE: "Backend failure",
    ErrorKind.UNSUPPORTED: "Operation not supported",
    ErrorKind.IS_A_DIRECTORY: "Is a directory",
    ErrorKind.NOT_A_DIRECTORY: "Not a directory",
    ErrorKind.DIRECTORY_NOT_EMPTY: "Directory not empty",
    ErrorKind.CROSS_DEVICE: "Invalid cross-device link",
    ErrorKind.INVALID_ARGUMENT: "Invalid argument",
}

# Kinds that are reported as warnings instead of being re-raised.
ANTICIPATED_KINDS = frozenset(
    {
        ErrorKind.UNREGISTERED_SCHEME,
        ErrorKind.NOT_FOUND,
        ErrorKind.ALREADY_EXISTS,
        ErrorKind.ROOT_VIOLATION,
        ErrorKind.IS_A_DIRECTORY,
        ErrorKind.NOT_A_DIRECTORY,
        ErrorKind.DIRECTORY_NOT_EMPTY,
        ErrorKind.CROSS_DEVICE,
        ErrorKind.INVALID_ARGUMENT,
    },
)


def describe(kind: ErrorKind) -> str:
    """Return the human readable description for an error kind."""
    return _DESCRIPTIONS[kind]


class WrapperError(Exception):
    """Tagged error raised or reported by wrapper operations.

    Attributes:
        kind: Category of the failure.
        operation: Name of the wrapper operation, e.g. ``"fopen"``.
        args_repr: The logical references or values the operation received.

    """

    def __init__(
        self,
        kind: ErrorKind,
        operation: str,
        args: tuple[str, ...] = (),
        *,
        detail: str | None = None,
    ) -> None:
        """Create an error for ``operation`` called with ``args``."""
        self.kind = kind
        self.operation = operation
        self.args_repr = tuple(str(arg) for arg in args)
        self.detail = detail or describe(kind)
        super().__init__(self.format())

    def format(self) -> str:
        """Render the diagnostic the way native file functions word it."""
        joined = ",".join(self.args_repr)
        return f"{self.operation}({joined}): {self.detail}"

    @property
    def anticipated(self) -> bool:
        """Whether the failure is reported softly instead of re-raised."""
        return self.kind in ANTICIPATED_KINDS


class UnregisteredSchemeError(LookupError):
    """Raised when a logical reference names a scheme with no backend."""

    kind = ErrorKind.UNREGISTERED_SCHEME

    def __init__(self, scheme: str) -> None:
        """Create an error for the unknown ``scheme``."""
        super().__init__(f"Scheme '{scheme}' is not registered")
        self.scheme = scheme
