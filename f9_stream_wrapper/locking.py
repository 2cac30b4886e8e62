"""Advisory locks for logical references.

Storage backends have no locking of their own, so locks are relayed to a
side-channel lock file named after a hash of the normalised reference:

    <lock_dir>/<lock_prefix><sha1 of "scheme://path">.lock

The lock is cooperative. It only excludes other users of this library (in
this or other processes) and never protects the backend object itself.

Platform support:
    - Unix/Linux: ``fcntl.flock`` with shared and exclusive modes
    - Windows: ``msvcrt.locking`` (shared requests are taken exclusively)

Example:

    >>> lock = AdvisoryLock.for_reference("mem://a.txt")
    >>> lock.apply(LOCK_EX | LOCK_NB)
    True
    >>> lock.apply(LOCK_UN)
    True

"""

from __future__ import annotations

import logging
import os
import platform
import time
from contextlib import contextmanager
from pathlib import Path
from typing import IO, TYPE_CHECKING

from .utils import hash_text

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .config import WrapperConfig

logger = logging.getLogger(__name__)

# Same values as fcntl.LOCK_* so callers can pass either.
LOCK_SH = 1
LOCK_EX = 2
LOCK_NB = 4
LOCK_UN = 8


class LockError(IOError):
    """Raised when file locking operations fail."""

    def __init__(self, message: str, *, lock_path: Path | None = None) -> None:
        """Initialize lock error with optional path context."""
        if lock_path:
            detail = f"{message}: {lock_path}"
        else:
            detail = message
        super().__init__(detail)
        self.message = message
        self.lock_path = lock_path


def lock_path_for(
    reference: str,
    *,
    lock_dir: str | os.PathLike[str],
    prefix: str,
    algorithm: str = "sha1",
) -> Path:
    """Return the lock file path for a normalised logical reference."""
    digest = hash_text(reference, algorithm)  # type: ignore[arg-type]
    return Path(lock_dir) / f"{prefix}{digest}.lock"


class AdvisoryLock:
    """A lock on one lock file, held through an open file object.

    Each instance owns its own file object, so two instances on the same
    reference exclude each other even inside one process.
    """

    def __init__(self, lock_path: Path) -> None:
        """Initialize the lock.

        Args:
            lock_path: Path to the lock file (created on first use).

        """
        self.lock_path = Path(lock_path)
        self._lock_file: IO[str] | None = None
        self._mode: int | None = None

    @classmethod
    def for_reference(
        cls,
        reference: str,
        config: WrapperConfig | None = None,
    ) -> AdvisoryLock:
        """Create a lock for a normalised ``scheme://path`` reference."""
        if config is None:
            from .config import WrapperConfig

            config = WrapperConfig()
        path = lock_path_for(
            reference,
            lock_dir=config.lock_dir,
            prefix=config.lock_prefix,
            algorithm=config.lock_hash,
        )
        return cls(path)

    @property
    def locked(self) -> bool:
        """Whether this instance currently holds the lock."""
        return self._mode is not None

    @property
    def mode(self) -> int | None:
        """``LOCK_SH`` or ``LOCK_EX`` while held, otherwise None."""
        return self._mode

    def apply(self, operation: int) -> bool:
        """Apply a flock-style operation.

        Args:
            operation: ``LOCK_SH`` or ``LOCK_EX``, optionally or-ed with
                ``LOCK_NB``, or ``LOCK_UN``.

        Returns:
            True on success, False if a non-blocking request is contended.

        Raises:
            ValueError: If the operation names no lock mode.
            LockError: If a blocking request fails.

        """
        if operation & LOCK_UN:
            self.release()
            return True

        mode = operation & (LOCK_SH | LOCK_EX)
        if mode not in (LOCK_SH, LOCK_EX):
            message = f"Invalid lock operation: {operation}"
            raise ValueError(message)
        blocking = not operation & LOCK_NB

        if self._lock_file is None:
            self.lock_path.parent.mkdir(parents=True, exist_ok=True)
            self._lock_file = open(self.lock_path, "a", encoding="utf-8")  # noqa: SIM115

        try:
            self._apply_lock(self._lock_file, mode, blocking=blocking)
        except OSError as e:
            if self._mode is None:
                self._close_file()
            if not blocking:
                return False
            message = f"Failed to acquire lock: {e}"
            raise LockError(message, lock_path=self.lock_path) from e

        self._mode = mode
        logger.debug("Acquired %s lock %s", _mode_name(mode), self.lock_path)
        return True

    def release(self) -> None:
        """Release the lock if held."""
        if self._lock_file is None:
            return
        try:
            if self._mode is not None:
                self._unlock_file(self._lock_file)
                logger.debug("Released lock %s", self.lock_path)
        finally:
            self._mode = None
            self._close_file()

    @contextmanager
    def acquire(
        self,
        timeout: float | None = None,
        *,
        shared: bool = False,
    ) -> Iterator[None]:
        """Hold the lock for the duration of a ``with`` block.

        Args:
            timeout: Timeout in seconds. If None, wait indefinitely.
            shared: Take a shared lock instead of an exclusive one.

        Raises:
            TimeoutError: If lock cannot be acquired within timeout.

        """
        mode = LOCK_SH if shared else LOCK_EX
        if timeout is None:
            self.apply(mode)
        else:
            start_time = time.time()
            while not self.apply(mode | LOCK_NB):
                if time.time() - start_time >= timeout:
                    message = (
                        f"Could not acquire lock within {timeout} seconds: "
                        f"{self.lock_path}"
                    )
                    raise TimeoutError(message)
                time.sleep(min(0.1, timeout / 10))
        try:
            yield
        finally:
            self.release()

    def _close_file(self) -> None:
        if self._lock_file is not None:
            try:
                self._lock_file.close()
            finally:
                self._lock_file = None

    @staticmethod
    def _apply_lock(file_obj: IO[str], mode: int, *, blocking: bool) -> None:
        """Apply platform-specific file lock.

        Raises:
            OSError: If lock cannot be acquired.

        """
        if platform.system() == "Windows":
            import msvcrt

            flag = msvcrt.LK_LOCK if blocking else msvcrt.LK_NBLCK
            msvcrt.locking(file_obj.fileno(), flag, 1)
        else:
            import fcntl

            flags = fcntl.LOCK_EX if mode == LOCK_EX else fcntl.LOCK_SH
            if not blocking:
                flags |= fcntl.LOCK_NB
            fcntl.flock(file_obj.fileno(), flags)

    @staticmethod
    def _unlock_file(file_obj: IO[str]) -> None:
        """Remove platform-specific file lock."""
        if platform.system() == "Windows":
            import msvcrt

            try:
                msvcrt.locking(file_obj.fileno(), msvcrt.LK_UNLCK, 1)
            except OSError:
                pass  # Ignore unlock errors
        else:
            import fcntl

            try:
                fcntl.flock(file_obj.fileno(), fcntl.LOCK_UN)
            except OSError:
                pass  # Ignore unlock errors


def _mode_name(mode: int) -> str:
    return "exclusive" if mode == LOCK_EX else "shared"
