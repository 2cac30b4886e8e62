"""Shared utility functions for backends and the stream wrapper.

Key utilities:
- Hasher factory for lock file names
- Data type coercion (bytes, str, BinaryIO)
- Chunk accumulation and stream copying
- Stream capability probes

Example usage:
    >>> from f9_stream_wrapper.utils import coerce_to_bytes
    >>> data = coerce_to_bytes("Hello, world!")
    >>> assert isinstance(data, bytes)
"""

from __future__ import annotations

import hashlib
import io
from typing import TYPE_CHECKING, Any, BinaryIO, Literal

from .interfaces import DEFAULT_CHUNK_SIZE

if TYPE_CHECKING:
    from collections.abc import Iterator

HashAlgorithm = Literal["md5", "sha1", "sha256", "sha512", "blake3"]


def get_hasher(algorithm: HashAlgorithm) -> Any:
    """Get a hasher instance for the specified algorithm.

    Args:
        algorithm: One of 'md5', 'sha1', 'sha256', 'sha512', 'blake3'.

    Returns:
        A hasher instance with update() and hexdigest() methods

    Raises:
        ImportError: If blake3 is requested but not installed.
        ValueError: If algorithm is not supported.

    """
    if algorithm == "blake3":
        try:
            import blake3
        except ImportError as exc:
            message = "blake3 is not installed. Install it with: pip install blake3"
            raise ImportError(message) from exc
        return blake3.blake3()
    elif algorithm in ("md5", "sha1", "sha256", "sha512"):
        return hashlib.new(algorithm)
    else:
        message = f"Unsupported hash algorithm: {algorithm}"
        raise ValueError(message)


def hash_text(text: str, algorithm: HashAlgorithm = "sha1") -> str:
    """Return the hex digest of ``text`` encoded as UTF-8."""
    hasher = get_hasher(algorithm)
    hasher.update(text.encode("utf-8"))
    return hasher.hexdigest()


def coerce_to_bytes(data: bytes | str | BinaryIO) -> bytes:
    """Coerce supported input types to raw bytes.

    Handles bytes, bytearrays, memoryviews, strings (UTF-8 encoded), and
    file-like objects.

    Raises:
        TypeError: If data type is not supported.

    """
    if isinstance(data, bytes):
        return data
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)
    if isinstance(data, str):
        return data.encode("utf-8")

    if hasattr(data, "read"):
        result = data.read()
        if isinstance(result, str):
            return result.encode("utf-8")
        if isinstance(result, (bytes, bytearray)):
            return bytes(result)
        message = f"Unsupported stream payload type: {type(result).__name__}"
        raise TypeError(message)

    message = f"Unsupported data type: {type(data).__name__}"
    raise TypeError(message)


def accumulate_chunks(
    chunk_source: Iterator[bytes | str] | BinaryIO,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> bytes:
    """Accumulate chunks from iterator or file-like object into bytes.

    File-like sources are read from their current position. String chunks are
    encoded as UTF-8.
    """
    accumulated = io.BytesIO()
    if hasattr(chunk_source, "read"):
        while True:
            chunk = chunk_source.read(chunk_size)
            if not chunk:
                break
            if isinstance(chunk, str):
                accumulated.write(chunk.encode("utf-8"))
            else:
                accumulated.write(chunk)
    else:
        for chunk in chunk_source:
            if isinstance(chunk, str):
                accumulated.write(chunk.encode("utf-8"))
            else:
                accumulated.write(chunk)
    return accumulated.getvalue()


def copy_stream(
    source: BinaryIO,
    target: BinaryIO,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> int:
    """Copy ``source`` from its current position into ``target``.

    Returns:
        Number of bytes copied.

    """
    copied = 0
    while True:
        chunk = source.read(chunk_size)
        if not chunk:
            break
        target.write(chunk)
        copied += len(chunk)
    return copied


def is_seekable(stream: Any) -> bool:
    """Return True if ``stream`` reports random access support."""
    seekable = getattr(stream, "seekable", None)
    if seekable is None:
        return False
    try:
        return bool(seekable())
    except ValueError:
        # Closed streams raise ValueError
        return False


def is_writable(stream: Any) -> bool:
    """Return True if ``stream`` accepts writes.

    Streams without a ``writable()`` method fall back to their ``mode``
    attribute, where ``r`` without ``+`` means read-only.
    """
    writable = getattr(stream, "writable", None)
    if writable is not None:
        try:
            return bool(writable())
        except ValueError:
            return False

    mode = getattr(stream, "mode", None)
    if not isinstance(mode, str) or not mode:
        return False
    if mode[0] == "r":
        return "+" in mode
    return True


def stream_size(stream: BinaryIO) -> int:
    """Return the total size of a seekable stream without moving its cursor."""
    position = stream.tell()
    try:
        return stream.seek(0, io.SEEK_END)
    finally:
        stream.seek(position)
