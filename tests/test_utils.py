"""Unit tests for f9_stream_wrapper.utils module."""

from __future__ import annotations

import io
import sys
from unittest.mock import patch

import pytest

from f9_stream_wrapper.utils import (
    accumulate_chunks,
    coerce_to_bytes,
    copy_stream,
    get_hasher,
    hash_text,
    is_seekable,
    is_writable,
    stream_size,
)
from tests.fakes import ForwardOnlyStream, ReadOnlyStream


class TestGetHasher:
    """Tests for get_hasher function."""

    def test_get_hasher_md5(self) -> None:
        """Test MD5 hasher creation."""
        hasher = get_hasher("md5")
        hasher.update(b"test")
        assert hasher.hexdigest() == "098f6bcd4621d373cade4e832627b4f6"

    def test_get_hasher_sha1(self) -> None:
        """Test SHA1 hasher creation."""
        hasher = get_hasher("sha1")
        hasher.update(b"test")
        assert hasher.hexdigest() == "a94a8fe5ccb19ba61c4c0873d391e987982fbbd3"

    def test_get_hasher_blake3(self) -> None:
        """Test BLAKE3 hasher creation."""
        try:
            import blake3  # noqa: F401
        except ImportError:
            pytest.skip("blake3 not installed")

        hasher = get_hasher("blake3")
        hasher.update(b"test")
        assert len(hasher.hexdigest()) == 64

    def test_get_hasher_blake3_not_installed(self) -> None:
        """Test BLAKE3 reports a helpful error when missing."""
        with patch.dict(sys.modules, {"blake3": None}):
            with pytest.raises(ImportError, match="blake3 is not installed"):
                get_hasher("blake3")

    def test_get_hasher_unsupported(self) -> None:
        """Test unsupported algorithm raises ValueError."""
        with pytest.raises(ValueError, match="Unsupported hash algorithm"):
            get_hasher("crc32")  # type: ignore[arg-type]

    def test_hash_text(self) -> None:
        """Text is hashed as UTF-8."""
        assert hash_text("test") == "a94a8fe5ccb19ba61c4c0873d391e987982fbbd3"
        assert hash_text("test", "md5") == "098f6bcd4621d373cade4e832627b4f6"


class TestCoerceToBytes:
    """Tests for coerce_to_bytes function."""

    def test_bytes_like(self) -> None:
        """Bytes-like inputs become bytes."""
        assert coerce_to_bytes(b"abc") == b"abc"
        assert coerce_to_bytes(bytearray(b"abc")) == b"abc"
        assert coerce_to_bytes(memoryview(b"abc")) == b"abc"

    def test_string(self) -> None:
        """Strings are UTF-8 encoded."""
        assert coerce_to_bytes("héllo") == "héllo".encode()

    def test_streams(self) -> None:
        """File-like objects are read to the end."""
        assert coerce_to_bytes(io.BytesIO(b"binary")) == b"binary"
        assert coerce_to_bytes(io.StringIO("text")) == b"text"

    def test_unsupported(self) -> None:
        """Other types raise TypeError."""
        with pytest.raises(TypeError, match="Unsupported data type"):
            coerce_to_bytes(12345)  # type: ignore[arg-type]


class TestStreams:
    """Tests for the stream helpers."""

    def test_accumulate_chunks_from_iterator(self) -> None:
        """Iterators of mixed chunks are joined."""
        assert accumulate_chunks(iter([b"a", "b", b"c"])) == b"abc"

    def test_accumulate_chunks_from_stream_position(self) -> None:
        """Streams are read from their current position."""
        stream = io.BytesIO(b"0123456789")
        stream.seek(4)
        assert accumulate_chunks(stream, chunk_size=3) == b"456789"

    def test_copy_stream(self) -> None:
        """Copying reports the number of bytes moved."""
        target = io.BytesIO()
        assert copy_stream(io.BytesIO(b"x" * 20000), target, chunk_size=4096) == 20000
        assert target.getvalue() == b"x" * 20000

    def test_is_seekable(self) -> None:
        """Seekability is probed without raising."""
        assert is_seekable(io.BytesIO())
        assert not is_seekable(ForwardOnlyStream(b""))
        assert not is_seekable(object())

        closed = io.BytesIO()
        closed.close()
        assert not is_seekable(closed)

    def test_is_writable(self) -> None:
        """Writability comes from writable() or the mode string."""
        assert is_writable(io.BytesIO())
        assert not is_writable(ReadOnlyStream(b""))

        class ModeOnly:
            def __init__(self, mode: str) -> None:
                self.mode = mode

        assert not is_writable(ModeOnly("rb"))
        assert is_writable(ModeOnly("r+b"))
        assert is_writable(ModeOnly("wb"))
        assert not is_writable(object())

    def test_stream_size_keeps_position(self) -> None:
        """Measuring a stream does not move its cursor."""
        stream = io.BytesIO(b"hello world")
        stream.seek(3)
        assert stream_size(stream) == 11
        assert stream.tell() == 3
