"""Tests for WrapperConfig."""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from f9_stream_wrapper.config import (
    DEFAULT_MEMORY_LIMIT,
    DEFAULT_METADATA,
    WrapperConfig,
)


class TestWrapperConfig:
    """Tests for defaults and option parsing."""

    def test_defaults(self) -> None:
        """Defaults match the documented permission table."""
        config = WrapperConfig()
        assert config.permissions["dir"] == {"private": 0o700, "public": 0o755}
        assert config.permissions["file"] == {"private": 0o600, "public": 0o644}
        assert config.metadata == DEFAULT_METADATA
        assert config.public_mask == 0o044
        assert config.memory_limit == DEFAULT_MEMORY_LIMIT
        assert config.lock_dir == tempfile.gettempdir()
        assert config.lock_hash == "sha1"

    def test_modes(self) -> None:
        """Modes combine type bits and permission bits."""
        config = WrapperConfig()
        assert config.file_mode() == 0o100644
        assert config.file_mode("private") == 0o100600
        assert config.dir_mode() == 0o040755
        assert config.dir_mode("private") == 0o040700

    def test_from_options_none(self) -> None:
        """No options means defaults."""
        assert WrapperConfig.from_options(None) == WrapperConfig()

    def test_from_options_merges_permissions(self) -> None:
        """Partial permission tables are merged over the defaults."""
        config = WrapperConfig.from_options(
            {"permissions": {"file": {"public": 0o664}}},
        )
        assert config.permissions["file"] == {"private": 0o600, "public": 0o664}
        assert config.permissions["dir"] == {"private": 0o700, "public": 0o755}

    def test_from_options_defaults_not_shared(self) -> None:
        """Merging never mutates the module-level defaults."""
        WrapperConfig.from_options({"permissions": {"file": {"public": 0o600}}})
        assert WrapperConfig().permissions["file"]["public"] == 0o644

    def test_from_options_ignores_unknown_keys(self) -> None:
        """Keys meant for other consumers are ignored."""
        config = WrapperConfig.from_options({"region": "eu", "public_mask": 0o004})
        assert config.public_mask == 0o004

    def test_from_options_normalises_values(self, tmp_path: Path) -> None:
        """Sequences become tuples and lock directories become strings."""
        config = WrapperConfig.from_options(
            {"metadata": ["size"], "lock_dir": tmp_path},
        )
        assert config.metadata == ("size",)
        assert config.lock_dir == str(tmp_path)

    def test_from_options_rejects_non_mapping(self) -> None:
        """Options must be a mapping."""
        with pytest.raises(TypeError, match="mapping"):
            WrapperConfig.from_options([("public_mask", 1)])  # type: ignore[arg-type]
