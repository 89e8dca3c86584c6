"""Unit tests for YAML config file loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.config import MigratorConfig
from core.config_file import load_config_file
from core.errors import MigratorConfigError


def _base(tmp_path: Path) -> MigratorConfig:
    return MigratorConfig(source_path=tmp_path / "env-old", target_path=tmp_path / "env-new")


def test_file_values_override_base(tmp_path: Path) -> None:
    """Values in the file should replace base values."""
    config_path = tmp_path / "migrator.yaml"
    config_path.write_text(
        "batch_size: 500\n"
        "database:\n"
        f"  path_old: {tmp_path / 'old'}\n"
        "  compact_after_migrate: true\n",
        encoding="utf-8",
    )

    config = load_config_file(str(config_path), _base(tmp_path))

    assert config.batch_size == 500
    assert config.source_path == (tmp_path / "old").resolve()
    assert config.target_path == tmp_path / "env-new"
    assert config.compact_after_migrate is True


def test_unknown_keys_are_rejected(tmp_path: Path) -> None:
    """Typos should fail instead of being ignored."""
    config_path = tmp_path / "migrator.yaml"
    config_path.write_text("database:\n  path_olds: x\n", encoding="utf-8")

    with pytest.raises(MigratorConfigError, match="path_olds"):
        load_config_file(str(config_path), _base(tmp_path))


def test_missing_file_is_reported(tmp_path: Path) -> None:
    """A missing file should raise a config error."""
    with pytest.raises(MigratorConfigError, match="does not exist"):
        load_config_file(str(tmp_path / "absent.yaml"), _base(tmp_path))


def test_invalid_yaml_is_reported(tmp_path: Path) -> None:
    """Broken YAML should raise a config error."""
    config_path = tmp_path / "migrator.yaml"
    config_path.write_text("database: [unclosed\n", encoding="utf-8")

    with pytest.raises(MigratorConfigError, match="parse YAML"):
        load_config_file(str(config_path), _base(tmp_path))


def test_batch_size_must_be_positive(tmp_path: Path) -> None:
    """Non-positive batch sizes should be rejected."""
    config_path = tmp_path / "migrator.yaml"
    config_path.write_text("batch_size: 0\n", encoding="utf-8")

    with pytest.raises(MigratorConfigError, match="batch_size"):
        load_config_file(str(config_path), _base(tmp_path))
