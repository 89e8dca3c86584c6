"""YAML configuration file support.

This module loads an optional YAML file and overlays its values on top of
an environment-derived config, using the same validation rules.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Mapping, cast

from core.config import MigratorConfig
from core.errors import MigratorConfigError, MigratorDependencyError

_ROOT_KEYS = ("database", "batch_size")
_DATABASE_KEYS = ("path_old", "path_new", "compact_after_migrate", "map_size")


def load_config_file(config_path: str, base: MigratorConfig) -> MigratorConfig:
    """Load a YAML config file and overlay it on a base config.

    Args:
        config_path: Path to the YAML file.
        base: Config whose values are kept where the file is silent.

    Returns:
        Merged config.

    Raises:
        MigratorDependencyError: If PyYAML is unavailable.
        MigratorConfigError: If the file is missing, invalid, or has unknown keys.
    """
    payload = _load_yaml_payload(config_path)
    root = _expect_mapping(payload, "config root")
    _reject_unknown_keys(root, _ROOT_KEYS, "config root")
    config = base
    batch_size = _optional_positive_int(root, "batch_size")
    if batch_size is not None:
        config = replace(config, batch_size=batch_size)
    database_payload = root.get("database")
    if database_payload is None:
        return config
    database = _expect_mapping(database_payload, "database section")
    _reject_unknown_keys(database, _DATABASE_KEYS, "database section")
    path_old = _optional_path(database, "path_old")
    if path_old is not None:
        config = replace(config, source_path=path_old)
    path_new = _optional_path(database, "path_new")
    if path_new is not None:
        config = replace(config, target_path=path_new)
    compact = database.get("compact_after_migrate")
    if compact is not None:
        if not isinstance(compact, bool):
            raise MigratorConfigError(
                "Config field 'database.compact_after_migrate' must be a boolean."
            )
        config = replace(config, compact_after_migrate=compact)
    map_size = _optional_positive_int(database, "map_size")
    if map_size is not None:
        config = replace(config, map_size=map_size)
    return config


def _load_yaml_payload(config_path: str) -> object:
    try:
        import yaml  # type: ignore[import-untyped]
    except ImportError as error:  # pragma: no cover - dependency failure
        raise MigratorDependencyError(
            "YAML config support requires PyYAML. Install with 'pip install pyyaml'."
        ) from error
    config_file = Path(config_path).expanduser().resolve()
    if not config_file.exists():
        raise MigratorConfigError(
            f"Config file does not exist at {config_file}. Provide a valid YAML file path."
        )
    try:
        payload = cast(object, yaml.safe_load(config_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise MigratorConfigError(
            f"Failed to read config at {config_file}: {error}. Check file permissions and retry."
        ) from error
    except yaml.YAMLError as error:
        raise MigratorConfigError(
            f"Failed to parse YAML config at {config_file}: {error}. Fix YAML syntax and retry."
        ) from error
    if payload is None:
        raise MigratorConfigError(f"Config at {config_file} is empty.")
    return payload


def _expect_mapping(value: object, context: str) -> Mapping[str, object]:
    if not isinstance(value, Mapping):
        raise MigratorConfigError(
            f"Invalid {context}: expected mapping, got {type(value).__name__}."
        )
    for key in value:
        if not isinstance(key, str):
            raise MigratorConfigError(
                f"Invalid {context}: expected string keys, got {type(key).__name__}."
            )
    return cast(Mapping[str, object], value)


def _reject_unknown_keys(
    mapping: Mapping[str, object],
    allowed: tuple[str, ...],
    context: str,
) -> None:
    unknown = sorted(set(mapping) - set(allowed))
    if unknown:
        raise MigratorConfigError(
            f"Unsupported keys in {context}: {', '.join(unknown)}. "
            f"Allowed keys: {', '.join(allowed)}."
        )


def _optional_positive_int(mapping: Mapping[str, object], field_name: str) -> int | None:
    value = mapping.get(field_name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise MigratorConfigError(f"Config field '{field_name}' must be a positive integer.")
    return value


def _optional_path(mapping: Mapping[str, object], field_name: str) -> Path | None:
    value = mapping.get(field_name)
    if value is None:
        return None
    if not isinstance(value, str) or not value.strip():
        raise MigratorConfigError(f"Config field 'database.{field_name}' must be a path string.")
    return Path(value.strip()).expanduser().resolve()
