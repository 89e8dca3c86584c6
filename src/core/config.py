"""Runtime configuration model for the migrator.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_MAP_SIZE,
    DEFAULT_SOURCE_PATH,
    DEFAULT_TARGET_PATH,
    ENV_PREFIX,
)
from core.errors import MigratorConfigError

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")


@dataclass(frozen=True)
class MigratorConfig:
    """Validated runtime configuration.

    Attributes:
        source_path: LMDB directory of the store being migrated (opened read-only).
        target_path: Root directory that receives one store per epoch.
        batch_size: Records staged per durable target commit.
        compact_after_migrate: Compact each epoch store after it is migrated.
        map_size: LMDB map size in bytes for target stores.
    """

    source_path: Path
    target_path: Path
    batch_size: int = DEFAULT_BATCH_SIZE
    compact_after_migrate: bool = False
    map_size: int = DEFAULT_MAP_SIZE

    @classmethod
    def from_env(cls) -> "MigratorConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            MigratorConfigError: If environment values are invalid.
        """
        source_value = os.getenv(f"{ENV_PREFIX}_SOURCE_PATH", str(DEFAULT_SOURCE_PATH))
        target_value = os.getenv(f"{ENV_PREFIX}_TARGET_PATH", str(DEFAULT_TARGET_PATH))
        batch_size = parse_positive_int(
            f"{ENV_PREFIX}_BATCH_SIZE",
            os.getenv(f"{ENV_PREFIX}_BATCH_SIZE", str(DEFAULT_BATCH_SIZE)),
        )
        map_size = parse_positive_int(
            f"{ENV_PREFIX}_MAP_SIZE",
            os.getenv(f"{ENV_PREFIX}_MAP_SIZE", str(DEFAULT_MAP_SIZE)),
        )
        compact_after_migrate = parse_bool(
            f"{ENV_PREFIX}_COMPACT_AFTER_MIGRATE",
            os.getenv(f"{ENV_PREFIX}_COMPACT_AFTER_MIGRATE", "false"),
        )
        return cls(
            source_path=Path(source_value).expanduser().resolve(),
            target_path=Path(target_value).expanduser().resolve(),
            batch_size=batch_size,
            compact_after_migrate=compact_after_migrate,
            map_size=map_size,
        )


def parse_positive_int(name: str, raw_value: str) -> int:
    """Parse a strictly positive integer setting.

    Args:
        name: Setting name used in error messages.
        raw_value: Raw string value.

    Returns:
        Parsed integer.

    Raises:
        MigratorConfigError: If value is not a positive integer.
    """
    try:
        value = int(raw_value)
    except ValueError as error:
        raise MigratorConfigError(
            f"Invalid {name} value: expected integer, got '{raw_value}'. "
            f"Set {name} to a positive number."
        ) from error
    if value <= 0:
        raise MigratorConfigError(
            f"Invalid {name} value: expected a positive integer, got {value}."
        )
    return value


def parse_bool(name: str, raw_value: str) -> bool:
    """Parse a boolean flag setting."""
    normalized = raw_value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise MigratorConfigError(
        f"Invalid {name} value: expected one of true/false/1/0, got '{raw_value}'."
    )
