"""Public SDK surface for the archive migrator.

This module provides a stable import path for programmatic migrations.
It re-exports the client, the orchestrator, and typed result models.
"""

from __future__ import annotations

from core.config import MigratorConfig
from core.config_file import load_config_file
from core.errors import MigratorError
from core.types import EpochMetadata, EpochMigrationResult, StoreMetadata, TickRange
from migration.client import MigrationClient
from migration.metadata import assemble_store_metadata, render_store_metadata
from migration.migrator import Migrator, MigratorState
from migration.shared import SharedMigrationResult
from store.lmdb_store import SourceStore, TargetStore, TargetStoreOptions

__all__ = [
    "EpochMetadata",
    "EpochMigrationResult",
    "MigrationClient",
    "Migrator",
    "MigratorConfig",
    "MigratorError",
    "MigratorState",
    "SharedMigrationResult",
    "SourceStore",
    "StoreMetadata",
    "TargetStore",
    "TargetStoreOptions",
    "TickRange",
    "assemble_store_metadata",
    "load_config_file",
    "render_store_metadata",
]
