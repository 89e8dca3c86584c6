"""High-level migration client.

This module binds a ``MigratorConfig`` to concrete LMDB stores and exposes
the migration workflows used by the CLI and SDK callers.
"""

from __future__ import annotations

from core.config import MigratorConfig
from core.constants import SHARED_STORE_DIR_NAME
from core.types import EpochMigrationResult, StoreMetadata
from migration.batching import StopCheck
from migration.metadata import render_store_metadata
from migration.migrator import Migrator
from migration.shared import SharedMigrationResult, migrate_shared
from store.lmdb_store import SourceStore, TargetStore, TargetStoreOptions


class MigrationClient:
    """Primary entry point for archive store migrations."""

    def __init__(
        self,
        config: MigratorConfig | None = None,
        should_stop: StopCheck | None = None,
    ) -> None:
        """Open the source store described by the config.

        Args:
            config: Optional runtime configuration, read from env when omitted.
            should_stop: Optional cancellation check run at flush boundaries.

        Raises:
            MigratorStoreError: If the source store cannot be opened.
        """
        self._config = config or MigratorConfig.from_env()
        self._should_stop = should_stop
        self._target_options = TargetStoreOptions(map_size=self._config.map_size)
        self._source = SourceStore.open_read_only(self._config.source_path, self._config.map_size)
        self._migrator = Migrator(
            self._source,
            self._config.target_path,
            batch_size=self._config.batch_size,
            compact_after_migrate=self._config.compact_after_migrate,
            target_options=self._target_options,
            should_stop=should_stop,
        )

    @property
    def config(self) -> MigratorConfig:
        return self._config

    @property
    def migrator(self) -> Migrator:
        return self._migrator

    def metadata(self) -> StoreMetadata:
        """Return store metadata, assembling it on first use."""
        if self._migrator.has_metadata:
            return self._migrator.metadata
        return self._migrator.load_metadata()

    def describe(self) -> list[str]:
        """Render the store metadata as printable lines."""
        return render_store_metadata(self.metadata())

    def migrate_epoch(self, epoch: int) -> EpochMigrationResult:
        self.metadata()
        return self._migrator.migrate_epoch(epoch)

    def migrate_range(self, start: int, end: int) -> list[EpochMigrationResult]:
        self.metadata()
        return self._migrator.migrate_range(start, end)

    def migrate_all(self) -> list[EpochMigrationResult]:
        self.metadata()
        return self._migrator.migrate_all()

    def migrate_shared(self) -> SharedMigrationResult:
        """Migrate epoch-independent namespaces into the shared target store."""
        shared_path = self._config.target_path / SHARED_STORE_DIR_NAME
        with TargetStore.open(shared_path, self._target_options) as target:
            return migrate_shared(
                self._source,
                target,
                self._config.batch_size,
                should_stop=self._should_stop,
            )

    def close(self) -> None:
        self._source.close()

    def __enter__(self) -> "MigrationClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
