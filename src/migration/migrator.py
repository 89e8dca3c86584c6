"""Migration orchestrator.

``Migrator`` walks epochs of an assembled ``StoreMetadata`` and migrates
each one into its own target store under the target root.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Callable

from core.constants import DEFAULT_BATCH_SIZE, FULL_RANGE_LOWER_BOUND, FULL_RANGE_UPPER_BOUND
from core.errors import ConsistencyError, MigrationStateError, MigratorError, add_error_context
from core.logging_config import get_logger
from core.types import EpochMigrationResult, StoreMetadata
from migration.batching import StopCheck
from migration.epoch_context import EpochContext
from migration.epoch_metadata import migrate_epoch_metadata
from migration.metadata import assemble_store_metadata
from migration.tick_ranges import migrate_epoch_ticks
from store.interfaces import SourceHandle, TargetHandle
from store.lmdb_store import TargetStore, TargetStoreOptions

_LOGGER = get_logger(__name__)

TargetOpener = Callable[[Path], TargetHandle]


class MigratorState(Enum):
    """Lifecycle states of a ``Migrator``."""

    IDLE = "idle"
    METADATA_LOADED = "metadata_loaded"
    MIGRATING_EPOCH = "migrating_epoch"
    DONE = "done"
    FAILED = "failed"


_EPOCH_START_STATES = frozenset(
    {MigratorState.METADATA_LOADED, MigratorState.DONE, MigratorState.FAILED}
)


class Migrator:
    """Sequential epoch migrator over one read-only source store."""

    def __init__(
        self,
        source: SourceHandle,
        target_root: Path | str,
        batch_size: int = DEFAULT_BATCH_SIZE,
        compact_after_migrate: bool = False,
        target_options: TargetStoreOptions | None = None,
        open_target: TargetOpener | None = None,
        should_stop: StopCheck | None = None,
    ) -> None:
        """Create a migrator.

        Args:
            source: Read-only source store.
            target_root: Directory holding one target store per epoch.
            batch_size: Records staged before each durable commit.
            compact_after_migrate: Compact each epoch store once migrated.
            target_options: LMDB options for target stores.
            open_target: Optional factory for target stores, mainly for tests.
            should_stop: Optional cancellation check run at flush boundaries.
        """
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self._source = source
        self._target_root = Path(target_root)
        self._batch_size = batch_size
        self._compact_after_migrate = compact_after_migrate
        options = target_options or TargetStoreOptions()
        self._open_target = open_target or (lambda path: TargetStore.open(path, options))
        self._should_stop = should_stop
        self._metadata: StoreMetadata | None = None
        self._state = MigratorState.IDLE

    @property
    def state(self) -> MigratorState:
        return self._state

    @property
    def has_metadata(self) -> bool:
        return self._metadata is not None

    @property
    def metadata(self) -> StoreMetadata:
        """Loaded store metadata.

        Raises:
            MigrationStateError: If metadata has not been loaded yet.
        """
        if self._metadata is None:
            raise MigrationStateError("Store metadata has not been loaded")
        return self._metadata

    def load_metadata(self) -> StoreMetadata:
        """Assemble store metadata from the source and keep it for later epochs."""
        metadata = assemble_store_metadata(self._source)
        self.use_metadata(metadata)
        return metadata

    def use_metadata(self, metadata: StoreMetadata) -> None:
        """Adopt store metadata assembled elsewhere.

        Raises:
            MigrationStateError: If an epoch migration is in progress.
        """
        if self._state == MigratorState.MIGRATING_EPOCH:
            raise MigrationStateError("Cannot replace store metadata while an epoch is migrating")
        self._metadata = metadata
        self._state = MigratorState.METADATA_LOADED

    def epoch_target_path(self, epoch: int) -> Path:
        return self._target_root / str(epoch)

    def migrate_epoch(self, epoch: int) -> EpochMigrationResult:
        """Migrate one epoch into its own target store.

        Args:
            epoch: Epoch number.

        Returns:
            Counters for the migrated epoch.

        Raises:
            MigrationStateError: If metadata is not loaded or a migration is running.
            ConsistencyError: If the epoch is unknown or its data is inconsistent.
            MigratorError: If any store, codec, or commit step fails.
        """
        if self._state not in _EPOCH_START_STATES:
            raise MigrationStateError(
                f"Cannot migrate epoch {epoch} from state {self._state.value}"
            )
        self._state = MigratorState.MIGRATING_EPOCH
        _LOGGER.info(
            "epoch_migration_started",
            epoch=epoch,
            target=str(self.epoch_target_path(epoch)),
            batch_size=self._batch_size,
        )
        try:
            result = self._migrate_epoch(epoch)
        except MigratorError as error:
            self._state = MigratorState.FAILED
            _LOGGER.error("migration_failed", epoch=epoch, error=str(error))
            raise add_error_context(error, f"migrating epoch {epoch}") from error
        except BaseException:
            self._state = MigratorState.FAILED
            raise
        self._state = MigratorState.DONE
        _LOGGER.info(
            "epoch_migration_completed",
            epoch=epoch,
            tick_ranges=result.tick_ranges,
            tick_records=result.tick_records,
            quorum_records=result.quorum_records,
            transactions=result.transactions,
            compacted=result.compacted,
        )
        return result

    def migrate_range(self, start: int, end: int) -> list[EpochMigrationResult]:
        """Migrate epochs ``start`` through ``end`` inclusive, stopping at the first failure."""
        if start > end:
            _LOGGER.warning("empty_epoch_range", start=start, end=end)
            return []
        return [self.migrate_epoch(epoch) for epoch in range(start, end + 1)]

    def migrate_all(self) -> list[EpochMigrationResult]:
        """Migrate every epoch known to the metadata in ascending order."""
        return [self.migrate_epoch(epoch) for epoch in self.metadata.sorted_epochs()]

    def _migrate_epoch(self, epoch: int) -> EpochMigrationResult:
        epoch_metadata = self.metadata.get(epoch)
        if epoch_metadata is None:
            raise ConsistencyError(f"no processed tick intervals found for epoch {epoch}")
        target = self._open_target(self.epoch_target_path(epoch))
        try:
            context = EpochContext(
                source=self._source,
                target=target,
                metadata=epoch_metadata,
                batch_limit=self._batch_size,
                should_stop=self._should_stop,
            )
            stored_last_tick_quorum = migrate_epoch_metadata(context)
            counters = migrate_epoch_ticks(context, stored_last_tick_quorum)
            if self._compact_after_migrate:
                target.compact(FULL_RANGE_LOWER_BOUND, FULL_RANGE_UPPER_BOUND, True)
        finally:
            target.close()
        return EpochMigrationResult(
            epoch=epoch,
            tick_ranges=len(epoch_metadata.processed_tick_ranges),
            tick_records=counters.tick_records,
            quorum_records=counters.quorum_records,
            transactions=counters.transactions,
            aggregate_intervals=counters.aggregate_intervals,
            compacted=self._compact_after_migrate,
        )
