"""LMDB-backed source and target stores.

This module binds the store protocols to LMDB environments. Source
stores are opened read-only and lock-free; target stores stage writes in
reusable batches and commit each batch in a single write transaction.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
import shutil
from typing import Iterator

import lmdb

from core.constants import COMPACTION_DIR_SUFFIX, DEFAULT_MAP_SIZE, LMDB_DATA_FILE_NAME
from core.errors import CommitError, IterationError, MigratorStoreError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class TargetStoreOptions:
    """Tuning options for writable stores.

    Attributes:
        map_size: Maximum environment size in bytes.
        sync_on_commit: Force an fsync after every durable commit.
    """

    map_size: int = DEFAULT_MAP_SIZE
    sync_on_commit: bool = True


class SourceStore:
    """Read-only LMDB store used as migration input."""

    def __init__(self, env: lmdb.Environment, path: Path) -> None:
        self._env = env
        self._path = path

    @classmethod
    def open_read_only(cls, path: Path | str, map_size: int = DEFAULT_MAP_SIZE) -> "SourceStore":
        """Open an existing LMDB environment without write access.

        Args:
            path: LMDB environment directory.
            map_size: Map size hint; LMDB grows it to the stored size.

        Returns:
            Opened source store.

        Raises:
            MigratorStoreError: If the environment does not exist or cannot be opened.
        """
        store_path = Path(path)
        if not (store_path / LMDB_DATA_FILE_NAME).exists():
            raise MigratorStoreError(
                f"Source store not found at {store_path}: missing {LMDB_DATA_FILE_NAME}."
            )
        try:
            env = lmdb.open(
                str(store_path),
                readonly=True,
                lock=False,
                map_size=map_size,
                max_dbs=0,
            )
        except lmdb.Error as error:
            raise MigratorStoreError(f"Failed to open source store at {store_path}: {error}") from error
        _LOGGER.info("source_store_opened", path=str(store_path))
        return cls(env, store_path)

    @property
    def path(self) -> Path:
        return self._path

    def iterate(self, lower: bytes, upper: bytes) -> Iterator[tuple[bytes, bytes]]:
        """Yield records in ascending key order within ``[lower, upper)``.

        Raises:
            IterationError: If the underlying read fails.
        """
        try:
            with self._env.begin(buffers=False) as txn:
                cursor = txn.cursor()
                if not cursor.set_range(lower):
                    return
                for key, value in cursor:
                    if key >= upper:
                        return
                    yield key, value
        except lmdb.Error as error:
            raise IterationError(
                f"Failed to iterate source store {self._path} from {lower.hex()} "
                f"to {upper.hex()}: {error}"
            ) from error

    def get(self, key: bytes) -> bytes | None:
        """Read one value by key.

        Raises:
            IterationError: If the read fails.
        """
        try:
            with self._env.begin(buffers=False) as txn:
                return txn.get(key)
        except lmdb.Error as error:
            raise IterationError(
                f"Failed to read key {key.hex()} from source store {self._path}: {error}"
            ) from error

    def close(self) -> None:
        """Close the environment."""
        self._env.close()

    def __enter__(self) -> "SourceStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class WriteBatch:
    """Reusable batch of pending writes for a target store."""

    def __init__(self, store: "TargetStore") -> None:
        self._store = store
        self._pending: list[tuple[bytes, bytes]] = []

    def set(self, key: bytes, value: bytes) -> None:
        """Stage a write; later writes to the same key win."""
        self._pending.append((key, value))

    def commit(self, durable: bool = True) -> None:
        """Apply staged writes in one write transaction.

        Args:
            durable: Flush the environment to disk after the transaction.

        Raises:
            CommitError: If the transaction or sync fails.
        """
        self._store.apply(self._pending, durable)

    def reset(self) -> None:
        """Release staged writes so the batch can be reused."""
        self._pending = []

    def __len__(self) -> int:
        return len(self._pending)


class TargetStore:
    """Writable LMDB store receiving migrated records."""

    def __init__(self, env: lmdb.Environment, path: Path, options: TargetStoreOptions) -> None:
        self._env = env
        self._path = path
        self._options = options
        self._closed = False

    @classmethod
    def open(cls, path: Path | str, options: TargetStoreOptions | None = None) -> "TargetStore":
        """Open or create a writable LMDB environment.

        Raises:
            MigratorStoreError: If the environment cannot be created.
        """
        store_options = options or TargetStoreOptions()
        store_path = Path(path)
        try:
            store_path.mkdir(parents=True, exist_ok=True)
            env = _open_writable_env(store_path, store_options)
        except (OSError, lmdb.Error) as error:
            raise MigratorStoreError(f"Failed to open target store at {store_path}: {error}") from error
        return cls(env, store_path, store_options)

    @property
    def path(self) -> Path:
        return self._path

    def new_batch(self) -> WriteBatch:
        """Create an empty write batch bound to this store."""
        return WriteBatch(self)

    def apply(self, writes: list[tuple[bytes, bytes]], durable: bool) -> None:
        """Write key/value pairs atomically.

        Raises:
            CommitError: If the write transaction or sync fails.
        """
        try:
            with self._env.begin(write=True) as txn:
                for key, value in writes:
                    txn.put(key, value)
            if durable and self._options.sync_on_commit:
                self._env.sync(True)
        except lmdb.Error as error:
            raise CommitError(
                f"Failed to commit {len(writes)} records to {self._path}: {error}"
            ) from error

    def compact(self, lower: bytes, upper: bytes, full: bool = True) -> None:
        """Rewrite the environment without free pages.

        LMDB compacts whole environments only, so the bounds are validated
        and logged but the copy always covers every key.

        Raises:
            ValueError: If ``lower`` is not below ``upper``.
            MigratorStoreError: If the compacting copy fails.
        """
        if lower >= upper:
            raise ValueError(f"invalid compaction range {lower.hex()}..{upper.hex()}")
        _LOGGER.info(
            "compaction_started",
            path=str(self._path),
            lower=lower.hex(),
            upper=upper.hex(),
            full=full,
        )
        compact_dir = self._path.with_name(self._path.name + COMPACTION_DIR_SUFFIX)
        try:
            shutil.rmtree(compact_dir, ignore_errors=True)
            compact_dir.mkdir(parents=True)
            self._env.copy(str(compact_dir), compact=True)
            self._env.close()
            self._closed = True
            os.replace(compact_dir / LMDB_DATA_FILE_NAME, self._path / LMDB_DATA_FILE_NAME)
            shutil.rmtree(compact_dir, ignore_errors=True)
            self._env = _open_writable_env(self._path, self._options)
            self._closed = False
        except (OSError, lmdb.Error) as error:
            raise MigratorStoreError(f"Failed to compact target store {self._path}: {error}") from error
        _LOGGER.info("compaction_completed", path=str(self._path))

    def close(self) -> None:
        """Flush and close the environment.

        A store whose environment was already released, for instance by a
        failed compaction, is left as is.
        """
        if self._closed:
            return
        try:
            self._env.sync(True)
        except lmdb.Error as error:
            raise MigratorStoreError(f"Failed to flush target store {self._path}: {error}") from error
        finally:
            self._env.close()
            self._closed = True

    def __enter__(self) -> "TargetStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _open_writable_env(path: Path, options: TargetStoreOptions) -> lmdb.Environment:
    return lmdb.open(
        str(path),
        map_size=options.map_size,
        max_dbs=0,
        sync=False,
        metasync=False,
    )
