"""Memory-bounded batch writing.

``BatchWriter`` stages writes into one reusable target batch and commits
it durably whenever the staged count reaches the batch limit, so peak
memory stays proportional to the limit rather than to the namespace size.
"""

from __future__ import annotations

from typing import Callable

from core.errors import MigrationCancelledError
from migration.progress import TranscodeProgressTracker
from store.interfaces import BatchHandle, TargetHandle

StopCheck = Callable[[], bool]


class BatchWriter:
    """Flush-on-limit writer over a single target batch.

    Flush boundaries are the only points where ``should_stop`` is
    consulted, since a commit is the unit of durability.
    """

    def __init__(
        self,
        target: TargetHandle,
        batch_limit: int,
        progress: TranscodeProgressTracker | None = None,
        should_stop: StopCheck | None = None,
    ) -> None:
        if batch_limit <= 0:
            raise ValueError(f"batch_limit must be positive, got {batch_limit}")
        self._batch: BatchHandle = target.new_batch()
        self._batch_limit = batch_limit
        self._progress = progress
        self._should_stop = should_stop
        self._written = 0
        self._flush_count = 0

    @property
    def written(self) -> int:
        return self._written

    @property
    def flush_count(self) -> int:
        return self._flush_count

    def put(self, key: bytes, value: bytes) -> None:
        """Stage one record and flush when the batch is full.

        Raises:
            CommitError: If a flush fails.
            MigrationCancelledError: If a stop was requested at this flush.
        """
        self._batch.set(key, value)
        self._written += 1
        if len(self._batch) >= self._batch_limit:
            self.flush()
            self._check_stop()

    def flush(self) -> None:
        """Durably commit staged writes and release the batch."""
        staged = len(self._batch)
        self._batch.commit(durable=True)
        self._batch.reset()
        self._flush_count += 1
        if self._progress is not None:
            self._progress.log_batch_committed(self._written, staged)

    def close(self) -> None:
        """Commit any partially filled batch."""
        if len(self._batch) > 0 or self._flush_count == 0:
            self.flush()

    def _check_stop(self) -> None:
        if self._should_stop is not None and self._should_stop():
            raise MigrationCancelledError(
                f"Migration cancelled after {self._written} committed records"
            )
