"""Aggregation fold.

A stateful variant of the range transcoder: while re-encoding every
record it keeps one selected record per ``(epoch, interval)`` group and,
once the scan finishes, persists one aggregate record per epoch.
Aggregates go through their own batch, separate from the per-record
stream; the accumulator itself is only held in memory.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Mapping, Sequence, TypeVar

from core.errors import MigratorError, add_error_context
from core.logging_config import get_logger
from core.types import KeyRange, TranscodeResult
from migration.batching import BatchWriter, StopCheck
from migration.intervals import EpochIntervalIndex
from migration.progress import TranscodeProgressTracker
from schema.codec import Codec
from store.interfaces import SourceHandle, TargetHandle

_LOGGER = get_logger(__name__)

R = TypeVar("R")


@dataclass(frozen=True)
class AttributedRecord(Generic[R]):
    """Decoded record tagged with its epoch and tick number."""

    epoch: int
    tick_number: int
    record: R


Selector = Callable[[AttributedRecord[Any], AttributedRecord[Any]], bool]


def keep_greatest_tick(candidate: AttributedRecord[Any], current: AttributedRecord[Any]) -> bool:
    """Replace the current selection when the candidate has a greater tick."""
    return candidate.tick_number > current.tick_number


class IntervalAccumulator:
    """Selected record per ``(epoch, interval)`` group."""

    def __init__(self, selector: Selector = keep_greatest_tick) -> None:
        self._selector = selector
        self._selected: dict[tuple[int, int], AttributedRecord[Any]] = {}

    def offer(self, interval_index: int, candidate: AttributedRecord[Any]) -> bool:
        """Consider a record for its group; return whether it was selected."""
        group = (candidate.epoch, interval_index)
        current = self._selected.get(group)
        if current is None or self._selector(candidate, current):
            self._selected[group] = candidate
            return True
        return False

    def groups_by_epoch(self) -> dict[int, dict[int, AttributedRecord[Any]]]:
        """Return selections as ``{epoch: {interval: record}}`` in ascending order."""
        grouped: dict[int, dict[int, AttributedRecord[Any]]] = {}
        for epoch, interval_index in sorted(self._selected):
            grouped.setdefault(epoch, {})[interval_index] = self._selected[(epoch, interval_index)]
        return grouped

    def __len__(self) -> int:
        return len(self._selected)


@dataclass(frozen=True)
class FoldPlan:
    """Namespace-specific hooks for an aggregation fold.

    Attributes:
        source_codec: Decoder for stored values.
        attribute: Returns ``(epoch, tick_number)`` of a decoded record.
        transform: Maps ``(key, decoded record)`` to the migrated ``(key, value)``.
        aggregate: Builds the ``(key, value)`` aggregate of one epoch from its
            selected records keyed by interval index.
        selector: Replacement policy within a group.
        seeded_epochs: Epochs whose aggregate is written even when the scan
            selected no record for them.
    """

    source_codec: Codec[Any]
    attribute: Callable[[Any], tuple[int, int]]
    transform: Callable[[bytes, Any], tuple[bytes, bytes]]
    aggregate: Callable[[int, Mapping[int, AttributedRecord[Any]]], tuple[bytes, bytes]]
    selector: Selector = keep_greatest_tick
    seeded_epochs: tuple[int, ...] = ()


@dataclass(frozen=True)
class FoldResult:
    """Counters reported by one fold."""

    transcode: TranscodeResult
    groups: int
    aggregates_written: int


def fold_transcode(
    source: SourceHandle,
    target: TargetHandle,
    key_ranges: Sequence[KeyRange],
    plan: FoldPlan,
    intervals: EpochIntervalIndex,
    batch_limit: int,
    progress: TranscodeProgressTracker | None = None,
    should_stop: StopCheck | None = None,
) -> FoldResult:
    """Re-encode records and persist the selected record per interval.

    Args:
        source: Store being read.
        target: Store receiving records and aggregates.
        key_ranges: Key ranges scanned in order with one shared accumulator.
        plan: Namespace-specific hooks.
        intervals: Interval attribution for every epoch being scanned.
        batch_limit: Records staged before each durable commit.
        progress: Optional progress tracker.
        should_stop: Optional cancellation check run after each flush.

    Returns:
        Counters for the fold.

    Raises:
        IntervalNotFoundError: If a record's tick is outside every known interval.
        IterationError, DecodeError, EncodeError, CommitError: As for ``transcode_range``.
    """
    writer = BatchWriter(target, batch_limit, progress=progress, should_stop=should_stop)
    accumulator = IntervalAccumulator(plan.selector)
    if progress is not None:
        progress.log_started()
    records_read = 0
    for key_range in key_ranges:
        for key, value in source.iterate(key_range.lower, key_range.upper):
            records_read += 1
            try:
                record = plan.source_codec.decode(value)
            except MigratorError as error:
                raise add_error_context(error, f"decoding key {key.hex()}") from error
            epoch, tick_number = plan.attribute(record)
            try:
                interval_index = intervals.index_for(epoch, tick_number)
                new_key, new_value = plan.transform(key, record)
            except MigratorError as error:
                raise add_error_context(
                    error, f"folding tick {tick_number} of epoch {epoch}"
                ) from error
            accumulator.offer(interval_index, AttributedRecord(epoch, tick_number, record))
            writer.put(new_key, new_value)
    writer.close()
    aggregates_written = _persist_aggregates(target, accumulator, plan, batch_limit)
    transcode = TranscodeResult(
        records_read=records_read,
        records_written=writer.written,
        flush_count=writer.flush_count,
    )
    if progress is not None:
        progress.log_completed(records_read, writer.written, writer.flush_count)
    return FoldResult(
        transcode=transcode,
        groups=len(accumulator),
        aggregates_written=aggregates_written,
    )


def _persist_aggregates(
    target: TargetHandle,
    accumulator: IntervalAccumulator,
    plan: FoldPlan,
    batch_limit: int,
) -> int:
    """Write one aggregate record per epoch with selections or a seed."""
    grouped = accumulator.groups_by_epoch()
    epochs = sorted(set(grouped) | set(plan.seeded_epochs))
    if not epochs:
        return 0
    aggregate_writer = BatchWriter(target, batch_limit)
    for epoch in epochs:
        selections = grouped.get(epoch, {})
        key, value = plan.aggregate(epoch, selections)
        aggregate_writer.put(key, value)
        _LOGGER.info(
            "aggregate_persisted",
            epoch=epoch,
            intervals=sorted(selections),
            selected_ticks=[selections[index].tick_number for index in sorted(selections)],
        )
    aggregate_writer.close()
    return len(epochs)
