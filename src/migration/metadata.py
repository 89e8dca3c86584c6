"""Store metadata assembly.

The source keeps two independent indices per epoch: the last processed
tick and the list of processed tick intervals. This module joins them
into one immutable ``StoreMetadata`` value.
"""

from __future__ import annotations

from core.errors import MigratorError, add_error_context
from core.logging_config import get_logger
from core.types import EpochMetadata, StoreMetadata, TickRange
from schema import v1
from schema.codec import RecordCodec
from store.interfaces import SourceHandle
from store.keys import Namespace, decode_id, namespace_bounds

_LOGGER = get_logger(__name__)

_PROCESSED_TICK_CODEC = RecordCodec(v1.ProcessedTick)
_INTERVALS_CODEC = RecordCodec(v1.ProcessedTickIntervalsPerEpoch)


def assemble_store_metadata(source: SourceHandle) -> StoreMetadata:
    """Join last-processed ticks and processed intervals by epoch.

    Epochs without interval entries are left out. Epochs with intervals
    but no last-processed tick get ``last_processed_tick == 0``.

    Args:
        source: Store to read both indices from.

    Returns:
        Metadata for every epoch with processed intervals.

    Raises:
        IterationError: If either index cannot be read.
        DecodeError: If an index entry is malformed.
    """
    last_ticks = read_last_processed_ticks_per_epoch(source)
    intervals = read_processed_tick_intervals(source)
    epochs: dict[int, EpochMetadata] = {}
    for epoch, ranges in intervals.items():
        if not ranges:
            _LOGGER.warning("epoch_without_tick_intervals", epoch=epoch)
            continue
        epochs[epoch] = EpochMetadata(
            epoch=epoch,
            processed_tick_ranges=ranges,
            last_processed_tick=last_ticks.get(epoch, 0),
        )
    _LOGGER.info(
        "store_metadata_assembled",
        epochs=len(epochs),
        epochs_without_last_tick=sorted(set(epochs) - set(last_ticks)),
    )
    return StoreMetadata(epochs=epochs)


def read_last_processed_ticks_per_epoch(source: SourceHandle) -> dict[int, int]:
    """Read the whole last-processed-tick-per-epoch index."""
    bounds = namespace_bounds(Namespace.LAST_PROCESSED_TICK_PER_EPOCH)
    last_ticks: dict[int, int] = {}
    for key, value in source.iterate(bounds.lower, bounds.upper):
        epoch = decode_id(key)
        try:
            record = _PROCESSED_TICK_CODEC.decode(value)
        except MigratorError as error:
            raise add_error_context(error, f"reading last processed tick of epoch {epoch}") from error
        last_ticks[int(epoch)] = record.tick_number
    return last_ticks


def read_processed_tick_intervals(source: SourceHandle) -> dict[int, tuple[TickRange, ...]]:
    """Read the whole processed-tick-intervals index in stored order."""
    bounds = namespace_bounds(Namespace.PROCESSED_TICK_INTERVALS)
    intervals: dict[int, tuple[TickRange, ...]] = {}
    for key, value in source.iterate(bounds.lower, bounds.upper):
        try:
            record = _INTERVALS_CODEC.decode(value)
        except MigratorError as error:
            raise add_error_context(
                error, f"reading processed tick intervals under key {key.hex()}"
            ) from error
        intervals[record.epoch] = tuple(
            TickRange(start=interval.initial_processed_tick, end=interval.last_processed_tick)
            for interval in record.intervals
        )
    return intervals


def render_store_metadata(metadata: StoreMetadata) -> list[str]:
    """Render metadata as human-readable lines, ascending by epoch."""
    lines: list[str] = []
    for epoch in metadata.sorted_epochs():
        epoch_metadata = metadata.epochs[epoch]
        lines.append(f"Epoch: {epoch}")
        lines.append(f"  - Last processed tick: {epoch_metadata.last_processed_tick}")
        lines.append("  - Tick ranges:")
        for tick_range in epoch_metadata.processed_tick_ranges:
            lines.append(f"    - {tick_range.start} : {tick_range.end}")
    return lines
