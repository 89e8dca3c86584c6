"""Shared typed models.

This module defines immutable data models passed between the store,
metadata, transcoding, and orchestration layers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping


@dataclass(frozen=True)
class TickRange:
    """Contiguous, fully processed tick range.

    Attributes:
        start: First tick of the range (inclusive).
        end: Last tick of the range (inclusive).
    """

    start: int
    end: int

    def contains(self, tick_number: int) -> bool:
        """Return whether the tick lies inside the range."""
        return self.start <= tick_number <= self.end

    def __str__(self) -> str:
        return f"[{self.start}, {self.end}]"


@dataclass(frozen=True)
class EpochMetadata:
    """Per-epoch view of processed tick ranges.

    Attributes:
        epoch: Epoch number.
        processed_tick_ranges: Ranges in stored order.
        last_processed_tick: Last processed tick, 0 when unknown.
    """

    epoch: int
    processed_tick_ranges: tuple[TickRange, ...]
    last_processed_tick: int = 0


@dataclass(frozen=True)
class StoreMetadata:
    """Epoch metadata assembled once when a source store is opened."""

    epochs: Mapping[int, EpochMetadata] = field(default_factory=dict)

    def get(self, epoch: int) -> EpochMetadata | None:
        """Return metadata for an epoch when present."""
        return self.epochs.get(epoch)

    def sorted_epochs(self) -> list[int]:
        """Return known epoch numbers in ascending order."""
        return sorted(self.epochs)


@dataclass(frozen=True)
class KeyRange:
    """Half-open key range ``[lower, upper)`` over the ordered key space."""

    lower: bytes
    upper: bytes


@dataclass(frozen=True)
class TranscodeResult:
    """Counters reported by one transcode pass.

    Attributes:
        records_read: Source records visited.
        records_written: Records staged into the target.
        flush_count: Durable commits issued, including the final one.
    """

    records_read: int
    records_written: int
    flush_count: int


@dataclass(frozen=True)
class EpochMigrationResult:
    """Summary of one migrated epoch."""

    epoch: int
    tick_ranges: int
    tick_records: int
    quorum_records: int
    transactions: int
    aggregate_intervals: int
    compacted: bool
