"""Tick to processed-interval attribution.

Ranges are looked up in stored order and the first match wins. Range
lists are short, so a linear scan is used.
"""

from __future__ import annotations

from typing import Iterable, Mapping

from core.errors import IntervalNotFoundError
from core.types import EpochMetadata, StoreMetadata, TickRange


class IntervalIndex:
    """Processed tick ranges of one epoch."""

    def __init__(self, epoch: int, ranges: Iterable[TickRange]) -> None:
        self._epoch = epoch
        self._ranges = tuple(ranges)

    @classmethod
    def from_metadata(cls, metadata: EpochMetadata) -> "IntervalIndex":
        return cls(metadata.epoch, metadata.processed_tick_ranges)

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def ranges(self) -> tuple[TickRange, ...]:
        return self._ranges

    def find(self, tick_number: int) -> int | None:
        """Return the index of the range holding the tick, or ``None``."""
        for index, tick_range in enumerate(self._ranges):
            if tick_range.contains(tick_number):
                return index
        return None

    def index_for(self, tick_number: int) -> int:
        """Return the index of the range holding the tick.

        Raises:
            IntervalNotFoundError: If no range contains the tick.
        """
        index = self.find(tick_number)
        if index is None:
            raise IntervalNotFoundError(
                f"could not find which interval tick {tick_number} of epoch "
                f"{self._epoch} belongs to"
            )
        return index


class EpochIntervalIndex:
    """Interval indices for several epochs."""

    def __init__(self, indices: Mapping[int, IntervalIndex]) -> None:
        self._indices = dict(indices)

    @classmethod
    def from_store_metadata(
        cls,
        metadata: StoreMetadata,
        epochs: Iterable[int] | None = None,
    ) -> "EpochIntervalIndex":
        """Build indices for the selected epochs, or all known epochs."""
        selected = metadata.sorted_epochs() if epochs is None else list(epochs)
        indices: dict[int, IntervalIndex] = {}
        for epoch in selected:
            epoch_metadata = metadata.get(epoch)
            if epoch_metadata is not None:
                indices[epoch] = IntervalIndex.from_metadata(epoch_metadata)
        return cls(indices)

    def index_for(self, epoch: int, tick_number: int) -> int:
        """Return the interval index for a tick of an epoch.

        Raises:
            IntervalNotFoundError: If the epoch is unknown or no range matches.
        """
        index = self._indices.get(epoch)
        if index is None:
            raise IntervalNotFoundError(
                f"no processed tick intervals known for epoch {epoch} (tick {tick_number})"
            )
        return index.index_for(tick_number)
