"""Shared state for the steps of one epoch migration."""

from __future__ import annotations

from dataclasses import dataclass

from core.types import EpochMetadata
from migration.batching import StopCheck
from store.interfaces import SourceHandle, TargetHandle


@dataclass(frozen=True)
class EpochContext:
    """Handles and settings used while migrating one epoch.

    Attributes:
        source: Read-only source store.
        target: Per-epoch target store.
        metadata: Assembled metadata of the epoch.
        batch_limit: Records staged before each durable commit.
        should_stop: Optional cancellation check for flush boundaries.
    """

    source: SourceHandle
    target: TargetHandle
    metadata: EpochMetadata
    batch_limit: int
    should_stop: StopCheck | None = None

    @property
    def epoch(self) -> int:
        return self.metadata.epoch
