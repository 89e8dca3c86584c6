"""Structured transcode progress reporting.

This module emits progress events for long-running namespace scans,
including per-flush updates, throughput, and ETA estimates.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


@dataclass
class TranscodeProgressTracker:
    """Track and emit progress events for one transcode pass."""

    label: str
    expected_records: int | None = None
    started_at: float = field(default_factory=time.monotonic)
    records_processed: int = 0

    def log_started(self) -> None:
        """Log one event when a scan starts."""
        _LOGGER.info(
            "namespace_transcode_started",
            label=self.label,
            expected_records=self.expected_records,
        )

    def log_batch_committed(self, records_processed: int, batch_records: int) -> None:
        """Log progress after a durable flush."""
        self.records_processed = records_processed
        elapsed = max(time.monotonic() - self.started_at, 1e-9)
        rate = records_processed / elapsed
        _LOGGER.info(
            "transcode_batch_committed",
            label=self.label,
            batch_records=batch_records,
            records_processed=records_processed,
            expected_records=self.expected_records,
            records_per_second=round(rate, 2),
            eta_seconds=_estimate_eta(records_processed, self.expected_records, rate),
        )

    def log_completed(self, records_read: int, records_written: int, flush_count: int) -> None:
        """Log completion with elapsed time."""
        _LOGGER.info(
            "transcode_completed",
            label=self.label,
            records_read=records_read,
            records_written=records_written,
            flush_count=flush_count,
            elapsed_seconds=round(time.monotonic() - self.started_at, 3),
        )


def _estimate_eta(
    records_processed: int,
    expected_records: int | None,
    rate: float,
) -> float | None:
    """Estimate remaining seconds; ``None`` when the total is unknown."""
    if expected_records is None or rate <= 0:
        return None
    remaining = max(expected_records - records_processed, 0)
    return round(remaining / rate, 2)
