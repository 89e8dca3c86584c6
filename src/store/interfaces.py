"""Store handle protocols consumed by the migration core.

The transcoder and orchestrator only depend on these structural types,
so tests and alternative engines can supply their own handles.
"""

from __future__ import annotations

from typing import Iterator, Protocol


class SourceHandle(Protocol):
    """Read-only ordered key-value store."""

    def iterate(self, lower: bytes, upper: bytes) -> Iterator[tuple[bytes, bytes]]:
        """Yield ``(key, value)`` pairs in ascending key order within ``[lower, upper)``."""
        ...

    def get(self, key: bytes) -> bytes | None:
        """Return the value stored under key, or ``None``."""
        ...


class BatchHandle(Protocol):
    """Atomic group of pending writes."""

    def set(self, key: bytes, value: bytes) -> None:
        """Stage one write."""
        ...

    def commit(self, durable: bool = True) -> None:
        """Apply staged writes atomically."""
        ...

    def reset(self) -> None:
        """Drop staged writes so the batch can be reused."""
        ...

    def __len__(self) -> int:
        ...


class TargetHandle(Protocol):
    """Writable ordered key-value store."""

    def new_batch(self) -> BatchHandle:
        """Create an empty write batch."""
        ...

    def compact(self, lower: bytes, upper: bytes, full: bool = True) -> None:
        """Compact stored data covering ``[lower, upper)``."""
        ...

    def close(self) -> None:
        """Flush outstanding state and release the store."""
        ...
