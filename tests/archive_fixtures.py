"""Shared builders for archive store tests.

Source stores are seeded through ``TargetStore`` with v1 encodings, then
reopened read-only exactly as the migrator opens them.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping, Sequence

from core.errors import CommitError
from core.types import TickRange
from schema import v1
from schema.registry import source_codec
from store.keys import Namespace, encode_key
from store.lmdb_store import SourceStore, TargetStore, TargetStoreOptions

TEST_MAP_SIZE = 64 * 1024 * 1024
TEST_STORE_OPTIONS = TargetStoreOptions(map_size=TEST_MAP_SIZE, sync_on_commit=False)


def v1_entry(namespace: Namespace, key_id: Any, record: Any) -> tuple[bytes, bytes]:
    """Encode one source record under its namespace key."""
    return encode_key(namespace, key_id), source_codec(namespace).encode(record)


def write_store(path: Path, entries: Iterable[tuple[bytes, bytes]]) -> Path:
    """Write raw entries into an LMDB environment at path."""
    with TargetStore.open(path, TEST_STORE_OPTIONS) as store:
        batch = store.new_batch()
        for key, value in entries:
            batch.set(key, value)
        batch.commit(durable=True)
    return path


def open_source(path: Path) -> SourceStore:
    return SourceStore.open_read_only(path, map_size=TEST_MAP_SIZE)


def read_all(path: Path) -> dict[bytes, bytes]:
    """Return every entry of an LMDB environment."""
    with open_source(path) as store:
        return dict(store.iterate(b"\x00", b"\xff"))


def transaction_id(tick_number: int, index: int) -> str:
    return f"tx{tick_number:06d}{index:02d}".ljust(60, "a")


def sample_tick(epoch: int, tick_number: int, transaction_ids: Sequence[str] = ()) -> v1.TickData:
    return v1.TickData(
        computor_index=tick_number % 676,
        epoch=epoch,
        tick_number=tick_number,
        timestamp=1_700_000_000 + tick_number,
        transaction_ids=list(transaction_ids),
        signature_hex=f"sig{tick_number}",
    )


def sample_quorum(epoch: int, tick_number: int) -> v1.QuorumTickDataStored:
    return v1.QuorumTickDataStored(
        quorum_tick_structure=v1.QuorumTickStructure(
            epoch=epoch,
            tick_number=tick_number,
            timestamp=1_700_000_000 + tick_number,
            tx_digest_hex=f"digest{tick_number}",
        ),
        quorum_diff_per_computor={
            0: v1.QuorumDiffStored(
                expected_next_tick_tx_digest_hex=f"next{tick_number}",
                signature_hex=f"vote{tick_number}",
            )
        },
    )


def sample_full_quorum(epoch: int, tick_number: int) -> v1.QuorumTickData:
    return v1.QuorumTickData(
        quorum_tick_structure=v1.QuorumTickStructure(epoch=epoch, tick_number=tick_number),
        quorum_diff_per_computor={
            0: v1.QuorumDiff(
                salted_spectrum_digest_hex=f"salted{tick_number}",
                expected_next_tick_tx_digest_hex=f"next{tick_number}",
                signature_hex=f"vote{tick_number}",
            )
        },
    )


def sample_transaction(tx_id: str, tick_number: int) -> v1.Transaction:
    return v1.Transaction(
        source_id="A" * 60,
        dest_id="B" * 60,
        amount=tick_number * 10,
        tick_number=tick_number,
        tx_id=tx_id,
    )


def epoch_index_entries(
    epoch: int,
    ranges: Sequence[TickRange],
    last_processed_tick: int | None = None,
) -> list[tuple[bytes, bytes]]:
    """Entries for the processed-intervals and last-processed-tick indices."""
    entries = [
        v1_entry(
            Namespace.PROCESSED_TICK_INTERVALS,
            epoch,
            v1.ProcessedTickIntervalsPerEpoch(
                epoch=epoch,
                intervals=[
                    v1.ProcessedTickInterval(
                        initial_processed_tick=tick_range.start,
                        last_processed_tick=tick_range.end,
                    )
                    for tick_range in ranges
                ],
            ),
        )
    ]
    if last_processed_tick is not None:
        entries.append(
            v1_entry(
                Namespace.LAST_PROCESSED_TICK_PER_EPOCH,
                epoch,
                v1.ProcessedTick(tick_number=last_processed_tick, epoch=epoch),
            )
        )
    return entries


def epoch_entries(
    epoch: int,
    ranges: Sequence[TickRange],
    transactions_per_tick: Mapping[int, int] | None = None,
    stored_last_tick_quorum: Mapping[int, v1.QuorumTickData] | None = None,
    include_computors: bool = True,
    empty_ticks: int | None = 3,
) -> list[tuple[bytes, bytes]]:
    """Build a complete v1 epoch: indices, metadata records, and every tick."""
    last_tick = max(tick_range.end for tick_range in ranges)
    entries = epoch_index_entries(epoch, ranges, last_tick)
    if include_computors:
        entries.append(
            v1_entry(
                Namespace.COMPUTOR_LIST,
                epoch,
                v1.Computors(epoch=epoch, identities=["C" * 60], signature_hex="cs"),
            )
        )
    if empty_ticks is not None:
        entries.append(v1_entry(Namespace.EMPTY_TICKS_PER_EPOCH, epoch, empty_ticks))
    if epoch > 158:
        entries.append(v1_entry(Namespace.TARGET_TICK_VOTE_SIGNATURE, epoch, 0xDEADBEEF))
    if stored_last_tick_quorum is not None:
        entries.append(
            v1_entry(
                Namespace.LAST_TICK_QUORUM_DATA_PER_EPOCH_INTERVAL,
                epoch,
                v1.LastTickQuorumDataPerEpochIntervals(
                    quorum_data_per_interval=dict(stored_last_tick_quorum)
                ),
            )
        )
    counts = transactions_per_tick or {}
    for tick_range in ranges:
        for tick_number in range(tick_range.start, tick_range.end + 1):
            ids = [transaction_id(tick_number, index) for index in range(counts.get(tick_number, 0))]
            entries.append(
                v1_entry(Namespace.TICK_DATA, tick_number, sample_tick(epoch, tick_number, ids))
            )
            entries.append(
                v1_entry(Namespace.QUORUM_DATA, tick_number, sample_quorum(epoch, tick_number))
            )
            entries.append((encode_key(Namespace.CHAIN_DIGEST, tick_number), b"chain%d" % tick_number))
            entries.append((encode_key(Namespace.STORE_DIGEST, tick_number), b"store%d" % tick_number))
            for tx_id in ids:
                entries.append(
                    v1_entry(Namespace.TRANSACTION, tx_id, sample_transaction(tx_id, tick_number))
                )
                entries.append(
                    v1_entry(
                        Namespace.TRANSACTION_STATUS,
                        tx_id,
                        v1.TransactionStatus(tx_id=tx_id, money_flew=tick_number % 2 == 0),
                    )
                )
    return entries


class MemorySource:
    """Sorted in-memory source handle."""

    def __init__(self, entries: Iterable[tuple[bytes, bytes]]) -> None:
        self._entries = dict(entries)

    def iterate(self, lower: bytes, upper: bytes) -> Iterator[tuple[bytes, bytes]]:
        for key in sorted(self._entries):
            if lower <= key < upper:
                yield key, self._entries[key]

    def get(self, key: bytes) -> bytes | None:
        return self._entries.get(key)


class MemoryBatch:
    def __init__(self, target: "MemoryTarget") -> None:
        self._target = target
        self._pending: list[tuple[bytes, bytes]] = []

    def set(self, key: bytes, value: bytes) -> None:
        self._pending.append((key, value))

    def commit(self, durable: bool = True) -> None:
        self._target.apply(self._pending, durable)

    def reset(self) -> None:
        self._pending = []

    def __len__(self) -> int:
        return len(self._pending)


class MemoryTarget:
    """In-memory target handle recording commits.

    ``fail_on_commit`` makes the n-th commit (1-based) raise ``CommitError``.
    """

    def __init__(self, fail_on_commit: int | None = None) -> None:
        self.records: dict[bytes, bytes] = {}
        self.commit_sizes: list[int] = []
        self.durable_flags: list[bool] = []
        self.compactions: list[tuple[bytes, bytes, bool]] = []
        self.closed = False
        self._fail_on_commit = fail_on_commit

    def new_batch(self) -> MemoryBatch:
        return MemoryBatch(self)

    def apply(self, writes: list[tuple[bytes, bytes]], durable: bool) -> None:
        if self._fail_on_commit is not None and len(self.commit_sizes) + 1 == self._fail_on_commit:
            raise CommitError("simulated commit failure")
        self.records.update(writes)
        self.commit_sizes.append(len(writes))
        self.durable_flags.append(durable)

    def compact(self, lower: bytes, upper: bytes, full: bool = True) -> None:
        self.compactions.append((lower, upper, full))

    def close(self) -> None:
        self.closed = True
