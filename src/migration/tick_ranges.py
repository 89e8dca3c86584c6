"""Tick-keyed namespaces of one epoch.

Tick data, digests, and quorum data are scanned per processed tick range.
Transactions and their statuses are not range-scanned: their ids are
collected from the tick data and looked up one by one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from core.errors import ConsistencyError, MigratorError, add_error_context
from core.logging_config import get_logger
from core.types import TickRange, TranscodeResult
from migration.aggregation import AttributedRecord, FoldPlan, FoldResult, fold_transcode
from migration.batching import BatchWriter
from migration.epoch_context import EpochContext
from migration.epoch_metadata import StoredLastTickQuorumData
from migration.intervals import EpochIntervalIndex, IntervalIndex
from migration.progress import TranscodeProgressTracker
from migration.transcoder import passthrough_transform, transcode_range
from schema import v1, v2
from schema.conversions import (
    convert_full_quorum_data,
    convert_quorum_data_stored,
    convert_tick_data,
    convert_transaction,
    convert_transaction_status,
    expand_stored_quorum_data,
)
from schema.registry import source_codec, target_codec
from store.keys import Namespace, encode_key, tick_range_bounds

_LOGGER = get_logger(__name__)

_DIGEST_NAMESPACES = (Namespace.CHAIN_DIGEST, Namespace.STORE_DIGEST)


@dataclass(frozen=True)
class EpochTickCounters:
    """Record counts written for the tick-keyed namespaces of an epoch."""

    tick_records: int
    transactions: int
    quorum_records: int
    aggregate_intervals: int


class TickDataTransform:
    """Tick data transform that also collects transaction ids per tick."""

    def __init__(self) -> None:
        self._source_codec = source_codec(Namespace.TICK_DATA)
        self._target_codec = target_codec(Namespace.TICK_DATA)
        self.transaction_ids: dict[int, list[str]] = {}

    def __call__(self, key: bytes, value: bytes) -> tuple[bytes, bytes]:
        tick_data: v1.TickData = self._source_codec.decode(value)
        self.transaction_ids.setdefault(tick_data.tick_number, []).extend(
            tick_data.transaction_ids
        )
        converted = convert_tick_data(tick_data)
        new_key = encode_key(Namespace.TICK_DATA, converted.tick_number)
        return new_key, self._target_codec.encode(converted)


def migrate_epoch_ticks(
    context: EpochContext,
    stored_last_tick_quorum: StoredLastTickQuorumData,
) -> EpochTickCounters:
    """Migrate every tick-keyed namespace of an epoch.

    Raises:
        ConsistencyError: If tick data references missing transactions, or a
            quorum record falls outside the epoch's intervals.
        MigratorError: If any read, decode, encode, or commit fails.
    """
    tick_records = 0
    transactions = 0
    for tick_range in context.metadata.processed_tick_ranges:
        try:
            result, transform = migrate_tick_data_range(context, tick_range)
            transactions += migrate_transactions(context, transform.transaction_ids)
            migrate_transaction_statuses(context, transform.transaction_ids)
            migrate_digests(context, tick_range)
        except MigratorError as error:
            raise add_error_context(
                error, f"migrating tick range {tick_range} of epoch {context.epoch}"
            ) from error
        tick_records += result.records_written
    try:
        fold = migrate_quorum_data(context, stored_last_tick_quorum)
    except MigratorError as error:
        raise add_error_context(error, f"migrating quorum data of epoch {context.epoch}") from error
    return EpochTickCounters(
        tick_records=tick_records,
        transactions=transactions,
        quorum_records=fold.transcode.records_written,
        aggregate_intervals=fold.groups,
    )


def migrate_tick_data_range(
    context: EpochContext,
    tick_range: TickRange,
) -> tuple[TranscodeResult, TickDataTransform]:
    """Re-encode the tick data of one range and collect its transaction ids."""
    transform = TickDataTransform()
    progress = TranscodeProgressTracker(
        label=f"tick data {tick_range.start} to {tick_range.end}",
        expected_records=tick_range.end - tick_range.start + 1,
    )
    result = transcode_range(
        context.source,
        context.target,
        tick_range_bounds(Namespace.TICK_DATA, tick_range),
        transform,
        context.batch_limit,
        progress=progress,
        should_stop=context.should_stop,
    )
    return result, transform


def migrate_transactions(context: EpochContext, transaction_ids: Mapping[int, list[str]]) -> int:
    """Copy every transaction referenced by the collected tick data.

    Raises:
        ConsistencyError: If a referenced transaction is missing.
    """
    reader = source_codec(Namespace.TRANSACTION)
    writer_codec = target_codec(Namespace.TRANSACTION)
    expected = _count_ids(transaction_ids)
    writer = BatchWriter(
        context.target,
        context.batch_limit,
        progress=TranscodeProgressTracker(label="transactions", expected_records=expected),
        should_stop=context.should_stop,
    )
    for tick_number, ids in transaction_ids.items():
        for tx_id in ids:
            key = encode_key(Namespace.TRANSACTION, tx_id)
            value = context.source.get(key)
            if value is None:
                raise ConsistencyError(
                    f"transaction {tx_id} referenced by tick {tick_number} not found"
                )
            record = convert_transaction(reader.decode(value))
            writer.put(key, writer_codec.encode(record))
    writer.close()
    return writer.written


def migrate_transaction_statuses(
    context: EpochContext,
    transaction_ids: Mapping[int, list[str]],
) -> int:
    """Copy per-transaction statuses and write one status list per tick.

    Raises:
        ConsistencyError: If a referenced transaction status is missing.
    """
    reader = source_codec(Namespace.TRANSACTION_STATUS)
    status_codec = target_codec(Namespace.TRANSACTION_STATUS)
    tick_status_codec = target_codec(Namespace.TICK_TRANSACTIONS_STATUS)
    writer = BatchWriter(
        context.target,
        context.batch_limit,
        progress=TranscodeProgressTracker(
            label="transaction statuses",
            expected_records=len(transaction_ids) + _count_ids(transaction_ids),
        ),
        should_stop=context.should_stop,
    )
    for tick_number, ids in transaction_ids.items():
        tick_statuses = v2.TickTransactionsStatus()
        for tx_id in ids:
            key = encode_key(Namespace.TRANSACTION_STATUS, tx_id)
            value = context.source.get(key)
            if value is None:
                raise ConsistencyError(
                    f"status of transaction {tx_id} in tick {tick_number} not found"
                )
            status = convert_transaction_status(reader.decode(value))
            tick_statuses.transactions.append(status)
            writer.put(key, status_codec.encode(status))
        writer.put(
            encode_key(Namespace.TICK_TRANSACTIONS_STATUS, tick_number),
            tick_status_codec.encode(tick_statuses),
        )
    writer.close()
    return writer.written


def migrate_digests(context: EpochContext, tick_range: TickRange) -> int:
    """Copy chain and store digests of a tick range unchanged."""
    written = 0
    for namespace in _DIGEST_NAMESPACES:
        result = transcode_range(
            context.source,
            context.target,
            tick_range_bounds(namespace, tick_range),
            passthrough_transform,
            context.batch_limit,
            should_stop=context.should_stop,
        )
        written += result.records_written
    return written


def migrate_quorum_data(
    context: EpochContext,
    stored_last_tick_quorum: StoredLastTickQuorumData,
) -> FoldResult:
    """Re-encode quorum data and derive the last-tick aggregate of the epoch."""
    ranges = context.metadata.processed_tick_ranges
    intervals = EpochIntervalIndex({context.epoch: IntervalIndex.from_metadata(context.metadata)})
    plan = build_quorum_fold_plan(context.epoch, stored_last_tick_quorum)
    expected = sum(tick_range.end - tick_range.start + 1 for tick_range in ranges)
    return fold_transcode(
        context.source,
        context.target,
        [tick_range_bounds(Namespace.QUORUM_DATA, tick_range) for tick_range in ranges],
        plan,
        intervals,
        context.batch_limit,
        progress=TranscodeProgressTracker(
            label=f"quorum data of epoch {context.epoch}", expected_records=expected
        ),
        should_stop=context.should_stop,
    )


def build_quorum_fold_plan(
    epoch: int,
    stored_last_tick_quorum: StoredLastTickQuorumData,
) -> FoldPlan:
    """Build fold hooks for per-tick quorum data of one epoch.

    The aggregate starts from every interval entry the source already
    stores. Selected records then replace entries of their interval,
    except that a stored entry for the same tick is kept in full.
    """
    record_codec = target_codec(Namespace.QUORUM_DATA)
    aggregate_codec = target_codec(Namespace.LAST_TICK_QUORUM_DATA_PER_EPOCH_INTERVAL)

    def _attribute(record: v1.QuorumTickDataStored) -> tuple[int, int]:
        structure = record.quorum_tick_structure
        return structure.epoch, structure.tick_number

    def _transform(key: bytes, record: v1.QuorumTickDataStored) -> tuple[bytes, bytes]:
        converted = convert_quorum_data_stored(record)
        new_key = encode_key(Namespace.QUORUM_DATA, converted.quorum_tick_structure.tick_number)
        return new_key, record_codec.encode(converted)

    def _aggregate(
        aggregate_epoch: int,
        selections: Mapping[int, AttributedRecord[v1.QuorumTickDataStored]],
    ) -> tuple[bytes, bytes]:
        per_interval = {
            interval_index: convert_full_quorum_data(stored)
            for interval_index, stored in stored_last_tick_quorum.items()
        }
        for interval_index, selected in selections.items():
            per_interval[interval_index] = _last_tick_quorum_entry(
                aggregate_epoch,
                interval_index,
                selected,
                stored_last_tick_quorum.get(interval_index),
            )
        aggregate = v2.LastTickQuorumDataPerEpochIntervals(quorum_data_per_interval=per_interval)
        key = encode_key(Namespace.LAST_TICK_QUORUM_DATA_PER_EPOCH_INTERVAL, aggregate_epoch)
        return key, aggregate_codec.encode(aggregate)

    return FoldPlan(
        source_codec=source_codec(Namespace.QUORUM_DATA),
        attribute=_attribute,
        transform=_transform,
        aggregate=_aggregate,
        seeded_epochs=(epoch,) if stored_last_tick_quorum else (),
    )


def _last_tick_quorum_entry(
    epoch: int,
    interval_index: int,
    selected: AttributedRecord[v1.QuorumTickDataStored],
    stored: v1.QuorumTickData | None,
) -> v2.QuorumTickData:
    if stored is not None:
        stored_tick = stored.quorum_tick_structure.tick_number
        if stored_tick == selected.tick_number:
            return convert_full_quorum_data(stored)
        _LOGGER.warning(
            "stored_last_tick_quorum_mismatch",
            epoch=epoch,
            interval=interval_index,
            stored_tick=stored_tick,
            selected_tick=selected.tick_number,
        )
    return expand_stored_quorum_data(selected.record)


def _count_ids(transaction_ids: Mapping[int, list[str]]) -> int:
    return sum(len(ids) for ids in transaction_ids.values())
