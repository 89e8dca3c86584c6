"""Per-epoch metadata records.

These records are small and few per epoch, so each is read with a point
lookup and written with a single durable commit.
"""

from __future__ import annotations

from typing import Any, Callable

from core.constants import TARGET_TICK_VOTE_SIGNATURE_MIN_EPOCH
from core.errors import ConsistencyError, MigratorError, add_error_context
from core.logging_config import get_logger
from migration.epoch_context import EpochContext
from schema import v1, v2
from schema.conversions import convert_computors
from schema.registry import source_codec, target_codec
from store.keys import Namespace, encode_key

_LOGGER = get_logger(__name__)

StoredLastTickQuorumData = dict[int, v1.QuorumTickData]


def migrate_epoch_metadata(context: EpochContext) -> StoredLastTickQuorumData:
    """Migrate the fixed metadata records of an epoch.

    Args:
        context: Epoch migration context.

    Returns:
        Last-tick quorum data already stored in the source, keyed by
        interval index. Used when the quorum fold writes its aggregate.

    Raises:
        ConsistencyError: If a required record is missing.
        MigratorError: If any read, decode, encode, or commit fails.
    """
    _LOGGER.info("epoch_metadata_migration_started", epoch=context.epoch)
    steps = (
        ("computor list", migrate_computor_list),
        ("processed tick ranges", migrate_processed_tick_ranges),
        ("last processed tick", migrate_last_processed_tick),
        ("empty ticks count", migrate_empty_ticks),
    )
    for step_name, step in steps:
        _run_step(context, step_name, step)
    if context.epoch > TARGET_TICK_VOTE_SIGNATURE_MIN_EPOCH:
        _run_step(context, "target tick vote signature", migrate_target_tick_vote_signature)
    try:
        stored = load_stored_last_tick_quorum_data(context)
    except MigratorError as error:
        raise add_error_context(error, "loading stored last tick quorum data") from error
    _LOGGER.info("epoch_metadata_migration_completed", epoch=context.epoch)
    return stored


def migrate_computor_list(context: EpochContext) -> None:
    """Copy the epoch's computor set as a one-entry computor list."""
    computors = _read_required(context, Namespace.COMPUTOR_LIST, context.epoch, "computors")
    _write_one(context, Namespace.COMPUTOR_LIST, context.epoch, convert_computors(computors))


def migrate_processed_tick_ranges(context: EpochContext) -> None:
    """Write the epoch's processed tick intervals.

    Raises:
        ConsistencyError: If the epoch has no processed tick ranges.
    """
    ranges = context.metadata.processed_tick_ranges
    if not ranges:
        raise ConsistencyError(f"failed to find processed tick intervals for epoch {context.epoch}")
    record = v2.ProcessedTickIntervalsPerEpoch(
        epoch=context.epoch,
        intervals=[
            v2.ProcessedTickInterval(
                initial_processed_tick=tick_range.start,
                last_processed_tick=tick_range.end,
            )
            for tick_range in ranges
        ],
    )
    _write_one(context, Namespace.PROCESSED_TICK_INTERVALS, context.epoch, record)


def migrate_last_processed_tick(context: EpochContext) -> None:
    record = v2.ProcessedTick(
        tick_number=context.metadata.last_processed_tick,
        epoch=context.epoch,
    )
    _write_one(context, Namespace.LAST_PROCESSED_TICK, None, record)


def migrate_empty_ticks(context: EpochContext) -> None:
    """Copy the empty tick count of the epoch when the source has one."""
    empty_ticks = _read_optional(context, Namespace.EMPTY_TICKS_PER_EPOCH, context.epoch)
    if empty_ticks is None:
        _LOGGER.info("empty_ticks_count_missing", epoch=context.epoch)
        return
    _write_one(context, Namespace.EMPTY_TICKS_PER_EPOCH, context.epoch, empty_ticks)


def migrate_target_tick_vote_signature(context: EpochContext) -> None:
    signature = _read_required(
        context, Namespace.TARGET_TICK_VOTE_SIGNATURE, context.epoch, "target tick vote signature"
    )
    _write_one(context, Namespace.TARGET_TICK_VOTE_SIGNATURE, context.epoch, signature)


def load_stored_last_tick_quorum_data(context: EpochContext) -> StoredLastTickQuorumData:
    """Read the source's last-tick quorum aggregate of the epoch, if any."""
    record = _read_optional(
        context, Namespace.LAST_TICK_QUORUM_DATA_PER_EPOCH_INTERVAL, context.epoch
    )
    if record is None:
        _LOGGER.info("stored_last_tick_quorum_data_missing", epoch=context.epoch)
        return {}
    return dict(record.quorum_data_per_interval)


def _run_step(
    context: EpochContext,
    step_name: str,
    step: Callable[[EpochContext], None],
) -> None:
    _LOGGER.info("epoch_metadata_step", epoch=context.epoch, step=step_name)
    try:
        step(context)
    except MigratorError as error:
        raise add_error_context(error, f"migrating {step_name} for epoch {context.epoch}") from error


def _read_optional(context: EpochContext, namespace: Namespace, key_id: Any) -> Any:
    value = context.source.get(encode_key(namespace, key_id))
    if value is None:
        return None
    return source_codec(namespace).decode(value)


def _read_required(
    context: EpochContext,
    namespace: Namespace,
    key_id: Any,
    description: str,
) -> Any:
    record = _read_optional(context, namespace, key_id)
    if record is None:
        raise ConsistencyError(f"{description} not found for epoch {context.epoch}")
    return record


def _write_one(context: EpochContext, namespace: Namespace, key_id: Any, record: Any) -> None:
    batch = context.target.new_batch()
    batch.set(encode_key(namespace, key_id), target_codec(namespace).encode(record))
    batch.commit(durable=True)
    batch.reset()
