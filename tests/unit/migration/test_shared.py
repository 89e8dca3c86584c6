"""Unit tests for epoch-independent namespace migration."""

from __future__ import annotations

from migration.shared import migrate_shared
from schema import v1, v2
from schema.registry import target_codec
from store.keys import Namespace, encode_key
from tests.archive_fixtures import MemorySource, MemoryTarget, sample_transaction, v1_entry


def test_shared_namespaces_are_reencoded() -> None:
    """Singletons and ranged shared namespaces should all be migrated."""
    identity = "I" * 60
    source = MemorySource(
        [
            v1_entry(Namespace.LAST_PROCESSED_TICK, None, v1.ProcessedTick(tick_number=90, epoch=2)),
            v1_entry(
                Namespace.SKIPPED_TICKS_INTERVAL,
                None,
                v1.SkippedTicksIntervalList(
                    skipped_ticks=[v1.SkippedTicksInterval(start_tick=10, end_tick=12)]
                ),
            ),
            v1_entry(
                Namespace.LAST_PROCESSED_TICK_PER_EPOCH,
                1,
                v1.ProcessedTick(tick_number=40, epoch=1),
            ),
            v1_entry(
                Namespace.IDENTITY_TRANSFER_TRANSACTIONS,
                (identity, 33),
                v1.TransferTransactionsPerTick(
                    tick_number=33,
                    identity=identity,
                    transactions=[sample_transaction("t" * 60, 33)],
                ),
            ),
        ]
    )
    target = MemoryTarget()

    result = migrate_shared(source, target, batch_limit=10)

    assert result.skipped == ()
    assert result.written["identity_transfer_transactions"] == 1
    skipped = target_codec(Namespace.SKIPPED_TICKS_INTERVAL).decode(
        target.records[encode_key(Namespace.SKIPPED_TICKS_INTERVAL)]
    )
    assert skipped.skipped_ticks == [v2.SkippedTicksInterval(start_tick=10, end_tick=12)]
    transfers = target_codec(Namespace.IDENTITY_TRANSFER_TRANSACTIONS).decode(
        target.records[encode_key(Namespace.IDENTITY_TRANSFER_TRANSACTIONS, (identity, 33))]
    )
    assert transfers.transactions[0].amount == 330


def test_missing_singletons_are_skipped() -> None:
    """Absent singleton records should be reported, not fail the run."""
    target = MemoryTarget()

    result = migrate_shared(MemorySource([]), target, batch_limit=10)

    assert result.skipped == ("last_processed_tick", "skipped_ticks_interval")
    assert result.written["last_processed_tick_per_epoch"] == 0
