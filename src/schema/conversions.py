"""Field mapping from source (v1) records to target (v2) records."""

from __future__ import annotations

from schema import v1, v2


def convert_tick_data(record: v1.TickData) -> v2.TickData:
    return v2.TickData(
        computor_index=record.computor_index,
        epoch=record.epoch,
        tick_number=record.tick_number,
        timestamp=record.timestamp,
        var_struct=record.var_struct,
        time_lock=record.time_lock,
        transaction_ids=list(record.transaction_ids),
        contract_fees=list(record.contract_fees),
        signature_hex=record.signature_hex,
    )


def convert_quorum_tick_structure(structure: v1.QuorumTickStructure) -> v2.QuorumTickStructure:
    return v2.QuorumTickStructure(
        epoch=structure.epoch,
        tick_number=structure.tick_number,
        timestamp=structure.timestamp,
        prev_resource_testing_digest_hex=structure.prev_resource_testing_digest_hex,
        prev_spectrum_digest_hex=structure.prev_spectrum_digest_hex,
        prev_universe_digest_hex=structure.prev_universe_digest_hex,
        prev_computer_digest_hex=structure.prev_computer_digest_hex,
        tx_digest_hex=structure.tx_digest_hex,
        prev_transaction_body_hex=structure.prev_transaction_body_hex,
    )


def convert_quorum_data_stored(record: v1.QuorumTickDataStored) -> v2.QuorumTickDataStored:
    """Convert per-tick quorum data; diffs keep only digest and signature."""
    return v2.QuorumTickDataStored(
        quorum_tick_structure=convert_quorum_tick_structure(record.quorum_tick_structure),
        quorum_diff_per_computor={
            index: v2.QuorumDiffStored(
                expected_next_tick_tx_digest_hex=diff.expected_next_tick_tx_digest_hex,
                signature_hex=diff.signature_hex,
            )
            for index, diff in record.quorum_diff_per_computor.items()
        },
    )


def convert_full_quorum_data(record: v1.QuorumTickData) -> v2.QuorumTickData:
    return v2.QuorumTickData(
        quorum_tick_structure=convert_quorum_tick_structure(record.quorum_tick_structure),
        quorum_diff_per_computor={
            index: v2.QuorumDiff(
                salted_resource_testing_digest_hex=diff.salted_resource_testing_digest_hex,
                salted_spectrum_digest_hex=diff.salted_spectrum_digest_hex,
                salted_universe_digest_hex=diff.salted_universe_digest_hex,
                salted_computer_digest_hex=diff.salted_computer_digest_hex,
                expected_next_tick_tx_digest_hex=diff.expected_next_tick_tx_digest_hex,
                signature_hex=diff.signature_hex,
                salted_transaction_body_hex=diff.salted_transaction_body_hex,
            )
            for index, diff in record.quorum_diff_per_computor.items()
        },
    )


def expand_stored_quorum_data(record: v1.QuorumTickDataStored) -> v2.QuorumTickData:
    """Widen reduced per-tick quorum data into the full layout.

    Salted digests are not kept per tick and stay empty.
    """
    return v2.QuorumTickData(
        quorum_tick_structure=convert_quorum_tick_structure(record.quorum_tick_structure),
        quorum_diff_per_computor={
            index: v2.QuorumDiff(
                expected_next_tick_tx_digest_hex=diff.expected_next_tick_tx_digest_hex,
                signature_hex=diff.signature_hex,
            )
            for index, diff in record.quorum_diff_per_computor.items()
        },
    )


def convert_computors(record: v1.Computors) -> v2.ComputorsList:
    """Wrap a single computor set into the list layout."""
    return v2.ComputorsList(
        computors=[
            v2.Computors(
                epoch=record.epoch,
                identities=list(record.identities),
                signature_hex=record.signature_hex,
            )
        ]
    )


def convert_transaction(record: v1.Transaction) -> v2.Transaction:
    return v2.Transaction(
        source_id=record.source_id,
        dest_id=record.dest_id,
        amount=record.amount,
        tick_number=record.tick_number,
        input_type=record.input_type,
        input_size=record.input_size,
        input_hex=record.input_hex,
        signature_hex=record.signature_hex,
        tx_id=record.tx_id,
    )


def convert_transaction_status(record: v1.TransactionStatus) -> v2.TransactionStatus:
    return v2.TransactionStatus(tx_id=record.tx_id, money_flew=record.money_flew)


def convert_processed_tick(record: v1.ProcessedTick) -> v2.ProcessedTick:
    return v2.ProcessedTick(tick_number=record.tick_number, epoch=record.epoch)


def convert_skipped_ticks(record: v1.SkippedTicksIntervalList) -> v2.SkippedTicksIntervalList:
    return v2.SkippedTicksIntervalList(
        skipped_ticks=[
            v2.SkippedTicksInterval(start_tick=interval.start_tick, end_tick=interval.end_tick)
            for interval in record.skipped_ticks
        ]
    )


def convert_transfer_transactions(
    record: v1.TransferTransactionsPerTick,
) -> v2.TransferTransactionsPerTick:
    return v2.TransferTransactionsPerTick(
        tick_number=record.tick_number,
        identity=record.identity,
        transactions=[convert_transaction(transaction) for transaction in record.transactions],
    )
