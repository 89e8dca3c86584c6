"""Source (v1) record layouts.

Records are msgpack maps keyed by field name.
"""

from __future__ import annotations

import msgspec


class TickData(msgspec.Struct):
    computor_index: int
    epoch: int
    tick_number: int
    timestamp: int
    var_struct: bytes = b""
    time_lock: bytes = b""
    transaction_ids: list[str] = []
    contract_fees: list[int] = []
    signature_hex: str = ""


class QuorumTickStructure(msgspec.Struct):
    epoch: int
    tick_number: int
    timestamp: int = 0
    prev_resource_testing_digest_hex: str = ""
    prev_spectrum_digest_hex: str = ""
    prev_universe_digest_hex: str = ""
    prev_computer_digest_hex: str = ""
    tx_digest_hex: str = ""
    prev_transaction_body_hex: str = ""


class QuorumDiff(msgspec.Struct):
    salted_resource_testing_digest_hex: str = ""
    salted_spectrum_digest_hex: str = ""
    salted_universe_digest_hex: str = ""
    salted_computer_digest_hex: str = ""
    expected_next_tick_tx_digest_hex: str = ""
    signature_hex: str = ""
    salted_transaction_body_hex: str = ""


class QuorumTickData(msgspec.Struct):
    """Full quorum data, as kept in the last-tick aggregate."""

    quorum_tick_structure: QuorumTickStructure
    quorum_diff_per_computor: dict[int, QuorumDiff] = {}


class QuorumDiffStored(msgspec.Struct):
    expected_next_tick_tx_digest_hex: str = ""
    signature_hex: str = ""


class QuorumTickDataStored(msgspec.Struct):
    """Per-tick quorum data with reduced computor diffs."""

    quorum_tick_structure: QuorumTickStructure
    quorum_diff_per_computor: dict[int, QuorumDiffStored] = {}


class Computors(msgspec.Struct):
    epoch: int
    identities: list[str] = []
    signature_hex: str = ""


class Transaction(msgspec.Struct):
    source_id: str
    dest_id: str
    amount: int
    tick_number: int
    input_type: int = 0
    input_size: int = 0
    input_hex: str = ""
    signature_hex: str = ""
    tx_id: str = ""


class TransactionStatus(msgspec.Struct):
    tx_id: str
    money_flew: bool = False


class TickTransactionsStatus(msgspec.Struct):
    transactions: list[TransactionStatus] = []


class ProcessedTickInterval(msgspec.Struct):
    initial_processed_tick: int
    last_processed_tick: int


class ProcessedTickIntervalsPerEpoch(msgspec.Struct):
    epoch: int
    intervals: list[ProcessedTickInterval] = []


class ProcessedTick(msgspec.Struct):
    tick_number: int
    epoch: int = 0


class LastTickQuorumDataPerEpochIntervals(msgspec.Struct):
    quorum_data_per_interval: dict[int, QuorumTickData] = {}


class SkippedTicksInterval(msgspec.Struct):
    start_tick: int
    end_tick: int


class SkippedTicksIntervalList(msgspec.Struct):
    skipped_ticks: list[SkippedTicksInterval] = []


class TransferTransactionsPerTick(msgspec.Struct):
    tick_number: int
    identity: str
    transactions: list[Transaction] = []
