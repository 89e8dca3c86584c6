"""Namespace to codec mapping for both store layouts.

Every namespace has exactly one source and one target codec. The mapping
is checked for completeness on import.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from schema import v1, v2
from schema.codec import Codec, RawCodec, RecordCodec, Uint32Codec
from store.keys import Namespace


@dataclass(frozen=True)
class NamespaceCodecs:
    """Source and target codecs for one namespace."""

    source: Codec[Any]
    target: Codec[Any]


def _pair(source_type: type, target_type: type) -> NamespaceCodecs:
    return NamespaceCodecs(source=RecordCodec(source_type), target=RecordCodec(target_type))


_RAW = NamespaceCodecs(source=RawCodec(), target=RawCodec())
_UINT32_PAIR = NamespaceCodecs(source=Uint32Codec(), target=Uint32Codec())

NAMESPACE_CODECS: dict[Namespace, NamespaceCodecs] = {
    Namespace.TICK_DATA: _pair(v1.TickData, v2.TickData),
    Namespace.QUORUM_DATA: _pair(v1.QuorumTickDataStored, v2.QuorumTickDataStored),
    Namespace.COMPUTOR_LIST: _pair(v1.Computors, v2.ComputorsList),
    Namespace.TRANSACTION: _pair(v1.Transaction, v2.Transaction),
    Namespace.LAST_PROCESSED_TICK: _pair(v1.ProcessedTick, v2.ProcessedTick),
    Namespace.LAST_PROCESSED_TICK_PER_EPOCH: _pair(v1.ProcessedTick, v2.ProcessedTick),
    Namespace.SKIPPED_TICKS_INTERVAL: _pair(
        v1.SkippedTicksIntervalList, v2.SkippedTicksIntervalList
    ),
    Namespace.IDENTITY_TRANSFER_TRANSACTIONS: _pair(
        v1.TransferTransactionsPerTick, v2.TransferTransactionsPerTick
    ),
    Namespace.CHAIN_DIGEST: _RAW,
    Namespace.PROCESSED_TICK_INTERVALS: _pair(
        v1.ProcessedTickIntervalsPerEpoch, v2.ProcessedTickIntervalsPerEpoch
    ),
    Namespace.TICK_TRANSACTIONS_STATUS: _pair(
        v1.TickTransactionsStatus, v2.TickTransactionsStatus
    ),
    Namespace.TRANSACTION_STATUS: _pair(v1.TransactionStatus, v2.TransactionStatus),
    Namespace.STORE_DIGEST: _RAW,
    Namespace.EMPTY_TICKS_PER_EPOCH: _UINT32_PAIR,
    Namespace.LAST_TICK_QUORUM_DATA_PER_EPOCH_INTERVAL: _pair(
        v1.LastTickQuorumDataPerEpochIntervals, v2.LastTickQuorumDataPerEpochIntervals
    ),
    Namespace.TARGET_TICK_VOTE_SIGNATURE: _UINT32_PAIR,
}

_missing_codecs = set(Namespace) - set(NAMESPACE_CODECS)
if _missing_codecs:
    raise RuntimeError(f"Namespaces without codecs: {sorted(_missing_codecs)}")


def source_codec(namespace: Namespace) -> Codec[Any]:
    """Return the codec for source (v1) values of a namespace."""
    return NAMESPACE_CODECS[namespace].source


def target_codec(namespace: Namespace) -> Codec[Any]:
    """Return the codec for target (v2) values of a namespace."""
    return NAMESPACE_CODECS[namespace].target
