"""Unit tests for namespace key encoding."""

from __future__ import annotations

import pytest

from core.types import TickRange
from store.keys import (
    KEY_SHAPES,
    KeyShape,
    Namespace,
    decode_id,
    decode_namespace,
    encode_key,
    namespace_bounds,
    tick_range_bounds,
    upper_bound_key,
)


def test_numeric_keys_are_big_endian_and_sort_numerically() -> None:
    """Numeric ids should encode as 8-byte big-endian after the tag."""
    small = encode_key(Namespace.TICK_DATA, 255)
    large = encode_key(Namespace.TICK_DATA, 256)

    assert small == b"\x00" + (255).to_bytes(8, "big")
    assert small < large


def test_every_namespace_has_a_key_shape() -> None:
    """Each namespace should map to exactly one key shape."""
    assert set(KEY_SHAPES) == set(Namespace)
    assert KEY_SHAPES[Namespace.LAST_PROCESSED_TICK] is KeyShape.SINGLETON
    assert KEY_SHAPES[Namespace.TRANSACTION] is KeyShape.VARIABLE_LENGTH_STRING
    assert KEY_SHAPES[Namespace.IDENTITY_TRANSFER_TRANSACTIONS] is KeyShape.COMPOSITE


def test_decode_id_reverses_each_key_shape() -> None:
    """Decoding should return the id passed to encode_key."""
    assert decode_id(encode_key(Namespace.QUORUM_DATA, 42)) == 42
    assert decode_id(encode_key(Namespace.TRANSACTION, "abc")) == "abc"
    assert decode_id(encode_key(Namespace.IDENTITY_TRANSFER_TRANSACTIONS, ("ID", 7))) == ("ID", 7)
    assert decode_id(encode_key(Namespace.LAST_PROCESSED_TICK)) is None
    assert decode_namespace(encode_key(Namespace.STORE_DIGEST, 1)) is Namespace.STORE_DIGEST


def test_encode_key_rejects_out_of_range_numeric_id() -> None:
    """Numeric ids beyond 64 bits should be rejected."""
    with pytest.raises(ValueError):
        encode_key(Namespace.TICK_DATA, 2**64)
    with pytest.raises(ValueError):
        encode_key(Namespace.TICK_DATA, -1)


def test_encode_key_rejects_wrong_id_type() -> None:
    """Ids should match the namespace key shape."""
    with pytest.raises(TypeError):
        encode_key(Namespace.TICK_DATA, "12")
    with pytest.raises(TypeError):
        encode_key(Namespace.TRANSACTION, 12)
    with pytest.raises(TypeError):
        encode_key(Namespace.LAST_PROCESSED_TICK, 1)


def test_namespace_bounds_use_sentinels() -> None:
    """Upper bounds should use the numeric, transaction, and identity sentinels."""
    numeric = namespace_bounds(Namespace.TICK_DATA)
    transaction = namespace_bounds(Namespace.TRANSACTION)
    identity = namespace_bounds(Namespace.IDENTITY_TRANSFER_TRANSACTIONS)

    assert numeric.lower == b"\x00"
    assert numeric.upper == b"\x00" + b"\xff" * 8
    assert transaction.upper == b"\x03" + b"z" * 60
    assert identity.upper == b"\x07" + b"Z" * 60 + b"\xff" * 8
    assert upper_bound_key(Namespace.SKIPPED_TICKS_INTERVAL) == b"\x07"


def test_tick_range_bounds_include_range_end() -> None:
    """The upper bound should sit one past the last tick of the range."""
    bounds = tick_range_bounds(Namespace.QUORUM_DATA, TickRange(start=10, end=20))

    assert bounds.lower == encode_key(Namespace.QUORUM_DATA, 10)
    assert bounds.upper == encode_key(Namespace.QUORUM_DATA, 21)
    assert bounds.lower <= encode_key(Namespace.QUORUM_DATA, 20) < bounds.upper


def test_tick_range_bounds_reject_string_namespace() -> None:
    """Tick bounds only apply to numeric namespaces."""
    with pytest.raises(TypeError):
        tick_range_bounds(Namespace.TRANSACTION, TickRange(start=1, end=2))
