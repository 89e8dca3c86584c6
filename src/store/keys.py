"""Namespace-prefixed key encoding.

Every key is a one-byte namespace tag followed by an id encoding whose
shape is fixed per namespace. Numeric ids use a fixed-width big-endian
layout so that byte order equals numeric order inside a namespace.
"""

from __future__ import annotations

import enum
from typing import Union

from core.constants import (
    MAX_NUMERIC_ID,
    NUMERIC_ID_WIDTH,
    UPPER_BOUND_IDENTITY,
    UPPER_BOUND_TRANSACTION,
)
from core.types import KeyRange, TickRange

KeyId = Union[int, str, tuple[str, int], None]


class Namespace(enum.IntEnum):
    """Logical record categories and their tag bytes."""

    TICK_DATA = 0x00
    QUORUM_DATA = 0x01
    COMPUTOR_LIST = 0x02
    TRANSACTION = 0x03
    LAST_PROCESSED_TICK = 0x04
    LAST_PROCESSED_TICK_PER_EPOCH = 0x05
    SKIPPED_TICKS_INTERVAL = 0x06
    IDENTITY_TRANSFER_TRANSACTIONS = 0x07
    CHAIN_DIGEST = 0x08
    PROCESSED_TICK_INTERVALS = 0x09
    TICK_TRANSACTIONS_STATUS = 0x10
    TRANSACTION_STATUS = 0x11
    STORE_DIGEST = 0x12
    EMPTY_TICKS_PER_EPOCH = 0x13
    LAST_TICK_QUORUM_DATA_PER_EPOCH_INTERVAL = 0x14
    TARGET_TICK_VOTE_SIGNATURE = 0x15


class KeyShape(enum.Enum):
    """Closed set of id layouts a namespace may use."""

    FIXED_WIDTH_NUMERIC = "fixed_width_numeric"
    VARIABLE_LENGTH_STRING = "variable_length_string"
    COMPOSITE = "composite"
    SINGLETON = "singleton"


KEY_SHAPES: dict[Namespace, KeyShape] = {
    Namespace.TICK_DATA: KeyShape.FIXED_WIDTH_NUMERIC,
    Namespace.QUORUM_DATA: KeyShape.FIXED_WIDTH_NUMERIC,
    Namespace.COMPUTOR_LIST: KeyShape.FIXED_WIDTH_NUMERIC,
    Namespace.TRANSACTION: KeyShape.VARIABLE_LENGTH_STRING,
    Namespace.LAST_PROCESSED_TICK: KeyShape.SINGLETON,
    Namespace.LAST_PROCESSED_TICK_PER_EPOCH: KeyShape.FIXED_WIDTH_NUMERIC,
    Namespace.SKIPPED_TICKS_INTERVAL: KeyShape.SINGLETON,
    Namespace.IDENTITY_TRANSFER_TRANSACTIONS: KeyShape.COMPOSITE,
    Namespace.CHAIN_DIGEST: KeyShape.FIXED_WIDTH_NUMERIC,
    Namespace.PROCESSED_TICK_INTERVALS: KeyShape.FIXED_WIDTH_NUMERIC,
    Namespace.TICK_TRANSACTIONS_STATUS: KeyShape.FIXED_WIDTH_NUMERIC,
    Namespace.TRANSACTION_STATUS: KeyShape.VARIABLE_LENGTH_STRING,
    Namespace.STORE_DIGEST: KeyShape.FIXED_WIDTH_NUMERIC,
    Namespace.EMPTY_TICKS_PER_EPOCH: KeyShape.FIXED_WIDTH_NUMERIC,
    Namespace.LAST_TICK_QUORUM_DATA_PER_EPOCH_INTERVAL: KeyShape.FIXED_WIDTH_NUMERIC,
    Namespace.TARGET_TICK_VOTE_SIGNATURE: KeyShape.FIXED_WIDTH_NUMERIC,
}

# Identity-keyed string namespaces sort against an uppercase sentinel.
_IDENTITY_NAMESPACES = frozenset({Namespace.IDENTITY_TRANSFER_TRANSACTIONS})

_missing_shapes = set(Namespace) - set(KEY_SHAPES)
if _missing_shapes:
    raise RuntimeError(f"Namespaces without a key shape: {sorted(_missing_shapes)}")


def key_shape(namespace: Namespace) -> KeyShape:
    """Return the key shape used by a namespace."""
    return KEY_SHAPES[namespace]


def encode_key(namespace: Namespace, key_id: KeyId = None) -> bytes:
    """Encode a namespace-prefixed key.

    Args:
        namespace: Target namespace.
        key_id: Integer for numeric namespaces, string for string namespaces,
            ``(identity, tick)`` for composite namespaces, ``None`` for singletons.

    Returns:
        Encoded key bytes.

    Raises:
        TypeError: If the id type does not match the namespace key shape.
        ValueError: If a numeric id does not fit in 64 bits.
    """
    prefix = bytes([namespace])
    shape = KEY_SHAPES[namespace]
    if shape is KeyShape.SINGLETON:
        if key_id is not None:
            raise TypeError(f"{namespace.name} is a singleton namespace and takes no id")
        return prefix
    if shape is KeyShape.FIXED_WIDTH_NUMERIC:
        return prefix + _encode_numeric(namespace, key_id)
    if shape is KeyShape.VARIABLE_LENGTH_STRING:
        if not isinstance(key_id, str):
            raise TypeError(f"{namespace.name} expects a string id, got {type(key_id).__name__}")
        return prefix + key_id.encode("utf-8")
    if not (isinstance(key_id, tuple) and len(key_id) == 2 and isinstance(key_id[0], str)):
        raise TypeError(f"{namespace.name} expects an (identity, tick) id")
    identity, tick_number = key_id
    return prefix + identity.encode("utf-8") + _encode_numeric(namespace, tick_number)


def decode_namespace(key: bytes) -> Namespace:
    """Return the namespace a key belongs to.

    Raises:
        ValueError: If the key is empty or carries an unknown tag.
    """
    if not key:
        raise ValueError("cannot decode namespace of an empty key")
    return Namespace(key[0])


def decode_id(key: bytes) -> KeyId:
    """Decode the id part of a namespace-prefixed key.

    Args:
        key: Encoded key bytes.

    Returns:
        Id in the same form accepted by ``encode_key``.
    """
    namespace = decode_namespace(key)
    shape = KEY_SHAPES[namespace]
    body = key[1:]
    if shape is KeyShape.SINGLETON:
        return None
    if shape is KeyShape.FIXED_WIDTH_NUMERIC:
        return _decode_numeric(namespace, body)
    if shape is KeyShape.VARIABLE_LENGTH_STRING:
        return body.decode("utf-8")
    identity = body[:-NUMERIC_ID_WIDTH].decode("utf-8")
    return identity, _decode_numeric(namespace, body[-NUMERIC_ID_WIDTH:])


def upper_bound_key(namespace: Namespace) -> bytes:
    """Return the sentinel upper bound that closes a namespace scan."""
    shape = KEY_SHAPES[namespace]
    if shape is KeyShape.SINGLETON:
        return bytes([namespace + 1])
    if shape is KeyShape.FIXED_WIDTH_NUMERIC:
        return encode_key(namespace, MAX_NUMERIC_ID)
    if shape is KeyShape.VARIABLE_LENGTH_STRING:
        return encode_key(namespace, _string_sentinel(namespace))
    return encode_key(namespace, (UPPER_BOUND_IDENTITY, MAX_NUMERIC_ID))


def namespace_bounds(namespace: Namespace) -> KeyRange:
    """Return the ``[lower, upper)`` range covering a whole namespace."""
    return KeyRange(lower=bytes([namespace]), upper=upper_bound_key(namespace))


def tick_range_bounds(namespace: Namespace, tick_range: TickRange) -> KeyRange:
    """Return the key range covering an inclusive tick range.

    Raises:
        TypeError: If the namespace is not keyed by a numeric id.
    """
    if KEY_SHAPES[namespace] is not KeyShape.FIXED_WIDTH_NUMERIC:
        raise TypeError(f"{namespace.name} is not keyed by tick number")
    upper = (
        upper_bound_key(namespace)
        if tick_range.end >= MAX_NUMERIC_ID
        else encode_key(namespace, tick_range.end + 1)
    )
    return KeyRange(lower=encode_key(namespace, tick_range.start), upper=upper)


def _string_sentinel(namespace: Namespace) -> str:
    if namespace in _IDENTITY_NAMESPACES:
        return UPPER_BOUND_IDENTITY
    return UPPER_BOUND_TRANSACTION


def _encode_numeric(namespace: Namespace, value: object) -> bytes:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{namespace.name} expects an integer id, got {type(value).__name__}")
    if value < 0 or value > MAX_NUMERIC_ID:
        raise ValueError(f"{namespace.name} id {value} does not fit in 64 bits")
    return value.to_bytes(NUMERIC_ID_WIDTH, "big")


def _decode_numeric(namespace: Namespace, body: bytes) -> int:
    if len(body) != NUMERIC_ID_WIDTH:
        raise ValueError(
            f"{namespace.name} key id must be {NUMERIC_ID_WIDTH} bytes, got {len(body)}"
        )
    return int.from_bytes(body, "big")
