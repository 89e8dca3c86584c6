"""Record codecs.

A codec turns stored bytes into a typed value and back. Library errors
are translated into the migrator's ``DecodeError``/``EncodeError`` so the
transcoding layer never sees msgspec exceptions.
"""

from __future__ import annotations

import struct
from typing import Generic, Protocol, TypeVar

import msgspec

from core.errors import DecodeError, EncodeError

T = TypeVar("T")
_UINT32 = struct.Struct("<I")


class Codec(Protocol[T]):
    """Encode/decode pair for one record type."""

    def decode(self, data: bytes) -> T:
        ...

    def encode(self, value: T) -> bytes:
        ...


class RecordCodec(Generic[T]):
    """msgpack codec bound to one msgspec struct type."""

    def __init__(self, record_type: type[T]) -> None:
        self._record_type = record_type
        self._decoder = msgspec.msgpack.Decoder(record_type)
        self._encoder = msgspec.msgpack.Encoder()

    @property
    def record_type(self) -> type[T]:
        return self._record_type

    def decode(self, data: bytes) -> T:
        """Decode bytes into a typed record.

        Raises:
            DecodeError: If the bytes are not a valid record of this type.
        """
        try:
            return self._decoder.decode(data)
        except msgspec.DecodeError as error:
            raise DecodeError(f"Invalid {self._record_type.__name__} record: {error}") from error

    def encode(self, value: T) -> bytes:
        """Encode a typed record.

        Raises:
            EncodeError: If the value cannot be serialized.
        """
        if not isinstance(value, self._record_type):
            raise EncodeError(
                f"Expected {self._record_type.__name__}, got {type(value).__name__}"
            )
        try:
            return self._encoder.encode(value)
        except (msgspec.EncodeError, TypeError, OverflowError) as error:
            raise EncodeError(f"Cannot encode {self._record_type.__name__}: {error}") from error


class RawCodec:
    """Pass-through codec for opaque values such as digests."""

    def decode(self, data: bytes) -> bytes:
        return bytes(data)

    def encode(self, value: bytes) -> bytes:
        if not isinstance(value, (bytes, bytearray)):
            raise EncodeError(f"Expected raw bytes, got {type(value).__name__}")
        return bytes(value)


class Uint32Codec:
    """Little-endian unsigned 32-bit scalar codec."""

    def decode(self, data: bytes) -> int:
        if len(data) != _UINT32.size:
            raise DecodeError(f"Expected {_UINT32.size} byte uint32 value, got {len(data)} bytes")
        return _UINT32.unpack(data)[0]

    def encode(self, value: int) -> bytes:
        try:
            return _UINT32.pack(value)
        except struct.error as error:
            raise EncodeError(f"Cannot encode uint32 value {value!r}: {error}") from error
