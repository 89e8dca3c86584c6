"""Unit tests for record codecs and v1 to v2 conversions."""

from __future__ import annotations

import msgspec
import pytest

from core.errors import DecodeError, EncodeError
from schema import v1, v2
from schema.codec import RawCodec, RecordCodec, Uint32Codec
from schema.conversions import (
    convert_computors,
    convert_quorum_data_stored,
    convert_tick_data,
    expand_stored_quorum_data,
)
from schema.registry import NAMESPACE_CODECS, source_codec, target_codec
from store.keys import Namespace
from tests.archive_fixtures import sample_quorum, sample_tick


def test_registry_covers_every_namespace() -> None:
    """Every namespace should have a source and target codec."""
    assert set(NAMESPACE_CODECS) == set(Namespace)


def test_target_tick_data_decodes_to_equal_record() -> None:
    """Decoding an encoded v2 record should yield an equal record."""
    codec = target_codec(Namespace.TICK_DATA)
    record = convert_tick_data(sample_tick(epoch=120, tick_number=9, transaction_ids=["a", "b"]))

    assert codec.decode(codec.encode(record)) == record


def test_target_layout_is_positional() -> None:
    """v2 records should encode as msgpack arrays, v1 records as maps."""
    source = sample_tick(epoch=1, tick_number=2)

    source_payload = msgspec.msgpack.decode(source_codec(Namespace.TICK_DATA).encode(source))
    target_payload = msgspec.msgpack.decode(
        target_codec(Namespace.TICK_DATA).encode(convert_tick_data(source))
    )

    assert isinstance(source_payload, dict)
    assert source_payload["tick_number"] == 2
    assert isinstance(target_payload, list)


def test_decode_rejects_malformed_bytes() -> None:
    """Malformed input should surface as DecodeError."""
    codec = RecordCodec(v1.TickData)

    with pytest.raises(DecodeError, match="TickData"):
        codec.decode(b"\xc1garbage")


def test_encode_rejects_wrong_record_type() -> None:
    """Encoding a record of the wrong type should surface as EncodeError."""
    codec = RecordCodec(v2.TickData)

    with pytest.raises(EncodeError):
        codec.encode(sample_tick(epoch=1, tick_number=1))


def test_uint32_codec_is_little_endian() -> None:
    """Scalar values should use 4-byte little-endian layout."""
    codec = Uint32Codec()

    assert codec.encode(1) == b"\x01\x00\x00\x00"
    assert codec.decode(b"\x02\x00\x00\x00") == 2
    with pytest.raises(DecodeError):
        codec.decode(b"\x01")
    with pytest.raises(EncodeError):
        codec.encode(2**32)


def test_raw_codec_passes_bytes_through() -> None:
    """Opaque values should be copied unchanged."""
    codec = RawCodec()

    assert codec.decode(codec.encode(b"\x00digest")) == b"\x00digest"
    with pytest.raises(EncodeError):
        codec.encode("text")  # type: ignore[arg-type]


def test_stored_quorum_conversion_keeps_reduced_diffs() -> None:
    """Per-tick quorum data should keep only the stored diff fields."""
    converted = convert_quorum_data_stored(sample_quorum(epoch=5, tick_number=11))

    assert converted.quorum_tick_structure.tick_number == 11
    assert converted.quorum_diff_per_computor[0] == v2.QuorumDiffStored(
        expected_next_tick_tx_digest_hex="next11",
        signature_hex="vote11",
    )


def test_expanded_quorum_leaves_salted_digests_empty() -> None:
    """Expanding reduced quorum data should not invent salted digests."""
    expanded = expand_stored_quorum_data(sample_quorum(epoch=5, tick_number=11))

    diff = expanded.quorum_diff_per_computor[0]
    assert diff.signature_hex == "vote11"
    assert diff.salted_spectrum_digest_hex == ""


def test_computors_become_one_entry_list() -> None:
    """A single computor set should be wrapped in a list record."""
    converted = convert_computors(v1.Computors(epoch=3, identities=["X" * 60]))

    assert len(converted.computors) == 1
    assert converted.computors[0].epoch == 3
