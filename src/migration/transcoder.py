"""Range transcoder.

This module drives a single forward pass over a key range of the source
store, applies a per-record transform, and writes the results into the
target through a ``BatchWriter``.
"""

from __future__ import annotations

from typing import Any, Callable

from core.errors import MigratorError, add_error_context
from core.types import KeyRange, TranscodeResult
from migration.batching import BatchWriter, StopCheck
from migration.progress import TranscodeProgressTracker
from schema.codec import Codec
from store.interfaces import SourceHandle, TargetHandle
from store.keys import decode_id


RecordTransform = Callable[[bytes, bytes], tuple[bytes, bytes]]


def transcode_range(
    source: SourceHandle,
    target: TargetHandle,
    key_range: KeyRange,
    transform: RecordTransform,
    batch_limit: int,
    progress: TranscodeProgressTracker | None = None,
    should_stop: StopCheck | None = None,
) -> TranscodeResult:
    """Re-encode every record of ``key_range`` into the target store.

    Args:
        source: Store being read.
        target: Store receiving transformed records.
        key_range: Half-open key range to scan.
        transform: Maps ``(key, value)`` to ``(new_key, new_value)``.
        batch_limit: Records staged before each durable commit.
        progress: Optional progress tracker.
        should_stop: Optional cancellation check run after each flush.

    Returns:
        Counters for the pass.

    Raises:
        IterationError: If reading the source fails.
        DecodeError: If a record cannot be decoded.
        EncodeError: If a record cannot be encoded.
        CommitError: If a flush fails. Earlier flushes stay committed.
        MigrationCancelledError: If ``should_stop`` requested a stop.
    """
    writer = BatchWriter(target, batch_limit, progress=progress, should_stop=should_stop)
    if progress is not None:
        progress.log_started()
    records_read = 0
    for key, value in source.iterate(key_range.lower, key_range.upper):
        records_read += 1
        try:
            new_key, new_value = transform(key, value)
        except MigratorError as error:
            raise add_error_context(error, f"transforming key {_describe_key(key)}") from error
        writer.put(new_key, new_value)
    writer.close()
    result = TranscodeResult(
        records_read=records_read,
        records_written=writer.written,
        flush_count=writer.flush_count,
    )
    if progress is not None:
        progress.log_completed(result.records_read, result.records_written, result.flush_count)
    return result


def codec_transform(
    source_codec: Codec[Any],
    target_codec: Codec[Any],
    convert: Callable[[Any], Any],
    rekey: Callable[[bytes, Any], bytes] | None = None,
) -> RecordTransform:
    """Build a transform that decodes, converts, and re-encodes a record.

    Args:
        source_codec: Codec for stored values.
        target_codec: Codec for migrated values.
        convert: Maps a decoded source record to a target record.
        rekey: Optional key builder from the source key and converted record.
            The source key is kept when omitted.

    Returns:
        Record transform for ``transcode_range``.
    """

    def _transform(key: bytes, value: bytes) -> tuple[bytes, bytes]:
        converted = convert(source_codec.decode(value))
        new_key = rekey(key, converted) if rekey is not None else key
        return new_key, target_codec.encode(converted)

    return _transform


def passthrough_transform(key: bytes, value: bytes) -> tuple[bytes, bytes]:
    """Copy a record unchanged."""
    return key, value


def _describe_key(key: bytes) -> str:
    try:
        return f"{key[:1].hex()}:{decode_id(key)}"
    except (ValueError, UnicodeDecodeError):
        return key.hex()
