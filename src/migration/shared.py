"""Epoch-independent namespaces.

These records are not tied to a single epoch, so they migrate into one
shared target store next to the per-epoch stores.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from core.errors import MigratorError, add_error_context
from core.logging_config import get_logger
from migration.batching import StopCheck
from migration.progress import TranscodeProgressTracker
from migration.transcoder import codec_transform, transcode_range
from schema.conversions import (
    convert_processed_tick,
    convert_skipped_ticks,
    convert_transfer_transactions,
)
from schema.registry import source_codec, target_codec
from store.interfaces import SourceHandle, TargetHandle
from store.keys import Namespace, encode_key, namespace_bounds

_LOGGER = get_logger(__name__)

_SINGLETONS: tuple[tuple[Namespace, Callable[[Any], Any]], ...] = (
    (Namespace.LAST_PROCESSED_TICK, convert_processed_tick),
    (Namespace.SKIPPED_TICKS_INTERVAL, convert_skipped_ticks),
)

_RANGED: tuple[tuple[Namespace, Callable[[Any], Any]], ...] = (
    (Namespace.LAST_PROCESSED_TICK_PER_EPOCH, convert_processed_tick),
    (Namespace.IDENTITY_TRANSFER_TRANSACTIONS, convert_transfer_transactions),
)


@dataclass(frozen=True)
class SharedMigrationResult:
    """Records written per shared namespace."""

    written: dict[str, int]
    skipped: tuple[str, ...]


def migrate_shared(
    source: SourceHandle,
    target: TargetHandle,
    batch_limit: int,
    should_stop: StopCheck | None = None,
) -> SharedMigrationResult:
    """Re-encode every epoch-independent namespace into the shared store.

    Missing singleton records are skipped with a warning.

    Raises:
        MigratorError: If any read, decode, encode, or commit fails.
    """
    written: dict[str, int] = {}
    skipped: list[str] = []
    for namespace, convert in _SINGLETONS:
        try:
            copied = _migrate_singleton(source, target, namespace, convert)
        except MigratorError as error:
            raise add_error_context(error, f"migrating {namespace.name.lower()}") from error
        if copied:
            written[namespace.name.lower()] = 1
        else:
            skipped.append(namespace.name.lower())
    for namespace, convert in _RANGED:
        transform = codec_transform(source_codec(namespace), target_codec(namespace), convert)
        try:
            result = transcode_range(
                source,
                target,
                namespace_bounds(namespace),
                transform,
                batch_limit,
                progress=TranscodeProgressTracker(label=namespace.name.lower()),
                should_stop=should_stop,
            )
        except MigratorError as error:
            raise add_error_context(error, f"migrating {namespace.name.lower()}") from error
        written[namespace.name.lower()] = result.records_written
    _LOGGER.info("shared_migration_completed", written=written, skipped=skipped)
    return SharedMigrationResult(written=written, skipped=tuple(skipped))


def _migrate_singleton(
    source: SourceHandle,
    target: TargetHandle,
    namespace: Namespace,
    convert: Callable[[Any], Any],
) -> bool:
    key = encode_key(namespace)
    value = source.get(key)
    if value is None:
        _LOGGER.warning("shared_record_missing", namespace=namespace.name.lower())
        return False
    record = convert(source_codec(namespace).decode(value))
    batch = target.new_batch()
    batch.set(key, target_codec(namespace).encode(record))
    batch.commit(durable=True)
    batch.reset()
    return True
