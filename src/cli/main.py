"""Archive migrator CLI entry points.

This module exposes commands for inspecting a source store and migrating
its epochs. It maps argparse commands onto ``MigrationClient`` calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
import threading
from typing import Any, Sequence

from cli.interrupts import stop_on_interrupt
from core.config import MigratorConfig
from core.config_file import load_config_file
from core.errors import MigratorConfigError, MigratorError
from core.types import EpochMigrationResult
from migration.client import MigrationClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="archive-migrator",
        description="Migrate archive stores from the v1 to the v2 layout",
    )
    parser.add_argument("--source", help="Override the source store path")
    parser.add_argument("--target", help="Override the target root path")
    parser.add_argument("--batch-size", type=int, help="Records per durable target commit")
    parser.add_argument(
        "--compact",
        action="store_true",
        help="Compact each epoch store after it is migrated",
    )
    parser.add_argument("--config", help="Optional YAML config file")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_epoch_command(subparsers)
    _add_range_command(subparsers)
    subparsers.add_parser("all", help="Migrate every epoch found in the source store")
    subparsers.add_parser("metadata", help="Print processed tick ranges per epoch")
    subparsers.add_parser("shared", help="Migrate epoch-independent namespaces")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the archive migrator CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    stop_event = threading.Event()
    try:
        config = _build_config(args)
        with MigrationClient(config, should_stop=stop_event.is_set) as client:
            with stop_on_interrupt(stop_event):
                return _dispatch(parser, client, args)
    except MigratorError as error:
        print(f"migration_error={error}")
        return 1


def _dispatch(
    parser: argparse.ArgumentParser,
    client: MigrationClient,
    args: argparse.Namespace,
) -> int:
    if args.command == "epoch":
        return _run_epoch_command(client, args)
    if args.command == "range":
        return _run_range_command(client, args)
    if args.command == "all":
        return _print_results(client.migrate_all())
    if args.command == "metadata":
        return _run_metadata_command(client)
    if args.command == "shared":
        return _run_shared_command(client)
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_config(args: argparse.Namespace) -> MigratorConfig:
    """Merge env, config file, and CLI overrides, in that order.

    Raises:
        MigratorConfigError: If any layer holds an invalid value.
    """
    config = MigratorConfig.from_env()
    if args.config:
        config = load_config_file(args.config, config)
    if args.source:
        config = replace(config, source_path=Path(args.source).expanduser().resolve())
    if args.target:
        config = replace(config, target_path=Path(args.target).expanduser().resolve())
    if args.batch_size is not None:
        if args.batch_size <= 0:
            raise MigratorConfigError(f"--batch-size must be positive, got {args.batch_size}.")
        config = replace(config, batch_size=args.batch_size)
    if args.compact:
        config = replace(config, compact_after_migrate=True)
    return config


def _add_epoch_command(subparsers: Any) -> None:
    parser = subparsers.add_parser("epoch", help="Migrate one epoch")
    parser.add_argument("epoch", type=int, help="Epoch number")


def _add_range_command(subparsers: Any) -> None:
    parser = subparsers.add_parser("range", help="Migrate an inclusive range of epochs")
    parser.add_argument("start", type=int, help="First epoch")
    parser.add_argument("end", type=int, help="Last epoch (inclusive)")


def _run_epoch_command(client: MigrationClient, args: argparse.Namespace) -> int:
    return _print_results([client.migrate_epoch(args.epoch)])


def _run_range_command(client: MigrationClient, args: argparse.Namespace) -> int:
    return _print_results(client.migrate_range(args.start, args.end))


def _run_metadata_command(client: MigrationClient) -> int:
    for line in client.describe():
        print(line)
    return 0


def _run_shared_command(client: MigrationClient) -> int:
    result = client.migrate_shared()
    for name, written in sorted(result.written.items()):
        print(f"{name}={written}")
    for name in result.skipped:
        print(f"{name}=skipped")
    return 0


def _print_results(results: Sequence[EpochMigrationResult]) -> int:
    for result in results:
        print(
            f"epoch={result.epoch}\t"
            f"tick_ranges={result.tick_ranges}\t"
            f"tick_records={result.tick_records}\t"
            f"quorum_records={result.quorum_records}\t"
            f"transactions={result.transactions}\t"
            f"compacted={str(result.compacted).lower()}"
        )
    return 0
