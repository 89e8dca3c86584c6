"""Unit tests for CLI command handling."""

from __future__ import annotations

from pathlib import Path

import pytest

from cli.main import main
from core.types import TickRange
from schema import v1
from store.keys import Namespace
from tests.archive_fixtures import TEST_MAP_SIZE, epoch_entries, read_all, v1_entry, write_store


@pytest.fixture(autouse=True)
def _small_map_size(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ARCHIVER_MIGRATOR_MAP_SIZE", str(TEST_MAP_SIZE))


def _seed_source(tmp_path: Path) -> Path:
    entries = epoch_entries(120, [TickRange(1, 4), TickRange(7, 8)], transactions_per_tick={2: 1})
    entries.append(v1_entry(Namespace.LAST_PROCESSED_TICK, None, v1.ProcessedTick(8, 120)))
    return write_store(tmp_path / "old", entries)


def _base_args(tmp_path: Path) -> list[str]:
    return ["--source", str(tmp_path / "old"), "--target", str(tmp_path / "new")]


def test_cli_epoch_migrates_into_epoch_store(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """CLI epoch should print counters and create the epoch store."""
    _seed_source(tmp_path)

    exit_code = main([*_base_args(tmp_path), "--batch-size", "3", "epoch", "120"])
    output = capsys.readouterr().out.strip()

    assert exit_code == 0
    assert output.startswith("epoch=120\ttick_ranges=2\ttick_records=6")
    assert read_all(tmp_path / "new" / "120")


def test_cli_metadata_prints_tick_ranges(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """CLI metadata should list each epoch's ranges."""
    _seed_source(tmp_path)

    exit_code = main([*_base_args(tmp_path), "metadata"])
    lines = capsys.readouterr().out.splitlines()

    assert exit_code == 0
    assert lines == [
        "Epoch: 120",
        "  - Last processed tick: 8",
        "  - Tick ranges:",
        "    - 1 : 4",
        "    - 7 : 8",
    ]


def test_cli_shared_reports_skipped_singletons(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """CLI shared should report written and skipped namespaces."""
    _seed_source(tmp_path)

    exit_code = main([*_base_args(tmp_path), "shared"])
    output = capsys.readouterr().out.splitlines()

    assert exit_code == 0
    assert "last_processed_tick=1" in output
    assert "last_processed_tick_per_epoch=1" in output
    assert "skipped_ticks_interval=skipped" in output


def test_cli_reports_missing_source(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """A missing source should exit 1 with a migration error line."""
    exit_code = main([*_base_args(tmp_path), "all"])
    output = capsys.readouterr().out.strip()

    assert exit_code == 1
    assert output.startswith("migration_error=Source store not found")


def test_cli_rejects_non_positive_batch_size(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Batch size flags must be positive."""
    _seed_source(tmp_path)

    exit_code = main([*_base_args(tmp_path), "--batch-size", "0", "epoch", "120"])

    assert exit_code == 1
    assert "--batch-size must be positive" in capsys.readouterr().out
