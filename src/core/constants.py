"""Core constants used across migrator modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

ENV_PREFIX = "ARCHIVER_MIGRATOR"
DEFAULT_SOURCE_PATH = Path("storage/old")
DEFAULT_TARGET_PATH = Path("storage/new")
DEFAULT_BATCH_SIZE = 10_000
DEFAULT_MAP_SIZE = 1 << 34
SHARED_STORE_DIR_NAME = "shared"
COMPACTION_DIR_SUFFIX = ".compact"
LMDB_DATA_FILE_NAME = "data.mdb"
TARGET_TICK_VOTE_SIGNATURE_MIN_EPOCH = 158
NUMERIC_ID_WIDTH = 8
MAX_NUMERIC_ID = (1 << 64) - 1
UPPER_BOUND_TRANSACTION = "z" * 60
UPPER_BOUND_IDENTITY = "Z" * 60
FULL_RANGE_LOWER_BOUND = b"\x00"
FULL_RANGE_UPPER_BOUND = b"\xff"
