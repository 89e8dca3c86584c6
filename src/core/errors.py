"""Migrator exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each pipeline stage raises a specific error type for debuggability.
"""

from __future__ import annotations

from typing import TypeVar

_ErrorT = TypeVar("_ErrorT", bound="MigratorError")


class MigratorError(Exception):
    """Base exception for all migrator failures."""


class MigratorConfigError(MigratorError):
    """Raised for invalid runtime configuration."""


class MigratorStoreError(MigratorError):
    """Raised when a store cannot be opened, closed, or compacted."""


class MigratorDependencyError(MigratorError):
    """Raised when an optional runtime dependency is missing."""


class IterationError(MigratorError):
    """Raised when reading from the source store fails."""


class DecodeError(MigratorError):
    """Raised for malformed or unsupported source record bytes."""


class EncodeError(MigratorError):
    """Raised when a record cannot be serialized for the target schema."""


class CommitError(MigratorError):
    """Raised when a target batch cannot be made durable."""


class ConsistencyError(MigratorError):
    """Raised when source indices disagree with the raw records."""


class IntervalNotFoundError(ConsistencyError):
    """Raised when a tick does not belong to any processed interval."""


class MigrationStateError(MigratorError):
    """Raised for illegal orchestrator state transitions."""


class MigrationCancelledError(MigratorError):
    """Raised when a migration stops at a flush boundary on request."""


def add_error_context(error: _ErrorT, context: str) -> _ErrorT:
    """Build a same-typed error whose message is prefixed with context.

    Args:
        error: Error being propagated.
        context: Short description of the failing step.

    Returns:
        New error instance of the same class. Callers raise it ``from error``.
    """
    return type(error)(f"{context}: {error}")
