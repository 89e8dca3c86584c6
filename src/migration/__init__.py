"""Schema-migrating transcoding pipeline.

This package streams records out of a source store, re-encodes them for
the target layout, and orchestrates per-epoch migrations.
"""
