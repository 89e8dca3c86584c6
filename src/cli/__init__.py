"""Command line interface for the archive migrator."""
