"""Storage layer.

This package defines the key layout shared by source and target stores
and the LMDB handles the migration core reads from and writes to.
"""
