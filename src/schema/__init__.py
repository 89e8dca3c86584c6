"""Record schemas for the source (v1) and target (v2) store layouts."""
