"""Storage, grants and schema for parallel benchmark results."""
