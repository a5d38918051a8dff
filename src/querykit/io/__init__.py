"""I/O layer: database execution and query logging."""
