"""Application layer - use cases and services coordinating the domain."""
