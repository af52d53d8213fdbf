"""Infrastructure layer - catalog clients and persistence."""
