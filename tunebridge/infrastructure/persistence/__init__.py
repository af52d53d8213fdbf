"""Persistence implementations for conversion records and song data."""
