"""Core manifest parsing and feed serialization."""
