"""Core utilities shared across stackprobe."""
