"""Command-line interface for brewlog."""
