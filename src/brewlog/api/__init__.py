"""Outer interfaces for brewlog."""
