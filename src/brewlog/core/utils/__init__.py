"""Shared utilities for brewlog core."""
