"""Argument validation and upstream query composition."""
