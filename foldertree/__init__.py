"""Hierarchical folder, file and tag store."""

__version__ = "0.1.0"
