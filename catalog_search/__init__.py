"""Catalog search and filter orchestration."""

__version__ = "0.1.0"
