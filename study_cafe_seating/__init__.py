"""Shared study room seat reservation engine."""

__version__ = "1.0.0"
