"""Marketplace flip detector: polls listings, values items, reports underpriced ones."""

__version__ = "0.1.0"
