"""Hierarchical asset resolution and question-set delivery for QR scans."""

__version__ = "0.1.0"
