"""Billbook: document numbering, GST determination and payment reconciliation."""

__version__ = "1.0.0"
