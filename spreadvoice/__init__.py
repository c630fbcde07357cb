"""Narrate scanned two-up PDFs, one logical page at a time."""

__version__ = "0.1.0"
