"""Configuration helpers for spreadvoice.

Expose `get_settings` as the canonical accessor for environment-driven
configuration. Modules should avoid loading `.env` directly and instead
import from this package to retrieve typed snapshots.
"""

from .settings import SpreadvoiceSettings, get_settings


__all__ = ["SpreadvoiceSettings", "get_settings"]
