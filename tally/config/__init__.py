"""Configuration loading."""

from .core import LedgerSettings, load_settings

__all__ = ["LedgerSettings", "load_settings"]
