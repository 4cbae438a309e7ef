"""Snapshot persistence backends."""

from .filesystem import FilesystemStore
from .interface import LedgerStore

__all__ = ["FilesystemStore", "LedgerStore"]
