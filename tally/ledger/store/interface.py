"""LedgerStore protocol - pluggable snapshot persistence.

Implementations: FilesystemStore (v1). Anything that can hold a
LedgerSnapshot by ID can stand in.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from tally.ledger.snapshot import LedgerSnapshot


@runtime_checkable
class LedgerStore(Protocol):
    """Abstract interface for reading/writing ledger snapshots."""

    async def put_snapshot(self, snapshot: LedgerSnapshot) -> str:
        """Write a snapshot. Returns the snapshot ID."""
        ...

    async def get_latest_snapshot(self) -> LedgerSnapshot | None:
        """Fetch the most recent snapshot."""
        ...

    async def get_snapshot(self, snapshot_id: str) -> LedgerSnapshot | None:
        """Fetch a specific snapshot by ID."""
        ...

    async def list_snapshots(self, epoch: int | None = None) -> list[str]:
        """List snapshot IDs, oldest first, optionally for one epoch."""
        ...


__all__ = ["LedgerStore"]
