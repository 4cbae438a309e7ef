"""Filesystem-based LedgerStore implementation.

Writes one directory per snapshot:
  {data_dir}/ledger/snapshots/epoch_{N}_{timestamp}/
    manifest.json          plain JSON (small, readable)
    state.json             epoch state + authority
    {section}.json.gz      gzip-compressed record lists

Retention: keep all snapshots within the retention window and prune older
ones on each write. The snapshot being written is never pruned.
"""

from __future__ import annotations

import gzip
import json
import shutil
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

import bittensor as bt

from tally.ledger.snapshot import LedgerSnapshot

if TYPE_CHECKING:
    from tally.config.core import LedgerSettings

_TS_FORMAT = "%Y%m%dT%H%M%S%f"

_RECORD_SECTIONS = (
    "submissions",
    "category_totals",
    "location_totals",
    "commitments",
    "verified_proofs",
    "final_aggregates",
)


def _write_gzip_json(path: Path, data: Any) -> None:
    """Write data as gzipped JSON, creating parent dirs as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    raw = json.dumps(data, default=str, sort_keys=True).encode()
    with gzip.open(path, "wb") as f:
        f.write(raw)


def _read_gzip_json(path: Path) -> Any:
    """Read gzipped JSON file."""
    with gzip.open(path, "rb") as f:
        return json.loads(f.read())


def _write_json(path: Path, data: Any) -> None:
    """Write data as plain JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(data, f, default=str, sort_keys=True)


def _read_json(path: Path) -> Any:
    """Read plain JSON file."""
    with open(path) as f:
        return json.load(f)


class FilesystemStore:
    """Local filesystem LedgerStore implementation."""

    def __init__(self, data_dir: str, retention_days: int = 7):
        self.base = Path(data_dir) / "ledger"
        self.snapshots_dir = self.base / "snapshots"
        self.retention_days = retention_days
        self.base.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_settings(cls, settings: LedgerSettings) -> FilesystemStore:
        return cls(data_dir=settings.data_dir, retention_days=settings.retention_days)

    async def put_snapshot(self, snapshot: LedgerSnapshot) -> str:
        """Write a snapshot to disk. Returns snapshot ID."""
        manifest = snapshot.manifest
        date_str = manifest.created_at.astimezone(timezone.utc).strftime(_TS_FORMAT)
        snapshot_id = f"epoch_{manifest.epoch:08d}_{date_str}"
        snap_dir = self.snapshots_dir / snapshot_id

        data = snapshot.model_dump(mode="json")
        _write_json(snap_dir / "manifest.json", data["manifest"])
        _write_json(snap_dir / "state.json", {
            "epoch_state": data["epoch_state"],
            "authority": data["authority"],
        })
        for section in _RECORD_SECTIONS:
            _write_gzip_json(snap_dir / f"{section}.json.gz", data[section])

        bt.logging.info({"ledger_store": {
            "event": "snapshot_written",
            "snapshot_id": snapshot_id,
            "epoch": manifest.epoch,
        }})
        self._prune(keep=snapshot_id)
        return snapshot_id

    async def get_latest_snapshot(self) -> LedgerSnapshot | None:
        """Fetch the most recent snapshot from disk."""
        snapshot_ids = await self.list_snapshots()
        if not snapshot_ids:
            return None
        return self._load_snapshot(self.snapshots_dir / snapshot_ids[-1])

    async def get_snapshot(self, snapshot_id: str) -> LedgerSnapshot | None:
        """Fetch a specific snapshot by ID."""
        snap_dir = self.snapshots_dir / snapshot_id
        if not (snap_dir / "manifest.json").exists():
            return None
        return self._load_snapshot(snap_dir)

    async def list_snapshots(self, epoch: int | None = None) -> list[str]:
        """List snapshot IDs, oldest first."""
        if not self.snapshots_dir.exists():
            return []

        prefix = f"epoch_{epoch:08d}_" if epoch is not None else "epoch_"
        return sorted(
            d.name for d in self.snapshots_dir.iterdir()
            if d.is_dir() and d.name.startswith(prefix) and (d / "manifest.json").exists()
        )

    def _load_snapshot(self, snap_dir: Path) -> LedgerSnapshot:
        """Load a snapshot from a directory."""
        data: dict[str, Any] = {"manifest": _read_json(snap_dir / "manifest.json")}
        data.update(_read_json(snap_dir / "state.json"))
        for section in _RECORD_SECTIONS:
            data[section] = _read_gzip_json(snap_dir / f"{section}.json.gz")
        return LedgerSnapshot.model_validate(data)

    def _prune(self, keep: str | None = None) -> None:
        """Remove snapshots older than the retention window, except ``keep``."""
        if not self.snapshots_dir.exists():
            return

        cutoff = datetime.now(timezone.utc) - timedelta(days=self.retention_days)
        cutoff_str = cutoff.strftime(_TS_FORMAT)

        for snap_dir in list(self.snapshots_dir.iterdir()):
            if snap_dir.name == keep:
                continue
            # Snapshot ID: epoch_NNNNNNNN_YYYYMMDDTHHMMSSffffff
            parts = snap_dir.name.split("_", 2)
            if len(parts) >= 3 and parts[2] < cutoff_str:
                shutil.rmtree(snap_dir, ignore_errors=True)
                bt.logging.debug({"ledger_store": {"event": "snapshot_pruned", "snapshot_id": snap_dir.name}})


__all__ = ["FilesystemStore"]
