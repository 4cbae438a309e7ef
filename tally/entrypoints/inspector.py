"""Snapshot inspection entrypoint.

Loads the latest (or a named) ledger snapshot from the filesystem store,
verifies it and prints a JSON summary. Exit code 0 means a snapshot was
found and verified.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from typing import Any

import bittensor as bt
from dotenv import load_dotenv

from tally.config.core import ENV_PREFIX, is_test_mode
from tally.ledger.snapshot import LedgerSnapshot, verify_snapshot
from tally.ledger.store.filesystem import FilesystemStore

DEFAULT_DATA_DIR = "tally/data"


def summarize(snapshot: LedgerSnapshot, signer_hotkey: str | None = None) -> dict[str, Any]:
    """Summary of a snapshot plus its verification outcome."""
    result = verify_snapshot(snapshot, signer_hotkey=signer_hotkey)
    return {
        "epoch": snapshot.epoch_state.epoch_id,
        "closed": snapshot.epoch_state.closed,
        "start_tick": snapshot.epoch_state.start_tick,
        "authority": snapshot.authority,
        "created_at": snapshot.manifest.created_at.isoformat(),
        "submissions": len(snapshot.submissions),
        "commitments": len(snapshot.commitments),
        "verified_proofs": len(snapshot.verified_proofs),
        "final_aggregates": [
            a.model_dump(mode="json") for a in snapshot.final_aggregates
        ],
        "valid": result.valid,
        "errors": result.errors,
    }


def main(argv: list[str] | None = None) -> int:
    if not is_test_mode():
        load_dotenv()

    parser = argparse.ArgumentParser(description="Inspect a tally ledger snapshot")
    parser.add_argument("--data_dir", type=str, default=None)
    parser.add_argument("--snapshot_id", type=str, default=None)
    parser.add_argument("--signer_hotkey", type=str, default=None)
    args = parser.parse_args(argv)

    # CLI flags take precedence over env vars
    data_dir = args.data_dir or os.environ.get(f"{ENV_PREFIX}DATA_DIR", DEFAULT_DATA_DIR)
    signer_hotkey = args.signer_hotkey or os.environ.get(f"{ENV_PREFIX}SIGNER_HOTKEY") or None

    store = FilesystemStore(data_dir=data_dir)
    if args.snapshot_id:
        snapshot = asyncio.run(store.get_snapshot(args.snapshot_id))
    else:
        snapshot = asyncio.run(store.get_latest_snapshot())

    if snapshot is None:
        bt.logging.error({"inspect": {"event": "no_snapshot", "data_dir": data_dir, "snapshot_id": args.snapshot_id}})
        return 1

    summary = summarize(snapshot, signer_hotkey=signer_hotkey)
    print(json.dumps(summary, indent=2, sort_keys=True))

    if not summary["valid"]:
        bt.logging.warning({"inspect": {"event": "verification_failed", "errors": summary["errors"]}})
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
