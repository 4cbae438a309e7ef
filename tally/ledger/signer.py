"""Hotkey signatures over snapshot manifests.

The signed message is the canonical hash of the manifest without its
``signature`` field. The manifest already carries one content hash per
state section, so a valid signature covers the whole ledger state
captured in the snapshot, plus its epoch, schema version, signer and
creation time.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import bittensor as bt

from .hashing import compute_hash

if TYPE_CHECKING:
    from .snapshot import SnapshotManifest


def _signed_message(manifest: SnapshotManifest) -> bytes:
    fields = manifest.model_dump(mode="json", exclude={"signature"})
    return compute_hash(fields).encode()


def sign_snapshot(manifest: SnapshotManifest, wallet: Any) -> str:
    """Hex signature of ``manifest`` by the wallet's hotkey.

    Set ``manifest.signer_hotkey`` before signing; it is part of the
    signed message.
    """
    signature = wallet.hotkey.sign(_signed_message(manifest))
    return signature.hex() if isinstance(signature, bytes) else str(signature)


def verify_snapshot_signature(manifest: SnapshotManifest, hotkey_ss58: str) -> bool:
    """True if ``manifest.signature`` was made by ``hotkey_ss58``.

    Unsigned manifests, malformed hex and unknown addresses all count as
    invalid rather than raising.
    """
    if not manifest.signature:
        return False
    try:
        signature = bytes.fromhex(manifest.signature)
    except ValueError:
        return False

    try:
        keypair = bt.Keypair(ss58_address=hotkey_ss58)
        return keypair.verify(_signed_message(manifest), signature)
    except Exception as e:
        bt.logging.debug({"ledger_signer": {"event": "verify_error", "hotkey": hotkey_ss58, "error": str(e)}})
        return False


__all__ = ["sign_snapshot", "verify_snapshot_signature"]
