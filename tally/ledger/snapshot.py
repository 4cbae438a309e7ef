"""Ledger state snapshots for persistence between processes.

A snapshot is the full LedgerState flattened into record lists plus a
manifest carrying one content hash per section. Restoring refuses any
snapshot whose sections do not match their hashes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from .hashing import compute_section_hash
from .models import (
    CategoryTotal,
    Commitment,
    EpochState,
    FinalAggregate,
    LocationTotal,
    Submission,
    VerifiedProof,
)
from .signer import verify_snapshot_signature
from .state import LedgerState

# ---------------------------------------------------------------------------
# Schema version - bump on breaking changes to snapshot format
# ---------------------------------------------------------------------------

SNAPSHOT_SCHEMA_VERSION = 1

SECTIONS = (
    "epoch_state",
    "authority",
    "submissions",
    "category_totals",
    "location_totals",
    "commitments",
    "verified_proofs",
    "final_aggregates",
)


class SnapshotManifest(BaseModel):
    """Header of a snapshot: what it contains and who signed it."""

    schema_version: int = SNAPSHOT_SCHEMA_VERSION
    epoch: int
    content_hashes: dict[str, str] = Field(
        description="Map of section name -> SHA256 hex digest"
    )
    signer_hotkey: str = ""
    signature: str = ""
    created_at: datetime


class LedgerSnapshot(BaseModel):
    """Full ledger state at one point in time."""

    manifest: SnapshotManifest
    epoch_state: EpochState
    authority: str
    submissions: list[Submission] = Field(default_factory=list)
    category_totals: list[CategoryTotal] = Field(default_factory=list)
    location_totals: list[LocationTotal] = Field(default_factory=list)
    commitments: list[Commitment] = Field(default_factory=list)
    verified_proofs: list[VerifiedProof] = Field(default_factory=list)
    final_aggregates: list[FinalAggregate] = Field(default_factory=list)

    def sections(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in SECTIONS}


@dataclass
class VerificationResult:
    """Outcome of snapshot verification."""

    valid: bool
    errors: list[str]

    def __bool__(self) -> bool:
        return self.valid


def build_snapshot(state: LedgerState, created_at: datetime | None = None) -> LedgerSnapshot:
    """Flatten ``state`` into a snapshot with content hashes filled in.

    Records are sorted by key so the hashes do not depend on the order
    in which calls were made.
    """
    if created_at is None:
        created_at = datetime.now(timezone.utc)

    sections: dict[str, Any] = {
        "epoch_state": state.epoch.model_copy(),
        "authority": state.authority,
        "submissions": [state.submissions[k] for k in sorted(state.submissions)],
        "category_totals": [state.category_totals[k] for k in sorted(state.category_totals)],
        "location_totals": [state.location_totals[k] for k in sorted(state.location_totals)],
        "commitments": [state.commitments[k] for k in sorted(state.commitments)],
        "verified_proofs": [state.verified_proofs[k] for k in sorted(state.verified_proofs)],
        "final_aggregates": [state.final_aggregates[k] for k in sorted(state.final_aggregates)],
    }
    manifest = SnapshotManifest(
        epoch=state.epoch.epoch_id,
        content_hashes={name: compute_section_hash(data) for name, data in sections.items()},
        created_at=created_at,
    )
    return LedgerSnapshot(
        manifest=manifest,
        epoch_state=sections["epoch_state"],
        authority=sections["authority"],
        submissions=sections["submissions"],
        category_totals=sections["category_totals"],
        location_totals=sections["location_totals"],
        commitments=sections["commitments"],
        verified_proofs=sections["verified_proofs"],
        final_aggregates=sections["final_aggregates"],
    )


def verify_snapshot(snapshot: LedgerSnapshot, signer_hotkey: str | None = None) -> VerificationResult:
    """Check schema version, content hashes and (optionally) the signature."""
    errors: list[str] = []
    manifest = snapshot.manifest

    if manifest.schema_version != SNAPSHOT_SCHEMA_VERSION:
        errors.append(
            f"schema_version mismatch: got {manifest.schema_version}, "
            f"expected {SNAPSHOT_SCHEMA_VERSION}"
        )

    if manifest.epoch != snapshot.epoch_state.epoch_id:
        errors.append(
            f"epoch mismatch: manifest says {manifest.epoch}, "
            f"state says {snapshot.epoch_state.epoch_id}"
        )

    for section_name, section_data in snapshot.sections().items():
        expected = manifest.content_hashes.get(section_name)
        if expected is None:
            errors.append(f"missing content hash for section: {section_name}")
            continue

        actual = compute_section_hash(section_data)
        if actual != expected:
            errors.append(
                f"content hash mismatch for {section_name}: "
                f"expected {expected[:16]}..., got {actual[:16]}..."
            )

    if signer_hotkey is not None:
        if manifest.signer_hotkey != signer_hotkey:
            errors.append(
                f"signer_hotkey mismatch: got {manifest.signer_hotkey or 'none'}, "
                f"expected {signer_hotkey}"
            )
        if not verify_snapshot_signature(manifest, signer_hotkey):
            errors.append("signature verification failed")

    return VerificationResult(valid=len(errors) == 0, errors=errors)


def restore_state(snapshot: LedgerSnapshot, signer_hotkey: str | None = None) -> LedgerState:
    """Rebuild a LedgerState from a verified snapshot.

    Raises:
        ValueError: if the snapshot fails verification.
    """
    result = verify_snapshot(snapshot, signer_hotkey=signer_hotkey)
    if not result:
        raise ValueError(f"snapshot failed verification: {'; '.join(result.errors)}")

    return LedgerState(
        authority=snapshot.authority,
        epoch=snapshot.epoch_state.model_copy(),
        submissions={(s.epoch, s.participant): s for s in snapshot.submissions},
        category_totals={(t.epoch, t.category): t for t in snapshot.category_totals},
        location_totals={(t.epoch, t.location): t for t in snapshot.location_totals},
        commitments={(c.epoch, c.submitter): c for c in snapshot.commitments},
        verified_proofs={p.proof_hash: p for p in snapshot.verified_proofs},
        final_aggregates={a.epoch: a for a in snapshot.final_aggregates},
    )


__all__ = [
    "SECTIONS",
    "SNAPSHOT_SCHEMA_VERSION",
    "LedgerSnapshot",
    "SnapshotManifest",
    "VerificationResult",
    "build_snapshot",
    "restore_state",
    "verify_snapshot",
]
