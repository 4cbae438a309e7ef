"""Commit-reveal verification.

A submitter first registers a digest of their submission fields for an
epoch. Later they reveal the fields together with a proof hash; the
reveal passes only if the recomputed digest equals the registered one
byte for byte. Each proof hash can be consumed once, ledger-wide.

This is an equality binding, not a zero-knowledge proof.
"""

from __future__ import annotations

import hmac

import bittensor as bt

from .errors import REGISTER_COMMITMENT_CODES, VERIFY_PROOF_CODES, LedgerError
from .hashing import commitment_hash, is_proof_length
from .models import NUM_CATEGORIES, Commitment, VerifiedProof
from .results import CallContext, CallResult
from .state import LedgerState


class VerificationLedger:
    """Stores commitments and consumes proofs."""

    def __init__(self, state: LedgerState):
        self._state = state

    def register_commitment(
        self,
        ctx: CallContext,
        epoch: int,
        submitter: str,
        category: int,
        value: int,
        location: str,
        age_range: int,
    ) -> CallResult[bytes]:
        """Register the caller's commitment for ``epoch``. Returns the digest.

        Raises ValueError if a numeric field is not an unsigned integer.
        """
        if ctx.caller != submitter:
            return CallResult.failure(LedgerError.NOT_AUTHORIZED, REGISTER_COMMITMENT_CODES)

        key = (epoch, submitter)
        if key in self._state.commitments:
            return CallResult.failure(LedgerError.ALREADY_REGISTERED, REGISTER_COMMITMENT_CODES)

        digest = commitment_hash(category, value, location, age_range)
        self._state.commitments[key] = Commitment(epoch=epoch, submitter=submitter, digest=digest)

        bt.logging.debug({"ledger_verification": {
            "event": "commitment_registered",
            "epoch": epoch,
            "submitter": submitter,
            "digest": digest.hex()[:16],
        }})
        return CallResult.success(digest)

    def verify_proof(
        self,
        ctx: CallContext,
        epoch: int,
        submitter: str,
        category: int,
        value: int,
        location: str,
        age_range: int,
        proof_hash: bytes,
    ) -> CallResult[VerifiedProof]:
        """Check revealed fields against the commitment and consume the proof."""
        codes = VERIFY_PROOF_CODES

        if ctx.caller != submitter:
            return CallResult.failure(LedgerError.NOT_AUTHORIZED, codes)
        if not is_proof_length(proof_hash):
            return CallResult.failure(LedgerError.INVALID_PROOF_LENGTH, codes)

        proof_key = bytes(proof_hash)
        if proof_key in self._state.verified_proofs:
            bt.logging.warning({"ledger_verification": {
                "event": "proof_replayed",
                "submitter": submitter,
                "proof": proof_key.hex()[:16],
            }})
            return CallResult.failure(LedgerError.PROOF_REPLAYED, codes)
        if not 0 <= category < NUM_CATEGORIES:
            return CallResult.failure(LedgerError.INVALID_CATEGORY, codes)
        if value <= 0:
            return CallResult.failure(LedgerError.INVALID_VALUE, codes)

        commitment = self._state.commitments.get((epoch, submitter))
        if commitment is None:
            return CallResult.failure(LedgerError.NO_COMMITMENT, codes)

        expected = commitment_hash(category, value, location, age_range)
        if not hmac.compare_digest(expected, commitment.digest):
            bt.logging.debug({"ledger_verification": {
                "event": "hash_mismatch",
                "epoch": epoch,
                "submitter": submitter,
            }})
            return CallResult.failure(LedgerError.HASH_MISMATCH, codes)

        record = VerifiedProof(
            proof_hash=proof_key,
            epoch=epoch,
            submitter=submitter,
            verified_at=ctx.tick,
        )
        self._state.verified_proofs[proof_key] = record

        bt.logging.info({"ledger_verification": {
            "event": "proof_verified",
            "epoch": epoch,
            "submitter": submitter,
            "tick": ctx.tick,
        }})
        return CallResult.success(record)

    # -- Queries --

    def get_commitment(self, epoch: int, submitter: str) -> bytes | None:
        commitment = self._state.commitments.get((epoch, submitter))
        return commitment.digest if commitment is not None else None

    def get_verified_proof(self, proof_hash: bytes) -> VerifiedProof | None:
        return self._state.verified_proofs.get(bytes(proof_hash))


__all__ = ["VerificationLedger"]
