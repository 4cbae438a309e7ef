"""EpochLedger - the call surface of the data collection ledger.

One EpochLedger owns one LedgerState and the four components that act
on it. Every action runs under a per-ledger lock, so each call sees a
consistent state and its writes land together, even when the ledger is
shared between threads.

Usage:
    ledger = EpochLedger(authority="5Authority...")
    ctx = CallContext(caller="5Alice...", tick=50)
    result = ledger.submit(ctx, category=0, value=25, proof_hash=proof)
    if not result:
        print(result.error, result.code)

    ledger.close_epoch(CallContext(caller="5Authority...", tick=150))
    aggregate = ledger.finalize_epoch(CallContext(caller="5Authority...", tick=151)).value
"""

from __future__ import annotations

import threading
from datetime import datetime
from typing import TYPE_CHECKING, Any

import bittensor as bt

from .aggregation import AggregationEngine
from .clock import AccessControl, EpochClock
from .models import (
    CategoryTotal,
    EpochState,
    FinalAggregate,
    LocationTotal,
    Submission,
    VerifiedProof,
)
from .profiles import AGGREGATION_PROFILE, ValidationProfile, get_profile
from .results import CallContext, CallResult
from .signer import sign_snapshot
from .snapshot import LedgerSnapshot, build_snapshot, restore_state
from .state import LedgerState
from .submissions import SubmissionLedger
from .verification import VerificationLedger

if TYPE_CHECKING:
    from tally.config.core import LedgerSettings


class EpochLedger:
    """Epoch lifecycle, submissions, commit-reveal and aggregation."""

    def __init__(
        self,
        authority: str,
        profile: ValidationProfile = AGGREGATION_PROFILE,
        epoch_duration: int | None = 100,
        enforce_window_on_submit: bool = True,
        enforce_window_on_close: bool = True,
        state: LedgerState | None = None,
    ):
        if state is None:
            state = LedgerState(authority=authority)
        self._state = state
        self._lock = threading.RLock()

        self._access = AccessControl(state)
        self._clock = EpochClock(
            state,
            self._access,
            epoch_duration=epoch_duration,
            enforce_on_submit=enforce_window_on_submit,
            enforce_on_close=enforce_window_on_close,
        )
        self._submissions = SubmissionLedger(state, self._clock, profile)
        self._verification = VerificationLedger(state)
        self._aggregation = AggregationEngine(state, self._clock, self._access)

    @classmethod
    def from_settings(
        cls,
        settings: LedgerSettings,
        snapshot: LedgerSnapshot | None = None,
    ) -> EpochLedger:
        """Build a ledger from loaded settings, optionally resuming a snapshot.

        A snapshot is checked against ``settings.signer_hotkey`` when one
        is configured. The snapshot's authority takes precedence over
        ``settings.authority``. Raises ValueError if it fails verification.
        """
        if snapshot is not None:
            return cls.from_snapshot(
                snapshot,
                profile=get_profile(settings.profile),
                epoch_duration=settings.epoch_duration,
                enforce_window_on_submit=settings.enforce_window_on_submit,
                enforce_window_on_close=settings.enforce_window_on_close,
                signer_hotkey=settings.signer_hotkey,
            )
        return cls(
            authority=settings.authority,
            profile=get_profile(settings.profile),
            epoch_duration=settings.epoch_duration,
            enforce_window_on_submit=settings.enforce_window_on_submit,
            enforce_window_on_close=settings.enforce_window_on_close,
        )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: LedgerSnapshot,
        profile: ValidationProfile = AGGREGATION_PROFILE,
        epoch_duration: int | None = 100,
        enforce_window_on_submit: bool = True,
        enforce_window_on_close: bool = True,
        signer_hotkey: str | None = None,
    ) -> EpochLedger:
        """Restore a ledger from a snapshot. Raises ValueError if it fails verification."""
        state = restore_state(snapshot, signer_hotkey=signer_hotkey)
        bt.logging.info({"ledger": {
            "event": "restored",
            "epoch": state.epoch.epoch_id,
            "submissions": len(state.submissions),
        }})
        return cls(
            authority=state.authority,
            profile=profile,
            epoch_duration=epoch_duration,
            enforce_window_on_submit=enforce_window_on_submit,
            enforce_window_on_close=enforce_window_on_close,
            state=state,
        )

    @property
    def profile(self) -> ValidationProfile:
        return self._submissions.profile

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def submit(
        self,
        ctx: CallContext,
        category: int,
        value: int,
        proof_hash: bytes,
        location: str | None = None,
        age_range: int | None = None,
    ) -> CallResult[Submission]:
        with self._lock:
            return self._submissions.submit(
                ctx, category, value, proof_hash, location=location, age_range=age_range,
            )

    def close_epoch(self, ctx: CallContext) -> CallResult[bool]:
        with self._lock:
            return self._clock.close(ctx)

    def finalize_epoch(self, ctx: CallContext) -> CallResult[FinalAggregate]:
        with self._lock:
            return self._aggregation.finalize(ctx)

    def force_new_epoch(self, ctx: CallContext) -> CallResult[int]:
        with self._lock:
            return self._clock.force_new_epoch(ctx)

    def update_authority(self, ctx: CallContext, new_authority: str) -> CallResult[bool]:
        with self._lock:
            return self._access.update_authority(ctx, new_authority)

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
        with self._lock:
            return self._verification.register_commitment(
                ctx, epoch, submitter, category, value, location, age_range,
            )

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
        with self._lock:
            return self._verification.verify_proof(
                ctx, epoch, submitter, category, value, location, age_range, proof_hash,
            )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def current_epoch(self) -> int:
        with self._lock:
            return self._clock.epoch_id

    @property
    def epoch_state(self) -> EpochState:
        """A copy of the current epoch state."""
        with self._lock:
            return self._state.epoch.model_copy()

    @property
    def authority(self) -> str:
        with self._lock:
            return self._access.authority

    def get_submission(self, epoch: int, participant: str) -> Submission | None:
        with self._lock:
            return self._submissions.get_submission(epoch, participant)

    def get_category_total(self, epoch: int, category: int) -> CategoryTotal | None:
        with self._lock:
            return self._submissions.get_category_total(epoch, category)

    def get_location_total(self, epoch: int, location: str) -> LocationTotal | None:
        with self._lock:
            return self._submissions.get_location_total(epoch, location)

    def get_final_aggregate(self, epoch: int) -> FinalAggregate | None:
        with self._lock:
            return self._aggregation.get_final_aggregate(epoch)

    def get_verified_proof(self, proof_hash: bytes) -> VerifiedProof | None:
        with self._lock:
            return self._verification.get_verified_proof(proof_hash)

    def get_commitment(self, epoch: int, submitter: str) -> bytes | None:
        with self._lock:
            return self._verification.get_commitment(epoch, submitter)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def snapshot(self, wallet: Any = None, created_at: datetime | None = None) -> LedgerSnapshot:
        """Consistent snapshot of the whole ledger state.

        When a bittensor wallet is given, the manifest is signed with its
        hotkey.
        """
        with self._lock:
            snapshot = build_snapshot(self._state, created_at=created_at)

        if wallet is not None:
            snapshot.manifest.signer_hotkey = wallet.hotkey.ss58_address
            snapshot.manifest.signature = sign_snapshot(snapshot.manifest, wallet)
        return snapshot


__all__ = ["EpochLedger"]
