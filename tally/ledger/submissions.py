"""Submission ledger: one validated data point per participant per epoch.

Checks run in a fixed order and the first failing check decides the
error. Nothing is written until every check has passed.
"""

from __future__ import annotations

from typing import Any

import bittensor as bt

from .clock import EpochClock
from .errors import LedgerError
from .hashing import is_well_formed_proof
from .models import CategoryTotal, LocationTotal, Submission
from .profiles import ValidationProfile
from .results import CallContext, CallResult
from .state import LedgerState


class SubmissionLedger:
    """Validates and records submissions; keeps running totals."""

    def __init__(self, state: LedgerState, clock: EpochClock, profile: ValidationProfile):
        self._state = state
        self._clock = clock
        self.profile = profile

    def submit(
        self,
        ctx: CallContext,
        category: int,
        value: int,
        proof_hash: bytes,
        location: str | None = None,
        age_range: int | None = None,
    ) -> CallResult[Submission]:
        """Record the caller's submission for the current epoch."""
        error = self._validate(ctx, category, value, proof_hash, location, age_range)
        if error is not None:
            bt.logging.debug({"ledger": {
                "event": "submission_rejected",
                "participant": ctx.caller,
                "epoch": self._clock.epoch_id,
                "reason": error.value,
            }})
            return CallResult.failure(error, self.profile.error_codes)

        epoch = self._clock.epoch_id
        submission = Submission(
            epoch=epoch,
            participant=ctx.caller,
            category=category,
            value=value,
            location=location,
            age_range=age_range,
            proof_hash=bytes(proof_hash),
            submitted_at=ctx.tick,
        )
        self._state.submissions[(epoch, ctx.caller)] = submission

        cat_key = (epoch, category)
        cat_total = self._state.category_totals.get(cat_key) or CategoryTotal(
            epoch=epoch, category=category,
        )
        self._state.category_totals[cat_key] = cat_total.add(value)

        if location is not None:
            loc_key = (epoch, location)
            loc_total = self._state.location_totals.get(loc_key) or LocationTotal(
                epoch=epoch, location=location,
            )
            self._state.location_totals[loc_key] = loc_total.add(value)

        bt.logging.debug({"ledger": {
            "event": "submission_accepted",
            "participant": ctx.caller,
            "epoch": epoch,
            "category": category,
            "tick": ctx.tick,
        }})
        return CallResult.success(submission)

    def _validate(
        self,
        ctx: CallContext,
        category: Any,
        value: Any,
        proof_hash: Any,
        location: Any,
        age_range: Any,
    ) -> LedgerError | None:
        profile = self.profile

        if not self._clock.accepting_submissions(ctx.tick):
            return LedgerError.EPOCH_CLOSED

        if not _is_int(category) or not 0 <= category < profile.num_categories:
            return LedgerError.INVALID_CATEGORY

        if not _is_int(value) or not profile.value_in_bounds(value):
            return LedgerError.INVALID_VALUE

        if location is not None or profile.location_required:
            if not isinstance(location, str) or not location:
                return LedgerError.INVALID_LOCATION
            if _utf16_length(location) > profile.max_location_length:
                return LedgerError.INVALID_LOCATION

        if age_range is not None or profile.age_range_required:
            if not _is_int(age_range) or not 0 <= age_range <= profile.max_age_range:
                return LedgerError.INVALID_AGE_RANGE

        if not is_well_formed_proof(proof_hash):
            return LedgerError.INVALID_PROOF

        if (self._clock.epoch_id, ctx.caller) in self._state.submissions:
            return LedgerError.DUPLICATE_SUBMISSION

        return None

    # -- Queries --

    def get_submission(self, epoch: int, participant: str) -> Submission | None:
        return self._state.submissions.get((epoch, participant))

    def get_category_total(self, epoch: int, category: int) -> CategoryTotal | None:
        return self._state.category_totals.get((epoch, category))

    def get_location_total(self, epoch: int, location: str) -> LocationTotal | None:
        return self._state.location_totals.get((epoch, location))


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _utf16_length(text: str) -> int:
    """Length in UTF-16 code units; characters outside the BMP count twice."""
    return len(text.encode("utf-16-le", "surrogatepass")) // 2


__all__ = ["SubmissionLedger"]
