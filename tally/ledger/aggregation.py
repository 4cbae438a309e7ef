"""Epoch finalization: fold category totals into a FinalAggregate.

Averages use integer floor division (sum // count) so every replica
computes the same aggregate bit-for-bit. An epoch is aggregated at most
once; finalizing also opens the next epoch.
"""

from __future__ import annotations

import bittensor as bt

from .clock import AccessControl, EpochClock
from .errors import FINALIZE_EPOCH_CODES, LedgerError
from .models import MAX_AVERAGES, NUM_CATEGORIES, CategoryTotal, FinalAggregate
from .results import CallContext, CallResult
from .state import LedgerState


def compute_aggregate(
    epoch: int,
    totals: list[CategoryTotal],
    finalized_at: int,
) -> FinalAggregate | None:
    """Build the aggregate for the given per-category totals.

    ``totals`` must already be in ascending category order. Returns None
    when no category received a submission.
    """
    populated = [t for t in totals if t.count > 0]
    total_submissions = sum(t.count for t in populated)
    if total_submissions == 0:
        return None

    populated = populated[:MAX_AVERAGES]
    return FinalAggregate(
        epoch=epoch,
        total_submissions=total_submissions,
        averages=tuple(t.sum // t.count for t in populated),
        categories=tuple(t.category for t in populated),
        finalized_at=finalized_at,
    )


class AggregationEngine:
    """Computes and stores the final aggregate of a closed epoch."""

    def __init__(self, state: LedgerState, clock: EpochClock, access: AccessControl):
        self._state = state
        self._clock = clock
        self._access = access

    def finalize(self, ctx: CallContext) -> CallResult[FinalAggregate]:
        """Aggregate the current (closed) epoch and open the next one."""
        if not self._access.is_authority(ctx.caller):
            self._access.reject(ctx, "finalize_epoch")
            return CallResult.failure(LedgerError.NOT_AUTHORIZED, FINALIZE_EPOCH_CODES)
        if not self._clock.closed:
            return CallResult.failure(LedgerError.NOT_CLOSED, FINALIZE_EPOCH_CODES)

        epoch = self._clock.epoch_id
        if epoch in self._state.final_aggregates:
            return CallResult.failure(LedgerError.ALREADY_FINALIZED, FINALIZE_EPOCH_CODES)

        totals = [
            self._state.category_totals[(epoch, c)]
            for c in range(NUM_CATEGORIES)
            if (epoch, c) in self._state.category_totals
        ]
        aggregate = compute_aggregate(epoch, totals, finalized_at=ctx.tick)
        if aggregate is None:
            bt.logging.info({"ledger": {"event": "finalize_skipped", "epoch": epoch, "reason": "no_submissions"}})
            return CallResult.failure(LedgerError.NO_SUBMISSIONS, FINALIZE_EPOCH_CODES)

        self._state.final_aggregates[epoch] = aggregate
        next_epoch = self._clock.advance(ctx.tick)

        bt.logging.info({"ledger": {
            "event": "epoch_finalized",
            "epoch": epoch,
            "total_submissions": aggregate.total_submissions,
            "categories": list(aggregate.categories),
            "next_epoch": next_epoch,
        }})
        return CallResult.success(aggregate)

    def get_final_aggregate(self, epoch: int) -> FinalAggregate | None:
        return self._state.final_aggregates.get(epoch)


__all__ = ["AggregationEngine", "compute_aggregate"]
