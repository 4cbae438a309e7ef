"""Epoch clock and the authority gate.

The epoch only moves through explicit actions: the authority closes it,
then either finalizes it (AggregationEngine) or forces a new one.
"""

from __future__ import annotations

import bittensor as bt

from .errors import (
    CLOSE_EPOCH_CODES,
    FORCE_NEW_EPOCH_CODES,
    UPDATE_AUTHORITY_CODES,
    LedgerError,
)
from .results import CallContext, CallResult
from .state import LedgerState


class AccessControl:
    """Single-principal authority gate."""

    def __init__(self, state: LedgerState):
        self._state = state

    @property
    def authority(self) -> str:
        return self._state.authority

    def is_authority(self, caller: str) -> bool:
        return caller == self._state.authority

    def reject(self, ctx: CallContext, action: str) -> None:
        """Log an unauthorized attempt at a privileged action."""
        bt.logging.warning({"ledger_auth": {
            "event": "not_authorized",
            "action": action,
            "caller": ctx.caller,
            "tick": ctx.tick,
        }})

    def update_authority(self, ctx: CallContext, new_authority: str) -> CallResult[bool]:
        """Hand the authority role to another principal."""
        if not self.is_authority(ctx.caller):
            self.reject(ctx, "update_authority")
            return CallResult.failure(LedgerError.NOT_AUTHORIZED, UPDATE_AUTHORITY_CODES)

        previous = self._state.authority
        self._state.authority = new_authority
        bt.logging.info({"ledger_auth": {
            "event": "authority_updated",
            "previous": previous,
            "authority": new_authority,
        }})
        return CallResult.success(True)


class EpochClock:
    """Current epoch id, its start tick and closed flag.

    ``epoch_duration`` is the window length in ticks. When it is set,
    ``enforce_on_submit`` rejects submissions once the window elapsed and
    ``enforce_on_close`` rejects closing before it elapsed.
    """

    def __init__(
        self,
        state: LedgerState,
        access: AccessControl,
        epoch_duration: int | None = 100,
        enforce_on_submit: bool = True,
        enforce_on_close: bool = True,
    ):
        if epoch_duration is not None and epoch_duration <= 0:
            raise ValueError(f"epoch_duration must be positive, got {epoch_duration}")
        self._state = state
        self._access = access
        self.epoch_duration = epoch_duration
        self.enforce_on_submit = enforce_on_submit
        self.enforce_on_close = enforce_on_close

    @property
    def epoch_id(self) -> int:
        return self._state.epoch.epoch_id

    @property
    def closed(self) -> bool:
        return self._state.epoch.closed

    def window_elapsed(self, tick: int) -> bool:
        """True once epoch_duration ticks have passed since the epoch opened."""
        if self.epoch_duration is None:
            return True
        return tick >= self._state.epoch.start_tick + self.epoch_duration

    def accepting_submissions(self, tick: int) -> bool:
        if self.closed:
            return False
        if self.enforce_on_submit and self.epoch_duration is not None:
            return not self.window_elapsed(tick)
        return True

    def close(self, ctx: CallContext) -> CallResult[bool]:
        """Stop accepting submissions for the current epoch."""
        if not self._access.is_authority(ctx.caller):
            self._access.reject(ctx, "close_epoch")
            return CallResult.failure(LedgerError.NOT_AUTHORIZED, CLOSE_EPOCH_CODES)
        if self.closed:
            return CallResult.failure(LedgerError.ALREADY_CLOSED, CLOSE_EPOCH_CODES)
        if self.enforce_on_close and not self.window_elapsed(ctx.tick):
            return CallResult.failure(LedgerError.TOO_EARLY, CLOSE_EPOCH_CODES)

        self._state.epoch.closed = True
        bt.logging.info({"ledger": {
            "event": "epoch_closed",
            "epoch": self.epoch_id,
            "tick": ctx.tick,
        }})
        return CallResult.success(True)

    def force_new_epoch(self, ctx: CallContext) -> CallResult[int]:
        """Open the next epoch without aggregating the current one."""
        if not self._access.is_authority(ctx.caller):
            self._access.reject(ctx, "force_new_epoch")
            return CallResult.failure(LedgerError.NOT_AUTHORIZED, FORCE_NEW_EPOCH_CODES)

        previous = self.epoch_id
        new_epoch = self.advance(ctx.tick)
        bt.logging.info({"ledger": {
            "event": "epoch_forced",
            "previous_epoch": previous,
            "epoch": new_epoch,
            "tick": ctx.tick,
        }})
        return CallResult.success(new_epoch)

    def advance(self, tick: int) -> int:
        """Move to the next epoch, opened at ``tick``. Returns its id."""
        epoch = self._state.epoch
        epoch.epoch_id += 1
        epoch.start_tick = tick
        epoch.closed = False
        return epoch.epoch_id


__all__ = ["AccessControl", "EpochClock"]
