"""Call context and call results for ledger actions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from .errors import ErrorCodes, ErrorKind, LedgerError

T = TypeVar("T")


@dataclass(frozen=True)
class CallContext:
    """Who is calling and at which tick.

    The tick is a monotonically increasing logical clock supplied by the
    caller's environment (e.g. a block height).
    """

    caller: str
    tick: int


@dataclass(frozen=True)
class CallResult(Generic[T]):
    """Outcome of a ledger action: a payload or a rejection."""

    ok: bool
    value: T | None = None
    error: LedgerError | None = None
    code: int | None = None

    def __bool__(self) -> bool:
        return self.ok

    @property
    def kind(self) -> ErrorKind | None:
        return self.error.kind if self.error is not None else None

    @classmethod
    def success(cls, value: T | None = None) -> CallResult[T]:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: LedgerError, codes: ErrorCodes) -> CallResult[T]:
        return cls(ok=False, error=error, code=codes[error])


__all__ = ["CallContext", "CallResult"]
