"""Pydantic records held by the ledger.

Records are written once and never edited. Running totals are replaced
with an updated copy on every accepted submission.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer

# ---------------------------------------------------------------------------
# Limits
# ---------------------------------------------------------------------------

NUM_CATEGORIES = 10
MAX_AVERAGES = 10
HASH_SIZE = 32


def _coerce_bytes(value: Any) -> Any:
    """Accept hex strings (as produced by JSON dumps) for byte fields."""
    if isinstance(value, str):
        return bytes.fromhex(value)
    if isinstance(value, bytearray):
        return bytes(value)
    return value


HexBytes = Annotated[
    bytes,
    BeforeValidator(_coerce_bytes),
    PlainSerializer(lambda b: b.hex(), return_type=str, when_used="json"),
]


# ---------------------------------------------------------------------------
# Epoch
# ---------------------------------------------------------------------------


class EpochState(BaseModel):
    """The current epoch: id, opening tick and closed flag."""

    epoch_id: int = Field(default=0, ge=0)
    start_tick: int = Field(default=0, ge=0)
    closed: bool = False


# ---------------------------------------------------------------------------
# Submissions and running totals
# ---------------------------------------------------------------------------


class Submission(BaseModel):
    """One participant's data point for one epoch."""

    model_config = ConfigDict(frozen=True)

    epoch: int
    participant: str
    category: int
    value: int
    location: str | None = None
    age_range: int | None = None
    proof_hash: HexBytes
    submitted_at: int


class CategoryTotal(BaseModel):
    """Running sum / count of submitted values for one category."""

    model_config = ConfigDict(frozen=True)

    epoch: int
    category: int
    sum: int = 0
    count: int = 0

    def add(self, value: int) -> CategoryTotal:
        return self.model_copy(update={"sum": self.sum + value, "count": self.count + 1})


class LocationTotal(BaseModel):
    """Running sum / count of submitted values for one location."""

    model_config = ConfigDict(frozen=True)

    epoch: int
    location: str
    sum: int = 0
    count: int = 0

    def add(self, value: int) -> LocationTotal:
        return self.model_copy(update={"sum": self.sum + value, "count": self.count + 1})


# ---------------------------------------------------------------------------
# Commit-reveal
# ---------------------------------------------------------------------------


class Commitment(BaseModel):
    """Digest a submitter registered for an epoch before revealing."""

    model_config = ConfigDict(frozen=True)

    epoch: int
    submitter: str
    digest: HexBytes


class VerifiedProof(BaseModel):
    """A consumed proof hash. Proof hashes are single-use ledger-wide."""

    model_config = ConfigDict(frozen=True)

    proof_hash: HexBytes
    epoch: int
    submitter: str
    verified_at: int


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


class FinalAggregate(BaseModel):
    """Summary of a finalized epoch.

    ``averages[i]`` is the floor-divided mean of ``categories[i]``;
    categories appear in ascending order and only when they received at
    least one submission.
    """

    model_config = ConfigDict(frozen=True)

    epoch: int
    total_submissions: int = Field(gt=0)
    averages: tuple[int, ...] = Field(max_length=MAX_AVERAGES)
    categories: tuple[int, ...] = Field(max_length=MAX_AVERAGES)
    finalized_at: int


__all__ = [
    "HASH_SIZE",
    "MAX_AVERAGES",
    "NUM_CATEGORIES",
    "CategoryTotal",
    "Commitment",
    "EpochState",
    "FinalAggregate",
    "HexBytes",
    "LocationTotal",
    "Submission",
    "VerifiedProof",
]
