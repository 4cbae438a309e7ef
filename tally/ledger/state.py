"""Explicit aggregate state owned by one ledger instance."""

from __future__ import annotations

from dataclasses import dataclass, field

from .models import (
    CategoryTotal,
    Commitment,
    EpochState,
    FinalAggregate,
    LocationTotal,
    Submission,
    VerifiedProof,
)

# (epoch, principal), (epoch, category), (epoch, location)
ParticipantKey = tuple[int, str]
CategoryKey = tuple[int, int]
LocationKey = tuple[int, str]


@dataclass
class LedgerState:
    """All records of a ledger. Components read and write through this."""

    authority: str
    epoch: EpochState = field(default_factory=EpochState)
    submissions: dict[ParticipantKey, Submission] = field(default_factory=dict)
    category_totals: dict[CategoryKey, CategoryTotal] = field(default_factory=dict)
    location_totals: dict[LocationKey, LocationTotal] = field(default_factory=dict)
    commitments: dict[ParticipantKey, Commitment] = field(default_factory=dict)
    verified_proofs: dict[bytes, VerifiedProof] = field(default_factory=dict)
    final_aggregates: dict[int, FinalAggregate] = field(default_factory=dict)


__all__ = ["CategoryKey", "LedgerState", "LocationKey", "ParticipantKey"]
