"""Epoch-bounded data collection ledger.

Participants submit one data point per epoch, may bind their fields to
a commitment and later reveal them against it, and the authority closes
each epoch and finalizes it into per-category averages.

- EpochLedger: the call surface (locking facade over the components)
- SubmissionLedger / VerificationLedger / AggregationEngine / EpochClock:
  the components, sharing one explicit LedgerState
- LedgerSnapshot: persistence format, stored via a LedgerStore
"""

from .errors import ErrorKind, LedgerError
from .models import (
    CategoryTotal,
    Commitment,
    EpochState,
    FinalAggregate,
    LocationTotal,
    Submission,
    VerifiedProof,
)
from .profiles import AGGREGATION_PROFILE, DEMOGRAPHIC_PROFILE, ValidationProfile, get_profile
from .results import CallContext, CallResult
from .service import EpochLedger
from .snapshot import LedgerSnapshot, SnapshotManifest, build_snapshot, restore_state, verify_snapshot
from .state import LedgerState

__all__ = [
    "AGGREGATION_PROFILE",
    "DEMOGRAPHIC_PROFILE",
    "CallContext",
    "CallResult",
    "CategoryTotal",
    "Commitment",
    "EpochLedger",
    "EpochState",
    "ErrorKind",
    "FinalAggregate",
    "LedgerError",
    "LedgerSnapshot",
    "LedgerState",
    "LocationTotal",
    "SnapshotManifest",
    "Submission",
    "ValidationProfile",
    "VerifiedProof",
    "build_snapshot",
    "get_profile",
    "restore_state",
    "verify_snapshot",
]
