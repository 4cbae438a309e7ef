"""Ledger error taxonomy and per-action numeric error codes.

Every precondition failure is a value, not an exception. A failure is
named by a LedgerError, classified by an ErrorKind, and reported to
callers with the numeric code of the action that rejected it.
"""

from __future__ import annotations

from enum import Enum
from typing import Mapping


class ErrorKind(str, Enum):
    """Broad classification of a rejected call."""

    AUTHORIZATION = "authorization"
    LIFECYCLE_VIOLATION = "lifecycle_violation"
    VALIDATION_ERROR = "validation_error"
    DUPLICATE_WRITE = "duplicate_write"
    INTEGRITY_FAILURE = "integrity_failure"
    REPLAY_VIOLATION = "replay_violation"


class LedgerError(str, Enum):
    """Closed set of reasons a ledger call can be rejected."""

    NOT_AUTHORIZED = "not_authorized"

    EPOCH_CLOSED = "epoch_closed"
    ALREADY_CLOSED = "already_closed"
    TOO_EARLY = "too_early"
    NOT_CLOSED = "not_closed"
    ALREADY_FINALIZED = "already_finalized"
    NO_SUBMISSIONS = "no_submissions"

    INVALID_CATEGORY = "invalid_category"
    INVALID_VALUE = "invalid_value"
    INVALID_LOCATION = "invalid_location"
    INVALID_AGE_RANGE = "invalid_age_range"
    INVALID_PROOF = "invalid_proof"
    INVALID_PROOF_LENGTH = "invalid_proof_length"

    DUPLICATE_SUBMISSION = "duplicate_submission"
    ALREADY_REGISTERED = "already_registered"

    HASH_MISMATCH = "hash_mismatch"
    NO_COMMITMENT = "no_commitment"

    PROOF_REPLAYED = "proof_replayed"

    @property
    def kind(self) -> ErrorKind:
        return _KINDS[self]


_KINDS: dict[LedgerError, ErrorKind] = {
    LedgerError.NOT_AUTHORIZED: ErrorKind.AUTHORIZATION,
    LedgerError.EPOCH_CLOSED: ErrorKind.LIFECYCLE_VIOLATION,
    LedgerError.ALREADY_CLOSED: ErrorKind.LIFECYCLE_VIOLATION,
    LedgerError.TOO_EARLY: ErrorKind.LIFECYCLE_VIOLATION,
    LedgerError.NOT_CLOSED: ErrorKind.LIFECYCLE_VIOLATION,
    LedgerError.ALREADY_FINALIZED: ErrorKind.LIFECYCLE_VIOLATION,
    LedgerError.NO_SUBMISSIONS: ErrorKind.LIFECYCLE_VIOLATION,
    LedgerError.INVALID_CATEGORY: ErrorKind.VALIDATION_ERROR,
    LedgerError.INVALID_VALUE: ErrorKind.VALIDATION_ERROR,
    LedgerError.INVALID_LOCATION: ErrorKind.VALIDATION_ERROR,
    LedgerError.INVALID_AGE_RANGE: ErrorKind.VALIDATION_ERROR,
    LedgerError.INVALID_PROOF: ErrorKind.VALIDATION_ERROR,
    LedgerError.INVALID_PROOF_LENGTH: ErrorKind.VALIDATION_ERROR,
    LedgerError.DUPLICATE_SUBMISSION: ErrorKind.DUPLICATE_WRITE,
    LedgerError.ALREADY_REGISTERED: ErrorKind.DUPLICATE_WRITE,
    LedgerError.HASH_MISMATCH: ErrorKind.INTEGRITY_FAILURE,
    LedgerError.NO_COMMITMENT: ErrorKind.INTEGRITY_FAILURE,
    LedgerError.PROOF_REPLAYED: ErrorKind.REPLAY_VIOLATION,
}


# ---------------------------------------------------------------------------
# Numeric codes per action (submit codes live on the validation profile)
# ---------------------------------------------------------------------------

ErrorCodes = Mapping[LedgerError, int]

CLOSE_EPOCH_CODES: ErrorCodes = {
    LedgerError.NOT_AUTHORIZED: 100,
    LedgerError.ALREADY_CLOSED: 101,
    LedgerError.TOO_EARLY: 102,
}

FINALIZE_EPOCH_CODES: ErrorCodes = {
    LedgerError.NOT_AUTHORIZED: 100,
    LedgerError.NOT_CLOSED: 102,
    LedgerError.NO_SUBMISSIONS: 108,
    LedgerError.ALREADY_FINALIZED: 110,
}

FORCE_NEW_EPOCH_CODES: ErrorCodes = {
    LedgerError.NOT_AUTHORIZED: 100,
}

UPDATE_AUTHORITY_CODES: ErrorCodes = {
    LedgerError.NOT_AUTHORIZED: 100,
}

REGISTER_COMMITMENT_CODES: ErrorCodes = {
    LedgerError.NOT_AUTHORIZED: 100,
    LedgerError.ALREADY_REGISTERED: 104,
}

VERIFY_PROOF_CODES: ErrorCodes = {
    LedgerError.NOT_AUTHORIZED: 100,
    LedgerError.INVALID_PROOF_LENGTH: 102,
    LedgerError.PROOF_REPLAYED: 103,
    LedgerError.INVALID_CATEGORY: 106,
    LedgerError.INVALID_VALUE: 107,
    LedgerError.HASH_MISMATCH: 108,
    LedgerError.NO_COMMITMENT: 109,
}


__all__ = [
    "CLOSE_EPOCH_CODES",
    "ErrorCodes",
    "ErrorKind",
    "FINALIZE_EPOCH_CODES",
    "FORCE_NEW_EPOCH_CODES",
    "LedgerError",
    "REGISTER_COMMITMENT_CODES",
    "UPDATE_AUTHORITY_CODES",
    "VERIFY_PROOF_CODES",
]
