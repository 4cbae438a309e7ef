"""Submission validation profiles.

Two rule sets are in use:

- ``aggregation``: category + strictly positive value + proof hash.
  Feeds per-category averages at epoch finalization.
- ``demographic``: bounded value range plus mandatory location and
  age range, tracked per location.

Each profile also carries the numeric error codes its submit action
reports, since the two deployments number their errors differently.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .errors import LedgerError
from .models import NUM_CATEGORIES

# Counted in UTF-16 code units
MAX_LOCATION_LENGTH = 50
MAX_AGE_RANGE = 5

_SUBMIT_ERRORS = frozenset({
    LedgerError.EPOCH_CLOSED,
    LedgerError.INVALID_CATEGORY,
    LedgerError.INVALID_VALUE,
    LedgerError.INVALID_LOCATION,
    LedgerError.INVALID_AGE_RANGE,
    LedgerError.INVALID_PROOF,
    LedgerError.DUPLICATE_SUBMISSION,
})


class ValidationProfile(BaseModel):
    """Bounds applied to every submission, plus its error code table."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    num_categories: int = Field(default=NUM_CATEGORIES, gt=0, le=NUM_CATEGORIES)
    min_value: int = 1
    max_value: int | None = None
    location_required: bool = False
    max_location_length: int = Field(default=MAX_LOCATION_LENGTH, gt=0)
    age_range_required: bool = False
    max_age_range: int = Field(default=MAX_AGE_RANGE, ge=0)
    error_codes: dict[LedgerError, int]

    @model_validator(mode="after")
    def _check(self) -> ValidationProfile:
        if self.max_value is not None and self.max_value < self.min_value:
            raise ValueError(
                f"max_value ({self.max_value}) is below min_value ({self.min_value})"
            )
        missing = _SUBMIT_ERRORS - set(self.error_codes)
        if missing:
            raise ValueError(
                f"error_codes missing: {sorted(e.value for e in missing)}"
            )
        return self

    def value_in_bounds(self, value: int) -> bool:
        if value < self.min_value:
            return False
        return self.max_value is None or value <= self.max_value


AGGREGATION_PROFILE = ValidationProfile(
    name="aggregation",
    min_value=1,
    error_codes={
        LedgerError.EPOCH_CLOSED: 101,
        LedgerError.DUPLICATE_SUBMISSION: 103,
        LedgerError.INVALID_PROOF: 104,
        LedgerError.INVALID_CATEGORY: 105,
        LedgerError.INVALID_VALUE: 106,
        LedgerError.INVALID_LOCATION: 107,
        LedgerError.INVALID_AGE_RANGE: 108,
    },
)

DEMOGRAPHIC_PROFILE = ValidationProfile(
    name="demographic",
    min_value=1,
    max_value=1000,
    location_required=True,
    age_range_required=True,
    error_codes={
        LedgerError.EPOCH_CLOSED: 101,
        LedgerError.INVALID_CATEGORY: 103,
        LedgerError.INVALID_VALUE: 104,
        LedgerError.DUPLICATE_SUBMISSION: 105,
        LedgerError.INVALID_LOCATION: 107,
        LedgerError.INVALID_AGE_RANGE: 108,
        LedgerError.INVALID_PROOF: 109,
    },
)

PROFILES: dict[str, ValidationProfile] = {
    AGGREGATION_PROFILE.name: AGGREGATION_PROFILE,
    DEMOGRAPHIC_PROFILE.name: DEMOGRAPHIC_PROFILE,
}


def get_profile(name: str) -> ValidationProfile:
    """Look up a built-in profile by name."""
    try:
        return PROFILES[name]
    except KeyError:
        raise ValueError(
            f"unknown validation profile {name!r}, expected one of {sorted(PROFILES)}"
        ) from None


__all__ = [
    "AGGREGATION_PROFILE",
    "DEMOGRAPHIC_PROFILE",
    "MAX_AGE_RANGE",
    "MAX_LOCATION_LENGTH",
    "PROFILES",
    "ValidationProfile",
    "get_profile",
]
