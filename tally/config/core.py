"""Ledger settings loaded from .env, environment variables and overrides.

Environment variables use the TALLY_LEDGER__<FIELD> form, e.g.
TALLY_LEDGER__AUTHORITY or TALLY_LEDGER__EPOCH_DURATION. Precedence,
highest first: explicit overrides, environment, field defaults.
"""

from __future__ import annotations

import os
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from tally.ledger.profiles import PROFILES

ENV_PREFIX = "TALLY_LEDGER__"

_NONE_VALUES = ("", "none", "null", "off")


class LedgerSettings(BaseModel):
    """Runtime configuration for one ledger."""

    authority: str = Field(min_length=1)
    profile: str = "aggregation"
    epoch_duration: int | None = Field(default=100, gt=0)
    enforce_window_on_submit: bool = True
    enforce_window_on_close: bool = True
    data_dir: str = "tally/data"
    signer_hotkey: str | None = None
    retention_days: int = Field(default=7, gt=0)

    @field_validator("profile")
    @classmethod
    def _known_profile(cls, value: str) -> str:
        if value not in PROFILES:
            raise ValueError(f"unknown profile {value!r}, expected one of {sorted(PROFILES)}")
        return value

    @field_validator("epoch_duration", mode="before")
    @classmethod
    def _parse_duration(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().lower() in _NONE_VALUES:
            return None
        return value


def is_test_mode() -> bool:
    return os.environ.get("TALLY_TEST_MODE", "").lower() in ("true", "1")


def _from_env() -> dict[str, str]:
    values: dict[str, str] = {}
    for name in LedgerSettings.model_fields:
        raw = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
        if raw is not None:
            values[name] = raw
    return values


def load_settings(overrides: dict[str, Any] | None = None) -> LedgerSettings:
    """Load ledger settings.

    Reads a .env file first unless TALLY_TEST_MODE is set. Overrides
    whose value is None are ignored, so unset CLI flags can be passed
    straight through.

    Raises:
        pydantic.ValidationError: if a value is missing or out of range.
    """
    if not is_test_mode():
        load_dotenv()

    values: dict[str, Any] = _from_env()
    if overrides:
        values.update({k: v for k, v in overrides.items() if v is not None})
    return LedgerSettings(**values)


__all__ = ["ENV_PREFIX", "LedgerSettings", "is_test_mode", "load_settings"]
