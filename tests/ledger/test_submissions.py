"""Tests for submission validation, duplicate protection and running totals."""

import pytest

from tally.ledger.errors import ErrorKind, LedgerError
from tally.ledger.profiles import AGGREGATION_PROFILE, DEMOGRAPHIC_PROFILE
from tally.ledger.results import CallContext
from tally.ledger.service import EpochLedger

AUTHORITY = "ST1AGGREGATOR"
SUBMITTER = "ST1SUBMITTER"
PROOF = bytes([1]) * 32


def _aggregation_ledger(**overrides) -> EpochLedger:
    defaults = dict(authority=AUTHORITY, profile=AGGREGATION_PROFILE, epoch_duration=100)
    defaults.update(overrides)
    return EpochLedger(**defaults)


def _demographic_ledger(**overrides) -> EpochLedger:
    defaults = dict(
        authority=AUTHORITY,
        profile=DEMOGRAPHIC_PROFILE,
        epoch_duration=None,
        enforce_window_on_submit=False,
        enforce_window_on_close=False,
    )
    defaults.update(overrides)
    return EpochLedger(**defaults)


def _ctx(caller: str = SUBMITTER, tick: int = 50) -> CallContext:
    return CallContext(caller=caller, tick=tick)


class TestAggregationProfile:

    def test_submits_valid_data(self):
        ledger = _aggregation_ledger()
        result = ledger.submit(_ctx(), category=0, value=25, proof_hash=PROOF)
        assert result.ok
        sub = ledger.get_submission(0, SUBMITTER)
        assert sub is not None
        assert sub.category == 0
        assert sub.value == 25
        assert sub.submitted_at == 50
        assert sub.proof_hash == PROOF
        assert result.value == sub

    def test_rejects_after_epoch_closed(self):
        ledger = _aggregation_ledger()
        ledger.close_epoch(_ctx(AUTHORITY, tick=150))
        result = ledger.submit(_ctx(tick=160), category=0, value=25, proof_hash=PROOF)
        assert not result.ok
        assert result.error == LedgerError.EPOCH_CLOSED
        assert result.code == 101
        assert result.kind == ErrorKind.LIFECYCLE_VIOLATION

    def test_rejects_after_window_expired(self):
        ledger = _aggregation_ledger()
        result = ledger.submit(_ctx(tick=100), category=0, value=25, proof_hash=PROOF)
        assert result.error == LedgerError.EPOCH_CLOSED
        assert result.code == 101

    def test_last_tick_of_window_accepted(self):
        ledger = _aggregation_ledger()
        assert ledger.submit(_ctx(tick=99), category=0, value=25, proof_hash=PROOF).ok

    def test_window_not_enforced_when_toggled_off(self):
        ledger = _aggregation_ledger(enforce_window_on_submit=False)
        assert ledger.submit(_ctx(tick=5000), category=0, value=25, proof_hash=PROOF).ok

    def test_rejects_invalid_category(self):
        ledger = _aggregation_ledger()
        result = ledger.submit(_ctx(), category=10, value=25, proof_hash=PROOF)
        assert result.error == LedgerError.INVALID_CATEGORY
        assert result.code == 105
        assert result.kind == ErrorKind.VALIDATION_ERROR

    def test_invalid_category_wins_over_other_bad_fields(self):
        ledger = _aggregation_ledger()
        result = ledger.submit(_ctx(), category=10, value=0, proof_hash=b"")
        assert result.error == LedgerError.INVALID_CATEGORY

    def test_rejects_negative_category(self):
        ledger = _aggregation_ledger()
        result = ledger.submit(_ctx(), category=-1, value=25, proof_hash=PROOF)
        assert result.error == LedgerError.INVALID_CATEGORY

    def test_rejects_zero_value(self):
        ledger = _aggregation_ledger()
        result = ledger.submit(_ctx(), category=0, value=0, proof_hash=PROOF)
        assert result.error == LedgerError.INVALID_VALUE
        assert result.code == 106

    def test_large_value_accepted(self):
        ledger = _aggregation_ledger()
        assert ledger.submit(_ctx(), category=0, value=10**30, proof_hash=PROOF).ok

    def test_rejects_zero_proof_hash(self):
        ledger = _aggregation_ledger()
        result = ledger.submit(_ctx(), category=0, value=25, proof_hash=bytes(32))
        assert result.error == LedgerError.INVALID_PROOF
        assert result.code == 104

    def test_rejects_short_proof_hash(self):
        ledger = _aggregation_ledger()
        result = ledger.submit(_ctx(), category=0, value=25, proof_hash=bytes([1]) * 31)
        assert result.error == LedgerError.INVALID_PROOF

    def test_rejects_non_bytes_proof_hash(self):
        ledger = _aggregation_ledger()
        result = ledger.submit(_ctx(), category=0, value=25, proof_hash="01" * 32)
        assert result.error == LedgerError.INVALID_PROOF

    def test_prevents_duplicate_submissions(self):
        ledger = _aggregation_ledger()
        ledger.submit(_ctx(), category=0, value=25, proof_hash=PROOF)
        result = ledger.submit(_ctx(tick=60), category=1, value=30, proof_hash=bytes([2]) * 32)
        assert result.error == LedgerError.DUPLICATE_SUBMISSION
        assert result.code == 103
        assert result.kind == ErrorKind.DUPLICATE_WRITE

        sub = ledger.get_submission(0, SUBMITTER)
        assert sub.category == 0
        assert sub.value == 25
        assert sub.submitted_at == 50
        assert ledger.get_category_total(0, 1) is None

    def test_same_participant_may_submit_in_next_epoch(self):
        ledger = _aggregation_ledger()
        ledger.submit(_ctx(), category=0, value=25, proof_hash=PROOF)
        ledger.force_new_epoch(_ctx(AUTHORITY, tick=60))
        assert ledger.submit(_ctx(tick=61), category=0, value=30, proof_hash=PROOF).ok
        assert ledger.get_submission(1, SUBMITTER).value == 30

    def test_optional_location_is_validated_when_given(self):
        ledger = _aggregation_ledger()
        result = ledger.submit(_ctx(), category=0, value=25, proof_hash=PROOF, location="")
        assert result.error == LedgerError.INVALID_LOCATION
        assert result.code == 107


class TestDemographicProfile:

    def _submit(self, ledger, caller=SUBMITTER, **fields):
        defaults = dict(category=2, value=150, location="Downtown", age_range=3, proof_hash=PROOF)
        defaults.update(fields)
        return ledger.submit(_ctx(caller, tick=100), **defaults)

    def test_submits_valid_data(self):
        ledger = _demographic_ledger()
        result = self._submit(ledger)
        assert result.ok
        sub = ledger.get_submission(0, SUBMITTER)
        assert sub.category == 2
        assert sub.value == 150
        assert sub.location == "Downtown"
        assert sub.age_range == 3
        assert sub.submitted_at == 100

    def test_rejects_after_epoch_closed(self):
        ledger = _demographic_ledger()
        ledger.close_epoch(_ctx(AUTHORITY, tick=100))
        result = self._submit(ledger, category=1, value=100, location="Suburb", age_range=2)
        assert result.error == LedgerError.EPOCH_CLOSED
        assert result.code == 101

    def test_no_window_means_any_tick_is_open(self):
        ledger = _demographic_ledger()
        result = ledger.submit(
            _ctx(tick=10_000), category=1, value=100, location="City", age_range=1, proof_hash=PROOF,
        )
        assert result.ok

    def test_rejects_invalid_category(self):
        result = self._submit(_demographic_ledger(), category=15)
        assert result.error == LedgerError.INVALID_CATEGORY
        assert result.code == 103

    @pytest.mark.parametrize("value", [0, 1001])
    def test_rejects_value_out_of_range(self, value):
        result = self._submit(_demographic_ledger(), value=value)
        assert result.error == LedgerError.INVALID_VALUE
        assert result.code == 104

    @pytest.mark.parametrize("value", [1, 1000])
    def test_accepts_value_bounds(self, value):
        assert self._submit(_demographic_ledger(), value=value).ok

    def test_rejects_empty_location(self):
        result = self._submit(_demographic_ledger(), location="")
        assert result.error == LedgerError.INVALID_LOCATION
        assert result.code == 107

    def test_rejects_missing_location(self):
        result = self._submit(_demographic_ledger(), location=None)
        assert result.error == LedgerError.INVALID_LOCATION

    def test_rejects_long_location(self):
        result = self._submit(_demographic_ledger(), location="A" * 51)
        assert result.error == LedgerError.INVALID_LOCATION

    def test_accepts_fifty_character_location(self):
        assert self._submit(_demographic_ledger(), location="A" * 50).ok

    def test_location_length_counts_utf16_units(self):
        # Each emoji is one code point but two UTF-16 units
        assert self._submit(_demographic_ledger(), location="\U0001F600" * 25).ok
        result = self._submit(_demographic_ledger(), location="\U0001F600" * 26)
        assert result.error == LedgerError.INVALID_LOCATION

    def test_non_ascii_bmp_location_counts_once(self):
        assert self._submit(_demographic_ledger(), location="\u00e9" * 50).ok

    def test_rejects_invalid_age_range(self):
        result = self._submit(_demographic_ledger(), age_range=6)
        assert result.error == LedgerError.INVALID_AGE_RANGE
        assert result.code == 108

    def test_rejects_missing_age_range(self):
        result = self._submit(_demographic_ledger(), age_range=None)
        assert result.error == LedgerError.INVALID_AGE_RANGE

    def test_rejects_zero_proof_hash(self):
        result = self._submit(_demographic_ledger(), proof_hash=bytes(32))
        assert result.error == LedgerError.INVALID_PROOF
        assert result.code == 109

    def test_rejects_incorrect_proof_length(self):
        result = self._submit(_demographic_ledger(), proof_hash=bytes([1]) * 31)
        assert result.error == LedgerError.INVALID_PROOF
        assert result.code == 109

    def test_prevents_duplicate_submissions(self):
        ledger = _demographic_ledger()
        self._submit(ledger, category=1, value=100, location="City", age_range=1)
        result = self._submit(
            ledger, category=2, value=200, location="Suburb", age_range=2, proof_hash=bytes([2]) * 32,
        )
        assert result.error == LedgerError.DUPLICATE_SUBMISSION
        assert result.code == 105


class TestRunningTotals:

    def test_category_total_sums_accepted_values(self):
        ledger = _aggregation_ledger()
        values = {"A": 10, "B": 20, "C": 25}
        for caller, value in values.items():
            assert ledger.submit(_ctx(caller), category=4, value=value, proof_hash=PROOF).ok

        total = ledger.get_category_total(0, 4)
        assert total.sum == 55
        assert total.count == 3

    def test_rejected_submission_does_not_touch_totals(self):
        ledger = _aggregation_ledger()
        ledger.submit(_ctx("A"), category=4, value=10, proof_hash=PROOF)
        ledger.submit(_ctx("A"), category=4, value=99, proof_hash=PROOF)
        ledger.submit(_ctx("B"), category=4, value=0, proof_hash=PROOF)

        total = ledger.get_category_total(0, 4)
        assert total.sum == 10
        assert total.count == 1

    def test_totals_only_exist_for_used_categories(self):
        ledger = _aggregation_ledger()
        ledger.submit(_ctx("A"), category=3, value=10, proof_hash=PROOF)
        assert ledger.get_category_total(0, 3) is not None
        for category in (0, 1, 2, 4, 5, 6, 7, 8, 9):
            assert ledger.get_category_total(0, category) is None

    def test_location_total_counts_submissions(self):
        ledger = _demographic_ledger()
        for caller, value in (("A", 100), ("B", 200)):
            ledger.submit(
                _ctx(caller), category=1, value=value, location="Harbor", age_range=1, proof_hash=PROOF,
            )
        ledger.submit(_ctx("C"), category=1, value=5, location="Hills", age_range=1, proof_hash=PROOF)

        harbor = ledger.get_location_total(0, "Harbor")
        assert harbor.count == 2
        assert harbor.sum == 300
        assert ledger.get_location_total(0, "Hills").count == 1
        assert ledger.get_location_total(1, "Harbor") is None

    def test_totals_are_scoped_per_epoch(self):
        ledger = _aggregation_ledger()
        ledger.submit(_ctx("A"), category=0, value=10, proof_hash=PROOF)
        ledger.force_new_epoch(_ctx(AUTHORITY, tick=60))
        ledger.submit(_ctx("A", tick=61), category=0, value=40, proof_hash=PROOF)

        assert ledger.get_category_total(0, 0).sum == 10
        assert ledger.get_category_total(1, 0).sum == 40
