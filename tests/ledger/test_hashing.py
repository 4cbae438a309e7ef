"""Tests for commitment digests and canonical hashing."""

import hashlib

import pytest

from tally.ledger.hashing import (
    commitment_hash,
    compute_hash,
    compute_section_hash,
    encode_uint,
    is_proof_length,
    is_well_formed_proof,
)
from tally.ledger.models import CategoryTotal


class TestEncodeUint:

    def test_fixed_width_big_endian(self):
        encoded = encode_uint(258)
        assert len(encoded) == 32
        assert encoded[-2:] == b"\x01\x02"
        assert encoded[:-2] == bytes(30)

    def test_zero(self):
        assert encode_uint(0) == bytes(32)

    @pytest.mark.parametrize("value", [-1, 2**256, True, 1.5, "1"])
    def test_rejects_non_unsigned(self, value):
        with pytest.raises(ValueError):
            encode_uint(value)


class TestCommitmentHash:

    def test_matches_manual_layout(self):
        payload = (
            (1).to_bytes(32, "big")
            + (500).to_bytes(32, "big")
            + "Downtown".encode("utf-8")
            + (2).to_bytes(32, "big")
        )
        assert commitment_hash(1, 500, "Downtown", 2) == hashlib.sha256(payload).digest()

    def test_is_32_bytes(self):
        assert len(commitment_hash(0, 1, "", 0)) == 32

    def test_changes_with_any_field(self):
        base = commitment_hash(1, 500, "Downtown", 2)
        assert commitment_hash(1, 501, "Downtown", 2) != base
        assert commitment_hash(2, 500, "Downtown", 2) != base
        assert commitment_hash(1, 500, "Downtowm", 2) != base
        assert commitment_hash(1, 500, "Downtown", 3) != base

    def test_utf8_location(self):
        assert commitment_hash(1, 1, "Zürich", 1) != commitment_hash(1, 1, "Zurich", 1)


class TestProofChecks:

    def test_proof_length(self):
        assert is_proof_length(bytes(32))
        assert is_proof_length(bytearray(32))
        assert not is_proof_length(bytes(31))
        assert not is_proof_length("00" * 32)

    def test_well_formed_requires_nonzero(self):
        assert not is_well_formed_proof(bytes(32))
        assert is_well_formed_proof(bytes(31) + b"\x01")
        assert not is_well_formed_proof(bytes([1]) * 33)


class TestCanonicalHash:

    def test_key_order_does_not_matter(self):
        assert compute_hash({"b": 2, "a": 1}) == compute_hash({"a": 1, "b": 2})

    def test_section_hash_of_models_and_dicts(self):
        total = CategoryTotal(epoch=0, category=1, sum=10, count=2)
        assert compute_section_hash(total) == compute_hash(total.model_dump(mode="json"))
        assert compute_section_hash([total]) == compute_hash({"items": [total.model_dump(mode="json")]})
        assert compute_section_hash("abc") == compute_hash({"value": "abc"})
