"""
Unit tests for input validation and identity helpers.
"""

import pytest

from lossless.crypto import (
    address_from_name,
    address_from_public_key,
    bytes_to_hex,
    generate_keypair,
    hex_to_bytes,
    keccak256,
)
from lossless.utils.validation import (
    MAX_AMOUNT,
    validate_address,
    validate_integer,
    validate_positive_amount,
)


class TestValidators:
    def test_address(self):
        assert validate_address(bytes(20)) == (True, "")
        valid, err = validate_address(bytes(19))
        assert not valid
        assert "20 bytes" in err
        valid, err = validate_address("0x" + "00" * 20)
        assert not valid
        assert "must be bytes" in err

    def test_amount_bounds(self):
        assert validate_integer(0, "amount")[0]
        assert validate_integer(MAX_AMOUNT, "amount")[0]
        assert not validate_integer(-1, "amount")[0]
        assert not validate_integer(MAX_AMOUNT + 1, "amount")[0]

    def test_amount_rejects_non_integers(self):
        for value in (1.5, "10", None, True):
            valid, err = validate_integer(value, "amount")
            assert not valid
            assert "must be int" in err

    def test_positive_amount(self):
        assert validate_positive_amount(1)[0]
        valid, err = validate_positive_amount(0, "duration")
        assert not valid
        assert err.startswith("duration")


class TestIdentities:
    def test_keccak_empty_vector(self):
        assert keccak256(b"").hex() == (
            "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
        )

    def test_keypair_address(self):
        kp = generate_keypair()
        assert len(kp.private_key) == 32
        assert len(kp.public_key) == 64
        assert kp.address == address_from_public_key(kp.public_key)
        assert len(kp.address) == 20

    def test_distinct_keypairs(self):
        assert generate_keypair().address != generate_keypair().address

    def test_named_addresses_are_stable(self):
        assert address_from_name("auction-house") == address_from_name("auction-house")
        assert address_from_name("auction-house") != address_from_name("token:TST")

    def test_hex_roundtrip(self):
        address = address_from_name("x")
        assert hex_to_bytes(bytes_to_hex(address)) == address
        assert hex_to_bytes("ABCD") == b"\xab\xcd"

    def test_public_key_length_checked(self):
        with pytest.raises(ValueError):
            address_from_public_key(b"\x00" * 33)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
