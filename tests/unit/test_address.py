"""Unit tests for address normalization."""
from __future__ import annotations

import base64

import base58
import pytest

from incrypt_wallet.address import (
    ADDRESS_LENGTH,
    SYSTEM_PROGRAM_ADDRESS,
    address_from_bytes,
    address_to_bytes,
    canonical_address,
    encode_wallet_address,
    is_canonical_address,
    looks_base64,
    normalize_address,
)
from incrypt_wallet.errors import AddressNormalizationFailed, AuthorizationFailed


class _KeyWithBase58:
    def __init__(self, address: str) -> None:
        self._address = address

    def to_base58(self) -> str:
        return self._address


class _KeyWithBytes:
    def __init__(self, raw: bytes) -> None:
        self._raw = raw

    def __bytes__(self) -> bytes:
        return self._raw


class TestCanonicalAddress:
    def test_valid_address_unchanged(self, sample_address: str) -> None:
        assert canonical_address(sample_address) == sample_address

    def test_decodes_to_32_bytes(self, sample_address: str, sample_key_bytes: bytes) -> None:
        assert address_to_bytes(sample_address) == sample_key_bytes

    def test_system_program_is_all_zero(self) -> None:
        assert address_to_bytes(SYSTEM_PROGRAM_ADDRESS) == bytes(ADDRESS_LENGTH)

    def test_wrong_length_rejected(self) -> None:
        short = base58.b58encode(bytes(range(31))).decode()
        with pytest.raises(AddressNormalizationFailed):
            canonical_address(short)

    def test_invalid_characters_rejected(self) -> None:
        with pytest.raises(AddressNormalizationFailed):
            canonical_address("0OIl" * 11)

    def test_is_canonical_address(self, sample_address: str) -> None:
        assert is_canonical_address(sample_address) is True
        assert is_canonical_address("nope") is False
        assert is_canonical_address(None) is False


class TestNormalizeAddress:
    def test_base58_string(self, sample_address: str) -> None:
        assert normalize_address(sample_address) == sample_address

    def test_idempotent(self, sample_key_bytes: bytes) -> None:
        for value in (
            address_from_bytes(sample_key_bytes),
            encode_wallet_address(sample_key_bytes),
            sample_key_bytes,
        ):
            once = normalize_address(value)
            assert normalize_address(once) == once

    def test_base64_round_trip(self) -> None:
        for raw in (bytes(range(32)), bytes([0xFB] * 32), bytes([7] * 32)):
            assert normalize_address(encode_wallet_address(raw)) == address_from_bytes(raw)

    def test_unpadded_base64(self) -> None:
        raw = bytes([0xFB] * 32)
        unpadded = base64.b64encode(raw).decode().rstrip("=")
        assert normalize_address(unpadded) == address_from_bytes(raw)

    def test_raw_bytes(self, sample_key_bytes: bytes, sample_address: str) -> None:
        assert normalize_address(sample_key_bytes) == sample_address
        assert normalize_address(bytearray(sample_key_bytes)) == sample_address

    def test_int_list(self, sample_key_bytes: bytes, sample_address: str) -> None:
        assert normalize_address(list(sample_key_bytes)) == sample_address

    def test_key_object_with_to_base58(self, sample_address: str) -> None:
        assert normalize_address(_KeyWithBase58(sample_address)) == sample_address

    def test_key_object_with_bytes(self, sample_key_bytes: bytes, sample_address: str) -> None:
        assert normalize_address(_KeyWithBytes(sample_key_bytes)) == sample_address

    @pytest.mark.parametrize("length", [0, 31, 33, 64])
    def test_wrong_length_bytes_rejected(self, length: int) -> None:
        with pytest.raises(AddressNormalizationFailed):
            normalize_address(bytes(length))

    def test_wrong_length_base64_rejected(self) -> None:
        with pytest.raises(AddressNormalizationFailed):
            normalize_address(base64.b64encode(bytes(31)).decode())

    def test_none_rejected(self) -> None:
        with pytest.raises(AddressNormalizationFailed):
            normalize_address(None)

    def test_garbage_rejected(self) -> None:
        with pytest.raises(AddressNormalizationFailed):
            normalize_address("definitely not an address!")

    def test_error_is_value_and_authorization_error(self) -> None:
        with pytest.raises(ValueError):
            normalize_address("")
        with pytest.raises(AuthorizationFailed):
            normalize_address("")

    def test_never_returns_placeholder(self) -> None:
        with pytest.raises(AddressNormalizationFailed):
            normalize_address(bytes(5))


class TestLooksBase64:
    def test_markers(self) -> None:
        assert looks_base64("abc=")
        assert looks_base64("a+b")
        assert looks_base64("a/b")
        assert not looks_base64("abc")
