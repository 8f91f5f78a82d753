"""Canonical Solana address handling for wallet-adapter output.

Mobile wallets hand back public keys in several shapes: a base58 string,
a base64 string (the wallet-adapter wire format), raw bytes, or a key
object. Everything is funnelled into a base58 string that decodes to
exactly ``ADDRESS_LENGTH`` bytes.
"""
from __future__ import annotations

import base64
import binascii
import logging
from typing import Any

import base58

from .errors import AddressNormalizationFailed

logger = logging.getLogger(__name__)

ADDRESS_LENGTH = 32

# All-zero key. Only ever used for the explicit demo session.
SYSTEM_PROGRAM_ADDRESS = "11111111111111111111111111111111"

_BASE64_MARKERS = ("+", "/", "=")


def address_to_bytes(address: str) -> bytes:
    """Decode a canonical address, enforcing the fixed key length."""
    try:
        raw = base58.b58decode(address)
    except ValueError as e:
        raise AddressNormalizationFailed(f"Invalid base58 address {address!r}: {e}") from e
    if len(raw) != ADDRESS_LENGTH:
        raise AddressNormalizationFailed(
            f"Address {address!r} decodes to {len(raw)} bytes, expected {ADDRESS_LENGTH}"
        )
    return raw


def canonical_address(address: str) -> str:
    """Return ``address`` unchanged if it is a valid canonical address."""
    address_to_bytes(address)
    return address


def address_from_bytes(raw: bytes) -> str:
    """Encode a 32-byte public key as a canonical address."""
    if len(raw) != ADDRESS_LENGTH:
        raise AddressNormalizationFailed(
            f"Public key is {len(raw)} bytes, expected {ADDRESS_LENGTH}"
        )
    return base58.b58encode(bytes(raw)).decode("ascii")


def is_canonical_address(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        address_to_bytes(value)
    except AddressNormalizationFailed:
        return False
    return True


def looks_base64(value: str) -> bool:
    return any(marker in value for marker in _BASE64_MARKERS)


def encode_wallet_address(raw: bytes) -> str:
    """Encode a public key the way the wallet adapter sends it (padded base64)."""
    return base64.b64encode(bytes(raw)).decode("ascii")


def _from_base64(value: str) -> str:
    stripped = value.rstrip("=")
    padded = stripped + "=" * (-len(stripped) % 4)
    try:
        raw = base64.b64decode(padded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise AddressNormalizationFailed(f"Invalid base64 public key {value!r}: {e}") from e
    return address_from_bytes(raw)


def _unwrap(value: Any) -> str | bytes:
    """Reduce a wallet key object to either a string or raw bytes."""
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, (list, tuple)) and all(isinstance(b, int) for b in value):
        try:
            return bytes(value)
        except ValueError as e:
            raise AddressNormalizationFailed(f"Invalid public key byte list: {e}") from e
    if hasattr(value, "to_base58"):
        return value.to_base58()
    if hasattr(value, "__bytes__"):
        return bytes(value)
    if hasattr(value, "to_bytes"):
        return value.to_bytes()
    if hasattr(value, "to_string"):
        return value.to_string()
    return str(value)


def normalize_address(value: Any) -> str:
    """Convert wallet-adapter public key output into a canonical address.

    Raises:
        AddressNormalizationFailed: if no interpretation of ``value`` yields a
            valid 32-byte address. The caller decides whether to fall back to
            a placeholder; this function never invents one.
    """
    if value is None:
        raise AddressNormalizationFailed("No public key provided")

    unwrapped = _unwrap(value)
    if isinstance(unwrapped, bytes):
        return address_from_bytes(unwrapped)

    try:
        return canonical_address(unwrapped)
    except AddressNormalizationFailed as original:
        if not looks_base64(unwrapped):
            raise
        try:
            address = _from_base64(unwrapped)
        except AddressNormalizationFailed:
            raise original
        logger.debug("Normalized base64 public key to %s", address)
        return address
