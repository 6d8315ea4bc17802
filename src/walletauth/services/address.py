"""Ethereum address derivation and validation."""

import re

from walletauth.services.curve import Point
from walletauth.services.message_codec import keccak256

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_valid_address(address: str) -> bool:
    """Check for 0x followed by exactly 40 hex characters (any case)."""
    return isinstance(address, str) and ADDRESS_PATTERN.fullmatch(address) is not None


def derive_address(public_key: Point) -> str:
    """Map a public key to its lowercase 0x-prefixed 20-byte address.

    keccak256 runs over the 64-byte x || y encoding (the 0x04 marker of the
    uncompressed form is dropped) and the low 20 bytes are kept. No EIP-55
    checksum casing is applied.
    """
    digest = keccak256(public_key.to_bytes()[1:])
    return "0x" + digest[-20:].hex()


def addresses_equal(a: str, b: str) -> bool:
    """Case-insensitive address comparison."""
    return a.lower() == b.lower()
