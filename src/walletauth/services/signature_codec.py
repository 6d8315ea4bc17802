"""Parsing of 65-byte r || s || v signatures from hex."""

import re
from dataclasses import dataclass

from walletauth.exceptions import InvalidSignatureError
from walletauth.services.curve import N

SIGNATURE_HEX_LENGTH = 130

_HEX_PATTERN = re.compile(r"[0-9a-fA-F]+")


@dataclass(frozen=True)
class Signature:
    """Decoded ECDSA signature.

    ``recovery_id`` is the normalized v byte (27/28 become 0/1). It is kept
    for diagnostics only; verification tries every candidate.
    """

    r: int
    s: int
    recovery_id: int


def parse_signature(signature: str) -> Signature:
    """Parse a hex signature into its r, s and recovery id.

    Args:
        signature: 130 hex characters, optionally prefixed with 0x.

    Returns:
        The decoded Signature.

    Raises:
        InvalidSignatureError: If the length is wrong, the text is not hex,
            or r/s lie outside [1, n-1].
    """
    if not isinstance(signature, str):
        raise InvalidSignatureError("Signature must be a hex string")

    body = signature[2:] if signature[:2] in ("0x", "0X") else signature
    if len(body) != SIGNATURE_HEX_LENGTH:
        raise InvalidSignatureError(
            f"Signature must be {SIGNATURE_HEX_LENGTH} hex characters, got {len(body)}"
        )

    # bytes.fromhex tolerates whitespace, so check the alphabet first
    if not _HEX_PATTERN.fullmatch(body):
        raise InvalidSignatureError("Signature contains non-hex characters")
    raw = bytes.fromhex(body)

    r = int.from_bytes(raw[0:32], "big")
    s = int.from_bytes(raw[32:64], "big")
    v = raw[64]
    recovery_id = v - 27 if v >= 27 else v

    if not 0 < r < N:
        raise InvalidSignatureError("Signature r value out of range")
    if not 0 < s < N:
        raise InvalidSignatureError("Signature s value out of range")

    return Signature(r=r, s=s, recovery_id=recovery_id)
