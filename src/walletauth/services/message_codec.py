"""Challenge text construction and EIP-191 personal message hashing."""

from Crypto.Hash import keccak

PERSONAL_MESSAGE_PREFIX = "\x19Ethereum Signed Message:\n"


def keccak256(data: bytes) -> bytes:
    """Compute Keccak-256 (the pre-standard variant Ethereum uses, NOT SHA3-256)."""
    h = keccak.new(digest_bits=256)
    h.update(data)
    return h.digest()


def expand_template(template: str, nonce: str, timestamp: int) -> str:
    """Substitute the {nonce} and {timestamp} placeholders.

    Substitution is literal: no escaping, and braces other than the two
    placeholders are left untouched (unlike str.format).

    Args:
        template: Challenge template text.
        nonce: Challenge nonce.
        timestamp: Creation time in epoch milliseconds.

    Returns:
        The fully expanded challenge message.
    """
    return template.replace("{nonce}", nonce).replace("{timestamp}", str(timestamp))


def personal_message_hash(message: str) -> bytes:
    """Hash ``message`` the way wallets do for personal_sign.

    keccak256("\\x19Ethereum Signed Message:\\n" + len(message) + message),
    where the length is the decimal UTF-8 byte count of the message.
    """
    body = message.encode("utf-8")
    prefix = f"{PERSONAL_MESSAGE_PREFIX}{len(body)}".encode("utf-8")
    return keccak256(prefix + body)


def hash_to_int(digest: bytes) -> int:
    """Interpret a digest as an unsigned big-endian integer."""
    return int.from_bytes(digest, "big")
