"""Challenge-response authentication for Ethereum wallets.

A caller proves control of a private key by signing a one-time challenge
with personal_sign. The signer's public key is recovered from (r, s) by
trying all four recovery candidates, hashed into an address, and compared
with the claimed address.
"""

from typing import Iterator, Optional

import structlog

from walletauth.exceptions import InvalidAddressError, InvalidSignatureError
from walletauth.logging import abbreviate
from walletauth.services.address import addresses_equal, derive_address, is_valid_address
from walletauth.services.challenge_store import ChallengeStore
from walletauth.services.curve import recover_public_key
from walletauth.services.message_codec import (
    expand_template,
    hash_to_int,
    personal_message_hash,
)
from walletauth.services.signature_codec import Signature, parse_signature
from walletauth.utils import generate_nonce

logger = structlog.get_logger()

RECOVERY_IDS = (0, 1, 2, 3)

# Attempts at drawing an unused nonce before giving up
_NONCE_ATTEMPTS = 5


class AuthenticationEngine:
    """Issues challenges and verifies signed responses.

    The engine holds no global state: the challenge store is injected so
    one store can be shared by every request worker.
    """

    def __init__(
        self,
        challenge_store: ChallengeStore,
        message_template: str,
        challenge_expiration_millis: int,
    ):
        """Initialize the authentication engine.

        Args:
            challenge_store: Shared store of outstanding challenges.
            message_template: Challenge text with {nonce}/{timestamp} placeholders.
            challenge_expiration_millis: Challenge lifetime in milliseconds.
        """
        self._challenge_store = challenge_store
        self._message_template = message_template
        self._ttl_millis = challenge_expiration_millis

    @property
    def challenge_store(self) -> ChallengeStore:
        return self._challenge_store

    def generate_challenge(self, wallet_address: str) -> tuple[str, str]:
        """Create a challenge for the wallet to sign.

        Args:
            wallet_address: The Ethereum wallet address (0x + 40 hex chars).

        Returns:
            Tuple of (nonce, message).

        Raises:
            InvalidAddressError: If the address is malformed.
        """
        if not is_valid_address(wallet_address):
            raise InvalidAddressError("Invalid Ethereum address format")

        for _ in range(_NONCE_ATTEMPTS):
            nonce = generate_nonce()
            message = expand_template(
                self._message_template, nonce, self._challenge_store.now()
            )
            try:
                self._challenge_store.put(nonce, wallet_address, message, self._ttl_millis)
                break
            except ValueError:
                continue
        else:
            raise RuntimeError("Could not allocate a unique challenge nonce")

        logger.info(
            "Challenge created",
            wallet_address=abbreviate(wallet_address, 10),
            nonce=abbreviate(nonce),
        )
        return nonce, message

    def verify_challenge_signature(
        self, nonce: str, signature: str, wallet_address: str
    ) -> bool:
        """Verify a signed challenge, consuming its nonce.

        The nonce is consumed as soon as it is found, whatever the outcome of
        the signature check, so a failed attempt cannot be retried against
        the same challenge. Never raises: every failure is reported as False.

        Args:
            nonce: The challenge nonce.
            signature: 65-byte signature as hex (with or without 0x prefix).
            wallet_address: The claimed wallet address.

        Returns:
            True if the signature over the challenge was produced by the key
            behind ``wallet_address``.
        """
        log = logger.bind(
            wallet_address=abbreviate(wallet_address, 10),
            nonce=abbreviate(nonce),
        )

        try:
            message = self._challenge_store.take_if_valid(nonce, wallet_address)
            if message is None:
                log.warning("Challenge not found, expired or issued to another wallet")
                return False

            try:
                parsed = parse_signature(signature)
            except InvalidSignatureError as err:
                log.warning("Malformed signature", error=str(err))
                return False

            e = hash_to_int(personal_message_hash(message))
            for recovered in self._recovered_addresses(e, parsed):
                if addresses_equal(recovered, wallet_address):
                    log.info("Signature verified successfully")
                    return True

            log.warning("Signature does not match wallet address")
            return False
        except Exception as e:
            log.error("Unexpected error during signature verification", error=str(e))
            return False

    def recover_addresses(self, message: str, signature: str) -> list[str]:
        """Every address a signature over ``message`` could belong to.

        Stateless helper; does not touch the challenge store.

        Raises:
            InvalidSignatureError: If the signature is malformed.
        """
        parsed = parse_signature(signature)
        e = hash_to_int(personal_message_hash(message))
        return list(self._recovered_addresses(e, parsed))

    def _recovered_addresses(self, e: int, signature: Signature) -> Iterator[str]:
        for recovery_id in RECOVERY_IDS:
            address = self._recover_candidate(e, signature, recovery_id)
            if address is not None:
                yield address

    @staticmethod
    def _recover_candidate(e: int, signature: Signature, recovery_id: int) -> Optional[str]:
        public_key = recover_public_key(e, signature.r, signature.s, recovery_id)
        if public_key is None:
            return None
        return derive_address(public_key)
