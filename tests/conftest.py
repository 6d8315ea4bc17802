"""Shared pytest fixtures."""

import os

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys import keys

from walletauth.services.challenge_store import ChallengeStore

SETTINGS_ENV_VARS = (
    "CHALLENGE_EXPIRATION_MILLIS",
    "MESSAGE_TEMPLATE",
    "SESSION_TTL_SECONDS",
    "SESSION_EXPIRING_SOON_SECONDS",
    "CHALLENGE_RATE_LIMIT_WINDOW_SECONDS",
    "CHALLENGE_RATE_LIMIT_MAX_REQUESTS",
    "JSON_LOGS",
)


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, millis: int) -> None:
        self.now += millis


@pytest.fixture(autouse=True)
def reset_settings_singleton():
    """Reset settings singleton before each test."""
    import walletauth.config

    walletauth.config._settings_instance = None
    yield
    walletauth.config._settings_instance = None


@pytest.fixture(autouse=True)
def clean_settings_env():
    """Keep settings tests independent of the caller's environment."""
    saved = {name: os.environ.pop(name) for name in SETTINGS_ENV_VARS if name in os.environ}
    yield
    for name in SETTINGS_ENV_VARS:
        os.environ.pop(name, None)
    os.environ.update(saved)


@pytest.fixture
def clock():
    """Controllable clock starting at 1700000000000 ms."""
    return FakeClock()


@pytest.fixture
def challenge_store(clock):
    """Challenge store driven by the fake clock."""
    return ChallengeStore(clock=clock)


@pytest.fixture
def wallet_pair():
    """Generate a test wallet address and private key for signing."""
    pk = keys.PrivateKey(b"\x01" * 32)
    account = Account.from_key(pk.to_bytes())
    return {
        "address": account.address,
        "private_key": pk,
        "account": account,
    }


@pytest.fixture
def other_wallet():
    """A second, unrelated wallet."""
    return Account.from_key(b"\x02" * 32)


@pytest.fixture
def sign():
    """personal_sign a message, returning the 0x-prefixed 130-hex-char signature."""

    def _sign(account, message: str) -> str:
        signature = account.sign_message(encode_defunct(text=message)).signature
        return "0x" + bytes(signature).hex()

    return _sign
