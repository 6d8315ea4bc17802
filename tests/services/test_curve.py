"""Tests for secp256k1 arithmetic, modular square roots and key recovery."""

import pytest
from eth_keys import keys

from walletauth.services.curve import (
    G,
    N,
    P,
    Point,
    decompress_point,
    mod_inverse,
    mod_sqrt,
    point_add,
    point_multiply,
    public_key_from_private,
    recover_public_key,
)
from walletauth.services.message_codec import hash_to_int, personal_message_hash

TWO_G = Point(
    0xC6047F9441ED7D6D3045406E95C07CD85C778E4B8CEF3CA7ABAC09B95C709EE5,
    0x1AE168FEA63DC339A3C58419466CEAEEF7F632653266D0E1236431A950CFE52A,
)


def _point_from_eth_key(private_key: keys.PrivateKey) -> Point:
    raw = private_key.public_key.to_bytes()
    return Point(int.from_bytes(raw[:32], "big"), int.from_bytes(raw[32:], "big"))


class TestModSqrt:
    """Tests for mod_sqrt()."""

    def test_fast_path_on_secp256k1_field(self):
        """Square of a known value has a root that squares back."""
        a = pow(0x1234567890ABCDEF, 2, P)
        root = mod_sqrt(a, P)
        assert root is not None
        assert root * root % P == a

    def test_non_residue_returns_none(self):
        """A quadratic non-residue has no root and is detected."""
        non_residue = next(a for a in range(2, 100) if pow(a, (P - 1) // 2, P) != 1)
        assert mod_sqrt(non_residue, P) is None

    def test_zero(self):
        assert mod_sqrt(0, P) == 0

    def test_tonelli_shanks_small_prime(self):
        """p = 13 is 1 mod 4, so the general algorithm runs."""
        assert mod_sqrt(10, 13) in (6, 7)

    def test_tonelli_shanks_detects_non_residue(self):
        """3 is not a square mod 17."""
        assert mod_sqrt(3, 17) is None
        assert mod_sqrt(2, 17) in (6, 11)

    def test_tonelli_shanks_every_residue_mod_41(self):
        """41 - 1 = 5 * 2^3 exercises several Tonelli-Shanks rounds."""
        roots = {a: mod_sqrt(a, 41) for a in range(1, 41)}
        found = {a: r for a, r in roots.items() if r is not None}
        assert len(found) == 20
        for a, r in found.items():
            assert r * r % 41 == a


class TestPointArithmetic:
    """Tests for point addition and multiplication."""

    def test_generator_on_curve(self):
        assert G.is_on_curve()

    def test_double_generator(self):
        assert point_multiply(G, 2) == TWO_G
        assert point_add(G, G) == TWO_G

    def test_add_matches_multiply(self):
        three_g = point_add(TWO_G, G)
        assert three_g == point_multiply(G, 3)
        assert three_g.is_on_curve()

    def test_order_times_generator_is_infinity(self):
        assert point_multiply(G, N) is None

    def test_point_plus_negation_is_infinity(self):
        negated = Point(G.x, P - G.y)
        assert point_add(G, negated) is None

    def test_infinity_is_identity(self):
        assert point_add(None, G) == G
        assert point_add(G, None) == G

    def test_public_key_matches_eth_keys(self):
        """Key derivation agrees with an independent implementation."""
        pk = keys.PrivateKey(b"\x07" * 32)
        derived = public_key_from_private(int.from_bytes(b"\x07" * 32, "big"))
        assert derived == _point_from_eth_key(pk)

    def test_public_key_rejects_out_of_range(self):
        with pytest.raises(ValueError):
            public_key_from_private(0)
        with pytest.raises(ValueError):
            public_key_from_private(N)

    def test_uncompressed_encoding(self):
        encoded = G.to_bytes()
        assert len(encoded) == 65
        assert encoded[0] == 0x04
        assert int.from_bytes(encoded[1:33], "big") == G.x
        assert int.from_bytes(encoded[33:], "big") == G.y

    def test_mod_inverse_of_zero_raises(self):
        with pytest.raises(ValueError):
            mod_inverse(0, N)


class TestDecompressPoint:
    """Tests for decompress_point()."""

    def test_recovers_generator_from_x_and_parity(self):
        assert decompress_point(G.x, odd=bool(G.y & 1)) == G
        assert decompress_point(G.x, odd=not (G.y & 1)) == Point(G.x, P - G.y)

    def test_x_without_curve_point_returns_none(self):
        bad_x = next(x for x in range(1, 200) if mod_sqrt((x ** 3 + 7) % P, P) is None)
        assert decompress_point(bad_x, odd=False) is None

    def test_x_outside_field_returns_none(self):
        assert decompress_point(P, odd=False) is None


class TestRecoverPublicKey:
    """Tests for recover_public_key()."""

    @pytest.fixture
    def signed(self):
        pk = keys.PrivateKey(b"\x01" * 32)
        digest = personal_message_hash("Login nonce:n1 ts:1700000000000")
        sig = pk.sign_msg_hash(digest)
        return pk, hash_to_int(digest), sig

    def test_recovers_signer_with_signature_recovery_id(self, signed):
        pk, e, sig = signed
        recovered = recover_public_key(e, sig.r, sig.s, sig.v)
        assert recovered == _point_from_eth_key(pk)

    def test_exactly_one_candidate_is_signer(self, signed):
        pk, e, sig = signed
        expected = _point_from_eth_key(pk)
        candidates = [recover_public_key(e, sig.r, sig.s, rid) for rid in range(4)]
        assert candidates.count(expected) == 1

    def test_wrong_parity_yields_different_key(self, signed):
        pk, e, sig = signed
        other = recover_public_key(e, sig.r, sig.s, sig.v ^ 1)
        assert other is not None
        assert other != _point_from_eth_key(pk)
        assert other.is_on_curve()

    def test_high_candidates_skipped_when_x_overflows(self, signed):
        """Candidates 2 and 3 need r + n < p, which fails for typical r."""
        _, e, sig = signed
        assert sig.r + N >= P
        assert recover_public_key(e, sig.r, sig.s, 2) is None
        assert recover_public_key(e, sig.r, sig.s, 3) is None

    def test_high_candidate_used_when_x_fits(self):
        """r = 1 leaves room for x = r + n below p."""
        x = 1 + N
        candidate = recover_public_key(12345, 1, 1, 2)
        if mod_sqrt((pow(x, 3, P) + 7) % P, P) is None:
            assert candidate is None
        else:
            assert candidate is not None
            assert candidate.is_on_curve()

    @pytest.mark.parametrize("recovery_id", [-1, 4, 27])
    def test_invalid_recovery_id(self, signed, recovery_id):
        _, e, sig = signed
        assert recover_public_key(e, sig.r, sig.s, recovery_id) is None

    @pytest.mark.parametrize("r, s", [(0, 1), (1, 0), (N, 1), (1, N)])
    def test_out_of_range_scalars(self, r, s):
        assert recover_public_key(1, r, s, 0) is None
