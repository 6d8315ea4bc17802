"""secp256k1 point arithmetic and ECDSA public key recovery.

Recovery reconstructs the ephemeral point R from the signature's r value,
then solves Q = r^-1 * (s*R - e*G) for the signer's public key. Scalar
multiplication runs in Jacobian coordinates; results are normalized to
affine ``Point`` values before leaving this module.
"""

from dataclasses import dataclass
from typing import Optional

# Curve y^2 = x^3 + 7 over F_p
P = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEFFFFFC2F
N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
B = 7
GX = 0x79BE667EF9DCBBAC55A06295CE870B07029BFCDB2DCE28D959F2815B16F81798
GY = 0x483ADA7726A3C4655DA4FBFC0E1108A8FD17B448A68554199C47D08FFB10D4B8


@dataclass(frozen=True)
class Point:
    """Affine point on secp256k1. The point at infinity is never represented."""

    x: int
    y: int

    def is_on_curve(self) -> bool:
        return (self.y * self.y - self.x * self.x * self.x - B) % P == 0

    def to_bytes(self) -> bytes:
        """Uncompressed SEC1 encoding: 0x04 || x || y."""
        return b"\x04" + self.x.to_bytes(32, "big") + self.y.to_bytes(32, "big")


G = Point(GX, GY)

# Jacobian (X, Y, Z) represents affine (X/Z^2, Y/Z^3); Z == 0 is infinity.
_INFINITY = (0, 1, 0)


def mod_inverse(a: int, m: int) -> int:
    """Modular inverse of ``a`` mod ``m``.

    Raises:
        ValueError: If ``a`` is not invertible mod ``m``.
    """
    if a % m == 0:
        raise ValueError("zero has no modular inverse")
    return pow(a, -1, m)


def mod_sqrt(a: int, p: int = P) -> Optional[int]:
    """Square root of ``a`` modulo an odd prime ``p``.

    Uses a^((p+1)/4) when p = 3 (mod 4), which covers secp256k1; any other
    prime goes through Tonelli-Shanks. The candidate is checked by squaring,
    so a quadratic non-residue yields None instead of a wrong root.
    """
    a %= p
    if a == 0:
        return 0
    if p == 2:
        return a

    if p % 4 == 3:
        root = pow(a, (p + 1) // 4, p)
        return root if root * root % p == a else None

    # Euler's criterion
    if pow(a, (p - 1) // 2, p) != 1:
        return None

    # p - 1 = q * 2^s with q odd
    q, s = p - 1, 0
    while q % 2 == 0:
        q //= 2
        s += 1

    z = 2
    while pow(z, (p - 1) // 2, p) != p - 1:
        z += 1

    m = s
    c = pow(z, q, p)
    t = pow(a, q, p)
    root = pow(a, (q + 1) // 2, p)
    while t != 1:
        # least i with t^(2^i) == 1
        i, t2 = 0, t
        while t2 != 1:
            t2 = t2 * t2 % p
            i += 1
            if i == m:
                return None
        b = pow(c, 1 << (m - i - 1), p)
        m = i
        c = b * b % p
        t = t * c % p
        root = root * b % p

    return root if root * root % p == a else None


def _to_jacobian(point: Point) -> tuple[int, int, int]:
    return (point.x, point.y, 1)


def _to_affine(jp: tuple[int, int, int]) -> Optional[Point]:
    x, y, z = jp
    if z == 0:
        return None
    z_inv = mod_inverse(z, P)
    z_inv2 = z_inv * z_inv % P
    return Point(x * z_inv2 % P, y * z_inv2 * z_inv % P)


def _jacobian_double(jp: tuple[int, int, int]) -> tuple[int, int, int]:
    x, y, z = jp
    if z == 0 or y == 0:
        return _INFINITY
    yy = y * y % P
    s = 4 * x * yy % P
    m = 3 * x * x % P
    nx = (m * m - 2 * s) % P
    ny = (m * (s - nx) - 8 * yy * yy) % P
    nz = 2 * y * z % P
    return (nx, ny, nz)


def _jacobian_add(
    p1: tuple[int, int, int], p2: tuple[int, int, int]
) -> tuple[int, int, int]:
    x1, y1, z1 = p1
    x2, y2, z2 = p2
    if z1 == 0:
        return p2
    if z2 == 0:
        return p1
    z1z1 = z1 * z1 % P
    z2z2 = z2 * z2 % P
    u1 = x1 * z2z2 % P
    u2 = x2 * z1z1 % P
    s1 = y1 * z2 * z2z2 % P
    s2 = y2 * z1 * z1z1 % P
    if u1 == u2:
        if s1 != s2:
            return _INFINITY
        return _jacobian_double(p1)
    h = (u2 - u1) % P
    r = (s2 - s1) % P
    hh = h * h % P
    hhh = h * hh % P
    v = u1 * hh % P
    nx = (r * r - hhh - 2 * v) % P
    ny = (r * (v - nx) - s1 * hhh) % P
    nz = h * z1 * z2 % P
    return (nx, ny, nz)


def _jacobian_multiply(jp: tuple[int, int, int], k: int) -> tuple[int, int, int]:
    result = _INFINITY
    addend = jp
    while k:
        if k & 1:
            result = _jacobian_add(result, addend)
        addend = _jacobian_double(addend)
        k >>= 1
    return result


def point_add(p1: Optional[Point], p2: Optional[Point]) -> Optional[Point]:
    """Add two affine points; None stands for the point at infinity."""
    if p1 is None:
        return p2
    if p2 is None:
        return p1
    return _to_affine(_jacobian_add(_to_jacobian(p1), _to_jacobian(p2)))


def point_multiply(point: Point, k: int) -> Optional[Point]:
    """Scalar multiplication k * point (k reduced mod N). None means infinity."""
    k %= N
    if k == 0:
        return None
    return _to_affine(_jacobian_multiply(_to_jacobian(point), k))


def public_key_from_private(private_key: int) -> Point:
    """Derive d * G. Used by tests and tooling, never on the verification path."""
    if not 0 < private_key < N:
        raise ValueError("private key must lie in [1, n-1]")
    return point_multiply(G, private_key)


def decompress_point(x: int, odd: bool) -> Optional[Point]:
    """Rebuild the curve point with the given x and y parity.

    Returns None when x is not a field element or x^3 + 7 has no square
    root mod p (x is not the abscissa of any curve point).
    """
    if not 0 <= x < P:
        return None
    y_squared = (pow(x, 3, P) + B) % P
    y = mod_sqrt(y_squared, P)
    if y is None:
        return None
    if (y & 1) != int(odd):
        y = P - y
    return Point(x, y)


def recover_public_key(e: int, r: int, s: int, recovery_id: int) -> Optional[Point]:
    """Recover the public key candidate selected by ``recovery_id``.

    Args:
        e: Message hash as an unsigned big-endian integer.
        r: Signature r scalar, 0 < r < N.
        s: Signature s scalar, 0 < s < N.
        recovery_id: Candidate index in 0..3. Bit 1 selects x = r + N,
            bit 0 selects an odd y for R.

    Returns:
        The recovered public key, or None when this candidate does not
        decode to a valid point.
    """
    if not 0 <= recovery_id <= 3:
        return None
    if not (0 < r < N and 0 < s < N):
        return None

    x = r + N if recovery_id >= 2 else r
    if x >= P:
        return None

    big_r = decompress_point(x, odd=bool(recovery_id & 1))
    if big_r is None:
        return None

    r_inv = mod_inverse(r, N)
    u1 = (-e * r_inv) % N
    u2 = (s * r_inv) % N

    # Q = u1*G + u2*R
    q = _jacobian_add(
        _jacobian_multiply(_to_jacobian(G), u1),
        _jacobian_multiply(_to_jacobian(big_r), u2),
    )
    return _to_affine(q)
