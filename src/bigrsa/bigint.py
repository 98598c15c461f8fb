"""Arbitrary-precision signed integers built from fixed-width limbs.

The whole RSA stack runs on `BigInt`, an immutable sign-magnitude integer. The magnitude is a little-endian tuple of
base 2**32 limbs without leading zero limbs, so every value has exactly one representation. Native ints are only used
for single limb (word sized) arithmetic and for conversions at the edges.

Division is floored like Python's own: for a positive divisor the remainder always lands in `[0, divisor)`, which is
the convention every modular operation in this package relies on.

Typical usage example:

    a = BigInt.from_str("123456789012345678901234567890")
    q, r = divmod(a, BigInt(97))
    raw = a.to_bytes()
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import random
from typing import Sequence

from bigrsa.errors import DivisionByZero

LIMB_BITS: int = 32
LIMB_BASE: int = 1 << LIMB_BITS
LIMB_MASK: int = LIMB_BASE - 1
_LIMB_BYTES: int = LIMB_BITS // 8
_DEC_BASE: int = 10**9
_DEC_DIGITS: int = 9


def _strip(mag: list[int]) -> list[int]:
    """Drop leading (most significant) zero limbs in place and return the list."""
    while mag and mag[-1] == 0:
        mag.pop()
    return mag


def _cmp_mag(a: Sequence[int], b: Sequence[int]) -> int:
    """Three-way comparison of two normalized magnitudes."""
    if len(a) != len(b):
        return 1 if len(a) > len(b) else -1
    for i in range(len(a) - 1, -1, -1):
        if a[i] != b[i]:
            return 1 if a[i] > b[i] else -1
    return 0


def _add_mag(a: Sequence[int], b: Sequence[int]) -> list[int]:
    if len(a) < len(b):
        a, b = b, a
    res = []
    carry = 0
    for i, limb in enumerate(b):
        t = a[i] + limb + carry
        res.append(t & LIMB_MASK)
        carry = t >> LIMB_BITS
    for i in range(len(b), len(a)):
        t = a[i] + carry
        res.append(t & LIMB_MASK)
        carry = t >> LIMB_BITS
    if carry:
        res.append(carry)
    return res


def _sub_mag(a: Sequence[int], b: Sequence[int]) -> list[int]:
    """Subtract magnitude `b` from magnitude `a`. Requires `a >= b`."""
    res = []
    borrow = 0
    for i, limb in enumerate(a):
        t = limb - (b[i] if i < len(b) else 0) - borrow
        if t < 0:
            t += LIMB_BASE
            borrow = 1
        else:
            borrow = 0
        res.append(t)
    return _strip(res)


def _mul_mag(a: Sequence[int], b: Sequence[int]) -> list[int]:
    """Schoolbook multiplication of two magnitudes."""
    if not a or not b:
        return []
    res = [0] * (len(a) + len(b))
    for i, ai in enumerate(a):
        if ai == 0:
            continue
        carry = 0
        for j, bj in enumerate(b):
            t = res[i + j] + ai * bj + carry
            res[i + j] = t & LIMB_MASK
            carry = t >> LIMB_BITS
        res[i + len(b)] = carry
    return _strip(res)


def _mul_small(a: Sequence[int], m: int, add: int = 0) -> list[int]:
    """Computes `a * m + add` for single limb `m` and `add`."""
    res = []
    carry = add
    for limb in a:
        t = limb * m + carry
        res.append(t & LIMB_MASK)
        carry = t >> LIMB_BITS
    while carry:
        res.append(carry & LIMB_MASK)
        carry >>= LIMB_BITS
    return _strip(res)


def _divmod_small(a: Sequence[int], d: int) -> tuple[list[int], int]:
    """Short division of a magnitude by a single nonzero limb."""
    q = [0] * len(a)
    r = 0
    for i in range(len(a) - 1, -1, -1):
        q[i], r = divmod((r << LIMB_BITS) | a[i], d)
    return _strip(q), r


def _shl_mag(a: Sequence[int], k: int) -> list[int]:
    if not a:
        return []
    limbs, bits = divmod(k, LIMB_BITS)
    res = [0] * limbs
    if bits == 0:
        res.extend(a)
        return res
    carry = 0
    for limb in a:
        t = (limb << bits) | carry
        res.append(t & LIMB_MASK)
        carry = t >> LIMB_BITS
    if carry:
        res.append(carry)
    return res


def _shr_mag(a: Sequence[int], k: int) -> list[int]:
    limbs, bits = divmod(k, LIMB_BITS)
    if limbs >= len(a):
        return []
    src = a[limbs:]
    if bits == 0:
        return list(src)
    res = []
    for i, limb in enumerate(src):
        hi = src[i + 1] if i + 1 < len(src) else 0
        res.append(((limb >> bits) | (hi << (LIMB_BITS - bits))) & LIMB_MASK)
    return _strip(res)


def _divmod_mag(u: Sequence[int], v: Sequence[int]) -> tuple[list[int], list[int]]:
    """Long division of magnitudes (Knuth, TAOCP Vol. 2, 4.3.1, Algorithm D).

    Args:
        u: The dividend magnitude.
        v: The divisor magnitude. Must be nonzero.

    Returns:
        The (quotient, remainder) magnitudes, remainder strictly below `v`.
    """
    if _cmp_mag(u, v) < 0:
        return [], list(u)
    if len(v) == 1:
        q, r = _divmod_small(u, v[0])
        return q, [r] if r else []
    # D1: normalize so the top divisor limb has its high bit set.
    shift = LIMB_BITS - v[-1].bit_length()
    vn = _shl_mag(v, shift)
    un = _shl_mag(u, shift)
    un.extend([0] * (len(u) + 1 - len(un)))
    n = len(vn)
    m = len(u) - n
    vtop, vsec = vn[-1], vn[-2]
    q = [0] * (m + 1)
    for j in range(m, -1, -1):
        # D3: estimate the quotient limb from the top two dividend limbs.
        qhat, rhat = divmod((un[j + n] << LIMB_BITS) | un[j + n - 1], vtop)
        while qhat >= LIMB_BASE or qhat * vsec > ((rhat << LIMB_BITS) | un[j + n - 2]):
            qhat -= 1
            rhat += vtop
            if rhat >= LIMB_BASE:
                break
        # D4: multiply and subtract.
        borrow = 0
        carry = 0
        for i in range(n):
            p = qhat * vn[i] + carry
            carry = p >> LIMB_BITS
            t = un[i + j] - (p & LIMB_MASK) - borrow
            un[i + j] = t & LIMB_MASK
            borrow = 1 if t < 0 else 0
        t = un[j + n] - carry - borrow
        un[j + n] = t & LIMB_MASK
        if t < 0:
            # D6: qhat was one too large, add the divisor back.
            qhat -= 1
            carry = 0
            for i in range(n):
                t = un[i + j] + vn[i] + carry
                un[i + j] = t & LIMB_MASK
                carry = t >> LIMB_BITS
            un[j + n] = (un[j + n] + carry) & LIMB_MASK
        q[j] = qhat
    # D8: unnormalize the remainder.
    return _strip(q), _shr_mag(_strip(un[:n]), shift)


class BigInt:
    """Immutable arbitrary-precision signed integer.

    Supports the usual arithmetic and comparison operators, mixing freely with native ints. Instances are hashable
    and compare (and hash) equal to the native int of the same value.

    Attributes:
        sign: -1, 0 or 1.
    """

    __slots__ = ("_sign", "_mag")
    _sign: int
    _mag: tuple[int, ...]

    def __init__(self, value: "int | str | BigInt" = 0) -> None:
        if isinstance(value, BigInt):
            sign, mag = value._sign, list(value._mag)
        elif isinstance(value, int):
            sign, mag = _from_native(value)
        elif isinstance(value, str):
            parsed = BigInt.from_str(value)
            sign, mag = parsed._sign, list(parsed._mag)
        else:
            raise TypeError(f"Cannot build a BigInt from {type(value).__name__}")
        object.__setattr__(self, "_sign", sign if mag else 0)
        object.__setattr__(self, "_mag", tuple(mag))

    @classmethod
    def _make(cls, sign: int, mag: list[int]) -> "BigInt":
        """Builds an instance directly from a normalized magnitude."""
        obj = cls.__new__(cls)
        object.__setattr__(obj, "_sign", sign if mag else 0)
        object.__setattr__(obj, "_mag", tuple(mag))
        return obj

    def __setattr__(self, name, value):
        raise AttributeError("BigInt is immutable")

    def __delattr__(self, name):
        raise AttributeError("BigInt is immutable")

    def __reduce__(self):
        return (self.__class__, (self.to_int(),))

    @classmethod
    def from_int(cls, value: int) -> "BigInt":
        """Converts a native int."""
        return cls._make(*_from_native(value))

    @classmethod
    def from_str(cls, text: str) -> "BigInt":
        """Parses a decimal string with an optional sign.

        Args:
            text: Decimal digits, optionally signed and surrounded by whitespace.

        Returns:
            The parsed integer.

        Raises:
            ValueError: If `text` is not a decimal integer literal.
        """
        digits = text.strip()
        sign = 1
        if digits and digits[0] in "+-":
            sign = -1 if digits[0] == "-" else 1
            digits = digits[1:]
        if not digits or not (digits.isascii() and digits.isdigit()):
            raise ValueError(f"Invalid literal for BigInt: {text!r}")
        mag: list[int] = []
        head = len(digits) % _DEC_DIGITS or _DEC_DIGITS
        mag = _mul_small(mag, _DEC_BASE, int(digits[:head]))
        for i in range(head, len(digits), _DEC_DIGITS):
            mag = _mul_small(mag, _DEC_BASE, int(digits[i:i + _DEC_DIGITS]))
        return cls._make(sign, mag)

    @classmethod
    def from_bytes(cls, data: bytes) -> "BigInt":
        """Reads an unsigned integer, most significant byte first."""
        data = bytes(data)
        data = b"\x00" * (-len(data) % _LIMB_BYTES) + data
        mag = [int.from_bytes(data[i:i + _LIMB_BYTES], "big") for i in range(len(data) - _LIMB_BYTES, -1, -_LIMB_BYTES)]
        return cls._make(1, _strip(mag))

    @classmethod
    def random_bits(cls, bits: int, rng: random.Random) -> "BigInt":
        """Draws a uniformly random integer in `[0, 2**bits)` from `rng`."""
        if bits < 0:
            raise ValueError("bits must be >= 0")
        if bits == 0:
            return ZERO
        return cls.from_int(rng.getrandbits(bits))

    @classmethod
    def random_below(cls, bound: "BigInt | int", rng: random.Random) -> "BigInt":
        """Draws a uniformly random integer in `[0, bound)` by rejection sampling.

        Args:
            bound: Exclusive upper bound. Must be positive.
            rng: Source of random bits.

        Returns:
            A uniformly distributed integer below `bound`.
        """
        bound = BigInt(bound)
        if bound._sign <= 0:
            raise ValueError("bound must be > 0")
        bits = bound.bit_length()
        while True:
            candidate = cls.random_bits(bits, rng)
            if candidate < bound:
                return candidate

    def to_int(self) -> int:
        value = 0
        for limb in reversed(self._mag):
            value = (value << LIMB_BITS) | limb
        return -value if self._sign < 0 else value

    def to_bytes(self, fixedlen: int | None = None) -> bytes:
        """Writes the magnitude, most significant byte first.

        Args:
            fixedlen: Target length, left padded with zero bytes. If omitted the shortest encoding is used, so zero
                encodes to `b""` and no leading zero bytes are produced.

        Returns:
            The big-endian octet string.

        Raises:
            ValueError: If the integer is negative.
            OverflowError: If the integer does not fit in `fixedlen` bytes.
        """
        if self._sign < 0:
            raise ValueError("Cannot convert a negative BigInt to bytes")
        raw = b"".join(limb.to_bytes(_LIMB_BYTES, "big") for limb in reversed(self._mag)).lstrip(b"\x00")
        if fixedlen is None:
            return raw
        if len(raw) > fixedlen:
            raise OverflowError("BigInt too big to convert")
        return raw.rjust(fixedlen, b"\x00")

    @property
    def sign(self) -> int:
        return self._sign

    def bit_length(self) -> int:
        """Number of bits in the magnitude, zero for zero."""
        if not self._mag:
            return 0
        return (len(self._mag) - 1) * LIMB_BITS + self._mag[-1].bit_length()

    def test_bit(self, i: int) -> bool:
        """Whether bit `i` of the magnitude is set."""
        limb, bit = divmod(i, LIMB_BITS)
        if limb >= len(self._mag):
            return False
        return bool((self._mag[limb] >> bit) & 1)

    def set_bit(self, i: int) -> "BigInt":
        """Returns a copy with bit `i` of the magnitude set."""
        limb, bit = divmod(i, LIMB_BITS)
        mag = list(self._mag)
        mag.extend([0] * (limb + 1 - len(mag)))
        mag[limb] |= 1 << bit
        return BigInt._make(self._sign or 1, mag)

    def lowest_set_bit(self) -> int:
        """Index of the lowest set bit of the magnitude, -1 for zero."""
        for i, limb in enumerate(self._mag):
            if limb:
                return i * LIMB_BITS + (limb & -limb).bit_length() - 1
        return -1

    def is_zero(self) -> bool:
        return self._sign == 0

    def is_odd(self) -> bool:
        return bool(self._mag) and bool(self._mag[0] & 1)

    def is_even(self) -> bool:
        return not self.is_odd()

    def mod_small(self, d: int) -> int:
        """Floored remainder by a single limb divisor, used for fast trial division.

        Args:
            d: Positive divisor below 2**32.

        Returns:
            The remainder in `[0, d)`.
        """
        if d == 0:
            raise DivisionByZero("BigInt modulo by zero")
        if not 0 < d < LIMB_BASE:
            raise ValueError("d must fit in a single limb")
        r = _divmod_small(self._mag, d)[1]
        if self._sign < 0 and r:
            r = d - r
        return r

    def __bool__(self) -> bool:
        return self._sign != 0

    def __int__(self) -> int:
        return self.to_int()

    def __str__(self) -> str:
        if not self._sign:
            return "0"
        parts = []
        mag: list[int] = list(self._mag)
        while mag:
            mag, r = _divmod_small(mag, _DEC_BASE)
            parts.append(r)
        text = str(parts[-1]) + "".join(f"{p:0{_DEC_DIGITS}d}" for p in reversed(parts[:-1]))
        return "-" + text if self._sign < 0 else text

    def __repr__(self) -> str:
        return f"BigInt({self})"

    def __hash__(self) -> int:
        return hash(self.to_int())

    def _compare(self, other: "BigInt") -> int:
        if self._sign != other._sign:
            return -1 if self._sign < other._sign else 1
        c = _cmp_mag(self._mag, other._mag)
        return c if self._sign >= 0 else -c

    def __eq__(self, other) -> bool:
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return self._sign == other._sign and self._mag == other._mag

    def __lt__(self, other) -> bool:
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return self._compare(other) < 0

    def __le__(self, other) -> bool:
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return self._compare(other) <= 0

    def __gt__(self, other) -> bool:
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return self._compare(other) > 0

    def __ge__(self, other) -> bool:
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return self._compare(other) >= 0

    def __neg__(self) -> "BigInt":
        return BigInt._make(-self._sign, list(self._mag))

    def __pos__(self) -> "BigInt":
        return self

    def __abs__(self) -> "BigInt":
        return BigInt._make(abs(self._sign), list(self._mag))

    def __add__(self, other) -> "BigInt":
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return _signed_add(self._sign, self._mag, other._sign, other._mag)

    __radd__ = __add__

    def __sub__(self, other) -> "BigInt":
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return _signed_add(self._sign, self._mag, -other._sign, other._mag)

    def __rsub__(self, other) -> "BigInt":
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return _signed_add(other._sign, other._mag, -self._sign, self._mag)

    def __mul__(self, other) -> "BigInt":
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return BigInt._make(self._sign * other._sign, _mul_mag(self._mag, other._mag))

    __rmul__ = __mul__

    def __divmod__(self, other) -> tuple["BigInt", "BigInt"]:
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return _floor_divmod(self, other)

    def __rdivmod__(self, other) -> tuple["BigInt", "BigInt"]:
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return _floor_divmod(other, self)

    def __floordiv__(self, other) -> "BigInt":
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return _floor_divmod(self, other)[0]

    def __rfloordiv__(self, other) -> "BigInt":
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return _floor_divmod(other, self)[0]

    def __mod__(self, other) -> "BigInt":
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return _floor_divmod(self, other)[1]

    def __rmod__(self, other) -> "BigInt":
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return _floor_divmod(other, self)[1]

    def __pow__(self, exponent) -> "BigInt":
        """Plain (non-modular) power. Use `bigrsa.modular.mod_pow` for the modular form."""
        exponent = _coerce(exponent)
        if exponent is NotImplemented:
            return NotImplemented
        if exponent._sign < 0:
            raise ValueError("Negative exponents are not supported")
        result = ONE
        for i in range(exponent.bit_length() - 1, -1, -1):
            result = result * result
            if exponent.test_bit(i):
                result = result * self
        return result

    def __lshift__(self, k: int) -> "BigInt":
        if k < 0:
            raise ValueError("negative shift count")
        return BigInt._make(self._sign, _shl_mag(self._mag, k))

    def __rshift__(self, k: int) -> "BigInt":
        if k < 0:
            raise ValueError("negative shift count")
        if self._sign >= 0:
            return BigInt._make(self._sign, _shr_mag(self._mag, k))
        # Floor semantics for negatives, matching native ints.
        return -((abs(self) - ONE) >> k) - ONE


def _from_native(value: int) -> tuple[int, list[int]]:
    sign = (value > 0) - (value < 0)
    value = abs(value)
    mag = []
    while value:
        mag.append(value & LIMB_MASK)
        value >>= LIMB_BITS
    return sign, mag


def _coerce(value):
    if isinstance(value, BigInt):
        return value
    if isinstance(value, int):
        return BigInt.from_int(value)
    return NotImplemented


def _signed_add(sa: int, a: Sequence[int], sb: int, b: Sequence[int]) -> BigInt:
    if sa == 0:
        return BigInt._make(sb, list(b))
    if sb == 0:
        return BigInt._make(sa, list(a))
    if sa == sb:
        return BigInt._make(sa, _add_mag(a, b))
    c = _cmp_mag(a, b)
    if c == 0:
        return ZERO
    if c > 0:
        return BigInt._make(sa, _sub_mag(a, b))
    return BigInt._make(sb, _sub_mag(b, a))


def _floor_divmod(a: BigInt, b: BigInt) -> tuple[BigInt, BigInt]:
    """Floored division: `a == q * b + r` with `r` taking the sign of `b`."""
    if b._sign == 0:
        raise DivisionByZero("BigInt division by zero")
    q_mag, r_mag = _divmod_mag(a._mag, b._mag)
    quot = BigInt._make(a._sign * b._sign, q_mag)
    rem = BigInt._make(a._sign, r_mag)
    if rem._sign and a._sign != b._sign:
        quot = quot - ONE
        rem = rem + b
    return quot, rem


ZERO = BigInt(0)
ONE = BigInt(1)
TWO = BigInt(2)
