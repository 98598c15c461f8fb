"""Modular arithmetic over `BigInt`: exponentiation, the Extended Euclidean Algorithm and modular inverses.

All results are reduced into `[0, modulus)`, relying on the floored remainder convention of `BigInt`.

Typical usage example:

    c = mod_pow(m, e, n)
    g, x, y = extended_gcd(240, 46)
    d = mod_inverse(e, phi)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from bigrsa.bigint import BigInt
from bigrsa.bigint import ONE
from bigrsa.bigint import ZERO
from bigrsa.errors import InvalidModulus
from bigrsa.errors import NoInverseExists


def mod_pow(base: BigInt | int, exponent: BigInt | int, modulus: BigInt | int) -> BigInt:
    """Computes `base**exponent mod modulus` by left-to-right square-and-multiply.

    Scans the exponent from the most significant bit down, squaring on every bit and multiplying on set bits. Every
    product is reduced straight away so operands never exceed twice the modulus width.

    Args:
        base: The base, any sign. Reduced modulo `modulus` first.
        exponent: The exponent. Must be >= 0.
        modulus: The modulus. Must be > 0.

    Returns:
        The residue in `[0, modulus)`, which is always 0 for a modulus of 1.

    Raises:
        InvalidModulus: If `modulus <= 0`.
        ValueError: If `exponent < 0`.
    """
    base, exponent, modulus = BigInt(base), BigInt(exponent), BigInt(modulus)
    if modulus.sign <= 0:
        raise InvalidModulus("Modulus must be > 0")
    if exponent.sign < 0:
        raise ValueError("Exponent must be >= 0")
    if modulus == ONE:
        return ZERO
    b = base % modulus
    result = ONE
    for i in range(exponent.bit_length() - 1, -1, -1):
        result = (result * result) % modulus
        if exponent.test_bit(i):
            result = (result * b) % modulus
    return result


def extended_gcd(a: BigInt | int, b: BigInt | int) -> tuple[BigInt, BigInt, BigInt]:
    """Implements the Extended Euclidean Algorithm.

    Such that a*s0 + b*t0 = r0 = gcd(a, b). Iterative, so operand size is not bound by the recursion limit.

    Args:
        a: The first integer.
        b: The second integer.

    Returns:
        Greatest common divisor of two integers (never negative).
        As well as the Bezout coefficients.
    """
    r0, r1 = BigInt(a), BigInt(b)
    s0, s1, t0, t1 = ONE, ZERO, ZERO, ONE
    while r1:
        q, r = divmod(r0, r1)
        r0, r1 = r1, r
        s0, s1 = s1, s0 - q * s1
        t0, t1 = t1, t0 - q * t1
    if r0.sign < 0:
        return -r0, -s0, -t0
    return r0, s0, t0


def gcd(a: BigInt | int, b: BigInt | int) -> BigInt:
    """Greatest common divisor, see `extended_gcd`."""
    return extended_gcd(a, b)[0]


def mod_inverse(a: BigInt | int, m: BigInt | int) -> BigInt:
    """Computes the inverse of `a` modulo `m`.

    Args:
        a: The value to invert.
        m: The modulus. Must be > 0.

    Returns:
        `x` in `[0, m)` such that `a*x = 1 (mod m)`.

    Raises:
        InvalidModulus: If `m <= 0`.
        NoInverseExists: If `gcd(a, m) != 1`.
    """
    a, m = BigInt(a), BigInt(m)
    if m.sign <= 0:
        raise InvalidModulus("Modulus must be > 0")
    g, x, _ = extended_gcd(a % m, m)
    if g != ONE:
        raise NoInverseExists("Value and modulus are not coprime, no inverse exists")
    return x % m
