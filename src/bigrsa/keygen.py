"""Core Key Generation Utility, mainly focusing on the generation of random large primes.

This module is responsible for generating textbook RSA key pairs on top of `BigInt`. We will be focusing on probable
primes: random odd candidates filtered by trial division and accepted after a run of Miller-Rabin rounds.

Randomness always comes from an explicitly passed source. When none is given a fresh `secrets.SystemRandom` is used,
which reads the OS CSPRNG and holds no state of its own.

Typical usage example:

    get_pre_primes(12000)
    p = generate_probable_prime(512)
    (n, e), (_, d) = generate_key_pair(1024)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import logging
import random
import secrets

from bigrsa.bigint import BigInt
from bigrsa.bigint import ONE
from bigrsa.bigint import TWO
from bigrsa.modular import gcd
from bigrsa.modular import mod_inverse
from bigrsa.modular import mod_pow

_LOGGER = logging.getLogger(__name__)

_SMALL_PRIMES: list[int] = []
_SMALL_PRIMES_CAP: int = 0
MIN_KEY_SIZE: int = 512


def _sieve(n: int = 10000) -> list[int]:
    """Implements the Sieve of Eratosthenes.

    Uses the textbook Sieve of Eratosthenes to generate a set of primes up to `n`.
    Includes memory space optimization and sieving until root.

    Args:
        n: The number up to which to generate primes. Defaults to 10000. Must be >= 0.

    Returns:
        A list of primes up to `n`.
    """
    if n < 2:
        return []
    i_size = (n - 1) // 2
    candidate: list[bool] = [True] * i_size
    for i in range(int(n**0.5) // 2):
        if candidate[i]:
            r = 2 * i + 3
            for j in range((r * r - 3) // 2, i_size, r):
                candidate[j] = False
    result = [2] + [(no * 2 + 3) for no, ele in enumerate(candidate) if ele]
    return result


def get_pre_primes(n: int = 10000, change: bool = False) -> list[int]:
    """Get the small primes, automatically generating if necessary.

    Uses the `_SMALL_PRIMES` global as a cache. Regeneration occurs if the requested range is greater, forced by
    `change` or the cache is empty.

    Args:
        n: The number up to which to generate primes. Defaults to 10000. Must be >= 0.
        change: Whether to force a recomputation of primes. Defaults to False.

    Returns:
        List of primes in ascending order. All primes at least to `n` or more unless `change` is True.
    """
    if n < 0:
        raise ValueError("n must be >= 0")
    global _SMALL_PRIMES
    global _SMALL_PRIMES_CAP
    if n > _SMALL_PRIMES_CAP or change or not _SMALL_PRIMES:
        _SMALL_PRIMES = _sieve(n)
        _SMALL_PRIMES_CAP = n
    return _SMALL_PRIMES


def _trial_division(no: BigInt, n: int = 10000) -> bool:
    """Check the provided `no` against the known small primes.

    Runs a fast pre-check before Miller-Rabin by dividing by every small prime, each of which fits a single limb.

    Args:
         no: The number to check.
         n: The number up to which to generate primes. Defaults to 10000.
           Passed to `get_pre_primes()`, without the `change` argument.

    Returns:
        False if `no` cannot be prime, True otherwise.
    """
    if no < 2:
        return False
    # Only a value below 2**64 can sit under the square of a small prime.
    small = no.to_int() if no.bit_length() <= 64 else None
    for prime in get_pre_primes(n):
        if small is not None and prime * prime > small:
            return True
        if no.mod_small(prime) == 0:
            return False
    return True


def _miller_rabin(w: BigInt, iters: int, rng: random.Random) -> bool:
    """Perform Miller-Rabin primality test.

    Writes `w - 1 = 2**a * m` with `m` odd, then for each round picks a random base `b` in `[2, w - 2]`. The round
    passes if `b**m` is 1 or -1, or if one of the following `a - 1` squarings reaches -1.

    Args:
        w: Integer to be tested.
        iters: Number of Miller-Rabin iterations to perform.
        rng: Source of the random bases.

    Returns:
        True if `w` is probably prime, False otherwise.
    """
    if w <= 3:
        return w == 2 or w == 3
    if w.is_even():
        return False
    tw = w - ONE
    a = tw.lowest_set_bit()
    m = tw >> a
    for _ in range(iters):
        b = BigInt.random_below(w - 3, rng) + TWO
        z = mod_pow(b, m, w)
        if z == ONE or z == tw:
            continue
        for _ in range(1, a):
            z = (z * z) % w
            if z == tw:
                break
            if z == ONE:
                return False
        else:
            return False
    return True


def check_prime(candidate: BigInt | int,
                iters: None | int = None,
                n: int = 10000,
                rng: random.Random | None = None) -> bool:
    """Performs a composite Primality test, using a limited amount of trial divisions, before a Miller-Rabin test.

    In interest of providing a result expediently we run a trial division with all primes up to `n`, before proceeding
    with the Miller-Rabin primality test.

    Args:
        candidate: The candidate prime to test.
        iters: Number of Miller-Rabin iterations to perform.
            If not provided scales with the candidate size, never below 40.
        n: The number up to which to generate primes. Defaults to 10000.
            Passed to `_trial_division()`.
        rng: Source of the Miller-Rabin bases. Defaults to a fresh `secrets.SystemRandom`.

    Returns:
        True if `candidate` is probably prime, False otherwise.
    """
    candidate = BigInt(candidate)
    if candidate < 2:
        return False
    if not _trial_division(candidate, n):
        return False
    if iters is None:
        if candidate.bit_length() <= 512:
            iters = 40
        elif candidate.bit_length() <= 1024:
            iters = 56
        elif candidate.bit_length() <= 1536:
            iters = 64
        elif candidate.bit_length() <= 2048:
            iters = 70
        else:
            iters = 74
    return _miller_rabin(candidate, iters, rng or secrets.SystemRandom())


def generate_probable_prime(bits: int, rng: random.Random | None = None) -> BigInt:
    """Generate a probable prime number of exactly `bits` bits.

    Draws random candidates with the top bit set (fixing the length) and the bottom bit set (oddness) until one
    passes `check_prime`. The loop has no retry cap: by the prime number theorem about `bits * ln(2) / 2` candidates
    are expected.

    Args:
        bits: The size of the prime to generate in bits. Must be >= 2.
        rng: Source of random bits. Defaults to a fresh `secrets.SystemRandom`.

    Returns:
        A probable prime number.
    """
    if bits < 2:
        raise ValueError("bits must be >= 2")
    rng = rng or secrets.SystemRandom()
    tries = 0
    while True:
        tries += 1
        candidate = BigInt.random_bits(bits, rng).set_bit(bits - 1).set_bit(0)
        if check_prime(candidate, rng=rng):
            _LOGGER.debug("Found %d-bit probable prime after %d candidates", bits, tries)
            return candidate


def generate_primes(size: int, rng: random.Random | None = None) -> tuple[BigInt, BigInt]:
    """Generates a pair of distinct primes for a key of `size` bits.

    Args:
        size: The key size to generate the prime pair for. Must be even and at least `MIN_KEY_SIZE`.
        rng: Source of random bits. Defaults to a fresh `secrets.SystemRandom`.

    Returns:
        A pair of distinct probable primes of `size // 2` bits each.

    Raises:
        ValueError if `size` is odd or too small.
    """
    if size < MIN_KEY_SIZE:
        raise ValueError(f"Size must be at least {MIN_KEY_SIZE}.")
    if size % 2 != 0:
        raise ValueError("Size must be an even number.")
    rng = rng or secrets.SystemRandom()
    p = generate_probable_prime(size // 2, rng)
    q = generate_probable_prime(size // 2, rng)
    while p == q:  # (Un)Likely story.
        q = generate_probable_prime(size // 2, rng)
    return p, q


def _choose_public_exponent(phi: BigInt, size: int, rng: random.Random) -> BigInt:
    """Draws public exponents from `[0, 2**size)` until one satisfies `1 < e < phi` and `gcd(e, phi) == 1`."""
    tries = 0
    while True:
        tries += 1
        e = BigInt.random_bits(size, rng)
        if ONE < e < phi and gcd(e, phi) == ONE:
            _LOGGER.debug("Picked public exponent after %d candidates", tries)
            return e


def generate_key_pair(size: int, rng: random.Random | None = None) -> tuple[tuple[BigInt, BigInt], tuple[BigInt, BigInt]]:
    """Generates an RSA key pair.

    Fully generates a valid RSA Key: two distinct primes, the modulus, a random public exponent coprime to the
    totient and its inverse as the private exponent. The primes and the totient are dropped before returning.

    Args:
        size: The key size to generate the prime pair for. Must be even and at least `MIN_KEY_SIZE`.
        rng: Source of random bits. Defaults to a fresh `secrets.SystemRandom`.

    Returns:
        A tuple of (public, private) sub-tuples, each (modulus, exponent).
    """
    rng = rng or secrets.SystemRandom()
    p, q = generate_primes(size, rng)
    n = p * q
    phi = (p - ONE) * (q - ONE)
    del p, q
    e = _choose_public_exponent(phi, size, rng)
    d = mod_inverse(e, phi)
    del phi
    _LOGGER.info("Generated %d-bit key pair (modulus is %d bits)", size, n.bit_length())
    return (n, e), (n, d)
