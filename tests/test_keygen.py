# pylint: disable=protected-access,missing-module-docstring
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import math
import secrets

import pytest
import sympy

from bigrsa import keygen
from bigrsa.bigint import BigInt

M89 = 2**89 - 1
M107 = 2**107 - 1
M127 = 2**127 - 1
M521 = 2**521 - 1

base_primetest_cases = [
    # Edge Cases (neither)
    (0, False),
    (1, False),
    # Known Primes
    (2, True),
    (3, True),
    (5, True),
    (101, True),
    (3571, True),
    (9973, True),
    (10007, True),
    # Composite
    (4, False),
    (6, False),
    (9, False),
    # Fermat Pseudoprimes (numbers that fool naive tests)
    (341, False),  # 11 * 31
    (561, False),  # 3 * 11 * 17 (Carmichael number)
    (1105, False),  # 5 * 13 * 17 (Carmichael number)
    # Pseudo-prime (PsP)
    (121, False),
    (703, False),
    (781, False),
    (1541, False),
    (2047, False),
    (52633, False),
]

large_primetest_cases = [
    # Mersenne primes
    (M89, True),
    (M107, True),
    (M127, True),
    pytest.param(M521, True, marks=pytest.mark.slow),
    # Mersenne non-PRIMES (low multiplier)
    (M89 * 3, False),
    (M127 * 3, False),
    (M521 * 3, False),
]

composite_cases = [
    # Prime Composites, no small factor for trial division to catch.
    (M89 * M107, False),
    (M107 * M127, False),
    (10007 * 10009, False),
    # Strong pseudoprime to the first nine prime bases (149491 * 747451 * 34233211)
    (3825123056546413051, False),
]


def id_generator(param):
    if isinstance(param, int) and param > 1000000:
        return f"LargeInt-{param.bit_length()}bits"
    return str(param)


@pytest.mark.parametrize("n", [0, 1, 2, 20, 50, 1000, 5000, 10000])
def test_sieve_sane(n):
    assert keygen._sieve(n) == list(sympy.primerange(0, n + 1))


@pytest.mark.parametrize(
    "n,expected", [(10**5, 9592),
                   (10**6, 78498), pytest.param(10**7, 664579, marks=pytest.mark.slow)])
def test_sieve_large_approx(n, expected):
    # Not the intended use of the function, but included as a sanity check.
    assert len(keygen._sieve(n)) == expected


@pytest.mark.parametrize("n", [-27358709381728, -10, -1])
def test_get_pre_primes_errors(n):
    with pytest.raises(ValueError):
        keygen.get_pre_primes(n)


def test_get_pre_primes_caches(mocker):
    mocked_primes = [2, 3, 5, 7, 11]
    mocker.patch("bigrsa.keygen._sieve", return_value=mocked_primes)
    mocker.patch("bigrsa.keygen._SMALL_PRIMES", [])
    mocker.patch("bigrsa.keygen._SMALL_PRIMES_CAP", 0)
    n = 50

    rs = keygen.get_pre_primes(n)
    keygen._sieve.assert_called_once_with(n)
    assert rs == mocked_primes


def test_get_pre_primes_cache_hit(mocker):
    mocked_primes = [2, 3, 5, 7, 11]
    mocker.patch("bigrsa.keygen._sieve")
    mocker.patch("bigrsa.keygen._SMALL_PRIMES", mocked_primes)
    mocker.patch("bigrsa.keygen._SMALL_PRIMES_CAP", 50)

    assert keygen.get_pre_primes(25) == mocked_primes
    assert keygen.get_pre_primes(50) == mocked_primes
    keygen._sieve.assert_not_called()


def test_get_pre_primes_cache_miss(mocker):
    mocked_primes = [2, 3, 5, 7, 11]
    greater_mocked_primes = [2, 3, 5, 7, 11, 13, 17, 19, 23]
    mocker.patch("bigrsa.keygen._sieve", return_value=greater_mocked_primes)
    mocker.patch("bigrsa.keygen._SMALL_PRIMES", mocked_primes)
    mocker.patch("bigrsa.keygen._SMALL_PRIMES_CAP", 50)
    n = 75

    rs = keygen.get_pre_primes(n)
    keygen._sieve.assert_called_once_with(n)
    assert rs == greater_mocked_primes


def test_get_pre_primes_cache_forced(mocker):
    mocked_primes = [2, 3, 5, 7, 11]
    greater_mocked_primes = [2, 3, 5, 7, 11, 13, 17, 19, 23]
    mocker.patch("bigrsa.keygen._sieve", return_value=mocked_primes)
    mocker.patch("bigrsa.keygen._SMALL_PRIMES", greater_mocked_primes)
    mocker.patch("bigrsa.keygen._SMALL_PRIMES_CAP", 75)
    n = 50

    rs = keygen.get_pre_primes(n, change=True)
    keygen._sieve.assert_called_with(n)
    assert rs == mocked_primes


@pytest.mark.parametrize("num,expected", base_primetest_cases + large_primetest_cases, ids=id_generator)
def test_trial_division(num, expected):
    assert keygen._trial_division(BigInt(num)) == expected


def test_trial_division_misses_large_factors():
    # Both factors lie beyond the small prime table, so only Miller-Rabin can reject this.
    assert keygen._trial_division(BigInt(M89 * M107))


@pytest.mark.parametrize("n,expected", base_primetest_cases + large_primetest_cases + composite_cases,
                         ids=id_generator)
def test_miller_rabin(n, expected, fixed_rng):
    assert keygen._miller_rabin(BigInt(n), 10, fixed_rng) == expected


def test_miller_rabin_rejects_even():
    assert not keygen._miller_rabin(BigInt(2**64), 5, secrets.SystemRandom())


def test_miller_rabin_bases_in_range(mocker):
    spy = mocker.spy(keygen, "mod_pow")
    w = BigInt(M89)
    assert keygen._miller_rabin(w, 20, secrets.SystemRandom())
    assert spy.call_count == 20
    for call in spy.call_args_list:
        assert 2 <= call.args[0] <= w - 2
        assert call.args[2] == w


@pytest.mark.parametrize("n,expected", base_primetest_cases + large_primetest_cases + composite_cases,
                         ids=id_generator)
def test_check_prime(n, expected):
    assert keygen.check_prime(n) == expected


@pytest.mark.parametrize("bits,iters", [(64, 40), (512, 40), (513, 56), (1024, 56), (1536, 64), (2048, 70),
                                        (4096, 74)])
def test_check_prime_round_counts(mocker, bits, iters):
    mocker.patch("bigrsa.keygen._trial_division", return_value=True)
    mr = mocker.patch("bigrsa.keygen._miller_rabin", return_value=True)
    assert keygen.check_prime(BigInt(1 << (bits - 1)).set_bit(0))
    assert mr.call_args.args[1] == iters


def test_check_prime_uses_given_rng(mocker):
    rng = secrets.SystemRandom()
    mr = mocker.patch("bigrsa.keygen._miller_rabin", return_value=True)
    keygen.check_prime(M127, iters=3, rng=rng)
    mr.assert_called_once_with(BigInt(M127), 3, rng)


@pytest.mark.parametrize("size", [16, 64, 128, 256, pytest.param(512, marks=pytest.mark.slow)])
def test_generate_probable_prime(size):
    p = keygen.generate_probable_prime(size)
    assert isinstance(p, BigInt)
    assert p.bit_length() == size
    assert p.is_odd()
    assert sympy.isprime(p.to_int())


def test_generate_probable_prime_retries(mocker):
    mocker.patch("bigrsa.keygen.check_prime", side_effect=[False, False, True])
    rng = mocker.Mock()
    rng.getrandbits.return_value = 0
    p = keygen.generate_probable_prime(64, rng)
    # Top and bottom bits are forced on every candidate.
    assert p == 2**63 + 1
    assert keygen.check_prime.call_count == 3
    rng.getrandbits.assert_called_with(64)


@pytest.mark.parametrize("bits", [-1, 0, 1])
def test_generate_probable_prime_validates(bits):
    with pytest.raises(ValueError):
        keygen.generate_probable_prime(bits)


def test_generate_primes_distinct(mocker):
    p, q = BigInt(M107), BigInt(M127)
    mocker.patch("bigrsa.keygen.generate_probable_prime", side_effect=[p, p, q])
    rp, rq = keygen.generate_primes(1024)
    assert rp == p
    assert rq == q
    assert keygen.generate_probable_prime.call_count == 3
    for call in keygen.generate_probable_prime.call_args_list:
        assert call.args[0] == 512


@pytest.mark.parametrize("size", [256, 510, 513, 1025])
def test_generate_primes_validates(size):
    with pytest.raises(ValueError):
        keygen.generate_primes(size)


def test_choose_public_exponent(mocker):
    phi = BigInt(3120)
    rng = mocker.Mock()
    # 0 and 1 are too small, 3120 and 4000 not below phi, 6 shares a factor.
    rng.getrandbits.side_effect = [0, 1, 3120, 4000, 6, 17]
    assert keygen._choose_public_exponent(phi, 12, rng) == 17
    assert rng.getrandbits.call_count == 6


def test_generate_key_pair_functional(mocker):
    src_p, src_q = BigInt(M89), BigInt(M127)
    mocker.patch("bigrsa.keygen.generate_primes", return_value=(src_p, src_q))
    (n, e), (n2, d) = keygen.generate_key_pair(216)
    phi = (M89 - 1) * (M127 - 1)
    assert n == n2 == M89 * M127
    assert 1 < e < phi
    assert math.gcd(e.to_int(), phi) == 1
    assert d == pow(e.to_int(), -1, phi)


@pytest.mark.parametrize("size", [512, pytest.param(1024, marks=pytest.mark.slow)])
def test_generate_key_pair_validity(mocker, size):
    spy = mocker.spy(keygen, "generate_primes")
    (n, e), (_, d) = keygen.generate_key_pair(size)
    p, q = spy.spy_return
    phi = (p - 1) * (q - 1)
    assert p != q
    assert n == p * q
    assert n.bit_length() in {size - 1, size}
    assert 1 < e < phi
    assert (e * d) % phi == 1
    message = 17092025232642
    ciphertext = pow(message, e.to_int(), n.to_int())
    assert pow(ciphertext, d.to_int(), n.to_int()) == message


@pytest.mark.extreme
def test_generated_primes_survive_independent_trial_division():
    small = keygen._sieve(10**6)
    for _ in range(1000):
        p = keygen.generate_probable_prime(512)
        assert p.bit_length() == 512
        assert all(p.mod_small(prime) != 0 for prime in small)
