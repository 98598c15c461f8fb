"""Textbook RSA on top of a from-scratch arbitrary-precision integer.

Provides an immutable `BigInt` (limb arithmetic, long division), modular arithmetic over it (square-and-multiply,
Extended Euclidean Algorithm, modular inverse), Miller-Rabin based probable prime generation and a textbook RSA key
pair with encryption and decryption.

Typical usage example:

    p = generate_probable_prime(512)
    kp = RSAKeyPair.generate(1024)
    c = kp.encrypt(42)
    m = kp.decrypt(c)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from bigrsa.bigint import BigInt
from bigrsa.errors import BigRSAError
from bigrsa.errors import DivisionByZero
from bigrsa.errors import InvalidModulus
from bigrsa.errors import MessageTooLarge
from bigrsa.errors import NoInverseExists
from bigrsa.keygen import check_prime
from bigrsa.keygen import generate_key_pair
from bigrsa.keygen import generate_primes
from bigrsa.keygen import generate_probable_prime
from bigrsa.keygen import get_pre_primes
from bigrsa.modular import extended_gcd
from bigrsa.modular import gcd
from bigrsa.modular import mod_inverse
from bigrsa.modular import mod_pow
from bigrsa.rsa import RSAKeyPair
from bigrsa.rsa import RSAPubKey

__version__ = "0.1.0"
__all__ = [
    "BigInt",
    "BigRSAError",
    "DivisionByZero",
    "InvalidModulus",
    "MessageTooLarge",
    "NoInverseExists",
    "RSAKeyPair",
    "RSAPubKey",
    "check_prime",
    "extended_gcd",
    "gcd",
    "generate_key_pair",
    "generate_primes",
    "generate_probable_prime",
    "get_pre_primes",
    "mod_inverse",
    "mod_pow",
]
