"""Error kinds raised by the arithmetic core and the RSA layer.

Every error derives from `BigRSAError`, and additionally from the builtin exception a caller would reasonably expect,
so that `except ValueError` style handling keeps working.
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0


class BigRSAError(Exception):
    """Base class for all bigrsa errors."""


class DivisionByZero(BigRSAError, ZeroDivisionError):
    """Raised when a BigInt is divided (or reduced) by zero."""


class InvalidModulus(BigRSAError, ValueError):
    """Raised when a modular operation receives a modulus <= 0."""


class NoInverseExists(BigRSAError, ValueError):
    """Raised when the modular inverse is requested for a non-coprime pair."""


class MessageTooLarge(BigRSAError, ValueError):
    """Raised when a message representative falls outside [0, mod-1]."""
