"""Provides core RSA functionalities: encryption and decryption with a generated key pair.

Facilitates core RSA, solely under "textbook" RSA conditions: no padding, the message representative is raised to
the exponent directly. Handles the general key handling as well as some supporting functions such as key
import/export and the codec glue that marshals byte payloads to and from integers.

Typical usage example:

    kp = RSAKeyPair.generate(1024)
    c = kp.encrypt(42)
    m = kp.decrypt(c)
    env = kp.pub.encrypt_bytes(b"Hi there!")
    r = kp.decrypt_bytes(env)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import base64
import logging
import pathlib
import random
import warnings

from pyasn1.codec.der import decoder
from pyasn1.codec.der import encoder
from pyasn1.codec.native import encoder as localize
from pyasn1.type import namedtype
from pyasn1.type import univ
from pyasn1_modules import rfc8017

from bigrsa import keygen
from bigrsa.bigint import BigInt
from bigrsa.errors import MessageTooLarge
from bigrsa.modular import mod_pow

_LOGGER = logging.getLogger(__name__)

PEM_TYPES = {
    "PKCS1_PUB": ("-----BEGIN RSA PUBLIC KEY-----", "-----END RSA PUBLIC KEY-----"),
    "KEY_PAIR": ("-----BEGIN RSA KEY PAIR-----", "-----END RSA KEY PAIR-----"),
}

# No real OID exists for pure RSAEP, so we extend the "baseline" rsaEncryption (PKCS v1.5 padded) to branch 0
id_RSAES_pure = rfc8017.rsaEncryption + (0,)


class RSAMessage(univ.Sequence):
    """Due to the unfortunate fact that no RSA-based encryption wrapper exists we make our own!"""
    componentType = namedtype.NamedTypes(
        namedtype.NamedType("encryptionAlgorithm", rfc8017.AlgorithmIdentifier()),
        namedtype.NamedType("encryptedData", univ.OctetString()),
    )


class RSAKeyPairInfo(univ.Sequence):
    """PKCS#1 RSAPrivateKey demands the primes, which we deliberately drop, so the bare triple gets its own type."""
    componentType = namedtype.NamedTypes(
        namedtype.NamedType("modulus", univ.Integer()),
        namedtype.NamedType("publicExponent", univ.Integer()),
        namedtype.NamedType("privateExponent", univ.Integer()),
    )


class RSAKey:
    """The overall RSA key class implementation.

    Acts mostly as a template for the "core" components of a RSA Key that are strictly mandatory in both a public
    and a private key.

    Attributes:
        mod: The modulus of the keypair.
        expo: The exponent of the key, whether private or public.
        bsize: The size of the modulus in bytes.
    """

    def __init__(self, mod: BigInt | int, expo: BigInt | int) -> None:
        self.mod = BigInt(mod)
        self.expo = BigInt(expo)
        self.bsize = (self.mod.bit_length() + 7) // 8

    def c_rsa(self, message: BigInt | int) -> BigInt:
        """Performs core RSA operation. (Encrypt/Decrypt).

        Args:
            message: The int-marshalled message.

        Returns:
            `message**expo mod mod`.

        Raises:
            MessageTooLarge: If the message is out of range for the current key.
        """
        message = BigInt(message)
        if not 0 <= message < self.mod:
            raise MessageTooLarge("Message representative must be in range [0, mod-1]")
        return mod_pow(message, self.expo, self.mod)


class RSAPubKey(RSAKey):
    """A rather straightforward subclass of RSAKey, for Public Keys.

    The init is not overwritten as a Public Key consists solely of a modulus and exponent.
    But provides the general functions expected of a public key.
    """

    def encrypt(self, message: BigInt | int) -> BigInt:
        """Encrypts an integer message representative in `[0, mod)`."""
        return self.c_rsa(message)

    def encrypt_bytes(self, message: bytes) -> bytes:
        """Use the public key to encrypt a byte payload.

        The payload is read as a big-endian unsigned integer, which must be below the modulus; callers needing longer
        payloads have to split them themselves. Leading zero bytes of the payload do not survive the round trip.

        Args:
            message: The message to encrypt.

        Returns:
            Base64 encoded DER `RSAMessage` envelope.
        """
        warnings.warn("Textbook RSA encryption is unsecure! Please use with care.", RuntimeWarning)
        enco = bytes_to_integer(message)
        ciphertext = integer_to_bytes(self.encrypt(enco), self.bsize)
        enc_id = rfc8017.AlgorithmIdentifier()
        enc_id["algorithm"] = id_RSAES_pure
        enc_id["parameters"] = univ.Null("")
        pld = RSAMessage()
        pld["encryptionAlgorithm"] = enc_id
        pld["encryptedData"] = ciphertext
        encoded = encoder.encode(pld)
        return base64.b64encode(encoded)

    def export(self, file: pathlib.Path) -> None:
        """Export the Public RSA key to file.

        We use the PKCS1 export standard for the public key, due to its lack of information regarding identity.

        Args:
            file: The file to export the public key to.
        """
        keydata = rfc8017.RSAPublicKey()
        keydata["modulus"] = self.mod.to_int()
        keydata["publicExponent"] = self.expo.to_int()
        encdata = encoder.encode(keydata)
        write_pem(file, "PKCS1_PUB", encdata)
        _LOGGER.debug("Exported public key to %s", file)

    @classmethod
    def import_key(cls, file: pathlib.Path) -> "RSAPubKey":
        """Import the Public RSA key from file.

        As with the export we use the PKCS1 export standard.

        Args:
            file: The file to import the public key from.

        Returns:
            An RSAPubKey object with the imported public key.
        """
        payload = read_pem(file, "PKCS1_PUB")
        keydata, _ = decoder.decode(payload, asn1Spec=rfc8017.RSAPublicKey())
        pykeyd = localize.encode(keydata)
        return cls(pykeyd["modulus"], pykeyd["publicExponent"])


class RSAKeyPair(RSAKey):
    """RSA Key Pair class implementation.

    Holds the private exponent and exposes its connected public key. Only the modulus and the two exponents are kept,
    the primes that produced them are discarded at generation time.

    Attributes:
        mod: The modulus of the keypair.
        expo: The private exponent of the key.
        pub: The public key of the key.
    """

    def __init__(self, mod: BigInt | int, pub_exp: BigInt | int, priv_exp: BigInt | int) -> None:
        """Initialize the RSA Key Pair.

        Args:
            mod: The modulus of the keypair.
            pub_exp: The public exponent of the key.
            priv_exp: The private exponent of the key.
        """
        super().__init__(mod, priv_exp)
        self.pub: RSAPubKey = RSAPubKey(mod, pub_exp)

    @property
    def n(self) -> BigInt:
        return self.mod

    @property
    def e(self) -> BigInt:
        return self.pub.expo

    @property
    def d(self) -> BigInt:
        return self.expo

    def encrypt(self, message: BigInt | int) -> BigInt:
        """Encrypts with the public half, see `RSAPubKey.encrypt`."""
        return self.pub.encrypt(message)

    def decrypt(self, ciphertext: BigInt | int) -> BigInt:
        """Decrypts an integer ciphertext in `[0, mod)`."""
        return self.c_rsa(ciphertext)

    def decrypt_bytes(self, message: bytes) -> bytes:
        """Decrypts an envelope produced by `RSAPubKey.encrypt_bytes`.

        Args:
            message: Base64 encoded message to decrypt.

        Returns:
            The decrypted message, without leading zero bytes.

        Raises:
            RuntimeError: If the envelope names an algorithm other than textbook RSA.
        """
        ctext = base64.b64decode(message)
        pld, _ = decoder.decode(ctext, asn1Spec=RSAMessage())
        if pld["encryptionAlgorithm"]["algorithm"] != id_RSAES_pure:
            raise RuntimeError("Unknown encryption algorithm.")
        ctx = bytes(pld["encryptedData"])
        payload = self.decrypt(bytes_to_integer(ctx))
        return integer_to_bytes(payload)

    def export(self, file: pathlib.Path) -> None:
        """Exports the RSA Key Pair to a file.

        Args:
            file: The file to export to.
        """
        keydata = RSAKeyPairInfo()
        keydata["modulus"] = self.mod.to_int()
        keydata["publicExponent"] = self.pub.expo.to_int()
        keydata["privateExponent"] = self.expo.to_int()
        encoded = encoder.encode(keydata)
        write_pem(file, "KEY_PAIR", encoded)
        _LOGGER.debug("Exported key pair to %s", file)

    @classmethod
    def import_key(cls, file: pathlib.Path) -> "RSAKeyPair":
        """Imports the RSA Key Pair from a file.

        Args:
            file: The file to import.

        Returns:
            The imported RSA Key Pair.
        """
        payload = read_pem(file, "KEY_PAIR")
        keydata, _ = decoder.decode(payload, asn1Spec=RSAKeyPairInfo())
        pykeyd = localize.encode(keydata)
        if pykeyd["modulus"] <= 1:
            raise IOError("Key pair modulus must be > 1")
        return cls(pykeyd["modulus"], pykeyd["publicExponent"], pykeyd["privateExponent"])

    @classmethod
    def generate(cls, size: int, rng: random.Random | None = None) -> "RSAKeyPair":
        """Generates an RSA Key Pair.

        Args:
            size: The size of the RSA Key in bits.
            rng: Source of random bits. Defaults to a fresh `secrets.SystemRandom`.

        Returns:
            A new generated RSA Key Pair.
        """
        (n, pub), (_, d) = keygen.generate_key_pair(size, rng)
        return cls(n, pub, d)


def read_pem(file: pathlib.Path, subtype: str) -> bytes:
    """Reads a PEM encoded file.

    Handles reading of PEM files to allow for more copiable keys!

    Args:
        file: The file to read.
        subtype: The subtype of PEM encoding to accept.

    Returns:
        The decoded PEM encoded file.

    Raises:
        IOError: If the file has invalid PEM encoding.
    """
    curr_type = PEM_TYPES[subtype]
    with open(file, "r", encoding="ascii") as f:
        headline = f.readline().strip()
        if headline != curr_type[0]:
            raise IOError(f"PEM Headline {headline} does not match {curr_type[0]}")
        parcel = []
        while True:
            line = f.readline().strip()
            if not line:
                raise IOError(f"PEM File does not contain footer: {curr_type[1]}")
            if line == curr_type[1]:
                break
            parcel.append(line)
    return base64.b64decode("".join(parcel))


def write_pem(file: pathlib.Path, subtype: str, data: bytes) -> None:
    """Writes a PEM encoded file.

    Args:
        file: The file to write.
        subtype: The subtype of PEM encoding to write.
        data: The data to write.
    """
    curr_type = PEM_TYPES[subtype]
    payload = base64.b64encode(data).decode()
    with open(file, "w", encoding="ascii") as f:
        f.write(curr_type[0] + "\n")
        res = "\n".join(payload[i:i + 64] for i in range(0, len(payload), 64))
        res += "\n" if res else ""
        f.write(res)
        f.write(curr_type[1] + "\n")


def bytes_to_integer(msg: bytes) -> BigInt:
    """Converts a byte string to an unsigned integer, most significant byte first.

    Args:
        msg: The bytes (AKA Octet String) to convert.

    Returns:
        The representative integer.
    """
    return BigInt.from_bytes(msg)


def integer_to_bytes(msg: BigInt, fixedlen: int | None = None) -> bytes:
    """Converts an integer to bytes, most significant byte first.

    Args:
        msg: The integer to unmarshal.
        fixedlen: The target length of the byte string. If omitted, the shortest representation is used.

    Returns:
        The representative bytes. (AKA Octet String)
    """
    return msg.to_bytes(fixedlen)
