"""
Legacy symmetric cipher for organization API keys.

Keys and IVs come from the shared secret through the MD5 password-to-key
derivation of the old single-argument cipher initialisers (OpenSSL
``EVP_BytesToKey``: one MD5 round, no salt). Values are sealed with
AES-256-CBC and PKCS#7 padding and stored as lowercase hex.

Security Properties:
    - Weak by construction: MD5-based, unsalted, fixed IV per secret.
    - Deterministic: the same (secret, plaintext) always yields the same
      ciphertext. Organization lookup by API key relies on this.
    - No integrity tag: a wrong secret usually fails on padding but may
      return garbage.

Existing ciphertext must keep decrypting, so the derivation cannot change
without a migration that re-seals every stored key.
"""

from __future__ import annotations

import hashlib
import secrets
import string
from typing import NamedTuple

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from orgkeeper.core.errors import DecryptionError

__all__ = [
    "DecryptionError",
    "DerivedKey",
    "decrypt",
    "derive_key_and_iv",
    "encrypt",
    "generate_api_key",
]

KEY_SIZE = 32  # AES-256
IV_SIZE = 16  # AES block size
BLOCK_BITS = algorithms.AES.block_size

API_KEY_ALPHABET = string.ascii_letters + string.digits


class DerivedKey(NamedTuple):
    key: bytes
    iv: bytes


def derive_key_and_iv(secret: str) -> DerivedKey:
    """Derive a 32-byte key and 16-byte IV from ``secret``.

    digest_1 = MD5(secret), digest_n = MD5(digest_{n-1} || secret), until
    48 bytes are available; key = bytes 0..32, iv = bytes 32..48.
    """
    password = secret.encode("utf-8")
    derived = b""
    prev = b""
    while len(derived) < KEY_SIZE + IV_SIZE:
        prev = hashlib.md5(prev + password).digest()
        derived += prev
    return DerivedKey(key=derived[:KEY_SIZE], iv=derived[KEY_SIZE:KEY_SIZE + IV_SIZE])


def _cipher(secret: str) -> Cipher:
    key, iv = derive_key_and_iv(secret)
    return Cipher(algorithms.AES(key), modes.CBC(iv))


def encrypt(secret: str, plaintext: str) -> str:
    """Seal ``plaintext`` under ``secret``; returns lowercase hex."""
    padder = padding.PKCS7(BLOCK_BITS).padder()
    padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

    encryptor = _cipher(secret).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()
    return ciphertext.hex()


def decrypt(secret: str, hex_ciphertext: str) -> str:
    """Open a value produced by :func:`encrypt`.

    Raises:
        DecryptionError: malformed hex, a length that is not a whole number
            of blocks, bad padding, or plaintext that is not UTF-8.
    """
    try:
        ciphertext = bytes.fromhex(hex_ciphertext)
    except (TypeError, ValueError) as e:
        raise DecryptionError("Ciphertext is not valid hex") from e

    if not ciphertext or len(ciphertext) % IV_SIZE:
        raise DecryptionError("Ciphertext length is not a multiple of the block size")

    decryptor = _cipher(secret).decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()

    unpadder = padding.PKCS7(BLOCK_BITS).unpadder()
    try:
        raw = unpadder.update(padded) + unpadder.finalize()
    except ValueError as e:
        raise DecryptionError("Invalid padding") from e

    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecryptionError("Plaintext is not valid UTF-8") from e


def generate_api_key(length: int = 20) -> str:
    """Random alphanumeric key, the plaintext sealed as an org API key."""
    return "".join(secrets.choice(API_KEY_ALPHABET) for _ in range(length))
