"""
config_crypto.py - Read and write password-protected config blobs.

The format is the one produced by

    openssl enc -aes-128-cbc -md sha256 -pass pass:...

    b"Salted__" | salt (8 bytes) | AES-128-CBC ciphertext (N x 16 bytes)

key || iv = SHA-256(password || salt). The scheme is unauthenticated: a wrong
password gives either a padding error or garbage plaintext.
"""

from typing import Optional, Tuple, Union
import hashlib
import os

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

MAGIC = b"Salted__"
SALT_SIZE = 8
HEADER_SIZE = len(MAGIC) + SALT_SIZE
BLOCK_SIZE = 16
KEY_SIZE = 16


class ConfigError(ValueError):
    """Config content could not be read or understood."""


class DecryptionFailed(ConfigError):
    """The cipher step failed or the decrypted padding is malformed."""


class MalformedBlob(DecryptionFailed):
    """Encrypted blob is truncated or its ciphertext is not block aligned."""


def _as_bytes(password: Union[str, bytes]) -> bytes:
    if isinstance(password, str):
        return password.encode("utf-8")
    return bytes(password)


def is_encrypted(blob: bytes) -> bool:
    """True when the blob starts with the openssl salt marker."""
    return blob[:len(MAGIC)] == MAGIC


def derive_key_iv(password: Union[str, bytes], salt: bytes) -> Tuple[bytes, bytes]:
    """
    Single-pass salted key derivation (openssl -md sha256 convention).

    Returns:
        (key, iv): first and last 16 bytes of SHA-256(password || salt)
    """
    digest = hashlib.sha256(_as_bytes(password) + salt).digest()
    return digest[:KEY_SIZE], digest[KEY_SIZE:]


def _strip_legacy_padding(buf: bytes) -> bytes:
    # drop trailing bytes < 16, keep the last byte >= 16
    i = len(buf) - 1
    while i >= 0 and buf[i] < BLOCK_SIZE:
        i -= 1
    return buf[:i + 1]


def _strip_pkcs7(buf: bytes) -> bytes:
    unpadder = padding.PKCS7(BLOCK_SIZE * 8).unpadder()
    try:
        return unpadder.update(buf) + unpadder.finalize()
    except ValueError as e:
        raise DecryptionFailed("Invalid padding (wrong password?)") from e


def decrypt(blob: bytes, password: Union[str, bytes], legacy_padding: bool = False) -> bytes:
    """
    Decrypt a config blob, or pass it through if it is not encrypted.

    Arguments:
        blob: raw config file content
        password: ignored for plaintext blobs
        legacy_padding: strip padding by scanning back over bytes < 16
            instead of validating PKCS#7

    Raises:
        MalformedBlob: marker present but blob too short / misaligned
        DecryptionFailed: invalid padding after decryption
    """
    if not is_encrypted(blob):
        return blob
    if len(blob) < HEADER_SIZE:
        raise MalformedBlob(f"Encrypted config too short: {len(blob)} bytes")

    salt = blob[len(MAGIC):HEADER_SIZE]
    ciphertext = blob[HEADER_SIZE:]
    if not ciphertext or len(ciphertext) % BLOCK_SIZE != 0:
        raise MalformedBlob(
            f"Ciphertext length {len(ciphertext)} is not a positive multiple of {BLOCK_SIZE}"
        )

    key, iv = derive_key_iv(password, salt)
    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    plain = decryptor.update(ciphertext) + decryptor.finalize()

    if legacy_padding:
        return _strip_legacy_padding(plain)
    return _strip_pkcs7(plain)


def encrypt(plaintext: bytes, password: Union[str, bytes], salt: Optional[bytes] = None) -> bytes:
    """
    Produce a blob that both `decrypt` and `openssl enc -d -aes-128-cbc -md sha256`
    accept. A random salt is drawn from os.urandom when none is given.
    """
    if salt is None:
        salt = os.urandom(SALT_SIZE)
    if len(salt) != SALT_SIZE:
        raise ValueError(f"salt must be {SALT_SIZE} bytes")

    key, iv = derive_key_iv(password, salt)
    padder = padding.PKCS7(BLOCK_SIZE * 8).padder()
    padded = padder.update(plaintext) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    return MAGIC + salt + encryptor.update(padded) + encryptor.finalize()
