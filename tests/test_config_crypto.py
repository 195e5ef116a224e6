import hashlib

import pytest
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from gauth.config_crypto import (
    MAGIC,
    ConfigError,
    DecryptionFailed,
    MalformedBlob,
    decrypt,
    derive_key_iv,
    encrypt,
    is_encrypted,
)

SALT = bytes.fromhex("0011223344556677")
PLAINTEXT = b"github:JBSWY3DPEHPK3PXP\nsteam:DGVZDAO=:Steam\n"


def openssl_blob(plaintext, password, salt=SALT, pad=True):
    digest = hashlib.sha256(password + salt).digest()
    if pad:
        padder = padding.PKCS7(128).padder()
        plaintext = padder.update(plaintext) + padder.finalize()
    encryptor = Cipher(algorithms.AES(digest[:16]), modes.CBC(digest[16:])).encryptor()
    return b"Salted__" + salt + encryptor.update(plaintext) + encryptor.finalize()


def test_decrypt_independent_blob():
    blob = openssl_blob(PLAINTEXT, b"hunter2")
    assert decrypt(blob, b"hunter2") == PLAINTEXT


def test_round_trip():
    blob = encrypt(PLAINTEXT, b"s3cret")
    assert blob.startswith(MAGIC)
    assert (len(blob) - 16) % 16 == 0
    assert decrypt(blob, b"s3cret") == PLAINTEXT


def test_round_trip_str_password():
    blob = encrypt(PLAINTEXT, "pässword", salt=SALT)
    assert decrypt(blob, "pässword".encode("utf-8")) == PLAINTEXT


def test_encrypt_matches_openssl_layout():
    assert encrypt(PLAINTEXT, b"pw", salt=SALT) == openssl_blob(PLAINTEXT, b"pw")


def test_encrypt_uses_fresh_salt():
    assert encrypt(PLAINTEXT, b"pw")[8:16] != encrypt(PLAINTEXT, b"pw")[8:16]


def test_encrypt_rejects_bad_salt():
    with pytest.raises(ValueError):
        encrypt(PLAINTEXT, b"pw", salt=b"short")


def test_empty_plaintext():
    assert decrypt(encrypt(b"", b"pw"), b"pw") == b""


@pytest.mark.parametrize("password", [b"", b"anything", "text"])
def test_passthrough(password):
    assert decrypt(PLAINTEXT, password) == PLAINTEXT


def test_passthrough_short_blob():
    assert decrypt(b"a:b", b"pw") == b"a:b"


def test_is_encrypted():
    assert is_encrypted(encrypt(PLAINTEXT, b"pw"))
    assert not is_encrypted(PLAINTEXT)
    assert not is_encrypted(b"")


def test_derive_key_iv():
    key, iv = derive_key_iv(b"pw", SALT)
    digest = hashlib.sha256(b"pw" + SALT).digest()
    assert (key, iv) == (digest[:16], digest[16:])


@pytest.mark.parametrize("blob", [
    b"Salted__",
    b"Salted__1234",
    b"Salted__12345678",
    b"Salted__12345678" + b"x" * 15,
    b"Salted__12345678" + b"x" * 33,
])
def test_malformed_blob(blob):
    with pytest.raises(MalformedBlob):
        decrypt(blob, b"pw")


def test_malformed_blob_is_decryption_failure():
    with pytest.raises(DecryptionFailed):
        decrypt(b"Salted__1234", b"pw")
    with pytest.raises(ConfigError):
        decrypt(b"Salted__1234", b"pw")


def test_invalid_padding():
    blob = openssl_blob(b"0123456789abcde\x00", b"pw", pad=False)
    with pytest.raises(DecryptionFailed):
        decrypt(blob, b"pw")


def test_legacy_padding_strips_trailing_control_bytes():
    blob = openssl_blob(b"a:DGVZDAO=\n", b"pw")
    assert decrypt(blob, b"pw") == b"a:DGVZDAO=\n"
    assert decrypt(blob, b"pw", legacy_padding=True) == b"a:DGVZDAO="


def test_legacy_padding_tolerates_unpadded_input():
    blob = openssl_blob(b"0123456789abcde\x00", b"pw", pad=False)
    assert decrypt(blob, b"pw", legacy_padding=True) == b"0123456789abcde"


def test_key_material_depends_on_salt():
    a = encrypt(PLAINTEXT, b"pw", salt=SALT)
    b = encrypt(PLAINTEXT, b"pw", salt=bytes(8))
    assert a[16:] != b[16:]
