"""OpenSSL-compatible password encryption.

Envelopes use the layout written by ``openssl enc -aes-256-cbc -salt
-pbkdf2 -iter 10000 -md sha256``: the ASCII marker ``Salted__``, an
8-byte random salt, then AES-256-CBC ciphertext with PKCS#7 padding. The
key and IV are the first 32 and next 16 bytes of PBKDF2-HMAC-SHA256 over
the password and salt.

There is no integrity tag: a corrupted or tampered envelope decrypted
with the right password yields garbage rather than an error, unless the
damage happens to break the padding.
"""

import logging
import os
import time
from pathlib import Path

from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from secure_recorder.exceptions import CryptoError, FormatError

logger = logging.getLogger(__name__)

MAGIC = b"Salted__"
SALT_SIZE = 8
KEY_SIZE = 32
IV_SIZE = 16
PBKDF2_ITERATIONS = 10000

_BLOCK_BITS = algorithms.AES.block_size
_BLOCK_SIZE = _BLOCK_BITS // 8
_PREFIX_SIZE = len(MAGIC) + SALT_SIZE


def derive_key_iv(password: str, salt: bytes) -> tuple[bytes, bytes]:
    """Derive the AES key and IV for a password and salt.

    Args:
        password: Password, encoded as UTF-8.
        salt: The 8-byte envelope salt.

    Returns:
        (key, iv) of 32 and 16 bytes.

    Raises:
        CryptoError: If the salt has the wrong size.
    """
    if len(salt) != SALT_SIZE:
        raise CryptoError(f"Salt must be {SALT_SIZE} bytes, got {len(salt)}")

    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_SIZE + IV_SIZE,
        salt=salt,
        iterations=PBKDF2_ITERATIONS,
    )
    started = time.perf_counter()
    derived = kdf.derive(password.encode("utf-8"))
    logger.debug("Key derivation took %.1f ms", (time.perf_counter() - started) * 1000)
    return derived[:KEY_SIZE], derived[KEY_SIZE:]


def encrypt(plaintext: bytes, password: str) -> bytes:
    """Encrypt ``plaintext`` into a salted envelope.

    A fresh random salt is drawn on every call, so encrypting the same
    data twice gives different envelopes.
    """
    salt = os.urandom(SALT_SIZE)
    key, iv = derive_key_iv(password, salt)

    padder = padding.PKCS7(_BLOCK_BITS).padder()
    padded = padder.update(plaintext) + padder.finalize()

    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()

    logger.info(
        "Encrypted %d bytes into %d-byte envelope", len(plaintext), _PREFIX_SIZE + len(ciphertext)
    )
    return MAGIC + salt + ciphertext


def decrypt(envelope: bytes, password: str) -> bytes:
    """Recover the plaintext from a salted envelope.

    Raises:
        FormatError: If the envelope does not start with ``Salted__``.
        CryptoError: If the ciphertext is not whole blocks or the padding
            is invalid, which usually means a wrong password.
    """
    if len(envelope) < _PREFIX_SIZE or envelope[: len(MAGIC)] != MAGIC:
        raise FormatError("Invalid encrypted data format: missing Salted__ header")

    salt = envelope[len(MAGIC) : _PREFIX_SIZE]
    ciphertext = envelope[_PREFIX_SIZE:]
    if not ciphertext or len(ciphertext) % _BLOCK_SIZE:
        raise CryptoError(
            f"Ciphertext length {len(ciphertext)} is not a positive multiple of {_BLOCK_SIZE}"
        )

    key, iv = derive_key_iv(password, salt)
    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()

    unpadder = padding.PKCS7(_BLOCK_BITS).unpadder()
    try:
        plaintext = unpadder.update(padded) + unpadder.finalize()
    except ValueError as e:
        raise CryptoError("Decryption failed: bad password or corrupted data") from e

    logger.info("Decrypted %d-byte envelope into %d bytes", len(envelope), len(plaintext))
    return plaintext


def encrypt_file(source: Path, destination: Path, password: str) -> int:
    """Encrypt a whole file into an envelope file.

    Returns:
        Size of the written envelope in bytes.
    """
    envelope = encrypt(Path(source).read_bytes(), password)
    Path(destination).write_bytes(envelope)
    return len(envelope)


def decrypt_file(source: Path, destination: Path, password: str) -> int:
    """Decrypt an envelope file.

    The destination is only written when decryption succeeds.

    Returns:
        Size of the recovered plaintext in bytes.
    """
    plaintext = decrypt(Path(source).read_bytes(), password)
    Path(destination).write_bytes(plaintext)
    return len(plaintext)
