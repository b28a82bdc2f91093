"""Password-based envelope encryption."""

from secure_recorder.crypto.envelope import (
    decrypt,
    decrypt_file,
    derive_key_iv,
    encrypt,
    encrypt_file,
)

__all__ = ["decrypt", "decrypt_file", "derive_key_iv", "encrypt", "encrypt_file"]
