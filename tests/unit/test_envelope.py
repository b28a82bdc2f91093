"""Unit tests for the salted envelope codec."""

import hashlib
from unittest.mock import patch

import pytest

from secure_recorder.crypto.envelope import (
    MAGIC,
    PBKDF2_ITERATIONS,
    decrypt,
    decrypt_file,
    derive_key_iv,
    encrypt,
    encrypt_file,
)
from secure_recorder.exceptions import CryptoError, DecryptError, FormatError


@pytest.mark.unit
class TestEnvelope:
    """Test cases for encrypt()/decrypt()."""

    @pytest.mark.parametrize("size", [0, 15, 16, 17, 10000])
    @pytest.mark.parametrize("password", ["abc123", "p", "pässwörd with spaces"])
    def test_round_trip(self, size, password):
        data = bytes(range(256)) * (size // 256) + bytes(range(size % 256))
        assert decrypt(encrypt(data, password), password) == data

    @pytest.mark.parametrize("size,cipher_size", [(0, 16), (15, 16), (16, 32), (17, 32)])
    def test_envelope_layout(self, size, cipher_size):
        envelope = encrypt(b"x" * size, "pw")
        assert envelope[:8] == b"Salted__"
        assert len(envelope) == 16 + cipher_size

    def test_salt_is_fresh_per_call(self):
        first = encrypt(b"same data", "pw")
        second = encrypt(b"same data", "pw")
        assert first[8:16] != second[8:16]
        assert first != second

    def test_uses_os_random_salt(self):
        with patch("secure_recorder.crypto.envelope.os.urandom", return_value=b"\x07" * 8) as rng:
            envelope = encrypt(b"data", "pw")
        rng.assert_called_once_with(8)
        assert envelope[8:16] == b"\x07" * 8

    def test_derivation_matches_pbkdf2_sha256(self):
        salt = b"\x01\x02\x03\x04\x05\x06\x07\x08"
        key, iv = derive_key_iv("abc123", salt)

        expected = hashlib.pbkdf2_hmac("sha256", b"abc123", salt, PBKDF2_ITERATIONS, dklen=48)
        assert key == expected[:32]
        assert iv == expected[32:]

    def test_derivation_is_deterministic(self):
        salt = b"saltsalt"
        assert derive_key_iv("pw", salt) == derive_key_iv("pw", salt)
        assert derive_key_iv("pw", salt) != derive_key_iv("pw2", salt)

    def test_derivation_rejects_bad_salt(self):
        with pytest.raises(CryptoError):
            derive_key_iv("pw", b"short")

    def test_bad_marker(self):
        envelope = bytearray(encrypt(b"data", "pw"))
        envelope[:8] = b"Unsalted"
        with pytest.raises(FormatError):
            decrypt(bytes(envelope), "pw")

    def test_too_short(self):
        with pytest.raises(FormatError):
            decrypt(MAGIC + b"abc", "pw")

    def test_truncated_ciphertext(self):
        envelope = encrypt(b"some data here", "pw")
        with pytest.raises(CryptoError):
            decrypt(envelope[:-1], "pw")

    def test_missing_ciphertext(self):
        with pytest.raises(CryptoError):
            decrypt(MAGIC + b"\x00" * 8, "pw")

    def test_wrong_password(self):
        data = b"secret recording" * 4
        envelope = encrypt(data, "right")
        try:
            recovered = decrypt(envelope, "wrong")
        except CryptoError:
            return
        # Without an integrity tag a lucky padding byte decrypts to garbage
        assert recovered != data

    def test_decrypt_errors_share_base(self):
        with pytest.raises(DecryptError):
            decrypt(b"not an envelope at all", "pw")

    def test_file_helpers(self, tmp_path):
        source = tmp_path / "plain.bin"
        sealed = tmp_path / "plain.bin.enc"
        restored = tmp_path / "restored.bin"
        source.write_bytes(b"\x00\x01" * 500)

        size = encrypt_file(source, sealed, "pw")
        assert size == sealed.stat().st_size
        assert decrypt_file(sealed, restored, "pw") == 1000
        assert restored.read_bytes() == source.read_bytes()

    def test_decrypt_file_leaves_no_output_on_failure(self, tmp_path):
        sealed = tmp_path / "bad.enc"
        sealed.write_bytes(b"garbage" * 4)
        with pytest.raises(FormatError):
            decrypt_file(sealed, tmp_path / "out.bin", "pw")
        assert not (tmp_path / "out.bin").exists()
