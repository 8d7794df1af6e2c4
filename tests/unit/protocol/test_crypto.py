"""Unit tests for the Telink block primitive and frame codec."""

from __future__ import annotations

import pytest

from telink_mesh.protocol.crypto import decrypt_frame, encrypt_frame, telink_encrypt
from telink_mesh.protocol.exceptions import InvalidFrameLengthError

# FIPS-197 appendix C.1 (AES-128)
FIPS_KEY = bytes(range(16))
FIPS_PLAINTEXT = bytes.fromhex("00112233445566778899aabbccddeeff")
FIPS_CIPHERTEXT = bytes.fromhex("69c4e0d86a7b0430d8cdb78070b4c55a")

KEY = bytes.fromhex("0f1e2d3c4b5a69788796a5b4c3d2e1f0")
OTHER_KEY = bytes.fromhex("00000000000000000000000000000001")
FRAME_LENGTH = 20
PREVIEW_LIMIT = 4

CLEARTEXT = bytes.fromhex("0100e811ffeeddccbbaa") + bytes(10)


class TestTelinkEncrypt:
    """Tests for the byte-reversed AES-128 primitive."""

    def test_fips_vector_through_reversal(self):
        """Reversed inputs reproduce the FIPS-197 vector, reversed."""
        assert telink_encrypt(FIPS_KEY[::-1], FIPS_PLAINTEXT[::-1]) == FIPS_CIPHERTEXT[::-1]

    def test_short_block_is_zero_padded(self):
        """A short block encrypts as if padded with zeros on the right."""
        assert telink_encrypt(KEY, b"\x01\x02") == telink_encrypt(KEY, b"\x01\x02" + bytes(14))

    def test_output_is_one_block(self):
        assert len(telink_encrypt(KEY, b"")) == 16

    def test_accepts_bytearray_key(self):
        assert telink_encrypt(bytearray(KEY), b"\x01") == telink_encrypt(KEY, b"\x01")

    @pytest.mark.parametrize("key_length", [0, 15, 17, 32])
    def test_rejects_wrong_key_length(self, key_length: int):
        """Keys other than 16 bytes are rejected."""
        with pytest.raises(InvalidFrameLengthError) as exc_info:
            telink_encrypt(bytes(key_length), b"")
        assert exc_info.value.length == key_length
        assert exc_info.value.expected == 16

    def test_rejects_oversized_block(self):
        with pytest.raises(InvalidFrameLengthError):
            telink_encrypt(KEY, bytes(17))


class TestFrameCodec:
    """Tests for encrypt_frame / decrypt_frame."""

    def test_round_trip(self):
        """Decrypting an encrypted frame with the same key restores it."""
        ciphertext = encrypt_frame(CLEARTEXT, KEY)
        assert len(ciphertext) == FRAME_LENGTH
        assert decrypt_frame(ciphertext, KEY) == CLEARTEXT

    def test_sequence_field_travels_in_clear(self):
        """Bytes 0-1 are the nonce and are not encrypted."""
        ciphertext = encrypt_frame(CLEARTEXT, KEY)
        assert ciphertext[:2] == CLEARTEXT[:2]
        assert ciphertext[2:] != CLEARTEXT[2:]

    def test_codec_is_involutive(self):
        """Encrypt and decrypt are the same keystream XOR."""
        assert encrypt_frame(encrypt_frame(CLEARTEXT, KEY), KEY) == CLEARTEXT

    def test_deterministic(self):
        assert encrypt_frame(CLEARTEXT, KEY) == encrypt_frame(CLEARTEXT, KEY)

    def test_sequence_changes_keystream(self):
        """Frames differing only in sequence encrypt to different bodies."""
        other = b"\x02" + CLEARTEXT[1:]
        assert encrypt_frame(CLEARTEXT, KEY)[2:] != encrypt_frame(other, KEY)[2:]

    def test_wrong_key_does_not_restore_cleartext(self):
        ciphertext = encrypt_frame(CLEARTEXT, KEY)
        assert decrypt_frame(ciphertext, OTHER_KEY) != CLEARTEXT

    def test_decrypt_accepts_arbitrary_frames(self):
        """No integrity tag: any 20-byte input decrypts without error."""
        assert len(decrypt_frame(bytes(range(20)), KEY)) == FRAME_LENGTH

    @pytest.mark.parametrize("length", [0, 19, 21])
    def test_rejects_wrong_frame_length(self, length: int):
        """Frames other than 20 bytes are rejected on both paths."""
        data = bytes(range(length))
        for codec in (encrypt_frame, decrypt_frame):
            with pytest.raises(InvalidFrameLengthError) as exc_info:
                codec(data, KEY)
            assert exc_info.value.length == length
            assert exc_info.value.expected == FRAME_LENGTH
            assert len(exc_info.value.data_preview) <= PREVIEW_LIMIT

    def test_rejects_wrong_key_length(self):
        with pytest.raises(InvalidFrameLengthError):
            encrypt_frame(CLEARTEXT, KEY[:8])
