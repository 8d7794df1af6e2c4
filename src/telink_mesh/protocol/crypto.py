"""Telink block primitive and 20-byte frame codec.

Telink firmware runs AES-128 on byte-reversed keys and blocks: the key and
the zero-padded input block are reversed before the cipher and the output is
reversed again. Every cryptographic step of the protocol (session key
derivation, credential encryption, frame keystream) goes through this one
primitive.

Frame codec:
- Bytes 0-1 (sequence) travel in clear and act as the per-frame nonce
- Bytes 2-19 are XORed with a keystream of two primitive blocks, block i
  being telink_encrypt(key, [i, 0x01, seq_lo, seq_hi, 0 x 12])

There is no integrity tag. Decryption accepts any 20-byte input; validity of
the result is judged by the command dispatcher.

Frames from this codec do not interoperate with stock Telink firmware, which
builds its CTR nonce from the device MAC and appends a 2-byte tag.
"""

from __future__ import annotations


from Crypto.Cipher import AES

from telink_mesh.const import FRAME_LENGTH, KEY_LENGTH
from telink_mesh.logging_abstraction import get_logger
from telink_mesh.protocol.exceptions import InvalidFrameLengthError

BLOCK_LENGTH = 16
NONCE_LENGTH_BYTES = 2  # Sequence field doubles as the frame nonce
KEYSTREAM_MARKER = 0x01

logger = get_logger(__name__)


def _check_key(key: bytes | bytearray) -> None:
    if len(key) != KEY_LENGTH:
        raise InvalidFrameLengthError("key", len(key), KEY_LENGTH)


def telink_encrypt(key: bytes | bytearray, block: bytes | bytearray) -> bytes:
    """Encrypt one block with the Telink byte-reversed AES-128 convention.

    Args:
        key: 16-byte key
        block: Up to 16 bytes, zero padded on the right to a full block

    Returns:
        16 encrypted bytes

    Raises:
        InvalidFrameLengthError: If key is not 16 bytes or block exceeds 16 bytes

    Example:
        >>> len(telink_encrypt(bytes(16), b"\\x01"))
        16

    """
    _check_key(key)
    if len(block) > BLOCK_LENGTH:
        raise InvalidFrameLengthError("block", len(block), BLOCK_LENGTH)

    padded = bytes(block).ljust(BLOCK_LENGTH, b"\x00")
    cipher = AES.new(bytes(key)[::-1], AES.MODE_ECB)
    return cipher.encrypt(padded[::-1])[::-1]


def _keystream(key: bytes | bytearray, nonce: bytes, length: int) -> bytes:
    """Build a keystream of at least length bytes from the sequence nonce."""
    stream = bytearray()
    counter = 0
    while len(stream) < length:
        stream += telink_encrypt(key, bytes([counter, KEYSTREAM_MARKER]) + nonce)
        counter += 1
    return bytes(stream[:length])


def _apply_keystream(frame: bytes | bytearray, key: bytes | bytearray) -> bytes:
    nonce = bytes(frame[:NONCE_LENGTH_BYTES])
    body = frame[NONCE_LENGTH_BYTES:]
    stream = _keystream(key, nonce, len(body))
    return nonce + bytes(a ^ b for a, b in zip(body, stream, strict=True))


def encrypt_frame(cleartext: bytes | bytearray, key: bytes | bytearray) -> bytes:
    """Encrypt a 20-byte cleartext frame with the session key.

    Raises:
        InvalidFrameLengthError: If cleartext is not 20 bytes or key is not 16 bytes

    """
    if len(cleartext) != FRAME_LENGTH:
        raise InvalidFrameLengthError("frame", len(cleartext), FRAME_LENGTH, cleartext)
    _check_key(key)

    ciphertext = _apply_keystream(cleartext, key)
    logger.debug(
        "Encrypted frame: seq=%d",
        int.from_bytes(cleartext[:NONCE_LENGTH_BYTES], "little"),
        extra={"bytes": len(ciphertext)},
    )
    return ciphertext


def decrypt_frame(ciphertext: bytes | bytearray, key: bytes | bytearray) -> bytes:
    """Decrypt a 20-byte ciphertext frame with the session key.

    Never fails on the content of a well-sized frame: forged or corrupted
    frames decrypt to arbitrary cleartext.

    Raises:
        InvalidFrameLengthError: If ciphertext is not 20 bytes or key is not 16 bytes

    """
    if len(ciphertext) != FRAME_LENGTH:
        raise InvalidFrameLengthError("frame", len(ciphertext), FRAME_LENGTH, ciphertext)
    _check_key(key)

    cleartext = _apply_keystream(ciphertext, key)
    logger.debug(
        "Decrypted frame: seq=%d, command=0x%02x",
        int.from_bytes(cleartext[:NONCE_LENGTH_BYTES], "little"),
        cleartext[NONCE_LENGTH_BYTES],
    )
    return cleartext
