"""Session key derivation and the pair characteristic handshake.

Pairing flow:
1. Client writes a pair request: 0x0C | nonce_local(8) | credential check(8)
2. Device answers on the same characteristic: 0x0D | nonce_remote(8),
   or 0x0E when the mesh name/password do not match
3. Both sides derive session_key = telink_encrypt(name ^ password,
   nonce_local | nonce_remote)

The name/password block XORs the two zero-padded 16-byte fields. It is key
material in its own right (it encrypts the nonces), so over-long values are
rejected rather than truncated.
"""

from __future__ import annotations


from telink_mesh.const import KEY_LENGTH, MAX_CREDENTIAL_LENGTH, NONCE_LENGTH
from telink_mesh.logging_abstraction import get_logger
from telink_mesh.protocol.commands import PAIR_REQUEST, PAIR_RESPONSE_OK, PAIR_RESPONSE_REJECTED
from telink_mesh.protocol.crypto import telink_encrypt
from telink_mesh.protocol.exceptions import (
    InvalidCredentialsError,
    InvalidFrameLengthError,
    PairingNonceError,
    PairingRejectedError,
)

PAIR_CHECK_LENGTH = 8
PAIR_RESPONSE_LENGTH = 1 + NONCE_LENGTH

logger = get_logger(__name__)


def _encode_credential(value: str | bytes, field: str) -> bytes:
    raw = value.encode("utf-8") if isinstance(value, str) else bytes(value)
    if len(raw) > MAX_CREDENTIAL_LENGTH:
        error_reason = f"longer than {MAX_CREDENTIAL_LENGTH} bytes"
        raise InvalidCredentialsError(error_reason, field)
    return raw.ljust(MAX_CREDENTIAL_LENGTH, b"\x00")


def combine_name_and_password(name: str | bytes, password: str | bytes) -> bytes:
    """Combine mesh name and password into the 16-byte credential block.

    Args:
        name: Mesh name, at most 16 bytes UTF-8 encoded, not empty
        password: Mesh password, at most 16 bytes UTF-8 encoded

    Returns:
        16 bytes: zero-padded name XOR zero-padded password

    Raises:
        InvalidCredentialsError: If name is empty or either value is too long

    """
    if not name:
        error_reason = "empty"
        raise InvalidCredentialsError(error_reason, "name")
    name_block = _encode_credential(name, "name")
    password_block = _encode_credential(password, "password")
    return bytes(a ^ b for a, b in zip(name_block, password_block, strict=True))


def _check_nonce(nonce: bytes | bytearray, which: str) -> None:
    if len(nonce) != NONCE_LENGTH:
        error_reason = f"{which} nonce must be {NONCE_LENGTH} bytes"
        raise PairingNonceError(error_reason, len(nonce))


def derive_session_key(
    name: str | bytes,
    password: str | bytes,
    nonce_local: bytes | bytearray,
    nonce_remote: bytes | bytearray,
) -> bytes:
    """Derive the 16-byte session key for one connection.

    Deterministic: the same name, password and nonces always give the same key.

    Raises:
        InvalidCredentialsError: If name or password cannot be combined
        PairingNonceError: If either nonce is not exactly 8 bytes

    """
    _check_nonce(nonce_local, "local")
    _check_nonce(nonce_remote, "remote")
    combined = combine_name_and_password(name, password)

    session_key = telink_encrypt(combined, bytes(nonce_local) + bytes(nonce_remote))
    logger.debug("Derived session key", extra={"key_bytes": len(session_key)})
    return session_key


def encrypt_credentials(key: bytes | bytearray, name: str | bytes, password: str | bytes) -> bytes:
    """Encrypt the name/password block with the given 16-byte key.

    Raises:
        InvalidFrameLengthError: If key is not 16 bytes
        InvalidCredentialsError: If name or password cannot be combined

    """
    if len(key) != KEY_LENGTH:
        raise InvalidFrameLengthError("key", len(key), KEY_LENGTH)
    return telink_encrypt(key, combine_name_and_password(name, password))


def make_pair_request(name: str | bytes, password: str | bytes, nonce_local: bytes | bytearray) -> bytes:
    """Build the pair request written to the pair characteristic.

    The credential check is the first 8 bytes of the name/password block
    encrypted with the zero-padded local nonce as key.

    Returns:
        17 bytes: 0x0C | nonce_local | check

    """
    _check_nonce(nonce_local, "local")
    nonce_key = bytes(nonce_local).ljust(KEY_LENGTH, b"\x00")
    check = encrypt_credentials(nonce_key, name, password)[:PAIR_CHECK_LENGTH]
    return bytes([PAIR_REQUEST]) + bytes(nonce_local) + check


def parse_pair_response(data: bytes | bytearray) -> bytes:
    """Extract the device nonce from a pair characteristic response.

    Returns:
        8-byte remote nonce

    Raises:
        PairingRejectedError: If the device rejected the credentials (0x0E)
        PairingNonceError: If the response is short or has an unknown opcode

    """
    if not data:
        error_reason = "empty pair response"
        raise PairingNonceError(error_reason, 0)
    if data[0] == PAIR_RESPONSE_REJECTED:
        raise PairingRejectedError
    if data[0] != PAIR_RESPONSE_OK:
        error_reason = f"unexpected pair opcode 0x{data[0]:02x}"
        raise PairingNonceError(error_reason, len(data))
    if len(data) < PAIR_RESPONSE_LENGTH:
        error_reason = "pair response too short"
        raise PairingNonceError(error_reason, len(data) - 1)
    return bytes(data[1:PAIR_RESPONSE_LENGTH])
