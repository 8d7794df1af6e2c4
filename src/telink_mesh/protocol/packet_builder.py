"""Command packet construction.

Stateless helpers; the sequence counter and the live session key belong to
MeshSession, which calls build_packet under its lock.
"""

from __future__ import annotations


from telink_mesh.const import MAX_PAYLOAD_LENGTH
from telink_mesh.logging_abstraction import get_logger
from telink_mesh.protocol.crypto import encrypt_frame
from telink_mesh.protocol.exceptions import NoActiveSessionError, PayloadTooLargeError
from telink_mesh.protocol.frames import FrameFields, pack_frame

logger = get_logger(__name__)


def build_cleartext(
    command: int,
    payload: bytes | bytearray,
    sequence: int,
    address: bytes,
    vendor: int = 0x11,
) -> bytes:
    """Lay out a cleartext command frame.

    Args:
        command: Command code byte
        payload: 0 to 10 payload bytes, zero padded to 10
        sequence: Sequence counter value for this frame
        address: 6-byte reversed device address
        vendor: Vendor byte

    Raises:
        PayloadTooLargeError: If payload exceeds 10 bytes

    """
    if len(payload) > MAX_PAYLOAD_LENGTH:
        raise PayloadTooLargeError(len(payload), MAX_PAYLOAD_LENGTH)
    fields = FrameFields(
        sequence=sequence,
        command=command,
        vendor=vendor,
        address=bytes(address),
        payload=bytes(payload).ljust(MAX_PAYLOAD_LENGTH, b"\x00"),
    )
    return pack_frame(fields)


def build_packet(
    command: int,
    payload: bytes | bytearray,
    sequence: int,
    address: bytes,
    key: bytes | bytearray | None,
    vendor: int = 0x11,
) -> bytes:
    """Build and encrypt a command frame.

    Returns:
        20-byte ciphertext frame

    Raises:
        NoActiveSessionError: If key is None (no session established)
        PayloadTooLargeError: If payload exceeds 10 bytes

    """
    if key is None:
        raise NoActiveSessionError
    cleartext = build_cleartext(command, payload, sequence, address, vendor)
    logger.debug(
        "Built command frame: command=0x%02x, seq=%d, payload_len=%d",
        command,
        sequence,
        len(payload),
    )
    return encrypt_frame(cleartext, key)
