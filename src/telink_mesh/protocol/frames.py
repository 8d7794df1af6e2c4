"""Cleartext frame layout.

Every application frame is exactly 20 bytes:
- Bytes 0-1: sequence (little-endian)
- Byte 2: command code
- Byte 3: vendor (low byte of the Bluetooth vendor code)
- Bytes 4-9: device address, byte-reversed (wire order)
- Bytes 10-19: command payload, zero padded
"""

from __future__ import annotations

from dataclasses import dataclass

from telink_mesh.const import FRAME_LENGTH, MAX_PAYLOAD_LENGTH
from telink_mesh.protocol.exceptions import InvalidFrameLengthError, PayloadTooLargeError

SEQUENCE_OFFSET = 0
COMMAND_OFFSET = 2
VENDOR_OFFSET = 3
ADDRESS_OFFSET = 4
PAYLOAD_OFFSET = 10
ADDRESS_LENGTH_BYTES = 6


def reverse_address(mac: str) -> bytes:
    """Convert "AA:BB:CC:DD:EE:FF" to its wire form (bytes FF EE DD CC BB AA).

    Raises:
        ValueError: If mac is not six hex octets separated by ":" or "-"

    """
    octets = mac.replace("-", ":").split(":")
    if len(octets) != ADDRESS_LENGTH_BYTES or any(len(o) != 2 for o in octets):  # noqa: PLR2004
        error_msg = f"MAC address must have {ADDRESS_LENGTH_BYTES} octets, got {mac!r}"
        raise ValueError(error_msg)
    return bytes.fromhex("".join(octets))[::-1]


@dataclass(frozen=True, slots=True)
class FrameFields:
    """Structured view of a cleartext frame.

    Attributes:
        sequence: 16-bit sequence counter value
        command: Command code byte
        vendor: Vendor byte
        address: 6-byte reversed device address
        payload: Exactly 10 payload bytes (zero padded)

    """

    sequence: int
    command: int
    vendor: int
    address: bytes
    payload: bytes

    @property
    def address_hex(self) -> str:
        """Return the address in canonical (non-reversed) colon form."""
        return ":".join(f"{b:02X}" for b in reversed(self.address))


def pack_frame(fields: FrameFields) -> bytes:
    """Lay out a FrameFields value as 20 cleartext bytes.

    Raises:
        PayloadTooLargeError: If payload exceeds 10 bytes
        ValueError: If sequence, command, vendor or address are out of range

    """
    if len(fields.payload) > MAX_PAYLOAD_LENGTH:
        raise PayloadTooLargeError(len(fields.payload), MAX_PAYLOAD_LENGTH)
    if not 0 <= fields.sequence <= 0xFFFF:
        error_msg = f"sequence must fit 16 bits, got {fields.sequence}"
        raise ValueError(error_msg)
    if not 0 <= fields.command <= 0xFF or not 0 <= fields.vendor <= 0xFF:
        error_msg = f"command and vendor must fit a byte, got 0x{fields.command:x}/0x{fields.vendor:x}"
        raise ValueError(error_msg)
    if len(fields.address) != ADDRESS_LENGTH_BYTES:
        error_msg = f"address must be {ADDRESS_LENGTH_BYTES} bytes, got {len(fields.address)}"
        raise ValueError(error_msg)

    frame = bytearray(FRAME_LENGTH)
    frame[SEQUENCE_OFFSET:COMMAND_OFFSET] = fields.sequence.to_bytes(2, "little")
    frame[COMMAND_OFFSET] = fields.command
    frame[VENDOR_OFFSET] = fields.vendor
    frame[ADDRESS_OFFSET:PAYLOAD_OFFSET] = fields.address
    frame[PAYLOAD_OFFSET : PAYLOAD_OFFSET + len(fields.payload)] = fields.payload
    return bytes(frame)


def unpack_frame(cleartext: bytes | bytearray) -> FrameFields:
    """Split 20 cleartext bytes into their fields.

    Raises:
        InvalidFrameLengthError: If cleartext is not 20 bytes

    """
    if len(cleartext) != FRAME_LENGTH:
        raise InvalidFrameLengthError("frame", len(cleartext), FRAME_LENGTH, cleartext)
    return FrameFields(
        sequence=int.from_bytes(cleartext[SEQUENCE_OFFSET:COMMAND_OFFSET], "little"),
        command=cleartext[COMMAND_OFFSET],
        vendor=cleartext[VENDOR_OFFSET],
        address=bytes(cleartext[ADDRESS_OFFSET:PAYLOAD_OFFSET]),
        payload=bytes(cleartext[PAYLOAD_OFFSET:]),
    )
