"""Unit tests for the cleartext frame layout and packet builder."""

from __future__ import annotations

import pytest

from telink_mesh.protocol.commands import Command
from telink_mesh.protocol.crypto import decrypt_frame
from telink_mesh.protocol.exceptions import InvalidFrameLengthError, NoActiveSessionError, PayloadTooLargeError
from telink_mesh.protocol.frames import FrameFields, pack_frame, reverse_address, unpack_frame
from telink_mesh.protocol.packet_builder import build_cleartext, build_packet

REVERSED_MAC = bytes.fromhex("FFEEDDCCBBAA")
KEY = bytes.fromhex("000102030405060708090a0b0c0d0e0f")
VENDOR = 0x11
FRAME_LENGTH = 20
MAX_PAYLOAD = bytes(range(1, 11))


class TestReverseAddress:
    """Tests for reverse_address()."""

    @pytest.mark.parametrize("mac", ["AA:BB:CC:DD:EE:FF", "aa:bb:cc:dd:ee:ff", "AA-BB-CC-DD-EE-FF"])
    def test_reverses_octets(self, mac: str):
        assert reverse_address(mac) == REVERSED_MAC

    @pytest.mark.parametrize("mac", ["", "AA:BB:CC:DD:EE", "AA:BB:CC:DD:EE:FF:00", "AABBCCDDEEFF", "AA:BB:CC:DD:EE:GG"])
    def test_rejects_malformed(self, mac: str):
        with pytest.raises(ValueError, match=r".+"):
            reverse_address(mac)


class TestFrameLayout:
    """Tests for pack_frame / unpack_frame."""

    def test_pack_layout(self):
        """Sequence LE at 0, command at 2, vendor at 3, address at 4, payload at 10."""
        fields = FrameFields(sequence=0x0201, command=0xE8, vendor=VENDOR, address=REVERSED_MAC, payload=b"\x10")
        frame = pack_frame(fields)

        assert len(frame) == FRAME_LENGTH
        assert frame[0:2] == b"\x01\x02"
        assert frame[2] == 0xE8
        assert frame[3] == VENDOR
        assert frame[4:10] == REVERSED_MAC
        assert frame[10:] == b"\x10" + bytes(9)

    def test_unpack_inverts_pack(self):
        fields = FrameFields(sequence=65535, command=0xD4, vendor=VENDOR, address=REVERSED_MAC, payload=MAX_PAYLOAD)
        assert unpack_frame(pack_frame(fields)) == fields

    def test_address_hex(self):
        fields = unpack_frame(bytes(4) + REVERSED_MAC + bytes(10))
        assert fields.address_hex == "AA:BB:CC:DD:EE:FF"

    @pytest.mark.parametrize("length", [0, 19, 21])
    def test_unpack_rejects_wrong_length(self, length: int):
        with pytest.raises(InvalidFrameLengthError):
            unpack_frame(bytes(length))

    @pytest.mark.parametrize(
        "fields",
        [
            FrameFields(sequence=0x10000, command=0xE8, vendor=VENDOR, address=REVERSED_MAC, payload=b""),
            FrameFields(sequence=-1, command=0xE8, vendor=VENDOR, address=REVERSED_MAC, payload=b""),
            FrameFields(sequence=1, command=0x100, vendor=VENDOR, address=REVERSED_MAC, payload=b""),
            FrameFields(sequence=1, command=0xE8, vendor=0x211, address=REVERSED_MAC, payload=b""),
            FrameFields(sequence=1, command=0xE8, vendor=VENDOR, address=REVERSED_MAC[:5], payload=b""),
        ],
    )
    def test_pack_rejects_out_of_range_fields(self, fields: FrameFields):
        with pytest.raises(ValueError, match=r".+"):
            pack_frame(fields)

    def test_pack_rejects_oversized_payload(self):
        fields = FrameFields(sequence=1, command=0xE8, vendor=VENDOR, address=REVERSED_MAC, payload=bytes(11))
        with pytest.raises(PayloadTooLargeError):
            pack_frame(fields)


class TestPacketBuilder:
    """Tests for build_cleartext / build_packet."""

    def test_time_query_with_zero_payload(self):
        """Sequence 1, command 0xE8, empty payload: 10 trailing zero bytes."""
        cleartext = build_cleartext(Command.TIME_QUERY, b"", 1, REVERSED_MAC, VENDOR)
        assert cleartext == b"\x01\x00\xe8\x11" + REVERSED_MAC + bytes(10)

    def test_build_packet_decrypts_to_cleartext(self):
        frame = build_packet(Command.TIME_QUERY, b"\x10", 1, REVERSED_MAC, KEY, VENDOR)

        assert len(frame) == FRAME_LENGTH
        assert decrypt_frame(frame, KEY) == build_cleartext(Command.TIME_QUERY, b"\x10", 1, REVERSED_MAC, VENDOR)

    def test_ten_byte_payload_fills_field(self):
        cleartext = build_cleartext(0xE0, MAX_PAYLOAD, 1, REVERSED_MAC, VENDOR)
        assert cleartext[10:] == MAX_PAYLOAD

    def test_eleven_byte_payload_rejected(self):
        """Payloads never get truncated to fit."""
        with pytest.raises(PayloadTooLargeError) as exc_info:
            build_packet(0xE0, bytes(11), 1, REVERSED_MAC, KEY, VENDOR)
        assert exc_info.value.length == 11
        assert exc_info.value.limit == 10

    def test_no_key_rejected(self):
        with pytest.raises(NoActiveSessionError):
            build_packet(Command.TIME_QUERY, b"", 1, REVERSED_MAC, None, VENDOR)

    def test_default_vendor_byte(self):
        cleartext = build_cleartext(Command.RESET, b"", 1, REVERSED_MAC)
        assert cleartext[3] == VENDOR
