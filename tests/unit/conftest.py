"""Shared fixtures for telink_mesh unit tests."""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from telink_mesh.protocol.dispatcher import BaseReportSink
from telink_mesh.protocol.key_derivation import derive_session_key
from telink_mesh.protocol.packet_builder import build_packet
from telink_mesh.session import MeshSession
from telink_mesh.structs import DeviceIdentity
from telink_mesh.transport.radio_link import RadioLink

MAC = "AA:BB:CC:DD:EE:FF"
REVERSED_MAC = bytes.fromhex("FFEEDDCCBBAA")
MESH_NAME = "telink_mesh1"
MESH_PASSWORD = "123"
VENDOR_CODE = 0x0211
NONCE_LOCAL = bytes(range(1, 9))
NONCE_REMOTE = bytes(range(0x11, 0x19))
PAIR_RESPONSE_OK = b"\x0d" + NONCE_REMOTE
RADIO_HANDLE = "radio-handle-1"

ReportFrameFactory = Callable[..., bytes]


@pytest.fixture
def identity() -> DeviceIdentity:
    return DeviceIdentity(mac=MAC, name=MESH_NAME, password=MESH_PASSWORD, vendor=VENDOR_CODE)


@pytest.fixture
def session_key() -> bytes:
    """Key an established session derives from the fixed nonces."""
    return derive_session_key(MESH_NAME, MESH_PASSWORD, NONCE_LOCAL, NONCE_REMOTE)


@pytest.fixture
def session(identity: DeviceIdentity) -> MeshSession:
    """Session without a key."""
    return MeshSession(identity)


@pytest.fixture
def established_session(identity: DeviceIdentity) -> MeshSession:
    new_session = MeshSession(identity)
    new_session.establish(NONCE_LOCAL, NONCE_REMOTE)
    return new_session


@pytest.fixture
def report_frame(session_key: bytes) -> ReportFrameFactory:
    """Return a factory building encrypted device -> client frames."""

    def _make(command: int, payload: bytes = b"", address: bytes = REVERSED_MAC, sequence: int = 0x0107) -> bytes:
        return build_packet(command, payload, sequence, address, session_key, VENDOR_CODE & 0xFF)

    return _make


@pytest.fixture
def sink() -> MagicMock:
    return MagicMock(spec=BaseReportSink)


@pytest.fixture
def radio() -> AsyncMock:
    """Radio link that accepts the pair request."""
    fake_radio = AsyncMock(spec=RadioLink)
    fake_radio.connect.return_value = RADIO_HANDLE
    fake_radio.read.return_value = PAIR_RESPONSE_OK
    return fake_radio
