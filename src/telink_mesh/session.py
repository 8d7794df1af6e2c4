"""Session and addressing state for one connected Telink mesh device.

MeshSession owns the only mutable protocol state: the session key, the
outgoing sequence counter and the cached mesh address / group memberships.
All of it sits behind one lock, so the outbound build path and the inbound
notification path may run on different threads.

High-level operations return ciphertext frames for the transport to send.
The protocol has no acknowledgement: any matching report arrives later
through CommandDispatcher and has to be correlated by command type.
"""

from __future__ import annotations

import datetime
import threading
import time
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from telink_mesh.const import (
    GROUP_ADDRESS_BASE,
    GROUP_ADDRESS_MAX,
    MESH_ADDRESS_MAX,
    MESH_ADDRESS_MIN,
    SEQUENCE_MODULUS,
    SEQUENCE_START,
)
from telink_mesh.logging_abstraction import get_logger
from telink_mesh.metrics import registry
from telink_mesh.protocol.commands import (
    DEVICE_INFO_QUERY_PARAMS,
    DEVICE_VERSION_QUERY_PARAMS,
    GROUP_EDIT_ADD,
    GROUP_EDIT_DELETE,
    GROUP_ID_QUERY_PARAMS,
    MESH_ID_QUERY_PARAMS,
    TIME_QUERY_PARAMS,
    Command,
    command_name,
)
from telink_mesh.protocol.crypto import decrypt_frame
from telink_mesh.protocol.exceptions import InvalidMeshAddressError, NoActiveSessionError
from telink_mesh.protocol.key_derivation import derive_session_key
from telink_mesh.protocol.packet_builder import build_packet
from telink_mesh.protocol.reports import AddressReport, GroupIdReport, Report
from telink_mesh.structs import DeviceIdentity

logger = get_logger(__name__)

# Lock hold time above which a warning is logged (seconds)
_LOCK_HOLD_WARNING_THRESHOLD = 0.01


def validate_mesh_address(address: int) -> int:
    """Return address if it is a device (1-254) or group (0x8000-0x80FF) address.

    Raises:
        InvalidMeshAddressError: Otherwise

    """
    if MESH_ADDRESS_MIN <= address <= MESH_ADDRESS_MAX or GROUP_ADDRESS_BASE <= address <= GROUP_ADDRESS_MAX:
        return address
    raise InvalidMeshAddressError(address)


def normalize_group(group: int) -> int:
    """Accept a group as its low byte (0-255) or full address; return the full address.

    Raises:
        InvalidMeshAddressError: If group is neither

    """
    if 0 <= group <= 0xFF:
        return GROUP_ADDRESS_BASE | group
    if GROUP_ADDRESS_BASE <= group <= GROUP_ADDRESS_MAX:
        return group
    raise InvalidMeshAddressError(group, "not_a_group")


class MeshSession:
    """Protocol state of one connection: key, sequence counter, addressing.

    Attributes:
        identity: Device MAC, mesh credentials and vendor code
        mesh_id: Last mesh address reported by the device (0 = unknown)
        groups: Last group memberships reported by the device

    """

    def __init__(self, identity: DeviceIdentity, sequence: int = SEQUENCE_START) -> None:
        if not 0 <= sequence < SEQUENCE_MODULUS:
            error_msg = f"sequence must be within 0..{SEQUENCE_MODULUS - 1}, got {sequence}"
            raise ValueError(error_msg)
        self.identity: DeviceIdentity = identity
        self.mesh_id: int = 0
        self.groups: frozenset[int] = frozenset()
        self._key: bytearray | None = None
        self._sequence: int = sequence
        self._lock: threading.Lock = threading.Lock()
        self.lp: str = f"MeshSession:{identity.mac}:"

    def __repr__(self) -> str:
        return f"MeshSession(mac={self.identity.mac}, established={self.is_established}, seq={self._sequence})"

    @contextmanager
    def _locked(self, operation: str) -> Generator[None]:
        """Hold the state lock and record how long it was held."""
        with self._lock:
            lock_start = time.perf_counter()
            try:
                yield
            finally:
                lock_duration = time.perf_counter() - lock_start
                registry.record_state_lock_hold(lock_duration)
                if lock_duration > _LOCK_HOLD_WARNING_THRESHOLD:
                    logger.warning(
                        "%s State lock held for %.4fs during %s",
                        self.lp,
                        lock_duration,
                        operation,
                    )

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    @property
    def is_established(self) -> bool:
        """Return True while a session key is held."""
        return self._key is not None

    @property
    def reversed_address(self) -> bytes:
        """Return the device address in wire order."""
        return self.identity.reversed_address

    @property
    def sequence(self) -> int:
        """Return the sequence number the next built frame will carry."""
        return self._sequence

    @sequence.setter
    def sequence(self, value: int) -> None:
        if not 0 <= value < SEQUENCE_MODULUS:
            error_msg = f"sequence must be within 0..{SEQUENCE_MODULUS - 1}, got {value}"
            raise ValueError(error_msg)
        with self._locked("set_sequence"):
            self._sequence = value

    def establish(self, nonce_local: bytes, nonce_remote: bytes) -> None:
        """Derive the session key from the pairing nonces; resets the sequence counter.

        Raises:
            InvalidCredentialsError: If the identity's credentials cannot be combined
            PairingNonceError: If either nonce is not 8 bytes

        """
        try:
            key = derive_session_key(self.identity.name, self.identity.password, nonce_local, nonce_remote)
        except Exception:
            registry.record_session_establish("failure")
            raise

        with self._locked("establish"):
            self._wipe_key()
            self._key = bytearray(key)
            self._sequence = SEQUENCE_START
        registry.record_session_establish("success")
        logger.info("%s Session established", self.lp)

    def _wipe_key(self) -> None:
        if self._key is not None:
            for i in range(len(self._key)):
                self._key[i] = 0
            self._key = None

    def close(self) -> None:
        """Zeroize and drop the session key (call on disconnect)."""
        with self._locked("close"):
            was_established = self._key is not None
            self._wipe_key()
        if was_established:
            logger.info("%s Session closed, key wiped", self.lp)

    def update_identity(self, **changes: Any) -> DeviceIdentity:
        """Replace identity fields; any derived session key is wiped.

        Raises:
            InvalidCredentialsError: If a new name or password is invalid
            pydantic.ValidationError: If a new MAC address is malformed

        """
        new_identity = DeviceIdentity(**{**self.identity.model_dump(), **changes})
        with self._locked("update_identity"):
            self._wipe_key()
            self.identity = new_identity
            self.mesh_id = 0
            self.groups = frozenset()
        self.lp = f"MeshSession:{new_identity.mac}:"
        logger.info("%s Identity updated, session key wiped", self.lp)
        return new_identity

    # ------------------------------------------------------------------
    # Frame paths
    # ------------------------------------------------------------------

    def build(self, command: int, payload: bytes = b"") -> bytes:
        """Build and encrypt a frame with the live key and next sequence number.

        The counter advances by exactly one (mod 2^16) on success only.

        Raises:
            NoActiveSessionError: If no session key has been derived
            PayloadTooLargeError: If payload exceeds 10 bytes

        """
        with self._locked("build"):
            sequence = self._sequence
            frame = build_packet(
                command,
                payload,
                sequence,
                self.identity.reversed_address,
                self._key,
                self.identity.vendor_byte,
            )
            self._sequence = (sequence + 1) % SEQUENCE_MODULUS

        registry.record_frame_built(command)
        logger.debug(
            "%s Built %s frame",
            self.lp,
            command_name(command),
            extra={"sequence": sequence, "payload_len": len(payload)},
        )
        return frame

    def decrypt(self, ciphertext: bytes | bytearray) -> bytes:
        """Decrypt an inbound frame with the live key.

        Raises:
            NoActiveSessionError: If no session key has been derived
            InvalidFrameLengthError: If ciphertext is not 20 bytes

        """
        with self._locked("decrypt"):
            if self._key is None:
                raise NoActiveSessionError
            return decrypt_frame(ciphertext, self._key)

    def apply_report(self, report: Report) -> None:
        """Update cached addressing from an address or group report."""
        if isinstance(report, AddressReport):
            with self._locked("apply_address_report"):
                self.mesh_id = report.mesh_id
            logger.info("%s Mesh address is now 0x%04x", self.lp, report.mesh_id)
        elif isinstance(report, GroupIdReport):
            with self._locked("apply_group_report"):
                self.groups = report.groups
            logger.info(
                "%s Group memberships: %s",
                self.lp,
                ", ".join(f"0x{g:04x}" for g in sorted(report.groups)) or "none",
            )

    # ------------------------------------------------------------------
    # High-level operations
    # ------------------------------------------------------------------

    def send_command(self, command: int, payload: bytes = b"") -> bytes:
        """Build a frame for an arbitrary command code."""
        return self.build(command, payload)

    def query_time(self) -> bytes:
        return self.build(Command.TIME_QUERY, TIME_QUERY_PARAMS)

    def set_time(self, when: datetime.datetime | None = None) -> bytes:
        """Set the device clock (local time now if when is None)."""
        when = when or datetime.datetime.now()  # noqa: DTZ005
        payload = when.year.to_bytes(2, "little") + bytes([when.month, when.day, when.hour, when.minute, when.second])
        return self.build(Command.TIME_SET, payload)

    def query_device_info(self) -> bytes:
        return self.build(Command.DEVICE_INFO_QUERY, DEVICE_INFO_QUERY_PARAMS)

    def query_device_version(self) -> bytes:
        return self.build(Command.DEVICE_INFO_QUERY, DEVICE_VERSION_QUERY_PARAMS)

    def query_groups(self) -> bytes:
        return self.build(Command.GROUP_ID_QUERY, GROUP_ID_QUERY_PARAMS)

    def query_mesh_id(self) -> bytes:
        return self.build(Command.ADDRESS_EDIT, MESH_ID_QUERY_PARAMS)

    def set_mesh_id(self, mesh_id: int) -> bytes:
        """Assign a device (1-254) or group (0x8000-0x80FF) mesh address.

        The cached mesh_id changes only once the device's address report arrives.

        Raises:
            InvalidMeshAddressError: If mesh_id is outside both ranges

        """
        validate_mesh_address(mesh_id)
        return self.build(Command.ADDRESS_EDIT, mesh_id.to_bytes(2, "little"))

    def add_group(self, group: int) -> bytes:
        """Add the device to a group (low byte 0-255 or 0x8000-0x80FF)."""
        group_address = normalize_group(group)
        return self.build(Command.GROUP_EDIT, bytes([GROUP_EDIT_ADD, group_address & 0xFF, 0x80]))

    def delete_group(self, group: int) -> bytes:
        """Remove the device from a group (low byte 0-255 or 0x8000-0x80FF)."""
        group_address = normalize_group(group)
        return self.build(Command.GROUP_EDIT, bytes([GROUP_EDIT_DELETE, group_address & 0xFF, 0x80]))

    def reset(self) -> bytes:
        return self.build(Command.RESET)

    def query_ota_state(self) -> bytes:
        return self.build(Command.QUERY_OTA_STATE)
