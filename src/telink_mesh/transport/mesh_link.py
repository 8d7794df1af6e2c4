"""Asyncio adapter composing a RadioLink with a MeshSession.

MeshLink runs the pairing handshake on connect, wires inbound notifications
into a CommandDispatcher, and exposes every session operation as a coroutine
that builds the frame and writes it to the command characteristic.

Link state is protected by an asyncio.Lock. The lock is released before any
radio I/O; the session's own threading.Lock is only held inside
MeshSession calls, never across an await.
"""

from __future__ import annotations

import asyncio
import datetime
import functools
import secrets
from collections.abc import Callable
from enum import Enum
from typing import Any, Self

from telink_mesh.const import NONCE_LENGTH
from telink_mesh.correlation import FrameDirection, correlation_context
from telink_mesh.logging_abstraction import get_logger
from telink_mesh.metrics import registry
from telink_mesh.protocol.commands import NOTIFY_ENABLE, command_name
from telink_mesh.protocol.dispatcher import CommandDispatcher, ReportSink
from telink_mesh.protocol.exceptions import TelinkMeshError
from telink_mesh.protocol.key_derivation import make_pair_request, parse_pair_response
from telink_mesh.session import MeshSession
from telink_mesh.transport.exceptions import LinkStateError
from telink_mesh.transport.radio_link import Endpoint, RadioLink

logger = get_logger(__name__)


class LinkState(Enum):
    """Link state enumeration."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class MeshLink:
    """One paired connection to a Telink device over an external radio link.

    Example:
        link = MeshLink(radio, MeshSession(identity), sink=my_sink)
        await link.connect()
        await link.query_groups()
        # GroupIdReport arrives later through my_sink.on_group_id_report
        await link.disconnect()

    """

    def __init__(self, radio: RadioLink, session: MeshSession, sink: ReportSink | None = None) -> None:
        self.radio: RadioLink = radio
        self.session: MeshSession = session
        self.dispatcher: CommandDispatcher = CommandDispatcher(session, sink)
        self.state: LinkState = LinkState.DISCONNECTED
        self.handle: Any = None
        self._state_lock: asyncio.Lock = asyncio.Lock()
        self._attempt: object | None = None
        self.lp: str = f"MeshLink:{session.identity.mac}:"

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.disconnect()

    @property
    def is_connected(self) -> bool:
        return self.state == LinkState.CONNECTED

    async def connect(self) -> None:
        """Connect, pair, derive the session key and enable notifications.

        Raises:
            LinkStateError: If the link is not disconnected, or disconnect() ran mid-connect
            PairingRejectedError: If the device refuses the mesh credentials
            PairingNonceError: If the pair response is malformed
            InvalidCredentialsError: If the identity's credentials are unusable

        """
        attempt = object()
        async with self._state_lock:
            if self.state != LinkState.DISCONNECTED:
                error_msg = "connect requires DISCONNECTED state"
                raise LinkStateError(error_msg, state=self.state.value)
            self.state = LinkState.CONNECTING
            self._attempt = attempt

        identity = self.session.identity
        handle: Any = None
        claimed = False
        with correlation_context(FrameDirection.PAIRING):
            logger.info("%s → Connecting", self.lp)
            try:
                handle = await self.radio.connect(identity)
                await self._claim(attempt, handle=handle)
                claimed = True

                nonce_local = secrets.token_bytes(NONCE_LENGTH)
                await self.radio.write(
                    handle, Endpoint.PAIR, make_pair_request(identity.name, identity.password, nonce_local)
                )
                response = await self.radio.read(handle, Endpoint.PAIR)
                nonce_remote = parse_pair_response(response)
                await self._claim(attempt)
                self.session.establish(nonce_local, nonce_remote)

                await self.radio.subscribe(handle, Endpoint.NOTIFY, self._on_notification)
                await self.radio.write(handle, Endpoint.NOTIFY, NOTIFY_ENABLE)
                await self._claim(attempt, state=LinkState.CONNECTED)
            except asyncio.CancelledError:
                logger.debug("%s Connect cancelled, tearing down", self.lp)
                await self._abort(attempt, handle, claimed=claimed)
                raise
            except Exception:
                logger.warning("%s Connect failed, tearing down", self.lp)
                await self._abort(attempt, handle, claimed=claimed)
                raise

        logger.info("%s ✓ Connected, session established", self.lp)

    async def _claim(self, attempt: object, *, handle: Any = None, state: LinkState | None = None) -> None:
        """Commit connect progress unless a disconnect() has superseded the attempt."""
        async with self._state_lock:
            if self._attempt is not attempt:
                error_msg = "connect aborted by disconnect"
                raise LinkStateError(error_msg, state=self.state.value)
            if handle is not None:
                self.handle = handle
            if state is not None:
                self.state = state
                self._attempt = None

    async def _abort(self, attempt: object, handle: Any, *, claimed: bool) -> None:
        async with self._state_lock:
            owned = self._attempt is attempt
            if owned:
                self._attempt = None
                self.handle = None
                self.state = LinkState.DISCONNECTED
            # A newer connect may already hold a fresh key
            idle = self._attempt is None

        if owned or idle:
            self.session.close()
        # Once claimed, a superseding disconnect() has already closed the handle
        if handle is not None and (owned or not claimed):
            try:
                await self.radio.disconnect(handle)
            except Exception:
                logger.exception("%s Radio disconnect failed during teardown", self.lp)

    async def disconnect(self) -> None:
        """Close the radio connection and wipe the session key.

        A connect() still in progress is superseded: it tears down what it has
        opened and raises LinkStateError.
        """
        async with self._state_lock:
            if self.state == LinkState.DISCONNECTED:
                return
            handle = self.handle
            self.handle = None
            self.state = LinkState.DISCONNECTED
            self._attempt = None

        try:
            if handle is not None:
                await self.radio.disconnect(handle)
        finally:
            self.session.close()
        logger.info("%s Disconnected", self.lp)

    async def _require_connected(self, operation: str) -> Any:
        async with self._state_lock:
            if self.state != LinkState.CONNECTED:
                error_msg = f"Operation '{operation}' requires CONNECTED state"
                raise LinkStateError(error_msg, state=self.state.value)
            return self.handle

    async def send(self, frame: bytes) -> None:
        """Write an already built ciphertext frame to the command characteristic.

        Raises:
            LinkStateError: If not connected

        """
        handle = await self._require_connected("send")
        with correlation_context(FrameDirection.OUTBOUND):
            await self.radio.write(handle, Endpoint.COMMAND, frame)
            logger.debug("%s Frame sent", self.lp, extra={"bytes": len(frame)})

    async def _send_built(self, operation: str, build: Callable[[], bytes]) -> bytes:
        # Checked before building: a disconnected link never consumes a sequence number
        handle = await self._require_connected(operation)
        with correlation_context(FrameDirection.OUTBOUND):
            frame = build()
            await self.radio.write(handle, Endpoint.COMMAND, frame)
            logger.debug("%s → %s sent", self.lp, operation)
        return frame

    def _on_notification(self, data: bytes) -> None:
        """Radio callback for the notification characteristic.

        Protocol errors are counted and logged. A failing report sink is logged
        on its own. Neither propagates into the radio stack.
        """
        with correlation_context(FrameDirection.INBOUND):
            try:
                self.dispatcher.on_inbound(data)
            except TelinkMeshError:
                registry.record_frame_received("error")
                logger.exception("%s Failed to process notification", self.lp, extra={"bytes": len(data)})
            except Exception:
                logger.exception("%s Report sink raised while handling notification", self.lp)

    # ------------------------------------------------------------------
    # Session operations
    # ------------------------------------------------------------------

    async def send_command(self, command: int, payload: bytes = b"") -> bytes:
        return await self._send_built(
            f"send_command({command_name(command)})",
            functools.partial(self.session.send_command, command, payload),
        )

    async def query_time(self) -> bytes:
        return await self._send_built("query_time", self.session.query_time)

    async def set_time(self, when: datetime.datetime | None = None) -> bytes:
        return await self._send_built("set_time", functools.partial(self.session.set_time, when))

    async def query_device_info(self) -> bytes:
        return await self._send_built("query_device_info", self.session.query_device_info)

    async def query_device_version(self) -> bytes:
        return await self._send_built("query_device_version", self.session.query_device_version)

    async def query_groups(self) -> bytes:
        return await self._send_built("query_groups", self.session.query_groups)

    async def query_mesh_id(self) -> bytes:
        return await self._send_built("query_mesh_id", self.session.query_mesh_id)

    async def set_mesh_id(self, mesh_id: int) -> bytes:
        return await self._send_built("set_mesh_id", functools.partial(self.session.set_mesh_id, mesh_id))

    async def add_group(self, group: int) -> bytes:
        return await self._send_built("add_group", functools.partial(self.session.add_group, group))

    async def delete_group(self, group: int) -> bytes:
        return await self._send_built("delete_group", functools.partial(self.session.delete_group, group))

    async def reset(self) -> bytes:
        return await self._send_built("reset", self.session.reset)

    async def query_ota_state(self) -> bytes:
        return await self._send_built("query_ota_state", self.session.query_ota_state)
