"""Contract for the BLE radio collaborator.

Discovery, connection, characteristic lookup and byte transport are provided
by an external BLE stack. Any object with these coroutine methods works as
the radio; handles are opaque to this package.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from telink_mesh.const import UUID_COMMAND_CHAR, UUID_NOTIFICATION_CHAR, UUID_PAIR_CHAR
from telink_mesh.structs import DeviceIdentity

NotificationCallback = Callable[[bytes], None]


class Endpoint(Enum):
    """Telink GATT characteristics, valued by UUID."""

    NOTIFY = UUID_NOTIFICATION_CHAR
    COMMAND = UUID_COMMAND_CHAR
    PAIR = UUID_PAIR_CHAR

    @property
    def uuid(self) -> str:
        return self.value


@runtime_checkable
class RadioLink(Protocol):
    """Byte transport to one Telink device."""

    async def connect(self, identity: DeviceIdentity) -> Any:
        """Connect to the device and return a connection handle."""
        ...

    async def disconnect(self, handle: Any) -> None:
        """Close the connection."""
        ...

    async def write(self, handle: Any, endpoint: Endpoint, data: bytes) -> None:
        """Write bytes to a characteristic."""
        ...

    async def read(self, handle: Any, endpoint: Endpoint) -> bytes:
        """Read bytes from a characteristic (used for the pair response)."""
        ...

    async def subscribe(self, handle: Any, endpoint: Endpoint, callback: NotificationCallback) -> None:
        """Deliver every notification on endpoint to callback."""
        ...
