"""Transport package - radio link contract and asyncio session adapter."""

from telink_mesh.transport.exceptions import LinkError, LinkStateError
from telink_mesh.transport.mesh_link import LinkState, MeshLink
from telink_mesh.transport.radio_link import Endpoint, NotificationCallback, RadioLink

__all__ = [
    "Endpoint",
    "LinkError",
    "LinkState",
    "LinkStateError",
    "MeshLink",
    "NotificationCallback",
    "RadioLink",
]
