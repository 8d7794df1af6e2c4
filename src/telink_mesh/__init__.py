"""Client-side protocol engine for Telink BLE mesh devices.

Public API:
- DeviceIdentity: MAC address, mesh credentials and vendor code
- MeshSession: session key, sequence counter and addressing state
- CommandDispatcher / ReportSink: inbound frame routing to typed reports
- MeshLink / RadioLink: asyncio adapter over an external BLE radio link
"""

__version__ = "0.1.0"

from telink_mesh.protocol.dispatcher import BaseReportSink, CommandDispatcher, ReportSink  # noqa: E402
from telink_mesh.protocol.exceptions import TelinkMeshError  # noqa: E402
from telink_mesh.session import MeshSession  # noqa: E402
from telink_mesh.structs import DeviceIdentity  # noqa: E402
from telink_mesh.transport.mesh_link import MeshLink  # noqa: E402
from telink_mesh.transport.radio_link import Endpoint, RadioLink  # noqa: E402

__all__ = [
    "BaseReportSink",
    "CommandDispatcher",
    "DeviceIdentity",
    "Endpoint",
    "MeshLink",
    "MeshSession",
    "RadioLink",
    "ReportSink",
    "TelinkMeshError",
    "__version__",
]
