"""Exception types for the radio link adapter.

Errors raised by the radio collaborator itself (BLE stack failures) are not
wrapped; they propagate to the caller unchanged.
"""

from __future__ import annotations

from telink_mesh.protocol.exceptions import TelinkMeshError


class LinkError(TelinkMeshError):
    """Base class for adapter errors."""


class LinkStateError(LinkError):
    """Operation attempted in the wrong link state (e.g. sending while disconnected).

    Attributes:
        reason: Specific failure reason
        state: Link state when the error occurred

    """

    def __init__(self, reason: str, state: str = "unknown") -> None:
        self.state: str = state
        super().__init__(reason, f"Link state error: {reason} (state: {state})")
