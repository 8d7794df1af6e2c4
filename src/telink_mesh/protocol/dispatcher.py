"""Inbound frame validation and report dispatch.

Flow for one notification:
1. Decrypt with the live session key (MeshSession.decrypt)
2. Validate: command must be a report code, address must be ours or broadcast
3. Parse the payload with the parser registered for the command
4. Feed address/group reports back into the session (MeshSession.apply_report)
5. Hand the report to the sink through report.accept(sink)

Frames failing step 2 become Unrecognized and are never parsed. Echoes of
our own queries carry query command codes, so they fail the command check.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Final, Protocol

from telink_mesh.const import BROADCAST_ADDRESS
from telink_mesh.logging_abstraction import get_logger
from telink_mesh.metrics import registry
from telink_mesh.protocol.commands import REPORT_COMMANDS, Command, command_name
from telink_mesh.protocol.frames import unpack_frame
from telink_mesh.protocol.reports import (
    AddressReport,
    DeviceInfoReport,
    GroupIdReport,
    OnlineStatusReport,
    OtaStatusReport,
    Report,
    TimeReport,
    Unrecognized,
    parse_address_report,
    parse_device_info_report,
    parse_group_id_report,
    parse_online_status_report,
    parse_ota_status_report,
    parse_time_report,
)

if TYPE_CHECKING:
    from telink_mesh.session import MeshSession

logger = get_logger(__name__)

ReportParser = Callable[[int, int, bytes], Report]

REPORT_PARSERS: Final[dict[int, ReportParser]] = {
    Command.TIME_REPORT: parse_time_report,
    Command.ADDRESS_REPORT: parse_address_report,
    Command.DEVICE_INFO_REPORT: parse_device_info_report,
    Command.GROUP_ID_REPORT: parse_group_id_report,
    Command.ONLINE_STATUS_REPORT: parse_online_status_report,
    Command.OTA_STATUS_REPORT: parse_ota_status_report,
}


class ReportSink(Protocol):
    """Receiver of decoded reports, one method per report variant."""

    def on_time_report(self, report: TimeReport) -> None:
        """Handle a device clock report."""
        ...

    def on_address_report(self, report: AddressReport) -> None:
        """Handle a mesh address report."""
        ...

    def on_device_info_report(self, report: DeviceInfoReport) -> None:
        """Handle a device info or firmware version report."""
        ...

    def on_group_id_report(self, report: GroupIdReport) -> None:
        """Handle a group membership report."""
        ...

    def on_online_status_report(self, report: OnlineStatusReport) -> None:
        """Handle an online status report."""
        ...

    def on_ota_status_report(self, report: OtaStatusReport) -> None:
        """Handle an OTA status report."""
        ...

    def on_unrecognized(self, report: Unrecognized) -> None:
        """Handle a frame that failed validation or has an unknown command."""
        ...


class BaseReportSink:
    """ReportSink with no-op handlers; override only what you need."""

    def on_time_report(self, report: TimeReport) -> None:
        pass

    def on_address_report(self, report: AddressReport) -> None:
        pass

    def on_device_info_report(self, report: DeviceInfoReport) -> None:
        pass

    def on_group_id_report(self, report: GroupIdReport) -> None:
        pass

    def on_online_status_report(self, report: OnlineStatusReport) -> None:
        pass

    def on_ota_status_report(self, report: OtaStatusReport) -> None:
        pass

    def on_unrecognized(self, report: Unrecognized) -> None:
        pass


def classify_frame(cleartext: bytes, expected_address: bytes) -> Report:
    """Validate a decrypted frame and parse it into a report.

    Pure: no session access, no side effects.
    """
    fields = unpack_frame(cleartext)
    if fields.command not in REPORT_COMMANDS:
        return Unrecognized(
            sequence=fields.sequence,
            command=fields.command,
            payload=fields.payload,
            reason="unknown_command",
        )
    if fields.address not in (expected_address, BROADCAST_ADDRESS):
        return Unrecognized(
            sequence=fields.sequence,
            command=fields.command,
            payload=fields.payload,
            reason="foreign_address",
        )
    return REPORT_PARSERS[fields.command](fields.sequence, fields.command, fields.payload)


class CommandDispatcher:
    """Routes inbound ciphertext frames to typed reports.

    The only state it touches is the session it was given: the key (read)
    and, for address and group reports, the cached mesh_id/groups (written
    through MeshSession.apply_report).
    """

    def __init__(self, session: MeshSession, sink: ReportSink | None = None) -> None:
        self.session: MeshSession = session
        self.sink: ReportSink = sink or BaseReportSink()

    def on_inbound(self, ciphertext: bytes | bytearray) -> Report:
        """Decrypt, validate, parse and deliver one inbound frame.

        Returns:
            The decoded report (Unrecognized for invalid or unknown frames)

        Raises:
            NoActiveSessionError: If the session has no key
            InvalidFrameLengthError: If ciphertext is not 20 bytes

        """
        cleartext = self.session.decrypt(ciphertext)
        report = classify_frame(cleartext, self.session.reversed_address)

        if isinstance(report, Unrecognized):
            registry.record_frame_received("unrecognized")
            logger.debug(
                "Unrecognized frame: command=%s, reason=%s",
                command_name(report.command),
                report.reason,
                extra={"sequence": report.sequence},
            )
        else:
            registry.record_frame_received("report")
            logger.debug(
                "Dispatching %s report",
                report.kind,
                extra={"sequence": report.sequence, "command": command_name(report.command)},
            )
            self.session.apply_report(report)

        registry.record_report(report.kind)
        report.accept(self.sink)
        return report
