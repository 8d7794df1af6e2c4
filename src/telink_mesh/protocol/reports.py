"""Typed reports decoded from inbound frames, and their payload parsers.

Each parser is a pure function of the 10-byte payload. Reports are delivered
to callers through the ReportSink visitor: ``report.accept(sink)`` calls the
sink method matching the report variant.
"""

from __future__ import annotations

import datetime
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from telink_mesh.const import GROUP_ADDRESS_BASE
from telink_mesh.protocol.commands import DEVICE_INFO_TYPE_VERSION

if TYPE_CHECKING:
    from telink_mesh.protocol.dispatcher import ReportSink

EMPTY_GROUP_SLOT = 0xFF
ONLINE_ENTRY_LENGTH = 4
ONLINE_ENTRY_COUNT = 2


@dataclass(frozen=True, slots=True)
class Report(ABC):
    """Common fields of every decoded report; concrete variants implement accept().

    Attributes:
        sequence: Sequence field of the inbound frame
        command: Command byte of the inbound frame
    """

    kind: ClassVar[str] = "report"

    sequence: int
    command: int

    @abstractmethod
    def accept(self, sink: ReportSink) -> None:
        """Deliver this report to the matching sink method."""


@dataclass(frozen=True, slots=True)
class TimeReport(Report):
    """Device clock (weekday is Monday=0, None if the date is not valid)."""

    kind: ClassVar[str] = "time"

    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int
    weekday: int | None

    def as_datetime(self) -> datetime.datetime | None:
        """Return the reported time as a naive datetime, or None if invalid."""
        try:
            return datetime.datetime(self.year, self.month, self.day, self.hour, self.minute, self.second)  # noqa: DTZ001
        except ValueError:
            return None

    def accept(self, sink: ReportSink) -> None:
        sink.on_time_report(self)


@dataclass(frozen=True, slots=True)
class AddressReport(Report):
    """Mesh address the device reports after an address edit or query."""

    kind: ClassVar[str] = "address"

    mesh_id: int

    def accept(self, sink: ReportSink) -> None:
        sink.on_address_report(self)


@dataclass(frozen=True, slots=True)
class DeviceInfoReport(Report):
    """Device information or firmware version.

    Attributes:
        info_type: Selector echoed from the query (0x00 info, 0x02 version)
        data: Remaining 9 payload bytes
        hardware_id: Little-endian u16 at data[0:2]
        firmware_id: Little-endian u16 at data[2:4]
        version: ASCII version text for the version selector, else None
    """

    kind: ClassVar[str] = "device_info"

    info_type: int
    data: bytes
    hardware_id: int
    firmware_id: int
    version: str | None

    def accept(self, sink: ReportSink) -> None:
        sink.on_device_info_report(self)


@dataclass(frozen=True, slots=True)
class GroupIdReport(Report):
    """Group addresses (0x8000-0x80FF) the device belongs to."""

    kind: ClassVar[str] = "group_id"

    groups: frozenset[int]

    def accept(self, sink: ReportSink) -> None:
        sink.on_group_id_report(self)


@dataclass(frozen=True, slots=True)
class OnlineStatus:
    """One device entry of an online status report."""

    mesh_id: int
    online: bool
    brightness: int
    flags: int


@dataclass(frozen=True, slots=True)
class OnlineStatusReport(Report):
    """Liveness entries for up to two devices sharing the mesh."""

    kind: ClassVar[str] = "online_status"

    devices: tuple[OnlineStatus, ...] = field(default_factory=tuple)

    def accept(self, sink: ReportSink) -> None:
        sink.on_online_status_report(self)


@dataclass(frozen=True, slots=True)
class OtaStatusReport(Report):
    """OTA status, kept as raw payload."""

    kind: ClassVar[str] = "ota_status"

    payload: bytes

    def accept(self, sink: ReportSink) -> None:
        sink.on_ota_status_report(self)


@dataclass(frozen=True, slots=True)
class Unrecognized(Report):
    """Frame that failed validation or carries an unknown command.

    Attributes:
        payload: Raw 10 payload bytes, for diagnostics
        reason: "unknown_command" or "foreign_address"
    """

    kind: ClassVar[str] = "unrecognized"

    payload: bytes
    reason: str

    def accept(self, sink: ReportSink) -> None:
        sink.on_unrecognized(self)


def parse_time_report(sequence: int, command: int, payload: bytes) -> TimeReport:
    """Parse year(2, LE) | month | day | hour | minute | second."""
    year = int.from_bytes(payload[0:2], "little")
    month, day, hour, minute, second = payload[2:7]
    try:
        weekday: int | None = datetime.date(year, month, day).weekday()
    except ValueError:
        weekday = None
    return TimeReport(
        sequence=sequence,
        command=command,
        year=year,
        month=month,
        day=day,
        hour=hour,
        minute=minute,
        second=second,
        weekday=weekday,
    )


def parse_address_report(sequence: int, command: int, payload: bytes) -> AddressReport:
    return AddressReport(sequence=sequence, command=command, mesh_id=int.from_bytes(payload[0:2], "little"))


def parse_device_info_report(sequence: int, command: int, payload: bytes) -> DeviceInfoReport:
    """Parse info_type | data(9); the version selector carries NUL-terminated ASCII."""
    info_type = payload[0]
    data = bytes(payload[1:])
    version = None
    if info_type == DEVICE_INFO_TYPE_VERSION:
        version = data.split(b"\x00", 1)[0].decode("ascii", errors="replace")
    return DeviceInfoReport(
        sequence=sequence,
        command=command,
        info_type=info_type,
        data=data,
        hardware_id=int.from_bytes(data[0:2], "little"),
        firmware_id=int.from_bytes(data[2:4], "little"),
        version=version,
    )


def parse_group_id_report(sequence: int, command: int, payload: bytes) -> GroupIdReport:
    groups = frozenset(GROUP_ADDRESS_BASE | b for b in payload if b != EMPTY_GROUP_SLOT)
    return GroupIdReport(sequence=sequence, command=command, groups=groups)


def parse_online_status_report(sequence: int, command: int, payload: bytes) -> OnlineStatusReport:
    """Parse up to two entries of address | sn | brightness | flags.

    An entry with address 0 is an empty slot; sn 0 means the device is offline.
    """
    devices: list[OnlineStatus] = []
    for index in range(ONLINE_ENTRY_COUNT):
        entry = payload[index * ONLINE_ENTRY_LENGTH : (index + 1) * ONLINE_ENTRY_LENGTH]
        if len(entry) < ONLINE_ENTRY_LENGTH or entry[0] == 0:
            continue
        devices.append(OnlineStatus(mesh_id=entry[0], online=entry[1] != 0, brightness=entry[2], flags=entry[3]))
    return OnlineStatusReport(sequence=sequence, command=command, devices=tuple(devices))


def parse_ota_status_report(sequence: int, command: int, payload: bytes) -> OtaStatusReport:
    return OtaStatusReport(sequence=sequence, command=command, payload=bytes(payload))
