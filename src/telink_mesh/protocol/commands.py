"""Telink mesh command code registry.

Command codes are single bytes. Queries and edits travel client → device on
the command characteristic; reports travel device → client on the
notification characteristic.

Command Overview:
- 0xC6/0xC7/0xC8: OTA update, OTA state query, OTA status report
- 0xDD/0xD4: Group id query / report, 0xD7: group edit
- 0xDC: Online status report (sent unsolicited by devices)
- 0xE0/0xE1: Address edit (also the address query) / address report
- 0xE3: Reset
- 0xE4/0xE8/0xE9: Time set / time query / time report
- 0xEA/0xEB: Device info query / report
"""

from __future__ import annotations

from enum import IntEnum
from typing import Final


class Command(IntEnum):
    """Command codes understood by Telink mesh firmware."""

    OTA_UPDATE = 0xC6
    QUERY_OTA_STATE = 0xC7
    OTA_STATUS_REPORT = 0xC8
    GROUP_ID_QUERY = 0xDD
    GROUP_ID_REPORT = 0xD4
    GROUP_EDIT = 0xD7
    ONLINE_STATUS_REPORT = 0xDC
    ADDRESS_EDIT = 0xE0
    ADDRESS_REPORT = 0xE1
    RESET = 0xE3
    TIME_SET = 0xE4
    TIME_QUERY = 0xE8
    TIME_REPORT = 0xE9
    DEVICE_INFO_QUERY = 0xEA
    DEVICE_INFO_REPORT = 0xEB


# Commands a device sends back to the client; protocol.dispatcher registers one parser per code
REPORT_COMMANDS: Final = frozenset(
    {
        Command.TIME_REPORT,
        Command.ADDRESS_REPORT,
        Command.DEVICE_INFO_REPORT,
        Command.GROUP_ID_REPORT,
        Command.ONLINE_STATUS_REPORT,
        Command.OTA_STATUS_REPORT,
    }
)

# Device info selectors: payload[1] of DEVICE_INFO_QUERY, echoed in payload[0] of DEVICE_INFO_REPORT
DEVICE_INFO_TYPE_INFO: Final = 0x00
DEVICE_INFO_TYPE_VERSION: Final = 0x02

# Query selectors (first payload bytes) observed from vendor apps
QUERY_MARKER: Final = 0x10
TIME_QUERY_PARAMS: Final = bytes([QUERY_MARKER])
DEVICE_INFO_QUERY_PARAMS: Final = bytes([QUERY_MARKER, DEVICE_INFO_TYPE_INFO])
DEVICE_VERSION_QUERY_PARAMS: Final = bytes([QUERY_MARKER, DEVICE_INFO_TYPE_VERSION])
GROUP_ID_QUERY_PARAMS: Final = b"\x0a\x01"
MESH_ID_QUERY_PARAMS: Final = b"\xff\xff"

# Group edit opcodes (payload[0] of GROUP_EDIT)
GROUP_EDIT_DELETE: Final = 0x00
GROUP_EDIT_ADD: Final = 0x01

# Pair characteristic opcodes
PAIR_REQUEST: Final = 0x0C
PAIR_RESPONSE_OK: Final = 0x0D
PAIR_RESPONSE_REJECTED: Final = 0x0E

# Written to the notification characteristic to turn on status notifications
NOTIFY_ENABLE: Final = b"\x01"


def command_name(command: int) -> str:
    """Return the registry name for a command byte, or its hex form."""
    try:
        return Command(command).name
    except ValueError:
        return f"0x{command:02x}"
