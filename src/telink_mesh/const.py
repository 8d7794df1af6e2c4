import os
from typing import Final

from telink_mesh import __version__

__all__ = [
    "BROADCAST_ADDRESS",
    "FRAME_LENGTH",
    "GROUP_ADDRESS_BASE",
    "GROUP_ADDRESS_MAX",
    "KEY_LENGTH",
    "MAX_CREDENTIAL_LENGTH",
    "MAX_PAYLOAD_LENGTH",
    "MESH_ADDRESS_MAX",
    "MESH_ADDRESS_MIN",
    "NONCE_LENGTH",
    "SEQUENCE_MODULUS",
    "SEQUENCE_START",
    "TELINK_DEBUG",
    "TELINK_LOG_FORMAT",
    "TELINK_LOG_HUMAN_OUTPUT",
    "TELINK_LOG_JSON_FILE",
    "TELINK_LOG_NAME",
    "TELINK_METRICS_PORT",
    "TELINK_VENDOR_CODE",
    "TELINK_VERSION",
    "UUID_COMMAND_CHAR",
    "UUID_INFO_SERVICE",
    "UUID_NOTIFICATION_CHAR",
    "UUID_PAIR_CHAR",
    "YES_ANSWER",
]

YES_ANSWER = ("true", "1", "yes", "y", "t", 1, "on", "o")
TELINK_VERSION: str = __version__
TELINK_LOG_NAME: str = "telink_mesh"

# GATT layout exposed by Telink mesh firmware
UUID_INFO_SERVICE: Final = "00010203-0405-0607-0809-0a0b0c0d1910"
UUID_NOTIFICATION_CHAR: Final = "00010203-0405-0607-0809-0a0b0c0d1911"
UUID_COMMAND_CHAR: Final = "00010203-0405-0607-0809-0a0b0c0d1912"
UUID_PAIR_CHAR: Final = "00010203-0405-0607-0809-0a0b0c0d1914"

# Wire sizes
FRAME_LENGTH: Final = 20
KEY_LENGTH: Final = 16
NONCE_LENGTH: Final = 8
MAX_PAYLOAD_LENGTH: Final = 10
MAX_CREDENTIAL_LENGTH: Final = 16

# Sequence counter
SEQUENCE_START: Final = 1
SEQUENCE_MODULUS: Final = 0x10000

# Mesh addressing
MESH_ADDRESS_MIN: Final = 1
MESH_ADDRESS_MAX: Final = 254
GROUP_ADDRESS_BASE: Final = 0x8000
GROUP_ADDRESS_MAX: Final = 0x80FF
BROADCAST_ADDRESS: Final = b"\xff" * 6

TELINK_DEBUG: bool = os.environ.get("TELINK_DEBUG", "0").casefold() in YES_ANSWER

_vendor_code = os.environ.get("TELINK_VENDOR_CODE", "0x0211")
try:
    _vendor_code_value: int = int(_vendor_code, 0) & 0xFFFF if _vendor_code else 0x0211
except ValueError:
    _vendor_code_value = 0x0211
TELINK_VENDOR_CODE: int = _vendor_code_value

_metrics_port = os.environ.get("TELINK_METRICS_PORT", "9401")
TELINK_METRICS_PORT: int = int(_metrics_port) if _metrics_port and _metrics_port.isdigit() else 9401

# Logging Configuration
TELINK_LOG_FORMAT: str = os.environ.get("TELINK_LOG_FORMAT", "human")  # "json", "human", or "both"
TELINK_LOG_JSON_FILE: str | None = os.environ.get("TELINK_LOG_JSON_FILE") or None
TELINK_LOG_HUMAN_OUTPUT: str = os.environ.get("TELINK_LOG_HUMAN_OUTPUT", "stderr")  # "stdout", "stderr", or file path
