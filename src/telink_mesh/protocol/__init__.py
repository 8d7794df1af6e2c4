"""Telink mesh protocol package - key derivation, frame codec, reports.

Everything here is synchronous and free of I/O. Mutable state (session key,
sequence counter) lives in telink_mesh.session.MeshSession.

Public API:
- Command registry (Command, REPORT_COMMANDS)
- Block primitive and frame codec (telink_encrypt, encrypt_frame, decrypt_frame)
- Key derivation and pairing (derive_session_key, make_pair_request, parse_pair_response)
- Frame layout and packet builder (FrameFields, pack_frame, unpack_frame, build_packet)
- Reports and dispatch (Report variants, CommandDispatcher, ReportSink)
"""

from telink_mesh.protocol.commands import REPORT_COMMANDS, Command, command_name
from telink_mesh.protocol.crypto import decrypt_frame, encrypt_frame, telink_encrypt
from telink_mesh.protocol.dispatcher import (
    BaseReportSink,
    CommandDispatcher,
    ReportSink,
    classify_frame,
)
from telink_mesh.protocol.frames import FrameFields, pack_frame, reverse_address, unpack_frame
from telink_mesh.protocol.key_derivation import (
    combine_name_and_password,
    derive_session_key,
    encrypt_credentials,
    make_pair_request,
    parse_pair_response,
)
from telink_mesh.protocol.packet_builder import build_cleartext, build_packet
from telink_mesh.protocol.reports import (
    AddressReport,
    DeviceInfoReport,
    GroupIdReport,
    OnlineStatus,
    OnlineStatusReport,
    OtaStatusReport,
    Report,
    TimeReport,
    Unrecognized,
)

__all__ = [
    # Command registry
    "Command",
    "REPORT_COMMANDS",
    "command_name",
    # Frame codec
    "telink_encrypt",
    "encrypt_frame",
    "decrypt_frame",
    # Key derivation
    "combine_name_and_password",
    "derive_session_key",
    "encrypt_credentials",
    "make_pair_request",
    "parse_pair_response",
    # Frame layout and builder
    "FrameFields",
    "pack_frame",
    "unpack_frame",
    "reverse_address",
    "build_cleartext",
    "build_packet",
    # Reports and dispatch
    "Report",
    "TimeReport",
    "AddressReport",
    "DeviceInfoReport",
    "GroupIdReport",
    "OnlineStatus",
    "OnlineStatusReport",
    "OtaStatusReport",
    "Unrecognized",
    "ReportSink",
    "BaseReportSink",
    "CommandDispatcher",
    "classify_frame",
]
