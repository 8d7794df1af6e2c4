"""Custom exception types for Telink mesh protocol errors.

All of these are local precondition violations raised synchronously to the
caller of the failing operation. None of them is raised for malformed
ciphertext: inbound frames that decrypt to garbage become ``Unrecognized``
reports instead.
"""

from __future__ import annotations


class TelinkMeshError(Exception):
    """Base exception for all Telink mesh protocol errors.

    Attributes:
        reason: Specific failure reason (e.g., "too_long", "no_session_key")
    """

    def __init__(self, reason: str, message: str | None = None) -> None:
        self.reason: str = reason
        super().__init__(message or reason)


class InvalidCredentialsError(TelinkMeshError):
    """Mesh name or password cannot be used for key derivation.

    Raised instead of truncating a value that does not fit its 16-byte field.
    The offending value itself is never stored on the exception.
    """

    def __init__(self, reason: str, field: str) -> None:
        self.field: str = field
        super().__init__(reason, f"Invalid mesh {field}: {reason}")


class PairingNonceError(TelinkMeshError):
    """Pairing nonce is not exactly 8 bytes, or the pair response is malformed."""

    def __init__(self, reason: str, length: int = 0) -> None:
        self.length: int = length
        super().__init__(reason, f"Pairing nonce error: {reason} (length: {length})")


class PairingRejectedError(TelinkMeshError):
    """Device refused the pair request (wrong mesh name or password)."""

    def __init__(self, reason: str = "credentials_rejected") -> None:
        super().__init__(reason, f"Pairing rejected by device: {reason}")


class InvalidFrameLengthError(TelinkMeshError):
    """Frame or key handed to the frame codec has the wrong size.

    Attributes:
        length: Size of the rejected input
        expected: Size the codec requires
        data_preview: First 4 bytes of the rejected input, never more
    """

    def __init__(self, reason: str, length: int, expected: int, data: bytes = b"") -> None:
        self.length: int = length
        self.expected: int = expected
        # Short preview only: the input could be a key
        self.data_preview: bytes = bytes(data[:4])
        super().__init__(reason, f"Invalid length for {reason}: {length} (expected {expected})")


class PayloadTooLargeError(TelinkMeshError):
    """Command payload does not fit the 10-byte payload field."""

    def __init__(self, length: int, limit: int = 10) -> None:
        self.length: int = length
        self.limit: int = limit
        super().__init__("payload_too_large", f"Payload of {length} bytes exceeds {limit} bytes")


class NoActiveSessionError(TelinkMeshError):
    """No session key has been derived for the current connection."""

    def __init__(self, reason: str = "no_session_key") -> None:
        super().__init__(reason, f"No active session: {reason}")


class InvalidMeshAddressError(TelinkMeshError, ValueError):
    """Mesh or group address outside its allowed range."""

    def __init__(self, address: int, reason: str = "out_of_range") -> None:
        self.address: int = address
        super().__init__(reason, f"Invalid mesh address 0x{address:04x}: {reason}")
