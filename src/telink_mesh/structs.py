"""Connection parameters for a Telink mesh device."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from telink_mesh.const import MAX_CREDENTIAL_LENGTH, TELINK_VENDOR_CODE
from telink_mesh.protocol.exceptions import InvalidCredentialsError
from telink_mesh.protocol.frames import reverse_address


class DeviceIdentity(BaseModel):
    """A device's MAC address, mesh credentials and vendor code.

    Immutable. Changing any field means building a new identity, which
    MeshSession.update_identity() does while wiping the session key.
    """

    model_config = ConfigDict(frozen=True)

    mac: str
    name: str
    password: str = Field(repr=False)
    vendor: int = Field(default=TELINK_VENDOR_CODE, ge=0, le=0xFFFF)

    @field_validator("mac")
    @classmethod
    def _normalize_mac(cls, value: str) -> str:
        reversed_bytes = reverse_address(value.strip())
        return ":".join(f"{b:02X}" for b in reversed(reversed_bytes))

    @field_validator("name", "password")
    @classmethod
    def _check_credential_length(cls, value: str, info: ValidationInfo) -> str:
        # InvalidCredentialsError is not a ValueError, so pydantic lets it through unwrapped
        if len(value.encode("utf-8")) > MAX_CREDENTIAL_LENGTH:
            error_reason = f"longer than {MAX_CREDENTIAL_LENGTH} bytes"
            raise InvalidCredentialsError(error_reason, info.field_name)
        if info.field_name == "name" and not value:
            error_reason = "empty"
            raise InvalidCredentialsError(error_reason, "name")
        return value

    @property
    def reversed_address(self) -> bytes:
        """Return the MAC address in wire order (least significant octet first)."""
        return reverse_address(self.mac)

    @property
    def mac_bytes(self) -> bytes:
        """Return the MAC address octets in display order."""
        return self.reversed_address[::-1]

    @property
    def vendor_byte(self) -> int:
        """Return the vendor byte carried in every frame."""
        return self.vendor & 0xFF
