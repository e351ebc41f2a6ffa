"""Settings domain schemas - typed email configuration and API models"""

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, EmailStr, Field

from ...exceptions import SettingsDecodeError

EMAIL_CATEGORY = "email"

KEY_ENABLED = "email.enabled"
KEY_SMTP_HOST = "email.smtp.host"
KEY_SMTP_PORT = "email.smtp.port"
KEY_SMTP_SECURE = "email.smtp.secure"
KEY_SMTP_USERNAME = "email.smtp.username"
KEY_SMTP_PASSWORD = "email.smtp.password"
KEY_FROM_NAME = "email.from.name"
KEY_FROM_ADDRESS = "email.from.address"

DEFAULT_SMTP_HOST = "smtp.office365.com"
DEFAULT_SMTP_PORT = 587
DEFAULT_FROM_NAME = "WyaLink"

_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off", ""}


def parse_setting_value(raw: Optional[str]) -> Any:
    """Decode a stored value as JSON, keeping the literal string when it isn't JSON."""
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return raw


def decode_bool(key: str, value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise SettingsDecodeError(key, value, "boolean")


def decode_int(key: str, value: Any, default: int) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise SettingsDecodeError(key, value, "integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as e:
            raise SettingsDecodeError(key, value, "integer") from e
    raise SettingsDecodeError(key, value, "integer")


def decode_str(key: str, value: Any, default: str) -> str:
    if value is None:
        return default
    if isinstance(value, str):
        return value
    # Numeric-looking strings (e.g. passwords) come back from JSON as numbers
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise SettingsDecodeError(key, value, "string")


@dataclass(frozen=True)
class SMTPSettings:
    host: str
    port: int
    secure: bool
    username: str
    password: str


@dataclass(frozen=True)
class SenderIdentity:
    name: str
    address: str


@dataclass(frozen=True)
class EmailSettings:
    """Snapshot of the tenant's email configuration, loaded fresh per request."""

    enabled: bool
    smtp: SMTPSettings
    sender: SenderIdentity

    @property
    def from_header(self) -> str:
        return f"{self.sender.name} <{self.sender.address}>"

    @classmethod
    def from_values(cls, values: dict[str, Any]) -> "EmailSettings":
        """
        Build settings from decoded key/value pairs.

        Missing keys take their defaults; a present value of the wrong type
        raises SettingsDecodeError naming the key.
        """
        username = decode_str(KEY_SMTP_USERNAME, values.get(KEY_SMTP_USERNAME), "")
        address = decode_str(KEY_FROM_ADDRESS, values.get(KEY_FROM_ADDRESS), "")

        return cls(
            enabled=decode_bool(KEY_ENABLED, values.get(KEY_ENABLED), False),
            smtp=SMTPSettings(
                host=decode_str(KEY_SMTP_HOST, values.get(KEY_SMTP_HOST), "") or DEFAULT_SMTP_HOST,
                port=decode_int(KEY_SMTP_PORT, values.get(KEY_SMTP_PORT), DEFAULT_SMTP_PORT),
                secure=decode_bool(KEY_SMTP_SECURE, values.get(KEY_SMTP_SECURE), False),
                username=username,
                password=decode_str(KEY_SMTP_PASSWORD, values.get(KEY_SMTP_PASSWORD), ""),
            ),
            sender=SenderIdentity(
                name=decode_str(KEY_FROM_NAME, values.get(KEY_FROM_NAME), "") or DEFAULT_FROM_NAME,
                address=address or username,
            ),
        )


# ============================================================================
# API MODELS
# ============================================================================


class SettingResponse(BaseModel):
    id: str
    key: str
    value: Any
    category: str
    description: Optional[str] = None
    is_encrypted: bool = False
    updated_by: Optional[str] = None
    updated_at: Optional[datetime] = None


class SettingUpdate(BaseModel):
    value: Any


class EmailSettingsResponse(BaseModel):
    """Email settings as shown to admins. The password is never returned."""

    enabled: bool
    smtp_host: str
    smtp_port: int
    smtp_secure: bool
    smtp_username: str
    has_password: bool
    from_name: str
    from_address: str

    @classmethod
    def from_settings(cls, settings: EmailSettings) -> "EmailSettingsResponse":
        return cls(
            enabled=settings.enabled,
            smtp_host=settings.smtp.host,
            smtp_port=settings.smtp.port,
            smtp_secure=settings.smtp.secure,
            smtp_username=settings.smtp.username,
            has_password=bool(settings.smtp.password),
            from_name=settings.sender.name,
            from_address=settings.sender.address,
        )


class EmailSettingsUpdate(BaseModel):
    enabled: Optional[bool] = None
    smtp_host: Optional[str] = None
    smtp_port: Optional[int] = Field(default=None, ge=1, le=65535)
    smtp_secure: Optional[bool] = None
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    from_name: Optional[str] = None
    from_address: Optional[EmailStr] = None

    def to_setting_values(self) -> dict[str, Any]:
        """Map provided fields to their setting keys, skipping anything left unset."""
        keys = {
            "enabled": KEY_ENABLED,
            "smtp_host": KEY_SMTP_HOST,
            "smtp_port": KEY_SMTP_PORT,
            "smtp_secure": KEY_SMTP_SECURE,
            "smtp_username": KEY_SMTP_USERNAME,
            "smtp_password": KEY_SMTP_PASSWORD,
            "from_name": KEY_FROM_NAME,
            "from_address": KEY_FROM_ADDRESS,
        }
        provided = self.model_dump(exclude_unset=True)
        return {keys[name]: value for name, value in provided.items() if value is not None}
