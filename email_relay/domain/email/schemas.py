"""Email domain schemas - inbound send requests and the response envelope"""

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

Recipients = Optional[Union[str, list[str]]]

SEND_REQUIRED_FIELDS = ("to", "subject", "content")


def split_recipients(value: Recipients) -> list[str]:
    """Accept a single address, a comma-separated string or a list of addresses."""
    if not value:
        return []
    items = value.split(",") if isinstance(value, str) else value
    return [item.strip() for item in items if item and item.strip()]


def as_recipients(value: Any) -> Recipients:
    # Anything that is not a string or a list of strings counts as absent
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return [item for item in value if isinstance(item, str)]
    return None


def as_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def as_body(payload: Any) -> dict:
    """A JSON body that is not an object carries no fields."""
    return payload if isinstance(payload, dict) else {}


class EmailRequest(BaseModel):
    """Schema for a caller-composed email

    Values of the wrong type are read as missing, so the required-field
    check decides the response instead of type validation.
    """

    model_config = ConfigDict(populate_by_name=True)

    to: Recipients = None
    cc: Recipients = None
    bcc: Recipients = None
    subject: Optional[str] = None
    content: Optional[str] = None
    lead_id: Optional[str] = Field(default=None, alias="leadId")  # correlation only, not used to send

    @field_validator("to", "cc", "bcc", mode="before")
    @classmethod
    def coerce_recipients(cls, value: Any) -> Recipients:
        return as_recipients(value)

    @field_validator("subject", "content", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> Optional[str]:
        return as_text(value)

    @field_validator("lead_id", mode="before")
    @classmethod
    def coerce_lead_id(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)

    @classmethod
    def from_body(cls, payload: Any) -> "EmailRequest":
        return cls.model_validate(as_body(payload))

    def missing_fields(self) -> list[str]:
        missing = []
        if not split_recipients(self.to):
            missing.append("to")
        if not self.subject:
            missing.append("subject")
        if not self.content:
            missing.append("content")
        return missing


class TestEmailRequest(BaseModel):
    """Schema for the configuration check email"""

    __test__ = False  # keep pytest from collecting this as a test class

    to: Recipients = None

    @field_validator("to", mode="before")
    @classmethod
    def coerce_recipients(cls, value: Any) -> Recipients:
        return as_recipients(value)

    @classmethod
    def from_body(cls, payload: Any) -> "TestEmailRequest":
        return cls.model_validate(as_body(payload))


class EnvelopeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    message_id: Optional[str] = Field(default=None, alias="messageId")
