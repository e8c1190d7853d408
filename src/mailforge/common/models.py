"""
Pydantic models for mailforge.

This module defines the validated value types shared by the composer,
the session descriptor and the transport.
"""

from email.headerregistry import Address
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator

from .exceptions import InvalidAddressError


class RecipientType(str, Enum):
    """Kind of recipient list an address belongs to."""

    TO = "to"
    CC = "cc"
    BCC = "bcc"


class ContentType(str, Enum):
    """Text content types a message body can carry."""

    PLAIN = "text/plain"
    HTML = "text/html"


class MailAddress(BaseModel):
    """A syntactically valid mailbox with an optional display name."""

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
    )

    email: EmailStr = Field(..., description="Mailbox address (addr-spec)")
    display_name: Optional[str] = Field(
        None, description="Human readable name shown next to the address"
    )

    @field_validator("display_name")
    @classmethod
    def empty_name_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat a blank display name as no display name."""
        if v is not None and not v:
            return None
        return v

    @classmethod
    def parse(
        cls,
        value: Union[str, "MailAddress"],
        display_name: Optional[str] = None,
    ) -> "MailAddress":
        """
        Parse and validate an email address.

        Handles formats like:
        - "user@example.com"
        - "Display Name <user@example.com>"
        - '"Display Name" <user@example.com>'

        Args:
            value: Address string or an existing MailAddress.
            display_name: Optional display name overriding the parsed one.

        Returns:
            MailAddress instance.

        Raises:
            InvalidAddressError: If the address is missing or malformed.
        """
        if isinstance(value, MailAddress):
            if display_name:
                return cls(email=value.email, display_name=display_name)
            return value

        if not isinstance(value, str) or not value.strip():
            raise InvalidAddressError(value)

        text = value.strip()
        parsed_name: Optional[str] = None
        email = text

        # "Display Name <email>" format
        if "<" in text and text.endswith(">"):
            parts = text.rsplit("<", 1)
            parsed_name = parts[0].strip().strip('"').strip("'").strip() or None
            email = parts[1].rstrip(">").strip()

        try:
            return cls(email=email, display_name=display_name or parsed_name)
        except ValidationError as e:
            raise InvalidAddressError(value) from e

    def to_address(self) -> Address:
        """Convert to email.headerregistry.Address."""
        if self.display_name:
            return Address(display_name=self.display_name, addr_spec=self.email)
        return Address(addr_spec=self.email)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"email": self.email, "display_name": self.display_name}

    def __str__(self) -> str:
        return str(self.to_address())
