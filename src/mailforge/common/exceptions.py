"""
Custom exceptions for mailforge.

This module defines all custom exceptions raised while composing messages,
describing mail sessions and handing messages to the SMTP transport.
"""

from typing import Any, Optional


class MailForgeError(Exception):
    """Base exception for all mailforge errors."""

    def __init__(self, message: str,
                 details: Optional[dict[str, Any]] = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error details.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


# Configuration Exceptions
class ConfigurationError(MailForgeError):
    """Base exception for configuration-related errors."""


class MissingConfigError(ConfigurationError):
    """Raised when a required configuration value is missing."""

    def __init__(
        self, config_key: str, details: Optional[dict[str, Any]] = None
    ) -> None:
        """
        Initialize missing config error.

        Args:
            config_key: The missing configuration key.
            details: Optional dictionary with additional error details.
        """
        super().__init__(
            f"Missing required configuration: '{config_key}'", details)
        self.config_key = config_key


class InvalidConfigError(ConfigurationError):
    """Raised when a configuration value is invalid."""

    def __init__(
        self,
        config_key: str,
        value: Any,
        reason: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Initialize invalid config error.

        Args:
            config_key: The configuration key with invalid value.
            value: The invalid value.
            reason: Optional reason why the value is invalid.
            details: Optional dictionary with additional error details.
        """
        message = f"Invalid configuration value for '{config_key}': {value}"
        if reason:
            message += f" - {reason}"
        super().__init__(message, details)
        self.config_key = config_key
        self.value = value
        self.reason = reason


# Email composition Exceptions
class EmailError(MailForgeError):
    """Base exception for message composition errors."""


class InvalidAddressError(EmailError):
    """Raised when an email address does not follow address syntax."""

    def __init__(
        self, address: Any, details: Optional[dict[str, Any]] = None
    ) -> None:
        """
        Initialize invalid address error.

        Args:
            address: The rejected address value.
            details: Optional dictionary with additional error details.
        """
        super().__init__(f"Invalid email address: '{address}'", details)
        self.address = address


class InvalidArgumentError(EmailError, ValueError):
    """Raised when a required argument is None or empty."""


class MissingFromAddressError(EmailError):
    """Raised when a message is built without a sender."""

    def __init__(self, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__("From address required", details)


class MissingRecipientError(EmailError):
    """Raised when a message is built without any To, Cc or Bcc recipient."""

    def __init__(self, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__("At least one receiver address required", details)


class MissingHostNameError(EmailError):
    """Raised when a mail session is requested without an SMTP host."""

    def __init__(self, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__("Cannot find valid hostname for mail session", details)


class AlreadyBuiltError(EmailError, RuntimeError):
    """Raised when a builder is used again after its message was built."""

    def __init__(self, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__("The MimeMessage is already built.", details)


# SMTP Exceptions
class SMTPError(MailForgeError):
    """Base exception for SMTP-related errors."""


class SMTPConnectionError(SMTPError):
    """Raised when SMTP connection fails."""


class SMTPAuthError(SMTPError):
    """Raised when SMTP authentication fails."""
